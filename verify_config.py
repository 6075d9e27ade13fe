#!/usr/bin/env python3
"""Simple script to verify config.example.yaml structure without importing the package."""

import yaml
from pathlib import Path

KNOWN_SECTIONS = {
    'ingest': {'max_rows': int, 'max_payload_bytes': int, 'delimiter': str},
    'merge': {'scalar_policy': str},
    'connector': {'platform': str, 'endpoint': str, 'timeout': int, 'user_agent': str},
    'logging': {'level': str, 'format': str},
}
VALID_PLATFORMS = ['salesforce', 'sap', 'hubspot', 'zapier', 'api', 'webhook']
VALID_POLICIES = ['last_wins', 'first_wins']


def verify_config_structure(config_file=Path("config.example.yaml")):
    """Verify a config file has the expected sections and value types."""
    if not config_file.exists():
        print(f"✗ {config_file} not found")
        return False

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        print(f"✗ Failed to parse {config_file}: {e}")
        return False

    if not isinstance(config, dict):
        print(f"✗ {config_file} must contain a mapping at the top level")
        return False

    errors = []

    for key in config:
        if key not in KNOWN_SECTIONS:
            errors.append(f"Unknown section: {key}")

    for section, fields in KNOWN_SECTIONS.items():
        values = config.get(section)
        if values is None:
            continue
        if not isinstance(values, dict):
            errors.append(f"'{section}' must be a dictionary")
            continue
        for field, expected_type in fields.items():
            if field in values and values[field] is not None and not isinstance(values[field], expected_type):
                errors.append(f"'{section}.{field}' must be of type {expected_type.__name__}")

    connector = config.get('connector') or {}
    if isinstance(connector, dict) and connector.get('platform') not in (None, *VALID_PLATFORMS):
        errors.append(f"connector.platform must be one of: {', '.join(VALID_PLATFORMS)}")

    merge = config.get('merge') or {}
    if isinstance(merge, dict) and merge.get('scalar_policy') not in (None, *VALID_POLICIES):
        errors.append(f"merge.scalar_policy must be one of: {', '.join(VALID_POLICIES)}")

    if errors:
        print(f"✗ {config_file} validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False

    ingest = config.get('ingest') or {}
    print(f"✓ {config_file} structure is valid")
    print(f"  - Max rows: {ingest.get('max_rows', 'default')}")
    print(f"  - Merge policy: {merge.get('scalar_policy', 'last_wins')}")
    print(f"  - Connector platform: {connector.get('platform', 'api')}")
    return True


if __name__ == "__main__":
    import sys
    path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("config.example.yaml")
    success = verify_config_structure(path)
    sys.exit(0 if success else 1)
