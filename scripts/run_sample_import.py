#!/usr/bin/env python3
"""Sample import harness for end-to-end validation.

Runs one import session against a CSV or Excel file, stores the accepted
contacts in a SQLite database and prints what happened.

Usage:
    # Import a CSV file into the database named by DATABASE_URL
    python scripts/run_sample_import.py contacts.csv

    # Use a custom database and configuration
    python scripts/run_sample_import.py contacts.xlsx --database /tmp/contacts.db --config config.yaml

    # Import for a different user
    python scripts/run_sample_import.py contacts.csv --user-id alice
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from contact_ingest.adapters import detect_source_kind
from contact_ingest.adapters.exceptions import AdapterConfigurationError
from contact_ingest.config import ConfigurationError, load_config
from contact_ingest.logging.config import configure_logging
from contact_ingest.persistence import RepositoryContactSink, close_database, init_database
from contact_ingest.persistence.database import redact_url
from contact_ingest.pipeline import ImportSessionController, ImportSource, SessionStatus


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(outcome):
    """Print a formatted summary table of an import outcome."""
    print_header("Import Summary")

    report = outcome.report
    metrics = [
        ("Status", outcome.status.value),
        ("Rows Parsed", report.total),
        ("Valid Rows", report.valid),
        ("Rows With Errors", report.invalid),
        ("Duplicates Collapsed", report.duplicates_collapsed),
        ("Matched Stored Contacts", report.matched_existing),
        ("Contacts Accepted", len(report.accepted)),
        ("Duration (seconds)", f"{outcome.duration_seconds:.2f}"),
    ]

    max_label_width = max(len(label) for label, _ in metrics)

    print("┌" + "─" * (max_label_width + 2) + "┬" + "─" * 22 + "┐")
    print(f"│ {'Metric':<{max_label_width}} │ {'Value':<20} │")
    print("├" + "─" * (max_label_width + 2) + "┼" + "─" * 22 + "┤")

    for label, value in metrics:
        print(f"│ {label:<{max_label_width}} │ {str(value):<20} │")

    print("└" + "─" * (max_label_width + 2) + "┴" + "─" * 22 + "┘")

    if report.rejected:
        print("\n" + "-" * 80)
        print(" Rejected Rows")
        print("-" * 80 + "\n")

        for candidate in report.rejected:
            messages = ", ".join(issue.message for issue in candidate.issues)
            print(f"  {candidate.name or '(no name)'}: {messages}")
        print()


def main():
    """Main entry point for sample import harness."""
    parser = argparse.ArgumentParser(
        description="Import a contact file end to end",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("file", type=Path, help="CSV, XLS or XLSX file to import")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: search contact_ingest.yaml, config.yaml)",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="Path to a SQLite database (default: DATABASE_URL from the environment)",
    )
    parser.add_argument("--user-id", default="sample-user", help="Owner of the imported contacts")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    load_dotenv()

    print_header("Contact Ingest - Sample Import Harness")
    print(f"File: {args.file}")
    print(f"User: {args.user_id}")

    if not args.file.exists():
        print(f"\n❌ Error: File not found: {args.file}")
        return 1

    try:
        kind = detect_source_kind(args.file.name)
    except AdapterConfigurationError as e:
        print(f"\n❌ Error: {e}")
        return 1

    try:
        app_config, env_config = load_config(args.config)
    except ConfigurationError as e:
        print(f"\n❌ Configuration error:\n{e}")
        return 1

    configure_logging(
        level=args.log_level,
        format_type=app_config.logging.format,
        environment="validation",
    )

    if args.database is not None:
        database_url = f"sqlite:///{args.database.absolute()}"
    else:
        database_url = env_config.database_url
    print(f"\n💾 Initializing database: {redact_url(database_url)}")
    init_database(database_url)

    try:
        sink = RepositoryContactSink(args.user_id)
        existing = sink.load_existing()
        print(f"✓ {len(existing)} contacts already stored")

        controller = ImportSessionController(config=app_config, sink=sink)
        source = ImportSource(kind=kind, payload=args.file, filename=args.file.name)

        print(f"\n🚀 Importing {kind.value} file...")
        print(f"   Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        outcome = asyncio.run(controller.start_import(source, existing=existing))
        print(f"   Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

        print_summary_table(outcome)

        if outcome.status != SessionStatus.COMPLETED:
            print(f"❌ Import failed: {outcome.error}")
            return 1

        print(outcome.report.summary())
        if sink.last_result is not None:
            print(f"Inserted {sink.last_result.inserted}, updated {sink.last_result.updated}")

        print_header("Output Locations")
        print(f"Database: {redact_url(database_url)}")
        return 0

    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
