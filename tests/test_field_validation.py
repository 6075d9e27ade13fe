"""Unit tests for field-level validators."""

import pytest

from contact_ingest.validation import (
    is_email_shaped,
    normalize_tags,
    validate_email,
    validate_name,
    validate_phone,
)


class TestValidateName:
    """Tests for validate_name()."""

    def test_trims_whitespace(self):
        assert validate_name("  Alice  ") == ("Alice", True)

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n"])
    def test_blank_name_is_rejected(self, raw):
        result = validate_name(raw)
        assert result.ok is False
        assert result.value == ""

    @pytest.mark.parametrize("raw", [None, 42, 3.5, ["Alice"], {"name": "Alice"}])
    def test_non_string_is_rejected(self, raw):
        """Test that non-string input is rejected instead of raising."""
        assert validate_name(raw).ok is False


class TestValidateEmail:
    """Tests for validate_email()."""

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_absent_email_is_valid(self, raw):
        """Email is optional: missing or blank input is valid-but-absent."""
        assert validate_email(raw) == (None, True)

    def test_valid_email_is_trimmed(self):
        assert validate_email("  alice@x.com ") == ("alice@x.com", True)

    def test_case_is_preserved(self):
        assert validate_email("Alice@X.com").value == "Alice@X.com"

    @pytest.mark.parametrize(
        "raw",
        [
            "alice",
            "alice@",
            "@x.com",
            "alice@x",
            "alice@x.",
            "al ice@x.com",
            "alice@@x.com",
            "alice@x@y.com",
        ],
    )
    def test_malformed_email_is_rejected(self, raw):
        result = validate_email(raw)
        assert result.ok is False

    def test_non_string_email_is_rejected(self):
        assert validate_email(12345) == (None, False)

    def test_subdomains_are_accepted(self):
        assert validate_email("bob@mail.example.co.uk").ok is True

    def test_is_email_shaped(self):
        assert is_email_shaped("a@b.co") is True
        assert is_email_shaped("a@b") is False
        assert is_email_shaped(None) is False


class TestValidatePhone:
    """Tests for validate_phone()."""

    def test_string_is_trimmed_and_accepted(self):
        assert validate_phone(" +1 (555) 0100 ") == ("+1 (555) 0100", True)

    def test_any_format_is_accepted(self):
        """Phone format is never checked."""
        assert validate_phone("call me maybe") == ("call me maybe", True)

    @pytest.mark.parametrize("raw", [None, "", "   ", True, object()])
    def test_blank_or_unusable_is_absent(self, raw):
        assert validate_phone(raw) == (None, True)

    def test_numeric_cells_become_strings(self):
        assert validate_phone(5550100) == ("5550100", True)
        assert validate_phone(5550100.0) == ("5550100", True)
        assert validate_phone(float("nan")) == (None, True)


class TestNormalizeTags:
    """Tests for normalize_tags()."""

    def test_comma_delimited_string(self):
        assert normalize_tags("vip, newsletter ,") == ("vip", "newsletter")

    def test_sequence_drops_falsy_entries(self):
        assert normalize_tags(["vip", "", None, "prospect"]) == ("vip", "prospect")

    def test_repeats_keep_first_position(self):
        assert normalize_tags("b,a,b,a") == ("b", "a")

    def test_tuple_input(self):
        assert normalize_tags(("vip",)) == ("vip",)

    @pytest.mark.parametrize("raw", [None, 42, {"vip": True}, 1.5])
    def test_other_types_yield_no_tags(self, raw):
        assert normalize_tags(raw) == ()

    def test_empty_string(self):
        assert normalize_tags("") == ()
