"""Tests for record normalization."""

import logging
from unittest.mock import Mock

import pytest

from contact_ingest.domain import IssueReason, ValidationIssue
from contact_ingest.normalization import RecordNormalizer, canonical_fields, normalize

SOURCE = "delimited:contacts.csv"


class TestCanonicalFields:
    """Tests for canonical_fields()."""

    def test_keys_are_case_insensitive(self):
        row = {"Name": "Alice", " EMAIL ": "a@x.com", "Phone": "1", "TAGS": "vip"}
        assert canonical_fields(row) == {
            "name": "Alice",
            "email": "a@x.com",
            "phone": "1",
            "tags": "vip",
        }

    def test_unrecognized_keys_are_ignored(self):
        assert canonical_fields({"name": "Alice", "company": "Acme", 3: "x"}) == {"name": "Alice"}

    def test_first_spelling_wins(self):
        assert canonical_fields({"Email": "first@x.com", "email": "second@x.com"}) == {
            "email": "first@x.com"
        }

    def test_non_mapping_yields_empty(self):
        assert canonical_fields(["Alice"]) == {}
        assert canonical_fields(None) == {}


class TestNormalize:
    """Tests for normalize()."""

    def test_valid_row(self):
        candidate = normalize(
            {"name": " Alice ", "email": "alice@x.com", "phone": " 555 ", "tags": "vip,new"}, SOURCE
        )

        assert candidate.valid is True
        assert candidate.issues == ()
        assert candidate.name == "Alice"
        assert candidate.email == "alice@x.com"
        assert candidate.phone == "555"
        assert candidate.tags == ("vip", "new")
        assert candidate.source_tag == SOURCE

    @pytest.mark.parametrize("row", [{}, {"name": ""}, {"name": "   "}, {"name": None}, {"email": "a@x.com"}])
    def test_missing_name_is_required_issue(self, row):
        candidate = normalize(row, SOURCE)

        assert candidate.valid is False
        assert ValidationIssue(field="name", reason=IssueReason.REQUIRED) in candidate.issues

    def test_bad_email_does_not_stop_other_fields(self):
        candidate = normalize({"name": "Bob", "email": "bob@", "phone": "1", "tags": "x"}, SOURCE)

        assert candidate.valid is False
        assert candidate.issues == (ValidationIssue(field="email", reason="invalid_format"),)
        assert candidate.email is None
        assert candidate.phone == "1"
        assert candidate.tags == ("x",)

    def test_both_issues_reported(self):
        candidate = normalize({"name": " ", "email": "nope"}, SOURCE)

        assert [issue.field for issue in candidate.issues] == ["name", "email"]

    def test_absent_email_is_valid(self):
        candidate = normalize({"name": "Carol", "email": "  "}, SOURCE)

        assert candidate.valid is True
        assert candidate.email is None

    def test_wrong_value_types_never_raise(self):
        candidate = normalize({"name": 42, "email": 3.14, "phone": [1], "tags": 7}, SOURCE)

        assert candidate.valid is False
        assert {issue.field for issue in candidate.issues} == {"name", "email"}
        assert candidate.phone is None
        assert candidate.tags == ()

    def test_deterministic(self):
        row = {"Name": "Alice", "Email": "alice@x.com", "Tags": ["vip", "vip"]}
        assert normalize(row, SOURCE) == normalize(row, SOURCE)

    def test_non_mapping_row_is_rejected(self):
        candidate = normalize("Alice,alice@x.com", SOURCE)
        assert candidate.valid is False


class TestRecordNormalizer:
    """Tests for RecordNormalizer."""

    def test_empty_source_tag_rejected(self):
        with pytest.raises(ValueError):
            RecordNormalizer("  ")

    def test_process_batch_preserves_order(self):
        normalizer = RecordNormalizer(SOURCE)
        rows = [{"name": "A"}, {"name": ""}, {"name": "C"}]

        candidates = list(normalizer.process_batch(rows))

        assert [c.name for c in candidates] == ["A", "", "C"]
        assert [c.valid for c in candidates] == [True, False, True]

    def test_rejection_is_logged_with_issues(self):
        mock_logger = Mock(spec=logging.Logger)
        normalizer = RecordNormalizer(SOURCE, logger_instance=mock_logger)

        normalizer.normalize({"name": ""}, row_number=7)

        mock_logger.info.assert_called_once()
        extra = mock_logger.info.call_args.kwargs["extra"]
        assert extra["event"] == "normalization.row.rejected"
        assert extra["row_number"] == 7
        assert extra["issues"] == ["name:required"]

    def test_accepted_row_logs_masked_email(self):
        mock_logger = Mock(spec=logging.Logger)
        normalizer = RecordNormalizer(SOURCE, logger_instance=mock_logger)

        normalizer.normalize({"name": "Alice", "email": "alice@x.com"}, row_number=1)

        extra = mock_logger.debug.call_args.kwargs["extra"]
        assert extra["email"] == "a***@x.com"
