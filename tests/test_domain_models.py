"""Tests for domain models."""

import pytest
from pydantic import ValidationError

from contact_ingest.domain import (
    ContactRecord,
    ImportReport,
    IssueReason,
    NormalizedCandidate,
    SourceKind,
    ValidationIssue,
)


def make_candidate(**overrides):
    values = {"name": "Alice", "valid": True, "source_tag": "delimited:a.csv"}
    values.update(overrides)
    return NormalizedCandidate(**values)


class TestValidationIssue:
    """Tests for ValidationIssue."""

    def test_known_messages(self):
        assert ValidationIssue(field="name", reason=IssueReason.REQUIRED).message == "Name is required"
        assert (
            ValidationIssue(field="email", reason="invalid_format").message
            == "Invalid email format"
        )

    def test_fallback_message(self):
        issue = ValidationIssue(field="phone", reason=IssueReason.INVALID_FORMAT)
        assert issue.message == "phone: invalid format"

    def test_is_immutable(self):
        issue = ValidationIssue(field="name", reason=IssueReason.REQUIRED)
        with pytest.raises(ValidationError):
            issue.field = "email"

    def test_equal_issues_compare_equal(self):
        assert ValidationIssue(field="name", reason="required") == ValidationIssue(
            field="name", reason=IssueReason.REQUIRED
        )


class TestNormalizedCandidate:
    """Tests for NormalizedCandidate invariants."""

    def test_valid_candidate(self):
        candidate = make_candidate(email="alice@x.com", tags=["vip", "vip", "new"])
        assert candidate.tags == ("vip", "new")

    def test_valid_requires_no_issues(self):
        with pytest.raises(ValidationError):
            make_candidate(issues=[ValidationIssue(field="name", reason="required")])

    def test_invalid_requires_issues(self):
        with pytest.raises(ValidationError):
            make_candidate(name="", valid=False)

    def test_valid_requires_trimmed_name(self):
        with pytest.raises(ValidationError):
            make_candidate(name=" Alice ")

    def test_email_shape_is_enforced(self):
        with pytest.raises(ValidationError):
            make_candidate(email="not-an-email")

    def test_invalid_candidate_with_empty_name(self):
        candidate = make_candidate(
            name="", valid=False, issues=[ValidationIssue(field="name", reason="required")]
        )
        assert candidate.valid is False

    def test_is_immutable(self):
        candidate = make_candidate()
        with pytest.raises(ValidationError):
            candidate.name = "Bob"


class TestContactRecord:
    """Tests for ContactRecord."""

    def test_strips_name_and_blanks(self):
        record = ContactRecord(name=" Alice ", email=" ", phone="", provenance="manual")
        assert record.name == "Alice"
        assert record.email is None
        assert record.phone is None

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            ContactRecord(name="   ", provenance="manual")

    def test_tags_deduplicated(self):
        record = ContactRecord(name="Alice", tags=["vip", "vip"], provenance="manual")
        assert record.tags == ("vip",)

    def test_single_string_tag(self):
        record = ContactRecord(name="Alice", tags="vip", provenance="manual")
        assert record.tags == ("vip",)


class TestImportReport:
    """Tests for ImportReport tallies."""

    def test_empty_report(self):
        report = ImportReport.empty()
        assert report.total == 0
        assert report.accepted == ()
        assert report.summary() == "Parsed 0 contacts. 0 valid, 0 with errors."

    def test_tallies_must_add_up(self):
        with pytest.raises(ValidationError):
            ImportReport(total=2, valid=1, invalid=0)

    def test_duplicates_must_match_accepted(self):
        record = ContactRecord(name="Alice", provenance="manual")
        with pytest.raises(ValidationError):
            ImportReport(total=2, valid=2, duplicates_collapsed=0, accepted=[record])

    def test_summary(self):
        rejected = make_candidate(
            name="", valid=False, issues=[ValidationIssue(field="name", reason="required")]
        )
        record = ContactRecord(name="Alice", provenance="manual")
        report = ImportReport(
            total=3,
            valid=2,
            invalid=1,
            duplicates_collapsed=1,
            accepted=[record],
            rejected=[rejected],
        )
        assert report.summary() == "Parsed 3 contacts. 2 valid, 1 with errors."


def test_source_kind_values():
    assert [kind.value for kind in SourceKind] == ["delimited", "spreadsheet", "connector"]
