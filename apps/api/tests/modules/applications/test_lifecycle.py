"""
Unit tests for the application state machine and lifecycle rules.
"""

import re
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from app.modules.applications.lifecycle import (
    MIN_STATEMENT_OF_PURPOSE_LENGTH,
    VALID_STATUS_TRANSITIONS,
    InvalidStatusTransitionError,
    decision_field_updates,
    dedupe_tracks,
    generate_application_number,
    missing_submission_fields,
    validate_transition,
    workflow_status_for,
)
from app.modules.applications.models import AdmissionStatus, Application, ApplicationStatus


class TestStatusTransitions:
    """Tests for the workflow state machine."""

    def test_every_status_has_an_entry(self):
        assert set(VALID_STATUS_TRANSITIONS) == set(ApplicationStatus)

    def test_draft_only_moves_to_submitted(self):
        assert VALID_STATUS_TRANSITIONS[ApplicationStatus.DRAFT] == {ApplicationStatus.SUBMITTED}

    def test_nothing_returns_to_draft(self):
        for targets in VALID_STATUS_TRANSITIONS.values():
            assert ApplicationStatus.DRAFT not in targets

    def test_submitted_cannot_be_resubmitted(self):
        with pytest.raises(InvalidStatusTransitionError):
            validate_transition(ApplicationStatus.SUBMITTED, ApplicationStatus.SUBMITTED)

    def test_draft_cannot_be_approved(self):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_transition(ApplicationStatus.DRAFT, ApplicationStatus.APPROVED)

        assert exc_info.value.current_status == ApplicationStatus.DRAFT
        assert exc_info.value.new_status == ApplicationStatus.APPROVED
        assert "submitted" in str(exc_info.value)

    @pytest.mark.parametrize(
        "current",
        [
            ApplicationStatus.SUBMITTED,
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.APPROVED,
            ApplicationStatus.DECLINED,
        ],
    )
    def test_reviewed_statuses_can_be_revisited(self, current):
        for target in (
            ApplicationStatus.UNDER_REVIEW,
            ApplicationStatus.APPROVED,
            ApplicationStatus.DECLINED,
        ):
            validate_transition(current, target)

    def test_transition_error_is_a_value_error(self):
        assert issubclass(InvalidStatusTransitionError, ValueError)


class TestDecisionMapping:
    """Tests for admission decision -> workflow status."""

    def test_pending_maps_to_under_review(self):
        assert workflow_status_for(AdmissionStatus.PENDING) == ApplicationStatus.UNDER_REVIEW

    def test_approved_and_declined_map_directly(self):
        assert workflow_status_for(AdmissionStatus.APPROVED) == ApplicationStatus.APPROVED
        assert workflow_status_for(AdmissionStatus.DECLINED) == ApplicationStatus.DECLINED


class TestDecisionFieldUpdates:
    """Tests for the fields written on an admin decision."""

    NOW = datetime(2026, 4, 1, 12, 0, tzinfo=UTC)

    @pytest.mark.parametrize("decision", list(AdmissionStatus))
    def test_date_of_approval_stamped_on_every_decision(self, decision):
        updates = decision_field_updates(decision, self.NOW)

        assert updates["date_of_approval"] == self.NOW
        assert updates["admission_status"] == decision

    def test_remarks_and_verifier_only_written_when_given(self):
        updates = decision_field_updates(AdmissionStatus.DECLINED, self.NOW)

        assert "remarks" not in updates
        assert "verified_by" not in updates

    def test_remarks_and_verifier_written(self):
        updates = decision_field_updates(
            AdmissionStatus.DECLINED,
            self.NOW,
            remarks="Incomplete experience",
            verified_by="Reviewer",
        )

        assert updates["remarks"] == "Incomplete experience"
        assert updates["verified_by"] == "Reviewer"
        assert updates["status"] == ApplicationStatus.DECLINED


class TestMissingSubmissionFields:
    """Tests for submission completeness checks."""

    def _application(self, **overrides):
        app = MagicMock(spec=Application)
        app.full_name = "Ada Obi"
        app.email = "ada@example.com"
        app.mobile_number = "+2348012345678"
        app.eligibility_category = "Banking professional"
        app.statement_of_purpose = "a" * MIN_STATEMENT_OF_PURPOSE_LENGTH
        app.selected_tracks = ["FIBAKM"]
        app.declaration_accepted = True
        app.data_consent_accepted = True
        for key, value in overrides.items():
            setattr(app, key, value)
        return app

    def test_complete_application(self):
        assert missing_submission_fields(self._application()) == []

    def test_statement_of_249_characters_blocks_submission(self):
        app = self._application(statement_of_purpose="a" * 249)
        assert missing_submission_fields(app) == ["statement_of_purpose"]

    def test_statement_length_counts_whitespace(self):
        app = self._application(statement_of_purpose=" " * 250)
        assert "statement_of_purpose" not in missing_submission_fields(app)

    def test_missing_tracks_and_consents(self):
        app = self._application(
            selected_tracks=[],
            declaration_accepted=False,
            data_consent_accepted=False,
        )
        assert missing_submission_fields(app) == [
            "selected_tracks",
            "declaration_accepted",
            "data_consent_accepted",
        ]

    def test_blank_personal_fields(self):
        app = self._application(full_name="  ", mobile_number=None)
        missing = missing_submission_fields(app)

        assert "full_name" in missing
        assert "mobile_number" in missing


class TestApplicationNumber:
    """Tests for application number generation."""

    def test_format(self):
        number = generate_application_number(now_ms=1718000123456)
        assert re.fullmatch(r"APP-123456-[A-Z0-9]{6}", number)

    def test_uses_current_time_by_default(self):
        assert re.fullmatch(r"APP-\d{6}-[A-Z0-9]{6}", generate_application_number())


class TestDedupeTracks:
    def test_upper_cases_and_keeps_first_occurrence(self):
        assert dedupe_tracks(["fcba", "FIBAKM", " FCBA ", "", "fckm"]) == ["FCBA", "FIBAKM", "FCKM"]
