"""
Application Lifecycle Rules

The workflow state machine and the field-level rules applied on each
transition. Kept free of I/O so every rule can be checked in isolation.
"""

import secrets
import string
import time
from datetime import datetime
from typing import Any

from app.modules.applications.models import AdmissionStatus, Application, ApplicationStatus

MIN_STATEMENT_OF_PURPOSE_LENGTH = 250

APPLICATION_NUMBER_PREFIX = "APP"
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits

# Workflow statuses an admin may move an application between after submission
_REVIEW_STATUSES = {
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.APPROVED,
    ApplicationStatus.DECLINED,
}

# No status leads back to DRAFT. Review statuses may be revisited and
# re-applying the same decision is allowed.
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: {ApplicationStatus.SUBMITTED},
    ApplicationStatus.SUBMITTED: set(_REVIEW_STATUSES),
    ApplicationStatus.UNDER_REVIEW: set(_REVIEW_STATUSES),
    ApplicationStatus.APPROVED: set(_REVIEW_STATUSES),
    ApplicationStatus.DECLINED: set(_REVIEW_STATUSES),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when a status transition is not allowed by the state machine."""

    def __init__(self, current_status: ApplicationStatus, new_status: ApplicationStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def validate_transition(current_status: ApplicationStatus, new_status: ApplicationStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If ``current_status -> new_status`` is not allowed
    """
    if new_status not in VALID_STATUS_TRANSITIONS[current_status]:
        raise InvalidStatusTransitionError(current_status, new_status)


def workflow_status_for(decision: AdmissionStatus) -> ApplicationStatus:
    """Map an admission decision to the workflow status it implies."""
    match decision:
        case AdmissionStatus.APPROVED:
            return ApplicationStatus.APPROVED
        case AdmissionStatus.DECLINED:
            return ApplicationStatus.DECLINED
        case AdmissionStatus.PENDING:
            return ApplicationStatus.UNDER_REVIEW
    raise ValueError(f"Unknown admission decision: {decision}")


def decision_field_updates(
    decision: AdmissionStatus,
    now: datetime,
    remarks: str | None = None,
    verified_by: str | None = None,
) -> dict[str, Any]:
    """
    Column updates written for an admin decision.

    ``date_of_approval`` is stamped on every decision, including declines
    and reverts to pending. ``remarks`` and ``verified_by`` are only
    overwritten when provided.
    """
    updates: dict[str, Any] = {
        "admission_status": decision,
        "status": workflow_status_for(decision),
        "date_of_approval": now,
    }
    if remarks is not None:
        updates["remarks"] = remarks
    if verified_by is not None:
        updates["verified_by"] = verified_by
    return updates


def missing_submission_fields(application: Application) -> list[str]:
    """
    Names of the fields that block submission.

    Returns an empty list when the application can be submitted.
    """
    missing = []

    for field in ("full_name", "email", "mobile_number", "eligibility_category"):
        value = getattr(application, field)
        if not value or not str(value).strip():
            missing.append(field)

    if len(application.statement_of_purpose or "") < MIN_STATEMENT_OF_PURPOSE_LENGTH:
        missing.append("statement_of_purpose")

    if not application.selected_tracks:
        missing.append("selected_tracks")

    if not application.declaration_accepted:
        missing.append("declaration_accepted")
    if not application.data_consent_accepted:
        missing.append("data_consent_accepted")

    return missing


def generate_application_number(now_ms: int | None = None) -> str:
    """
    Generate a human-readable application number, e.g. ``APP-123456-K3J9QZ``.

    The middle part is the last six digits of the millisecond timestamp and
    the suffix is six random characters. Collisions are caught by the
    unique constraint rather than retried.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{APPLICATION_NUMBER_PREFIX}-{str(now_ms)[-6:]}-{suffix}"


def dedupe_tracks(tracks: list[str]) -> list[str]:
    """Normalise track codes to upper case and drop duplicates, keeping order."""
    seen: set[str] = set()
    result = []
    for track in tracks:
        code = track.strip().upper()
        if code and code not in seen:
            seen.add(code)
            result.append(code)
    return result
