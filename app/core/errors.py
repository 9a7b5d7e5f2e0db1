# app/core/errors.py
from __future__ import annotations


class AssessmentError(Exception):
    """Base class for every failure surfaced by the triage core."""

    status_code = 500
    kind = "assessment_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AssessmentError):
    """Required input missing before any external call was attempted."""

    status_code = 400
    kind = "validation_error"


class NotFoundError(AssessmentError):
    """Referenced dog does not exist."""

    status_code = 404
    kind = "not_found"


class ExternalServiceError(AssessmentError):
    """Model call failed, returned nothing, or returned the wrong shape."""

    status_code = 502
    kind = "external_service_error"


class SessionStateError(AssessmentError):
    status_code = 409
    kind = "session_state_error"


class AssessmentCancelledError(AssessmentError):
    """The session was reset, closed or superseded while a request was in flight."""

    status_code = 409
    kind = "assessment_cancelled"
