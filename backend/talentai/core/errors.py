# backend/talentai/core/errors.py
"""
Error taxonomy shared by the pipeline, the store and the HTTP layer.

Stage executors catch the recoverable ones (ExtractionFailed is the exception:
it is surfaced to the operator) and turn them into fallback results. The API
maps every TalentAIError to a JSON error body via `status_code`.
"""

from __future__ import annotations


class TalentAIError(Exception):
    """Base class; `status_code` and `code` drive the HTTP mapping."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ExtractionFailed(TalentAIError):
    status_code = 400
    code = "extraction_failed"


class AIUnavailable(TalentAIError):
    """No configured provider could service the request."""

    status_code = 503
    code = "ai_unavailable"


class MalformedAIOutput(AIUnavailable):
    """Provider answered but the text did not parse into the expected shape."""

    code = "malformed_ai_output"


class UploadRejected(TalentAIError):
    status_code = 400
    code = "upload_rejected"


class ValidationFailed(TalentAIError):
    status_code = 400
    code = "validation_failed"


class CandidateNotFound(TalentAIError):
    status_code = 404
    code = "candidate_not_found"


class StageOrderError(TalentAIError):
    """Action targets a stage other than the pipeline's current one."""

    status_code = 409
    code = "stage_order"


class StageBusy(TalentAIError):
    """A request for the current stage is still in flight."""

    status_code = 409
    code = "stage_busy"


class AuthenticationFailed(TalentAIError):
    """No bearer token, or the email/password pair did not match."""

    status_code = 401
    code = "authentication_failed"


class InvalidToken(TalentAIError):
    """Bearer token present but expired, tampered with or for an unknown user."""

    status_code = 403
    code = "invalid_token"


class PermissionDenied(TalentAIError):
    status_code = 403
    code = "permission_denied"


class SubscriptionRequired(TalentAIError):
    status_code = 403
    code = "subscription_required"


__all__ = [
    "TalentAIError",
    "ExtractionFailed",
    "AIUnavailable",
    "MalformedAIOutput",
    "UploadRejected",
    "ValidationFailed",
    "CandidateNotFound",
    "StageOrderError",
    "StageBusy",
    "AuthenticationFailed",
    "InvalidToken",
    "PermissionDenied",
    "SubscriptionRequired",
]
