"""Domain errors raised by the scheduling, settlement and ledger services.

Routers let these propagate; ``main.py`` renders them with a single exception
handler using ``status_code`` and ``detail`` (plus any ``extra`` fields).
"""

from typing import Any, Dict, List, Optional


class LurnexError(Exception):
    status_code = 500
    default_detail = "Request failed"

    def __init__(self, detail: Optional[str] = None, **extra: Any):
        self.detail = detail or self.default_detail
        self.extra: Dict[str, Any] = extra
        super().__init__(self.detail)


class ValidationError(LurnexError):
    status_code = 400
    default_detail = "Invalid request"


class TooEarly(ValidationError):
    default_detail = "Cannot mark class as completed before its scheduled start time."


class InvalidDuration(ValidationError):
    default_detail = "Class duration is invalid. Cannot complete."


class InvalidRecurrence(ValidationError):
    default_detail = "Recurrence settings produced no occurrences."


class AuthenticationError(LurnexError):
    status_code = 401
    default_detail = "Not authenticated"


class AuthorizationError(LurnexError):
    status_code = 403
    default_detail = "Not authorized"


class NotFoundError(LurnexError):
    status_code = 404
    default_detail = "Not found"


class RosterEmpty(NotFoundError):
    default_detail = "No students found for this class."


class ConflictError(LurnexError):
    status_code = 409
    default_detail = "Conflict"


class AlreadyTerminal(ConflictError):
    default_detail = "Class is already in a terminal state."


class EditWindowExpired(ConflictError):
    default_detail = "Details can only be edited within 24 hours."


class ExternalServiceError(LurnexError):
    status_code = 502
    default_detail = "External service failure"


class PartialFailureError(LurnexError):
    status_code = 500
    default_detail = "Bulk operation partially completed"

    def __init__(
        self,
        detail: Optional[str] = None,
        created_ids: Optional[List[int]] = None,
        failed_index: Optional[int] = None,
    ):
        self.created_ids = list(created_ids or [])
        self.failed_index = failed_index
        super().__init__(detail, created_ids=self.created_ids, failed_index=failed_index)
