from __future__ import annotations

from typing import Any, Dict

from orderhub.messages import error_message


class AppError(Exception):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True
    expose_details = False

    def __init__(
        self,
        code: str | None = None,
        message_key: str | None = None,
        http_status: int | None = None,
        critical: bool | None = None,
        details: str | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> None:
        self.code = (code or self.default_code).strip()
        self.message_key = (message_key or self.default_message_key).strip()
        self.http_status = int(http_status or self.default_http_status)
        self.critical = bool(self.default_critical if critical is None else critical)
        self.details = (details or "").strip() or None
        self.payload = dict(payload or {})
        super().__init__(self.details or self.code)

    def user_message(self) -> str:
        if self.expose_details and self.details:
            return self.details
        fallback = error_message("unexpected_error")
        return error_message(self.message_key, fallback)

    def to_response_payload(self, request_id: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.user_message(),
            "request_id": request_id,
        }
        if self.payload:
            payload.update(self.payload)
        return payload


class UserActionError(AppError):
    default_code = "action_invalid"
    default_message_key = "action_invalid"
    default_http_status = 400
    default_critical = False


class ValidationError(UserActionError):
    default_code = "validation_error"
    default_message_key = "validation_failed"
    default_http_status = 400
    default_critical = False


class InvalidStatusError(ValidationError):
    """Raised for status strings outside the closed order status set."""

    default_code = "invalid_status"
    default_message_key = "invalid_status"


class TransitionRejectedError(UserActionError):
    """A state machine rejection; ``details`` carries the human-readable reason."""

    default_code = "invalid_status_transition"
    default_message_key = "invalid_status_transition"
    default_http_status = 400
    expose_details = True


class NotFoundError(UserActionError):
    default_code = "not_found"
    default_message_key = "order_not_found"
    default_http_status = 404


class ConflictError(UserActionError):
    default_code = "conflict"
    default_message_key = "email_already_registered"
    default_http_status = 409


class IntegrationError(AppError):
    default_code = "integration_error"
    default_message_key = "external_service_unavailable"
    default_http_status = 502
    default_critical = False


class ExternalServiceUnavailable(IntegrationError):
    """Peer timeout, refused connection, non-2xx answer or unreadable body."""

    default_code = "external_service_unavailable"
    default_message_key = "external_service_unavailable"
    default_http_status = 503

    def __init__(self, details: str | None = None, *, status_code: int | None = None, **kwargs) -> None:
        super().__init__(details=details, **kwargs)
        self.status_code = status_code


class ConsistencyCheckError(IntegrationError):
    default_code = "consistency_check_failed"
    default_message_key = "consistency_check_failed"
    default_http_status = 503


class SystemError(AppError):
    default_code = "system_error"
    default_message_key = "unexpected_error"
    default_http_status = 500
    default_critical = True
