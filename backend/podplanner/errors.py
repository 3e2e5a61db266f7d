"""HTTP-mapped error taxonomy raised by the service layer.

Services raise these directly, the same way they would raise a plain
``HTTPException``; FastAPI renders them without extra handlers.
Coded errors carry a ``detail`` object so the client can branch on
``detail.error`` instead of parsing messages.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


def _coded(message: str, code: Optional[str], **extra: Any) -> Any:
    if code is None and not extra:
        return message
    detail: dict[str, Any] = {"message": message}
    if code is not None:
        detail["error"] = code
    detail.update(extra)
    return detail


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvalidOrExpired(NotFound):
    """Token or code failed the validity predicate (missing, used or expired)."""

    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(detail=detail)


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class LoginRequired(HTTPException):
    """The invited email belongs to an account; the invitee must sign in first."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_coded("Please log in to accept this invitation", "LOGIN_REQUIRED",
                          requires_login=True, email=email),
        )


class RegistrationRequired(HTTPException):
    """No account exists for the invited email and no credentials were supplied."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_coded("Please create an account to accept this invitation", "REGISTRATION_REQUIRED",
                          requires_registration=True, email=email),
        )


class Forbidden(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class EmailMismatch(Forbidden):
    def __init__(self, detail: str = "This invitation was sent to a different email address"):
        super().__init__(detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str = "Conflict", code: Optional[str] = None):
        self.code = code
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=_coded(detail, code))


class ValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class DeliveryFailure(Exception):
    """The mail transport could not hand a message to the relay."""
