"""Failure taxonomy shared by the community and membership services.

Services raise these; api/errors.py turns them into HTTP responses.  Each
error carries a stable machine-readable ``code`` that clients can switch
on, and optional ``data`` describing the state that caused the refusal.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    code = "internal"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.data = data or {}


class NotFoundError(ServiceError):
    code = "not_found"


class PermissionDeniedError(ServiceError):
    code = "permission_denied"

    def __init__(
        self,
        message: str = "you don't have permission",
        *,
        code: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code, data=data)


class InvalidTransitionError(ServiceError):
    """The link exists but its status forbids the requested change.

    ``code`` is one of already_accepted, not_invited, not_requested.
    """

    code = "invalid_transition"


class CodeMismatchError(ServiceError):
    code = "code_mismatch"


class CapacityExceededError(ServiceError):
    code = "membership_full"


class ValidationError(ServiceError, ValueError):
    code = "validation_error"


class AlreadyExistsError(ServiceError):
    code = "already_exists"
