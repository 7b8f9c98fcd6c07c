"""
Domain exceptions - Semantic error types for authentication flows.

This module defines the closed error-kind taxonomy reported by the account
service and the contract errors raised when the flow layer itself is misused.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """
    Stable error kinds surfaced by the authentication flows.

    Only a handful of kinds are recovered locally (link validation, blocked
    sign-ins, deleted accounts during force-auth). All others are surfaced
    to the caller verbatim.
    """

    INVALID_PARAMETER = "INVALID_PARAMETER"
    UNKNOWN_ACCOUNT = "UNKNOWN_ACCOUNT"
    INVALID_VERIFICATION_CODE = "INVALID_VERIFICATION_CODE"
    INCORRECT_PASSWORD = "INCORRECT_PASSWORD"
    REQUEST_BLOCKED = "REQUEST_BLOCKED"
    DELETED_ACCOUNT = "DELETED_ACCOUNT"
    EXPIRED_VERIFICATION_LINK = "EXPIRED_VERIFICATION_LINK"
    DAMAGED_VERIFICATION_LINK = "DAMAGED_VERIFICATION_LINK"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


_DEFAULT_MESSAGES = {
    ErrorKind.INVALID_PARAMETER: "Invalid parameter in request body",
    ErrorKind.UNKNOWN_ACCOUNT: "Unknown account",
    ErrorKind.INVALID_VERIFICATION_CODE: "Invalid verification code",
    ErrorKind.INCORRECT_PASSWORD: "Incorrect password",
    ErrorKind.REQUEST_BLOCKED: "The request was blocked for security reasons",
    ErrorKind.DELETED_ACCOUNT: "Account no longer exists",
    ErrorKind.EXPIRED_VERIFICATION_LINK: "Link expired",
    ErrorKind.DAMAGED_VERIFICATION_LINK: "Link damaged",
    ErrorKind.UNEXPECTED_ERROR: "Unexpected error",
}


class AuthFlowError(Exception):
    """Base class for authentication flow errors."""

    pass


class AuthError(AuthFlowError):
    """
    An error of a known kind, reported by the account service or by the flows.

    Attributes:
        kind: Member of the ErrorKind taxonomy
        message: Human readable message, displayed verbatim by callers
        param: Name of the offending parameter (INVALID_PARAMETER only)
        verification_method: Method that can lift a REQUEST_BLOCKED error
        verification_reason: Why the blocked request needs verification
        context: Extra structured data (e.g. the email a deleted account used)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        param: str | None = None,
        verification_method: Any = None,
        verification_reason: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.param = param
        self.verification_method = verification_method
        self.verification_reason = verification_reason
        self.context = context or {}
        super().__init__(self.message)

    def is_kind(self, kind: ErrorKind) -> bool:
        return self.kind == kind

    def __repr__(self) -> str:
        return f"AuthError({self.kind.value}, {self.message!r})"


class BehaviorNotFound(AuthFlowError):
    """A broker behavior was requested for a hook the broker does not know."""

    def __init__(self, hook_name: str) -> None:
        self.hook_name = hook_name
        super().__init__(f"behavior not found for: {hook_name}")


class ValidationFailed(AuthFlowError):
    """Local input validation failed; no network call was made."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class InvalidTransition(AuthFlowError):
    """The flow state machine was asked to make a transition it does not allow."""

    pass
