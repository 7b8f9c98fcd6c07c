"""
Error classification - Maps raw failures onto the ErrorKind taxonomy.

Classification is table driven. Each kind carries whether it marks a blocked
request, whether the user can simply correct the form and retry, and the
screen used when the failure cannot be recovered in place. Anything that is
not an AuthError is deliberately left unclassified so that callers propagate
it unchanged.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import AuthError, ErrorKind
from .ports import VerificationMethod, VerificationReason

# Account service errno values
ERRNO_KINDS = {
    102: ErrorKind.UNKNOWN_ACCOUNT,
    103: ErrorKind.INCORRECT_PASSWORD,
    105: ErrorKind.INVALID_VERIFICATION_CODE,
    107: ErrorKind.INVALID_PARAMETER,
    108: ErrorKind.INVALID_PARAMETER,
    125: ErrorKind.REQUEST_BLOCKED,
    127: ErrorKind.INVALID_VERIFICATION_CODE,
}

_HEX = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True)
class ErrorRule:
    blocked: bool = False
    retryable_locally: bool = False
    screen: str | None = None


ERROR_RULES: dict[ErrorKind, ErrorRule] = {
    ErrorKind.INVALID_PARAMETER: ErrorRule(retryable_locally=True),
    ErrorKind.UNKNOWN_ACCOUNT: ErrorRule(retryable_locally=True),
    ErrorKind.INVALID_VERIFICATION_CODE: ErrorRule(retryable_locally=True),
    ErrorKind.INCORRECT_PASSWORD: ErrorRule(retryable_locally=True),
    ErrorKind.REQUEST_BLOCKED: ErrorRule(blocked=True),
    ErrorKind.DELETED_ACCOUNT: ErrorRule(screen="signup"),
    ErrorKind.EXPIRED_VERIFICATION_LINK: ErrorRule(screen="link_expired"),
    ErrorKind.DAMAGED_VERIFICATION_LINK: ErrorRule(screen="link_damaged"),
    ErrorKind.UNEXPECTED_ERROR: ErrorRule(),
}


@dataclass(frozen=True)
class Classification:
    error: AuthError
    rule: ErrorRule

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def blocked(self) -> bool:
        return self.rule.blocked

    @property
    def retryable(self) -> bool:
        """The user can correct the form and submit again."""
        return self.rule.retryable_locally

    @property
    def unblockable(self) -> bool:
        """Blocked, and liftable by an emailed unblock code."""
        return self.rule.blocked and self.error.verification_method == VerificationMethod.EMAIL_CAPTCHA


def classify(error: BaseException) -> Classification | None:
    """Classify an error, or return None if it is outside the taxonomy."""
    if not isinstance(error, AuthError):
        return None
    rule = ERROR_RULES.get(error.kind)
    if rule is None:
        return None
    return Classification(error=error, rule=rule)


def _enum_or_none(enum_cls: Any, value: Any) -> Any:
    try:
        return enum_cls(value) if value is not None else None
    except ValueError:
        return None


def error_from_response(payload: Mapping[str, Any]) -> AuthError:
    """
    Build an AuthError from an account service error body.

    Expected shape: ``{"errno": int, "message": str, ...}``. Blocked responses
    also carry ``verificationMethod``/``verificationReason``; parameter errors
    name the field in ``validation.keys``.
    """
    kind = ERRNO_KINDS.get(payload.get("errno"), ErrorKind.UNEXPECTED_ERROR)
    param = None
    if kind == ErrorKind.INVALID_PARAMETER:
        keys = (payload.get("validation") or {}).get("keys") or []
        param = payload.get("param") or (keys[0] if keys else None)
    return AuthError(
        kind,
        payload.get("message"),
        param=param,
        verification_method=_enum_or_none(VerificationMethod, payload.get("verificationMethod")),
        verification_reason=_enum_or_none(VerificationReason, payload.get("verificationReason")),
    )


def is_hex(value: Any, length: int) -> bool:
    return isinstance(value, str) and len(value) == length and bool(_HEX.match(value))


@dataclass(frozen=True)
class VerificationLink:
    uid: str
    code: str


def parse_verification_link(
    params: Mapping[str, Any], *, uid_length: int, code_length: int
) -> VerificationLink:
    """
    Syntactically check the ``uid`` and ``code`` of a verification link.

    Raises:
        AuthError: DAMAGED_VERIFICATION_LINK if either is missing or malformed
    """
    uid = params.get("uid")
    code = params.get("code")
    if not is_hex(uid, uid_length):
        raise AuthError(ErrorKind.DAMAGED_VERIFICATION_LINK, param="uid")
    if not is_hex(code, code_length):
        raise AuthError(ErrorKind.DAMAGED_VERIFICATION_LINK, param="code")
    return VerificationLink(uid=uid, code=code)


def classify_link_failure(error: BaseException) -> BaseException:
    """
    Translate an account service failure for a well-formed link.

    UNKNOWN_ACCOUNT means the link is expired; a rejected code or parameter
    means it is damaged. Every other error is returned unchanged.
    """
    if not isinstance(error, AuthError):
        return error
    if error.kind == ErrorKind.UNKNOWN_ACCOUNT:
        return AuthError(ErrorKind.EXPIRED_VERIFICATION_LINK)
    if error.kind in (ErrorKind.INVALID_VERIFICATION_CODE, ErrorKind.INVALID_PARAMETER):
        return AuthError(ErrorKind.DAMAGED_VERIFICATION_LINK, param=error.param)
    return error
