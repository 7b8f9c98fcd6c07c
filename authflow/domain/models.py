"""
Domain models - Value objects and entities exchanged by the flows.

Account is the only mutable entity; everything else is a frozen value
created once per flow (FlowContext, Relier) or per decision (Navigation,
Behavior, FlowOutcome).
"""

import base64
import json
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

from .exceptions import AuthError, ErrorKind
from .ports import VerificationMethod, VerificationReason


@dataclass(eq=False)
class Account:
    """
    Identity and verification state of a user account.

    Invariant: a verified account never carries a verification reason.
    ``uid`` and ``email`` are fixed once known, unless the relier allows
    the identifier to change (see apply_response).
    """

    email: str
    uid: str | None = None
    session_token: str | None = None
    verified: bool = False
    verification_method: VerificationMethod | None = None
    verification_reason: VerificationReason | None = None
    # client id -> permissions the user already granted to that relier
    permissions: dict[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._check_verification_state()

    def _check_verification_state(self) -> None:
        if self.verified and self.verification_reason is not None:
            raise ValueError("a verified account cannot have a verification reason")

    def is_default(self) -> bool:
        """True for a placeholder account with no identity at all."""
        return not self.email and not self.uid

    def apply_response(
        self,
        *,
        uid: str | None,
        session_token: str | None,
        verified: bool,
        verification_method: VerificationMethod | None = None,
        verification_reason: VerificationReason | None = None,
        email: str | None = None,
        allow_identifier_change: bool = False,
    ) -> "Account":
        """
        Update the account in place from an account service response.

        Raises:
            AuthError: UNEXPECTED_ERROR if the response changes the account
                identity and identifier change is not allowed
        """
        if not allow_identifier_change:
            if self.uid and uid and uid != self.uid:
                raise AuthError(ErrorKind.UNEXPECTED_ERROR, "Account uid changed")
            if email and email.lower() != self.email.lower():
                raise AuthError(ErrorKind.UNEXPECTED_ERROR, "Account email changed")
        if uid:
            self.uid = uid
        if email:
            self.email = email
        self.session_token = session_token
        self.verified = verified
        self.verification_method = None if verified else verification_method
        self.verification_reason = None if verified else verification_reason
        self._check_verification_state()
        return self

    def grant_permissions(self, client_id: str, permissions: "tuple[str, ...] | frozenset[str]") -> None:
        granted = self.permissions.get(client_id, frozenset())
        self.permissions[client_id] = granted | frozenset(permissions)

    def to_dict(self) -> dict[str, Any]:
        """Public representation. The session token is never included."""
        return {
            "email": self.email,
            "uid": self.uid,
            "verified": self.verified,
            "verificationMethod": self.verification_method.value if self.verification_method else None,
            "verificationReason": self.verification_reason.value if self.verification_reason else None,
        }


@dataclass(frozen=True)
class Relier:
    """The integration that initiated authentication and what it requires."""

    context: str = "web"
    client_id: str | None = None
    service: str | None = None
    permissions: tuple[str, ...] = ()
    allows_identifier_change: bool = False
    # Forced re-authentication targets a specific account
    email: str | None = None
    uid: str | None = None

    def requires_permissions(self, account: Account) -> bool:
        """True if the account has not yet granted every requested permission."""
        if not self.client_id or not self.permissions:
            return False
        granted = account.permissions.get(self.client_id, frozenset())
        return not set(self.permissions) <= granted


@dataclass(frozen=True)
class FlowContext:
    """Identifies one page load; every emitted event carries it."""

    flow_id: str
    flow_begin_time: int
    view_name: str

    @classmethod
    def create(cls, view_name: str) -> "FlowContext":
        return cls(
            flow_id=secrets.token_hex(32),
            flow_begin_time=int(time.time() * 1000),
            view_name=view_name,
        )


@dataclass
class NavigationModel:
    """View state consulted when choosing where to go after sign-in."""

    redirect_to: str | None = None


@dataclass(frozen=True)
class Behavior:
    """Result of a broker hook. ``halt`` suppresses default navigation."""

    halt: bool = False
    data: Any = None


@dataclass(frozen=True)
class Navigation:
    """Instruction for the router: which screen to show and with what data."""

    screen: str
    data: dict[str, Any] = field(default_factory=dict)
    clear_query_params: bool = False

    @property
    def options(self) -> dict[str, bool]:
        return {"clearQueryParams": True} if self.clear_query_params else {}


@dataclass(frozen=True)
class FlowOutcome:
    """What a flow attempt ended with: a navigation, or a halting behavior."""

    navigation: Navigation | None = None
    behavior: Behavior | None = None

    @property
    def halted(self) -> bool:
        return self.behavior is not None and self.behavior.halt

    @property
    def screen(self) -> str | None:
        return self.navigation.screen if self.navigation else None


@dataclass(frozen=True)
class SignInOptions:
    """Attempt metadata handed to the account service."""

    resume: str | None = None
    unblock_code: str | None = None
    reason: str = "signin"
    flow: FlowContext | None = None


@dataclass(frozen=True)
class UnblockChallenge:
    """A user-submitted unblock code, already trimmed and format-checked."""

    code: str
    method: VerificationMethod = VerificationMethod.EMAIL_CAPTCHA


_RESUME_KEYS = {
    "flow_id": "flowId",
    "flow_begin": "flowBegin",
    "context": "context",
    "client_id": "clientId",
    "service": "service",
    "redirect_to": "redirectTo",
}


@dataclass(frozen=True)
class ResumeToken:
    """
    Opaque state handed to the account service so that a later step (e.g. the
    link in a verification email) can resume the same flow.
    """

    flow_id: str | None = None
    flow_begin: int | None = None
    context: str | None = None
    client_id: str | None = None
    service: str | None = None
    redirect_to: str | None = None

    @classmethod
    def from_state(
        cls, relier: Relier, flow: FlowContext, model: NavigationModel | None = None
    ) -> "ResumeToken":
        return cls(
            flow_id=flow.flow_id,
            flow_begin=flow.flow_begin_time,
            context=relier.context,
            client_id=relier.client_id,
            service=relier.service,
            redirect_to=model.redirect_to if model else None,
        )

    def stringify(self) -> str:
        data = {
            wire: getattr(self, attr)
            for attr, wire in _RESUME_KEYS.items()
            if getattr(self, attr) is not None
        }
        encoded = json.dumps(data, sort_keys=True, separators=(",", ":")).encode()
        return base64.urlsafe_b64encode(encoded).decode()

    @classmethod
    def parse(cls, token: str) -> "ResumeToken":
        data = json.loads(base64.urlsafe_b64decode(token.encode()))
        return cls(**{attr: data.get(wire) for attr, wire in _RESUME_KEYS.items()})
