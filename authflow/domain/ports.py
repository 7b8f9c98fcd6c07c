"""
Port interfaces - Protocol definitions for the flow collaborators.

This module defines the enumerations shared across the domain and the
interfaces (ports) the flows require from the outside world: the account
service, the event logger and the form prefill store. Adapters implement
these protocols.
"""

from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import Account, FlowContext, FlowOutcome, Relier, SignInOptions


class VerificationMethod(str, Enum):
    """Mechanism by which an account or session is confirmed."""

    EMAIL = "email"
    EMAIL_2FA = "email-2fa"
    EMAIL_CAPTCHA = "email-captcha"


class VerificationReason(str, Enum):
    """
    Why verification is required.

    SIGN_UP: the account itself has never been confirmed
    SIGN_IN: the account is confirmed but this new session is not
    """

    SIGN_IN = "login"
    SIGN_UP = "signup"


class FlowKind(str, Enum):
    """The authentication flow an attempt belongs to."""

    SIGN_IN = "signin"
    SIGN_UP = "signup"


class BrokerHook(str, Enum):
    """Lifecycle hooks every broker recognizes."""

    AFTER_LOADED = "afterLoaded"
    CANCEL = "cancel"
    PERSIST = "persist"
    BEFORE_SIGN_IN = "beforeSignIn"
    AFTER_SIGN_IN = "afterSignIn"
    AFTER_SIGN_UP = "afterSignUp"
    AFTER_FORCE_AUTH = "afterForceAuth"
    AFTER_CHANGE_PASSWORD = "afterChangePassword"
    AFTER_COMPLETE_RESET_PASSWORD = "afterCompleteResetPassword"
    AFTER_COMPLETE_SIGN_UP = "afterCompleteSignUp"
    AFTER_COMPLETE_ACCOUNT_UNLOCK = "afterCompleteAccountUnlock"
    AFTER_DELETE_ACCOUNT = "afterDeleteAccount"
    AFTER_RESET_PASSWORD_CONFIRMATION_POLL = "afterResetPasswordConfirmationPoll"
    BEFORE_SIGN_UP_CONFIRMATION_POLL = "beforeSignUpConfirmationPoll"
    AFTER_SIGN_UP_CONFIRMATION_POLL = "afterSignUpConfirmationPoll"


class AuthClient(Protocol):
    """Port interface for the account service (the network collaborator)."""

    async def sign_in_account(
        self, account: "Account", password: str, relier: "Relier", options: "SignInOptions"
    ) -> "Account":
        """
        Authenticate an existing account.

        Returns:
            The account, updated with the session and verification state

        Raises:
            AuthError: For any failure reported by the account service
        """
        ...

    async def sign_up_account(
        self, account: "Account", password: str, relier: "Relier", options: "SignInOptions"
    ) -> "Account":
        """Create an account. Same contract as sign_in_account."""
        ...

    async def send_unblock_email(self, account: "Account") -> None:
        """Email an unblock code to the account's address."""
        ...

    async def complete_account_unlock(self, uid: str, code: str) -> None:
        """Unlock an account from the uid/code pair of an emailed link."""
        ...

    async def check_account_email_exists(self, email: str) -> bool:
        """Whether an account is registered for the email address."""
        ...

    async def check_account_uid_exists(self, uid: str) -> bool:
        """Whether an account is registered for the uid."""
        ...


class FlowEventLogger(Protocol):
    """Port interface for analytics event delivery."""

    def log_event(self, event: str, flow: "FlowContext") -> None:
        """
        Record a named event tagged with the flow it belongs to.

        Args:
            event: Fully qualified event name (e.g. ``flow.signin.attempt``)
            flow: Flow the event is scoped to
        """
        ...

    def log_error(self, error: Exception, flow: "FlowContext") -> None:
        """Record an error that was rendered to the user."""
        ...


class FormPrefill(Protocol):
    """Port interface for remembered form values."""

    def clear(self) -> None: ...


class SignInCapable(Protocol):
    """A flow controller that can sign an account in."""

    async def sign_in(
        self,
        account: "Account",
        password: str,
        *,
        unblock_code: str | None = None,
        permissions_granted: bool = False,
    ) -> "FlowOutcome": ...


class SignUpCapable(Protocol):
    """A flow controller that can create an account."""

    async def sign_up(
        self, account: "Account", password: str, *, permissions_granted: bool = False
    ) -> "FlowOutcome": ...
