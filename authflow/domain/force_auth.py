"""
Force-auth flow - Re-authentication of one specific account.

The relier names the account (``email``, optionally ``uid``). Before the
form is shown the account is looked up; if it is gone the user is offered
sign-up instead, unless the relier pins the uid and does not allow it to
change, in which case a DELETED_ACCOUNT error is shown.
"""

import logging
from typing import Any

from .classifier import is_hex
from .exceptions import AuthError, ErrorKind
from .flow import ErrorHandler, FlowState
from .models import Account, FlowOutcome, Navigation
from .ports import BrokerHook
from .signin import SignInFlow

logger = logging.getLogger(__name__)


class ForceAuthFlow(SignInFlow):
    """
    Sign-in variant for forced re-authentication.

    Errors other than a vanished account are delegated to
    ``fallback_error_handler``, which defaults to the plain sign-in handling.
    """

    default_page = "force_auth"
    after_sign_in_hook = BrokerHook.AFTER_FORCE_AUTH
    sign_in_reason = "force_auth"

    def __init__(
        self, *, fallback_error_handler: ErrorHandler | None = None, uid_length: int = 32, **kwargs: Any
    ) -> None:
        if "error_handler" in kwargs:
            raise TypeError("ForceAuthFlow takes fallback_error_handler, not error_handler")
        super().__init__(**kwargs)
        self.fallback_error_handler: ErrorHandler = fallback_error_handler or self.handle_error
        self.error_handler = self.handle_force_auth_error
        self.uid_length = uid_length

    def _deleted_account_error(self) -> AuthError:
        return AuthError(ErrorKind.DELETED_ACCOUNT, context={"email": self.relier.email})

    def _navigate_to_sign_up(self) -> FlowOutcome:
        return self.navigate(
            Navigation(
                "signup",
                {"error": self._deleted_account_error(), "force_email": self.relier.email},
            )
        )

    async def check_account(self) -> FlowOutcome | None:
        """
        Decide whether the force-auth form can be shown.

        Returns:
            None to show the form, or a navigation to sign-up

        Raises:
            AuthError: INVALID_PARAMETER for a missing email or a malformed uid,
                DELETED_ACCOUNT when the pinned account no longer exists
        """
        email = self.relier.email
        uid = self.relier.uid
        if not email:
            raise AuthError(ErrorKind.INVALID_PARAMETER, param="email")
        if uid is not None and not is_hex(uid, self.uid_length):
            raise AuthError(ErrorKind.INVALID_PARAMETER, param="uid")

        email_exists = await self.auth_client.check_account_email_exists(email)
        if uid is None or self.relier.allows_identifier_change:
            return None if email_exists else self._navigate_to_sign_up()

        uid_exists = await self.auth_client.check_account_uid_exists(uid)
        if email_exists and uid_exists:
            return None
        logger.info("[FORCE_AUTH] Pinned account is gone: email_exists=%s uid_exists=%s", email_exists, uid_exists)
        raise self._deleted_account_error()

    async def handle_force_auth_error(
        self, account: Account, password: str, error: AuthError
    ) -> FlowOutcome:
        """
        UNKNOWN_ACCOUNT here means the account was deleted after the page loaded.
        """
        if error.kind != ErrorKind.UNKNOWN_ACCOUNT:
            return await self.fallback_error_handler(account, password, error)

        if self.relier.uid and not self.relier.allows_identifier_change:
            self._transition(FlowState.FAILED)
            raise self._deleted_account_error() from error

        self._transition(FlowState.RESOLVED)
        return self._navigate_to_sign_up()

    def force_reset_password(self) -> FlowOutcome:
        return self.navigate(Navigation("reset_password", {"force_email": self.relier.email}))
