"""Sign-in and sign-up flow controllers."""

from functools import partial

from .exceptions import AuthError, ErrorKind
from .flow import FlowOrchestrator
from .models import Account, FlowOutcome, SignInOptions
from .ports import FlowKind


class SignInFlow(FlowOrchestrator):
    """Signs an existing account in."""

    kind = FlowKind.SIGN_IN
    default_page = "signin"

    async def sign_in(
        self,
        account: Account,
        password: str,
        *,
        unblock_code: str | None = None,
        permissions_granted: bool = False,
    ) -> FlowOutcome:
        """
        Run one sign-in attempt.

        Args:
            account: Account to sign in (at least the email is known)
            password: User's password
            unblock_code: Code from an unblock email, when retrying a blocked attempt
            permissions_granted: Set when re-entering from the permissions screen

        Returns:
            The navigation to perform, or the halting broker behavior

        Raises:
            AuthError: Unrecoverable failures, for display by the caller
        """
        retry = partial(
            self.sign_in,
            account,
            password,
            unblock_code=unblock_code,
            permissions_granted=True,
        )
        return await self._attempt(
            account,
            password,
            retry=retry,
            unblock_code=unblock_code,
            permissions_granted=permissions_granted,
        )

    async def _call_account_service(
        self, account: Account, password: str, options: SignInOptions
    ) -> Account:
        return await self.auth_client.sign_in_account(account, password, self.relier, options)


class SignUpFlow(FlowOrchestrator):
    """Creates an account."""

    kind = FlowKind.SIGN_UP
    default_page = "signup"
    sign_in_reason = "signup"

    async def sign_up(
        self, account: Account, password: str, *, permissions_granted: bool = False
    ) -> FlowOutcome:
        """
        Run one sign-up attempt.

        Raises:
            AuthError: UNEXPECTED_ERROR when the broker disables sign-up, and
                any unrecoverable account service failure
        """
        if self.broker.is_signup_disabled():
            raise AuthError(ErrorKind.UNEXPECTED_ERROR, "Sign-up is disabled for this integration")
        retry = partial(self.sign_up, account, password, permissions_granted=True)
        return await self._attempt(
            account, password, retry=retry, permissions_granted=permissions_granted
        )

    async def _call_account_service(
        self, account: Account, password: str, options: SignInOptions
    ) -> Account:
        return await self.auth_client.sign_up_account(account, password, self.relier, options)
