"""
Unblock challenge handling for blocked sign-ins.

When the account service blocks a sign-in and offers the email-captcha
method, an unblock code is emailed to the account and the user is sent to
the ``signin_unblock`` screen. Submitting the code retries the sign-in with
the code attached.
"""

import logging

from .broker import AuthBroker
from .classifier import classify, is_hex
from .exceptions import AuthError, ErrorKind, ValidationFailed
from .models import Account, FlowOutcome, Navigation, UnblockChallenge
from .ports import AuthClient, SignInCapable

logger = logging.getLogger(__name__)

DEFAULT_AUTH_PAGE = "signin"


class UnblockChallengeHandler:
    """Issues, resends and redeems unblock codes."""

    def __init__(self, auth_client: AuthClient, broker: AuthBroker, *, code_length: int = 8) -> None:
        self.auth_client = auth_client
        self.broker = broker
        self.code_length = code_length

    def can_unblock(self, error: BaseException) -> bool:
        classification = classify(error)
        return classification is not None and classification.unblockable

    async def issue(self, account: Account, password: str, last_page: str | None) -> Navigation:
        """
        Email an unblock code and go to the unblock screen.

        The password is carried along so the user does not enter it again.
        Errors sending the email propagate; the blocking error is dropped.
        """
        await self.auth_client.send_unblock_email(account)
        logger.info("[UNBLOCK] Code sent for uid=%s", account.uid)
        return Navigation(
            "signin_unblock",
            {"account": account, "last_page": last_page, "password": password},
        )

    async def resend(self, account: Account) -> None:
        await self.auth_client.send_unblock_email(account)
        logger.info("[UNBLOCK] Code resent for uid=%s", account.uid)

    def validate_code(self, code: str | None) -> UnblockChallenge:
        """
        Trim and format-check a submitted unblock code.

        Raises:
            ValidationFailed: If the code is empty or not a hex string of the
                expected length
        """
        trimmed = (code or "").strip()
        if not is_hex(trimmed, self.code_length):
            raise ValidationFailed("unblock_code", "Invalid authorization code")
        return UnblockChallenge(code=trimmed)

    async def submit(
        self,
        flow: SignInCapable,
        account: Account,
        password: str,
        code: str | None,
        *,
        last_page: str | None = None,
    ) -> FlowOutcome:
        """
        Retry the sign-in with the unblock code attached.

        An incorrect password sends the user back to the sign-in page with
        their email and the error. Any other failure propagates unchanged.
        """
        challenge = self.validate_code(code)
        try:
            return await flow.sign_in(account, password, unblock_code=challenge.code)
        except AuthError as err:
            if err.kind != ErrorKind.INCORRECT_PASSWORD:
                raise
            logger.info("[UNBLOCK] Incorrect password after unblock for uid=%s", account.uid)
            return FlowOutcome(
                navigation=Navigation(
                    self.auth_page(last_page),
                    {"email": account.email, "error": err},
                )
            )

    def auth_page(self, last_page: str | None) -> str:
        """The page the user authenticated from, as the broker links to it."""
        return self.broker.transform_link(last_page or DEFAULT_AUTH_PAGE)
