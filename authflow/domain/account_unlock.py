"""
Account unlock completion - Redeems the uid/code link from an unlock email.

Malformed links are rejected without contacting the account service. For
well-formed links, an unknown account means the link expired and a rejected
code or parameter means it was damaged.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .broker import AuthBroker
from .classifier import ERROR_RULES, classify_link_failure, parse_verification_link
from .exceptions import AuthError, ErrorKind
from .models import FlowContext, FlowOutcome, Navigation
from .ports import AuthClient, BrokerHook, FlowEventLogger

logger = logging.getLogger(__name__)

_LINK_ERRORS = (ErrorKind.DAMAGED_VERIFICATION_LINK, ErrorKind.EXPIRED_VERIFICATION_LINK)


class CompleteAccountUnlockFlow:
    """
    Completes an account unlock from the emailed link.

    Emits ``<view>.verification.success`` and runs the
    afterCompleteAccountUnlock hook once the account service accepts the code.
    """

    def __init__(
        self,
        *,
        auth_client: AuthClient,
        broker: AuthBroker,
        flow: FlowContext,
        event_logger: FlowEventLogger,
        uid_length: int = 32,
        code_length: int = 32,
    ) -> None:
        self.auth_client = auth_client
        self.broker = broker
        self.flow = flow
        self.event_logger = event_logger
        self.uid_length = uid_length
        self.code_length = code_length

    def _link_error(self, error: AuthError) -> FlowOutcome:
        self.event_logger.log_error(error, self.flow)
        screen = ERROR_RULES[error.kind].screen
        return FlowOutcome(navigation=Navigation(self.broker.transform_link(screen), {"error": error}))

    async def verify(self, params: Mapping[str, Any]) -> FlowOutcome:
        """
        Complete the unlock described by the link query parameters.

        Raises:
            Exception: Any failure that is not a link problem, unchanged
        """
        try:
            link = parse_verification_link(
                params, uid_length=self.uid_length, code_length=self.code_length
            )
        except AuthError as err:
            logger.info("[UNLOCK] Damaged link: bad %s", err.param)
            return self._link_error(err)

        try:
            await self.auth_client.complete_account_unlock(link.uid, link.code)
        except Exception as err:
            classified = classify_link_failure(err)
            if isinstance(classified, AuthError) and classified.kind in _LINK_ERRORS:
                logger.info("[UNLOCK] Link rejected: %s", classified.kind.value)
                return self._link_error(classified)
            raise

        behavior = await self.broker.invoke(BrokerHook.AFTER_COMPLETE_ACCOUNT_UNLOCK)
        self.event_logger.log_event(f"{self.flow.view_name}.verification.success", self.flow)
        if behavior.halt:
            return FlowOutcome(behavior=behavior)
        return FlowOutcome(
            navigation=Navigation(self.broker.transform_link("account_unlock_complete"))
        )
