"""
Flow orchestration - Shared sequencing for sign-in and sign-up attempts.

Attempt State Machine
=====================

States:
- CheckingPermissions: resume token computed, relier permissions checked
- InvokingBeforeHook: broker ``beforeSignIn`` running
- Authenticating: account service call in flight (or, for an attempt resumed
  from the permissions/sync screens, the account is already authenticated)
- InvokingAfterHook: broker after-hook running
- Resolved: a navigation or halting behavior was produced
- Failed: an error was raised to the caller

Valid Transitions:
    (start)             -> CheckingPermissions | Authenticating (resumed)
    CheckingPermissions -> InvokingBeforeHook | Resolved
    InvokingBeforeHook  -> Authenticating | Resolved (halt) | Failed
    Authenticating      -> InvokingAfterHook | Resolved | Failed
    InvokingAfterHook   -> Resolved | Failed

Event ordering per successful attempt: the ``attempt`` flow event is logged
before the account service call; ``success`` view events are logged after
resolution and before the after-hook and navigation; form prefill is cleared
once.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from functools import partial
from typing import Any

from .broker import AuthBroker
from .exceptions import AuthError, ErrorKind, InvalidTransition
from .models import (
    Account,
    FlowContext,
    FlowOutcome,
    Navigation,
    NavigationModel,
    Relier,
    ResumeToken,
    SignInOptions,
)
from .ports import AuthClient, BrokerHook, FlowEventLogger, FlowKind, FormPrefill
from .resolver import resolve_verification_state
from .unblock import UnblockChallengeHandler

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[Account, str, AuthError], Awaitable[FlowOutcome]]


class FlowState(str, Enum):
    CHECKING_PERMISSIONS = "CheckingPermissions"
    INVOKING_BEFORE_HOOK = "InvokingBeforeHook"
    AUTHENTICATING = "Authenticating"
    INVOKING_AFTER_HOOK = "InvokingAfterHook"
    RESOLVED = "Resolved"
    FAILED = "Failed"


_ALLOWED_TRANSITIONS: dict[FlowState | None, frozenset[FlowState]] = {
    None: frozenset({FlowState.CHECKING_PERMISSIONS, FlowState.AUTHENTICATING}),
    FlowState.CHECKING_PERMISSIONS: frozenset(
        {FlowState.INVOKING_BEFORE_HOOK, FlowState.RESOLVED}
    ),
    FlowState.INVOKING_BEFORE_HOOK: frozenset(
        {FlowState.AUTHENTICATING, FlowState.RESOLVED, FlowState.FAILED}
    ),
    FlowState.AUTHENTICATING: frozenset(
        {FlowState.INVOKING_AFTER_HOOK, FlowState.RESOLVED, FlowState.FAILED}
    ),
    FlowState.INVOKING_AFTER_HOOK: frozenset({FlowState.RESOLVED, FlowState.FAILED}),
    FlowState.RESOLVED: frozenset(),
    FlowState.FAILED: frozenset(),
}


class FlowOrchestrator:
    """
    Base class for the authentication flow controllers.

    Subclasses set ``kind`` and implement ``_call_account_service``. One
    attempt runs at a time per instance; callers must not resubmit while an
    attempt is outstanding.
    """

    kind: FlowKind = FlowKind.SIGN_IN
    default_page = "signin"
    after_sign_in_hook = BrokerHook.AFTER_SIGN_IN
    sign_in_reason = "signin"
    landing_screen: str | None = None

    def __init__(
        self,
        *,
        auth_client: AuthClient,
        broker: AuthBroker,
        relier: Relier,
        flow: FlowContext,
        event_logger: FlowEventLogger,
        model: NavigationModel | None = None,
        form_prefill: FormPrefill | None = None,
        unblock_handler: UnblockChallengeHandler | None = None,
        error_handler: ErrorHandler | None = None,
        current_page: str | None = None,
        landing_screen: str | None = None,
    ) -> None:
        self.auth_client = auth_client
        self.broker = broker
        self.relier = relier
        self.flow = flow
        self.event_logger = event_logger
        self.model = model or NavigationModel()
        self.form_prefill = form_prefill
        self.unblock_handler = unblock_handler or UnblockChallengeHandler(auth_client, broker)
        self.error_handler: ErrorHandler = error_handler or self.handle_error
        self.current_page = current_page or self.default_page
        if landing_screen:
            self.landing_screen = landing_screen

        self.state: FlowState | None = None
        self.history: list[FlowState] = []
        self._logged_once: set[str] = set()

    @property
    def view_name(self) -> str:
        return self.flow.view_name

    # State machine

    def _begin(self, state: FlowState) -> None:
        self.state = None
        self.history = []
        self._transition(state)

    def _transition(self, state: FlowState) -> None:
        if state not in _ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state} -> {state}")
        logger.debug("Flow %s: %s -> %s", self.flow.flow_id[:8], self.state, state.value)
        self.state = state
        self.history.append(state)

    # Events

    def log_flow_event(self, event: str, view_name: str | None = None) -> None:
        self.event_logger.log_event(f"flow.{view_name or self.view_name}.{event}", self.flow)

    def log_flow_event_once(self, event: str, view_name: str | None = None) -> None:
        name = f"flow.{view_name or self.view_name}.{event}"
        if name in self._logged_once:
            return
        self._logged_once.add(name)
        self.event_logger.log_event(name, self.flow)

    def log_view_event(self, event: str) -> None:
        self.event_logger.log_event(f"{self.view_name}.{event}", self.flow)

    def form_engaged(self) -> None:
        self.log_flow_event_once("engage")

    def form_submitted(self, form_enabled: bool) -> None:
        if form_enabled:
            self.log_flow_event("submit")

    def link_clicked(self, target_id: str | None) -> None:
        if target_id:
            self.log_flow_event(target_id)

    # Helpers

    def resume_token(self) -> str:
        return ResumeToken.from_state(self.relier, self.flow, self.model).stringify()

    def navigate(self, navigation: Navigation) -> FlowOutcome:
        screen = self.broker.transform_link(navigation.screen)
        if screen != navigation.screen:
            navigation = Navigation(screen, navigation.data, navigation.clear_query_params)
        logger.info("[FLOW] %s navigates to %s", self.view_name, navigation.screen)
        return FlowOutcome(navigation=navigation)

    async def _guarded(self, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except Exception:
            self._transition(FlowState.FAILED)
            raise

    async def _call_account_service(
        self, account: Account, password: str, options: SignInOptions
    ) -> Account:
        raise NotImplementedError

    # Attempt sequence

    async def _attempt(
        self,
        account: Account,
        password: str,
        *,
        retry: Callable[[], Awaitable[FlowOutcome]],
        unblock_code: str | None = None,
        permissions_granted: bool = False,
    ) -> FlowOutcome:
        if account is None or account.is_default():
            raise AuthError(ErrorKind.UNEXPECTED_ERROR, "No account to authenticate")

        self._begin(FlowState.CHECKING_PERMISSIONS)
        # Computed before any await so later relier changes cannot leak in
        resume = self.resume_token()

        if not permissions_granted and self.relier.requires_permissions(account):
            self._transition(FlowState.RESOLVED)
            return self.navigate(
                Navigation(
                    f"{self.kind.value}_permissions",
                    {"account": account, "on_submit_complete": retry},
                )
            )

        self._transition(FlowState.INVOKING_BEFORE_HOOK)
        behavior = await self._guarded(self.broker.invoke(BrokerHook.BEFORE_SIGN_IN, account))
        if behavior.halt:
            self._transition(FlowState.RESOLVED)
            return FlowOutcome(behavior=behavior)

        self._transition(FlowState.AUTHENTICATING)
        self.log_flow_event("attempt", self.kind.value)
        options = SignInOptions(
            resume=resume,
            unblock_code=unblock_code,
            reason=self.sign_in_reason,
            flow=self.flow,
        )
        try:
            account = await self._call_account_service(account, password, options)
        except AuthError as err:
            logger.info("[FLOW] %s attempt failed: %s", self.view_name, err.kind.value)
            return await self.error_handler(account, password, err)
        except Exception:
            self._transition(FlowState.FAILED)
            raise

        if self.form_prefill is not None:
            self.form_prefill.clear()
        return await self._complete(account, permissions_satisfied=permissions_granted)

    async def _resume(self, account: Account, *, sync_preferences_chosen: bool = False) -> FlowOutcome:
        """Continue after the permissions or sync screen, without re-authenticating."""
        self._begin(FlowState.AUTHENTICATING)
        return await self._complete(
            account,
            permissions_satisfied=True,
            sync_preferences_chosen=sync_preferences_chosen,
        )

    async def _complete(
        self,
        account: Account,
        *,
        permissions_satisfied: bool = False,
        sync_preferences_chosen: bool = False,
    ) -> FlowOutcome:
        decision = resolve_verification_state(
            account,
            self.relier,
            self.model,
            kind=self.kind,
            broker=self.broker,
            flow=self.flow,
            on_permissions_granted=partial(self._resume, account),
            on_sync_preferences_chosen=partial(self._resume, account, sync_preferences_chosen=True),
            permissions_satisfied=permissions_satisfied,
            sync_preferences_chosen=sync_preferences_chosen,
            sign_in_hook=self.after_sign_in_hook,
            landing_screen=self.landing_screen,
        )

        if decision.after_hook is None:
            self._transition(FlowState.RESOLVED)
            return self.navigate(decision.navigation)

        for event in decision.view_events:
            self.log_view_event(event)

        self._transition(FlowState.INVOKING_AFTER_HOOK)
        behavior = await self._guarded(self.broker.invoke(decision.after_hook, account))
        self._transition(FlowState.RESOLVED)
        if behavior.halt:
            return FlowOutcome(behavior=behavior)
        return self.navigate(decision.navigation)

    async def handle_error(self, account: Account, password: str, error: AuthError) -> FlowOutcome:
        """
        Default failure handling.

        A block that an emailed code can lift goes to the unblock screen;
        everything else is raised unchanged for the caller to display.
        """
        if self.unblock_handler.can_unblock(error):
            navigation = await self._guarded(
                self.unblock_handler.issue(account, password, self.current_page)
            )
            self._transition(FlowState.RESOLVED)
            return self.navigate(navigation)
        self._transition(FlowState.FAILED)
        raise error
