"""
Verification state resolver - Where to go after a successful attempt.

Decision precedence (first match wins):

    1. Relier needs permissions      -> <flow>_permissions   (no events, no hook)
    2. Broker offers choose-what-to-sync (sign-up only)
                                     -> choose_what_to_sync  (no events, no hook)
    3. Account verified              -> redirectTo or landing screen
    4. Unverified, reason SIGN_UP    -> confirm
    5. Unverified, reason SIGN_IN    -> confirm_signin

The resolver is pure: it returns the view events to emit and the broker hook
to invoke, and the orchestrator performs them.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .broker import CHOOSE_WHAT_TO_SYNC, AuthBroker
from .models import Account, FlowContext, Navigation, NavigationModel, Relier
from .ports import BrokerHook, FlowKind, VerificationReason

DEFAULT_LANDING_SCREENS = {
    FlowKind.SIGN_IN: "settings",
    FlowKind.SIGN_UP: "signup_complete",
}


@dataclass(frozen=True)
class VerificationDecision:
    navigation: Navigation
    view_events: tuple[str, ...] = ()
    after_hook: BrokerHook | None = None


def resolve_verification_state(
    account: Account,
    relier: Relier,
    model: NavigationModel,
    *,
    kind: FlowKind,
    broker: AuthBroker,
    flow: FlowContext,
    on_permissions_granted: Callable[..., Any] | None = None,
    on_sync_preferences_chosen: Callable[..., Any] | None = None,
    permissions_satisfied: bool = False,
    sync_preferences_chosen: bool = False,
    sign_in_hook: BrokerHook = BrokerHook.AFTER_SIGN_IN,
    landing_screen: str | None = None,
) -> VerificationDecision:
    """
    Map an authenticated account to the next screen.

    Args:
        account: Account returned by the account service
        relier: Relier the flow is running for
        model: View model (``redirect_to``)
        kind: Sign-in or sign-up
        broker: Consulted for capabilities only
        flow: Attached to confirmation screens
        on_permissions_granted: Continuation handed to the permissions screen
        on_sync_preferences_chosen: Continuation handed to the sync screen
        permissions_satisfied: Skip rule 1
        sync_preferences_chosen: Skip rule 2
        sign_in_hook: After hook for verified accounts (force-auth overrides it)
        landing_screen: Overrides the default landing screen for the flow
    """
    if not permissions_satisfied and relier.requires_permissions(account):
        return VerificationDecision(
            Navigation(
                f"{kind.value}_permissions",
                {"account": account, "on_submit_complete": on_permissions_granted},
            )
        )

    if (
        kind == FlowKind.SIGN_UP
        and not sync_preferences_chosen
        and broker.has_capability(CHOOSE_WHAT_TO_SYNC)
    ):
        return VerificationDecision(
            Navigation(
                "choose_what_to_sync",
                {"account": account, "on_submit_complete": on_sync_preferences_chosen},
            )
        )

    if account.verified:
        if kind == FlowKind.SIGN_UP:
            return VerificationDecision(
                Navigation(landing_screen or DEFAULT_LANDING_SCREENS[kind]),
                view_events=("success", "signup.success", "preverified.success"),
                after_hook=BrokerHook.AFTER_SIGN_IN,
            )
        return VerificationDecision(
            Navigation(
                model.redirect_to or landing_screen or DEFAULT_LANDING_SCREENS[kind],
                clear_query_params=True,
            ),
            view_events=("success", "signin.success"),
            after_hook=sign_in_hook,
        )

    confirm_data = {"account": account, "flow": flow}
    if kind == FlowKind.SIGN_UP:
        return VerificationDecision(
            Navigation("confirm", confirm_data),
            view_events=("success", "signup.success"),
            after_hook=BrokerHook.AFTER_SIGN_UP,
        )
    if account.verification_reason == VerificationReason.SIGN_IN:
        return VerificationDecision(Navigation("confirm_signin", confirm_data))
    return VerificationDecision(Navigation("confirm", confirm_data))
