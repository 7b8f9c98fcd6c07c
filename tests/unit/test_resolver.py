"""
Unit tests for the verification state resolver.

Tests verify the decision precedence: permissions, choose-what-to-sync,
verified landing, then confirmation screens.
"""

from unittest.mock import Mock

from authflow.domain.broker import CHOOSE_WHAT_TO_SYNC, AuthBroker
from authflow.domain.models import Account, FlowContext, NavigationModel, Relier
from authflow.domain.ports import BrokerHook, FlowKind, VerificationReason
from authflow.domain.resolver import resolve_verification_state

FLOW = FlowContext(flow_id="f" * 64, flow_begin_time=1, view_name="signin")


def resolve(account, *, kind=FlowKind.SIGN_IN, relier=None, broker=None, model=None, **kwargs):
    return resolve_verification_state(
        account,
        relier or Relier(),
        model or NavigationModel(),
        kind=kind,
        broker=broker or AuthBroker(),
        flow=FLOW,
        **kwargs,
    )


class TestPermissions:
    """Permission checks take precedence over everything else."""

    def test_permissions_screen_for_sign_in(self) -> None:
        account = Account(email="a@b.co", verified=True)
        callback = Mock()
        decision = resolve(
            account,
            relier=Relier(client_id="abc", permissions=("profile",)),
            on_permissions_granted=callback,
        )
        assert decision.navigation.screen == "signin_permissions"
        assert decision.navigation.data == {"account": account, "on_submit_complete": callback}
        assert decision.view_events == ()
        assert decision.after_hook is None

    def test_permissions_screen_for_sign_up(self) -> None:
        decision = resolve(
            Account(email="a@b.co"),
            kind=FlowKind.SIGN_UP,
            relier=Relier(client_id="abc", permissions=("profile",)),
            broker=AuthBroker(capabilities={CHOOSE_WHAT_TO_SYNC: True}),
        )
        assert decision.navigation.screen == "signup_permissions"

    def test_satisfied_permissions_skip_screen(self) -> None:
        decision = resolve(
            Account(email="a@b.co", verified=True),
            relier=Relier(client_id="abc", permissions=("profile",)),
            permissions_satisfied=True,
        )
        assert decision.navigation.screen == "settings"


class TestChooseWhatToSync:
    def test_sign_up_with_capability(self) -> None:
        account = Account(email="a@b.co")
        decision = resolve(
            account,
            kind=FlowKind.SIGN_UP,
            broker=AuthBroker(capabilities={CHOOSE_WHAT_TO_SYNC: True}),
        )
        assert decision.navigation.screen == "choose_what_to_sync"
        assert decision.navigation.data["account"] is account
        assert decision.after_hook is None

    def test_sign_in_ignores_capability(self) -> None:
        decision = resolve(
            Account(email="a@b.co", verified=True),
            broker=AuthBroker(capabilities={CHOOSE_WHAT_TO_SYNC: True}),
        )
        assert decision.navigation.screen == "settings"

    def test_chosen_preferences_skip_screen(self) -> None:
        decision = resolve(
            Account(email="a@b.co"),
            kind=FlowKind.SIGN_UP,
            broker=AuthBroker(capabilities={CHOOSE_WHAT_TO_SYNC: True}),
            sync_preferences_chosen=True,
        )
        assert decision.navigation.screen == "confirm"


class TestVerified:
    """Verified accounts land with success events and an after hook."""

    def test_sign_in_lands_on_settings(self) -> None:
        decision = resolve(Account(email="a@b.co", verified=True))
        assert decision.navigation.screen == "settings"
        assert decision.navigation.options == {"clearQueryParams": True}
        assert decision.view_events == ("success", "signin.success")
        assert decision.after_hook == BrokerHook.AFTER_SIGN_IN

    def test_sign_in_prefers_redirect_to(self) -> None:
        decision = resolve(
            Account(email="a@b.co", verified=True),
            model=NavigationModel(redirect_to="/somewhere"),
            landing_screen="home",
        )
        assert decision.navigation.screen == "/somewhere"

    def test_sign_in_landing_screen_override(self) -> None:
        decision = resolve(Account(email="a@b.co", verified=True), landing_screen="home")
        assert decision.navigation.screen == "home"

    def test_sign_in_hook_override(self) -> None:
        decision = resolve(
            Account(email="a@b.co", verified=True), sign_in_hook=BrokerHook.AFTER_FORCE_AUTH
        )
        assert decision.after_hook == BrokerHook.AFTER_FORCE_AUTH

    def test_preverified_sign_up(self) -> None:
        decision = resolve(Account(email="a@b.co", verified=True), kind=FlowKind.SIGN_UP)
        assert decision.navigation.screen == "signup_complete"
        assert decision.view_events == ("success", "signup.success", "preverified.success")
        assert decision.after_hook == BrokerHook.AFTER_SIGN_IN


class TestUnverified:
    """Unverified accounts go to a confirmation screen."""

    def test_sign_up_goes_to_confirm(self) -> None:
        account = Account(email="a@b.co", verification_reason=VerificationReason.SIGN_UP)
        decision = resolve(account, kind=FlowKind.SIGN_UP)
        assert decision.navigation.screen == "confirm"
        assert decision.navigation.data == {"account": account, "flow": FLOW}
        assert decision.view_events == ("success", "signup.success")
        assert decision.after_hook == BrokerHook.AFTER_SIGN_UP

    def test_sign_in_with_login_reason_goes_to_confirm_signin(self) -> None:
        account = Account(email="a@b.co", verification_reason=VerificationReason.SIGN_IN)
        decision = resolve(account)
        assert decision.navigation.screen == "confirm_signin"
        assert decision.view_events == ()
        assert decision.after_hook is None

    def test_sign_in_with_signup_reason_goes_to_confirm(self) -> None:
        account = Account(email="a@b.co", verification_reason=VerificationReason.SIGN_UP)
        decision = resolve(account)
        assert decision.navigation.screen == "confirm"
        assert decision.navigation.data == {"account": account, "flow": FLOW}
