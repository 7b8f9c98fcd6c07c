"""
Unit tests for ForceAuthFlow.

Tests verify the pre-form account check, deleted-account handling after a
failed attempt, and the force-auth hook and landing.
"""

from unittest.mock import AsyncMock, Mock

import pytest

from authflow.domain.broker import AuthBroker
from authflow.domain.exceptions import AuthError, ErrorKind
from authflow.domain.flow import FlowState
from authflow.domain.force_auth import ForceAuthFlow
from authflow.domain.models import Account, Relier
from authflow.domain.ports import BrokerHook, VerificationMethod

EMAIL = "user@example.com"
UID = "0123456789abcdef0123456789abcdef"
PASSWORD = "password123"


@pytest.fixture
def make_flow(auth_client, flow_context, event_logger):
    def factory(relier: Relier | None = None, **overrides) -> ForceAuthFlow:
        kwargs = {
            "auth_client": auth_client,
            "broker": AuthBroker(),
            "relier": relier or Relier(email=EMAIL, uid=UID),
            "flow": flow_context,
            "event_logger": event_logger,
        }
        kwargs.update(overrides)
        return ForceAuthFlow(**kwargs)

    return factory


class TestCheckAccount:
    """Tests for ForceAuthFlow.check_account."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [None, ""])
    async def test_missing_email_rejected(self, make_flow, auth_client, email) -> None:
        flow = make_flow(Relier(email=email))

        with pytest.raises(AuthError) as exc_info:
            await flow.check_account()

        assert exc_info.value.kind == ErrorKind.INVALID_PARAMETER
        assert exc_info.value.param == "email"
        auth_client.check_account_email_exists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_uid_rejected(self, make_flow) -> None:
        flow = make_flow(Relier(email=EMAIL, uid="1234"))

        with pytest.raises(AuthError) as exc_info:
            await flow.check_account()

        assert exc_info.value.param == "uid"

    @pytest.mark.asyncio
    async def test_existing_email_shows_form(self, make_flow, auth_client) -> None:
        auth_client.check_account_email_exists.return_value = True
        flow = make_flow(Relier(email=EMAIL))

        assert await flow.check_account() is None
        auth_client.check_account_uid_exists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_email_goes_to_sign_up(self, make_flow, auth_client) -> None:
        auth_client.check_account_email_exists.return_value = False
        flow = make_flow(Relier(email=EMAIL))

        outcome = await flow.check_account()

        assert outcome.screen == "signup"
        assert outcome.navigation.data["force_email"] == EMAIL
        assert outcome.navigation.data["error"].kind == ErrorKind.DELETED_ACCOUNT

    @pytest.mark.asyncio
    async def test_pinned_uid_checks_both(self, make_flow, auth_client) -> None:
        auth_client.check_account_email_exists.return_value = True
        auth_client.check_account_uid_exists.return_value = True
        flow = make_flow()

        assert await flow.check_account() is None
        auth_client.check_account_uid_exists.assert_awaited_once_with(UID)

    @pytest.mark.asyncio
    async def test_pinned_uid_gone_is_deleted_account(self, make_flow, auth_client) -> None:
        auth_client.check_account_email_exists.return_value = True
        auth_client.check_account_uid_exists.return_value = False
        flow = make_flow()

        with pytest.raises(AuthError) as exc_info:
            await flow.check_account()

        assert exc_info.value.kind == ErrorKind.DELETED_ACCOUNT
        assert exc_info.value.context == {"email": EMAIL}

    @pytest.mark.asyncio
    async def test_uid_ignored_when_identifier_may_change(self, make_flow, auth_client) -> None:
        auth_client.check_account_email_exists.return_value = False
        flow = make_flow(Relier(email=EMAIL, uid=UID, allows_identifier_change=True))

        outcome = await flow.check_account()

        assert outcome.screen == "signup"
        auth_client.check_account_uid_exists.assert_not_awaited()


class TestForceAuthSignIn:
    """Tests for signing in through ForceAuthFlow."""

    @pytest.mark.asyncio
    async def test_success_invokes_after_force_auth(self, make_flow, auth_client, respond) -> None:
        auth_client.sign_in_account.side_effect = respond(verified=True)
        after_force_auth = AsyncMock(return_value=None)
        after_sign_in = AsyncMock(return_value=None)
        broker = AuthBroker(
            handlers={
                BrokerHook.AFTER_FORCE_AUTH: after_force_auth,
                BrokerHook.AFTER_SIGN_IN: after_sign_in,
            }
        )
        flow = make_flow(broker=broker)
        account = Account(email=EMAIL, uid=UID)

        outcome = await flow.sign_in(account, PASSWORD)

        after_force_auth.assert_awaited_once_with(account)
        after_sign_in.assert_not_awaited()
        assert outcome.screen == "settings"
        assert outcome.navigation.options == {"clearQueryParams": True}

    @pytest.mark.asyncio
    async def test_sign_in_reason_is_force_auth(self, make_flow, auth_client, respond) -> None:
        auth_client.sign_in_account.side_effect = respond(verified=True)
        flow = make_flow()

        await flow.sign_in(Account(email=EMAIL, uid=UID), PASSWORD)

        assert auth_client.sign_in_account.call_args.args[3].reason == "force_auth"

    @pytest.mark.asyncio
    async def test_unknown_account_goes_to_sign_up(self, make_flow, auth_client) -> None:
        auth_client.sign_in_account.side_effect = AuthError(ErrorKind.UNKNOWN_ACCOUNT)
        flow = make_flow(Relier(email=EMAIL))

        outcome = await flow.sign_in(Account(email=EMAIL), PASSWORD)

        assert outcome.screen == "signup"
        assert outcome.navigation.data["error"].kind == ErrorKind.DELETED_ACCOUNT
        assert outcome.navigation.data["force_email"] == EMAIL
        assert flow.state == FlowState.RESOLVED

    @pytest.mark.asyncio
    async def test_unknown_account_with_pinned_uid_raises(self, make_flow, auth_client) -> None:
        auth_client.sign_in_account.side_effect = AuthError(ErrorKind.UNKNOWN_ACCOUNT)
        flow = make_flow()

        with pytest.raises(AuthError) as exc_info:
            await flow.sign_in(Account(email=EMAIL, uid=UID), PASSWORD)

        assert exc_info.value.kind == ErrorKind.DELETED_ACCOUNT
        assert flow.state == FlowState.FAILED

    @pytest.mark.asyncio
    async def test_other_errors_use_fallback_handler(self, make_flow, auth_client) -> None:
        error = AuthError(ErrorKind.INCORRECT_PASSWORD)
        auth_client.sign_in_account.side_effect = error
        fallback = AsyncMock(return_value="fallback")
        flow = make_flow(fallback_error_handler=fallback)
        account = Account(email=EMAIL, uid=UID)

        assert await flow.sign_in(account, PASSWORD) == "fallback"
        fallback.assert_awaited_once_with(account, PASSWORD, error)

    def test_error_handler_kwarg_rejected(self, make_flow) -> None:
        with pytest.raises(TypeError, match="fallback_error_handler"):
            make_flow(error_handler=AsyncMock())

    @pytest.mark.asyncio
    async def test_blocked_goes_to_unblock_from_force_auth(self, make_flow, auth_client) -> None:
        auth_client.sign_in_account.side_effect = AuthError(
            ErrorKind.REQUEST_BLOCKED, verification_method=VerificationMethod.EMAIL_CAPTCHA
        )
        flow = make_flow(form_prefill=Mock())

        outcome = await flow.sign_in(Account(email=EMAIL, uid=UID), PASSWORD)

        assert outcome.screen == "signin_unblock"
        assert outcome.navigation.data["last_page"] == "force_auth"

    def test_force_reset_password(self, make_flow) -> None:
        outcome = make_flow().force_reset_password()
        assert outcome.screen == "reset_password"
        assert outcome.navigation.data == {"force_email": EMAIL}
