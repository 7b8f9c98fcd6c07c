"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- Flow contexts, reliers and brokers
- Mocked account service and event logger ports
- Canned account service responses
"""

from collections.abc import Callable
from unittest.mock import AsyncMock, Mock

import pytest

from authflow.domain.broker import AuthBroker
from authflow.domain.models import Account, FlowContext, Relier
from authflow.domain.ports import VerificationMethod, VerificationReason

UID = "0123456789abcdef0123456789abcdef"
EMAIL = "user@example.com"
PASSWORD = "password123"


@pytest.fixture
def flow_context() -> FlowContext:
    return FlowContext(flow_id="f" * 64, flow_begin_time=1_700_000_000_000, view_name="signin")


@pytest.fixture
def relier() -> Relier:
    return Relier(client_id="relier-id", service="sync")


@pytest.fixture
def broker() -> AuthBroker:
    return AuthBroker()


@pytest.fixture
def account() -> Account:
    return Account(email=EMAIL)


@pytest.fixture
def auth_client() -> AsyncMock:
    """Account service port; every method is an AsyncMock."""
    return AsyncMock()


@pytest.fixture
def event_logger() -> Mock:
    return Mock()


@pytest.fixture
def respond() -> Callable[..., Callable]:
    """
    Build a side effect for sign_in_account/sign_up_account.

    The returned coroutine function applies the given verification state to
    the account it receives, like the real account service adapter does.
    """

    def factory(
        verified: bool = True,
        reason: VerificationReason | None = None,
        method: VerificationMethod | None = None,
    ) -> Callable:
        async def _respond(account: Account, *args, **kwargs) -> Account:
            return account.apply_response(
                uid=UID,
                session_token="session-token",
                verified=verified,
                verification_method=method,
                verification_reason=reason,
            )

        return _respond

    return factory


def logged_events(event_logger: Mock) -> list[str]:
    """Event names passed to a mocked FlowEventLogger, in order."""
    return [call.args[0] for call in event_logger.log_event.call_args_list]


@pytest.fixture
def events() -> Callable[[Mock], list[str]]:
    return logged_events
