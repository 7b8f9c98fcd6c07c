"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting the account service
adapter, the event logger and the flow controllers into routes.
"""

from dataclasses import dataclass

import httpx
from fastapi import Depends, Request

from authflow.adapters.auth_server.http import HttpAuthClient
from authflow.adapters.events.console import ConsoleFlowEventLogger
from authflow.api.models import FlowModel, RelierModel
from authflow.config.settings import Settings, get_settings
from authflow.domain.account_unlock import CompleteAccountUnlockFlow
from authflow.domain.broker import AuthBroker
from authflow.domain.force_auth import ForceAuthFlow
from authflow.domain.models import FlowContext, NavigationModel, Relier
from authflow.domain.ports import AuthClient, FlowEventLogger, SignUpCapable
from authflow.domain.signin import SignInFlow, SignUpFlow
from authflow.domain.unblock import UnblockChallengeHandler

# Module-level singleton - ConsoleFlowEventLogger is stateless
_event_logger = ConsoleFlowEventLogger()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Get the shared HTTP client from app state.

    The client is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.http_client


def get_auth_client(request: Request) -> AuthClient:
    """Create the account service adapter around the shared HTTP client."""
    return HttpAuthClient(get_http_client(request))


def get_event_logger() -> FlowEventLogger:
    """Get console event logger (singleton)."""
    return _event_logger


def to_relier(model: RelierModel) -> Relier:
    return Relier(
        context=model.context,
        client_id=model.client_id,
        service=model.service,
        permissions=tuple(model.permissions),
        allows_identifier_change=model.allows_identifier_change,
        email=model.email,
        uid=model.uid,
    )


def to_flow_context(model: FlowModel | None, view_name: str) -> FlowContext:
    if model is None:
        return FlowContext.create(view_name)
    return FlowContext(
        flow_id=model.flow_id,
        flow_begin_time=model.flow_begin_time,
        view_name=view_name,
    )


@dataclass
class FlowFactory:
    """
    Builds the flow controllers for one request.

    Each controller gets its own broker, so capability changes never leak
    between flows.
    """

    auth_client: AuthClient
    event_logger: FlowEventLogger
    settings: Settings

    def broker(self, start_page: str | None = None) -> AuthBroker:
        return AuthBroker(
            capabilities={name: True for name in self.settings.broker_capabilities},
            start_page=start_page,
        )

    def unblock_handler(self, broker: AuthBroker) -> UnblockChallengeHandler:
        return UnblockChallengeHandler(
            self.auth_client, broker, code_length=self.settings.unblock_code_length
        )

    def _flow_kwargs(
        self,
        relier: Relier,
        flow: FlowContext,
        model: NavigationModel | None,
        start_page: str | None = None,
    ) -> dict:
        broker = self.broker(start_page)
        return {
            "auth_client": self.auth_client,
            "broker": broker,
            "relier": relier,
            "flow": flow,
            "event_logger": self.event_logger,
            "model": model,
            "unblock_handler": self.unblock_handler(broker),
        }

    def sign_in(
        self,
        relier: Relier,
        flow: FlowContext,
        model: NavigationModel | None = None,
        *,
        current_page: str | None = None,
    ) -> SignInFlow:
        """
        Build a sign-in flow.

        ``current_page`` is the page the user authenticates from; a blocked
        attempt sends the user back there after the unblock screen.
        """
        return SignInFlow(
            current_page=current_page,
            landing_screen=self.settings.default_landing_screen,
            **self._flow_kwargs(relier, flow, model, start_page=current_page),
        )

    def sign_up(
        self, relier: Relier, flow: FlowContext, model: NavigationModel | None = None
    ) -> SignUpCapable:
        return SignUpFlow(**self._flow_kwargs(relier, flow, model, start_page="signup"))

    def force_auth(
        self, relier: Relier, flow: FlowContext, model: NavigationModel | None = None
    ) -> ForceAuthFlow:
        return ForceAuthFlow(
            uid_length=self.settings.uid_length,
            landing_screen=self.settings.default_landing_screen,
            **self._flow_kwargs(relier, flow, model, start_page="force_auth"),
        )

    def account_unlock(self, flow: FlowContext) -> CompleteAccountUnlockFlow:
        return CompleteAccountUnlockFlow(
            auth_client=self.auth_client,
            broker=self.broker(),
            flow=flow,
            event_logger=self.event_logger,
            uid_length=self.settings.uid_length,
            code_length=self.settings.code_length,
        )


def get_flow_factory(
    auth_client: AuthClient = Depends(get_auth_client),
    event_logger: FlowEventLogger = Depends(get_event_logger),
    settings: Settings = Depends(get_settings),
) -> FlowFactory:
    """
    Create the flow factory with injected dependencies.

    Wires together the account service adapter, event logger and settings.
    """
    return FlowFactory(auth_client=auth_client, event_logger=event_logger, settings=settings)
