"""
Authentication brokers - Capability and behavior registry for an integration.

A broker represents the host integration (a plain web sign-in, an OAuth
relying party, ...). The flows consult it for capabilities and invoke its
lifecycle hooks; the Behavior a hook resolves with can suppress the flow's
default navigation.

The registry is scoped to one broker instance, which the API layer creates
per flow. Capabilities and behaviors are only mutated through the explicit
methods below.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from .exceptions import BehaviorNotFound
from .models import Account, Behavior
from .ports import BrokerHook

logger = logging.getLogger(__name__)

HookHandler = Callable[..., Awaitable[Behavior | None]]

CHOOSE_WHAT_TO_SYNC = "chooseWhatToSyncWebV1"
SIGNUP_DISABLED = "signupDisabled"


def _to_hook(hook: BrokerHook | str) -> BrokerHook:
    if isinstance(hook, BrokerHook):
        return hook
    try:
        return BrokerHook(hook)
    except ValueError:
        raise BehaviorNotFound(str(hook)) from None


class AuthBroker:
    """
    Base broker: every recognized hook resolves to ``Behavior(halt=False)``
    and links are left untouched.
    """

    def __init__(
        self,
        capabilities: Mapping[str, Any] | None = None,
        behaviors: Mapping[BrokerHook | str, Behavior] | None = None,
        handlers: Mapping[BrokerHook | str, HookHandler] | None = None,
        start_page: str | None = None,
        query: Mapping[str, str] | None = None,
    ) -> None:
        self.start_page = start_page
        self.query: dict[str, str] = dict(query or {})
        self._capabilities: dict[str, Any] = {}
        self._behaviors: dict[BrokerHook, Behavior] = {hook: Behavior() for hook in BrokerHook}
        self._handlers: dict[BrokerHook, HookHandler] = {}

        for name, value in (capabilities or {}).items():
            self.set_capability(name, value)
        for hook, behavior in (behaviors or {}).items():
            self.set_behavior(hook, behavior)
        for hook, handler in (handlers or {}).items():
            self.set_handler(hook, handler)

    def has_capability(self, name: str) -> bool:
        return bool(self._capabilities.get(name))

    def get_capability(self, name: str) -> Any:
        return self._capabilities.get(name)

    def set_capability(self, name: str, value: Any = True) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("capability name must be a non-empty string")
        self._capabilities[name] = value

    def unset_capability(self, name: str) -> None:
        self._capabilities.pop(name, None)

    def is_force_auth(self) -> bool:
        """True when the user entered the flow on the force_auth page."""
        return (self.start_page or "").strip("/") == "force_auth"

    def is_automated_browser(self) -> bool:
        return self.query.get("automatedBrowser") == "true"

    def is_signup_disabled(self) -> bool:
        return self.has_capability(SIGNUP_DISABLED)

    def get_behavior(self, hook: BrokerHook | str) -> Behavior:
        """
        Get the behavior configured for a hook.

        Raises:
            BehaviorNotFound: If the hook is not one the broker recognizes
        """
        return self._behaviors[_to_hook(hook)]

    def find_behavior(self, hook: BrokerHook | str) -> Behavior | None:
        """Like get_behavior, but an unrecognized hook yields None."""
        try:
            return self.get_behavior(hook)
        except BehaviorNotFound:
            return None

    def set_behavior(self, hook: BrokerHook | str, behavior: Behavior) -> None:
        self._behaviors[_to_hook(hook)] = behavior

    def set_handler(self, hook: BrokerHook | str, handler: HookHandler) -> None:
        """Run ``handler`` when the hook is invoked instead of resolving its behavior."""
        self._handlers[_to_hook(hook)] = handler

    async def invoke(self, hook: BrokerHook | str, *args: Any) -> Behavior:
        """
        Invoke a lifecycle hook.

        A handler that returns None resolves to the hook's configured behavior.
        """
        hook = _to_hook(hook)
        handler = self._handlers.get(hook)
        behavior = None
        if handler is not None:
            behavior = await handler(*args)
        if behavior is None:
            behavior = self._behaviors[hook]
        logger.debug("Broker hook %s resolved (halt=%s)", hook.value, behavior.halt)
        return behavior

    def transform_link(self, link: str) -> str:
        return link


RedirectFinisher = Callable[[Account], Awaitable[str]]


class OAuthRedirectBroker(AuthBroker):
    """
    Broker for OAuth relying parties.

    Links are nested under the ``oauth/`` path and a completed sign-in halts
    the flow with the relier redirect produced by ``finish_oauth_flow``.
    """

    path_prefix = "oauth"

    _FINISHING_HOOKS = (
        BrokerHook.AFTER_SIGN_IN,
        BrokerHook.AFTER_FORCE_AUTH,
        BrokerHook.AFTER_COMPLETE_SIGN_UP,
        BrokerHook.AFTER_SIGN_UP_CONFIRMATION_POLL,
    )

    def __init__(self, finish_oauth_flow: RedirectFinisher, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._finish_oauth_flow = finish_oauth_flow
        for hook in self._FINISHING_HOOKS:
            self.set_handler(hook, self._finish)

    async def _finish(self, account: Account, *args: Any) -> Behavior:
        redirect = await self._finish_oauth_flow(account)
        return Behavior(halt=True, data={"redirect": redirect})

    def transform_link(self, link: str) -> str:
        return f"/{self.path_prefix}/{link.lstrip('/')}"
