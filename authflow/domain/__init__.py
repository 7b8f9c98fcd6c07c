"""
Domain layer - Authentication flow orchestration with zero framework imports.

This package decides, for each sign-in or sign-up attempt, which broker
hooks run, which events are emitted and where the user goes next. It defines
its own port interfaces for the account service and event delivery.
"""

from .account_unlock import CompleteAccountUnlockFlow
from .broker import AuthBroker, OAuthRedirectBroker
from .exceptions import (
    AuthError,
    AuthFlowError,
    BehaviorNotFound,
    ErrorKind,
    InvalidTransition,
    ValidationFailed,
)
from .flow import FlowOrchestrator, FlowState
from .force_auth import ForceAuthFlow
from .models import (
    Account,
    Behavior,
    FlowContext,
    FlowOutcome,
    Navigation,
    NavigationModel,
    Relier,
    ResumeToken,
    SignInOptions,
    UnblockChallenge,
)
from .ports import (
    AuthClient,
    BrokerHook,
    FlowEventLogger,
    FlowKind,
    FormPrefill,
    SignInCapable,
    SignUpCapable,
    VerificationMethod,
    VerificationReason,
)
from .signin import SignInFlow, SignUpFlow
from .unblock import UnblockChallengeHandler

__all__ = [
    "Account",
    "AuthBroker",
    "AuthClient",
    "AuthError",
    "AuthFlowError",
    "Behavior",
    "BehaviorNotFound",
    "BrokerHook",
    "CompleteAccountUnlockFlow",
    "ErrorKind",
    "FlowContext",
    "FlowEventLogger",
    "FlowKind",
    "FlowOrchestrator",
    "FlowOutcome",
    "FlowState",
    "ForceAuthFlow",
    "FormPrefill",
    "InvalidTransition",
    "Navigation",
    "NavigationModel",
    "OAuthRedirectBroker",
    "Relier",
    "ResumeToken",
    "SignInCapable",
    "SignInFlow",
    "SignInOptions",
    "SignUpCapable",
    "SignUpFlow",
    "UnblockChallenge",
    "UnblockChallengeHandler",
    "ValidationFailed",
    "VerificationMethod",
    "VerificationReason",
]
