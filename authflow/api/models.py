"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from typing import Any

from pydantic import BaseModel, EmailStr, Field

from authflow.domain.exceptions import AuthError
from authflow.domain.models import Account, FlowContext, FlowOutcome


class RelierModel(BaseModel):
    """The integration the user is authenticating for."""

    context: str = "web"
    client_id: str | None = None
    service: str | None = None
    permissions: list[str] = Field(default_factory=list)
    allows_identifier_change: bool = False
    email: EmailStr | None = None
    uid: str | None = None


class FlowModel(BaseModel):
    """Flow identifiers assigned when the page was loaded."""

    flow_id: str = Field(..., min_length=16)
    flow_begin_time: int = Field(..., ge=0)


class SignInRequest(BaseModel):
    """Request model for sign-in and sign-up."""

    email: EmailStr
    password: str = Field(..., min_length=8, description="User password (min 8 characters)")
    uid: str | None = None
    redirect_to: str | None = None
    permissions_granted: bool = False
    relier: RelierModel = Field(default_factory=RelierModel)
    flow: FlowModel | None = None


class ForceAuthRequest(BaseModel):
    """Request model for forced re-authentication. The account comes from the relier."""

    password: str = Field(..., min_length=8)
    redirect_to: str | None = None
    permissions_granted: bool = False
    relier: RelierModel
    flow: FlowModel | None = None


class UnblockRequest(BaseModel):
    """Request model for submitting an unblock code."""

    email: EmailStr
    password: str = Field(..., min_length=8)
    uid: str | None = None
    unblock_code: str = Field(..., description="Code from the unblock email")
    last_page: str | None = None
    relier: RelierModel = Field(default_factory=RelierModel)
    flow: FlowModel | None = None


class ResendUnblockRequest(BaseModel):
    """Request model for resending the unblock email."""

    email: EmailStr
    uid: str | None = None


class NavigationResponse(BaseModel):
    """Where the client router should go next."""

    screen: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    options: dict[str, bool] = Field(default_factory=dict)
    halted: bool = False
    behavior: Any = None


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: Any


# Navigation data that must not leave the server
_PRIVATE_KEYS = frozenset({"password"})


def serialize_value(value: Any) -> Any:
    """Convert navigation data from the domain into JSON-safe values."""
    if isinstance(value, Account):
        return value.to_dict()
    if isinstance(value, AuthError):
        return {"kind": value.kind.value, "message": value.message, "param": value.param}
    if isinstance(value, FlowContext):
        return {"flowId": value.flow_id, "flowBeginTime": value.flow_begin_time}
    if isinstance(value, dict):
        return {
            key: serialize_value(item)
            for key, item in value.items()
            if key not in _PRIVATE_KEYS and not callable(item)
        }
    if isinstance(value, (list, tuple)):
        return [serialize_value(item) for item in value]
    return value


def to_navigation_response(outcome: FlowOutcome) -> NavigationResponse:
    if outcome.halted:
        return NavigationResponse(halted=True, behavior=serialize_value(outcome.behavior.data))
    navigation = outcome.navigation
    return NavigationResponse(
        screen=navigation.screen,
        data=serialize_value(navigation.data),
        options=navigation.options,
    )
