"""
API v1 routes.

Defines REST endpoints that run the authentication flows and return the
resulting navigation for the client router.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from authflow.api.dependencies import FlowFactory, get_flow_factory, to_flow_context, to_relier
from authflow.api.models import (
    ErrorResponse,
    ForceAuthRequest,
    MessageResponse,
    NavigationResponse,
    ResendUnblockRequest,
    SignInRequest,
    UnblockRequest,
    to_navigation_response,
)
from authflow.domain.classifier import classify
from authflow.domain.exceptions import AuthError, ValidationFailed
from authflow.domain.models import Account, NavigationModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Authentication error"},
    422: {"description": "Validation error"},
}


def _auth_error(err: AuthError) -> HTTPException:
    classification = classify(err)
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "kind": err.kind.value,
            "message": err.message,
            "param": err.param,
            "retryable": classification is not None and classification.retryable,
        },
    )


def _validation_error(err: ValidationFailed) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"field": err.field, "message": str(err)},
    )


@router.post(
    "/signin",
    response_model=NavigationResponse,
    responses=_ERROR_RESPONSES,
    summary="Sign in to an existing account",
)
async def sign_in(
    request_data: SignInRequest,
    factory: FlowFactory = Depends(get_flow_factory),
) -> NavigationResponse:
    """
    Sign in and return where to go next.

    - **email**: Account email address
    - **password**: Account password
    - **permissions_granted**: Set when resubmitting from the permissions screen

    A blocked sign-in that can be lifted by email returns the
    ``signin_unblock`` screen.
    """
    flow = factory.sign_in(
        to_relier(request_data.relier),
        to_flow_context(request_data.flow, "signin"),
        NavigationModel(redirect_to=request_data.redirect_to),
    )
    account = Account(email=request_data.email, uid=request_data.uid)
    try:
        outcome = await flow.sign_in(
            account, request_data.password, permissions_granted=request_data.permissions_granted
        )
    except AuthError as err:
        raise _auth_error(err) from None
    return to_navigation_response(outcome)


@router.post(
    "/signup",
    response_model=NavigationResponse,
    responses=_ERROR_RESPONSES,
    summary="Create an account",
)
async def sign_up(
    request_data: SignInRequest,
    factory: FlowFactory = Depends(get_flow_factory),
) -> NavigationResponse:
    flow = factory.sign_up(
        to_relier(request_data.relier),
        to_flow_context(request_data.flow, "signup"),
        NavigationModel(redirect_to=request_data.redirect_to),
    )
    account = Account(email=request_data.email)
    try:
        outcome = await flow.sign_up(
            account, request_data.password, permissions_granted=request_data.permissions_granted
        )
    except AuthError as err:
        raise _auth_error(err) from None
    return to_navigation_response(outcome)


@router.post(
    "/force_auth",
    response_model=NavigationResponse,
    responses=_ERROR_RESPONSES,
    summary="Re-authenticate the account named by the relier",
)
async def force_auth(
    request_data: ForceAuthRequest,
    factory: FlowFactory = Depends(get_flow_factory),
) -> NavigationResponse:
    """
    Confirm the account still exists, then sign it in.

    A deleted account is sent to sign-up, unless the relier pins its uid.
    """
    relier = to_relier(request_data.relier)
    flow = factory.force_auth(
        relier,
        to_flow_context(request_data.flow, "force_auth"),
        NavigationModel(redirect_to=request_data.redirect_to),
    )
    try:
        redirect = await flow.check_account()
        if redirect is not None:
            return to_navigation_response(redirect)
        outcome = await flow.sign_in(
            Account(email=relier.email, uid=relier.uid),
            request_data.password,
            permissions_granted=request_data.permissions_granted,
        )
    except AuthError as err:
        raise _auth_error(err) from None
    return to_navigation_response(outcome)


@router.post(
    "/signin_unblock",
    response_model=NavigationResponse,
    responses=_ERROR_RESPONSES,
    summary="Retry a blocked sign-in with an unblock code",
)
async def sign_in_unblock(
    request_data: UnblockRequest,
    factory: FlowFactory = Depends(get_flow_factory),
) -> NavigationResponse:
    """
    Submit the code from an unblock email.

    - **unblock_code**: Hex code from the email (surrounding whitespace is ignored)
    - **last_page**: Page the blocked attempt came from, used on incorrect password
    """
    flow = factory.sign_in(
        to_relier(request_data.relier),
        to_flow_context(request_data.flow, "signin_unblock"),
        current_page=request_data.last_page,
    )
    account = Account(email=request_data.email, uid=request_data.uid)
    try:
        outcome = await flow.unblock_handler.submit(
            flow,
            account,
            request_data.password,
            request_data.unblock_code,
            last_page=request_data.last_page,
        )
    except ValidationFailed as err:
        raise _validation_error(err) from None
    except AuthError as err:
        raise _auth_error(err) from None
    return to_navigation_response(outcome)


@router.post(
    "/signin_unblock/resend",
    response_model=MessageResponse,
    responses=_ERROR_RESPONSES,
    summary="Send the unblock email again",
)
async def resend_unblock_email(
    request_data: ResendUnblockRequest,
    factory: FlowFactory = Depends(get_flow_factory),
) -> MessageResponse:
    handler = factory.unblock_handler(factory.broker())
    try:
        await handler.resend(Account(email=request_data.email, uid=request_data.uid))
    except AuthError as err:
        raise _auth_error(err) from None
    return MessageResponse(message="Unblock code sent")


@router.get(
    "/complete_unlock",
    response_model=NavigationResponse,
    responses=_ERROR_RESPONSES,
    summary="Complete an account unlock from an emailed link",
)
async def complete_unlock(
    uid: str | None = Query(default=None),
    code: str | None = Query(default=None),
    factory: FlowFactory = Depends(get_flow_factory),
) -> NavigationResponse:
    """
    Redeem the uid/code pair of an unlock link.

    Damaged and expired links are not errors: they return the matching
    link screen.
    """
    flow = factory.account_unlock(to_flow_context(None, "complete-account-unlock"))
    try:
        outcome = await flow.verify({"uid": uid, "code": code})
    except AuthError as err:
        raise _auth_error(err) from None
    return to_navigation_response(outcome)
