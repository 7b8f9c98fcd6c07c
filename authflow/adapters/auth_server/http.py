"""
HTTP account service adapter - Implements the AuthClient protocol.

Talks JSON to the account service with a shared httpx.AsyncClient. Error
bodies (``{"errno": ..., "message": ...}``) are turned into AuthError via the
domain classifier; transport failures are not translated and propagate as
httpx exceptions.
"""

import logging
from typing import Any

import httpx

from authflow.domain.classifier import error_from_response
from authflow.domain.models import Account, Relier, SignInOptions
from authflow.domain.ports import VerificationMethod, VerificationReason

logger = logging.getLogger(__name__)


def _enum_or_none(enum_cls: Any, value: Any) -> Any:
    try:
        return enum_cls(value) if value else None
    except ValueError:
        return None


def _without_none(body: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in body.items() if value is not None}


class HttpAuthClient:
    """
    Implements AuthClient protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The httpx client owns the base URL and the request timeout.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    def _handle(self, response: httpx.Response) -> dict[str, Any]:
        if response.is_success:
            return response.json() if response.content else {}
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {"message": response.text or response.reason_phrase}
        error = error_from_response(payload)
        logger.info(
            "Account service %s %s failed: %s (status=%s)",
            response.request.method,
            response.request.url.path,
            error.kind.value,
            response.status_code,
        )
        raise error

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await self._client.post(path, json=_without_none(body))
        return self._handle(response)

    def _auth_body(
        self, account: Account, password: str, relier: Relier, options: SignInOptions
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "email": account.email,
            "password": password,
            "reason": options.reason,
            "resume": options.resume,
            "unblockCode": options.unblock_code,
            "service": relier.service,
        }
        if options.flow is not None:
            body["metricsContext"] = {
                "flowId": options.flow.flow_id,
                "flowBeginTime": options.flow.flow_begin_time,
            }
        return body

    def _apply(self, account: Account, payload: dict[str, Any], relier: Relier) -> Account:
        return account.apply_response(
            uid=payload.get("uid"),
            session_token=payload.get("sessionToken"),
            verified=bool(payload.get("verified", False)),
            verification_method=_enum_or_none(VerificationMethod, payload.get("verificationMethod")),
            verification_reason=_enum_or_none(VerificationReason, payload.get("verificationReason")),
            allow_identifier_change=relier.allows_identifier_change,
        )

    async def sign_in_account(
        self, account: Account, password: str, relier: Relier, options: SignInOptions
    ) -> Account:
        payload = await self._post("/account/login", self._auth_body(account, password, relier, options))
        return self._apply(account, payload, relier)

    async def sign_up_account(
        self, account: Account, password: str, relier: Relier, options: SignInOptions
    ) -> Account:
        payload = await self._post("/account/create", self._auth_body(account, password, relier, options))
        return self._apply(account, payload, relier)

    async def send_unblock_email(self, account: Account) -> None:
        await self._post("/account/login/send_unblock_code", {"email": account.email})

    async def complete_account_unlock(self, uid: str, code: str) -> None:
        await self._post("/account/unlock/verify_code", {"uid": uid, "code": code})

    async def check_account_email_exists(self, email: str) -> bool:
        payload = await self._post("/account/status", {"email": email})
        return bool(payload.get("exists"))

    async def check_account_uid_exists(self, uid: str) -> bool:
        response = await self._client.get("/account/status", params={"uid": uid})
        return bool(self._handle(response).get("exists"))
