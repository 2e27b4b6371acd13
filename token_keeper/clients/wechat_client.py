"""WeChat credential issuer client.

Only the two endpoints the keeper needs are covered:

- ``POST /cgi-bin/stable_token``: access token for an AppID/AppSecret pair.
- ``GET /cgi-bin/ticket/getticket?type=jsapi``: JS-API ticket for an
  official-account access token.

Application-level failures (``errcode != 0``) are returned inside the
``IssuedCredential``; transport-level failures and malformed response bodies raise
``IssuerTransportError``. Timeouts are enforced by the ``httpx`` client.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic import ValidationError

from token_keeper.core.exceptions import IssuerTransportError
from token_keeper.core.logger import logger
from token_keeper.services.credentials.models import IssuedCredential
from token_keeper.services.system.wechat_config import AppCredentials

STABLE_TOKEN_PATH = "/cgi-bin/stable_token"
JSAPI_TICKET_PATH = "/cgi-bin/ticket/getticket"


@runtime_checkable
class UpstreamIssuer(Protocol):
    async def fetch_access_token(
        self, app: AppCredentials, force: bool = False
    ) -> IssuedCredential: ...

    async def fetch_ticket(self, access_token: str) -> IssuedCredential: ...


def _redact_url(url: str) -> str:
    """Remove query and fragment to avoid leaking secrets in logs."""
    try:
        parts = urlsplit(url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    except ValueError:
        return "<invalid_url>"


def _format_exc_chain(e: BaseException) -> str:
    parts: list[str] = []
    cur: BaseException | None = e
    while cur is not None:
        parts.append(f"{type(cur).__name__}: {cur}")
        nxt = getattr(cur, "__cause__", None) or getattr(cur, "__context__", None)
        cur = nxt if isinstance(nxt, BaseException) else None
    return " <- ".join(parts)


class WechatClient:
    """Async issuer backed by a shared ``httpx.AsyncClient``."""

    def __init__(self, http: httpx.AsyncClient, api_base: str = "https://api.weixin.qq.com") -> None:
        self.http = http
        self.api_base = api_base.rstrip("/")

    async def fetch_access_token(
        self, app: AppCredentials, force: bool = False
    ) -> IssuedCredential:
        payload = await self._request(
            "POST",
            STABLE_TOKEN_PATH,
            json_body={
                "grant_type": "client_credential",
                "appid": app.app_id,
                "secret": app.app_secret,
                "force_refresh": force,
            },
        )
        return self._parse(payload, "access_token", "POST", STABLE_TOKEN_PATH)

    async def fetch_ticket(self, access_token: str) -> IssuedCredential:
        payload = await self._request(
            "GET",
            JSAPI_TICKET_PATH,
            params={"access_token": access_token, "type": "jsapi"},
        )
        return self._parse(payload, "ticket", "GET", JSAPI_TICKET_PATH)

    async def aclose(self) -> None:
        await self.http.aclose()

    def _parse(
        self, payload: dict[str, Any], value_field: str, method: str, path: str
    ) -> IssuedCredential:
        """Shape-check the body; a wrongly typed field is a transport fault, not a rejection."""
        try:
            return IssuedCredential.from_payload(payload, value_field)
        except ValidationError as e:
            safe_url = _redact_url(f"{self.api_base}{path}")
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise IssuerTransportError(f"{method} {safe_url}: malformed response body ({fields})") from e

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> dict[str, Any]:
        url = f"{self.api_base}{path}"
        safe_url = _redact_url(url)
        try:
            resp = await self.http.request(method, url, params=params, json=json_body)
        except httpx.HTTPError as e:
            logger.warning("WeChat request failed url={} err_chain={}", safe_url, _format_exc_chain(e))
            raise IssuerTransportError(f"{method} {safe_url}: {type(e).__name__}: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise IssuerTransportError(f"{method} {safe_url}: HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise IssuerTransportError(f"{method} {safe_url}: response is not JSON") from e
        if not isinstance(payload, dict):
            raise IssuerTransportError(f"{method} {safe_url}: unexpected response body")
        return payload
