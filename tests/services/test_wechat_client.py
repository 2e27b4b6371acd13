"""Tests for wechat_client.py: issuer HTTP calls."""

from __future__ import annotations

import json

import httpx
import pytest

from token_keeper.clients.wechat_client import UpstreamIssuer, WechatClient
from token_keeper.core.exceptions import IssuerTransportError
from token_keeper.services.system.wechat_config import AppCredentials

APP = AppCredentials(app_id="app1", app_secret="s3cret")


def _client(handler) -> WechatClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WechatClient(http, "https://api.weixin.qq.com")


def test_wechat_client_satisfies_protocol() -> None:
    assert isinstance(_client(lambda request: httpx.Response(200, json={})), UpstreamIssuer)


@pytest.mark.asyncio
async def test_fetch_access_token_posts_stable_token_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "T1", "expires_in": 7200})

    client = _client(handler)
    issued = await client.fetch_access_token(APP)

    assert issued.ok
    assert issued.value == "T1"
    assert issued.expires_in == 7200
    assert seen[0].method == "POST"
    assert seen[0].url.path == "/cgi-bin/stable_token"
    assert json.loads(seen[0].content) == {
        "grant_type": "client_credential",
        "appid": "app1",
        "secret": "s3cret",
        "force_refresh": False,
    }


@pytest.mark.asyncio
async def test_fetch_access_token_force_flag() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"access_token": "T2", "expires_in": 7200})

    await _client(handler).fetch_access_token(APP, force=True)

    assert bodies[0]["force_refresh"] is True


@pytest.mark.asyncio
async def test_fetch_access_token_error_code_is_returned_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errcode": 40001, "errmsg": "invalid credential"})

    issued = await _client(handler).fetch_access_token(APP)

    assert not issued.ok
    assert issued.errcode == 40001
    assert issued.errmsg == "invalid credential"
    assert issued.value == ""


@pytest.mark.asyncio
async def test_fetch_ticket_passes_access_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"errcode": 0, "errmsg": "ok", "ticket": "J1", "expires_in": 7200}
        )

    issued = await _client(handler).fetch_ticket("T1")

    assert issued.ok
    assert issued.value == "J1"
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/cgi-bin/ticket/getticket"
    assert seen[0].url.params["access_token"] == "T1"
    assert seen[0].url.params["type"] == "jsapi"


@pytest.mark.asyncio
async def test_network_error_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(IssuerTransportError):
        await _client(handler).fetch_access_token(APP)


@pytest.mark.asyncio
async def test_http_error_status_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(IssuerTransportError):
        await _client(handler).fetch_ticket("T1")


@pytest.mark.asyncio
async def test_non_json_body_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(IssuerTransportError):
        await _client(handler).fetch_access_token(APP)


@pytest.mark.asyncio
async def test_transport_error_message_hides_query_string() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    with pytest.raises(IssuerTransportError) as exc_info:
        await _client(handler).fetch_ticket("SECRET_TOKEN")

    assert "SECRET_TOKEN" not in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"access_token": "T1", "expires_in": "7200s"},
        {"access_token": 12345, "expires_in": 7200},
    ],
)
async def test_wrongly_typed_fields_raise_transport_error(body: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(IssuerTransportError) as exc_info:
        await _client(handler).fetch_access_token(APP)

    assert "malformed response body" in str(exc_info.value)
    assert "s3cret" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_wrongly_typed_ticket_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"errcode": 0, "ticket": "J1", "expires_in": "soon"})

    with pytest.raises(IssuerTransportError) as exc_info:
        await _client(handler).fetch_ticket("SECRET_TOKEN")

    assert "SECRET_TOKEN" not in str(exc_info.value)
