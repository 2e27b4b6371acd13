"""Credential kind registry.

The only place kind-specific knowledge lives: which config flag enables a
kind, which app it is scoped to, its cache key tag, how it is fetched and
which other kind it depends on. The refresh policy is generic over
``CredentialDescriptor``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from token_keeper.clients.wechat_client import UpstreamIssuer
from token_keeper.config.settings import STALENESS_THRESHOLD_SECONDS
from token_keeper.core.enums import CredentialKind
from token_keeper.services.credentials.models import IssuedCredential
from token_keeper.services.system.wechat_config import AppCredentials, WechatConfig

# (issuer, app, dependency value, force) -> issued credential
FetchFn = Callable[[UpstreamIssuer, AppCredentials, str, bool], Awaitable[IssuedCredential]]


@dataclass(frozen=True, slots=True)
class CredentialDescriptor:
    kind: CredentialKind
    tag: str
    name: str
    is_enabled: Callable[[WechatConfig], bool]
    app: Callable[[WechatConfig], AppCredentials]
    fetch: FetchFn
    depends_on: CredentialKind | None = None
    staleness_threshold_seconds: int = STALENESS_THRESHOLD_SECONDS


async def _fetch_access_token(
    issuer: UpstreamIssuer, app: AppCredentials, _dependency: str, force: bool
) -> IssuedCredential:
    return await issuer.fetch_access_token(app, force=force)


async def _fetch_jsapi_ticket(
    issuer: UpstreamIssuer, _app: AppCredentials, dependency: str, _force: bool
) -> IssuedCredential:
    return await issuer.fetch_ticket(dependency)


REGISTRY: dict[CredentialKind, CredentialDescriptor] = {
    CredentialKind.PRIMARY_ACCESS_TOKEN: CredentialDescriptor(
        kind=CredentialKind.PRIMARY_ACCESS_TOKEN,
        tag="mat",
        name="mini-program access token",
        is_enabled=lambda cfg: cfg.mini_program_enabled,
        app=lambda cfg: cfg.mini_program,
        fetch=_fetch_access_token,
    ),
    CredentialKind.SECONDARY_ACCESS_TOKEN: CredentialDescriptor(
        kind=CredentialKind.SECONDARY_ACCESS_TOKEN,
        tag="pat",
        name="official-account access token",
        is_enabled=lambda cfg: cfg.official_account_enabled,
        app=lambda cfg: cfg.official_account,
        fetch=_fetch_access_token,
    ),
    CredentialKind.DEPENDENT_TICKET: CredentialDescriptor(
        kind=CredentialKind.DEPENDENT_TICKET,
        tag="jst",
        name="official-account jsapi ticket",
        is_enabled=lambda cfg: cfg.official_account_enabled,
        app=lambda cfg: cfg.official_account,
        fetch=_fetch_jsapi_ticket,
        depends_on=CredentialKind.SECONDARY_ACCESS_TOKEN,
    ),
}


def get_descriptor(kind: CredentialKind) -> CredentialDescriptor:
    return REGISTRY[kind]
