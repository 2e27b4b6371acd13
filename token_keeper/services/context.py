"""Process-wide services passed explicitly into every refresh execution."""

from __future__ import annotations

from dataclasses import dataclass

from token_keeper.clients.http_client import create_http_client
from token_keeper.clients.redis_client import create_redis_client
from token_keeper.clients.wechat_client import UpstreamIssuer, WechatClient
from token_keeper.config.settings import Config
from token_keeper.core.logger import logger
from token_keeper.services.credentials.store import CredentialStore, RedisCredentialStore
from token_keeper.services.system.wechat_config import ConfigProvider, build_config_provider


@dataclass(slots=True)
class ServiceContext:
    """Settings plus the three collaborators of the refresh policy.

    Built once at startup and closed at shutdown; lifetime is the process.
    """

    settings: Config
    config_provider: ConfigProvider
    store: CredentialStore
    issuer: UpstreamIssuer

    async def aclose(self) -> None:
        for resource in (self.issuer, self.store):
            closer = getattr(resource, "aclose", None)
            if closer is not None:
                await closer()


async def build_context(settings: Config) -> ServiceContext:
    """Connect Redis, build the issuer client and pick the config source."""
    redis = await create_redis_client(settings.redis_url)
    http = create_http_client(settings)
    ctx = ServiceContext(
        settings=settings,
        config_provider=build_config_provider(settings),
        store=RedisCredentialStore(redis),
        issuer=WechatClient(http, settings.wechat_api_base),
    )
    logger.info("Service context ready (namespace={})", settings.credential_namespace)
    return ctx
