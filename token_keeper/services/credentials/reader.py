"""Read-side API for the host service.

Hosts read credentials from the shared cache only; they never call the
issuer themselves, otherwise every instance would refresh independently.
"""

from __future__ import annotations

from token_keeper.core.enums import CredentialKind
from token_keeper.core.exceptions import ConfigUnavailable
from token_keeper.services.context import ServiceContext
from token_keeper.services.credentials.keys import credential_key
from token_keeper.services.credentials.models import Credential
from token_keeper.services.credentials.policy import read_credential, resolve_scope_id
from token_keeper.services.credentials.registry import get_descriptor


async def get_cached_credential(ctx: ServiceContext, kind: CredentialKind) -> Credential:
    """Return the cached credential for the configured app.

    Raises ``ConfigUnavailable`` when the kind is disabled or unconfigured
    and ``StoreUnavailable`` when the cache cannot be read.
    """
    descriptor = get_descriptor(kind)
    wechat_config = await ctx.config_provider.get_config()
    if not descriptor.is_enabled(wechat_config):
        raise ConfigUnavailable(f"{descriptor.name} is disabled")
    scope_id = resolve_scope_id(descriptor, wechat_config)
    key = credential_key(ctx.settings.credential_namespace, descriptor.tag, scope_id)
    return await read_credential(ctx.store, kind, scope_id, key)


async def get_credential_value(ctx: ServiceContext, kind: CredentialKind) -> str | None:
    """Cached value, or None when it is absent."""
    credential = await get_cached_credential(ctx, kind)
    return credential.value or None
