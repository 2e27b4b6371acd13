"""Refresh-and-cache policy for shared credentials.

One execution handles one credential kind:

1. resolve enablement and scope from the config provider
2. read the cached value and its TTL from the shared store
3. stop if the value is present and its TTL is above the staleness threshold
4. for dependent kinds, stop if the dependency is not cached (its own job
   refreshes it; it is never refreshed from here)
5. fetch from the issuer and, on success, write value + issuer lifetime

Failures never mutate the store and never propagate: they are logged and
the next scheduled execution retries. Several hosts may run the same
execution concurrently against the same store; the read-then-write race
costs at most a duplicate upstream fetch, since any fresh value is as good
as another. ``refresh_lock_enabled`` narrows that window with a best-effort
``SET NX`` lock.
"""

from __future__ import annotations

import time

from token_keeper.core.enums import CredentialKind, RefreshOutcome
from token_keeper.core.exceptions import (
    ConfigUnavailable,
    CredentialRefreshError,
    DependencyMissing,
    IssuerRejected,
)
from token_keeper.core.logger import logger
from token_keeper.core.metrics import credential_issuer_latency_seconds, credential_refresh_total
from token_keeper.services.context import ServiceContext
from token_keeper.services.credentials.keys import credential_key, refresh_lock_key
from token_keeper.services.credentials.models import Credential, IssuedCredential
from token_keeper.services.credentials.registry import CredentialDescriptor, get_descriptor
from token_keeper.services.credentials.store import CredentialStore
from token_keeper.services.system.wechat_config import WechatConfig


async def refresh_credential(
    ctx: ServiceContext,
    kind: CredentialKind,
    *,
    force: bool = False,
) -> RefreshOutcome:
    """Run one refresh execution for ``kind``.

    ``force`` skips the freshness test and asks the issuer for a forced
    refresh; scheduled executions never set it.
    """
    descriptor = get_descriptor(kind)
    outcome = await _refresh(ctx, descriptor, force=force)
    credential_refresh_total.labels(kind=kind.value, outcome=outcome.value).inc()
    return outcome


async def read_credential(
    store: CredentialStore, kind: CredentialKind, scope_id: str, key: str
) -> Credential:
    value, found = await store.read(key)
    ttl = await store.time_to_live(key)
    if not found:
        value = ""
    return Credential(kind=kind, scope_id=scope_id, value=value, remaining_ttl=ttl)


def resolve_scope_id(descriptor: CredentialDescriptor, wechat_config: WechatConfig) -> str:
    scope_id = descriptor.app(wechat_config).app_id.strip()
    if not scope_id:
        raise ConfigUnavailable(f"{descriptor.name} is enabled but has no app id configured")
    return scope_id


async def _refresh(
    ctx: ServiceContext,
    descriptor: CredentialDescriptor,
    *,
    force: bool,
) -> RefreshOutcome:
    kind = descriptor.kind
    namespace = ctx.settings.credential_namespace

    try:
        wechat_config = await ctx.config_provider.get_config()
    except ConfigUnavailable as e:
        logger.error("[CREDENTIAL_REFRESH] {}: config unavailable: {}", descriptor.name, e.message)
        return RefreshOutcome.FAILED

    if not descriptor.is_enabled(wechat_config):
        return RefreshOutcome.DISABLED

    scope_id = ""
    try:
        scope_id = resolve_scope_id(descriptor, wechat_config)
        key = credential_key(namespace, descriptor.tag, scope_id)

        current = await read_credential(ctx.store, kind, scope_id, key)
        if not force and current.is_fresh(descriptor.staleness_threshold_seconds):
            return RefreshOutcome.FRESH

        dependency_value = ""
        if descriptor.depends_on is not None:
            dependency_value = await _read_dependency(ctx, descriptor.depends_on, wechat_config)

        lock_key = None
        if ctx.settings.refresh_lock_enabled:
            lock_key = refresh_lock_key(namespace, descriptor.tag, scope_id)
            if not await ctx.store.try_lock(lock_key, ctx.settings.refresh_lock_ttl_seconds):
                logger.debug(
                    "[CREDENTIAL_REFRESH] {} app={} is being refreshed by another instance",
                    descriptor.name,
                    scope_id,
                )
                return RefreshOutcome.LOCKED

        try:
            issued = await _fetch(ctx, descriptor, wechat_config, dependency_value, force)
            await ctx.store.write(key, issued.value, issued.expires_in)
        finally:
            if lock_key is not None:
                await ctx.store.release_lock(lock_key)

    except DependencyMissing as e:
        logger.info("[CREDENTIAL_REFRESH] {} app={} deferred: {}", descriptor.name, scope_id, e.message)
        return RefreshOutcome.DEPENDENCY_MISSING
    except IssuerRejected as e:
        logger.error(
            "[CREDENTIAL_REFRESH] {} app={} rejected by issuer: errcode={} errmsg={}",
            descriptor.name,
            scope_id,
            e.errcode,
            e.errmsg,
        )
        return RefreshOutcome.FAILED
    except CredentialRefreshError as e:
        logger.error(
            "[CREDENTIAL_REFRESH] {} app={} failed ({}): {}",
            descriptor.name,
            scope_id,
            type(e).__name__,
            e.message,
        )
        return RefreshOutcome.FAILED

    logger.info(
        "[CREDENTIAL_REFRESH] {} app={} refreshed (expires_in={}s, previous_ttl={}s)",
        descriptor.name,
        scope_id,
        issued.expires_in,
        current.remaining_ttl if current.is_present else None,
    )
    return RefreshOutcome.REFRESHED


async def _read_dependency(
    ctx: ServiceContext, dependency: CredentialKind, wechat_config: WechatConfig
) -> str:
    dep_descriptor = get_descriptor(dependency)
    dep_scope = resolve_scope_id(dep_descriptor, wechat_config)
    dep_key = credential_key(ctx.settings.credential_namespace, dep_descriptor.tag, dep_scope)
    value, found = await ctx.store.read(dep_key)
    if not found or not value:
        raise DependencyMissing(f"{dep_descriptor.name} for app={dep_scope} is not cached")
    return value


async def _fetch(
    ctx: ServiceContext,
    descriptor: CredentialDescriptor,
    wechat_config: WechatConfig,
    dependency_value: str,
    force: bool,
) -> IssuedCredential:
    started = time.perf_counter()
    try:
        issued = await descriptor.fetch(
            ctx.issuer, descriptor.app(wechat_config), dependency_value, force
        )
    finally:
        credential_issuer_latency_seconds.labels(kind=descriptor.kind.value).observe(
            time.perf_counter() - started
        )

    if not issued.ok:
        raise IssuerRejected(issued.errcode, issued.errmsg)
    if not issued.value or issued.expires_in <= 0:
        raise IssuerRejected(0, f"empty credential (expires_in={issued.expires_in})")
    return issued
