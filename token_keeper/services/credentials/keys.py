"""Shared-cache key schema.

Key schema
----------
{ns}:mat:{app_id}          STRING  -> mini-program access token      (TTL: expires_in)
{ns}:pat:{app_id}          STRING  -> official-account access token  (TTL: expires_in)
{ns}:jst:{app_id}          STRING  -> official-account jsapi ticket  (TTL: expires_in)
{ns}:lock:{tag}:{app_id}   STRING  -> "1"  refresh lock (optional)   (TTL: lock ttl)

Tags never contain ``:`` so a key maps back to exactly one (tag, app_id).
"""

from __future__ import annotations


def credential_key(namespace: str, tag: str, scope_id: str) -> str:
    if not scope_id:
        raise ValueError("scope_id must not be empty")
    return f"{namespace}:{tag}:{scope_id}"


def refresh_lock_key(namespace: str, tag: str, scope_id: str) -> str:
    return f"{namespace}:lock:{tag}:{scope_id}"
