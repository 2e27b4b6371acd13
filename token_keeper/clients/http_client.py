"""
HTTP client construction for upstream calls.

One ``httpx.AsyncClient`` is built per process at startup and owned by the
service context; nothing here is a module-level singleton.
"""

from typing import Any

import httpx

from token_keeper.config.settings import Config
from token_keeper.core.logger import logger


def create_http_client(settings: Config, **kwargs: Any) -> httpx.AsyncClient:
    """
    Build the issuer HTTP client

    Token endpoints answer small JSON bodies, so read/write timeouts are short
    and the pool is small.
    """
    options: dict[str, Any] = {
        "http2": False,
        "verify": True,
        "timeout": httpx.Timeout(
            connect=settings.http_connect_timeout,
            read=settings.http_read_timeout,
            write=settings.http_read_timeout,
            pool=5.0,
        ),
        "limits": httpx.Limits(
            max_connections=10,
            max_keepalive_connections=4,
            keepalive_expiry=30.0,
        ),
        "follow_redirects": False,
    }
    options.update(kwargs)

    client = httpx.AsyncClient(**options)
    logger.info(
        "HTTP client initialised (connect={}s, read={}s)",
        settings.http_connect_timeout,
        settings.http_read_timeout,
    )
    return client

