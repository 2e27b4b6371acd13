"""
Keeper configuration.

Loaded from environment variables or a local ``.env`` file.
"""

import os
from pathlib import Path

# load .env if present
try:
    from dotenv import load_dotenv

    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)
except ImportError:
    # python-dotenv is optional; plain environment variables still work
    pass


# Remaining TTL at or below which a cached credential is refreshed.
STALENESS_THRESHOLD_SECONDS = 300


class Config:
    def __init__(self) -> None:
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_json = os.getenv("LOG_JSON", "false").lower() == "true"
        self.app_timezone = os.getenv("APP_TIMEZONE", "Asia/Shanghai")
        # Prometheus exposition port, 0 disables the endpoint
        self.metrics_port = int(os.getenv("METRICS_PORT", "0"))

        # Shared cache
        self.redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.credential_namespace = os.getenv("CREDENTIAL_NAMESPACE", "wc")

        # Refresh cadence. Must stay below the shortest credential lifetime
        # minus the staleness threshold, otherwise a credential can expire
        # between two runs.
        self.refresh_interval_seconds = int(os.getenv("REFRESH_INTERVAL_SECONDS", "60"))
        self.ticket_job_delay_seconds = int(os.getenv("TICKET_JOB_DELAY_SECONDS", "5"))

        # Best-effort cross-instance refresh lock (off by default)
        self.refresh_lock_enabled = os.getenv("REFRESH_LOCK_ENABLED", "false").lower() == "true"
        self.refresh_lock_ttl_seconds = int(os.getenv("REFRESH_LOCK_TTL_SECONDS", "30"))

        # Upstream issuer
        self.wechat_api_base = os.getenv("WECHAT_API_BASE", "https://api.weixin.qq.com").rstrip("/")
        self.http_connect_timeout = float(os.getenv("HTTP_CONNECT_TIMEOUT", "10.0"))
        self.http_read_timeout = float(os.getenv("HTTP_READ_TIMEOUT", "10.0"))

        # Tenant configuration source: JSON file when set, env vars otherwise
        self.wechat_config_file = os.getenv("WECHAT_CONFIG_FILE") or None

    def startup_warnings(self) -> list[str]:
        """Return configuration problems worth logging at startup."""
        warnings: list[str] = []
        if self.refresh_interval_seconds <= 0:
            warnings.append(
                f"REFRESH_INTERVAL_SECONDS={self.refresh_interval_seconds} is not positive"
            )
        elif self.refresh_interval_seconds >= STALENESS_THRESHOLD_SECONDS:
            warnings.append(
                f"REFRESH_INTERVAL_SECONDS={self.refresh_interval_seconds} is not shorter than "
                f"the {STALENESS_THRESHOLD_SECONDS}s staleness threshold; "
                "credentials may expire between refresh runs"
            )
        if self.refresh_lock_enabled and self.refresh_lock_ttl_seconds <= 0:
            warnings.append("REFRESH_LOCK_TTL_SECONDS must be positive when the lock is enabled")
        return warnings

    def log_startup_warnings(self) -> None:
        from token_keeper.core.logger import logger

        for warning in self.startup_warnings():
            logger.warning("[CONFIG] {}", warning)


config = Config()
