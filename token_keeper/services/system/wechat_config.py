"""WeChat tenant configuration: enablement flags and app credentials.

Three providers share one async ``get_config()`` interface:

- ``StaticConfigProvider``: a fixed ``WechatConfig`` (embedding, tests).
- ``EnvConfigProvider``: ``WECHAT_MINI_PROGRAM_*`` / ``WECHAT_OFFICIAL_ACCOUNT_*``
  environment variables.
- ``JsonFileConfigProvider``: a JSON file, re-read on every call so that
  enablement can be flipped without restarting the host.

Any failure to produce a config surfaces as ``ConfigUnavailable``.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from token_keeper.config.settings import Config
from token_keeper.core.exceptions import ConfigUnavailable
from token_keeper.core.logger import logger


class AppCredentials(BaseModel):
    """AppID / AppSecret pair of one WeChat application."""

    app_id: str = Field("", description="AppID, also the credential scope id")
    app_secret: str = Field("", repr=False, description="AppSecret")


class WechatConfig(BaseModel):
    """Resolved tenant configuration."""

    mini_program_enabled: bool = False
    official_account_enabled: bool = False
    mini_program: AppCredentials = Field(default_factory=AppCredentials)
    official_account: AppCredentials = Field(default_factory=AppCredentials)


@runtime_checkable
class ConfigProvider(Protocol):
    async def get_config(self) -> WechatConfig: ...


class StaticConfigProvider:
    def __init__(self, wechat_config: WechatConfig) -> None:
        self._config = wechat_config

    async def get_config(self) -> WechatConfig:
        return self._config


def _env_bool(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "false").strip().lower() in {"1", "true", "yes", "on"}


class EnvConfigProvider:
    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    async def get_config(self) -> WechatConfig:
        env = self._environ
        try:
            return WechatConfig(
                mini_program_enabled=_env_bool(env, "WECHAT_MINI_PROGRAM_ENABLED"),
                official_account_enabled=_env_bool(env, "WECHAT_OFFICIAL_ACCOUNT_ENABLED"),
                mini_program=AppCredentials(
                    app_id=env.get("WECHAT_MINI_PROGRAM_APP_ID", ""),
                    app_secret=env.get("WECHAT_MINI_PROGRAM_APP_SECRET", ""),
                ),
                official_account=AppCredentials(
                    app_id=env.get("WECHAT_OFFICIAL_ACCOUNT_APP_ID", ""),
                    app_secret=env.get("WECHAT_OFFICIAL_ACCOUNT_APP_SECRET", ""),
                ),
            )
        except ValidationError as e:
            raise ConfigUnavailable(f"invalid WeChat environment config: {e}") from e


class JsonFileConfigProvider:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def get_config(self) -> WechatConfig:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigUnavailable(f"cannot read {self.path}: {e}") from e
        except ValueError as e:
            raise ConfigUnavailable(f"{self.path} is not valid JSON: {e}") from e

        try:
            return WechatConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigUnavailable(f"{self.path} has an invalid WeChat config: {e}") from e


def build_config_provider(settings: Config) -> ConfigProvider:
    if settings.wechat_config_file:
        logger.info("WeChat config source: file {}", settings.wechat_config_file)
        return JsonFileConfigProvider(settings.wechat_config_file)
    logger.info("WeChat config source: environment")
    return EnvConfigProvider()
