"""Shared fakes for the credential refresh tests."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from token_keeper.config.settings import Config
from token_keeper.core.exceptions import StoreUnavailable
from token_keeper.services.context import ServiceContext
from token_keeper.services.credentials.models import IssuedCredential
from token_keeper.services.system.wechat_config import (
    AppCredentials,
    StaticConfigProvider,
    WechatConfig,
)


class FakeStore:
    """In-memory CredentialStore; TTLs do not tick."""

    def __init__(self, entries: dict[str, tuple[str, int]] | None = None) -> None:
        self.entries: dict[str, tuple[str, int]] = dict(entries or {})
        self.locks: set[str] = set()
        self.reads: list[str] = []
        self.ttl_reads: list[str] = []
        self.writes: list[tuple[str, str, int]] = []
        self.fail_on: set[str] = set()

    def snapshot(self) -> dict[str, tuple[str, int]]:
        return dict(self.entries)

    def _check(self, op: str) -> None:
        if op in self.fail_on:
            raise StoreUnavailable(f"{op} failed: connection refused")

    async def read(self, key: str) -> tuple[str, bool]:
        self._check("read")
        self.reads.append(key)
        if key not in self.entries:
            return "", False
        return self.entries[key][0], True

    async def time_to_live(self, key: str) -> int:
        self._check("ttl")
        self.ttl_reads.append(key)
        if key not in self.entries:
            return 0
        return self.entries[key][1]

    async def write(self, key: str, value: str, ttl: int) -> None:
        self._check("write")
        self.writes.append((key, value, ttl))
        self.entries[key] = (value, ttl)

    async def try_lock(self, key: str, ttl: int) -> bool:
        self._check("lock")
        if key in self.locks:
            return False
        self.locks.add(key)
        return True

    async def release_lock(self, key: str) -> None:
        self.locks.discard(key)


@dataclass
class FakeIssuer:
    """Scripted UpstreamIssuer recording every call."""

    token_result: IssuedCredential | Exception = field(
        default_factory=lambda: IssuedCredential(value="T1", expires_in=7200)
    )
    ticket_result: IssuedCredential | Exception = field(
        default_factory=lambda: IssuedCredential(value="J1", expires_in=7200)
    )
    token_calls: list[tuple[str, bool]] = field(default_factory=list)
    ticket_calls: list[str] = field(default_factory=list)

    async def fetch_access_token(self, app: AppCredentials, force: bool = False) -> IssuedCredential:
        self.token_calls.append((app.app_id, force))
        if isinstance(self.token_result, Exception):
            raise self.token_result
        return self.token_result

    async def fetch_ticket(self, access_token: str) -> IssuedCredential:
        self.ticket_calls.append(access_token)
        if isinstance(self.ticket_result, Exception):
            raise self.ticket_result
        return self.ticket_result

    @property
    def total_calls(self) -> int:
        return len(self.token_calls) + len(self.ticket_calls)


class CountingConfigProvider(StaticConfigProvider):
    def __init__(self, wechat_config: WechatConfig) -> None:
        super().__init__(wechat_config)
        self.calls = 0

    async def get_config(self) -> WechatConfig:
        self.calls += 1
        return await super().get_config()


def make_wechat_config(
    *,
    mini_program_enabled: bool = True,
    official_account_enabled: bool = True,
    mini_app_id: str = "mini1",
    official_app_id: str = "app1",
) -> WechatConfig:
    return WechatConfig(
        mini_program_enabled=mini_program_enabled,
        official_account_enabled=official_account_enabled,
        mini_program=AppCredentials(app_id=mini_app_id, app_secret="mini-secret"),
        official_account=AppCredentials(app_id=official_app_id, app_secret="oa-secret"),
    )


@pytest.fixture()
def settings() -> Config:
    cfg = Config()
    cfg.credential_namespace = "wc"
    cfg.refresh_lock_enabled = False
    cfg.refresh_interval_seconds = 60
    cfg.ticket_job_delay_seconds = 5
    return cfg


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def issuer() -> FakeIssuer:
    return FakeIssuer()


@pytest.fixture()
def wechat_config() -> WechatConfig:
    return make_wechat_config()


@pytest.fixture()
def ctx(settings: Config, store: FakeStore, issuer: FakeIssuer, wechat_config: WechatConfig) -> ServiceContext:
    return ServiceContext(
        settings=settings,
        config_provider=CountingConfigProvider(wechat_config),
        store=store,
        issuer=issuer,
    )

