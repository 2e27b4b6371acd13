"""Credential data model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from token_keeper.core.enums import CredentialKind


@dataclass(frozen=True, slots=True)
class Credential:
    """A cached credential as read from the shared store.

    ``remaining_ttl`` is only meaningful when ``value`` is non-empty; an
    empty value is absent no matter what the TTL reading says.
    """

    kind: CredentialKind
    scope_id: str
    value: str = ""
    remaining_ttl: int = 0

    @property
    def is_present(self) -> bool:
        return bool(self.value)

    def is_fresh(self, threshold_seconds: int) -> bool:
        return self.is_present and self.remaining_ttl > threshold_seconds


class IssuedCredential(BaseModel):
    """Issuer answer for a token or ticket request."""

    model_config = ConfigDict(extra="ignore")

    value: str = Field("", repr=False, description="access_token or ticket")
    expires_in: int = Field(0, description="Lifetime in seconds")
    errcode: int = Field(0, description="Application error code, 0 on success")
    errmsg: str = Field("", description="Application error message")

    @classmethod
    def from_payload(cls, payload: dict[str, Any], value_field: str) -> IssuedCredential:
        """Parse the upstream JSON body, where the value sits under ``value_field``."""
        return cls.model_validate(
            {
                "value": payload.get(value_field) or "",
                "expires_in": payload.get("expires_in") or 0,
                "errcode": payload.get("errcode") or 0,
                "errmsg": payload.get("errmsg") or "",
            }
        )

    @property
    def ok(self) -> bool:
        return self.errcode == 0
