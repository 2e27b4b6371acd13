"""
Refresh error taxonomy.

Collaborators (config provider, store, issuer) raise these; the refresh
policy catches every one of them, logs it and ends the execution. None of
them is fatal: the next scheduled run retries.
"""

from __future__ import annotations


class CredentialRefreshError(Exception):
    """Base class for every recoverable refresh failure."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigUnavailable(CredentialRefreshError):
    """Enablement flags or app identifiers cannot be resolved."""


class StoreUnavailable(CredentialRefreshError):
    """Shared cache read, TTL or write failed at the transport level."""


class DependencyMissing(CredentialRefreshError):
    """A credential this kind depends on is not in the cache."""


class IssuerTransportError(CredentialRefreshError):
    """Network failure or timeout while talking to the issuer."""


class IssuerRejected(CredentialRefreshError):
    """Issuer answered with a nonzero application error code."""

    def __init__(self, errcode: int, errmsg: str) -> None:
        self.errcode = errcode
        self.errmsg = errmsg
        super().__init__(f"errcode={errcode} errmsg={errmsg}")
