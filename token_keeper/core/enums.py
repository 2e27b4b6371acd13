"""
Shared enum definitions.
"""

from enum import Enum


class CredentialKind(str, Enum):
    """Credential kinds kept fresh in the shared cache."""

    PRIMARY_ACCESS_TOKEN = "primary_access_token"  # mini-program access token
    SECONDARY_ACCESS_TOKEN = "secondary_access_token"  # official-account access token
    DEPENDENT_TICKET = "dependent_ticket"  # official-account jsapi ticket


class RefreshOutcome(str, Enum):
    """Result of a single refresh execution."""

    DISABLED = "disabled"
    FRESH = "fresh"
    REFRESHED = "refreshed"
    DEPENDENCY_MISSING = "dependency_missing"
    LOCKED = "locked"
    FAILED = "failed"
