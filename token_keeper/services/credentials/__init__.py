"""Shared credential refresh: registry, store, policy and scheduled jobs.

Re-exports the data model and store contract. The policy and reader live in
their own modules (``policy``, ``reader``) since they depend on the issuer
client, which itself depends on the data model.
"""

from token_keeper.services.credentials.models import Credential, IssuedCredential
from token_keeper.services.credentials.store import CredentialStore, RedisCredentialStore

__all__ = [
    "Credential",
    "CredentialStore",
    "IssuedCredential",
    "RedisCredentialStore",
]
