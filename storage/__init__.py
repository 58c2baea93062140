"""
Credential persistence.
"""

from .credential_store import (
    CredentialStore,
    CredentialError,
    CredentialUnavailableError,
    CredentialNotFoundError,
    CredentialExpiredError,
    CredentialCorruptError,
    CredentialStoreError
)

__all__ = [
    "CredentialStore",
    "CredentialError",
    "CredentialUnavailableError",
    "CredentialNotFoundError",
    "CredentialExpiredError",
    "CredentialCorruptError",
    "CredentialStoreError"
]
