"""Credential pool domain."""

from jetai.domains.credentials.categories import GROUP_PREFERENCES, ServiceCategory
from jetai.domains.credentials.manager import (
    Credential,
    CredentialError,
    CredentialPoolManager,
    NoCredentialAvailable,
    ServiceClientStatus,
)

__all__ = [
    "GROUP_PREFERENCES",
    "Credential",
    "CredentialError",
    "CredentialPoolManager",
    "NoCredentialAvailable",
    "ServiceCategory",
    "ServiceClientStatus",
]
