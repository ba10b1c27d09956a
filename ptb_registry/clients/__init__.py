"""
Registry Client Modules

Provides the HTTP client for the remote registry sheet.
"""

from .registry_client import (
    RegistryStoreClient,
    RegistryReadResult,
    RegistryWriteError,
)

__all__ = [
    "RegistryStoreClient",
    "RegistryReadResult",
    "RegistryWriteError",
]
