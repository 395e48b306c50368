"""Backend Service adapters (REST row store, auth, privileged functions)."""

from fiscalhub.infrastructure.backend._rest_client import BackendRESTClient
from fiscalhub.infrastructure.backend.client import (
    close_backend,
    get_backend_client,
    init_backend,
)
from fiscalhub.infrastructure.backend.provisioning import BackendProvisioningClient

__all__ = [
    "BackendProvisioningClient",
    "BackendRESTClient",
    "close_backend",
    "get_backend_client",
    "init_backend",
]
