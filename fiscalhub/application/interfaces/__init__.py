"""Application interfaces (ports) for the Backend Service."""

from fiscalhub.application.interfaces.backend import (
    IAuthClient,
    IBlobStore,
    IChangeFeed,
    IProvisioningClient,
    IRowStore,
)

__all__ = [
    "IAuthClient",
    "IBlobStore",
    "IChangeFeed",
    "IProvisioningClient",
    "IRowStore",
]
