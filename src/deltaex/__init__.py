"""deltaex: Delta Exchange derivatives adapter."""

from .settings import Settings
from .exchanges import DeltaClient, create_delta_client

__all__ = [
    "Settings",
    "DeltaClient",
    "create_delta_client",
]
