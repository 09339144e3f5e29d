"""
Destination Loaders.

The destination kind is resolved once per job by create_loader(); the
pipeline only ever talks to the DestinationLoader protocol.

Exports:
    DestinationLoader, LoadContext: Protocol and shared inputs
    WarehouseLoader, RelationalLoader: Implementations
    create_loader: Loader for a destination descriptor
"""


from core.models import RelationalDestination, WarehouseDestination
from exceptions import ContractViolationError

from .base import DestinationLoader, LoadContext
from .relational_loader import RelationalLoader
from .warehouse_loader import WarehouseLoader


def create_loader(destination, config=None, warehouse_client_factory=None, object_store=None) -> DestinationLoader:
    """
    Build the loader for a destination.

    Args:
        destination: WarehouseDestination or RelationalDestination
        config: AppConfig (defaults to get_config())
        warehouse_client_factory: Optional (project_id, location) -> WarehouseClient
        object_store: Optional ObjectStore for staging

    Raises:
        ContractViolationError: Unknown destination type
    """
    if config is None:
        from config import get_config
        config = get_config()

    if isinstance(destination, WarehouseDestination):
        return WarehouseLoader(
            destination,
            config.warehouse,
            client_factory=warehouse_client_factory,
            object_store=object_store
        )
    if isinstance(destination, RelationalDestination):
        return RelationalLoader(
            destination,
            config.database,
            preview_limit=config.vector.preview_feature_limit
        )
    raise ContractViolationError(f"No loader for destination type {type(destination).__name__}")


__all__ = [
    'DestinationLoader',
    'LoadContext',
    'WarehouseLoader',
    'RelationalLoader',
    'create_loader',
]
