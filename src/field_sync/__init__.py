"""field-sync: offline synchronization engine for field data entry."""

from field_sync.app import FieldSyncApp
from field_sync.connectivity import ConnectivitySignal
from field_sync.utils.config import Config, get_config

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConnectivitySignal",
    "FieldSyncApp",
    "__version__",
    "get_config",
]
