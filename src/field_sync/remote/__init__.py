"""Client for the remote RPC surface."""

from field_sync.remote.client import FileUpload, RemoteClient

__all__ = ["FileUpload", "RemoteClient"]
