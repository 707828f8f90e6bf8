"""Exception types raised by field-sync."""

from __future__ import annotations


class FieldSyncError(Exception):
    """Base class for field-sync errors."""


class ConnectivityRequiredError(FieldSyncError):
    """The operation needs network connectivity and the client is offline."""

    def __init__(self, message: str = "Synchronization requires an internet connection") -> None:
        super().__init__(message)


class MutationNotFoundError(FieldSyncError):
    """No queued mutation exists with the given id."""

    def __init__(self, mutation_id: str) -> None:
        super().__init__(f"Queued report {mutation_id} not found")
        self.mutation_id = mutation_id


class MutationInFlightError(FieldSyncError):
    """A submission for this mutation is already in progress."""

    def __init__(self, mutation_id: str) -> None:
        super().__init__(f"Queued report {mutation_id} is already being synchronized")
        self.mutation_id = mutation_id


class RemoteError(FieldSyncError):
    """Error from the remote RPC surface."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RemoteResponseError(RemoteError):
    """The remote answered, but not with the expected result shape."""


class StoreError(FieldSyncError):
    """The durable local store is unavailable or returned corrupt data."""


class FetchError(FieldSyncError):
    """A network fetch issued by the cache router failed."""
