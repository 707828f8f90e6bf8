"""Offline reports: the mutation replay queue."""

from field_sync.reports.queue import MutationQueue, SubmitResult
from field_sync.reports.translate import to_remote_variables

__all__ = ["MutationQueue", "SubmitResult", "to_remote_variables"]
