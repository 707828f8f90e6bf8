"""Mutation replay queue: offline reports awaiting submission."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol
from uuid import uuid4

from field_sync.cache.query_cache import REPORT_FAMILIES
from field_sync.connectivity import ConnectivitySignal
from field_sync.core.mutation import SUBMITTABLE, MutationStatus, QueuedMutation, ReportPayload
from field_sync.errors import (
    ConnectivityRequiredError,
    MutationInFlightError,
    MutationNotFoundError,
)
from field_sync.remote.client import FileUpload
from field_sync.reports.translate import to_remote_variables
from field_sync.storage.base import REPORTS, LocalStore
from field_sync.utils.timeutils import utcnow

if TYPE_CHECKING:
    from field_sync.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)

INTERRUPTED_REASON = "interrupted"

# Seconds a syncing claim is honored before start-up recovery may reclaim it
DEFAULT_CLAIM_LEASE = 60.0

_STATE_FIELDS = ("sync_status", "synced_at", "last_error", "claim_token", "claimed_at")


class ReportSink(Protocol):
    """Remote surface that creates reports."""

    async def create_fixed_asset_report(
        self, variables: dict[str, Any], files: Sequence[FileUpload] = ()
    ) -> dict[str, Any]: ...


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of one submission request.

    Attributes:
        mutation: The record as persisted after the call
        attempted: False when the record was already synced (no-op)
        remote_record: What the remote returned on success
    """

    mutation: QueuedMutation
    attempted: bool = True
    remote_record: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        return self.mutation.is_synced

    @property
    def error(self) -> str | None:
        return self.mutation.last_error


class MutationQueue:
    """
    Append-mostly log of reports created offline.

    Each record advances pending -> syncing -> synced | error. A synced
    record never changes again; an errored record stays until retried.
    The pending|error -> syncing claim is a compare-and-set in the store
    that stamps the record with a claim token, and the outcome is written
    only while that token still holds, so two processes sharing the store
    cannot submit the same record twice.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: ReportSink,
        connectivity: ConnectivitySignal,
        *,
        query_cache: QueryCache | None = None,
        now: Callable[[], datetime] = utcnow,
        claim_lease: float = DEFAULT_CLAIM_LEASE,
    ) -> None:
        self._store = store
        self._remote = remote
        self._connectivity = connectivity
        self._query_cache = query_cache
        self._now = now
        self._claim_lease = claim_lease

    async def enqueue(
        self, payload: ReportPayload, created_at: datetime | None = None
    ) -> QueuedMutation:
        """Record a new offline report as pending."""
        mutation = QueuedMutation.create(payload, created_at=created_at or self._now())
        await self._store.put(REPORTS, mutation.id, mutation.to_dict())
        logger.info(
            "Queued report %s (%d items, %d attachments)",
            mutation.id,
            len(payload.items),
            payload.attachment_count,
        )
        return mutation

    async def get(self, mutation_id: str) -> QueuedMutation | None:
        data = await self._store.get(REPORTS, mutation_id)
        return QueuedMutation.from_dict(data) if data else None

    async def list_reports(self, status: MutationStatus | None = None) -> list[QueuedMutation]:
        """All queued reports, newest first, optionally filtered by status."""
        mutations = [QueuedMutation.from_dict(d) for d in await self._store.get_all(REPORTS)]
        if status is not None:
            mutations = [m for m in mutations if m.sync_status == status]
        return sorted(mutations, key=lambda m: m.created_at, reverse=True)

    async def submit(self, mutation_id: str) -> SubmitResult:
        """
        Replay one queued report against the remote system.

        Remote failures are not raised: they are persisted on the record as
        the error state and returned.

        Raises:
            ConnectivityRequiredError: While offline (no state change)
            MutationNotFoundError: Unknown id
            MutationInFlightError: Another submission holds the record
        """
        if not self._connectivity.is_online:
            raise ConnectivityRequiredError()

        current = await self.get(mutation_id)
        if current is None:
            raise MutationNotFoundError(mutation_id)
        if current.is_synced:
            logger.info("Report %s already synced, nothing to do", mutation_id)
            return SubmitResult(mutation=current, attempted=False)
        if current.sync_status == MutationStatus.SYNCING:
            raise MutationInFlightError(mutation_id)

        token = str(uuid4())
        claimed = await self._store.compare_and_set(
            REPORTS,
            mutation_id,
            "sync_status",
            [s.value for s in SUBMITTABLE],
            {
                "sync_status": MutationStatus.SYNCING.value,
                "last_error": None,
                "claim_token": token,
                "claimed_at": self._now().isoformat(),
            },
        )
        if not claimed:
            latest = await self.get(mutation_id)
            if latest is not None and latest.is_synced:
                return SubmitResult(mutation=latest, attempted=False)
            raise MutationInFlightError(mutation_id)

        mutation = await self.get(mutation_id)
        if mutation is None:
            raise MutationNotFoundError(mutation_id)
        if mutation.claim_token != token:
            raise MutationInFlightError(mutation_id)

        try:
            variables, files = to_remote_variables(mutation)
            created = await self._remote.create_fixed_asset_report(variables, files)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning("Submission of report %s failed: %s", mutation_id, reason, exc_info=True)
            failed = mutation.with_status(MutationStatus.ERROR, last_error=reason)
            return SubmitResult(mutation=await self._release(token, failed))

        synced = mutation.with_status(MutationStatus.SYNCED, synced_at=self._now())
        recorded = await self._release(token, synced)
        if self._query_cache is not None:
            self._query_cache.invalidate(REPORT_FAMILIES)

        logger.info("Report %s synced (remote id %s)", mutation_id, created.get("id"))
        return SubmitResult(mutation=recorded, remote_record=created)

    async def submit_all_pending(self) -> list[SubmitResult]:
        """Submit pending and errored reports one by one, oldest first.

        Stops as soon as connectivity is lost; records held by another
        submission are skipped.

        Raises:
            ConnectivityRequiredError: If offline before the first submission
        """
        if not self._connectivity.is_online:
            raise ConnectivityRequiredError()

        candidates = [
            m for m in await self.list_reports() if m.sync_status in SUBMITTABLE
        ]
        candidates.sort(key=lambda m: m.created_at)

        results: list[SubmitResult] = []
        for mutation in candidates:
            if not self._connectivity.is_online:
                logger.info("Connectivity lost, stopping after %d submissions", len(results))
                break
            try:
                results.append(await self.submit(mutation.id))
            except (MutationInFlightError, MutationNotFoundError) as e:
                logger.info("Skipping report %s: %s", mutation.id, e)

        succeeded = sum(1 for r in results if r.success)
        logger.info("Submitted %d/%d queued reports", succeeded, len(candidates))
        return results

    async def recover_interrupted(self) -> int:
        """Move records whose syncing claim outlived the lease to error.

        A claim younger than the lease may belong to a live submission in
        another process and is left alone.

        Returns:
            Number of records recovered
        """
        cutoff = self._now() - timedelta(seconds=self._claim_lease)
        recovered = 0
        for mutation in await self.list_reports(MutationStatus.SYNCING):
            if mutation.claimed_at is not None and mutation.claimed_at > cutoff:
                continue
            interrupted = mutation.with_status(MutationStatus.ERROR, last_error=INTERRUPTED_REASON)
            if mutation.claim_token is not None:
                field, expected = "claim_token", [mutation.claim_token]
            else:
                field, expected = "sync_status", [MutationStatus.SYNCING.value]
            moved = await self._store.compare_and_set(
                REPORTS, mutation.id, field, expected, _state_updates(interrupted)
            )
            if moved:
                recovered += 1
        if recovered:
            logger.warning("Recovered %d interrupted report submissions", recovered)
        return recovered

    async def _release(self, token: str, final: QueuedMutation) -> QueuedMutation:
        """Record the outcome if the claim identified by ``token`` still holds."""
        written = await self._store.compare_and_set(
            REPORTS, final.id, "claim_token", [token], _state_updates(final)
        )
        if written:
            return final
        logger.warning(
            "Claim on report %s was lost before its %s outcome was recorded",
            final.id,
            final.sync_status.value,
        )
        return await self.get(final.id) or final


def _state_updates(mutation: QueuedMutation) -> dict[str, Any]:
    data = mutation.to_dict()
    return {name: data[name] for name in _STATE_FIELDS}
