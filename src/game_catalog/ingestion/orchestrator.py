"""
Import orchestrator that drives an IGDB catalog import.

Pages through IGDB, skips games already in the catalog, maps and
stores each new game atomically, and keeps going when a batch or a
single record fails.
"""

import asyncio
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol
from uuid import UUID, uuid4

from game_catalog.catalog.store import CatalogStore
from game_catalog.config import resolve_page_size
from game_catalog.ingestion.client.errors import AuthError, CredentialError, ProtocolError
from game_catalog.ingestion.mapper import RecordMapper
from game_catalog.logger import get_logger, log_context


class CandidateSource(Protocol):
    """What the orchestrator needs from the IGDB client."""

    async def authenticate(self) -> str: ...

    async def fetch_candidates(
        self, limit: int = 50, offset: int = 0, min_rating: float = 0
    ) -> list[dict[str, Any]]: ...


class ImportState(str, Enum):
    """Phase of an import run."""

    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    FETCHING_BATCH = "fetching_batch"
    PROCESSING_RECORD = "processing_record"
    COMPLETED = "completed"


class RecordOutcome(str, Enum):
    IMPORTED = "imported"
    SKIPPED_DUPLICATE = "skipped_duplicate"


@dataclass
class ImportProgress:
    """Tracks progress of an import run."""

    target: int
    total_batches: int = 0
    processed: int = 0
    imported: int = 0
    skipped_duplicate: int = 0
    failed: int = 0
    batches_attempted: int = 0
    batches_failed: int = 0
    state: ImportState = ImportState.IDLE
    current_offset: int = 0
    current_external_id: int | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def percentage(self) -> float:
        """Get completion percentage."""
        if self.target == 0:
            return 100.0
        return (self.processed / self.target) * 100

    @property
    def elapsed_seconds(self) -> float:
        """Get elapsed time in seconds."""
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()


@dataclass
class ImportResult:
    """Result of a complete import run."""

    run_id: UUID
    started_at: datetime
    completed_at: datetime
    target: int
    imported: int
    skipped_duplicate: int
    failed: int
    processed: int
    batches_attempted: int
    batches_failed: int
    stopped_early: bool
    errors: list[dict[str, Any]]

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    def summary_rows(self) -> list[tuple[str, int]]:
        """Metric/count rows for the final report."""
        return [
            ("Games Imported", self.imported),
            ("Games Skipped (duplicate)", self.skipped_duplicate),
            ("Games Failed", self.failed),
            ("Total Processed", self.processed),
        ]


class ImportOrchestrator:
    """
    Batch import state machine.

    Idle -> Authenticating -> FetchingBatch -> ProcessingRecord ... -> Completed.
    The outer loop runs at most ceil(count / batch_size) times and each
    page holds at most batch_size records, so a run always completes.
    """

    def __init__(
        self,
        *,
        client: CandidateSource,
        store: CatalogStore,
        mapper: RecordMapper | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._mapper = mapper or RecordMapper()
        self._logger = get_logger(__name__, component="orchestrator")

    async def run(
        self,
        *,
        count: int,
        offset: int = 0,
        min_rating: float = 0,
        batch_size: int = 50,
        on_progress: Callable[[ImportProgress], None] | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> ImportResult:
        """
        Import up to count games starting at offset.

        Args:
            count: Target number of processed games (imported + skipped)
            offset: Starting offset into the IGDB result set
            min_rating: Minimum total_rating filter
            batch_size: Games per request (capped at 500)
            on_progress: Called after every state change that matters to a UI
            stop_event: When set, the run stops before the next record

        Returns:
            ImportResult: Counts and errors for the run

        Raises:
            CredentialError: If authentication fails before any batch
            AuthError: If IGDB rejects the token before any batch succeeded
        """
        run_id = uuid4()
        with log_context(run_id=str(run_id)):
            return await self._run(
                run_id,
                count=count,
                offset=offset,
                min_rating=min_rating,
                batch_size=batch_size,
                on_progress=on_progress,
                stop_event=stop_event,
            )

    async def _run(
        self,
        run_id: UUID,
        *,
        count: int,
        offset: int,
        min_rating: float,
        batch_size: int,
        on_progress: Callable[[ImportProgress], None] | None,
        stop_event: asyncio.Event | None,
    ) -> ImportResult:
        batch_size = resolve_page_size(batch_size)
        total_batches = math.ceil(count / batch_size) if count > 0 else 0
        errors: list[dict[str, Any]] = []

        progress = ImportProgress(target=count, total_batches=total_batches)
        progress.current_offset = offset

        self._logger.info(
            "Starting import",
            count=count,
            offset=offset,
            min_rating=min_rating,
            batch_size=batch_size,
            total_batches=total_batches,
        )

        self._set_state(progress, ImportState.AUTHENTICATING, on_progress)
        await self._client.authenticate()

        any_batch_fetched = False
        stopped_early = False

        for batch in range(total_batches):
            if progress.processed >= count:
                break
            if stop_event is not None and stop_event.is_set():
                stopped_early = True
                break

            limit = min(batch_size, count - progress.processed)
            progress.batches_attempted += 1
            self._set_state(progress, ImportState.FETCHING_BATCH, on_progress)

            try:
                page = await self._client.fetch_candidates(
                    limit=limit,
                    offset=progress.current_offset,
                    min_rating=min_rating,
                )
            except (AuthError, CredentialError) as e:
                if not any_batch_fetched:
                    raise
                self._record_batch_failure(progress, batch, total_batches, e, errors)
                progress.current_offset += batch_size
                continue
            except ProtocolError as e:
                self._record_batch_failure(progress, batch, total_batches, e, errors)
                progress.current_offset += batch_size
                continue

            any_batch_fetched = True
            # Never process more than was asked for, even if upstream over-delivers
            page = page[:limit]

            if not page:
                self._logger.info("No more games available from IGDB", offset=progress.current_offset)
                break

            for record in page:
                if progress.processed >= count:
                    break
                if stop_event is not None and stop_event.is_set():
                    stopped_early = True
                    break

                self._set_state(progress, ImportState.PROCESSING_RECORD, None)
                progress.current_external_id = record.get("id") if isinstance(record, dict) else None

                try:
                    outcome = await self.import_one(record)
                except Exception as e:
                    progress.failed += 1
                    self._logger.error(
                        "Failed to import game",
                        igdb_id=progress.current_external_id,
                        name=record.get("name") if isinstance(record, dict) else None,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    errors.append(
                        {
                            "igdb_id": progress.current_external_id,
                            "stage": "record",
                            "error": str(e),
                        }
                    )
                    continue

                if outcome is RecordOutcome.IMPORTED:
                    progress.imported += 1
                else:
                    progress.skipped_duplicate += 1
                progress.processed += 1

                if on_progress:
                    on_progress(progress)

            if stopped_early:
                break

            progress.current_offset += len(page)

        self._set_state(progress, ImportState.COMPLETED, on_progress)

        result = ImportResult(
            run_id=run_id,
            started_at=progress.started_at,
            completed_at=datetime.now(timezone.utc),
            target=count,
            imported=progress.imported,
            skipped_duplicate=progress.skipped_duplicate,
            failed=progress.failed,
            processed=progress.processed,
            batches_attempted=progress.batches_attempted,
            batches_failed=progress.batches_failed,
            stopped_early=stopped_early,
            errors=errors,
        )

        self._logger.info(
            "Import complete",
            duration_seconds=round(result.duration_seconds, 2),
            imported=result.imported,
            skipped_duplicate=result.skipped_duplicate,
            failed=result.failed,
            processed=result.processed,
            batches_failed=result.batches_failed,
            stopped_early=stopped_early,
        )

        return result

    async def import_one(self, record: dict[str, Any]) -> RecordOutcome:
        """
        Import a single IGDB record.

        Returns:
            RecordOutcome: Whether the game was stored or already present

        Raises:
            MappingError: If the record cannot be mapped
            PersistenceError: If the atomic write fails
        """
        external_id = self._mapper.external_id(record)

        # Known ids are skipped before the rest of the record is looked at
        if await self._store.exists_by_external_id(external_id):
            self._logger.debug("Skipping duplicate", igdb_id=external_id)
            return RecordOutcome.SKIPPED_DUPLICATE

        game = self._mapper.parse(record)
        mapped = self._mapper.map(game)
        stored = await self._store.persist(mapped)

        self._logger.debug("Game imported", igdb_id=game.id, slug=stored.slug)
        return RecordOutcome.IMPORTED

    def _set_state(
        self,
        progress: ImportProgress,
        state: ImportState,
        on_progress: Callable[[ImportProgress], None] | None,
    ) -> None:
        progress.state = state
        if on_progress:
            on_progress(progress)

    def _record_batch_failure(
        self,
        progress: ImportProgress,
        batch: int,
        total_batches: int,
        error: Exception,
        errors: list[dict[str, Any]],
    ) -> None:
        progress.batches_failed += 1
        self._logger.error(
            "IGDB batch fetch failed",
            batch=f"{batch + 1}/{total_batches}",
            offset=progress.current_offset,
            error=str(error),
            error_type=type(error).__name__,
        )
        errors.append(
            {
                "batch": batch + 1,
                "offset": progress.current_offset,
                "stage": "batch",
                "error": str(error),
            }
        )
