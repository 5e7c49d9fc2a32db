"""
Sync Engine Core
================

Main orchestrator for replicating source tables into the warehouse.
Supports Full and Incremental modes.

Per table, the engine:
1. captures the source clock as the next checkpoint, before querying,
2. checks whether the table has the tracking column,
3. extracts either every row or only rows newer than the last checkpoint,
4. creates the destination table if needed and loads the rows in batches,
5. records the captured checkpoint if the table is trackable.

Checkpoints are read once at the start of a run and written once at the end.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import SyncConfig
from .connectors.base import DestinationConnector, SourceConnector
from .loader import BatchLoader, BatchResult
from .sanitizer import sanitize_row
from .schema import SchemaReconciler
from .state import CheckpointStore

logger = logging.getLogger(__name__)

MODE_FULL = "full"
MODE_INCREMENTAL = "incremental"


@dataclass
class TableDescriptor:
    name: str
    has_trackable_column: bool


@dataclass
class TableResult:
    """Outcome of one table's pass."""

    table: str
    mode: str = MODE_FULL
    status: str = "pending"
    previous_checkpoint: Optional[str] = None
    new_checkpoint: Optional[str] = None
    has_tracking_column: bool = False
    rows_extracted: int = 0
    rows_loaded: int = 0
    table_created: bool = False
    batches: List[BatchResult] = field(default_factory=list)
    error: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @property
    def failed_batches(self) -> List[BatchResult]:
        return [b for b in self.batches if not b.succeeded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "mode": self.mode,
            "status": self.status,
            "previous_checkpoint": self.previous_checkpoint,
            "new_checkpoint": self.new_checkpoint,
            "has_tracking_column": self.has_tracking_column,
            "rows_extracted": self.rows_extracted,
            "rows_loaded": self.rows_loaded,
            "table_created": self.table_created,
            "batches": [b.to_dict() for b in self.batches],
            "error": self.error,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass
class RunSummary:
    """Outcome of a whole run."""

    batch_id: str
    results: List[TableResult] = field(default_factory=list)
    state_saved: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count("success")

    @property
    def partial(self) -> int:
        return self._count("partial")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def total_rows_loaded(self) -> int:
        return sum(r.rows_loaded for r in self.results)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "state_saved": self.state_saved,
            "tables_succeeded": self.succeeded,
            "tables_partial": self.partial,
            "tables_failed": self.failed,
            "total_rows_loaded": self.total_rows_loaded,
            "results": [r.to_dict() for r in self.results],
        }


class SyncEngine:
    """
    Incremental sync engine for moving rows from a relational source into a warehouse.

    Supports:
    - Full sync: extract the entire table
    - Incremental sync: extract rows whose tracking column is newer than the
      table's checkpoint
    """

    def __init__(
        self,
        config: SyncConfig,
        source: SourceConnector,
        destination: DestinationConnector,
        checkpoint_store: Optional[CheckpointStore] = None,
        reconciler: Optional[SchemaReconciler] = None,
        loader: Optional[BatchLoader] = None,
    ):
        """
        Initialize the sync engine.

        Args:
            config: Validated configuration
            source: Connected source connector
            destination: Connected destination connector
            checkpoint_store: Checkpoint persistence, defaults to config.state_file
            reconciler: Schema reconciler, defaults to one over `destination`
            loader: Batch loader, defaults to one over `destination`
        """
        self.config = config
        self.source = source
        self.destination = destination
        self.checkpoint_store = checkpoint_store or CheckpointStore(config.state_file)
        self.reconciler = reconciler or SchemaReconciler(destination)
        self.loader = loader or BatchLoader(destination)
        self.batch_id: Optional[str] = None

    def describe_table(self, table: str) -> TableDescriptor:
        """Look up the tracking column in the source catalog."""
        return TableDescriptor(
            name=table,
            has_trackable_column=self.source.has_column(table, self.config.tracking_column),
        )

    def sync_table(self, table: str, state: Dict[str, str]) -> TableResult:
        """
        Run one table's pass.

        Never raises: failures are recorded on the result and leave the
        table's checkpoint untouched.

        Args:
            table: Source and destination table name
            state: In-memory checkpoints, updated on success

        Returns:
            TableResult for the pass
        """
        result = TableResult(
            table=table,
            previous_checkpoint=state.get(table),
            start_time=datetime.now().isoformat(),
        )
        logger.info(f"Starting sync for {table} (last checkpoint: {result.previous_checkpoint})")

        try:
            checkpoint = self._sync(table, result)
        except Exception as e:
            logger.error(f"✗ Error processing table {table}: {e}", exc_info=True)
            result.status = "failed"
            result.error = str(e)
        else:
            if checkpoint is not None:
                state[table] = checkpoint
                result.new_checkpoint = checkpoint
            result.status = "partial" if result.failed_batches else "success"
            logger.info(
                f"✓ {table}: {result.mode} sync {result.status}, "
                f"{result.rows_loaded}/{result.rows_extracted} rows loaded"
            )

        result.end_time = datetime.now().isoformat()
        return result

    def _sync(self, table: str, result: TableResult) -> Optional[str]:
        """Extract and load one table; return the checkpoint to record, if any."""
        last_checkpoint = result.previous_checkpoint

        # Captured before the extraction query so rows inserted while we
        # extract are picked up by the next run.
        current_checkpoint = self.source.current_timestamp()
        logger.info(f"  Captured checkpoint for next sync: {current_checkpoint}")

        descriptor = self.describe_table(table)
        result.has_tracking_column = descriptor.has_trackable_column
        column = self.config.tracking_column

        if last_checkpoint and not self.config.fetch_all_rows and descriptor.has_trackable_column:
            result.mode = MODE_INCREMENTAL
            logger.info(f"  Fetching rows created since {last_checkpoint}")
            rows = self.source.fetch_since(table, column, last_checkpoint)
        else:
            result.mode = MODE_FULL
            if not descriptor.has_trackable_column:
                logger.warning(
                    f"  Table {table} does not have a {column} column. "
                    f"Future syncs will always fetch all rows."
                )
            logger.info("  Fetching all rows")
            rows = self.source.fetch_all(table)

        result.rows_extracted = len(rows)
        logger.info(f"  Fetched {len(rows)} rows from table {table} ({result.mode})")

        if rows:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"  First row to be inserted: {json.dumps(rows[0], default=str)}")
                logger.debug(f"  Cleaned first row: {json.dumps(sanitize_row(rows[0]))}")
            result.table_created = self.reconciler.ensure_table(table, rows)
            result.batches = self.loader.load(table, rows)
            result.rows_loaded = sum(b.row_count for b in result.batches if b.succeeded)
        else:
            logger.info(f"  No new data to sync for table {table}")

        if descriptor.has_trackable_column:
            return current_checkpoint
        logger.info(f"  Skipping sync state update for table {table} (no {column} column)")
        return None

    def run(self) -> RunSummary:
        """
        Sync every configured table, in order.

        Returns:
            RunSummary with one TableResult per table
        """
        started = datetime.now()
        self.batch_id = started.strftime("%Y%m%d_%H%M%S_%f")
        summary = RunSummary(batch_id=self.batch_id, start_time=started.isoformat())

        logger.info("=" * 60)
        logger.info("STARTING SYNC")
        logger.info(f"Batch ID: {self.batch_id}")
        logger.info(f"Full refresh: {self.config.fetch_all_rows}")
        logger.info("=" * 60)

        state = self.checkpoint_store.load()
        logger.info(f"Loaded checkpoints for {len(state)} tables")
        logger.info(f"Tables to sync: {len(self.config.tables)}")

        for table in self.config.tables:
            summary.results.append(self.sync_table(table, state))

        summary.state_saved = self.checkpoint_store.save(state)
        summary.end_time = datetime.now().isoformat()

        logger.info("=" * 60)
        logger.info("SYNC COMPLETE")
        logger.info(
            f"  Tables: {summary.succeeded} success, {summary.partial} partial, "
            f"{summary.failed} failed"
        )
        logger.info(f"  Total rows loaded: {summary.total_rows_loaded}")
        if not summary.state_saved:
            logger.warning("  Checkpoints were not saved; the next run repeats this one")
        logger.info("=" * 60)

        return summary
