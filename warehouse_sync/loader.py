"""
Batch Loader
============

Loads rows into an existing destination table in fixed-size batches.

Each batch succeeds or fails on its own: a failed batch is logged and skipped,
and loading continues with the next one. Rows of a failed batch are not
retried by later runs once the table's checkpoint has advanced.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .connectors.base import DestinationConnector
from .sanitizer import sanitize_row

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
MAX_LOGGED_ERRORS = 3


@dataclass
class BatchResult:
    """Outcome of loading one batch."""

    batch_number: int
    row_count: int
    status: str = "success"
    error: Optional[str] = None
    row_errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_number": self.batch_number,
            "row_count": self.row_count,
            "status": self.status,
            "error": self.error,
            "row_errors": self.row_errors,
        }


class BatchLoader:
    """
    Sanitizes and inserts rows batch by batch, in input order.
    """

    def __init__(self, destination: DestinationConnector, batch_size: int = BATCH_SIZE):
        self.destination = destination
        self.batch_size = batch_size

    def load(self, table: str, rows: List[Dict[str, Any]]) -> List[BatchResult]:
        """
        Load rows into `table`.

        Args:
            table: Destination table (must already exist)
            rows: Raw source rows

        Returns:
            One BatchResult per batch, in order
        """
        results = []
        for start in range(0, len(rows), self.batch_size):
            batch_number = start // self.batch_size + 1
            batch = [sanitize_row(row) for row in rows[start:start + self.batch_size]]
            results.append(self._load_batch(table, batch_number, batch))

        failed = sum(1 for r in results if not r.succeeded)
        if failed:
            logger.warning(f"{failed} of {len(results)} batches failed for table {table}")
        return results

    def _load_batch(
        self, table: str, batch_number: int, batch: List[Dict[str, Any]]
    ) -> BatchResult:
        result = BatchResult(batch_number=batch_number, row_count=len(batch))
        try:
            row_errors = self.destination.insert_rows(table, batch)
        except Exception as e:
            result.status = "failed"
            result.error = str(e)
            result.row_errors = _error_details(getattr(e, "errors", None), batch)
        else:
            if not row_errors:
                logger.info(
                    f"Inserted batch {batch_number} ({len(batch)} rows) into table {table}"
                )
                return result
            result.status = "failed"
            result.error = f"{len(row_errors)} rows rejected"
            result.row_errors = _error_details(row_errors, batch)

        logger.error(
            f"Error inserting batch {batch_number} ({len(batch)} rows) for table {table}: "
            f"{result.error}"
        )
        if result.row_errors:
            logger.error(f"First few errors: {json.dumps(result.row_errors, default=str)}")
        else:
            logger.error("No detailed errors available")
        logger.info("Skipping failed batch and continuing...")
        return result


def _error_details(errors: Any, batch: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first few row-level errors, attaching the offending row."""
    if not errors or not isinstance(errors, (list, tuple)):
        return []

    details = []
    for entry in errors[:MAX_LOGGED_ERRORS]:
        if not isinstance(entry, dict):
            details.append({"errors": [str(entry)]})
            continue
        detail = {"errors": entry.get("errors") or [entry]}
        index = entry.get("index")
        if isinstance(index, int) and 0 <= index < len(batch):
            detail["index"] = index
            detail["row"] = batch[index]
        elif "row" in entry:
            detail["row"] = entry["row"]
        details.append(detail)
    return details
