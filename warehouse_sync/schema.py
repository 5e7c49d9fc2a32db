"""
Schema Reconciler
=================

Makes sure a destination table exists before rows are loaded into it.

Missing tables are created from the column names of the first sanitized row,
every column typed STRING. Existing tables are never altered, so columns that
first appear in later rows are dropped by the destination.
"""

import logging
import time
from typing import Any, Callable, Dict, List

from .connectors.base import DestinationConnector, Schema
from .exceptions import TableNotReadyError
from .sanitizer import sanitize_row

logger = logging.getLogger(__name__)

COLUMN_TYPE = "STRING"
READY_RETRIES = 5
READY_DELAY_SECONDS = 2.0


def infer_schema(row: Dict[str, Any]) -> Schema:
    """
    Build a destination schema from a single row.

    Args:
        row: Raw source row

    Returns:
        Ordered list of (column name, STRING)
    """
    return [(column, COLUMN_TYPE) for column in sanitize_row(row)]


class SchemaReconciler:
    """
    Creates destination tables on first sight and waits for them to be visible.
    """

    def __init__(
        self,
        destination: DestinationConnector,
        retries: int = READY_RETRIES,
        delay: float = READY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            destination: Destination connector
            retries: Number of existence probes after creation
            delay: Seconds to wait between probes
            sleep: Sleep function, replaced in tests
        """
        self.destination = destination
        self.retries = retries
        self.delay = delay
        self.sleep = sleep

    def ensure_table(self, table: str, rows: List[Dict[str, Any]]) -> bool:
        """
        Create `table` if it does not exist yet.

        Args:
            table: Destination table name
            rows: Non-empty row sample; only the first row is inspected

        Returns:
            True if the table was created, False if it already existed

        Raises:
            ValueError: If `rows` is empty
            TableNotReadyError: If the created table never becomes visible
        """
        if not rows:
            raise ValueError(f"Cannot infer a schema for {table} without rows")

        if self.destination.table_exists(table):
            return False

        schema = infer_schema(rows[0])
        self.destination.create_table(table, schema)
        logger.info(f"Created table {table} with columns: {', '.join(c for c, _ in schema)}")

        self.wait_until_ready(table)
        return True

    def wait_until_ready(self, table: str):
        """
        Poll until the destination reports the table as existing.

        Probe errors count as "not yet available".

        Raises:
            TableNotReadyError: If the retry budget is exhausted
        """
        for attempt in range(1, self.retries + 1):
            try:
                if self.destination.table_exists(table):
                    logger.info(f"Table {table} is now available")
                    return
            except Exception as e:
                logger.debug(f"Existence probe for {table} failed: {e}")

            if attempt < self.retries:
                logger.info(
                    f"Waiting for table {table} to be available... "
                    f"(retries left: {self.retries - attempt})"
                )
                self.sleep(self.delay)

        raise TableNotReadyError(
            f"Table {table} is still not available after waiting",
            {"table": table, "attempts": self.retries, "delay": self.delay},
        )
