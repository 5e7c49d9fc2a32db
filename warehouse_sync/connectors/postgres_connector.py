"""
PostgreSQL Source Connector
===========================

Connector for extracting rows from PostgreSQL.
Supports full table extraction and incremental extraction on a timestamp column.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import ExtractionError
from .base import Row, SourceConnector

logger = logging.getLogger(__name__)


class PostgresConnector(SourceConnector):
    """
    PostgreSQL database connector for row extraction.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize PostgreSQL connector.

        Args:
            config: Connection configuration dict with host, port, database,
                username, password and optionally schema and sslmode
        """
        self.config = config
        self.schema = config.get("schema", "public")
        self.engine = None

    def connect(self):
        """Establish connection to PostgreSQL."""
        url = URL.create(
            "postgresql+psycopg2",
            username=self.config["username"],
            password=self.config["password"],
            host=self.config["host"],
            port=self.config["port"],
            database=self.config["database"],
        )
        connect_args = {}
        if self.config.get("sslmode"):
            connect_args["sslmode"] = self.config["sslmode"]
        self.engine = create_engine(url, connect_args=connect_args)

        # Test connection
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        logger.info(
            f"Connected to PostgreSQL: {self.config['host']}:{self.config['port']}/{self.config['database']}"
        )

    def disconnect(self):
        """Close database connection."""
        if self.engine:
            self.engine.dispose()
            self.engine = None
            logger.info("PostgreSQL connection closed")

    def _quote(self, identifier: str) -> str:
        return self.engine.dialect.identifier_preparer.quote(identifier)

    def _qualified(self, table: str) -> str:
        return f"{self._quote(self.schema)}.{self._quote(table)}"

    def _fetch(self, query: str, params: Dict[str, Any] = None) -> List[Row]:
        with self.engine.connect() as conn:
            result = conn.execute(text(query), params or {})
            return [dict(row) for row in result.mappings()]

    def list_tables(self) -> List[str]:
        """
        Get list of base tables in the configured schema.

        Returns:
            List of table names
        """
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = :schema
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        with self.engine.connect() as conn:
            result = conn.execute(text(query), {"schema": self.schema})
            return [row[0] for row in result]

    def current_timestamp(self) -> str:
        """
        Read the server clock.

        Falls back to the local UTC clock if the query fails.

        Returns:
            ISO-8601 timestamp with UTC offset
        """
        try:
            with self.engine.connect() as conn:
                now = conn.execute(text("SELECT NOW()")).scalar()
            return now.isoformat()
        except SQLAlchemyError as e:
            logger.error(f"Error getting PostgreSQL timestamp, using local clock: {e}")
            return datetime.now(timezone.utc).isoformat()

    def has_column(self, table: str, column: str) -> bool:
        """
        Check the schema catalog for a column.

        Args:
            table: Table name
            column: Column name

        Returns:
            True if the column exists, False if not or if the lookup fails
        """
        query = """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = :schema
            AND table_name = :table
            AND column_name = :column
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    text(query), {"schema": self.schema, "table": table, "column": column}
                )
                return result.first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking {column} column for table {table}: {e}")
            return False

    def fetch_all(self, table: str) -> List[Row]:
        """
        Extract entire table.

        Args:
            table: Table name

        Returns:
            List of rows as dicts
        """
        query = f"SELECT * FROM {self._qualified(table)}"
        logger.info(f"Extracting full table: {self.schema}.{table}")
        try:
            rows = self._fetch(query)
        except SQLAlchemyError as e:
            raise ExtractionError(
                f"Full extraction failed for {table}: {e}", {"table": table}
            ) from e
        logger.info(f"Extracted {len(rows)} rows from {self.schema}.{table}")
        return rows

    def fetch_since(self, table: str, column: str, checkpoint: str) -> List[Row]:
        """
        Extract rows created after a checkpoint.

        Args:
            table: Table name
            column: Tracking column (e.g. created_at)
            checkpoint: ISO-8601 timestamp, exclusive lower bound

        Returns:
            List of rows as dicts, ascending by tracking column
        """
        quoted = self._quote(column)
        query = (
            f"SELECT * FROM {self._qualified(table)} "
            f"WHERE {quoted} > CAST(:checkpoint AS timestamptz) "
            f"ORDER BY {quoted} ASC"
        )
        logger.info(f"Extracting incremental: {self.schema}.{table} ({column} > {checkpoint})")
        try:
            rows = self._fetch(query, {"checkpoint": checkpoint})
        except SQLAlchemyError as e:
            raise ExtractionError(
                f"Incremental extraction failed for {table}: {e}",
                {"table": table, "checkpoint": checkpoint},
            ) from e
        logger.info(f"Extracted {len(rows)} new rows from {self.schema}.{table}")
        return rows
