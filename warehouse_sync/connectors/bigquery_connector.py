"""
BigQuery Target Connector
=========================

Connector for creating tables in and streaming rows into a BigQuery dataset.
"""

import logging
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import bigquery

from .base import DestinationConnector, Row, Schema

logger = logging.getLogger(__name__)


class BigQueryConnector(DestinationConnector):
    """
    BigQuery connector for warehouse load operations.
    """

    def __init__(self, config: Dict[str, Any], client: Optional[bigquery.Client] = None):
        """
        Initialize BigQuery connector.

        Args:
            config: Connection configuration dict with project, dataset and
                optionally credentials (path to a service account key file)
            client: Pre-built client, skips credential handling in connect()
        """
        self.config = config
        self.project = config["project"]
        self.dataset = config["dataset"]
        self.client = client

    def connect(self):
        """Create the BigQuery client."""
        if self.client is None:
            credentials = self.config.get("credentials")
            if credentials:
                self.client = bigquery.Client.from_service_account_json(
                    credentials, project=self.project
                )
            else:
                self.client = bigquery.Client(project=self.project)
        logger.info(f"Connected to BigQuery: {self.project}.{self.dataset}")

    def table_ref(self, table: str) -> str:
        return f"{self.project}.{self.dataset}.{table}"

    def table_exists(self, table: str) -> bool:
        """
        Check if a table exists.

        Args:
            table: Table name within the dataset

        Returns:
            True if exists, False otherwise
        """
        try:
            self.client.get_table(self.table_ref(table))
            return True
        except NotFound:
            return False

    def create_table(self, table: str, schema: Schema):
        """
        Create a table. Succeeds if the table already exists.

        Args:
            table: Table name within the dataset
            schema: Ordered list of (column name, BigQuery type)
        """
        bq_table = bigquery.Table(
            self.table_ref(table),
            schema=[bigquery.SchemaField(name, field_type) for name, field_type in schema],
        )
        self.client.create_table(bq_table, exists_ok=True)

    def insert_rows(self, table: str, rows: List[Row]) -> List[Dict[str, Any]]:
        """
        Stream rows into a table.

        Columns missing from the table schema are ignored.

        Args:
            table: Table name within the dataset
            rows: JSON-compatible rows

        Returns:
            Per-row error entries ({"index": ..., "errors": [...]}), empty on success
        """
        return self.client.insert_rows_json(
            self.table_ref(table), rows, ignore_unknown_values=True
        )
