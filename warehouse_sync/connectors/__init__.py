"""
Sync Connectors
===============

Source and destination connectors for the sync engine.
"""

from .base import DestinationConnector, SourceConnector
from .bigquery_connector import BigQueryConnector
from .postgres_connector import PostgresConnector

__all__ = ["SourceConnector", "DestinationConnector", "PostgresConnector", "BigQueryConnector"]
