"""
Exceptions raised by the sync engine and its connectors.
"""

from typing import Any, Dict, Optional


class SyncError(Exception):
    """
    Base class for all sync errors.

    Args:
        message: Human readable description
        details: Extra context (table name, attempts, ...)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigError(SyncError):
    """Required configuration is missing or invalid. The engine must not start."""


class ExtractionError(SyncError):
    """A source query failed. Aborts the current table's pass only."""


class TableNotReadyError(SyncError):
    """A newly created destination table never became visible."""
