"""
Checkpoint Store
================

Persists the per-table "last synced" timestamps as a single JSON object:

    {"orders": "2024-05-01T10:00:00.123456+00:00", ...}

Loading never raises. A missing, empty or corrupt document yields an empty
state so every table falls back to a full sync.
"""

import json
import logging
import os
from typing import Dict

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = "/usr/src/app/sync_state.json"


class CheckpointStore:
    """
    JSON file backed mapping of table name -> ISO-8601 checkpoint.
    """

    def __init__(self, path: str = DEFAULT_STATE_FILE):
        """
        Args:
            path: Location of the checkpoint document
        """
        self.path = path

    def load(self) -> Dict[str, str]:
        """
        Read the checkpoint document.

        Returns:
            Dict of table name -> checkpoint, empty when there is no usable history
        """
        if not os.path.exists(self.path):
            logger.info(f"No sync state file at {self.path}, starting with empty state")
            return {}

        try:
            with open(self.path, "rb") as f:
                raw = f.read()
        except OSError as e:
            logger.error(f"Error reading sync state file {self.path}: {e}")
            return {}

        if not raw.strip():
            logger.info("Sync state file is empty, initializing...")
            self._reset()
            return {}

        try:
            state = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error loading sync state from {self.path}: {e}")
            self._reset()
            return {}

        if not isinstance(state, dict):
            logger.error(
                f"Sync state in {self.path} is a {type(state).__name__}, expected an object"
            )
            self._reset()
            return {}

        checkpoints = {}
        for table, checkpoint in state.items():
            if isinstance(checkpoint, str):
                checkpoints[table] = checkpoint
            else:
                logger.warning(f"Ignoring non-string checkpoint for table {table}: {checkpoint!r}")
        return checkpoints

    def save(self, state: Dict[str, str]) -> bool:
        """
        Write the checkpoint document.

        Args:
            state: Dict of table name -> checkpoint

        Returns:
            True if the document was written, False otherwise
        """
        try:
            self._write(state)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving sync state to {self.path}: {e}")
            return False
        logger.info(f"Sync state saved to {self.path}")
        return True

    def _write(self, state: Dict[str, str]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)

    def _reset(self):
        """Replace an unusable document with an empty object."""
        try:
            self._write({})
            logger.info(f"Created new sync state file at {self.path}")
        except OSError as e:
            logger.error(f"Could not create sync state file {self.path}: {e}")
