"""
Sync Configuration
==================

Builds a validated SyncConfig from environment variables (a .env file in the
working directory is loaded first). Components receive the config object
explicitly and never read the environment themselves.
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError
from .state import DEFAULT_STATE_FILE

REQUIRED_VARS = [
    "PG_HOST",
    "PG_PORT",
    "PG_USER",
    "PG_PASSWORD",
    "PG_DATABASE",
    "TABLES",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "BQ_PROJECT_ID",
    "BQ_DATASET",
]


def parse_tables(value: str) -> List[str]:
    """Split a comma-separated table list, dropping blanks."""
    return [t.strip() for t in value.split(",") if t.strip()]


@dataclass(frozen=True)
class SyncConfig:
    pg_host: str
    pg_port: int
    pg_user: str
    pg_password: str
    pg_database: str
    tables: List[str]
    bq_project: str
    bq_dataset: str
    credentials_path: Optional[str] = None
    fetch_all_rows: bool = False
    state_file: str = DEFAULT_STATE_FILE
    tracking_column: str = "created_at"
    pg_schema: str = "public"
    pg_sslmode: Optional[str] = "require"
    log_level: str = "INFO"
    log_format: str = "text"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SyncConfig":
        """
        Build and validate the configuration.

        Args:
            environ: Variables to read, defaults to os.environ after loading .env

        Raises:
            ConfigError: If a required variable is missing or a value is invalid
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        missing = [name for name in REQUIRED_VARS if not environ.get(name)]
        if missing:
            raise ConfigError(
                f"Missing PostgreSQL or BigQuery configuration in environment variables: "
                f"{', '.join(missing)}",
                {"missing": missing},
            )

        try:
            pg_port = int(environ["PG_PORT"])
        except ValueError:
            raise ConfigError(f"PG_PORT must be an integer, got {environ['PG_PORT']!r}")

        tables = parse_tables(environ["TABLES"])
        if not tables:
            raise ConfigError("TABLES does not name any table")

        log_format = environ.get("LOG_FORMAT", "text").lower()
        if log_format not in ("text", "json"):
            raise ConfigError(f"LOG_FORMAT must be 'text' or 'json', got {log_format!r}")

        return cls(
            pg_host=environ["PG_HOST"],
            pg_port=pg_port,
            pg_user=environ["PG_USER"],
            pg_password=environ["PG_PASSWORD"],
            pg_database=environ["PG_DATABASE"],
            tables=tables,
            bq_project=environ["BQ_PROJECT_ID"],
            bq_dataset=environ["BQ_DATASET"],
            credentials_path=environ["GOOGLE_APPLICATION_CREDENTIALS"],
            fetch_all_rows=environ.get("FETCH_ALL_ROWS") == "true",
            state_file=environ.get("SYNC_STATE_FILE") or DEFAULT_STATE_FILE,
            tracking_column=environ.get("TRACKING_COLUMN") or "created_at",
            pg_schema=environ.get("PG_SCHEMA") or "public",
            pg_sslmode=environ.get("PG_SSLMODE", "require") or None,
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
            log_format=log_format,
            log_file=environ.get("LOG_FILE") or None,
        )

    def with_overrides(self, **changes) -> "SyncConfig":
        return replace(self, **changes)

    def source_connection(self) -> Dict[str, object]:
        return {
            "host": self.pg_host,
            "port": self.pg_port,
            "username": self.pg_user,
            "password": self.pg_password,
            "database": self.pg_database,
            "schema": self.pg_schema,
            "sslmode": self.pg_sslmode,
        }

    def destination_connection(self) -> Dict[str, object]:
        return {
            "project": self.bq_project,
            "dataset": self.bq_dataset,
            "credentials": self.credentials_path,
        }
