"""
Tests for configuration loading and validation.
"""

import pytest

from warehouse_sync.config import REQUIRED_VARS, SyncConfig, parse_tables
from warehouse_sync.exceptions import ConfigError
from warehouse_sync.state import DEFAULT_STATE_FILE


@pytest.fixture
def env():
    return {
        "PG_HOST": "db.internal",
        "PG_PORT": "5432",
        "PG_USER": "sync",
        "PG_PASSWORD": "secret",
        "PG_DATABASE": "app",
        "TABLES": "orders, customers ,,invoices",
        "GOOGLE_APPLICATION_CREDENTIALS": "/secrets/key.json",
        "BQ_PROJECT_ID": "proj",
        "BQ_DATASET": "replica",
    }


class TestFromEnv:

    def test_minimal_environment(self, env):
        config = SyncConfig.from_env(env)

        assert config.tables == ["orders", "customers", "invoices"]
        assert config.pg_port == 5432
        assert config.fetch_all_rows is False
        assert config.state_file == DEFAULT_STATE_FILE
        assert config.tracking_column == "created_at"
        assert config.pg_schema == "public"
        assert config.pg_sslmode == "require"
        assert config.log_level == "INFO"

    @pytest.mark.parametrize("name", REQUIRED_VARS)
    def test_missing_required_variable(self, env, name):
        del env[name]

        with pytest.raises(ConfigError) as exc_info:
            SyncConfig.from_env(env)

        assert exc_info.value.details["missing"] == [name]

    def test_all_missing_reported_together(self):
        with pytest.raises(ConfigError) as exc_info:
            SyncConfig.from_env({})

        assert exc_info.value.details["missing"] == REQUIRED_VARS

    def test_fetch_all_rows_only_on_literal_true(self, env):
        env["FETCH_ALL_ROWS"] = "true"
        assert SyncConfig.from_env(env).fetch_all_rows is True

        env["FETCH_ALL_ROWS"] = "yes"
        assert SyncConfig.from_env(env).fetch_all_rows is False

    def test_invalid_port(self, env):
        env["PG_PORT"] = "abc"

        with pytest.raises(ConfigError):
            SyncConfig.from_env(env)

    def test_blank_table_list(self, env):
        env["TABLES"] = " , ,"

        with pytest.raises(ConfigError):
            SyncConfig.from_env(env)

    def test_invalid_log_format(self, env):
        env["LOG_FORMAT"] = "xml"

        with pytest.raises(ConfigError):
            SyncConfig.from_env(env)

    def test_optional_overrides(self, env):
        env.update({
            "SYNC_STATE_FILE": "/tmp/state.json",
            "TRACKING_COLUMN": "inserted_at",
            "PG_SCHEMA": "sales",
            "PG_SSLMODE": "",
            "LOG_LEVEL": "debug",
            "LOG_FORMAT": "JSON",
        })

        config = SyncConfig.from_env(env)

        assert config.state_file == "/tmp/state.json"
        assert config.tracking_column == "inserted_at"
        assert config.pg_schema == "sales"
        assert config.pg_sslmode is None
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"


class TestConnections:

    def test_source_and_destination_settings(self, env):
        config = SyncConfig.from_env(env)

        assert config.source_connection() == {
            "host": "db.internal",
            "port": 5432,
            "username": "sync",
            "password": "secret",
            "database": "app",
            "schema": "public",
            "sslmode": "require",
        }
        assert config.destination_connection() == {
            "project": "proj",
            "dataset": "replica",
            "credentials": "/secrets/key.json",
        }

    def test_with_overrides_returns_copy(self, env):
        config = SyncConfig.from_env(env)
        forced = config.with_overrides(fetch_all_rows=True)

        assert forced.fetch_all_rows is True
        assert config.fetch_all_rows is False


def test_parse_tables():
    assert parse_tables("a,b , c,,") == ["a", "b", "c"]
