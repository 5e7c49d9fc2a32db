"""
Shared fixtures: in-memory source and destination connectors.
"""

import pytest

from warehouse_sync.config import SyncConfig
from warehouse_sync.connectors.base import DestinationConnector, SourceConnector


class FakeSource(SourceConnector):
    """In-memory source. Timestamps are ISO strings compared lexically."""

    def __init__(self, clock="2024-06-01T12:00:00+00:00"):
        self.tables = {}
        self.clock = clock
        self.calls = []
        self.on_fetch = None
        self.fail_tables = set()

    def add_table(self, name, rows, columns=None):
        columns = set(columns) if columns is not None else set().union(*[r.keys() for r in rows])
        self.tables[name] = {"columns": columns, "rows": list(rows)}

    def connect(self):
        self.calls.append(("connect",))

    def disconnect(self):
        self.calls.append(("disconnect",))

    def list_tables(self):
        return sorted(self.tables)

    def current_timestamp(self):
        self.calls.append(("current_timestamp",))
        return self.clock

    def has_column(self, table, column):
        self.calls.append(("has_column", table, column))
        return table in self.tables and column in self.tables[table]["columns"]

    def _check(self, table):
        if table in self.fail_tables or table not in self.tables:
            raise RuntimeError(f'relation "{table}" does not exist')

    def fetch_all(self, table):
        self.calls.append(("fetch_all", table))
        self._check(table)
        return [dict(r) for r in self.tables[table]["rows"]]

    def fetch_since(self, table, column, checkpoint):
        self.calls.append(("fetch_since", table, column, checkpoint))
        self._check(table)
        rows = [dict(r) for r in self.tables[table]["rows"] if r[column] > checkpoint]
        if self.on_fetch:
            self.on_fetch(self)
        return sorted(rows, key=lambda r: r[column])


class FakeDestination(DestinationConnector):
    """In-memory warehouse. Unknown columns are dropped on insert."""

    def __init__(self):
        self.tables = {}
        self.insert_calls = 0
        self.fail_inserts = set()
        self.reject_inserts = set()
        self.visible_after = 0
        self.never_ready = False
        self.probe_errors = 0
        self._probes_since_create = {}

    def connect(self):
        pass

    def table_exists(self, table):
        if table not in self.tables:
            return False
        probes = self._probes_since_create.get(table)
        if probes is None:
            return True
        self._probes_since_create[table] = probes + 1
        if self.probe_errors > 0:
            self.probe_errors -= 1
            raise ConnectionError("metadata service unavailable")
        if self.never_ready:
            return False
        if probes + 1 > self.visible_after:
            del self._probes_since_create[table]
            return True
        return False

    def create_table(self, table, schema):
        self.tables[table] = {"schema": list(schema), "rows": []}
        self._probes_since_create[table] = 0

    def insert_rows(self, table, rows):
        self.insert_calls += 1
        if self.insert_calls in self.fail_inserts:
            raise RuntimeError(f"insert {self.insert_calls} failed")
        if self.insert_calls in self.reject_inserts:
            return [{"index": 0, "errors": [{"reason": "invalid", "message": "bad value"}]}]
        columns = [name for name, _ in self.tables[table]["schema"]]
        for row in rows:
            self.tables[table]["rows"].append({c: row.get(c) for c in columns})
        return []

    def rows(self, table):
        return self.tables[table]["rows"]


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def destination():
    return FakeDestination()


@pytest.fixture
def config(tmp_path):
    return SyncConfig(
        pg_host="localhost",
        pg_port=5432,
        pg_user="postgres",
        pg_password="secret",
        pg_database="app",
        tables=["orders"],
        bq_project="proj",
        bq_dataset="replica",
        state_file=str(tmp_path / "sync_state.json"),
    )
