from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

Row = Dict[str, Any]
Schema = List[Tuple[str, str]]


class SourceConnector(ABC):
    """Abstract base for relational sources rows are extracted from."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the source."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection to the source."""
        ...

    @abstractmethod
    def list_tables(self) -> List[str]:
        """Return the names of the tables visible in the source schema."""
        ...

    @abstractmethod
    def current_timestamp(self) -> str:
        """Return the source server's current time as an ISO-8601 string."""
        ...

    @abstractmethod
    def has_column(self, table: str, column: str) -> bool:
        """Return True if `table` exposes `column` in the schema catalog."""
        ...

    @abstractmethod
    def fetch_all(self, table: str) -> List[Row]:
        """Return every row of `table`."""
        ...

    @abstractmethod
    def fetch_since(self, table: str, column: str, checkpoint: str) -> List[Row]:
        """Return rows where `column` > `checkpoint`, ascending by `column`."""
        ...


class DestinationConnector(ABC):
    """Abstract base for warehouses rows are loaded into."""

    @abstractmethod
    def connect(self) -> None:
        """Create the warehouse client."""
        ...

    @abstractmethod
    def table_exists(self, table: str) -> bool:
        """Return True if `table` exists in the target dataset."""
        ...

    @abstractmethod
    def create_table(self, table: str, schema: Schema) -> None:
        """Create `table` with the ordered (column, type) schema."""
        ...

    @abstractmethod
    def insert_rows(self, table: str, rows: List[Row]) -> List[Dict[str, Any]]:
        """Insert rows; return per-row error entries, empty on success."""
        ...
