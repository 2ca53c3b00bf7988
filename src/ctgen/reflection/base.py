"""Schema source interfaces consumed by the task."""

from abc import ABC, abstractmethod
from typing import List

from .models import Database


class SchemaConnection(ABC):
    """
    Live handle on a data source that can reflect its schema.

    All methods raise DatabaseError on connection, query or reflection failures.
    """

    @property
    @abstractmethod
    def database_name(self) -> str:
        """Currently bound database/schema name, empty when none is bound."""
        pass

    @abstractmethod
    def set_database_name(self, name: str) -> None:
        """Bind a database/schema, verifying it against the data source."""
        pass

    @abstractmethod
    def list_database_names(self) -> List[str]:
        pass

    @abstractmethod
    def list_table_names(self) -> List[str]:
        """Table names of the bound database, queried fresh on every call."""
        pass

    @abstractmethod
    def get_reflection(self) -> Database:
        """Reflect tables, columns and foreign keys of the bound database."""
        pass

    def close(self) -> None:
        """Release the connection. Default implementation does nothing."""
        pass


class SchemaSource(ABC):
    """Factory for schema connections."""

    @abstractmethod
    def connect(self, dsn: str) -> SchemaConnection:
        """Open a connection for a DSN.

        Raises:
            DatabaseError: If the DSN is invalid or the data source is unreachable
        """
        pass
