"""Reflected database schema."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ConstraintSide(Enum):
    """Which end of a foreign key a table sits on."""

    LOCAL = 'local'  # the table owns the referencing columns
    FOREIGN = 'foreign'  # the table is referenced


@dataclass(frozen=True)
class Column:
    """A single table column."""

    name: str
    table: str
    data_type: str
    nullable: bool = True
    default: Optional[str] = None
    primary_key: bool = False
    autoincrement: bool = False
    comment: Optional[str] = None


@dataclass(frozen=True)
class Index:
    """A named index or unique constraint."""

    name: str
    columns: Tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True)
class Constraint:
    """A foreign key between two tables."""

    name: str
    local_table: str
    local_columns: Tuple[str, ...]
    foreign_table: str
    foreign_columns: Tuple[str, ...]
    on_update: Optional[str] = None
    on_delete: Optional[str] = None


@dataclass(frozen=True)
class Table:
    """A reflected table."""

    name: str
    columns: Tuple[Column, ...] = ()
    primary_key: Tuple[str, ...] = ()
    indexes: Tuple[Index, ...] = ()
    comment: Optional[str] = None

    def column(self, name: str) -> Optional[Column]:
        return next((c for c in self.columns if c.name == name), None)

    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]


@dataclass(frozen=True)
class Database:
    """Full reflection of one database/schema."""

    name: str
    tables: Dict[str, Table] = field(default_factory=dict)
    constraints: Tuple[Constraint, ...] = ()

    def table(self, name: str) -> Optional[Table]:
        return self.tables.get(name)

    def table_names(self) -> List[str]:
        return list(self.tables.keys())

    def constraints_by_table(self, table_name: str, side: Optional[ConstraintSide] = None) -> List[Constraint]:
        """Foreign keys touching a table, optionally limited to one side.

        Args:
            table_name: Table to filter on
            side: LOCAL for keys declared on the table, FOREIGN for keys referencing it, None for both
        """
        result = []
        for constraint in self.constraints:
            is_local = constraint.local_table == table_name
            is_foreign = constraint.foreign_table == table_name
            if side is ConstraintSide.LOCAL and is_local:
                result.append(constraint)
            elif side is ConstraintSide.FOREIGN and is_foreign:
                result.append(constraint)
            elif side is None and (is_local or is_foreign):
                result.append(constraint)
        return result
