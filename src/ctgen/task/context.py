"""Rendering context handed to templates."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ctgen.consts import CTGEN_VERSION
from ctgen.exceptions import CtGenRuntimeError, ValidationError
from ctgen.reflection.models import Constraint, ConstraintSide, Database, Table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaBinding:
    """Reflected schema and subject table, fixed once the context is bound."""

    database: Database
    table_name: str
    table: Table
    constraints_local: Tuple[Constraint, ...]
    constraints_foreign: Tuple[Constraint, ...]
    timestamp: str
    ctgen_ver: str

    @classmethod
    def create(cls, database: Database, table_name: str) -> 'SchemaBinding':
        """
        Raises:
            ValidationError: If the table is not part of the reflected database
        """
        table = database.table(table_name)
        if table is None:
            raise ValidationError(f'Table not found: {table_name}')

        return cls(
            database=database,
            table_name=table_name,
            table=table,
            constraints_local=tuple(database.constraints_by_table(table_name, ConstraintSide.LOCAL)),
            constraints_foreign=tuple(database.constraints_by_table(table_name, ConstraintSide.FOREIGN)),
            timestamp=datetime.now(timezone.utc).isoformat(),
            ctgen_ver=CTGEN_VERSION,
        )


class TaskContext:
    """
    Data bag rendered against by templates.

    Starts unbound. Binding attaches the schema and subject table exactly once;
    afterwards only prompt answers change.
    """

    def __init__(self):
        self._binding: Optional[SchemaBinding] = None
        self._prompts: Dict[str, Any] = {}

    @property
    def is_bound(self) -> bool:
        return self._binding is not None

    @property
    def binding(self) -> SchemaBinding:
        if self._binding is None:
            raise CtGenRuntimeError('Context is not bound to a schema yet')
        return self._binding

    @property
    def prompts(self) -> Dict[str, Any]:
        return dict(self._prompts)

    def bind(self, database: Database, table_name: str) -> None:
        """Attach the reflected schema and subject table.

        Raises:
            CtGenRuntimeError: If the context is already bound
            ValidationError: If the table is not part of the database
        """
        if self._binding is not None:
            raise CtGenRuntimeError(f'Context already bound to table {self._binding.table_name}')
        self._binding = SchemaBinding.create(database, table_name)
        logger.debug(f'Context bound to {database.name}.{table_name}')

    def set_prompt_answer(self, prompt_id: str, answer: Any) -> None:
        self._prompts[prompt_id] = answer

    def to_dict(self) -> Dict[str, Any]:
        """Variables exposed to templates; an unbound context exposes nothing."""
        if self._binding is None:
            return {}

        return {
            'database': self._binding.database,
            'table_name': self._binding.table_name,
            'table': self._binding.table,
            'constraints_local': list(self._binding.constraints_local),
            'constraints_foreign': list(self._binding.constraints_foreign),
            'prompts': dict(self._prompts),
            'timestamp': self._binding.timestamp,
            'ctgen_ver': self._binding.ctgen_ver,
        }
