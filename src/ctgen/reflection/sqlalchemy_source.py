"""SchemaSource backed by SQLAlchemy's runtime inspector."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import DatabaseError
from .base import SchemaConnection, SchemaSource
from .models import Column, Constraint, Database, Index, Table

logger = logging.getLogger(__name__)

# SQLite has exactly one schema per connection and it is always bound
SQLITE_MAIN_SCHEMA = 'main'

# Dialects whose schemas are not databases; their database list comes from the server catalog
DATABASE_LIST_QUERIES = {
    'postgresql': 'SELECT datname FROM pg_database WHERE NOT datistemplate AND datallowconn ORDER BY datname',
}


@contextmanager
def _database_errors(action: str) -> Iterator[None]:
    """Translate SQLAlchemy and driver failures into DatabaseError."""
    try:
        yield
    except SQLAlchemyError as e:
        raise DatabaseError(f'Failed to {action}: {e}') from e
    except ImportError as e:
        raise DatabaseError(f'Failed to {action}: database driver not installed ({e})') from e


class SqlAlchemySchemaSource(SchemaSource):
    """Connects to any database SQLAlchemy has a dialect for, using DSNs in SQLAlchemy URL form."""

    def __init__(self, engine_options: Optional[Dict[str, Any]] = None):
        self.engine_options = engine_options or {}

    def connect(self, dsn: str) -> 'SqlAlchemyConnection':
        with _database_errors('parse DSN'):
            url = make_url(dsn)
        return SqlAlchemyConnection(url, self.engine_options)


class SqlAlchemyConnection(SchemaConnection):
    """Schema connection over a SQLAlchemy engine."""

    def __init__(self, url: URL, engine_options: Optional[Dict[str, Any]] = None):
        self._url = url
        self._engine_options = engine_options or {}
        self._engine = self._open_engine(url)

    def _open_engine(self, url: URL) -> Engine:
        with _database_errors(f'connect to {url.render_as_string(hide_password=True)}'):
            engine = create_engine(url, **self._engine_options)
            try:
                with engine.connect():
                    pass
            except Exception:
                engine.dispose()
                raise
        logger.debug(f'Connected to {url.render_as_string(hide_password=True)}')
        return engine

    @property
    def database_name(self) -> str:
        if self._engine.dialect.name == 'sqlite':
            return SQLITE_MAIN_SCHEMA
        return self._url.database or ''

    def set_database_name(self, name: str) -> None:
        url = self._url.set(database=name)
        engine = self._open_engine(url)
        self._engine.dispose()
        self._engine = engine
        self._url = url
        logger.info(f'Bound database {name}')

    def list_database_names(self) -> List[str]:
        """Databases the bound URL can switch to.

        MySQL schemas are databases, so the inspector's schema list is used.
        PostgreSQL schemas live inside one database, so its catalog is queried.
        """
        query = DATABASE_LIST_QUERIES.get(self._engine.dialect.name)
        with _database_errors('list databases'):
            if query is None:
                return inspect(self._engine).get_schema_names()
            with self._engine.connect() as conn:
                return list(conn.execute(text(query)).scalars())

    def list_table_names(self) -> List[str]:
        with _database_errors('list tables'):
            return inspect(self._engine).get_table_names()

    def get_reflection(self) -> Database:
        with _database_errors(f'reflect database {self.database_name}'):
            inspector = inspect(self._engine)
            tables = {}
            constraints = []
            for table_name in inspector.get_table_names():
                tables[table_name] = self._reflect_table(inspector, table_name)
                constraints.extend(self._reflect_foreign_keys(inspector, table_name))

        logger.debug(f'Reflected {len(tables)} tables and {len(constraints)} foreign keys from {self.database_name}')
        return Database(name=self.database_name, tables=tables, constraints=tuple(constraints))

    def close(self) -> None:
        self._engine.dispose()

    def _reflect_table(self, inspector, table_name: str) -> Table:
        primary_key = tuple(inspector.get_pk_constraint(table_name).get('constrained_columns') or ())

        columns = []
        for column in inspector.get_columns(table_name):
            default = column.get('default')
            columns.append(
                Column(
                    name=column['name'],
                    table=table_name,
                    data_type=self._type_name(column['type']),
                    nullable=bool(column.get('nullable', True)),
                    default=str(default) if default is not None else None,
                    primary_key=column['name'] in primary_key,
                    autoincrement=column.get('autoincrement') is True,
                    comment=column.get('comment'),
                )
            )

        # SQLite backs inline UNIQUE columns with auto indexes that are hidden by default
        index_options = {'include_auto_indexes': True} if self._engine.dialect.name == 'sqlite' else {}
        indexes = [
            Index(name=index['name'], columns=tuple(c for c in index['column_names'] if c), unique=bool(index.get('unique')))
            for index in inspector.get_indexes(table_name, **index_options)
        ]
        unique_columns = {index.columns for index in indexes if index.unique}
        for unique in inspector.get_unique_constraints(table_name):
            columns = tuple(unique['column_names'])
            if columns not in unique_columns:
                indexes.append(Index(name=unique.get('name') or '', columns=columns, unique=True))
                unique_columns.add(columns)

        try:
            comment = inspector.get_table_comment(table_name).get('text')
        except NotImplementedError:
            comment = None

        return Table(
            name=table_name,
            columns=tuple(columns),
            primary_key=primary_key,
            indexes=tuple(indexes),
            comment=comment,
        )

    def _reflect_foreign_keys(self, inspector, table_name: str) -> List[Constraint]:
        constraints = []
        for fk in inspector.get_foreign_keys(table_name):
            options = fk.get('options') or {}
            constraints.append(
                Constraint(
                    name=fk.get('name') or f'fk_{table_name}_{"_".join(fk["constrained_columns"])}',
                    local_table=table_name,
                    local_columns=tuple(fk['constrained_columns']),
                    foreign_table=fk['referred_table'],
                    foreign_columns=tuple(fk['referred_columns']),
                    on_update=options.get('onupdate'),
                    on_delete=options.get('ondelete'),
                )
            )
        return constraints

    def _type_name(self, column_type) -> str:
        try:
            return column_type.compile(dialect=self._engine.dialect)
        except SQLAlchemyError:
            return column_type.__class__.__name__
