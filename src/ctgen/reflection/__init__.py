"""Database schema reflection."""

from .base import SchemaConnection, SchemaSource
from .models import Column, Constraint, ConstraintSide, Database, Index, Table
from .sqlalchemy_source import SqlAlchemyConnection, SqlAlchemySchemaSource

__all__ = [
    'Column',
    'Constraint',
    'ConstraintSide',
    'Database',
    'Index',
    'SchemaConnection',
    'SchemaSource',
    'SqlAlchemyConnection',
    'SqlAlchemySchemaSource',
    'Table',
]
