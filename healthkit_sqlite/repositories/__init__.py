"""Repository layer for data access"""

from .base import BaseRepository
from .schema_registry import SchemaRegistry, TableSchema, Column
from .row_repository import RowRepository

__all__ = [
    'BaseRepository',
    'SchemaRegistry',
    'TableSchema',
    'Column',
    'RowRepository',
]
