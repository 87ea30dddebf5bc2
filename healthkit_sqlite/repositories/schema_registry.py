"""Schema registry: per-table column catalog evolved while rows are written"""

import logging
import sqlite3
from collections import namedtuple

from .base import BaseRepository
from healthkit_sqlite.utils.database_helpers import (
    ColumnType, fold_identifier, infer_column_type, quote_identifier
)
from healthkit_sqlite.utils.errors import SchemaError

logger = logging.getLogger(__name__)


Column = namedtuple('Column', ['name', 'column_type'])


class TableSchema:
    """Ordered, case-insensitive column catalog of one table"""

    def __init__(self, name):
        self.name = name
        self._columns = {}

    def __contains__(self, column_name):
        return fold_identifier(column_name) in self._columns

    def __len__(self):
        return len(self._columns)

    def column(self, column_name):
        """Get the Column for a name (any letter case), or None"""
        return self._columns.get(fold_identifier(column_name))

    @property
    def columns(self):
        """Columns in creation order"""
        return list(self._columns.values())

    def add(self, column):
        self._columns[fold_identifier(column.name)] = column

    def remove(self, column_name):
        self._columns.pop(fold_identifier(column_name), None)


class SchemaRegistry(BaseRepository):
    """Single source of truth for the converted database's schema

    Tables and columns are only ever added. A column's type is fixed
    from the first value seen for it; later values of another shape are
    left to SQLite's type affinity.

    One instance is owned by the writer for the duration of a run and is
    not safe for concurrent use.
    """

    RESERVED_TABLE_PREFIX = 'sqlite_'

    def __init__(self, db):
        super().__init__(db)
        self._tables = {}
        self._pending = []

    def load(self):
        """Populate the catalog from tables already present in the database"""
        self._tables = {}
        self._pending = []
        for table in self.table_names():
            schema = TableSchema(table)
            for name, declared_type in self.table_columns(table):
                schema.add(Column(name, _column_type_from_declared(declared_type)))
            self._tables[fold_identifier(table)] = schema
        return self

    def get(self, table):
        """Get the TableSchema for a table name (any letter case), or None"""
        return self._tables.get(fold_identifier(table))

    @property
    def tables(self):
        """All known TableSchemas in creation order"""
        return list(self._tables.values())

    def ensure_columns(self, table, columns):
        """Make sure a table and all of the given columns exist

        Unseen tables are created, unseen columns are added. Names that
        differ only in letter case resolve to the first-seen spelling.

        Args:
            table: Table name
            columns: Iterable of (column name, sample value) in first-seen order

        Returns:
            Tuple (table name, {folded column name: column name}) with the
            names as they exist in the database

        Raises:
            SchemaError: If an identifier is invalid or the DDL fails
        """
        self._check_table_name(table)

        incoming = {}
        for name, sample in columns:
            self._check_column_name(table, name)
            key = fold_identifier(name)
            if key not in incoming:
                incoming[key] = Column(name, infer_column_type(sample))

        schema = self.get(table)
        if schema is None:
            schema = self._create_table(table, list(incoming.values()))
        else:
            for key, column in incoming.items():
                if schema.column(column.name) is None:
                    self._add_column(schema, column)

        return schema.name, {key: schema.column(key).name for key in incoming}

    def mark_committed(self):
        """Forget pending DDL once the surrounding transaction committed"""
        self._pending = []

    def discard_pending(self):
        """Undo catalog changes whose DDL was rolled back"""
        for table_key, column_name in reversed(self._pending):
            if column_name is None:
                self._tables.pop(table_key, None)
            elif table_key in self._tables:
                self._tables[table_key].remove(column_name)
        self._pending = []

    def _create_table(self, table, columns):
        if not columns:
            raise SchemaError("cannot create a table without columns", table)

        column_defs = ', '.join(
            f'{quote_identifier(column.name)} {column.column_type.value}'
            for column in columns
        )
        try:
            self.get_db().execute(f'CREATE TABLE {quote_identifier(table)} ({column_defs})')
        except sqlite3.Error as e:
            raise SchemaError(f"CREATE TABLE failed: {str(e)}", table, original_error=e)

        schema = TableSchema(table)
        for column in columns:
            schema.add(column)
        self._tables[fold_identifier(table)] = schema
        self._track(table, None)

        logger.debug("Created table %s with %d columns", table, len(columns))
        return schema

    def _add_column(self, schema, column):
        try:
            self.get_db().execute(
                f'ALTER TABLE {quote_identifier(schema.name)} '
                f'ADD COLUMN {quote_identifier(column.name)} {column.column_type.value}'
            )
        except sqlite3.Error as e:
            raise SchemaError(f"ADD COLUMN failed: {str(e)}", schema.name,
                              column=column.name, original_error=e)

        schema.add(column)
        self._track(schema.name, column.name)
        logger.debug("Added column %s %s to %s", column.name, column.column_type.value, schema.name)

    def _track(self, table, column_name):
        if self.in_transaction:
            self._pending.append((fold_identifier(table), column_name))

    def _check_table_name(self, table):
        if not table:
            raise SchemaError("table name is empty", table)
        if fold_identifier(table).startswith(self.RESERVED_TABLE_PREFIX):
            raise SchemaError("table names starting with 'sqlite_' are reserved", table)

    def _check_column_name(self, table, name):
        if not name:
            raise SchemaError("column name is empty", table, column=name)


def _column_type_from_declared(declared_type):
    try:
        return ColumnType(declared_type.upper())
    except ValueError:
        return ColumnType.TEXT
