"""Row repository for writing and reading converted element rows"""

import sqlite3

from .base import BaseRepository
from healthkit_sqlite.utils.database_helpers import ColumnType, quote_identifier
from healthkit_sqlite.utils.errors import SchemaError


class RowRepository(BaseRepository):
    """Repository for the dynamically-shaped element tables"""

    def insert_row(self, table, row, values):
        """Insert one converted row

        Args:
            table: Table name as it exists in the database
            row: The Row being written (for error reporting)
            values: Dictionary of column->value pairs, names already resolved

        Raises:
            SchemaError: If SQLite rejects the insert or a JSON value
                cannot be encoded
        """
        try:
            if values:
                self.insert(table, values)
            else:
                self.get_db().execute(f'INSERT INTO {quote_identifier(table)} DEFAULT VALUES')
        except (sqlite3.Error, ValueError) as e:
            raise SchemaError(f"INSERT failed: {str(e)}", table, row=row, original_error=e)

    def get_rows(self, table, limit=None):
        """Get rows of a table in insertion order with JSON columns decoded

        Args:
            table: Table name
            limit: Optional LIMIT

        Returns:
            List of dictionaries
        """
        json_columns = [
            name for name, declared_type in self.table_columns(table)
            if declared_type.upper() == ColumnType.JSON.value
        ]

        query = f'SELECT * FROM {quote_identifier(table)} ORDER BY rowid'
        params = []
        if limit is not None:
            query += ' LIMIT ?'
            params.append(limit)

        return self.fetchall(query, params, json_columns=json_columns)

    def row_counts(self):
        """Count rows of every table

        Returns:
            Dictionary mapping table name -> row count
        """
        return {table: self.count(table) for table in self.table_names()}
