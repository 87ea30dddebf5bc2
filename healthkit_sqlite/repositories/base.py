"""Base repository class with common database operations"""

import sqlite3
from abc import ABC
from contextlib import contextmanager

from healthkit_sqlite.utils.database_helpers import db_row_to_dict, quote_identifier, to_db_value
from healthkit_sqlite.utils.errors import DatabaseError


class BaseRepository(ABC):
    """Abstract base class for all repositories

    Provides common database operations and utilities for data access.
    The connection is expected to be in autocommit mode (see open_db);
    transactions are opened explicitly with transaction().
    """

    def __init__(self, db):
        """Initialize repository with a database connection

        Args:
            db: sqlite3 connection opened by open_db
        """
        self._db = db

    def get_db(self):
        """Get the database connection

        Returns:
            Database connection
        """
        return self._db

    @property
    def in_transaction(self):
        """True while a transaction is open on the connection"""
        return self._db.in_transaction

    @contextmanager
    def transaction(self):
        """Run a block inside one transaction

        Commits when the block succeeds; rolls back and re-raises when it
        raises.

        Raises:
            DatabaseError: If BEGIN or COMMIT fails
        """
        db = self.get_db()
        try:
            db.execute('BEGIN')
        except sqlite3.Error as e:
            raise DatabaseError(f"Could not begin transaction: {str(e)}", e)

        try:
            yield db
        except BaseException:
            self.rollback()
            raise

        try:
            db.execute('COMMIT')
        except sqlite3.Error as e:
            self.rollback()
            raise DatabaseError(f"Commit failed: {str(e)}", e)

    def rollback(self):
        """Roll back the open transaction, if any"""
        db = self.get_db()
        if db.in_transaction:
            db.execute('ROLLBACK')

    def execute(self, query, params=None):
        """Execute a query and return cursor

        Args:
            query: SQL query string
            params: Query parameters (tuple or list)

        Returns:
            Database cursor

        Raises:
            DatabaseError: If query execution fails
        """
        if params is None:
            params = ()

        try:
            db = self.get_db()
            return db.execute(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(f"Query execution failed: {str(e)}", e)

    def fetchone(self, query, params=None, json_columns=()):
        """Execute query and fetch single row as dictionary

        Args:
            query: SQL query string
            params: Query parameters
            json_columns: Columns to decode from JSON

        Returns:
            Dictionary or None if no results
        """
        cursor = self.execute(query, params)
        row = cursor.fetchone()
        return db_row_to_dict(row, json_columns)

    def fetchall(self, query, params=None, json_columns=()):
        """Execute query and fetch all rows as list of dictionaries

        Args:
            query: SQL query string
            params: Query parameters
            json_columns: Columns to decode from JSON

        Returns:
            List of dictionaries
        """
        cursor = self.execute(query, params)
        rows = cursor.fetchall()
        return [db_row_to_dict(row, json_columns) for row in rows]

    def insert(self, table, data):
        """Insert a row into a table

        Identifiers are quoted, so table and column names may contain
        any characters.

        Args:
            table: Table name
            data: Dictionary of column->value pairs

        Returns:
            rowid of the inserted row

        Raises:
            sqlite3.Error: If the insert fails; callers decide how to report it
        """
        db_data = {key: to_db_value(value) for key, value in data.items()}

        columns = ', '.join(quote_identifier(key) for key in db_data)
        placeholders = ', '.join(['?' for _ in db_data])
        query = f'INSERT INTO {quote_identifier(table)} ({columns}) VALUES ({placeholders})'

        cursor = self.get_db().execute(query, list(db_data.values()))
        return cursor.lastrowid

    def count(self, table, where_clause='', params=None):
        """Count rows in a table

        Args:
            table: Table name
            where_clause: Optional WHERE clause (without WHERE keyword)
            params: Parameters for WHERE clause

        Returns:
            Integer count
        """
        if params is None:
            params = []

        query = f'SELECT COUNT(*) as count FROM {quote_identifier(table)}'

        if where_clause:
            query += f' WHERE {where_clause}'

        result = self.fetchone(query, params)
        return result['count'] if result else 0

    def table_names(self):
        """List user tables in creation order"""
        rows = self.fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' "
            "AND name NOT LIKE 'sqlite_%' ORDER BY rowid"
        )
        return [row['name'] for row in rows]

    def table_columns(self, table):
        """Get (name, declared type) pairs for a table's columns"""
        rows = self.fetchall(f'PRAGMA table_info({quote_identifier(table)})')
        return [(row['name'], row['type']) for row in rows]
