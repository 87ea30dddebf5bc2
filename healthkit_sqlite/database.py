import os
import sqlite3

from healthkit_sqlite.utils.errors import DatabaseError


MEMORY_DATABASE = ':memory:'


def open_db(db_path):
    """Open a sqlite3 connection for the converter

    The connection runs in autocommit mode; batches open their own
    transactions with explicit BEGIN/COMMIT so DDL and inserts of one
    batch commit or roll back together.

    Args:
        db_path: Path of the database file, or ':memory:'

    Returns:
        sqlite3.Connection ready for use.

    Raises:
        DatabaseError: If the database file cannot be opened.
    """
    if db_path != MEMORY_DATABASE:
        # Ensure the directory containing the database exists
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

    try:
        conn = sqlite3.connect(db_path, isolation_level=None)
        conn.row_factory = sqlite3.Row  # Return rows as dictionaries
        if db_path != MEMORY_DATABASE:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
        return conn
    except sqlite3.Error as e:
        raise DatabaseError(f"Failed to open database at {db_path}: {e}", e)


def close_db(db):
    """Close database connection"""
    if db is not None:
        db.close()


def database_exists(db_path):
    """Check whether a database file already exists at db_path"""
    return db_path != MEMORY_DATABASE and os.path.exists(db_path)


def drop_db(db_path):
    """Delete a database file together with its WAL/SHM side files"""
    for path in (db_path, f"{db_path}-wal", f"{db_path}-shm"):
        if os.path.exists(path):
            os.remove(path)
