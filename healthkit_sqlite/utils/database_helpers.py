"""Database utility functions for identifiers, column types and value conversion"""

import json
import math
import re
from enum import Enum


INTEGER_PATTERN = re.compile(r'^[+-]?[0-9]+$')
REAL_PATTERN = re.compile(r'^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$')


class ColumnType(Enum):
    """SQL storage type of a column, fixed when the column is created"""
    INTEGER = 'INTEGER'
    REAL = 'REAL'
    TEXT = 'TEXT'
    JSON = 'JSON'


def infer_column_type(value):
    """Infer the column type from the first value observed for a column

    Probe order is integer, real, text. Structured values (dict/list)
    are stored as JSON text.

    Args:
        value: Raw attribute string or derived value

    Returns:
        ColumnType
    """
    if isinstance(value, (dict, list)):
        return ColumnType.JSON
    if isinstance(value, bool):
        return ColumnType.INTEGER
    if isinstance(value, int):
        return ColumnType.INTEGER
    if isinstance(value, float):
        return ColumnType.REAL
    if value is None:
        return ColumnType.TEXT

    text = str(value)
    if INTEGER_PATTERN.fullmatch(text):
        return ColumnType.INTEGER
    if REAL_PATTERN.fullmatch(text):
        return ColumnType.REAL
    return ColumnType.TEXT


def typed_json_value(value):
    """Convert a raw attribute string into a JSON scalar

    Args:
        value: Raw attribute string

    Returns:
        int, finite float or the original string
    """
    if INTEGER_PATTERN.fullmatch(value):
        return int(value)
    if REAL_PATTERN.fullmatch(value):
        number = float(value)
        # Literals such as 1e400 overflow to inf, which JSON cannot carry
        if math.isfinite(number):
            return number
    return value


def finite_float(value):
    """Parse a numeric attribute, rejecting NaN and infinities

    Raises:
        ValueError: If the value is not a finite number
    """
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {value!r}")
    return number


def typed_json_object(attributes):
    """Convert an AttributeSet into a JSON object with typed scalars"""
    return {name: typed_json_value(value) for name, value in attributes.items()}


def fold_identifier(name):
    """Case-fold an identifier; SQLite compares identifiers case-insensitively"""
    return name.casefold()


def quote_identifier(name):
    """Quote an identifier for use in SQL statements

    Args:
        name: Table or column name, taken verbatim from the XML

    Returns:
        Double-quoted identifier with embedded quotes escaped
    """
    return '"' + name.replace('"', '""') + '"'


def to_db_value(value):
    """Convert a row value to a database-friendly value (serialize JSON fields)

    Raw attribute strings are bound as-is so SQLite's column affinity
    decides the stored representation.
    """
    if isinstance(value, (dict, list)):
        return json.dumps(value, allow_nan=False)
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def db_row_to_dict(row, json_columns=()):
    """Convert database row to dictionary with JSON fields parsed

    Args:
        row: SQLite Row object
        json_columns: Names of columns holding JSON documents

    Returns:
        Dictionary with parsed JSON fields, or None if row is None
    """
    if row is None:
        return None

    result = dict(row)

    for field in json_columns:
        if field in result and result[field] is not None:
            result[field] = json.loads(result[field])

    return result


def format_duration(seconds):
    """Format an elapsed time for the run summary

    Args:
        seconds: Elapsed seconds (int or float), or None

    Returns:
        String like "0.4s", "42.0s", "2m 06s" or "1h 23m 45s"
    """
    if not seconds:
        return "0.0s"
    if seconds < 60:
        return f"{seconds:.1f}s"

    minutes, secs = divmod(int(round(seconds)), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"
