"""Custom exception classes for the converter"""


class ConverterError(Exception):
    """Base exception for all converter errors"""

    def __init__(self, message, code=None, exit_code=1):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.exit_code = exit_code

    def to_dict(self):
        """Convert exception to dictionary for summaries and logs"""
        return {
            'error': self.message,
            'code': self.code
        }


class StructuralError(ConverterError):
    """Raised when the XML stream violates the expected nesting (fatal)"""

    def __init__(self, message, line=None):
        location = f" (line {line})" if line is not None else ""
        super().__init__(
            f"Structural error{location}: {message}",
            code="STRUCTURAL_ERROR"
        )
        self.line = line

    def to_dict(self):
        """Include line in error output"""
        result = super().to_dict()
        if self.line is not None:
            result['line'] = self.line
        return result


class ValidationError(ConverterError):
    """Raised when an element is missing a required attribute (recoverable)"""

    def __init__(self, tag, field, attributes=None, line=None,
                 reason="missing required attribute"):
        super().__init__(
            f"<{tag}> at line {line}: {reason} '{field}'",
            code="VALIDATION_ERROR"
        )
        self.tag = tag
        self.field = field
        self.attributes = dict(attributes or {})
        self.line = line

    def to_dict(self):
        """Include element context in error output"""
        result = super().to_dict()
        result['tag'] = self.tag
        result['field'] = self.field
        result['line'] = self.line
        result['attributes'] = self.attributes
        return result


class RouteFileError(ConverterError):
    """Raised when a referenced workout route file cannot be read (recoverable)"""

    def __init__(self, path, reason, line=None):
        super().__init__(
            f"Route file '{path}' could not be read: {reason}",
            code="ROUTE_FILE_ERROR"
        )
        self.path = path
        self.reason = reason
        self.line = line

    def to_dict(self):
        """Include path in error output"""
        result = super().to_dict()
        result['path'] = self.path
        result['line'] = self.line
        return result


class SchemaError(ConverterError):
    """Raised when a table cannot be created, altered or written (fatal)"""

    def __init__(self, message, table, column=None, row=None, original_error=None):
        super().__init__(
            f"Schema error for table '{table}': {message}",
            code="SCHEMA_ERROR"
        )
        self.table = table
        self.column = column
        self.row = row
        self.original_error = original_error

    def to_dict(self):
        """Include table, column and row in error output"""
        result = super().to_dict()
        result['table'] = self.table
        if self.column:
            result['column'] = self.column
        if self.row is not None:
            result['line'] = self.row.line
            result['row'] = dict(self.row.columns)
        return result


class DatabaseError(ConverterError):
    """Raised when database operations fail (fatal)"""

    def __init__(self, message, original_error=None):
        super().__init__(
            f"Database error: {message}",
            code="DATABASE_ERROR"
        )
        self.original_error = original_error


class SourceError(ConverterError):
    """Raised when the export file or archive cannot be read (fatal)"""

    def __init__(self, message, path=None, original_error=None):
        super().__init__(
            f"Source error: {message}",
            code="SOURCE_ERROR"
        )
        self.path = path
        self.original_error = original_error
