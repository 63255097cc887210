"""Exceptions raised by mysql-mcp."""


class DatabaseError(Exception):
    """Database connection or query error."""

    pass


class ConfigurationError(DatabaseError):
    """The connection string or config file is missing, invalid or rejected."""

    pass


class QueryError(DatabaseError):
    """A catalog query failed on an open connection."""

    def __init__(self, operation: str, target: str, cause: Exception) -> None:
        self.operation = operation
        self.target = target
        super().__init__(f"Failed to {operation} for {target}: {cause}")
