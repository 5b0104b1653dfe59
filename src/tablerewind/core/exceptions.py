"""Exceptions raised by tablerewind."""


class TableRewindError(Exception):
    """Base class for all tablerewind errors."""
    pass


class InstallationError(TableRewindError):
    """Raised when interception cannot be installed on a connection type."""

    def __init__(self, message: str, connection_type: type | None = None, entry_point: str | None = None):
        self.connection_type = connection_type
        self.entry_point = entry_point
        super().__init__(message)
