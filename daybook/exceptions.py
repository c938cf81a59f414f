"""Exceptions raised by Daybook."""


class DaybookError(Exception):
    """Base class for all Daybook errors."""


class ValidationError(DaybookError, ValueError):
    """Raised when a request is rejected before any mutation happens."""


class PersistenceError(DaybookError):
    """Raised when the snapshot store fails to load or save."""
