"""Exception types raised by table layout and the drawing surface."""


class TableflowError(Exception):
    """Base class for all tableflow errors."""


class InvalidConfiguration(TableflowError, ValueError):
    """Raised when a table or document configuration cannot be laid out."""


class SurfaceFailure(TableflowError):
    """Raised when the drawing surface cannot complete an operation."""


class PageLookupFailure(TableflowError, LookupError):
    """Raised when a buffered page cannot be resolved."""
