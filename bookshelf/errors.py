class LibraryError(Exception):
    """Base class for errors raised by catalog operations."""


class ValidationError(LibraryError):
    """Blank required field, duplicate catalog or duplicate book id."""


class NotFoundError(LibraryError):
    """Unknown catalog or unknown book id."""


class StateError(LibraryError):
    """Operation not allowed in the current state (no catalog, no copies)."""


class PersistenceWarning(UserWarning):
    """Reading or writing the data file failed.

    Never raised to callers: the in-memory store stays authoritative and the
    warning is logged and kept on the persistence coordinator.
    """
