class BookkeepingError(Exception):
    """Base class for business-rule failures raised by the services."""
    pass


class ReferentialError(BookkeepingError):
    """Raised when a referenced record is missing or belongs to another organization."""
    pass


class StateConflictError(BookkeepingError):
    """Raised when the current state of a record forbids the requested change."""
    pass


class DocumentNumberError(BookkeepingError):
    """Raised when a stored document number cannot be parsed for sequencing."""
    pass
