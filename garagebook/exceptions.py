"""Domain-specific exceptions for the garage ledger services."""

class ValidationError(ValueError):
    """Raised when submitted data does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when an invoice or expense record cannot be located."""


class PersistenceError(IOError):
    """Raised when the ledger store cannot be read or written."""
