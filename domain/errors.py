class DomainError(Exception):
    """Base class for ledger rule violations."""


class ReceiptEncodingError(DomainError):
    """Raised when a receipt blob cannot be turned into its stored form."""
