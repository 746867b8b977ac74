"""
errors.py — Error Types for the Storefront Service

Every failure raised by the ledger, the review log or the durable store is a
subclass of `StorefrontError`. Each carries the HTTP status code the API layer
answers with, so the FastAPI exception handlers in `main.py` can map them
without knowing the concrete type.

Error kinds:
    • InvalidInput       → 400 (missing or malformed field)
    • NotFound           → 404 (unknown product id)
    • PersistenceFailure → 500 (store unreadable or unwritable)
"""


class StorefrontError(Exception):
    """Base class for all domain errors of the storefront."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(StorefrontError):
    status_code = 400


class NotFound(StorefrontError):
    status_code = 404


class PersistenceFailure(StorefrontError):
    """Raised when a collection cannot be read from or written to the store."""
    status_code = 500
