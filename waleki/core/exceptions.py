"""
Domain errors raised by the store, registry and ingestion layers.

The HTTP layer maps each class to a status code in ``waleki.main``; nothing
below the routes knows about HTTP.
"""


class WalekiError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WalekiError):
    """Malformed or out-of-range input"""

    status_code = 400


class NotFoundError(WalekiError):
    """Unknown device, reading or user"""

    status_code = 404


class ConflictError(WalekiError):
    """Unique constraint violation on an identity field"""

    status_code = 409
