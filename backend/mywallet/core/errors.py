"""Error taxonomy shared by the store adapters, services and HTTP layer.

Every error carries the HTTP status it maps to. ``main.py`` turns them into
plain-text responses; ``UnauthenticatedError`` is rendered without a body.
"""


class WalletError(Exception):
    status_code = 500

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(WalletError):
    status_code = 422


class ConflictError(WalletError):
    status_code = 409


class NotFoundError(WalletError):
    status_code = 404


class AuthenticationError(WalletError):
    status_code = 401


class UnauthenticatedError(WalletError):
    status_code = 401


class StoreError(WalletError):
    status_code = 500


class DuplicateKeyError(StoreError):
    """A unique constraint of the document store rejected an insert."""
