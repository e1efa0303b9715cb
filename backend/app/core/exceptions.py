"""
Domain exceptions raised by the marketplace services.

Routers never build HTTPExceptions for these; app.main registers a single
handler that maps each class to its status_code.
"""


class MarketplaceError(Exception):
    """Base class for recoverable, request-scoped errors."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MarketplaceError):
    """Malformed or missing input. The client can fix it and retry."""

    status_code = 400


class AuthenticationError(MarketplaceError):
    """Credentials were missing or wrong."""

    status_code = 401


class AuthorizationError(MarketplaceError):
    """The caller is authenticated but lacks rights for this operation."""

    status_code = 403


class NotFoundError(MarketplaceError):
    """Raised when a referenced listing or user does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class InvalidStateError(MarketplaceError):
    """The operation is illegal for the listing's current status."""

    status_code = 409


class ConflictError(MarketplaceError):
    """A uniqueness rule would be broken (e.g. duplicate email)."""

    status_code = 409
