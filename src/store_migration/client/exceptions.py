"""Exception hierarchy for Store Bridge.

Transport failures (anything raised while talking to either platform)
share the ``TransportError`` base so the orchestrator can recover from
them per item. A transformer refusing an item raises ``ValidationError``.
Soft problems are never exceptions; see ``store_migration.schema.warnings``.
"""


class StoreMigrationError(Exception):
    """Base exception for all Store Bridge errors."""

    pass


class TransportError(StoreMigrationError):
    """A source or destination call failed."""

    pass


class APIError(TransportError):
    """The remote platform answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None, response: dict | None = None):
        """Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code
            response: Parsed response body
        """
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with status code and response."""
        msg = self.message
        if self.status_code:
            msg = f"[{self.status_code}] {msg}"
        if self.response:
            msg = f"{msg}: {self.response}"
        return msg


class AuthenticationError(APIError):
    """Credentials were rejected (401)."""

    pass


class AuthorizationError(APIError):
    """Credentials lack the required scope (403)."""

    pass


class NotFoundError(APIError):
    """The requested entity does not exist (404)."""

    pass


class ConflictError(APIError):
    """The platform refused a create because of a uniqueness clash (409/422 duplicate)."""

    pass


class RateLimitError(APIError):
    """Too many requests (429)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: dict | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message, status_code, response)
        self.retry_after = retry_after


class ServerError(APIError):
    """The platform returned a 5xx."""

    pass


class NetworkError(TransportError):
    """Connection failures and timeouts."""

    pass


class ValidationError(StoreMigrationError):
    """A transformer refused an item; it must not be written."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or [message]
        super().__init__(message)


class StateError(StoreMigrationError):
    """Reading or writing persisted migration state failed."""

    pass


class ConfigurationError(StoreMigrationError):
    """Configuration is invalid or missing."""

    pass
