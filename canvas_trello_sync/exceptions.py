class SyncError(Exception):
    """Base class for every error that aborts a sync run."""


class ConfigError(SyncError):
    """Raised when the config file or credentials are missing or malformed."""


class NotFound(SyncError):
    """Raised when a named list, label or custom field is absent from the board."""


class InvalidUrl(SyncError):
    """Raised when an assignment URL cannot be rewritten to https."""


class IntegrationError(SyncError):
    """Raised when an external API call fails."""


class FetchError(IntegrationError):
    """Raised when the request never produced a response (network, DNS, timeout)."""


class ParseError(IntegrationError):
    """Raised when a response body does not have the expected shape."""


class RemoteError(IntegrationError):
    """Raised when the service answers with an explicit error."""


class AuthenticationError(RemoteError):
    """Raised when credentials are missing or rejected."""


class RateLimitError(RemoteError):
    """Raised when an external API rate limit is hit."""
