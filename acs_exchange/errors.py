"""Error types raised by the token exchange flow.

Each error carries the HTTP status it maps to at the API boundary. Messages are safe to return
to the caller; they never contain tokens or secrets.
"""

from typing import Any, Dict, Optional


class TokenExchangeError(Exception):
    """Base class for all errors surfaced by the exchange and refresh endpoints."""

    status_code = 500
    default_code = "token_exchange_error"
    retryable = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {"error": self.message, "code": self.error_code}


class InvalidRequest(TokenExchangeError):
    """The caller omitted something required (identity claim, ACS user id)."""

    status_code = 400
    default_code = "invalid_request"


class AuthExchangeFailed(TokenExchangeError):
    """The identity provider rejected the On-Behalf-Of exchange.

    error_code holds the provider's code (invalid_grant, interaction_required, ...). Clients
    should re-authenticate rather than retry.
    """

    default_code = "token_acquisition_failed"


class ConfigurationMissing(TokenExchangeError):
    """A deployment setting is absent."""

    default_code = "configuration_missing"


class UpstreamServiceError(TokenExchangeError):
    """A call to the communication service or identity provider failed."""

    default_code = "upstream_error"
    retryable = True


class UpstreamTimeout(UpstreamServiceError):
    """An outbound call did not complete within the configured timeout."""

    status_code = 504
    default_code = "upstream_timeout"


class InsufficientScope(TokenExchangeError):
    """The caller's token does not carry any of the API scopes this service requires."""

    status_code = 403
    default_code = "insufficient_scope"


class InternalError(TokenExchangeError):
    """An unexpected failure inside the service. Details stay in the logs."""

    default_code = "internal_error"

    def __init__(self, message: str = "Internal server error", **kwargs):
        super().__init__(message, **kwargs)
