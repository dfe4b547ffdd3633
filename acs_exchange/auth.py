"""On-Behalf-Of token exchange against Microsoft Entra ID.

This module wraps MSAL's ConfidentialClientApplication to exchange the caller's Teams SSO token
for a token scoped to Azure Communication Services.

Design notes:
 - The MSAL application is built lazily on first use, so a process starts without contacting
   the identity provider and a bad authority surfaces as a configuration error.
 - A single requests.Session is shared as MSAL's HTTP client for connection pooling.
 - No token caching: every exchange request performs a fresh OBO call.
"""

import logging
import threading
from typing import Dict, Iterable, Optional

import msal
import requests

from .config import AppConfig
from .errors import AuthExchangeFailed, ConfigurationMissing, UpstreamServiceError, UpstreamTimeout

logger = logging.getLogger(__name__)

ACS_SCOPE = "https://auth.msft.communication.azure.com/.default"


class OnBehalfOfAuth:
    """Exchange user assertions for downstream access tokens using the OBO flow."""

    def __init__(self, cfg: AppConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.authority = cfg.authority
        self.session = session or requests.Session()
        self._app: Optional[msal.ConfidentialClientApplication] = None
        self._lock = threading.Lock()

    @property
    def app(self) -> msal.ConfidentialClientApplication:
        with self._lock:
            if self._app is None:
                try:
                    self._app = msal.ConfidentialClientApplication(
                        client_id=self.cfg.client_id,
                        client_credential=self.cfg.client_secret,
                        authority=self.authority,
                        http_client=self.session,
                        timeout=self.cfg.call_timeout_seconds,
                    )
                except ValueError as e:
                    # MSAL validates the authority (tenant) when the app is built
                    raise ConfigurationMissing(
                        f"Invalid identity provider configuration for authority '{self.authority}'"
                    ) from e
            return self._app

    def acquire_token_on_behalf_of(self, user_assertion: str, scopes: Iterable[str] = (ACS_SCOPE,)) -> str:
        """Return an access token for `scopes` issued on behalf of the user.

        Raises:
            AuthExchangeFailed: the identity provider rejected the assertion.
            UpstreamTimeout / UpstreamServiceError: the identity provider could not be reached.
        """
        try:
            result: Dict = self.app.acquire_token_on_behalf_of(
                user_assertion=user_assertion,
                scopes=list(scopes),
            )
        except requests.Timeout as e:
            raise UpstreamTimeout("Identity provider did not respond in time") from e
        except requests.RequestException as e:
            raise UpstreamServiceError("Identity provider request failed") from e

        if result and "access_token" in result:
            return result["access_token"]

        result = result or {}
        error = result.get("error") or "unknown_error"
        logger.error(
            "OBO exchange rejected: %s: %s (correlation_id=%s)",
            error,
            result.get("error_description"),
            result.get("correlation_id"),
        )
        raise AuthExchangeFailed(
            f"Token acquisition failed: {error}",
            error_code=error,
            details={"correlation_id": result.get("correlation_id")},
        )
