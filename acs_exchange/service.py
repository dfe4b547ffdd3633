"""Token exchange and refresh flows.

Exchange (one request, strictly sequential):
 1. Read the caller's object id from the bearer token claims and check its delegated scope.
 2. Exchange the bearer token for an ACS-scoped token via On-Behalf-Of.
 3. Check ACS is configured.
 4. Create a new ACS identity.
 5. Issue a chat + voip token for that identity.
 6. Issue a Teams-user ACS token from the OBO token and the caller's object id.
 7. Return all three values.

Any failure aborts the request; there is no partial response and no retry. Each outbound call is
bounded by the configured timeout.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, Iterable, Optional

from azure.core.exceptions import AzureError

from .acs_client import TOKEN_SCOPES, communication_user, user_id_of
from .auth import ACS_SCOPE, OnBehalfOfAuth
from .claims import object_id_from_claims, read_claims, scopes_from_claims
from .config import AppConfig
from .errors import (
    ConfigurationMissing,
    InsufficientScope,
    InvalidRequest,
    UpstreamServiceError,
    UpstreamTimeout,
)
from .models import AcsTokenRefreshResponse, AcsTokenResponse

logger = logging.getLogger(__name__)


class TokenExchangeService:
    """Turns an authenticated Teams caller into ACS credentials."""

    def __init__(
        self,
        obo: OnBehalfOfAuth,
        identity_client: Any,
        client_id: str,
        call_timeout: float = 15.0,
        required_scopes: Optional[Iterable[str]] = None,
    ):
        self.obo = obo
        # Shared async CommunicationIdentityClient, or None when ACS is not configured
        self.identity_client = identity_client
        self.client_id = client_id
        self.call_timeout = call_timeout
        self.required_scopes = list(required_scopes or [])

    @classmethod
    def from_config(cls, cfg: AppConfig, identity_client: Any) -> "TokenExchangeService":
        return cls(
            OnBehalfOfAuth(cfg),
            identity_client,
            cfg.client_id,
            cfg.call_timeout_seconds,
            cfg.required_scopes,
        )

    async def _call(self, step: str, awaitable: Awaitable) -> Any:
        """Await one outbound call under the timeout, classifying SDK failures."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            logger.error("%s timed out after %.1fs", step, self.call_timeout)
            raise UpstreamTimeout(f"{step} timed out", details={"step": step}) from e
        except AzureError as e:
            logger.error("%s failed: %s (status=%s)", step, type(e).__name__, getattr(e, "status_code", None))
            raise UpstreamServiceError(f"{step} failed", details={"step": step}) from e

    async def _obo_token(self, caller_token: str) -> str:
        # On timeout the worker thread is abandoned, not stopped; MSAL's own HTTP timeout ends it.
        return await self._call(
            "OBO exchange",
            asyncio.to_thread(self.obo.acquire_token_on_behalf_of, caller_token, (ACS_SCOPE,)),
        )

    def _check_scopes(self, claims: Dict[str, Any]) -> None:
        if not self.required_scopes:
            return
        granted = scopes_from_claims(claims)
        if not any(scope in granted for scope in self.required_scopes):
            logger.error("Caller token lacks required scope (granted: %s)", " ".join(granted) or "none")
            raise InsufficientScope("The token does not grant the scope required by this API")

    def _require_identity_client(self) -> Any:
        if self.identity_client is None:
            logger.error("ACS connection string not configured")
            raise ConfigurationMissing("ACS not configured")
        return self.identity_client

    async def exchange_token(self, caller_token: Optional[str]) -> AcsTokenResponse:
        logger.info("Starting token exchange for ACS")

        claims = read_claims(caller_token) if caller_token else {}
        object_id = object_id_from_claims(claims)
        if not object_id:
            logger.error("User object ID not found in claims")
            raise InvalidRequest("User identity not found")
        self._check_scopes(claims)

        obo_token = await self._obo_token(caller_token)
        logger.info("Successfully acquired token for ACS scope")

        client = self._require_identity_client()

        user = await self._call("ACS create user", client.create_user())
        user_id = user_id_of(user)
        logger.info("Created ACS user: %s", user_id)

        access = await self._call("ACS get token", client.get_token(user, scopes=TOKEN_SCOPES))
        teams_access = await self._call(
            "ACS get token for Teams user",
            client.get_token_for_teams_user(obo_token, self.client_id, object_id),
        )
        logger.info("Successfully created ACS access token")

        return AcsTokenResponse(newUserToken=access.token, newUserId=user_id, cToken=teams_access.token)

    async def refresh_acs_token(self, caller_token: Optional[str], acs_user_id: Optional[str]) -> AcsTokenRefreshResponse:
        """Issue a new chat + voip token for an existing ACS identity.

        The OBO exchange is only an authorization gate; its token is discarded. The supplied
        identity is not checked against the caller, so any caller who passes OBO can refresh any
        ACS identity id it knows.
        """
        if not acs_user_id:
            raise InvalidRequest("ACS User ID is required")

        logger.info("Refreshing ACS token for user: %s", acs_user_id)
        if not caller_token:
            logger.error("No bearer token on refresh request")
            raise InvalidRequest("User identity not found")
        self._check_scopes(read_claims(caller_token))

        await self._obo_token(caller_token)
        client = self._require_identity_client()

        access = await self._call(
            "ACS get token",
            client.get_token(communication_user(acs_user_id), scopes=TOKEN_SCOPES),
        )
        logger.info("Successfully refreshed ACS token for user: %s", acs_user_id)
        return AcsTokenRefreshResponse(Token=access.token, ExpiresOn=access.expires_on)
