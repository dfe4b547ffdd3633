"""Construction of the shared Azure Communication Services identity client.

One async CommunicationIdentityClient is created per process and reused across requests; it
holds no per-request state.
"""

import logging
from typing import Optional, Tuple

from azure.communication.identity import CommunicationTokenScope, CommunicationUserIdentifier
from azure.communication.identity.aio import CommunicationIdentityClient
from azure.identity.aio import ClientSecretCredential

from .config import AppConfig

logger = logging.getLogger(__name__)

TOKEN_SCOPES = [CommunicationTokenScope.CHAT, CommunicationTokenScope.VOIP]


def build_identity_client(
    cfg: AppConfig,
) -> Tuple[Optional[CommunicationIdentityClient], Optional[ClientSecretCredential]]:
    """Return (client, credential) for the configured ACS resource.

    A connection string takes precedence over an endpoint. With an endpoint the app registration's
    client secret is used as the credential, and the caller owns closing it. Returns (None, None)
    when ACS is not configured at all.
    """
    if cfg.acs.connection_string:
        logger.info("Using ACS connection string authentication")
        return CommunicationIdentityClient.from_connection_string(cfg.acs.connection_string), None
    if cfg.acs.endpoint:
        logger.info("Using ACS endpoint %s with client secret credential", cfg.acs.endpoint)
        credential = ClientSecretCredential(cfg.tenant_id, cfg.client_id, cfg.client_secret)
        return CommunicationIdentityClient(cfg.acs.endpoint, credential), credential
    logger.warning("ACS is not configured; token requests will fail")
    return None, None


def communication_user(user_id: str) -> CommunicationUserIdentifier:
    return CommunicationUserIdentifier(user_id)


def user_id_of(user: CommunicationUserIdentifier) -> str:
    """Raw `8:acs:...` identifier of a communication user."""
    return user.properties["id"]
