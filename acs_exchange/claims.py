"""Read caller identity from the inbound bearer token.

Signature and audience validation happen upstream (App Service authentication / the Teams SSO
handshake), and the On-Behalf-Of exchange is rejected by Entra ID for any token it did not issue.
This module only reads the claims it needs.
"""

from typing import Any, Dict, List, Optional

import jwt

OBJECT_ID_CLAIMS = (
    "http://schemas.microsoft.com/identity/claims/objectidentifier",
    "oid",
)
SCOPE_CLAIMS = (
    "scp",
    "http://schemas.microsoft.com/identity/claims/scope",
)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header value, or None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def read_claims(token: str) -> Dict[str, Any]:
    """Decode the token payload without verifying it. Returns {} for anything that isn't a JWT."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return {}


def object_id_from_claims(claims: Dict[str, Any]) -> Optional[str]:
    for name in OBJECT_ID_CLAIMS:
        value = claims.get(name)
        if value:
            return str(value)
    return None


def scopes_from_claims(claims: Dict[str, Any]) -> List[str]:
    """Delegated scopes granted to the token (`scp` is a space separated string)."""
    for name in SCOPE_CLAIMS:
        value = claims.get(name)
        if value:
            return str(value).split()
    return []
