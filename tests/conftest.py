from collections import namedtuple
from datetime import datetime, timezone

import jwt
import pytest

from acs_exchange.acs_client import communication_user
from acs_exchange.errors import AuthExchangeFailed
from acs_exchange.service import TokenExchangeService

FakeAccessToken = namedtuple("FakeAccessToken", ["token", "expires_on"])

EXPIRES_ON = datetime(2026, 10, 20, 12, 0, tzinfo=timezone.utc)
NEW_USER_ID = "8:acs:00000000-0000-0000-0000-000000000001_00000020-aaaa-bbbb"


def _encode(**claims) -> str:
    return jwt.encode(claims, "test-secret", algorithm="HS256")


class FakeOBO:
    def __init__(self, result="OBO_TOKEN", error=None):
        self.result = result
        self.error = error
        self.calls = []

    def acquire_token_on_behalf_of(self, user_assertion, scopes=()):
        self.calls.append((user_assertion, tuple(scopes)))
        if self.error is not None:
            raise self.error
        return self.result


class FakeIdentityClient:
    user_id = NEW_USER_ID
    expires_on = EXPIRES_ON

    def __init__(self):
        self.calls = []

    async def create_user(self):
        self.calls.append(("create_user",))
        return communication_user(NEW_USER_ID)

    async def get_token(self, user, scopes):
        self.calls.append(("get_token", user.properties["id"], list(scopes)))
        return FakeAccessToken("ACS_TOKEN", EXPIRES_ON)

    async def get_token_for_teams_user(self, aad_token, client_id, user_object_id):
        self.calls.append(("get_token_for_teams_user", aad_token, client_id, user_object_id))
        return FakeAccessToken("TEAMS_TOKEN", EXPIRES_ON)


@pytest.fixture
def obo():
    return FakeOBO()


@pytest.fixture
def rejecting_obo():
    return FakeOBO(error=AuthExchangeFailed("Token acquisition failed: invalid_grant", error_code="invalid_grant"))


@pytest.fixture
def identity_client():
    return FakeIdentityClient()


@pytest.fixture
def service(obo, identity_client):
    return TokenExchangeService(obo, identity_client, client_id="app-client-id", call_timeout=1.0)


@pytest.fixture
def caller_token():
    return _encode(oid="abc-123", name="Adele Vance")


@pytest.fixture
def make_token():
    return _encode
