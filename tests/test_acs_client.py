import pytest

from acs_exchange import acs_client as acs_mod
from acs_exchange.acs_client import build_identity_client, communication_user, user_id_of
from acs_exchange.config import AcsSettings, AppConfig


class _FakeIdentityClient:
    def __init__(self, endpoint, credential):
        self.endpoint = endpoint
        self.credential = credential

    @classmethod
    def from_connection_string(cls, conn_str):
        return cls(conn_str, None)


class _FakeCredential:
    def __init__(self, tenant_id, client_id, client_secret):
        self.args = (tenant_id, client_id, client_secret)


@pytest.fixture(autouse=True)
def fake_sdk(monkeypatch):
    monkeypatch.setattr(acs_mod, "CommunicationIdentityClient", _FakeIdentityClient)
    monkeypatch.setattr(acs_mod, "ClientSecretCredential", _FakeCredential)


def _cfg(**acs):
    return AppConfig(tenant_id="t", client_id="c", client_secret="s", acs=AcsSettings(**acs))


def test_connection_string_takes_precedence():
    client, credential = build_identity_client(_cfg(
        connection_string="endpoint=https://acs.communication.azure.com/;accesskey=a2V5",
        endpoint="https://other.communication.azure.com",
    ))
    assert client.endpoint.startswith("endpoint=https://acs.")
    assert credential is None


def test_endpoint_uses_client_secret_credential():
    client, credential = build_identity_client(_cfg(endpoint="https://acs.communication.azure.com"))
    assert client.endpoint == "https://acs.communication.azure.com"
    assert isinstance(credential, _FakeCredential)
    assert credential.args == ("t", "c", "s")
    assert client.credential is credential


def test_not_configured():
    assert build_identity_client(_cfg()) == (None, None)


def test_user_id_round_trip():
    assert user_id_of(communication_user("8:acs:abc")) == "8:acs:abc"
