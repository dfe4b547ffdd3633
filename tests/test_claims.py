from acs_exchange.claims import extract_bearer_token, object_id_from_claims, read_claims, scopes_from_claims


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
    assert extract_bearer_token("bearer   abc ") == "abc"


def test_extract_bearer_token_missing_or_wrong_scheme():
    assert extract_bearer_token(None) is None
    assert extract_bearer_token("") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token("Basic dXNlcjpwYXNz") is None


def test_object_id_prefers_schema_claim():
    claims = {
        "http://schemas.microsoft.com/identity/claims/objectidentifier": "from-schema",
        "oid": "from-oid",
    }
    assert object_id_from_claims(claims) == "from-schema"


def test_object_id_from_oid_claim(make_token):
    assert object_id_from_claims(read_claims(make_token(oid="abc-123"))) == "abc-123"


def test_object_id_absent(make_token):
    assert object_id_from_claims(read_claims(make_token(name="no oid"))) is None


def test_read_claims_of_non_jwt_is_empty():
    assert read_claims("not-a-jwt") == {}


def test_scopes_from_scp_claim():
    assert scopes_from_claims({"scp": "User.Read access_as_user"}) == ["User.Read", "access_as_user"]


def test_scopes_from_uri_claim():
    claims = {"http://schemas.microsoft.com/identity/claims/scope": "access_as_user"}
    assert scopes_from_claims(claims) == ["access_as_user"]


def test_scopes_absent():
    assert scopes_from_claims({"oid": "abc-123"}) == []
