# tests/test_02_models.py
import time

from app.core import security
from app.db.initial_data import build_client
from app.models.oauth2_access_token import OAuth2AccessToken
from app.models.oauth2_authorization_code import OAuth2AuthorizationCode

REDIRECT_URI = "https://client.example.com/callback"
OTHER_URI = "https://client.example.com/other"


def test_client_secret_is_hashed_and_verified():
    client = build_client("client-a", [REDIRECT_URI], client_secret="s3cret")
    assert client.client_secret_hash != "s3cret"
    assert client.has_client_secret()
    assert client.check_client_secret("s3cret")
    assert not client.check_client_secret("wrong")


def test_client_redirect_uris():
    client = build_client("client-a", [REDIRECT_URI, OTHER_URI])
    assert client.get_default_redirect_uri() == REDIRECT_URI
    assert client.check_redirect_uri(OTHER_URI)
    assert not client.check_redirect_uri("https://evil.example.com/callback")


def test_client_endpoint_auth_methods():
    confidential = build_client("client-a", [REDIRECT_URI], client_secret="s3cret")
    public = build_client("client-b", [REDIRECT_URI])

    assert confidential.check_endpoint_auth_method("client_secret_basic", "token")
    assert confidential.check_endpoint_auth_method("client_secret_post", "token")
    assert not confidential.check_endpoint_auth_method("none", "token")

    assert public.check_endpoint_auth_method("none", "token")
    assert not public.check_endpoint_auth_method("client_secret_basic", "token")
    assert not public.check_client_secret("anything")


def test_client_scope_filtering():
    unrestricted = build_client("client-a", [REDIRECT_URI])
    restricted = build_client("client-b", [REDIRECT_URI], scope="profile email")

    assert unrestricted.get_allowed_scope("profile admin") == "profile admin"
    assert restricted.get_allowed_scope("profile admin") == "profile"
    assert restricted.get_allowed_scope("") == ""


def test_client_response_and_grant_types():
    client = build_client("client-a", [REDIRECT_URI])
    assert client.check_response_type("code")
    assert not client.check_response_type("token")
    assert client.check_grant_type("authorization_code")
    assert not client.check_grant_type("refresh_token")


def test_authorization_code_expiry_boundary():
    code = OAuth2AuthorizationCode(
        code="c", client_id="client-a", user_id="u", auth_time=1000, expires_at=1060,
    )
    assert not code.is_expired(now=1059)
    assert code.is_expired(now=1060)
    assert code.is_expired(now=2000)
    assert code.get_scope() == ""
    assert code.get_redirect_uri() is None


def test_access_token_valid_only_before_expiry():
    now = int(time.time())
    token = OAuth2AccessToken(
        token="t", client_id="client-a", issued_at=now, expires_at=now + 1800, ttl=1800,
    )
    assert not token.is_expired()
    assert token.is_expired(now=now + 1800)
    assert token.get_expires_in() == 1800
    assert not token.is_revoked()


def test_generated_values():
    uuid_token = security.generate_uuid_token()
    hex_code = security.generate_hex_code()

    assert len(uuid_token) == 36
    assert uuid_token != security.generate_uuid_token()
    assert len(hex_code) == 32
    int(hex_code, 16)


def test_verify_client_secret_with_malformed_hash():
    assert security.verify_client_secret("s3cret", "not-a-hash") is False
