# tests/test_07_modular.py
import json

import pytest
from httpx import AsyncClient

from app.services.auth_service import AuthService
from conftest import extract_meta, redirect_query

pytestmark = pytest.mark.asyncio


@pytest.fixture
def modular_params(test_settings, pkce_pair):
    _, challenge = pkce_pair
    return {
        "response_type": "code",
        "client_id": test_settings.MODULAR_CLIENT_ID,
        "redirect_uri": test_settings.MODULAR_REDIRECT_URI,
        "state": "abc",
        "code_challenge": challenge,
        "code_challenge_method": "S256",
    }


async def test_service_registers_modular_client(modular_app, test_settings):
    service: AuthService = modular_app.state.auth_service
    client = service.find_client(test_settings.MODULAR_CLIENT_ID)
    assert client is not None
    assert client.check_client_secret(test_settings.MODULAR_CLIENT_SECRET)
    # The balanced demo client is not part of this example
    assert service.find_client(test_settings.DEMO_CLIENT_ID) is None


async def test_gate_applies_after_validation(modular_client: AsyncClient, modular_params):
    response = await modular_client.get("/oauth/authorize", params=modular_params)
    assert response.status_code == 302
    assert response.headers["location"] == "/oauth/login"


async def test_dialog_carries_meta_but_no_secret(logged_in_modular_client: AsyncClient, modular_params, test_settings):
    response = await logged_in_modular_client.get("/oauth/authorize", params=modular_params)
    assert response.status_code == 200
    page = response.text
    assert test_settings.MODULAR_CLIENT_SECRET not in page
    assert 'action="/oauth/authorize/decision"' in page

    meta = json.loads(extract_meta(page))
    assert meta["client_id"] == test_settings.MODULAR_CLIENT_ID
    assert meta["state"] == "abc"
    assert meta["code_challenge"] == modular_params["code_challenge"]
    assert "client_secret" not in meta


async def test_consent_issues_short_lived_hex_code(logged_in_modular_client, modular_params, modular_app, test_settings):
    page = (await logged_in_modular_client.get("/oauth/authorize", params=modular_params)).text
    meta = extract_meta(page)

    response = await logged_in_modular_client.post(
        "/oauth/authorize/decision", data={"meta": meta, "consent": "true"},
    )
    assert response.status_code == 302
    assert response.headers["location"].startswith(test_settings.MODULAR_REDIRECT_URI)
    query = redirect_query(response)
    assert query["state"] == "abc"

    code = query["code"]
    assert len(code) == 32
    int(code, 16)

    stored = modular_app.state.auth_service.find_authorization_code(code)
    assert stored is not None
    assert stored.expires_at - stored.auth_time == 60


async def test_denied_consent(logged_in_modular_client, modular_params, modular_storage):
    page = (await logged_in_modular_client.get("/oauth/authorize", params=modular_params)).text
    response = await logged_in_modular_client.post(
        "/oauth/authorize/decision", data={"meta": extract_meta(page), "consent": "false"},
    )
    assert response.status_code == 302
    assert redirect_query(response)["error"] == "access_denied"
    assert modular_storage.authorization_codes == []


@pytest.mark.parametrize("meta", [None, "", "not json", "[1, 2]", '{"state": "abc"}'])
async def test_invalid_meta_rejected(logged_in_modular_client, meta):
    form = {"consent": "true"}
    if meta is not None:
        form["meta"] = meta
    response = await logged_in_modular_client.post("/oauth/authorize/decision", data=form)
    assert response.status_code == 400


async def test_tampered_meta_revalidated(logged_in_modular_client, modular_params, modular_storage):
    page = (await logged_in_modular_client.get("/oauth/authorize", params=modular_params)).text
    meta = json.loads(extract_meta(page))
    meta["redirect_uri"] = "https://evil.example.com/callback"

    response = await logged_in_modular_client.post(
        "/oauth/authorize/decision", data={"meta": json.dumps(meta), "consent": "true"},
    )
    # Unregistered redirect_uri: the library refuses without redirecting anywhere
    assert response.status_code == 400
    assert modular_storage.authorization_codes == []


async def test_unknown_client_rendered_as_error(logged_in_modular_client, modular_params):
    params = dict(modular_params, client_id="no-such-client")
    response = await logged_in_modular_client.get("/oauth/authorize", params=params)
    assert response.status_code == 400
    assert "invalid_client" in response.text
    assert 'name="meta"' not in response.text


async def test_modular_token_exchange(logged_in_modular_client, modular_params, pkce_pair, test_settings):
    verifier, _ = pkce_pair
    page = (await logged_in_modular_client.get("/oauth/authorize", params=modular_params)).text
    decision = await logged_in_modular_client.post(
        "/oauth/authorize/decision", data={"meta": extract_meta(page), "consent": "true"},
    )
    code = redirect_query(decision)["code"]

    response = await logged_in_modular_client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": test_settings.MODULAR_REDIRECT_URI,
            "code_verifier": verifier,
        },
        auth=(test_settings.MODULAR_CLIENT_ID, test_settings.MODULAR_CLIENT_SECRET),
    )
    assert response.status_code == 200, response.text
    access_token = response.json()["access_token"]

    probe = await logged_in_modular_client.get("/api/protected", params={"access_token": access_token})
    assert probe.status_code == 200
    assert probe.json()["client_id"] == test_settings.MODULAR_CLIENT_ID


async def test_modular_code_expires_after_a_minute(logged_in_modular_client, modular_params, pkce_pair, modular_storage, test_settings):
    verifier, _ = pkce_pair
    page = (await logged_in_modular_client.get("/oauth/authorize", params=modular_params)).text
    decision = await logged_in_modular_client.post(
        "/oauth/authorize/decision", data={"meta": extract_meta(page), "consent": "true"},
    )
    code = redirect_query(decision)["code"]
    stored = modular_storage.find_authorization_code(code)
    # Pretend a minute passed
    stored.auth_time -= 60
    stored.expires_at -= 60

    response = await logged_in_modular_client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": test_settings.MODULAR_REDIRECT_URI,
            "code_verifier": verifier,
        },
        auth=(test_settings.MODULAR_CLIENT_ID, test_settings.MODULAR_CLIENT_SECRET),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_grant"
