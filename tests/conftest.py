import os
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
import base64
import hashlib
import html
import re
import secrets
from typing import AsyncGenerator, Dict, Tuple
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.crud.crud_memory import MemoryStorage
from app.crud.crud_sql import SQLStorage
from app.db.session import dispose_engine, get_engine, get_session_factory, init_db
from main import create_app, create_modular_app

TEST_EMAIL = "alice@example.com"
TEST_PASSWORD = "correct horse battery staple"


# --- Settings / apps ---

@pytest.fixture
def test_settings() -> Settings:
    return Settings(ENVIRONMENT="development", RATE_LIMIT_ENABLED=False, STORAGE_BACKEND="memory")


@pytest.fixture
def app(test_settings: Settings):
    return create_app(test_settings)


@pytest.fixture
def modular_app(test_settings: Settings):
    return create_modular_app(test_settings)


@pytest.fixture
def storage(app) -> MemoryStorage:
    return app.state.storage


@pytest.fixture
def modular_storage(modular_app) -> MemoryStorage:
    return modular_app.state.storage


# --- HTTP clients (the cookie jar carries the session) ---

@pytest.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(scope="function")
async def modular_client(modular_app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=modular_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def logged_in_client(async_client: AsyncClient) -> AsyncClient:
    response = await async_client.post("/login", data={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 302
    return async_client


@pytest.fixture
async def logged_in_modular_client(modular_client: AsyncClient) -> AsyncClient:
    response = await modular_client.post("/login", data={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    assert response.status_code == 302
    return modular_client


# --- SQL storage ---

@pytest.fixture
def sql_storage() -> SQLStorage:
    engine = get_engine("sqlite://", name="storage-tests")
    init_db(engine)
    yield SQLStorage(get_session_factory(engine))
    dispose_engine("storage-tests")


# --- PKCE / flow helpers ---

@pytest.fixture
def pkce_pair() -> Tuple[str, str]:
    """(code_verifier, S256 code_challenge)"""
    verifier = secrets.token_urlsafe(48)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


@pytest.fixture
def authorize_params(test_settings: Settings, pkce_pair: Tuple[str, str]) -> Dict[str, str]:
    _, challenge = pkce_pair
    return {
        "response_type": "code",
        "client_id": test_settings.DEMO_CLIENT_ID,
        "redirect_uri": test_settings.DEMO_REDIRECT_URI,
        "scope": "profile",
        "state": "xyz",
        "code_challenge": challenge,
        "code_challenge_method": "S256",
    }


def redirect_query(response) -> Dict[str, str]:
    """Flattened query of a redirect's Location header."""
    query = parse_qs(urlparse(response.headers["location"]).query)
    return {key: values[0] for key, values in query.items()}


def extract_meta(page: str) -> str:
    match = re.search(r'name="meta" value="([^"]*)"', page)
    assert match, "consent form carries no meta field"
    return html.unescape(match.group(1))
