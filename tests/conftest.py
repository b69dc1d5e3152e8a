"""
Pytest fixtures for the verification service
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from bungie_client import BungieIdentity
from config import Settings
from oauth_server import create_app


@pytest.fixture
def settings():
    return Settings(
        bungie_client_id="12345",
        bungie_api_key="test-api-key",
        redirect_uri="http://localhost:3000/callback",
    )


@pytest.fixture
def provider():
    """Bungie stub that authenticates Unitye#1234"""
    stub = MagicMock()
    stub.exchange_code = AsyncMock(return_value="access-token")
    stub.fetch_identity = AsyncMock(return_value=BungieIdentity("Unitye", 1234))
    return stub


@pytest.fixture
def store():
    stub = MagicMock()
    stub.mark_verified = AsyncMock()
    return stub


@pytest.fixture
def app(settings, provider, store):
    app = create_app(settings, provider=provider, store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
