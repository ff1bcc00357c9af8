"""API-specific test fixtures.

The app is built with ``create_app()`` but the TestClient is not entered as a
context manager, so the lifespan (database engine, SIGTERM hook) never runs.
Store access goes through the in-memory store via ``get_store`` override.
"""

import pytest
from fastapi.testclient import TestClient

from legalflow.db.store import get_store


@pytest.fixture
def app(store):
    from legalflow.main import create_app

    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def api_client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def auth_headers(make_token):
    """Authorization headers for a tenant id."""

    def _headers(sub: str = "u1", **kwargs) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(sub=sub, **kwargs)}"}

    return _headers
