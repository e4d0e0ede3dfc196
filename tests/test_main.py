from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from userapi.config import Settings
from userapi.identity import MagicIdentityProvider
from userapi.main import app, run

client = TestClient(app)


def test_root():
    response = client.get('/')
    assert response.status_code == 200
    assert response.json() == {'message': 'Hello, userapi!'}


def test_health():
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json() == {'status': 'ok'}


def test_lifespan_builds_and_closes_identity_provider(monkeypatch: pytest.MonkeyPatch):
    settings = Settings(MAGIC_SECRET_KEY='sk_test')
    monkeypatch.setattr('userapi.main.get_settings', lambda: settings)

    with TestClient(app):
        provider = app.state.identity_provider
        assert isinstance(provider, MagicIdentityProvider)
        assert not provider._client.is_closed

    assert provider._client.is_closed
    assert app.state.identity_provider is None


def test_lifespan_without_secret_disables_login(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr('userapi.main.get_settings', lambda: Settings(MAGIC_SECRET_KEY=None))

    with TestClient(app) as lifespan_client:
        assert app.state.identity_provider is None
        resp = lifespan_client.post(
            '/user/login', json={'type': 'magic'}, headers={'Authorization': 'Bearer x'}
        )
        assert resp.status_code == 503


def test_run_serves_with_uvicorn(monkeypatch: pytest.MonkeyPatch):
    calls = []
    monkeypatch.setattr('userapi.main.uvicorn.run', lambda *a, **kw: calls.append((a, kw)))
    monkeypatch.setattr('userapi.main.get_settings', lambda: Settings(HOST='0.0.0.0', PORT=9000))

    run()
    assert calls == [(('userapi.main:app',), {'host': '0.0.0.0', 'port': 9000})]
