from __future__ import annotations

from fastapi.testclient import TestClient
from sqlmodel import Session

from tests.conftest import FakeIdentityProvider, create_user
from userapi.dependencies import get_identity_provider
from userapi.identity import IdentityMetadata
from userapi.main import app
from userapi.queries import get_user_by_issuer

ISSUER = 'did:ethr:0x1234'


def _headers(issuer: str = ISSUER) -> dict[str, str]:
    return {'Authorization': f'Bearer fake:{issuer}'}


def test_login_registers_magic_user(client: TestClient, session: Session):
    resp = client.post('/user/login', json={'type': 'magic'}, headers=_headers())
    assert resp.status_code == 200
    assert resp.json() == {'issuer': ISSUER}

    user = get_user_by_issuer(session, ISSUER)
    assert user is not None
    assert user.name == 'alice'
    assert user.picture == ''
    assert user.email == 'alice@example.com'
    assert user.github is None


def test_login_registers_github_user(client: TestClient, session: Session):
    body = {
        'type': 'github',
        'data': {
            'oauth': {
                'userInfo': {'name': 'Alice Liddell', 'picture': 'https://example.com/a.png'},
                'userHandle': 'alice-gh',
            }
        },
    }
    resp = client.post('/user/login', json=body, headers=_headers())
    assert resp.status_code == 200

    user = get_user_by_issuer(session, ISSUER)
    assert user is not None
    assert user.name == 'Alice Liddell'
    assert user.picture == 'https://example.com/a.png'
    assert user.github == 'alice-gh'


def test_login_updates_existing_user(client: TestClient, session: Session):
    existing = create_user(session, issuer=ISSUER, name='old name', email='old@example.com')

    resp = client.post('/user/login', json={}, headers=_headers())
    assert resp.status_code == 200

    session.refresh(existing)
    assert existing.email == 'alice@example.com'
    assert existing.name == 'alice'


def test_login_missing_metadata(
    client: TestClient, identity_provider: FakeIdentityProvider, session: Session
):
    identity_provider.accounts[ISSUER] = IdentityMetadata(
        issuer=ISSUER, email=None, public_address='0xabc'
    )
    resp = client.post('/user/login', json={'type': 'magic'}, headers=_headers())
    assert resp.status_code == 400
    assert resp.json()['detail'] == 'missing required metadata'
    assert get_user_by_issuer(session, ISSUER) is None


def test_login_without_token(client: TestClient):
    resp = client.post('/user/login', json={'type': 'magic'})
    assert resp.status_code == 401


def test_login_with_rejected_token(client: TestClient):
    resp = client.post(
        '/user/login', json={'type': 'magic'}, headers={'Authorization': 'Bearer nope'}
    )
    assert resp.status_code == 401


def test_login_without_provider(client: TestClient):
    app.dependency_overrides[get_identity_provider] = lambda: None
    resp = client.post('/user/login', json={'type': 'magic'}, headers=_headers())
    assert resp.status_code == 503
