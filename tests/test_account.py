from __future__ import annotations

from datetime import UTC, datetime

from fastapi.testclient import TestClient
from sqlmodel import Session

from tests.conftest import auth_headers, create_tag, create_upload, create_user


def test_account_usage_and_limit(client: TestClient, session: Session):
    user = create_user(session)
    create_upload(session, user.id, dag_size=100)
    create_upload(session, user.id, dag_size=250)
    create_upload(session, user.id, dag_size=None)
    create_upload(session, user.id, dag_size=1000, deleted_at=datetime(2024, 2, 1, tzinfo=UTC))
    create_tag(session, user.id, 'StorageLimitBytes', '1000000')

    resp = client.get('/user/account', headers=auth_headers(user))
    assert resp.status_code == 200
    assert resp.json() == {'usedStorage': 350, 'storageLimitBytes': '1000000'}


def test_account_without_uploads_or_limit(client: TestClient, session: Session):
    user = create_user(session)

    resp = client.get('/user/account', headers=auth_headers(user))
    assert resp.json() == {'usedStorage': 0, 'storageLimitBytes': None}


def test_info_reports_tags(client: TestClient, session: Session):
    user = create_user(session, name='alice', github='alice-gh')
    create_tag(session, user.id, 'HasPsaAccess', 'true')
    create_tag(session, user.id, 'HasDeleteRestriction', 'false')
    create_tag(
        session, user.id, 'HasSuperHotAccess', 'true', deleted_at=datetime(2024, 1, 1, tzinfo=UTC)
    )

    resp = client.get('/user/info', headers=auth_headers(user))
    assert resp.status_code == 200
    info = resp.json()['info']
    assert info['issuer'] == user.issuer
    assert info['github'] == 'alice-gh'
    assert info['tags'] == {
        'HasAccountRestriction': False,
        'HasDeleteRestriction': False,
        'HasPsaAccess': True,
        'HasSuperHotAccess': False,
        'StorageLimitBytes': '',
    }


def test_info_latest_tag_wins(client: TestClient, session: Session):
    user = create_user(session)
    create_tag(session, user.id, 'StorageLimitBytes', '10')
    create_tag(session, user.id, 'StorageLimitBytes', '20')

    info = client.get('/user/info', headers=auth_headers(user)).json()['info']
    assert info['tags']['StorageLimitBytes'] == '20'


def test_info_unregistered_issuer(client: TestClient):
    resp = client.get('/user/info', headers={'Authorization': 'Bearer fake:did:ethr:unknown'})
    assert resp.status_code == 401
