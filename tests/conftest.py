from __future__ import annotations

import uuid
from collections.abc import Generator
from datetime import UTC, datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import userapi.models  # noqa: F401 - registers all tables on metadata
from userapi.db import get_session
from userapi.dependencies import get_identity_provider
from userapi.errors import IdentityError
from userapi.identity import IdentityMetadata, IdentityProvider
from userapi.main import app
from userapi.models.types import UploadType
from userapi.models.upload import Upload
from userapi.models.user import User, UserTag


class FakeIdentityProvider(IdentityProvider):
    """Accepts tokens of the form 'fake:<issuer>'."""

    def __init__(self) -> None:
        self.accounts: dict[str, IdentityMetadata] = {}

    def validate(self, token: str) -> str:
        if not token.startswith('fake:'):
            raise IdentityError('malformed identity token')
        return token.removeprefix('fake:')

    def get_metadata(self, token: str) -> IdentityMetadata:
        issuer = self.validate(token)
        return self.accounts.get(
            issuer,
            IdentityMetadata(issuer=issuer, email='alice@example.com', public_address='0xabc'),
        )


@pytest.fixture
def session() -> Generator[Session, None, None]:
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def client(
    session: Session, identity_provider: FakeIdentityProvider
) -> Generator[TestClient, None, None]:
    def _override_get_session() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    return {'Authorization': f'Bearer fake:{user.issuer}'}


# ── Factory functions ─────────────────────────────────────────────────────────


def create_user(session: Session, **overrides: Any) -> User:
    defaults: dict[str, Any] = {
        'issuer': f'did:ethr:{uuid.uuid4().hex}',
        'name': 'alice',
        'email': 'alice@example.com',
        'picture': '',
        'public_address': '0xabc',
    }
    defaults.update(overrides)
    user = User(**defaults)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_upload(session: Session, user_id: uuid.UUID, **overrides: Any) -> Upload:
    defaults: dict[str, Any] = {
        'user_id': user_id,
        'cid': f'bafy{uuid.uuid4().hex}',
        'name': 'upload.car',
        'type': UploadType.car,
        'dag_size': 100,
        'created': datetime(2024, 1, 1, tzinfo=UTC),
    }
    defaults.update(overrides)
    upload = Upload(**defaults)
    session.add(upload)
    session.commit()
    session.refresh(upload)
    return upload


def create_tag(session: Session, user_id: uuid.UUID, tag: str, value: str, **overrides: Any) -> UserTag:
    user_tag = UserTag(user_id=user_id, tag=tag, value=value, **overrides)
    session.add(user_tag)
    session.commit()
    session.refresh(user_tag)
    return user_tag
