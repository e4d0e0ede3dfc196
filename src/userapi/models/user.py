
import uuid
from datetime import UTC, datetime

from sqlmodel import Field, Relationship, SQLModel


class User(SQLModel, table=True):
    __tablename__ = 'user'  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    issuer: str = Field(sa_column_kwargs={'unique': True, 'index': True})
    name: str
    email: str
    picture: str = ''
    github: str | None = None
    public_address: str
    created: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated: datetime = Field(default_factory=lambda: datetime.now(UTC))

    tags: list['UserTag'] = Relationship(back_populates='user')
    auth_keys: list['AuthKey'] = Relationship(back_populates='user')  # noqa: F821


class UserTag(SQLModel, table=True):
    __tablename__ = 'user_tag'  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key='user.id', index=True)
    tag: str
    value: str
    inserted_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    deleted_at: datetime | None = None

    user: 'User' = Relationship(back_populates='tags')


# Avoid circular imports - resolved at runtime by SQLModel.
from userapi.models.auth_key import AuthKey  # noqa: E402

__all__ = ['User', 'UserTag', 'AuthKey']
