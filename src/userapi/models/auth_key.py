import uuid
from datetime import UTC, datetime

from sqlmodel import Field, Relationship, SQLModel


class AuthKey(SQLModel, table=True):
    """An API key. Deleting a key sets deleted_at; the row is kept."""

    __tablename__ = 'auth_key'  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key='user.id', index=True)
    name: str
    secret: str = Field(index=True)
    created: datetime = Field(default_factory=lambda: datetime.now(UTC))
    deleted_at: datetime | None = None

    user: 'User' = Relationship(back_populates='auth_keys')  # noqa: F821


# Avoid circular imports - resolved at runtime by SQLModel.
from userapi.models.user import User  # noqa: E402

__all__ = ['AuthKey', 'User']
