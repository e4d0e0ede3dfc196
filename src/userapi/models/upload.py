from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlmodel import Field, SQLModel

from userapi.models.types import UploadType


class Upload(SQLModel, table=True):
    __tablename__ = 'upload'  # type: ignore[assignment]

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key='user.id', index=True)
    cid: str = Field(index=True)
    name: str | None = None
    type: UploadType = UploadType.upload
    dag_size: int | None = None  # bytes
    created: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    updated: datetime = Field(default_factory=lambda: datetime.now(UTC))
    deleted_at: datetime | None = None
