"""Response schemas for the user API."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from userapi.models.types import UploadType

if TYPE_CHECKING:
    from userapi.models.auth_key import AuthKey as AuthKeyModel
    from userapi.models.upload import Upload as UploadModel
    from userapi.models.user import User as UserModel


# ── Login ─────────────────────────────────────────────────────────────────────


class LoginResponse(BaseModel):
    issuer: str


# ── API keys ──────────────────────────────────────────────────────────────────


class AuthKeyResponse(BaseModel):
    """An API key. The secret is the bearer token to present on later requests."""

    id: uuid.UUID
    name: str
    secret: str
    created: datetime

    @staticmethod
    def from_model(key: AuthKeyModel) -> AuthKeyResponse:
        return AuthKeyResponse(id=key.id, name=key.name, secret=key.secret, created=key.created)


class DeletedResponse(BaseModel):
    id: uuid.UUID


# ── Account ───────────────────────────────────────────────────────────────────


class AccountResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    used_storage: int = Field(alias='usedStorage', description='Bytes used by live uploads.')
    storage_limit_bytes: str | None = Field(
        alias='storageLimitBytes', description='Value of the StorageLimitBytes tag, if set.'
    )


class UserTags(BaseModel):
    HasAccountRestriction: bool
    HasDeleteRestriction: bool
    HasPsaAccess: bool
    HasSuperHotAccess: bool
    StorageLimitBytes: str


class UserInfo(BaseModel):
    id: uuid.UUID
    issuer: str
    name: str
    email: str
    picture: str
    github: str | None
    public_address: str
    created: datetime
    updated: datetime
    tags: UserTags

    @staticmethod
    def from_model(user: UserModel, tags: UserTags) -> UserInfo:
        return UserInfo(
            id=user.id,
            issuer=user.issuer,
            name=user.name,
            email=user.email,
            picture=user.picture,
            github=user.github,
            public_address=user.public_address,
            created=user.created,
            updated=user.updated,
            tags=tags,
        )


class UserInfoResponse(BaseModel):
    info: UserInfo


# ── Uploads ───────────────────────────────────────────────────────────────────


class UploadResponse(BaseModel):
    """An upload in the caller's listing."""

    id: uuid.UUID
    cid: str = Field(description='Content identifier of the uploaded DAG root.')
    name: str | None
    type: UploadType
    dag_size: int | None = Field(description='Total DAG size in bytes, once known.')
    created: datetime
    updated: datetime

    @staticmethod
    def from_model(upload: UploadModel) -> UploadResponse:
        return UploadResponse(
            id=upload.id,
            cid=upload.cid,
            name=upload.name,
            type=upload.type,
            dag_size=upload.dag_size,
            created=upload.created,
            updated=upload.updated,
        )


class RenameUploadResponse(BaseModel):
    name: str
