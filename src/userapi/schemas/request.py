"""Request body schemas for the user API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ── Login ─────────────────────────────────────────────────────────────────────


class OAuthUserInfo(BaseModel):
    name: str | None = None
    picture: str | None = None


class OAuthResult(BaseModel):
    user_info: OAuthUserInfo = Field(default_factory=OAuthUserInfo, alias='userInfo')
    user_handle: str | None = Field(default=None, alias='userHandle')


class OAuthRedirectData(BaseModel):
    oauth: OAuthResult


class LoginRequest(BaseModel):
    """Login or register. type='github' carries the OAuth redirect result in data."""

    type: str | None = Field(default=None, description="'github' or 'magic'.")
    data: OAuthRedirectData | None = Field(
        default=None, description='OAuth redirect result, required for github logins.'
    )


# ── API keys ──────────────────────────────────────────────────────────────────


class CreateTokenRequest(BaseModel):
    """Create a named API key. The name is checked by the route so bad values are a 400."""

    name: Any = Field(default=None, description='Human-readable key name.')


# ── Uploads ───────────────────────────────────────────────────────────────────


class RenameUploadRequest(BaseModel):
    name: str = Field(description='New display name for the upload.')
