"""Shared FastAPI dependencies for the user API."""

from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request
from sqlmodel import Session

from userapi.config import Settings, get_settings
from userapi.db import get_session
from userapi.errors import IdentityError
from userapi.identity import IdentityProvider, parse_authorization_header
from userapi.models.user import User
from userapi.queries import find_live_key, get_user_by_issuer
from userapi.tokens import verify_api_key


def get_identity_provider(request: Request) -> IdentityProvider | None:
    """The provider built at startup, or None when no provider secret is set."""
    return getattr(request.app.state, 'identity_provider', None)


def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    """Extract the bearer token from the Authorization header, or 401."""
    try:
        return parse_authorization_header(authorization)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def get_current_user(
    token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
    provider: IdentityProvider | None = Depends(get_identity_provider),
) -> User:
    """Resolve the caller from an API key or an identity-provider token, or 401."""
    if verify_api_key(token, salt=settings.SALT, jwt_issuer=settings.JWT_ISSUER) is not None:
        key = find_live_key(session, token)
        if key is None:
            raise HTTPException(status_code=401, detail='API key has been revoked.')
        return key.user

    if provider is None:
        raise HTTPException(status_code=401, detail='Invalid API key.')
    try:
        issuer = provider.validate(token)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    user = get_user_by_issuer(session, issuer)
    if not user:
        raise HTTPException(status_code=401, detail='User is not registered.')
    return user
