"""API key secrets: HS256 JWTs signed with the service salt."""

from __future__ import annotations

import time

import jwt

ALGORITHM = 'HS256'


def sign_api_key(*, issuer: str, name: str, salt: str, jwt_issuer: str) -> str:
    payload = {
        'sub': issuer,
        'iss': jwt_issuer,
        'iat': int(time.time()),
        'name': name,
    }
    return jwt.encode(payload, salt, algorithm=ALGORITHM)


def verify_api_key(token: str, *, salt: str, jwt_issuer: str) -> dict | None:
    """Return the decoded claims if the token is one of our API keys, else None."""
    try:
        return jwt.decode(token, salt, algorithms=[ALGORITHM], issuer=jwt_issuer)
    except jwt.InvalidTokenError:
        return None
