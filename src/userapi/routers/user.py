"""Account endpoints for the authenticated caller: login, API keys, account info and uploads."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlmodel import Session

from userapi.config import Settings, get_settings
from userapi.db import get_session
from userapi.dependencies import get_current_user, get_identity_provider
from userapi.errors import IdentityError, IdentityProviderError, PageRequestError
from userapi.identity import IdentityMetadata, IdentityProvider, parse_authorization_header
from userapi.models.types import BOOLEAN_TAGS, UserTagName
from userapi.models.user import User
from userapi.pagination import page_headers, parse_page_request
from userapi.queries import (
    create_key,
    delete_key,
    delete_upload,
    get_storage_used,
    get_user_tag_value,
    get_user_tags,
    list_keys,
    rename_upload,
    upsert_user,
)
from userapi.queries import list_uploads as query_list_uploads
from userapi.schemas.request import CreateTokenRequest, LoginRequest, RenameUploadRequest
from userapi.schemas.response import (
    AccountResponse,
    AuthKeyResponse,
    DeletedResponse,
    LoginResponse,
    RenameUploadResponse,
    UploadResponse,
    UserInfo,
    UserInfoResponse,
    UserTags,
)
from userapi.tokens import sign_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/user', tags=['user'])


# ── Login ─────────────────────────────────────────────────────────────────────


def _user_fields(body: LoginRequest, metadata: IdentityMetadata) -> dict:
    """Map the login body and provider metadata onto User columns."""
    fields = {
        'issuer': metadata.issuer,
        'email': metadata.email,
        'public_address': metadata.public_address,
    }
    if body.type == 'github':
        if body.data is None:
            raise HTTPException(status_code=400, detail='missing oauth data')
        oauth = body.data.oauth
        fields.update(
            name=oauth.user_info.name or '',
            picture=oauth.user_info.picture or '',
            github=oauth.user_handle,
        )
    else:
        fields.update(name=metadata.email.split('@')[0], picture='')
    return fields


@router.post('/login', response_model=LoginResponse)
def login(
    body: LoginRequest,
    authorization: str | None = Header(default=None),
    provider: IdentityProvider | None = Depends(get_identity_provider),
    session: Session = Depends(get_session),
) -> LoginResponse:
    """Log in, registering the account on first use."""
    if provider is None:
        raise HTTPException(status_code=503, detail='Identity provider is not configured.')
    try:
        token = parse_authorization_header(authorization)
        provider.validate(token)
        metadata = provider.get_metadata(token)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except IdentityProviderError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if not metadata.issuer or not metadata.email or not metadata.public_address:
        raise HTTPException(status_code=400, detail='missing required metadata')

    user = upsert_user(session, _user_fields(body, metadata))
    return LoginResponse(issuer=user.issuer)


# ── API keys ──────────────────────────────────────────────────────────────────


@router.post('/tokens', response_model=AuthKeyResponse, status_code=201)
def create_token(
    body: CreateTokenRequest,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
) -> AuthKeyResponse:
    """Create a new API key."""
    if not body.name or not isinstance(body.name, str):
        raise HTTPException(status_code=400, detail='invalid name')

    secret = sign_api_key(
        issuer=user.issuer, name=body.name, salt=settings.SALT, jwt_issuer=settings.JWT_ISSUER
    )
    key = create_key(session, user_id=user.id, name=body.name, secret=secret)
    logger.info('Created API key %s for user %s', key.id, user.id)
    return AuthKeyResponse.from_model(key)


@router.get('/tokens', response_model=list[AuthKeyResponse])
def get_tokens(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[AuthKeyResponse]:
    """List the caller's API keys."""
    return [AuthKeyResponse.from_model(k) for k in list_keys(session, user.id)]


@router.delete('/tokens/{key_id}', response_model=DeletedResponse)
def delete_token(
    key_id: uuid.UUID,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> DeletedResponse:
    """Revoke an API key. The key is tombstoned rather than removed."""
    key = delete_key(session, user.id, key_id)
    if not key:
        raise HTTPException(status_code=404, detail='Token not found')
    return DeletedResponse(id=key.id)


# ── Account ───────────────────────────────────────────────────────────────────


@router.get('/account', response_model=AccountResponse)
def get_account(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> AccountResponse:
    """Storage used by the caller and their storage limit, if any."""
    return AccountResponse(
        used_storage=get_storage_used(session, user.id),
        storage_limit_bytes=get_user_tag_value(session, user.id, UserTagName.storage_limit_bytes),
    )


@router.get('/info', response_model=UserInfoResponse)
def get_info(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> UserInfoResponse:
    """The caller's profile and feature-flag tags."""
    tags = get_user_tags(session, user.id)
    flags = {str(name): tags.get(name) == 'true' for name in BOOLEAN_TAGS}
    user_tags = UserTags(
        **flags, StorageLimitBytes=tags.get(UserTagName.storage_limit_bytes, '')
    )
    return UserInfoResponse(info=UserInfo.from_model(user, user_tags))


# ── Uploads ───────────────────────────────────────────────────────────────────


@router.get('/uploads', response_model=list[UploadResponse])
def list_uploads(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> list[UploadResponse]:
    """A page of the caller's uploads.

    Query params: size (1-1000, default 25), offset (0-1000, default 0),
    before/after (ISO-8601), sortBy (default Date), sortOrder (default Desc).
    Totals and navigation links are returned in the Count, Size, Offset,
    Next_link and Prev_link headers.
    """
    try:
        page_request = parse_page_request(request.query_params)
    except PageRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    page = query_list_uploads(session, user.id, page_request)
    response.headers.update(page_headers(request.url.path, page_request, page))
    return [UploadResponse.from_model(u) for u in page.uploads]


@router.delete('/uploads/{cid}', response_model=DeletedResponse)
def remove_upload(
    cid: str,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> DeletedResponse:
    """Delete an upload. The upload is tombstoned rather than removed."""
    upload = delete_upload(session, user.id, cid)
    if not upload:
        raise HTTPException(status_code=404, detail='Upload not found')
    return DeletedResponse(id=upload.id)


@router.patch('/uploads/{cid}', response_model=RenameUploadResponse)
def patch_upload(
    cid: str,
    body: RenameUploadRequest,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> RenameUploadResponse:
    """Rename an upload."""
    upload = rename_upload(session, user.id, cid, body.name)
    if not upload:
        raise HTTPException(status_code=404, detail='Upload not found')
    return RenameUploadResponse(name=upload.name or '')
