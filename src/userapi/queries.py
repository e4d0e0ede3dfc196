"""Database query functions. Return SQLModel objects - callers handle transformation."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from userapi.errors import UploadStoreError
from userapi.models.auth_key import AuthKey
from userapi.models.upload import Upload
from userapi.models.user import User, UserTag
from userapi.pagination import PageRequest

logger = logging.getLogger(__name__)

# ── Users ─────────────────────────────────────────────────────────────────────


def get_user_by_issuer(session: Session, issuer: str) -> User | None:
    """Return the user registered under an identity-provider issuer, or None."""
    return session.exec(select(User).where(User.issuer == issuer)).first()


def upsert_user(session: Session, fields: dict) -> User:
    """Create or update the user identified by fields['issuer'], commit, and return it."""
    user = get_user_by_issuer(session, fields['issuer'])
    if user is None:
        user = User(**fields)
        logger.info('Registering new user %s', fields['issuer'])
    else:
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated = datetime.now(UTC)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


# ── Tags ──────────────────────────────────────────────────────────────────────


def get_user_tag_value(session: Session, user_id: uuid.UUID, tag: str) -> str | None:
    """Return the value of the most recent live tag with this name, or None."""
    return session.exec(
        select(UserTag.value)
        .where(
            UserTag.user_id == user_id,
            UserTag.tag == tag,
            col(UserTag.deleted_at).is_(None),
        )
        .order_by(col(UserTag.id).desc())
        .limit(1)
    ).first()


def get_user_tags(session: Session, user_id: uuid.UUID) -> dict[str, str]:
    """Return every live tag for a user as {tag: value}; later rows win."""
    rows = session.exec(
        select(UserTag)
        .where(UserTag.user_id == user_id, col(UserTag.deleted_at).is_(None))
        .order_by(col(UserTag.id))
    ).all()
    return {row.tag: row.value for row in rows}


# ── API keys ──────────────────────────────────────────────────────────────────


def create_key(session: Session, *, user_id: uuid.UUID, name: str, secret: str) -> AuthKey:
    """Store an API key, commit, and return it."""
    key = AuthKey(user_id=user_id, name=name, secret=secret)
    session.add(key)
    session.commit()
    session.refresh(key)
    return key


def list_keys(session: Session, user_id: uuid.UUID) -> list[AuthKey]:
    """Return a user's live API keys, oldest first."""
    return list(
        session.exec(
            select(AuthKey)
            .where(AuthKey.user_id == user_id, col(AuthKey.deleted_at).is_(None))
            .order_by(col(AuthKey.created))
        ).all()
    )


def find_live_key(session: Session, secret: str) -> AuthKey | None:
    """Return the live API key with this secret, or None."""
    return session.exec(
        select(AuthKey).where(AuthKey.secret == secret, col(AuthKey.deleted_at).is_(None))
    ).first()


def delete_key(session: Session, user_id: uuid.UUID, key_id: uuid.UUID) -> AuthKey | None:
    """Tombstone a user's API key. Returns None when no live key matches."""
    key = session.get(AuthKey, key_id)
    if key is None or key.user_id != user_id or key.deleted_at is not None:
        return None
    key.deleted_at = datetime.now(UTC)
    session.add(key)
    session.commit()
    session.refresh(key)
    return key


# ── Uploads ───────────────────────────────────────────────────────────────────

_SORT_COLUMNS = {
    'Date': Upload.created,
    'Name': Upload.name,
}


@dataclass
class UploadPage:
    """One page of a user's uploads plus the total number of matching rows."""

    uploads: list[Upload]
    count: int


def _live_upload(session: Session, user_id: uuid.UUID, cid: str) -> Upload | None:
    return session.exec(
        select(Upload).where(
            Upload.user_id == user_id,
            Upload.cid == cid,
            col(Upload.deleted_at).is_(None),
        )
    ).first()


def list_uploads(session: Session, user_id: uuid.UUID, request: PageRequest) -> UploadPage:
    """Return one page of a user's live uploads, filtered and sorted per the request.

    Unknown sort keys fall back to upload date; any order other than 'Asc' is descending.
    """
    filters = [Upload.user_id == user_id, col(Upload.deleted_at).is_(None)]
    if request.before is not None:
        filters.append(col(Upload.created) < datetime.fromisoformat(request.before))
    if request.after is not None:
        filters.append(col(Upload.created) > datetime.fromisoformat(request.after))

    sort_column = col(_SORT_COLUMNS.get(request.sort_by, Upload.created))
    ordering = sort_column.asc() if request.sort_order == 'Asc' else sort_column.desc()

    try:
        count = session.exec(select(func.count()).select_from(Upload).where(*filters)).one()
        uploads = session.exec(
            select(Upload)
            .where(*filters)
            .order_by(ordering, col(Upload.id))
            .offset(request.offset)
            .limit(request.size)
        ).all()
    except SQLAlchemyError as exc:
        logger.exception('Listing uploads failed for user %s', user_id)
        raise UploadStoreError('failed to list uploads') from exc

    return UploadPage(uploads=list(uploads), count=count)


def get_storage_used(session: Session, user_id: uuid.UUID) -> int:
    """Return the total dag_size in bytes of a user's live uploads."""
    total = session.exec(
        select(func.coalesce(func.sum(Upload.dag_size), 0)).where(
            Upload.user_id == user_id, col(Upload.deleted_at).is_(None)
        )
    ).one()
    return int(total)


def delete_upload(session: Session, user_id: uuid.UUID, cid: str) -> Upload | None:
    """Tombstone a user's upload. Returns None when no live upload matches."""
    upload = _live_upload(session, user_id, cid)
    if upload is None:
        return None
    upload.deleted_at = datetime.now(UTC)
    upload.updated = upload.deleted_at
    session.add(upload)
    session.commit()
    session.refresh(upload)
    return upload


def rename_upload(session: Session, user_id: uuid.UUID, cid: str, name: str) -> Upload | None:
    """Rename a user's upload. Returns None when no live upload matches."""
    upload = _live_upload(session, user_id, cid)
    if upload is None:
        return None
    upload.name = name
    upload.updated = datetime.now(UTC)
    session.add(upload)
    session.commit()
    session.refresh(upload)
    return upload
