from __future__ import annotations

import logging
from collections.abc import Generator

from sqlmodel import Session, SQLModel, create_engine

from userapi.config import DATA_DIR, get_settings

logger = logging.getLogger(__name__)

DB_URL = get_settings().DATABASE_URL

_connect_args = {'check_same_thread': False} if DB_URL.startswith('sqlite') else {}
engine = create_engine(DB_URL, connect_args=_connect_args)


def create_db_and_tables() -> None:
    import userapi.models  # noqa: F401 - registers all tables on metadata

    if DB_URL.startswith('sqlite'):
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    logger.info('Database tables ready at %s', engine.url.render_as_string(hide_password=True))


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
