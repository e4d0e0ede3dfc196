from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from userapi.config import get_settings
from userapi.db import create_db_and_tables
from userapi.errors import UploadStoreError
from userapi.identity import build_identity_provider
from userapi.routers import user

logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    create_db_and_tables()
    provider = build_identity_provider(settings.MAGIC_SECRET_KEY, settings.MAGIC_API_URL)
    if provider is None:
        logger.warning('MAGIC_SECRET_KEY is not set; login is disabled')
    app.state.identity_provider = provider
    try:
        yield
    finally:
        app.state.identity_provider = None
        if provider is not None:
            provider.close()


app = FastAPI(
    title='userapi',
    description='User account API: login, API keys, account info and upload listings',
    version='0.1.0',
    lifespan=lifespan,
)


app.include_router(user.router)


@app.exception_handler(UploadStoreError)
async def upload_store_error_handler(request: Request, exc: UploadStoreError) -> JSONResponse:
    logger.error('Upload store failure on %s %s: %s', request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={'detail': 'Internal server error'})


@app.get('/')
async def root() -> dict[str, str]:
    return {'message': 'Hello, userapi!'}


@app.get('/health')
async def health() -> dict[str, str]:
    return {'status': 'ok'}


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run('userapi.main:app', host=settings.HOST, port=settings.PORT)
