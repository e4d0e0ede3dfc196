"""Runtime settings, read from the environment and an optional .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_server_root() -> Path:
    """Walk up from this file to find the directory containing pyproject.toml."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / 'pyproject.toml').exists():
            return current
        current = current.parent
    msg = 'Could not find server root (no pyproject.toml in parent directories)'
    raise RuntimeError(msg)


DATA_DIR = _find_server_root() / 'data'


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    DATABASE_URL: str = f'sqlite:///{DATA_DIR / "userapi.db"}'
    SALT: str = 'insecure-development-salt-change-me'
    JWT_ISSUER: str = 'userapi'
    MAGIC_SECRET_KEY: str | None = None
    MAGIC_API_URL: str = 'https://api.magic.link'
    LOG_LEVEL: str = 'INFO'
    HOST: str = '127.0.0.1'
    PORT: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
