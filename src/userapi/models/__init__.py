from __future__ import annotations

from userapi.models.auth_key import AuthKey
from userapi.models.types import BOOLEAN_TAGS, UploadType, UserTagName
from userapi.models.upload import Upload
from userapi.models.user import User, UserTag

__all__ = [
    # Table models
    'AuthKey',
    'Upload',
    'User',
    'UserTag',
    # Enums
    'UploadType',
    'UserTagName',
    'BOOLEAN_TAGS',
]
