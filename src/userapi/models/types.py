from __future__ import annotations

from enum import StrEnum

# ── Enums ──────────────────────────────────────────────────────────────────────


class UploadType(StrEnum):
    car = 'Car'
    blob = 'Blob'
    multipart = 'Multipart'
    upload = 'Upload'


class UserTagName(StrEnum):
    has_account_restriction = 'HasAccountRestriction'
    has_delete_restriction = 'HasDeleteRestriction'
    has_psa_access = 'HasPsaAccess'
    has_super_hot_access = 'HasSuperHotAccess'
    storage_limit_bytes = 'StorageLimitBytes'


# Tags reported as booleans on /user/info; a tag is set when its value is 'true'.
BOOLEAN_TAGS = (
    UserTagName.has_account_restriction,
    UserTagName.has_delete_restriction,
    UserTagName.has_psa_access,
    UserTagName.has_super_hot_access,
)
