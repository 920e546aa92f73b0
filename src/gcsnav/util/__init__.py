from .ids import new_activity_id
from .mime import (
    FOLDER_CONTENT_TYPE,
    OCTET_STREAM_MIME,
    UTF8_TEXT_MIME,
    infer_content_type,
    is_folder,
)
from .time import normalize_dt, now_utc, parse_rfc3339, parse_rfc3339_or_none

__all__ = [
    "new_activity_id",
    "FOLDER_CONTENT_TYPE",
    "OCTET_STREAM_MIME",
    "UTF8_TEXT_MIME",
    "infer_content_type",
    "is_folder",
    "now_utc",
    "parse_rfc3339",
    "parse_rfc3339_or_none",
    "normalize_dt",
]
