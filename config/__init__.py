"""redcaplake configuration package."""

from config.defaults import (
    DEFAULT_LOG_LEVEL,
    EXPORT_FORMAT,
    INGEST_SUBDIR,
    LEGACY_ENCODING,
    NONDATA_FIELD_TYPES,
    SHORT_COMMIT_LENGTH,
)
from config.settings import LakeConfig

__all__ = [
    "LakeConfig",
    "DEFAULT_LOG_LEVEL",
    "EXPORT_FORMAT",
    "INGEST_SUBDIR",
    "LEGACY_ENCODING",
    "NONDATA_FIELD_TYPES",
    "SHORT_COMMIT_LENGTH",
]
