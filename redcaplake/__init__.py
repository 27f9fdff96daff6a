"""redcaplake — REDCap EAV extraction for a content-addressed data lake.

Subpackages:
    - redcaplake.clients: REDCap HTTP transport
    - redcaplake.extract: metadata-driven field discovery and EAV export
    - redcaplake.io: export persistence and content addressing
    - redcaplake.utils: file:// URIs, git provenance, logging
    - redcaplake.ingest: hand-off to the data lake catalog

Configuration lives in the top-level ``config`` package (LakeConfig).
"""

__version__ = "0.3.0"
__author__ = "redcaplake Contributors"

from redcaplake.errors import (
    ApiRequestError,
    ConfigMissingError,
    EncodingError,
    ExportRequestError,
    FileSystemError,
    InvalidURIError,
    MetadataRequestError,
    RedcapLakeError,
)

__all__ = [
    "__version__",
    "ApiRequestError",
    "ConfigMissingError",
    "EncodingError",
    "ExportRequestError",
    "FileSystemError",
    "InvalidURIError",
    "MetadataRequestError",
    "RedcapLakeError",
]
