"""Error taxonomy for redcaplake.

A small closed set of exception types, each carrying structured context
(status, body, path) alongside a readable message. Version-control lookups
and digest mismatches are not errors and have no type here.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class RedcapLakeError(Exception):
    """Base exception for all redcaplake errors."""


class ConfigMissingError(RedcapLakeError):
    """Raised when a required setting (URL, token, lake root) is absent.

    Always raised before any network or file activity.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names: List[str] = list(names)
        super().__init__(f"Missing required configuration: {', '.join(self.names)}")


class ApiRequestError(RedcapLakeError):
    """Raised when the REDCap API answers with a non-2xx status."""

    operation = "REDCap API request"

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"{self.operation} failed with status {status}: {body}")


class MetadataRequestError(ApiRequestError):
    """Metadata (data dictionary) or project info request failed."""

    operation = "REDCap metadata request"


class ExportRequestError(ApiRequestError):
    """EAV record export request failed."""

    operation = "REDCap EAV export"


class FileSystemError(RedcapLakeError):
    """Raised when a directory or file cannot be created, opened, read or written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"File system error at {path}: {reason}")


class EncodingError(RedcapLakeError):
    """Raised when transcoding an export payload fails."""

    def __init__(self, encoding: str, reason: str) -> None:
        self.encoding = encoding
        self.reason = reason
        super().__init__(f"Could not decode payload as {encoding}: {reason}")


class InvalidURIError(RedcapLakeError, ValueError):
    """Raised when a URI cannot be converted to a local path."""

    def __init__(self, uri: str, reason: Optional[str] = None) -> None:
        self.uri = uri
        self.reason = reason or "not a file:// URI"
        super().__init__(f"Invalid URI {uri!r}: {self.reason}")
