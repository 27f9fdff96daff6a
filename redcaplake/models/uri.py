"""file:// URI models for redcaplake."""

from __future__ import annotations

import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from redcaplake.errors import InvalidURIError


class PlatformMode:
    """Path conventions accepted by the URI converter."""

    POSIX = "posix"
    WINDOWS = "windows"

    ALL = (POSIX, WINDOWS)

    @classmethod
    def current(cls) -> str:
        """Return the convention of the host running this process."""
        return cls.WINDOWS if os.name == "nt" else cls.POSIX

    @classmethod
    def validate(cls, mode: str) -> str:
        normalized = (mode or "").strip().lower()
        if normalized not in cls.ALL:
            raise ValueError(f"platform_mode must be one of {cls.ALL}, got {mode!r}")
        return normalized


@dataclass(frozen=True)
class FileURI:
    """Parsed form of a ``file://`` URI. ``path`` stays percent-encoded."""

    host: str
    path: str
    scheme: str = "file"

    @classmethod
    def parse(cls, uri: str) -> "FileURI":
        try:
            parts = urlsplit(uri)
        except ValueError as exc:
            raise InvalidURIError(uri, str(exc)) from exc
        if parts.scheme.lower() != "file":
            raise InvalidURIError(uri)
        return cls(host=parts.netloc, path=parts.path)

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}{self.path}"
