"""Export data models for redcaplake.

Defines the export request sent to REDCap, the file record produced by an
export, and the digest that content-addresses it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Sequence, Tuple

from config.defaults import CSV_DELIMITER, DIGEST_ALGORITHM, EXPORT_FORMAT, EXPORT_TYPE


@dataclass(frozen=True)
class ExportRequest:
    """Fixed-shape form parameters for an EAV record export."""

    token: str = field(repr=False)
    fields: Tuple[str, ...] = ()
    forms: Tuple[str, ...] = ()
    content: str = "record"
    action: str = "export"
    format: str = EXPORT_FORMAT
    type: str = EXPORT_TYPE
    csvDelimiter: str = CSV_DELIMITER
    returnFormat: str = "json"

    @classmethod
    def build(
        cls, token: str, fields: Sequence[str] = (), forms: Sequence[str] = ()
    ) -> "ExportRequest":
        return cls(token=token, fields=tuple(fields), forms=tuple(forms))

    def to_form(self) -> Dict[str, str]:
        """Return the wire body; fields and forms are comma-joined in order."""
        return {
            "token": self.token,
            "content": self.content,
            "action": self.action,
            "format": self.format,
            "type": self.type,
            "fields": ",".join(self.fields),
            "forms": ",".join(self.forms),
            "csvDelimiter": self.csvDelimiter,
            "returnFormat": self.returnFormat,
        }


@dataclass(frozen=True)
class ExportedFile:
    """An export written to the lake's ingest folder. Never mutated after write."""

    path: str
    encoding: str   # "raw" or "decoded"
    created_at: datetime
    origin_query: ExportRequest
    size_bytes: int = 0

    @property
    def content_format(self) -> str:
        return self.origin_query.format


@dataclass(frozen=True)
class Digest:
    """Content address of a file."""

    hex: str
    subject: str
    algorithm: str = DIGEST_ALGORITHM

    def matches(self, other_hex: str) -> bool:
        return self.hex.lower() == other_hex.strip().lower()
