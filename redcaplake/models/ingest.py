"""Ingest hand-off model for redcaplake."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from redcaplake.models.export import ExportedFile
from redcaplake.models.provenance import CommitInfo


@dataclass(frozen=True)
class IngestPackage:
    """Everything the catalog needs to register an export as a new asset version."""

    path: str
    digest_hex: str
    file_uri: str
    commit_info: CommitInfo
    content_format: str
    exported_file: ExportedFile

    def as_dict(self) -> dict:
        return {
            "path": self.path,
            "digest_hex": self.digest_hex,
            "file_uri": self.file_uri,
            "content_format": self.content_format,
            "encoding": self.exported_file.encoding,
            "created_at": self.exported_file.created_at.isoformat(),
            "repo_url": self.commit_info.repo_url,
            "commit": self.commit_info.commit,
            "script_relpath": self.commit_info.script_relpath,
        }


@dataclass
class IngestResult:
    """Outcome of a full REDCap-to-lake ingest."""

    run_id: str
    package: IngestPackage
    asset: Any = None      # opaque identifier returned by the catalog
    dataset: Optional[Any] = None
