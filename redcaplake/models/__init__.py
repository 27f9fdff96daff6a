"""redcaplake data models package.

All API and file records are typed dataclasses. Never pass raw decoded
JSON past the client boundary; parse it into these models first.
"""

from redcaplake.models.export import Digest, ExportedFile, ExportRequest
from redcaplake.models.ingest import IngestPackage, IngestResult
from redcaplake.models.metadata import ChoiceItem, FieldMetadata, ValueType
from redcaplake.models.provenance import CommitInfo
from redcaplake.models.uri import FileURI, PlatformMode

__all__ = [
    "ChoiceItem",
    "CommitInfo",
    "Digest",
    "ExportedFile",
    "ExportRequest",
    "FieldMetadata",
    "FileURI",
    "IngestPackage",
    "IngestResult",
    "PlatformMode",
    "ValueType",
]
