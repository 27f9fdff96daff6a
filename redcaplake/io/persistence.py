"""File persistence and content addressing for redcaplake.

Provides atomic file writes (write-to-temp-then-rename), unique export file
naming in the lake's ingest folder, and streaming BLAKE3 digests.
No business logic — file I/O only.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from blake3 import blake3

from config.defaults import (
    DIGEST_CHUNK_SIZE,
    EXPORT_FILE_PREFIX,
    EXPORT_FORMAT,
    EXPORT_TIMESTAMP_FORMAT,
    INGEST_SUBDIR,
)
from redcaplake.errors import FileSystemError
from redcaplake.models.export import Digest

logger = logging.getLogger(__name__)


class _DataclassEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses, datetimes and Path objects."""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _atomic_write(path: Path, payload: bytes) -> None:
    """Write bytes to ``path`` through a temp file in the same directory.

    The final file gets the permissions a plain ``open()`` would give it
    (0666 minus the process umask), not the temp file's 0600.
    """
    tmp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb", dir=path.parent, delete=False, suffix=".tmp"
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(payload)
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        logger.error("Atomic write failed for %s: %s", path, exc)
        raise FileSystemError(str(path), str(exc)) from exc


def save_bytes(payload: bytes, path: str | Path) -> Path:
    """Atomically write bytes to a file, creating parent directories.

    Args:
        payload: Bytes to write verbatim.
        path: Output file path.

    Returns:
        The absolute Path written.
    """
    path = Path(path).absolute()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(str(path.parent), str(exc)) from exc

    _atomic_write(path, payload)
    logger.debug("Saved %d bytes to %s", len(payload), path)
    return path


def save_json(data: Any, path: str | Path, indent: int = 2) -> Path:
    """Atomically write data to a JSON file.

    Args:
        data: Data to serialize. Supports dicts, lists, dataclasses, datetimes and Paths.
        path: Output file path.
        indent: JSON indentation level (default: 2).

    Returns:
        The absolute Path written.
    """
    try:
        serialized = json.dumps(data, indent=indent, ensure_ascii=False, cls=_DataclassEncoder)
    except (TypeError, ValueError) as exc:
        logger.error("JSON serialization failed for %s: %s", path, exc)
        raise
    return save_bytes(serialized.encode("utf-8"), path)


def ensure_ingest_dir(lake_root: str | Path) -> Path:
    """Create and return ``<lake_root>/ingests``, including missing parents."""
    ingest_dir = Path(lake_root).absolute() / INGEST_SUBDIR
    try:
        ingest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Could not create ingest directory %s: %s", ingest_dir, exc)
        raise FileSystemError(str(ingest_dir), str(exc)) from exc
    return ingest_dir


def export_file_name(
    created_at: Optional[datetime] = None, extension: str = EXPORT_FORMAT
) -> str:
    """Build a collision-resistant export file name.

    Returns:
        ``redcap_records_<YYYYMMDD_HHMMSS>_<uuid4>.<extension>``
    """
    created_at = created_at or datetime.now()
    stamp = created_at.strftime(EXPORT_TIMESTAMP_FORMAT)
    return f"{EXPORT_FILE_PREFIX}_{stamp}_{uuid.uuid4()}.{extension}"


def digest_hex(path: str | Path) -> str:
    """Compute the BLAKE3 hex digest of a file, streaming in fixed chunks.

    Args:
        path: Path to the file.

    Returns:
        Lowercase hex digest string (64 characters).
    """
    hasher = blake3()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(DIGEST_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as exc:
        logger.warning("Digest failed for %s: %s", path, exc)
        raise FileSystemError(str(path), str(exc)) from exc
    return hasher.hexdigest().lower()


def compute_digest(path: str | Path) -> Digest:
    """Return a Digest record for the file at ``path``."""
    return Digest(hex=digest_hex(path), subject=str(Path(path).absolute()))


def verify_digest(path: str | Path, expected_hex: str) -> bool:
    """Recompute a file's digest and compare it case-insensitively.

    A mismatch returns False; only an unreadable file raises FileSystemError.
    """
    matched = digest_hex(path) == expected_hex.strip().lower()
    if not matched:
        logger.info("Digest mismatch for %s", path)
    return matched
