"""Unit tests for redcaplake.io.persistence.

Covers:
- save_bytes / save_json: happy path, creates parent dirs, atomic write, dataclass encoding
- ensure_ingest_dir: creates <lake_root>/ingests including parents
- export_file_name: pattern and uniqueness
- digest_hex / compute_digest / verify_digest: known vectors, streaming, mismatch, missing file
"""

from __future__ import annotations

import json
import os
import re
import stat
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from blake3 import blake3

from config.defaults import DIGEST_CHUNK_SIZE
from redcaplake.errors import FileSystemError
from redcaplake.io.persistence import (
    compute_digest,
    digest_hex,
    ensure_ingest_dir,
    export_file_name,
    save_bytes,
    save_json,
    verify_digest,
)
from redcaplake.models.export import ExportRequest

_ABC_BLAKE3 = "6437b3ac38465133ffb63b75273a8db548c558465d79db03fd359c6cd5bd9d85"
_EMPTY_BLAKE3 = "af1349b9f5f9a1a6a0404dea36dcc9499bcb25c9adc112b7cc9a93cae41f3262"


# ── save_bytes ────────────────────────────────────────────────────────────────────

class TestSaveBytes:
    def test_save_bytes_writes_verbatim(self, tmp_path):
        """save_bytes must write exactly the given bytes."""
        payload = "Dvořák".encode("iso-8859-2")
        written = save_bytes(payload, tmp_path / "out.csv")

        assert written.read_bytes() == payload

    def test_save_bytes_returns_absolute_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        written = save_bytes(b"x", "relative.csv")

        assert written.is_absolute()
        assert written == tmp_path / "relative.csv"

    def test_save_bytes_creates_parent_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "out.csv"
        save_bytes(b"x", target)

        assert target.exists()

    def test_no_tmp_file_left_on_success(self, tmp_path):
        """Atomic write must not leave .tmp files behind after a successful save."""
        save_bytes(b"x", tmp_path / "out.csv")

        assert list(tmp_path.glob("*.tmp")) == []

    def test_failed_rename_cleans_up_tmp_file(self, tmp_path):
        """If the final rename fails the temp file must be removed and FileSystemError raised."""
        with patch("redcaplake.io.persistence.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(FileSystemError) as excinfo:
                save_bytes(b"x", tmp_path / "out.csv")

        assert "disk full" in str(excinfo.value)
        assert list(tmp_path.iterdir()) == []

    def test_failed_write_cleans_up_tmp_file(self, tmp_path):
        """A write error inside the temp file must not leave it behind."""
        with patch("redcaplake.io.persistence.os.chmod", side_effect=OSError("quota exceeded")):
            with pytest.raises(FileSystemError):
                save_bytes(b"x", tmp_path / "out.csv")

        assert list(tmp_path.iterdir()) == []

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    @pytest.mark.parametrize("umask, expected", [(0o022, 0o644), (0o002, 0o664), (0o077, 0o600)])
    def test_written_file_respects_umask(self, tmp_path, umask, expected):
        """The saved file must get 0666 minus the umask, like a plain open()."""
        previous = os.umask(umask)
        try:
            written = save_bytes(b"x", tmp_path / "out.csv")
        finally:
            os.umask(previous)

        assert stat.S_IMODE(os.stat(written).st_mode) == expected


# ── save_json ─────────────────────────────────────────────────────────────────────

class TestSaveJson:
    def test_save_json_happy_path(self, tmp_path):
        target = tmp_path / "manifest.json"
        data = {"path": "/lake/ingests/x.csv", "digest_hex": _ABC_BLAKE3}

        save_json(data, target)

        assert json.loads(target.read_text(encoding="utf-8")) == data

    def test_save_json_unicode_preserved(self, tmp_path):
        """Non-ASCII characters must be preserved (ensure_ascii=False)."""
        target = tmp_path / "unicode.json"
        save_json({"cohort": "Łódź Birth Cohort"}, target)

        assert "Łódź" in target.read_text(encoding="utf-8")

    def test_save_json_overwrites_existing_file(self, tmp_path):
        target = tmp_path / "manifest.json"
        save_json({"version": 1}, target)
        save_json({"version": 2}, target)

        assert json.loads(target.read_text())["version"] == 2

    def test_save_json_encodes_dataclasses_paths_and_datetimes(self, tmp_path):
        target = tmp_path / "manifest.json"
        data = {
            "request": ExportRequest.build("t", fields=["record_id"]),
            "path": tmp_path / "x.csv",
            "created_at": datetime(2024, 3, 1, 12, 30, 0),
        }
        save_json(data, target)

        loaded = json.loads(target.read_text())
        assert loaded["request"]["fields"] == ["record_id"]
        assert loaded["request"]["type"] == "eav"
        assert loaded["path"] == str(tmp_path / "x.csv")
        assert loaded["created_at"] == "2024-03-01T12:30:00"

    def test_save_json_unserializable_raises(self, tmp_path):
        with pytest.raises(TypeError):
            save_json({"bad": object()}, tmp_path / "bad.json")


# ── ensure_ingest_dir / export_file_name ──────────────────────────────────────────

class TestIngestLayout:
    def test_ensure_ingest_dir_creates_parents(self, tmp_path):
        root = tmp_path / "missing" / "lake"
        ingest_dir = ensure_ingest_dir(root)

        assert ingest_dir == root.absolute() / "ingests"
        assert ingest_dir.is_dir()

    def test_ensure_ingest_dir_is_idempotent(self, tmp_path):
        assert ensure_ingest_dir(tmp_path) == ensure_ingest_dir(tmp_path)

    def test_ensure_ingest_dir_blocked_by_file(self, tmp_path):
        (tmp_path / "ingests").write_text("not a directory")
        with pytest.raises(FileSystemError):
            ensure_ingest_dir(tmp_path)

    def test_export_file_name_pattern(self):
        name = export_file_name(datetime(2024, 3, 1, 9, 5, 7))
        assert re.match(r"^redcap_records_20240301_090507_[0-9a-f-]{36}\.csv$", name)

    def test_export_file_names_unique_within_same_second(self):
        moment = datetime(2024, 3, 1, 9, 5, 7)
        names = {export_file_name(moment) for _ in range(50)}
        assert len(names) == 50


# ── Digests ───────────────────────────────────────────────────────────────────────

class TestDigest:
    def test_known_vector(self, tmp_path):
        target = tmp_path / "abc.bin"
        target.write_bytes(b"abc")

        assert digest_hex(target) == _ABC_BLAKE3

    def test_empty_file(self, tmp_path):
        target = tmp_path / "empty.bin"
        target.write_bytes(b"")

        assert digest_hex(target) == _EMPTY_BLAKE3

    def test_digest_is_lowercase_64_hex(self, tmp_path):
        target = tmp_path / "f.bin"
        target.write_bytes(os.urandom(100))

        assert re.fullmatch(r"[0-9a-f]{64}", digest_hex(target))

    def test_digest_is_deterministic(self, tmp_path):
        target = tmp_path / "f.bin"
        target.write_bytes(b"record,field_name,value\n")

        assert digest_hex(target) == digest_hex(target)

    def test_single_byte_change_changes_digest(self, tmp_path):
        target = tmp_path / "f.bin"
        target.write_bytes(b"record,field_name,value\n")
        before = digest_hex(target)
        target.write_bytes(b"record,field_name,valuf\n")

        assert digest_hex(target) != before

    def test_multi_chunk_file_matches_one_shot_hash(self, tmp_path):
        """Streaming across several chunks must equal hashing the whole content."""
        payload = os.urandom(DIGEST_CHUNK_SIZE * 3 + 17)
        target = tmp_path / "big.bin"
        target.write_bytes(payload)

        assert digest_hex(target) == blake3(payload).hexdigest()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileSystemError) as excinfo:
            digest_hex(tmp_path / "nope.bin")

        assert excinfo.value.path == str(tmp_path / "nope.bin")

    def test_compute_digest_record(self, tmp_path):
        target = tmp_path / "abc.bin"
        target.write_bytes(b"abc")
        digest = compute_digest(target)

        assert digest.hex == _ABC_BLAKE3
        assert digest.algorithm == "blake3"
        assert digest.subject == str(target.absolute())
        assert digest.matches(_ABC_BLAKE3.upper())


class TestVerifyDigest:
    def test_verify_true_for_matching_digest(self, tmp_path):
        target = tmp_path / "abc.bin"
        target.write_bytes(b"abc")

        assert verify_digest(target, _ABC_BLAKE3) is True

    def test_verify_is_case_insensitive(self, tmp_path):
        target = tmp_path / "abc.bin"
        target.write_bytes(b"abc")

        assert verify_digest(target, _ABC_BLAKE3.upper()) is True

    def test_verify_false_after_modification(self, tmp_path):
        target = tmp_path / "abc.bin"
        target.write_bytes(b"abc")
        expected = digest_hex(target)
        target.write_bytes(b"abd")

        assert verify_digest(target, expected) is False

    def test_verify_missing_file_raises(self, tmp_path):
        with pytest.raises(FileSystemError):
            verify_digest(tmp_path / "gone.bin", _ABC_BLAKE3)


def test_save_then_digest_round_trip(tmp_path):
    """A file written with save_bytes must verify against the digest of its payload."""
    payload = b"record,field_name,value\n1,record_id,1\n"
    written = save_bytes(payload, Path(tmp_path) / "x.csv")

    assert verify_digest(written, blake3(payload).hexdigest())
