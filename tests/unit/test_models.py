"""Unit tests for redcaplake.models."""

from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest

from redcaplake.models import (
    CommitInfo,
    Digest,
    ExportedFile,
    ExportRequest,
    FieldMetadata,
    IngestPackage,
    PlatformMode,
)


class TestFieldMetadata:
    def test_from_record_strips_and_defaults(self):
        record = FieldMetadata.from_record({"field_name": " age ", "field_type": "TEXT"})
        assert record.field_name == "age"
        assert record.form_name == ""
        assert record.normalized_type == "text"

    def test_from_record_without_name_returns_none(self):
        assert FieldMetadata.from_record({"field_type": "text"}) is None

    def test_is_frozen(self):
        record = FieldMetadata(field_name="age")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.field_name = "other"


class TestExportRequest:
    def test_fixed_parameters(self):
        form = ExportRequest.build("T").to_form()
        assert form["content"] == "record"
        assert form["action"] == "export"
        assert form["format"] == "csv"
        assert form["type"] == "eav"
        assert form["csvDelimiter"] == ","
        assert form["returnFormat"] == "json"
        assert form["fields"] == ""
        assert form["forms"] == ""

    def test_token_hidden_from_repr(self):
        assert "SECRET" not in repr(ExportRequest.build("SECRET"))

    def test_sequences_become_tuples(self):
        request = ExportRequest.build("T", fields=["a", "b"], forms=["f"])
        assert request.fields == ("a", "b")
        assert request.to_form()["fields"] == "a,b"


class TestCommitInfo:
    def test_empty(self):
        info = CommitInfo.empty()
        assert info.is_empty
        assert (info.repo_url, info.commit, info.script_relpath) == (None, None, None)

    def test_partial_rejected(self):
        with pytest.raises(ValueError):
            CommitInfo(repo_url="https://github.com/org/repo", commit="abc1234")


class TestDigest:
    def test_matches_is_case_insensitive(self):
        digest = Digest(hex="abcdef", subject="/x")
        assert digest.matches(" ABCDEF ")
        assert not digest.matches("abcdee")


class TestPlatformMode:
    def test_validate_normalizes(self):
        assert PlatformMode.validate(" Windows ") == "windows"

    def test_validate_rejects_unknown(self):
        with pytest.raises(ValueError):
            PlatformMode.validate("darwin")

    def test_current_is_known_mode(self):
        assert PlatformMode.current() in PlatformMode.ALL


class TestIngestPackage:
    def test_as_dict_flattens_provenance(self):
        exported = ExportedFile(
            path="/lake/ingests/x.csv",
            encoding="raw",
            created_at=datetime(2024, 3, 1, 9, 0, 0),
            origin_query=ExportRequest.build("T"),
            size_bytes=3,
        )
        package = IngestPackage(
            path=exported.path,
            digest_hex="ab" * 32,
            file_uri="file:///lake/ingests/x.csv",
            commit_info=CommitInfo("https://github.com/org/repo", "abc1234", "scripts/run.py"),
            content_format=exported.content_format,
            exported_file=exported,
        )
        data = package.as_dict()

        assert data["path"] == "/lake/ingests/x.csv"
        assert data["file_uri"] == "file:///lake/ingests/x.csv"
        assert data["content_format"] == "csv"
        assert data["commit"] == "abc1234"
        assert data["script_relpath"] == "scripts/run.py"
        assert data["created_at"] == "2024-03-01T09:00:00"
        assert "token" not in data
