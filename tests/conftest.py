"""Shared pytest fixtures for redcaplake tests.

- Fixture data lives in tests/fixtures/ as static JSON files
- HTTP calls are mocked at the requests.Session level
- No real external HTTP calls are made in any test
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union
from unittest.mock import MagicMock

import pytest

_FIXTURES_DIR = Path(__file__).parent / "fixtures"

API_URL = "https://redcap.example.org/api/"
API_TOKEN = "0123456789ABCDEF0123456789ABCDEF"


# ── Raw fixture data loaders ─────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def metadata_raw() -> List[Dict[str, Any]]:
    """REDCap data dictionary: 8 fields, 3 of them non-data (descriptive, file, SIGNATURE)."""
    with open(_FIXTURES_DIR / "sample_metadata.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="session")
def project_info_raw() -> Dict[str, Any]:
    """REDCap project info object."""
    with open(_FIXTURES_DIR / "sample_project_info.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="session")
def eav_payload_latin2() -> bytes:
    """EAV export body as a legacy ISO-8859-2 instance would send it."""
    text = (
        "record,field_name,value\n"
        "1,ii_cohort_name,Łódź Birth Cohort\n"
        "1,ii_cohort_id,17\n"
        "2,ii_cohort_name,Plzeň Ageing Study\n"
    )
    return text.encode("iso-8859-2")


# ── HTTP mocks ───────────────────────────────────────────────────────────────────

@pytest.fixture
def mock_response():
    """Factory for requests.Response stand-ins.

    Usage: mock_response(200, b"...") or mock_response(500, "Invalid token")
    """

    def _make(status_code: int = 200, body: Union[bytes, str] = b"") -> MagicMock:
        raw = body.encode("utf-8") if isinstance(body, str) else body
        resp = MagicMock()
        resp.status_code = status_code
        resp.content = raw
        resp.text = raw.decode("utf-8", errors="replace")
        return resp

    return _make


@pytest.fixture
def redcap_client():
    """RedcapClient against a fake endpoint; patch its _session.post in tests."""
    from redcaplake.clients.redcap_client import RedcapClient

    client = RedcapClient(API_URL, API_TOKEN)
    yield client
    client.close()


@pytest.fixture
def lake_root(tmp_path) -> Path:
    """Empty data lake root; the ingests/ folder is not created yet."""
    root = tmp_path / "lake"
    root.mkdir()
    return root


# ── Environment isolation ────────────────────────────────────────────────────────

@pytest.fixture
def clean_env(monkeypatch):
    """Remove every redcaplake environment variable for the duration of a test."""
    for name in (
        "REDCAP_API_URL",
        "REDCAP_API_TOKEN",
        "TRE_LAKE_PATH",
        "REDCAP_REQUEST_TIMEOUT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
