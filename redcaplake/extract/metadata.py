"""Metadata-driven field discovery for redcaplake.

Reads the REDCap data dictionary and decides which fields an EAV export
should request. Descriptive, file, SQL and signature fields hold no record
data and are excluded unless the caller asks for them.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from config.defaults import NONDATA_FIELD_TYPES
from redcaplake.clients.redcap_client import RedcapClient
from redcaplake.errors import MetadataRequestError
from redcaplake.models.metadata import FieldMetadata
from redcaplake.utils.text import map_value_type, parse_choices, strip_html

logger = logging.getLogger(__name__)


@contextmanager
def _client_for(
    api_url: str, token: str, client: Optional[RedcapClient]
) -> Iterator[RedcapClient]:
    """Yield the caller's client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    with RedcapClient(api_url, token) as owned:
        yield owned


def parse_metadata(payload: Any, status: int = 200) -> List[FieldMetadata]:
    """Convert a decoded metadata response into typed records.

    Entries that are not JSON objects or lack a field_name are skipped.

    Args:
        payload: Decoded JSON from the metadata endpoint.
        status: HTTP status of the response, reported if the payload is malformed.

    Returns:
        FieldMetadata list in dictionary order.
    """
    if not isinstance(payload, list):
        raise MetadataRequestError(status, f"expected a JSON array, got {type(payload).__name__}")

    records: List[FieldMetadata] = []
    skipped = 0
    for entry in payload:
        record = FieldMetadata.from_record(entry) if isinstance(entry, dict) else None
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.debug("Skipped %d metadata entries without a field_name", skipped)
    return records


def select_fields(
    records: Sequence[FieldMetadata], include_nondata: bool = False
) -> List[str]:
    """Return the exportable field names, first occurrence wins, order preserved."""
    names: List[str] = []
    seen = set()
    for record in records:
        if not include_nondata and record.normalized_type in NONDATA_FIELD_TYPES:
            continue
        if record.field_name in seen:
            continue
        seen.add(record.field_name)
        names.append(record.field_name)
    return names


def fetch_metadata(
    api_url: str,
    token: str,
    forms: Optional[Sequence[str]] = None,
    *,
    client: Optional[RedcapClient] = None,
) -> List[FieldMetadata]:
    """Download and parse the REDCap data dictionary.

    Args:
        api_url: REDCap API endpoint.
        token: Project API token.
        forms: Optional instrument names; sent as forms[0], forms[1], …
        client: Optional RedcapClient to reuse.

    Returns:
        FieldMetadata records in dictionary order.
    """
    with _client_for(api_url, token, client) as redcap:
        payload = redcap.metadata(forms)
    return parse_metadata(payload)


def resolve_fields(
    api_url: str,
    token: str,
    forms: Optional[Sequence[str]] = None,
    include_nondata: bool = False,
    *,
    client: Optional[RedcapClient] = None,
) -> List[str]:
    """Compute the ordered set of exportable field names.

    Args:
        api_url: REDCap API endpoint.
        token: Project API token.
        forms: Optional instrument names restricting the dictionary.
        include_nondata: Keep descriptive/file/sql/signature fields when True.
        client: Optional RedcapClient to reuse.

    Returns:
        Deduplicated field names; empty if nothing survives the filter.
    """
    records = fetch_metadata(api_url, token, forms, client=client)
    names = select_fields(records, include_nondata=include_nondata)
    logger.info(
        "Resolved %d exportable fields from %d metadata records", len(names), len(records)
    )
    return names


def project_info(
    api_url: str, token: str, *, client: Optional[RedcapClient] = None
) -> Dict[str, Any]:
    """Fetch project attributes (title, purpose, status, …) as a plain dict."""
    with _client_for(api_url, token, client) as redcap:
        payload = redcap.project_info()
    if not isinstance(payload, dict):
        raise MetadataRequestError(200, f"expected a JSON object, got {type(payload).__name__}")
    return payload


def describe_fields(
    records: Sequence[FieldMetadata], include_nondata: bool = False
) -> List[Dict[str, Any]]:
    """Summarise data dictionary records for display.

    Labels are stripped of HTML, types mapped to ValueType identifiers and
    choice lists parsed. Filtering and dedup follow select_fields().
    """
    wanted = set(select_fields(records, include_nondata=include_nondata))
    rows: List[Dict[str, Any]] = []
    for record in records:
        if not include_nondata and record.normalized_type in NONDATA_FIELD_TYPES:
            continue
        if record.field_name not in wanted:
            continue
        wanted.discard(record.field_name)
        choices = []
        if record.normalized_type in ("radio", "dropdown", "checkbox"):
            choices = [
                {"value": c.value, "code": c.code, "description": c.description}
                for c in parse_choices(record.select_choices_or_calculations)
            ]
        rows.append(
            {
                "field_name": record.field_name,
                "form_name": record.form_name,
                "label": strip_html(record.field_label),
                "value_type": map_value_type(
                    record.field_type, record.text_validation_type_or_show_slider_number
                ),
                "choices": choices,
            }
        )
    return rows
