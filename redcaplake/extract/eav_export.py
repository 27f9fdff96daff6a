"""EAV record export for redcaplake.

Issues a single REDCap record export in EAV (entity-attribute-value) CSV
layout and writes the payload to a fresh file under ``<lake_root>/ingests``.

By default the response bytes are written verbatim so downstream consumers
see the instance's original encoding. With ``decode=True`` the payload is
transcoded from the legacy 8-bit encoding to UTF-8 first.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from config.defaults import LEGACY_ENCODING, REQUEST_TIMEOUT, TARGET_ENCODING
from redcaplake.clients.redcap_client import RedcapClient
from redcaplake.errors import EncodingError
from redcaplake.extract.metadata import resolve_fields
from redcaplake.io.persistence import ensure_ingest_dir, export_file_name, save_bytes
from redcaplake.models.export import ExportedFile, ExportRequest

logger = logging.getLogger(__name__)


def transcode(
    payload: bytes,
    source_encoding: str = LEGACY_ENCODING,
    target_encoding: str = TARGET_ENCODING,
) -> bytes:
    """Re-encode ``payload`` from ``source_encoding`` to ``target_encoding``.

    Raises:
        EncodingError: if the bytes are not valid in the source encoding or an
            encoding name is unknown.
    """
    try:
        return payload.decode(source_encoding).encode(target_encoding)
    except (UnicodeError, LookupError) as exc:
        logger.error("Transcoding %s -> %s failed: %s", source_encoding, target_encoding, exc)
        raise EncodingError(source_encoding, str(exc)) from exc


class EAVExporter:
    """Exports REDCap records in EAV layout into the lake's ingest folder.

    Args:
        api_url: REDCap API endpoint.
        token: Project API token.
        lake_root: Root directory of the data lake.
        client: Optional RedcapClient; one is created (and owned) otherwise.
        request_timeout: Timeout for a client created here; ignored when ``client`` is given.
        source_encoding: Encoding assumed for payloads when decoding.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        lake_root: str,
        client: Optional[RedcapClient] = None,
        request_timeout: Optional[float] = REQUEST_TIMEOUT,
        source_encoding: str = LEGACY_ENCODING,
    ) -> None:
        self.api_url = api_url
        self.lake_root = lake_root
        self.source_encoding = source_encoding
        self._owns_client = client is None
        self._client = client or RedcapClient(api_url, token, request_timeout)

    def export_file(
        self,
        forms: Sequence[str] = (),
        fields: Sequence[str] = (),
        decode: bool = False,
    ) -> ExportedFile:
        """Run the export and return the record of the written file.

        Args:
            forms: Instrument names, comma-joined into the request.
            fields: Field names; resolved from metadata when empty.
            decode: Transcode the payload to UTF-8 before writing.

        Returns:
            ExportedFile describing the new file.
        """
        field_list = list(fields)
        if not field_list:
            field_list = resolve_fields(
                self.api_url, self._client.token, client=self._client
            )
            if not field_list:
                logger.warning("Metadata yielded no exportable fields; REDCap will apply its default")

        request = ExportRequest.build(self._client.token, fields=field_list, forms=forms)
        logger.info(
            "Exporting EAV records: %d fields, %d forms", len(request.fields), len(request.forms)
        )
        payload = self._client.export_records(request)

        if decode:
            payload = transcode(payload, self.source_encoding)

        created_at = datetime.now()
        ingest_dir = ensure_ingest_dir(self.lake_root)
        out_path = save_bytes(payload, ingest_dir / export_file_name(created_at, request.format))
        logger.info("Saved REDCap export to %s (%d bytes)", out_path, len(payload))

        return ExportedFile(
            path=str(out_path),
            encoding="decoded" if decode else "raw",
            created_at=created_at,
            origin_query=request,
            size_bytes=len(payload),
        )

    def export(
        self,
        forms: Sequence[str] = (),
        fields: Sequence[str] = (),
        decode: bool = False,
    ) -> str:
        """Run the export and return only the absolute output path."""
        return self.export_file(forms=forms, fields=fields, decode=decode).path

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EAVExporter":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def export(
    api_url: str,
    token: str,
    forms: Sequence[str] = (),
    fields: Sequence[str] = (),
    decode: bool = False,
    *,
    lake_root: str,
    client: Optional[RedcapClient] = None,
) -> str:
    """Module-level convenience wrapper around EAVExporter.export().

    Returns:
        Absolute path of the written export file.
    """
    with EAVExporter(api_url, token, lake_root, client=client) as exporter:
        return exporter.export(forms=forms, fields=fields, decode=decode)
