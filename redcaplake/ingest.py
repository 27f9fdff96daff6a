"""redcaplake ingest orchestrator.

Sequences one REDCap-to-lake ingest:
  Step 1 — EAVExporter writes the export into <lake_root>/ingests
  Step 2 — the file is content-addressed (BLAKE3)
  Step 3 — its canonical file:// URI is derived
  Step 4 — git provenance of the calling script is attached (best-effort)
  Step 5 — the catalog collaborator registers the file as a new asset version
           and, optionally, transforms the EAV file into a dataset

The catalog itself is external; it is reached only through CatalogCollaborator.

Usage:
    from config.settings import LakeConfig
    from redcaplake.ingest import ingest_redcap_project

    result = ingest_redcap_project(catalog, LakeConfig(), study, domain, script_path=__file__)
"""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from config.settings import LakeConfig
from redcaplake.clients.redcap_client import RedcapClient
from redcaplake.extract.eav_export import EAVExporter
from redcaplake.io.persistence import digest_hex
from redcaplake.models.export import ExportedFile
from redcaplake.models.ingest import IngestPackage, IngestResult
from redcaplake.models.provenance import CommitInfo
from redcaplake.models.uri import PlatformMode
from redcaplake.utils.git_utils import git_commit_info
from redcaplake.utils.logging_utils import get_run_logger
from redcaplake.utils.uri_utils import to_uri

logger = logging.getLogger(__name__)


class CatalogCollaborator(Protocol):
    """The two catalog calls this package depends on."""

    def ingest_file(
        self,
        study: Any,
        domain: Any,
        local_path: str,
        digest_hex: str,
        file_uri: str,
        commit_info: CommitInfo,
        content_format: str,
    ) -> Any:
        """Register a file as a new asset version and return an opaque identifier."""

    def transform_eav_to_dataset(self, asset: Any) -> Any:
        """Turn an ingested EAV file into a dataset."""


def make_run_id(label: str) -> str:
    """Generate a sortable run ID from the local timestamp and a label slug.

    Returns:
        Run ID string in the form ``YYYYMMDD_HHMMSS_<slug>``.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    slug = re.sub(r"[^a-z0-9]+", "_", str(label).lower())[:40].strip("_") or "redcap"
    return f"{timestamp}_{slug}"


def prepare_ingest(
    exported_file: ExportedFile,
    *,
    platform_mode: Optional[str] = None,
    script_path: Optional[str] = None,
    provenance_dir: Optional[str] = None,
) -> IngestPackage:
    """Digest, address and attach provenance to an exported file.

    Args:
        exported_file: Record returned by EAVExporter.export_file().
        platform_mode: URI convention; defaults to the running host's.
        script_path: Script recorded in the provenance. No provenance when None.
        provenance_dir: Directory used to locate the repository; defaults to the
            script's directory.

    Returns:
        IngestPackage ready for CatalogCollaborator.ingest_file().
    """
    mode = platform_mode or PlatformMode.current()
    path = exported_file.path

    hex_digest = digest_hex(path)
    file_uri = to_uri(path, mode)

    if script_path is None:
        commit_info = CommitInfo.empty()
    else:
        search_dir = provenance_dir or os.path.dirname(os.path.abspath(script_path))
        commit_info = git_commit_info(search_dir, script_path)
    if commit_info.is_empty:
        logger.info("No source-control provenance recorded for %s", path)

    return IngestPackage(
        path=path,
        digest_hex=hex_digest,
        file_uri=file_uri,
        commit_info=commit_info,
        content_format=exported_file.content_format,
        exported_file=exported_file,
    )


def ingest_redcap_project(
    catalog: CatalogCollaborator,
    config: LakeConfig,
    study: Any,
    domain: Any,
    *,
    forms: Sequence[str] = (),
    fields: Sequence[str] = (),
    decode: bool = False,
    platform_mode: Optional[str] = None,
    script_path: Optional[str] = None,
    transform: bool = True,
    client: Optional[RedcapClient] = None,
) -> IngestResult:
    """Export a REDCap project and register the export with the catalog.

    Args:
        catalog: Catalog collaborator.
        config: LakeConfig; api_url, api_token and lake_root are required.
        study: Study reference understood by the catalog.
        domain: Domain reference understood by the catalog.
        forms: Instruments to export.
        fields: Fields to export; resolved from metadata when empty.
        decode: Transcode the export to UTF-8.
        platform_mode: URI convention for the recorded storage location.
        script_path: Calling script, recorded as provenance.
        transform: Also ask the catalog to build a dataset from the EAV file.
        client: Optional RedcapClient to reuse.

    Returns:
        IngestResult with the package and whatever identifiers the catalog returned.

    Raises:
        ConfigMissingError: before any network or file activity.
    """
    config.require("api_url", "api_token", "lake_root")
    run_id = make_run_id(str(getattr(study, "name", study)))
    run_logger = get_run_logger(__name__, run_id)

    with EAVExporter(
        config.api_url,
        config.api_token,
        config.lake_root,
        client=client,
        request_timeout=config.request_timeout,
    ) as exporter:
        exported = exporter.export_file(forms=forms, fields=fields, decode=decode)
    run_logger.info("Export written to %s", exported.path)

    package = prepare_ingest(exported, platform_mode=platform_mode, script_path=script_path)
    asset = catalog.ingest_file(
        study,
        domain,
        package.path,
        package.digest_hex,
        package.file_uri,
        package.commit_info,
        package.content_format,
    )
    run_logger.info("Registered %s (digest %s)", package.file_uri, package.digest_hex[:12])

    dataset = None
    if transform:
        dataset = catalog.transform_eav_to_dataset(asset)
        run_logger.info("Transformed EAV export into a dataset")

    return IngestResult(run_id=run_id, package=package, asset=asset, dataset=dataset)
