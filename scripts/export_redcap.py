#!/usr/bin/env python3
"""redcaplake CLI — export a REDCap project into the data lake ingest folder.

Usage:
    python scripts/export_redcap.py
    python scripts/export_redcap.py --forms institute_information --decode
    python scripts/export_redcap.py --fields record_id cs_cohort_name --manifest out/manifest.json
    python scripts/export_redcap.py --list-fields --include-nondata
    python scripts/export_redcap.py --project-info
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import requests

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import DEFAULT_LOG_LEVEL  # noqa: E402
from config.settings import LakeConfig  # noqa: E402
from redcaplake.clients.redcap_client import RedcapClient  # noqa: E402
from redcaplake.errors import RedcapLakeError  # noqa: E402
from redcaplake.extract.eav_export import EAVExporter  # noqa: E402
from redcaplake.extract.metadata import (  # noqa: E402
    describe_fields,
    fetch_metadata,
    project_info,
    resolve_fields,
)
from redcaplake.ingest import prepare_ingest  # noqa: E402
from redcaplake.io.persistence import save_json  # noqa: E402
from redcaplake.models.uri import PlatformMode  # noqa: E402
from redcaplake.utils.logging_utils import configure_logging, get_logger  # noqa: E402


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argparse argument parser."""
    parser = argparse.ArgumentParser(
        prog="export_redcap",
        description="redcaplake — REDCap EAV export for the data lake",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── Connection ──────────────────────────────────────────────────────────────
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="REDCap API endpoint (default: $REDCAP_API_URL)",
    )
    parser.add_argument(
        "--lake-root",
        type=str,
        default=None,
        help="Data lake root directory (default: $TRE_LAKE_PATH)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds (default: $REDCAP_REQUEST_TIMEOUT or library default)",
    )

    # ── Export selection ────────────────────────────────────────────────────────
    parser.add_argument(
        "--forms",
        type=str,
        nargs="*",
        default=[],
        metavar="FORM",
        help="Instruments to export",
    )
    parser.add_argument(
        "--fields",
        type=str,
        nargs="*",
        default=[],
        metavar="FIELD",
        help="Fields to export; resolved from the data dictionary when omitted",
    )
    parser.add_argument(
        "--decode",
        action="store_true",
        default=False,
        help="Transcode the export from ISO-8859-2 to UTF-8",
    )

    # ── Ingest package ──────────────────────────────────────────────────────────
    parser.add_argument(
        "--platform-mode",
        type=str,
        default=PlatformMode.current(),
        choices=list(PlatformMode.ALL),
        help="Path convention for the recorded file:// URI",
    )
    parser.add_argument(
        "--manifest",
        type=str,
        default=None,
        metavar="PATH",
        help="Write the ingest package (path, digest, URI, provenance) as JSON",
    )
    parser.add_argument(
        "--no-provenance",
        action="store_true",
        default=False,
        help="Do not record git provenance for this script",
    )

    # ── Inspection modes ────────────────────────────────────────────────────────
    parser.add_argument(
        "--list-fields",
        action="store_true",
        default=False,
        help="Print the exportable fields and exit",
    )
    parser.add_argument(
        "--include-nondata",
        action="store_true",
        default=False,
        help="With --list-fields, keep descriptive/file/sql/signature fields",
    )
    parser.add_argument(
        "--describe",
        action="store_true",
        default=False,
        help="With --list-fields, print labels, value types and choices as JSON",
    )
    parser.add_argument(
        "--project-info",
        action="store_true",
        default=False,
        help="Print REDCap project information as JSON and exit",
    )

    # ── Logging ─────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity level",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    return parser


def args_to_config(args: argparse.Namespace) -> LakeConfig:
    """Overlay CLI flags on the environment-derived LakeConfig.

    Args:
        args: Parsed argparse Namespace.

    Returns:
        LakeConfig populated from environment and CLI flags.
    """
    config = LakeConfig(log_level=args.log_level)
    if args.api_url:
        config.api_url = args.api_url
    if args.lake_root:
        config.lake_root = args.lake_root
    if args.timeout is not None:
        config.request_timeout = args.timeout
    return config


def run(args: argparse.Namespace, config: LakeConfig) -> int:
    """Execute the selected mode. Returns the process exit code."""
    logger = get_logger("scripts.export_redcap")

    if args.project_info:
        config.require("api_url", "api_token")
        with RedcapClient(config.api_url, config.api_token, config.request_timeout) as client:
            info = project_info(config.api_url, config.api_token, client=client)
        print(json.dumps(info, indent=2, ensure_ascii=False))
        return 0

    if args.list_fields:
        config.require("api_url", "api_token")
        with RedcapClient(config.api_url, config.api_token, config.request_timeout) as client:
            if args.describe:
                records = fetch_metadata(
                    config.api_url, config.api_token, args.forms or None, client=client
                )
                rows = describe_fields(records, include_nondata=args.include_nondata)
                print(json.dumps(rows, indent=2, ensure_ascii=False))
                return 0
            names = resolve_fields(
                config.api_url,
                config.api_token,
                forms=args.forms or None,
                include_nondata=args.include_nondata,
                client=client,
            )
        for name in names:
            print(name)
        return 0

    config.require("api_url", "api_token", "lake_root")
    with EAVExporter(
        config.api_url,
        config.api_token,
        config.lake_root,
        request_timeout=config.request_timeout,
    ) as exporter:
        exported = exporter.export_file(forms=args.forms, fields=args.fields, decode=args.decode)

    package = prepare_ingest(
        exported,
        platform_mode=args.platform_mode,
        script_path=None if args.no_provenance else __file__,
    )
    logger.info("Export digest %s", package.digest_hex)
    logger.info("Export URI %s", package.file_uri)

    if args.manifest:
        written = save_json(package.as_dict(), args.manifest)
        logger.info("Ingest manifest written to %s", written)

    print(package.path)
    return 0


def main() -> None:
    """CLI entrypoint — parse arguments, build config, run the export."""
    parser = build_arg_parser()
    args = parser.parse_args()

    configure_logging(log_level=args.log_level, log_file=args.log_file)
    logger = get_logger("scripts.export_redcap")

    try:
        config = args_to_config(args)
        sys.exit(run(args, config))
    except RedcapLakeError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(1)
    except requests.exceptions.RequestException as exc:
        logger.error("REDCap API unreachable: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Export interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
