#!/usr/bin/env python3
"""redcaplake — pre-flight environment validation.

Checks:
  1. Python version compatibility (3.9+)
  2. Required package imports
  3. redcaplake module imports
  4. Environment variable presence
  5. Lake ingest directory writability
  6. git executable (provenance capture)
  7. Optional REDCap API connectivity

Usage:
    python scripts/validate_env.py
    python scripts/validate_env.py --skip-network
"""

from __future__ import annotations

import argparse
import importlib
import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional, Tuple

# Ensure project root is on sys.path
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))


# ── ANSI colours ────────────────────────────────────────────────────────────────
_GREEN = "\033[32m"
_RED = "\033[31m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"
_BOLD = "\033[1m"


def _ok(msg: str) -> str:
    return f"{_GREEN}✓{_RESET}  {msg}"


def _fail(msg: str) -> str:
    return f"{_RED}✗{_RESET}  {msg}"


def _warn(msg: str) -> str:
    return f"{_YELLOW}⚠{_RESET}  {msg}"


def _header(msg: str) -> str:
    return f"\n{_BOLD}{msg}{_RESET}"


# ── Check functions ──────────────────────────────────────────────────────────────

def check_python_version() -> Tuple[bool, str]:
    """Verify Python version is 3.9 or newer."""
    major, minor = sys.version_info[:2]
    version_str = f"{major}.{minor}.{sys.version_info.micro}"
    if major < 3 or (major == 3 and minor < 9):
        return False, f"Python {version_str} detected — requires ≥ 3.9"
    return True, f"Python {version_str}"


def check_package_imports() -> List[Tuple[bool, str]]:
    """Verify all required packages can be imported."""
    required = [
        ("requests", "requests"),
        ("dotenv", "python-dotenv"),
        ("yaml", "PyYAML"),
        ("blake3", "blake3"),
    ]

    results = []
    for import_name, package_name in required:
        try:
            mod = importlib.import_module(import_name)
            version = getattr(mod, "__version__", "?")
            results.append((True, f"{package_name} ({version})"))
        except ImportError:
            results.append((False, f"{package_name} — NOT installed (pip install {package_name})"))

    return results


def check_redcaplake_imports() -> List[Tuple[bool, str]]:
    """Verify the redcaplake package modules can be imported."""
    modules = [
        "config.defaults",
        "config.settings",
        "redcaplake.errors",
        "redcaplake.models",
        "redcaplake.clients.redcap_client",
        "redcaplake.extract.metadata",
        "redcaplake.extract.eav_export",
        "redcaplake.io.persistence",
        "redcaplake.utils.uri_utils",
        "redcaplake.utils.git_utils",
        "redcaplake.ingest",
    ]
    results = []
    for module in modules:
        try:
            importlib.import_module(module)
            results.append((True, module))
        except ImportError as exc:
            results.append((False, f"{module} — {exc}"))
    return results


def check_env_vars() -> List[Tuple[Optional[bool], str]]:
    """Check presence of the REDCap and lake environment variables."""
    from config.settings import LakeConfig

    config = LakeConfig()
    results: List[Tuple[Optional[bool], str]] = []

    if config.api_url:
        results.append((True, f"REDCAP_API_URL = {config.api_url!r}"))
    else:
        results.append((False, "REDCAP_API_URL — not set"))

    token = config.api_token
    if token:
        masked = token[:4] + "..." + token[-4:] if len(token) > 12 else "***"
        results.append((True, f"REDCAP_API_TOKEN = {masked}"))
    else:
        results.append((False, "REDCAP_API_TOKEN — not set"))

    if config.lake_root:
        results.append((True, f"TRE_LAKE_PATH = {config.lake_root!r}"))
    else:
        results.append((False, "TRE_LAKE_PATH — not set"))

    timeout = config.request_timeout
    results.append((True, f"REDCAP_REQUEST_TIMEOUT = {timeout if timeout is not None else 'library default'}"))
    return results


def check_lake_dir() -> Tuple[Optional[bool], str]:
    """Verify the lake ingest directory is writable."""
    from config.settings import LakeConfig
    from redcaplake.errors import FileSystemError
    from redcaplake.io.persistence import ensure_ingest_dir

    lake_root = LakeConfig().lake_root
    if not lake_root:
        return None, "Skipped — TRE_LAKE_PATH not set"

    try:
        ingest_dir = ensure_ingest_dir(lake_root)
        test_file = ingest_dir / ".write_test"
        test_file.write_text("ok")
        test_file.unlink()
        return True, f"Ingest directory writable: {ingest_dir}"
    except (OSError, FileSystemError) as exc:
        return False, f"Ingest directory not writable under {lake_root}: {exc}"


def check_git() -> Tuple[Optional[bool], str]:
    """Verify git is on PATH. Missing git only disables provenance capture."""
    git = shutil.which("git")
    if git is None:
        return None, "git not found — ingests will carry no provenance"
    try:
        out = subprocess.run([git, "--version"], capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.SubprocessError) as exc:
        return None, f"git found at {git} but failed to run: {exc}"
    return True, out.stdout.strip() or git


def check_redcap_connectivity() -> Tuple[Optional[bool], str]:
    """Request project info to confirm the URL and token are accepted."""
    import requests

    from config.settings import LakeConfig
    from redcaplake.errors import ConfigMissingError, MetadataRequestError
    from redcaplake.extract.metadata import project_info

    try:
        config = LakeConfig().require("api_url", "api_token")
        info = project_info(config.api_url, config.api_token)
    except ConfigMissingError as exc:
        return None, f"Skipped — {exc}"
    except MetadataRequestError as exc:
        return False, f"REDCap rejected the request (HTTP {exc.status}): {exc.body[:120]}"
    except requests.exceptions.RequestException as exc:
        return False, f"REDCap API unreachable: {exc}"

    title = info.get("project_title", "?")
    return True, f"REDCap project reachable: {title!r} (id {info.get('project_id', '?')})"


# ── Report ───────────────────────────────────────────────────────────────────────

def _print_results(results: List[Tuple], indent: int = 2) -> int:
    """Print check results and return count of failures."""
    failures = 0
    pad = " " * indent
    for item in results:
        ok, msg = item[0], item[1]
        if ok is True:
            print(f"{pad}{_ok(msg)}")
        elif ok is False:
            print(f"{pad}{_fail(msg)}")
            failures += 1
        else:
            # None = optional / warning
            print(f"{pad}{_warn(msg)}")
    return failures


def main() -> None:
    """Run all pre-flight checks and report results."""
    parser = argparse.ArgumentParser(
        description="redcaplake — pre-flight environment validation",
    )
    parser.add_argument(
        "--skip-network",
        action="store_true",
        default=False,
        help="Skip the REDCap API connectivity check",
    )
    args = parser.parse_args()

    total_failures = 0

    print(f"\n{_BOLD}╔══════════════════════════════════════════════════════╗{_RESET}")
    print(f"{_BOLD}║  redcaplake — Environment Validation                  ║{_RESET}")
    print(f"{_BOLD}╚══════════════════════════════════════════════════════╝{_RESET}")

    # 1. Python version
    print(_header("1. Python Version"))
    ok, msg = check_python_version()
    print(f"  {_ok(msg) if ok else _fail(msg)}")
    if not ok:
        total_failures += 1

    # 2. Required packages
    print(_header("2. Required Package Imports"))
    total_failures += _print_results(check_package_imports())

    # 3. redcaplake module imports
    print(_header("3. redcaplake Module Imports"))
    module_results = check_redcaplake_imports()
    module_failures = _print_results(module_results)
    total_failures += module_failures
    if module_failures:
        print(f"\n{_RED}{_BOLD}Cannot continue without the redcaplake modules.{_RESET}")
        sys.exit(1)

    # 4. Environment variables
    print(_header("4. Environment Variables"))
    total_failures += _print_results(check_env_vars())

    # 5. Lake directory
    print(_header("5. Lake Ingest Directory"))
    total_failures += _print_results([check_lake_dir()])

    # 6. git
    print(_header("6. Provenance (git)"))
    _print_results([check_git()])  # Missing git is a warning, not a hard failure

    # 7. Network check (skippable)
    print(_header("7. REDCap API Connectivity"))
    if args.skip_network:
        print(f"  {_warn('Skipped (--skip-network)')}")
    else:
        total_failures += _print_results([check_redcap_connectivity()])

    # ── Summary ──────────────────────────────────────────────────────────────────
    print(f"\n{'═' * 54}")
    if total_failures == 0:
        print(f"{_GREEN}{_BOLD}All required checks passed.{_RESET} Environment is ready.")
        sys.exit(0)
    else:
        print(
            f"{_RED}{_BOLD}{total_failures} check(s) failed.{_RESET} "
            "Resolve the errors above before running an export."
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
