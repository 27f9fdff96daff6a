"""Source-control provenance for redcaplake.

Captures the repository URL, commit and script path of the code that
produced an ingest by shelling out to ``git``. Provenance is best-effort:
any failure yields an empty CommitInfo and never interrupts an ingest.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import List

from config.defaults import GIT_EXECUTABLE, GIT_TIMEOUT, SHORT_COMMIT_LENGTH
from redcaplake.models.provenance import CommitInfo

logger = logging.getLogger(__name__)

_SSH_REMOTE_RE = re.compile(r"^git@([^:]+):(.+?)(?:\.git)?$")


class _GitUnavailable(Exception):
    """Internal signal that one git step failed."""


def normalize_remote(url: str) -> str:
    """Rewrite ``git@host:org/repo[.git]`` as ``https://host/org/repo``.

    Other URLs only lose a trailing ``.git``.
    """
    url = url.strip()
    match = _SSH_REMOTE_RE.match(url)
    if match:
        return f"https://{match.group(1)}/{match.group(2)}"
    return re.sub(r"\.git$", "", url)


def _git(args: List[str], cwd: str) -> str:
    try:
        result = subprocess.run(
            [GIT_EXECUTABLE, "-C", cwd] + args,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise _GitUnavailable(str(exc)) from exc
    output = result.stdout.strip()
    if result.returncode != 0 or not output:
        raise _GitUnavailable(result.stderr.strip() or f"git {' '.join(args)} returned nothing")
    return output


def git_commit_info(dir: str, script_path: str, short: bool = True) -> CommitInfo:
    """Return version-control coordinates for ``script_path``.

    Args:
        dir: Any directory inside the repository.
        script_path: The script whose location is recorded, relative to the repo root.
        short: Truncate the commit hash to its abbreviated form.

    Returns:
        A fully populated CommitInfo, or CommitInfo.empty() if any step fails
        (not a repository, no origin remote, git missing, script outside the repo).
    """
    try:
        root = os.path.realpath(_git(["rev-parse", "--show-toplevel"], dir))
        commit = _git(["rev-parse", "HEAD"], root)
        remote = _git(["config", "--get", "remote.origin.url"], root)

        relpath = os.path.relpath(os.path.realpath(os.path.abspath(script_path)), root)
        if relpath == os.pardir or relpath.startswith(os.pardir + os.sep):
            raise _GitUnavailable(f"{script_path} is outside repository {root}")
    except (_GitUnavailable, ValueError) as exc:
        logger.debug("No git provenance for %s: %s", script_path, exc)
        return CommitInfo.empty()

    return CommitInfo(
        repo_url=normalize_remote(remote),
        commit=commit[:SHORT_COMMIT_LENGTH] if short else commit,
        script_relpath=relpath.replace(os.sep, "/"),
    )
