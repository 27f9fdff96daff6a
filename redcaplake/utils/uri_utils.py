"""file:// URI conversion for redcaplake.

The lake records storage locations as ``file://`` URIs so that a catalog
entry written on one machine can be resolved on another. Conversion takes an
explicit platform mode instead of inspecting the running host:

    posix     /home/me/file.txt        <-> file:///home/me/file.txt
    windows   C:\\Users\\me\\file.txt      <-> file:///C:/Users/me/file.txt
    windows   \\\\srv\\share\\file.txt     <-> file://srv/share/file.txt

Only absolute paths are accepted; callers resolve relative paths first.
"""

from __future__ import annotations

import re
from urllib.parse import quote, unquote

from redcaplake.models.uri import FileURI, PlatformMode

_DRIVE_PATH_RE = re.compile(r"^[A-Za-z]:[\\/]")
_DRIVE_URI_PATH_RE = re.compile(r"^/[A-Za-z]:")


def _encode(path: str) -> str:
    return quote(path, safe="/")


def _windows_to_uri(path: str) -> str:
    if path.startswith("\\\\"):
        host, _, tail = path[2:].partition("\\")
        if not host:
            raise ValueError(f"Invalid UNC path: {path!r}")
        tail = tail.replace("\\", "/")
        return str(FileURI(host=host, path="/" + _encode(tail) if tail else ""))

    if _DRIVE_PATH_RE.match(path):
        drive, rest = path[:2], path[2:].replace("\\", "/")
        return str(FileURI(host="", path=f"/{drive}{_encode(rest)}"))

    raise ValueError(f"Expected an absolute Windows path (drive or UNC), got {path!r}")


def to_uri(path: str, platform_mode: str) -> str:
    """Convert an absolute local path to its canonical ``file://`` URI.

    Args:
        path: Absolute path in the convention of ``platform_mode``.
        platform_mode: PlatformMode.POSIX or PlatformMode.WINDOWS.

    Returns:
        Percent-encoded ``file://`` URI string.

    Raises:
        ValueError: if the path is not absolute for the given mode.
    """
    mode = PlatformMode.validate(platform_mode)
    path = str(path)

    if mode == PlatformMode.WINDOWS:
        return _windows_to_uri(path)

    if not path.startswith("/"):
        raise ValueError(f"Expected an absolute POSIX path, got {path!r}")
    return str(FileURI(host="", path=_encode(path)))


def to_path(uri: str, platform_mode: str) -> str:
    """Convert a ``file://`` URI back to a local path.

    In windows mode a host yields a UNC path and ``/X:`` drive paths lose their
    leading slash. In posix mode the host is ignored and the decoded path is
    returned unchanged.

    Raises:
        InvalidURIError: if the URI scheme is not ``file``.
    """
    mode = PlatformMode.validate(platform_mode)
    parsed = FileURI.parse(uri)
    decoded = unquote(parsed.path)

    if mode == PlatformMode.POSIX:
        return decoded

    if parsed.host:
        tail = decoded[1:] if decoded.startswith("/") else decoded
        unc = "\\\\" + parsed.host
        return unc + "\\" + tail.replace("/", "\\") if tail else unc

    if _DRIVE_URI_PATH_RE.match(decoded):
        decoded = decoded[1:]
    return decoded.replace("/", "\\")
