"""Provenance models for redcaplake."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CommitInfo:
    """Source-control coordinates of the script that produced an ingest.

    The three fields are either all set or all None; partial provenance is
    never produced.
    """

    repo_url: Optional[str] = None
    commit: Optional[str] = None
    script_relpath: Optional[str] = None

    def __post_init__(self) -> None:
        present = [v is not None for v in (self.repo_url, self.commit, self.script_relpath)]
        if any(present) and not all(present):
            raise ValueError("CommitInfo fields must be all present or all absent")

    @classmethod
    def empty(cls) -> "CommitInfo":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.commit is None
