"""redcaplake — LakeConfig and environment-based configuration loading.

All runtime configuration flows through LakeConfig. Library code never reads
the environment directly; the config object is passed into each call.
The API token comes exclusively from the environment or an explicit argument.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from config.defaults import (
    DEFAULT_LOG_LEVEL,
    ENV_API_TOKEN,
    ENV_API_URL,
    ENV_LAKE_ROOT,
    ENV_LOG_LEVEL,
    ENV_REQUEST_TIMEOUT,
)
from redcaplake.errors import ConfigMissingError

# Load .env file if present; silently skip if missing
load_dotenv()


def _timeout_from_env() -> Optional[float]:
    raw = os.getenv(ENV_REQUEST_TIMEOUT, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_REQUEST_TIMEOUT} must be a number of seconds, got {raw!r}")


@dataclass
class LakeConfig:
    """Single configuration object passed to the extract and ingest layers.

    Values default to the corresponding environment variables. Missing values
    are only an error once ``require()`` is called, so partial configs can be
    built for tooling that does not touch the network.
    """

    # ── REDCap API ────────────────────────────────────────────────────────────
    api_url: Optional[str] = field(default_factory=lambda: os.getenv(ENV_API_URL) or None)
    api_token: Optional[str] = field(
        default_factory=lambda: os.getenv(ENV_API_TOKEN) or None, repr=False
    )
    request_timeout: Optional[float] = field(default_factory=_timeout_from_env)

    # ── Data lake ─────────────────────────────────────────────────────────────
    lake_root: Optional[str] = field(default_factory=lambda: os.getenv(ENV_LAKE_ROOT) or None)

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = field(
        default_factory=lambda: os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)
    )

    def missing(self, *names: str) -> List[str]:
        """Return the environment variable names of unset settings among ``names``."""
        env_names = {
            "api_url": ENV_API_URL,
            "api_token": ENV_API_TOKEN,
            "lake_root": ENV_LAKE_ROOT,
        }
        wanted = names or tuple(env_names)
        return [env_names[name] for name in wanted if not getattr(self, name)]

    def require(self, *names: str) -> "LakeConfig":
        """Raise ConfigMissingError unless every named setting is present.

        Args:
            names: Attribute names to check. Defaults to api_url, api_token and lake_root.

        Returns:
            self, for chaining.
        """
        missing = self.missing(*names)
        if missing:
            raise ConfigMissingError(missing)
        return self
