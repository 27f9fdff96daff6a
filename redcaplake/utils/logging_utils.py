"""Logging utilities for redcaplake.

Provides YAML-based logging configuration and run-id context injection.
All loggers are namespaced under 'redcaplake'. Library modules only ever
call logging.getLogger(__name__); configuration belongs to entry points.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any, MutableMapping, Optional

import yaml

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "logging.yaml"


def configure_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """Configure logging from the YAML configuration file.

    Falls back to basicConfig if the YAML file is not found.

    Args:
        config_path: Path to logging.yaml (defaults to config/logging.yaml).
        log_level: Override log level (e.g., "DEBUG", "INFO", "WARNING").
        log_file: Override the log file path; its directory is created if needed.
    """
    if config_path is None:
        config_path = str(_DEFAULT_CONFIG_PATH)

    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)

        handlers = cfg.get("handlers", {})
        if log_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            for handler_cfg in handlers.values():
                if handler_cfg.get("class") == "logging.FileHandler":
                    handler_cfg["filename"] = log_file
        else:
            # File handlers are opt-in from the command line
            for name in [n for n, h in handlers.items() if h.get("class") == "logging.FileHandler"]:
                handlers.pop(name)
                for logger_cfg in list(cfg.get("loggers", {}).values()) + [cfg.get("root", {})]:
                    if name in logger_cfg.get("handlers", []):
                        logger_cfg["handlers"].remove(name)

        if log_level:
            for logger_cfg in cfg.get("loggers", {}).values():
                logger_cfg["level"] = log_level.upper()
            if "root" in cfg:
                cfg["root"]["level"] = log_level.upper()

        logging.config.dictConfig(cfg)
    else:
        logging.basicConfig(
            level=getattr(logging, (log_level or "INFO").upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


def get_logger(name: str) -> logging.Logger:
    """Get a namespaced logger under 'redcaplake'.

    Args:
        name: Module or component name (e.g., "extract.eav_export").

    Returns:
        Logger instance with full 'redcaplake.<name>' namespace.
    """
    if name.startswith("redcaplake"):
        return logging.getLogger(name)
    return logging.getLogger(f"redcaplake.{name}")


class RunContextAdapter(logging.LoggerAdapter):
    """Logger adapter that injects run_id into all log records.

    Usage:
        logger = get_run_logger("ingest", run_id="20240115_120000_apcc")
        logger.info("Exporting records")
        # Output: [INFO] redcaplake.ingest: [20240115_120000_apcc] Exporting records
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        run_id = self.extra.get("run_id", "unknown")
        return f"[{run_id}] {msg}", kwargs


def get_run_logger(name: str, run_id: str) -> RunContextAdapter:
    """Get a run-context-aware logger adapter.

    Args:
        name: Module or component name.
        run_id: Ingest run identifier (YYYYMMDD_HHMMSS_<slug>).

    Returns:
        LoggerAdapter that prefixes all messages with [run_id].
    """
    return RunContextAdapter(get_logger(name), {"run_id": run_id})
