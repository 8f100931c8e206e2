"""Logging initialization helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from driveflow.config import LoggingSettings, Settings

_ROOT_LOGGER = "driveflow"
_MARKER = "_driveflow_configured"

# Chatty client libraries; only their warnings are worth keeping.
_QUIET_LOGGERS = ("googleapiclient.discovery_cache", "google.auth.transport", "botocore", "urllib3")


def _log_file(cfg: LoggingSettings, log_dir: str) -> Path | None:
    if not cfg.file:
        return None
    path = Path(str(cfg.file))
    return path if path.is_absolute() else Path(log_dir) / path


def _handlers(cfg: LoggingSettings, log_dir: str) -> list[logging.Handler]:
    out: list[logging.Handler] = []
    if cfg.console:
        out.append(logging.StreamHandler())
    path = _log_file(cfg, log_dir)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        out.append(
            RotatingFileHandler(
                path,
                maxBytes=int(cfg.max_bytes),
                backupCount=int(cfg.backup_count),
                encoding="utf-8",
            )
        )
    return out


def setup_logging(settings: Settings) -> logging.Logger:
    """Attach console/file handlers to the `driveflow` logger once.

    Both apps, the worker and the scripts call this at startup; repeated calls
    return the already configured logger.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    if getattr(logger, _MARKER, False):
        return logger

    cfg = settings.logging
    level = logging.getLevelName(str(cfg.level or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))
    handlers = _handlers(cfg, settings.log_dir)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = False
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    setattr(logger, _MARKER, True)
    return logger
