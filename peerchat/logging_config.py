"""Logging setup for a peerchat node.

The chat transcript owns stdout, so log records only ever go to stderr
and, optionally, a file. The default level is WARNING: routine protocol
traffic is logged at INFO/DEBUG and stays out of the way unless asked for.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from .config import ChatRuntimeConfig

DEFAULT_LEVEL = logging.WARNING
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_level(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    if not text:
        return default
    if text == "WARN":
        text = "WARNING"

    levels = logging.getLevelNamesMapping()
    if text in levels:
        return levels[text]
    try:
        return int(text)
    except ValueError:
        return default


def _clean_optional_path(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def _log_file(cfg: ChatRuntimeConfig, override_file: str | None) -> Path | None:
    # An explicit empty override disables file logging even if the config sets one.
    if override_file is not None:
        path = _clean_optional_path(override_file)
    else:
        path = _clean_optional_path(cfg.log_file)
    if path is None:
        return None
    return Path(os.path.expanduser(path))


def _build_handlers(cfg: ChatRuntimeConfig, log_file: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if cfg.log_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def configure_logging(
    cfg: ChatRuntimeConfig,
    *,
    override_level: str | None = None,
    override_file: str | None = None,
) -> None:
    """Install peerchat's handlers on the root logger.

    ``override_level``/``override_file`` come from the command line and win
    over the ``[logging]`` table. Calling this again replaces the handlers
    from the previous call.
    """

    level = _parse_level(override_level or cfg.log_level, DEFAULT_LEVEL)
    handlers = _build_handlers(cfg, _log_file(cfg, override_file))

    formatter = logging.Formatter(
        fmt=(str(cfg.log_format).strip() if cfg.log_format else "") or DEFAULT_FORMAT,
        datefmt=_clean_optional_path(cfg.log_datefmt),
    )

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)
    root.setLevel(level)

    logging.captureWarnings(True)
