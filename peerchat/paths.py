from __future__ import annotations

import os
from pathlib import Path


def default_peerchat_dir() -> Path:
    override = os.environ.get("PEERCHAT_HOME")
    if override:
        return Path(override)
    return Path.home() / ".peerchat"


def default_config_path() -> Path:
    return default_peerchat_dir() / "peerchat.toml"
