from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any

from .util import parse_address

Address = tuple[str, int]


@dataclass(frozen=True)
class ChatRuntimeConfig:
    config_path: str | None = None
    username: str = ""
    bind_addr: Address | None = None
    connect_addr: Address | None = None
    about: str = ""
    pronouns: str | None = None
    # Hold messages typed before any peer is known instead of dropping them.
    buffer_until_connected: bool = False
    poll_interval_s: float = 0.02
    max_datagrams_per_tick: int = 64
    log_level: str = "WARNING"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    log_datefmt: str | None = None


def load_toml(path: str) -> dict:
    import tomllib

    with open(path, "rb") as f:
        data = tomllib.load(f)
    return data if isinstance(data, dict) else {}


def apply_config_data(base: ChatRuntimeConfig, data: dict) -> ChatRuntimeConfig:
    """Overlay a parsed TOML document onto ``base``.

    Keys from the ``[chat]`` table are flattened to the top level and keys
    from ``[logging]`` map onto the ``log_*`` fields. Unknown keys are ignored.
    """

    chat = data.get("chat") if isinstance(data, dict) else None
    if isinstance(chat, dict):
        data = {**data, **chat}

    log_table = data.get("logging") if isinstance(data, dict) else None
    if isinstance(log_table, dict):
        mapped: dict[str, object] = {}
        for key in ("level", "console", "file", "format", "datefmt"):
            if key in log_table:
                mapped[f"log_{key}"] = log_table.get(key)
        data = {**data, **mapped}

    allowed = set(asdict(base).keys())
    # This identifies where the file was loaded from; do not let the file override it.
    allowed.discard("config_path")
    updates: dict[str, Any] = {k: v for k, v in data.items() if k in allowed}

    for key in ("bind_addr", "connect_addr"):
        if key not in updates:
            continue
        value = updates[key]
        if value is None or (isinstance(value, str) and not value.strip()):
            updates[key] = None
        else:
            updates[key] = parse_address(str(value))

    for key in ("pronouns", "log_file", "log_datefmt"):
        if key in updates and updates[key] == "":
            updates[key] = None

    if "buffer_until_connected" in updates:
        updates["buffer_until_connected"] = bool(updates["buffer_until_connected"])
    if "log_console" in updates:
        updates["log_console"] = bool(updates["log_console"])
    if "poll_interval_s" in updates:
        updates["poll_interval_s"] = max(0.0, float(updates["poll_interval_s"]))
    if "max_datagrams_per_tick" in updates:
        updates["max_datagrams_per_tick"] = max(1, int(updates["max_datagrams_per_tick"]))

    return replace(base, **updates) if updates else base
