from __future__ import annotations

import os
from typing import Any

from .constants import USERNAME_MAX_CHARS


def expand_path(p: str) -> str:
    return os.path.expanduser(os.path.expandvars(p))


def parse_address(text: str) -> tuple[str, int]:
    """Parse ``host:port`` or ``[v6addr]:port`` into a socket address tuple."""

    s = str(text).strip()
    if not s:
        raise ValueError("address must not be empty")

    if s.startswith("["):
        host, sep, rest = s[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ValueError(f"invalid address {text!r}: expected [host]:port")
        port_text = rest[1:]
    else:
        host, sep, port_text = s.rpartition(":")
        if not sep:
            raise ValueError(f"invalid address {text!r}: expected host:port")
        if ":" in host:
            raise ValueError(f"invalid address {text!r}: bracket IPv6 hosts")

    if not host:
        raise ValueError(f"invalid address {text!r}: missing host")

    try:
        port = int(port_text)
    except ValueError as e:
        raise ValueError(f"invalid port in address {text!r}") from e
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in address {text!r}")

    return host, port


def fmt_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host = str(addr[0])
        if ":" in host:
            return f"[{host}]:{addr[1]}"
        return f"{host}:{addr[1]}"
    return "-"


def normalize_username(value) -> str | None:
    if not isinstance(value, str):
        return None

    s = value.strip()
    if not s:
        return None

    if len(s) > int(USERNAME_MAX_CHARS):
        return None

    # Keep this conservative: usernames end up in room ids and on one-line
    # displays, so reject embedded newlines and NUL.
    if "\n" in s or "\r" in s or "\x00" in s:
        return None

    try:
        s.encode("utf-8", "strict")
    except UnicodeError:
        return None

    return s
