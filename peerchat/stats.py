"""Statistics tracking and reporting for a peerchat node."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service import ChatService


class StatsManager:
    """
    Lifetime counters for a node.

    Tracks:
    - Datagrams and bytes in/out
    - Malformed and unknown-kind datagrams
    - Chat messages received, sent and dropped
    - Send failures and oversized packets that were never sent
    """

    def __init__(self, service: ChatService) -> None:
        self.service = service

        self.started_monotonic: float | None = None

        self._counters: dict[str, int] = {
            "pkts_in": 0,
            "pkts_out": 0,
            "pkts_bad": 0,
            "bytes_in": 0,
            "bytes_out": 0,
            "unknown_kinds": 0,
            "messages_in": 0,
            "messages_out": 0,
            "messages_dropped": 0,
            "send_errors": 0,
            "oversized_dropped": 0,
        }

    def set_start_time(self) -> None:
        self.started_monotonic = time.monotonic()

    def inc(self, key: str, delta: int = 1) -> None:
        self._counters[key] = int(self._counters.get(key, 0)) + int(delta)

    def get(self, key: str) -> int:
        return int(self._counters.get(key, 0))

    def format_stats(self) -> str:
        """Format current statistics as a human-readable string."""
        from . import __version__

        started = self.started_monotonic
        uptime_s = (time.monotonic() - started) if started is not None else 0.0

        room_stats = self.service.room_manager.get_stats()
        peer = self.service.session.peer
        c = dict(self._counters)

        lines: list[str] = []
        lines.append(f"peerchat {__version__} stats")
        lines.append(f"uptime_s={uptime_s:.1f}")
        lines.append(
            f"peer={'connected' if peer is not None else 'none'} "
            f"rooms_owned={room_stats['owned']} rooms_remote={room_stats['remote']}"
        )
        lines.append(
            "io: pkts_in={} pkts_out={} pkts_bad={} unknown_kinds={} bytes_in={} bytes_out={}".format(
                c.get("pkts_in", 0),
                c.get("pkts_out", 0),
                c.get("pkts_bad", 0),
                c.get("unknown_kinds", 0),
                c.get("bytes_in", 0),
                c.get("bytes_out", 0),
            )
        )
        lines.append(
            "messages: in={} out={} dropped={} pending={}".format(
                c.get("messages_in", 0),
                c.get("messages_out", 0),
                c.get("messages_dropped", 0),
                self.service.session.pending_count,
            )
        )
        lines.append(
            "errors: send_errors={} oversized_dropped={}".format(
                c.get("send_errors", 0),
                c.get("oversized_dropped", 0),
            )
        )

        return "\n".join(lines)
