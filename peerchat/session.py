from __future__ import annotations

import logging
import queue
from collections import deque
from typing import TYPE_CHECKING, Any

from .util import fmt_addr

if TYPE_CHECKING:
    from .service import ChatService


class PeerSession:
    """
    Tracks the single peer this node is talking to.

    This class is responsible for:
    - The current peer address (last writer wins, no handshake)
    - The outgoing-message queue filled by the UI thread
    - Deciding what happens to messages typed before a peer is known

    The outbox is a ``queue.Queue`` so any thread may put into it; only the
    service loop drains it.
    """

    def __init__(self, service: ChatService, *, buffer_until_connected: bool = False) -> None:
        self.service = service
        self.log = logging.getLogger("peerchat.session")
        self.peer: Any = None
        self.outbox: queue.Queue[str] = queue.Queue()
        self.buffer_until_connected = buffer_until_connected
        self._pending: deque[str] = deque()

    def set_peer(self, addr: Any) -> bool:
        """Record ``addr`` as the current peer. Returns True if it changed."""
        if addr == self.peer:
            return False

        old = self.peer
        self.peer = addr
        if old is None:
            self.log.info("Peer connected addr=%s", fmt_addr(addr))
        else:
            self.log.info("Peer changed old=%s new=%s", fmt_addr(old), fmt_addr(addr))
        return True

    def queue_message(self, text: str) -> None:
        self.outbox.put(text)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def drain_outbox(self) -> list[str]:
        """Take everything queued so far without blocking.

        Returns the messages that can be sent to the current peer now, in
        the order they were queued. With no peer, messages are dropped, or
        held for later if ``buffer_until_connected`` is set.
        """

        ready: list[str] = []
        while True:
            try:
                text = self.outbox.get_nowait()
            except queue.Empty:
                break

            if self.peer is not None:
                ready.append(text)
            elif self.buffer_until_connected:
                self._pending.append(text)
            else:
                self.service.stats_manager.inc("messages_dropped")
                self.log.warning(
                    "No peer connected; dropping outgoing message (%s chars)",
                    len(text),
                )

        if self.peer is not None and self._pending:
            self.log.info("Flushing %d buffered message(s)", len(self._pending))
            ready = [*self._pending, *ready]
            self._pending.clear()

        return ready
