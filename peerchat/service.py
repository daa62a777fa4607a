from __future__ import annotations

import logging
import signal
import threading
import time
from typing import TYPE_CHECKING, Any

from .config import ChatRuntimeConfig
from .constants import MAX_DATAGRAM_SIZE, PacketKind
from .packet import make_packet
from .pronouns import Pronouns, find_preset
from .records import Message, UserInfo
from .rooms import RoomManager, default_room_info
from .router import Outgoing, PacketRouter
from .session import PeerSession
from .stats import StatsManager
from .transport import UdpTransport
from .util import fmt_addr

if TYPE_CHECKING:
    from .ui import ConsoleUI


class ChatService:
    """
    One peerchat node: a UDP socket, the room catalog and the peer session.

    The node runs a single cooperative loop. Each tick steps the UI, then
    polls the socket without blocking, then drains the outgoing-message
    queue. Everything that touches session or room state runs on that loop.
    """

    def __init__(
        self,
        config: ChatRuntimeConfig,
        *,
        transport: Any = None,
        ui: ConsoleUI | None = None,
    ) -> None:
        self.config = config
        self.log = logging.getLogger("peerchat.service")

        self._shutdown = threading.Event()
        self._started = False

        self.stats_manager = StatsManager(self)
        self.room_manager = RoomManager()
        self.session = PeerSession(
            self, buffer_until_connected=config.buffer_until_connected
        )
        self.router = PacketRouter(self)

        self.transport = transport
        self.ui = ui

        self.pronouns: Pronouns | None = None
        if config.pronouns:
            self.pronouns = find_preset(config.pronouns)
            if self.pronouns is None:
                self.log.warning("Unknown pronouns %r; leaving unset", config.pronouns)

    @property
    def user_info(self) -> UserInfo:
        return UserInfo(
            id=self.config.username,
            username=self.config.username,
            about=self.config.about,
        )

    def start(self) -> None:
        """Bind the socket, create the default owned room and greet the peer.

        A bind failure raises OSError; there is nothing to fall back to.
        """
        if self._started:
            return

        if self.transport is None:
            if self.config.bind_addr is None:
                raise ValueError("bind_addr is not set")
            self.transport = UdpTransport.bind(self.config.bind_addr)

        self.stats_manager.set_start_time()

        if not self.room_manager.owned:
            self.room_manager.add_owned(default_room_info(self.config.username))

        self.log.info(
            "Node running username=%r bind=%s",
            self.config.username,
            fmt_addr(getattr(self.transport, "local_address", self.config.bind_addr)),
        )

        self._started = True

        if self.config.connect_addr is not None:
            self.log.info("Pinging %s", fmt_addr(self.config.connect_addr))
            self.send_packet(self.config.connect_addr, PacketKind.Ping)

    def run_forever(self) -> None:
        if not self._started:
            self.start()

        signal.signal(signal.SIGINT, lambda *_: self.stop())
        signal.signal(signal.SIGTERM, lambda *_: self.stop())

        try:
            while not self._shutdown.is_set():
                if self.ui is not None and not self.ui.is_running():
                    break
                if not self.step():
                    time.sleep(self.config.poll_interval_s)
        finally:
            self.close()

    def step(self) -> bool:
        """Run one loop tick. Returns True if any datagram or message moved."""
        if self.ui is not None:
            self.ui.step()
        received = self.poll_network()
        sent = self.flush_outbox()
        return bool(received or sent)

    def stop(self) -> None:
        self._shutdown.set()

    def close(self) -> None:
        self._shutdown.set()
        if self.ui is not None:
            self.ui.close()
        if self.transport is not None:
            self.transport.close()

    def poll_network(self) -> int:
        """Route every datagram that is ready, up to the per-tick limit."""
        count = 0
        limit = max(1, int(self.config.max_datagrams_per_tick))
        while count < limit:
            received = self.transport.receive_from()
            if received is None:
                break
            data, addr = received
            count += 1
            self.on_datagram(data, addr)
        return count

    def on_datagram(self, data: bytes, addr: Any) -> Message | None:
        outgoing: Outgoing = []
        message = self.router.route_packet(data, addr, outgoing)

        if self.log.isEnabledFor(logging.DEBUG) and outgoing:
            self.log.debug("Sending %d response(s) to=%s", len(outgoing), fmt_addr(addr))
        self._send_all(outgoing)

        if message is not None and self.ui is not None:
            self.ui.display_message(message)
        return message

    def flush_outbox(self) -> int:
        texts = self.session.drain_outbox()
        peer = self.session.peer
        if not texts or peer is None:
            return 0

        outgoing: Outgoing = []
        for text in texts:
            message = Message(sender=self.config.username, contents=text)
            self.queue_packet(outgoing, peer, PacketKind.Message, message)
        sent = self._send_all(outgoing)
        self.stats_manager.inc("messages_out", sent)
        return len(texts)

    def packet_would_fit(self, payload: bytes) -> bool:
        return len(payload) <= MAX_DATAGRAM_SIZE

    def queue_packet(
        self,
        outgoing: Outgoing,
        addr: Any,
        kind: PacketKind,
        body: Any = None,
        codec: Any = None,
    ) -> None:
        payload = make_packet(kind, body, codec)
        if not self.packet_would_fit(payload):
            self.stats_manager.inc("oversized_dropped")
            self.log.warning(
                "%s packet would not fit in a datagram; dropping (%s bytes > %s)",
                kind.name,
                len(payload),
                MAX_DATAGRAM_SIZE,
            )
            return
        outgoing.append((addr, payload))

    def send_packet(
        self, addr: Any, kind: PacketKind, body: Any = None, codec: Any = None
    ) -> None:
        outgoing: Outgoing = []
        self.queue_packet(outgoing, addr, kind, body, codec)
        self._send_all(outgoing)

    def _send_all(self, outgoing: Outgoing) -> int:
        sent = 0
        for addr, payload in outgoing:
            try:
                self.transport.send_to(payload, addr)
            except OSError as e:
                self.stats_manager.inc("send_errors")
                self.log.warning(
                    "Send failed to=%s bytes=%s err=%s", fmt_addr(addr), len(payload), e
                )
                continue
            sent += 1
            self.stats_manager.inc("pkts_out")
            self.stats_manager.inc("bytes_out", len(payload))
        return sent
