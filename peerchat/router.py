from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any, Callable

from .codec import DecodeError, String
from .constants import PacketKind
from .packet import UnknownPacketKind, parse_packet, remaining
from .records import Message, RoomInfo, RoomList
from .util import fmt_addr

if TYPE_CHECKING:
    from .service import ChatService

Outgoing = list[tuple[Any, bytes]]
Handler = Callable[[Any, io.BytesIO, Outgoing], "Message | None"]


class PacketRouter:
    """
    Decodes inbound datagrams and dispatches them by packet kind.

    This class is responsible for:
    - Splitting each datagram into its opcode and payload
    - Recording the sender as the current peer
    - Running the handler for the kind and queueing any replies
    - Dropping (and logging) anything malformed or unsupported

    Handlers never send directly; replies are appended to ``outgoing`` and
    the service sends them once routing is done.
    """

    def __init__(self, service: ChatService) -> None:
        self.service = service
        self.log = logging.getLogger("peerchat.router")
        self._handlers: dict[PacketKind, Handler] = {
            PacketKind.Ping: self._handle_ping,
            PacketKind.Pong: self._handle_pong,
            PacketKind.RequestRoomList: self._handle_request_room_list,
            PacketKind.RoomList: self._handle_room_list,
            PacketKind.RequestRoomInfo: self._handle_request_room_info,
            PacketKind.RoomInfo: self._handle_room_info,
            PacketKind.Message: self._handle_message,
        }

    def route_packet(self, data: bytes, addr: Any, outgoing: Outgoing) -> Message | None:
        """
        Main entry point for an inbound datagram.

        Returns a decoded chat Message for the UI, or None.
        """
        stats = self.service.stats_manager
        stats.inc("pkts_in")
        stats.inc("bytes_in", len(data))

        try:
            kind, reader = parse_packet(data)
        except UnknownPacketKind as e:
            stats.inc("pkts_bad")
            stats.inc("unknown_kinds")
            self.log.warning("Dropped datagram from=%s: %s", fmt_addr(addr), e)
            return None
        except DecodeError as e:
            stats.inc("pkts_bad")
            self.log.warning(
                "Bad packet from=%s bytes=%s err=%s", fmt_addr(addr), len(data), e
            )
            return None

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "RX from=%s kind=%s bytes=%s", fmt_addr(addr), kind.name, len(data)
            )

        # No connection management: whoever spoke last is the peer.
        self.service.session.set_peer(addr)

        handler = self._handlers.get(kind)
        if handler is None:
            self.log.info(
                "Unimplemented packet handler for %s from=%s", kind.name, fmt_addr(addr)
            )
            return None

        try:
            result = handler(addr, reader, outgoing)
        except DecodeError as e:
            stats.inc("pkts_bad")
            self.log.warning(
                "Bad %s payload from=%s bytes=%s err=%s",
                kind.name,
                fmt_addr(addr),
                len(data),
                e,
            )
            return None

        extra = remaining(reader)
        if extra and self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "Ignoring %s trailing byte(s) after %s from=%s",
                extra,
                kind.name,
                fmt_addr(addr),
            )
        return result

    def _handle_ping(self, addr: Any, reader: io.BytesIO, outgoing: Outgoing) -> None:
        self.service.queue_packet(outgoing, addr, PacketKind.Pong)

    def _handle_pong(self, addr: Any, reader: io.BytesIO, outgoing: Outgoing) -> None:
        self.service.queue_packet(outgoing, addr, PacketKind.RequestRoomList)

    def _handle_request_room_list(
        self, addr: Any, reader: io.BytesIO, outgoing: Outgoing
    ) -> None:
        room_list = self.service.room_manager.build_room_list()
        self.service.queue_packet(outgoing, addr, PacketKind.RoomList, room_list)

    def _handle_room_list(self, addr: Any, reader: io.BytesIO, outgoing: Outgoing) -> None:
        """Ask the peer for details on every room it advertised."""
        room_list = RoomList.decode(reader)
        self.log.info(
            "Peer from=%s advertises %d room(s)", fmt_addr(addr), len(room_list.room_ids)
        )
        for room_id in room_list.room_ids:
            self.service.queue_packet(
                outgoing, addr, PacketKind.RequestRoomInfo, room_id, String
            )

    def _handle_request_room_info(
        self, addr: Any, reader: io.BytesIO, outgoing: Outgoing
    ) -> None:
        room_id = String.decode(reader)
        room = self.service.room_manager.get_owned(room_id)
        if room is None:
            self.log.warning(
                "Unrecognized room info request for %r from=%s", room_id, fmt_addr(addr)
            )
            return
        self.service.queue_packet(outgoing, addr, PacketKind.RoomInfo, room.info)

    def _handle_room_info(self, addr: Any, reader: io.BytesIO, outgoing: Outgoing) -> None:
        info = RoomInfo.decode(reader)
        self.service.room_manager.cache_remote(info)

    def _handle_message(
        self, addr: Any, reader: io.BytesIO, outgoing: Outgoing
    ) -> Message:
        message = Message.decode(reader)
        self.service.stats_manager.inc("messages_in")
        return message
