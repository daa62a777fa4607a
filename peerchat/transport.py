from __future__ import annotations

import logging
import socket
from typing import Any

from .constants import MAX_DATAGRAM_SIZE

Address = tuple[Any, ...]


class UdpTransport:
    """
    Non-blocking UDP datagram socket.

    ``receive_from`` never blocks: it returns ``None`` when no datagram is
    ready, so it can be polled from the service loop on every tick.
    """

    def __init__(self, sock: socket.socket, *, recv_buffer_size: int = MAX_DATAGRAM_SIZE) -> None:
        self.log = logging.getLogger("peerchat.transport")
        self._sock = sock
        self._sock.setblocking(False)
        self.recv_buffer_size = int(recv_buffer_size)

    @classmethod
    def bind(cls, addr: tuple[str, int]) -> UdpTransport:
        """Bind a socket to ``addr``. Resolution and bind failures raise OSError."""
        host, port = addr
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
        if not infos:
            raise OSError(f"could not resolve bind address {host}:{port}")
        family, socktype, proto, _, sockaddr = infos[0]

        sock = socket.socket(family, socktype, proto)
        try:
            sock.bind(sockaddr)
        except OSError:
            sock.close()
            raise
        return cls(sock)

    @property
    def local_address(self) -> Address:
        return self._sock.getsockname()

    def send_to(self, data: bytes, addr: Address) -> None:
        self._sock.sendto(data, addr)

    def receive_from(self) -> tuple[bytes, Address] | None:
        try:
            data, addr = self._sock.recvfrom(self.recv_buffer_size)
        except BlockingIOError:
            return None
        except (ConnectionRefusedError, ConnectionResetError) as e:
            # ICMP port-unreachable from an earlier send surfaces here on some
            # platforms; it says nothing about the next datagram.
            self.log.debug("Ignoring ICMP error on receive: %s", e)
            return None
        return data, addr

    def close(self) -> None:
        try:
            self._sock.close()
        except OSError:
            self.log.debug("Socket close failed", exc_info=True)
