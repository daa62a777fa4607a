from collections import deque

import pytest

from peerchat.config import ChatRuntimeConfig
from peerchat.service import ChatService


class FakeTransport:
    """In-memory stand-in for UdpTransport."""

    def __init__(self, local_address=("127.0.0.1", 4000)) -> None:
        self.local_address = local_address
        self.sent: list[tuple[bytes, tuple]] = []
        self.inbox: deque = deque()
        self.fail_sends = False
        self.closed = False

    def send_to(self, data: bytes, addr) -> None:
        if self.fail_sends:
            raise OSError("network is unreachable")
        self.sent.append((data, addr))

    def receive_from(self):
        return self.inbox.popleft() if self.inbox else None

    def deliver(self, data: bytes, addr) -> None:
        self.inbox.append((data, addr))

    def take_sent(self) -> list[tuple[bytes, tuple]]:
        sent, self.sent = self.sent, []
        return sent

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_service():
    def _make(username: str = "alice", *, start: bool = True, **overrides) -> ChatService:
        cfg = ChatRuntimeConfig(
            username=username, bind_addr=("127.0.0.1", 0), **overrides
        )
        svc = ChatService(cfg, transport=FakeTransport())
        if start:
            svc.start()
        return svc

    return _make
