"""Line-oriented terminal front end.

A daemon thread reads stdin. Chat lines go straight into the session's
thread-safe outbox; ``/commands`` are handed to the service loop through a
second queue so that all state is only ever read on the loop thread.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import IO, TYPE_CHECKING, Callable

from colorama import Fore, Style, init as colorama_init

from .records import Message
from .util import fmt_addr

if TYPE_CHECKING:
    from .service import ChatService

HELP_TEXT = """Commands:
  /rooms        list owned and remote rooms
  /room <id>    show details for a room
  /peer         show the current peer
  /whoami       show your identity
  /stats        show node statistics
  /quit         leave
Lines not starting with '/' are sent to the peer ('//' sends a literal '/')."""


class ConsoleUI:
    def __init__(
        self,
        service: ChatService,
        *,
        stdin: IO[str] | None = None,
        stdout: IO[str] | None = None,
    ) -> None:
        self.service = service
        self.log = logging.getLogger("peerchat.ui")
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout
        self._commands: queue.Queue[str] = queue.Queue()
        self._running = threading.Event()
        self._running.set()
        self._reader: threading.Thread | None = None
        self._command_table: dict[str, Callable[[str], None]] = {
            "help": self._cmd_help,
            "quit": self._cmd_quit,
            "exit": self._cmd_quit,
            "rooms": self._cmd_rooms,
            "room": self._cmd_room,
            "peer": self._cmd_peer,
            "whoami": self._cmd_whoami,
            "stats": self._cmd_stats,
        }

    def start(self) -> None:
        colorama_init()
        self.display_info(f"Chatting as {self.service.config.username}. Type /help for commands.")
        self._reader = threading.Thread(
            target=self._read_loop, name="peerchat-stdin", daemon=True
        )
        self._reader.start()

    def _read_loop(self) -> None:
        for line in self._stdin:
            if not self._running.is_set():
                return
            self.submit_line(line)
        # EOF on stdin ends the session like /quit.
        self._commands.put("/quit")

    def submit_line(self, line: str) -> None:
        """Route one line of user input. Safe to call from any thread."""
        text = line.rstrip("\r\n")
        if not text.strip():
            return
        if text.startswith("//"):
            self.service.session.queue_message(text[1:])
        elif text.startswith("/"):
            self._commands.put(text)
        else:
            self.service.session.queue_message(text)

    def step(self) -> None:
        while True:
            try:
                line = self._commands.get_nowait()
            except queue.Empty:
                return
            self._handle_command(line)

    def is_running(self) -> bool:
        return self._running.is_set()

    def close(self) -> None:
        self._running.clear()

    def display_message(self, message: Message) -> None:
        self._print(f"{Fore.GREEN}<{message.sender}>{Style.RESET_ALL} {message.contents}")

    def display_info(self, text: str) -> None:
        for line in text.splitlines() or [text]:
            self._print(f"{Fore.CYAN}[info]{Style.RESET_ALL} {line}")

    def _print(self, text: str) -> None:
        # Resolved late: colorama_init() may wrap sys.stdout after construction.
        print(text, file=self._stdout or sys.stdout, flush=True)

    def _handle_command(self, line: str) -> None:
        name, _, arg = line[1:].strip().partition(" ")
        handler = self._command_table.get(name.lower())
        if handler is None:
            self.log.debug("Unknown command %r", name)
            self.display_info(f"Unknown command /{name}; try /help")
            return
        handler(arg.strip())

    def _cmd_help(self, arg: str) -> None:
        self.display_info(HELP_TEXT)

    def _cmd_quit(self, arg: str) -> None:
        self.display_info("Bye.")
        self.close()

    def _cmd_rooms(self, arg: str) -> None:
        rooms = self.service.room_manager
        if not rooms.owned and not rooms.remote:
            self.display_info("No rooms known.")
            return
        for room in rooms.owned.values():
            self.display_info(f"owned  {room.id}: {room.info.title}")
        for room in rooms.remote.values():
            self.display_info(f"remote {room.id}: {room.info.title}")

    def _cmd_room(self, arg: str) -> None:
        if not arg:
            self.display_info("Usage: /room <id>")
            return
        room = self.service.room_manager.get_room(arg)
        if room is None:
            self.display_info(f"No such room: {arg}")
            return
        info = room.info
        self.display_info(f"{info.title} ({info.id})")
        if info.short_about:
            self.display_info(info.short_about)
        if info.long_about:
            self.display_info(info.long_about)

    def _cmd_peer(self, arg: str) -> None:
        peer = self.service.session.peer
        if peer is None:
            self.display_info("No peer connected.")
        else:
            self.display_info(f"Peer: {fmt_addr(peer)}")

    def _cmd_whoami(self, arg: str) -> None:
        user = self.service.user_info
        line = user.username
        if self.service.pronouns is not None:
            line += f" ({self.service.pronouns.format_full()})"
        self.display_info(line)
        if user.about:
            self.display_info(user.about)

    def _cmd_stats(self, arg: str) -> None:
        self.display_info(self.service.stats_manager.format_stats())
