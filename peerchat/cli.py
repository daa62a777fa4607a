from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace

from .config import ChatRuntimeConfig, apply_config_data, load_toml
from .logging_config import configure_logging
from .paths import default_config_path
from .pronouns import find_preset
from .service import ChatService
from .ui import ConsoleUI
from .util import expand_path, normalize_username, parse_address


def _address(text: str) -> tuple[str, int]:
    try:
        return parse_address(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="peerchat", description="Experimental distributed UDP chat."
    )

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to a TOML config file (read only if it exists)",
    )
    p.add_argument(
        "-u", "--username", default=None, help="Name you appear as to other peers"
    )
    p.add_argument(
        "-b",
        "--bind-addr",
        type=_address,
        default=None,
        help="Address to bind to, as host:port",
    )
    p.add_argument(
        "-c",
        "--connect",
        type=_address,
        default=None,
        help="Other address to initiate a connection with, as host:port",
    )
    p.add_argument("--about", default=None, help="Short text about yourself")
    p.add_argument(
        "--pronouns", default=None, help="Pronouns to show, e.g. they/them or fae/faer"
    )
    p.add_argument(
        "--buffer-until-connected",
        action="store_true",
        help="Hold messages typed before a peer connects instead of dropping them",
    )

    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def build_config(
    args: argparse.Namespace, parser: argparse.ArgumentParser
) -> ChatRuntimeConfig:
    """Merge the config file (if present) and command-line overrides."""

    config_path = expand_path(str(args.config)) if args.config else None
    cfg = ChatRuntimeConfig(config_path=config_path)

    if config_path and os.path.exists(config_path):
        try:
            cfg = apply_config_data(cfg, load_toml(config_path))
        except (OSError, ValueError) as e:
            parser.error(f"invalid config file {config_path}: {e}")

    if args.username is not None:
        cfg = replace(cfg, username=args.username)
    if args.bind_addr is not None:
        cfg = replace(cfg, bind_addr=args.bind_addr)
    if args.connect is not None:
        cfg = replace(cfg, connect_addr=args.connect)
    if args.about is not None:
        cfg = replace(cfg, about=args.about)
    if args.pronouns is not None:
        cfg = replace(cfg, pronouns=args.pronouns or None)
    if args.buffer_until_connected:
        cfg = replace(cfg, buffer_until_connected=True)

    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    username = normalize_username(cfg.username)
    if username is None:
        parser.error("a username is required (--username or [chat] username)")
    cfg = replace(cfg, username=username)

    if cfg.bind_addr is None:
        parser.error("a bind address is required (--bind-addr or [chat] bind_addr)")

    if cfg.pronouns and find_preset(cfg.pronouns) is None:
        parser.error(f"unknown pronouns {cfg.pronouns!r}")

    return cfg


def main(argv: list[str] | None = None) -> None:
    parser = _build_arg_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    cfg = build_config(args, parser)

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)
    log = logging.getLogger("peerchat")

    svc = ChatService(cfg)
    ui = ConsoleUI(svc)
    svc.ui = ui

    try:
        svc.start()
    except OSError as e:
        log.error("Could not bind %s: %s", cfg.bind_addr, e)
        raise SystemExit(1) from e

    ui.start()
    svc.run_forever()


if __name__ == "__main__":
    main()
