import logging

import pytest

from peerchat.cli import _build_arg_parser, build_config
from peerchat.config import ChatRuntimeConfig, apply_config_data
from peerchat.logging_config import _parse_level, configure_logging
from peerchat.paths import default_config_path, default_peerchat_dir
from peerchat.util import fmt_addr, normalize_username, parse_address


def test_parse_address() -> None:
    assert parse_address("127.0.0.1:4000") == ("127.0.0.1", 4000)
    assert parse_address(" localhost:0 ") == ("localhost", 0)
    assert parse_address("[::1]:5000") == ("::1", 5000)


@pytest.mark.parametrize(
    "text", ["", "4000", "host:", ":4000", "host:port", "host:70000", "::1:5000", "[::1]5000"]
)
def test_parse_address_rejects(text) -> None:
    with pytest.raises(ValueError):
        parse_address(text)


def test_fmt_addr() -> None:
    assert fmt_addr(("127.0.0.1", 4000)) == "127.0.0.1:4000"
    assert fmt_addr(("::1", 4000, 0, 0)) == "[::1]:4000"
    assert fmt_addr(None) == "-"


def test_normalize_username() -> None:
    assert normalize_username("  alice ") == "alice"
    assert normalize_username("") is None
    assert normalize_username("a\nb") is None
    assert normalize_username("x" * 33) is None
    assert normalize_username(42) is None


def test_apply_config_data_tables() -> None:
    data = {
        "chat": {
            "username": "alice",
            "bind_addr": "0.0.0.0:4000",
            "connect_addr": "",
            "pronouns": "",
            "buffer_until_connected": True,
            "max_datagrams_per_tick": 0,
            "not_a_field": 1,
        },
        "logging": {"level": "DEBUG", "file": "", "console": False},
        "config_path": "/elsewhere.toml",
    }
    cfg = apply_config_data(ChatRuntimeConfig(config_path="/here.toml"), data)

    assert cfg.username == "alice"
    assert cfg.bind_addr == ("0.0.0.0", 4000)
    assert cfg.connect_addr is None
    assert cfg.pronouns is None
    assert cfg.buffer_until_connected is True
    assert cfg.max_datagrams_per_tick == 1
    assert cfg.log_level == "DEBUG"
    assert cfg.log_file is None
    assert cfg.log_console is False
    assert cfg.config_path == "/here.toml"


def test_apply_config_data_clamps_negative_poll_interval() -> None:
    cfg = apply_config_data(ChatRuntimeConfig(), {"chat": {"poll_interval_s": -0.5}})
    assert cfg.poll_interval_s == 0.0

    cfg = apply_config_data(ChatRuntimeConfig(), {"chat": {"poll_interval_s": "0.25"}})
    assert cfg.poll_interval_s == 0.25


def test_cli_clamps_negative_poll_interval_from_file(tmp_path) -> None:
    path = tmp_path / "peerchat.toml"
    path.write_text("[chat]\npoll_interval_s = -1\n", encoding="utf-8")
    cfg = _config(["--config", str(path), "-u", "alice", "-b", "127.0.0.1:0"])
    assert cfg.poll_interval_s == 0.0


def test_default_paths_follow_peerchat_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PEERCHAT_HOME", str(tmp_path / "home"))
    assert default_peerchat_dir() == tmp_path / "home"
    assert default_config_path() == tmp_path / "home" / "peerchat.toml"


def test_default_paths_fall_back_to_user_home(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("PEERCHAT_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_peerchat_dir() == tmp_path / ".peerchat"
    assert default_config_path() == tmp_path / ".peerchat" / "peerchat.toml"


def test_cli_default_config_comes_from_peerchat_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("PEERCHAT_HOME", str(tmp_path))
    (tmp_path / "peerchat.toml").write_text(
        '[chat]\nusername = "homebody"\nbind_addr = "127.0.0.1:4000"\n', encoding="utf-8"
    )
    cfg = _config([])
    assert cfg.username == "homebody"
    assert cfg.config_path == str(tmp_path / "peerchat.toml")


def test_apply_config_data_rejects_bad_address() -> None:
    with pytest.raises(ValueError):
        apply_config_data(ChatRuntimeConfig(), {"chat": {"bind_addr": "nope"}})


def _config(argv):
    parser = _build_arg_parser()
    return build_config(parser.parse_args(argv), parser)


def test_cli_arguments(tmp_path) -> None:
    cfg = _config(
        [
            "--config", str(tmp_path / "missing.toml"),
            "-u", "alice",
            "-b", "127.0.0.1:4000",
            "-c", "127.0.0.1:4001",
            "--pronouns", "fae/faer",
            "--buffer-until-connected",
        ]
    )
    assert cfg.username == "alice"
    assert cfg.bind_addr == ("127.0.0.1", 4000)
    assert cfg.connect_addr == ("127.0.0.1", 4001)
    assert cfg.pronouns == "fae/faer"
    assert cfg.buffer_until_connected is True


def test_cli_overrides_config_file(tmp_path) -> None:
    path = tmp_path / "peerchat.toml"
    path.write_text(
        '[chat]\nusername = "fromfile"\nbind_addr = "127.0.0.1:4000"\nabout = "hi"\n'
        '[logging]\nlevel = "INFO"\n',
        encoding="utf-8",
    )
    cfg = _config(["--config", str(path), "-u", "alice"])
    assert cfg.username == "alice"
    assert cfg.bind_addr == ("127.0.0.1", 4000)
    assert cfg.about == "hi"
    assert cfg.log_level == "INFO"


@pytest.mark.parametrize(
    "argv",
    [
        ["-b", "127.0.0.1:4000"],
        ["-u", "alice"],
        ["-u", "alice", "-b", "nonsense"],
        ["-u", "alice", "-b", "127.0.0.1:4000", "--pronouns", "xe/xem"],
    ],
)
def test_cli_errors(tmp_path, argv) -> None:
    with pytest.raises(SystemExit):
        _config(["--config", str(tmp_path / "missing.toml"), *argv])


def test_cli_rejects_broken_config_file(tmp_path) -> None:
    path = tmp_path / "peerchat.toml"
    path.write_text("[chat\n", encoding="utf-8")
    with pytest.raises(SystemExit):
        _config(["--config", str(path), "-u", "alice", "-b", "127.0.0.1:0"])


def test_parse_level() -> None:
    assert _parse_level("warn", logging.INFO) == logging.WARNING
    assert _parse_level("15", logging.INFO) == 15
    assert _parse_level("", logging.INFO) == logging.INFO
    assert _parse_level("loud", logging.INFO) == logging.INFO


def test_configure_logging_writes_file(tmp_path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "logs" / "peerchat.log"
    try:
        configure_logging(
            ChatRuntimeConfig(log_console=False, log_level="INFO"),
            override_file=str(log_file),
        )
        logging.getLogger("peerchat.test").info("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")
        assert root.level == logging.INFO
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)


def test_configure_logging_defaults_to_warning_on_stderr(tmp_path) -> None:
    import sys

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging(
            ChatRuntimeConfig(log_level="", log_file=str(tmp_path / "unused.log")),
            override_file="",
        )
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)
        assert root.handlers[0].stream is sys.stderr
        assert not (tmp_path / "unused.log").exists()
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
