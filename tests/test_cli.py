"""Tests for CLI argument handling and bootstrap wiring."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from spacecoast_reader.cli import (
    _build_child_args,
    _build_parser,
    _configure_color_mode,
    _configure_logging,
    main,
)
from spacecoast_reader.models import UserConfig


def _run(argv, *, config=None, tty=True, **overrides):
    config = config or UserConfig()
    app = MagicMock()
    app_factory = MagicMock(return_value=app)
    kwargs = {
        "load_config_fn": lambda: config,
        "save_config_fn": MagicMock(return_value=True),
        "configure_logging_fn": MagicMock(),
        "configure_color_mode_fn": MagicMock(),
        "validate_interactive_tty_fn": lambda: tty,
        "acquire_controlling_tty_fn": MagicMock(),
        "app_factory": app_factory,
        "serve_fn": MagicMock(return_value=0),
    }
    kwargs.update(overrides)
    code = main(argv, **kwargs)
    return code, kwargs, app_factory, app


def test_local_mode_runs_app_with_config() -> None:
    config = UserConfig()
    code, kwargs, factory, app = _run([], config=config)

    assert code == 0
    factory.assert_called_once_with(config, open_latest=False)
    app.run.assert_called_once_with()
    kwargs["configure_logging_fn"].assert_called_once_with(False, None)
    kwargs["configure_color_mode_fn"].assert_called_once_with("auto")


def test_latest_flag_opens_newest_post() -> None:
    _, _, factory, _ = _run(["local", "--latest"])
    assert factory.call_args.kwargs == {"open_latest": True}


def test_local_mode_requires_tty(capsys) -> None:
    code, _, factory, _ = _run([], tty=False)

    assert code == 2
    factory.assert_not_called()
    assert "requires an interactive TTY" in capsys.readouterr().err


def test_session_process_claims_its_terminal() -> None:
    code, kwargs, factory, _ = _run(["local", "--session-tty"])

    assert code == 0
    kwargs["acquire_controlling_tty_fn"].assert_called_once_with()
    factory.assert_called_once()


def test_plain_local_run_leaves_terminal_alone() -> None:
    _, kwargs, _, _ = _run([])
    kwargs["acquire_controlling_tty_fn"].assert_not_called()


def test_no_color_wins_over_color() -> None:
    _, kwargs, _, _ = _run(["--color", "always", "--no-color"])
    kwargs["configure_color_mode_fn"].assert_called_once_with("never")


def test_debug_and_log_file_reach_logging(tmp_path) -> None:
    log_file = tmp_path / "reader.log"
    _, kwargs, _, _ = _run(["--debug", "--log-file", str(log_file)])
    kwargs["configure_logging_fn"].assert_called_once_with(True, log_file)


def test_source_flags_override_config() -> None:
    config = UserConfig()
    _run(["--owner", "me", "--repo", "blog", "--path", "posts"], config=config)
    assert (config.owner, config.repo, config.content_path) == ("me", "blog", "posts")


def test_ssh_mode_hands_off_to_server(tmp_path) -> None:
    config = UserConfig()
    key = tmp_path / "host_key"
    code, kwargs, factory, _ = _run(
        ["ssh", "--port", "2222", "--host", "127.0.0.1", "--host-key", str(key), "--latest"],
        config=config,
        tty=False,
    )

    assert code == 0
    factory.assert_not_called()
    serve = kwargs["serve_fn"]
    serve.assert_called_once_with(config, host_key_path=key, child_args=["--latest"])
    assert (config.ssh_host, config.ssh_port) == ("127.0.0.1", 2222)


def test_ssh_mode_propagates_server_exit_code() -> None:
    code, _, _, _ = _run(["ssh"], serve_fn=MagicMock(return_value=1))
    assert code == 1


@pytest.mark.parametrize("port", ["0", "70000", "ssh"])
def test_invalid_port_is_rejected(port) -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["ssh", "--port", port])


def test_unknown_mode_is_rejected() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["web"])


def test_init_config_writes_and_exits(capsys) -> None:
    save = MagicMock(return_value=True)
    config = UserConfig()
    code, _, factory, _ = _run(["--init-config", "--owner", "me"], config=config, save_config_fn=save)

    assert code == 0
    save.assert_called_once_with(config)
    assert config.owner == "me"
    factory.assert_not_called()
    assert "Wrote configuration" in capsys.readouterr().out


def test_init_config_failure(capsys) -> None:
    code, _, _, _ = _run(["--init-config"], save_config_fn=MagicMock(return_value=False))
    assert code == 1
    assert "Could not write the config file." in capsys.readouterr().err


def test_child_args_forward_session_flags() -> None:
    args = _build_parser().parse_args(
        ["ssh", "--latest", "--debug", "--color", "never", "--owner", "me", "--path", "p"]
    )
    assert _build_child_args(args) == [
        "--latest",
        "--debug",
        "--color",
        "never",
        "--owner",
        "me",
        "--path",
        "p",
    ]


def test_child_args_empty_by_default() -> None:
    assert _build_child_args(_build_parser().parse_args(["ssh"])) == []


class TestConfigureColorMode:
    def test_never_sets_no_color(self, monkeypatch) -> None:
        monkeypatch.setenv("FORCE_COLOR", "1")
        monkeypatch.delenv("NO_COLOR", raising=False)
        _configure_color_mode("never")
        assert os.environ["NO_COLOR"] == "1"
        assert "FORCE_COLOR" not in os.environ

    def test_always_sets_force_color(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        _configure_color_mode("always")
        assert os.environ["FORCE_COLOR"] == "1"
        assert "NO_COLOR" not in os.environ


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
                root.removeHandler(handler)
        root.setLevel(level)
        logging.disable(logging.NOTSET)

    def test_writes_info_to_log_file(self, tmp_path) -> None:
        log_file = tmp_path / "logs" / "debug.log"
        _configure_logging(False, log_file)

        logging.getLogger("spacecoast_reader.test").info("fetch failed for a.mdx")
        logging.getLogger("spacecoast_reader.test").debug("hidden detail")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "fetch failed for a.mdx" in text
        assert "hidden detail" not in text

    def test_debug_lowers_level(self, tmp_path) -> None:
        _configure_logging(True, tmp_path / "debug.log")
        assert logging.getLogger().level == logging.DEBUG

    def test_default_path_is_in_config_dir(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setattr(
            "spacecoast_reader.cli.get_default_log_path", lambda: tmp_path / "debug.log"
        )
        _configure_logging(False)
        assert Path(tmp_path / "debug.log").exists()

    def test_unwritable_location_disables_logging(self, tmp_path, capsys) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        _configure_logging(False, blocker / "debug.log")
        assert "diagnostic log disabled" in capsys.readouterr().err
