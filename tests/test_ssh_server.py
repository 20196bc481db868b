"""Tests for the SSH front end: host keys, pty sessions, and the server loop."""

from __future__ import annotations

import fcntl
import os
import socket
import struct
import subprocess
import sys
import termios
import threading
from unittest.mock import MagicMock

import paramiko
import pytest

from spacecoast_reader.models import UserConfig
from spacecoast_reader.ssh_server import (
    HostKeyError,
    ReaderSession,
    ReaderSSHServer,
    SessionInterface,
    build_child_command,
    load_host_key,
    serve,
    set_window_size,
)


@pytest.fixture(scope="module")
def host_key_file(tmp_path_factory):
    path = tmp_path_factory.mktemp("keys") / "ssh_host_key"
    paramiko.RSAKey.generate(2048).write_private_key_file(str(path))
    return path


class _SocketChannel:
    """Minimal stand-in for a paramiko Channel backed by a socket pair."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock
        self.closed = False

    def fileno(self) -> int:
        return self._sock.fileno()

    def recv(self, nbytes: int) -> bytes:
        return self._sock.recv(nbytes)

    def sendall(self, data: bytes) -> None:
        self._sock.sendall(data)


def _drain(sock: socket.socket) -> bytes:
    sock.settimeout(2)
    chunks = []
    try:
        while data := sock.recv(4096):
            chunks.append(data)
    except TimeoutError:
        pass
    return b"".join(chunks)


# ── Host keys and commands ────────────────────────────────────────────────


def test_load_host_key_missing_file(tmp_path) -> None:
    with pytest.raises(HostKeyError, match="no host key found"):
        load_host_key(tmp_path / "absent")


def test_load_host_key_garbage(tmp_path) -> None:
    path = tmp_path / "key"
    path.write_text("not a key", encoding="utf-8")
    with pytest.raises(HostKeyError, match="cannot load host key"):
        load_host_key(path)


def test_load_host_key_valid(host_key_file) -> None:
    assert isinstance(load_host_key(host_key_file), paramiko.RSAKey)


def test_child_command_runs_local_mode() -> None:
    assert build_child_command(["--latest"]) == [
        sys.executable,
        "-m",
        "spacecoast_reader",
        "local",
        "--session-tty",
        "--latest",
    ]


def test_set_window_size_updates_pty() -> None:
    master, slave = os.openpty()
    try:
        set_window_size(master, 132, 43)
        rows, cols, _, _ = struct.unpack(
            "HHHH", fcntl.ioctl(slave, termios.TIOCGWINSZ, b"\0" * 8)
        )
        assert (cols, rows) == (132, 43)
    finally:
        os.close(master)
        os.close(slave)


# ── Session policy ────────────────────────────────────────────────────────


class TestSessionInterface:
    def test_no_authentication_required(self) -> None:
        interface = SessionInterface()
        assert interface.get_allowed_auths("anyone") == "none"
        assert interface.check_auth_none("anyone") == paramiko.AUTH_SUCCESSFUL

    def test_only_session_channels(self) -> None:
        interface = SessionInterface()
        assert interface.check_channel_request("session", 1) == paramiko.OPEN_SUCCEEDED
        assert (
            interface.check_channel_request("direct-tcpip", 2)
            == paramiko.OPEN_FAILED_ADMINISTRATIVELY_PROHIBITED
        )

    def test_pty_request_records_terminal(self) -> None:
        interface = SessionInterface()
        assert interface.check_channel_pty_request(None, b"screen", 100, 30, 0, 0, b"")
        assert (interface.term, interface.width, interface.height) == ("screen", 100, 30)

    def test_shell_request_sets_event(self) -> None:
        interface = SessionInterface()
        assert interface.check_channel_shell_request(None)
        assert interface.shell_requested.is_set()

    def test_window_change_calls_resize_hook(self) -> None:
        interface = SessionInterface()
        interface.on_resize = MagicMock()
        assert interface.check_channel_window_change_request(None, 90, 20, 0, 0)
        interface.on_resize.assert_called_once_with(90, 20)
        assert (interface.width, interface.height) == (90, 20)


# ── pty bridge ────────────────────────────────────────────────────────────


def test_reader_session_bridges_output_and_exit_status() -> None:
    ours, theirs = socket.socketpair()
    try:
        interface = SessionInterface()
        interface.width, interface.height = 100, 30
        command = [
            sys.executable,
            "-c",
            "import os, sys; c, r = os.get_terminal_size(); print(f'size={c}x{r}'); sys.exit(3)",
        ]
        status = ReaderSession(_SocketChannel(ours), interface, command).run()
        output = _drain(theirs)
    finally:
        ours.close()
        theirs.close()

    assert status == 3
    assert b"size=100x30" in output
    assert interface.on_resize is None


def test_session_process_leads_its_own_session(monkeypatch) -> None:
    popen_kwargs: list[dict] = []
    real_popen = subprocess.Popen

    def recording_popen(*args, **kwargs):
        popen_kwargs.append(kwargs)
        return real_popen(*args, **kwargs)

    monkeypatch.setattr(subprocess, "Popen", recording_popen)
    ours, theirs = socket.socketpair()
    try:
        command = [sys.executable, "-c", "import os; print(f'leader={os.getsid(0) == os.getpid()}')"]
        status = ReaderSession(_SocketChannel(ours), SessionInterface(), command).run()
        output = _drain(theirs)
    finally:
        ours.close()
        theirs.close()

    assert status == 0
    assert b"leader=True" in output
    assert popen_kwargs[0]["start_new_session"] is True
    assert "preexec_fn" not in popen_kwargs[0]


# ── Server loop ───────────────────────────────────────────────────────────


def test_serve_missing_host_key_is_fatal(tmp_path, capsys, caplog) -> None:
    factory = MagicMock()
    code = serve(UserConfig(), host_key_path=tmp_path / "absent", server_factory=factory)

    assert code == 1
    factory.assert_not_called()
    assert "Could not start the SSH server." in capsys.readouterr().err
    assert any(record.levelname == "CRITICAL" for record in caplog.records)


def test_serve_bind_failure_is_fatal(host_key_file, capsys) -> None:
    factory = MagicMock(side_effect=OSError("address in use"))
    code = serve(UserConfig(), host_key_path=host_key_file, server_factory=factory)

    assert code == 1
    assert "address in use" in capsys.readouterr().err


def test_serve_runs_until_interrupted(host_key_file) -> None:
    server = MagicMock()
    server.__enter__.return_value = server
    server.serve_forever.side_effect = KeyboardInterrupt
    factory = MagicMock(return_value=server)
    config = UserConfig(ssh_host="127.0.0.1", ssh_port=2222)

    code = serve(
        config, host_key_path=host_key_file, child_args=["--latest"], server_factory=factory
    )

    assert code == 0
    address, key, command = factory.call_args.args
    assert address == ("127.0.0.1", 2222)
    assert isinstance(key, paramiko.PKey)
    assert command[-1] == "--latest"


def test_ssh_client_gets_its_own_session(host_key_file) -> None:
    command = [sys.executable, "-c", "print('hello from the reader')"]
    server = ReaderSSHServer(("127.0.0.1", 0), load_host_key(host_key_file), command)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    transport = None
    try:
        sock = socket.create_connection(server.server_address, timeout=10)
        transport = paramiko.Transport(sock)
        transport.start_client(timeout=10)
        transport.auth_none("guest")
        channel = transport.open_session(timeout=10)
        channel.settimeout(10)
        channel.get_pty(term="xterm", width=80, height=24)
        channel.invoke_shell()

        output = b""
        while data := channel.recv(4096):
            output += data
        status = channel.recv_exit_status()
    finally:
        if transport is not None:
            transport.close()
        server.shutdown()
        server.server_close()

    assert b"hello from the reader" in output
    assert status == 0
