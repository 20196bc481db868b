"""SSH front end for the reader.

Every accepted session gets its own pseudo-terminal and its own reader
process attached to it, so concurrently connected clients never share a
state machine. Clients are not authenticated; the server only proves its
identity with a pre-provisioned host key.
"""

from __future__ import annotations

import errno
import fcntl
import logging
import os
import selectors
import socketserver
import struct
import subprocess
import sys
import termios
import threading
from collections.abc import Callable, Sequence
from pathlib import Path

import paramiko

from spacecoast_reader.action_messages import build_actionable_error
from spacecoast_reader.models import UserConfig
from spacecoast_reader.state import DEFAULT_GEOMETRY

logger = logging.getLogger(__name__)

SESSION_START_TIMEOUT = 30  # Seconds a client gets to open a shell channel
CHILD_EXIT_TIMEOUT = 5
POLL_INTERVAL = 0.5
READ_CHUNK = 4096
DEFAULT_TERM = "xterm-256color"


class HostKeyError(Exception):
    """The SSH host key is missing or unreadable."""


def load_host_key(path: Path) -> paramiko.PKey:
    """Load the server's private host key from *path*."""
    if not path.is_file():
        raise HostKeyError(f"no host key found at {path}")
    try:
        return paramiko.PKey.from_path(path)
    except (paramiko.SSHException, paramiko.UnknownKeyType, OSError, ValueError, TypeError) as e:
        raise HostKeyError(f"cannot load host key {path}: {e}") from e


def build_child_command(child_args: Sequence[str] = ()) -> list[str]:
    """Command line for one session's reader process (always local mode).

    ``--session-tty`` makes the child claim the pty as its controlling
    terminal, so window changes reach it as SIGWINCH.
    """
    return [sys.executable, "-m", "spacecoast_reader", "local", "--session-tty", *child_args]


def set_window_size(fd: int, width: int, height: int) -> None:
    """Resize the pseudo-terminal behind *fd*; the kernel signals the child."""
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", height, width, 0, 0))


class SessionInterface(paramiko.ServerInterface):
    """Per-connection SSH policy: no auth, one interactive shell with a pty."""

    def __init__(self) -> None:
        self.shell_requested = threading.Event()
        self.term = DEFAULT_TERM
        self.width, self.height = DEFAULT_GEOMETRY
        self.on_resize: Callable[[int, int], None] | None = None

    def get_allowed_auths(self, username: str) -> str:
        return "none"

    def check_auth_none(self, username: str) -> int:
        return paramiko.AUTH_SUCCESSFUL

    def check_channel_request(self, kind: str, chanid: int) -> int:
        if kind == "session":
            return paramiko.OPEN_SUCCEEDED
        return paramiko.OPEN_FAILED_ADMINISTRATIVELY_PROHIBITED

    def check_channel_pty_request(
        self, channel, term, width, height, pixelwidth, pixelheight, modes
    ) -> bool:
        if isinstance(term, bytes):
            term = term.decode("ascii", errors="replace")
        self.term = term or DEFAULT_TERM
        if width > 0 and height > 0:
            self.width, self.height = width, height
        return True

    def check_channel_shell_request(self, channel) -> bool:
        self.shell_requested.set()
        return True

    def check_channel_window_change_request(
        self, channel, width, height, pixelwidth, pixelheight
    ) -> bool:
        self.width, self.height = width, height
        if self.on_resize is not None:
            self.on_resize(width, height)
        return True


class ReaderSession:
    """Bridges one SSH channel to a reader process on a fresh pseudo-terminal."""

    def __init__(
        self,
        channel: paramiko.Channel,
        interface: SessionInterface,
        command: Sequence[str],
    ) -> None:
        self._channel = channel
        self._interface = interface
        self._command = list(command)

    def run(self) -> int:
        """Run the reader until it exits or the client disconnects; return its status."""
        master_fd, slave_fd = os.openpty()
        process: subprocess.Popen[bytes] | None = None
        try:
            set_window_size(master_fd, self._interface.width, self._interface.height)
            env = {**os.environ, "TERM": self._interface.term}
            process = subprocess.Popen(
                self._command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                env=env,
                start_new_session=True,
            )
            os.close(slave_fd)
            slave_fd = -1
            self._interface.on_resize = lambda w, h: set_window_size(master_fd, w, h)
            self._pump(master_fd, process)
        finally:
            self._interface.on_resize = None
            if slave_fd >= 0:
                os.close(slave_fd)
            os.close(master_fd)
        return _reap(process)

    def _pump(self, master_fd: int, process: subprocess.Popen[bytes]) -> None:
        channel = self._channel
        with selectors.DefaultSelector() as selector:
            selector.register(master_fd, selectors.EVENT_READ, "pty")
            selector.register(channel, selectors.EVENT_READ, "client")
            while True:
                for key, _ in selector.select(timeout=POLL_INTERVAL):
                    if key.data == "pty":
                        data = _read_pty(master_fd)
                        if not data:
                            return
                        channel.sendall(data)
                    else:
                        data = channel.recv(READ_CHUNK)
                        if not data:
                            logger.debug("Client closed the channel")
                            return
                        os.write(master_fd, data)
                if channel.closed:
                    return
                if process.poll() is not None:
                    # Flush whatever the reader wrote on its way out.
                    while data := _read_pty_nonblocking(master_fd, selector):
                        channel.sendall(data)
                    return


def _read_pty(fd: int) -> bytes:
    try:
        return os.read(fd, READ_CHUNK)
    except OSError as e:
        # Linux reports EIO once the last slave descriptor is closed
        if e.errno == errno.EIO:
            return b""
        raise


def _read_pty_nonblocking(fd: int, selector: selectors.BaseSelector) -> bytes:
    for key, _ in selector.select(timeout=0):
        if key.data == "pty":
            return _read_pty(fd)
    return b""


def _reap(process: subprocess.Popen[bytes] | None) -> int:
    if process is None:
        return 1
    if process.poll() is None:
        process.terminate()
        try:
            process.wait(timeout=CHILD_EXIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("Reader process %d ignored SIGTERM, killing it", process.pid)
            process.kill()
            process.wait()
    return process.returncode


class _SessionHandler(socketserver.BaseRequestHandler):
    server: ReaderSSHServer

    def handle(self) -> None:
        peer = f"{self.client_address[0]}:{self.client_address[1]}"
        transport = paramiko.Transport(self.request)
        transport.add_server_key(self.server.host_key)
        interface = SessionInterface()
        try:
            transport.start_server(server=interface)
        except (paramiko.SSHException, EOFError) as e:
            logger.warning("SSH negotiation with %s failed: %s", peer, e)
            transport.close()
            return
        try:
            channel = transport.accept(SESSION_START_TIMEOUT)
            if channel is None:
                logger.warning("%s never opened a session channel", peer)
                return
            if not interface.shell_requested.wait(SESSION_START_TIMEOUT):
                logger.warning("%s never requested a shell", peer)
                channel.close()
                return
            logger.info(
                "Session opened for %s (term=%s, %dx%d)",
                peer,
                interface.term,
                interface.width,
                interface.height,
            )
            status = ReaderSession(channel, interface, self.server.command).run()
            logger.info("Session for %s ended with status %d", peer, status)
            channel.send_exit_status(status)
            channel.close()
        finally:
            transport.close()


class ReaderSSHServer(socketserver.ThreadingTCPServer):
    """Threaded TCP listener that runs one SSH transport per connection."""

    allow_reuse_address = True
    daemon_threads = True

    def __init__(
        self,
        address: tuple[str, int],
        host_key: paramiko.PKey,
        command: Sequence[str],
    ) -> None:
        self.host_key = host_key
        self.command = list(command)
        super().__init__(address, _SessionHandler)


def serve(
    config: UserConfig,
    *,
    host_key_path: Path,
    child_args: Sequence[str] = (),
    server_factory: Callable[..., ReaderSSHServer] = ReaderSSHServer,
) -> int:
    """Serve the reader over SSH until interrupted. Returns exit code."""
    try:
        host_key = load_host_key(host_key_path)
    except HostKeyError as e:
        logger.critical("Cannot start SSH server: %s", e)
        print(
            build_actionable_error(
                "start the SSH server",
                why=str(e),
                next_step=f"create one with: ssh-keygen -t ed25519 -N '' -f {host_key_path}",
            ),
            file=sys.stderr,
        )
        return 1

    address = (config.ssh_host, config.ssh_port)
    try:
        server = server_factory(address, host_key, build_child_command(child_args))
    except OSError as e:
        logger.critical("Cannot listen on %s:%d: %s", address[0], address[1], e)
        print(
            build_actionable_error(
                f"listen on {address[0]}:{address[1]}",
                why=str(e),
                next_step="pick a free port with --port or run with enough privileges",
            ),
            file=sys.stderr,
        )
        return 1

    logger.info("Listening for SSH sessions on %s:%d", address[0], address[1])
    print(f"Serving spacecoast-reader on {address[0]}:{address[1]} (Ctrl+C to stop)")
    with server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("SSH server interrupted, shutting down")
    return 0


__all__ = [
    "DEFAULT_TERM",
    "HostKeyError",
    "ReaderSSHServer",
    "ReaderSession",
    "SessionInterface",
    "build_child_command",
    "load_host_key",
    "serve",
    "set_window_size",
]
