"""ssh-agent discovery over the ``SSH_AUTH_SOCK`` UNIX socket."""

from __future__ import annotations

import os
import socket
import threading
from typing import Tuple

import paramiko
from paramiko.agent import AgentKey, AgentSSH

from .errors import AgentUnavailableError
from .utils.logging import get_logger

logger = get_logger(__name__)

AUTH_SOCK_ENV = "SSH_AUTH_SOCK"


class SocketAgent(AgentSSH):
    """Agent client bound to an already opened socket.

    The identities are requested when the agent is opened and again on every
    :meth:`refresh_keys`. Requests travel over the same socket until
    :meth:`close` is called. One request and its reply hold the lock, so forks
    of a builder may dial concurrently through a shared agent.
    """

    def __init__(self, conn: socket.socket, socket_path: str = "") -> None:
        AgentSSH.__init__(self)
        self.socket_path = socket_path
        self._lock = threading.Lock()
        self._connect(conn)

    @property
    def closed(self) -> bool:
        return self._conn is None

    def refresh_keys(self) -> Tuple[AgentKey, ...]:
        """Ask the agent for its identities again and return them."""

        if self._conn is None:
            raise paramiko.SSHException("ssh-agent connection is closed")
        self._connect(self._conn)
        logger.debug("ssh-agent at %s holds %d identities", self.socket_path, len(self._keys))
        return self._keys

    def _send_message(self, msg):
        with self._lock:
            if self._conn is None:
                raise paramiko.SSHException("ssh-agent connection is closed")
            return AgentSSH._send_message(self, msg)

    def close(self) -> None:
        with self._lock:
            self._close()

    def __repr__(self) -> str:
        return f"SocketAgent(socket_path={self.socket_path!r}, keys={len(self.get_keys())})"


def open_agent(socket_path: str) -> SocketAgent:
    """Connect to the agent listening on ``socket_path``."""

    conn = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        conn.connect(socket_path)
        agent = SocketAgent(conn, socket_path)
    except (OSError, paramiko.SSHException) as exc:
        conn.close()
        raise AgentUnavailableError(f"Failed to open {AUTH_SOCK_ENV}: {exc}") from exc
    logger.info("Connected to ssh-agent at %s (%d identities)", socket_path, len(agent.get_keys()))
    return agent


def open_default_agent() -> SocketAgent:
    """Locate the agent the way ssh(1) does, through ``$SSH_AUTH_SOCK``."""

    socket_path = os.getenv(AUTH_SOCK_ENV, "")
    if not socket_path:
        raise AgentUnavailableError(
            f"{AUTH_SOCK_ENV} was not set. Please start an ssh-agent and add your key to it."
        )
    return open_agent(socket_path)
