"""Dialing: TCP connect, SSH handshake, host key check and authentication."""

from __future__ import annotations

import socket
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import paramiko

from .auth import AuthMethod, NoneAuth
from .endpoint import split_host_port
from .errors import DialError, MissingHostKeyPolicyError
from .hostkeys import HostKeyPolicy
from .utils.logging import get_logger

logger = get_logger(__name__)

SocketFactory = Callable[..., socket.socket]
TransportFactory = Callable[[socket.socket], paramiko.Transport]


@dataclass(frozen=True)
class ClientConfig:
    """Everything needed to authenticate once the TCP stream is open."""

    username: str = ""
    auth_methods: Tuple[AuthMethod, ...] = ()
    host_key_policy: Optional[HostKeyPolicy] = None
    timeout: Optional[float] = None


class Client:
    """An open, authenticated connection. The caller must close it."""

    def __init__(self, transport: paramiko.Transport, username: str, address: str) -> None:
        self.transport = transport
        self.username = username
        self.address = address

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def is_active(self) -> bool:
        return self.transport.is_active()

    def open_session(self, timeout: Optional[float] = None) -> paramiko.Channel:
        return self.transport.open_session(timeout=timeout)

    def close(self) -> None:
        self.transport.close()

    def __repr__(self) -> str:
        state = "active" if self.is_active() else "closed"
        return f"Client({self.username}@{self.address}, {state})"


def dial(
    address: str,
    config: ClientConfig,
    *,
    socket_factory: SocketFactory = socket.create_connection,
    transport_factory: TransportFactory = paramiko.Transport,
) -> Client:
    """Connect to ``address`` and authenticate as ``config.username``.

    Every failure is raised as :class:`DialError` chained to its cause. No
    attempt is retried.
    """

    policy = config.host_key_policy
    if policy is None:
        cause = MissingHostKeyPolicyError("a host key policy must be configured before dialing")
        raise DialError(f"Failed to connect: {cause}") from cause

    try:
        host, port = split_host_port(address)
    except ValueError as exc:
        raise DialError(f"Failed to connect: {exc}") from exc

    logger.info("Dialing %s@%s", config.username, address)
    sock: Optional[socket.socket] = None
    transport: Optional[paramiko.Transport] = None
    try:
        sock = socket_factory((host, port), config.timeout)
        transport = transport_factory(sock)
        # Without a timeout paramiko keeps banner_timeout=15 and auth_timeout=30.
        if config.timeout is not None:
            transport.banner_timeout = config.timeout
            transport.auth_timeout = config.timeout
        transport.start_client(timeout=config.timeout)

        remote_ip = sock.getpeername()[0]
        policy.verify(host, port, remote_ip, transport.get_remote_server_key())
        _authenticate(transport, config)
    except Exception as exc:
        if transport is not None:
            transport.close()
        if sock is not None:
            sock.close()
        logger.debug("Dial to %s failed: %s", address, exc)
        raise DialError(f"Failed to connect: {exc}") from exc

    logger.info("Connected to %s as %s", address, config.username)
    return Client(transport, config.username, address)


def _authenticate(transport: paramiko.Transport, config: ClientConfig) -> None:
    methods = config.auth_methods or (NoneAuth(),)
    attempted: List[str] = []
    last_error: Optional[paramiko.AuthenticationException] = None
    for method in methods:
        attempted.append(method.name)
        try:
            method.authenticate(transport, config.username)
        except paramiko.AuthenticationException as exc:
            logger.debug("%s authentication rejected: %s", method.name, exc)
            last_error = exc
            continue
        if transport.is_authenticated():
            return

    message = f"unable to authenticate, attempted methods {attempted}"
    if last_error is not None:
        raise paramiko.AuthenticationException(f"{message}: {last_error}") from last_error
    raise paramiko.AuthenticationException(message)
