"""Authentication methods offered to the remote host, in order."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import paramiko

from .agent import SocketAgent


class AuthMethod(ABC):
    """One mechanism offered during authentication negotiation."""

    name: str = ""

    @abstractmethod
    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        """Try to authenticate ``username``.

        Raises paramiko.AuthenticationException (or a subclass) when the
        server rejects the attempt. Returning normally does not imply the
        transport is authenticated: the server may ask for further methods.
        """

    def close(self) -> None:
        """Release resources held by the method."""


@dataclass(frozen=True)
class PasswordAuth(AuthMethod):
    password: str = field(repr=False)
    name: str = field(default="password", init=False)

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        transport.auth_password(username, self.password)


@dataclass(frozen=True)
class NoneAuth(AuthMethod):
    name: str = field(default="none", init=False)

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        transport.auth_none(username)


@dataclass(frozen=True, eq=False)
class AgentAuth(AuthMethod):
    """Public key authentication where the agent signs the challenges.

    The identities are listed again on every attempt, so keys added to or
    removed from the agent after the builder was configured are honoured.
    """

    agent: SocketAgent
    name: str = field(default="publickey", init=False)

    def authenticate(self, transport: paramiko.Transport, username: str) -> None:
        try:
            keys = self.agent.refresh_keys()
        except paramiko.SSHException as exc:
            raise paramiko.AuthenticationException(f"ssh-agent unavailable: {exc}") from exc
        if not keys:
            raise paramiko.AuthenticationException("ssh-agent holds no identities")

        last_error: Optional[paramiko.AuthenticationException] = None
        for key in keys:
            try:
                remaining = transport.auth_publickey(username, key)
            except paramiko.AuthenticationException as exc:
                last_error = exc
                continue
            except paramiko.SSHException as exc:
                # A failed signature ends the transport; nothing else can be tried on it.
                if not transport.is_active():
                    raise
                last_error = paramiko.AuthenticationException(str(exc))
                continue
            if transport.is_authenticated() or remaining:
                return
        if last_error is not None:
            raise last_error
        raise paramiko.AuthenticationException("no agent identity was accepted")

    def close(self) -> None:
        self.agent.close()
