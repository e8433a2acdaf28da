"""Exceptions raised while building and dialing SSH clients."""

from __future__ import annotations

from typing import Sequence


class SSHBuilderError(Exception):
    """Base class for every error raised by ssh_builder."""

    pass


class ConfigurationError(SSHBuilderError):
    """A builder step failed; recorded and surfaced by ``Builder.dial``."""

    pass


class AgentUnavailableError(ConfigurationError):
    """The ssh-agent could not be located or opened."""

    pass


class KnownHostsError(ConfigurationError):
    """A known_hosts file could not be read or parsed."""

    pass


class MissingHostKeyPolicyError(SSHBuilderError):
    """Dial attempted without a host key policy."""

    pass


class HostKeyError(SSHBuilderError):
    """The remote host key was rejected by the active policy."""

    def __init__(self, message: str, hostname: str = "", key=None) -> None:
        super().__init__(message)
        self.hostname = hostname
        self.key = key


class UnknownHostKeyError(HostKeyError):
    pass


class HostKeyMismatchError(HostKeyError):
    def __init__(self, message: str, hostname: str = "", key=None, expected: Sequence = ()) -> None:
        super().__init__(message, hostname, key)
        self.expected = tuple(expected)


class HostKeyRevokedError(HostKeyError):
    pass


class DialError(SSHBuilderError):
    """Raised when the TCP connection, handshake or authentication fails."""

    pass
