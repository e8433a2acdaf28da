"""Fluent builder for SSH client connections.

Every ``with_*`` call returns a new :class:`Builder`; the receiver is never
modified. A builder can therefore serve as a template that is forked into
any number of configurations, or passed to any number of dials::

    base = Builder.create().with_username("deploy").with_known_hosts_files("~/.ssh/known_hosts")
    web = base.with_host("web1").with_port(22).with_default_agent()
    with web.dial() as client:
        ...

Steps that can fail (agent discovery, known_hosts parsing) do not raise.
Their errors are recorded on the returned builder, inspected through
:meth:`Builder.get_errors` and raised by :meth:`Builder.dial`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, List, Optional, Tuple

from .agent import open_agent, open_default_agent
from .auth import AgentAuth, AuthMethod, PasswordAuth
from .client import Client, ClientConfig, dial
from .endpoint import AddressEndpoint, Endpoint, HostPortEndpoint
from .errors import ConfigurationError
from .hostkeys import (
    CallbackHostKeyPolicy,
    HostKeyCallback,
    HostKeyPolicy,
    InsecureIgnoreHostKeyPolicy,
    KnownHostsPolicy,
)
from .utils.logging import get_logger

if TYPE_CHECKING:
    from .config import BuilderConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class Builder:
    username: str = ""
    endpoint: Endpoint = field(default_factory=HostPortEndpoint)
    host_key_policy: Optional[HostKeyPolicy] = None
    auth_methods: Tuple[AuthMethod, ...] = ()
    errors: Tuple[Exception, ...] = ()
    ignoring_errors: bool = False
    timeout: Optional[float] = None

    @classmethod
    def create(cls) -> "Builder":
        return cls()

    @classmethod
    def from_config(cls, config: "BuilderConfig") -> "Builder":
        """Seed a builder from a loaded :class:`~ssh_builder.config.BuilderConfig`."""

        builder = cls.create()
        if config.username:
            builder = builder.with_username(config.username)
        if config.host_port:
            builder = builder.with_host_port(config.host_port)
        else:
            if config.host:
                builder = builder.with_host(config.host)
            builder = builder.with_port(config.port)
        if config.use_agent:
            builder = builder.with_default_agent()
        if config.password:
            builder = builder.with_password(config.password)
        if config.known_hosts_files:
            builder = builder.with_known_hosts_files(*config.known_hosts_files)
        if config.insecure_ignore_host_key:
            builder = builder.with_insecure_ignore_host_key()
        if config.timeout is not None:
            builder = builder.with_timeout(config.timeout)
        return builder

    # -------------------------
    # authentication
    # -------------------------
    def with_default_agent(self) -> "Builder":
        """Offer every identity held by the agent at ``$SSH_AUTH_SOCK``.

        The agent socket is opened now, not at dial time.
        """

        try:
            agent = open_default_agent()
        except ConfigurationError as exc:
            return self._add_error(exc)
        return self._add_auth(AgentAuth(agent))

    def with_agent(self, socket_path: str) -> "Builder":
        try:
            agent = open_agent(socket_path)
        except ConfigurationError as exc:
            return self._add_error(exc)
        return self._add_auth(AgentAuth(agent))

    def with_password(self, password: str) -> "Builder":
        return self._add_auth(PasswordAuth(password))

    def with_username(self, username: str) -> "Builder":
        return replace(self, username=username)

    # -------------------------
    # endpoint
    # -------------------------
    def with_host(self, host: str) -> "Builder":
        """Set the hostname. Clears any address set by :meth:`with_host_port`."""

        port = self.endpoint.port if isinstance(self.endpoint, HostPortEndpoint) else 0
        return replace(self, endpoint=HostPortEndpoint(host, port))

    def with_port(self, port: int) -> "Builder":
        """Set the port. Clears any address set by :meth:`with_host_port`."""

        host = self.endpoint.host if isinstance(self.endpoint, HostPortEndpoint) else ""
        return replace(self, endpoint=HostPortEndpoint(host, port))

    def with_host_port(self, address: str) -> "Builder":
        """Set a ``host:port`` address. Clears host and port."""

        return replace(self, endpoint=AddressEndpoint(address))

    @property
    def address(self) -> str:
        return self.endpoint.address

    # -------------------------
    # host keys
    # -------------------------
    def with_known_hosts_files(self, *paths: str) -> "Builder":
        """Trust only the host keys listed in ``paths``.

        Replaces any other host key policy. If a file cannot be parsed the
        error is recorded and the current policy is kept.
        """

        try:
            policy = KnownHostsPolicy.from_files(*paths)
        except ConfigurationError as exc:
            return self._add_error(exc)
        return replace(self, host_key_policy=policy)

    def with_insecure_ignore_host_key(self) -> "Builder":
        logger.warning("Host key verification disabled; any host key will be accepted")
        return replace(self, host_key_policy=InsecureIgnoreHostKeyPolicy())

    def with_host_key_callback(self, callback: HostKeyCallback) -> "Builder":
        return replace(self, host_key_policy=CallbackHostKeyPolicy(callback))

    def with_timeout(self, seconds: Optional[float]) -> "Builder":
        """Bound the TCP connect, banner wait, key exchange and authentication.

        With ``None`` the connect and key exchange block, while paramiko's own
        defaults still cap the banner wait (15s) and authentication (30s).
        """
        return replace(self, timeout=seconds)

    # -------------------------
    # errors
    # -------------------------
    def get_errors(self) -> List[Exception]:
        return list(self.errors)

    def get_error(self) -> Optional[Exception]:
        if self.errors:
            return self.errors[-1]
        return None

    def suspend_errors(self) -> "Builder":
        return replace(self, ignoring_errors=True)

    def resume_errors(self) -> "Builder":
        return replace(self, ignoring_errors=False)

    # -------------------------
    # connecting
    # -------------------------
    def client_config(self) -> ClientConfig:
        return ClientConfig(
            username=self.username,
            auth_methods=self.auth_methods,
            host_key_policy=self.host_key_policy,
            timeout=self.timeout,
        )

    def dial(self, **dial_kwargs) -> Client:
        """Connect and authenticate. Raises the last recorded build error, if any."""

        error = self.get_error()
        if error is not None:
            raise error
        return dial(self.address, self.client_config(), **dial_kwargs)

    def close(self) -> None:
        """Close the agent connections held by this builder's auth methods."""

        for method in self.auth_methods:
            method.close()

    # -------------------------
    # helpers
    # -------------------------
    def _add_auth(self, method: AuthMethod) -> "Builder":
        return replace(self, auth_methods=self.auth_methods + (method,))

    def _add_error(self, error: Exception) -> "Builder":
        if self.ignoring_errors:
            logger.debug("Ignoring build error: %s", error)
            return replace(self)
        logger.warning("Build error recorded: %s", error)
        return replace(self, errors=self.errors + (error,))
