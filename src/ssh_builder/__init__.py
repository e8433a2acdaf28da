"""Build SSH clients by building up configuration."""

from .auth import AgentAuth, AuthMethod, NoneAuth, PasswordAuth
from .builder import Builder
from .client import Client, ClientConfig, dial
from .config import BuilderConfig, load_config
from .endpoint import AddressEndpoint, HostPortEndpoint
from .errors import (
    AgentUnavailableError,
    ConfigurationError,
    DialError,
    HostKeyError,
    HostKeyMismatchError,
    HostKeyRevokedError,
    KnownHostsError,
    MissingHostKeyPolicyError,
    SSHBuilderError,
    UnknownHostKeyError,
)
from .hostkeys import (
    CallbackHostKeyPolicy,
    HostKeyPolicy,
    InsecureIgnoreHostKeyPolicy,
    KnownHostsPolicy,
)

__version__ = "0.1.0"

__all__ = [
    "AddressEndpoint",
    "AgentAuth",
    "AgentUnavailableError",
    "AuthMethod",
    "Builder",
    "BuilderConfig",
    "CallbackHostKeyPolicy",
    "Client",
    "ClientConfig",
    "ConfigurationError",
    "DialError",
    "HostKeyError",
    "HostKeyMismatchError",
    "HostKeyPolicy",
    "HostKeyRevokedError",
    "HostPortEndpoint",
    "InsecureIgnoreHostKeyPolicy",
    "KnownHostsError",
    "KnownHostsPolicy",
    "MissingHostKeyPolicyError",
    "NoneAuth",
    "PasswordAuth",
    "SSHBuilderError",
    "UnknownHostKeyError",
    "dial",
    "load_config",
]
