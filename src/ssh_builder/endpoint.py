"""Endpoint forms accepted by the builder and ``host:port`` helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class HostPortEndpoint:
    """Host and port set separately through ``with_host``/``with_port``."""

    host: str = ""
    port: int = 0

    @property
    def address(self) -> str:
        return join_host_port(self.host, self.port)


@dataclass(frozen=True)
class AddressEndpoint:
    """Pre-formatted ``host:port`` string set through ``with_host_port``."""

    address: str


Endpoint = Union[HostPortEndpoint, AddressEndpoint]


def join_host_port(host: str, port: int) -> str:
    # IPv6 literals need brackets so the port separator stays unambiguous
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def split_host_port(address: str) -> Tuple[str, int]:
    """Split ``host:port`` or ``[host]:port`` into its parts.

    Raises ValueError when the port is missing or not a number.
    """

    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address {address!r}")
        host = address[1:end]
        rest = address[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"missing port in address {address!r}")
        port_text = rest[1:]
    else:
        host, sep, port_text = address.rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address {address!r}")
        if ":" in host:
            raise ValueError(f"too many colons in address {address!r}")
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port {port_text!r} in address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in address {address!r}")
    return host, port


def known_hosts_name(host: str, port: int) -> str:
    """Name a host the way known_hosts files do: bare on port 22, bracketed otherwise."""

    if port == 22:
        return host
    return f"[{host}]:{port}"
