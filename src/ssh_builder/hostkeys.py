"""Host key policies and the known_hosts parser.

A policy decides whether the key presented by the remote host is trusted.
Exactly three kinds exist:

* :class:`KnownHostsPolicy` - only keys listed in known_hosts files
* :class:`InsecureIgnoreHostKeyPolicy` - any key (explicit opt-in only)
* :class:`CallbackHostKeyPolicy` - a caller supplied predicate
"""

from __future__ import annotations

import binascii
import hmac
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

import paramiko
from paramiko.hostkeys import HostKeyEntry, HostKeys, InvalidHostKey

from .endpoint import known_hosts_name
from .errors import (
    HostKeyError,
    HostKeyMismatchError,
    HostKeyRevokedError,
    KnownHostsError,
    UnknownHostKeyError,
)
from .utils.logging import get_logger

logger = get_logger(__name__)

MARKER_REVOKED = "@revoked"
MARKER_CERT_AUTHORITY = "@cert-authority"

HostKeyCallback = Callable[[str, Tuple[str, int], paramiko.PKey], Optional[bool]]


class HostKeyPolicy(ABC):
    """Decides whether a remote host key is acceptable."""

    @abstractmethod
    def verify(self, hostname: str, port: int, remote_ip: str, key: paramiko.PKey) -> None:
        """Return normally to accept ``key``; raise :class:`HostKeyError` to reject it."""


class InsecureIgnoreHostKeyPolicy(HostKeyPolicy):
    """Accepts every host key. Only for tests and throwaway hosts."""

    def verify(self, hostname: str, port: int, remote_ip: str, key: paramiko.PKey) -> None:
        logger.debug("Accepting %s key for %s without verification", key.get_name(), hostname)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, InsecureIgnoreHostKeyPolicy)

    def __hash__(self) -> int:
        return hash(InsecureIgnoreHostKeyPolicy)

    def __repr__(self) -> str:
        return "InsecureIgnoreHostKeyPolicy()"


class CallbackHostKeyPolicy(HostKeyPolicy):
    """Delegates to ``callback(address, (remote_ip, port), key)``.

    The callback rejects a key by raising or by returning ``False``.
    """

    def __init__(self, callback: HostKeyCallback) -> None:
        self.callback = callback

    def verify(self, hostname: str, port: int, remote_ip: str, key: paramiko.PKey) -> None:
        name = known_hosts_name(hostname, port)
        if self.callback(name, (remote_ip, port), key) is False:
            raise HostKeyError(f"host key for {name} rejected by callback", name, key)

    def __repr__(self) -> str:
        return f"CallbackHostKeyPolicy({self.callback!r})"


@dataclass(frozen=True)
class KnownHostsLine:
    """One parsed known_hosts entry."""

    patterns: Tuple[str, ...]
    key: paramiko.PKey
    marker: str = ""
    source: str = ""
    lineno: int = 0

    @property
    def revoked(self) -> bool:
        return self.marker == MARKER_REVOKED

    def matches(self, name: str) -> bool:
        matched = False
        for pattern in self.patterns:
            if pattern.startswith("!"):
                if _pattern_matches(pattern[1:], name):
                    return False
            elif _pattern_matches(pattern, name):
                matched = True
        return matched

    def has_key(self, key: paramiko.PKey) -> bool:
        return self.key.asbytes() == key.asbytes()


def _pattern_matches(pattern: str, name: str) -> bool:
    if pattern.startswith("|1|"):
        try:
            hashed = HostKeys.hash_host(name, pattern)
        except (AssertionError, binascii.Error, IndexError, ValueError):
            return False
        return hmac.compare_digest(hashed, pattern)
    if "*" in pattern or "?" in pattern:
        regex = re.escape(pattern.lower()).replace(r"\*", ".*").replace(r"\?", ".")
        return re.fullmatch(regex, name.lower()) is not None
    return pattern.lower() == name.lower()


class KnownHostsPolicy(HostKeyPolicy):
    """Accepts only keys listed for the host in the parsed known_hosts files."""

    def __init__(self, lines: Iterable[KnownHostsLine] = (), files: Iterable[str] = ()) -> None:
        self.lines: Tuple[KnownHostsLine, ...] = tuple(lines)
        self.files: Tuple[str, ...] = tuple(files)

    @classmethod
    def from_files(cls, *paths: str) -> "KnownHostsPolicy":
        lines: List[KnownHostsLine] = []
        for path in paths:
            lines.extend(parse_known_hosts_file(path))
        logger.debug("Loaded %d known_hosts entries from %d file(s)", len(lines), len(paths))
        return cls(lines, files=[str(p) for p in paths])

    def verify(self, hostname: str, port: int, remote_ip: str, key: paramiko.PKey) -> None:
        names = [known_hosts_name(hostname, port)]
        if remote_ip and remote_ip != hostname:
            names.append(known_hosts_name(remote_ip, port))

        for line in self.lines:
            if line.revoked and line.has_key(key):
                raise HostKeyRevokedError(
                    f"host key for {names[0]} is revoked ({line.source}:{line.lineno})",
                    names[0],
                    key,
                )

        expected: List[paramiko.PKey] = []
        for line in self.lines:
            if line.revoked or not any(line.matches(name) for name in names):
                continue
            if line.has_key(key):
                return
            expected.append(line.key)

        if expected:
            raise HostKeyMismatchError(
                f"host key mismatch for {names[0]}: got {key.get_name()} {key.get_base64()}",
                names[0],
                key,
                expected,
            )
        raise UnknownHostKeyError(f"host {names[0]} is not in known_hosts", names[0], key)

    def __repr__(self) -> str:
        return f"KnownHostsPolicy(files={list(self.files)!r}, entries={len(self.lines)})"


def parse_known_hosts_line(line: str, source: str = "", lineno: int = 0) -> Optional[KnownHostsLine]:
    """Parse one known_hosts line; blank lines and comments yield ``None``."""

    fields = line.split()
    if not fields or fields[0].startswith("#"):
        return None

    marker = ""
    if fields[0].startswith("@"):
        marker = fields.pop(0)
        if marker not in (MARKER_REVOKED, MARKER_CERT_AUTHORITY):
            raise KnownHostsError(f"{source}:{lineno}: unknown marker {marker!r}")

    if len(fields) < 3:
        raise KnownHostsError(f"{source}:{lineno}: expected 'hosts keytype key', got {line.strip()!r}")

    if marker == MARKER_CERT_AUTHORITY:
        logger.debug("%s:%d: skipping @cert-authority entry", source, lineno)
        return None

    try:
        entry = HostKeyEntry.from_line(" ".join(fields[:3]), lineno)
    except (InvalidHostKey, paramiko.SSHException, ValueError) as exc:
        raise KnownHostsError(f"{source}:{lineno}: invalid host key: {exc}") from exc
    if entry is None or entry.key is None:
        raise KnownHostsError(f"{source}:{lineno}: unsupported key type {fields[1]!r}")

    patterns = tuple(p for p in fields[0].split(",") if p)
    return KnownHostsLine(patterns=patterns, key=entry.key, marker=marker, source=source, lineno=lineno)


def parse_known_hosts_file(path: str) -> List[KnownHostsLine]:
    """Parse every entry in ``path``; any bad line fails the whole file."""

    file_path = Path(path).expanduser()
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise KnownHostsError(f"cannot read known_hosts file {path}: {exc}") from exc

    lines: List[KnownHostsLine] = []
    for lineno, raw in enumerate(text.splitlines(), 1):
        parsed = parse_known_hosts_line(raw, str(path), lineno)
        if parsed is not None:
            lines.append(parsed)
    return lines
