"""Configuration loading for ssh-builder."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class BuilderConfig:
    """Connection settings that seed a :class:`~ssh_builder.builder.Builder`."""

    host: Optional[str] = None
    port: int = 22
    host_port: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    known_hosts_files: List[str] = field(default_factory=list)
    insecure_ignore_host_key: bool = False
    use_agent: bool = False
    timeout: Optional[float] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "BuilderConfig":
        known = {f.name for f in fields(cls)}
        # keys starting with "_" are comments
        cleaned = {k: v for k, v in payload.items() if not k.startswith("_") and k in known}
        config = cls(**{**cls().__dict__, **cleaned})
        if isinstance(config.known_hosts_files, str):
            config.known_hosts_files = [config.known_hosts_files]
        return config


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def load_config(path: Optional[str] = None) -> BuilderConfig:
    """Load configuration from ``path`` (JSON) and the environment.

    Environment variables (higher priority than the config file):
    - SSH_BUILDER_HOST / SSH_BUILDER_PORT: host and port
    - SSH_BUILDER_HOST_PORT: combined host:port, wins over host and port
    - SSH_BUILDER_USERNAME / SSH_BUILDER_PASSWORD: credentials
    - SSH_BUILDER_KNOWN_HOSTS: known_hosts files separated by os.pathsep
    - SSH_BUILDER_INSECURE_IGNORE_HOST_KEY: accept any host key
    - SSH_BUILDER_USE_AGENT: authenticate through $SSH_AUTH_SOCK
    - SSH_BUILDER_TIMEOUT: dial timeout in seconds
    """

    config = BuilderConfig()
    if path:
        candidate = Path(path)
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find configuration file: {candidate}")
        with candidate.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        config = BuilderConfig.from_dict(data)

    env_host = os.getenv("SSH_BUILDER_HOST")
    if env_host:
        config.host = env_host

    env_port = os.getenv("SSH_BUILDER_PORT")
    if env_port:
        config.port = int(env_port)

    env_host_port = os.getenv("SSH_BUILDER_HOST_PORT")
    if env_host_port:
        config.host_port = env_host_port

    env_username = os.getenv("SSH_BUILDER_USERNAME")
    if env_username:
        config.username = env_username

    env_password = os.getenv("SSH_BUILDER_PASSWORD")
    if env_password:
        config.password = env_password

    env_known_hosts = os.getenv("SSH_BUILDER_KNOWN_HOSTS")
    if env_known_hosts:
        config.known_hosts_files = [p for p in env_known_hosts.split(os.pathsep) if p]

    env_insecure = os.getenv("SSH_BUILDER_INSECURE_IGNORE_HOST_KEY")
    if env_insecure:
        config.insecure_ignore_host_key = _env_flag(env_insecure)

    env_agent = os.getenv("SSH_BUILDER_USE_AGENT")
    if env_agent:
        config.use_agent = _env_flag(env_agent)

    env_timeout = os.getenv("SSH_BUILDER_TIMEOUT")
    if env_timeout:
        config.timeout = float(env_timeout)

    return config
