"""Config management for Picklist.

Reads `config.ini` from DATA_DIR (beside main.py unless DATA_DIR is set).
When running as PyInstaller onefile, PROJECT_ROOT is the directory containing the executable.
"""

from __future__ import annotations

import configparser
import dataclasses
import enum
import os
import pathlib
import sys
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)

def _get_project_root() -> pathlib.Path:
    if getattr(sys, "frozen", False):
        return pathlib.Path(sys.executable).resolve().parent
    return pathlib.Path(__file__).resolve().parents[1]


PROJECT_ROOT = _get_project_root()

# DATA_DIR holds all persistent state (config.ini, picklist.db, picklist.log).
# Set via env var for Docker; defaults to PROJECT_ROOT for standalone use.
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"


class FailurePolicy(str, enum.Enum):
    """What the picking client does with a local flip the backend refused."""

    LOG = "log"
    ROLLBACK = "rollback"


@dataclasses.dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclasses.dataclass
class ClientConfig:
    api_url: str = "http://localhost:8080"
    timeout_seconds: float = 10.0


@dataclasses.dataclass
class PickingConfig:
    failure_policy: FailurePolicy = FailurePolicy.LOG


@dataclasses.dataclass
class PicklistConfig:
    server: ServerConfig
    client: ClientConfig
    picking: PickingConfig

    @property
    def server_host(self) -> str:
        return self.server.host

    @property
    def server_port(self) -> int:
        return self.server.port


def parse_policy(value: Optional[str]) -> FailurePolicy:
    """Map a config/CLI string to a FailurePolicy, falling back to LOG."""
    if not value:
        return FailurePolicy.LOG
    try:
        return FailurePolicy(value.strip().lower())
    except ValueError:
        logger.warning(f"Unknown failure_policy {value!r}, using 'log'")
        return FailurePolicy.LOG


def load_config(config_path: Optional[pathlib.Path] = None) -> PicklistConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in DATA_DIR.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    server = ServerConfig(
        host=parser.get("server", "host", fallback="0.0.0.0"),
        port=parser.getint("server", "port", fallback=8080),
    )

    client = ClientConfig(
        api_url=parser.get("client", "api_url", fallback="http://localhost:8080").rstrip("/"),
        timeout_seconds=parser.getfloat("client", "timeout_seconds", fallback=10.0),
    )

    picking = PickingConfig(
        failure_policy=parse_policy(
            parser.get("picking", "failure_policy", fallback="log")
        ),
    )

    return PicklistConfig(
        server=server,
        client=client,
        picking=picking,
    )


_cached_config: Optional[PicklistConfig] = None


def get_config() -> PicklistConfig:
    """Return the cached config singleton. Loads from disk on first call."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Clear the cached config (useful for tests)."""
    global _cached_config
    _cached_config = None
