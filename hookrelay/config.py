"""Configuration loading."""

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from dotenv import load_dotenv

from hookrelay.domain.models import WebhookRegistration
from hookrelay.errors import ConfigError

__version__ = "0.1.0"

DEFAULT_KEYBASE_BIN = "keybase"
DEFAULT_LISTEN_ADDRESS = ":8080"
CONFIG_NAME = "config"
CONFIG_EXTENSIONS = (".json", ".toml", ".yaml", ".yml")


def _key(name: str) -> str:
    # KeybaseBin, keybasebin and keybase_bin all name the same setting
    return name.replace("_", "").lower()


def _lookup(raw: Dict[str, Any], name: str, default: Any = None) -> Any:
    wanted = _key(name)
    for key, value in raw.items():
        if _key(key) == wanted:
            return value
    return default


@dataclass(frozen=True)
class AppConfig:
    """Immutable configuration snapshot, built once at startup."""

    keybase_bin: str = DEFAULT_KEYBASE_BIN
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    webhooks: Tuple[WebhookRegistration, ...] = field(default_factory=tuple)
    source: Optional[Path] = None

    def listen_host_port(self) -> Tuple[str, int]:
        """Split ``host:port``; an empty host means all interfaces."""
        host, sep, port = self.listen_address.rpartition(":")
        if not sep:
            raise ConfigError(f"Invalid ListenAddress {self.listen_address!r}")
        try:
            port_number = int(port)
        except ValueError as e:
            raise ConfigError(f"Invalid ListenAddress {self.listen_address!r}") from e
        return host.strip("[]") or "0.0.0.0", port_number

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], source: Optional[Path] = None) -> "AppConfig":
        if not isinstance(raw, dict):
            raise ConfigError("Config root must be a table/object")

        keybase_bin = _lookup(raw, "KeybaseBin", DEFAULT_KEYBASE_BIN)
        listen_address = _lookup(raw, "ListenAddress", DEFAULT_LISTEN_ADDRESS)
        for name, value in (("KeybaseBin", keybase_bin), ("ListenAddress", listen_address)):
            if not isinstance(value, str):
                raise ConfigError(f"{name} must be a string")

        entries = _lookup(raw, "Webhooks", []) or []
        if not isinstance(entries, list):
            raise ConfigError("Webhooks must be a list")

        webhooks = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ConfigError(f"Webhooks[{i}] must be a table/object")
            token = _lookup(entry, "Token")
            team = _lookup(entry, "Team")
            if not isinstance(token, str) or not isinstance(team, str):
                raise ConfigError(f"Webhooks[{i}] needs string Token and Team")
            webhooks.append(WebhookRegistration(token=token, team=team))

        return cls(
            keybase_bin=keybase_bin,
            listen_address=listen_address,
            webhooks=tuple(webhooks),
            source=source,
        )

    def with_env(self, environ: Optional[Dict[str, str]] = None) -> "AppConfig":
        """Apply KEYBASE_BIN / LISTEN_ADDRESS overrides."""
        env = os.environ if environ is None else environ
        return AppConfig(
            keybase_bin=env.get("KEYBASE_BIN") or self.keybase_bin,
            listen_address=env.get("LISTEN_ADDRESS") or self.listen_address,
            webhooks=self.webhooks,
            source=self.source,
        )


def find_config_file(
    search_paths: Iterable[str] = (".",), name: str = CONFIG_NAME
) -> Optional[Path]:
    for directory in search_paths:
        for ext in CONFIG_EXTENSIONS:
            path = Path(directory) / f"{name}{ext}"
            if path.is_file():
                return path
    return None


def _read(path: Path) -> Dict[str, Any]:
    try:
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f)
        if path.suffix in (".yaml", ".yml"):
            with open(path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"Error loading config file {path}: {e}") from e
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Error parsing config file {path}: {e}") from e


def load_config(
    search_paths: Iterable[str] = (".",),
    name: str = CONFIG_NAME,
    environ: Optional[Dict[str, str]] = None,
) -> AppConfig:
    """Load the config file and apply environment overrides.

    Raises ConfigError when no config file exists or it cannot be parsed.
    """
    if environ is None:
        load_dotenv()

    search_paths = list(search_paths)
    path = find_config_file(search_paths, name)
    if path is None:
        raise ConfigError(
            f"Error loading config file: no {name}{{{','.join(CONFIG_EXTENSIONS)}}} "
            f"in {search_paths}"
        )
    return AppConfig.from_dict(_read(path), source=path).with_env(environ)
