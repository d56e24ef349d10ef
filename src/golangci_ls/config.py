from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TypeAlias
import tomllib

from golangci_ls.lint import DEFAULT_COMMAND

DEFAULT_CONFIG_NAME = "golangci-ls.toml"

TomlValue: TypeAlias = str | int | float | bool | None | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]


@dataclass(frozen=True)
class ServerConfig:
    command: str = DEFAULT_COMMAND
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def default_config_path() -> Path:
    return Path.cwd() / DEFAULT_CONFIG_NAME


def load_config(config_path: Path | None = None) -> TomlTable:
    """Read the config table; a missing or malformed file reads as empty."""
    path = config_path or default_config_path()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _section(data: TomlTable, name: str) -> TomlTable:
    section = data.get(name, {})
    return section if isinstance(section, dict) else {}


def _as_text(value: TomlValue) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def server_config(config_path: Path | None = None) -> ServerConfig:
    data = load_config(config_path)
    linter = _section(data, "linter")
    server = _section(data, "server")
    defaults = ServerConfig()
    log_file = _as_text(server.get("log_file"))
    return ServerConfig(
        command=_as_text(linter.get("command")) or defaults.command,
        log_level=(_as_text(server.get("log_level")) or defaults.log_level).upper(),
        log_file=Path(log_file) if log_file else None,
    )


def merge_overrides(
    config: ServerConfig,
    *,
    command: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> ServerConfig:
    return ServerConfig(
        command=command or config.command,
        log_level=(log_level or config.log_level).upper(),
        log_file=log_file if log_file is not None else config.log_file,
    )
