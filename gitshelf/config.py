"""Configuration for gitshelf.

Values are resolved in order, later sources winning:

    defaults -> config.toml -> GITSHELF_* environment -> explicit overrides

Example config.toml:

    vault_path = "~/notes/vault"
    vault_repo = "git@github.com:me/vault.git"
    ssh_key_path = "~/.ssh/id_ed25519"
    sync_interval = 120        # seconds
    auto_commit = true
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .store import DEFAULT_DOCUMENT
from .sync import DEFAULT_SYNC_MESSAGE

ENV_PREFIX = "GITSHELF_"
CONFIG_ENV = "GITSHELF_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/gitshelf/config.toml")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ShelfConfig:
    vault_path: Path = Path("./vault")
    vault_repo: str = ""
    ssh_key_path: Path | None = Path("~/.ssh/id_rsa")

    git_user_name: str = "gitshelf"
    git_user_email: str = "gitshelf@local"
    git_timeout: float = 60.0

    auto_sync: bool = True  # pull before operations, push after commits
    auto_commit: bool = True  # commit after every write
    sync_interval: float = 300.0  # seconds between background cycles
    commit_message: str = DEFAULT_SYNC_MESSAGE

    document_name: str = DEFAULT_DOCUMENT
    debug: bool = False

    @property
    def document_path(self) -> Path:
        return self.vault_path / self.document_name

    @property
    def has_remote(self) -> bool:
        return bool(self.vault_repo)


def _coerce(name: str, raw: Any) -> Any:
    """Convert a raw TOML/env value to the field's type. Returns None if invalid."""
    if name in ("vault_path", "ssh_key_path"):
        return Path(str(raw)).expanduser() if raw else None
    if name in ("auto_sync", "auto_commit", "debug"):
        if isinstance(raw, bool):
            return raw
        value = str(raw).strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        return None
    if name in ("git_timeout", "sync_interval"):
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None
    return str(raw)


def _apply(config: ShelfConfig, values: dict[str, Any]) -> ShelfConfig:
    known = {f.name for f in fields(ShelfConfig)}
    updates: dict[str, Any] = {}
    for name, raw in values.items():
        if name not in known:
            continue
        value = _coerce(name, raw)
        if value is None and name != "ssh_key_path":
            continue
        updates[name] = value
    return replace(config, **updates)


def read_config_file(path: Path) -> dict[str, Any]:
    """Load a TOML config file. A missing file yields an empty mapping."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ConfigError(f"failed to read {path}: {e}") from e
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid config file {path}: {e}") from e


def env_values(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect GITSHELF_* variables as field-name -> raw string."""
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for f in fields(ShelfConfig):
        raw = environ.get(ENV_PREFIX + f.name.upper())
        if raw:
            values[f.name] = raw
    return values


def load_config(
    config_file: Path | None = None,
    *,
    environ: dict[str, str] | None = None,
    **overrides: Any,
) -> ShelfConfig:
    """Resolve configuration from file, environment and explicit overrides.

    Overrides whose value is None are ignored so CLI options can be passed
    through unconditionally.
    """
    environ = os.environ if environ is None else environ
    if config_file is None:
        config_file = Path(environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH)

    config = ShelfConfig()
    config = _apply(config, read_config_file(Path(config_file).expanduser()))
    config = _apply(config, env_values(environ))
    config = _apply(config, {k: v for k, v in overrides.items() if v is not None})

    return replace(config, vault_path=config.vault_path.expanduser())
