from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigError

CONFIG_ENV = 'PHABTASK_CONFIG'
LOCAL_CONFIG = '.phabtask.yaml'
USER_CONFIG = Path('~/.config/phabtask/config.yaml')

TRANSPORTS = ('arc', 'http')


@dataclass
class Settings:
    editor: str | None = None
    keep_temp_file: bool = False
    transport: str = 'arc'
    arc_binary: str = 'arc'
    conduit_uri: str | None = None
    conduit_token: str | None = None
    timeout: float = 30.0
    logging_json_enabled: bool = False
    logging_level: str = 'INFO'
    defaults: dict[str, str] = field(default_factory=dict)
    source_file: Path | None = None


def _resolve_env_var(value: Any) -> Any:
    """Resolve ``$NAME`` to the environment value (None when unset)."""
    if isinstance(value, str) and value.startswith('$'):
        return os.getenv(value[1:])
    return value


def find_config(path: str | Path | None = None) -> Path | None:
    if path is not None:
        p = Path(path).expanduser()
        if not p.exists():
            raise ConfigError(f'Configuration file not found: {p}')
        return p
    env_path = os.environ.get(CONFIG_ENV)
    candidates = [Path(env_path).expanduser()] if env_path else []
    candidates += [Path.cwd() / LOCAL_CONFIG, USER_CONFIG.expanduser()]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def _read_yaml(p: Path) -> dict[str, Any]:
    try:
        loaded = yaml.safe_load(p.read_text(encoding='utf-8'))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f'Unable to read configuration {p}: {exc}') from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f'Configuration {p} must be a mapping')
    return cast(dict[str, Any], loaded)


def _section(raw: dict[str, Any], name: str, source: Path | None) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f'Section {name!r} in {source} must be a mapping')
    return cast(dict[str, Any], value)


def _parse_timeout(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f'conduit.timeout must be a number of seconds, got {value!r}') from exc


def load_config(path: str | Path | None = None) -> Settings:
    """Load settings from YAML, then apply ``PHABTASK_*`` environment overrides."""
    p = find_config(path)
    raw = _read_yaml(p) if p is not None else {}
    conduit = _section(raw, 'conduit', p)
    logging_config = _section(raw, 'logging', p)
    defaults = _section(raw, 'defaults', p)

    settings = Settings(
        editor=raw.get('editor'),
        keep_temp_file=bool(raw.get('keep_temp_file', False)),
        transport=str(conduit.get('transport', 'arc')),
        arc_binary=str(conduit.get('arc_binary', 'arc')),
        conduit_uri=_resolve_env_var(conduit.get('uri')),
        conduit_token=_resolve_env_var(conduit.get('token')),
        timeout=_parse_timeout(conduit.get('timeout', 30)),
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'INFO')),
        defaults={str(k): str(v) for k, v in defaults.items() if v is not None},
        source_file=p,
    )

    # Environment overrides
    settings.transport = os.environ.get('PHABTASK_TRANSPORT', settings.transport)
    settings.arc_binary = os.environ.get('PHABTASK_ARC', settings.arc_binary)
    settings.conduit_uri = os.environ.get('PHABTASK_CONDUIT_URI', settings.conduit_uri)
    settings.logging_level = os.environ.get('PHABTASK_LOG_LEVEL', settings.logging_level)

    if settings.transport not in TRANSPORTS:
        raise ConfigError(
            f"Unknown conduit transport {settings.transport!r}; expected one of {', '.join(TRANSPORTS)}"
        )
    return settings


__all__ = ['Settings', 'load_config', 'find_config', 'ConfigError']
