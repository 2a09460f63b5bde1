"""
Configuration for the Langfuse client.

Values are resolved field by field, highest precedence first:
    1. Explicit keyword overrides passed to load_config()
    2. LANGFUSE_* environment variables
    3. langfuse.yaml (see find_config_file for the search order)
    4. Defaults

Zero or empty values count as unset and fall through to the next source.

Environment Variables:
    LANGFUSE_PUBLIC_KEY, LANGFUSE_SECRET_KEY: API credentials
    LANGFUSE_HOST: API base URL (default https://cloud.langfuse.com)
    LANGFUSE_RELEASE: Release tag applied to new traces
    LANGFUSE_TOTAL_QUEUES: Number of buffer shards
    LANGFUSE_MAX_BATCH_SIZE: Records per shard
    LANGFUSE_FLUSH_INTERVAL_MS: Pause between background flushes
    LANGFUSE_REQUEST_TIMEOUT_S: HTTP timeout for ingestion calls
    LANGFUSE_ENABLED: Set to false to discard all events
    LANGFUSE_CONFIG: Path to a YAML config file
"""

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = "langfuse.yaml"
CONFIG_ENV_VAR = "LANGFUSE_CONFIG"


@dataclass
class LangfuseConfig:
    """Settings consumed by the client, the transport and the event manager."""
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    release: str = ""
    total_queues: int = 10
    max_batch_size: int = 100
    flush_interval_ms: int = 500
    request_timeout_s: float = 10.0
    enabled: bool = True

    def __post_init__(self):
        self.host = self.host.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        return bool(self.public_key and self.secret_key)


_ENV_VARS = {
    "public_key": "LANGFUSE_PUBLIC_KEY",
    "secret_key": "LANGFUSE_SECRET_KEY",
    "host": "LANGFUSE_HOST",
    "release": "LANGFUSE_RELEASE",
    "total_queues": "LANGFUSE_TOTAL_QUEUES",
    "max_batch_size": "LANGFUSE_MAX_BATCH_SIZE",
    "flush_interval_ms": "LANGFUSE_FLUSH_INTERVAL_MS",
    "request_timeout_s": "LANGFUSE_REQUEST_TIMEOUT_S",
    "enabled": "LANGFUSE_ENABLED",
}

_FIELD_TYPES = {f.name: f.type for f in dataclasses.fields(LangfuseConfig)}


def _coerce(name: str, value: Any, source: str) -> Any:
    """Convert a raw value to the field's type."""
    kind = _FIELD_TYPES[name]
    try:
        if kind is bool:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in ("1", "true", "yes", "on"):
                return True
            if text in ("0", "false", "no", "off"):
                return False
            raise ValueError(value)
        if kind is int:
            return int(value)
        if kind is float:
            return float(value)
        return str(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name} from {source}: {value!r}") from None


def _is_unset(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)) and value == 0:
        return True
    return isinstance(value, str) and value.strip() == ""


def find_config_file(config_path: Optional[str] = None) -> Optional[Path]:
    """
    Locate langfuse.yaml.

    Search order:
    1. Provided config_path
    2. LANGFUSE_CONFIG environment variable
    3. ./langfuse.yaml in current directory
    4. langfuse.yaml in parent directories (walk up the tree)

    Returns:
        The path, or None if no file was found.
    """
    if config_path:
        return Path(config_path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    current = Path.cwd()
    while True:
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            return config_file

        # Stop at filesystem root
        if current == current.parent:
            break
        current = current.parent

    return None


def _load_file(path: Optional[Path]) -> Dict[str, Any]:
    if path is None or not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def load_config(config_path: Optional[str] = None, **overrides: Any) -> LangfuseConfig:
    """
    Resolve a LangfuseConfig from overrides, environment, file and defaults.

    Args:
        config_path: Optional explicit path to a YAML config file
        **overrides: Field values that take precedence over everything else

    Returns:
        LangfuseConfig instance

    Raises:
        ValueError: On unknown override names or unparseable values
    """
    unknown = set(overrides) - set(_FIELD_TYPES)
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(sorted(unknown))}")

    file_data = _load_file(find_config_file(config_path))

    values: Dict[str, Any] = {}
    for name in _FIELD_TYPES:
        candidates = (
            (overrides.get(name), "arguments"),
            (os.environ.get(_ENV_VARS[name]), _ENV_VARS[name]),
            (file_data.get(name), "config file"),
        )
        for raw, source in candidates:
            if _is_unset(raw):
                continue
            value = _coerce(name, raw, source)
            if _is_unset(value):
                continue
            values[name] = value
            break

    return LangfuseConfig(**values)
