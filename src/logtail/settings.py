"""Configuration for logtail.

All user-editable settings (defaults, stacks, logging) live in a single JSON
file. The file is optional; without it the defaults below apply and a log
file has to be given per stack in the config before `logs` can run.
"""

from __future__ import annotations

import json
import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from logtail.core.config import StackConfig, TailConfig
from logtail.core.errors import ConfigError

# Looked up in the working directory, like .env.
DEFAULT_CONFIG_NAME = "logtail.json"

DEFAULT_SINCE = "1h"
DEFAULT_POLL_INTERVAL = 1.0
SOURCE_TYPES = ("jsonl", "sqlite")


def config_path() -> str:
    """Return the config path, honouring LOGTAIL_CONFIG from the env or .env."""

    load_dotenv(find_dotenv(usecwd=True))
    return os.getenv("LOGTAIL_CONFIG") or os.path.join(os.getcwd(), DEFAULT_CONFIG_NAME)


def load_json_config(path: Optional[str] = None) -> dict:
    """Load the JSON config, or an empty config if the file does not exist."""

    path = path or config_path()
    if not os.path.exists(path):
        return {}

    try:
        with open(path, "r", encoding="utf-8") as handle:
            config = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(config, dict):
        raise ConfigError(f"Config root must be an object: {path}")
    return config


def build_tail_config(config: dict) -> TailConfig:
    """Read the tail defaults, falling back to built-in values."""

    # Seen-set retention is opt-in; null keeps every entry for the session.
    retention_seconds = config.get("seen_retention_seconds")
    retention_ms = None if retention_seconds is None else int(float(retention_seconds) * 1000)

    zone = str(config.get("timezone", "local")).lower()
    if zone not in ("local", "utc"):
        raise ConfigError(f"timezone must be 'local' or 'utc', got {zone!r}")

    return TailConfig(
        since=str(config.get("since", DEFAULT_SINCE)),
        poll_interval=float(config.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL)),
        retention_ms=retention_ms,
        timezone=zone,
    )


def resolve_stack(config: dict, stack: Optional[str], base_dir: Optional[str] = None) -> StackConfig:
    """Resolve the --stack selector (or the default stack) to a StackConfig.

    Relative paths are resolved against base_dir, normally the config file's
    directory, or the working directory when base_dir is not given.
    """

    stacks = config.get("stacks", {})
    name = stack or config.get("default_stack")
    if not name:
        if len(stacks) == 1:
            name = next(iter(stacks))
        else:
            raise ConfigError("No stack selected; pass --stack or set default_stack")

    entry = stacks.get(name)
    if entry is None:
        raise ConfigError(f"Unknown stack: {name}")

    source_type = entry.get("type", "jsonl")
    if source_type not in SOURCE_TYPES:
        raise ConfigError(f"Unsupported source type for stack {name}: {source_type}")

    path = entry.get("path")
    if not path:
        raise ConfigError(f"Stack {name} has no path")
    if not os.path.isabs(path):
        path = os.path.join(base_dir or os.getcwd(), path)

    return StackConfig(name=name, source_type=source_type, path=path)
