"""
mailparse.config - Configuration loading and defaults

Configuration comes from three layers, later ones winning:
1. DEFAULT_CONFIG
2. A ``.mailparse.toml`` file (explicit, or found by walking up from cwd)
3. ``MAILPARSE_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import os
import sys
from pathlib import Path
from typing import Any

import tomlkit

from mailparse.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG, ENV_PREFIX


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML content, preserving formatting for round-trip edits."""
    return tomlkit.parse(content)


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML content into plain Python dicts and lists.

    Raises:
        tomlkit.exceptions.ParseError: If the content is not valid TOML.
    """
    return parse_toml_document(content).unwrap()


def find_config_file(start_path: Path) -> Path | None:
    """Find ``.mailparse.toml`` in start_path or any parent directory.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = start_path.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge override into a copy of base.

    Nested dicts are merged key by key; any other value in override
    replaces the one in base.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Path) -> dict[str, Any]:
    """Load a config file and merge it over the defaults.

    Raises:
        OSError: If the file cannot be read.
        tomlkit.exceptions.ParseError: If the file is not valid TOML.
    """
    user_config = parse_toml(config_path.read_text(encoding="utf-8"))
    return merge_configs(DEFAULT_CONFIG, user_config)


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays and objects are parsed, ``true``/``false`` become
    booleans, integers become ints; anything else (including malformed
    JSON) stays a string.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if stripped.lstrip("-").isdigit():
        return int(stripped)
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``MAILPARSE_<SECTION>_<KEY>`` variables to config in place.

    The part after the prefix is split on its first underscore:
    ``MAILPARSE_PARSER_LONG_QUEUE_IDS`` sets ``parser.long_queue_ids``.

    Returns:
        The same config dict, for chaining.
    """
    for name, value in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        remainder = name[len(ENV_PREFIX) :].lower()
        if "_" not in remainder:
            continue
        section, key = remainder.split("_", 1)
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(value)
    return config


def get_config(
    config_path: Path | None = None,
    start_path: Path | None = None,
    quiet: bool = False,
) -> dict[str, Any]:
    """Load the effective configuration.

    Args:
        config_path: Explicit config file; skips discovery.
        start_path: Where to start looking for a config file (default: cwd).
        quiet: Do not report which config file was used.

    Returns:
        Defaults, merged with the config file if any, with environment
        overrides applied.
    """
    if config_path is None:
        config_path = find_config_file(start_path or Path.cwd())

    if config_path is not None:
        config = load_config(config_path)
        if not quiet:
            print(f"Using config: {config_path}", file=sys.stderr)
    else:
        config = copy.deepcopy(DEFAULT_CONFIG)

    return _apply_env_overrides(config)


__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
]
