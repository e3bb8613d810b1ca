"""YAML configuration loading for header renaming readers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Union

import yaml

from .errors import ConfigError
from .schema import ReaderConfig

_REQUIRED_KEYS = {"sheet_index", "header_row"}
_BOOL_KEYS = ("rewrite_unchanged", "require_header")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Invalid reader configuration structure (expected mapping)")
    return data


def _as_index(payload: Mapping[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"'{key}' must be a non-negative integer, got {value!r}")
    return value


def parse_replacements(payload: Any) -> Dict[str, str]:
    """Validate a replacement map; keys and values must be scalars rendered as text."""

    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConfigError("'replacements' must be a mapping of header text to new text")
    replacements: Dict[str, str] = {}
    for old, new in payload.items():
        if isinstance(old, (dict, list)) or isinstance(new, (dict, list)):
            raise ConfigError(f"Replacement entries must be plain text: {old!r} -> {new!r}")
        if old is None or str(old) == "":
            raise ConfigError("Replacement keys must not be empty")
        replacements[str(old)] = "" if new is None else str(new)
    return replacements


def parse_reader_config(payload: Mapping[str, Any]) -> ReaderConfig:
    """Validate an already-parsed configuration mapping."""

    if missing := _REQUIRED_KEYS - payload.keys():
        raise ConfigError(
            f"Reader configuration missing required keys: {', '.join(sorted(missing))}"
        )
    config: ReaderConfig = {
        "sheet_index": _as_index(payload, "sheet_index"),
        "header_row": _as_index(payload, "header_row"),
    }
    if "replacements" in payload:
        config["replacements"] = parse_replacements(payload["replacements"])
    for key in _BOOL_KEYS:
        if key in payload and payload[key] is not None:
            if not isinstance(payload[key], bool):
                raise ConfigError(f"'{key}' must be true or false")
            config[key] = payload[key]  # type: ignore[literal-required]
    if payload.get("output_path"):
        config["output_path"] = str(payload["output_path"])
    return config


def load_reader_config(path: Union[str, Path]) -> ReaderConfig:
    """Load a reader configuration from YAML.

    Relative ``output_path`` values are resolved against the configuration
    file's directory.
    """

    config_path = Path(path)
    config = parse_reader_config(_load_yaml(config_path))
    if "output_path" in config:
        output = Path(config["output_path"]).expanduser()
        if not output.is_absolute():
            output = config_path.parent / output
        config["output_path"] = str(output)
    return config
