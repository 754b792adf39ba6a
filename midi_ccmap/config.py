"""
Configuration loading and validation.

Handles YAML config parsing with environment variable expansion, and picks
the map file parser for other files.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .mapfile import load_map_file
from .mapping import AFTERTOUCH_SOURCE, PITCH_BEND_SOURCE, MapTuple
from .messages import DestinationType

YAML_SUFFIXES = (".yaml", ".yml")


class ConfigError(ValueError):
    """Malformed configuration file."""


@dataclass
class PortConfig:
    """Where to read and write MIDI."""
    input: str | None = None  # Substring of a mido input port name
    output: str | None = None  # Substring of a mido output port name
    virtual: str | None = None  # Open virtual ports with this name
    raw: str | None = None  # Raw MIDI device file

    def merge(self, other: "PortConfig") -> "PortConfig":
        """Return a copy where the fields set in other win."""
        return PortConfig(
            input=other.input or self.input,
            output=other.output or self.output,
            virtual=other.virtual or self.virtual,
            raw=other.raw or self.raw,
        )


@dataclass
class Config:
    """Root configuration object."""
    ports: PortConfig = field(default_factory=PortConfig)
    mappings: list[MapTuple] = field(default_factory=list)


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports ${VAR} syntax.
    """
    pattern = re.compile(r'\$\{([^}]+)\}')

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return pattern.sub(replacer, value)


def expand_env_vars_recursive(obj: Any) -> Any:
    """Recursively expand environment variables in a data structure."""
    if isinstance(obj, str):
        return expand_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: expand_env_vars_recursive(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [expand_env_vars_recursive(item) for item in obj]
    return obj


def parse_number(value: Any) -> int:
    """Parse a number given as int or decimal/hex string."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            pass
    raise ConfigError(f"Invalid number: {value!r}")


def parse_source(value: Any) -> int | str:
    """Parse a mapping source: CC number (int or "0x.." string), AT or PB."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid mapping source: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        upper = value.strip().upper()
        if upper in (AFTERTOUCH_SOURCE, PITCH_BEND_SOURCE):
            return upper
        try:
            return int(value.strip(), 0)
        except ValueError:
            pass
    raise ConfigError(f"Invalid mapping source: {value!r}")


def parse_mapping(data: dict[str, Any]) -> MapTuple:
    """Parse a mapping entry from config data."""
    if not isinstance(data, dict) or "source" not in data or "to" not in data:
        raise ConfigError(f"Mapping needs 'source' and 'to': {data!r}")

    try:
        dest_type = DestinationType.parse(str(data["to"]))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    # Handle range as a [from, to] pair or a {from, to} object
    value_range = data.get("range")
    value_from = value_to = None
    if isinstance(value_range, dict):
        value_from = value_range.get("from")
        value_to = value_range.get("to")
    elif isinstance(value_range, list) and len(value_range) == 2:
        value_from, value_to = value_range
    elif value_range is not None:
        raise ConfigError(f"Invalid range: {value_range!r}")

    return MapTuple(
        source=parse_source(data["source"]),
        dest_type=dest_type,
        dest_number=parse_number(data.get("number", 0)),
        value_from=None if value_from is None else parse_number(value_from),
        value_to=None if value_to is None else parse_number(value_to),
    )


def load_config(path: Path) -> Config:
    """Load configuration from a YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    # Expand environment variables
    raw = expand_env_vars_recursive(raw)

    ports_data = raw.get("ports") or {}
    if not isinstance(ports_data, dict):
        raise ConfigError(f"{path}: expected a mapping for 'ports'")
    ports = PortConfig(
        input=ports_data.get("input"),
        output=ports_data.get("output"),
        virtual=ports_data.get("virtual"),
        raw=ports_data.get("raw"),
    )

    mappings = [parse_mapping(entry) for entry in raw.get("mappings") or []]

    return Config(ports=ports, mappings=mappings)


def load_any(path: Path) -> Config:
    """Load a YAML config or, for any other suffix, a map file."""
    if path.suffix.lower() in YAML_SUFFIXES:
        return load_config(path)
    return Config(mappings=load_map_file(path))
