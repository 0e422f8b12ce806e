"""Configuration types with environment variable support.

All settings can be configured via environment variables with the DNSTRIE_
prefix. Example: DNSTRIE_WILDCARD=true enables wildcard matching.

Settings can also come from a YAML or TOML file passed to dfilter with
--config. Command line flags take precedence over the file, which takes
precedence over the environment.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnstrie.validation import ValidationMode


CONFIG_SECTION = "dfilter"


def _parse_yaml(content: str) -> Any:
    try:
        return yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML: {e}") from e


def _parse_toml(content: str) -> Any:
    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML: {e}") from e


_PARSERS = {".yaml": _parse_yaml, ".yml": _parse_yaml, ".toml": _parse_toml}


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML or TOML config file into a mapping.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the file can't be decoded or parsed, has an
            unsupported extension, or doesn't hold a mapping at the top level
    """
    path = Path(path)
    parser = _PARSERS.get(path.suffix.lower())
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if parser is None:
        raise ValueError(f"Unsupported config format: {path.suffix}")

    try:
        content = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Config file encoding error in {path}: {e}") from e

    try:
        data = parser(content)
    except ValueError as e:
        raise ValueError(f"{e} ({path})") from e
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must hold a mapping of settings")
    return data


def flatten_config(config: dict[str, Any], section: str = CONFIG_SECTION) -> dict[str, Any]:
    """Merge the settings of a [dfilter] section onto the top-level ones.

    Settings may sit at the top level of the file or inside a single
    section named after the command; keys in the section win. Any other
    table is an error, since FilterConfig would silently ignore its keys.

    Examples:
        >>> flatten_config({"wildcard": True, "dfilter": {"invert": True}})
        {'wildcard': True, 'invert': True}
    """
    settings: dict[str, Any] = {}
    nested: dict[str, Any] = {}
    for key, value in config.items():
        if isinstance(value, dict):
            if key != section:
                raise ValueError(f"Unknown config section: {key!r}")
            nested = value
        else:
            settings[key] = value

    for key, value in nested.items():
        if isinstance(value, dict):
            raise ValueError(f"Unknown config section: {section}.{key}")
        settings[key] = value
    return settings


class FilterConfig(BaseSettings):
    """Settings for the dfilter command.

    All settings can be overridden via environment variables:
    - DNSTRIE_MATCH_FILE: File of domain patterns, one per line
    - DNSTRIE_WILDCARD: Accept zone wildcard matches
    - DNSTRIE_INVERT: Print lines that do not match
    - DNSTRIE_VALIDATE_MODE: none, valid, possible or registerable
    - etc.
    """

    model_config = SettingsConfigDict(
        env_prefix="DNSTRIE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    match_file: str | None = Field(
        default=None,
        description="File of domain patterns, one per line.",
    )
    wildcard: bool = Field(
        default=False,
        description="Accept zone wildcard matches (*.zone, +.zone).",
    )
    invert: bool = Field(
        default=False,
        description="Print lines that do not match instead of those that do.",
    )
    validate_mode: ValidationMode = Field(
        default=ValidationMode.NONE,
        description="Check patterns and queries must pass before matching.",
    )
    normalize: bool = Field(
        default=False,
        description="Trim, lowercase and punycode patterns and queries.",
    )
    strict: bool = Field(
        default=False,
        description="Fail on the first invalid pattern instead of skipping it.",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Log level: debug, info, warning or error.",
    )
