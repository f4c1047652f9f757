# Copyright 2026 icecake0141
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

"""
Config file support for WebDash.

This module loads the website list and persistent settings from a config file
(``websites.yaml`` in the working directory by default). Supports both YAML
and INI formats.

Priority order: CLI args > config file > hardcoded defaults
"""

import configparser
import logging
import os
from typing import Any, Dict, List, Optional

from webdash.models import Host

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "websites.yaml"

# Mapping of config field names to their expected Python types
_CONFIG_FIELD_TYPES: Dict[str, type] = {
    "ping_count": int,
    "ping_timeout": float,
    "fetch_timeout": float,
    "fetch_deadline": float,
    "max_redirects": int,
    "color": bool,
    "clear_screen": bool,
    "log_level": str,
    "log_file": str,
}

_BOOL_TRUE_VALUES = frozenset(("true", "yes", "1", "on"))
_BOOL_FALSE_VALUES = frozenset(("false", "no", "0", "off"))


def _parse_bool(value: str) -> bool:
    """Parse a boolean value from a string representation."""
    lower = value.lower()
    if lower in _BOOL_TRUE_VALUES:
        return True
    if lower in _BOOL_FALSE_VALUES:
        return False
    raise ValueError(f"Cannot parse '{value}' as a boolean. Use true/false, yes/no, 1/0, or on/off.")


def _coerce_field(key: str, raw_value: Any) -> Any:
    """Coerce a raw value for a known config field to its declared type."""
    field_type = _CONFIG_FIELD_TYPES[key]
    if isinstance(raw_value, field_type) and not (field_type is not bool and isinstance(raw_value, bool)):
        return raw_value
    try:
        if field_type is bool:
            return _parse_bool(str(raw_value))
        if isinstance(raw_value, bool):
            raise TypeError("boolean given for a numeric or text field")
        return field_type(raw_value)
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Invalid value for config field '{key}': expected {field_type.__name__}, got {raw_value!r}") from exc


def _build_host(name: Any, url: Any, path: str) -> Host:
    url_text = str(url).strip() if url is not None else ""
    if not url_text:
        raise ValueError(f"Website entry {name!r} in '{path}' has no url.")
    name_text = str(name).strip() if name is not None else ""
    return Host(name=name_text or url_text, url=url_text)


def load_ini_config(path: str) -> Dict[str, Any]:
    """
    Load and parse an INI-format config file.

    The ``[default]`` section holds settings. The ``[websites]`` section holds
    ``name = url`` lines; a bare URL line (no ``=``) uses the URL as the name.

    Args:
        path: Path to the INI config file.

    Returns:
        Dictionary of config values, with hosts under ``"websites"``.

    Raises:
        ValueError: On parse errors or invalid field values.
    """
    # Only "=" delimits, since URLs contain ":".
    parser = configparser.ConfigParser(allow_no_value=True, delimiters=("=",), interpolation=None)
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        read_files = parser.read(path, encoding="utf-8")
    except configparser.Error as exc:
        raise ValueError(f"Invalid config file '{path}': {exc}") from exc

    if not read_files:
        raise ValueError(f"Config file '{path}' could not be read.")

    result: Dict[str, Any] = {}

    if parser.has_section("default"):
        for key, raw_value in parser.items("default"):
            key = key.lower()
            if key not in _CONFIG_FIELD_TYPES:
                logger.warning("Unknown config key '%s' in [default] section of '%s'; ignoring.", key, path)
                continue
            if raw_value is None:
                logger.warning("Config key '%s' has no value in '%s'; ignoring.", key, path)
                continue
            result[key] = _coerce_field(key, raw_value)

    if parser.has_section("websites"):
        websites: List[Host] = []
        for key, value in parser.items("websites"):
            if value is None or not value.strip():
                # Bare line: the "key" itself is the URL
                websites.append(_build_host(key, key, path))
            else:
                websites.append(_build_host(key, value, path))
        if websites:
            result["websites"] = websites

    return result


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load and parse a YAML-format config file.

    Requires PyYAML (``pip install pyyaml``).  Uses ``yaml.safe_load`` to
    prevent arbitrary code execution.

    Expected layout::

        websites:
          - name: Example
            url: https://example.com
        default:
          fetch_timeout: 10

    Args:
        path: Path to the YAML config file.

    Returns:
        Dictionary of config values, with hosts under ``"websites"``.

    Raises:
        ImportError: If PyYAML is not installed.
        ValueError: On parse errors or invalid file content.
    """
    try:
        import yaml  # type: ignore[import-untyped]  # pylint: disable=import-outside-toplevel
    except ImportError as exc:
        raise ImportError("PyYAML is required for YAML config files. Install it with: pip install pyyaml") from exc

    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in config file '{path}': {exc}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config file '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file '{path}' must contain a YAML mapping at the top level, got {type(data).__name__}.")

    result: Dict[str, Any] = {}

    default_section = data.get("default") or {}
    if not isinstance(default_section, dict):
        raise ValueError(f"The 'default' section in '{path}' must be a YAML mapping.")
    for key, value in default_section.items():
        if key not in _CONFIG_FIELD_TYPES:
            logger.warning("Unknown config key '%s' in 'default' section of '%s'; ignoring.", key, path)
            continue
        if value is None:
            continue
        result[key] = _coerce_field(key, value)

    websites_section = data.get("websites")
    if websites_section is not None:
        if not isinstance(websites_section, list):
            raise ValueError(f"The 'websites' section in '{path}' must be a YAML list.")
        websites: List[Host] = []
        for entry in websites_section:
            if isinstance(entry, dict):
                websites.append(_build_host(entry.get("name"), entry.get("url"), path))
            elif isinstance(entry, str):
                websites.append(_build_host(entry, entry, path))
            elif entry is not None:
                raise ValueError(f"Website entries in '{path}' must be mappings with name and url, got {entry!r}.")
        if websites:
            result["websites"] = websites

    return result


def _is_yaml_file(path: str) -> bool:
    """
    Heuristically determine whether a config file uses YAML or INI format.

    INI files begin with a ``[section]`` header on the first non-blank,
    non-comment line.  Anything else is treated as YAML.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                stripped = line.strip()
                if stripped and not stripped.startswith("#"):
                    return not stripped.startswith("[")
    except OSError:
        pass
    return False


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load websites and persistent settings from a config file.

    Auto-detects whether the file uses YAML or INI format.
    Returns an empty dict if the config file does not exist.

    Args:
        path: Path to the config file.  Defaults to ``websites.yaml``.

    Returns:
        Dictionary of config values.

    Raises:
        ValueError: If the file exists but cannot be parsed.
        ImportError: If a YAML file is found but PyYAML is not installed.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
    path = os.path.expanduser(path)

    if not os.path.exists(path):
        logger.debug("Config file '%s' not found; using defaults.", path)
        return {}

    if _is_yaml_file(path):
        logger.debug("Loading YAML config from '%s'.", path)
        return load_yaml_config(path)

    logger.debug("Loading INI config from '%s'.", path)
    return load_ini_config(path)
