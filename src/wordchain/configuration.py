"""
Configuration loading utilities for wordchain.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

import yaml

from .models import SymbolConfiguration


def _parse_scalar(value: str) -> object:
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in {"null", "none"}:
        return None
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def parse_override_value(raw: str) -> object:
    """
    Parse a command-line override string into a Python value.

    JSON lists and objects are decoded, so ``end_symbols=[".", "!"]`` yields a list.

    :param raw: Raw override string.
    :type raw: str
    :return: Parsed value.
    :rtype: object
    """
    raw = str(raw)
    stripped = raw.strip()
    if not stripped:
        return ""
    if stripped[0] in {"{", "["}:
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return raw
    return _parse_scalar(stripped)


def parse_overrides(pairs: Optional[List[str]]) -> Dict[str, object]:
    """
    Parse repeated key=value pairs into an override mapping.

    :param pairs: Repeated command-line pairs.
    :type pairs: list[str] or None
    :return: Override mapping.
    :rtype: dict[str, object]
    :raises ValueError: If a pair is not key=value.
    """
    overrides: Dict[str, object] = {}
    for item in pairs or []:
        if "=" not in item:
            raise ValueError(f"Config values must be key=value (got {item!r})")
        key, raw = item.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Config keys must be non-empty")
        overrides[key] = parse_override_value(raw)
    return overrides


def load_configuration_mapping(path: Union[str, Path]) -> Dict[str, object]:
    """
    Load a YAML configuration file that must contain a mapping.

    An empty file yields an empty mapping.

    :param path: Configuration file path.
    :type path: str or Path
    :return: Parsed mapping.
    :rtype: dict[str, object]
    :raises FileNotFoundError: If the file is missing.
    :raises ValueError: If the file is not a mapping or is not valid YAML.
    """
    candidate = Path(path)
    if not candidate.is_file():
        raise FileNotFoundError(f"Configuration file not found: {candidate}")
    try:
        data = yaml.safe_load(candidate.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Configuration file is not valid YAML: {candidate}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must be a mapping/object: {candidate}")
    return data


def load_symbol_configuration(
    path: Optional[Union[str, Path]] = None,
    *,
    overrides: Optional[Mapping[str, object]] = None,
) -> SymbolConfiguration:
    """
    Build a symbol configuration from an optional YAML file and key=value overrides.

    Keys left out of the file keep their default symbol sets.

    :param path: Optional YAML configuration path.
    :type path: str or Path or None
    :param overrides: Optional top-level overrides applied after the file.
    :type overrides: Mapping[str, object] or None
    :return: Validated symbol configuration.
    :rtype: SymbolConfiguration
    :raises pydantic.ValidationError: If the configuration values are invalid.
    """
    base: Dict[str, object] = load_configuration_mapping(path) if path is not None else {}
    if overrides:
        base = {**base, **overrides}
    return SymbolConfiguration.model_validate(base)
