"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import TagsortConfig

ENV_PREFIX = "TAGSORT__"


def resolve_with_precedence(
    *,
    defaults: TagsortConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> TagsortConfig:
    """Layer override sources over ``defaults`` and validate the result.

    Later sources win: defaults < file < environment < CLI. Keys may be nested
    mappings or dotted paths such as ``scheduler.interval_seconds``.

    Raises:
        ConfigError: If a source is malformed or the merged values fail validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for source_name, source in layers:
        if source is not None:
            merged = _merge(merged, expand_dotted(source, source_name=source_name))

    try:
        return TagsortConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: TagsortConfig) -> Dict[str, str]:
    """Render the config as `TAGSORT__SECTION__KEY` environment variable mappings."""
    flat: Dict[str, str] = {}
    for path, value in _leaves(config.model_dump(mode="python"), []):
        key = ENV_PREFIX + "__".join(part.upper() for part in path)
        if isinstance(value, list):
            flat[key] = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            flat[key] = "null" if value is None else str(value)
    return flat


def parse_env(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect `TAGSORT__`-prefixed variables into a nested override mapping."""
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX) or len(key) == len(ENV_PREFIX):
            continue
        try:
            value: Any = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__")]
        assign_path(overrides, segments, value, source_name="environment")
    return overrides


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        assign_path(expanded, key.split("."), value, source_name=source_name)
    return expanded


def assign_path(
    target: dict[str, Any], path: list[str], value: Any, *, source_name: str = "cli"
) -> None:
    """Assign ``value`` at ``path`` inside ``target``, creating mappings on the way.

    Raises:
        ConfigError: If an intermediate segment already holds a non-mapping value.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = _merge(node[leaf], value)
    else:
        node[leaf] = value


def _leaves(data: Mapping[str, Any], prefix: list[str]) -> Iterable[tuple[list[str], Any]]:
    for key, value in data.items():
        if isinstance(value, MappingABC):
            yield from _leaves(value, prefix + [str(key)])
        else:
            yield prefix + [str(key)], value


def _merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "ENV_PREFIX",
    "assign_path",
    "expand_dotted",
    "flatten_for_env",
    "parse_env",
    "resolve_with_precedence",
]
