"""Internal-project mapping: the admin-configured rule set for the classifier.

The mapping is exchanged as ``{"projects": [...], "tokens": [...]}``. Older
settings exports carry a ``rules`` list instead; both shapes are merged into
a single immutable ClassificationMapping that is passed explicitly into
every classification call.

Rule entries (``rules`` format):
    {"type": "leistungsart_prefix", "op": "include"|"exclude", "value": "N"}
    {"type": "code_exact", "value": "PROJ123"}
    {"type": "token_substring", "value": "FOO"}
    {"type": "legacy_int_prefix"}
    {"type": "legacy_int_token"}
Every entry may carry ``"enabled": false`` to switch it off.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_EXCLUSION_PREFIXES = ("J",)  # absence / leave
DEFAULT_INTERNAL_PREFIXES = ("N",)  # non-billable service type
LEGACY_PREFIX = "INT"


class ConfigurationError(Exception):
    """Configuration file is invalid."""

    pass


def _canonical(values: Iterable[Any] | None) -> tuple[str, ...]:
    out: list[str] = []
    for value in values or ():
        text = str(value if value is not None else "").strip().upper()
        if text and text not in out:
            out.append(text)
    return tuple(out)


class ClassificationMapping(BaseModel):
    """Immutable rule set deciding which records count as internal work."""

    model_config = ConfigDict(frozen=True)

    projects: frozenset[str] = frozenset()
    tokens: tuple[str, ...] = ()
    exclusion_prefixes: tuple[str, ...] = DEFAULT_EXCLUSION_PREFIXES
    internal_prefixes: tuple[str, ...] = DEFAULT_INTERNAL_PREFIXES
    legacy_prefix: str = LEGACY_PREFIX
    legacy_prefix_enabled: bool = True
    legacy_token_enabled: bool = True

    @classmethod
    def build(
        cls,
        projects: Iterable[str] | None = None,
        tokens: Iterable[str] | None = None,
        **kwargs: Any,
    ) -> ClassificationMapping:
        """Create a mapping from raw project codes and tokens (case/space-normalized)."""
        return cls(
            projects=frozenset(_canonical(projects)),
            tokens=_canonical(tokens),
            **kwargs,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClassificationMapping:
        """Build a mapping from either exchange format.

        Unknown or malformed entries are ignored; an empty or missing mapping
        yields the defaults (J excluded, N internal, legacy INT detection on).
        """
        if not isinstance(data, Mapping):
            return cls()

        raw_projects = data.get("projects")
        raw_tokens = data.get("tokens")
        projects = list(_canonical(raw_projects if isinstance(raw_projects, list) else None))
        tokens = list(_canonical(raw_tokens if isinstance(raw_tokens, list) else None))
        exclusions = list(DEFAULT_EXCLUSION_PREFIXES)
        internals = list(DEFAULT_INTERNAL_PREFIXES)
        legacy_prefix_enabled = True
        legacy_token_enabled = True

        rules = data.get("rules")
        for rule in rules if isinstance(rules, list) else ():
            if not isinstance(rule, Mapping):
                continue
            enabled = rule.get("enabled", True) is not False
            rule_type = rule.get("type")
            value = str(rule.get("value") or "").strip().upper()

            if rule_type == "leistungsart_prefix" and value:
                target = exclusions if rule.get("op") == "exclude" else internals
                if enabled and value not in target:
                    target.append(value)
                elif not enabled and value in target:
                    target.remove(value)
            elif rule_type == "code_exact" and value:
                if enabled and value not in projects:
                    projects.append(value)
                elif not enabled and value in projects:
                    projects.remove(value)
            elif rule_type == "token_substring" and value:
                if enabled and value not in tokens:
                    tokens.append(value)
                elif not enabled and value in tokens:
                    tokens.remove(value)
            elif rule_type == "legacy_int_prefix":
                legacy_prefix_enabled = enabled
            elif rule_type == "legacy_int_token":
                legacy_token_enabled = enabled

        return cls(
            projects=frozenset(projects),
            tokens=tuple(tokens),
            exclusion_prefixes=tuple(exclusions),
            internal_prefixes=tuple(internals),
            legacy_prefix_enabled=legacy_prefix_enabled,
            legacy_token_enabled=legacy_token_enabled,
        )

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize to the ``{projects, tokens}`` exchange format."""
        return {"projects": sorted(self.projects), "tokens": list(self.tokens)}


def load_mapping(path: Path) -> ClassificationMapping:
    """Load the internal-project mapping from a JSON or YAML file.

    Args:
        path: Mapping file; a missing file means "no explicit rules"

    Returns:
        ClassificationMapping (defaults if the file does not exist)

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    data = read_settings_file(path)
    if data is None:
        return ClassificationMapping()
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Mapping file {path} must contain an object")
    mapping = ClassificationMapping.from_dict(data)
    logger.info(
        f"Loaded internal mapping from {path}: "
        f"{len(mapping.projects)} projects, {len(mapping.tokens)} tokens"
    )
    return mapping


def read_settings_file(path: Path) -> Any:
    """Read a JSON/YAML settings file; None if it does not exist."""
    if not path.exists():
        logger.debug(f"Settings file not found, using defaults: {path}")
        return None
    try:
        with path.open(encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid settings file {path}: {e}") from e
