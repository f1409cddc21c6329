"""
Rule configuration: which misuse categories are enabled and at what severity.

The on-disk format is a flat YAML mapping from category name to a setting:

    IndexedLoopWithoutIndexUse: error
    map-for-side-effect-only: off
    ForEachBuildingCollection:
      enabled: true
      severity: info

A value may be a severity name, a boolean, "on"/"off", or a mapping with
`enabled` and/or `severity`. Categories left out keep their defaults
(enabled, warning). Configuration is built once per run and is immutable.

Usage:
    config = load_config("iterlint.yaml")      # raises ConfigError on bad config
    config = config.with_disabled(["MapForSideEffectOnly"])
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

import yaml

from iterlint.errors import ConfigError

# Category names in matcher priority order.
CATEGORIES: tuple[str, ...] = (
    "IndexedLoopWithoutIndexUse",
    "MapForSideEffectOnly",
    "ForEachBuildingCollection",
    "ForEachWithFilterConditional",
    "AccumulatorPatternManual",
)

_OFF_WORDS = frozenset({"off", "false", "disabled", "no"})
_ON_WORDS = frozenset({"on", "true", "enabled", "yes"})
_SETTING_KEYS = frozenset({"enabled", "severity"})


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str) -> Severity:
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ConfigError(f"Unknown severity '{value}' (expected one of: {allowed})") from None


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.ERROR: 2}


def _category_key(name: str) -> str:
    return name.replace("-", "").replace("_", "").lower()


_CATEGORY_LOOKUP = {_category_key(c): c for c in CATEGORIES}


def normalize_category(name: str) -> str:
    """
    Return the canonical category name for CamelCase, kebab-case or
    snake_case spellings. Raises ConfigError for unknown names.
    """
    canonical = _CATEGORY_LOOKUP.get(_category_key(str(name).strip()))
    if canonical is None:
        raise ConfigError(
            f"Unknown category '{name}'. Known categories: {', '.join(CATEGORIES)}"
        )
    return canonical


@dataclass(frozen=True)
class RuleSetting:
    enabled: bool = True
    severity: Severity = Severity.WARNING


@dataclass(frozen=True)
class RuleConfig:
    """Immutable mapping category -> RuleSetting covering every known category."""

    settings: Mapping[str, RuleSetting] = field(default_factory=dict)

    def __post_init__(self) -> None:
        merged = {c: RuleSetting() for c in CATEGORIES}
        for name, setting in dict(self.settings).items():
            merged[normalize_category(name)] = setting
        object.__setattr__(self, "settings", MappingProxyType(merged))

    @classmethod
    def default(cls) -> RuleConfig:
        return cls()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RuleConfig:
        """Build a config from the flat key-value document described above."""
        settings: dict[str, RuleSetting] = {}
        for name, value in raw.items():
            category = normalize_category(name)
            settings[category] = _parse_setting(category, value)
        return cls(settings)

    def setting(self, category: str) -> RuleSetting:
        return self.settings[normalize_category(category)]

    def is_enabled(self, category: str) -> bool:
        return self.setting(category).enabled

    def severity_for(self, category: str) -> Severity:
        return self.setting(category).severity

    def enabled_categories(self) -> list[str]:
        return [c for c in CATEGORIES if self.settings[c].enabled]

    def with_disabled(self, categories: Iterable[str]) -> RuleConfig:
        """Return a copy with the given categories disabled."""
        settings = dict(self.settings)
        for name in categories:
            category = normalize_category(name)
            settings[category] = replace(settings[category], enabled=False)
        return RuleConfig(settings)


def _parse_setting(category: str, value: Any) -> RuleSetting:
    if value is None:
        return RuleSetting()
    if isinstance(value, bool):
        return RuleSetting(enabled=value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _OFF_WORDS:
            return RuleSetting(enabled=False)
        if word in _ON_WORDS:
            return RuleSetting()
        return RuleSetting(severity=Severity.parse(word))
    if isinstance(value, Mapping):
        unknown = set(value) - _SETTING_KEYS
        if unknown:
            raise ConfigError(
                f"'{category}': unknown key(s) {', '.join(sorted(map(str, unknown)))}"
            )
        enabled = value.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigError(f"'{category}.enabled' must be true or false, got {enabled!r}")
        severity = value.get("severity")
        return RuleSetting(
            enabled=enabled,
            severity=Severity.parse(severity) if severity is not None else Severity.WARNING,
        )
    raise ConfigError(f"'{category}': unsupported setting {value!r}")


def get_default_config() -> RuleConfig:
    """Configuration used when no config file is given: everything on, at warning."""
    return RuleConfig.default()


def load_config(config_path: Union[str, Path]) -> RuleConfig:
    """
    Load and validate a rule configuration from a YAML file.

    Raises:
        ConfigError: if the file is missing, malformed, not a mapping, or
                     names an unknown category or severity.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: '{config_path}'")

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        return RuleConfig.default()
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")
    return RuleConfig.from_mapping(raw)
