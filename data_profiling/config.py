"""Profiling configuration: built-in defaults merged with an optional YAML file.

The settings file mirrors the nested layout of ``DEFAULT_SETTINGS``. Any key
present in the file overrides the default; absent keys keep their default.
A missing file is not an error.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import yaml

from .errors import InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "profiling_settings.yml"

SCORE_LEVEL_NAMES = ("excellent", "good", "fair")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "quality_score_thresholds": {
        "excellent": {"max_missing_pct": 5, "max_critical_issues": 0},
        "good": {"max_missing_pct": 10, "max_critical_issues": 2},
        "fair": {"max_missing_pct": 20, "max_critical_issues": 5},
    },
    "missingness_thresholds": {
        "critical": 0,
        "high": 20,
        "moderate": 10,
    },
    "sentinel_detection": {
        "numeric_sentinels": [999, 9999, -999, -9999, -1, 99, 88, 77],
        "string_sentinels": [
            "NA",
            "N/A",
            "NULL",
            "UNKNOWN",
            "UNK",
            "MISSING",
            "NOT RECORDED",
        ],
        "min_frequency_pct": 1.0,
        "max_unique_for_detection": 50,
    },
    "identifier_columns": [
        "ACCOUNTNO",
        "MEDRECNO",
        "TRAUMANO",
        "account_number",
        "mrn",
        "trauma_no",
        "cisir_id",
    ],
    "identifier_patterns": [
        "_id$",
        "_no$",
        "^id_",
        "^accountno",
        "^medrecno",
        "^traumano",
    ],
    "display": {
        "top_n_categories": 15,
        "decimal_places": 2,
    },
    "type_inference": {
        "numeric_threshold": 0.90,
        "date_threshold": 0.80,
        "date_sample_size": 100,
        "date_formats": [
            "%Y-%m-%d",
            "%m/%d/%Y",
            "%m-%d-%Y",
            "%Y/%m/%d",
            "%d-%b-%Y",
            "%Y%m%d",
        ],
    },
    "issue_rules": {
        "high_cardinality_ratio": 0.90,
        "high_cardinality_min_rows": 50,
    },
}


# ---------------------------------------------------------------------------
# Typed, immutable view over the merged settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreLevel:
    max_missing_pct: float
    max_critical_issues: int


@dataclass(frozen=True)
class MissingnessThresholds:
    critical: float
    high: float
    moderate: float

    @classmethod
    def from_settings(cls, miss: Mapping[str, Any]) -> "MissingnessThresholds":
        return cls(
            critical=float(miss["critical"]),
            high=float(miss["high"]),
            moderate=float(miss["moderate"]),
        )


@dataclass(frozen=True)
class SentinelSettings:
    numeric_sentinels: Tuple[str, ...]
    string_sentinels: Tuple[str, ...]
    min_frequency_pct: float
    max_unique_for_detection: int

    @classmethod
    def from_settings(cls, sent: Mapping[str, Any]) -> "SentinelSettings":
        return cls(
            numeric_sentinels=_as_text_tuple(sent["numeric_sentinels"], "numeric_sentinels"),
            string_sentinels=_as_text_tuple(sent["string_sentinels"], "string_sentinels"),
            min_frequency_pct=float(sent["min_frequency_pct"]),
            max_unique_for_detection=int(sent["max_unique_for_detection"]),
        )


@dataclass(frozen=True)
class DisplaySettings:
    top_n_categories: int
    decimal_places: int

    @classmethod
    def from_settings(cls, disp: Mapping[str, Any]) -> "DisplaySettings":
        return cls(
            top_n_categories=int(disp["top_n_categories"]),
            decimal_places=int(disp["decimal_places"]),
        )


@dataclass(frozen=True)
class TypeInferenceSettings:
    numeric_threshold: float
    date_threshold: float
    date_sample_size: int
    date_formats: Tuple[str, ...]

    @classmethod
    def from_settings(cls, typ: Mapping[str, Any]) -> "TypeInferenceSettings":
        return cls(
            numeric_threshold=float(typ["numeric_threshold"]),
            date_threshold=float(typ["date_threshold"]),
            date_sample_size=int(typ["date_sample_size"]),
            date_formats=_as_text_tuple(typ["date_formats"], "date_formats"),
        )


@dataclass(frozen=True)
class IssueRuleSettings:
    high_cardinality_ratio: float
    high_cardinality_min_rows: int

    @classmethod
    def from_settings(cls, rules: Mapping[str, Any]) -> "IssueRuleSettings":
        return cls(
            high_cardinality_ratio=float(rules["high_cardinality_ratio"]),
            high_cardinality_min_rows=int(rules["high_cardinality_min_rows"]),
        )


def _score_levels(levels: Mapping[str, Any]) -> Dict[str, ScoreLevel]:
    unknown = set(levels) - set(SCORE_LEVEL_NAMES)
    if unknown:
        raise ValueError(f"Unknown quality score levels: {sorted(unknown)}")
    return {
        name: ScoreLevel(
            max_missing_pct=float(levels[name]["max_missing_pct"]),
            max_critical_issues=int(levels[name]["max_critical_issues"]),
        )
        for name in SCORE_LEVEL_NAMES
    }


def _from_defaults(key: str, build: Callable[..., Any]) -> Any:
    """Dataclass field whose default is built from ``DEFAULT_SETTINGS[key]``."""
    return field(default_factory=lambda: build(DEFAULT_SETTINGS[key]))


@dataclass(frozen=True)
class ProfilingConfig:
    """Immutable configuration shared by every profiling component.

    ``ProfilingConfig()`` is the built-in defaults; every field default is
    derived from ``DEFAULT_SETTINGS``.
    """

    quality_score_thresholds: Mapping[str, ScoreLevel] = _from_defaults(
        "quality_score_thresholds", _score_levels
    )
    missingness_thresholds: MissingnessThresholds = _from_defaults(
        "missingness_thresholds", MissingnessThresholds.from_settings
    )
    sentinel_detection: SentinelSettings = _from_defaults(
        "sentinel_detection", SentinelSettings.from_settings
    )
    identifier_columns: Tuple[str, ...] = _from_defaults(
        "identifier_columns", lambda v: _as_text_tuple(v, "identifier_columns")
    )
    identifier_patterns: Tuple[str, ...] = _from_defaults(
        "identifier_patterns", lambda v: _as_text_tuple(v, "identifier_patterns")
    )
    display: DisplaySettings = _from_defaults("display", DisplaySettings.from_settings)
    type_inference: TypeInferenceSettings = _from_defaults(
        "type_inference", TypeInferenceSettings.from_settings
    )
    issue_rules: IssueRuleSettings = _from_defaults("issue_rules", IssueRuleSettings.from_settings)

    @classmethod
    def from_dict(cls, settings: Mapping[str, Any]) -> "ProfilingConfig":
        """Build a config from a (possibly partial) nested settings mapping.

        ``settings`` is merged over ``DEFAULT_SETTINGS`` first, so callers may
        pass only the keys they want to change.
        """
        merged = merge_settings(DEFAULT_SETTINGS, settings)
        return cls(
            quality_score_thresholds=_score_levels(merged["quality_score_thresholds"]),
            missingness_thresholds=MissingnessThresholds.from_settings(
                merged["missingness_thresholds"]
            ),
            sentinel_detection=SentinelSettings.from_settings(merged["sentinel_detection"]),
            identifier_columns=_as_text_tuple(merged["identifier_columns"], "identifier_columns"),
            identifier_patterns=_as_text_tuple(merged["identifier_patterns"], "identifier_patterns"),
            display=DisplaySettings.from_settings(merged["display"]),
            type_inference=TypeInferenceSettings.from_settings(merged["type_inference"]),
            issue_rules=IssueRuleSettings.from_settings(merged["issue_rules"]),
        )


def _as_text_tuple(values: Any, key: str) -> Tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, (str, int, float)):
        values = [values]
    return tuple(_setting_text(v, key) for v in values)


def _setting_text(value: Any, key: str) -> str:
    # An unquoted YAML NULL / ~ loads as None; it is never a usable literal.
    if value is None:
        raise InvalidInput(
            f"{key} contains a null entry; quote it (e.g. \"NULL\") to use it as text"
        )
    # YAML and the defaults carry numeric sentinels as numbers; raw values are text.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def merge_settings(
    defaults: Mapping[str, Any], overrides: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """Recursively merge ``overrides`` over ``defaults`` into a new dict.

    Nested mappings are merged key by key; any other value (lists included)
    replaces the default outright. Neither input is modified.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(defaults))
    if not overrides:
        return merged
    for key, value in overrides.items():
        base = merged.get(key)
        if isinstance(base, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_settings(base, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_profiling_config(
    config_path: Optional[Union[str, Path]] = None,
) -> ProfilingConfig:
    """Load profiling settings from YAML, falling back to built-in defaults.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to a ``profiling_settings.yml`` file. When omitted,
        ``config/profiling_settings.yml`` under the working directory is tried.

    Returns
    -------
    ProfilingConfig
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not path.is_file():
        logger.info("Config file %s not found, using defaults.", path)
        return ProfilingConfig.from_dict({})

    logger.info("Loading profiling config from: %s", path)
    with path.open("r", encoding="utf-8") as fh:
        file_settings = yaml.safe_load(fh)

    if file_settings is None:
        file_settings = {}
    if not isinstance(file_settings, Mapping):
        raise InvalidInput(f"Config file {path} must contain a mapping at the top level")

    return ProfilingConfig.from_dict(file_settings)
