from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping

import yaml

from .errors import ConfigurationError
from .rules import (
    Guard,
    Rule,
    RuleSet,
    has_value,
    length_between,
    max_length,
    min_length,
    must_satisfy,
    not_empty,
)
from .validator import Validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "cascade": "continue",
    "fields": {},
    "schema": None,
}

RULE_OPTIONS = {
    "not_empty": set(),
    "length_between": {"min", "max"},
    "min_length": {"min"},
    "max_length": {"max"},
    "must_satisfy": {"predicate"},
}
COMMON_OPTIONS = {"rule", "message", "guard", "severity"}


def _read_yaml(path: str) -> Any:
    p = Path(path)
    try:
        return yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{path}: invalid YAML: {e}") from e


def load_config(path: str) -> Dict[str, Any]:
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top-level document must be a mapping")
    logger.info("loaded rule config %s (%d field(s))", path, len(data.get("fields") or {}))
    return data


def load_record(path: str) -> Dict[str, Any]:
    # JSON도 YAML의 부분집합이라 그대로 읽힌다
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: record must be a mapping")
    return data


def _merge_config(config: Mapping[str, Any]) -> Dict[str, Any]:
    unknown = set(config) - set(DEFAULT_CONFIG)
    if unknown:
        raise ConfigurationError(f"unknown top-level key(s): {sorted(unknown)}")
    c = DEFAULT_CONFIG.copy()
    c.update({k: v for k, v in config.items() if v is not None})
    return c


def _resolve(
    name: Any, predicates: Mapping[str, Callable[..., bool]], what: str
) -> Callable[..., bool]:
    if not isinstance(name, str) or name not in predicates:
        raise ConfigurationError(f"unknown {what}: {name!r}")
    return predicates[name]


def _resolve_guard(
    entry: Any, field_name: str, predicates: Mapping[str, Callable[..., bool]]
) -> Guard | None:
    if entry is None:
        return None
    if entry == "has_value":
        return has_value(field_name)
    return _resolve(entry, predicates, "guard")


def _build_rule(
    field_name: str,
    entry: Any,
    predicates: Mapping[str, Callable[..., bool]],
) -> Rule:
    if not isinstance(entry, dict) or "rule" not in entry:
        raise ConfigurationError(f"$.fields.{field_name}: each entry needs a 'rule' key")

    kind = entry["rule"]
    if not isinstance(kind, str) or kind not in RULE_OPTIONS:
        raise ConfigurationError(f"$.fields.{field_name}: unknown rule {kind!r}")

    extra = set(entry) - COMMON_OPTIONS - RULE_OPTIONS[kind]
    if extra:
        raise ConfigurationError(
            f"$.fields.{field_name}: unknown option(s) for {kind}: {sorted(extra)}"
        )
    missing = RULE_OPTIONS[kind] - set(entry)
    if missing:
        raise ConfigurationError(
            f"$.fields.{field_name}: {kind} requires {sorted(missing)}"
        )

    common = {
        "message": entry.get("message"),
        "guard": _resolve_guard(entry.get("guard"), field_name, predicates),
        "severity": entry.get("severity"),
    }
    if kind == "not_empty":
        return not_empty(**common)
    if kind == "length_between":
        return length_between(entry["min"], entry["max"], **common)
    if kind == "min_length":
        return min_length(entry["min"], **common)
    if kind == "max_length":
        return max_length(entry["max"], **common)
    return must_satisfy(_resolve(entry["predicate"], predicates, "predicate"), **common)


def build_validator(
    config: Mapping[str, Any],
    predicates: Mapping[str, Callable[..., bool]] | None = None,
) -> Validator:
    """
    Turn a rule config mapping into a Validator.

    config:
      cascade: continue | stop     (applies to every field)
      schema: [Title, ...]         (optional list of known field names)
      fields:
        Title:
          - {rule: not_empty}
          - {rule: length_between, min: 3, max: 100, message: "..."}

    Named predicates and guards are looked up in `predicates`; the guard
    name "has_value" is always available.
    """
    c = _merge_config(config)
    predicates = predicates or {}

    fields = c["fields"]
    if not isinstance(fields, dict):
        raise ConfigurationError("$.fields must be a mapping of field name to rule list")

    rule_sets: List[RuleSet] = []
    for field_name, entries in fields.items():
        if not isinstance(entries, list):
            raise ConfigurationError(f"$.fields.{field_name} must be a list of rules")
        rules = [_build_rule(str(field_name), s, predicates) for s in entries]
        rule_sets.append(RuleSet(str(field_name), tuple(rules), c["cascade"]))

    schema = c["schema"]
    if schema is not None and not isinstance(schema, list):
        raise ConfigurationError("$.schema must be a list of field names")

    return Validator(rule_sets, fields=schema)
