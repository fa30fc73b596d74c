from __future__ import annotations

import importlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Dict

from .errors import ConfigurationError, PredicateFault
from .loader import build_validator, load_config, load_record

DEFAULT_RULES = "rules.yaml"


def _emit_json(obj: dict, json_out: bool, out_path: str | None) -> None:
    s = json.dumps(obj, ensure_ascii=False, indent=2)

    if json_out:
        print(s)

    if out_path:
        p = Path(out_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(s, encoding="utf-8")


def load_predicates(ref: str | None) -> Dict[str, Callable[..., Any]]:
    """Import a predicate registry given as "package.module:NAME"."""
    if not ref:
        return {}
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"--predicates must look like module:attr, got {ref!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import predicates module {module_name!r}: {e}") from e
    registry = getattr(module, attr, None)
    if not isinstance(registry, Mapping):
        raise ConfigurationError(f"{ref} must be a mapping of name to predicate")
    return dict(registry)


def cmd_validate(
    rules_path: str,
    record_path: str,
    json_out: bool,
    out_path: str | None,
    predicates_ref: str | None = None,
) -> int:
    try:
        predicates = load_predicates(predicates_ref)
        validator = build_validator(load_config(rules_path), predicates=predicates)
        record = load_record(record_path)
    except (ConfigurationError, OSError) as e:
        print(f"CONFIG ERROR: {e}")
        return 1

    try:
        result = validator.validate(record)
    except PredicateFault as e:
        print(f"RULE ERROR: {e}")
        return 1

    rep = result.to_dict()
    rep["record"] = record_path

    _emit_json(rep, json_out=json_out, out_path=out_path)

    if not json_out:
        if rep["ok"]:
            print("OK: record valid")
        else:
            print(
                f"FAIL: {rep['summary']['errors']} errors, {rep['summary']['warnings']} warnings"
            )
            for f in result.failures:
                print(f"  [{f.severity}] {f.field_name}: {f.message}")

    return 0 if rep["ok"] else 2
