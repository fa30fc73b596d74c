from __future__ import annotations
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import ConfigurationError, ValidationError
from .rules import RuleSet, ValidationFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    failures: Tuple[ValidationFailure, ...] = ()

    @property
    def is_valid(self) -> bool:
        return len(self.failures) == 0

    def errors_for(self, field_name: str) -> List[ValidationFailure]:
        return [f for f in self.failures if f.field_name == field_name]

    def to_dict(self) -> Dict[str, Any]:
        errors = [f for f in self.failures if f.severity == "ERROR"]
        warnings = [f for f in self.failures if f.severity == "WARN"]
        return {
            "ok": self.is_valid,
            "summary": {"errors": len(errors), "warnings": len(warnings)},
            "failures": [_failure_dict(f) for f in self.failures],
        }


def _failure_dict(f: ValidationFailure) -> Dict[str, Any]:
    d = asdict(f)
    v = d["attempted_value"]
    # report는 JSON으로 나가므로 date 등은 문자열로
    if not isinstance(v, (str, int, float, bool, type(None), list, dict)):
        d["attempted_value"] = str(v)
    return d


class Validator:
    """
    Runs every registered RuleSet against a record.

    Rule sets are frozen at construction, so one Validator can be shared
    across threads; validate() keeps no state between calls.
    """

    def __init__(
        self,
        rule_sets: Iterable[RuleSet],
        fields: Optional[Iterable[str]] = None,
    ):
        self._rule_sets: Tuple[RuleSet, ...] = tuple(rule_sets)
        for rs in self._rule_sets:
            if not isinstance(rs, RuleSet):
                raise ConfigurationError(f"expected RuleSet, got {type(rs).__name__}")

        self._fields = frozenset(fields) if fields is not None else None
        if self._fields is not None:
            unknown = [
                rs.field_name for rs in self._rule_sets if rs.field_name not in self._fields
            ]
            if unknown:
                raise ConfigurationError(
                    f"rules declared for unknown field(s): {', '.join(unknown)}"
                )

    @property
    def rule_sets(self) -> Tuple[RuleSet, ...]:
        return self._rule_sets

    def validate(self, record: Mapping[str, Any]) -> ValidationResult:
        if not isinstance(record, Mapping):
            raise TypeError(f"record must be a mapping, got {type(record).__name__}")

        failures: List[ValidationFailure] = []
        for rs in self._rule_sets:
            failures.extend(rs.evaluate(record))

        logger.debug(
            "validated %d field rule set(s): %d failure(s)",
            len(self._rule_sets),
            len(failures),
        )
        return ValidationResult(tuple(failures))

    def validate_or_raise(self, record: Mapping[str, Any]) -> ValidationResult:
        result = self.validate(record)
        if not result.is_valid:
            raise ValidationError(result)
        return result
