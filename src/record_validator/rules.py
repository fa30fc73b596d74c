from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import RULES, SEVERITIES, ConfigurationError, PredicateFault
from .formatter import build_context, format_message, value_length

logger = logging.getLogger(__name__)

Predicate = Callable[[Any], bool]
Guard = Callable[[Mapping[str, Any]], bool]

CONTINUE = "continue"
STOP = "stop"
CASCADE_MODES = (CONTINUE, STOP)


@dataclass(frozen=True)
class ValidationFailure:
    field_name: str
    message: str
    rule: str = ""
    severity: str = "ERROR"  # "ERROR" | "WARN"
    attempted_value: Any = None


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Predicate
    message_template: str
    guard: Optional[Guard] = None
    params: Tuple[Tuple[str, Any], ...] = ()
    severity: str = "ERROR"
    stop_on_failure: bool = False

    def evaluate(
        self, field_name: str, record: Mapping[str, Any]
    ) -> Optional[ValidationFailure]:
        if self.guard is not None:
            try:
                applies = self.guard(record)
            except Exception as e:
                raise PredicateFault(field_name, self.name, e) from e
            if not applies:
                logger.debug("skip %s.%s: guard is false", field_name, self.name)
                return None

        value = record.get(field_name)
        try:
            passed = self.predicate(value)
        except Exception as e:
            raise PredicateFault(field_name, self.name, e) from e
        if passed:
            return None

        ctx = build_context(field_name, value, dict(self.params))
        return ValidationFailure(
            field_name=field_name,
            message=format_message(self.message_template, ctx),
            rule=self.name,
            severity=self.severity,
            attempted_value=value,
        )


def _check_severity(severity: str) -> str:
    if severity not in SEVERITIES:
        raise ConfigurationError(
            f"severity must be one of {SEVERITIES}, got {severity!r}"
        )
    return severity


def _check_bound(name: str, v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ConfigurationError(f"{name} must be an integer, got {v!r}")
    if v < 0:
        raise ConfigurationError(f"{name} must not be negative, got {v}")
    return v


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return len(value) == 0
    except TypeError:
        return False


def _make(
    rule: str,
    predicate: Predicate,
    message: str | None,
    guard: Guard | None,
    severity: str | None,
    params: Dict[str, Any] | None = None,
    stop_on_failure: bool = False,
) -> Rule:
    if guard is not None and not callable(guard):
        raise ConfigurationError(f"guard for {rule} must be callable")
    return Rule(
        name=rule,
        predicate=predicate,
        message_template=message if message is not None else RULES[rule]["message"],
        guard=guard,
        params=tuple((params or {}).items()),
        severity=RULES[rule]["severity"] if severity is None else _check_severity(severity),
        stop_on_failure=stop_on_failure,
    )


def not_empty(
    message: str | None = None,
    guard: Guard | None = None,
    severity: str | None = None,
) -> Rule:
    # failure ends the remaining rules of the field
    return _make(
        "not_empty",
        lambda v: not _is_empty(v),
        message,
        guard,
        severity,
        stop_on_failure=True,
    )


def length_between(
    min_len: int,
    max_len: int,
    message: str | None = None,
    guard: Guard | None = None,
    severity: str | None = None,
) -> Rule:
    lo = _check_bound("min", min_len)
    hi = _check_bound("max", max_len)
    if lo > hi:
        raise ConfigurationError(f"min ({lo}) must not be greater than max ({hi})")
    return _make(
        "length_between",
        lambda v: lo <= value_length(v) <= hi,
        message,
        guard,
        severity,
        params={"MinLength": lo, "MaxLength": hi},
    )


def min_length(
    n: int,
    message: str | None = None,
    guard: Guard | None = None,
    severity: str | None = None,
) -> Rule:
    lo = _check_bound("min", n)
    return _make(
        "min_length",
        lambda v: value_length(v) >= lo,
        message,
        guard,
        severity,
        params={"MinLength": lo},
    )


def max_length(
    n: int,
    message: str | None = None,
    guard: Guard | None = None,
    severity: str | None = None,
) -> Rule:
    hi = _check_bound("max", n)
    return _make(
        "max_length",
        lambda v: value_length(v) <= hi,
        message,
        guard,
        severity,
        params={"MaxLength": hi},
    )


def must_satisfy(
    predicate: Predicate,
    message: str | None = None,
    guard: Guard | None = None,
    severity: str | None = None,
) -> Rule:
    if not callable(predicate):
        raise ConfigurationError(f"predicate must be callable, got {predicate!r}")
    return _make("must_satisfy", predicate, message, guard, severity)


def has_value(field_name: str) -> Guard:
    """Guard that holds when the record carries a non-None value for field_name."""

    def guard(record: Mapping[str, Any]) -> bool:
        return record.get(field_name) is not None

    guard.__name__ = f"has_value({field_name})"
    return guard


@dataclass(frozen=True)
class RuleSet:
    field_name: str
    rules: Tuple[Rule, ...] = ()
    cascade: str = CONTINUE

    def __post_init__(self) -> None:
        if not isinstance(self.field_name, str) or not self.field_name:
            raise ConfigurationError("field_name must be a non-empty string")
        if self.cascade not in CASCADE_MODES:
            raise ConfigurationError(
                f"cascade must be one of {CASCADE_MODES}, got {self.cascade!r}"
            )
        object.__setattr__(self, "rules", tuple(self.rules))

    def evaluate(self, record: Mapping[str, Any]) -> List[ValidationFailure]:
        failures: List[ValidationFailure] = []
        for rule in self.rules:
            f = rule.evaluate(self.field_name, record)
            if f is None:
                continue
            failures.append(f)
            if self.cascade == STOP or rule.stop_on_failure:
                break
        return failures


@dataclass(frozen=True)
class RuleBuilder:
    """
    Immutable chain for declaring the rules of one field:

        rule_for("Title").not_empty().length(3, 100).with_message("...").build()

    Every call returns a new builder. with_message/with_severity change the
    last declared rule; when() guards every earlier rule that has no guard yet.
    """

    field_name: str
    rules: Tuple[Rule, ...] = ()
    cascade_mode: str = CONTINUE

    def _add(self, rule: Rule) -> "RuleBuilder":
        return replace(self, rules=self.rules + (rule,))

    def _replace_last(self, **changes: Any) -> "RuleBuilder":
        if not self.rules:
            raise ConfigurationError(
                f"no rule declared for '{self.field_name}' to apply {sorted(changes)} to"
            )
        last = replace(self.rules[-1], **changes)
        return replace(self, rules=self.rules[:-1] + (last,))

    def not_empty(self) -> "RuleBuilder":
        return self._add(not_empty())

    def length(self, min_len: int, max_len: int) -> "RuleBuilder":
        return self._add(length_between(min_len, max_len))

    def min_length(self, n: int) -> "RuleBuilder":
        return self._add(min_length(n))

    def max_length(self, n: int) -> "RuleBuilder":
        return self._add(max_length(n))

    def must(self, predicate: Predicate) -> "RuleBuilder":
        return self._add(must_satisfy(predicate))

    def with_message(self, template: str) -> "RuleBuilder":
        return self._replace_last(message_template=template)

    def with_severity(self, severity: str) -> "RuleBuilder":
        return self._replace_last(severity=_check_severity(severity))

    def when(self, guard: Guard) -> "RuleBuilder":
        if not callable(guard):
            raise ConfigurationError("guard must be callable")
        guarded = tuple(
            r if r.guard is not None else replace(r, guard=guard) for r in self.rules
        )
        return replace(self, rules=guarded)

    def cascade(self, mode: str) -> "RuleBuilder":
        return replace(self, cascade_mode=mode)

    def build(self) -> RuleSet:
        return RuleSet(self.field_name, self.rules, self.cascade_mode)


def rule_for(field_name: str) -> RuleBuilder:
    return RuleBuilder(field_name)
