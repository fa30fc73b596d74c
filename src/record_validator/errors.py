from __future__ import annotations
from typing import Any

RULES = {
    "not_empty": {
        "severity": "ERROR",
        "message": "'{PropertyName}' must not be empty.",
    },
    "length_between": {
        "severity": "ERROR",
        "message": "'{PropertyName}' must be between {MinLength} and {MaxLength} characters. "
        "You entered {TotalLength} characters.",
    },
    "min_length": {
        "severity": "ERROR",
        "message": "The length of '{PropertyName}' must be at least {MinLength} characters. "
        "You entered {TotalLength} characters.",
    },
    "max_length": {
        "severity": "ERROR",
        "message": "The length of '{PropertyName}' must be {MaxLength} characters or fewer. "
        "You entered {TotalLength} characters.",
    },
    "must_satisfy": {
        "severity": "ERROR",
        "message": "The specified condition was not met for '{PropertyName}'.",
    },
}

SEVERITIES = ("ERROR", "WARN")


class ConfigurationError(ValueError):
    """Rule or validator configured wrongly. Raised at build time, never during validate()."""


class PredicateFault(RuntimeError):
    def __init__(self, field_name: str, rule: str, original: BaseException):
        super().__init__(
            f"rule '{rule}' on field '{field_name}' raised "
            f"{type(original).__name__}: {original}"
        )
        self.field_name = field_name
        self.rule = rule


# validate_or_raise(): 실패가 있으면 예외처럼 동작시키고 싶을 때 사용
class ValidationError(Exception):
    def __init__(self, result: Any):
        super().__init__("Record validation failed")
        self.result = result
