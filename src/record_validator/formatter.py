from __future__ import annotations
import re
from collections.abc import Sized
from typing import Any, Dict, Mapping

_TOKEN = re.compile(r"\{(\w+)\}")


def format_message(template: str, context: Mapping[str, Any]) -> str:
    """
    Replace {Token} placeholders from context in one left-to-right pass.

    Tokens without a context entry stay as they are; substituted values are
    not scanned again, so a value containing "{X}" is inserted literally.
    """

    def sub(m: re.Match) -> str:
        key = m.group(1)
        if key not in context:
            return m.group(0)
        v = context[key]
        return "" if v is None else str(v)

    return _TOKEN.sub(sub, template)


def value_length(value: Any) -> int:
    """Length used by the length rules: None is 0, scalars count their text form."""
    if value is None:
        return 0
    if isinstance(value, Sized):
        return len(value)
    return len(str(value))


def build_context(
    field_name: str, value: Any, params: Mapping[str, Any] | None = None
) -> Dict[str, Any]:
    ctx: Dict[str, Any] = {
        "PropertyName": field_name,
        "PropertyValue": value,
        "TotalLength": value_length(value),
    }
    if params:
        ctx.update(params)
    return ctx
