"""
Value coercion shared by the evaluator, rule engine, validator and
template resolver.

Answers arrive as loosely typed JSON values (strings from text inputs,
lists of option ids from choice blocks, numbers from sliders). These
helpers give every component the same notion of "number", "text" and
"truthy" so a value compares, validates and renders consistently.
"""

import math
import re
from typing import Any, Optional, Union

Number = Union[int, float]

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INFINITY = {"infinity": math.inf, "+infinity": math.inf, "-infinity": -math.inf}


def tidy_number(value: Number) -> Number:
    """Collapse integral floats (5.0) to int so they print as 5."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_number(value: Any) -> Optional[Number]:
    """
    Parse a value as a number.

    Returns None when the value has no numeric reading (including NaN).
    Blank strings read as 0, booleans as 1/0, lists through their
    comma-joined text.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else value
    if isinstance(value, (list, tuple)):
        return to_number(to_text(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if text.lower() in _INFINITY:
            return _INFINITY[text.lower()]
        if _NUMBER_RE.match(text):
            return tidy_number(float(text))
    return None


def to_text(value: Any, separator: str = ",") -> str:
    """Render a value as display text. None renders as ''."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return str(tidy_number(value))
    if isinstance(value, (list, tuple)):
        # nested lists always join with a bare comma
        return separator.join(to_text(item) for item in value)
    return str(value)


def is_truthy(value: Any) -> bool:
    """
    Truthiness of an answer value.

    Empty lists and dicts count as present answers (truthy); only None,
    False, '', 0 and NaN are falsy.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return not (value == 0 or (isinstance(value, float) and math.isnan(value)))
    if isinstance(value, str):
        return value != ""
    return True
