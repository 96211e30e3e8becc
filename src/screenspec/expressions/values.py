"""JSON value semantics shared by the evaluator and the state store."""

import math
from typing import Any

from ..core.json import safe_json_dumps

NAN = float("nan")


def is_number(value: Any) -> bool:
    """Numbers are ints and floats; booleans are not."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def json_equal(a: Any, b: Any) -> bool:
    """
    Type-strict JSON equality.

    `1 == 1.0` holds, `True == 1` does not, containers compare element-wise.
    """
    if is_number(a) and is_number(b):
        return a == b
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(json_equal(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() == b.keys() and all(json_equal(a[k], b[k]) for k in a)
    if type(a) is not type(b):
        return False
    return a == b


def truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return value != 0 and not math.isnan(value)
    if isinstance(value, (str, list, dict)):
        return len(value) > 0
    return True


def format_number(value: int | float) -> str:
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def stringify(value: Any) -> str:
    """
    Deterministic string form used by template interpolation.

    None renders empty, booleans as `true`/`false`, integral floats drop `.0`,
    containers render as compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    return safe_json_dumps(value)


def normalize_number(value: float) -> int | float:
    """Collapse integral float results back to int so `10 / 5` stores as 2."""
    if isinstance(value, float) and value.is_integer() and not math.isinf(value):
        return int(value)
    return value
