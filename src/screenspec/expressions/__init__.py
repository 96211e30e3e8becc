"""Binding expressions and `${...}` templates."""

from .evaluator import CompiledExpression, ExpressionEvaluator, interpolate
from .parser import ExpressionSyntaxError, parse_expression, split_template
from .values import is_number, json_equal, stringify, truthy

__all__ = [
    "CompiledExpression",
    "ExpressionEvaluator",
    "ExpressionSyntaxError",
    "interpolate",
    "parse_expression",
    "split_template",
    "is_number",
    "json_equal",
    "stringify",
    "truthy",
]
