"""Expression Evaluator - compiles and evaluates bindings against state snapshots."""

import operator
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.cache import LRUCache
from ..core.logging_config import get_logger
from .ast import (
    Binary,
    Call,
    Expr,
    ExprPart,
    Identifier,
    Index,
    Literal,
    Member,
    TemplatePart,
    Ternary,
    TextPart,
    Unary,
    references_paths,
)
from .parser import ExpressionSyntaxError, parse_expression, split_template
from .values import NAN, is_number, json_equal, normalize_number, stringify, truthy

logger = get_logger(__name__)

TEMPLATE = "template"
EXPRESSION = "expression"

PSEUDO_PROPERTIES = {"count", "isEmpty", "first", "last"}

_ARITHMETIC = {
    "-": operator.sub,
    "*": operator.mul,
}

_ORDERING = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class CompiledExpression:
    """
    Result of compiling a template or bare expression.

    A failed compilation keeps its error message and evaluates to the
    neutral value (empty string for templates, None for expressions).
    """

    source: str
    mode: str
    parts: tuple[TemplatePart, ...] = ()
    expr: Expr | None = None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def single_span(self) -> Expr | None:
        """The inner expression when the template is exactly one `${...}` span."""
        if self.mode == TEMPLATE and len(self.parts) == 1 and isinstance(self.parts[0], ExprPart):
            return self.parts[0].expr
        return None


class ExpressionEvaluator:
    """
    Evaluates `${...}` templates and bare expressions.

    Compilation is pure and cached per (mode, source). Evaluation never raises:
    undefined paths read as None, arithmetic on non-numbers yields NaN.

    Examples:
        >>> evaluator = ExpressionEvaluator()
        >>> evaluator.interpolate("${2 + 3}", {})
        '5'
        >>> evaluator.evaluate_expression("items.count", {"items": [1, 2]})
        2
    """

    def __init__(self, cache_size: int = 512) -> None:
        self._cache: LRUCache[CompiledExpression] = LRUCache(max_size=cache_size)
        self._reported: set[str] = set()

    @property
    def cache(self) -> LRUCache[CompiledExpression]:
        return self._cache

    def compile(self, source: str, mode: str | None = None) -> CompiledExpression:
        """
        Compile a template or bare expression.

        Args:
            source: Expression text
            mode: "template", "expression", or None to detect by the presence of `${`

        Returns:
            Compiled expression (possibly carrying a compile error)
        """
        if mode is None:
            mode = TEMPLATE if "${" in source else EXPRESSION

        key = f"{mode}\x00{source}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            if mode == TEMPLATE:
                compiled = CompiledExpression(source, mode, parts=tuple(split_template(source)))
            else:
                compiled = CompiledExpression(source, mode, expr=parse_expression(source.strip()))
        except ExpressionSyntaxError as e:
            compiled = CompiledExpression(source, mode, error=str(e))
            if key not in self._reported:
                self._reported.add(key)
                logger.warning("expression_compile_failed", source=source, mode=mode, error=str(e))

        self._cache.set(key, compiled)
        return compiled

    def evaluate(
        self,
        compiled: CompiledExpression,
        snapshot: Mapping[str, Any],
        locals: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Evaluate a compiled expression.

        Templates always produce a string; bare expressions produce a typed value.
        """
        scope = locals or {}
        if compiled.mode == TEMPLATE:
            if not compiled.is_valid:
                return ""
            return "".join(
                part.text if isinstance(part, TextPart) else stringify(self._eval(part.expr, snapshot, scope))
                for part in compiled.parts
            )
        if not compiled.is_valid or compiled.expr is None:
            return None
        return self._eval(compiled.expr, snapshot, scope)

    def interpolate(
        self, template: str, snapshot: Mapping[str, Any], locals: Mapping[str, Any] | None = None
    ) -> str:
        """Render a template such as `"Hello ${name}!"` to a string."""
        if "${" not in template:
            return template
        return self.evaluate(self.compile(template, TEMPLATE), snapshot, locals)

    def evaluate_expression(
        self, source: str, snapshot: Mapping[str, Any], locals: Mapping[str, Any] | None = None
    ) -> Any:
        """Evaluate a bare expression such as `(currentIndex + 1) % 3`."""
        return self.evaluate(self.compile(source, EXPRESSION), snapshot, locals)

    def evaluate_value(
        self, source: str, snapshot: Mapping[str, Any], locals: Mapping[str, Any] | None = None
    ) -> Any:
        """
        Evaluate an `$expr` payload to a typed value.

        - `"${count}"` yields the value itself, not its string form.
        - `"${count} + 1"` interpolates to `"4 + 1"`; when the interpolated text is
          pure literal arithmetic it is evaluated again (giving 5), otherwise the
          interpolated string is the value.
        - Text without `${` is a bare expression.
        """
        compiled = self.compile(source)
        if compiled.mode == EXPRESSION:
            return self.evaluate(compiled, snapshot, locals)
        if not compiled.is_valid:
            return None

        span = compiled.single_span
        if span is not None:
            return self._eval(span, snapshot, locals or {})

        text = self.evaluate(compiled, snapshot, locals)
        try:
            expr = parse_expression(text)
        except ExpressionSyntaxError:
            return text
        if references_paths(expr) or isinstance(expr, Literal):
            return text
        return self._eval(expr, {}, {})

    def evaluate_bool(
        self, source: str, snapshot: Mapping[str, Any], locals: Mapping[str, Any] | None = None
    ) -> bool:
        """Evaluate a predicate binding (`isToggled` or `${tags.contains('a')}`)."""
        value = self.evaluate_value(source, snapshot, locals)
        if isinstance(value, str):
            return value.strip().lower() not in ("", "false", "0")
        return truthy(value)

    # Evaluation

    def _eval(self, expr: Expr, snapshot: Mapping[str, Any], scope: Mapping[str, Any]) -> Any:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Identifier):
            if expr.name in scope:
                return scope[expr.name]
            return snapshot.get(expr.name) if isinstance(snapshot, Mapping) else None
        if isinstance(expr, Member):
            return self._member(self._eval(expr.target, snapshot, scope), expr.name)
        if isinstance(expr, Index):
            return self._index(
                self._eval(expr.target, snapshot, scope), self._eval(expr.index, snapshot, scope)
            )
        if isinstance(expr, Call):
            target = self._eval(expr.target, snapshot, scope)
            args = [self._eval(arg, snapshot, scope) for arg in expr.args]
            return self._call(target, expr.name, args)
        if isinstance(expr, Unary):
            value = self._eval(expr.operand, snapshot, scope)
            if expr.op == "!":
                return not truthy(value)
            return -value if is_number(value) else NAN
        if isinstance(expr, Binary):
            if expr.op == "&&":
                return truthy(self._eval(expr.left, snapshot, scope)) and truthy(
                    self._eval(expr.right, snapshot, scope)
                )
            if expr.op == "||":
                return truthy(self._eval(expr.left, snapshot, scope)) or truthy(
                    self._eval(expr.right, snapshot, scope)
                )
            return self._binary(
                expr.op, self._eval(expr.left, snapshot, scope), self._eval(expr.right, snapshot, scope)
            )
        if isinstance(expr, Ternary):
            branch = expr.then if truthy(self._eval(expr.condition, snapshot, scope)) else expr.otherwise
            return self._eval(branch, snapshot, scope)
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    @staticmethod
    def _member(target: Any, name: str) -> Any:
        if isinstance(target, dict) and name in target:
            return target[name]
        if name not in PSEUDO_PROPERTIES:
            return None
        if target is None:
            return {"count": 0, "isEmpty": True}.get(name)
        if not isinstance(target, (list, str, dict)):
            return None
        if name == "count":
            return len(target)
        if name == "isEmpty":
            return len(target) == 0
        if isinstance(target, dict):
            return None
        if not target:
            return None
        return target[0] if name == "first" else target[-1]

    @staticmethod
    def _index(target: Any, index: Any) -> Any:
        if isinstance(target, list) and is_number(index):
            if isinstance(index, float):
                if not index.is_integer():
                    return None
                index = int(index)
            return target[index] if 0 <= index < len(target) else None
        if isinstance(target, dict) and isinstance(index, str):
            return target.get(index)
        return None

    @staticmethod
    def _call(target: Any, name: str, args: list[Any]) -> Any:
        if name != "contains" or len(args) != 1:
            return None
        needle = args[0]
        if isinstance(target, list):
            return any(json_equal(item, needle) for item in target)
        if isinstance(target, str):
            return isinstance(needle, str) and needle in target
        if isinstance(target, dict):
            return isinstance(needle, str) and needle in target
        return False

    @staticmethod
    def _binary(op: str, left: Any, right: Any) -> Any:
        if op == "==":
            return json_equal(left, right)
        if op == "!=":
            return not json_equal(left, right)
        if op in _ORDERING:
            if (is_number(left) and is_number(right)) or (
                isinstance(left, str) and isinstance(right, str)
            ):
                return _ORDERING[op](left, right)
            return False
        if op == "+":
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            if is_number(left) and is_number(right):
                return left + right
            return NAN
        if not (is_number(left) and is_number(right)):
            return NAN
        if op in _ARITHMETIC:
            return _ARITHMETIC[op](left, right)
        if right == 0:
            return NAN
        if op == "/":
            return normalize_number(left / right)
        if op == "%":
            return left % right
        return NAN


_default_evaluator: ExpressionEvaluator | None = None


def interpolate(template: str, snapshot: Mapping[str, Any]) -> str:
    """Convenience wrapper over a module-level evaluator."""
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = ExpressionEvaluator()
    return _default_evaluator.interpolate(template, snapshot)
