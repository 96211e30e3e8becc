"""Expression AST nodes."""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Identifier:
    """Root of a path reference; resolved against locals, then state."""

    name: str


@dataclass(frozen=True)
class Member:
    """`target.name`: dictionary key or a pseudo-property (count, isEmpty, first, last)."""

    target: "Expr"
    name: str


@dataclass(frozen=True)
class Index:
    """`target[index]`"""

    target: "Expr"
    index: "Expr"


@dataclass(frozen=True)
class Call:
    """`target.name(args...)`; only `contains` is defined."""

    target: "Expr"
    name: str
    args: tuple["Expr", ...]


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Expr"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Expr"
    right: "Expr"


@dataclass(frozen=True)
class Ternary:
    condition: "Expr"
    then: "Expr"
    otherwise: "Expr"


Expr = Union[Literal, Identifier, Member, Index, Call, Unary, Binary, Ternary]


@dataclass(frozen=True)
class TextPart:
    """Literal text between `${...}` spans."""

    text: str


@dataclass(frozen=True)
class ExprPart:
    """A compiled `${...}` span."""

    expr: Expr
    source: str


TemplatePart = Union[TextPart, ExprPart]


def references_paths(expr: Expr) -> bool:
    """True if the expression reads any state path or local."""
    if isinstance(expr, Identifier):
        return True
    if isinstance(expr, Literal):
        return False
    if isinstance(expr, (Member, Unary)):
        return references_paths(expr.target if isinstance(expr, Member) else expr.operand)
    if isinstance(expr, Index):
        return references_paths(expr.target) or references_paths(expr.index)
    if isinstance(expr, Call):
        return references_paths(expr.target) or any(references_paths(a) for a in expr.args)
    if isinstance(expr, Binary):
        return references_paths(expr.left) or references_paths(expr.right)
    if isinstance(expr, Ternary):
        return (
            references_paths(expr.condition)
            or references_paths(expr.then)
            or references_paths(expr.otherwise)
        )
    return False
