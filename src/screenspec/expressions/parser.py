"""Expression Parser - tokenizer and recursive descent parser for bindings.

Grammar (precedence low to high):
    ternary     := or ("?" ternary ":" ternary)?
    or          := and ("||" and)*
    and         := equality ("&&" equality)*
    equality    := comparison (("==" | "!=") comparison)*
    comparison  := additive (("<" | "<=" | ">" | ">=") additive)*
    additive    := multiplicative (("+" | "-") multiplicative)*
    multiplicative := unary (("*" | "/" | "%") unary)*
    unary       := ("-" | "!") unary | postfix
    postfix     := primary ("." NAME ("(" args ")")? | "." INT | "[" ternary "]")*
    primary     := NUMBER | STRING | true | false | null | NAME | "(" ternary ")"
"""

from dataclasses import dataclass

from ..core.validate import ScreenSpecError
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
)


class ExpressionSyntaxError(ScreenSpecError):
    """Expression or template could not be compiled."""

    def __init__(self, message: str, source: str, position: int | None = None) -> None:
        self.source = source
        self.position = position
        where = f" at {position}" if position is not None else ""
        super().__init__(f"{message}{where} in {source!r}")


# Parenthesis, ternary and unary nesting allowed before a parse is refused.
MAX_NESTING = 32

# Tokens allowed in one expression, which also bounds the depth of operator chains.
MAX_TOKENS = 256

KEYWORDS = {"true": True, "false": False, "null": None, "nil": None}

TWO_CHAR_OPS = {"==", "!=", "<=", ">=", "&&", "||"}
ONE_CHAR_OPS = set("+-*/%<>!?:.,()[]")


@dataclass(frozen=True)
class Token:
    kind: str  # NUMBER, STRING, NAME, OP, EOF
    value: object
    pos: int


class Lexer:
    """Turns expression text into tokens."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        src = self.source
        while self.pos < len(src):
            ch = src[self.pos]
            if ch.isspace():
                self.pos += 1
            elif ch.isdigit():
                tokens.append(self._number())
            elif ch in "'\"":
                tokens.append(self._string(ch))
            elif ch.isalpha() or ch in "_$":
                tokens.append(self._name())
            elif src[self.pos : self.pos + 2] in TWO_CHAR_OPS:
                tokens.append(Token("OP", src[self.pos : self.pos + 2], self.pos))
                self.pos += 2
            elif ch in ONE_CHAR_OPS:
                tokens.append(Token("OP", ch, self.pos))
                self.pos += 1
            else:
                raise ExpressionSyntaxError(f"unexpected character {ch!r}", src, self.pos)
        tokens.append(Token("EOF", None, self.pos))
        return tokens

    def _number(self) -> Token:
        src = self.source
        start = self.pos
        while self.pos < len(src) and src[self.pos].isdigit():
            self.pos += 1
        # Only a dot followed by a digit continues the number ("items.0.name" stays a path)
        if (
            self.pos + 1 < len(src)
            and src[self.pos] == "."
            and src[self.pos + 1].isdigit()
        ):
            self.pos += 1
            while self.pos < len(src) and src[self.pos].isdigit():
                self.pos += 1
        return Token("NUMBER", src[start : self.pos], start)

    def _string(self, quote: str) -> Token:
        src = self.source
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(src):
            ch = src[self.pos]
            if ch == "\\" and self.pos + 1 < len(src):
                chars.append(src[self.pos + 1])
                self.pos += 2
                continue
            if ch == quote:
                self.pos += 1
                return Token("STRING", "".join(chars), start)
            chars.append(ch)
            self.pos += 1
        raise ExpressionSyntaxError("unterminated string", src, start)

    def _name(self) -> Token:
        src = self.source
        start = self.pos
        self.pos += 1
        while self.pos < len(src) and (src[self.pos].isalnum() or src[self.pos] in "_$"):
            self.pos += 1
        return Token("NAME", src[start : self.pos], start)


def _number_value(text: str) -> int | float:
    return float(text) if "." in text else int(text)


class Parser:
    """
    Recursive descent parser over a token list.

    Input is bounded before and during parsing: more than `MAX_TOKENS` tokens
    or more than `MAX_NESTING` levels of nesting is a syntax error, so
    neither parsing nor evaluation can exhaust the interpreter stack.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.tokens = Lexer(source).tokenize()
        if len(self.tokens) - 1 > MAX_TOKENS:
            raise ExpressionSyntaxError(f"expression longer than {MAX_TOKENS} tokens", source)
        self.index = 0
        self.depth = 0

    def parse(self) -> Expr:
        if self._peek().kind == "EOF":
            raise ExpressionSyntaxError("empty expression", self.source, 0)
        expr = self._ternary()
        token = self._peek()
        if token.kind != "EOF":
            raise ExpressionSyntaxError(f"unexpected {token.value!r}", self.source, token.pos)
        return expr

    # Token helpers

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _match(self, *ops: str) -> str | None:
        token = self._peek()
        if token.kind == "OP" and token.value in ops:
            self.index += 1
            return token.value  # type: ignore[return-value]
        return None

    def _descend(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            raise ExpressionSyntaxError("expression nested too deeply", self.source, self._peek().pos)

    def _expect(self, op: str) -> None:
        if self._match(op) is None:
            token = self._peek()
            found = "end of input" if token.kind == "EOF" else repr(token.value)
            raise ExpressionSyntaxError(f"expected {op!r}, found {found}", self.source, token.pos)

    # Grammar

    def _ternary(self) -> Expr:
        self._descend()
        expr = self._binary_level(0)
        if self._match("?"):
            then = self._ternary()
            self._expect(":")
            otherwise = self._ternary()
            expr = Ternary(expr, then, otherwise)
        self.depth -= 1
        return expr

    _LEVELS: tuple[tuple[str, ...], ...] = (
        ("||",),
        ("&&",),
        ("==", "!="),
        ("<", "<=", ">", ">="),
        ("+", "-"),
        ("*", "/", "%"),
    )

    def _binary_level(self, level: int) -> Expr:
        if level == len(self._LEVELS):
            return self._unary()
        left = self._binary_level(level + 1)
        while True:
            op = self._match(*self._LEVELS[level])
            if op is None:
                return left
            right = self._binary_level(level + 1)
            left = Binary(op, left, right)

    def _unary(self) -> Expr:
        op = self._match("-", "!")
        if op is not None:
            self._descend()
            operand = self._unary()
            self.depth -= 1
            return Unary(op, operand)
        return self._postfix()

    def _postfix(self) -> Expr:
        expr = self._primary()
        while True:
            if self._match("."):
                token = self._advance()
                if token.kind == "NAME":
                    if self._match("("):
                        expr = Call(expr, str(token.value), self._arguments())
                    else:
                        expr = Member(expr, str(token.value))
                elif token.kind == "NUMBER":
                    # "items.0" and, after lexing, "grid.0.1"
                    for part in str(token.value).split("."):
                        expr = Index(expr, Literal(int(part)))
                else:
                    raise ExpressionSyntaxError("expected property name", self.source, token.pos)
            elif self._match("["):
                index = self._ternary()
                self._expect("]")
                expr = Index(expr, index)
            else:
                return expr

    def _arguments(self) -> tuple[Expr, ...]:
        args: list[Expr] = []
        if self._match(")"):
            return ()
        while True:
            args.append(self._ternary())
            if self._match(")"):
                return tuple(args)
            self._expect(",")

    def _primary(self) -> Expr:
        token = self._advance()
        if token.kind == "NUMBER":
            return Literal(_number_value(str(token.value)))
        if token.kind == "STRING":
            return Literal(token.value)
        if token.kind == "NAME":
            name = str(token.value)
            if name in KEYWORDS:
                return Literal(KEYWORDS[name])
            return Identifier(name)
        if token.kind == "OP" and token.value == "(":
            expr = self._ternary()
            self._expect(")")
            return expr
        found = "end of input" if token.kind == "EOF" else repr(token.value)
        raise ExpressionSyntaxError(f"unexpected {found}", self.source, token.pos)


def parse_expression(source: str) -> Expr:
    """Parse a bare expression such as `(score + 10) * level`."""
    return Parser(source).parse()


def split_template(source: str) -> list[TemplatePart]:
    """
    Split a template into literal text and compiled `${...}` spans.

    Braces and quotes inside a span are balanced, so `${a ? '}' : b}` works.

    Raises:
        ExpressionSyntaxError: On an unterminated or empty span, or a bad expression
    """
    parts: list[TemplatePart] = []
    pos = 0
    length = len(source)
    while pos < length:
        start = source.find("${", pos)
        if start == -1:
            parts.append(TextPart(source[pos:]))
            break
        if start > pos:
            parts.append(TextPart(source[pos:start]))

        depth = 0
        quote: str | None = None
        cursor = start + 2
        end = -1
        while cursor < length:
            ch = source[cursor]
            if quote:
                if ch == "\\":
                    cursor += 1
                elif ch == quote:
                    quote = None
            elif ch in "'\"":
                quote = ch
            elif ch == "{":
                depth += 1
            elif ch == "}":
                if depth == 0:
                    end = cursor
                    break
                depth -= 1
            cursor += 1
        if end == -1:
            raise ExpressionSyntaxError("unterminated ${ span", source, start)

        inner = source[start + 2 : end].strip()
        if not inner:
            raise ExpressionSyntaxError("empty ${} span", source, start)
        parts.append(ExprPart(parse_expression(inner), inner))
        pos = end + 1
    return parts
