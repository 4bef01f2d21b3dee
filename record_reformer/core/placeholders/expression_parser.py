"""
Expression grammar for ${...} placeholders in expression mode.

The grammar is deliberately small: names, integer and string literals,
and three postfix operators.

    expression := postfix
    postfix    := primary ( "." NAME | "[" expression "]" | "(" [args] ")" )*
    args       := expression ( "," expression )*
    primary    := NAME | INT | "-" INT | STRING | "(" expression ")"

Expressions are parsed into a tiny AST and evaluated against a fixed
namespace. Nothing is ever handed to eval().
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from record_reformer.core.models import TagSlicer

from .base_resolver import to_text


class ExpressionError(Exception):
    """Base class for expression parse and evaluation failures."""
    pass


class ExpressionSyntaxError(ExpressionError):
    """Raised when a placeholder body does not match the grammar."""
    pass


class UndefinedNameError(ExpressionError):
    """Raised when a name is neither a context name nor a record field."""
    pass


class EvaluationError(ExpressionError):
    """Raised when indexing, attribute access or a call fails."""
    pass


# =======================
# TOKENIZER
# =======================

@dataclass(frozen=True)
class Token:
    kind: str  # NAME, INT, STRING, OP, EOF
    value: Any
    pos: int


_OPERATORS = ".[](),-"
_DIGITS = "0123456789"
_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", "'": "'", '"': '"'}


def tokenize(source: str) -> list[Token]:
    """
    Split an expression into tokens.

    Raises:
        ExpressionSyntaxError: On unexpected characters or unterminated strings
    """
    tokens: list[Token] = []
    i = 0
    length = len(source)

    while i < length:
        ch = source[i]

        if ch.isspace():
            i += 1
            continue

        if ch.isalpha() or ch == "_":
            start = i
            while i < length and (source[i].isalnum() or source[i] == "_"):
                i += 1
            tokens.append(Token("NAME", source[start:i], start))
            continue

        if ch in _DIGITS:
            start = i
            while i < length and source[i] in _DIGITS:
                i += 1
            tokens.append(Token("INT", int(source[start:i]), start))
            continue

        if ch in ("'", '"'):
            start = i
            quote = ch
            i += 1
            chars: list[str] = []
            while i < length and source[i] != quote:
                if source[i] == "\\" and i + 1 < length:
                    chars.append(_ESCAPES.get(source[i + 1], source[i + 1]))
                    i += 2
                    continue
                chars.append(source[i])
                i += 1
            if i >= length:
                raise ExpressionSyntaxError(f"unterminated string starting at position {start}")
            i += 1
            tokens.append(Token("STRING", "".join(chars), start))
            continue

        if ch in _OPERATORS:
            tokens.append(Token("OP", ch, i))
            i += 1
            continue

        raise ExpressionSyntaxError(f"unexpected character {ch!r} at position {i}")

    tokens.append(Token("EOF", None, length))
    return tokens


# =======================
# AST
# =======================

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Name:
    id: str


@dataclass(frozen=True)
class Attribute:
    target: Any
    name: str


@dataclass(frozen=True)
class Index:
    target: Any
    key: Any


@dataclass(frozen=True)
class Call:
    target: Any
    args: tuple


# =======================
# PARSER
# =======================

class _Parser:
    """Recursive descent parser over a token list."""

    def __init__(self, source: str):
        self.source = source
        self.tokens = tokenize(source)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _is_op(self, value: str) -> bool:
        return self.current.kind == "OP" and self.current.value == value

    def _expect_op(self, value: str) -> None:
        if not self._is_op(value):
            raise ExpressionSyntaxError(
                f"expected '{value}' at position {self.current.pos} in {self.source!r}"
            )
        self._advance()

    def parse(self):
        if self.current.kind == "EOF":
            raise ExpressionSyntaxError("empty expression")
        node = self._expression()
        if self.current.kind != "EOF":
            raise ExpressionSyntaxError(
                f"unexpected {self.current.value!r} at position {self.current.pos} in {self.source!r}"
            )
        return node

    def _expression(self):
        return self._postfix()

    def _postfix(self):
        node = self._primary()
        while True:
            if self._is_op("."):
                self._advance()
                if self.current.kind != "NAME":
                    raise ExpressionSyntaxError(
                        f"expected a name after '.' at position {self.current.pos} in {self.source!r}"
                    )
                node = Attribute(node, self._advance().value)
            elif self._is_op("["):
                self._advance()
                key = self._expression()
                self._expect_op("]")
                node = Index(node, key)
            elif self._is_op("("):
                self._advance()
                args = []
                if not self._is_op(")"):
                    args.append(self._expression())
                    while self._is_op(","):
                        self._advance()
                        args.append(self._expression())
                self._expect_op(")")
                node = Call(node, tuple(args))
            else:
                return node

    def _primary(self):
        token = self.current

        if token.kind == "NAME":
            self._advance()
            return Name(token.value)

        if token.kind in ("INT", "STRING"):
            self._advance()
            return Literal(token.value)

        if self._is_op("-"):
            self._advance()
            if self.current.kind != "INT":
                raise ExpressionSyntaxError(
                    f"expected an integer after '-' at position {self.current.pos} in {self.source!r}"
                )
            return Literal(-self._advance().value)

        if self._is_op("("):
            self._advance()
            node = self._expression()
            self._expect_op(")")
            return node

        if token.kind == "EOF":
            raise ExpressionSyntaxError(f"unexpected end of expression in {self.source!r}")
        raise ExpressionSyntaxError(f"unexpected {token.value!r} at position {token.pos} in {self.source!r}")


@lru_cache(maxsize=1024)
def parse_expression(source: str):
    """
    Parse a placeholder body into an AST.

    Results are cached; the same template body is parsed once per process.

    Raises:
        ExpressionSyntaxError: If the source does not match the grammar
    """
    try:
        return _Parser(source).parse()
    except RecursionError as e:
        raise ExpressionSyntaxError(f"expression nested too deeply: {source[:40]!r}") from e


# =======================
# EVALUATOR
# =======================

def _first(value):
    return value[0] if len(value) else None


def _last(value):
    return value[-1] if len(value) else None


SEQUENCE_METHODS = {
    "first": _first,
    "last": _last,
    "size": len,
    "length": len,
}

STRING_METHODS = {
    "size": len,
    "length": len,
    "upcase": str.upper,
    "downcase": str.lower,
    "strip": str.strip,
}


def _to_i(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError) as e:
            raise EvaluationError(f"cannot convert {value!r} to an integer") from e


def evaluate(node, namespace: Mapping[str, Any], record: Mapping[str, Any]) -> Any:
    """
    Evaluate an AST node.

    Args:
        node: Node produced by parse_expression()
        namespace: Context names (tag, tag_parts, time, ...); checked first
        record: The original record; bare names fall back to its fields

    Returns:
        The evaluated value

    Raises:
        ExpressionError: On any lookup, indexing, attribute or call failure
    """
    if isinstance(node, Literal):
        return node.value

    if isinstance(node, Name):
        if node.id in namespace:
            return namespace[node.id]
        if node.id in record:
            return record[node.id]
        raise UndefinedNameError(f"undefined name '{node.id}'")

    if isinstance(node, Index):
        target = evaluate(node.target, namespace, record)
        key = evaluate(node.key, namespace, record)
        return _index(target, key)

    if isinstance(node, Attribute):
        target = evaluate(node.target, namespace, record)
        return _attribute(target, node.name)

    if isinstance(node, Call):
        target = evaluate(node.target, namespace, record)
        args = [evaluate(arg, namespace, record) for arg in node.args]
        return _call(target, args)

    raise EvaluationError(f"unsupported expression node {type(node).__name__}")


def _index(target: Any, key: Any) -> Any:
    if target is None:
        raise EvaluationError(f"cannot index None with {key!r}")

    if isinstance(target, TagSlicer):
        try:
            return target[key]
        except TypeError as e:
            raise EvaluationError(str(e)) from e

    if isinstance(target, Mapping):
        try:
            found = key in target
        except TypeError as e:
            raise EvaluationError(f"{type(key).__name__} cannot be used as a key") from e
        if not found:
            raise EvaluationError(f"key {key!r} not found")
        return target[key]

    if isinstance(target, (Sequence, str)):
        if isinstance(key, bool) or not isinstance(key, int):
            raise EvaluationError(f"sequence index must be an integer, got {key!r}")
        try:
            return target[key]
        except IndexError as e:
            raise EvaluationError(f"index {key} out of range (size {len(target)})") from e

    raise EvaluationError(f"{type(target).__name__} is not indexable")


def _attribute(target: Any, name: str) -> Any:
    if target is None:
        raise EvaluationError(f"undefined method '{name}' for None")

    if isinstance(target, Mapping) and name in target:
        return target[name]

    if name == "to_s":
        return to_text(target)
    if name == "to_i":
        return _to_i(target)

    if isinstance(target, str):
        method = STRING_METHODS.get(name)
    elif isinstance(target, Sequence):
        method = SEQUENCE_METHODS.get(name)
    elif isinstance(target, Mapping):
        method = len if name in ("size", "length") else None
    else:
        method = None

    if method is None:
        raise EvaluationError(f"undefined method '{name}' for {type(target).__name__}")
    return method(target)


def _call(target: Any, args: list[Any]) -> Any:
    if not isinstance(target, TagSlicer):
        raise EvaluationError(f"{type(target).__name__} is not callable")
    if len(args) != 1:
        raise EvaluationError(f"tag_{target.side} takes exactly one argument ({len(args)} given)")
    try:
        return target(args[0])
    except TypeError as e:
        raise EvaluationError(str(e)) from e
