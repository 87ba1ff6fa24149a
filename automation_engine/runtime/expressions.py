"""Condition expressions.

Conditions are parsed by a small recursive-descent parser and evaluated
against the run's variables; nothing is ever handed to ``eval``.

Grammar (lowest to highest precedence)::

    expression := or
    or         := and (("||" | "or") and)*
    and        := not (("&&" | "and") not)*
    not        := ("!" | "not") not | comparison
    comparison := primary (("==" | "===" | "!=" | "!==" | "<" | "<=" | ">" | ">=") primary)?
    primary    := NUMBER | STRING | "true" | "false" | "null" | path | "(" expression ")"
    path       := NAME ("." (NAME | NUMBER) | "[" (NUMBER | STRING) "]")*

Before parsing, the raw text is checked against a character whitelist
(letters, digits, ``_``, whitespace, ``. [ ] " ' < > = ! & | ( )``); template
braces are not in it, so conditions name variables directly (``score > 1``).
Any rejection, at the whitelist or in the parser, raises
:class:`ExpressionValidationFailure`, so a malformed condition never
evaluates to true.

Comparison semantics follow JavaScript where they are well defined:

- ``==`` converts numeric strings and booleans to numbers (``true == 1``);
  ``===`` never converts.
- ``.length`` on a list or string is its length.
- Unknown names resolve to ``null``.

Ordering differs from JavaScript: ``<``, ``<=``, ``>`` and ``>=`` are false
unless both sides are strings or both convert to numbers, and ``null`` and
booleans never convert there (``null < 1`` is false).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from .errors import ExpressionValidationFailure

_ALLOWED = re.compile(r"^[A-Za-z0-9_\s.\[\]\"'<>=!&|()]+$")
_NAME_START = re.compile(r"[A-Za-z_]")
_NAME_CHAR = re.compile(r"[A-Za-z0-9_]")

_OPERATORS = ("===", "!==", "==", "!=", "<=", ">=", "&&", "||", "<", ">", "!")
_KEYWORD_OPERATORS = {"and": "&&", "or": "||", "not": "!"}
_LITERALS = {"true": True, "false": False, "null": None}
_COMPARISONS = {"==", "===", "!=", "!==", "<", "<=", ">", ">="}


@dataclass(frozen=True)
class Tok:
    type: str  # NUMBER, STRING, NAME, OP, PUNCT, EOF
    value: Any
    pos: int


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Path:
    root: str
    parts: Tuple[Union[str, int], ...] = ()


@dataclass(frozen=True)
class Not:
    operand: "Node"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Literal, Path, Not, BinaryOp]


def validate_expression(expression: str) -> None:
    if not isinstance(expression, str) or not expression.strip():
        raise ExpressionValidationFailure(str(expression), "expression is empty")
    if not _ALLOWED.match(expression):
        raise ExpressionValidationFailure(expression, "expression contains disallowed characters")


def tokenize(expression: str) -> List[Tok]:
    tokens: List[Tok] = []
    i = 0
    length = len(expression)
    while i < length:
        ch = expression[i]
        if ch.isspace():
            i += 1
            continue
        if ch.isdigit():
            start = i
            while i < length and expression[i].isdigit():
                i += 1
            if i + 1 < length and expression[i] == "." and expression[i + 1].isdigit():
                i += 1
                while i < length and expression[i].isdigit():
                    i += 1
                tokens.append(Tok("NUMBER", float(expression[start:i]), start))
            else:
                tokens.append(Tok("NUMBER", int(expression[start:i]), start))
            continue
        if ch in ("'", '"'):
            end = expression.find(ch, i + 1)
            if end == -1:
                raise ExpressionValidationFailure(expression, f"unterminated string at position {i}")
            tokens.append(Tok("STRING", expression[i + 1 : end], i))
            i = end + 1
            continue
        if _NAME_START.match(ch):
            start = i
            while i < length and _NAME_CHAR.match(expression[i]):
                i += 1
            word = expression[start:i]
            if word in _KEYWORD_OPERATORS:
                tokens.append(Tok("OP", _KEYWORD_OPERATORS[word], start))
            else:
                tokens.append(Tok("NAME", word, start))
            continue
        if ch in "().[]":
            tokens.append(Tok("PUNCT", ch, i))
            i += 1
            continue
        for op in _OPERATORS:
            if expression.startswith(op, i):
                tokens.append(Tok("OP", op, i))
                i += len(op)
                break
        else:
            raise ExpressionValidationFailure(expression, f"unexpected {ch!r} at position {i}")
    tokens.append(Tok("EOF", None, length))
    return tokens


class _Parser:
    def __init__(self, expression: str) -> None:
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0

    def peek(self) -> Tok:
        return self.tokens[self.index]

    def advance(self) -> Tok:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def match(self, type_: str, value: Any) -> bool:
        token = self.peek()
        if token.type == type_ and token.value == value:
            self.index += 1
            return True
        return False

    def expect(self, type_: str, value: Any) -> None:
        if not self.match(type_, value):
            self.fail(f"expected {value!r}")

    def fail(self, message: str) -> None:
        token = self.peek()
        where = "end of expression" if token.type == "EOF" else f"position {token.pos}"
        raise ExpressionValidationFailure(self.expression, f"{message} at {where}")

    def parse(self) -> Node:
        node = self.parse_or()
        if self.peek().type != "EOF":
            self.fail("unexpected token")
        return node

    def parse_or(self) -> Node:
        node = self.parse_and()
        while self.match("OP", "||"):
            node = BinaryOp("||", node, self.parse_and())
        return node

    def parse_and(self) -> Node:
        node = self.parse_not()
        while self.match("OP", "&&"):
            node = BinaryOp("&&", node, self.parse_not())
        return node

    def parse_not(self) -> Node:
        if self.match("OP", "!"):
            return Not(self.parse_not())
        return self.parse_comparison()

    def parse_comparison(self) -> Node:
        node = self.parse_primary()
        token = self.peek()
        if token.type == "OP" and token.value in _COMPARISONS:
            self.advance()
            node = BinaryOp(token.value, node, self.parse_primary())
            following = self.peek()
            if following.type == "OP" and following.value in _COMPARISONS:
                self.fail("chained comparison")
        return node

    def parse_primary(self) -> Node:
        token = self.peek()
        if token.type in ("NUMBER", "STRING"):
            self.advance()
            return Literal(token.value)
        if token.type == "NAME":
            self.advance()
            if token.value in _LITERALS:
                return Literal(_LITERALS[token.value])
            return self.parse_path(token.value)
        if self.match("PUNCT", "("):
            node = self.parse_or()
            self.expect("PUNCT", ")")
            return node
        self.fail("expected a value")
        raise AssertionError("unreachable")

    def parse_path(self, root: str) -> Path:
        parts: List[Union[str, int]] = []
        while True:
            if self.match("PUNCT", "."):
                token = self.advance()
                if token.type == "NAME":
                    parts.append(token.value)
                elif token.type == "NUMBER" and isinstance(token.value, int):
                    parts.append(token.value)
                else:
                    self.index -= 1
                    self.fail("expected a property name")
            elif self.match("PUNCT", "["):
                token = self.advance()
                if token.type == "NUMBER" and isinstance(token.value, int):
                    parts.append(token.value)
                elif token.type == "STRING":
                    parts.append(token.value)
                else:
                    self.index -= 1
                    self.fail("expected an index")
                self.expect("PUNCT", "]")
            else:
                return Path(root, tuple(parts))


def parse_expression(expression: str) -> Node:
    """Check ``expression`` against the whitelist, then parse it."""
    validate_expression(expression)
    return _Parser(expression).parse()


def _resolve_path(path: Path, variables: Mapping[str, Any]) -> Any:
    if path.root not in variables:
        return None
    current: Any = variables[path.root]
    for part in path.parts:
        if part == "length" and isinstance(current, (list, tuple, str)):
            current = len(current)
        elif isinstance(current, Mapping):
            current = current.get(str(part))
        elif isinstance(current, (list, tuple)) and isinstance(part, int) and 0 <= part < len(current):
            current = current[part]
        else:
            return None
    return current


def truthy(value: Any) -> bool:
    """Truthiness of condition values: empty lists and objects are true."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_number(value: Any) -> Optional[float]:
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _loose_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) and not isinstance(right, bool) and right is not None:
        left = int(left)
    if isinstance(right, bool) and not isinstance(left, bool) and left is not None:
        right = int(right)
    if _is_number(left) and isinstance(right, str) or _is_number(right) and isinstance(left, str):
        a, b = _as_number(left), _as_number(right)
        return a is not None and b is not None and a == b
    return _strict_equals(left, right)


def _strict_equals(left: Any, right: Any) -> bool:
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, bool) or isinstance(right, bool):
        return left is right
    if type(left) is not type(right):
        return False
    return left == right


def _order(op: str, left: Any, right: Any) -> bool:
    a: Any
    b: Any
    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = _as_number(left), _as_number(right)
        if a is None or b is None:
            return False
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    return a >= b


def evaluate(node: Node, variables: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Path):
        return _resolve_path(node, variables)
    if isinstance(node, Not):
        return not truthy(evaluate(node.operand, variables))
    if node.op == "&&":
        return truthy(evaluate(node.left, variables)) and truthy(evaluate(node.right, variables))
    if node.op == "||":
        return truthy(evaluate(node.left, variables)) or truthy(evaluate(node.right, variables))

    left = evaluate(node.left, variables)
    right = evaluate(node.right, variables)
    if node.op == "==":
        return _loose_equals(left, right)
    if node.op == "===":
        return _strict_equals(left, right)
    if node.op == "!=":
        return not _loose_equals(left, right)
    if node.op == "!==":
        return not _strict_equals(left, right)
    return _order(node.op, left, right)


def evaluate_condition(expression: str, variables: Mapping[str, Any]) -> bool:
    """Evaluate a condition expression to a boolean.

    Raises:
        ExpressionValidationFailure: the expression is rejected or malformed.
    """
    return truthy(evaluate(parse_expression(expression), variables))
