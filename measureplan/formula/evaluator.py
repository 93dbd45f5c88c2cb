"""Evaluation of metric formulas against aggregated values.

The right-hand side of a formula is parsed once into a small expression tree
and evaluated with variables bound by name. Aggregation calls such as
``sum(X)`` are bound by their exact source text, naked acronyms by the
acronym itself, matching the keys produced by the aggregator.

Grammar (lowest to highest precedence)::

    expression  := comparison [ "?" expression ":" expression ]
    comparison  := additive { ("==" | "!=" | "<" | ">" | "<=" | ">=") additive }
    additive    := term { ("+" | "-") term }
    term        := unary { ("*" | "/") unary }
    unary       := ("+" | "-") unary | power
    power       := primary [ "^" unary ]
    primary     := NUMBER | "NaN" | NAME | call | "(" expression ")"
    call        := aggfunc "(" ACRONYM ")" | "nullIf" "(" expression "," expression ")"

``nullIf(a, b)`` yields NaN when ``a == b`` and ``a`` otherwise, so a guarded
division produces NaN instead of failing. NaN, infinite, division-by-zero and
non-real results evaluate to ``None``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import List, Mapping, Optional, Union

from ..errors import FormulaEvaluationError
from .extractor import formula_rhs
from .functions import AGGREGATION_FUNCTIONS, NULLIF


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

_RE_TOKEN = re.compile(
    r'(?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)'
    r'|(?P<name>[A-Za-z_][A-Za-z0-9_]*)'
    r'|(?P<op>==|!=|<=|>=|[-+*/^<>?:(),])'
    r'|(?P<space>\s+)'
)

_COMPARISONS = ("==", "!=", "<", ">", "<=", ">=")


@dataclass(frozen=True)
class Token:
    kind: str  # number | name | op | end
    text: str
    start: int
    end: int


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        m = _RE_TOKEN.match(text, pos)
        if m is None:
            raise FormulaEvaluationError(
                f"Unexpected character {text[pos]!r} at position {pos}"
            )
        kind = m.lastgroup
        if kind != "space":
            tokens.append(Token(kind, m.group(0), m.start(), m.end()))
        pos = m.end()
    tokens.append(Token("end", "", len(text), len(text)))
    return tokens


# ---------------------------------------------------------------------------
# Expression tree
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Variable:
    key: str  # binding key: acronym or exact aggregation-call text


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Conditional:
    test: "Node"
    then: "Node"
    otherwise: "Node"


@dataclass(frozen=True)
class NullIf:
    value: "Node"
    sentinel: "Node"


Node = Union[Number, Variable, Unary, Binary, Conditional, NullIf]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _Parser:

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "end":
            self.pos += 1
        return token

    def _at(self, *ops: str) -> bool:
        return self.current.kind == "op" and self.current.text in ops

    def _expect(self, op: str) -> Token:
        if not self._at(op):
            self._unexpected()
        return self._advance()

    def _unexpected(self):
        token = self.current
        if token.kind == "end":
            raise FormulaEvaluationError("Unexpected end of expression")
        raise FormulaEvaluationError(
            f"Unexpected {token.text!r} at position {token.start}"
        )

    def parse(self) -> Node:
        node = self.expression()
        if self.current.kind != "end":
            self._unexpected()
        return node

    def expression(self) -> Node:
        test = self.comparison()
        if self._at("?"):
            self._advance()
            then = self.expression()
            self._expect(":")
            otherwise = self.expression()
            return Conditional(test, then, otherwise)
        return test

    def comparison(self) -> Node:
        node = self.additive()
        while self._at(*_COMPARISONS):
            op = self._advance().text
            node = Binary(op, node, self.additive())
        return node

    def additive(self) -> Node:
        node = self.term()
        while self._at("+", "-"):
            op = self._advance().text
            node = Binary(op, node, self.term())
        return node

    def term(self) -> Node:
        node = self.unary()
        while self._at("*", "/"):
            op = self._advance().text
            node = Binary(op, node, self.unary())
        return node

    def unary(self) -> Node:
        if self._at("+", "-"):
            op = self._advance().text
            return Unary(op, self.unary())
        return self.power()

    def power(self) -> Node:
        base = self.primary()
        if self._at("^"):
            self._advance()
            return Binary("^", base, self.unary())
        return base

    def primary(self) -> Node:
        token = self.current
        if token.kind == "number":
            self._advance()
            return Number(float(token.text))
        if token.kind == "name":
            self._advance()
            if self._at("("):
                return self.call(token)
            if token.text == "NaN":
                return Number(math.nan)
            return Variable(token.text)
        if self._at("("):
            self._advance()
            node = self.expression()
            self._expect(")")
            return node
        self._unexpected()

    def call(self, name: Token) -> Node:
        func = name.text.lower()
        self._expect("(")

        if func in AGGREGATION_FUNCTIONS:
            arg = self.current
            if arg.kind != "name":
                raise FormulaEvaluationError(
                    f"Unsupported argument for {name.text}() at position {arg.start}"
                )
            self._advance()
            if not self._at(")"):
                raise FormulaEvaluationError(
                    f"Unsupported argument for {name.text}() at position {arg.start}"
                )
            close = self._advance()
            return Variable(self.text[name.start:close.end])

        if func == NULLIF:
            value = self.expression()
            self._expect(",")
            sentinel = self.expression()
            self._expect(")")
            return NullIf(value, sentinel)

        raise FormulaEvaluationError(f"Unknown function {name.text}")


def parse_expression(text: str) -> Node:
    """Parse an expression (no ``NAME =`` prefix) into a tree."""
    return _Parser(text).parse()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _truthy(value) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def evaluate_node(node: Node, variables: Mapping[str, float]):
    """Evaluate *node*. Division by zero propagates as ZeroDivisionError."""
    if isinstance(node, Number):
        return node.value

    if isinstance(node, Variable):
        if node.key not in variables:
            raise FormulaEvaluationError(f"Undefined symbol {node.key}")
        return variables[node.key]

    if isinstance(node, Unary):
        operand = evaluate_node(node.operand, variables)
        return -operand if node.op == "-" else +operand

    if isinstance(node, Binary):
        left = evaluate_node(node.left, variables)
        right = evaluate_node(node.right, variables)
        op = node.op
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return left / right
        if op == "^":
            return float(left) ** right
        if op == "==":
            return left == right
        if op == "!=":
            return left != right
        if op == "<":
            return left < right
        if op == ">":
            return left > right
        if op == "<=":
            return left <= right
        return left >= right

    if isinstance(node, Conditional):
        if _truthy(evaluate_node(node.test, variables)):
            return evaluate_node(node.then, variables)
        return evaluate_node(node.otherwise, variables)

    if isinstance(node, NullIf):
        value = evaluate_node(node.value, variables)
        sentinel = evaluate_node(node.sentinel, variables)
        return math.nan if value == sentinel else value

    raise FormulaEvaluationError(f"Unsupported node {type(node).__name__}")


def _normalize(result) -> Optional[float]:
    if result is None or isinstance(result, complex):
        return None
    value = float(result)
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def evaluate_formula(formula: str, variables: Mapping[str, float]) -> Optional[float]:
    """Evaluate *formula* with aggregated *variables*.

    Returns None for the undefined outcomes (NaN from a ``nullIf`` guard,
    division by zero, overflow, non-real results). Raises
    FormulaEvaluationError for malformed formulas and unbound symbols.
    """
    expression = formula_rhs(formula)
    if not expression:
        return None
    node = parse_expression(expression)
    try:
        return _normalize(evaluate_node(node, variables))
    except (ZeroDivisionError, OverflowError, TypeError):
        return None
