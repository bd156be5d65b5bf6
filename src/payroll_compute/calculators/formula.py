"""Formula language for FORMULA components.

Grammar:
    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | NAME | NAME '(' args? ')' | '(' expr ')'
    args    := expr (',' expr)*

Formulas are parsed once into an immutable AST and evaluated against a
read-only variable mapping. Nothing is ever handed to eval/exec.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, DecimalException
from functools import lru_cache
from typing import Callable, Mapping, Union

from payroll_compute.errors import EvaluationError, FormulaSyntaxError, UnknownVariableError

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>\d+(?:\.\d*)?|\.\d+)|(?P<name>[A-Za-z_][A-Za-z0-9_]*)|(?P<op>[-+*/(),]))"
)

# Deepest nesting the parser and evaluator accept
MAX_FORMULA_DEPTH = 100


@dataclass(frozen=True)
class Token:
    kind: str  # 'number', 'name', 'op', 'end'
    text: str
    position: int


def tokenize(formula: str) -> list[Token]:
    """Split formula text into tokens."""
    tokens: list[Token] = []
    pos = 0
    length = len(formula)
    while pos < length:
        if formula[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(formula, pos)
        if match is None:
            # Skip leading whitespace so the reported position is the bad char
            bad = pos + len(formula[pos:]) - len(formula[pos:].lstrip())
            raise FormulaSyntaxError(formula, bad, f"unexpected character '{formula[bad]}'")
        kind = match.lastgroup or "op"
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(Token("end", "", length))
    return tokens


# === AST ===


@dataclass(frozen=True)
class Number:
    value: Decimal


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: Node


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Node
    right: Node


@dataclass(frozen=True)
class Call:
    function: str
    args: tuple[Node, ...]


Node = Union[Number, Variable, UnaryOp, BinaryOp, Call]


def _round(value: Decimal, places: Decimal) -> Decimal:
    if places != places.to_integral_value():
        raise EvaluationError("round() places must be an integer")
    return value.quantize(Decimal(1).scaleb(-int(places)), rounding=ROUND_HALF_UP)


# name -> (min args, max args, implementation)
FUNCTIONS: dict[str, tuple[int, int, Callable[..., Decimal]]] = {
    "min": (1, 32, lambda *args: min(args)),
    "max": (1, 32, lambda *args: max(args)),
    "abs": (1, 1, lambda x: abs(x)),
    "round": (2, 2, _round),
}


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _error(self, reason: str) -> FormulaSyntaxError:
        return FormulaSyntaxError(self.formula, self.current.position, reason)

    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_FORMULA_DEPTH:
            raise self._error("formula nested too deeply")

    def _expect(self, text: str) -> None:
        if self.current.kind != "op" or self.current.text != text:
            found = self.current.text or "end of formula"
            raise self._error(f"expected '{text}', found '{found}'")
        self._advance()

    def parse(self) -> Node:
        if self.current.kind == "end":
            raise self._error("formula is empty")
        node = self._expr()
        if self.current.kind != "end":
            raise self._error(f"unexpected '{self.current.text}'")
        return node

    def _expr(self) -> Node:
        node = self._term()
        while self.current.kind == "op" and self.current.text in ("+", "-"):
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while self.current.kind == "op" and self.current.text in ("*", "/"):
            op = self._advance().text
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> Node:
        if self.current.kind == "op" and self.current.text in ("+", "-"):
            op = self._advance().text
            self._enter()
            node = UnaryOp(op, self._unary())
            self.depth -= 1
            return node
        return self._primary()

    def _primary(self) -> Node:
        token = self.current
        if token.kind == "number":
            self._advance()
            return Number(Decimal(token.text))
        if token.kind == "name":
            self._advance()
            if self.current.kind == "op" and self.current.text == "(":
                return self._call(token)
            return Variable(token.text)
        if token.kind == "op" and token.text == "(":
            self._advance()
            self._enter()
            node = self._expr()
            self._expect(")")
            self.depth -= 1
            return node
        found = token.text or "end of formula"
        raise self._error(f"unexpected '{found}'")

    def _call(self, name: Token) -> Node:
        if name.text not in FUNCTIONS:
            raise FormulaSyntaxError(
                self.formula, name.position, f"unknown function '{name.text}'"
            )
        self._expect("(")
        self._enter()
        args: list[Node] = []
        if not (self.current.kind == "op" and self.current.text == ")"):
            args.append(self._expr())
            while self.current.kind == "op" and self.current.text == ",":
                self._advance()
                args.append(self._expr())
        self._expect(")")
        self.depth -= 1
        low, high, _ = FUNCTIONS[name.text]
        if not low <= len(args) <= high:
            raise FormulaSyntaxError(
                self.formula,
                name.position,
                f"{name.text}() takes {low}-{high} arguments, got {len(args)}"
                if low != high
                else f"{name.text}() takes {low} arguments, got {len(args)}",
            )
        return Call(name.text, tuple(args))


def _children(node: Node) -> tuple[Node, ...]:
    if isinstance(node, UnaryOp):
        return (node.operand,)
    if isinstance(node, BinaryOp):
        return (node.left, node.right)
    if isinstance(node, Call):
        return node.args
    return ()


def _inspect(root: Node) -> tuple[set[str], int]:
    """Variable names and depth of a tree, walked without recursion."""
    names: set[str] = set()
    deepest = 0
    stack = [(root, 1)]
    while stack:
        node, depth = stack.pop()
        deepest = max(deepest, depth)
        if isinstance(node, Variable):
            names.add(node.name)
        stack.extend((child, depth + 1) for child in _children(node))
    return names, deepest


def _evaluate(node: Node, scope: Mapping[str, Decimal]) -> Decimal:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Variable):
        try:
            return scope[node.name]
        except KeyError:
            raise UnknownVariableError(node.name) from None
    if isinstance(node, UnaryOp):
        value = _evaluate(node.operand, scope)
        return -value if node.op == "-" else value
    if isinstance(node, BinaryOp):
        left = _evaluate(node.left, scope)
        right = _evaluate(node.right, scope)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise EvaluationError("Division by zero")
        return left / right
    _, _, implementation = FUNCTIONS[node.function]
    return implementation(*(_evaluate(arg, scope) for arg in node.args))


@dataclass(frozen=True)
class Formula:
    """A parsed formula, reusable across employees."""

    text: str
    root: Node
    variables: frozenset[str]

    def evaluate(self, scope: Mapping[str, Decimal]) -> Decimal:
        """Evaluate against a variable mapping.

        Raises UnknownVariableError for names not in scope and
        EvaluationError for arithmetic failures.
        """
        try:
            return _evaluate(self.root, scope)
        except DecimalException as e:
            raise EvaluationError(f"Arithmetic error in '{self.text}': {e!r}") from e


@lru_cache(maxsize=1024)
def compile_formula(text: str) -> Formula:
    """Parse formula text into a cached Formula.

    Raises FormulaSyntaxError if the text is not a valid expression.
    """
    root = _Parser(text).parse()
    names, depth = _inspect(root)
    if depth > MAX_FORMULA_DEPTH:
        raise FormulaSyntaxError(text, 0, "formula too long to evaluate")
    return Formula(text=text, root=root, variables=frozenset(names))
