"""
Quantity formula interpreter.

Catalog line items carry quantity formulas such as
``MAX(3, CEIL(FLOOR_SF(zone) / 500))``. Formulas are tokenized and parsed
into a small expression tree and evaluated against zone metrics. Only the
whitelisted metrics and helper functions below can be referenced; nothing
is ever handed to the host interpreter.

Grammar::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER
                | METRIC [ "(" [IDENT] ")" ]
                | FUNCTION "(" expression ("," expression)* ")"
                | "(" expression ")"
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, NamedTuple, Union

import structlog
from pydantic import BaseModel, Field

from ..utils.money import round_measure
from .models import Zone
from .zone_metrics import ZoneMetrics, ZoneMetricsCalculator

logger = structlog.get_logger(__name__)

ALLOWED_METRICS: dict[str, str] = {
    "FLOOR_SF": "Floor square footage",
    "CEILING_SF": "Ceiling square footage",
    "WALL_SF": "Wall square footage net of openings",
    "WALL_SF_NET": "Wall square footage net of openings (alias of WALL_SF)",
    "WALL_SF_GROSS": "Wall square footage before opening deductions",
    "WALLS_CEILING_SF": "Net walls plus ceiling",
    "PERIMETER_LF": "Floor perimeter in linear feet",
    "HEIGHT_FT": "Ceiling height in feet",
    "LONG_WALL_SF": "Longer wall square footage",
    "SHORT_WALL_SF": "Shorter wall square footage",
    "ROOF_SF": "Roof square footage (pitch-adjusted)",
    "ROOF_SQ": "Roofing squares (100 SF)",
}

# name -> (min args, max args or None, description, example)
ALLOWED_FUNCTIONS: dict[str, tuple[int, int | None, str, str]] = {
    "MIN": (2, None, "Smallest of its arguments", "MIN(FLOOR_SF(zone), 1000)"),
    "MAX": (2, None, "Largest of its arguments", "MAX(FLOOR_SF(zone), 100)"),
    "ROUND": (1, 1, "Rounds to the nearest integer", "ROUND(WALL_SF(zone) * 1.1)"),
    "CEIL": (1, 1, "Rounds up to an integer", "CEIL(ROOF_SQ(zone))"),
    "FLOOR": (1, 1, "Rounds down to an integer", "FLOOR(PERIMETER_LF(zone))"),
    "ABS": (1, 1, "Absolute value", "ABS(FLOOR_SF(zone) - 100)"),
}

MAX_FORMULA_TOKENS = 400
MAX_NESTING_DEPTH = 100

_TOKEN_PATTERN = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+(?:\.\d*)?|\.\d+)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>[-+*/])"
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<comma>,)"
    r")"
)


class FormulaError(Exception):
    """Structural problem in a formula. Never leaves this module."""


class Token(NamedTuple):
    kind: str
    text: str
    pos: int


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class MetricRef:
    name: str


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Node", ...]


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Number, MetricRef, Call, Unary, Binary]


class FormulaValidation(BaseModel):
    """Static analysis of a formula."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    referenced_metrics: list[str] = Field(default_factory=list)
    referenced_functions: list[str] = Field(default_factory=list)


class QuantityResult(BaseModel):
    """Outcome of resolving a line item quantity."""

    success: bool
    quantity: float = 0.0
    source: Literal["formula", "manual", "default"] = "formula"
    explanation: str = ""
    formula: str | None = None
    breakdown: dict[str, float] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


def tokenize(formula: str) -> list[Token]:
    """Split a formula into tokens."""
    tokens: list[Token] = []
    pos = 0
    text = formula.rstrip()
    while pos < len(text):
        match = _TOKEN_PATTERN.match(text, pos)
        if match is None or match.lastgroup is None:
            offset = len(text) - len(text[pos:].lstrip())
            raise FormulaError(f"Unexpected character '{text[offset]}' at position {offset}")
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        if len(tokens) > MAX_FORMULA_TOKENS:
            raise FormulaError(f"Formula is longer than {MAX_FORMULA_TOKENS} tokens")
        pos = match.end()
    return tokens


class _Parser:
    """Recursive-descent parser that records whitelist violations."""

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.pos = 0
        self.depth = 0
        self.errors: list[str] = []
        self.metrics: list[str] = []
        self.functions: list[str] = []

    def parse(self) -> Node:
        if not self.tokens:
            raise FormulaError("Formula is empty")
        node = self._expression()
        token = self._peek()
        if token is not None:
            raise FormulaError(f"Unexpected '{token.text}' at position {token.pos}")
        return node

    def _peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise FormulaError("Unexpected end of formula")
        self.pos += 1
        return token

    def _expect(self, kind: str, what: str) -> Token:
        token = self._advance()
        if token.kind != kind:
            raise FormulaError(f"Expected {what} at position {token.pos}, found '{token.text}'")
        return token

    def _expression(self) -> Node:
        node = self._term()
        while (token := self._peek()) is not None and token.text in ("+", "-"):
            self._advance()
            node = Binary(token.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (token := self._peek()) is not None and token.text in ("*", "/"):
            self._advance()
            node = Binary(token.text, node, self._unary())
        return node

    def _unary(self) -> Node:
        # Every paren, argument and sign level passes through here once.
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise FormulaError("Formula is nested too deeply")
        try:
            token = self._peek()
            if token is not None and token.text in ("+", "-"):
                self._advance()
                return Unary(token.text, self._unary())
            return self._primary()
        finally:
            self.depth -= 1

    def _primary(self) -> Node:
        token = self._advance()

        if token.kind == "number":
            return Number(float(token.text))

        if token.kind == "lparen":
            node = self._expression()
            self._expect("rparen", "')'")
            return node

        if token.kind == "ident":
            following = self._peek()
            if following is not None and following.kind == "lparen":
                self._advance()
                if token.text in ALLOWED_METRICS:
                    self._metric_argument(token.text)
                    self._note(self.metrics, token.text)
                    return MetricRef(token.text)
                if token.text in ALLOWED_FUNCTIONS:
                    self._note(self.functions, token.text)
                args = self._arguments()
                self._check_function(token.text, len(args))
                return Call(token.text, tuple(args))

            if token.text in ALLOWED_METRICS:
                self._note(self.metrics, token.text)
            else:
                self.errors.append(f"Unknown metric: {token.text}")
            return MetricRef(token.text)

        raise FormulaError(f"Unexpected '{token.text}' at position {token.pos}")

    def _metric_argument(self, name: str) -> None:
        token = self._advance()
        if token.kind == "rparen":
            return
        if token.kind != "ident":
            raise FormulaError(f"{name} expects a zone reference, found '{token.text}'")
        self._expect("rparen", "')'")

    def _arguments(self) -> list[Node]:
        token = self._peek()
        if token is not None and token.kind == "rparen":
            self._advance()
            return []
        args = [self._expression()]
        while (token := self._advance()).kind == "comma":
            args.append(self._expression())
        if token.kind != "rparen":
            raise FormulaError(f"Expected ')' at position {token.pos}, found '{token.text}'")
        return args

    def _check_function(self, name: str, count: int) -> None:
        spec = ALLOWED_FUNCTIONS.get(name)
        if spec is None:
            self.errors.append(f"Unknown function: {name}")
            return
        minimum, maximum, _, _ = spec
        if maximum == minimum and count != minimum:
            self.errors.append(f"{name} requires {minimum} argument(s), got {count}")
        elif count < minimum:
            self.errors.append(f"{name} requires at least {minimum} arguments, got {count}")

    @staticmethod
    def _note(seen: list[str], name: str) -> None:
        if name not in seen:
            seen.append(name)


def _analyze(formula: str | None) -> tuple[Node | None, _Parser | None, list[str]]:
    if formula is None or not formula.strip():
        return None, None, ["Formula is empty"]
    try:
        tokens = tokenize(formula)
    except FormulaError as e:
        return None, None, [str(e)]

    parser = _Parser(tokens)
    try:
        tree = parser.parse()
    except FormulaError as e:
        return None, parser, [*parser.errors, str(e)]
    return tree, parser, list(parser.errors)


def validate_formula(formula: str | None) -> FormulaValidation:
    """
    Statically check a formula. Nothing is evaluated.

    Any identifier outside the metric/function whitelist makes the
    formula invalid.
    """
    tree, parser, errors = _analyze(formula)
    return FormulaValidation(
        valid=tree is not None and not errors,
        errors=errors,
        referenced_metrics=list(parser.metrics) if parser else [],
        referenced_functions=list(parser.functions) if parser else [],
    )


MetricSource = Union[ZoneMetrics, Mapping[str, float | None]]


class _Evaluator:
    def __init__(self, metrics: MetricSource) -> None:
        self.metrics = metrics
        self.breakdown: dict[str, float] = {}
        self.warnings: list[str] = []

    def _warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def _metric(self, name: str) -> float:
        if isinstance(self.metrics, ZoneMetrics):
            value = self.metrics.metric_value(name)
        else:
            value = self.metrics.get(name)

        if value is None:
            self._warn(f"Metric {name} is not available, using 0")
            value = 0.0
        elif value == 0 and name != "HEIGHT_FT":
            self._warn(f"Metric {name} is zero")

        value = self._finite(float(value))
        self.breakdown.setdefault(name, value)
        return value

    def _finite(self, value: float) -> float:
        if math.isfinite(value):
            return value
        self._warn("Non-finite value, using 0")
        return 0.0

    def evaluate(self, node: Node) -> float:
        if isinstance(node, Number):
            return self._finite(node.value)

        if isinstance(node, MetricRef):
            return self._metric(node.name)

        if isinstance(node, Unary):
            value = self.evaluate(node.operand)
            return -value if node.op == "-" else value

        if isinstance(node, Binary):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            if node.op == "+":
                return self._finite(left + right)
            if node.op == "-":
                return self._finite(left - right)
            if node.op == "*":
                return self._finite(left * right)
            if right == 0:
                self._warn("Division by zero, using 0")
                return 0.0
            return self._finite(left / right)

        args = [self.evaluate(arg) for arg in node.args]
        if node.name == "MIN":
            return min(args)
        if node.name == "MAX":
            return max(args)
        value = args[0]
        if node.name == "ROUND":
            return float(math.floor(value + 0.5))
        if node.name == "CEIL":
            return float(math.ceil(value))
        if node.name == "FLOOR":
            return float(math.floor(value))
        return abs(value)


def _explain(formula: str, breakdown: dict[str, float], result: float) -> str:
    parts = [f"Formula: {formula}"]
    if breakdown:
        parts.append("Values:")
        for key, value in breakdown.items():
            parts.append(f"  {key} = {value}")
    parts.append(f"Result: {result}")
    return "\n".join(parts)


def calculate_quantity_from_metrics(formula: str | None, metrics: MetricSource) -> QuantityResult:
    """
    Evaluate a formula against already computed metrics.

    Fails exactly when validate_formula() reports the formula invalid.
    Division by zero and missing metric values only add warnings.
    """
    tree, _, errors = _analyze(formula)
    if tree is None or errors:
        error = "; ".join(errors)
        logger.warning("quantity_formula_failed", formula=formula, error=error)
        return QuantityResult(
            success=False,
            formula=formula,
            explanation=f"Formula evaluation failed: {error}",
            error=error,
        )

    evaluator = _Evaluator(metrics)
    value = round_measure(evaluator.evaluate(tree), places=4)
    return QuantityResult(
        success=True,
        quantity=value,
        formula=formula,
        breakdown=evaluator.breakdown,
        warnings=evaluator.warnings,
        explanation=_explain(formula or "", evaluator.breakdown, value),
    )


def calculate_quantity(
    formula: str | None,
    zone: Zone,
    calculator: ZoneMetricsCalculator | None = None,
) -> QuantityResult:
    """Compute the zone's metrics, then evaluate the formula against them."""
    metrics = (calculator or ZoneMetricsCalculator()).compute(zone)
    return calculate_quantity_from_metrics(formula, metrics)


def manual_quantity_result(quantity: float, reason: str | None = None) -> QuantityResult:
    return QuantityResult(
        success=True,
        quantity=quantity,
        source="manual",
        explanation=reason or "Manually entered quantity",
    )


def default_quantity_result(quantity: float, reason: str) -> QuantityResult:
    return QuantityResult(
        success=True,
        quantity=quantity,
        source="default",
        explanation=reason,
    )


def available_metrics() -> list[dict[str, str]]:
    """Metric names usable in catalog formulas."""
    return [
        {"name": name, "description": description}
        for name, description in ALLOWED_METRICS.items()
    ]


def available_functions() -> list[dict[str, str]]:
    """Helper functions usable in catalog formulas."""
    return [
        {"name": name, "description": spec[2], "example": spec[3]}
        for name, spec in ALLOWED_FUNCTIONS.items()
    ]
