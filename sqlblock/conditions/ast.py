"""
Boolean condition tree.

These dataclasses describe the conditions used by IF, ELSEIF, WHILE and
REPEAT ... UNTIL. They are built directly with the helper functions at the
bottom of this module or parsed from text by ConditionParser, and turned
into SQL by ConditionWriter.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple
from enum import Enum


# ----- Enums -----

class ComparisonOp(Enum):
    """Comparison operators, valued by their SQL spelling."""
    EQ = "="
    NE = "<>"
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="


class LogicalOp(Enum):
    """Logical operators for combining conditions."""
    AND = "AND"
    OR = "OR"


class ArithmeticOp(Enum):
    """Arithmetic operators, valued by their SQL spelling."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    @property
    def precedence(self) -> int:
        return 1 if self in (ArithmeticOp.ADD, ArithmeticOp.SUB) else 2


class PatternOp(Enum):
    """String pattern operators."""
    LIKE = "LIKE"
    MATCH = "MATCH"


# ----- Expression Nodes -----

@dataclass(frozen=True)
class ColumnRef:
    """Reference to a table column, optionally qualified with table name."""
    column_name: str
    table_name: Optional[str] = None

    def __str__(self):
        if self.table_name:
            return f"{self.table_name}.{self.column_name}"
        return self.column_name


@dataclass(frozen=True)
class VarRef:
    """Reference to a procedural variable (local, parameter or @user)."""
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Literal:
    """Literal value (number, string, boolean, null), written by the value formatter."""
    value: Any


@dataclass(frozen=True)
class Arithmetic:
    """Binary arithmetic: left op right."""
    left: 'Expr'
    op: ArithmeticOp
    right: 'Expr'


@dataclass(frozen=True)
class Negative:
    """Unary minus on a non-literal operand."""
    operand: 'Expr'


@dataclass(frozen=True)
class FunctionCall:
    """Call of a SQL function, e.g. ``ROW_COUNT()`` or ``COALESCE(a, 0)``."""
    name: str
    arguments: Tuple[Any, ...] = ()


# ----- Condition Nodes -----

@dataclass(frozen=True)
class Comparison:
    """Binary comparison: left op right."""
    left: 'Expr'
    op: ComparisonOp
    right: 'Expr'


@dataclass(frozen=True)
class LogicalCondition:
    """Logical combination of conditions: left AND/OR right."""
    left: 'Condition'
    op: LogicalOp
    right: 'Condition'


@dataclass(frozen=True)
class NotCondition:
    """Negated condition."""
    operand: 'Condition'


@dataclass(frozen=True)
class TruthTest:
    """A bare operand used as a condition, e.g. ``IF done THEN``."""
    operand: 'Expr'


@dataclass(frozen=True)
class IsNull:
    """operand IS [NOT] NULL."""
    operand: 'Expr'
    negated: bool = False


@dataclass(frozen=True)
class PatternCondition:
    """operand [NOT] LIKE pattern, or operand MATCH pattern."""
    operand: 'Expr'
    op: PatternOp
    pattern: 'Expr'
    negated: bool = False


@dataclass(frozen=True)
class InCondition:
    """operand [NOT] IN (values...)."""
    operand: 'Expr'
    values: Tuple['Expr', ...]
    negated: bool = False


# Type aliases for clarity
Expr = ColumnRef | VarRef | Literal | Arithmetic | Negative | FunctionCall
Condition = (
    Comparison | LogicalCondition | NotCondition | TruthTest |
    IsNull | PatternCondition | InCondition
)

CONDITION_TYPES = (
    Comparison, LogicalCondition, NotCondition, TruthTest,
    IsNull, PatternCondition, InCondition
)


# ----- Helpers -----

def _literal(value: Any) -> Expr:
    if isinstance(value, (ColumnRef, VarRef, Literal, Arithmetic, Negative, FunctionCall)):
        return value
    return Literal(value)


def _column(column: str | ColumnRef) -> ColumnRef:
    if isinstance(column, ColumnRef):
        return column
    table_name, _, column_name = column.rpartition('.')
    return ColumnRef(column_name=column_name, table_name=table_name or None)


def bool_(variable: str) -> TruthTest:
    """Condition that holds when the variable is truthy."""
    return TruthTest(VarRef(variable))


def var_less(left: str, right: str) -> Comparison:
    """Compare two variables: ``left < right``."""
    return Comparison(VarRef(left), ComparisonOp.LT, VarRef(right))


def equals(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.EQ, _literal(value))


def not_equals(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.NE, _literal(value))


def greater(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.GT, _literal(value))


def greater_equal(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.GTE, _literal(value))


def less(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.LT, _literal(value))


def less_equal(column, value) -> Comparison:
    return Comparison(_column(column), ComparisonOp.LTE, _literal(value))


def and_(left: Condition, right: Condition) -> LogicalCondition:
    return LogicalCondition(left, LogicalOp.AND, right)


def or_(left: Condition, right: Condition) -> LogicalCondition:
    return LogicalCondition(left, LogicalOp.OR, right)


def not_(condition: Condition) -> NotCondition:
    return NotCondition(condition)


def like(column, pattern) -> PatternCondition:
    return PatternCondition(_column(column), PatternOp.LIKE, _literal(pattern))


def match(column, value) -> PatternCondition:
    return PatternCondition(_column(column), PatternOp.MATCH, _literal(value))


def in_(column, values: Iterable) -> InCondition:
    """``column IN (values...)``; each value goes through the formatter."""
    return InCondition(_column(column), tuple(_literal(v) for v in values))


def not_in(column, values: Iterable) -> InCondition:
    return InCondition(_column(column), tuple(_literal(v) for v in values), negated=True)


def is_null(column) -> IsNull:
    return IsNull(_column(column))


def is_not_null(column) -> IsNull:
    return IsNull(_column(column), negated=True)
