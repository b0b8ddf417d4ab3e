"""
Writes condition trees as SQL text.

Single implementation used everywhere a condition is embedded in a
statement (IF, ELSEIF, WHILE, REPEAT ... UNTIL).
"""

from .ast import (
    Comparison, LogicalCondition, NotCondition, TruthTest,
    IsNull, PatternCondition, InCondition, CONDITION_TYPES,
    ColumnRef, VarRef, Literal, Arithmetic, Negative, FunctionCall
)
from ..utils.exceptions import ConstructionError


class ConditionWriter:
    """
    Turns condition nodes into SQL.

    Literal values are formatted by the ValueFormatter given at
    construction, so custom converters apply inside conditions too.
    """

    def __init__(self, formatter):
        self.formatter = formatter

    def write(self, condition) -> str:
        """
        Write a condition node.

        Args:
            condition: Condition node

        Returns:
            SQL text of the condition

        Raises:
            ConstructionError: If the node type is unknown
        """
        if isinstance(condition, Comparison):
            return f"{self._write_expr(condition.left)} {condition.op.value} {self._write_expr(condition.right)}"
        elif isinstance(condition, LogicalCondition):
            # Parenthesized so nesting never depends on operator precedence
            return f"({self.write(condition.left)} {condition.op.value} {self.write(condition.right)})"
        elif isinstance(condition, NotCondition):
            return f"NOT {self.write(condition.operand)}"
        elif isinstance(condition, TruthTest):
            return self._write_expr(condition.operand)
        elif isinstance(condition, IsNull):
            negation = "NOT " if condition.negated else ""
            return f"{self._write_expr(condition.operand)} IS {negation}NULL"
        elif isinstance(condition, PatternCondition):
            negation = "NOT " if condition.negated else ""
            return (
                f"{self._write_expr(condition.operand)} {negation}{condition.op.value} "
                f"{self._write_expr(condition.pattern)}"
            )
        elif isinstance(condition, InCondition):
            negation = "NOT " if condition.negated else ""
            values = ", ".join(self._write_expr(value) for value in condition.values)
            return f"{self._write_expr(condition.operand)} {negation}IN ({values})"
        else:
            raise ConstructionError(f"Unknown condition type: {type(condition).__name__}")

    def _write_expr(self, expr) -> str:
        if isinstance(expr, VarRef):
            return expr.name
        elif isinstance(expr, ColumnRef):
            return self.formatter.engrave(str(expr))
        elif isinstance(expr, Literal):
            return self.formatter.format(expr.value)
        elif isinstance(expr, Arithmetic):
            left = self._write_operand(expr.left, expr.op.precedence, right_side=False)
            right = self._write_operand(expr.right, expr.op.precedence, right_side=True)
            return f"{left} {expr.op.value} {right}"
        elif isinstance(expr, Negative):
            if isinstance(expr.operand, Arithmetic):
                return f"-({self._write_expr(expr.operand)})"
            return f"-{self._write_expr(expr.operand)}"
        elif isinstance(expr, FunctionCall):
            arguments = ", ".join(self._write_argument(arg) for arg in expr.arguments)
            return f"{expr.name}({arguments})"
        elif isinstance(expr, LogicalCondition):
            return self.write(expr)
        elif isinstance(expr, TruthTest):
            return self._write_expr(expr.operand)
        elif isinstance(expr, CONDITION_TYPES):
            # A predicate used as a value, e.g. (a = b) = TRUE
            return f"({self.write(expr)})"
        else:
            raise ConstructionError(f"Unknown expression type: {type(expr).__name__}")

    def _write_operand(self, expr, precedence: int, right_side: bool) -> str:
        text = self._write_expr(expr)
        if isinstance(expr, Arithmetic):
            inner = expr.op.precedence
            if inner < precedence or (right_side and inner == precedence):
                return f"({text})"
        return text

    def _write_argument(self, arg) -> str:
        if isinstance(arg, CONDITION_TYPES):
            return self.write(arg)
        return self._write_expr(arg)
