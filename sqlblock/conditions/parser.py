"""
Condition parser using Lark.

Parses condition text such as ``"done"`` or ``"b < c AND NOT finished"``
into condition tree nodes, so callers can write conditions the way they
would write them in SQL while the builder still gets a structured value.
"""

from functools import lru_cache
from pathlib import Path
from lark import Lark, Transformer
from lark.exceptions import LarkError

from . import ast
from ..utils.exceptions import ConditionSyntaxError


class ConditionBuilder(Transformer):
    """
    Transforms a Lark parse tree into condition tree nodes.

    Each method corresponds to a rule or alias in the grammar and returns
    the appropriate node. A bare operand where a condition is expected,
    e.g. ``done`` or ``a AND b``, becomes a TruthTest.
    """

    # ----- Top-level -----

    def start(self, args):
        return _as_condition(args[0])

    # ----- Logical -----

    def condition_or(self, args):
        return ast.LogicalCondition(
            left=_as_condition(args[0]), op=ast.LogicalOp.OR, right=_as_condition(args[1])
        )

    def condition_and(self, args):
        return ast.LogicalCondition(
            left=_as_condition(args[0]), op=ast.LogicalOp.AND, right=_as_condition(args[1])
        )

    def condition_not(self, args):
        return ast.NotCondition(operand=_as_condition(args[0]))

    # ----- Predicates -----

    def comparison(self, args):
        left, op, right = args
        return ast.Comparison(left=left, op=op, right=right)

    def is_null(self, args):
        return ast.IsNull(operand=args[0])

    def is_not_null(self, args):
        return ast.IsNull(operand=args[0], negated=True)

    def like(self, args):
        return ast.PatternCondition(operand=args[0], op=ast.PatternOp.LIKE, pattern=args[1])

    def not_like(self, args):
        return ast.PatternCondition(
            operand=args[0], op=ast.PatternOp.LIKE, pattern=args[1], negated=True
        )

    def in_list(self, args):
        return ast.InCondition(operand=args[0], values=tuple(args[1:]))

    def not_in_list(self, args):
        return ast.InCondition(operand=args[0], values=tuple(args[1:]), negated=True)

    def op_eq(self, args):
        return ast.ComparisonOp.EQ

    def op_ne(self, args):
        return ast.ComparisonOp.NE

    def op_ne2(self, args):
        return ast.ComparisonOp.NE

    def op_lt(self, args):
        return ast.ComparisonOp.LT

    def op_gt(self, args):
        return ast.ComparisonOp.GT

    def op_lte(self, args):
        return ast.ComparisonOp.LTE

    def op_gte(self, args):
        return ast.ComparisonOp.GTE

    # ----- Arithmetic -----

    def arithmetic(self, args):
        left, op, right = args
        return ast.Arithmetic(left=left, op=op, right=right)

    def negative(self, args):
        operand = args[0]
        # Fold "-3" into the literal
        if (isinstance(operand, ast.Literal)
                and isinstance(operand.value, (int, float))
                and not isinstance(operand.value, bool)):
            return ast.Literal(value=-operand.value)
        return ast.Negative(operand=operand)

    def op_add(self, args):
        return ast.ArithmeticOp.ADD

    def op_sub(self, args):
        return ast.ArithmeticOp.SUB

    def op_mul(self, args):
        return ast.ArithmeticOp.MUL

    def op_div(self, args):
        return ast.ArithmeticOp.DIV

    def op_mod(self, args):
        return ast.ArithmeticOp.MOD

    # ----- Operands -----

    def function_call(self, args):
        return ast.FunctionCall(name=str(args[0]), arguments=tuple(args[1:]))

    def expr_variable(self, args):
        return ast.VarRef(name=str(args[0]))

    def expr_column(self, args):
        # `table`.`column` or `column`
        parts = [part.strip('`') for part in str(args[0]).split('`.`')]
        if len(parts) == 2:
            return ast.ColumnRef(column_name=parts[1], table_name=parts[0])
        return ast.ColumnRef(column_name=parts[0])

    # ----- Literals -----

    def lit_number(self, args):
        value_str = str(args[0])
        if '.' in value_str or 'e' in value_str.lower():
            value = float(value_str)
        else:
            value = int(value_str)
        return ast.Literal(value=value)

    def lit_string(self, args):
        # Remove quotes, then undo both escape styles
        value_str = str(args[0])[1:-1]
        value_str = value_str.replace("''", "'").replace("\\'", "'")
        return ast.Literal(value=value_str)

    def lit_true(self, args):
        return ast.Literal(value=True)

    def lit_false(self, args):
        return ast.Literal(value=False)

    def lit_null(self, args):
        return ast.Literal(value=None)


def _as_condition(node) -> ast.Condition:
    if isinstance(node, ast.CONDITION_TYPES):
        return node
    return ast.TruthTest(operand=node)


class ConditionParser:
    """
    Condition parser facade.

    Provides simple interface for parsing condition strings into nodes.
    """

    def __init__(self):
        """Initialize parser with grammar."""
        grammar_path = Path(__file__).parent / "grammar.lark"
        with open(grammar_path, 'r') as f:
            grammar = f.read()

        self._parser = Lark(
            grammar,
            start='start',
            parser='lalr'  # Fast LALR parser
        )
        self._transformer = ConditionBuilder()

    def parse(self, text: str) -> ast.Condition:
        """
        Parse condition text into a condition node.

        Args:
            text: Condition text, e.g. "b < c"

        Returns:
            Condition node

        Raises:
            ConditionSyntaxError: If the text is not a valid condition
        """
        try:
            tree = self._parser.parse(text.strip())
            return self._transformer.transform(tree)
        except LarkError as e:
            raise ConditionSyntaxError(str(e), text)


@lru_cache(maxsize=1)
def _shared_parser() -> ConditionParser:
    return ConditionParser()


def parse_condition(text: str) -> ast.Condition:
    """Parse condition text with a lazily built, shared parser."""
    return _shared_parser().parse(text)
