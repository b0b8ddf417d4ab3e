"""
Unit tests for condition parsing and writing.
"""

import datetime

import pytest
from sqlblock.conditions import ast
from sqlblock.conditions.parser import ConditionParser, parse_condition
from sqlblock.conditions.writer import ConditionWriter
from sqlblock.utils.exceptions import ConditionSyntaxError, ConstructionError
from sqlblock.utils.values import DEFAULT_FORMATTER


class TestConditionParser:
    """Test parsing condition text into condition nodes."""

    def setup_method(self):
        """Set up parser for each test."""
        self.parser = ConditionParser()

    def test_bare_variable(self):
        """Test a lone variable parses as a truth test."""
        assert self.parser.parse("done") == ast.TruthTest(ast.VarRef("done"))

    def test_comparison(self):
        """Test variable comparison."""
        result = self.parser.parse("b < c")
        assert result == ast.Comparison(ast.VarRef("b"), ast.ComparisonOp.LT, ast.VarRef("c"))

    def test_literals(self):
        """Test number, string and keyword literals."""
        assert self.parser.parse("x = 2.5").right == ast.Literal(2.5)
        assert self.parser.parse("x = -3").right == ast.Literal(-3)
        assert self.parser.parse("x = 'it''s'").right == ast.Literal("it's")
        assert self.parser.parse("x = TRUE").right == ast.Literal(True)
        assert self.parser.parse("x = null").right == ast.Literal(None)

    def test_not_equal_spellings(self):
        """Test != and <> both parse as not-equal."""
        assert self.parser.parse("a != 1").op == ast.ComparisonOp.NE
        assert self.parser.parse("a <> 1").op == ast.ComparisonOp.NE

    def test_keywords_case_insensitive(self):
        """Test AND / OR / NOT in any case."""
        assert self.parser.parse("a and b") == self.parser.parse("a AND b")
        assert isinstance(self.parser.parse("Not a"), ast.NotCondition)

    def test_keyword_prefix_is_a_name(self):
        """Test names starting with a keyword stay names."""
        assert self.parser.parse("notes") == ast.TruthTest(ast.VarRef("notes"))
        assert self.parser.parse("order_id > 1").left == ast.VarRef("order_id")

    def test_user_variable(self):
        """Test @-prefixed user variables."""
        assert self.parser.parse("@total >= 10").left == ast.VarRef("@total")

    def test_backtick_column(self):
        """Test quoted table columns."""
        result = self.parser.parse("`t`.`id` = 1")
        assert result.left == ast.ColumnRef(column_name="id", table_name="t")

    def test_and_binds_tighter_than_or(self):
        """Test operator precedence."""
        result = self.parser.parse("a OR b AND c")
        assert result.op == ast.LogicalOp.OR
        assert result.right.op == ast.LogicalOp.AND

    def test_parentheses(self):
        """Test grouping overrides precedence."""
        result = self.parser.parse("(a OR b) AND c")
        assert result.op == ast.LogicalOp.AND
        assert result.left.op == ast.LogicalOp.OR

    def test_is_null(self):
        """Test IS NULL and IS NOT NULL."""
        assert self.parser.parse("v IS NULL") == ast.IsNull(ast.VarRef("v"))
        assert self.parser.parse("v is not null") == ast.IsNull(ast.VarRef("v"), negated=True)

    def test_like(self):
        """Test LIKE and NOT LIKE."""
        result = self.parser.parse("name LIKE 'a%'")
        assert result == ast.PatternCondition(ast.VarRef("name"), ast.PatternOp.LIKE, ast.Literal("a%"))
        assert self.parser.parse("name NOT LIKE 'a%'").negated

    def test_in_list(self):
        """Test IN and NOT IN with a value list."""
        result = self.parser.parse("x IN (1, 2)")
        assert result == ast.InCondition(ast.VarRef("x"), (ast.Literal(1), ast.Literal(2)))
        assert self.parser.parse("x NOT IN ('a')").negated

    def test_arithmetic(self):
        """Test arithmetic operands keep their precedence."""
        result = self.parser.parse("cnt + 1 * 2 > max_cnt")
        assert result.left == ast.Arithmetic(
            ast.VarRef("cnt"),
            ast.ArithmeticOp.ADD,
            ast.Arithmetic(ast.Literal(1), ast.ArithmeticOp.MUL, ast.Literal(2))
        )

    def test_subtraction_without_spaces(self):
        """Test a minus sign between operands is subtraction."""
        result = self.parser.parse("a-1 > 0")
        assert result.left == ast.Arithmetic(ast.VarRef("a"), ast.ArithmeticOp.SUB, ast.Literal(1))

    def test_function_call(self):
        """Test function calls with and without arguments."""
        assert self.parser.parse("ROW_COUNT() > 0").left == ast.FunctionCall("ROW_COUNT")
        result = self.parser.parse("COALESCE(a, 0) = 1").left
        assert result == ast.FunctionCall("COALESCE", (ast.VarRef("a"), ast.Literal(0)))

    def test_keyword_prefixed_names(self):
        """Test names starting with IS / IN / LIKE stay names."""
        assert self.parser.parse("is_open") == ast.TruthTest(ast.VarRef("is_open"))
        assert self.parser.parse("index > likes").right == ast.VarRef("likes")

    @pytest.mark.parametrize("text", ["", "a <", "a = = 1", "(a", "AND a", "a b"])
    def test_syntax_errors(self, text):
        """Test invalid condition text raises error."""
        with pytest.raises(ConditionSyntaxError):
            self.parser.parse(text)

    def test_syntax_error_is_construction_error(self):
        """Test syntax errors can be caught as construction errors."""
        with pytest.raises(ConstructionError) as exc_info:
            parse_condition("a <")
        assert exc_info.value.condition == "a <"


class TestConditionWriter:
    """Test writing condition nodes as SQL."""

    def setup_method(self):
        """Set up writer for each test."""
        self.writer = ConditionWriter(DEFAULT_FORMATTER)

    def write_text(self, text):
        return self.writer.write(parse_condition(text))

    def test_precedence_is_parenthesized(self):
        """Test nested logical conditions are fully parenthesized."""
        assert self.write_text("a > 1 and b <= 2.5 or not c") == "((a > 1 AND b <= 2.5) OR NOT c)"

    def test_not_equal_written_as_ansi(self):
        """Test != is written as <>."""
        assert self.write_text("a != 'x'") == "a <> 'x'"

    @pytest.mark.parametrize("text, expected", [
        ("v IS NULL", "v IS NULL"),
        ("v is not null", "v IS NOT NULL"),
        ("cnt + 1 > max_cnt", "cnt + 1 > max_cnt"),
        ("(a + b) * 2 >= c", "(a + b) * 2 >= c"),
        ("a - (b - c) = 0", "a - (b - c) = 0"),
        ("-(a + 1) < -2", "-(a + 1) < -2"),
        ("ROW_COUNT() > 0", "ROW_COUNT() > 0"),
        ("IFNULL(x, 0) % 2 = 1", "IFNULL(x, 0) % 2 = 1"),
        ("x IN (1, 2)", "x IN (1, 2)"),
        ("x not in ('a', 'b')", "x NOT IN ('a', 'b')"),
        ("name LIKE 'a%'", "name LIKE 'a%'"),
        ("name NOT LIKE 'a%' AND v IS NOT NULL", "(name NOT LIKE 'a%' AND v IS NOT NULL)"),
    ])
    def test_mysql_predicates(self, text, expected):
        """Test IS NULL, LIKE, IN, arithmetic and function calls round to SQL."""
        assert self.write_text(text) == expected

    def test_pattern_and_list_helpers(self):
        """Test the LIKE / MATCH / IN / NOT IN helpers."""
        assert self.writer.write(ast.like("k", "v%")) == "`k` LIKE 'v%'"
        assert self.writer.write(ast.match("k", "v")) == "`k` MATCH 'v'"
        assert self.writer.write(ast.in_("k", ["a", 2])) == "`k` IN ('a', 2)"
        assert self.writer.write(ast.not_in("t.k", [None, True])) == "`t`.`k` NOT IN (NULL, TRUE)"

    def test_null_helpers(self):
        """Test the IS NULL helpers."""
        assert self.writer.write(ast.is_null("k")) == "`k` IS NULL"
        assert self.writer.write(ast.is_not_null("k")) == "`k` IS NOT NULL"

    def test_list_values_use_formatter(self):
        """Test IN values go through the writer's formatter."""
        formatter = DEFAULT_FORMATTER.with_converter(datetime.date, lambda d: f"DATE '{d}'")
        condition = ast.in_("day", [datetime.date(2024, 5, 1)])
        assert ConditionWriter(formatter).write(condition) == "`day` IN (DATE '2024-05-01')"

    def test_column_is_engraved(self):
        """Test columns are backtick-quoted."""
        assert self.writer.write(ast.equals("test.t1", 3)) == "`test`.`t1` = 3"

    def test_helpers(self):
        """Test helper-built conditions."""
        assert self.writer.write(ast.bool_("done")) == "done"
        assert self.writer.write(ast.var_less("b", "c")) == "b < c"
        assert self.writer.write(ast.not_(ast.less_equal("n", None))) == "NOT `n` <= NULL"
        assert self.writer.write(
            ast.or_(ast.greater("a", 1), ast.not_equals("b", True))
        ) == "(`a` > 1 OR `b` <> TRUE)"

    def test_literal_uses_formatter_converters(self):
        """Test literal values go through the writer's formatter."""
        formatter = DEFAULT_FORMATTER.with_converter(datetime.date, lambda d: f"DATE '{d}'")
        writer = ConditionWriter(formatter)
        condition = ast.equals("created", datetime.date(2024, 5, 1))
        assert writer.write(condition) == "`created` = DATE '2024-05-01'"

    def test_unknown_node(self):
        """Test an unknown node type raises error."""
        with pytest.raises(ConstructionError):
            self.writer.write("a < b")
