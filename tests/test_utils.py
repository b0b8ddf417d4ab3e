"""
Unit tests for utility modules (values, types, exceptions).
"""

import uuid
from decimal import Decimal

import pytest
from sqlblock.statements import nodes
from sqlblock.types import DataType, TypeSpec, type_text
from sqlblock.utils.exceptions import (
    SQLBlockError,
    OrderingError,
    StateError,
    ConstructionError,
    ConditionSyntaxError
)
from sqlblock.utils.values import (
    DEFAULT_FORMATTER,
    QueryFunction,
    ValueFormatter,
    engrave,
    enquote,
    format_value,
    query_text
)


class TestValueFormatter:
    """Test literal formatting."""

    def test_null_and_booleans(self):
        """Test None, True and False."""
        assert format_value(None) == "NULL"
        assert format_value(True) == "TRUE"
        assert format_value(False) == "FALSE"

    def test_numbers(self):
        """Test numbers are written unquoted."""
        assert format_value(42) == "42"
        assert format_value(-1.5) == "-1.5"
        assert format_value(Decimal("10.25")) == "10.25"

    def test_strings_are_quoted(self):
        """Test strings are single-quoted with quotes doubled."""
        assert format_value("abc") == "'abc'"
        assert format_value("it's") == "'it''s'"

    def test_bytes_as_hex(self):
        """Test bytes become a hex literal."""
        assert format_value(b"\x01\xab") == "0x01AB"

    def test_query_function_verbatim(self):
        """Test QueryFunction text is not quoted."""
        assert format_value(QueryFunction("NOW()")) == "NOW()"

    def test_uuid_quoted(self):
        """Test UUIDs are written as strings."""
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert format_value(value) == "'12345678-1234-5678-1234-567812345678'"

    def test_fallback_to_str(self):
        """Test unknown objects use their quoted str()."""
        class Token:
            def __str__(self):
                return "tok"

        assert format_value(Token()) == "'tok'"

    def test_with_converter_returns_new_formatter(self):
        """Test registering a converter leaves the original unchanged."""
        class Point:
            pass

        class Point3(Point):
            pass

        formatter = DEFAULT_FORMATTER.with_converter(Point, lambda p: "POINT(0 0)")

        assert isinstance(formatter, ValueFormatter)
        assert formatter.format(Point3()) == "POINT(0 0)"
        assert DEFAULT_FORMATTER.format(Point()).startswith("'")

    def test_builtin_rules_win_over_converters(self):
        """Test converters cannot change the built-in literal rules."""
        formatter = DEFAULT_FORMATTER.with_converter(int, lambda i: "X")
        assert formatter.format(7) == "7"

    def test_format_condition(self):
        """Test conditions accept text, nodes and verbatim functions."""
        assert DEFAULT_FORMATTER.format_condition("b < c") == "b < c"
        assert DEFAULT_FORMATTER.format_condition(QueryFunction("x IS NULL")) == "x IS NULL"

    def test_format_condition_syntax_error(self):
        """Test unparsable condition text raises error."""
        with pytest.raises(ConditionSyntaxError):
            DEFAULT_FORMATTER.format_condition("a < ")

    def test_quoting_helpers(self):
        """Test enquote() and engrave()."""
        assert enquote("a'b") == "'a''b'"
        assert engrave("test.t1") == "`test`.`t1`"
        assert engrave("t1") == "`t1`"


class TestQueryText:
    """Test query text extraction."""

    def test_trailing_semicolon_removed(self):
        """Test the trailing semicolon is stripped."""
        assert query_text("SELECT 1; ") == "SELECT 1"

    def test_query_builder(self):
        """Test objects with build_query() are accepted."""
        class Select:
            def build_query(self):
                return "SELECT id FROM t;"

        assert query_text(Select()) == "SELECT id FROM t"

    def test_invalid_query(self):
        """Test other objects raise error."""
        with pytest.raises(ConstructionError):
            query_text(42)


class TestTypes:
    """Test type specs."""

    def test_data_type_aliases(self):
        """Test type names and their aliases."""
        assert DataType.from_string("int") == DataType.INT
        assert DataType.from_string("INTEGER") == DataType.INT
        assert DataType.from_string("bool") == DataType.BOOLEAN
        assert DataType.from_string("numeric") == DataType.DECIMAL

    def test_unknown_data_type(self):
        """Test unknown type names raise error."""
        with pytest.raises(ConstructionError):
            DataType.from_string("MONEY")

    def test_type_string(self):
        """Test type text with parameters and flags."""
        assert TypeSpec(DataType.CHAR, 16).type_string() == "CHAR(16)"
        assert TypeSpec("decimal", 10, 2).type_string() == "DECIMAL(10, 2)"
        assert TypeSpec(DataType.INT, unsigned=True).type_string() == "INT UNSIGNED"

    def test_declaration_default(self):
        """Test DEFAULT clause uses the value formatter."""
        assert TypeSpec(DataType.INT, default=False).declaration() == "INT DEFAULT FALSE"
        assert TypeSpec(DataType.VARCHAR, 8, default="x").declaration() == "VARCHAR(8) DEFAULT 'x'"
        assert TypeSpec(DataType.INT).declaration() == "INT"

    def test_with_default(self):
        """Test with_default() returns an equal spec apart from its default."""
        spec = TypeSpec(DataType.INT)
        assert spec.with_default(0) == TypeSpec(DataType.INT, default=0)
        assert spec.default is None

    def test_unsigned_numeric_only(self):
        """Test UNSIGNED on a non-numeric type raises error."""
        assert TypeSpec(DataType.DECIMAL, 10, 2, unsigned=True).type_string() == "DECIMAL(10, 2) UNSIGNED"
        with pytest.raises(ConstructionError, match="UNSIGNED"):
            TypeSpec(DataType.CHAR, 4, unsigned=True)

    def test_length_required(self):
        """Test VARCHAR without length raises error."""
        with pytest.raises(ConstructionError):
            TypeSpec(DataType.VARCHAR)

    def test_invalid_params(self):
        """Test negative and non-integer parameters raise error."""
        with pytest.raises(ConstructionError):
            TypeSpec(DataType.CHAR, -1)
        with pytest.raises(ConstructionError):
            TypeSpec(DataType.CHAR, "16")

    def test_type_text(self):
        """Test type_text() accepts specs and verbatim text."""
        assert type_text(TypeSpec("INT")) == "INT"
        assert type_text(" BIGINT UNSIGNED ") == "BIGINT UNSIGNED"
        with pytest.raises(ConstructionError):
            type_text("")
        with pytest.raises(ConstructionError):
            type_text(3)


class TestExceptions:
    """Test exception hierarchy."""

    def test_exception_hierarchy(self):
        """Test every error derives from SQLBlockError."""
        assert issubclass(OrderingError, SQLBlockError)
        assert issubclass(StateError, SQLBlockError)
        assert issubclass(ConstructionError, SQLBlockError)
        assert issubclass(ConditionSyntaxError, ConstructionError)

    def test_ordering_error_message(self):
        """Test the ordering error names the statements involved."""
        error = OrderingError(nodes.declare("a", "INT"), 2, nodes.open_cursor("c"))
        assert str(error) == (
            "All declaring statements must be at the top of the block; "
            "cannot insert Declare at index 2 after OpenCursor"
        )

    def test_condition_syntax_error_message(self):
        """Test the syntax error carries the condition text."""
        error = ConditionSyntaxError("unexpected end", "a <")
        assert str(error) == "Condition syntax error: unexpected end\nCondition: a <"
        assert error.condition == "a <"
