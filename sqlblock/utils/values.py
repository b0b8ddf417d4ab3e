"""
Value formatting for generated SQL.

Single source of truth for turning host values, conditions and query
objects into SQL text. Every statement factory that embeds a value goes
through a ValueFormatter.
"""

import numbers
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .exceptions import ConstructionError
from ..conditions.parser import parse_condition
from ..conditions.writer import ConditionWriter


@dataclass(frozen=True)
class QueryFunction:
    """SQL text that must be emitted verbatim, e.g. a function call or variable."""
    function: str

    def __str__(self):
        return self.function


def escape_quotes(s: str) -> str:
    """Double every single quote so it reads as a literal quote in SQL."""
    return s.replace("'", "''")


def enquote(s: str) -> str:
    """
    Wrap a string in single quotes, escaping quotes inside it.

    Example:
        enquote("it's") -> "'it''s'"
    """
    return "'" + escape_quotes(s) + "'"


def engrave(s: str) -> str:
    """
    Wrap an identifier in backticks, quoting each dotted part.

    Example:
        engrave("test.t1") -> "`test`.`t1`"
    """
    return '`' + s.replace('.', '`.`') + '`'


class ValueFormatter:
    """
    Converts host values and conditions into SQL literals.

    Formatters are immutable: with_converter() returns a new formatter,
    so one can be shared by any number of builders.
    """

    def __init__(self, converters: Optional[Dict[type, Callable[[Any], str]]] = None):
        self._converters = dict(converters or {})

    enquote = staticmethod(enquote)
    engrave = staticmethod(engrave)

    def with_converter(self, value_type: type, converter: Callable[[Any], str]) -> 'ValueFormatter':
        """
        Return a formatter that also knows how to format value_type.

        Converters are consulted after the built-in cases, matching the
        value's class or any of its base classes.
        """
        converters = dict(self._converters)
        converters[value_type] = converter
        return ValueFormatter(converters)

    def format(self, value: Any) -> str:
        """
        Format a value as a SQL literal.

        Rules, in order:
        - None -> NULL
        - bool -> TRUE / FALSE
        - numbers -> their literal text
        - bytes -> 0x followed by uppercase hex
        - QueryFunction -> its text, verbatim
        - UUID -> quoted string
        - registered converters
        - anything else -> quoted str(value)
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, numbers.Number):
            return str(value)
        if isinstance(value, (bytes, bytearray)):
            return "0x" + bytes(value).hex().upper()
        if isinstance(value, QueryFunction):
            return value.function
        if isinstance(value, uuid.UUID):
            return enquote(str(value))

        for cls in type(value).__mro__:
            if cls in self._converters:
                return self._converters[cls](value)

        return enquote(str(value))

    def format_condition(self, condition: Any) -> str:
        """
        Format a condition for IF / ELSEIF / WHILE / UNTIL.

        Accepts a condition tree node, a QueryFunction (emitted verbatim),
        or condition text which is parsed first.

        Raises:
            ConditionSyntaxError: If condition text does not parse
            ConstructionError: If the condition is of an unsupported type
        """
        if isinstance(condition, QueryFunction):
            return condition.function
        if isinstance(condition, str):
            condition = parse_condition(condition)
        return ConditionWriter(self).write(condition)


DEFAULT_FORMATTER = ValueFormatter()


def format_value(value: Any) -> str:
    """Format a value with the default formatter."""
    return DEFAULT_FORMATTER.format(value)


def query_text(query: Any) -> str:
    """
    Get the SQL of a query without its trailing semicolon.

    Args:
        query: SQL text, or any query builder exposing build_query()

    Returns:
        Query text
    """
    if hasattr(query, 'build_query'):
        text = query.build_query()
    elif isinstance(query, (str, QueryFunction)):
        text = str(query)
    else:
        raise ConstructionError(
            f"Expected query text or a query builder, got {type(query).__name__}"
        )
    return text.strip().rstrip(';').rstrip()
