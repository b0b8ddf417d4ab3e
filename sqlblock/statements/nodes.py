"""
Statement node definitions.

Every statement kind of a procedural SQL block is a frozen dataclass with
a fixed template and a fixed set of capabilities. Values and conditions
are turned into SQL text by the factory functions at the bottom of this
module, so a node only ever holds text and other nodes and can be
rendered any number of times with the same result.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Tuple
from enum import Enum

from .capabilities import Capability, INDENT
from .renderer import render
from ..types import type_text
from ..utils.exceptions import ConstructionError
from ..utils.values import DEFAULT_FORMATTER, enquote, query_text


# ----- Enums -----

class HandlerAction(Enum):
    """What a handler does after its statement ran."""
    CONTINUE = "CONTINUE"
    EXIT = "EXIT"
    UNDO = "UNDO"


class ConditionKind(Enum):
    """Kinds of condition values a handler or condition can refer to."""
    SQL_ERROR = "SQL_ERROR"
    SQL_STATE = "SQL_STATE"
    CONDITION = "CONDITION"
    SQL_WARNING = "SQL_WARNING"
    NOT_FOUND = "NOT_FOUND"
    SQL_EXCEPTION = "SQL_EXCEPTION"


@dataclass(frozen=True)
class ConditionValue:
    """
    The condition a handler reacts to, or a named condition stands for.

    Example:
        str(ConditionValue.sql_error(1051))    -> "1051"
        str(ConditionValue.sql_state("42S02")) -> "SQLSTATE '42S02'"
        str(ConditionValue.not_found())        -> "NOT FOUND"
    """
    kind: ConditionKind
    value: Any = None

    @classmethod
    def sql_error(cls, error: int) -> 'ConditionValue':
        if not isinstance(error, int) or isinstance(error, bool):
            raise ConstructionError(f"SQL error codes must be integers, got {error!r}")
        return cls(ConditionKind.SQL_ERROR, error)

    @classmethod
    def sql_state(cls, state: str) -> 'ConditionValue':
        if not isinstance(state, str) or not state:
            raise ConstructionError(f"SQLSTATE values must be non-empty strings, got {state!r}")
        return cls(ConditionKind.SQL_STATE, state)

    @classmethod
    def condition(cls, condition_name: str) -> 'ConditionValue':
        return cls(ConditionKind.CONDITION, _require_name(condition_name, "condition name"))

    @classmethod
    def sql_warning(cls) -> 'ConditionValue':
        return cls(ConditionKind.SQL_WARNING)

    @classmethod
    def not_found(cls) -> 'ConditionValue':
        return cls(ConditionKind.NOT_FOUND)

    @classmethod
    def sql_exception(cls) -> 'ConditionValue':
        return cls(ConditionKind.SQL_EXCEPTION)

    def __str__(self):
        if self.kind == ConditionKind.SQL_ERROR:
            return str(self.value)
        elif self.kind == ConditionKind.SQL_STATE:
            return "SQLSTATE " + enquote(self.value)
        elif self.kind == ConditionKind.CONDITION:
            return self.value
        elif self.kind == ConditionKind.SQL_WARNING:
            return "SQLWARNING"
        elif self.kind == ConditionKind.NOT_FOUND:
            return "NOT FOUND"
        else:
            return "SQLEXCEPTION"


# ----- Base -----

class Statement:
    """
    Base of every statement kind.

    Simple statements implement text(); block-like statements implement
    render(depth) and take care of their own indentation.
    """
    capabilities: ClassVar[Capability] = Capability.NONE

    def text(self) -> str:
        """SQL of this statement at depth 0."""
        raise NotImplementedError

    def render(self, depth: int = 0) -> str:
        """SQL of this statement indented to depth."""
        return INDENT * depth + self.text()

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def __str__(self):
        return self.text()


class BlockLikeStatement(Statement):
    """Statement that renders several lines, indenting them itself."""
    capabilities: ClassVar[Capability] = Capability.BLOCK_LIKE

    def text(self) -> str:
        return self.render(0)

    def render(self, depth: int = 0) -> str:
        raise NotImplementedError


# ----- Generic Statements -----

@dataclass(frozen=True)
class Raw(Statement):
    """Verbatim SQL, optionally opening and/or closing a block."""
    sql: str
    capabilities: Capability = Capability.NONE

    def text(self) -> str:
        return self.sql


@dataclass(frozen=True)
class Begin(Statement):
    capabilities: ClassVar[Capability] = Capability.OPENING

    def text(self) -> str:
        return "BEGIN"


@dataclass(frozen=True)
class End(Statement):
    """
    Ends a block. The suffix is " IF", " LOOP", " WHILE", " CASE" or the
    delimiter of a routine body; the template always appends one ";".
    """
    suffix: str = ""
    capabilities: ClassVar[Capability] = Capability.CLOSING

    def text(self) -> str:
        return f"END{self.suffix};"


@dataclass(frozen=True)
class Empty(BlockLikeStatement):
    """Renders nothing; used to insert blank separator lines."""

    def render(self, depth: int = 0) -> str:
        return ""


@dataclass(frozen=True)
class Block(BlockLikeStatement):
    """Ordered children rendered together with shared depth tracking."""
    children: Tuple[Statement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'children', tuple(self.children))

    def render(self, depth: int = 0) -> str:
        return render(self.children, depth)

    def __iter__(self):
        return iter(self.children)

    def __len__(self):
        return len(self.children)


@dataclass(frozen=True)
class Delimiter(Statement):
    """Client-side delimiter switch, e.g. ``DELIMITER $$``."""
    delimiter: str

    def text(self) -> str:
        return f"DELIMITER {self.delimiter}"


@dataclass(frozen=True)
class QueryStmt(Statement):
    """A query produced by an external query builder."""
    sql: str

    def text(self) -> str:
        return f"{self.sql};"


@dataclass(frozen=True)
class Call(Statement):
    procedure: str
    arguments: Tuple[str, ...] = ()

    def text(self) -> str:
        return f"CALL {self.procedure}({', '.join(self.arguments)});"


# ----- Declarations -----

@dataclass(frozen=True)
class Declare(Statement):
    """DECLARE of one or more variables sharing a type."""
    names: Tuple[str, ...]
    type_sql: str
    capabilities: ClassVar[Capability] = Capability.DECLARING

    def text(self) -> str:
        return f"DECLARE {', '.join(self.names)} {self.type_sql};"


@dataclass(frozen=True)
class DeclareCondition(Statement):
    """Names an error code or SQLSTATE."""
    name: str
    condition_value: ConditionValue
    capabilities: ClassVar[Capability] = Capability.DECLARING

    def __post_init__(self):
        if self.condition_value.kind not in (ConditionKind.SQL_ERROR, ConditionKind.SQL_STATE):
            raise ConstructionError(
                f"A condition can only be declared for an SQL error code or SQLSTATE, "
                f"got {self.condition_value.kind.value}"
            )

    def text(self) -> str:
        return f"DECLARE {self.name} CONDITION FOR {self.condition_value};"


@dataclass(frozen=True)
class DeclareHandler(BlockLikeStatement):
    """
    DECLARE ... HANDLER FOR ... followed by its statement.

    A simple statement is written on the same line; a block-like one
    starts on the next line, one level deeper.
    """
    action: HandlerAction
    condition_value: ConditionValue
    body: Statement
    capabilities: ClassVar[Capability] = Capability.DECLARING | Capability.BLOCK_LIKE

    def render(self, depth: int = 0) -> str:
        head = f"{INDENT * depth}DECLARE {self.action.value} HANDLER FOR {self.condition_value}"
        if Capability.BLOCK_LIKE in self.body.capabilities:
            return f"{head}\n{self.body.render(depth + 1)}"
        return f"{head} {self.body.text()}"


@dataclass(frozen=True)
class DeclareCursor(Statement):
    name: str
    query_sql: str
    capabilities: ClassVar[Capability] = Capability.DECLARING

    def text(self) -> str:
        return f"DECLARE {self.name} CURSOR FOR {self.query_sql};"


# ----- Cursors -----

@dataclass(frozen=True)
class OpenCursor(Statement):
    name: str

    def text(self) -> str:
        return f"OPEN {self.name};"


@dataclass(frozen=True)
class CloseCursor(Statement):
    name: str

    def text(self) -> str:
        return f"CLOSE {self.name};"


@dataclass(frozen=True)
class FetchCursor(Statement):
    name: str
    variables: Tuple[str, ...]

    def text(self) -> str:
        return f"FETCH {self.name} INTO {', '.join(self.variables)};"


# ----- Variables -----

@dataclass(frozen=True)
class SetVar(Statement):
    variable: str
    expression: str

    def text(self) -> str:
        return f"SET {self.variable} = {self.expression};"


# ----- Conditionals -----

@dataclass(frozen=True)
class If(Statement):
    condition: str
    capabilities: ClassVar[Capability] = Capability.OPENING

    def text(self) -> str:
        return f"IF {self.condition} THEN"


@dataclass(frozen=True)
class ElseIf(Statement):
    condition: str
    capabilities: ClassVar[Capability] = Capability.CLOSING | Capability.OPENING

    def text(self) -> str:
        return f"ELSEIF {self.condition} THEN"


@dataclass(frozen=True)
class Else(Statement):
    capabilities: ClassVar[Capability] = Capability.CLOSING | Capability.OPENING

    def text(self) -> str:
        return "ELSE"


# ----- Loops -----

@dataclass(frozen=True)
class Loop(Statement):
    label: Optional[str] = None
    capabilities: ClassVar[Capability] = Capability.OPENING

    def text(self) -> str:
        if self.label:
            return f"{self.label}: LOOP"
        return "LOOP"


@dataclass(frozen=True)
class While(Statement):
    condition: str
    capabilities: ClassVar[Capability] = Capability.OPENING

    def text(self) -> str:
        return f"WHILE {self.condition} DO"


@dataclass(frozen=True)
class Repeat(BlockLikeStatement):
    """REPEAT body UNTIL condition END REPEAT, the body one level deeper."""
    condition: str
    body: Statement

    def render(self, depth: int = 0) -> str:
        return render((
            Raw("REPEAT", Capability.OPENING),
            self.body,
            Raw(f"UNTIL {self.condition} END REPEAT;", Capability.CLOSING),
        ), depth)


@dataclass(frozen=True)
class Leave(Statement):
    label: str

    def text(self) -> str:
        return f"LEAVE {self.label};"


@dataclass(frozen=True)
class Iterate(Statement):
    label: str

    def text(self) -> str:
        return f"ITERATE {self.label};"


# Type alias for any leaf or composite statement
AnyStatement = (
    Raw | Begin | End | Empty | Block | Delimiter | QueryStmt | Call |
    Declare | DeclareCondition | DeclareHandler | DeclareCursor |
    OpenCursor | CloseCursor | FetchCursor | SetVar |
    If | ElseIf | Else | Loop | While | Repeat | Leave | Iterate
)


# ----- Factories -----

def _require_name(name: Any, what: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ConstructionError(f"Expected a non-empty {what}, got {name!r}")
    return name


def as_statement(body: Any) -> Statement:
    """
    Accept a statement, or anything with build() returning one (a builder).

    Raises:
        ConstructionError: If body is neither
    """
    if isinstance(body, Statement):
        return body
    if hasattr(body, 'build'):
        built = body.build()
        if isinstance(built, Statement):
            return built
    raise ConstructionError(f"Expected a statement or a block builder, got {type(body).__name__}")


def raw(sql: str) -> Raw:
    return Raw(sql)


def raw_opening(sql: str) -> Raw:
    return Raw(sql, Capability.OPENING)


def raw_closing(sql: str) -> Raw:
    return Raw(sql, Capability.CLOSING)


def raw_closing_opening(sql: str) -> Raw:
    return Raw(sql, Capability.CLOSING | Capability.OPENING)


def begin() -> Begin:
    return Begin()


def end(delimiter: str) -> End:
    """End a routine body; ``end(";")`` renders ``END;;``."""
    return End(delimiter)


def end_if() -> End:
    return End(" IF")


def end_loop() -> End:
    return End(" LOOP")


def end_while() -> End:
    return End(" WHILE")


def end_case() -> End:
    return End(" CASE")


def empty() -> Empty:
    return Empty()


def block(*statements: Statement) -> Block:
    return Block(statements)


def delimiter(value: str) -> Delimiter:
    return Delimiter(_require_name(value, "delimiter"))


def query(query_obj: Any) -> QueryStmt:
    """Statement running a query given as text or a query builder."""
    return QueryStmt(query_text(query_obj))


def call(procedure: str, *arguments: Any, formatter=None) -> Call:
    formatter = formatter or DEFAULT_FORMATTER
    return Call(
        _require_name(procedure, "procedure name"),
        tuple(formatter.format(argument) for argument in arguments)
    )


def declare(names: str | Tuple[str, ...] | list, type_spec, formatter=None) -> Declare:
    """
    Declare one or more variables.

    Args:
        names: A variable name or a sequence of names
        type_spec: TypeSpec or verbatim type text
        formatter: Formats the default value of a TypeSpec
    """
    if isinstance(names, str):
        names = (names,)
    names = tuple(_require_name(name, "variable name") for name in names)
    if not names:
        raise ConstructionError("DECLARE needs at least one variable name")
    return Declare(names, type_text(type_spec, formatter))


def declare_condition(name: str, condition_value: ConditionValue) -> DeclareCondition:
    return DeclareCondition(_require_name(name, "condition name"), condition_value)


def declare_handler(action: HandlerAction, condition_value: ConditionValue, body: Any) -> DeclareHandler:
    return DeclareHandler(action, condition_value, as_statement(body))


def declare_cursor(name: str, query_obj: Any) -> DeclareCursor:
    return DeclareCursor(_require_name(name, "cursor name"), query_text(query_obj))


def open_cursor(name: str) -> OpenCursor:
    return OpenCursor(_require_name(name, "cursor name"))


def close_cursor(name: str) -> CloseCursor:
    return CloseCursor(_require_name(name, "cursor name"))


def fetch(cursor: str, *variables: str) -> FetchCursor:
    if not variables:
        raise ConstructionError("FETCH needs at least one target variable")
    return FetchCursor(
        _require_name(cursor, "cursor name"),
        tuple(_require_name(v, "variable name") for v in variables)
    )


def set_var(variable: str, value: Any, formatter=None) -> SetVar:
    """SET variable to a value formatted as a SQL literal."""
    formatter = formatter or DEFAULT_FORMATTER
    return SetVar(_require_name(variable, "variable name"), formatter.format(value))


def set_query(variable: str, query_obj: Any) -> SetVar:
    """
    SET variable to the result of a single-column query.

    Raises:
        ConstructionError: If the query builder selects more or fewer than one column
    """
    columns = getattr(query_obj, 'columns', None)
    if columns is not None and len(columns) != 1:
        raise ConstructionError("The select query must select one column or function.")
    return SetVar(_require_name(variable, "variable name"), f"({query_text(query_obj)})")


def if_(condition: Any, formatter=None) -> If:
    return If((formatter or DEFAULT_FORMATTER).format_condition(condition))


def else_if(condition: Any, formatter=None) -> ElseIf:
    return ElseIf((formatter or DEFAULT_FORMATTER).format_condition(condition))


def else_() -> Else:
    return Else()


def loop(label: Optional[str] = None) -> Loop:
    return Loop(label)


def while_(condition: Any, formatter=None) -> While:
    return While((formatter or DEFAULT_FORMATTER).format_condition(condition))


def repeat(condition: Any, body: Any, formatter=None) -> Repeat:
    return Repeat((formatter or DEFAULT_FORMATTER).format_condition(condition), as_statement(body))


def leave(label: str) -> Leave:
    return Leave(_require_name(label, "label"))


def iterate(label: str) -> Iterate:
    return Iterate(_require_name(label, "label"))
