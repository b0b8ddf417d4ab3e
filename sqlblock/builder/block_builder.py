"""
Sequential block builder.

Accumulates statement nodes in order, enforces that declarations stay at
the top of the block, and offers one method per statement kind. build()
snapshots the accumulated nodes into an immutable Block.

A builder is a mutable accumulator owned by one caller at a time; share
the Block it builds, not the builder.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..statements import nodes
from ..statements.capabilities import Capability
from ..statements.nodes import Statement, HandlerAction, ConditionValue
from ..utils.exceptions import ConstructionError, OrderingError, StateError
from ..utils.values import DEFAULT_FORMATTER
from .conditional import IfBlock, CaseBlock

logger = logging.getLogger(__name__)


class BlockBuilder:
    """
    Builds a procedural SQL block statement by statement.

    Every method returns the builder so calls can be chained.

    Example:
        text = (BlockBuilder()
                .begin()
                .declare("done", TypeSpec(DataType.INT, default=False))
                .set("done", True)
                .end(";")
                .build_text())
    """

    def __init__(self, formatter=None):
        """
        Initialize an empty builder.

        Args:
            formatter: ValueFormatter used for values and conditions
        """
        self.formatter = formatter or DEFAULT_FORMATTER
        self._statements: List[Statement] = []

    @classmethod
    def from_block(cls, block: nodes.Block, formatter=None) -> 'BlockBuilder':
        """Start a builder from the children of an existing block."""
        return cls(formatter).statements(*block.children)

    @property
    def contents(self) -> Tuple[Statement, ...]:
        """Statements added so far."""
        return tuple(self._statements)

    def __len__(self) -> int:
        return len(self._statements)

    # ----- Generic -----

    def statement(self, statement: Statement, index: Optional[int] = None) -> 'BlockBuilder':
        """
        Insert a statement, at the end unless index is given.

        Declaring statements may only be inserted where every statement
        before them is a declaration or the leading BEGIN. The check looks
        at the current content only; build the block top-down.

        Args:
            statement: Statement node to insert
            index: Position to insert at (0..len)

        Raises:
            OrderingError: If a declaration would follow a non-declaration
            IndexError: If index is out of range
            ConstructionError: If statement is not a statement node
        """
        if not isinstance(statement, Statement):
            raise ConstructionError(f"Expected a statement node, got {type(statement).__name__}")

        if index is None:
            index = len(self._statements)
        elif not 0 <= index <= len(self._statements):
            raise IndexError(f"Statement index {index} out of range 0..{len(self._statements)}")

        if Capability.DECLARING in statement.capabilities:
            blocker = self._declaration_blocker(index)
            if blocker is not None:
                logger.debug(
                    "Rejected %s at index %d: preceded by %s",
                    type(statement).__name__, index, type(blocker).__name__
                )
                raise OrderingError(statement, index, blocker)

        self._statements.insert(index, statement)
        logger.debug("Added %s at index %d", type(statement).__name__, index)
        return self

    def statements(self, *statements: Statement) -> 'BlockBuilder':
        """Append several statements in order."""
        for statement in statements:
            self.statement(statement)
        return self

    def extend(self, statements: Iterable[Statement]) -> 'BlockBuilder':
        """Append every statement of an iterable in order."""
        return self.statements(*statements)

    def _declaration_blocker(self, index: int) -> Optional[Statement]:
        """First statement before index that a declaration may not follow."""
        for position, existing in enumerate(self._statements[:index]):
            if Capability.DECLARING in existing.capabilities:
                continue
            if position == 0 and isinstance(existing, nodes.Begin):
                continue
            return existing
        return None

    def raw(self, sql: str, opening: bool = False, closing: bool = False) -> 'BlockBuilder':
        capabilities = Capability.NONE
        if opening:
            capabilities |= Capability.OPENING
        if closing:
            capabilities |= Capability.CLOSING
        return self.statement(nodes.Raw(sql, capabilities))

    def empty(self) -> 'BlockBuilder':
        return self.statement(nodes.empty())

    def delimiter(self, delimiter: str) -> 'BlockBuilder':
        return self.statement(nodes.delimiter(delimiter))

    def query(self, query: Any) -> 'BlockBuilder':
        """Run a query given as text or built by a query builder."""
        return self.statement(nodes.query(query))

    def call(self, procedure: str, *arguments: Any) -> 'BlockBuilder':
        return self.statement(nodes.call(procedure, *arguments, formatter=self.formatter))

    # ----- Blocks -----

    def begin(self) -> 'BlockBuilder':
        return self.statement(nodes.begin())

    def end(self, delimiter: str) -> 'BlockBuilder':
        return self.statement(nodes.end(delimiter))

    def end_if(self) -> 'BlockBuilder':
        return self.statement(nodes.end_if())

    def end_loop(self) -> 'BlockBuilder':
        return self.statement(nodes.end_loop())

    def end_while(self) -> 'BlockBuilder':
        return self.statement(nodes.end_while())

    def end_case(self) -> 'BlockBuilder':
        return self.statement(nodes.end_case())

    # ----- Declarations -----

    def declare(self, names, type_spec) -> 'BlockBuilder':
        """
        Declare variables.

        Args:
            names: A variable name or a sequence of names sharing the type
            type_spec: TypeSpec or verbatim type text
        """
        return self.statement(nodes.declare(names, type_spec, self.formatter))

    def declare_condition(self, name: str, condition_value: ConditionValue) -> 'BlockBuilder':
        return self.statement(nodes.declare_condition(name, condition_value))

    def declare_handler(
        self,
        action: HandlerAction,
        condition_value: ConditionValue,
        body: Any
    ) -> 'BlockBuilder':
        return self.statement(nodes.declare_handler(action, condition_value, body))

    def declare_cursor(self, name: str, query: Any) -> 'BlockBuilder':
        return self.statement(nodes.declare_cursor(name, query))

    # ----- Variables -----

    def set(self, variable: str, value: Any) -> 'BlockBuilder':
        """SET variable to a literal value."""
        return self.statement(nodes.set_var(variable, value, self.formatter))

    def set_query(self, variable: str, query: Any) -> 'BlockBuilder':
        """SET variable to the result of a single-column query."""
        return self.statement(nodes.set_query(variable, query))

    # ----- Cursors -----

    def open_cursor(self, cursor: str) -> 'BlockBuilder':
        return self.statement(nodes.open_cursor(cursor))

    def fetch_cursor(self, cursor: str, *variables: str) -> 'BlockBuilder':
        return self.statement(nodes.fetch(cursor, *variables))

    def close_cursor(self, cursor: str) -> 'BlockBuilder':
        return self.statement(nodes.close_cursor(cursor))

    # ----- Loops -----

    def loop(self, label: Optional[str] = None) -> 'BlockBuilder':
        return self.statement(nodes.loop(label))

    def while_(self, condition: Any) -> 'BlockBuilder':
        return self.statement(nodes.while_(condition, self.formatter))

    def repeat(self, condition: Any, body: Any) -> 'BlockBuilder':
        return self.statement(nodes.repeat(condition, body, self.formatter))

    def iterate(self, label: str) -> 'BlockBuilder':
        return self.statement(nodes.iterate(label))

    def leave(self, label: str) -> 'BlockBuilder':
        return self.statement(nodes.leave(label))

    # ----- Conditionals -----

    def if_block(self, populator: Callable[[IfBlock], Any]) -> 'BlockBuilder':
        """
        Append an IF statement populated by a callback.

        Example:
            builder.if_block(lambda b: b.if_("done", nodes.leave("read_loop")).end())

        Raises:
            StateError: If the populator did not close the block with end()
        """
        block = IfBlock(self.formatter)
        populator(block)
        if not block.is_closed:
            raise StateError(
                "If-block must be closed with end() before it is added.",
                block.state,
                "if_block"
            )
        return self.statement(block.build())

    def case_(self, variable: str, populator: Callable[[CaseBlock], Any]) -> 'BlockBuilder':
        """Append a CASE statement populated by a callback."""
        block = CaseBlock(variable, self.formatter)
        populator(block)
        return self.statement(block.build())

    # ----- Output -----

    def build(self) -> nodes.Block:
        """Snapshot the statements into an immutable Block."""
        return nodes.Block(tuple(self._statements))

    def build_text(self) -> str:
        """Render the statements starting at depth 0."""
        return self.build().render(0)
