"""
Conditional block state machines.

IfBlock enforces IF -> ELSEIF/ELSE -> END IF ordering; CaseBlock collects
WHEN branches and an optional default. Both produce a Block node that a
BlockBuilder appends as a single statement.

Instances are mutable and meant to be populated by one caller at a time.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..statements import nodes
from ..statements.capabilities import Capability
from ..utils.exceptions import ConstructionError, StateError
from ..utils.values import DEFAULT_FORMATTER

logger = logging.getLogger(__name__)


class IfState(Enum):
    """Lifecycle of an IfBlock."""
    UNOPENED = "UNOPENED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class IfBlock:
    """
    Builds an IF statement.

    State table:
        UNOPENED --if_()--> OPEN
        OPEN --else_if() / else_()--> OPEN
        OPEN --end()--> CLOSED

    Any other call raises StateError and changes nothing.

    Example:
        IfBlock().if_("done", nodes.leave("read_loop")).end()
    """

    def __init__(self, formatter=None):
        self.formatter = formatter or DEFAULT_FORMATTER
        self._statements: List[nodes.Statement] = []
        self._state = IfState.UNOPENED

    @property
    def state(self) -> IfState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is IfState.CLOSED

    def if_(self, condition: Any, body: Any) -> 'IfBlock':
        """
        Open the block with its first condition.

        Args:
            condition: Condition node, condition text or QueryFunction
            body: Statement or BlockBuilder run when the condition holds

        Raises:
            StateError: If the block was already opened
        """
        if self._state is not IfState.UNOPENED:
            raise StateError("If-block has already been opened.", self._state, "if_")
        self._append(nodes.if_(condition, self.formatter), nodes.as_statement(body))
        self._transition(IfState.OPEN)
        return self

    def else_if(self, condition: Any, body: Any) -> 'IfBlock':
        """
        Add an ELSEIF branch.

        Raises:
            StateError: If the block is not open
        """
        self._require_open("else_if")
        self._append(nodes.else_if(condition, self.formatter), nodes.as_statement(body))
        return self

    def else_(self, body: Any) -> 'IfBlock':
        """
        Add an ELSE branch.

        Raises:
            StateError: If the block is not open
        """
        self._require_open("else_")
        self._append(nodes.else_(), nodes.as_statement(body))
        return self

    def end(self) -> 'IfBlock':
        """
        Close the block with END IF.

        Raises:
            StateError: If the block is not open
        """
        self._require_open("end")
        self._append(nodes.end_if())
        self._transition(IfState.CLOSED)
        return self

    def build(self) -> nodes.Block:
        """
        Snapshot the statements added so far.

        A block that was never closed renders without END IF; callers
        that need a complete statement check is_closed first.
        """
        return nodes.Block(tuple(self._statements))

    def _require_open(self, operation: str) -> None:
        if self._state is not IfState.OPEN:
            raise StateError(
                "If-block has either not yet been opened or is already closed.",
                self._state,
                operation
            )

    def _append(self, *statements: nodes.Statement) -> None:
        self._statements.extend(statements)

    def _transition(self, state: IfState) -> None:
        logger.debug("If-block %s -> %s", self._state.value, state.value)
        self._state = state


def _branch_key(value: Any) -> Tuple[type, Any]:
    # 1, 1.0 and True compare equal in Python but are distinct WHEN values
    key = (type(value), value)
    try:
        hash(key)
    except TypeError:
        raise ConstructionError(f"CASE values must be hashable, got {type(value).__name__}")
    return key


def _branch_statement(statement: Any) -> nodes.Statement:
    statement = nodes.as_statement(statement)
    # A branch holds one statement; wrap multi-statement bodies in a Block
    if statement.capabilities & (Capability.OPENING | Capability.CLOSING):
        raise ConstructionError(
            f"A CASE branch cannot open or close a block, got {type(statement).__name__}"
        )
    return statement


class CaseBlock:
    """
    Builds a CASE statement over a variable.

    Branches keep the order in which their value was first added; adding
    a value again replaces that branch's statement in place. There is no
    closing call: build() always emits END CASE.

    Example:
        CaseBlock("mode").when(1, nodes.set_var("x", "a")).default(nodes.leave("l"))
    """

    def __init__(self, variable: str, formatter=None):
        if not isinstance(variable, str) or not variable.strip():
            raise ConstructionError(f"Expected a non-empty CASE variable, got {variable!r}")
        self.variable = variable
        self.formatter = formatter or DEFAULT_FORMATTER
        self._branches: Dict[Tuple[type, Any], Tuple[Any, nodes.Statement]] = {}
        self._default: Optional[nodes.Statement] = None

    @property
    def branches(self) -> List[Tuple[Any, nodes.Statement]]:
        """(value, statement) pairs in branch order."""
        return list(self._branches.values())

    @property
    def default_branch(self) -> Optional[nodes.Statement]:
        return self._default

    def when(self, value: Any, statement: Any) -> 'CaseBlock':
        """
        Add or replace the branch for value.

        Raises:
            ConstructionError: If the statement opens or closes a block
        """
        statement = _branch_statement(statement)
        key = _branch_key(value)
        if key in self._branches:
            logger.debug("CASE %s: replacing branch %r", self.variable, value)
        self._branches[key] = (value, statement)
        return self

    def default(self, statement: Any) -> 'CaseBlock':
        """Set (or replace) the ELSE branch."""
        self._default = _branch_statement(statement)
        return self

    def build(self) -> nodes.Block:
        """
        Render-ready block:

            CASE variable
              WHEN value THEN statement;
            ELSE
              default
            END CASE;
        """
        statements: List[nodes.Statement] = [nodes.raw_opening(f"CASE {self.variable}")]
        for value, statement in self._branches.values():
            statements.append(self._branch(value, statement))
        if self._default is not None:
            statements.append(nodes.else_())
            statements.append(self._default)
        statements.append(nodes.end_case())
        return nodes.Block(tuple(statements))

    def _branch(self, value: Any, statement: nodes.Statement) -> nodes.Statement:
        head = f"WHEN {self.formatter.format(value)} THEN"
        if Capability.BLOCK_LIKE in statement.capabilities:
            # Nested block so the opening only indents this branch
            return nodes.Block((nodes.raw_opening(head), statement))
        text = statement.text()
        if not text.endswith(';'):
            text += ';'
        return nodes.raw(f"{head} {text}")
