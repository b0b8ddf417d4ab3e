"""
Stored routine scripts.

Wraps a block of statements into CREATE PROCEDURE / CREATE TRIGGER
scripts and writes CALL statements. Everything here returns text for the
caller to run; nothing is executed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from ..statements import nodes
from ..statements.capabilities import Capability
from ..statements.renderer import render
from ..types import TypeSpec, type_text
from ..utils.exceptions import ConstructionError
from ..utils.values import DEFAULT_FORMATTER, engrave

logger = logging.getLogger(__name__)


class ParameterMode(Enum):
    """Direction of a procedure parameter."""
    IN = "IN"
    OUT = "OUT"
    INOUT = "INOUT"


class TriggeringEvent(Enum):
    """When a trigger fires, valued by its SQL spelling."""
    BEFORE_INSERT = "BEFORE INSERT"
    AFTER_INSERT = "AFTER INSERT"
    BEFORE_UPDATE = "BEFORE UPDATE"
    AFTER_UPDATE = "AFTER UPDATE"
    BEFORE_DELETE = "BEFORE DELETE"
    AFTER_DELETE = "AFTER DELETE"


@dataclass(frozen=True)
class ProcedureParameter:
    """
    A procedure parameter.

    Example:
        str(ProcedureParameter("total", TypeSpec("INT"), ParameterMode.OUT)) -> "OUT total INT"
    """
    name: str
    type_spec: TypeSpec | str
    mode: Optional[ParameterMode] = None

    def __str__(self):
        prefix = f"{self.mode.value} " if self.mode else ""
        return f"{prefix}{self.name} {type_text(self.type_spec)}"


def _body_statements(body: Any) -> Sequence[nodes.Statement]:
    if hasattr(body, 'contents'):
        return body.contents
    if isinstance(body, nodes.Block):
        return body.children
    if isinstance(body, Iterable) and not isinstance(body, (str, bytes)):
        statements = tuple(body)
        if all(isinstance(s, nodes.Statement) for s in statements):
            return statements
    raise ConstructionError(
        f"Expected a BlockBuilder, Block or statements as routine body, got {type(body).__name__}"
    )


def _routine_script(header: str, body: Any, delimiter: str) -> str:
    """
    Script switching the client delimiter around header + BEGIN body END.

        DELIMITER $$
        <header>
        BEGIN
          <body>
        END$$
        DELIMITER ;
    """
    if not delimiter or delimiter == ';':
        raise ConstructionError("A routine delimiter must differ from ';'")
    statements = [
        nodes.delimiter(delimiter),
        nodes.raw(header),
        nodes.begin(),
        *_body_statements(body),
        nodes.Raw(f"END{delimiter}", Capability.CLOSING),
        nodes.delimiter(";"),
    ]
    return render(statements, 0)


def create_procedure(
    name: str,
    parameters: Iterable[ProcedureParameter],
    body: Any,
    delimiter: str = "$$"
) -> str:
    """
    Script creating a stored procedure.

    Args:
        name: Procedure name
        parameters: Procedure parameters in order
        body: BlockBuilder, Block or statements without BEGIN/END
        delimiter: Client delimiter used while the body is sent

    Returns:
        Script text
    """
    params = ", ".join(str(p) for p in parameters)
    header = f"CREATE PROCEDURE {engrave(name)}({params})"
    logger.debug("Generating procedure script: %s", header)
    return _routine_script(header, body, delimiter)


def create_trigger(
    name: str,
    table: str,
    event: TriggeringEvent,
    body: Any,
    delimiter: str = "$$"
) -> str:
    """
    Script creating a row-level trigger.

    Args:
        name: Trigger name
        table: Table the trigger is created on
        event: When the trigger fires
        body: BlockBuilder, Block or statements without BEGIN/END
        delimiter: Client delimiter used while the body is sent

    Returns:
        Script text
    """
    header = f"CREATE TRIGGER {engrave(name)} {event.value} ON {engrave(table)} FOR EACH ROW"
    logger.debug("Generating trigger script: %s", header)
    return _routine_script(header, body, delimiter)


def call(procedure: str, *arguments: Any, formatter=None) -> str:
    """
    CALL statement for a procedure.

    Example:
        call("add_user", "alice", 30) -> "CALL add_user('alice', 30);"
    """
    return nodes.call(procedure, *arguments, formatter=formatter or DEFAULT_FORMATTER).text()
