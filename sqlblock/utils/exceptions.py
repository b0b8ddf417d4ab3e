"""
Centralized exception hierarchy for the block compiler.

All custom exceptions inherit from SQLBlockError to provide a single base
for catching builder errors. Every error here is a programmer error in how
the builder API is used; none of them is retried or recovered internally.
"""


class SQLBlockError(Exception):
    """Base exception for all block compiler errors."""
    pass


class OrderingError(SQLBlockError):
    """Raised when a declaring statement is inserted below a non-declaring one."""

    def __init__(self, statement, index: int, blocker=None):
        self.statement = statement
        self.index = index
        self.blocker = blocker
        msg = (
            f"All declaring statements must be at the top of the block; "
            f"cannot insert {type(statement).__name__} at index {index}"
        )
        if blocker is not None:
            msg += f" after {type(blocker).__name__}"
        super().__init__(msg)


class StateError(SQLBlockError):
    """Raised when an If-block transition is attempted from the wrong state."""

    def __init__(self, message: str, state=None, operation: str = None):
        self.state = state
        self.operation = operation
        super().__init__(message)


class ConstructionError(SQLBlockError):
    """Raised when a statement factory is given invalid arguments."""

    def __init__(self, message: str):
        super().__init__(message)


class ConditionSyntaxError(ConstructionError):
    """Raised when condition text cannot be parsed."""

    def __init__(self, message: str, condition: str = None):
        self.condition = condition
        msg = f"Condition syntax error: {message}"
        if condition:
            msg += f"\nCondition: {condition}"
        super().__init__(msg)
