"""
Variable type definitions for DECLARE statements.

TypeSpec is the single source of truth for the type text (and optional
DEFAULT clause) of declared variables and routine parameters.
"""

from typing import Any, Optional
from enum import Enum

from .utils.exceptions import ConstructionError
from .utils.values import DEFAULT_FORMATTER


class DataType(Enum):
    """Supported variable data types."""
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    INT = "INT"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    CHAR = "CHAR"
    VARCHAR = "VARCHAR"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    BLOB = "BLOB"
    VARBINARY = "VARBINARY"
    JSON = "JSON"

    @classmethod
    def from_string(cls, type_str: str) -> 'DataType':
        """Convert string representation to DataType enum."""
        type_str = type_str.upper()
        # Handle aliases
        if type_str == 'INTEGER':
            return cls.INT
        elif type_str == 'REAL':
            return cls.DOUBLE
        elif type_str == 'BOOL':
            return cls.BOOLEAN
        elif type_str in ('NUMERIC', 'DEC'):
            return cls.DECIMAL
        try:
            return cls[type_str]
        except KeyError:
            raise ConstructionError(f"Unknown data type: {type_str}")

    @property
    def is_numeric(self) -> bool:
        """Check if UNSIGNED can be applied to this type."""
        return self in (
            DataType.TINYINT, DataType.SMALLINT, DataType.INT, DataType.BIGINT,
            DataType.FLOAT, DataType.DOUBLE, DataType.DECIMAL
        )

    @property
    def requires_length(self) -> bool:
        """Check if this type cannot be declared without a length."""
        return self in (DataType.VARCHAR, DataType.VARBINARY)


class TypeSpec:
    """
    Represents the declared type of a variable or parameter.

    Example:
        TypeSpec(DataType.CHAR, 16).type_string()         -> "CHAR(16)"
        TypeSpec("int", default=False).declaration()      -> "INT DEFAULT FALSE"
    """

    def __init__(
        self,
        data_type: DataType | str,
        *params: int,
        default: Any = None,
        unsigned: bool = False
    ):
        """
        Initialize a type spec.

        Args:
            data_type: Data type enum or its name
            params: Length or precision/scale, e.g. 16 or (10, 2)
            default: Default value; None means no DEFAULT clause
            unsigned: Append UNSIGNED (numeric types only)

        Raises:
            ConstructionError: If the arguments don't form a valid type
        """
        if isinstance(data_type, str):
            data_type = DataType.from_string(data_type)

        for param in params:
            if not isinstance(param, int) or isinstance(param, bool) or param < 0:
                raise ConstructionError(
                    f"Type parameters must be non-negative integers, got {param!r}"
                )

        if data_type.requires_length and not params:
            raise ConstructionError(f"{data_type.value} requires a length")

        if unsigned and not data_type.is_numeric:
            raise ConstructionError(f"UNSIGNED does not apply to {data_type.value}")

        self.data_type = data_type
        self.params = tuple(params)
        self.default = default
        self.unsigned = unsigned

    def type_string(self) -> str:
        """Type text without the DEFAULT clause."""
        type_str = self.data_type.value
        if self.params:
            type_str += f"({', '.join(str(p) for p in self.params)})"
        if self.unsigned:
            type_str += " UNSIGNED"
        return type_str

    def declaration(self, formatter=None) -> str:
        """Type text including the DEFAULT clause, if any."""
        formatter = formatter or DEFAULT_FORMATTER
        if self.default is None:
            return self.type_string()
        return f"{self.type_string()} DEFAULT {formatter.format(self.default)}"

    def with_default(self, default: Any) -> 'TypeSpec':
        """Return a copy of this spec with a different default."""
        return TypeSpec(self.data_type, *self.params, default=default, unsigned=self.unsigned)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TypeSpec):
            return NotImplemented
        return (
            self.data_type == other.data_type
            and self.params == other.params
            and self.default == other.default
            and self.unsigned == other.unsigned
        )

    def __hash__(self) -> int:
        return hash((self.data_type, self.params, self.unsigned))

    def __repr__(self) -> str:
        if self.default is not None:
            return f"TypeSpec({self.type_string()}, default={self.default!r})"
        return f"TypeSpec({self.type_string()})"


def type_text(type_spec: TypeSpec | str, formatter=None) -> str:
    """Type text for a TypeSpec, or a verbatim type string."""
    if isinstance(type_spec, TypeSpec):
        return type_spec.declaration(formatter)
    if isinstance(type_spec, str) and type_spec.strip():
        return type_spec.strip()
    raise ConstructionError(f"Expected a TypeSpec or type text, got {type_spec!r}")
