"""
Structural capabilities of statement nodes.

The renderer and the block builder never look at a node's concrete type;
they only ask which of these flags it carries.
"""

from enum import Flag


# One level of indentation
INDENT = "  "


class Capability(Flag):
    """Marker flags attached to every statement kind."""
    NONE = 0
    OPENING = 1     # indents following siblings
    CLOSING = 2     # dedents itself and following siblings
    BLOCK_LIKE = 4  # renders its own lines, indentation included
    DECLARING = 8   # must sit in the declaration prefix of a block

    def names(self) -> list:
        """Names of the set flags, in declaration order."""
        return [member.name for member in Capability if member.value and member in self]
