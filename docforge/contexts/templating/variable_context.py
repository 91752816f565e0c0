"""
Variable Context

Scoped, read-only mapping of names to dynamic values (as decoded from JSON:
str, int, float, bool, None, mappings and sequences) used for template
substitution.

Lookups never fail: a missing key, or a path that runs into a non-mapping,
yields the ABSENT sentinel.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional

RESERVED_ITEM_KEY = "item"
RESERVED_INDEX_KEY = "index"
RESERVED_INDEX1_KEY = "index1"


class _Absent:
    """Sentinel for a path that does not resolve to a value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


def is_sequence(value: Any) -> bool:
    """True for list-like values usable as a loop target (strings excluded)."""
    return isinstance(value, (list, tuple))


class VariableContext:
    """
    Immutable scope of template variables.

    A root context wraps the user-supplied variables. Loop iterations derive
    child contexts with for_item(); the parent is never modified.

    Example:
        >>> ctx = VariableContext({"user": {"name": "Ada"}})
        >>> ctx.lookup("user.name")
        'Ada'
        >>> ctx.lookup("user.email")
        ABSENT
    """

    def __init__(self, variables: Optional[Mapping[str, Any]] = None):
        self._variables = MappingProxyType(dict(variables or {}))

    @property
    def variables(self) -> Mapping[str, Any]:
        return self._variables

    def lookup(self, path: str) -> Any:
        """
        Resolve a dotted path against this context.

        Args:
            path: Dotted path (e.g., "client.address.city")

        Returns:
            The resolved value, or ABSENT if any segment is missing or an
            intermediate value is not a mapping
        """
        current: Any = self._variables
        for part in path.strip().split("."):
            if not isinstance(current, Mapping) or part not in current:
                return ABSENT
            current = current[part]
        return current

    def for_item(self, item: Any, index: int) -> "VariableContext":
        """
        Build the context for one loop iteration.

        Mapping items contribute their fields (shadowing outer keys of the
        same name); any other item is bound under "item". "index" (0-based)
        and "index1" (1-based) are always set.

        Args:
            item: Current element of the loop sequence
            index: 0-based position of the element

        Returns:
            New VariableContext for the iteration
        """
        merged = dict(self._variables)
        if isinstance(item, Mapping):
            merged.update(item)
        else:
            merged[RESERVED_ITEM_KEY] = item
        merged[RESERVED_INDEX_KEY] = index
        merged[RESERVED_INDEX1_KEY] = index + 1
        return VariableContext(merged)

    def __repr__(self) -> str:
        return f"VariableContext({dict(self._variables)!r})"
