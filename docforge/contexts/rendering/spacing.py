"""
Spacing Model

Resolves the shorthand margin/padding arrays of a Style into four sides.
"""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Spacing:
    """Resolved four-sided spacing in mm."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @property
    def horizontal(self) -> float:
        """left + right"""
        return self.left + self.right


ZERO_SPACING = Spacing()


def parse_spacing(values: Optional[Sequence[float]]) -> Spacing:
    """
    Resolve a shorthand spacing array.

    The array length selects the layout:
        []               -> all zero
        [a]              -> a on all four sides
        [v, h]           -> top = bottom = v, left = right = h
        [t, h, b]        -> top = t, left = right = h, bottom = b
        [t, r, b, l, ...] -> each side explicitly (extra values ignored)

    Existing descriptors depend on the 2- and 3-value forms exactly as written.

    Example:
        >>> parse_spacing([5, 10])
        Spacing(top=5, right=10, bottom=5, left=10)
    """
    if not values:
        return ZERO_SPACING
    if len(values) == 1:
        return Spacing(values[0], values[0], values[0], values[0])
    if len(values) == 2:
        return Spacing(values[0], values[1], values[0], values[1])
    if len(values) == 3:
        return Spacing(values[0], values[1], values[2], values[1])
    return Spacing(values[0], values[1], values[2], values[3])
