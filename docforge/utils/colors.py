"""Color parsing helpers."""

from typing import Optional, Tuple

RGB = Tuple[int, int, int]

BLACK: RGB = (0, 0, 0)


def hex_to_rgb(hex_color: Optional[str]) -> Optional[RGB]:
    """
    Convert a hex color string to an (r, g, b) tuple.

    Accepts "#rrggbb", "rrggbb", "#rgb" and "rgb". Short forms are expanded
    by repeating each digit ("#f80" -> (255, 136, 0)).

    Args:
        hex_color: Hex color string

    Returns:
        RGB tuple, BLACK for an empty string, or None if the string is not
        valid hex

    Example:
        >>> hex_to_rgb("#336699")
        (51, 102, 153)
        >>> hex_to_rgb("fff")
        (255, 255, 255)
    """
    if not hex_color:
        return BLACK

    digits = hex_color.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        return None

    try:
        return tuple(int(digits[i : i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return None
