"""
Per-user colours derived from display names.

The hue is computed with the same string hash browser clients use, so a
user gets the same colour in every client without any coordination.
"""

import colorsys

SATURATION = 0.70
LIGHTNESS = 0.50


def _to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str):
    """Yield the UTF-16 code units of text."""
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def string_to_hue(text: str) -> int:
    """
    Map a string to a hue in the range [0, 360).

    For each UTF-16 code unit ``c``: ``hash = c + ((hash << 5) - hash)``,
    where the shift wraps to 32 bits and the sum does not.
    """
    value = 0
    for unit in _utf16_units(text):
        value = unit + (_to_int32(_to_int32(value) << 5) - value)
    return value % 360


def string_to_color(text: str) -> str:
    """Return a CSS ``hsl()`` colour for text."""
    return f"hsl({string_to_hue(text)}, 70%, 50%)"


def string_to_hex(text: str) -> str:
    """Return the ``#rrggbb`` equivalent of string_to_color."""
    hue = string_to_hue(text) / 360.0
    red, green, blue = colorsys.hls_to_rgb(hue, LIGHTNESS, SATURATION)
    return "#{:02x}{:02x}{:02x}".format(
        round(red * 255), round(green * 255), round(blue * 255)
    )
