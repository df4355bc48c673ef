"""
Labels for PHYLIP and Newick output.

A label is exactly 10 characters long, contains only ASCII characters
and no characters that have a meaning in the Newick tree format.
"""

from __future__ import annotations

LABEL_REPLACEMENTS: dict[str, str] = {
    " ": "_",
    "Ä": "Ae",
    "ä": "ae",
    "Ü": "Ue",
    "ü": "ue",
    "Ö": "Oe",
    "ö": "oe",
    "ß": "ss",
    "(": "{",
    ")": "}",
    ":": "_",
    ";": "_",
    ",": "_",
    "[": "{",
    "]": "}",
}


def string_to_label(text: str, width: int = 10) -> str:
    """
    Transform a name into a label.

    Known special characters are replaced, other non-ASCII characters are
    dropped. Short labels are padded with leading underscores, long ones
    are cut.

    Args:
        text: Name to transform
        width: Label width

    Returns:
        Label of exactly `width` characters
    """
    chars = []
    for char in text:
        if char in LABEL_REPLACEMENTS:
            chars.append(LABEL_REPLACEMENTS[char])
        elif char.isascii():
            chars.append(char)
    label = "".join(chars)
    return label.rjust(width, "_")[:width]
