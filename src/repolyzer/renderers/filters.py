"""Jinja2 filters for report rendering.

Dependency names and version constraints come straight from manifests, so
anything placed in a Markdown table cell is escaped first.
"""

import re

_TABLE_SPECIALS_RE = re.compile(r"([|\\`])")


def escape_table_cell(value: object) -> str:
    """Make a value safe for a single Markdown table cell.

    Pipes, backslashes and backticks are escaped and newlines collapsed.

    Examples:
        >>> escape_table_cell(">=1.0,<2|3")
        '>=1.0,<2\\\\|3'
        >>> escape_table_cell("a\\nb")
        'a b'
    """
    text = " ".join(str(value).split())
    return _TABLE_SPECIALS_RE.sub(r"\\\1", text)


def format_percent(value: float, digits: int = 1) -> str:
    """Format a percentage, e.g. 42.123 -> "42.1%"."""
    return f"{value:.{digits}f}%"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 dependency" / "3 dependencies" style text."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"
