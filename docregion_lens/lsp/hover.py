"""Hover and completion content formatting."""

from __future__ import annotations

from typing import Sequence

from ..extractor import DocregionInfo
from ..locator import AttributeInfo, Linenums, LinenumsMode

# `linenums` left unset numbers snippets longer than this
AUTO_LINENUM_THRESHOLD = 10


def first_line_number(
    linenums: Linenums, line_count: int, threshold: int = AUTO_LINENUM_THRESHOLD
) -> int | None:
    """Number of the first displayed line, or None for no line numbers."""
    if linenums.mode is LinenumsMode.OFF:
        return None
    if linenums.mode is LinenumsMode.ON:
        return 1
    if linenums.mode is LinenumsMode.START:
        return linenums.start
    return 1 if line_count > threshold else None


def with_linenums(lines: Sequence[str], first: int | None) -> str:
    """Join lines, prefixing right-aligned line numbers if `first` is set."""
    if first is None:
        return "\n".join(lines)
    width = len(str(first + len(lines)))
    return "\n".join(
        f"{str(first + i).rjust(width)}. {line}" for i, line in enumerate(lines)
    )


def _code_block(file_type: str, code: str) -> str:
    return f"```{file_type}\n{code}\n```"


def build_hover_content(
    info: DocregionInfo,
    attrs: AttributeInfo,
    threshold: int = AUTO_LINENUM_THRESHOLD,
) -> str:
    """Format a docregion as markdown for a hover tooltip.

    Args:
        info: The extracted docregion.
        attrs: Attributes of the snippet tag (header and line numbering).
        threshold: Line count above which `linenums` "auto" numbers lines.

    Returns:
        Markdown string: the header (if any), then a fenced code block.
    """
    first = first_line_number(attrs.linenums, len(info.lines), threshold)
    header = f"_{attrs.header}_\n\n---\n" if attrs.header else ""
    return header + _code_block(info.file_type, with_linenums(info.lines, first))


def build_completion_documentation(info: DocregionInfo) -> str:
    """Format a docregion for a completion item's documentation."""
    return _code_block(info.file_type, with_linenums(info.lines, None))
