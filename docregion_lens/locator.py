"""Locate code-snippet tags in documentation sources.

Two tag syntaxes are recognized, and either may span several lines:

    <code-example path="forms/src/app/app.component.ts" region="imports"></code-example>
    {@example forms/src/app/app.component.ts imports header="Imports"}

Given a cursor position, the locator scans upwards for the nearest opening
marker, then downwards from the cursor for the nearest closing marker, and
only accepts the span if both markers belong to the same tag and every line
in between looks like part of a tag.
"""

from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence


class TagFamily(Enum):
    HTML_TAG = "html"
    BRACE_TAG = "brace"


@dataclass(frozen=True)
class TagPair:
    open: str
    close: str
    family: TagFamily


# Tested in this order.
TAG_PAIRS: tuple[TagPair, ...] = (
    TagPair("<code-example", "</code-example>", TagFamily.HTML_TAG),
    TagPair("<code-pane", "</code-pane>", TagFamily.HTML_TAG),
    TagPair("{@example", "}", TagFamily.BRACE_TAG),
)

KNOWN_ATTRS = (
    "class",
    "header",
    "hide-copy",
    "hidecopy",
    "language",
    "linenums",
    "path",
    "region",
    "title",
)

DEFAULT_PATH_PREFIX_RE = re.compile(r'^.*([\\/])aio\1content\1', re.IGNORECASE)

_ATTR_LINE_RE = re.compile(
    rf'(?:^|\s)(?:{"|".join(re.escape(a) for a in KNOWN_ATTRS)})(?:[=>}}\s]|$)',
    re.IGNORECASE,
)
_KEYED_ATTR_RE = re.compile(r'\s([\w-]+)=(["\'])((?:(?!\2).)*)\2')
_REGION_ATTR_PREFIX_RE = re.compile(r'^region=(?:(["\'])(?:(?!\1).)*)?$')
_LEADING_INT_RE = re.compile(r'^\s*([+-]?\d+)')


@dataclass(frozen=True)
class Position:
    """Zero-based line/character position in a text buffer."""

    line: int
    character: int


@dataclass(frozen=True)
class RawTagInfo:
    """The exact markup of a snippet tag and where it sits in the buffer."""

    contents: str
    start: Position
    end: Position  # just past the closing marker
    family: TagFamily


class LinenumsMode(Enum):
    OFF = "off"
    ON = "on"
    AUTO = "auto"  # numbered only if the snippet is long enough
    START = "start"  # numbered from an explicit first line number


@dataclass(frozen=True)
class Linenums:
    mode: LinenumsMode
    start: int = 1

    @classmethod
    def parse(cls, value: str | None) -> Linenums:
        """Read a `linenums` attribute value.

        Any numeric value selects an explicit start, truncated to its leading
        integer (`"1.5"` starts at 1). Anything else means auto.
        """
        if value == "true":
            return cls(LinenumsMode.ON)
        if value == "false":
            return cls(LinenumsMode.OFF)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return cls(LinenumsMode.AUTO)
        m = _LEADING_INT_RE.match(value)
        if not math.isfinite(number) or m is None:
            return cls(LinenumsMode.AUTO)
        return cls(LinenumsMode.START, int(m.group(1)))


@dataclass(frozen=True)
class AttributeInfo:
    path: str
    region: str | None = None
    header: str | None = None
    linenums: Linenums = Linenums(LinenumsMode.AUTO)


@dataclass(frozen=True)
class SnippetInfo:
    raw: RawTagInfo
    attrs: AttributeInfo
    resolved_path: str | None  # None if the example file cannot be found


# Line classification

def _last_index(line: str, sub: str, before: int | None) -> int:
    """Index of the last `sub` starting at or before `before` (None: anywhere)."""
    if before is None:
        return line.rfind(sub)
    return line.rfind(sub, 0, max(before, 0) + len(sub))


def _index_of_close(line: str, close: str, after: int) -> int:
    return line.find(close, max(0, after - len(close) + 1))


def open_tag_before(line: str, before: int | None) -> TagPair | None:
    """The tag opened at or before `before` and not closed again before it."""
    for pair in TAG_PAIRS:
        open_idx = _last_index(line, pair.open, before)
        if open_idx == -1:
            continue
        close_before = None if before is None else before - len(pair.close)
        close_idx = _last_index(line, pair.close, close_before)
        if close_idx == -1 or open_idx > close_idx:
            return pair
    return None


def close_tag_after(line: str, after: int) -> tuple[TagPair, int] | None:
    """The tag closed at or after `after` without a new one opening first.

    Returns the pair and the index of its closing marker.
    """
    for pair in TAG_PAIRS:
        close_idx = _index_of_close(line, pair.close, after)
        if close_idx == -1:
            continue
        open_idx = line.find(pair.open, after)
        if open_idx == -1 or close_idx < open_idx:
            return pair, close_idx
    return None


def is_attribute_line(line: str) -> bool:
    """Whether a line can sit inside a multi-line tag."""
    return not line.strip() or _ATTR_LINE_RE.search(line) is not None


# Scanning

def find_raw_tag(lines: Sequence[str], line: int, character: int) -> RawTagInfo | None:
    """Find the snippet tag enclosing a cursor position."""
    if not 0 <= line < len(lines):
        return None

    # Upwards, to the opening marker
    open_pair = None
    start = None
    line_idx, char_idx = line, character
    while line_idx >= 0:
        text = lines[line_idx]
        open_pair = open_tag_before(text, char_idx)
        if open_pair is not None:
            start = Position(line_idx, _last_index(text, open_pair.open, char_idx))
            break
        if is_attribute_line(text) or (
            line_idx == line and close_tag_after(text, character) is not None
        ):
            line_idx -= 1
            char_idx = None
        else:
            return None
    if start is None:
        return None

    # Downwards from the cursor, to the closing marker. On the opening line,
    # skip past the opening marker itself.
    end = None
    close_pair = None
    line_idx = line
    char_idx = max(character, start.character + 1) if line == start.line else character
    while line_idx < len(lines):
        text = lines[line_idx]
        found = close_tag_after(text, char_idx)
        if found is not None:
            close_pair, close_idx = found
            end = Position(line_idx, close_idx + len(close_pair.close))
            break
        if line_idx == start.line or is_attribute_line(text):
            line_idx += 1
            char_idx = 0
        else:
            return None
    if end is None:
        return None

    if close_pair is not open_pair:
        return None

    return RawTagInfo(
        contents=_text_between(lines, start, end),
        start=start,
        end=end,
        family=open_pair.family,
    )


def _text_between(lines: Sequence[str], start: Position, end: Position) -> str:
    if start.line == end.line:
        return lines[start.line][start.character:end.character]
    parts = [lines[start.line][start.character:]]
    parts.extend(lines[start.line + 1:end.line])
    parts.append(lines[end.line][:end.character])
    return "\n".join(parts)


# Attributes

def _keyed_attrs(contents: str) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for m in _KEYED_ATTR_RE.finditer(contents):
        attrs.setdefault(m.group(1).lower(), m.group(3))
    return attrs


def parse_attributes(raw: RawTagInfo) -> AttributeInfo | None:
    """Read the attributes of a snippet tag; None if it names no path."""
    attrs = _keyed_attrs(raw.contents)

    if raw.family is TagFamily.BRACE_TAG:
        # `{@example path [region [header]] key="value"...}`
        body = raw.contents[len("{@example"):]
        if body.endswith("}"):
            body = body[:-1]
        positional = _KEYED_ATTR_RE.sub(" ", " " + body).split()
        for name, value in zip(("path", "region", "header"), positional):
            attrs.setdefault(name, value)
        if not positional:
            return None

    path = attrs.get("path")
    if not path:
        return None

    return AttributeInfo(
        path=path,
        region=attrs.get("region"),
        header=attrs.get("header", attrs.get("title")),
        linenums=Linenums.parse(attrs.get("linenums")),
    )


def is_in_region_attribute(line: str, character: int) -> bool:
    """Whether the cursor is inside the (possibly unfinished) value of `region=`."""
    attr_start = line.rfind(" ", 0, character + 1) + 1
    return _REGION_ATTR_PREFIX_RE.match(line[attr_start:character]) is not None


# Example files

def resolve_example_path(
    document_path: str,
    relative_path: str,
    prefix_re: re.Pattern = DEFAULT_PATH_PREFIX_RE,
    exists: Callable[[str], bool] = os.path.exists,
) -> str | None:
    """Map a snippet's `path` to a file under the docs root's `examples/` dir.

    The docs root is whatever `prefix_re` matches in the containing document's
    path (by default everything up to and including `aio/content/`).
    """
    m = prefix_re.search(document_path)
    if not m:
        return None
    example_path = f"{m.group(0)}examples/{relative_path}"
    return example_path if exists(example_path) else None


def locate(
    lines: Sequence[str],
    line: int,
    character: int,
    document_path: str | None = None,
    prefix_re: re.Pattern = DEFAULT_PATH_PREFIX_RE,
    exists: Callable[[str], bool] = os.path.exists,
) -> SnippetInfo | None:
    """Find the snippet tag at a cursor position and the file it refers to."""
    raw = find_raw_tag(lines, line, character)
    if raw is None:
        return None

    attrs = parse_attributes(raw)
    if attrs is None:
        return None

    resolved = None
    if document_path is not None:
        resolved = resolve_example_path(document_path, attrs.path, prefix_re, exists)

    return SnippetInfo(raw=raw, attrs=attrs, resolved_path=resolved)
