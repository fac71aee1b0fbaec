"""Docregion extraction from example source files.

A docregion is a named span of lines delimited by directive comments:

    // #docregion setup, imports
    import {Component} from '@angular/core';
    // #enddocregion imports
    ...
    // #enddocregion setup

Regions may be reopened any number of times; each reopening inserts a
"plaster" line (by default an ellipsis comment) where content was elided.
`#docplaster <text>` changes the plaster from that point on; an empty
`#docplaster` disables it.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath

from .cache import LruCache
from .matchers import DocregionMatcher, get_matcher

logger = logging.getLogger(__name__)

DEFAULT_PLASTER = ". . ."

_LINE_SPLIT_RE = re.compile(r'\r?\n')
_LEADING_WS_RE = re.compile(r'^\s*')


def split_lines(text: str) -> list[str]:
    """Split text on `\\n` or `\\r\\n`."""
    return _LINE_SPLIT_RE.split(text)


def file_type_of(path: str | PurePath) -> str:
    """Return the file type of an example file (its last extension)

    Example:
        >>> file_type_of("src/app/app.component.ts")
        'ts'
        >>> file_type_of("Dockerfile")
        ''
    """
    stem, dot, ext = PurePath(path).name.rpartition(".")
    return ext if dot and stem else ""


@dataclass(frozen=True)
class DocregionInfo:
    """The text of one docregion, ready for display."""

    lines: tuple[str, ...]  # left-aligned
    ranges: tuple[tuple[int, int], ...]  # [start, end) line spans in the source file
    file_type: str

    @property
    def contents(self) -> str:
        return "\n".join(self.lines)


@dataclass
class RegionEntry:
    """A region as collected while scanning the file."""

    lines: list[str] = field(default_factory=list)
    ranges: list[list[int | None]] = field(default_factory=list)  # end is None while pending
    open: bool = False


def _region_names(text: str) -> list[str]:
    text = text.strip()
    if not text:
        return []
    return [name.strip() for name in text.split(",")]


def _remove_last(items: list[str], item: str) -> None:
    for i in range(len(items) - 1, -1, -1):
        if items[i] == item:
            del items[i]
            return


def _close_last_pending(entry: RegionEntry, end: int) -> None:
    for rng in reversed(entry.ranges):
        if rng[1] is None:
            rng[1] = end
            return


def left_align(lines: list[str]) -> list[str]:
    """Strip the common leading whitespace, ignoring blank lines."""
    indents = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    if not indents:
        return ["" for _ in lines]
    indent = min(indents)
    return [line[indent:] for line in lines]


def parse_regions(lines: list[str], matcher: DocregionMatcher) -> dict[str, RegionEntry]:
    """Collect every docregion of a file in a single pass.

    The returned map always contains the default region (`''`). Unless the
    file opens it explicitly, it holds every non-directive line and the
    single range `(0, 0)`.
    """
    regions: dict[str, RegionEntry] = {}
    open_names: list[str] = []
    plaster = matcher.format_plaster(DEFAULT_PLASTER)
    content_lines: list[str] = []

    for idx, line in enumerate(lines):
        start = matcher.region_start(line)
        end = matcher.region_end(line) if start is None else None
        new_plaster = matcher.plaster(line) if start is None and end is None else None

        if start is not None:
            names = _region_names(start) or [""]
            indent = _LEADING_WS_RE.match(line).group(0)
            for name in names:
                open_names.append(name)
                entry = regions.get(name)
                if entry is None:
                    regions[name] = RegionEntry(ranges=[[idx + 1, None]], open=True)
                    continue
                entry.open = True
                entry.ranges.append([idx + 1, None])
                if plaster:
                    entry.lines.append(indent + plaster)
        elif end is not None:
            names = _region_names(end)
            if not names:
                if not open_names:
                    logger.debug("Ignoring #enddocregion with no open region (line %d)", idx)
                    continue
                names = [open_names[-1]]
            for name in names:
                if name not in open_names:
                    logger.debug("Ignoring #enddocregion for unopened region %r (line %d)", name, idx)
                    continue
                entry = regions[name]
                _close_last_pending(entry, idx)
                _remove_last(open_names, name)
                entry.open = name in open_names
        elif new_plaster is not None:
            text = new_plaster.strip()
            plaster = matcher.format_plaster(text) if text else ""
        else:
            content_lines.append(line)
            for name in dict.fromkeys(open_names):
                regions[name].lines.append(line)

    for name in dict.fromkeys(open_names):
        entry = regions[name]
        for rng in entry.ranges:
            if rng[1] is None:
                rng[1] = len(lines)
        entry.open = False

    if "" not in regions:
        regions[""] = RegionEntry(lines=content_lines, ranges=[[0, 0]], open=False)

    return regions


class DocregionExtractor:
    """Extracts docregions from the contents of one example file.

    The contents are parsed once, on first use; use `for_contents()` to share
    instances between requests for the same file.
    """

    _cache: LruCache[str, DocregionExtractor] = LruCache(10)

    def __init__(self, file_type: str, contents: str):
        self.file_type = file_type
        self._lines = split_lines(contents)
        self._regions: dict[str, RegionEntry] | None = None
        self._infos: dict[str, DocregionInfo] = {}

    @classmethod
    def for_contents(cls, file_type: str, contents: str) -> DocregionExtractor:
        """Return a (possibly cached) extractor for this file type and contents."""
        key = hashlib.sha256(f"{file_type}|{contents}".encode("utf-8")).hexdigest()
        extractor = cls._cache.get(key)
        if extractor is None:
            extractor = cls(file_type, contents)
            cls._cache.set(key, extractor)
        return extractor

    def get_regions(self) -> dict[str, RegionEntry]:
        if self._regions is None:
            matcher = get_matcher(self.file_type)
            self._regions = parse_regions(self._lines, matcher)
        return self._regions

    def region_names(self) -> list[str]:
        return list(self.get_regions())

    def extract(self, region: str = "") -> DocregionInfo | None:
        """Return the named docregion, or None if the file has no such region."""
        info = self._infos.get(region)
        if info is not None:
            return info

        entry = self.get_regions().get(region)
        if entry is None:
            return None

        info = DocregionInfo(
            lines=tuple(left_align(entry.lines)),
            ranges=tuple((start, end) for start, end in entry.ranges),
            file_type=self.file_type,
        )
        self._infos[region] = info
        return info
