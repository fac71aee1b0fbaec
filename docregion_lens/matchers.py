"""Docregion directive matchers, one per comment syntax."""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class DocregionMatcher:
    """Recognizers for the `#docregion` directives of one comment style.

    Each pattern captures the remainder of the directive (region names or
    plaster text) in group 1.
    """

    region_start_re: re.Pattern
    region_end_re: re.Pattern
    plaster_re: re.Pattern
    plaster_template: str

    def region_start(self, line: str) -> str | None:
        m = self.region_start_re.match(line)
        return m.group(1) if m else None

    def region_end(self, line: str) -> str | None:
        m = self.region_end_re.match(line)
        return m.group(1) if m else None

    def plaster(self, line: str) -> str | None:
        m = self.plaster_re.match(line)
        return m.group(1) if m else None

    def format_plaster(self, text: str) -> str:
        return self.plaster_template.format(text)


def _directives(prefix: str, suffix: str) -> tuple[re.Pattern, re.Pattern, re.Pattern]:
    return tuple(
        re.compile(rf'^\s*{prefix}\s*#{name}\s*{suffix}')
        for name in ("docregion", "enddocregion", "docplaster")
    )


# CSS
_BLOCK = _directives(r'/\*', r'(.*?)\s*\*/\s*$')
# TypeScript, JavaScript and everything unknown
_MIXED = _directives(r'//', r'(.*)$')
# Bash, YAML
_HASH = _directives(r'##?', r'(.*)$')

MATCHERS: dict[str, DocregionMatcher] = {
    "block_comment": DocregionMatcher(*_BLOCK, plaster_template="/* {} */"),
    "mixed_comment": DocregionMatcher(*_MIXED, plaster_template="/* {} */"),
    # Pug, JSON: `//` only, so no block form for the plaster either
    "inline_comment": DocregionMatcher(*_MIXED, plaster_template="// {}"),
    "hash_comment": DocregionMatcher(*_HASH, plaster_template="# {}"),
    "html_comment": DocregionMatcher(
        # The closing `-->` may be missing when the directive ends the line
        region_start_re=re.compile(r'^\s*<!--\s*#docregion\s*([^>]*?)\s*(?:-->\s*)?$'),
        region_end_re=re.compile(r'^\s*<!--\s*#enddocregion\s*(.*?)\s*-->\s*$'),
        plaster_re=re.compile(r'^\s*<!--\s*#docplaster\s*(.*?)\s*-->\s*$'),
        plaster_template="<!-- {} -->",
    ),
}

_FILE_TYPE_FAMILIES = {
    "conf": "hash_comment",
    "sh": "hash_comment",
    "yaml": "hash_comment",
    "yml": "hash_comment",
    "css": "block_comment",
    "html": "html_comment",
    "svg": "html_comment",
    "jade": "inline_comment",
    "json": "inline_comment",
    "json.annotated": "inline_comment",
    "pug": "inline_comment",
}


def get_matcher(file_type: str) -> DocregionMatcher:
    """Return the matcher for a file type (e.g. "ts", "HTML", "yaml").

    Unlisted file types use `//` comments.
    """
    family = _FILE_TYPE_FAMILIES.get(file_type.lower(), "mixed_comment")
    return MATCHERS[family]
