"""
docregion-lens: Preview code snippets referenced from documentation

Provides three interfaces:
1. CLI: `docregion-lens extract examples/app/app.component.ts --region imports`
2. LSP/MCP servers: `docregion-lens lsp`, `docregion-lens mcp`
3. Library: `import docregion_lens; docregion_lens.extract("app.component.ts", "imports")`
"""

import re
from pathlib import Path
from typing import Optional, Union

from .extractor import DocregionExtractor, DocregionInfo, file_type_of, split_lines
from .locator import DEFAULT_PATH_PREFIX_RE, SnippetInfo
from .locator import locate as _locate

try:
    from importlib.metadata import version
    __version__ = version("docregion-lens")
except Exception:
    __version__ = "unknown"

__all__ = [
    "extract",
    "list_regions",
    "locate",
    "file_type_of",
    "docregion_to_dict",
    "snippet_to_dict",
    "DocregionExtractor",
    "DocregionInfo",
    "SnippetInfo",
]

PathLike = Union[str, Path]


def docregion_to_dict(info: DocregionInfo) -> dict:
    """JSON-ready form of a DocregionInfo"""
    return {
        "file_type": info.file_type,
        "lines": list(info.lines),
        "ranges": [list(r) for r in info.ranges],
    }


def snippet_to_dict(info: SnippetInfo) -> dict:
    """JSON-ready form of a SnippetInfo"""
    linenums = info.attrs.linenums
    return {
        "raw": {
            "contents": info.raw.contents,
            "start": {"line": info.raw.start.line, "character": info.raw.start.character},
            "end": {"line": info.raw.end.line, "character": info.raw.end.character},
            "family": info.raw.family.value,
        },
        "attrs": {
            "path": info.attrs.path,
            "region": info.attrs.region,
            "header": info.attrs.header,
            "linenums": {"mode": linenums.mode.value, "start": linenums.start},
        },
        "resolved_path": info.resolved_path,
    }


def _extractor(path: PathLike, file_type: Optional[str]) -> DocregionExtractor:
    contents = Path(path).read_text(encoding="utf-8")
    if file_type is None:
        file_type = file_type_of(path)
    return DocregionExtractor.for_contents(file_type, contents)


def extract(
    path: PathLike,
    region: str = "",
    file_type: Optional[str] = None,
) -> Optional[DocregionInfo]:
    """Extract a docregion from an example file

    Args:
        path: Path of the example file
        region: Docregion name (default: the whole file, minus directives)
        file_type: Comment syntax to assume (default: the file's extension)

    Returns:
        DocregionInfo with the left-aligned lines and source line ranges,
        or None if the file has no such region

    Example:
        >>> info = extract("src/app/app.component.ts", "class")
        >>> print(info.contents)
        export class AppComponent {}
    """
    return _extractor(path, file_type).extract(region)


def list_regions(path: PathLike, file_type: Optional[str] = None) -> list[str]:
    """List the docregion names of an example file

    Names are listed in order of first appearance; the default region is ''.

    Example:
        >>> list_regions("src/app/app.component.ts")
        ['imports', 'class', '']
    """
    return _extractor(path, file_type).region_names()


def locate(
    document_path: PathLike,
    line: int,
    character: int,
    prefix_pattern: Optional[str] = None,
) -> Optional[SnippetInfo]:
    """Find the code snippet tag at a position in a documentation file

    Args:
        document_path: Path of the documentation file
        line: Zero-based line of the cursor
        character: Zero-based column of the cursor
        prefix_pattern: Regex matching the docs root in `document_path`
            (default: everything up to `aio/content/`)

    Returns:
        SnippetInfo, or None if the position is not inside a snippet tag.
        `resolved_path` is None if the referenced example file is missing.

    Example:
        >>> info = locate("aio/content/guide/forms.md", 12, 20)
        >>> info.attrs.path, info.attrs.region
        ('forms/src/app/app.component.ts', 'imports')
    """
    text = Path(document_path).read_text(encoding="utf-8")
    prefix_re = (
        re.compile(prefix_pattern, re.IGNORECASE)
        if prefix_pattern is not None
        else DEFAULT_PATH_PREFIX_RE
    )
    return _locate(
        split_lines(text), line, character,
        document_path=str(document_path), prefix_re=prefix_re,
    )
