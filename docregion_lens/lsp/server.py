"""docregion-lens LSP server using pygls."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from lsprotocol import types as lsp
from pygls.exceptions import JsonRpcRequestCancelled
from pygls.lsp.server import LanguageServer
from pygls.uris import from_fs_path

from ..extractor import DocregionExtractor, DocregionInfo, file_type_of, split_lines
from ..locator import (
    DEFAULT_PATH_PREFIX_RE, SnippetInfo,
    is_in_region_attribute, locate,
)
from .hover import (
    AUTO_LINENUM_THRESHOLD,
    build_completion_documentation, build_hover_content,
)

logger = logging.getLogger(__name__)

COMPLETION_TRIGGER_CHARACTERS = ["=", '"', "'"]
DEFAULT_REGION_LABEL = "<default>"


class Cancelled(Exception):
    """The request was superseded while waiting for file I/O."""


class CancellationToken:
    """Polled once file I/O completes, before any parsing starts."""

    def __init__(self, is_cancelled: Callable[[], bool] | None = None):
        self._is_cancelled = is_cancelled
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._is_cancelled is not None and self._is_cancelled()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise Cancelled("Cancelled.")


@runtime_checkable
class ExampleProvider(Protocol):
    """Interface for example file access (allows DI for testing)."""

    def exists(self, path: str) -> bool: ...
    def read_text(self, path: str) -> str: ...


class FileSystemProvider:
    """Production provider: reads example files from disk."""

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")


class SnippetLensServer(LanguageServer):
    """LSP server with hover, go-to-definition and region completion for snippets."""

    def __init__(self, provider: ExampleProvider | None = None):
        super().__init__("docregion-lens", "v0.1.0")
        self.provider = provider or FileSystemProvider()
        self.path_prefix_re: re.Pattern = DEFAULT_PATH_PREFIX_RE
        self.auto_linenum_threshold: int = AUTO_LINENUM_THRESHOLD

    def configure(self, options: dict) -> None:
        """Apply client initialization options, ignoring invalid values."""
        pattern = options.get("pathPrefixPattern")
        if isinstance(pattern, str):
            try:
                self.path_prefix_re = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                logger.warning("Ignoring invalid pathPrefixPattern %r: %s", pattern, e)
        threshold = options.get("autoLinenumThreshold")
        if isinstance(threshold, int) and not isinstance(threshold, bool) and threshold >= 0:
            self.auto_linenum_threshold = threshold
        elif threshold is not None:
            logger.warning("Ignoring invalid autoLinenumThreshold %r", threshold)

    def _snippet_at(
        self, path: str, text: str, line: int, character: int, action: str
    ) -> SnippetInfo | None:
        """Locate the snippet at a position, requiring an existing example file."""
        logger.info("%s for '%s:%d:%d'...", action, path, line, character)

        snippet = locate(
            split_lines(text), line, character,
            document_path=path,
            prefix_re=self.path_prefix_re,
            exists=self.provider.exists,
        )
        if snippet is None:
            return None
        logger.info("  Detected code snippet: %s", snippet.raw.contents)

        if snippet.resolved_path is None:
            return None
        logger.info("  Located example file: %s", snippet.resolved_path)
        return snippet

    async def _extractor_for(
        self, path: str, token: CancellationToken | None = None
    ) -> DocregionExtractor:
        """Read an example file and get its (cached) extractor.

        Raises:
            Cancelled: if `token` was cancelled while the file was being read.
            OSError: if the file cannot be read.
        """
        contents = await asyncio.to_thread(self.provider.read_text, path)
        if token is not None:
            token.raise_if_cancelled()
        return DocregionExtractor.for_contents(file_type_of(path), contents)

    async def _extract(
        self, path: str, region: str, token: CancellationToken | None = None
    ) -> DocregionInfo | None:
        extractor = await self._extractor_for(path, token)
        return extractor.extract(region)

    async def _region_names(
        self, path: str, token: CancellationToken | None = None
    ) -> list[str]:
        extractor = await self._extractor_for(path, token)
        return extractor.region_names()

    async def _hover(
        self, path: str, text: str, line: int, character: int,
        token: CancellationToken | None = None,
    ) -> lsp.Hover | None:
        snippet = self._snippet_at(path, text, line, character, "Providing hover")
        if snippet is None:
            return None

        info = await _guarded("Providing hover", self._extract(
            snippet.resolved_path, snippet.attrs.region or "", token,
        ))
        if info is None:
            return None

        return lsp.Hover(
            contents=lsp.MarkupContent(
                kind=lsp.MarkupKind.Markdown,
                value=build_hover_content(info, snippet.attrs, self.auto_linenum_threshold),
            ),
            range=lsp.Range(
                start=lsp.Position(line=snippet.raw.start.line, character=snippet.raw.start.character),
                end=lsp.Position(line=snippet.raw.end.line, character=snippet.raw.end.character),
            ),
        )

    async def _definition(
        self, path: str, text: str, line: int, character: int,
        token: CancellationToken | None = None,
    ) -> list[lsp.Location] | None:
        snippet = self._snippet_at(path, text, line, character, "Providing definition")
        if snippet is None:
            return None

        info = await _guarded("Providing definition", self._extract(
            snippet.resolved_path, snippet.attrs.region or "", token,
        ))
        if info is None:
            return None

        example_uri = from_fs_path(snippet.resolved_path)
        return [
            lsp.Location(
                uri=example_uri,
                range=lsp.Range(
                    start=lsp.Position(line=start, character=0),
                    end=lsp.Position(line=end, character=0),
                ),
            )
            for start, end in info.ranges
        ]

    async def _completion(
        self, path: str, text: str, line: int, character: int,
        trigger: str | None = None,
        token: CancellationToken | None = None,
    ) -> list[lsp.CompletionItem] | None:
        lines = split_lines(text)
        line_text = lines[line] if line < len(lines) else ""
        if not is_in_region_attribute(line_text, character):
            return None

        snippet = self._snippet_at(path, text, line, character, "Providing completion items")
        if snippet is None:
            return None

        names = await _guarded("Providing completion items", self._region_names(
            snippet.resolved_path, token,
        ))
        if names is None:
            return None

        next_char = line_text[character:character + 1]
        return [
            lsp.CompletionItem(
                label=name or DEFAULT_REGION_LABEL,
                filter_text=name,
                insert_text=_insert_text(name, trigger, next_char),
                data={"path": snippet.resolved_path, "region": name},
            )
            for name in names
        ]

    async def _resolve_completion(self, item: lsp.CompletionItem) -> lsp.CompletionItem:
        data = item.data
        if not isinstance(data, dict) or "path" not in data:
            return item

        info = await _guarded("Resolving completion item", self._extract(
            data["path"], data.get("region") or "",
        ))
        if info is not None:
            item.documentation = lsp.MarkupContent(
                kind=lsp.MarkupKind.Markdown,
                value=build_completion_documentation(info),
            )
        return item

    def _document_token(self, uri: str) -> CancellationToken:
        """A token that is cancelled once the document is edited."""
        version = self.workspace.get_text_document(uri).version

        def changed() -> bool:
            return self.workspace.get_text_document(uri).version != version

        return CancellationToken(changed)


async def _guarded(action: str, coro):
    """Await a helper, mapping read errors to None. `Cancelled` propagates."""
    try:
        return await coro
    except OSError:
        logger.debug("%s: failed to read example file", action, exc_info=True)
    return None


async def _cancellable(action: str, coro):
    """Await a request helper, reporting cancellation to the client as RequestCancelled."""
    try:
        return await coro
    except Cancelled:
        logger.debug("%s: cancelled", action)
        raise JsonRpcRequestCancelled(message=f"{action}: cancelled") from None


def _insert_text(name: str, trigger: str | None, next_char: str) -> str:
    """Quote a region name according to the character that triggered completion."""
    if trigger == "=":
        return f'"{name}"'
    if trigger in ('"', "'") and next_char != trigger:
        return name + trigger
    return name


def _create_server(provider: ExampleProvider | None = None) -> SnippetLensServer:
    """Create and configure the LSP server with all handlers."""
    server = SnippetLensServer(provider)

    @server.feature(lsp.INITIALIZED)
    def on_initialized(params: lsp.InitializedParams):
        # Read settings from initialization options
        try:
            init_opts = server.lsp._init_options
        except AttributeError:
            init_opts = None
        if isinstance(init_opts, dict):
            server.configure(init_opts)

    @server.feature(lsp.TEXT_DOCUMENT_HOVER)
    async def hover(params: lsp.HoverParams) -> lsp.Hover | None:
        uri = params.text_document.uri
        pos = params.position
        doc = server.workspace.get_text_document(uri)
        return await _cancellable("Providing hover", server._hover(
            doc.path, doc.source, pos.line, pos.character, server._document_token(uri),
        ))

    @server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
    async def definition(params: lsp.DefinitionParams) -> list[lsp.Location] | None:
        uri = params.text_document.uri
        pos = params.position
        doc = server.workspace.get_text_document(uri)
        return await _cancellable("Providing definition", server._definition(
            doc.path, doc.source, pos.line, pos.character, server._document_token(uri),
        ))

    @server.feature(
        lsp.TEXT_DOCUMENT_COMPLETION,
        lsp.CompletionOptions(
            trigger_characters=COMPLETION_TRIGGER_CHARACTERS,
            resolve_provider=True,
        ),
    )
    async def completion(params: lsp.CompletionParams) -> list[lsp.CompletionItem] | None:
        uri = params.text_document.uri
        pos = params.position
        doc = server.workspace.get_text_document(uri)
        trigger = params.context.trigger_character if params.context else None
        return await _cancellable("Providing completion items", server._completion(
            doc.path, doc.source, pos.line, pos.character, trigger,
            server._document_token(uri),
        ))

    @server.feature(lsp.COMPLETION_ITEM_RESOLVE)
    async def completion_resolve(item: lsp.CompletionItem) -> lsp.CompletionItem:
        return await _cancellable("Resolving completion item", server._resolve_completion(item))

    return server


def start_server(provider: ExampleProvider | None = None):
    """Start the LSP server on stdio."""
    server = _create_server(provider)
    server.start_io()
