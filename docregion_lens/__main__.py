"""CLI entry point using Click"""

import click
import json
import logging
import sys
from . import (
    docregion_to_dict,
    extract,
    list_regions,
    locate,
    snippet_to_dict,
    __version__,
)
from .locator import Linenums
from .lsp.hover import AUTO_LINENUM_THRESHOLD, first_line_number, with_linenums


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--format",
    type=click.Choice(["json", "markdown"]),
    default="markdown",
    help="Output format",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, format, verbose):
    """docregion-lens: Preview code snippets referenced from documentation

    Examples:
      docregion-lens extract examples/forms/src/app/app.component.ts --region imports
      docregion-lens regions examples/forms/src/app/app.component.ts
      docregion-lens locate aio/content/guide/forms.md 12 20
      docregion-lens lsp  # Start the language server for editors
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["format"] = format


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--region", default="", help="Docregion name (default: whole file)")
@click.option("--file-type", help="Comment syntax to assume (default: file extension)")
@click.option(
    "--linenums",
    help='Line numbering: "true", "false", a first line number, or unset for auto',
)
@click.pass_context
def extract_cmd(ctx, path, region, file_type, linenums):
    """Extract a docregion from an example file"""
    fmt = ctx.obj["format"]
    try:
        info = extract(path, region, file_type)
        if info is None:
            click.echo(f"No docregion '{region}' in {path}", err=True)
            sys.exit(1)
        if fmt == "json":
            click.echo(json.dumps(docregion_to_dict(info), indent=2))
        else:
            first = first_line_number(
                Linenums.parse(linenums), len(info.lines), AUTO_LINENUM_THRESHOLD
            )
            click.echo(with_linenums(info.lines, first))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--file-type", help="Comment syntax to assume (default: file extension)")
@click.pass_context
def regions_cmd(ctx, path, file_type):
    """List the docregions of an example file"""
    fmt = ctx.obj["format"]
    try:
        names = list_regions(path, file_type)
        if fmt == "json":
            click.echo(json.dumps(names, indent=2))
        else:
            for name in names:
                click.echo(name or "<default>")
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=int)
@click.argument("character", type=int)
@click.option("--prefix-pattern", help="Regex matching the docs root in DOCUMENT's path")
@click.pass_context
def locate_cmd(ctx, document, line, character, prefix_pattern):
    """Find the code snippet tag at LINE:CHARACTER (zero-based) in DOCUMENT"""
    fmt = ctx.obj["format"]
    try:
        info = locate(document, line, character, prefix_pattern)
        if info is None:
            click.echo("No code snippet at this position", err=True)
            sys.exit(1)
        if fmt == "json":
            click.echo(json.dumps(snippet_to_dict(info), indent=2))
        else:
            click.echo(info.raw.contents)
            click.echo(f"path: {info.attrs.path}")
            if info.attrs.region:
                click.echo(f"region: {info.attrs.region}")
            if info.attrs.header:
                click.echo(f"header: {info.attrs.header}")
            click.echo(f"example file: {info.resolved_path or '(not found)'}")
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--stdio", is_flag=True, default=False, hidden=True,
              help="Use stdio transport (default, accepted for LSP client compatibility).")
def lsp(**_kwargs):
    """Start Language Server Protocol server

    Communicates over stdio. Used by editor extensions.

    Installation:
      # Neovim: vim.lsp.start({ cmd = { "docregion-lens", "lsp" } })
    """
    try:
        from .lsp.server import start_server
    except ImportError as e:
        click.echo(
            "LSP dependencies not installed. Install with:\n"
            "  pip install 'docregion-lens[lsp]'\n"
            f"\nMissing: {e}",
            err=True,
        )
        sys.exit(1)
    start_server()


@cli.command()
def mcp():
    """Start MCP server for AI agents

    This starts a Model Context Protocol server that communicates over stdio.
    AI agents can connect to it to locate snippets and extract docregions.
    """
    try:
        import asyncio
        from .mcp import run_server

        asyncio.run(run_server())
    except KeyboardInterrupt:
        click.echo("\nMCP server stopped", err=True)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


# Rename commands to match expected names
cli.add_command(extract_cmd, name="extract")
cli.add_command(regions_cmd, name="regions")
cli.add_command(locate_cmd, name="locate")


if __name__ == "__main__":
    cli()
