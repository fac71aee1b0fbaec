"""MCP server for AI agent integration"""

import json
import logging
from mcp.server import Server
from mcp.types import Tool, TextContent, CallToolResult
from . import docregion_to_dict, extract, list_regions, locate, snippet_to_dict

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("docregion-lens-mcp")

# Create server instance
server = Server("docregion-lens")


def _text_result(payload, is_error: bool = False) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(
            type="text",
            text=json.dumps(payload, indent=2)
        )],
        isError=is_error
    )


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools for AI agents"""
    return [
        Tool(
            name="extract_docregion",
            description="Extract a named docregion (a span marked with #docregion comments) from an example source file. Returns the left-aligned lines and their line ranges in the file.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path of the example file"
                    },
                    "region": {
                        "type": "string",
                        "description": "Docregion name (omit for the whole file without directive lines)",
                        "default": ""
                    },
                    "file_type": {
                        "type": "string",
                        "description": "Comment syntax to assume, e.g. 'ts', 'html', 'yaml' (default: file extension)"
                    }
                },
                "required": ["path"]
            }
        ),
        Tool(
            name="list_docregions",
            description="List the docregion names defined in an example source file. The default region is ''.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path of the example file"
                    },
                    "file_type": {
                        "type": "string",
                        "description": "Comment syntax to assume (default: file extension)"
                    }
                },
                "required": ["path"]
            }
        ),
        Tool(
            name="locate_snippet",
            description="Find the <code-example>/{@example} snippet tag at a position in a documentation file, with its attributes and the example file it refers to.",
            inputSchema={
                "type": "object",
                "properties": {
                    "document_path": {
                        "type": "string",
                        "description": "Path of the documentation file"
                    },
                    "line": {
                        "type": "integer",
                        "description": "Zero-based line"
                    },
                    "character": {
                        "type": "integer",
                        "description": "Zero-based column"
                    },
                    "prefix_pattern": {
                        "type": "string",
                        "description": "Regex matching the docs root in document_path (default: up to 'aio/content/')"
                    }
                },
                "required": ["document_path", "line", "character"]
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> CallToolResult:
    """Handle tool calls from AI agents"""
    try:
        if name == "extract_docregion":
            region = arguments.get("region", "")
            info = extract(arguments["path"], region, arguments.get("file_type"))
            if info is None:
                return _text_result({"error": f"No docregion '{region}'"}, is_error=True)
            return _text_result(docregion_to_dict(info))

        elif name == "list_docregions":
            names = list_regions(arguments["path"], arguments.get("file_type"))
            return _text_result({"regions": names})

        elif name == "locate_snippet":
            info = locate(
                arguments["document_path"],
                arguments["line"],
                arguments["character"],
                arguments.get("prefix_pattern"),
            )
            return _text_result(None if info is None else snippet_to_dict(info))

        else:
            return _text_result({"error": f"Unknown tool: {name}"}, is_error=True)

    except Exception as e:
        logger.error(f"Tool call error: {e}")
        return _text_result({"error": str(e)}, is_error=True)


async def run_server():
    """Run the MCP server over stdio"""
    from mcp.server.stdio import stdio_server

    logger.info("Starting docregion-lens MCP server")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )
