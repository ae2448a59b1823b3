#!/usr/bin/env python3
"""
Segmind MCP Server

Exposes twelve tools over stdio:
- generate_image, transform_image, enhance_image: image generation and editing
- generate_video: text/image to video, polling asynchronous jobs
- generate_audio, generate_music: speech and music
- estimate_cost, check_credits: credit planning
- prepare_image, read_local_image: local image ingestion
- list_models, get_model_info: catalog lookup

Resources expose the catalog (segmind://models, segmind://models/{category})
and the credit balance (segmind://credits); the art_styles prompt templates
styled image requests.

API Reference: https://docs.segmind.com
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import GetPromptResult, ImageContent, Prompt, Resource, TextContent, Tool
from pydantic import AnyUrl

from .config import Settings, get_settings
from .errors import ConfigurationError
from .handlers import (
    ToolContext,
    ToolResult,
    error_result,
    handle_check_credits,
    handle_enhance_image,
    handle_estimate_cost,
    handle_generate_audio,
    handle_generate_image,
    handle_generate_music,
    handle_generate_video,
    handle_get_model_info,
    handle_list_models,
    handle_prepare_image,
    handle_read_local_image,
    handle_transform_image,
)
from .logger import setup_logging
from .resources import JSON_MIME, get_prompts, get_resources, read_resource, render_prompt
from .tools import get_tools
from .version import __version__

Handler = Callable[[ToolContext, dict[str, Any]], Awaitable[ToolResult]]

TOOL_HANDLERS: dict[str, Handler] = {
    "generate_image": handle_generate_image,
    "transform_image": handle_transform_image,
    "enhance_image": handle_enhance_image,
    "generate_video": handle_generate_video,
    "generate_audio": handle_generate_audio,
    "generate_music": handle_generate_music,
    "estimate_cost": handle_estimate_cost,
    "prepare_image": handle_prepare_image,
    "read_local_image": handle_read_local_image,
    "list_models": handle_list_models,
    "get_model_info": handle_get_model_info,
    "check_credits": handle_check_credits,
}


class ToolCallError(Exception):
    """Carries an error result's text up to the MCP layer, which marks the reply isError."""


async def dispatch_tool(ctx: ToolContext, name: str, arguments: dict[str, Any] | None) -> ToolResult:
    """Route a tool call to its handler.

    Args:
        ctx: Shared tool context
        name: Tool name to execute
        arguments: Tool arguments

    Returns:
        The handler's ToolResult, or an error result for unknown tools
    """
    handler = TOOL_HANDLERS.get(name)
    if handler is None:
        return error_result(f"Unknown tool: {name}")
    logger.info(f"Tool called: {name}")
    return await handler(ctx, arguments or {})


def create_server(ctx: ToolContext) -> Server:
    """Build the MCP server bound to one tool context."""
    server = Server("segmind")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return get_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent | ImageContent]:
        """Execute a tool.

        Args:
            name: Tool name to execute
            arguments: Tool arguments

        Returns:
            Content blocks from the handler
        """
        result = await dispatch_tool(ctx, name, arguments)
        if result.is_error:
            raise ToolCallError(result.text)
        return result.content

    @server.list_resources()
    async def list_resources() -> list[Resource]:
        """List catalog and credit resources."""
        return get_resources()

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        """Read one resource as JSON."""
        text = await read_resource(ctx, str(uri))
        return [ReadResourceContents(content=text, mime_type=JSON_MIME)]

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        """List prompt templates."""
        return get_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> GetPromptResult:
        """Render a prompt template."""
        logger.info(f"Getting prompt {name}")
        return render_prompt(name, arguments)

    return server


def main():
    """Run the MCP server."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error(f"Failed to start server: {e.user_message}")
        raise SystemExit(1) from e

    setup_logging(settings)
    if not settings.api_key:
        logger.error("SEGMIND_API_KEY is not set. Get an API key at https://segmind.com")
        raise SystemExit(1)

    logger.info(f"Starting Segmind MCP server v{__version__} (API key {settings.masked_api_key})")
    asyncio.run(_run_server(settings))


async def _run_server(settings: Settings):
    """Async server runner."""
    ctx = ToolContext.from_settings(settings)
    server = create_server(ctx)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await ctx.client.close()
        logger.info("Segmind MCP server stopped")


if __name__ == "__main__":
    main()
