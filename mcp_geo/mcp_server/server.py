"""
MCP Server Implementation
========================

Model Context Protocol server exposing the renderGeometricImage tool, which
renders Asymptote code to an SVG or PNG image through the external asy compiler.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Any, Dict, List, Optional, Union

from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CallToolResult,
    ErrorData,
    ImageContent,
    TextContent,
    Tool,
)
from pydantic import ValidationError

from mcp_geo.config.logging import get_logger
from mcp_geo.config.settings import get_settings
from mcp_geo.core.rendering.asy_renderer import (
    AsymptoteRenderError,
    AsymptoteRenderer,
    get_renderer,
)
from mcp_geo.models.schemas import (
    RENDER_GEOMETRIC_IMAGE_INPUT_SCHEMA,
    RENDER_GEOMETRIC_IMAGE_TOOL,
    RenderGeometricImageArguments,
    RenderResult,
)

logger = get_logger(__name__)


class AsyGeoMCPServer:
    """MCP Server for Asymptote geometry rendering."""

    def __init__(self, renderer: Optional[AsymptoteRenderer] = None) -> None:
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="mcp_server")  # structlog.BoundLoggerBase
        self.renderer = renderer or get_renderer()
        self.server = Server(
            self.settings.server_name,
            version=self.settings.app_version,
            instructions=self.settings.description,
        )
        self._setup_tools()

    def _setup_tools(self) -> None:
        """Setup MCP tools."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[Tool]:
            """List available MCP tools."""
            return await self.get_tools()

        # Registered directly rather than through @call_tool(): the decorator
        # turns raised errors into tool results, clients must get JSON-RPC errors.
        self.server.request_handlers[types.CallToolRequest] = self._handle_call_tool_request

    async def _handle_call_tool_request(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self.call_tool(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    # Public API methods, also used without a transport
    async def get_tools(self) -> List[Tool]:
        """Get list of available MCP tools."""
        return [
            Tool(
                name=RENDER_GEOMETRIC_IMAGE_TOOL,
                description="Renders an image from Asymptote code.",
                inputSchema=RENDER_GEOMETRIC_IMAGE_INPUT_SCHEMA,
            ),
        ]

    async def call_tool(
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> CallToolResult:
        """
        Execute a tool call.

        Args:
            name: Tool name
            arguments: Raw tool arguments from the client

        Returns:
            CallToolResult with the rendered image

        Raises:
            McpError: For unknown tools, invalid arguments and failed renders
        """
        if name != RENDER_GEOMETRIC_IMAGE_TOOL:
            self.logger.warning("Unknown tool requested", tool=name)
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

        if not arguments or not isinstance(arguments.get("asyCode"), str):
            raise McpError(
                ErrorData(
                    code=INVALID_PARAMS,
                    message=(
                        "Missing or invalid asyCode in arguments for "
                        f"{RENDER_GEOMETRIC_IMAGE_TOOL} tool."
                    ),
                )
            )

        try:
            args = RenderGeometricImageArguments.model_validate(arguments)
        except ValidationError as e:
            raise McpError(
                ErrorData(
                    code=INVALID_PARAMS,
                    message=f"Invalid outputParams for {RENDER_GEOMETRIC_IMAGE_TOOL} tool: {e}",
                )
            )

        self.logger.info(
            "Tool called",
            tool=name,
            code_length=len(args.asy_code),
            format=args.format.value if args.format else None,
        )
        return await self._handle_render_geometric_image(args)

    async def _handle_render_geometric_image(
        self, args: RenderGeometricImageArguments
    ) -> CallToolResult:
        """Handle renderGeometricImage tool execution."""
        try:
            result = await self.renderer.render(args.asy_code, args.format, args.render_level)
        except AsymptoteRenderError as e:
            raise McpError(
                ErrorData(
                    code=e.code,
                    message=e.message,
                    data={"logs": e.logs} if e.logs else None,
                )
            ) from e

        return CallToolResult(content=self._build_content(result))

    @staticmethod
    def _build_content(result: RenderResult) -> List[Union[ImageContent, TextContent]]:
        content: List[Union[ImageContent, TextContent]] = [
            ImageContent(type="image", mimeType=result.mime_type, data=result.base64_data)
        ]
        if result.logs.strip():
            content.append(
                TextContent(type="text", text=f"Asymptote Logs:\n{result.logs.strip()}")
            )
        return content

    def initialization_options(self) -> InitializationOptions:
        """Options sent to the client during the initialize handshake."""
        return InitializationOptions(
            server_name=self.settings.server_name,
            server_version=self.settings.app_version,
            capabilities=self.server.get_capabilities(
                notification_options=NotificationOptions(),
                experimental_capabilities={},
            ),
            instructions=self.settings.description,
        )

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
            except NotImplementedError:
                pass  # not supported by the Windows event loop

    def _handle_signal(self, sig: signal.Signals) -> None:
        self.logger.info(f"Received {sig.name}, shutting down server...")
        self.logger.info("MCP server stopped")
        logging.shutdown()
        # The stdio transport reads stdin on a worker thread that cannot be
        # cancelled, so leave without waiting for it.
        os._exit(0)

    async def run(self) -> None:
        """Run the MCP server on the stdio transport until stdin closes or a signal arrives."""
        from mcp.server.stdio import stdio_server

        self._install_signal_handlers()
        await self.renderer.check_installation()

        try:
            async with stdio_server() as (read_stream, write_stream):
                self.logger.info(
                    f"{self.settings.server_name} server (v{self.settings.app_version}) "
                    "running on stdio",
                    component="mcp_server",
                )
                await self.server.run(read_stream, write_stream, self.initialization_options())
        except Exception as e:
            self.logger.error("MCP server error", error=str(e))
            raise


# Server instance
mcp_server = AsyGeoMCPServer()


def main() -> None:
    """Main entry point for MCP server."""
    try:
        asyncio.run(mcp_server.run())
    except Exception as e:
        logger.error("Failed to run server", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
