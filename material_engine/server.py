"""
Material Engine - MCP Server Entry Point

FastMCP server with STDIO and SSE transport support.
"""

import argparse
import logging
from typing import Optional

from fastmcp import FastMCP

from material_engine.config import get_settings
from material_engine.session import MaterialSession
from material_engine.tools import (
    change_page,
    find_pages,
    get_level_pages,
    get_page,
    start_playlist,
)
from material_engine.tools.context import bind_session


def create_app(session: Optional[MaterialSession] = None) -> FastMCP:
    """Create and configure the MCP application."""
    bind_session(session or MaterialSession())

    mcp = FastMCP(
        name="material-engine",
        instructions="Page cache and navigation over e-learning materials",
    )

    # Register all tools
    mcp.mount(get_page.router)
    mcp.mount(get_level_pages.router)
    mcp.mount(change_page.router)
    mcp.mount(start_playlist.router)
    mcp.mount(find_pages.router)

    return mcp


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Material Engine MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=None,
        help="Transport protocol (default: from env)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE transport (default: from env)"
    )
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log.level))

    transport = args.transport or settings.mcp.transport
    port = args.port or settings.mcp.port

    session = MaterialSession(settings)
    if settings.mcp.material_id:
        session.current_material_id = settings.mcp.material_id

    mcp = create_app(session)

    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=settings.mcp.host, port=port)


if __name__ == "__main__":
    main()
