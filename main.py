#!/usr/bin/env python3
"""
Workspace Edit MCP Server

Index-addressed structural editing for Google Sheets and Google Docs, plus
source editing for Apps Script projects.

Usage:
    python main.py                                # stdio transport
    python main.py --transport streamable-http    # HTTP transport on WORKSPACE_MCP_PORT
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any module reads configuration
dotenv_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env")
load_dotenv(dotenv_path=dotenv_path)

# Suppress googleapiclient discovery cache warning
logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    # stdout carries the MCP protocol in stdio mode
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Workspace Edit MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http"],
        default=None,
        help="Transport mode (defaults to WORKSPACE_MCP_TRANSPORT or stdio)",
    )
    args = parser.parse_args()

    from core.config import get_port, get_transport_mode
    from core.server import server, set_transport_mode

    # Import tool modules to register them (side-effect imports)
    import gappsscript.appsscript_tools  # noqa: F401
    import gdocs.docs_tools  # noqa: F401
    import gsheets.sheets_tools  # noqa: F401

    set_transport_mode(args.transport or get_transport_mode())
    transport = get_transport_mode()

    if transport == "streamable-http":
        port = get_port()
        logger.info(f"Starting Workspace Edit MCP server on port {port}")
        server.run(transport="streamable-http", host="0.0.0.0", port=port)
    else:
        logger.info("Starting Workspace Edit MCP server (stdio)")
        server.run(transport="stdio")


if __name__ == "__main__":
    main()
