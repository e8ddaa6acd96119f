"""
Command Line Entry Point
========================

Bootstraps the stdio MCP server in a child process that inherits this
process's stdin, stdout and stderr, so MCP hosts can launch ``mcp-geo``
directly.
"""

import argparse
import asyncio
import subprocess
import sys
from typing import List, Optional

from mcp_geo import __version__

SERVER_MODULE = "mcp_geo.mcp_server.server"


def build_server_command() -> List[str]:
    """Command line that runs the MCP server with the current interpreter."""
    return [sys.executable, "-m", SERVER_MODULE]


def check_installation() -> int:
    """Run the Asymptote installation check and return an exit status."""
    from mcp_geo.core.rendering.asy_renderer import check_asymptote_installation

    installed = asyncio.run(check_asymptote_installation())
    if installed:
        print("Asymptote installation OK", file=sys.stderr)
    return 0 if installed else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the mcp-geo command."""
    parser = argparse.ArgumentParser(
        prog="mcp-geo",
        description="Asymptote geometry rendering MCP server (stdio transport)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check that the Asymptote executable is available",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)

    if args.check:
        return check_installation()

    try:
        subprocess.run(build_server_command(), check=True)
    except KeyboardInterrupt:
        return 0
    except (OSError, subprocess.CalledProcessError) as e:
        print(f"Failed to start MCP server: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
