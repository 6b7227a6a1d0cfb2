"""Finance Gateway: HTTP and MCP access to Yahoo Finance data."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("finance-gateway")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
