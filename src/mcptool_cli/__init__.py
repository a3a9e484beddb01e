"""mcptool - Manage declarative MCP server definitions."""

from .main import __version__, main

__all__ = ["main", "__version__"]
