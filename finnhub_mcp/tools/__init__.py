"""
MCP tools exposed by the server.
"""

from .search_symbol import SearchSymbolTool

__all__ = ["SearchSymbolTool"]
