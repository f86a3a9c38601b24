"""
FinnHub MCP server.

Exposes FinnHub symbol search as a Model Context Protocol tool.
"""

__version__ = "1.0.0"
