"""
MCP resources exposed by the server.
"""
