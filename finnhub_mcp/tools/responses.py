"""
Helpers that render tool outcomes as MCP content blocks.

Every block is a single JSON text item; error blocks set ``isError``.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict

from mcp.types import CallToolResult, TextContent

VALIDATION_ERROR = "ValidationError"
OPERATION_ERROR = "OperationError"


def _to_text_content(payload: Dict[str, Any]) -> TextContent:
    return TextContent(type="text", text=json.dumps(payload, indent=2, default=str))


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_success_response(payload: Dict[str, Any]) -> CallToolResult:
    """Wrap a JSON-serializable payload as a success block."""
    return CallToolResult(content=[_to_text_content(payload)], isError=False)


def create_error_response(payload: Dict[str, Any]) -> CallToolResult:
    return CallToolResult(content=[_to_text_content(payload)], isError=True)


def create_validation_error_response(parameter: str, message: str) -> CallToolResult:
    """Error block naming the offending parameter."""
    return create_error_response(
        {
            "error": VALIDATION_ERROR,
            "parameter": parameter,
            "message": message,
            "timestamp": _utc_timestamp(),
        }
    )


def create_operation_error_response(operation: str, message: str) -> CallToolResult:
    """Error block for an operation that did not complete."""
    return create_error_response(
        {
            "error": OPERATION_ERROR,
            "operation": operation,
            "message": message,
            "timestamp": _utc_timestamp(),
        }
    )
