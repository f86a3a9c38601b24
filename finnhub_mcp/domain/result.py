"""
Success/failure envelope returned by application services.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ResultErrorType(str, Enum):
    """Error categories a failed Result can carry."""

    NOT_FOUND = "NotFound"
    UNKNOWN = "Unknown"
    INVALID_QUERY = "InvalidQuery"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    TIMEOUT = "Timeout"
    INVALID_RESPONSE = "InvalidResponse"


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Immutable success/failure envelope.

    Exactly one of ``data`` and ``error_message`` is populated. Use the
    ``success`` and ``failure`` constructors rather than instantiating
    directly.
    """

    is_success: bool
    data: Optional[T] = None
    error_message: Optional[str] = None
    error_type: Optional[ResultErrorType] = None

    @classmethod
    def success(cls, data: T) -> "Result[T]":
        if data is None:
            raise ValueError("A successful result requires data")
        return cls(is_success=True, data=data)

    @classmethod
    def failure(
        cls,
        error_message: str,
        error_type: ResultErrorType = ResultErrorType.UNKNOWN,
    ) -> "Result[T]":
        if not error_message:
            raise ValueError("A failed result requires an error message")
        return cls(is_success=False, error_message=error_message, error_type=error_type)

    def to_dict(self) -> Dict[str, Any]:
        """Render the envelope with snake_case keys, omitting empty fields."""
        payload: Dict[str, Any] = {"is_success": self.is_success}
        if self.is_success:
            payload["data"] = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        else:
            payload["error_message"] = self.error_message
            payload["error_type"] = self.error_type.value if self.error_type else None
        return payload
