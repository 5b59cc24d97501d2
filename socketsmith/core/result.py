"""
Result object for error handling throughout Socket Smith.

Expected failures (bad index, wrong kind of item, missing permission) are
returned as a failed Result instead of raised. Storage errors still raise.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """
    Standard error codes for Result objects.

    Provides machine-readable error classification so callers (web API, CLI)
    can decide how to report a failure.
    """

    # Socket errors
    INVALID_INDEX = "invalid_index"
    UNRESOLVED_SOURCE = "unresolved_source"
    WRONG_KIND = "wrong_kind"
    INCOMPATIBLE_GEM = "incompatible_gem"
    NOT_SOCKETABLE = "not_socketable"
    MAX_SOCKETS_REACHED = "max_sockets_reached"
    MALFORMED_SLOTS = "malformed_slots"

    # Inventory errors
    INVENTORY_RETURN_FAILED = "inventory_return_failed"

    # Document errors
    DOCUMENT_NOT_FOUND = "document_not_found"

    # Permission errors
    PERMISSION_DENIED = "permission_denied"

    # Validation errors
    INVALID_INPUT = "invalid_input"

    # Generic errors
    UNEXPECTED_ERROR = "unexpected_error"

    def __str__(self) -> str:
        """Return the error code value."""
        return self.value


@dataclass
class Result:
    """
    Represents the result of an operation that can succeed or fail.

    Attributes:
        success: Whether the operation succeeded
        data: The result data if successful
        error: Error message if failed
        error_code: Machine-readable error code if failed

    Examples:
        >>> result = Result.ok({"slotIndex": 0})
        >>> if result.success:
        ...     print(result.data)

        >>> result = Result.fail("Invalid socket index.", ErrorCode.INVALID_INDEX)
        >>> if not result:
        ...     print(f"Error: {result.error}")
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def ok(data: Any = None) -> 'Result':
        """
        Create a successful result.

        Args:
            data: Optional data to return

        Returns:
            Result with success=True
        """
        return Result(success=True, data=data)

    @staticmethod
    def fail(error: str, code: Optional[str | ErrorCode] = None) -> 'Result':
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            code: Machine-readable error code (ErrorCode enum or string)

        Returns:
            Result with success=False
        """
        error_code_str = code.value if isinstance(code, ErrorCode) else code
        return Result(success=False, error=error, error_code=error_code_str)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON responses."""
        if self.success:
            return {'success': True, 'data': self.data}
        return {'success': False, 'error': self.error, 'error_code': self.error_code}

    def __bool__(self) -> bool:
        """Allow using Result in boolean context: if result: ..."""
        return self.success


__all__ = ['Result', 'ErrorCode']
