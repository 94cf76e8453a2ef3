"""Cost estimator error handling.

Custom exceptions and error codes for the calculator, storage and API layers.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SCHEMA = "INVALID_SCHEMA"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Calculation Errors (2xxx)
    CALCULATION_FAILED = "CALCULATION_FAILED"
    UNKNOWN_MARKET_TIER = "UNKNOWN_MARKET_TIER"
    COMPARISON_FAILED = "COMPARISON_FAILED"

    # Not Found Errors (3xxx)
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    ESTIMATE_NOT_FOUND = "ESTIMATE_NOT_FOUND"

    # Firestore Errors (5xxx)
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"


class EstimatorError(Exception):
    """Base exception for cost estimator errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize EstimatorError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"EstimatorError(code={self.code!r}, message={self.message!r})"


class ValidationError(EstimatorError):
    """Validation-specific error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class NotFoundError(EstimatorError):
    """Raised when a project or saved estimate does not exist."""

    def __init__(self, code: str, resource: str, resource_id: str):
        super().__init__(
            code=code,
            message=f"{resource} not found: {resource_id}",
            details={"resource": resource, "id": resource_id}
        )
        self.resource = resource
        self.resource_id = resource_id


class StorageError(EstimatorError):
    """Firestore-specific error."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.FIRESTORE_ERROR,
        details: Optional[Dict] = None
    ):
        super().__init__(code=code, message=message, details=details)
