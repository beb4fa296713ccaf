from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Standard error codes for querykit operations.

    Error codes categorize failures without requiring a dedicated exception
    class per failure mode. Each category has its own prefix.

    Attributes:
        CONFIG_*: Configuration-related errors
        VALIDATION_*: Identifier, operator and expression validation errors
        PRECONDITION_*: Argument preconditions checked before any SQL is built
        EXECUTION_*: Errors raised while the execution port runs a statement
        TRANSACTION_*: Begin/commit/rollback failures
    """
    # Configuration errors
    CONFIG_ERROR = "CONFIG_001"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_001"
    INVALID_IDENTIFIER = "VALIDATION_002"
    INVALID_OPERATOR = "VALIDATION_003"
    INVALID_EXPRESSION = "VALIDATION_004"
    MISSING_TABLE = "VALIDATION_005"

    # Precondition errors
    PRECONDITION_ERROR = "PRECONDITION_001"

    # Execution errors
    EXECUTION_ERROR = "EXECUTION_001"
    QUERY_EXECUTION_ERROR = "EXECUTION_002"

    # Transaction errors
    TRANSACTION_ERROR = "TRANSACTION_001"
    ROLLBACK_ERROR = "TRANSACTION_002"
    COMMIT_ERROR = "TRANSACTION_003"


class QueryKitError(Exception):
    """Base exception for all querykit errors.

    Uses error codes for categorization instead of a deep hierarchy of
    exception classes.

    Attributes:
        message: Error message
        error_code: Error code from ErrorCode enum
        details: Additional error details
        cause: Optional underlying exception
        is_retryable: Whether the error is transient and can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXECUTION_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        is_retryable: bool = False
    ):
        """Initialize querykit error.

        Args:
            message: Error message
            error_code: Error code from ErrorCode enum
            details: Additional error details
            cause: Optional underlying exception
            is_retryable: Whether error is transient
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause
        self.is_retryable = is_retryable
        if cause is not None:
            self.__cause__ = cause

        # Lazy import to avoid circular dependency
        from querykit.logging import get_logger
        logger = get_logger(__name__)
        logger.debug(
            message,
            extra={
                "error_code": error_code.value,
                "details": self.details,
                "is_retryable": is_retryable,
            },
        )

    def __str__(self) -> str:
        """String representation of the error."""
        msg = f"[{self.error_code.value}] {self.message}"
        if self.cause:
            msg = f"{msg} (caused by: {type(self.cause).__name__}: {str(self.cause)})"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "is_retryable": self.is_retryable
        }

    @classmethod
    def from_error_code(
        cls,
        error_code: ErrorCode,
        message: str,
        **kwargs
    ) -> "QueryKitError":
        """Create exception from error code.

        Args:
            error_code: Error code
            message: Error message
            **kwargs: Additional arguments for QueryKitError

        Returns:
            QueryKitError instance
        """
        return cls(message=message, error_code=error_code, **kwargs)


# Helper functions for common error scenarios
def configuration_error(
    message: str,
    config_key: Optional[str] = None,
    **kwargs
) -> QueryKitError:
    """Create a configuration error.

    Args:
        message: Error message
        config_key: Configuration key that caused the error
        **kwargs: Additional error details

    Returns:
        QueryKitError with CONFIG_ERROR code
    """
    details = kwargs.get('details', {})
    if config_key:
        details["config_key"] = config_key

    return QueryKitError(
        message=message,
        error_code=ErrorCode.CONFIG_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def validation_error(
    message: str,
    field: Optional[str] = None,
    value: Any = None,
    error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    **kwargs
) -> QueryKitError:
    """Create a validation error.

    Args:
        message: Error message
        field: Mutation or field that failed validation
        value: Invalid value
        error_code: Specific VALIDATION_* code
        **kwargs: Additional error details

    Returns:
        QueryKitError with a VALIDATION_* code
    """
    details = kwargs.get('details', {})
    if field:
        details["field"] = field
    if value is not None:
        details["value"] = str(value)

    return QueryKitError(
        message=message,
        error_code=error_code,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def precondition_error(
    message: str,
    argument: Optional[str] = None,
    value: Any = None,
    **kwargs
) -> QueryKitError:
    """Create a precondition error.

    Args:
        message: Error message
        argument: Argument that violated the precondition
        value: Offending value
        **kwargs: Additional error details

    Returns:
        QueryKitError with PRECONDITION_ERROR code
    """
    details = kwargs.get('details', {})
    if argument:
        details["argument"] = argument
    if value is not None:
        details["value"] = str(value)

    return QueryKitError(
        message=message,
        error_code=ErrorCode.PRECONDITION_ERROR,
        details=details,
        **{k: v for k, v in kwargs.items() if k != 'details'}
    )


def query_execution_error(
    query: str,
    original_error: BaseException,
    **kwargs
) -> QueryKitError:
    """Create a query execution error.

    Args:
        query: SQL statement that failed
        original_error: The underlying exception
        **kwargs: Additional error details

    Returns:
        QueryKitError with QUERY_EXECUTION_ERROR code
    """
    details = kwargs.get('details', {})
    details["query"] = query[:500] + "..." if len(query) > 500 else query

    return QueryKitError(
        message=f"Query execution failed: {str(original_error)}",
        error_code=ErrorCode.QUERY_EXECUTION_ERROR,
        details=details,
        cause=original_error,
        **{k: v for k, v in kwargs.items() if k not in ['details', 'cause']}
    )


def transaction_error(
    message: str,
    original_error: Optional[BaseException] = None,
    error_code: ErrorCode = ErrorCode.TRANSACTION_ERROR,
    **kwargs
) -> QueryKitError:
    """Create a transaction error.

    Args:
        message: Error message
        original_error: The begin/commit/rollback failure
        error_code: Specific TRANSACTION_* code
        **kwargs: Additional error details

    Returns:
        QueryKitError with a TRANSACTION_* code
    """
    details = kwargs.get('details', {})

    return QueryKitError(
        message=message,
        error_code=error_code,
        details=details,
        cause=original_error,
        **{k: v for k, v in kwargs.items() if k not in ['details', 'cause']}
    )
