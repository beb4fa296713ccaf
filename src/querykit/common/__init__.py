"""Common exceptions for querykit.

The exception system uses error codes for categorization rather than
numerous specific exception classes. All exceptions are ``QueryKitError``
instances carrying structured error information.
"""

from querykit.common.exceptions import (
    QueryKitError,
    ErrorCode,
    # Helper functions
    configuration_error,
    validation_error,
    precondition_error,
    query_execution_error,
    transaction_error,
)

__all__ = [
    # Base Exception and Error Codes
    "QueryKitError",
    "ErrorCode",
    # Helper functions
    "configuration_error",
    "validation_error",
    "precondition_error",
    "query_execution_error",
    "transaction_error",
]
