"""
Middleware Package

Provides FastAPI error handling and the service exception hierarchy.
"""

from neurolex.middleware.error_handling import (
    ConfigurationError,
    ErrorHandlingMiddleware,
    LLMError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
    setup_error_handling,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "setup_error_handling",
    "ServiceError",
    "LLMError",
    "ConfigurationError",
    "StorageError",
    "ValidationError",
    "NotFoundError",
]
