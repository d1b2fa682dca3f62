"""
Core middleware package.

- Error handling with domain error mapping and sensitive data sanitization
- Structured request logging with request ids
- Identity from trusted gateway headers
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
    build_error_response,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
)

from core.middleware.identity import (
    Actor,
    IdentityMiddleware,
    IdentityError,
    get_actor,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    "build_error_response",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    # Identity
    "Actor",
    "IdentityMiddleware",
    "IdentityError",
    "get_actor",
]
