"""
Domain error taxonomy.

Services raise these; the HTTP layer maps them to status codes in
core.middleware.error_handling. Only IntegrationFailure is ever swallowed,
and only at the analysis boundary.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for every error a service operation can surface."""

    code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(DomainError):
    """Referenced post, user, resume, apply or review does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(
            f"{resource} not found: {resource_id}",
            details={"resource": resource, "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id


class AuthorizationError(DomainError):
    """Actor lacks the ownership or participation the operation requires."""

    code = "FORBIDDEN"


class ConflictError(DomainError):
    """Duplicate record, closed post, or a selection-state precondition failed."""

    code = "CONFLICT"


class ValidationError(DomainError):
    """Malformed input such as a self-review or a blank review body."""

    code = "VALIDATION_ERROR"


class IntegrationFailure(DomainError):
    """
    Scoring collaborator or task broker failed.

    Attributes:
        transient: True when a retry may succeed (timeouts, 5xx, broker down)
    """

    code = "INTEGRATION_FAILURE"

    def __init__(
        self,
        message: str,
        transient: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.transient = transient
