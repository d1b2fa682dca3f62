"""
Identity middleware.

Credentials are verified upstream by the gateway, which forwards the caller
as two trusted headers:

- ``X-Actor-Id``: numeric user id
- ``X-Actor-Role``: one of UserType (defaults to candidate)

This middleware turns them into an Actor on the request scope. Requests to
protected paths without a usable identity are rejected with 401.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from database.models.users import UserType

logger = logging.getLogger(__name__)

ACTOR_ID_HEADER = "x-actor-id"
ACTOR_ROLE_HEADER = "x-actor-role"

PUBLIC_ENDPOINTS = [
    "/",
    "/health",
    "/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
]


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""

    id: int
    role: UserType = UserType.CANDIDATE


class IdentityError(Exception):
    """Raised when identity headers are missing or malformed."""
    pass


def parse_actor(headers) -> Actor:
    """
    Build an Actor from request headers.

    Raises:
        IdentityError: If the id header is absent or either header is invalid
    """
    raw_id = headers.get(ACTOR_ID_HEADER)
    if not raw_id:
        raise IdentityError("No actor identity provided")

    try:
        actor_id = int(raw_id)
    except ValueError:
        raise IdentityError(f"Invalid actor id: {raw_id!r}")
    if actor_id <= 0:
        raise IdentityError(f"Invalid actor id: {actor_id}")

    raw_role = headers.get(ACTOR_ROLE_HEADER)
    if not raw_role:
        return Actor(id=actor_id)
    try:
        role = UserType(raw_role.lower())
    except ValueError:
        raise IdentityError(f"Unknown actor role: {raw_role!r}")
    return Actor(id=actor_id, role=role)


class IdentityMiddleware:
    """Injects the calling Actor into the ASGI scope."""

    def __init__(self, app: Callable, public_endpoints: Optional[list[str]] = None):
        """
        Args:
            app: ASGI application
            public_endpoints: Paths served without identity
        """
        self.app = app
        self.public_endpoints = public_endpoints or PUBLIC_ENDPOINTS

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        if self._is_public_endpoint(request.url.path):
            await self.app(scope, receive, send)
            return

        try:
            actor = parse_actor(request.headers)
        except IdentityError as e:
            logger.warning(
                f"Unauthenticated request: {request.method} {request.url.path} - {e}"
            )
            response = JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={
                    "error": {
                        "code": "UNAUTHENTICATED",
                        "message": "Authentication required.",
                        "path": request.url.path,
                        "method": request.method,
                    }
                },
            )
            await response(scope, receive, send)
            return

        scope["actor"] = actor
        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        if path in self.public_endpoints:
            return True
        return any(path.startswith(prefix) for prefix in ("/docs", "/redoc"))


def get_actor(request: Request) -> Actor:
    """
    Get the calling actor from the request scope.

    Raises:
        IdentityError: If the middleware did not attach an actor
    """
    actor = request.scope.get("actor")
    if actor is None:
        raise IdentityError("Actor not authenticated")
    return actor
