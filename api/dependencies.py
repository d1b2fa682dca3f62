"""FastAPI dependencies for dependency injection."""

from fastapi import HTTPException, status, Request

from api.services.analyses import AnalysisDispatcher
from core.middleware.identity import Actor, IdentityError, get_actor


async def get_current_actor(request: Request) -> Actor:
    """
    Get the calling actor, set by IdentityMiddleware.

    Raises:
        HTTPException: 401 if the request carries no identity
    """
    try:
        return get_actor(request)
    except IdentityError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )


def get_dispatcher(request: Request) -> AnalysisDispatcher:
    """Analysis dispatcher created at application startup."""
    return request.app.state.analysis_dispatcher
