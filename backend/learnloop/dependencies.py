"""
FastAPI Dependencies

Common dependencies for identifying the acting user.

Authentication itself happens in front of this service; requests carry the
authenticated user's id in the X-User-ID header.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from learnloop.middleware.rate_limit import USER_ID_HEADER

# User id header scheme
user_id_header = APIKeyHeader(name=USER_ID_HEADER, auto_error=False)


async def get_current_user_id(
    user_id: str | None = Depends(user_id_header),
) -> str:
    """
    Resolve the acting user from the X-User-ID header.

    Returns:
        str: The user id, stripped of surrounding whitespace

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing user id. Provide {USER_ID_HEADER} header.",
            headers={"WWW-Authenticate": "ApiKey"},
        )
    return user_id.strip()


# Dependency that can be used in routers
CurrentUserId = Depends(get_current_user_id)
