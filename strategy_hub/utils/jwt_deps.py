# strategy_hub/utils/jwt_deps.py
"""
JWT Dependencies for FastAPI routes.
The resolved user id is handed to services as an explicit argument.
"""
from fastapi import Request
from typing import Optional

from ..middleware.jwt_auth import get_current_user_id
from .error_handler import AuthenticationRequiredError


async def get_current_user_id_dep(request: Request) -> str:
    """
    FastAPI dependency to get current user ID from JWT token.

    Use this in route handlers:
        @router.post("/strategies")
        async def create(user_id: str = Depends(get_current_user_id_dep)):
            ...

    Raises:
        AuthenticationRequiredError: 401 if JWT token is missing or invalid
    """
    user_id = get_current_user_id(request)
    if not user_id:
        raise AuthenticationRequiredError()
    return user_id


async def get_current_user_id_optional(request: Request) -> Optional[str]:
    """
    FastAPI dependency to get current user ID from JWT token (optional).

    Use this for endpoints that work with or without authentication.
    """
    return get_current_user_id(request)
