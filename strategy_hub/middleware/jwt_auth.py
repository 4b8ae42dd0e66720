# strategy_hub/middleware/jwt_auth.py
"""
JWT Authentication Middleware.
Resolves the caller identity from the Authorization header once per request.
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest
from typing import Optional

from ..services.jwt_service import jwt_service


def get_current_user_id(request: Request) -> Optional[str]:
    """
    Get current user ID from a "Bearer <token>" Authorization header.
    Returns None for a missing, malformed, expired or forged token.
    """
    cached = getattr(request.state, "user_id", None)
    if cached:
        return cached

    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None

    return jwt_service.get_user_id_from_token(authorization[7:])


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract and validate JWT tokens.
    Adds user_id to request.state for easy access.
    """

    async def dispatch(self, request: StarletteRequest, call_next):
        # Skip JWT extraction for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        request.state.user_id = get_current_user_id(request)
        return await call_next(request)
