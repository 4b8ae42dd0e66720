# strategy_hub/services/jwt_service.py
"""
JWT token service for generating and verifying authentication tokens.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from ..utils.config import get_settings

ALGORITHM = "HS256"


class JWTService:
    """Service for JWT token generation and verification"""

    def __init__(self, secret_key: Optional[str] = None, expire_hours: Optional[int] = None):
        settings = get_settings()
        self.secret_key = secret_key or settings.jwt_secret_key
        self.expire_hours = expire_hours or settings.access_token_expire_hours

    def create_access_token(self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            data: Dictionary containing user data (e.g., {"sub": user_id, "email": email})
            expires_delta: Optional expiration time delta

        Returns:
            Encoded JWT token string
        """
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(hours=self.expire_hours))
        to_encode.update({"exp": expire, "iat": now})
        return jwt.encode(to_encode, self.secret_key, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Returns:
            Decoded token payload if valid, None otherwise
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except JWTError:
            return None

    def get_user_id_from_token(self, token: str) -> Optional[str]:
        """Extract the user ID ("sub" claim) from a JWT token."""
        payload = self.verify_token(token)
        if payload:
            return payload.get("sub")
        return None


# Global instance
jwt_service = JWTService()
