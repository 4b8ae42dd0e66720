# strategy_hub/services/account_service.py
"""
Account flows: registration, login, e-mail verification, password reset
and profile updates.

One-time tokens are stored with an expiry and cleared in the same commit
that consumes them, so a token can never be replayed.
"""
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..db import crud
from ..db.models import User
from ..utils.auth import (
    EMAIL_VERIFICATION_TTL, PASSWORD_RESET_TTL,
    generate_token, hash_password, token_expiry, verify_password,
)
from ..utils.error_handler import (
    AuthenticationRequiredError, BusinessRuleError, NotFoundError,
)
from ..utils.logger import log_structured
from .email_service import EmailService
from .jwt_service import JWTService

RESET_REQUESTED_MESSAGE = "If the email exists, a reset link has been sent"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class AccountService:
    """Service for user account operations."""

    def __init__(self, db: Session, email_service: EmailService, jwt_service: JWTService):
        self.db = db
        self.email_service = email_service
        self.jwt_service = jwt_service

    def _get_user(self, user_id: str) -> User:
        user = crud.get_user_by_id(self.db, user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    def register(self, name: str, email: str, password: str) -> Tuple[User, str]:
        """
        Create an unverified account and send the verification link.
        Returns (user, verification URL).
        """
        if crud.get_user_by_email(self.db, email):
            raise BusinessRuleError("User already exists")

        token = generate_token()
        user = crud.create_user(
            self.db,
            email=email,
            password_hash=hash_password(password),
            name=name,
            verification_token=token,
            verification_expires=token_expiry(EMAIL_VERIFICATION_TTL),
        )
        self.email_service.send_verification_email(user.email, token)
        log_structured("user_registered", {"user_id": user.id})
        return user, self.email_service.verification_url(token)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        """Returns (user, access token). Unknown e-mail and wrong password fail alike."""
        user = crud.get_user_by_email(self.db, email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationRequiredError(INVALID_CREDENTIALS_MESSAGE)
        token = self.jwt_service.create_access_token({"sub": user.id, "email": user.email})
        return user, token

    def send_verification(self, user_id: str) -> str:
        """Issue a fresh 24h verification token. Returns the verification URL."""
        user = self._get_user(user_id)
        if user.email_verified:
            raise BusinessRuleError("Email already verified")
        token = generate_token()
        crud.set_email_verification_token(self.db, user, token, token_expiry(EMAIL_VERIFICATION_TTL))
        self.email_service.send_verification_email(user.email, token)
        return self.email_service.verification_url(token)

    def verify_email(self, token: str) -> User:
        user = crud.get_user_by_verification_token(self.db, token)
        if user is None:
            raise BusinessRuleError("Invalid or expired verification token")
        crud.mark_email_verified(self.db, user)
        log_structured("email_verified", {"user_id": user.id})
        return user

    def request_password_reset(self, email: str) -> None:
        """Never reveals whether the account exists."""
        user = crud.get_user_by_email(self.db, email)
        if user is None:
            return
        token = generate_token()
        crud.set_password_reset_token(self.db, user, token, token_expiry(PASSWORD_RESET_TTL))
        self.email_service.send_password_reset_email(user.email, token)
        log_structured("password_reset_requested", {"user_id": user.id})

    def reset_password(self, token: str, password: str) -> None:
        user = crud.get_user_by_reset_token(self.db, token)
        if user is None:
            raise BusinessRuleError("Invalid or expired reset token")
        crud.reset_user_password(self.db, user, hash_password(password))
        log_structured("password_reset_completed", {"user_id": user.id})

    def get_profile(self, user_id: str) -> User:
        return self._get_user(user_id)

    def update_profile(self, user_id: str, name: Optional[str]) -> User:
        user = self._get_user(user_id)
        if name is not None:
            user = crud.update_user_name(self.db, user, name)
        return user
