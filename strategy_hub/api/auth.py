# strategy_hub/api/auth.py
"""
Authentication routes: login, e-mail verification and password reset.
"""
from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import SQLAlchemyError

from ..services.account_service import AccountService, RESET_REQUESTED_MESSAGE
from ..strategy_engine.validation import validate_payload
from ..utils.config import get_settings
from ..utils.error_handler import BusinessRuleError
from ..utils.jwt_deps import get_current_user_id_dep
from ..utils.logger import log_error
from .users import get_account_service

router = APIRouter(prefix="/auth", tags=["auth"])


# Request/Response models
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    """Ask for a reset link."""
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    """Consume a reset token."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, description="Password must be at least 6 characters")


class ResetPasswordBody(BaseModel):
    """Either {email} or {token, password}."""
    email: Optional[str] = None
    token: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
async def login(
    body: LoginRequest,
    service: AccountService = Depends(get_account_service),
):
    """Exchange e-mail and password for a bearer token."""
    user, token = service.login(body.email, body.password)
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role.value},
    }


@router.post("/send-verification")
async def send_verification(
    user_id: str = Depends(get_current_user_id_dep),
    service: AccountService = Depends(get_account_service),
):
    verification_url = service.send_verification(user_id)
    response = {"success": True, "message": "Verification email sent"}
    if not get_settings().is_production:
        response["verificationUrl"] = verification_url
    return response


@router.post("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    service: AccountService = Depends(get_account_service),
):
    service.verify_email(body.token)
    return {"success": True, "message": "Email verified successfully"}


@router.get("/verify-email")
async def verify_email_link(
    token: Optional[str] = Query(None),
    service: AccountService = Depends(get_account_service),
):
    """Target of the e-mailed link; always answers with a redirect to the web client."""
    base_url = get_settings().public_base_url
    if not token:
        return RedirectResponse(f"{base_url}/verify-email?error=no_token")
    try:
        service.verify_email(token)
    except BusinessRuleError:
        return RedirectResponse(f"{base_url}/verify-email?error=invalid_token")
    except SQLAlchemyError as e:
        log_error(f"Email verification failed: {type(e).__name__}")
        return RedirectResponse(f"{base_url}/verify-email?error=verification_failed")
    return RedirectResponse(f"{base_url}/login?verified=true")


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordBody,
    service: AccountService = Depends(get_account_service),
):
    """
    Dual mode:
    - {email}: send a reset link. The answer is identical whether or not
      the account exists.
    - {token, password}: set the new password and consume the token.
    """
    if body.email and not body.token:
        request = validate_payload(PasswordResetRequest, body.model_dump(include={"email"}))
        service.request_password_reset(request.email)
        return {"success": True, "message": RESET_REQUESTED_MESSAGE}

    if body.token and body.password:
        confirm = validate_payload(PasswordResetConfirm, body.model_dump(include={"token", "password"}))
        service.reset_password(confirm.token, confirm.password)
        return {"success": True, "message": "Password reset successfully"}

    raise BusinessRuleError("Invalid request")
