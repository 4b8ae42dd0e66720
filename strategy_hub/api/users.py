# strategy_hub/api/users.py
from __future__ import annotations
from fastapi import APIRouter, Depends, status
from typing import Annotated, Optional
from pydantic import BaseModel, EmailStr, Field, StringConstraints
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..services.account_service import AccountService
from ..services.email_service import email_service
from ..services.jwt_service import jwt_service
from ..utils.config import get_settings
from ..utils.jwt_deps import get_current_user_id_dep

router = APIRouter(tags=["users"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    return AccountService(db, email_service, jwt_service)


# Pydantic models for request/response
class RegisterRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password must be at least 6 characters")

class ProfileUpdateRequest(BaseModel):
    name: Optional[Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]] = None

class ProfileResponse(BaseModel):
    name: Optional[str]
    email: str
    role: str


@router.post("/register")
async def register(
    body: RegisterRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Create an account and send the e-mail verification link.
    Outside production the link is also returned as `verificationUrl`.
    """
    user, verification_url = service.register(body.name, body.email, body.password)
    response = {"success": True, "user": {"name": user.name, "email": user.email}}
    if not get_settings().is_production:
        response["verificationUrl"] = verification_url
    return response


@router.get("/profile")
async def get_profile(
    user_id: str = Depends(get_current_user_id_dep),
    service: AccountService = Depends(get_account_service),
):
    user = service.get_profile(user_id)
    return {"success": True, "data": ProfileResponse(name=user.name, email=user.email, role=user.role.value)}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id_dep),
    service: AccountService = Depends(get_account_service),
):
    """Update the caller's display name."""
    user = service.update_profile(user_id, body.name)
    return {"success": True, "data": ProfileResponse(name=user.name, email=user.email, role=user.role.value)}
