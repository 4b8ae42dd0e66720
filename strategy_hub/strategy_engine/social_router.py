# strategy_hub/strategy_engine/social_router.py
"""
Social API router: favorites, ratings, comments, templates and copies.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy.orm import Session

from ..utils.jwt_deps import get_current_user_id_dep, get_current_user_id_optional
from ..db.session import get_db
from .strategy_models import (
    StrategyRef,
    RatingRequest,
    CommentCreateRequest,
    CommentResponse,
    UseTemplateRequest,
    StrategyResponse,
)
from .social_service import SocialService

router = APIRouter(prefix="/strategies", tags=["strategies-social"])


def get_social_service(db: Session = Depends(get_db)) -> SocialService:
    return SocialService(db)


# ---------- Favorites ----------

@router.get("/favorite")
async def get_favorite_status(
    strategyId: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    return {"success": True, "favorited": service.is_favorited(user_id, strategyId)}


@router.post("/favorite")
async def toggle_favorite(
    body: StrategyRef,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    """Toggle the strategy in the caller's favorites (public strategies only)."""
    return {"success": True, "favorited": service.toggle_favorite(user_id, body.strategyId)}


# ---------- Ratings (/rating is the legacy path) ----------

@router.get("/ratings")
@router.get("/rating")
async def get_rating(
    strategyId: str = Query(..., min_length=1),
    user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: SocialService = Depends(get_social_service),
):
    return {"success": True, "data": service.rating_summary(strategyId, user_id)}


@router.post("/ratings")
@router.post("/rating")
async def rate_strategy(
    body: RatingRequest,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    """Add or replace the caller's 1-5 rating and return the new aggregate."""
    return {"success": True, "data": service.rate(user_id, body), "message": "Rating saved"}


# ---------- Comments ----------

@router.get("/comments")
async def list_comments(
    strategyId: str = Query(..., min_length=1),
    service: SocialService = Depends(get_social_service),
):
    comments = service.list_comments(strategyId)
    return {"success": True, "data": [CommentResponse.from_comment(c) for c in comments]}


@router.post("/comments")
async def add_comment(
    body: CommentCreateRequest,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    comments = service.add_comment(user_id, body)
    return {
        "success": True,
        "data": [CommentResponse.from_comment(c) for c in comments],
        "message": "Comment added successfully",
    }


@router.delete("/comments")
async def delete_comment(
    strategyId: str = Query(..., min_length=1),
    commentId: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    """Delete a comment by id (comment author or strategy owner)."""
    service.delete_comment(user_id, strategyId, commentId)
    return {"success": True, "message": "Comment deleted successfully"}


# ---------- Templates ----------

@router.get("/templates")
async def list_templates(service: SocialService = Depends(get_social_service)):
    """All templates, regardless of visibility. No authentication required."""
    return {"success": True, "data": [StrategyResponse.from_strategy(s) for s in service.list_templates()]}


@router.post("/templates")
async def mark_template(
    body: StrategyRef,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    strategy = service.mark_template(user_id, body.strategyId)
    return {"success": True, "data": StrategyResponse.from_strategy(strategy), "message": "Strategy marked as template"}


@router.delete("/templates")
async def unmark_template(
    id: str = Query(..., min_length=1),
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    service.unmark_template(user_id, id)
    return {"success": True, "message": "Template status removed"}


@router.post("/use-template")
async def use_template(
    body: UseTemplateRequest,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    strategy = service.use_template(user_id, body)
    return {"success": True, "data": StrategyResponse.from_strategy(strategy), "message": "Strategy created from template"}


# ---------- Copies ----------

@router.post("/copy")
async def copy_strategy(
    body: StrategyRef,
    user_id: str = Depends(get_current_user_id_dep),
    service: SocialService = Depends(get_social_service),
):
    strategy, created = service.copy(user_id, body.strategyId)
    message = "Strategy copied successfully" if created else "Strategy already copied"
    return {"success": True, "data": StrategyResponse.from_strategy(strategy), "message": message}
