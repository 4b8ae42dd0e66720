# strategy_hub/strategy_engine/strategy_router.py
"""
Strategy API router.
Handles strategy CRUD, export and AI-assisted draft generation.
"""
from fastapi import APIRouter, Depends, Query, Request, Response, status
from typing import Optional
from sqlalchemy.orm import Session

from ..utils.jwt_deps import get_current_user_id_dep, get_current_user_id_optional
from ..middleware.rate_limiter import throttle_strategy_creation
from ..db.session import get_db
from .strategy_models import (
    StrategyCreateRequest,
    StrategyUpdateRequest,
    StrategyResponse,
    GenerateStrategyRequest,
)
from .strategy_service import StrategyService
from .generation import StrategyGenerator

router = APIRouter(prefix="/strategies", tags=["strategies"])


def get_strategy_service(db: Session = Depends(get_db)) -> StrategyService:
    return StrategyService(db)


def get_strategy_generator(request: Request) -> StrategyGenerator:
    """The app-wide generator; fails fast when no API key is configured."""
    generator: StrategyGenerator = request.app.state.generator
    generator.client.ensure_configured()
    return generator


@router.get("")
async def list_strategies(
    public: bool = Query(False, description="Only public strategies"),
    favorites: bool = Query(False, description="Only the caller's favorites"),
    user_id: Optional[str] = Depends(get_current_user_id_optional),
    service: StrategyService = Depends(get_strategy_service),
):
    """
    List strategies, newest first.

    Authenticated callers get their own strategies plus all public ones
    (default), only public ones (`public=true`) or their favorites
    (`favorites=true`). Anonymous callers always get public strategies.
    """
    strategies = service.list_strategies(user_id, public_only=public, favorites_only=favorites)
    return {"success": True, "data": [StrategyResponse.from_strategy(s) for s in strategies]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_strategy(
    strategy_data: StrategyCreateRequest,
    user_id: str = Depends(throttle_strategy_creation),
    service: StrategyService = Depends(get_strategy_service),
):
    """Create a new strategy owned by the caller (rate limited)."""
    strategy = service.create(user_id, strategy_data)
    return {"success": True, "data": StrategyResponse.from_strategy(strategy)}


@router.put("")
async def update_strategy(
    strategy_data: StrategyUpdateRequest,
    user_id: str = Depends(get_current_user_id_dep),
    service: StrategyService = Depends(get_strategy_service),
):
    """Partially update a strategy (owner only)."""
    strategy = service.update(user_id, strategy_data)
    return {"success": True, "data": StrategyResponse.from_strategy(strategy)}


@router.delete("")
async def delete_strategy(
    id: str = Query(..., min_length=1, description="Strategy ID to delete"),
    user_id: str = Depends(get_current_user_id_dep),
    service: StrategyService = Depends(get_strategy_service),
):
    """Delete a strategy (owner only)."""
    service.delete(user_id, id)
    return {"success": True, "message": "Strategy deleted"}


@router.get("/export")
async def export_strategy(
    id: str = Query(..., min_length=1),
    format: str = Query("json", description="json or csv"),
    user_id: str = Depends(get_current_user_id_dep),
    service: StrategyService = Depends(get_strategy_service),
):
    """Download a strategy the caller owns, or any public one."""
    body, media_type, filename = service.export(user_id, id, format)
    return Response(
        content=body,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/generate")
def generate_strategy(
    request_data: GenerateStrategyRequest,
    user_id: str = Depends(get_current_user_id_dep),
    generator: StrategyGenerator = Depends(get_strategy_generator),
):
    """
    Generate an unsaved strategy draft from a prompt.
    The client persists it by posting the draft to the create endpoint.
    """
    draft = generator.generate(user_id, request_data)
    return {"success": True, "data": draft}
