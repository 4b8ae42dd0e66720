# strategy_hub/api/health.py
from __future__ import annotations
from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..db import crud
from ..utils.error_handler import UpstreamServiceError
from ..utils.logger import log_error

health_router = APIRouter()

@health_router.get("/health")
def health(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Database reachability plus the number of stored strategies."""
    try:
        db.execute(text("SELECT 1"))
        count = crud.count_strategies(db)
    except SQLAlchemyError as e:
        log_error(f"Health check failed: {type(e).__name__}")
        raise UpstreamServiceError("Database connection error")

    return {
        "success": True,
        "message": "Database connected successfully!",
        "strategiesCount": count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
