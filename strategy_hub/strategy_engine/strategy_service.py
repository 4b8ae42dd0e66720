# strategy_hub/strategy_engine/strategy_service.py
"""
Strategy lifecycle: list, create, update, delete and export.

Every operation receives the caller's user id explicitly. Existence is
checked before ownership, so a missing strategy is always reported as
not-found rather than forbidden.
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..db import crud
from ..db.models import TradingStrategy
from ..utils.error_handler import NotFoundError, PermissionDeniedError
from ..utils.logger import log_structured
from .export import ExportFormat, render_export
from .strategy_models import StrategyCreateRequest, StrategyUpdateRequest


class StrategyService:
    """Service for strategy CRUD and ownership enforcement."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, strategy_id: str, resource: str = "Strategy") -> TradingStrategy:
        strategy = crud.get_trading_strategy(self.db, strategy_id)
        if strategy is None:
            raise NotFoundError(resource)
        return strategy

    def get_owned(self, user_id: str, strategy_id: str,
                  message: str = "Forbidden: Not owner") -> TradingStrategy:
        strategy = self.get(strategy_id)
        if strategy.user_id != user_id:
            raise PermissionDeniedError(message)
        return strategy

    def list_strategies(
        self,
        user_id: Optional[str],
        public_only: bool = False,
        favorites_only: bool = False,
    ) -> List[TradingStrategy]:
        """
        Newest first. Anonymous callers (and `public_only`) see public
        strategies; `favorites_only` returns the caller's favorite set;
        otherwise the caller's own strategies plus every public one.
        """
        if favorites_only and user_id:
            return crud.list_favorite_strategies(self.db, user_id)
        if not public_only and user_id:
            return crud.list_visible_strategies(self.db, user_id)
        return crud.list_public_strategies(self.db)

    def create(self, user_id: str, data: StrategyCreateRequest) -> TradingStrategy:
        strategy = crud.create_trading_strategy(
            self.db,
            user_id=user_id,
            name=data.name,
            description=data.description,
            parameters=data.parameters,
            risk_level=data.riskLevel,
            asset_class=data.assetClass,
            backtest_performance=data.backtestPerformance,
            is_public=data.isPublic,
            tags=data.tags,
        )
        log_structured("strategy_created", {"strategy_id": strategy.id, "user_id": user_id})
        return strategy

    def update(self, user_id: str, data: StrategyUpdateRequest) -> TradingStrategy:
        strategy = self.get_owned(user_id, data.id)
        updated = crud.update_trading_strategy(
            self.db,
            strategy,
            name=data.name,
            description=data.description,
            parameters=data.parameters,
            risk_level=data.riskLevel,
            asset_class=data.assetClass,
            backtest_performance=data.backtestPerformance,
            is_public=data.isPublic,
            tags=data.tags,
        )
        log_structured("strategy_updated", {"strategy_id": strategy.id, "user_id": user_id})
        return updated

    def delete(self, user_id: str, strategy_id: str) -> None:
        strategy = self.get_owned(user_id, strategy_id)
        crud.delete_trading_strategy(self.db, strategy)
        log_structured("strategy_deleted", {"strategy_id": strategy_id, "user_id": user_id})

    def export(self, user_id: str, strategy_id: str, fmt: str = "json") -> Tuple[str, str, str]:
        """Render for download. Returns (body, media type, filename)."""
        strategy = self.get(strategy_id)
        if strategy.user_id != user_id and not strategy.is_public:
            raise PermissionDeniedError("Unauthorized to export this strategy")
        export_format = ExportFormat.parse(fmt)
        result = render_export(strategy, export_format)
        log_structured("strategy_exported",
                       {"strategy_id": strategy_id, "user_id": user_id, "format": export_format.value})
        return result
