# strategy_hub/strategy_engine/social_service.py
"""
Social features on top of strategies: favorites, ratings, comments,
templates and copies.
"""
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..db import crud
from ..db.models import StrategyComment, TradingStrategy
from ..utils.error_handler import BusinessRuleError, NotFoundError, PermissionDeniedError
from ..utils.logger import log_structured
from .strategy_models import (
    CommentCreateRequest, RatingRequest, RatingSummary, UseTemplateRequest,
)
from .strategy_service import StrategyService
from .validation import derived_name

COPY_SUFFIX = " (Copy)"
TEMPLATE_SUFFIX = " (From Template)"


class SocialService:
    """Favorites, ratings, comments, templates and copies."""

    def __init__(self, db: Session):
        self.db = db
        self.strategies = StrategyService(db)

    def _get_public(self, strategy_id: str, message: str) -> TradingStrategy:
        strategy = self.strategies.get(strategy_id)
        if not strategy.is_public:
            raise BusinessRuleError(message)
        return strategy

    def _require_user(self, user_id: str) -> None:
        if crud.get_user_by_id(self.db, user_id) is None:
            raise NotFoundError("User")

    # ---------- Favorites ----------

    def toggle_favorite(self, user_id: str, strategy_id: str) -> bool:
        """Add or remove the strategy from the caller's favorites. Returns the new membership."""
        self._get_public(strategy_id, "Only public strategies can be favorited")
        self._require_user(user_id)
        if crud.is_favorite(self.db, user_id, strategy_id):
            crud.remove_favorite(self.db, user_id, strategy_id)
            return False
        crud.add_favorite(self.db, user_id, strategy_id)
        return True

    def is_favorited(self, user_id: str, strategy_id: str) -> bool:
        self._require_user(user_id)
        return crud.is_favorite(self.db, user_id, strategy_id)

    # ---------- Ratings ----------

    def rate(self, user_id: str, data: RatingRequest) -> RatingSummary:
        """One rating per user: a repeat rating overwrites the caller's earlier value."""
        strategy = self._get_public(data.strategyId, "Only public strategies can be rated")
        self._require_user(user_id)
        crud.upsert_rating(self.db, strategy, user_id, data.rating)
        log_structured("rating_saved", {"strategy_id": strategy.id, "user_id": user_id, "rating": data.rating})
        return RatingSummary(
            averageRating=strategy.average_rating,
            totalRatings=len(strategy.ratings),
            userRating=data.rating,
        )

    def rating_summary(self, strategy_id: str, user_id: Optional[str] = None) -> RatingSummary:
        strategy = self.strategies.get(strategy_id)
        user_rating = None
        if user_id:
            user_rating = next((r.rating for r in strategy.ratings if r.user_id == user_id), None)
        return RatingSummary(
            averageRating=strategy.average_rating or 0.0,
            totalRatings=len(strategy.ratings),
            userRating=user_rating,
        )

    # ---------- Comments ----------

    def list_comments(self, strategy_id: str) -> List[StrategyComment]:
        return list(self.strategies.get(strategy_id).comments)

    def add_comment(self, user_id: str, data: CommentCreateRequest) -> List[StrategyComment]:
        strategy = self._get_public(data.strategyId, "Only public strategies can be commented on")
        self._require_user(user_id)
        comment = crud.add_comment(self.db, strategy, user_id, data.text)
        log_structured("comment_added", {"strategy_id": strategy.id, "comment_id": comment.id, "user_id": user_id})
        return list(strategy.comments)

    def delete_comment(self, user_id: str, strategy_id: str, comment_id: str) -> None:
        """The comment's author or the strategy owner may delete it."""
        strategy = self.strategies.get(strategy_id)
        comment = crud.get_comment(self.db, strategy_id, comment_id)
        if comment is None:
            raise NotFoundError("Comment")
        if comment.user_id != user_id and strategy.user_id != user_id:
            raise PermissionDeniedError("Unauthorized to delete this comment")
        crud.delete_comment(self.db, strategy, comment)
        log_structured("comment_deleted", {"strategy_id": strategy_id, "comment_id": comment_id, "user_id": user_id})

    # ---------- Templates ----------

    def list_templates(self) -> List[TradingStrategy]:
        return crud.list_templates(self.db)

    def mark_template(self, user_id: str, strategy_id: str) -> TradingStrategy:
        strategy = self.strategies.get_owned(
            user_id, strategy_id, "You can only create templates from your own strategies"
        )
        strategy = crud.update_trading_strategy(self.db, strategy, is_template=True)
        log_structured("template_marked", {"strategy_id": strategy_id, "user_id": user_id})
        return strategy

    def unmark_template(self, user_id: str, strategy_id: str) -> TradingStrategy:
        strategy = self.strategies.get_owned(
            user_id, strategy_id, "You can only remove template status from your own strategies"
        )
        strategy = crud.update_trading_strategy(self.db, strategy, is_template=False)
        log_structured("template_unmarked", {"strategy_id": strategy_id, "user_id": user_id})
        return strategy

    def use_template(self, user_id: str, data: UseTemplateRequest) -> TradingStrategy:
        """Instantiate a private strategy owned by the caller from a template."""
        template = self.strategies.get(data.templateId, resource="Template")
        if not template.is_template:
            raise BusinessRuleError("This strategy is not a template")
        self._require_user(user_id)
        strategy = self._clone(
            template,
            owner_id=user_id,
            name=data.name or derived_name(template.name, TEMPLATE_SUFFIX),
        )
        log_structured("template_instantiated",
                       {"template_id": template.id, "strategy_id": strategy.id, "user_id": user_id})
        return strategy

    # ---------- Copies ----------

    def copy(self, user_id: str, strategy_id: str) -> Tuple[TradingStrategy, bool]:
        """
        Copy a public strategy into the caller's account.
        Returns (strategy, created); a caller who already copied this
        source gets the existing copy back and the source count is untouched.
        """
        source = self._get_public(strategy_id, "Only public strategies can be copied")
        self._require_user(user_id)
        existing = crud.find_copy(self.db, user_id, source.id)
        if existing is not None:
            return existing, False

        strategy = self._clone(source, owner_id=user_id, name=derived_name(source.name, COPY_SUFFIX))
        crud.increment_copy_count(self.db, source)
        log_structured("strategy_copied", {"source_id": source.id, "strategy_id": strategy.id, "user_id": user_id})
        return strategy, True

    def _clone(self, source: TradingStrategy, owner_id: str, name: str) -> TradingStrategy:
        return crud.create_trading_strategy(
            self.db,
            user_id=owner_id,
            name=name,
            description=source.description,
            parameters=dict(source.parameters or {}),
            risk_level=source.risk_level,
            asset_class=source.asset_class,
            backtest_performance=source.backtest_performance,
            is_public=False,
            is_template=False,
            tags=list(source.tags or []),
            copied_from=source.id,
        )
