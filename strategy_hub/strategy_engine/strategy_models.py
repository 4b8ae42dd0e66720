# strategy_hub/strategy_engine/strategy_models.py
"""
Pydantic models for Strategy API requests and responses.
Field names are camelCase to match the JSON the web client sends.
"""
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from typing import Annotated, Optional, Dict, Any, List
from datetime import datetime

from ..db.models import (
    RiskLevel, AssetClass,
    TradingStrategy, StrategyComment, StrategyRating, User,
    as_utc,
)
from .validation import has_non_finite

StrategyName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)]
StrategyDescription = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=2000)]
CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True)]
ObjectId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _require_parameters(value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if value is not None and len(value) == 0:
        raise ValueError("Parameters cannot be empty")
    if value is not None and has_non_finite(value):
        raise ValueError("Parameters must not contain NaN or Infinity")
    return value


class StrategyCreateRequest(BaseModel):
    """Request model for creating a new strategy."""
    name: StrategyName
    description: StrategyDescription
    parameters: Dict[str, Any] = Field(..., description="Open mapping, e.g. {'entry': 'RSI<30', 'timeframe': '1h'}")
    riskLevel: RiskLevel
    assetClass: Optional[AssetClass] = None
    backtestPerformance: Optional[str] = None
    isPublic: bool = False
    tags: List[Tag] = Field(default_factory=list)

    @field_validator("parameters")
    @classmethod
    def parameters_not_empty(cls, value):
        return _require_parameters(value)


class StrategyUpdateRequest(BaseModel):
    """Partial update; `_id` names the target strategy."""
    model_config = ConfigDict(populate_by_name=True)

    id: ObjectId = Field(..., alias="_id")
    name: Optional[StrategyName] = None
    description: Optional[StrategyDescription] = None
    parameters: Optional[Dict[str, Any]] = None
    riskLevel: Optional[RiskLevel] = None
    assetClass: Optional[AssetClass] = None
    backtestPerformance: Optional[str] = None
    isPublic: Optional[bool] = None
    tags: Optional[List[Tag]] = None

    @field_validator("parameters")
    @classmethod
    def parameters_not_empty(cls, value):
        return _require_parameters(value)


class StrategyRef(BaseModel):
    """Body naming a single strategy (favorite, copy, template marking)."""
    strategyId: ObjectId


class RatingRequest(BaseModel):
    strategyId: ObjectId
    rating: int = Field(..., ge=1, le=5)


class CommentCreateRequest(BaseModel):
    strategyId: ObjectId
    text: CommentText


class UseTemplateRequest(BaseModel):
    templateId: ObjectId
    name: Optional[StrategyName] = None


class GenerateStrategyRequest(BaseModel):
    prompt: Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=500)]
    assetClass: Optional[AssetClass] = None
    riskLevel: Optional[RiskLevel] = None


# ---------- Responses ----------

class UserSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, name=user.name, email=user.email)


class CommentResponse(BaseModel):
    id: str
    user: UserSummary
    text: str
    createdAt: datetime

    @classmethod
    def from_comment(cls, comment: StrategyComment) -> "CommentResponse":
        return cls(
            id=comment.id,
            user=UserSummary.from_user(comment.author),
            text=comment.text,
            createdAt=as_utc(comment.created_at),
        )


class RatingResponse(BaseModel):
    user: str
    rating: int
    createdAt: datetime

    @classmethod
    def from_rating(cls, rating: StrategyRating) -> "RatingResponse":
        return cls(user=rating.user_id, rating=rating.rating, createdAt=as_utc(rating.created_at))


class RatingSummary(BaseModel):
    averageRating: float
    totalRatings: int
    userRating: Optional[int] = None


class StrategyResponse(BaseModel):
    """Response model for strategy data."""
    id: str
    name: str
    description: str
    parameters: Dict[str, Any]
    riskLevel: RiskLevel
    assetClass: Optional[AssetClass] = None
    backtestPerformance: Optional[str] = None
    createdBy: UserSummary
    isPublic: bool
    isTemplate: bool
    tags: List[str]
    copiedFrom: Optional[str] = None
    copyCount: int
    averageRating: float
    totalRatings: int
    ratings: List[RatingResponse]
    comments: List[CommentResponse]
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_strategy(cls, strategy: TradingStrategy) -> "StrategyResponse":
        return cls(
            id=strategy.id,
            name=strategy.name,
            description=strategy.description,
            parameters=strategy.parameters or {},
            riskLevel=strategy.risk_level,
            assetClass=strategy.asset_class,
            backtestPerformance=strategy.backtest_performance,
            createdBy=UserSummary.from_user(strategy.owner),
            isPublic=strategy.is_public,
            isTemplate=strategy.is_template,
            tags=list(strategy.tags or []),
            copiedFrom=strategy.copied_from,
            copyCount=strategy.copy_count or 0,
            averageRating=strategy.average_rating or 0.0,
            totalRatings=len(strategy.ratings),
            ratings=[RatingResponse.from_rating(r) for r in strategy.ratings],
            comments=[CommentResponse.from_comment(c) for c in strategy.comments],
            createdAt=as_utc(strategy.created_at),
            updatedAt=as_utc(strategy.updated_at),
        )


class StrategyDraft(BaseModel):
    """Generated, unsaved strategy. Persist it through the create endpoint."""
    name: str
    description: str
    parameters: Dict[str, Any]
    riskLevel: RiskLevel
    assetClass: AssetClass
    backtestPerformance: Optional[str] = None
    tags: List[str]
