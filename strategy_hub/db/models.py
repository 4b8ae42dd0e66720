# strategy_hub/db/models.py
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, JSON, DateTime, Text, ForeignKey, Boolean,
    Table, UniqueConstraint, Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from enum import Enum
from .session import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


# Enums
class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"

class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    VERY_HIGH = "Very High"

class AssetClass(str, Enum):
    STOCKS = "Stocks"
    CRYPTO = "Crypto"
    FOREX = "Forex"
    FUTURES = "Futures"
    OPTIONS = "Options"


# Per-user favorite set; the composite key keeps each pair unique
user_favorite_strategies = Table(
    "user_favorite_strategies",
    Base.metadata,
    Column("user_id", String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("strategy_id", String, ForeignKey("trading_strategies.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), default=utcnow),
)


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)  # UUID as string
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)  # stored lower-cased
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole), default=UserRole.USER)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    # Token/expiry pairs are always written and cleared together
    email_verification_token: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    email_verification_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    password_reset_token: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    strategies: Mapped[list["TradingStrategy"]] = relationship(
        "TradingStrategy", back_populates="owner", cascade="all, delete-orphan", foreign_keys="TradingStrategy.user_id"
    )
    favorite_strategies: Mapped[list["TradingStrategy"]] = relationship(
        "TradingStrategy", secondary=user_favorite_strategies, back_populates="favorited_by"
    )


class TradingStrategy(Base):
    """
    A user-authored trading strategy plus its social data.

    Comments and ratings are owned child rows: they live and die with the
    strategy. `average_rating` is derived from `ratings` and is recomputed
    after every rating write. `copy_count` is only ever incremented on the
    source of a copy.
    """
    __tablename__ = "trading_strategies"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)  # UUID as string
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)  # owner, immutable
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[str] = mapped_column(Text)
    parameters: Mapped[dict] = mapped_column(JSON)  # entry/exit/timeframe/... (open mapping)
    risk_level: Mapped[RiskLevel] = mapped_column(SQLEnum(RiskLevel))
    asset_class: Mapped[AssetClass | None] = mapped_column(SQLEnum(AssetClass), nullable=True)
    backtest_performance: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    is_template: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    copied_from: Mapped[str | None] = mapped_column(
        String, ForeignKey("trading_strategies.id", ondelete="SET NULL"), nullable=True, index=True
    )
    copy_count: Mapped[int] = mapped_column(Integer, default=0)
    average_rating: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="strategies", foreign_keys=[user_id])
    comments: Mapped[list["StrategyComment"]] = relationship(
        "StrategyComment", back_populates="strategy", cascade="all, delete-orphan",
        order_by="StrategyComment.created_at",
    )
    ratings: Mapped[list["StrategyRating"]] = relationship(
        "StrategyRating", back_populates="strategy", cascade="all, delete-orphan",
        order_by="StrategyRating.created_at",
    )
    favorited_by: Mapped[list["User"]] = relationship(
        "User", secondary=user_favorite_strategies, back_populates="favorite_strategies"
    )


class StrategyComment(Base):
    __tablename__ = "strategy_comments"
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)  # stable id assigned on append
    strategy_id: Mapped[str] = mapped_column(String, ForeignKey("trading_strategies.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    strategy: Mapped["TradingStrategy"] = relationship("TradingStrategy", back_populates="comments")
    author: Mapped["User"] = relationship("User")


class StrategyRating(Base):
    __tablename__ = "strategy_ratings"
    __table_args__ = (UniqueConstraint("strategy_id", "user_id", name="uq_strategy_rating_user"),)
    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    strategy_id: Mapped[str] = mapped_column(String, ForeignKey("trading_strategies.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id", ondelete="CASCADE"), index=True)
    rating: Mapped[int] = mapped_column(Integer)  # 1-5
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)  # overwritten on re-rate

    strategy: Mapped["TradingStrategy"] = relationship("TradingStrategy", back_populates="ratings")
    user: Mapped["User"] = relationship("User")
