# strategy_hub/db/crud.py
from __future__ import annotations
from typing import Dict, Any, List, Optional
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_, select, func as sql_func
from datetime import datetime
import uuid

from .models import (
    User, UserRole,
    TradingStrategy, StrategyComment, StrategyRating,
    RiskLevel, AssetClass,
    user_favorite_strategies,
    utcnow, as_utc,
)

# ---------- Users ----------
def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower().strip()).first()

def create_user(
    db: Session,
    email: str,
    password_hash: str,
    name: Optional[str] = None,
    role: UserRole = UserRole.USER,
    verification_token: Optional[str] = None,
    verification_expires: Optional[datetime] = None,
) -> User:
    """
    Create a new user.
    password_hash should be a bcrypt hash, never plain text.
    """
    user = User(
        id=str(uuid.uuid4()),
        email=email.lower().strip(),
        name=name,
        password_hash=password_hash,
        role=role,
        email_verified=False,
        email_verification_token=verification_token,
        email_verification_expires=verification_expires,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def update_user_name(db: Session, user: User, name: str) -> User:
    user.name = name
    db.commit()
    db.refresh(user)
    return user

# ---------- Verification / reset tokens ----------
def _token_is_live(expires: Optional[datetime]) -> bool:
    expires = as_utc(expires)
    return expires is not None and expires > utcnow()

def set_email_verification_token(db: Session, user: User, token: str, expires: datetime) -> None:
    user.email_verification_token = token
    user.email_verification_expires = expires
    db.commit()

def get_user_by_verification_token(db: Session, token: str) -> Optional[User]:
    """Return the user holding an unexpired verification token."""
    user = db.query(User).filter(User.email_verification_token == token).first()
    if user and _token_is_live(user.email_verification_expires):
        return user
    return None

def mark_email_verified(db: Session, user: User) -> None:
    """Flip the verified flag and clear the token pair in one commit."""
    user.email_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None
    db.commit()

def set_password_reset_token(db: Session, user: User, token: str, expires: datetime) -> None:
    user.password_reset_token = token
    user.password_reset_expires = expires
    db.commit()

def get_user_by_reset_token(db: Session, token: str) -> Optional[User]:
    """Return the user holding an unexpired password-reset token."""
    user = db.query(User).filter(User.password_reset_token == token).first()
    if user and _token_is_live(user.password_reset_expires):
        return user
    return None

def reset_user_password(db: Session, user: User, password_hash: str) -> None:
    """Store the new hash and clear the reset token pair in one commit."""
    user.password_hash = password_hash
    user.password_reset_token = None
    user.password_reset_expires = None
    db.commit()

# ---------- Strategies ----------
def create_trading_strategy(
    db: Session,
    user_id: str,
    name: str,
    description: str,
    parameters: Dict[str, Any],
    risk_level: RiskLevel,
    asset_class: Optional[AssetClass] = None,
    backtest_performance: Optional[str] = None,
    is_public: bool = False,
    is_template: bool = False,
    tags: Optional[List[str]] = None,
    copied_from: Optional[str] = None,
) -> TradingStrategy:
    """Create a new trading strategy owned by `user_id`."""
    strategy = TradingStrategy(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        description=description,
        parameters=parameters,
        risk_level=risk_level,
        asset_class=asset_class,
        backtest_performance=backtest_performance,
        is_public=is_public,
        is_template=is_template,
        tags=list(tags or []),
        copied_from=copied_from,
        copy_count=0,
        average_rating=0.0,
    )
    db.add(strategy)
    db.commit()
    db.refresh(strategy)
    return strategy

def get_trading_strategy(db: Session, strategy_id: str) -> Optional[TradingStrategy]:
    return db.query(TradingStrategy).filter(TradingStrategy.id == strategy_id).first()

def _with_owner(query):
    return query.options(selectinload(TradingStrategy.owner))

def list_visible_strategies(db: Session, user_id: str) -> List[TradingStrategy]:
    """Strategies owned by the user plus every public one, newest first."""
    query = db.query(TradingStrategy).filter(
        or_(TradingStrategy.user_id == user_id, TradingStrategy.is_public == True)  # noqa: E712
    )
    return _with_owner(query).order_by(TradingStrategy.created_at.desc()).all()

def list_public_strategies(db: Session) -> List[TradingStrategy]:
    query = db.query(TradingStrategy).filter(TradingStrategy.is_public == True)  # noqa: E712
    return _with_owner(query).order_by(TradingStrategy.created_at.desc()).all()

def list_favorite_strategies(db: Session, user_id: str) -> List[TradingStrategy]:
    query = (
        db.query(TradingStrategy)
        .join(user_favorite_strategies, user_favorite_strategies.c.strategy_id == TradingStrategy.id)
        .filter(user_favorite_strategies.c.user_id == user_id)
    )
    return _with_owner(query).order_by(TradingStrategy.created_at.desc()).all()

def list_templates(db: Session) -> List[TradingStrategy]:
    """Every strategy flagged as a template, regardless of visibility."""
    query = db.query(TradingStrategy).filter(TradingStrategy.is_template == True)  # noqa: E712
    return _with_owner(query).order_by(TradingStrategy.created_at.desc()).all()

def find_copy(db: Session, user_id: str, source_id: str) -> Optional[TradingStrategy]:
    return db.query(TradingStrategy).filter(
        TradingStrategy.user_id == user_id,
        TradingStrategy.copied_from == source_id,
    ).first()

def update_trading_strategy(
    db: Session,
    strategy: TradingStrategy,
    name: Optional[str] = None,
    description: Optional[str] = None,
    parameters: Optional[Dict[str, Any]] = None,
    risk_level: Optional[RiskLevel] = None,
    asset_class: Optional[AssetClass] = None,
    backtest_performance: Optional[str] = None,
    is_public: Optional[bool] = None,
    is_template: Optional[bool] = None,
    tags: Optional[List[str]] = None,
) -> TradingStrategy:
    """Merge the provided fields onto the strategy."""
    if name is not None:
        strategy.name = name
    if description is not None:
        strategy.description = description
    if parameters is not None:
        strategy.parameters = parameters
    if risk_level is not None:
        strategy.risk_level = risk_level
    if asset_class is not None:
        strategy.asset_class = asset_class
    if backtest_performance is not None:
        strategy.backtest_performance = backtest_performance
    if is_public is not None:
        strategy.is_public = is_public
    if is_template is not None:
        strategy.is_template = is_template
    if tags is not None:
        strategy.tags = list(tags)

    db.commit()
    db.refresh(strategy)
    return strategy

def increment_copy_count(db: Session, strategy: TradingStrategy) -> None:
    strategy.copy_count = (strategy.copy_count or 0) + 1
    db.commit()

def delete_trading_strategy(db: Session, strategy: TradingStrategy) -> None:
    db.delete(strategy)
    db.commit()

def count_strategies(db: Session) -> int:
    return db.scalar(select(sql_func.count()).select_from(TradingStrategy)) or 0

# ---------- Favorites ----------
def is_favorite(db: Session, user_id: str, strategy_id: str) -> bool:
    row = db.execute(
        select(user_favorite_strategies.c.user_id).where(
            user_favorite_strategies.c.user_id == user_id,
            user_favorite_strategies.c.strategy_id == strategy_id,
        )
    ).first()
    return row is not None

def add_favorite(db: Session, user_id: str, strategy_id: str) -> None:
    db.execute(user_favorite_strategies.insert().values(user_id=user_id, strategy_id=strategy_id, created_at=utcnow()))
    db.commit()

def remove_favorite(db: Session, user_id: str, strategy_id: str) -> None:
    db.execute(
        user_favorite_strategies.delete().where(
            user_favorite_strategies.c.user_id == user_id,
            user_favorite_strategies.c.strategy_id == strategy_id,
        )
    )
    db.commit()

# ---------- Ratings ----------
def upsert_rating(db: Session, strategy: TradingStrategy, user_id: str, value: int) -> StrategyRating:
    """
    Overwrite the caller's rating in place or append a new one, then
    recompute the average from the full set in the same commit.
    """
    existing = next((r for r in strategy.ratings if r.user_id == user_id), None)
    if existing is not None:
        existing.rating = value
        existing.created_at = utcnow()
        rating = existing
    else:
        rating = StrategyRating(id=str(uuid.uuid4()), user_id=user_id, rating=value, created_at=utcnow())
        strategy.ratings.append(rating)

    values = [r.rating for r in strategy.ratings]
    strategy.average_rating = sum(values) / len(values) if values else 0.0
    db.commit()
    db.refresh(strategy)
    return rating

# ---------- Comments ----------
def add_comment(db: Session, strategy: TradingStrategy, user_id: str, text: str) -> StrategyComment:
    comment = StrategyComment(id=str(uuid.uuid4()), user_id=user_id, text=text, created_at=utcnow())
    strategy.comments.append(comment)
    db.commit()
    db.refresh(strategy)
    return comment

def get_comment(db: Session, strategy_id: str, comment_id: str) -> Optional[StrategyComment]:
    return db.query(StrategyComment).filter(
        StrategyComment.id == comment_id,
        StrategyComment.strategy_id == strategy_id,
    ).first()

def delete_comment(db: Session, strategy: TradingStrategy, comment: StrategyComment) -> None:
    strategy.comments.remove(comment)
    db.commit()
    db.refresh(strategy)
