# strategy_hub/strategy_engine/__init__.py
"""
Strategy Engine
Strategy lifecycle, social features and draft generation.
"""

from .strategy_router import router
from .social_router import router as social_router

__all__ = ["router", "social_router"]
