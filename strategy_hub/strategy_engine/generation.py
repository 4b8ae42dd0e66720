# strategy_hub/strategy_engine/generation.py
"""
Prompt-to-draft strategy generation.

The upstream reply is expected to be a JSON object. Markdown fences are
stripped before parsing; an unparseable reply becomes a fallback draft built
from the raw text. Either way every field is clamped to the same bounds as
strategy creation. Drafts are never persisted here.
"""
import json
import re
from datetime import date
from typing import Any, Dict, Optional

from ..db.models import AssetClass, RiskLevel
from ..services.llm_client import TextGenerationClient
from ..utils.logger import log_structured
from .strategy_models import GenerateStrategyRequest, StrategyDraft
from .validation import (
    DESCRIPTION_MAX_LENGTH, NAME_MAX_LENGTH,
    clamp_text, clean_parameters, clean_tags, coerce_enum,
)

SYSTEM_PROMPT = """You are an expert quantitative finance strategist. Generate a detailed trading strategy based on user requirements.
Return a JSON object with the following structure:
{
  "name": "Strategy name (max 100 chars)",
  "description": "Detailed description (200-2000 chars) explaining the strategy, entry/exit conditions, and rationale",
  "parameters": {
    "entry": "Entry condition description",
    "exit": "Exit condition description",
    "timeframe": "Trading timeframe",
    "indicators": "Key indicators used"
  },
  "riskLevel": "Low" | "Medium" | "High" | "Very High",
  "assetClass": "Stocks" | "Crypto" | "Forex" | "Futures" | "Options",
  "backtestPerformance": "Expected performance metrics (e.g., 'Win Rate: 65%, Sharpe Ratio: 1.5')",
  "tags": ["tag1", "tag2", "tag3"]
}
"""

FENCE_RE = re.compile(r"```(?:json)?\n?")
DEFAULT_RISK = RiskLevel.MEDIUM
DEFAULT_ASSET = AssetClass.STOCKS


def build_system_prompt(asset_class: Optional[AssetClass], risk_level: Optional[RiskLevel]) -> str:
    lines = [SYSTEM_PROMPT]
    if asset_class:
        lines.append(f"Focus on {asset_class.value} markets.")
    if risk_level:
        lines.append(f"Target risk level: {risk_level.value}.")
    lines.append("Only return valid JSON, no markdown formatting.")
    return "\n".join(lines)


def strip_fences(text: str) -> str:
    return FENCE_RE.sub("", text).strip()


def parse_reply(text: str) -> Optional[Dict[str, Any]]:
    """The reply as a JSON object, or None when it is not one."""
    try:
        data = json.loads(strip_fences(text))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def fallback_draft(text: str, asset_class: Optional[AssetClass],
                   risk_level: Optional[RiskLevel], today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    return {
        "name": f"AI Generated Strategy - {today.isoformat()}",
        "description": text[:DESCRIPTION_MAX_LENGTH],
        "parameters": {"entry": "AI generated", "exit": "AI generated", "timeframe": "1h"},
        "riskLevel": (risk_level or DEFAULT_RISK).value,
        "assetClass": (asset_class or DEFAULT_ASSET).value,
        "backtestPerformance": "To be backtested",
        "tags": ["AI Generated"],
    }


def clamp_draft(data: Dict[str, Any], asset_class: Optional[AssetClass],
                risk_level: Optional[RiskLevel]) -> StrategyDraft:
    """Re-apply creation bounds; unknown enum values fall back to the hint or default."""
    return StrategyDraft(
        name=clamp_text(data.get("name"), NAME_MAX_LENGTH, default="AI Generated Strategy"),
        description=clamp_text(data.get("description"), DESCRIPTION_MAX_LENGTH),
        parameters=clean_parameters(data.get("parameters")),
        riskLevel=coerce_enum(RiskLevel, data.get("riskLevel"), risk_level or DEFAULT_RISK),
        assetClass=coerce_enum(AssetClass, data.get("assetClass"), asset_class or DEFAULT_ASSET),
        backtestPerformance=clamp_text(data.get("backtestPerformance"), DESCRIPTION_MAX_LENGTH),
        tags=clean_tags(data.get("tags")),
    )


class StrategyGenerator:
    """Turns a free-text prompt into an unsaved StrategyDraft."""

    def __init__(self, client: TextGenerationClient):
        self.client = client

    def generate(self, user_id: str, request: GenerateStrategyRequest) -> StrategyDraft:
        self.client.ensure_configured()
        reply = self.client.complete(
            build_system_prompt(request.assetClass, request.riskLevel),
            request.prompt,
        )

        data = parse_reply(reply)
        if data is None:
            log_structured("generation_fallback", {"user_id": user_id, "reply_length": len(reply)}, level="WARNING")
            data = fallback_draft(reply, request.assetClass, request.riskLevel)

        return clamp_draft(data, request.assetClass, request.riskLevel)
