# strategy_hub/strategy_engine/export.py
"""
Render a strategy as a downloadable JSON or CSV document.
"""
import csv
import io
import json
import time
from enum import Enum
from typing import Any, Dict, Tuple

from ..db.models import TradingStrategy, as_utc
from ..utils.error_handler import BusinessRuleError


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"

    @classmethod
    def parse(cls, value: str) -> "ExportFormat":
        try:
            return cls(value)
        except ValueError:
            raise BusinessRuleError("Invalid format. Use 'json' or 'csv'")


MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


def export_fields(strategy: TradingStrategy) -> Dict[str, Any]:
    """The documented export field set."""
    return {
        "name": strategy.name,
        "description": strategy.description,
        "parameters": strategy.parameters or {},
        "riskLevel": strategy.risk_level.value,
        "assetClass": strategy.asset_class.value if strategy.asset_class else None,
        "backtestPerformance": strategy.backtest_performance,
        "tags": list(strategy.tags or []),
        "createdAt": as_utc(strategy.created_at).isoformat(),
    }


def render_json(strategy: TradingStrategy) -> str:
    return json.dumps(export_fields(strategy), indent=2)


def render_csv(strategy: TradingStrategy) -> str:
    """
    One Field,Value row per field. Every cell is quoted and embedded quotes
    are doubled; rows are joined with "\\n" and there is no trailing newline.
    """
    fields = export_fields(strategy)
    rows = [
        ("Field", "Value"),
        ("Name", fields["name"]),
        ("Description", fields["description"]),
        ("Risk Level", fields["riskLevel"]),
        ("Asset Class", fields["assetClass"] or ""),
        ("Backtest Performance", fields["backtestPerformance"] or ""),
        ("Tags", ", ".join(fields["tags"])),
        ("Parameters", json.dumps(fields["parameters"], separators=(",", ":"))),
        ("Created At", fields["createdAt"]),
    ]
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue().rstrip("\n")


def export_filename(strategy: TradingStrategy, fmt: ExportFormat) -> str:
    # Header values must be printable ASCII without quotes
    safe_name = "".join(c if 32 <= ord(c) < 127 and c not in '"\\' else "_" for c in strategy.name)
    return f"strategy-{safe_name}-{int(time.time() * 1000)}.{fmt.value}"


def render_export(strategy: TradingStrategy, fmt: ExportFormat) -> Tuple[str, str, str]:
    """Returns (body, media type, filename)."""
    body = render_json(strategy) if fmt == ExportFormat.JSON else render_csv(strategy)
    return body, MEDIA_TYPES[fmt], export_filename(strategy, fmt)
