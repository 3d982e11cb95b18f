"""
Derived project figures shown on the producer and client dashboards.

Pure functions over asset and quote rows (ORM objects or anything exposing
the same attributes).
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from prodbay.core.statuses import AssetStatus, QuoteStatus, get_status_priority

IN_PROGRESS_ASSET_STATUSES = (AssetStatus.IN_PRODUCTION.value, AssetStatus.APPROVED.value)
PENDING_ASSET_STATUSES = (AssetStatus.PENDING.value, AssetStatus.QUOTING.value)


def calculate_total_cost(quotes: Iterable[Any]) -> float:
    """Sum of accepted quote costs."""
    return float(
        sum((quote.cost or 0) for quote in quotes if quote.status == QuoteStatus.ACCEPTED.value)
    )


def get_progress_percentage(assets: Iterable[Any]) -> int:
    """Share of delivered assets, rounded to a whole percent; 0 without assets."""
    assets = list(assets)
    if not assets:
        return 0
    delivered = sum(1 for asset in assets if asset.status == AssetStatus.DELIVERED.value)
    return round(delivered / len(assets) * 100)


def get_accepted_quote_for_asset(quotes: Iterable[Any], asset_id: Any) -> Optional[Any]:
    for quote in quotes:
        if quote.asset_id == asset_id and quote.status == QuoteStatus.ACCEPTED.value:
            return quote
    return None


def calculate_project_stats(assets: Iterable[Any], quotes: Iterable[Any]) -> Dict[str, Any]:
    """
    Aggregate asset counts and spend for one project.

    Returns:
        {"total_assets", "completed", "in_progress", "pending",
         "total_cost", "progress_percentage"}
    """
    assets = list(assets)
    quotes = list(quotes)
    return {
        "total_assets": len(assets),
        "completed": sum(1 for a in assets if a.status == AssetStatus.DELIVERED.value),
        "in_progress": sum(1 for a in assets if a.status in IN_PROGRESS_ASSET_STATUSES),
        "pending": sum(1 for a in assets if a.status in PENDING_ASSET_STATUSES),
        "total_cost": calculate_total_cost(quotes),
        "progress_percentage": get_progress_percentage(assets),
    }


def calculate_budget(budget: Optional[float], spent: float) -> Dict[str, Any]:
    """Budget position; percentage_used is 0 when no budget is set."""
    total = float(budget or 0)
    return {
        "total": total,
        "spent": spent,
        "remaining": total - spent,
        "percentage_used": round(spent / total * 100, 1) if total > 0 else 0,
    }


def days_until(deadline: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if deadline is None:
        return None
    today = today or date.today()
    return (deadline - today).days


def sort_by_status_priority(rows: Iterable[Any], status_attr: str = "project_status") -> List[Any]:
    return sorted(rows, key=lambda row: get_status_priority(getattr(row, status_attr)))
