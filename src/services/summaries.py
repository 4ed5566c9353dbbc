"""Derived views recomputed from the full collections on every call."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from src.models.stores import (
    Asset,
    AssetStatus,
    AssetSummary,
    CategoryCount,
    InventoryItem,
    InventorySummary,
    LowStockAlert,
    StockLevel,
)


def _category_counts(categories: Iterable[str]) -> list[CategoryCount]:
    # dicts keep first-seen order
    counts: dict[str, int] = {}
    for name in categories:
        counts[name] = counts.get(name, 0) + 1
    return [CategoryCount(name=name, count=count) for name, count in counts.items()]


def is_low_stock(item: InventoryItem) -> bool:
    return item.quantity <= item.min_stock_level


def summarize_inventory(items: list[InventoryItem]) -> InventorySummary:
    return InventorySummary(
        total_items=len(items),
        categories=_category_counts(i.category for i in items),
        low_stock_items=sum(1 for i in items if is_low_stock(i)),
        total_value=round(sum(i.current_value for i in items), 2),
    )


def low_stock_alerts(items: list[InventoryItem]) -> list[LowStockAlert]:
    return [
        LowStockAlert(
            item_id=i.id,
            name=i.name,
            category=i.category,
            current_stock=i.quantity,
            min_stock_level=i.min_stock_level,
            unit=i.unit,
        )
        for i in items
        if is_low_stock(i)
    ]


def stock_level(item: InventoryItem) -> StockLevel:
    """Classifies stock against the minimum: <=50% critical, <=100% low, <=150% adequate."""
    minimum = item.min_stock_level
    if item.quantity <= minimum * 0.5:
        return StockLevel.CRITICAL
    if item.quantity <= minimum:
        return StockLevel.LOW
    if item.quantity <= minimum * 1.5:
        return StockLevel.ADEQUATE
    return StockLevel.HEALTHY


def days_until_expiry(item: InventoryItem, reference: Optional[date] = None) -> Optional[int]:
    if not item.expiry_date:
        return None
    reference = reference or date.today()
    return (date.fromisoformat(item.expiry_date[:10]) - reference).days


def expiring_items(
    items: list[InventoryItem],
    within_days: int = 7,
    reference: Optional[date] = None,
) -> list[InventoryItem]:
    """Items with an expiry on or before reference + within_days, soonest first.

    Already expired items are included.
    """
    reference = reference or date.today()
    dated: list[tuple[int, InventoryItem]] = []
    for i in items:
        days = days_until_expiry(i, reference)
        if days is not None and days <= within_days:
            dated.append((days, i))
    dated.sort(key=lambda pair: pair[0])
    return [i for _, i in dated]


def summarize_assets(assets: list[Asset]) -> AssetSummary:
    by_status = {status: 0 for status in AssetStatus}
    for a in assets:
        by_status[a.status] += 1
    return AssetSummary(
        total_assets=len(assets),
        available=by_status[AssetStatus.AVAILABLE],
        checked_out=by_status[AssetStatus.CHECKED_OUT],
        maintenance=by_status[AssetStatus.MAINTENANCE],
        categories=_category_counts(a.category for a in assets),
        total_value=round(sum(a.current_value for a in assets), 2),
    )
