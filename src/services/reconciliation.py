"""Stock transaction reconciliation.

Pure functions: an item plus a transaction gives an updated copy of the item.
Quantities and values are clamped at zero, never rejected for going negative.
Money is rounded to 2 decimals after every value update.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

from src.models.stores import InventoryItem, StockTransaction, TransactionType
from src.services.errors import ValidationError


def _money(value: float) -> float:
    return round(value, 2)


def _as_date(value: str) -> date:
    return date.fromisoformat(value[:10])


def should_replace_expiry(
    old_quantity: int,
    old_expiry: Optional[str],
    received_quantity: int,
    new_expiry: str,
) -> bool:
    """Decides whether a received batch's expiry replaces the item's expiry.

    The new expiry wins when the shelf was empty, the item had no expiry,
    the new batch expires earlier, or the new batch is more than double the
    stock already on hand.
    """
    if old_quantity == 0 or not old_expiry:
        return True
    if _as_date(new_expiry) < _as_date(old_expiry):
        return True
    return received_quantity > old_quantity * 2


def apply_transaction(item: InventoryItem, tx: StockTransaction) -> InventoryItem:
    """Returns a copy of ``item`` with ``tx`` applied. ``item`` is not mutated."""
    quantity = item.quantity
    value = item.current_value
    expiry = item.expiry_date

    if tx.type == TransactionType.RECEIVED:
        if tx.quantity < 0:
            raise ValidationError(f"Received quantity cannot be negative: {tx.quantity}")
        if tx.expiry_date and should_replace_expiry(quantity, expiry, tx.quantity, tx.expiry_date):
            expiry = tx.expiry_date
        quantity += tx.quantity
        if tx.value is not None:
            value = _money(max(0.0, value + tx.value))

    elif tx.type in (TransactionType.USED, TransactionType.EXPIRED):
        deduction = min(quantity, abs(tx.quantity))
        if quantity > 0:
            value = _money(max(0.0, value - value / quantity * deduction))
        quantity -= deduction
        if quantity == 0:
            value = 0.0
            expiry = None

    elif tx.type == TransactionType.ADJUSTED:
        quantity = max(0, quantity + tx.quantity)
        if tx.value is not None:
            value = _money(max(0.0, value + tx.value))

    return replace(
        item,
        quantity=quantity,
        current_value=value,
        expiry_date=expiry,
        last_updated=tx.date,
    )


def replay_transactions(
    template: InventoryItem, transactions: Iterable[StockTransaction]
) -> InventoryItem:
    """Rebuilds an item from an empty state by replaying its newest-first ledger.

    Descriptive fields (name, unit, location, ...) come from ``template``.
    Transactions for other items are ignored.
    """
    state = replace(template, quantity=0, current_value=0.0, expiry_date=None)
    own = [tx for tx in transactions if tx.item_id == template.id]
    for tx in reversed(own):
        state = apply_transaction(state, tx)
    return state
