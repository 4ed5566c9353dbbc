"""Inventory Service - consumable stock items and their transaction ledger.

- Item CRUD with full-snapshot persistence of items and transactions
- Every quantity/value change is written to the ledger (newest first)
- Reconciliation of received/used/expired/adjusted transactions
- Summary, low-stock and expiry views recomputed on demand
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Union

from src.models.seed import seed_inventory_items, seed_stock_transactions
from src.models.settings import StoresSettings
from src.models.stores import (
    InventoryItem,
    InventorySummary,
    LowStockAlert,
    Permission,
    StockLevel,
    StockTransaction,
    TransactionType,
    new_id,
    utc_now,
)
from src.services.authorization import Principal, actor_name, authorize_optional
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import NotFoundError, ValidationError
from src.services.reconciliation import apply_transaction
from src.services.summaries import (
    expiring_items,
    low_stock_alerts,
    stock_level,
    summarize_inventory,
)

logger = logging.getLogger(__name__)

ITEMS_KEY = "items"
TRANSACTIONS_KEY = "transactions"

EDITABLE_FIELDS = {
    "name",
    "category",
    "quantity",
    "unit",
    "min_stock_level",
    "current_value",
    "location",
    "expiry_date",
    "supplier",
}


NUMERIC_FIELDS = {
    "quantity": "Quantity",
    "min_stock_level": "Minimum stock level",
    "current_value": "Value",
}


def _check_amount(label: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{label} must be a number: {value!r}")
    if value < 0:
        raise ValidationError(f"{label} cannot be negative: {value}")


class InventoryService(BaseService):
    """Owns the inventory items and the stock transaction ledger."""

    def __init__(self, settings: Optional[StoresSettings] = None, **kwargs: Any):
        super().__init__(service_name="InventoryService", channel=Channel.INVENTORY, **kwargs)
        self.settings = settings or StoresSettings()
        self._items: list[InventoryItem] = []
        self._transactions: list[StockTransaction] = []
        self.reload()

    def reload(self) -> None:
        self._items = self._load_collection(ITEMS_KEY, InventoryItem, seed_inventory_items)
        self._transactions = self._load_collection(
            TRANSACTIONS_KEY, StockTransaction, seed_stock_transactions
        )

    # --- Items ---

    def list_items(self, category: Optional[str] = None) -> list[InventoryItem]:
        if category is None:
            return list(self._items)
        return [i for i in self._items if i.category == category]

    def get_item(self, item_id: str) -> Optional[InventoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def require_item(self, item_id: str) -> InventoryItem:
        item = self.get_item(item_id)
        if item is None:
            raise NotFoundError(f"Inventory item not found: {item_id}")
        return item

    def add_item(
        self,
        name: str,
        category: str,
        quantity: int,
        unit: str,
        current_value: float,
        location: str,
        min_stock_level: Optional[int] = None,
        expiry_date: Optional[str] = None,
        supplier: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> InventoryItem:
        """Adds an item and records its opening balance as a received transaction."""
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        if quantity < 0:
            raise ValidationError(f"Quantity cannot be negative: {quantity}")
        if current_value < 0:
            raise ValidationError(f"Value cannot be negative: {current_value}")

        now = utc_now()
        item = InventoryItem(
            id=new_id(),
            name=name.strip(),
            category=category,
            quantity=quantity,
            unit=unit,
            min_stock_level=(
                min_stock_level
                if min_stock_level is not None
                else self.settings.inventory_min_stock_default
            ),
            current_value=round(current_value, 2),
            location=location,
            last_updated=now,
            expiry_date=expiry_date,
            supplier=supplier,
        )
        opening = StockTransaction(
            id=new_id(),
            item_id=item.id,
            item_name=item.name,
            type=TransactionType.RECEIVED,
            quantity=quantity,
            performed_by=actor_name(principal),
            date=now,
            notes="Initial inventory setup",
            expiry_date=expiry_date,
            value=item.current_value,
        )

        items = self._items + [item]
        transactions = [opening] + self._transactions
        self._persist({ITEMS_KEY: items, TRANSACTIONS_KEY: transactions})
        self._items, self._transactions = items, transactions

        logger.info("Item added: %s (%s %s)", item.name, item.quantity, item.unit)
        self._publish("item_added", {"item_id": item.id})
        return item

    def update_item(
        self, item_id: str, changes: dict, principal: Optional[Principal] = None
    ) -> InventoryItem:
        """Applies direct edits; quantity/value changes are written as an adjusted transaction."""
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")
        for field_name, label in NUMERIC_FIELDS.items():
            if field_name in changes:
                _check_amount(label, changes[field_name])

        current = self.require_item(item_id)
        now = utc_now()
        if "current_value" in changes:
            changes = {**changes, "current_value": round(changes["current_value"], 2)}
        updated = replace(current, **changes, last_updated=now)

        transactions = self._transactions
        quantity_delta = updated.quantity - current.quantity
        value_delta = round(updated.current_value - current.current_value, 2)
        if quantity_delta or value_delta:
            adjustment = StockTransaction(
                id=new_id(),
                item_id=item_id,
                item_name=updated.name,
                type=TransactionType.ADJUSTED,
                quantity=quantity_delta,
                performed_by=actor_name(principal),
                date=now,
                notes="Manual item edit",
                value=value_delta if value_delta else None,
            )
            transactions = [adjustment] + transactions

        items = [updated if i.id == item_id else i for i in self._items]
        self._persist({ITEMS_KEY: items, TRANSACTIONS_KEY: transactions})
        self._items, self._transactions = items, transactions

        logger.info("Item updated: %s (%s)", updated.name, ", ".join(sorted(changes)))
        self._publish("item_updated", {"item_id": item_id})
        return updated

    def delete_item(self, item_id: str, principal: Optional[Principal] = None) -> InventoryItem:
        """Removes an item. Its transactions stay in the ledger as history."""
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        item = self.require_item(item_id)
        items = [i for i in self._items if i.id != item_id]
        self._persist({ITEMS_KEY: items})
        self._items = items

        logger.info("Item deleted: %s", item.name)
        self._publish("item_deleted", {"item_id": item_id})
        return item

    # --- Transactions ---

    def record_transaction(
        self,
        item_id: str,
        type: Union[TransactionType, str],
        quantity: int,
        performed_by: Optional[str] = None,
        notes: Optional[str] = None,
        expiry_date: Optional[str] = None,
        value: Optional[float] = None,
        principal: Optional[Principal] = None,
    ) -> StockTransaction:
        """Logs a transaction and reconciles the matching item.

        A transaction for an unknown item is still logged but changes nothing else.
        """
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        try:
            tx_type = TransactionType(type)
        except ValueError:
            raise ValidationError(f"Unknown transaction type: {type}")

        item = self.get_item(item_id)
        tx = StockTransaction(
            id=new_id(),
            item_id=item_id,
            item_name=item.name if item else item_id,
            type=tx_type,
            quantity=quantity,
            performed_by=performed_by or actor_name(principal),
            notes=notes,
            expiry_date=expiry_date,
            value=value,
        )

        items = self._items
        if item is None:
            logger.warning("Transaction %s references unknown item %s", tx.id, item_id)
        else:
            updated = apply_transaction(item, tx)
            items = [updated if i.id == item_id else i for i in self._items]

        transactions = [tx] + self._transactions
        self._persist({ITEMS_KEY: items, TRANSACTIONS_KEY: transactions})
        self._items, self._transactions = items, transactions

        logger.info(
            "Transaction recorded: %s %s x%s by %s",
            tx.type.value, tx.item_name, tx.quantity, tx.performed_by,
        )
        self._publish("transaction_recorded", {"item_id": item_id, "transaction_id": tx.id})
        return tx

    def list_transactions(
        self,
        item_id: Optional[str] = None,
        type: Optional[TransactionType] = None,
    ) -> list[StockTransaction]:
        """Ledger entries, newest first."""
        return [
            t
            for t in self._transactions
            if (item_id is None or t.item_id == item_id) and (type is None or t.type == type)
        ]

    # --- Derived views ---

    def get_summary(self) -> InventorySummary:
        return summarize_inventory(self._items)

    def get_low_stock_alerts(self) -> list[LowStockAlert]:
        return low_stock_alerts(self._items)

    def get_stock_level(self, item_id: str) -> StockLevel:
        return stock_level(self.require_item(item_id))

    def get_expiring_items(
        self, within_days: Optional[int] = None, reference: Optional[date] = None
    ) -> list[InventoryItem]:
        days = within_days if within_days is not None else self.settings.expiring_soon_days
        return expiring_items(self._items, days, reference)
