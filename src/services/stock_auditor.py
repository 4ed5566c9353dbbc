"""Stock Auditor - consistency checks between items and the transaction ledger.

- No negative quantity or value on any item
- Replaying each item's ledger from empty reproduces its current state
- Orphan transactions (unknown item) are reported as warnings
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from src.models.stores import InventoryItem, StockTransaction, utc_now
from src.services.inventory_service import InventoryService
from src.services.reconciliation import replay_transactions

logger = logging.getLogger(__name__)

VALUE_TOLERANCE = 0.01


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class AuditEntry:
    entry_id: str
    item_id: str
    item_name: str
    expected_quantity: int
    actual_quantity: int
    expected_value: float
    actual_value: float
    timestamp: str = field(default_factory=utc_now)


class StockAuditor:
    """Verifies the inventory against its ledger and keeps a log of discrepancies."""

    def __init__(self) -> None:
        self._audit_log: list[AuditEntry] = []

    def check_no_negative_stock(self, items: list[InventoryItem]) -> ValidationResult:
        errors = []
        for item in items:
            if item.quantity < 0:
                errors.append(f"Negative quantity: {item.name} = {item.quantity}")
            if item.current_value < 0:
                errors.append(f"Negative value: {item.name} = {item.current_value}")
        return ValidationResult(is_valid=len(errors) == 0, errors=errors)

    def verify_ledger(
        self, items: list[InventoryItem], transactions: list[StockTransaction]
    ) -> ValidationResult:
        """Replays every item's ledger and compares quantity and value.

        Expiry differences are warnings only: direct edits of the expiry date
        are not written to the ledger.
        """
        errors: list[str] = []
        warnings: list[str] = []

        for item in items:
            expected = replay_transactions(item, transactions)
            value_off = abs(expected.current_value - item.current_value) > VALUE_TOLERANCE
            if expected.quantity != item.quantity or value_off:
                errors.append(
                    f"{item.name}: ledger gives {expected.quantity} / {expected.current_value}, "
                    f"item holds {item.quantity} / {item.current_value}"
                )
                self._audit_log.append(
                    AuditEntry(
                        entry_id=str(uuid.uuid4()),
                        item_id=item.id,
                        item_name=item.name,
                        expected_quantity=expected.quantity,
                        actual_quantity=item.quantity,
                        expected_value=expected.current_value,
                        actual_value=item.current_value,
                    )
                )
            elif expected.expiry_date != item.expiry_date:
                warnings.append(
                    f"{item.name}: ledger expiry {expected.expiry_date}, item expiry {item.expiry_date}"
                )

        known = {i.id for i in items}
        orphans = {t.item_id for t in transactions if t.item_id not in known}
        for item_id in sorted(orphans):
            warnings.append(f"Transactions reference unknown item {item_id}")

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)

    def audit(self, inventory: InventoryService) -> dict:
        """Runs every check against a live inventory service."""
        items = inventory.list_items()
        negative = self.check_no_negative_stock(items)
        ledger = self.verify_ledger(items, inventory.list_transactions())
        errors = negative.errors + ledger.errors

        if errors:
            logger.warning("Stock audit found %d discrepancies", len(errors))
        else:
            logger.info("Stock audit passed for %d items", len(items))

        return {
            "audit_date": utc_now(),
            "items_checked": len(items),
            "discrepancies_found": len(errors),
            "errors": errors,
            "warnings": ledger.warnings,
            "all_valid": len(errors) == 0,
        }

    def get_audit_log(self, item_id: Optional[str] = None) -> list[AuditEntry]:
        if item_id:
            return [e for e in self._audit_log if e.item_id == item_id]
        return list(self._audit_log)
