"""Stock Auditor unit tests."""

from dataclasses import replace

from src.models.stores import InventoryItem, StockTransaction, TransactionType
from src.services.inventory_service import InventoryService
from src.services.stock_auditor import StockAuditor
from src.services.storage import InMemoryStorage


def _item(item_id="1", quantity=10, value=100.0, expiry=None) -> InventoryItem:
    return InventoryItem(item_id, "Rice", "Food", quantity, "kg", 5, value, "Main Kitchen Storage",
                         expiry_date=expiry)


def _received(item_id="1", quantity=10, value=100.0, expiry=None) -> StockTransaction:
    return StockTransaction(
        id=f"t-{item_id}",
        item_id=item_id,
        item_name="Rice",
        type=TransactionType.RECEIVED,
        quantity=quantity,
        performed_by="System",
        date="2024-01-01T00:00:00+00:00",
        expiry_date=expiry,
        value=value,
    )


class TestNegativeStock:

    def test_clean_items_pass(self):
        result = StockAuditor().check_no_negative_stock([_item()])
        assert result.is_valid

    def test_negative_quantity_and_value_flagged(self):
        result = StockAuditor().check_no_negative_stock([_item(quantity=-1, value=-5.0)])
        assert not result.is_valid
        assert len(result.errors) == 2


class TestLedger:

    def test_matching_ledger(self):
        result = StockAuditor().verify_ledger([_item()], [_received()])
        assert result.is_valid
        assert result.warnings == []

    def test_quantity_mismatch_logged(self):
        auditor = StockAuditor()
        result = auditor.verify_ledger([_item(quantity=12)], [_received()])

        assert not result.is_valid
        [entry] = auditor.get_audit_log("1")
        assert entry.expected_quantity == 10
        assert entry.actual_quantity == 12

    def test_value_within_tolerance(self):
        result = StockAuditor().verify_ledger([_item(value=100.005)], [_received()])
        assert result.is_valid

    def test_value_mismatch(self):
        result = StockAuditor().verify_ledger([_item(value=150.0)], [_received()])
        assert not result.is_valid

    def test_expiry_difference_is_warning(self):
        result = StockAuditor().verify_ledger([_item(expiry="2030-01-01")], [_received()])
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_orphan_transactions_are_warnings(self):
        result = StockAuditor().verify_ledger([_item()], [_received(), _received(item_id="gone")])
        assert result.is_valid
        assert result.warnings == ["Transactions reference unknown item gone"]


class TestAudit:

    def test_service_activity_keeps_ledger_consistent(self):
        service = InventoryService(storage=InMemoryStorage())
        service.record_transaction("1", "used", 7)
        service.record_transaction("4", "expired", 2)
        service.record_transaction("7", "received", 5, value=2000.0)
        service.update_item("2", {"quantity": 20, "current_value": 2400.0})
        service.add_item("Flour", "Food", 25, "kg", 2500.0, "Main Kitchen Storage")

        report = StockAuditor().audit(service)
        assert report["all_valid"]
        assert report["items_checked"] == 9
        assert report["discrepancies_found"] == 0

    def test_direct_tampering_is_found(self):
        service = InventoryService(storage=InMemoryStorage())
        service._items = [replace(i, quantity=i.quantity + 1) if i.id == "3" else i for i in service._items]

        auditor = StockAuditor()
        report = auditor.audit(service)
        assert not report["all_valid"]
        assert report["discrepancies_found"] == 1
        assert [e.item_name for e in auditor.get_audit_log()] == ["Coffee Beans"]
