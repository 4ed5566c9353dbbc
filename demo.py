"""
Hotel Stores walkthrough against the configured storage backend.

Usage:
    python demo.py                                   # in-memory seed data
    STORES_STORAGE_BACKEND=json python demo.py       # data_layer/data/*.json
    STORES_STORAGE_BACKEND=dynamodb python demo.py   # after data_layer.scripts.setup_aws
"""

import logging

import env_loader  # noqa: F401

from src.models.settings import StoresSettings
from src.models.stores import ItemType, Priority
from src.services.stores_app import HotelStores

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")


def section(title: str) -> None:
    print(f"\n--- {title} ---")


def show_inventory(stores: HotelStores) -> None:
    summary = stores.inventory.get_summary()
    print(f"Items: {summary.total_items}  Low stock: {summary.low_stock_items}  "
          f"Value: {stores.settings.organization.currency_symbol} {summary.total_value:,.0f}")
    for alert in stores.inventory.get_low_stock_alerts():
        print(f"  ⚠️  {alert.name}: {alert.current_stock}/{alert.min_stock_level} {alert.unit}")
    for item in stores.inventory.get_expiring_items():
        print(f"  ⏳ {item.name} expires {item.expiry_date}")


def main():
    settings = StoresSettings.from_env()
    stores = HotelStores(settings)
    print(f"✅ {settings.organization.name} stores ({settings.storage_backend} backend)")

    housekeeper = stores.users.principal_for_email("mary.njeri@lukenyagetaway.com")
    manager = stores.users.principal_for_email("jane.wambui@lukenyagetaway.com")
    storekeeper = stores.users.principal_for_email("peter.otieno@lukenyagetaway.com")

    section("Inventory")
    show_inventory(stores)

    section("Request workflow")
    request = stores.attempt(
        stores.requests.create_request, housekeeper, "5", ItemType.INVENTORY,
        "Guest rooms restock", quantity=40, priority=Priority.HIGH,
        success=("Request submitted", "Toilet paper request sent for approval"),
    )
    if request:
        stores.attempt(stores.requests.approve, manager, request.id)
        receipt = stores.attempt(stores.requests.fulfill, storekeeper, request.id, "Delivered to floor 2")
        if receipt:
            print(stores.reports.receipt_to_csv(receipt))

    # Housekeepers cannot approve: recorded as a destructive notification
    stores.attempt(stores.requests.approve, housekeeper, "req-1", failure_title="Approval failed")

    section("Stock transactions")
    stores.attempt(stores.inventory.record_transaction, "4", "expired", 3, performed_by="Chef Anne",
                   notes="Spoiled in cold room")
    stores.attempt(stores.inventory.record_transaction, "7", "received", 25, performed_by="Peter Otieno",
                   expiry_date="2099-01-01", value=10000.0)
    show_inventory(stores)

    section("Procurement")
    order = stores.procurement.create_order("Kitchen", supplier="Local Farmers Market")
    stores.procurement.add_line(order.id, "Fresh Tomatoes", 30, 100.0, unit="kg", item_id="4")
    stores.procurement.submit(order.id)
    stores.procurement.approve(manager, order.id)
    order = stores.procurement.receive(order.id)
    print(f"{order.po_number}: {order.status.value}, total {stores.procurement.order_total(order.id):,.2f}")

    section("Reports")
    for report_type in ("low-stock", "consumption-trends", "asset-utilization"):
        report = stores.reports.generate_report(report_type)
        print(f"{report.title}")
        for row in report.rows:
            print(f"  {row.name:<28} {row.value:>8}  {row.detail}")

    section("Audit")
    audit = stores.audit_stock()
    print(f"Items checked: {audit['items_checked']}  Discrepancies: {audit['discrepancies_found']}")

    section("Notifications")
    for note in stores.notifications():
        marker = "❌" if note.variant == "destructive" else "✓"
        print(f"  {marker} {note.title}: {note.description}")


if __name__ == "__main__":
    main()
