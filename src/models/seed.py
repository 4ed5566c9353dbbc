"""Seed dataset used when a collection is missing or unreadable.

Dates are computed relative to the current day so the dataset always contains
fresh expiries, open checkouts and recent activity.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from src.models.stores import (
    Asset,
    AssetCondition,
    AssetStatus,
    CheckoutRecord,
    InventoryItem,
    ItemType,
    Priority,
    Receipt,
    ReceiptLine,
    RequestItem,
    RequestStatus,
    Role,
    StockTransaction,
    Supplier,
    TransactionType,
    User,
)


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _day(offset: int) -> str:
    return (date.today() + timedelta(days=offset)).isoformat()


def seed_inventory_items() -> list[InventoryItem]:
    return [
        InventoryItem("1", "Rice", "Food", 50, "kg", 20, 5000.0, "Main Kitchen Storage",
                      _days_ago(15), _day(240), "Nairobi Wholesalers"),
        InventoryItem("2", "Sugar", "Food", 15, "kg", 10, 1800.0, "Main Kitchen Storage",
                      _days_ago(10), _day(300), "Nairobi Wholesalers"),
        InventoryItem("3", "Coffee Beans", "Beverages", 8, "kg", 5, 3200.0, "Bar Storage",
                      _days_ago(5), _day(180), "Kenya Coffee Co."),
        InventoryItem("4", "Fresh Tomatoes", "Produce", 12, "kg", 15, 1200.0, "Refrigerator 1",
                      _days_ago(2), _day(7), "Local Farmers Market"),
        InventoryItem("5", "Toilet Paper", "Housekeeping", 200, "rolls", 50, 4000.0,
                      "Housekeeping Storage", _days_ago(20), None, "Supermart Wholesalers"),
        InventoryItem("6", "Cooking Oil", "Food", 30, "liters", 15, 6000.0, "Main Kitchen Storage",
                      _days_ago(8), _day(120), "Nairobi Wholesalers"),
        InventoryItem("7", "Beef", "Meat", 18, "kg", 20, 7200.0, "Freezer 1",
                      _days_ago(3), _day(10), "Quality Meats Ltd"),
        InventoryItem("8", "Laundry Detergent", "Housekeeping", 45, "kg", 20, 5400.0, "Laundry Room",
                      _days_ago(25), _day(360), "CleanSupplies Inc"),
    ]


def seed_stock_transactions() -> list[StockTransaction]:
    """Opening balance for every seed item, newest first."""
    items = sorted(seed_inventory_items(), key=lambda i: i.last_updated, reverse=True)
    return [
        StockTransaction(
            id=f"txn-{item.id}",
            item_id=item.id,
            item_name=item.name,
            type=TransactionType.RECEIVED,
            quantity=item.quantity,
            performed_by="System",
            date=item.last_updated,
            notes="Initial inventory setup",
            expiry_date=item.expiry_date,
            value=item.current_value,
        )
        for item in items
    ]


def seed_assets() -> list[Asset]:
    return [
        Asset("1", "Conference Room Projector", "Electronics", AssetStatus.AVAILABLE, "Conference Room A",
              "2022-03-15", 85000.0, 68000.0, AssetCondition.EXCELLENT, last_maintenance=_days_ago(90)),
        Asset("2", "Commercial Coffee Machine", "Kitchen Equipment", AssetStatus.MAINTENANCE,
              "Maintenance Shop", "2021-10-20", 120000.0, 90000.0, AssetCondition.FAIR,
              last_maintenance=_days_ago(10)),
        Asset("3", "Lounge Sofa Set", "Furniture", AssetStatus.AVAILABLE, "Main Lounge",
              "2022-01-05", 75000.0, 65000.0, AssetCondition.GOOD, last_maintenance=_days_ago(120)),
        Asset("4", "Golf Cart #1", "Vehicles", AssetStatus.CHECKED_OUT, "Property Grounds",
              "2021-07-15", 250000.0, 180000.0, AssetCondition.GOOD, assigned_to="Samuel Maina",
              checkout_date=_days_ago(2), expected_return_date=_day(1), last_maintenance=_days_ago(45)),
        Asset("5", "Industrial Lawn Mower", "Grounds Equipment", AssetStatus.AVAILABLE, "Maintenance Shed",
              "2022-05-20", 95000.0, 85000.0, AssetCondition.EXCELLENT, last_maintenance=_days_ago(30)),
        Asset("6", 'Smart TV - 65"', "Electronics", AssetStatus.AVAILABLE, "Suite 201",
              "2022-02-10", 65000.0, 52000.0, AssetCondition.GOOD),
        Asset("7", "Commercial Dishwasher", "Kitchen Equipment", AssetStatus.AVAILABLE, "Main Kitchen",
              "2021-11-28", 180000.0, 153000.0, AssetCondition.GOOD, last_maintenance=_days_ago(60)),
        Asset("8", "Outdoor Dining Set", "Furniture", AssetStatus.CHECKED_OUT, "Pool Area",
              "2022-04-15", 45000.0, 40000.0, AssetCondition.EXCELLENT, assigned_to="Events Department",
              checkout_date=_days_ago(1), expected_return_date=_day(3)),
    ]


def seed_checkout_history() -> list[CheckoutRecord]:
    return [
        CheckoutRecord("co-1", "8", "Outdoor Dining Set", "Events Department", _days_ago(1),
                       notes="For poolside wedding reception"),
        CheckoutRecord("co-2", "4", "Golf Cart #1", "Samuel Maina", _days_ago(2),
                       notes="For guest transportation"),
        CheckoutRecord("co-3", "1", "Conference Room Projector", "Peter Mwangi", _days_ago(10),
                       returned_date=_days_ago(8), return_condition=AssetCondition.EXCELLENT,
                       notes="Corporate training event"),
    ]


def seed_users() -> list[User]:
    return [
        User("1", "Jane Wambui", Role.GENERAL_MANAGER, "Executive Office", "jane.wambui@lukenyagetaway.com"),
        User("2", "David Ochieng", Role.FB_MANAGER, "Food & Beverage", "david.ochieng@lukenyagetaway.com"),
        User("3", "Mary Njeri", Role.HOUSEKEEPER, "Housekeeping", "mary.njeri@lukenyagetaway.com"),
        User("4", "John Kamau", Role.DEPARTMENT_HEAD, "Maintenance", "john.kamau@lukenyagetaway.com"),
        User("5", "Peter Otieno", Role.STOREKEEPER, "Stores", "peter.otieno@lukenyagetaway.com"),
    ]


def seed_suppliers() -> list[Supplier]:
    return [
        Supplier("1", "Nairobi Wholesalers", "Rajesh Patel", "info@nairobiwholesalers.co.ke",
                 "+254 712 345 678", "Industrial Area, Nairobi", ["Food", "Beverages"]),
        Supplier("2", "Quality Meats Ltd", "Samuel Wanjau", "orders@qualitymeats.co.ke",
                 "+254 723 456 789", "Karen, Nairobi", ["Meat", "Food"]),
        Supplier("3", "CleanSupplies Inc", "Grace Muthoni", "sales@cleansupplies.co.ke",
                 "+254 734 567 890", "Westlands, Nairobi", ["Housekeeping", "Toiletries"]),
        Supplier("4", "Kenya Coffee Co.", "Michael Mwangi", "info@kenyacoffee.co.ke",
                 "+254 745 678 901", "Kiambu Road, Nairobi", ["Beverages", "Food"]),
    ]


def seed_requests() -> list[RequestItem]:
    return [
        RequestItem("req-1", "8", ItemType.INVENTORY, "Laundry Detergent", "Mary Njeri",
                    "Weekly laundry supplies needed", "Housekeeping", quantity=5,
                    request_date=_days_ago(3), priority=Priority.MEDIUM),
        RequestItem("req-2", "1", ItemType.ASSET, "Conference Room Projector", "David Ochieng",
                    "Wine tasting presentation", "Food & Beverage",
                    request_date=_days_ago(5), status=RequestStatus.APPROVED, priority=Priority.HIGH,
                    approved_by="Jane Wambui", approval_date=_days_ago(2)),
        RequestItem("req-3", "2", ItemType.INVENTORY, "Sugar", "Jane Wambui",
                    "Monthly resupply", "Executive Office", quantity=10,
                    request_date=_days_ago(10), status=RequestStatus.FULFILLED, priority=Priority.LOW,
                    approved_by="Jane Wambui", approval_date=_days_ago(9),
                    fulfilled_by="Peter Otieno", fulfillment_date=_days_ago(8)),
    ]


def seed_receipts() -> list[Receipt]:
    return [
        Receipt("receipt-1", "req-3", (ReceiptLine("Sugar", ItemType.INVENTORY, 10),),
                requested_by="Jane Wambui", approved_by="Jane Wambui", issued_by="Peter Otieno",
                department="Executive Office", issue_date=_days_ago(8)),
    ]


def seed_collections() -> dict[str, list]:
    """Seed records per storage collection key."""
    return {
        "items": seed_inventory_items(),
        "transactions": seed_stock_transactions(),
        "assets": seed_assets(),
        "checkout-history": seed_checkout_history(),
        "requests": seed_requests(),
        "receipts": seed_receipts(),
        "suppliers": seed_suppliers(),
        "users": seed_users(),
        "purchase-orders": [],
        "recent-reports": [],
    }
