"""Runtime settings and organization details."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

HOTEL_DEPARTMENTS: list[str] = [
    "Executive Office",
    "Front Office",
    "Housekeeping",
    "Food & Beverage",
    "Kitchen",
    "Restaurant",
    "Bar",
    "Banquet",
    "Room Service",
    "Maintenance",
    "Security",
    "Administration",
    "Human Resources",
    "Sales & Marketing",
    "Finance",
    "Accounting",
    "Purchasing",
    "Stores",
    "IT",
    "Engineering",
    "Spa & Wellness",
    "Concierge",
    "Laundry",
    "Transport",
]

PURCHASE_ORDER_TYPES: list[str] = [
    "Standard",
    "Emergency",
    "Contract",
    "Local Purchase Order",
    "Blanket",
    "Special",
]


@dataclass
class OrganizationInfo:
    name: str = "Lukenya Getaway"
    slogan: str = "Nature's Paradise Awaits You"
    address: str = "Lukenya Hills, Machakos"
    country: str = "Kenya"
    phone: str = "+254 722 000 000"
    email: str = "info@lukenyagetaway.com"
    currency: str = "KES"
    currency_symbol: str = "KSh"


@dataclass
class StoresSettings:
    storage_backend: str = "memory"  # memory | json | dynamodb
    data_dir: str = "data_layer/data"
    region_name: str = "us-west-2"
    table_name: str = "HotelStores"
    reports_bucket: str = ""
    expiring_soon_days: int = 7
    inventory_min_stock_default: int = 10
    recent_reports_limit: int = 5
    organization: OrganizationInfo = field(default_factory=OrganizationInfo)

    @classmethod
    def from_env(cls) -> "StoresSettings":
        """Reads settings from the environment (import env_loader first to pick up .env)."""
        return cls(
            storage_backend=os.environ.get("STORES_STORAGE_BACKEND", "memory").lower(),
            data_dir=os.environ.get("STORES_DATA_DIR", "data_layer/data"),
            region_name=os.environ.get("AWS_DEFAULT_REGION", "us-west-2"),
            table_name=os.environ.get("STORES_TABLE_NAME", "HotelStores"),
            reports_bucket=os.environ.get("STORES_REPORTS_BUCKET", ""),
            expiring_soon_days=int(os.environ.get("STORES_EXPIRING_SOON_DAYS", "7")),
            inventory_min_stock_default=int(os.environ.get("STORES_MIN_STOCK_DEFAULT", "10")),
        )
