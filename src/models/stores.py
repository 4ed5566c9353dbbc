"""Hotel stores data models: inventory, assets, requests, procurement."""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union, get_args, get_origin, get_type_hints


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex[:8]


def _coerce(hint: Any, value: Any) -> Any:
    if value is None:
        return None
    origin = get_origin(hint)
    if origin is Union:
        hint = next(a for a in get_args(hint) if a is not type(None))
        origin = get_origin(hint)
    if origin in (list, tuple):
        (arg, *_) = get_args(hint)
        items = [_coerce(arg, v) for v in value]
        return tuple(items) if origin is tuple else items
    if isinstance(hint, type) and issubclass(hint, Enum):
        return hint(value)
    if isinstance(hint, type) and issubclass(hint, Record):
        return hint.from_dict(value)
    return value


class Record:
    """Dict conversion for persisted records."""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict):
        if not isinstance(data, dict):
            raise TypeError(f"{cls.__name__} record must be a mapping, got {type(data).__name__}")
        hints = get_type_hints(cls)
        kwargs = {
            f.name: _coerce(hints[f.name], data[f.name])
            for f in fields(cls)
            if f.name in data
        }
        return cls(**kwargs)


class TransactionType(str, Enum):
    RECEIVED = "received"
    USED = "used"
    EXPIRED = "expired"
    ADJUSTED = "adjusted"


class AssetStatus(str, Enum):
    AVAILABLE = "available"
    CHECKED_OUT = "checked-out"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class AssetCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ItemType(str, Enum):
    INVENTORY = "inventory"
    ASSET = "asset"


class RequestStatus(str, Enum):
    PENDING = "pending"
    DEPARTMENT_APPROVED = "department-approved"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "Draft"
    AWAITING_APPROVAL = "Awaiting Approval"
    APPROVED = "Approved"
    SENT_TO_VENDOR = "Sent to Vendor"
    PARTIALLY_RECEIVED = "Partially Received"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"
    ON_HOLD = "On Hold"


class StockLevel(str, Enum):
    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"
    HEALTHY = "healthy"


class Role(str, Enum):
    GENERAL_MANAGER = "generalManager"
    DEPARTMENT_HEAD = "departmentHead"
    STOREKEEPER = "storekeeper"
    ROOMS_MANAGER = "roomsManager"
    FB_MANAGER = "fbManager"
    HOUSEKEEPER = "housekeeper"
    FRONT_DESK = "frontDesk"
    MAINTENANCE = "maintenance"
    CHEF = "chef"
    STAFF = "staff"


class Permission(str, Enum):
    CREATE_REQUEST = "create:request"
    VIEW_REQUEST = "view:request"
    APPROVE_REQUEST_DEPARTMENT = "approve:request:department"
    APPROVE_REQUEST_FINAL = "approve:request:final"
    FULFILL_REQUEST = "fulfill:request"
    MANAGE_INVENTORY = "manage:inventory"
    VIEW_INVENTORY = "view:inventory"
    MANAGE_ASSETS = "manage:assets"
    VIEW_ASSETS = "view:assets"
    MANAGE_USERS = "manage:users"


# --- Inventory ---


@dataclass
class InventoryItem(Record):
    id: str
    name: str
    category: str
    quantity: int
    unit: str
    min_stock_level: int
    current_value: float
    location: str
    last_updated: str = field(default_factory=utc_now)
    expiry_date: Optional[str] = None
    supplier: Optional[str] = None


@dataclass
class StockTransaction(Record):
    id: str
    item_id: str
    item_name: str
    type: TransactionType
    quantity: int
    performed_by: str
    date: str = field(default_factory=utc_now)
    notes: Optional[str] = None
    expiry_date: Optional[str] = None
    value: Optional[float] = None


@dataclass
class CategoryCount(Record):
    name: str
    count: int


@dataclass
class InventorySummary(Record):
    total_items: int
    categories: list[CategoryCount]
    low_stock_items: int
    total_value: float


@dataclass
class LowStockAlert(Record):
    item_id: str
    name: str
    category: str
    current_stock: int
    min_stock_level: int
    unit: str


# --- Assets ---


@dataclass
class Asset(Record):
    id: str
    name: str
    category: str
    status: AssetStatus
    location: str
    purchase_date: str
    purchase_value: float
    current_value: float
    condition: AssetCondition
    assigned_to: Optional[str] = None
    checkout_date: Optional[str] = None
    expected_return_date: Optional[str] = None
    last_maintenance: Optional[str] = None
    last_condition_note: Optional[str] = None
    status_change_date: Optional[str] = None
    status_change_note: Optional[str] = None


@dataclass
class CheckoutRecord(Record):
    id: str
    asset_id: str
    asset_name: str
    checked_out_by: str
    checked_out_date: str = field(default_factory=utc_now)
    returned_date: Optional[str] = None
    return_condition: Optional[AssetCondition] = None
    notes: Optional[str] = None


@dataclass
class AssetSummary(Record):
    total_assets: int
    available: int
    checked_out: int
    maintenance: int
    categories: list[CategoryCount]
    total_value: float


# --- Requests ---


@dataclass
class RequestItem(Record):
    id: str
    item_id: str
    item_type: ItemType
    item_name: str
    requested_by: str
    reason: str
    department: str
    quantity: Optional[int] = None
    request_date: str = field(default_factory=utc_now)
    status: RequestStatus = RequestStatus.PENDING
    priority: Priority = Priority.MEDIUM
    department_approved_by: Optional[str] = None
    department_approval_date: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[str] = None
    fulfilled_by: Optional[str] = None
    fulfillment_date: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class ReceiptLine(Record):
    name: str
    type: ItemType
    quantity: Optional[int] = None


@dataclass(frozen=True)
class Receipt(Record):
    id: str
    request_id: str
    lines: tuple[ReceiptLine, ...]
    requested_by: str
    approved_by: str
    issued_by: str
    department: str
    issue_date: str = field(default_factory=utc_now)
    notes: Optional[str] = None


# --- Procurement & users ---


@dataclass
class Supplier(Record):
    id: str
    name: str
    contact_person: str
    email: str
    phone: str
    address: str
    categories: list[str] = field(default_factory=list)


@dataclass
class User(Record):
    id: str
    name: str
    role: Role
    department: str
    email: str
    permissions: list[Permission] = field(default_factory=list)


@dataclass
class PurchaseOrderLine(Record):
    id: str
    name: str
    quantity: int
    unit: str
    unit_price: float
    total_price: float
    item_id: Optional[str] = None
    received_quantity: int = 0


@dataclass
class PurchaseOrder(Record):
    id: str
    po_number: str
    supplier: str
    department: str
    order_type: str
    created_by: str
    status: PurchaseOrderStatus = PurchaseOrderStatus.DRAFT
    lines: list[PurchaseOrderLine] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    submitted_at: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    received_at: Optional[str] = None


# --- Reports & notifications ---


@dataclass
class ReportRow(Record):
    name: str
    value: float
    detail: str


@dataclass
class Report(Record):
    report_id: str
    report_type: str
    title: str
    rows: list[ReportRow]
    generated_at: str = field(default_factory=utc_now)


@dataclass
class RecentReport(Record):
    report_id: str
    report_type: str
    title: str
    date: str


@dataclass
class Notification:
    title: str
    description: str
    variant: str = "default"
    timestamp: str = field(default_factory=utc_now)
