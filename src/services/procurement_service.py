"""Procurement Service - suppliers and local purchase orders.

Purchase order lifecycle:
    Draft -> Awaiting Approval -> Approved -> Sent to Vendor
          -> Partially Received -> Received
Any open order can be put On Hold (and resubmitted) or Cancelled.
Receiving posts received transactions for lines linked to inventory items.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Optional

from src.models.seed import seed_suppliers
from src.models.settings import PURCHASE_ORDER_TYPES
from src.models.stores import (
    Permission,
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Supplier,
    TransactionType,
    new_id,
    utc_now,
)
from src.services.authorization import Principal, actor_name, authorize, authorize_optional
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import InvalidStateError, NotFoundError, ValidationError
from src.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

SUPPLIERS_KEY = "suppliers"
PURCHASE_ORDERS_KEY = "purchase-orders"

_PO_NUMBER = re.compile(r"^LPO-(\d{4})-(\d{4})$")

_RECEIVABLE = (
    PurchaseOrderStatus.APPROVED,
    PurchaseOrderStatus.SENT_TO_VENDOR,
    PurchaseOrderStatus.PARTIALLY_RECEIVED,
)
_CLOSED = (
    PurchaseOrderStatus.PARTIALLY_RECEIVED,
    PurchaseOrderStatus.RECEIVED,
    PurchaseOrderStatus.CANCELLED,
)


class ProcurementService(BaseService):
    """Owns suppliers and purchase orders."""

    def __init__(self, inventory: InventoryService, **kwargs: Any):
        super().__init__(service_name="ProcurementService", channel=Channel.PROCUREMENT, **kwargs)
        self.inventory = inventory
        self._suppliers: list[Supplier] = []
        self._orders: list[PurchaseOrder] = []
        self.reload()

    def reload(self) -> None:
        self._suppliers = self._load_collection(SUPPLIERS_KEY, Supplier, seed_suppliers)
        self._orders = self._load_collection(PURCHASE_ORDERS_KEY, PurchaseOrder, list)

    # --- Suppliers ---

    def list_suppliers(self, category: Optional[str] = None) -> list[Supplier]:
        if category is None:
            return list(self._suppliers)
        return [s for s in self._suppliers if category in s.categories]

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        for supplier in self._suppliers:
            if supplier.id == supplier_id:
                return supplier
        return None

    def require_supplier(self, supplier_id: str) -> Supplier:
        supplier = self.get_supplier(supplier_id)
        if supplier is None:
            raise NotFoundError(f"Supplier not found: {supplier_id}")
        return supplier

    def add_supplier(
        self,
        name: str,
        contact_person: str,
        email: str,
        phone: str,
        address: str,
        categories: Optional[list[str]] = None,
        principal: Optional[Principal] = None,
    ) -> Supplier:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        if not name or not name.strip():
            raise ValidationError("Supplier name is required")
        if "@" not in email:
            raise ValidationError(f"Invalid supplier email: {email}")

        supplier = Supplier(
            id=new_id(),
            name=name.strip(),
            contact_person=contact_person,
            email=email,
            phone=phone,
            address=address,
            categories=list(categories or []),
        )
        suppliers = self._suppliers + [supplier]
        self._persist({SUPPLIERS_KEY: suppliers})
        self._suppliers = suppliers

        logger.info("Supplier added: %s", supplier.name)
        self._publish("supplier_added", {"supplier_id": supplier.id})
        return supplier

    def update_supplier(
        self, supplier_id: str, changes: dict, principal: Optional[Principal] = None
    ) -> Supplier:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        if "id" in changes:
            raise ValidationError("Supplier id cannot be changed")
        current = self.require_supplier(supplier_id)
        try:
            updated = replace(current, **changes)
        except TypeError as e:
            raise ValidationError(str(e)) from e

        suppliers = [updated if s.id == supplier_id else s for s in self._suppliers]
        self._persist({SUPPLIERS_KEY: suppliers})
        self._suppliers = suppliers

        logger.info("Supplier updated: %s", updated.name)
        self._publish("supplier_updated", {"supplier_id": supplier_id})
        return updated

    def delete_supplier(self, supplier_id: str, principal: Optional[Principal] = None) -> Supplier:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        supplier = self.require_supplier(supplier_id)
        suppliers = [s for s in self._suppliers if s.id != supplier_id]
        self._persist({SUPPLIERS_KEY: suppliers})
        self._suppliers = suppliers

        logger.info("Supplier deleted: %s", supplier.name)
        self._publish("supplier_deleted", {"supplier_id": supplier_id})
        return supplier

    # --- Purchase orders ---

    def list_orders(self, status: Optional[PurchaseOrderStatus] = None) -> list[PurchaseOrder]:
        """Orders, newest first."""
        if status is None:
            return list(self._orders)
        return [o for o in self._orders if o.status == status]

    def get_order(self, order_id: str) -> Optional[PurchaseOrder]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def require_order(self, order_id: str) -> PurchaseOrder:
        order = self.get_order(order_id)
        if order is None:
            raise NotFoundError(f"Purchase order not found: {order_id}")
        return order

    def next_po_number(self, year: Optional[int] = None) -> str:
        """LPO-<year>-<4 digits>, sequential within the year."""
        year = year or datetime.now(timezone.utc).year
        used = [0]
        for o in self._orders:
            m = _PO_NUMBER.match(o.po_number)
            if m and int(m.group(1)) == year:
                used.append(int(m.group(2)))
        return f"LPO-{year}-{max(used) + 1:04d}"

    def _save_order(self, updated: PurchaseOrder, action: str) -> PurchaseOrder:
        orders = [updated if o.id == updated.id else o for o in self._orders]
        self._persist({PURCHASE_ORDERS_KEY: orders})
        self._orders = orders
        self._publish(action, {"order_id": updated.id, "status": updated.status.value})
        return updated

    def create_order(
        self,
        department: str,
        supplier: str = "",
        order_type: str = "Local Purchase Order",
        notes: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> PurchaseOrder:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        if order_type not in PURCHASE_ORDER_TYPES:
            raise ValidationError(f"Unknown order type: {order_type}")

        order = PurchaseOrder(
            id=new_id(),
            po_number=self.next_po_number(),
            supplier=supplier,
            department=department,
            order_type=order_type,
            created_by=actor_name(principal),
            notes=notes,
        )
        orders = [order] + self._orders
        self._persist({PURCHASE_ORDERS_KEY: orders})
        self._orders = orders

        logger.info("Purchase order created: %s (%s)", order.po_number, department)
        self._publish("order_created", {"order_id": order.id, "status": order.status.value})
        return order

    def add_line(
        self,
        order_id: str,
        name: str,
        quantity: int,
        unit_price: float,
        unit: str = "pcs",
        item_id: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> PurchaseOrderLine:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status != PurchaseOrderStatus.DRAFT:
            raise InvalidStateError(f"Lines can only be added to draft orders ({order.po_number})")
        if not name or not name.strip():
            raise ValidationError("Line name is required")
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive: {quantity}")
        if unit_price <= 0:
            raise ValidationError(f"Unit price must be positive: {unit_price}")
        if item_id is not None:
            self.inventory.require_item(item_id)

        line = PurchaseOrderLine(
            id=new_id(),
            name=name.strip(),
            quantity=quantity,
            unit=unit,
            unit_price=round(unit_price, 2),
            total_price=round(quantity * unit_price, 2),
            item_id=item_id,
        )
        self._save_order(replace(order, lines=order.lines + [line]), "order_line_added")
        return line

    def remove_line(
        self, order_id: str, line_id: str, principal: Optional[Principal] = None
    ) -> PurchaseOrder:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status != PurchaseOrderStatus.DRAFT:
            raise InvalidStateError(f"Lines can only be removed from draft orders ({order.po_number})")
        lines = [line for line in order.lines if line.id != line_id]
        if len(lines) == len(order.lines):
            raise NotFoundError(f"Line not found: {line_id}")
        return self._save_order(replace(order, lines=lines), "order_line_removed")

    def order_total(self, order_id: str) -> float:
        order = self.require_order(order_id)
        return round(sum(line.total_price for line in order.lines), 2)

    def submit(self, order_id: str, principal: Optional[Principal] = None) -> PurchaseOrder:
        """Draft (or On Hold) -> Awaiting Approval."""
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status not in (PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.ON_HOLD):
            raise InvalidStateError(f"{order.po_number} cannot be submitted ({order.status.value})")
        if not order.supplier:
            raise ValidationError(f"{order.po_number} has no supplier")
        if not order.lines:
            raise ValidationError(f"{order.po_number} has no lines")

        updated = replace(order, status=PurchaseOrderStatus.AWAITING_APPROVAL, submitted_at=utc_now())
        logger.info("Purchase order submitted: %s", order.po_number)
        return self._save_order(updated, "order_submitted")

    def approve(self, principal: Principal, order_id: str) -> PurchaseOrder:
        authorize(principal, Permission.APPROVE_REQUEST_FINAL)
        order = self.require_order(order_id)
        if order.status != PurchaseOrderStatus.AWAITING_APPROVAL:
            raise InvalidStateError(f"{order.po_number} is not awaiting approval ({order.status.value})")

        updated = replace(
            order,
            status=PurchaseOrderStatus.APPROVED,
            approved_by=principal.name,
            approved_at=utc_now(),
        )
        logger.info("Purchase order approved: %s by %s", order.po_number, principal.name)
        return self._save_order(updated, "order_approved")

    def mark_sent(self, order_id: str, principal: Optional[Principal] = None) -> PurchaseOrder:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status != PurchaseOrderStatus.APPROVED:
            raise InvalidStateError(f"{order.po_number} must be approved before sending")
        logger.info("Purchase order sent to vendor: %s", order.po_number)
        return self._save_order(replace(order, status=PurchaseOrderStatus.SENT_TO_VENDOR), "order_sent")

    def receive(
        self,
        order_id: str,
        quantities: Optional[dict[str, int]] = None,
        expiry_dates: Optional[dict[str, str]] = None,
        principal: Optional[Principal] = None,
    ) -> PurchaseOrder:
        """Receives delivered lines; by default everything still outstanding.

        ``quantities`` maps line id to the quantity delivered now. Lines linked to
        an inventory item post a received transaction valued at unit price x quantity.
        """
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status not in _RECEIVABLE:
            raise InvalidStateError(f"{order.po_number} cannot be received ({order.status.value})")

        deliveries: dict[str, int] = {}
        for line in order.lines:
            outstanding = line.quantity - line.received_quantity
            delivered = outstanding if quantities is None else quantities.get(line.id, 0)
            if delivered < 0 or delivered > outstanding:
                raise ValidationError(
                    f"{line.name}: received {delivered}, outstanding {outstanding}"
                )
            deliveries[line.id] = delivered
        if quantities is not None:
            unknown = set(quantities) - set(deliveries)
            if unknown:
                raise NotFoundError(f"Lines not on {order.po_number}: {', '.join(sorted(unknown))}")
        if not any(deliveries.values()):
            raise ValidationError(f"{order.po_number}: nothing to receive")

        performed_by = actor_name(principal)
        lines = []
        for line in order.lines:
            delivered = deliveries[line.id]
            if delivered and line.item_id:
                self.inventory.record_transaction(
                    item_id=line.item_id,
                    type=TransactionType.RECEIVED,
                    quantity=delivered,
                    performed_by=performed_by,
                    notes=f"Received on {order.po_number}",
                    expiry_date=(expiry_dates or {}).get(line.id),
                    value=round(line.unit_price * delivered, 2),
                )
            lines.append(replace(line, received_quantity=line.received_quantity + delivered))

        complete = all(line.received_quantity >= line.quantity for line in lines)
        updated = replace(
            order,
            lines=lines,
            status=PurchaseOrderStatus.RECEIVED if complete else PurchaseOrderStatus.PARTIALLY_RECEIVED,
            received_at=utc_now() if complete else order.received_at,
        )
        logger.info("Purchase order %s: %s", order.po_number, updated.status.value)
        return self._save_order(updated, "order_received")

    def cancel(
        self,
        order_id: str,
        reason: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> PurchaseOrder:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status in _CLOSED:
            raise InvalidStateError(f"{order.po_number} cannot be cancelled ({order.status.value})")
        notes = f"{order.notes or ''} | Cancelled: {reason}" if reason else order.notes
        logger.info("Purchase order cancelled: %s", order.po_number)
        return self._save_order(
            replace(order, status=PurchaseOrderStatus.CANCELLED, notes=notes), "order_cancelled"
        )

    def hold(self, order_id: str, principal: Optional[Principal] = None) -> PurchaseOrder:
        authorize_optional(principal, Permission.MANAGE_INVENTORY)
        order = self.require_order(order_id)
        if order.status in _CLOSED or order.status == PurchaseOrderStatus.ON_HOLD:
            raise InvalidStateError(f"{order.po_number} cannot be put on hold ({order.status.value})")
        logger.info("Purchase order on hold: %s", order.po_number)
        return self._save_order(replace(order, status=PurchaseOrderStatus.ON_HOLD), "order_on_hold")
