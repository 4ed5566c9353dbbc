"""Request Service - department requests for stock and assets.

Workflow:
    pending -> department-approved -> approved -> fulfilled
    pending -> approved                (holder of the final approval capability)
    pending / department-approved -> rejected

Fulfillment issues the goods through the inventory or asset service and
produces an immutable receipt.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional, Union

from src.models.seed import seed_receipts, seed_requests
from src.models.stores import (
    ItemType,
    Permission,
    Priority,
    Receipt,
    ReceiptLine,
    RequestItem,
    RequestStatus,
    TransactionType,
    new_id,
    utc_now,
)
from src.services.asset_service import AssetService
from src.services.authorization import Principal, authorize, has_permission
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from src.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

REQUESTS_KEY = "requests"
RECEIPTS_KEY = "receipts"


class RequestService(BaseService):
    """Owns requests and receipts; issues goods through the inventory and asset services."""

    def __init__(self, inventory: InventoryService, assets: AssetService, **kwargs: Any):
        super().__init__(service_name="RequestService", channel=Channel.REQUESTS, **kwargs)
        self.inventory = inventory
        self.assets = assets
        self._requests: list[RequestItem] = []
        self._receipts: list[Receipt] = []
        self.reload()

    def reload(self) -> None:
        self._requests = self._load_collection(REQUESTS_KEY, RequestItem, seed_requests)
        self._receipts = self._load_collection(RECEIPTS_KEY, Receipt, seed_receipts)

    def _save_request(self, updated: RequestItem, action: str) -> RequestItem:
        requests = [updated if r.id == updated.id else r for r in self._requests]
        self._persist({REQUESTS_KEY: requests})
        self._requests = requests
        self._publish(action, {"request_id": updated.id, "status": updated.status.value})
        return updated

    # --- Queries ---

    def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        department: Optional[str] = None,
    ) -> list[RequestItem]:
        """Requests, newest first."""
        return [
            r
            for r in self._requests
            if (status is None or r.status == status)
            and (department is None or r.department == department)
        ]

    def get_request(self, request_id: str) -> Optional[RequestItem]:
        for r in self._requests:
            if r.id == request_id:
                return r
        return None

    def require_request(self, request_id: str) -> RequestItem:
        request = self.get_request(request_id)
        if request is None:
            raise NotFoundError(f"Request not found: {request_id}")
        return request

    def list_receipts(self) -> list[Receipt]:
        return list(self._receipts)

    def get_receipt(self, receipt_id: str) -> Optional[Receipt]:
        for receipt in self._receipts:
            if receipt.id == receipt_id:
                return receipt
        return None

    def receipt_for_request(self, request_id: str) -> Optional[Receipt]:
        for receipt in self._receipts:
            if receipt.request_id == request_id:
                return receipt
        return None

    # --- Workflow ---

    def create_request(
        self,
        principal: Principal,
        item_id: str,
        item_type: Union[ItemType, str],
        reason: str,
        quantity: Optional[int] = None,
        priority: Union[Priority, str] = Priority.MEDIUM,
        department: Optional[str] = None,
    ) -> RequestItem:
        authorize(principal, Permission.CREATE_REQUEST)
        item_type = ItemType(item_type)
        if not reason or not reason.strip():
            raise ValidationError("A reason is required")

        if item_type == ItemType.INVENTORY:
            if quantity is None or quantity <= 0:
                raise ValidationError("Inventory requests need a positive quantity")
            item_name = self.inventory.require_item(item_id).name
        else:
            item_name = self.assets.require_asset(item_id).name
            quantity = None

        request = RequestItem(
            id=new_id(),
            item_id=item_id,
            item_type=item_type,
            item_name=item_name,
            requested_by=principal.name,
            reason=reason.strip(),
            department=department or principal.department,
            quantity=quantity,
            priority=Priority(priority),
        )
        requests = [request] + self._requests
        self._persist({REQUESTS_KEY: requests})
        self._requests = requests

        logger.info(
            "Request created: %s by %s (%s, %s)",
            item_name, principal.name, request.department, request.priority.value,
        )
        self._publish("request_created", {"request_id": request.id, "status": request.status.value})
        return request

    def approve_department(self, principal: Principal, request_id: str) -> RequestItem:
        """First approval step by the requesting department's head."""
        authorize(principal, Permission.APPROVE_REQUEST_DEPARTMENT)
        request = self.require_request(request_id)
        if request.status != RequestStatus.PENDING:
            raise InvalidStateError(
                f"Only pending requests can be department-approved (status: {request.status.value})"
            )

        updated = replace(
            request,
            status=RequestStatus.DEPARTMENT_APPROVED,
            department_approved_by=principal.name,
            department_approval_date=utc_now(),
        )
        logger.info("Request %s department-approved by %s", request_id, principal.name)
        return self._save_request(updated, "request_department_approved")

    def approve(self, principal: Principal, request_id: str) -> RequestItem:
        """Final approval; the department step may be skipped."""
        authorize(principal, Permission.APPROVE_REQUEST_FINAL)
        request = self.require_request(request_id)
        if request.status not in (RequestStatus.PENDING, RequestStatus.DEPARTMENT_APPROVED):
            raise InvalidStateError(f"Request cannot be approved (status: {request.status.value})")

        updated = replace(
            request,
            status=RequestStatus.APPROVED,
            approved_by=principal.name,
            approval_date=utc_now(),
        )
        logger.info("Request %s approved by %s", request_id, principal.name)
        return self._save_request(updated, "request_approved")

    def reject(self, principal: Principal, request_id: str, reason: str) -> RequestItem:
        """Rejects a pending or department-approved request.

        Pending requests can be rejected at either approval level; once the
        department has approved, only the final approver can reject.
        """
        request = self.require_request(request_id)
        if request.status == RequestStatus.PENDING:
            if not (
                has_permission(principal, Permission.APPROVE_REQUEST_DEPARTMENT)
                or has_permission(principal, Permission.APPROVE_REQUEST_FINAL)
            ):
                raise PermissionDeniedError(principal.name, Permission.APPROVE_REQUEST_DEPARTMENT.value)
        elif request.status == RequestStatus.DEPARTMENT_APPROVED:
            authorize(principal, Permission.APPROVE_REQUEST_FINAL)
        else:
            raise InvalidStateError(f"Request cannot be rejected (status: {request.status.value})")
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        updated = replace(
            request,
            status=RequestStatus.REJECTED,
            approved_by=principal.name,
            approval_date=utc_now(),
            notes=reason.strip(),
        )
        logger.info("Request %s rejected by %s: %s", request_id, principal.name, reason)
        return self._save_request(updated, "request_rejected")

    def fulfill(self, principal: Principal, request_id: str, notes: Optional[str] = None) -> Receipt:
        """Issues the requested goods and returns the receipt.

        Inventory requests post a used transaction; asset requests check the
        asset out to the requester. If issuing fails, the request is unchanged.
        """
        authorize(principal, Permission.FULFILL_REQUEST)
        request = self.require_request(request_id)
        if request.status != RequestStatus.APPROVED:
            raise InvalidStateError(
                f"Request must be approved before fulfillment (status: {request.status.value})"
            )

        issue_note = f"Issued for request {request.id}"
        if request.item_type == ItemType.INVENTORY:
            self.inventory.require_item(request.item_id)
            self.inventory.record_transaction(
                item_id=request.item_id,
                type=TransactionType.USED,
                quantity=request.quantity or 0,
                performed_by=principal.name,
                notes=issue_note,
            )
        else:
            self.assets.check_out(request.item_id, request.requested_by, notes=issue_note)

        now = utc_now()
        updated = replace(
            request,
            status=RequestStatus.FULFILLED,
            fulfilled_by=principal.name,
            fulfillment_date=now,
            notes=f"{request.notes or ''} | Fulfillment note: {notes}" if notes else request.notes,
        )
        receipt = Receipt(
            id=new_id(),
            request_id=request.id,
            lines=(ReceiptLine(request.item_name, request.item_type, request.quantity),),
            requested_by=request.requested_by,
            approved_by=request.approved_by or "Unknown",
            issued_by=principal.name,
            department=request.department,
            issue_date=now,
            notes=notes,
        )

        requests = [updated if r.id == request_id else r for r in self._requests]
        receipts = [receipt] + self._receipts
        self._persist({REQUESTS_KEY: requests, RECEIPTS_KEY: receipts})
        self._requests, self._receipts = requests, receipts

        logger.info("Request %s fulfilled by %s (receipt %s)", request_id, principal.name, receipt.id)
        self._publish("request_fulfilled", {"request_id": request_id, "receipt_id": receipt.id})
        return receipt
