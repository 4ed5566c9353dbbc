"""HotelStores - wires storage, change bus and services into one application.

Also the error boundary for callers: ``attempt`` runs an operation, records a
user-facing notification and returns None instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, TypeVar

from src.models.settings import StoresSettings
from src.models.stores import Notification
from src.services.asset_service import AssetService
from src.services.change_bus import ChangeBus
from src.services.errors import ValidationError
from src.services.inventory_service import InventoryService
from src.services.procurement_service import ProcurementService
from src.services.report_service import ReportService
from src.services.request_service import RequestService
from src.services.stock_auditor import StockAuditor
from src.services.storage import (
    CollectionStorage,
    DynamoDBStorage,
    InMemoryStorage,
    JsonFileStorage,
)
from src.services.user_service import UserService

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_NOTIFICATIONS = 50


def build_storage(settings: StoresSettings, dynamodb_resource: Optional[Any] = None) -> CollectionStorage:
    """Creates the storage backend named by settings.storage_backend."""
    backend = settings.storage_backend
    if backend == "memory":
        return InMemoryStorage()
    if backend == "json":
        return JsonFileStorage(settings.data_dir)
    if backend == "dynamodb":
        return DynamoDBStorage(
            table_name=settings.table_name,
            region_name=settings.region_name,
            dynamodb_resource=dynamodb_resource,
        )
    raise ValidationError(f"Unknown storage backend: {backend}")


class HotelStores:
    """One application instance. Instances sharing storage and a bus stay in sync."""

    def __init__(
        self,
        settings: Optional[StoresSettings] = None,
        storage: Optional[CollectionStorage] = None,
        bus: Optional[ChangeBus] = None,
        s3_client: Optional[Any] = None,
        dynamodb_resource: Optional[Any] = None,
        use_seed_data: bool = True,
    ):
        self.settings = settings or StoresSettings()
        self.storage = storage or build_storage(self.settings, dynamodb_resource)
        self.bus = bus or ChangeBus()

        common = {"storage": self.storage, "bus": self.bus, "use_seed_data": use_seed_data}
        self.inventory = InventoryService(settings=self.settings, **common)
        self.assets = AssetService(**common)
        self.users = UserService(**common)
        self.requests = RequestService(self.inventory, self.assets, **common)
        self.procurement = ProcurementService(self.inventory, **common)
        self.reports = ReportService(
            self.inventory, self.assets, settings=self.settings, s3_client=s3_client, **common
        )
        self.auditor = StockAuditor()

        self._notifications: list[Notification] = []
        logger.info(
            "HotelStores ready for %s (storage: %s)",
            self.settings.organization.name, type(self.storage).__name__,
        )

    @property
    def services(self) -> list:
        return [self.inventory, self.assets, self.users, self.requests, self.procurement, self.reports]

    def reload_all(self) -> None:
        for service in self.services:
            service.reload()

    def close(self) -> None:
        for service in self.services:
            service.close()

    # --- Error boundary ---

    def attempt(
        self,
        operation: Callable[..., T],
        *args: Any,
        success: Optional[tuple[str, str]] = None,
        failure_title: str = "Error",
        **kwargs: Any,
    ) -> Optional[T]:
        """Runs an operation for a user-facing caller.

        On success a default notification is recorded (when ``success`` is given)
        and the result returned. On any failure the error is logged, a destructive
        notification is recorded and None is returned; service state is unchanged.
        """
        try:
            result = operation(*args, **kwargs)
        except Exception as e:
            logger.exception("Operation %s failed", getattr(operation, "__name__", operation))
            self.notify(failure_title, str(e) or type(e).__name__, variant="destructive")
            return None

        if success is not None:
            self.notify(*success)
        return result

    def notify(self, title: str, description: str, variant: str = "default") -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self._notifications = ([notification] + self._notifications)[:MAX_NOTIFICATIONS]
        return notification

    def notifications(self) -> list[Notification]:
        """Newest first."""
        return list(self._notifications)

    def clear_notifications(self) -> None:
        self._notifications = []

    def audit_stock(self) -> dict:
        return self.auditor.audit(self.inventory)
