"""Asset Service - durable equipment, check-out/check-in and status lifecycle."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Union

from src.models.seed import seed_assets, seed_checkout_history
from src.models.stores import (
    Asset,
    AssetCondition,
    AssetStatus,
    AssetSummary,
    CheckoutRecord,
    Permission,
    new_id,
    utc_now,
)
from src.services.authorization import Principal, authorize_optional
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import InvalidStateError, NotFoundError, ValidationError
from src.services.summaries import summarize_assets

logger = logging.getLogger(__name__)

ASSETS_KEY = "assets"
CHECKOUT_HISTORY_KEY = "checkout-history"

_CLEARED_ASSIGNMENT = {"assigned_to": None, "checkout_date": None, "expected_return_date": None}

# Conditions that send a returned asset straight back to the available pool
_SERVICEABLE = (AssetCondition.EXCELLENT, AssetCondition.GOOD)


class AssetService(BaseService):
    """Owns assets and their checkout history."""

    def __init__(self, **kwargs: Any):
        super().__init__(service_name="AssetService", channel=Channel.ASSETS, **kwargs)
        self._assets: list[Asset] = []
        self._history: list[CheckoutRecord] = []
        self.reload()

    def reload(self) -> None:
        self._assets = self._load_collection(ASSETS_KEY, Asset, seed_assets)
        self._history = self._load_collection(
            CHECKOUT_HISTORY_KEY, CheckoutRecord, seed_checkout_history
        )

    def _commit(self, assets: list[Asset], history: Optional[list[CheckoutRecord]] = None) -> None:
        collections: dict[str, list] = {ASSETS_KEY: assets}
        if history is not None:
            collections[CHECKOUT_HISTORY_KEY] = history
        self._persist(collections)
        self._assets = assets
        if history is not None:
            self._history = history

    def _replace_asset(self, updated: Asset) -> list[Asset]:
        return [updated if a.id == updated.id else a for a in self._assets]

    def _close_checkout(
        self, asset_id: str, condition: Optional[AssetCondition], trail: str
    ) -> list[CheckoutRecord]:
        """History with the asset's open checkout stamped as returned now."""
        now = utc_now()
        history = []
        for record in self._history:
            if record.asset_id == asset_id and record.returned_date is None:
                record = replace(
                    record,
                    returned_date=now,
                    return_condition=condition,
                    notes=f"{record.notes or ''} | {trail}",
                )
            history.append(record)
        return history

    # --- CRUD ---

    def list_assets(self, status: Optional[AssetStatus] = None) -> list[Asset]:
        if status is None:
            return list(self._assets)
        return [a for a in self._assets if a.status == status]

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        for asset in self._assets:
            if asset.id == asset_id:
                return asset
        return None

    def require_asset(self, asset_id: str) -> Asset:
        asset = self.get_asset(asset_id)
        if asset is None:
            raise NotFoundError(f"Asset not found: {asset_id}")
        return asset

    def add_asset(
        self,
        name: str,
        category: str,
        location: str,
        purchase_date: str,
        purchase_value: float,
        current_value: Optional[float] = None,
        condition: Union[AssetCondition, str] = AssetCondition.GOOD,
        principal: Optional[Principal] = None,
    ) -> Asset:
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        if not name or not name.strip():
            raise ValidationError("Asset name is required")
        if purchase_value < 0:
            raise ValidationError(f"Purchase value cannot be negative: {purchase_value}")

        asset = Asset(
            id=new_id(),
            name=name.strip(),
            category=category,
            status=AssetStatus.AVAILABLE,
            location=location,
            purchase_date=purchase_date,
            purchase_value=round(purchase_value, 2),
            current_value=round(current_value if current_value is not None else purchase_value, 2),
            condition=AssetCondition(condition),
        )
        self._commit(self._assets + [asset])

        logger.info("Asset added: %s", asset.name)
        self._publish("asset_added", {"asset_id": asset.id})
        return asset

    def update_asset(
        self, asset_id: str, changes: dict, principal: Optional[Principal] = None
    ) -> Asset:
        """Edits descriptive fields. Status and assignment go through the lifecycle methods."""
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        locked = {"id", "status", "assigned_to", "checkout_date", "expected_return_date"} & set(changes)
        if locked:
            raise ValidationError(f"Fields cannot be edited directly: {', '.join(sorted(locked))}")
        current = self.require_asset(asset_id)
        try:
            updated = replace(current, **changes)
        except TypeError as e:
            raise ValidationError(str(e)) from e
        if "condition" in changes:
            updated = replace(updated, condition=AssetCondition(changes["condition"]))

        self._commit(self._replace_asset(updated))
        logger.info("Asset updated: %s", updated.name)
        self._publish("asset_updated", {"asset_id": asset_id})
        return updated

    def delete_asset(self, asset_id: str, principal: Optional[Principal] = None) -> Asset:
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        asset = self.require_asset(asset_id)
        if asset.status == AssetStatus.CHECKED_OUT:
            raise InvalidStateError(f"{asset.name} is checked out and cannot be deleted")

        self._commit([a for a in self._assets if a.id != asset_id])
        logger.info("Asset deleted: %s", asset.name)
        self._publish("asset_deleted", {"asset_id": asset_id})
        return asset

    # --- Lifecycle ---

    def check_out(
        self,
        asset_id: str,
        assigned_to: str,
        expected_return_date: Optional[str] = None,
        notes: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> CheckoutRecord:
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        asset = self.require_asset(asset_id)
        if asset.status != AssetStatus.AVAILABLE:
            raise InvalidStateError(
                f"{asset.name} is not available for checkout (status: {asset.status.value})"
            )

        now = utc_now()
        updated = replace(
            asset,
            status=AssetStatus.CHECKED_OUT,
            assigned_to=assigned_to,
            checkout_date=now,
            expected_return_date=expected_return_date,
        )
        record = CheckoutRecord(
            id=new_id(),
            asset_id=asset_id,
            asset_name=asset.name,
            checked_out_by=assigned_to,
            checked_out_date=now,
            notes=notes,
        )
        self._commit(self._replace_asset(updated), [record] + self._history)

        logger.info("Asset checked out: %s -> %s", asset.name, assigned_to)
        self._publish("asset_checked_out", {"asset_id": asset_id, "checkout_id": record.id})
        return record

    def check_in(
        self,
        asset_id: str,
        condition: Union[AssetCondition, str] = AssetCondition.GOOD,
        notes: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> Asset:
        """Returns a checked-out asset; fair or poor condition sends it to maintenance."""
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        condition = AssetCondition(condition)
        asset = self.require_asset(asset_id)
        if asset.status != AssetStatus.CHECKED_OUT:
            raise InvalidStateError(f"{asset.name} is not checked out")

        next_status = AssetStatus.AVAILABLE if condition in _SERVICEABLE else AssetStatus.MAINTENANCE
        updated = replace(
            asset,
            status=next_status,
            condition=condition,
            last_condition_note=notes or f"Checked in with {condition.value} condition",
            **_CLEARED_ASSIGNMENT,
        )

        trail = f"Return condition: {condition.value}"
        if notes:
            trail += f" | Note: {notes}"
        history = self._close_checkout(asset_id, condition, trail)

        self._commit(self._replace_asset(updated), history)
        logger.info("Asset checked in: %s (%s -> %s)", asset.name, condition.value, next_status.value)
        self._publish("asset_checked_in", {"asset_id": asset_id})
        return updated

    def change_status(
        self,
        asset_id: str,
        new_status: Union[AssetStatus, str],
        notes: Optional[str] = None,
        principal: Optional[Principal] = None,
    ) -> Asset:
        """Moves an asset between available, maintenance and retired.

        A checked-out asset may only be released to available; checking out goes
        through check_out so the history stays complete.
        """
        authorize_optional(principal, Permission.MANAGE_ASSETS)
        new_status = AssetStatus(new_status)
        asset = self.require_asset(asset_id)
        if new_status == AssetStatus.CHECKED_OUT:
            raise InvalidStateError("Use check_out to assign an asset")
        if asset.status == AssetStatus.CHECKED_OUT and new_status != AssetStatus.AVAILABLE:
            raise InvalidStateError(
                "Checked-out assets must be checked in before changing to other statuses"
            )

        updated = replace(
            asset,
            status=new_status,
            status_change_date=utc_now(),
            status_change_note=notes or f"Status changed to {new_status.value}",
            **_CLEARED_ASSIGNMENT,
        )

        history = None
        if asset.status == AssetStatus.CHECKED_OUT:
            history = self._close_checkout(asset_id, None, f"Released: {updated.status_change_note}")
        self._commit(self._replace_asset(updated), history)
        logger.info("Asset status changed: %s %s -> %s", asset.name, asset.status.value, new_status.value)
        self._publish("asset_status_changed", {"asset_id": asset_id, "status": new_status.value})
        return updated

    # --- History & views ---

    def list_checkout_history(self, asset_id: Optional[str] = None) -> list[CheckoutRecord]:
        """Checkout records, newest first."""
        if asset_id is None:
            return list(self._history)
        return [r for r in self._history if r.asset_id == asset_id]

    def open_checkout(self, asset_id: str) -> Optional[CheckoutRecord]:
        for record in self._history:
            if record.asset_id == asset_id and record.returned_date is None:
                return record
        return None

    def overdue_checkouts(self, reference: Optional[date] = None) -> list[Asset]:
        """Checked-out assets whose expected return date is before the reference day."""
        reference = reference or date.today()
        return [
            a
            for a in self._assets
            if a.status == AssetStatus.CHECKED_OUT
            and a.expected_return_date
            and date.fromisoformat(a.expected_return_date[:10]) < reference
        ]

    def get_summary(self) -> AssetSummary:
        return summarize_assets(self._assets)
