"""Report Service - tabular reports over inventory and assets, CSV exports.

Every report is at most 10 rows of (name, value, detail). The newest
generated reports are kept as a short recent-reports list. CSV exports can
be published to the reports bucket under reports/<type>/.
"""

from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from src.models.settings import StoresSettings
from src.models.stores import (
    AssetStatus,
    Receipt,
    RecentReport,
    Report,
    ReportRow,
    TransactionType,
    new_id,
    utc_now,
)
from src.services.asset_service import AssetService
from src.services.base_service import BaseService
from src.services.change_bus import Channel
from src.services.errors import StorageError, ValidationError
from src.services.inventory_service import InventoryService
from src.services.summaries import days_until_expiry, is_low_stock

logger = logging.getLogger(__name__)

RECENT_REPORTS_KEY = "recent-reports"
MAX_ROWS = 10
TREND_WINDOW_DAYS = 30

# report type -> (title, value label)
REPORT_TYPES: dict[str, tuple[str, str]] = {
    "inventory-status": ("Inventory Status Report", "Quantity in stock"),
    "low-stock": ("Low Stock Report", "Current quantity"),
    "asset-status": ("Asset Status Report", "Available (1) / Unavailable (0)"),
    "consumption-trends": ("Usage Report", "Units used recently"),
    "asset-utilization": ("Asset Utilization", "Usage percentage"),
    "expiry-tracking": ("Expiring Items Report", "Days until expiry"),
}


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReportService(BaseService):
    """Builds reports from the inventory and asset services."""

    def __init__(
        self,
        inventory: InventoryService,
        assets: AssetService,
        settings: Optional[StoresSettings] = None,
        s3_client: Optional[Any] = None,
        **kwargs: Any,
    ):
        super().__init__(service_name="ReportService", channel=Channel.REPORTS, **kwargs)
        self.inventory = inventory
        self.assets = assets
        self.settings = settings or StoresSettings()
        self.s3 = s3_client or boto3.client("s3", region_name=self.settings.region_name)
        self._recent: list[RecentReport] = []
        self.reload()

    def reload(self) -> None:
        self._recent = self._load_collection(RECENT_REPORTS_KEY, RecentReport, list)

    # --- Generation ---

    def generate_report(
        self,
        report_type: str,
        title: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Report:
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Unknown report type: {report_type}")
        now = now or datetime.now(timezone.utc)

        builders = {
            "inventory-status": self._inventory_status,
            "low-stock": self._low_stock,
            "asset-status": self._asset_status,
            "consumption-trends": lambda: self._consumption_trends(now),
            "asset-utilization": lambda: self._asset_utilization(now),
            "expiry-tracking": lambda: self._expiry_tracking(now.date()),
        }
        report = Report(
            report_id=new_id(),
            report_type=report_type,
            title=title or REPORT_TYPES[report_type][0],
            rows=builders[report_type]()[:MAX_ROWS],
            generated_at=now.isoformat(),
        )

        entry = RecentReport(report.report_id, report_type, report.title, report.generated_at)
        recent = ([entry] + self._recent)[: self.settings.recent_reports_limit]
        self._persist({RECENT_REPORTS_KEY: recent})
        self._recent = recent

        logger.info("Report generated: %s (%d rows)", report.title, len(report.rows))
        self._publish("report_generated", {"report_id": report.report_id, "type": report_type})
        return report

    def recent_reports(self) -> list[RecentReport]:
        return list(self._recent)

    def _inventory_status(self) -> list[ReportRow]:
        return [
            ReportRow(i.name, i.quantity, f"{i.category} ({i.unit})")
            for i in self.inventory.list_items()
        ]

    def _low_stock(self) -> list[ReportRow]:
        return [
            ReportRow(i.name, i.quantity, f"Min required: {i.min_stock_level} {i.unit}")
            for i in self.inventory.list_items()
            if is_low_stock(i)
        ]

    def _asset_status(self) -> list[ReportRow]:
        rows = []
        for a in self.assets.list_assets():
            available = a.status == AssetStatus.AVAILABLE
            detail = "Available" if available else f"Unavailable ({a.status.value})"
            rows.append(ReportRow(a.name, 1 if available else 0, detail))
        return rows

    def _consumption_trends(self, now: datetime) -> list[ReportRow]:
        """Used and expired units per item over the trend window, highest first."""
        since = now - timedelta(days=TREND_WINDOW_DAYS)
        consumed: dict[str, int] = {}
        for tx in self.inventory.list_transactions():
            if tx.type not in (TransactionType.USED, TransactionType.EXPIRED):
                continue
            if _parse_timestamp(tx.date) < since:
                continue
            consumed[tx.item_id] = consumed.get(tx.item_id, 0) + abs(tx.quantity)

        rows = []
        for item in self.inventory.list_items():
            units = consumed.get(item.id, 0)
            if units:
                rows.append(ReportRow(item.name, units, f"{item.unit} used in the last {TREND_WINDOW_DAYS} days"))
        rows.sort(key=lambda r: r.value, reverse=True)
        return rows

    def _asset_utilization(self, now: datetime) -> list[ReportRow]:
        """Share of the trend window each asset spent checked out, in percent."""
        window_start = now - timedelta(days=TREND_WINDOW_DAYS)
        window = (now - window_start).total_seconds()
        rows = []
        for asset in self.assets.list_assets():
            busy = 0.0
            for record in self.assets.list_checkout_history(asset.id):
                start = max(_parse_timestamp(record.checked_out_date), window_start)
                end = min(_parse_timestamp(record.returned_date) if record.returned_date else now, now)
                if end > start:
                    busy += (end - start).total_seconds()
            percent = round(min(busy / window, 1.0) * 100, 1)
            rows.append(ReportRow(asset.name, percent, f"{asset.category} - {asset.location}"))
        return rows

    def _expiry_tracking(self, today: date) -> list[ReportRow]:
        dated = []
        for item in self.inventory.list_items():
            days = days_until_expiry(item, today)
            if days is not None:
                dated.append((days, item))
        dated.sort(key=lambda pair: pair[0])
        return [
            ReportRow(item.name, days, "EXPIRED" if days <= 0 else f"Expires in {days} days")
            for days, item in dated
        ]

    # --- Export ---

    def export_csv(self, report: Report) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["name", REPORT_TYPES[report.report_type][1], "detail"])
        for row in report.rows:
            writer.writerow([row.name, row.value, row.detail])
        return buffer.getvalue()

    def receipt_to_csv(self, receipt: Receipt) -> str:
        """Issue receipt as CSV: header block followed by the issued lines."""
        org = self.settings.organization
        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow([org.name, org.address, org.phone])
        writer.writerow(["Receipt", receipt.id])
        writer.writerow(["Request", receipt.request_id])
        writer.writerow(["Date", receipt.issue_date])
        writer.writerow(["Department", receipt.department])
        writer.writerow(["Requested by", receipt.requested_by])
        writer.writerow(["Approved by", receipt.approved_by])
        writer.writerow(["Issued by", receipt.issued_by])
        writer.writerow([])
        writer.writerow(["item", "type", "quantity"])
        for line in receipt.lines:
            writer.writerow([line.name, line.type.value, line.quantity or 1])
        if receipt.notes:
            writer.writerow([])
            writer.writerow(["Notes", receipt.notes])
        return buffer.getvalue()

    def publish_report(self, report: Report) -> str:
        """Uploads the CSV export to the reports bucket and returns the object key."""
        bucket = self.settings.reports_bucket
        if not bucket:
            raise ValidationError("No reports bucket configured (STORES_REPORTS_BUCKET)")

        stamp = utc_now()[:19].replace(":", "-")
        key = f"reports/{report.report_type}/{stamp}-{report.report_id}.csv"
        try:
            self.s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=self.export_csv(report).encode("utf-8"),
                ContentType="text/csv",
            )
        except ClientError as e:
            logger.error("S3 upload error [%s/%s]: %s", bucket, key, e)
            raise StorageError(f"Could not publish report {report.report_id}") from e

        logger.info("Report published: s3://%s/%s", bucket, key)
        return key
