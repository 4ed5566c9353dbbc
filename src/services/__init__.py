from src.services.asset_service import AssetService
from src.services.base_service import BaseService
from src.services.change_bus import ChangeBus, Channel
from src.services.inventory_service import InventoryService
from src.services.procurement_service import ProcurementService
from src.services.report_service import ReportService
from src.services.request_service import RequestService
from src.services.stock_auditor import StockAuditor
from src.services.stores_app import HotelStores
from src.services.user_service import UserService

__all__ = [
    "AssetService",
    "BaseService",
    "ChangeBus",
    "Channel",
    "HotelStores",
    "InventoryService",
    "ProcurementService",
    "ReportService",
    "RequestService",
    "StockAuditor",
    "UserService",
]
