"""
Hotel Stores Data MCP Server

Read-only tools over inventory, stock transactions, assets and requests.
The storage backend comes from the STORES_* environment settings.
"""

import json
import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
import env_loader  # noqa: F401

from dataclasses import asdict, is_dataclass
from typing import Dict, List, Optional

from mcp.server import Server
from mcp.types import Tool, TextContent

from src.models.settings import StoresSettings
from src.models.stores import RequestStatus, TransactionType
from src.services.errors import StoresError
from src.services.stores_app import HotelStores

app = Server("hotel-stores-data")

_app_state: Dict[str, Optional[HotelStores]] = {"stores": None}


def set_stores(stores: Optional[HotelStores]) -> None:
    _app_state["stores"] = stores


def _stores() -> HotelStores:
    if _app_state["stores"] is None:
        _app_state["stores"] = HotelStores(StoresSettings.from_env())
    return _app_state["stores"]


def _to_json(obj):
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, list):
        return [_to_json(i) for i in obj]
    return obj


def _result(data):
    return [TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False, default=str))]


@app.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(name="list_inventory", description="List inventory items, optionally by category",
             inputSchema={"type": "object", "properties": {"category": {"type": "string"}}}),
        Tool(name="get_item", description="Get one inventory item with its stock level",
             inputSchema={"type": "object", "properties": {"item_id": {"type": "string"}}, "required": ["item_id"]}),
        Tool(name="list_low_stock_items", description="List items at or below their minimum stock level",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_expiring_items", description="List items expiring within the given number of days",
             inputSchema={"type": "object", "properties": {"within_days": {"type": "integer"}}}),
        Tool(name="get_inventory_summary", description="Totals, category counts and inventory value",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_transactions", description="Stock transactions, newest first",
             inputSchema={"type": "object", "properties": {"item_id": {"type": "string"}, "type": {"type": "string"}}}),
        Tool(name="get_asset_summary", description="Asset counts by status and total value",
             inputSchema={"type": "object", "properties": {}}),
        Tool(name="list_requests", description="Requests, optionally filtered by status or department",
             inputSchema={"type": "object", "properties": {"status": {"type": "string"}, "department": {"type": "string"}}}),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: dict) -> List[TextContent]:
    handlers = {
        "list_inventory": lambda a: list_inventory(a.get("category")),
        "get_item": lambda a: get_item(a["item_id"]),
        "list_low_stock_items": lambda a: list_low_stock_items(),
        "list_expiring_items": lambda a: list_expiring_items(a.get("within_days")),
        "get_inventory_summary": lambda a: get_inventory_summary(),
        "list_transactions": lambda a: list_transactions(a.get("item_id"), a.get("type")),
        "get_asset_summary": lambda a: get_asset_summary(),
        "list_requests": lambda a: list_requests(a.get("status"), a.get("department")),
    }
    handler = handlers.get(name)
    if not handler:
        raise ValueError(f"Unknown tool: {name}")
    return _result(handler(arguments))


# --- Implementation ---

def list_inventory(category: Optional[str] = None) -> Dict:
    items = _stores().inventory.list_items(category)
    return {"success": True, "count": len(items), "data": _to_json(items)}


def get_item(item_id: str) -> Dict:
    try:
        inventory = _stores().inventory
        item = inventory.require_item(item_id)
        data = _to_json(item)
        data["stock_level"] = inventory.get_stock_level(item_id).value
        return {"success": True, "data": data}
    except StoresError as e:
        return {"success": False, "error": str(e)}


def list_low_stock_items() -> Dict:
    alerts = _stores().inventory.get_low_stock_alerts()
    alerts.sort(key=lambda a: a.current_stock)
    return {"success": True, "count": len(alerts), "data": _to_json(alerts)}


def list_expiring_items(within_days: Optional[int] = None) -> Dict:
    items = _stores().inventory.get_expiring_items(within_days)
    return {"success": True, "count": len(items), "data": _to_json(items)}


def get_inventory_summary() -> Dict:
    return {"success": True, "data": _to_json(_stores().inventory.get_summary())}


def list_transactions(item_id: Optional[str] = None, type: Optional[str] = None) -> Dict:
    try:
        tx_type = TransactionType(type) if type else None
    except ValueError:
        return {"success": False, "error": f"Unknown transaction type: {type}"}
    transactions = _stores().inventory.list_transactions(item_id, tx_type)
    return {"success": True, "count": len(transactions), "data": _to_json(transactions)}


def get_asset_summary() -> Dict:
    return {"success": True, "data": _to_json(_stores().assets.get_summary())}


def list_requests(status: Optional[str] = None, department: Optional[str] = None) -> Dict:
    try:
        request_status = RequestStatus(status) if status else None
    except ValueError:
        return {"success": False, "error": f"Unknown request status: {status}"}
    requests = _stores().requests.list_requests(request_status, department)
    return {"success": True, "count": len(requests), "data": _to_json(requests)}


if __name__ == "__main__":
    import asyncio
    from mcp.server.stdio import stdio_server

    async def run():
        async with stdio_server() as (read, write):
            await app.run(read, write, app.create_initialization_options())

    asyncio.run(run())
