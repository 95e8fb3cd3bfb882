"""Discovered-inventory ingestion."""

from infragraph.ingest.ingester import IngestResult, InventoryIngester
from infragraph.ingest.inventory import (
    DiscoveredItem,
    Inventory,
    InventoryError,
    load_inventory,
    parse_inventory,
)

__all__ = [
    "DiscoveredItem",
    "Inventory",
    "InventoryError",
    "InventoryIngester",
    "IngestResult",
    "load_inventory",
    "parse_inventory",
]
