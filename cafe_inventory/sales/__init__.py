"""
Sales Ingestion Module
"""
from .menu_keys import build_menu_key, clean_name, virtual_keys
from .ingest import SalesIngestor, SalesIngestResult, SalesLine, aggregate_sales

__all__ = [
    "build_menu_key",
    "clean_name",
    "virtual_keys",
    "SalesIngestor",
    "SalesIngestResult",
    "SalesLine",
    "aggregate_sales",
]
