"""
Service Facade Module
"""
from .inventory_service import InventoryService, ServiceResult, build_service

__all__ = ["InventoryService", "ServiceResult", "build_service"]
