"""
Cafe Inventory Reconciliation & Reorder Engine
"""

__version__ = "1.0.0"
