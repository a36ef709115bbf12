"""
Catalog inventory backend: stock ledger, stock levels and inventory reports.
"""

__version__ = "1.0.0"
