"""
Back-office API: CRM, bookkeeping, leads, inventory and the GIS property pipeline
"""

__version__ = "1.0.0"
