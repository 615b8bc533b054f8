"""
Cache configuration settings
"""
import os

class CacheConfig:
    """Configuration class for cache settings"""

    # In-process data service cache (seconds)
    DATA_SERVICE_TTL = float(os.getenv("DATA_SERVICE_CACHE_TTL", "30"))

    # Shared Redis cache TTL values (seconds)
    DEFAULT_TTL = int(os.getenv("CACHE_DEFAULT_TTL", "3600"))  # 1 hour
    GIS_PERMISSION_TTL = int(os.getenv("GIS_PERMISSION_TTL", "60"))  # 1 minute

    # Cache key prefixes
    GIS_PERMISSION_PREFIX = "gis_permission:"

    # Data service keys
    CUSTOMERS_KEY = "customers"
    INTERACTIONS_KEY = "interactions"
    CRM_DATA_KEY = "crm-data"
    LEADS_KEY = "leads"
    LEAD_STATS_KEY = "stats"
    LEADS_AND_STATS_KEY = "leads-and-stats"
    TRANSACTIONS_KEY = "transactions"
    TRANSACTION_SUMMARY_KEY = "transaction-summary"

    @classmethod
    def get_ttl_for_key_type(cls, key_type: str) -> int:
        """Get TTL based on key type"""
        ttl_map = {
            "gis_permission": cls.GIS_PERMISSION_TTL,
        }
        return ttl_map.get(key_type, cls.DEFAULT_TTL)

    @classmethod
    def get_key_prefix(cls, key_type: str) -> str:
        """Get key prefix based on type"""
        prefix_map = {
            "gis_permission": cls.GIS_PERMISSION_PREFIX,
        }
        return prefix_map.get(key_type, "")
