"""
GIS scraper configuration
"""
import os
from typing import List, Tuple

class GISScraperConfig:
    """Configuration for the county GIS source and the scraped-row lifecycle"""

    # Source
    BASE_URL = os.getenv("GIS_BASE_URL", "https://gis.vgsi.com/lawrencecountypa")
    SALES_PATH = "Sales.aspx"
    SEARCH_PATH = "Search.aspx"

    # Request settings
    REQUEST_DELAY = float(os.getenv("GIS_REQUEST_DELAY", "1.0"))
    REQUEST_TIMEOUT = int(os.getenv("GIS_REQUEST_TIMEOUT", "30"))
    BATCH_SIZE = int(os.getenv("GIS_BATCH_SIZE", "5"))
    MAX_LINKS = 20
    USER_AGENT = os.getenv(
        "GIS_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Results
    MAX_RESULTS = 10
    # Below this many results, expanded-range results outside the requested range are accepted
    EXPANDED_FILL_THRESHOLD = 8
    RANGE_EXPANSION = 0.2
    MIN_ACREAGE_FLOOR = 0.1

    # Lifecycle
    RETENTION_DAYS = int(os.getenv("GIS_RETENTION_DAYS", "7"))
    CLEANUP_INTERVAL_HOURS = float(os.getenv("GIS_CLEANUP_INTERVAL_HOURS", "24"))
    FEATURE_NAME = "gis_scraper"

    DEFAULT_TOWNSHIP = "New Castle"
    DEFAULT_OWNER = "Unknown"
    DEFAULT_ACREAGE = 0.1
    SQUARE_FEET_PER_ACRE = 43560

    # Substring of a "District N: <name>" label -> township name, first match wins
    TOWNSHIP_ALIASES: List[Tuple[str, str]] = [
        ("scott", "Scott"),
        ("slippery rock", "Slippery Rock"),
        ("ellwood", "Ellwood City"),
        ("wilmington", "Wilmington"),
        ("grove city", "Grove City"),
        ("pulaski", "Pulaski"),
        ("new beaver", "New Beaver"),
        ("mahoning", "Mahoning"),
        ("neshannock", "Neshannock"),
        ("union", "Union"),
        ("taylor", "Taylor"),
        ("hickory", "Hickory"),
        ("shenango", "Shenango"),
        ("wayne", "Wayne"),
        ("perry", "Perry"),
        ("washington", "Washington"),
        ("plain grove", "Plain Grove"),
        ("little beaver", "Little Beaver"),
        ("north beaver", "North Beaver"),
        ("new castle", "New Castle"),
        ("bessemer", "Bessemer"),
    ]

    # Whole-page phrases used when no district label is present
    TOWNSHIP_FALLBACKS: List[Tuple[Tuple[str, ...], str]] = [
        (("wilmington township", "wilmington twp"), "Wilmington"),
        (("slippery rock",), "Slippery Rock"),
        (("scott township", "scott twp"), "Scott"),
        (("ellwood city",), "Ellwood City"),
        (("grove city",), "Grove City"),
        (("pulaski township", "pulaski twp"), "Pulaski"),
        (("new beaver",), "New Beaver"),
        (("mahoning township", "mahoning twp"), "Mahoning"),
        (("neshannock township", "neshannock twp"), "Neshannock"),
        (("union township", "union twp"), "Union"),
        (("bessemer",), "Bessemer"),
    ]

    @classmethod
    def url(cls, path: str) -> str:
        return f"{cls.BASE_URL.rstrip('/')}/{path}"
