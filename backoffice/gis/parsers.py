"""
HTML parsing for the county GIS pages

Pure functions over BeautifulSoup documents so they can be tested against
saved pages without any network access.
"""
import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .config import GISScraperConfig
from .models import GISSearchCriteria, NewScrapedProperty

logger = logging.getLogger(__name__)

STREET_TYPE_PATTERN = re.compile(
    r'\b(ST|RD|AVE|DR|LN|WAY|BLVD|STREET|ROAD|AVENUE|DRIVE|LANE)\b', re.IGNORECASE
)
ADDRESS_START_PATTERN = re.compile(r'^\d+\s+[A-Z]', re.IGNORECASE)
UI_TEXT_PATTERN = re.compile(r'search|refine|area|land|submit|button', re.IGNORECASE)
ASSESSMENT_PATTERN = re.compile(r'Assessment\s*\$([0-9,]+)', re.IGNORECASE)
DISTRICT_PATTERN = re.compile(
    r'District\s+\d+:\s*([A-Za-z0-9\s]+?)(?:\s*\n|\s*\r|\s*<|\s*$|\s{3,})', re.IGNORECASE
)
OWNER_ADDRESS_PATTERN = re.compile(r'^\d+\s+[A-Z]\s+[A-Z]')
STREET_SUFFIXES = ("ST", "AVE", "DR", "RD", "LN", "WAY", "BLVD")

@dataclass
class PropertyLink:
    address: str
    href: str

def parse_html(html_content: str) -> BeautifulSoup:
    return BeautifulSoup(html_content, 'html.parser')

def clean_text(text: Optional[str]) -> str:
    """Collapse whitespace"""
    if not text:
        return ""
    return ' '.join(text.split())

def extract_form_fields(soup: BeautifulSoup) -> Dict[str, str]:
    """Hidden ASP.NET state fields that must be posted back with the search form"""
    fields = {}
    for field in soup.select('input[type="hidden"]'):
        name = field.get('name')
        if name:
            fields[name] = field.get('value', '')
    return fields

def extract_property_links(soup: BeautifulSoup, base_url: str, limit: int = GISScraperConfig.MAX_LINKS) -> List[PropertyLink]:
    """
    Collect links to property detail pages from a results page

    A link qualifies when its text reads like a street address: a house
    number, a street type word and a plausible length. Links are unique by
    href and kept in page order.
    """
    links: List[PropertyLink] = []
    seen = set()

    for anchor in soup.find_all('a', href=True):
        text = clean_text(anchor.get_text())
        if not (
            ADDRESS_START_PATTERN.match(text)
            and STREET_TYPE_PATTERN.search(text)
            and 8 < len(text) < 40
            and not UI_TEXT_PATTERN.search(text)
        ):
            continue

        href = urljoin(base_url, anchor['href'])
        if href in seen:
            continue
        seen.add(href)
        links.append(PropertyLink(address=text, href=href))

        if len(links) >= limit:
            break

    return links

def find_next_page_url(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    """URL of the next results page, if the page has one"""
    for anchor in soup.find_all('a', href=True):
        text = clean_text(anchor.get_text()).lower()
        title = (anchor.get('title') or '').lower()
        if 'next' in text or 'next' in title:
            return urljoin(base_url, anchor['href'])

    for anchor in soup.select('a[href*="Page"]'):
        href = anchor['href']
        if not href.startswith('javascript'):
            return urljoin(base_url, href)

    return None

def text_in_next_cell(soup: BeautifulSoup, label: str) -> str:
    """Text of the table cell right after the first cell containing `label`"""
    for cell in soup.find_all('td'):
        if label in cell.get_text():
            sibling = cell.find_next_sibling('td')
            if sibling is not None:
                return clean_text(sibling.get_text())
    return ""

def span_text(soup: BeautifulSoup, id_fragment: str) -> str:
    element = soup.select_one(f'span[id*="{id_fragment}"]')
    return clean_text(element.get_text()) if element else ""

def extract_address(soup: BeautifulSoup, fallback: str) -> str:
    """Property location, falling back to the text of the link that led here"""
    location = text_in_next_cell(soup, 'Location')
    if location and ADDRESS_START_PATTERN.match(location):
        return location

    for heading in soup.select('h1, h2, h3, .large, .title'):
        text = clean_text(heading.get_text())
        if text and ADDRESS_START_PATTERN.match(text) and len(text) < 50:
            return text

    return fallback

def looks_like_address(text: str) -> bool:
    upper = text.upper()
    for suffix in STREET_SUFFIXES:
        if f" {suffix} " in upper or upper.endswith(f" {suffix}"):
            return True
    return (
        "PA " in upper
        or "NEW CASTLE" in upper
        or bool(OWNER_ADDRESS_PATTERN.match(upper))
    )

def extract_owner_name(soup: BeautifulSoup) -> str:
    """First owner candidate that is not a mailing address"""
    candidates = [
        span_text(soup, 'Owner'),
        text_in_next_cell(soup, 'Owner'),
        span_text(soup, 'Name'),
    ]
    for candidate in candidates:
        if not candidate or len(candidate) > 100:
            continue
        if looks_like_address(candidate):
            continue
        return candidate
    return GISScraperConfig.DEFAULT_OWNER

def extract_acreage_text(soup: BeautifulSoup) -> str:
    return (
        text_in_next_cell(soup, 'Deeded Acres')
        or span_text(soup, 'Acre')
        or text_in_next_cell(soup, 'Acre')
        or text_in_next_cell(soup, 'Land')
        or text_in_next_cell(soup, 'Lot Size')
        or text_in_next_cell(soup, 'Total Acres')
        or span_text(soup, 'Land')
        or span_text(soup, 'Lot')
    )

def parse_acreage(text: str) -> float:
    """
    Parse an acreage label

    Keeps digits and dots only; unparseable or zero values become the
    default. Values above 1000 on a square-feet label are converted.
    """
    digits = re.sub(r'[^0-9.]', '', text or '')
    match = re.match(r'\d*\.?\d+', digits)
    acreage = float(match.group(0)) if match else 0.0

    if not acreage:
        return GISScraperConfig.DEFAULT_ACREAGE

    if acreage > 1000 and 'sq' in text.lower():
        acreage = acreage / GISScraperConfig.SQUARE_FEET_PER_ACRE

    return acreage

def parse_assessment(soup: BeautifulSoup) -> Optional[int]:
    value_text = text_in_next_cell(soup, 'Assessment') or span_text(soup, 'Assessment')
    if value_text:
        match = re.search(r'\$?([0-9][0-9,]*)', value_text)
        if match:
            value = int(match.group(1).replace(',', ''))
            if value:
                return value

    match = ASSESSMENT_PATTERN.search(soup.get_text())
    if match:
        return int(match.group(1).replace(',', ''))
    return None

def resolve_township(soup: BeautifulSoup) -> str:
    """
    Township of a property page

    Uses an explicit city/township field when present, then the
    "District N: <name>" label mapped through the known township names,
    then a search of the page text.
    """
    city = (
        text_in_next_cell(soup, 'City')
        or text_in_next_cell(soup, 'Municipality')
        or text_in_next_cell(soup, 'Township')
        or span_text(soup, 'City')
        or span_text(soup, 'Municipality')
        or span_text(soup, 'Township')
    )
    if city and len(city) < 50 and '<' not in city:
        return city

    page_text = soup.get_text()
    match = DISTRICT_PATTERN.search(page_text)
    if match:
        raw_township = clean_text(match.group(1))
        lowered = raw_township.lower()
        for needle, township in GISScraperConfig.TOWNSHIP_ALIASES:
            if needle in lowered:
                return township
        return raw_township if len(raw_township) < 30 else GISScraperConfig.DEFAULT_TOWNSHIP

    lowered = clean_text(page_text).lower()
    for needles, township in GISScraperConfig.TOWNSHIP_FALLBACKS:
        if any(needle in lowered for needle in needles):
            return township

    return GISScraperConfig.DEFAULT_TOWNSHIP

def parse_property_page(html_content: str, link_address: str, criteria: GISSearchCriteria) -> NewScrapedProperty:
    soup = parse_html(html_content)
    parcel_id = span_text(soup, 'Parcel') or span_text(soup, 'ID') or None

    return NewScrapedProperty(
        owner_name=extract_owner_name(soup),
        address=extract_address(soup, link_address),
        city=resolve_township(soup),
        acreage=parse_acreage(extract_acreage_text(soup)),
        assessed_value=parse_assessment(soup),
        property_type="Unknown",
        parcel_id=parcel_id,
        search_criteria=criteria
    )

def dedupe_by_address(
    properties: Iterable[NewScrapedProperty],
    existing: Iterable[NewScrapedProperty] = ()
) -> List[NewScrapedProperty]:
    """Drop properties whose address (case-insensitive) was already seen"""
    seen = {prop.address.lower() for prop in existing}
    unique = []
    for prop in properties:
        key = prop.address.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(prop)
    return unique
