"""
Feature list and specification table harvesting.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from .utils import clean_text


logger = logging.getLogger(__name__)

FEATURE_SELECTORS = [
    ".features li",
    ".feature-list li",
    ".amenities li",
    ".car-features li",
    ".highlights li",
    "[data-features] li",
]

SPEC_TABLE_SELECTORS = "table, .specs-table, .specifications"

FEATURE_MIN_LEN = 3
FEATURE_MAX_LEN = 100
SPEC_KEY_MAX_LEN = 50
SPEC_VALUE_MAX_LEN = 100

# Scanned for verbatim when the page has no structured feature list
COMMON_FEATURES = [
    "Air Conditioning",
    "Climate Control",
    "Power Steering",
    "Power Windows",
    "Central Locking",
    "Keyless Entry",
    "Push Button Start",
    "ABS",
    "Airbags",
    "Sunroof",
    "Alloy Wheels",
    "Bluetooth",
    "Cruise Control",
    "Rear Camera",
    "Parking Sensors",
    "Touchscreen",
    "Navigation",
    "Android Auto",
    "Apple CarPlay",
    "Leather Seats",
    "Fog Lamps",
]

_PAIR_CHILD_TAGS = {"span", "strong", "b", "em", "div", "p", "label", "small"}
_COLON_PAIR_RE = re.compile(r"^([^:]{2,49}?)\s*:\s*(.+)$")


@dataclass
class Harvest:
    features: List[str] = field(default_factory=list)
    specifications: Dict[str, str] = field(default_factory=dict)


def _text(el: Tag) -> str:
    return clean_text(el.get_text(" "))


def collect_features(soup: BeautifulSoup) -> List[str]:
    """Feature bullet points from known list regions, deduped by exact text."""
    features: List[str] = []
    for selector in FEATURE_SELECTORS:
        for li in soup.select(selector):
            text = _text(li)
            if FEATURE_MIN_LEN <= len(text) <= FEATURE_MAX_LEN and text not in features:
                features.append(text)
    return features


def scan_common_features(text: str) -> List[str]:
    """Vocabulary terms that appear verbatim in the page text."""
    found = []
    for term in COMMON_FEATURES:
        if re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text):
            found.append(term)
    return found


def _row_pairs(soup: BeautifulSoup) -> List[Tuple[str, str]]:
    pairs = []
    for table in soup.select(SPEC_TABLE_SELECTORS):
        for row in table.find_all("tr"):
            cells = row.find_all(["td", "th"])
            if len(cells) >= 2:
                pairs.append((_text(cells[0]), _text(cells[1])))
    return pairs


def _definition_pairs(soup: BeautifulSoup) -> List[Tuple[str, str]]:
    pairs = []
    for dt in soup.find_all("dt"):
        dd = dt.find_next_sibling()
        if dd is not None and dd.name == "dd":
            pairs.append((_text(dt), _text(dd)))
    return pairs


def _list_item_pairs(soup: BeautifulSoup) -> List[Tuple[str, str]]:
    pairs = []
    for li in soup.find_all("li"):
        children = [c for c in li.find_all(recursive=False)]
        if len(children) == 2 and all(c.name in _PAIR_CHILD_TAGS for c in children):
            pairs.append((_text(children[0]), _text(children[1])))
            continue
        if not children:
            m = _COLON_PAIR_RE.match(_text(li))
            if m:
                pairs.append((m.group(1), m.group(2)))
    return pairs


def collect_pairs(soup: BeautifulSoup) -> List[Tuple[str, str]]:
    """
    Key/value pairs from table-like regions: table rows, <dt>/<dd> pairs and
    two-part list items. Pairs with an empty side are dropped.
    """
    pairs = _row_pairs(soup) + _definition_pairs(soup) + _list_item_pairs(soup)
    return [(k.rstrip(":").strip(), v) for k, v in pairs if k.rstrip(":").strip() and v]


def collect_specifications(pairs: List[Tuple[str, str]]) -> Dict[str, str]:
    """Bounded key/value map; the first occurrence of a key wins."""
    specs: Dict[str, str] = {}
    for key, value in pairs:
        if len(key) < SPEC_KEY_MAX_LEN and len(value) < SPEC_VALUE_MAX_LEN:
            specs.setdefault(key, value)
    return specs


def harvest(soup: BeautifulSoup, text: str, pairs: Optional[List[Tuple[str, str]]] = None) -> Harvest:
    """Collect features and specifications. Empty collections are a valid outcome."""
    if pairs is None:
        pairs = collect_pairs(soup)

    features = collect_features(soup)
    if not features:
        features = scan_common_features(text)
        if features:
            logger.debug(f"Feature vocabulary fallback matched {len(features)} terms")

    specifications = collect_specifications(pairs)
    return Harvest(features=features, specifications=specifications)
