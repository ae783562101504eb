"""
Declarative per-field extraction rules and the chain that evaluates them.

Each field in FIELD_SPECS owns an ordered list of strategies. A strategy looks
at the parsed page and returns a raw string or None; the chain converts and
validates it and moves on to the next strategy when either step fails.
"""
import logging
import re
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from .harvest import collect_pairs
from .models import FieldSpec, RawDocument
from .utils import clean_text, is_malformed_amount, parse_amount, to_int


logger = logging.getLogger(__name__)

MIN_YEAR = 1980

# Elements that end a line in the flattened page text
BLOCK_TAGS = [
    "p", "div", "li", "tr", "dd", "br", "ul", "ol", "dl", "table",
    "section", "article", "header", "footer", "aside", "main", "nav",
    "h1", "h2", "h3", "h4", "h5", "h6",
]

# Labels a free-form value must never run into
FIELD_LABELS = [
    "price", "fuel type", "fuel", "transmission", "gearbox", "variant", "version",
    "colou?r", "registration year", "registration", "reg\\.? year", "insurance",
    "rto", "engine", "displacement", "mileage", "seating capacity", "seats",
    "body type", "kms? driven", "kilomet(?:er|re)s driven", "owners?", "city",
    "location", "make year", "model year", "year",
]

_STOP = r"(?=\s*(?:$|[|•·;,]|\b(?:%s)\b))" % "|".join(FIELD_LABELS)
_RUPEE = r"(?:₹|rs\.?|inr)"
_NUMERAL = r"\d[\d,]*(?:\.\d+)?"
_YEAR = r"(?:19|20)\d{2}"


# ---------------------------------------------------------------------------
# Document context
# ---------------------------------------------------------------------------

def page_text(markup: str) -> str:
    """Visible page text with one line per block element."""
    soup = BeautifulSoup(markup, "lxml")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    for tag in soup.find_all(BLOCK_TAGS):
        tag.append("\n")
    lines = (clean_text(line) for line in soup.get_text(" ").split("\n"))
    return "\n".join(line for line in lines if line)


class DocumentContext:
    """Per-run working state for one document. Never shared between runs."""

    def __init__(self, doc: RawDocument):
        self.doc = doc
        self.source_url = doc.source_url or ""
        self.soup = BeautifulSoup(doc.markup, "lxml")
        self.text = page_text(doc.markup)
        self.pairs = collect_pairs(self.soup)
        self.labels: Dict[str, str] = {}
        for key, value in self.pairs:
            self.labels.setdefault(key.lower(), value)
        self.values: Dict[str, Any] = {"source_url": self.source_url}
        self.rejected: Dict[str, List[str]] = {}


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class SelectorStrategy:
    """Structural lookup: text (or an attribute) of the first element matching a CSS selector."""

    def __init__(self, selector: str, attr: Optional[str] = None, skip: Optional[str] = None):
        self.selector = selector
        self.attr = attr
        # Text matching ``skip`` is never returned
        self.skip = re.compile(skip, re.I) if skip else None

    def __call__(self, ctx: DocumentContext) -> Optional[str]:
        el = ctx.soup.select_one(self.selector)
        if el is None:
            return None
        raw = clean_text(el.get(self.attr) if self.attr else el.get_text(" "))
        if self.skip is not None and self.skip.search(raw):
            return None
        return raw or None

    def __repr__(self):
        return f"SelectorStrategy({self.selector!r}, attr={self.attr!r})"


class LabelStrategy:
    """Structural lookup: value paired with one of the labels in a key/value region."""

    def __init__(self, *labels: str):
        self.labels = [label.lower() for label in labels]

    def __call__(self, ctx: DocumentContext) -> Optional[str]:
        for label in self.labels:
            if label in ctx.labels:
                return ctx.labels[label]
        return None

    def __repr__(self):
        return f"LabelStrategy{tuple(self.labels)!r}"


class PatternStrategy:
    """
    Free-text match over the flattened page text.

    Case-insensitive; a match never spans two lines. The ``value`` group is
    returned when present, otherwise the first group, otherwise the match.
    """

    def __init__(self, pattern: str):
        self.pattern = re.compile(pattern, re.I | re.M)

    def __call__(self, ctx: DocumentContext) -> Optional[str]:
        m = self.pattern.search(ctx.text)
        if not m:
            return None
        if "value" in self.pattern.groupindex:
            return clean_text(m.group("value")) or None
        if self.pattern.groups:
            return clean_text(m.group(1)) or None
        return clean_text(m.group(0)) or None

    def __repr__(self):
        return f"PatternStrategy({self.pattern.pattern!r})"


class DerivedStrategy:
    """Derive a value from an earlier field (or ``source_url``)."""

    def __init__(self, source: str, derive: Callable[[Any], Optional[str]]):
        self.source = source
        self.derive = derive

    def __call__(self, ctx: DocumentContext) -> Optional[str]:
        value = ctx.values.get(self.source)
        if value is None or value == "":
            return None
        return self.derive(value)

    def __repr__(self):
        return f"DerivedStrategy({self.source!r})"


def selectors(*sels: str, attr: Optional[str] = None) -> tuple:
    return tuple(SelectorStrategy(s, attr=attr) for s in sels)


# ---------------------------------------------------------------------------
# Converters and validators
# ---------------------------------------------------------------------------

def text_value(raw: str) -> Optional[str]:
    return clean_text(raw) or None


def bounded(min_len: int, max_len: int) -> Callable[[str], bool]:
    return lambda s: min_len <= len(s) <= max_len


def in_range(low: int, high: int) -> Callable[[int], bool]:
    return lambda n: low <= n <= high


def positive(n: int) -> bool:
    return n > 0


def valid_year(y: int) -> bool:
    return MIN_YEAR <= y <= date.today().year + 1


def first_year(raw: str) -> Optional[int]:
    m = re.search(rf"\b({_YEAR})\b", raw)
    return int(m.group(1)) if m else None


def vocabulary(canonical: Dict[str, str]) -> Callable[[str], Optional[str]]:
    """Map the first vocabulary word found in the raw text to its canonical spelling."""
    pattern = re.compile(r"\b(%s)\b" % "|".join(re.escape(k) for k in canonical), re.I)

    def convert(raw: str) -> Optional[str]:
        m = pattern.search(raw)
        return canonical[m.group(1).lower()] if m else None
    return convert


def shaped(pattern: str, fmt: Callable[[re.Match], str]) -> Callable[[str], Optional[str]]:
    """Keep only the part of the raw text that has the expected shape."""
    compiled = re.compile(pattern, re.I)

    def convert(raw: str) -> Optional[str]:
        m = compiled.search(raw)
        return fmt(m) if m else None
    return convert


ORDINALS = {"first": 1, "second": 2, "third": 3, "fourth": 4, "fifth": 5}


def owner_count(raw: str) -> Optional[int]:
    m = re.search(r"\d+", raw)
    if m:
        return int(m.group(0))
    m = re.search(r"\b(%s)\b" % "|".join(ORDINALS), raw, re.I)
    return ORDINALS[m.group(1).lower()] if m else None


def city_from_url(url: str) -> Optional[str]:
    m = re.search(r"cars?-(?:in-)?([a-z]+)(?:[_./]|$)", url, re.I)
    return m.group(1).title() if m else None


def year_from_name(name: str) -> Optional[str]:
    m = re.search(rf"\b({_YEAR})\b", name)
    return m.group(1) if m else None


FUEL_TYPES = {
    "petrol": "Petrol", "diesel": "Diesel", "cng": "CNG",
    "electric": "Electric", "hybrid": "Hybrid", "lpg": "LPG",
}

TRANSMISSIONS = {
    "manual": "Manual", "automatic": "Automatic",
    "amt": "AMT", "cvt": "CVT", "dct": "DCT", "imt": "iMT",
}

BODY_TYPES = {
    "hatchback": "Hatchback", "sedan": "Sedan", "suv": "SUV", "muv": "MUV",
    "mpv": "MPV", "coupe": "Coupe", "convertible": "Convertible",
    "wagon": "Wagon", "pickup": "Pickup", "minivan": "Minivan",
}


# ---------------------------------------------------------------------------
# Field table
# ---------------------------------------------------------------------------

FIELD_SPECS: List[FieldSpec] = [
    FieldSpec(
        name="car_name",
        required=True,
        strategies=selectors(
            "h1.car-title", "h1.listing-title", "h1[itemprop='name']",
            ".car-name", "[data-car-name]", "h1", ".car-title", ".heading",
        ) + (
            SelectorStrategy("meta[property='og:title']", attr="content"),
            SelectorStrategy("title"),
        ),
        convert=text_value,
        validator=bounded(2, 150),
    ),
    FieldSpec(
        name="price",
        required=True,
        strategies=(
            SelectorStrategy("[itemprop='price']", attr="content"),
        ) + selectors(
            "[itemprop='price']", ".price", ".priceInfo", ".car-price",
            ".listing-price", ".amount",
        ) + (
            SelectorStrategy("[data-price]", attr="data-price"),
            SelectorStrategy(".price-section", skip=r"\b(?:emi|new car price)\b"),
            LabelStrategy("Price", "Selling Price", "Asking Price"),
            PatternStrategy(rf"{_RUPEE}\s*{_NUMERAL}\s*(?:lakh|crore)s?\b"),
            PatternStrategy(rf"^(?!.*\b(?:emi|new car price)\b).*?(?P<value>{_RUPEE}\s*{_NUMERAL})(?![\d,]|\.\d|\s*(?:lakh|crore))"),
        ),
        convert=parse_amount,
        validator=positive,
        malformed=is_malformed_amount,
    ),
    FieldSpec(
        name="year_of_purchase",
        strategies=(
            DerivedStrategy("car_name", year_from_name),
        ) + selectors(".year", "[data-year]", ".car-year") + (
            LabelStrategy("Make Year", "Model Year", "Manufacturing Year", "Year"),
            PatternStrategy(rf"\b(?:make year|model year|manufacturing year|year)\b[^\n]*?\b(?P<value>{_YEAR})\b"),
        ),
        convert=first_year,
        validator=valid_year,
    ),
    FieldSpec(
        name="km_driven",
        strategies=selectors(".km-driven", "[data-km]") + (
            LabelStrategy("Kms Driven", "KM Driven", "Kilometers Driven", "Kilometres Driven", "Odometer"),
            PatternStrategy(r"(?<![\d.,])(?P<value>\d[\d,]*)\s*(?:kms?|kilomet(?:er|re)s?)\b(?!\s*/)"),
        ),
        convert=to_int,
        validator=in_range(0, 1_000_000),
    ),
    FieldSpec(
        name="number_of_owners",
        strategies=selectors(".owners", ".owner-count", "[data-owners]") + (
            LabelStrategy("Ownership", "Owners", "No. of Owners", "Number of Owners", "Owner"),
            PatternStrategy(r"\b(?P<value>\d{1,2}|first|second|third|fourth|fifth)(?:st|nd|rd|th)?\s+owners?\b"),
        ),
        convert=owner_count,
        validator=in_range(1, 10),
    ),
    FieldSpec(
        name="city",
        strategies=selectors(".city", ".location", "[itemprop='addressLocality']") + (
            LabelStrategy("City", "Location", "Car Location"),
            DerivedStrategy("source_url", city_from_url),
            PatternStrategy(rf"\b(?:city|location)\b\s*[:\-]?\s*(?P<value>[a-z][a-z .]{{1,40}}?){_STOP}"),
        ),
        convert=text_value,
        validator=lambda s: bounded(2, 50)(s) and bool(re.fullmatch(r"[A-Za-z][A-Za-z .\-]*", s)),
    ),
    FieldSpec(
        name="owner_name",
        strategies=selectors(".owner-name", ".seller-name", "[itemprop='seller']") + (
            LabelStrategy("Owner Name", "Seller Name", "Seller"),
        ),
        convert=text_value,
        validator=lambda s: bounded(2, 100)(s) and bool(re.search(r"[A-Za-z]", s)),
    ),
    FieldSpec(
        name="fuel_type",
        strategies=(
            LabelStrategy("Fuel Type", "Fuel"),
            PatternStrategy(r"\bfuel(?:\s+type)?\b[^\n]*?\b(?P<value>petrol|diesel|cng|electric|hybrid|lpg)\b"),
            PatternStrategy(r"\b(petrol|diesel|cng|electric|hybrid|lpg)\b"),
        ),
        convert=vocabulary(FUEL_TYPES),
        validator=bool,
    ),
    FieldSpec(
        name="transmission",
        strategies=(
            LabelStrategy("Transmission", "Transmission Type", "Gearbox"),
            PatternStrategy(r"\b(?:transmission|gearbox)\b[^\n]*?\b(?P<value>manual|automatic|amt|cvt|dct|imt)\b"),
            PatternStrategy(r"\b(?P<value>manual|automatic)\s+transmission\b"),
        ),
        convert=vocabulary(TRANSMISSIONS),
        validator=bool,
    ),
    FieldSpec(
        name="variant",
        strategies=(
            LabelStrategy("Variant", "Version"),
            PatternStrategy(rf"\b(?:variant|version)\b\s*[:\-]?\s*(?P<value>[a-z0-9][\w .+()/-]{{0,59}}?){_STOP}"),
        ),
        convert=text_value,
        validator=bounded(1, 60),
    ),
    FieldSpec(
        name="color",
        strategies=(
            LabelStrategy("Color", "Colour", "Exterior Color", "Exterior Colour"),
            PatternStrategy(rf"\bcolou?r\b\s*[:\-]?\s*(?P<value>[a-z][a-z \-]{{1,29}}?){_STOP}"),
        ),
        convert=text_value,
        validator=lambda s: bounded(2, 30)(s) and bool(re.fullmatch(r"[A-Za-z][A-Za-z \-]*", s)),
    ),
    FieldSpec(
        name="registration_year",
        strategies=(
            LabelStrategy("Registration Year", "Reg. Year", "Reg Year", "Registration Date", "Registration"),
            PatternStrategy(rf"\b(?:registration|reg\.?)(?:\s+(?:year|date))?\b[^\n]*?\b(?P<value>{_YEAR})\b"),
        ),
        convert=first_year,
        validator=valid_year,
    ),
    FieldSpec(
        name="insurance",
        strategies=(
            LabelStrategy("Insurance", "Insurance Validity", "Insurance Type"),
            PatternStrategy(rf"\binsurance(?:\s+(?:validity|type))?\b\s*[:\-]?\s*(?P<value>[a-z0-9][\w .\-/]{{1,59}}?){_STOP}"),
        ),
        convert=text_value,
        validator=bounded(2, 60),
    ),
    FieldSpec(
        name="rto",
        strategies=(
            LabelStrategy("RTO", "RTO Location"),
            PatternStrategy(r"\brto\b[^\n]*?\b(?P<value>[a-z]{2}[-\s]?\d{1,2})\b"),
        ),
        convert=shaped(r"\b([a-z]{2})[-\s]?(\d{1,2})\b", lambda m: (m.group(1) + m.group(2)).upper()),
        validator=bool,
    ),
    FieldSpec(
        name="engine_displacement",
        strategies=(
            LabelStrategy("Engine Displacement", "Displacement", "Engine Capacity", "Engine"),
            PatternStrategy(r"\b(?:engine|displacement)\b[^\n]*?(?P<value>\d+(?:\.\d+)?\s*(?:cc|l)\b)"),
        ),
        convert=shaped(r"(\d+(?:\.\d+)?)\s*(cc|l)\b", lambda m: f"{m.group(1)} {'cc' if m.group(2).lower() == 'cc' else 'L'}"),
        validator=bool,
    ),
    FieldSpec(
        name="mileage",
        strategies=(
            LabelStrategy("Mileage", "ARAI Mileage", "Fuel Efficiency"),
            PatternStrategy(r"\b(?:mileage|arai)\b[^\n]*?(?P<value>\d+(?:\.\d+)?\s*(?:kmpl|km/l|km/kg))"),
        ),
        convert=shaped(r"(\d+(?:\.\d+)?)\s*(kmpl|km/l|km/kg)", lambda m: f"{m.group(1)} {m.group(2).lower()}"),
        validator=bool,
    ),
    FieldSpec(
        name="seating_capacity",
        strategies=(
            LabelStrategy("Seating Capacity", "Seats", "No. of Seats"),
            PatternStrategy(r"\b(?P<value>\d{1,2})\s*-?\s*seater\b"),
            PatternStrategy(r"\bseating capacity\b\s*[:\-]?\s*(?P<value>\d{1,2})\b"),
        ),
        convert=to_int,
        validator=in_range(1, 20),
    ),
    FieldSpec(
        name="body_type",
        strategies=(
            LabelStrategy("Body Type", "Body Style"),
            PatternStrategy(r"\b(hatchback|sedan|suv|muv|mpv|coupe|convertible|wagon|pickup|minivan)\b"),
        ),
        convert=vocabulary(BODY_TYPES),
        validator=bool,
    ),
    FieldSpec(
        name="emi_starts_at",
        strategies=(
            PatternStrategy(rf"\bemi\s+starts?\s*(?:@|at|from)?\s*(?P<value>{_RUPEE}?\s*{_NUMERAL}(?:\s*(?:lakh|crore)s?\b)?)"),
        ),
        convert=parse_amount,
        validator=positive,
        malformed=is_malformed_amount,
    ),
    FieldSpec(
        name="new_car_price",
        strategies=(
            LabelStrategy("New Car Price", "Ex-Showroom Price"),
            PatternStrategy(rf"\bnew\s+car\s+price\b\s*[:\-]?\s*(?P<value>{_RUPEE}?\s*{_NUMERAL}(?:\s*(?:lakh|crore)s?\b)?)"),
        ),
        convert=parse_amount,
        validator=positive,
        malformed=is_malformed_amount,
    ),
    FieldSpec(
        name="description",
        strategies=selectors(
            ".description", ".car-description", "[data-description]", "[itemprop='description']",
        ) + (
            SelectorStrategy("meta[name='description']", attr="content"),
        ),
        convert=text_value,
        validator=bounded(10, 5000),
    ),
]

FIELD_SPECS_BY_NAME = {spec.name: spec for spec in FIELD_SPECS}


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

def extract_field(ctx: DocumentContext, spec: FieldSpec) -> Any:
    """Return the first converted value that passes the field validator, else None."""
    for strategy in spec.strategies:
        try:
            raw = strategy(ctx)
            if raw is None:
                continue
            if spec.malformed is not None and spec.malformed(raw):
                logger.debug(f"{spec.name}: malformed value {raw!r} via {strategy!r}")
                ctx.rejected.setdefault(spec.name, []).append(raw)
                return None
            value = spec.convert(raw)
            if value is not None and spec.validator(value):
                logger.debug(f"{spec.name}: {value!r} via {strategy!r}")
                return value
            ctx.rejected.setdefault(spec.name, []).append(raw)
        except Exception:
            logger.debug(f"{spec.name}: strategy {strategy!r} failed", exc_info=True)
    return None


def extract_fields(ctx: DocumentContext, specs: Optional[List[FieldSpec]] = None) -> Dict[str, Any]:
    """Run every field of the table in order; later fields may derive from earlier ones."""
    found: Dict[str, Any] = {}
    for spec in specs if specs is not None else FIELD_SPECS:
        value = extract_field(ctx, spec)
        if value is not None:
            ctx.values[spec.name] = value
            found[spec.name] = value
    return found
