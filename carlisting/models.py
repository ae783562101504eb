"""
Data models for the used-car listing extraction pipeline.
"""
from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class RawDocument:
    """Fully rendered listing page markup plus the URL it was fetched from."""

    source_url: str
    markup: str


@dataclass(frozen=True)
class FieldSpec:
    """
    Static extraction rule for one logical field.

    Strategies are tried in order; the first raw value that survives
    ``convert`` (returns non-None) and ``validator`` wins. A raw value
    flagged by ``malformed`` ends the chain with no value.
    """

    name: str
    strategies: Tuple[Callable[[Any], Optional[str]], ...]
    convert: Callable[[str], Any]
    validator: Callable[[Any], bool]
    required: bool = False
    malformed: Optional[Callable[[str], bool]] = None


@dataclass(frozen=True)
class ImageCandidate:
    """An image reference found in the page, before acceptance/rejection."""

    raw_ref: str
    resolved_url: Optional[str]
    alt_text: str = ""
    class_hints: str = ""


@dataclass
class ExtractedListing:
    """Structured record produced from a single listing page."""

    # Required
    car_name: str
    price: int
    images: List[str]

    # Documented defaults
    year_of_purchase: int = field(default_factory=lambda: date.today().year)
    number_of_owners: int = 1

    # Basic details
    km_driven: Optional[int] = None
    city: Optional[str] = None
    owner_name: Optional[str] = None

    # Comprehensive details
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    variant: Optional[str] = None
    color: Optional[str] = None
    registration_year: Optional[int] = None
    insurance: Optional[str] = None
    rto: Optional[str] = None
    engine_displacement: Optional[str] = None
    mileage: Optional[str] = None
    seating_capacity: Optional[int] = None
    body_type: Optional[str] = None

    features: List[str] = field(default_factory=list)
    specifications: Dict[str, str] = field(default_factory=dict)

    # Pricing
    emi_starts_at: Optional[int] = None
    new_car_price: Optional[int] = None

    description: Optional[str] = None
    source_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting absent optional fields."""
        return {k: v for k, v in asdict(self).items() if v is not None and v != [] and v != {}}


class ErrorKind(str, Enum):
    MISSING_REQUIRED_FIELD = "missing_required_field"
    PRECONDITION_FAILED = "precondition_failed"


@dataclass(frozen=True)
class ExtractionError:
    """
    Why an extraction run failed.

    ``reason`` keeps the folded sub-kind for operators: a malformed amount or
    a page whose images were all rejected still surfaces as a missing price
    or missing images.
    """

    kind: ErrorKind
    field: Optional[str] = None
    reason: Optional[str] = None

    @property
    def message(self) -> str:
        if self.kind is ErrorKind.PRECONDITION_FAILED:
            return "No valid document was supplied"
        msg = f"Missing required field: {self.field}"
        if self.reason:
            msg += f" ({self.reason})"
        return msg

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "field": self.field, "reason": self.reason, "message": self.message}


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one pipeline run. Exactly one of data/error is set."""

    success: bool
    data: Optional[ExtractedListing] = None
    error: Optional[ExtractionError] = None

    @classmethod
    def ok(cls, listing: ExtractedListing) -> "ExtractionResult":
        return cls(success=True, data=listing)

    @classmethod
    def fail(cls, error: ExtractionError) -> "ExtractionResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class FilterCriteria:
    """Search criteria; every criterion is optional and they combine with AND."""

    brands: Sequence[str] = ()
    cities: Sequence[str] = ()
    fuel_types: Sequence[str] = ()
    transmissions: Sequence[str] = ()
    price_min: Optional[int] = None
    price_max: Optional[int] = None
    year_min: Optional[int] = None
    year_max: Optional[int] = None
    query: Optional[str] = None


@dataclass
class ListingRecord:
    """A stored, searchable listing."""

    listing_id: str
    brand: str
    car_model: str
    price: Optional[int]
    city: str = ""
    variant: str = ""
    fuel_type: str = ""
    transmission: str = ""
    year: Optional[int] = None
    number_of_owners: int = 1
    km_driven: Optional[int] = None
    owner_name: str = ""
    description: str = ""
    images: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)
    specifications: Dict[str, str] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)
    status: str = "pending"
    source: str = "scraped"
    source_url: str = ""
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None
