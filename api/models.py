"""
Pydantic models for API request/response serialization.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ListingOut(BaseModel):
    """Output model for a stored listing."""
    listing_id: str
    brand: str = ""
    car_model: str = ""
    variant: str = ""
    fuel_type: str = ""
    transmission: str = ""
    year: Optional[int] = None
    number_of_owners: int = 1
    km_driven: Optional[int] = None
    city: str = ""
    description: str = ""
    price: Optional[int] = None
    images: List[str] = []
    features: List[str] = []
    specifications: Dict[str, str] = {}
    details: Dict[str, Any] = {}
    status: str = "pending"
    source: str = "scraped"
    source_url: str = ""
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None
    # Display-only
    price_display: str = ""
    owner_display: str = ""


class ListingsResponse(BaseModel):
    """Response model for paginated listings."""
    total: int
    items: List[ListingOut]


class PricePoint(BaseModel):
    """Model for price history data point."""
    ts: str
    price: Optional[int]


class StatsOut(BaseModel):
    """Model for statistics data."""
    total_listings: int
    active_last_days: int
    min_price: Optional[float]
    max_price: Optional[float]
    avg_price: Optional[float]
    by_brand: Dict[str, int]
    by_city: Dict[str, int]
    by_year: Dict[str, int]


class ExtractRequest(BaseModel):
    """A rendered page submitted for extraction."""
    source_url: str = ""
    markup: str = Field(..., description="Fully rendered HTML of the listing page")
    save: bool = False


class ExtractionErrorOut(BaseModel):
    kind: str
    field: Optional[str] = None
    reason: Optional[str] = None
    message: str


class ExtractResponse(BaseModel):
    """Outcome of an extraction run."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[ExtractionErrorOut] = None
    listing_id: Optional[str] = None
    price_display: Optional[str] = None
