"""
Used-car listing extraction package.
"""
from .models import (
    RawDocument,
    ExtractedListing,
    ExtractionResult,
    ExtractionError,
    ErrorKind,
    FilterCriteria,
    ListingRecord,
)
from .scraper import extract_listing, extract_from_markup
from .filters import filter_listings
from .records import to_listing_record
from .database import (
    db_connect,
    db_init,
    upsert_with_price_history,
    db_get_listing,
    db_all_records
)
from .export import (
    export_new_since_run,
    export_price_history,
    save_output_rows
)
from .utils import init_logger, now_iso, parse_amount, format_inr, mask_owner_name

__version__ = "1.0.0"

__all__ = [
    "RawDocument",
    "ExtractedListing",
    "ExtractionResult",
    "ExtractionError",
    "ErrorKind",
    "FilterCriteria",
    "ListingRecord",
    "extract_listing",
    "extract_from_markup",
    "filter_listings",
    "to_listing_record",
    "db_connect",
    "db_init",
    "upsert_with_price_history",
    "db_get_listing",
    "db_all_records",
    "export_new_since_run",
    "export_price_history",
    "save_output_rows",
    "init_logger",
    "now_iso",
    "parse_amount",
    "format_inr",
    "mask_owner_name"
]
