"""
Listing page extraction: runs every field, the image collector and the
harvester over one rendered document and gates the result on the required
fields.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from .fields import DocumentContext, extract_fields
from .harvest import harvest
from .images import collect_images
from .models import (
    ErrorKind,
    ExtractedListing,
    ExtractionError,
    ExtractionResult,
    RawDocument,
)


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("car_name", "price", "images")


def _missing(field: str, reason: str) -> ExtractionResult:
    return ExtractionResult.fail(
        ExtractionError(kind=ErrorKind.MISSING_REQUIRED_FIELD, field=field, reason=reason)
    )


def check_required(values: Dict[str, Any], images: List[str], ctx: DocumentContext) -> Optional[ExtractionResult]:
    """Check car name, price and images in that order; return the first failure."""
    if not values.get("car_name"):
        return _missing("car_name", "not_found")
    if not values.get("price"):
        reason = "malformed_amount" if ctx.rejected.get("price") else "not_found"
        return _missing("price", reason)
    if not images:
        return _missing("images", "no_valid_images")
    return None


def extract_listing(doc: Optional[RawDocument]) -> ExtractionResult:
    """
    Turn a rendered listing page into an ExtractionResult.

    Every extraction step runs even after a required field has failed, so a
    rerun after a partial fix sees a complete attempt. Missing optional
    fields are simply left out; only car name, price and images can fail
    the run.
    """
    if doc is None or not (doc.markup or "").strip():
        logger.warning("No document supplied; skipping extraction")
        return ExtractionResult.fail(ExtractionError(kind=ErrorKind.PRECONDITION_FAILED))

    ctx = DocumentContext(doc)
    values = extract_fields(ctx)
    images = collect_images(ctx.soup, ctx.source_url)
    harvested = harvest(ctx.soup, ctx.text, ctx.pairs)

    logger.debug(
        f"{doc.source_url}: fields={sorted(values)} images={len(images)} "
        f"features={len(harvested.features)} specs={len(harvested.specifications)}"
    )

    failure = check_required(values, images, ctx)
    if failure is not None:
        logger.info(f"Extraction failed for {doc.source_url}: {failure.error.message}")
        return failure

    values.setdefault("year_of_purchase", date.today().year)
    values.setdefault("number_of_owners", 1)

    listing = ExtractedListing(
        images=images,
        features=harvested.features,
        specifications=harvested.specifications,
        source_url=doc.source_url or None,
        **values,
    )
    logger.info(
        f"Extracted {listing.car_name} | {listing.price} | {len(listing.images)} images | "
        f"fuel={listing.fuel_type or 'N/A'} transmission={listing.transmission or 'N/A'}"
    )
    return ExtractionResult.ok(listing)


def extract_from_markup(markup: str, source_url: str = "") -> ExtractionResult:
    """Convenience wrapper for callers holding plain markup."""
    return extract_listing(RawDocument(source_url=source_url, markup=markup))
