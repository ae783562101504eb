"""
Extraction route: run the pipeline over a submitted, already rendered page.
"""
import logging

from fastapi import APIRouter, HTTPException

from carlisting.models import RawDocument
from carlisting.records import to_listing_record
from carlisting.scraper import extract_listing
from carlisting.utils import format_inr

from ..database import save_record
from ..models import ExtractionErrorOut, ExtractRequest, ExtractResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["extraction"])


@router.post("/extract", response_model=ExtractResponse)
async def extract_page(request: ExtractRequest):
    """
    Extract a listing from rendered markup.

    Extraction failures are a normal outcome and come back with
    ``success: false``; only storage problems produce an HTTP error.
    """
    result = extract_listing(RawDocument(source_url=request.source_url, markup=request.markup))
    if not result.success:
        logger.info(f"Extraction failed for {request.source_url or '<inline>'}: {result.error.message}")
        return ExtractResponse(success=False, error=ExtractionErrorOut(**result.error.to_dict()))

    listing = result.data
    record = to_listing_record(listing)
    if request.save:
        try:
            is_new, price_changed = save_record(record)
        except Exception as e:
            logger.error(f"Error saving listing {record.listing_id}: {e}")
            raise HTTPException(status_code=500, detail="Error saving listing")
        logger.info(f"Saved listing {record.listing_id} (new={is_new}, price_changed={price_changed})")

    return ExtractResponse(
        success=True,
        data=listing.to_dict(),
        listing_id=record.listing_id,
        price_display=format_inr(listing.price),
    )
