"""
API route handlers for listings endpoints.
"""
import logging
from dataclasses import asdict
from typing import List, Optional

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from carlisting.filters import filter_listings
from carlisting.models import FilterCriteria, ListingRecord
from carlisting.records import display_fields

from ..config import config
from ..database import get_listing_by_id, get_price_history, get_records
from ..models import ListingOut, ListingsResponse, PricePoint

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])

# sort name -> (record attribute, descending)
SORTS = {
    "last_seen_desc": ("last_seen", True),
    "price_asc": ("price", False),
    "price_desc": ("price", True),
    "year_asc": ("year", False),
    "year_desc": ("year", True),
    "km_asc": ("km_driven", False),
}


def get_listing_filters(
    brand: List[str] = Query([]),
    city: List[str] = Query([]),
    fuel_type: List[str] = Query([]),
    transmission: List[str] = Query([]),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    min_year: Optional[int] = None,
    max_year: Optional[int] = None,
    q: Optional[str] = None,
) -> FilterCriteria:
    """Dependency to build search criteria from query parameters."""
    return FilterCriteria(
        brands=tuple(brand),
        cities=tuple(city),
        fuel_types=tuple(fuel_type),
        transmissions=tuple(transmission),
        price_min=min_price,
        price_max=max_price,
        year_min=min_year,
        year_max=max_year,
        query=q,
    )


def sort_records(records: List[ListingRecord], sort: str) -> List[ListingRecord]:
    """Sort by the named key; records missing the key always go last."""
    if sort not in SORTS:
        raise HTTPException(status_code=400, detail=f"Unknown sort: {sort}")
    attr, descending = SORTS[sort]
    present = [r for r in records if getattr(r, attr) is not None]
    missing = [r for r in records if getattr(r, attr) is None]
    return sorted(present, key=lambda r: getattr(r, attr), reverse=descending) + missing


def search(criteria: FilterCriteria, sort: str) -> List[ListingRecord]:
    return sort_records(filter_listings(get_records(), criteria), sort)


def listing_out(record: ListingRecord) -> ListingOut:
    """Public view of a record: the owner's name is only shown masked."""
    data = asdict(record)
    data.pop("owner_name", None)
    data.update(display_fields(record))
    return ListingOut(**data)


@router.get("/listings", response_model=ListingsResponse)
async def get_api_listings(
    criteria: FilterCriteria = Depends(get_listing_filters),
    sort: str = 'last_seen_desc',
    limit: int = Query(config.DEFAULT_API_LIMIT, ge=1, le=config.MAX_API_LIMIT),
    offset: int = Query(0, ge=0)
):
    """Get listings with filtering, sorting and pagination."""
    try:
        matched = search(criteria, sort)
        items = [listing_out(r) for r in matched[offset:offset + limit]]
        return ListingsResponse(total=len(matched), items=items)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching listings: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/listings/{listing_id}", response_model=ListingOut)
async def get_api_listing(listing_id: str):
    """Get a specific listing by ID."""
    try:
        record = get_listing_by_id(listing_id)
        if not record:
            raise HTTPException(status_code=404, detail="Listing not found")

        return listing_out(record)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching listing {listing_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/listings/{listing_id}/price-history", response_model=List[PricePoint])
async def get_api_price_history(listing_id: str):
    """Get price history for a specific listing."""
    try:
        if not get_listing_by_id(listing_id):
            raise HTTPException(status_code=404, detail="Listing not found")

        return [PricePoint(**point) for point in get_price_history(listing_id)]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching price history for {listing_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/export/csv")
async def export_listings_csv(
    criteria: FilterCriteria = Depends(get_listing_filters),
    sort: str = 'last_seen_desc'
):
    """Export filtered listings as CSV."""
    try:
        matched = search(criteria, sort)[:config.MAX_EXPORT_ROWS]
        columns = list(ListingOut.model_fields)
        df = pd.DataFrame([listing_out(r).model_dump() for r in matched], columns=columns)
        for col in ("images", "features"):
            df[col] = df[col].map(lambda v: "|".join(v) if isinstance(v, list) else v)

        csv_content = df.to_csv(index=False).encode('utf-8')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="car_listings.csv"'}
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
