"""
Import mapping: turns an extracted listing into a stored, searchable record.
"""
import hashlib
import re
from typing import List, Tuple

from .models import ExtractedListing, ListingRecord
from .utils import format_inr, mask_owner_name


KNOWN_BRANDS = [
    "Maruti Suzuki", "Mercedes-Benz", "Land Rover", "Rolls-Royce", "Aston Martin",
    "Maruti", "Hyundai", "Tata", "Mahindra", "Honda", "Toyota", "Kia", "MG", "Jeep",
    "Renault", "Nissan", "Skoda", "Volkswagen", "Ford", "Chevrolet", "Fiat", "Datsun",
    "BMW", "Mercedes", "Audi", "Volvo", "Jaguar", "Lexus", "Porsche", "Mini",
    "Citroen", "Isuzu", "Mitsubishi", "Force", "BYD", "Mazda", "Subaru", "Peugeot",
]

# Optional extracted fields kept together in the record's details map
DETAIL_FIELDS = [
    "color", "registration_year", "insurance", "rto", "engine_displacement",
    "mileage", "seating_capacity", "body_type", "emi_starts_at", "new_car_price",
]

_YEAR_TOKEN = re.compile(r"\b(?:19|20)\d{2}\b")


def listing_id_for(listing: ExtractedListing) -> str:
    """Stable id: the source URL when known, otherwise name and price."""
    key = listing.source_url or f"{listing.car_name}|{listing.price}"
    return hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]


def split_car_name(car_name: str) -> Tuple[str, str, str]:
    """
    Split a listing title into (brand, model, rest).

    "2022 Jeep Compass Limited Plus" -> ("Jeep", "Compass", "Limited Plus").
    """
    name = re.sub(r"^used\s+", "", car_name.strip(), flags=re.I)
    name = _YEAR_TOKEN.sub(" ", name)
    name = re.sub(r"\s+", " ", name).strip()

    for brand in KNOWN_BRANDS:
        m = re.search(rf"\b{re.escape(brand)}\b", name, re.I)
        if m:
            tail = name[m.end():].split()
            model = tail[0] if tail else ""
            return brand, model, " ".join(tail[1:])

    tokens = name.split()
    if not tokens:
        return "", "", ""
    if len(tokens) == 1:
        return tokens[0], tokens[0], ""
    return tokens[0], tokens[1], " ".join(tokens[2:])


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def synthesize_description(listing: ExtractedListing) -> str:
    """Human-readable summary built from whichever details were found."""
    head = listing.car_name
    if str(listing.year_of_purchase) not in head:
        head = f"{listing.year_of_purchase} {head}"

    parts: List[str] = []
    if listing.variant:
        parts.append(f"{listing.variant} variant")
    for value in (listing.fuel_type, listing.transmission, listing.body_type):
        if value:
            parts.append(value)
    if listing.km_driven is not None:
        parts.append(f"{listing.km_driven:,} km driven")
    parts.append(f"{_ordinal(listing.number_of_owners)} owner")
    if listing.color:
        parts.append(f"{listing.color} colour")
    if listing.engine_displacement:
        parts.append(f"{listing.engine_displacement} engine")
    if listing.mileage:
        parts.append(f"mileage {listing.mileage}")
    if listing.registration_year:
        parts.append(f"registered {listing.registration_year}")
    if listing.rto:
        parts.append(f"RTO {listing.rto}")
    if listing.insurance:
        parts.append(f"insurance: {listing.insurance}")

    text = f"{head} - " + ", ".join(parts) + "."
    if listing.city:
        text += f" Located in {listing.city}."
    if listing.features:
        text += " Features: " + ", ".join(listing.features[:10]) + "."
    return text


def to_listing_record(listing: ExtractedListing, status: str = "pending") -> ListingRecord:
    """Map an extracted listing onto the stored schema."""
    brand, model, rest = split_car_name(listing.car_name)
    details = {name: getattr(listing, name) for name in DETAIL_FIELDS if getattr(listing, name) is not None}

    return ListingRecord(
        listing_id=listing_id_for(listing),
        brand=brand,
        car_model=model,
        variant=listing.variant or rest,
        fuel_type=(listing.fuel_type or "").lower(),
        transmission=(listing.transmission or "").lower(),
        year=listing.year_of_purchase,
        number_of_owners=listing.number_of_owners,
        km_driven=listing.km_driven,
        city=listing.city or "",
        owner_name=listing.owner_name or "",
        description=listing.description or synthesize_description(listing),
        price=listing.price,
        images=list(listing.images),
        features=list(listing.features),
        specifications=dict(listing.specifications),
        details=details,
        status=status,
        source="scraped",
        source_url=listing.source_url or "",
    )


def display_fields(record: ListingRecord) -> dict:
    """Presentation-only derivations for a record."""
    return {
        "price_display": format_inr(record.price) if record.price is not None else "",
        "owner_display": mask_owner_name(record.owner_name),
    }
