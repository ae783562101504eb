"""
End-to-end tests for listing extraction and its required-field gate.
"""
from datetime import date

import pytest

from carlisting.models import ErrorKind, RawDocument
from carlisting.scraper import extract_from_markup, extract_listing


def test_extracts_complete_listing(listing_html, listing_url):
    result = extract_listing(RawDocument(source_url=listing_url, markup=listing_html))
    assert result.success
    assert result.error is None

    listing = result.data
    assert listing.car_name == "2022 Jeep Compass Limited Plus"
    assert listing.price == 1575000
    assert len(listing.images) == 4
    assert listing.images[0] == "https://img.example.com/usedcar/compass-1.jpg"
    assert listing.year_of_purchase == 2022
    assert listing.number_of_owners == 2
    assert listing.km_driven == 32500
    assert listing.city == "Pune"
    assert listing.fuel_type == "Diesel"
    assert listing.transmission == "Automatic"
    assert listing.features == ["Sunroof", "Rear Camera", "Cruise Control"]
    assert listing.specifications["Mileage"] == "17.1 kmpl"
    assert listing.source_url == listing_url


def test_extraction_is_deterministic(listing_html, listing_url):
    first = extract_from_markup(listing_html, listing_url)
    second = extract_from_markup(listing_html, listing_url)
    assert first == second


def test_optional_fields_are_omitted_not_invented(listing_html, listing_url):
    data = extract_from_markup(listing_html, listing_url).data.to_dict()
    for name in ("variant", "color", "insurance", "body_type", "new_car_price"):
        assert name not in data


def test_defaults_when_year_and_owners_missing():
    html = """
    <h1>Maruti Swift VXI</h1>
    <div class="price">₹4.5 Lakh</div>
    <div class="gallery"><img src="https://img.example.com/usedcar/swift.jpg"></div>
    """
    listing = extract_from_markup(html).data
    assert listing.year_of_purchase == date.today().year
    assert listing.number_of_owners == 1
    assert listing.km_driven is None


def test_missing_price(listing_html, listing_url):
    html = listing_html.replace(
        '<div class="price-section"><span class="price">₹15.75 Lakh</span> <span class="emi">EMI starts ₹25,000</span></div>',
        "",
    )
    result = extract_from_markup(html, listing_url)
    assert not result.success
    assert result.data is None
    assert result.error.kind is ErrorKind.MISSING_REQUIRED_FIELD
    assert result.error.field == "price"
    assert result.error.reason == "not_found"


def test_malformed_price_is_reported_as_missing():
    html = """
    <h1>Honda City ZX</h1>
    <div class="price">15,75,000 Lakh</div>
    <div class="gallery"><img src="https://img.example.com/usedcar/city.jpg"></div>
    """
    error = extract_from_markup(html).error
    assert error.kind is ErrorKind.MISSING_REQUIRED_FIELD
    assert error.field == "price"
    assert error.reason == "malformed_amount"


def test_malformed_price_is_not_rescued_by_later_patterns():
    """A comma-grouped numeral with a denomination word stops the price chain."""
    html = """
    <h1>2022 Jeep Compass</h1>
    <div class="price">₹1,575,000 Lakh</div>
    <div class="gallery"><img src="https://img.example.com/usedcar/compass-1.jpg"></div>
    """
    result = extract_from_markup(html)
    assert not result.success
    assert result.data is None
    assert result.error.kind is ErrorKind.MISSING_REQUIRED_FIELD
    assert result.error.field == "price"
    assert result.error.reason == "malformed_amount"


def test_emi_listed_first_in_price_section():
    html = """
    <h1>2022 Jeep Compass</h1>
    <div class="price-section"><span class="emi">EMI starts ₹25,000</span> <span class="price">₹15.75 Lakh</span></div>
    <div class="gallery"><img src="https://img.example.com/usedcar/compass-1.jpg"></div>
    """
    listing = extract_from_markup(html).data
    assert listing.price == 1575000
    assert listing.emi_starts_at == 25000


def test_no_valid_images():
    html = """
    <h1>Honda City ZX</h1>
    <div class="price">₹7 Lakh</div>
    <div class="gallery"><img src="https://img.example.com/static/logo.png"></div>
    """
    error = extract_from_markup(html).error
    assert error.field == "images"
    assert error.reason == "no_valid_images"


def test_required_fields_checked_in_order():
    """Car name is reported before price, price before images."""
    assert extract_from_markup("<p>nothing useful</p>").error.field == "car_name"
    assert extract_from_markup("<h1>Honda City</h1>").error.field == "price"
    assert extract_from_markup("<h1>Honda City</h1><p>Price ₹5 Lakh</p>").error.field == "images"


@pytest.mark.parametrize("doc", [
    None,
    RawDocument(source_url="https://www.example.com/x", markup=""),
    RawDocument(source_url="https://www.example.com/x", markup="   \n"),
])
def test_missing_document(doc):
    result = extract_listing(doc)
    assert not result.success
    assert result.error.kind is ErrorKind.PRECONDITION_FAILED
    assert result.error.field is None


def test_error_serialization():
    error = extract_from_markup("<h1>Honda City</h1>").error
    assert error.to_dict() == {
        "kind": "missing_required_field",
        "field": "price",
        "reason": "not_found",
        "message": "Missing required field: price (not_found)",
    }
