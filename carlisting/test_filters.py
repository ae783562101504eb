"""
Tests for the listing filter engine.
"""
from hypothesis import given, strategies as st

from carlisting.filters import filter_listings
from carlisting.models import FilterCriteria, ListingRecord


def _rec(listing_id, brand, model, price, city="Pune", fuel="petrol", transmission="manual", year=2020):
    return ListingRecord(
        listing_id=listing_id, brand=brand, car_model=model, price=price, city=city,
        fuel_type=fuel, transmission=transmission, year=year,
    )


RECORDS = [
    _rec("1", "Jeep", "Compass", 1575000, city="Pune", fuel="diesel", transmission="automatic", year=2022),
    _rec("2", "Maruti", "Swift", 450000, city="Delhi", year=2017),
    _rec("3", "Honda", "City", 900000, city="Mumbai", transmission="automatic", year=2019),
    _rec("4", "Hyundai", "Creta", None, city="Pune", fuel="diesel", year=None),
]


def _ids(records):
    return [r.listing_id for r in records]


def test_empty_criteria_returns_everything():
    assert filter_listings(RECORDS) == RECORDS
    assert filter_listings(RECORDS, FilterCriteria()) == RECORDS


def test_set_criteria_are_case_insensitive():
    assert _ids(filter_listings(RECORDS, FilterCriteria(brands=["jeep", "HONDA"]))) == ["1", "3"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(cities=["pune"]))) == ["1", "4"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(fuel_types=["Diesel"]))) == ["1", "4"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(transmissions=["automatic"]))) == ["1", "3"]


def test_ranges_are_inclusive_and_skip_unknown_values():
    assert _ids(filter_listings(RECORDS, FilterCriteria(price_min=450000, price_max=900000))) == ["2", "3"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(year_min=2019))) == ["1", "3"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(year_max=2017))) == ["2"]


def test_text_query_matches_brand_model_and_city():
    assert _ids(filter_listings(RECORDS, FilterCriteria(query="swift"))) == ["2"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(query="mumbai"))) == ["3"]
    assert _ids(filter_listings(RECORDS, FilterCriteria(query="  "))) == ["1", "2", "3", "4"]


def test_criteria_combine():
    criteria = FilterCriteria(cities=["Pune"], fuel_types=["diesel"], price_max=2000000)
    assert _ids(filter_listings(RECORDS, criteria)) == ["1"]


records_st = st.lists(
    st.builds(
        ListingRecord,
        listing_id=st.uuids().map(str),
        brand=st.sampled_from(["Jeep", "Maruti", "Honda", "Tata"]),
        car_model=st.sampled_from(["Compass", "Swift", "City", "Nexon"]),
        price=st.one_of(st.none(), st.integers(min_value=0, max_value=5_000_000)),
        city=st.sampled_from(["Pune", "Delhi", "Mumbai"]),
        fuel_type=st.sampled_from(["petrol", "diesel", "cng"]),
        transmission=st.sampled_from(["manual", "automatic"]),
        year=st.one_of(st.none(), st.integers(min_value=2000, max_value=2025)),
    ),
    max_size=30,
    unique_by=lambda r: r.listing_id,
)

criteria_st = st.builds(
    FilterCriteria,
    brands=st.lists(st.sampled_from(["Jeep", "Maruti", "Honda", "Tata"]), max_size=2),
    cities=st.lists(st.sampled_from(["Pune", "Delhi", "Mumbai"]), max_size=2),
    price_min=st.one_of(st.none(), st.integers(min_value=0, max_value=5_000_000)),
    year_max=st.one_of(st.none(), st.integers(min_value=2000, max_value=2025)),
)


@given(records_st, criteria_st)
def test_result_is_ordered_subset(records, criteria):
    result = filter_listings(records, criteria)
    positions = [records.index(r) for r in result]
    assert positions == sorted(positions)
    assert all(r in records for r in result)


@given(records_st, criteria_st, st.sampled_from(["Pune", "Delhi", "Mumbai"]))
def test_adding_a_criterion_never_widens_results(records, criteria, city):
    narrower = FilterCriteria(
        brands=criteria.brands,
        cities=[city],
        price_min=criteria.price_min,
        year_max=criteria.year_max,
    )
    base = FilterCriteria(brands=criteria.brands, price_min=criteria.price_min, year_max=criteria.year_max)
    wide = filter_listings(records, base)
    assert all(r in wide for r in filter_listings(records, narrower))
