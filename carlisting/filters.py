"""
Listing filter engine: compiles search criteria into predicates and applies
them to stored records.
"""
from typing import Callable, Iterable, List, Optional, Sequence

from .models import FilterCriteria, ListingRecord


Predicate = Callable[[ListingRecord], bool]


def _always(record: ListingRecord) -> bool:
    return True


def one_of(attr: str, allowed: Sequence[str]) -> Predicate:
    """Record attribute is in the allowed set (case-insensitive); empty set matches all."""
    wanted = {str(v).strip().lower() for v in allowed or () if str(v).strip()}
    if not wanted:
        return _always
    return lambda r: (getattr(r, attr) or "").strip().lower() in wanted


def within(attr: str, low: Optional[int], high: Optional[int]) -> Predicate:
    """Record attribute lies in [low, high]; records without a value never match a set bound."""
    if low is None and high is None:
        return _always

    def check(r: ListingRecord) -> bool:
        value = getattr(r, attr)
        if value is None:
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True
    return check


def text_query(query: Optional[str]) -> Predicate:
    """Substring search over brand, model and city."""
    q = (query or "").strip().lower()
    if not q:
        return _always
    return lambda r: q in f"{r.brand} {r.car_model} {r.city}".lower()


def compile_criteria(criteria: Optional[FilterCriteria]) -> List[Predicate]:
    c = criteria or FilterCriteria()
    return [
        one_of("brand", c.brands),
        one_of("city", c.cities),
        one_of("fuel_type", c.fuel_types),
        one_of("transmission", c.transmissions),
        within("price", c.price_min, c.price_max),
        within("year", c.year_min, c.year_max),
        text_query(c.query),
    ]


def filter_listings(records: Iterable[ListingRecord], criteria: Optional[FilterCriteria] = None) -> List[ListingRecord]:
    """Records matching every criterion, in their original order."""
    predicates = compile_criteria(criteria)
    return [r for r in records if all(p(r) for p in predicates)]
