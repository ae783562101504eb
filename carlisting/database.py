"""
SQLite persistence for imported listings and their price history.
"""
import json
import sqlite3
from typing import Dict, List, Optional, Tuple

from .models import ListingRecord
from .utils import now_iso


# Schema definitions
DDL_LISTINGS = """
CREATE TABLE IF NOT EXISTS listings (
  listing_id TEXT PRIMARY KEY,
  brand TEXT,
  car_model TEXT,
  variant TEXT,
  fuel_type TEXT,
  transmission TEXT,
  year INTEGER,
  number_of_owners INTEGER,
  km_driven INTEGER,
  city TEXT,
  owner_name TEXT,
  description TEXT,
  price INTEGER,
  images_json TEXT,
  features_json TEXT,
  specifications_json TEXT,
  details_json TEXT,
  status TEXT DEFAULT 'pending',
  source TEXT DEFAULT 'scraped',
  source_url TEXT,
  first_seen TEXT,
  last_seen TEXT
);
"""

DDL_PRICE_HISTORY = """
CREATE TABLE IF NOT EXISTS price_history (
  listing_id TEXT,
  ts TEXT,
  price INTEGER,
  PRIMARY KEY (listing_id, ts)
);
"""

DDL_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_listings_brand_city_price ON listings(brand, city, price);",
    "CREATE INDEX IF NOT EXISTS idx_listings_last_seen ON listings(last_seen);",
    "CREATE INDEX IF NOT EXISTS idx_price_history_listing ON price_history(listing_id);"
]

JSON_COLUMNS = {
    "images_json": "images",
    "features_json": "features",
    "specifications_json": "specifications",
    "details_json": "details",
}


def db_connect(path: str) -> sqlite3.Connection:
    """Create database connection with optimized settings."""
    conn = sqlite3.connect(path)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


def db_init(conn: sqlite3.Connection):
    """Initialize database schema with tables and indexes."""
    conn.execute(DDL_LISTINGS)
    conn.execute(DDL_PRICE_HISTORY)
    for ddl in DDL_INDEXES:
        conn.execute(ddl)
    conn.commit()


def row_to_dict(cur, row):
    """Convert a result row to a dictionary."""
    return {desc[0]: row[i] for i, desc in enumerate(cur.description)}


def row_to_record(row: Dict) -> ListingRecord:
    """Build a ListingRecord from a listings row, decoding the JSON columns."""
    data = {k: v for k, v in row.items() if k not in JSON_COLUMNS}
    for column, attr in JSON_COLUMNS.items():
        raw = row.get(column)
        data[attr] = json.loads(raw) if raw else ({} if attr in ("specifications", "details") else [])
    for text_attr in ("brand", "car_model", "variant", "fuel_type", "transmission", "city",
                      "owner_name", "description", "status", "source", "source_url"):
        if data.get(text_attr) is None:
            data[text_attr] = ""
    if data.get("number_of_owners") is None:
        data["number_of_owners"] = 1
    return ListingRecord(**data)


def _record_params(rec: ListingRecord) -> Tuple:
    return (
        rec.brand, rec.car_model, rec.variant, rec.fuel_type, rec.transmission,
        rec.year, rec.number_of_owners, rec.km_driven, rec.city, rec.owner_name,
        rec.description, rec.price,
        json.dumps(rec.images, ensure_ascii=False),
        json.dumps(rec.features, ensure_ascii=False),
        json.dumps(rec.specifications, ensure_ascii=False),
        json.dumps(rec.details, ensure_ascii=False),
        rec.status, rec.source, rec.source_url,
    )


def db_get_listing(conn: sqlite3.Connection, listing_id: str) -> Optional[Dict]:
    """Retrieve existing listing row by listing_id."""
    cur = conn.cursor()
    cur.execute("SELECT * FROM listings WHERE listing_id = ?", (listing_id,))
    r = cur.fetchone()
    if not r:
        return None
    return row_to_dict(cur, r)


def db_all_records(conn: sqlite3.Connection, status: Optional[str] = None) -> List[ListingRecord]:
    """All stored listings as records, oldest first."""
    cur = conn.cursor()
    if status:
        cur.execute("SELECT * FROM listings WHERE status = ? ORDER BY first_seen ASC, listing_id ASC", (status,))
    else:
        cur.execute("SELECT * FROM listings ORDER BY first_seen ASC, listing_id ASC")
    return [row_to_record(row_to_dict(cur, r)) for r in cur.fetchall()]


def db_insert_listing(conn: sqlite3.Connection, rec: ListingRecord):
    """Insert new listing into database."""
    ts = now_iso()
    cur = conn.cursor()
    cur.execute("""
    INSERT INTO listings (
      brand,car_model,variant,fuel_type,transmission,year,number_of_owners,km_driven,
      city,owner_name,description,price,images_json,features_json,specifications_json,
      details_json,status,source,source_url,listing_id,first_seen,last_seen
    ) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)
    """, _record_params(rec) + (rec.listing_id, ts, ts))
    conn.commit()


def db_update_listing(conn: sqlite3.Connection, rec: ListingRecord):
    """Update existing listing in database; status and first_seen are kept."""
    cur = conn.cursor()
    cur.execute("""
    UPDATE listings SET
      brand=?, car_model=?, variant=?, fuel_type=?, transmission=?, year=?, number_of_owners=?,
      km_driven=?, city=?, owner_name=?, description=?, price=?, images_json=?, features_json=?,
      specifications_json=?, details_json=?, source=?, source_url=?, last_seen=?
    WHERE listing_id=?
    """, _record_params(rec)[:16] + (rec.source, rec.source_url, now_iso(), rec.listing_id))
    conn.commit()


def db_insert_price_event(conn: sqlite3.Connection, listing_id: str, price: Optional[int]):
    """Insert price change event into price history."""
    if price is None:
        return
    cur = conn.cursor()
    cur.execute("""
    INSERT OR REPLACE INTO price_history (listing_id, ts, price)
    VALUES (?, ?, ?)
    """, (listing_id, now_iso(), price))
    conn.commit()


def upsert_with_price_history(conn: sqlite3.Connection, rec: ListingRecord) -> Tuple[bool, bool]:
    """
    Insert or update listing and track price changes.

    Returns:
        Tuple of (is_new_item, price_changed)
    """
    existing = db_get_listing(conn, rec.listing_id)
    if existing is None:
        db_insert_listing(conn, rec)
        if rec.price is not None:
            db_insert_price_event(conn, rec.listing_id, rec.price)
        return True, bool(rec.price is not None)
    else:
        old_price = existing.get("price")
        price_changed = rec.price is not None and (old_price is None or int(old_price) != int(rec.price))
        db_update_listing(conn, rec)
        if price_changed:
            db_insert_price_event(conn, rec.listing_id, rec.price)
        return False, price_changed
