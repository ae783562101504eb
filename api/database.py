"""
Database operations and connection management.
"""
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from carlisting.database import (
    db_all_records,
    db_get_listing,
    db_init,
    row_to_record,
    upsert_with_price_history,
)
from carlisting.models import ListingRecord

from .config import config

logger = logging.getLogger(__name__)


@contextmanager
def get_db_connection():
    """Connection to the configured listings database, closed on exit."""
    conn = sqlite3.connect(config.DB_PATH, timeout=10)
    try:
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error on {config.DB_PATH}: {e}")
        raise
    finally:
        conn.close()


def init_database() -> None:
    """Create the database file and schema if they do not exist yet."""
    os.makedirs(os.path.dirname(config.DB_PATH) or ".", exist_ok=True)
    with get_db_connection() as conn:
        db_init(conn)


def get_records() -> List[ListingRecord]:
    """All searchable listings, oldest first."""
    with get_db_connection() as conn:
        return db_all_records(conn, status=config.SEARCH_STATUS or None)


def get_listing_by_id(listing_id: str) -> Optional[ListingRecord]:
    """Get a single listing by ID."""
    with get_db_connection() as conn:
        row = db_get_listing(conn, listing_id)
        return row_to_record(row) if row else None


def get_price_history(listing_id: str) -> List[Dict]:
    """Get price history for a specific listing."""
    with get_db_connection() as conn:
        cursor = conn.execute(
            'SELECT ts, price FROM price_history WHERE listing_id = ? ORDER BY ts ASC',
            (listing_id,)
        )
        return [{'ts': row[0], 'price': row[1]} for row in cursor.fetchall()]


def save_record(record: ListingRecord) -> Tuple[bool, bool]:
    """Persist a record, creating the schema if needed."""
    init_database()
    with get_db_connection() as conn:
        return upsert_with_price_history(conn, record)


def _breakdown(conn: sqlite3.Connection, column: str, order: str, limit: int = 20) -> Dict[str, int]:
    """Listing counts per distinct non-empty value of ``column``."""
    rows = conn.execute(
        f"SELECT {column}, COUNT(*) AS n FROM listings "
        f"WHERE {column} IS NOT NULL AND {column} != '' "
        f"GROUP BY {column} ORDER BY {order} LIMIT ?",
        (limit,)
    ).fetchall()
    return {str(value): n for value, n in rows}


def get_statistics() -> Dict[str, Any]:
    """Totals, price range and breakdowns by brand, city and year."""
    with get_db_connection() as conn:
        total, low, high, mean = conn.execute(
            'SELECT COUNT(*), MIN(price), MAX(price), AVG(price) FROM listings'
        ).fetchone()
        recent = conn.execute(
            "SELECT COUNT(*) FROM listings WHERE datetime(last_seen) >= datetime('now', ?)",
            (f"-{config.ACTIVE_DAYS} day",)
        ).fetchone()[0]

        return {
            'total_listings': total,
            'active_last_days': recent,
            'min_price': low,
            'max_price': high,
            'avg_price': mean,
            'by_brand': _breakdown(conn, 'brand', 'n DESC'),
            'by_city': _breakdown(conn, 'city', 'n DESC'),
            'by_year': _breakdown(conn, 'year', 'year DESC'),
        }
