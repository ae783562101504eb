"""
Export utilities for extracted and stored listings.
"""
import json
import sqlite3
from typing import List, Optional

import pandas as pd

from .models import ExtractedListing
from .utils import format_inr


def export_new_since_run(conn: sqlite3.Connection, run_started_iso: str) -> pd.DataFrame:
    """Export listings that were first seen since the given timestamp."""
    q = """
    SELECT *
    FROM listings
    WHERE first_seen >= ?
    ORDER BY first_seen DESC
    """
    df = pd.read_sql_query(q, conn, params=(run_started_iso,))
    return df


def export_price_history(conn: sqlite3.Connection, listing_id: Optional[str] = None) -> pd.DataFrame:
    """Export price history for all listings or a specific one."""
    if listing_id:
        q = "SELECT * FROM price_history WHERE listing_id=? ORDER BY ts ASC"
        return pd.read_sql_query(q, conn, params=(listing_id,))
    else:
        q = "SELECT * FROM price_history ORDER BY listing_id, ts ASC"
        return pd.read_sql_query(q, conn)


def listings_frame(listings: List[ExtractedListing]) -> pd.DataFrame:
    """One row per extracted listing; list and map fields are flattened."""
    rows = []
    for x in listings:
        row = x.to_dict()
        row["price_display"] = format_inr(x.price)
        row["images"] = "|".join(x.images)
        row["features"] = "|".join(x.features)
        row["specifications"] = json.dumps(x.specifications, ensure_ascii=False)
        rows.append(row)
    return pd.DataFrame(rows)


def write_frame(df: pd.DataFrame, out_path: str):
    """Write a frame as XLSX or CSV depending on the file extension."""
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def save_output_rows(listings: List[ExtractedListing], out_path: str, logger=None):
    """Save extracted listings to CSV or Excel file."""
    df = listings_frame(listings)
    write_frame(df, out_path)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    else:
        print(f">>> Saved {len(df)} rows to {out_path}")
