"""
Command-line import: render listing pages, extract them, store the results.
"""
import argparse
import asyncio
import os
import sys
from typing import List, Tuple

from .core import DEFAULT_CONCURRENCY, run_import
from .database import db_connect, db_init, upsert_with_price_history
from .export import export_new_since_run, export_price_history, save_output_rows, write_frame
from .models import ExtractionResult, RawDocument
from .records import to_listing_record
from .scraper import extract_listing
from .utils import init_logger, now_iso


def read_urls(args) -> List[str]:
    urls = [u.strip() for u in args.urls if u.strip()]
    if args.urls_file:
        with open(args.urls_file, encoding="utf-8") as fh:
            urls += [line.strip() for line in fh if line.strip() and not line.startswith("#")]
    # Remove duplicates while preserving order
    uniq, seen = [], set()
    for u in urls:
        if u not in seen:
            uniq.append(u)
            seen.add(u)
    return uniq


def extract_html_file(path: str, source_url: str) -> Tuple[str, ExtractionResult]:
    """Run the pipeline over a saved, already rendered page."""
    with open(path, encoding="utf-8") as fh:
        markup = fh.read()
    return source_url or path, extract_listing(RawDocument(source_url=source_url, markup=markup))


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Used-car listing importer: render, extract, store in SQLite")
    ap.add_argument("urls", nargs="*", default=[], help="Listing page URLs")
    ap.add_argument("--urls-file", type=str, default="", help="File with one listing URL per line")
    ap.add_argument("--html-file", type=str, default="", help="Extract a saved HTML page instead of fetching")
    ap.add_argument("--source-url", type=str, default="", help="Origin URL of --html-file (for relative image refs)")
    ap.add_argument("--headless", action="store_true", help="Run without UI")
    ap.add_argument("--concurrency", type=int, default=int(os.getenv("IMPORT_CONCURRENCY", DEFAULT_CONCURRENCY)),
                    help="Maximum pages rendered at once")
    ap.add_argument("--db", type=str, default=os.getenv("CARLISTING_DB", "carlisting.db"), help="Path to SQLite DB")
    ap.add_argument("--status", choices=["pending", "approved"], default="pending",
                    help="Review status given to newly imported listings")
    ap.add_argument("--export-new", action="store_true", help="Export only new items since the current run")
    ap.add_argument("--out", type=str, default="", help="CSV/XLSX to export extracted listings to")
    ap.add_argument("--export-prices", action="store_true", help="Export price_history to CSV/XLSX (uses --out)")
    ap.add_argument("--export-prices-item", type=str, default="", help="Filter price_history by listing_id")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "carlisting.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or carlisting.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")

    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    log = init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    log.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )
    run_started_iso = now_iso()
    log.info(f">>> Run started at {run_started_iso}")

    if args.html_file:
        results = [extract_html_file(args.html_file, args.source_url)]
    else:
        urls = read_urls(args)
        if not urls:
            log.error("No URLs given (pass URLs, --urls-file or --html-file)")
            return 2
        results = asyncio.run(run_import(urls, headless=args.headless, concurrency=args.concurrency))

    # DB
    os.makedirs(os.path.dirname(args.db) or ".", exist_ok=True)
    conn = db_connect(args.db)
    db_init(conn)

    extracted = []
    new_items = 0
    price_changed_count = 0
    failed = 0
    for url, result in results:
        if not result.success:
            failed += 1
            # Surfaced for manual review; rerunning an unchanged page gives the same result
            log.warning(f">>> NEEDS REVIEW {url}: {result.error.message}")
            continue
        extracted.append(result.data)
        is_new, price_changed = upsert_with_price_history(conn, to_listing_record(result.data, status=args.status))
        if is_new:
            new_items += 1
        if price_changed:
            price_changed_count += 1
    log.info(f">>> Extracted {len(extracted)}, failed {failed}")
    log.info(f">>> In DB: new items added: {new_items}, price changes: {price_changed_count}")

    # Export
    if args.out:
        if args.export_prices:
            dfp = export_price_history(conn, listing_id=args.export_prices_item or None)
            write_frame(dfp, args.out)
            log.info(f">>> Export price_history: {len(dfp)} rows -> {args.out}")
        elif args.export_new:
            dfn = export_new_since_run(conn, run_started_iso)
            write_frame(dfn, args.out)
            log.info(f">>> Export only new items: {len(dfn)} rows -> {args.out}")
        else:
            save_output_rows(extracted, args.out, logger=log)

    conn.close()
    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
