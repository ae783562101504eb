"""
Browser management and import orchestration.

Pages are rendered with headless chromium so client-side content and lazy
images are present; the captured markup is then handed to the synchronous
extraction pipeline.
"""
import asyncio
import logging
import os
import random
from typing import List, Optional, Tuple

from playwright.async_api import async_playwright, TimeoutError as PlaywrightTimeout

from .models import ExtractionResult, RawDocument
from .scraper import extract_listing


logger = logging.getLogger(__name__)

HEADING_WAIT_SEL = "h1, .car-title, .heading"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)
DEFAULT_CONCURRENCY = 2


async def fetch_document(context, url: str, timeout_ms: int = 30_000) -> Optional[RawDocument]:
    """
    Render one listing page and capture its markup.

    Returns None when the page cannot be loaded; the pipeline reports that
    as a precondition failure.
    """
    page = await context.new_page()
    try:
        logger.info(f">>> Loading page: {url}")
        await page.goto(url, wait_until="networkidle", timeout=timeout_ms)

        try:
            await page.wait_for_selector(HEADING_WAIT_SEL, timeout=5_000)
        except PlaywrightTimeout:
            logger.warning(f"Main heading not found on {url}, continuing anyway")

        # Scroll to the bottom so lazy-loaded gallery images get a src
        try:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
        except Exception:
            logger.debug(f"Scroll failed on {url}", exc_info=True)
        await asyncio.sleep(random.uniform(1.5, 2.5))

        html = await page.content()
        return RawDocument(source_url=url, markup=html)
    except Exception as e:
        logger.error(f"Failed to render {url}: {e}")
        return None
    finally:
        await page.close()


async def run_import(
    urls: List[str],
    headless: bool = True,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> List[Tuple[str, ExtractionResult]]:
    """
    Render and extract every URL with at most ``concurrency`` pages open.

    Results come back in the order of ``urls``.
    """
    is_headless = bool(headless) or os.getenv("HEADLESS", "").strip().lower() in ("1", "true")
    launch_args = ["--disable-blink-features=AutomationControlled"]
    if is_headless:
        launch_args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=is_headless, args=launch_args)
        logger.info(f">>> Headless mode: {is_headless}")
        context = await browser.new_context(
            viewport={"width": 1280, "height": 900},
            user_agent=USER_AGENT,
            locale="en-IN",
        )
        context.set_default_timeout(30_000)
        context.set_default_navigation_timeout(45_000)

        async def one(url: str) -> Tuple[str, ExtractionResult]:
            async with semaphore:
                doc = await fetch_document(context, url)
            return url, await asyncio.to_thread(extract_listing, doc)

        try:
            results = await asyncio.gather(*(one(u) for u in urls))
        finally:
            await context.close()
            await browser.close()

    return list(results)
