"""
Image reference resolution and screening for listing galleries.
"""
import logging
from typing import Iterable, List, Optional, Set
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from .models import ImageCandidate


logger = logging.getLogger(__name__)

MAX_IMAGES = 20
MIN_URL_LENGTH = 10

# Attributes that may carry the image URL, lazy-loading variants included
SRC_ATTRIBUTES = ["src", "data-src", "data-lazy-src", "data-original", "data-lazy"]

GALLERY_SELECTORS = [
    ".gallery img",
    ".image-gallery img",
    ".car-images img",
    ".slider img",
    ".carousel img",
    "[data-gallery] img",
    ".photos img",
    "img[src*='usedcar']",
    "img[src*='car']",
]

# Rejected when found anywhere in the URL, alt text or class list
DENY_SUBSTRINGS = [
    "logo", "icon", "sprite", "placeholder", "avatar",
    "banner", "advertisement", "button", "arrow",
    "play", "video", "youtube", "social", "footer",
    "header", "menu", "nav", "badge", "tag",
    "ad", "1x1", "pixel", "tracking", "blank",
]

# Accepted only if the URL mentions one of these
ALLOW_KEYWORDS = ["usedcar", "car", "vehicle", "auto", "image", "img", "photo"]


def resolve_image_url(raw_ref: Optional[str], base_url: str) -> Optional[str]:
    """
    Turn a raw src value into an absolute https/http URL.

    Protocol-relative refs get "https:", root-relative refs get the page
    origin, absolute refs pass through; anything else is rejected.
    """
    if not raw_ref:
        return None
    ref = raw_ref.strip()
    if ref.lower() in ("", "true", "false"):
        return None

    if ref.startswith("//"):
        return "https:" + ref
    if ref.startswith("/"):
        parts = urlparse(base_url or "")
        if not parts.scheme or not parts.netloc:
            return None
        return f"{parts.scheme}://{parts.netloc}{ref}"
    if ref.lower().startswith(("http://", "https://")):
        return ref
    return None


def is_valid_car_image(candidate: ImageCandidate) -> bool:
    """Screen a candidate: deny-list first, then require an allow-listed keyword."""
    url = candidate.resolved_url
    if not url or len(url) < MIN_URL_LENGTH:
        return False

    haystacks = [url.lower(), (candidate.alt_text or "").lower(), (candidate.class_hints or "").lower()]
    for text in haystacks:
        if any(pattern in text for pattern in DENY_SUBSTRINGS):
            return False

    lower_url = url.lower()
    return any(keyword in lower_url for keyword in ALLOW_KEYWORDS)


def _raw_ref(img: Tag) -> Optional[str]:
    for attr in SRC_ATTRIBUTES:
        value = img.get(attr)
        if isinstance(value, list):
            value = " ".join(value)
        if value and value.strip().lower() not in ("true", "false"):
            return value.strip()
    return None


def image_candidate(img: Tag, base_url: str) -> Optional[ImageCandidate]:
    """Build a candidate from an <img> tag, or None if it carries no reference."""
    raw = _raw_ref(img)
    if not raw:
        return None
    classes = img.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return ImageCandidate(
        raw_ref=raw,
        resolved_url=resolve_image_url(raw, base_url),
        alt_text=img.get("alt") or "",
        class_hints=" ".join(classes),
    )


def select_images(candidates: Iterable[ImageCandidate], seen: Set[str], limit: int = MAX_IMAGES) -> List[str]:
    """Accept candidates in order, skipping URLs already in ``seen``."""
    accepted: List[str] = []
    for cand in candidates:
        if len(seen) >= limit:
            break
        if not cand.resolved_url or cand.resolved_url in seen:
            continue
        if not is_valid_car_image(cand):
            logger.debug(f"Rejected image candidate: {cand.raw_ref}")
            continue
        seen.add(cand.resolved_url)
        accepted.append(cand.resolved_url)
    return accepted


def collect_images(soup: BeautifulSoup, base_url: str) -> List[str]:
    """
    Collect up to MAX_IMAGES accepted gallery image URLs in first-seen order.

    Gallery containers are searched first; every <img> on the page is only
    considered when the galleries yield nothing.
    """
    seen: Set[str] = set()
    images: List[str] = []

    for selector in GALLERY_SELECTORS:
        cands = [c for c in (image_candidate(img, base_url) for img in soup.select(selector)) if c]
        images.extend(select_images(cands, seen))

    if not images:
        cands = [c for c in (image_candidate(img, base_url) for img in soup.find_all("img")) if c]
        images.extend(select_images(cands, seen))

    return images[:MAX_IMAGES]
