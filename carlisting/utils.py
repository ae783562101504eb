"""
Utility functions for text processing, amount parsing/formatting, and logging.
"""
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


CURRENCY_GLYPH = "₹"

DENOMINATIONS = {
    "lakh": 100_000,
    "crore": 10_000_000,
}

# First numeral in the text, plus a denomination word directly after it
AMOUNT_RE = re.compile(
    r"(?<![\d.])(\d[\d,]*(?:\.\d+)?)(?:\s*(lakh|crore)s?\b)?",
    re.I,
)


def init_logger(
    name: str = "carlisting",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "carlisting.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def to_int(text: Optional[str]) -> Optional[int]:
    """Read the digits of text as an integer, ignoring grouping commas."""
    if not text:
        return None
    digits = re.sub(r"\D", "", text.split(".")[0])
    if not digits:
        return None
    return int(digits)


def is_malformed_amount(text: Optional[str]) -> bool:
    """Comma grouping together with a denomination word: "₹1,575,000 Lakh"."""
    if not text:
        return False
    m = AMOUNT_RE.search(text.replace("\xa0", " "))
    return bool(m and m.group(2) and "," in m.group(1))


def parse_amount(text: Optional[str]) -> int:
    """
    Parse a free-text amount into an integer number of rupees.

    "15,75,000" -> 1575000, "₹15.75 Lakh" -> 1575000, "1.2 Crore" -> 12000000.
    Commas are digit grouping. Returns 0 when no numeral is present and
    when the text is malformed (comma grouping together with a
    denomination word, which would otherwise multiply an already full
    amount).
    """
    if not text:
        return 0

    m = AMOUNT_RE.search(text.replace("\xa0", " "))
    if not m:
        return 0

    numeral, denomination = m.group(1), m.group(2)
    if denomination and "," in numeral:
        return 0

    try:
        value = Decimal(numeral.replace(",", ""))
    except InvalidOperation:
        return 0

    if denomination:
        value *= DENOMINATIONS[denomination.lower()]

    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_inr(amount: int) -> str:
    """
    Format an amount with South-Asian digit grouping.

    The last three digits form one group and the rest are grouped in pairs:
    500000 -> "₹5,00,000", 12345678 -> "₹1,23,45,678", 999 -> "₹999".
    """
    if amount < 0:
        raise ValueError(f"Amount must be non-negative, got {amount}")

    digits = str(int(amount))
    if len(digits) <= 3:
        return CURRENCY_GLYPH + digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while head:
        groups.insert(0, head[-2:])
        head = head[:-2]
    groups.append(tail)
    return CURRENCY_GLYPH + ",".join(groups)


def mask_owner_name(full_name: Optional[str]) -> str:
    """Show only the first name and last-name initial: "John Doe" -> "John D."."""
    parts = (full_name or "").split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]} {parts[-1][0]}."
