"""Monthly transaction feed source (RSS-style XML).

Each feed item carries its data in free text:

    <title>02/12(木) -¥3,000 DF.トウキユウカ-ド</title>
    <pubDate>02/12</pubDate>
    <description>category: 食費/その他食費 is_transfer: false</description>

Extraction is pattern based and never raises; unmatched text falls back
to defaults (amount 0, the whole title as name, empty category).
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Dict, List, Optional

from dateutil import parser as date_parser

from app.core.logging import get_logger
from app.ingestion.folder import DataFolder
from app.ingestion.runner import aggregate, sort_periods
from app.schemas.normalized import CURRENCY, TransactionRecord
from app.schemas.raw import FeedEntry
from .base import BaseSource

log = get_logger("ingestion.feed")

TITLE_PATTERN = re.compile(r"^\d{2}/\d{2}\(.+?\)\s+([+-]?¥[\d,]+)\s+(.+)\Z", re.ASCII)
CATEGORY_PATTERN = re.compile(r"category:\s*(.*?)\s+is_transfer:", re.ASCII)
TRANSFER_PATTERN = re.compile(r"is_transfer:\s*(true|false)", re.ASCII)

MONTH_DAY_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})", re.ASCII)
YEAR_MONTH_DAY_PATTERN = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})", re.ASCII)
FOUR_DIGIT_YEAR_PATTERN = re.compile(r"\d{4}", re.ASCII)


def _iso_date(year: str | int, month: str | int, day: str | int) -> str:
    return f"{str(year).zfill(4)}-{str(month).zfill(2)}-{str(day).zfill(2)}"


def format_date(pub_date: Optional[str], fallback_year: Optional[str] = None) -> str:
    """Normalize a feed date to YYYY-MM-DD, or "" when it cannot be read."""
    value = (pub_date or "").strip()
    if not value:
        return ""

    month_day = MONTH_DAY_PATTERN.match(value)
    if month_day and not FOUR_DIGIT_YEAR_PATTERN.search(value):
        year = fallback_year or datetime.now().year
        return _iso_date(year, month_day.group(1), month_day.group(2))

    # Reformat directly so no timezone conversion can shift the day
    ymd = YEAR_MONTH_DAY_PATTERN.match(value)
    if ymd:
        return _iso_date(*ymd.groups())

    try:
        parsed = date_parser.parse(value)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.strftime("%Y-%m-%d")
    except (ValueError, OverflowError, TypeError):
        log.debug(f"Unparseable feed date: {value!r}")
        return ""


def parse_amount(amount_text: str) -> int:
    cleaned = amount_text.replace("¥", "").replace(",", "")
    try:
        return int(cleaned)
    except ValueError:
        return 0


def extract_transaction(
    title: Optional[str],
    pub_date: Optional[str],
    description: Optional[str],
    period_year: Optional[str] = None,
) -> TransactionRecord:
    title = title or ""
    description = description or ""

    amount_text, name = "0", title
    title_match = TITLE_PATTERN.match(title)
    if title_match:
        amount_text, name = title_match.group(1), title_match.group(2)

    category_match = CATEGORY_PATTERN.search(description)
    transfer_match = TRANSFER_PATTERN.search(description)

    return TransactionRecord(
        date=format_date(pub_date, period_year),
        amount=parse_amount(amount_text),
        currency=CURRENCY,
        name=name,
        category=category_match.group(1).strip() if category_match else "",
        is_transfer=bool(transfer_match) and transfer_match.group(1) == "true",
    )


def _text(item: ET.Element, tag: str) -> str:
    return (item.findtext(tag) or "").strip()


def parse_feed_entries(xml_text: str) -> List[FeedEntry]:
    """Raises xml.etree.ElementTree.ParseError on malformed documents."""
    root = ET.fromstring(xml_text)
    return [
        FeedEntry(
            title=_text(item, "title"),
            pub_date=_text(item, "pubDate"),
            description=_text(item, "description"),
        )
        for item in root.iter("item")
    ]


def parse_feed(xml_text: str, period_year: Optional[str] = None) -> List[TransactionRecord]:
    return [
        extract_transaction(entry.title, entry.pub_date, entry.description, period_year)
        for entry in parse_feed_entries(xml_text)
    ]


class FeedSource(BaseSource):
    """Reads every monthly feed file in the data folder."""

    name = "feed"

    def __init__(self, folder: DataFolder):
        self.folder = folder

    def fetch_periods(self) -> Dict[str, List[TransactionRecord]]:
        """Per-period records, newest period first; unreadable periods become []."""
        files = self.folder.feed_files()
        periods: Dict[str, List[TransactionRecord]] = {}
        for period in sort_periods(files):
            path = files[period]
            try:
                periods[period] = parse_feed(path.read_text(encoding="utf-8"), period_year=period[:4])
            except Exception as exc:  # noqa: BLE001
                log.warning(f"Failed to parse feed period={period} file={path.name}: {exc}")
                periods[period] = []
        log.info(f"Loaded {sum(len(v) for v in periods.values())} transactions from {len(periods)} feed periods")
        return periods

    def fetch(self) -> List[TransactionRecord]:
        return aggregate(self.fetch_periods())
