"""Schema-driven extraction of raw listing records from a results page."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from .base import RawRecord
from .schema import ExtractionConfig

logger = logging.getLogger(__name__)

# Raw key holding the portal's own listing id, when the card exposes one
SOURCE_ID_KEY = "source_id"


@dataclass
class ExtractionResult:
    """Records found on one page plus what the page says about the next one."""

    records: list[RawRecord] = field(default_factory=list)
    skipped: int = 0
    has_next: bool = False


def _image_url(element: Tag) -> Optional[str]:
    for attr in ("src", "data-src", "data-lazy-src"):
        value = element.get(attr)
        if value and not str(value).startswith("data:"):
            return str(value).strip()
    srcset = element.get("srcset") or element.get("data-srcset")
    if srcset:
        # "url 1x, url 2x" -> first url
        return str(srcset).split(",")[0].strip().split(" ")[0]
    return None


def _link_url(element: Tag) -> Optional[str]:
    for attr in ("href", "data-url", "data-href"):
        value = element.get(attr)
        if value:
            return str(value).strip()
    return None


def _select_field(
    card: Tag, name: str, selectors: tuple[str, ...], config: ExtractionConfig
) -> Union[str, list[str], None]:
    """Value of one field from the first selector that yields something."""
    for selector in selectors:
        if name in config.image_fields:
            urls = [u for u in (_image_url(el) for el in card.select(selector)) if u]
            if urls:
                return urls
            continue

        element = card.select_one(selector)
        if element is None:
            continue
        if name in config.link_fields:
            value = _link_url(element)
        else:
            value = element.get_text(" ", strip=True)
        if value:
            return value
    return None


def extract_card(card: Tag, config: ExtractionConfig) -> RawRecord:
    """Pull every configured field out of one listing card.

    CSS selectors are tried first (first match wins per field); fields still
    empty are tried against the regex patterns over the card text, in
    declared order. Group 1 is used when the pattern has one.
    """
    record: RawRecord = {}

    for name, selectors in config.selectors.items():
        value = _select_field(card, name, selectors, config)
        if value:
            record[name] = value

    # Cards that are themselves links
    for name in config.link_fields:
        if name not in record:
            value = _link_url(card)
            if value:
                record[name] = value

    if config.patterns:
        text = card.get_text(" ", strip=True)
        for name, patterns in config.patterns.items():
            if record.get(name):
                continue
            for pattern in patterns:
                match = pattern.search(text)
                if match:
                    value = match.group(1) if match.groups() else match.group(0)
                    record[name] = (value or match.group(0)).strip()
                    break

    for attr in config.id_attributes:
        value = card.get(attr)
        if value:
            record[SOURCE_ID_KEY] = str(value).strip()
            break

    return record


def has_next_page(soup: BeautifulSoup, config: ExtractionConfig) -> bool:
    """Whether the page shows an enabled further-page indicator."""
    for selector in config.next_page:
        element = soup.select_one(selector)
        if element is None:
            continue
        classes = element.get("class") or []
        if "disabled" in classes or element.get("aria-disabled") == "true":
            continue
        return True
    return False


def extract_listings(html: str, config: ExtractionConfig) -> ExtractionResult:
    """Extract raw records from a results page.

    Cards that yield no field at all, or blow up while being read, are
    skipped and counted rather than raised.
    """
    soup = BeautifulSoup(html, "html.parser")
    result = ExtractionResult(has_next=has_next_page(soup, config))

    for card in soup.select(config.card_selector):
        # A matched wrapper around other matched cards is not a listing
        if card.select_one(config.card_selector) is not None:
            continue
        try:
            record = extract_card(card, config)
        except Exception as e:
            logger.debug(f"Skipping unreadable card: {e}")
            result.skipped += 1
            continue

        if not any(key != SOURCE_ID_KEY for key in record):
            result.skipped += 1
            continue
        result.records.append(record)

    return result
