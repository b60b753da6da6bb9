"""Pure raw-text -> typed-value functions used by schema transform tables.

Every function accepts whatever an extractor produced (a string, a list of
strings, or None) and never raises on junk input: a value with no digits
parses to 0, a missing list parses to [].
"""

import re
import unicodedata
from typing import Any, Callable
from urllib.parse import urljoin

_INT_RE = re.compile(r"\d+")
_DECIMAL_RE = re.compile(r"\d+(?:[.,]\d+)?")
_MONEY_RE = re.compile(r"\d[\d.,]*")
_MILLIONS_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:millones|mill|mm)\b", re.IGNORECASE)
_CURRENCY_RE = re.compile(r"\$|\bCOP\b|\bpesos?\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")

# Longer digit runs are two figures glued together by the page markup
# ("5.120.000680.000") and are skipped in favor of the next candidate.
MAX_PRICE_DIGITS = 10

NOT_AVAILABLE = frozenset({"not available", "no disponible", "n/a", "na", "-"})


def first_text(value: Any) -> str:
    """Collapse a raw value to one whitespace-normalized string."""
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        for item in value:
            text = first_text(item)
            if text:
                return text
        return ""
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def fold(value: Any) -> str:
    """Case- and accent-insensitive form for comparisons ("Usaquén" -> "usaquen")."""
    text = unicodedata.normalize("NFKD", first_text(value))
    return "".join(c for c in text if not unicodedata.combining(c)).casefold()


def first_int(value: Any) -> int:
    """First integer embedded in free text ("3 habitaciones" -> 3), else 0."""
    match = _INT_RE.search(first_text(value))
    return int(match.group()) if match else 0


def parse_area(value: Any) -> float:
    """Area in m2 from text like "85,5 m²" or "Área: 120"; 0 when absent."""
    match = _DECIMAL_RE.search(first_text(value))
    if not match:
        return 0.0
    return float(match.group().replace(",", "."))


def parse_price(value: Any) -> int:
    """Parse a Colombian price string to integer pesos.

    Handles "$ 2.500.000", "2,500,000 COP", "$2,5 millones" and glued-together
    figures. Returns 0 when there is no digit.
    """
    text = first_text(value)
    if not text:
        return 0

    millions = _MILLIONS_RE.search(text)
    if millions:
        return int(round(float(millions.group(1).replace(",", ".")) * 1_000_000))

    text = _CURRENCY_RE.sub(" ", text)
    for candidate in _MONEY_RE.findall(text):
        digits = re.sub(r"\D", "", candidate)
        if digits and len(digits) <= MAX_PRICE_DIGITS:
            return int(digits)
    return 0


def digits_only(value: Any) -> int:
    """Concatenate every digit ("1.250" -> 1250), else 0."""
    digits = re.sub(r"\D", "", first_text(value))
    return int(digits) if digits else 0


def to_list(value: Any) -> list[str]:
    """Wrap a scalar into a list and drop empty entries."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [text for text in (first_text(item) for item in items) if text]


def split_amenities(value: Any) -> list[str]:
    """Split "Gimnasio, Piscina ,, BBQ" into ["Gimnasio", "Piscina", "BBQ"].

    The "not available" sentinel (and its Spanish form) yields [].
    """
    parts: list[str] = []
    for chunk in to_list(value):
        if chunk.lower() in NOT_AVAILABLE:
            continue
        parts.extend(p.strip() for p in chunk.split(","))
    return [p for p in parts if p and p.lower() not in NOT_AVAILABLE]


def absolute_url(base_url: str) -> Callable[[Any], str]:
    """Build a transform resolving relative and protocol-relative links."""

    def _transform(value: Any) -> str:
        url = first_text(value)
        if not url:
            return ""
        if url.startswith("//"):
            return f"https:{url}"
        return urljoin(base_url, url)

    return _transform


def absolute_urls(base_url: str) -> Callable[[Any], list[str]]:
    """List version of ``absolute_url`` for image galleries."""
    resolve = absolute_url(base_url)

    def _transform(value: Any) -> list[str]:
        return [url for url in (resolve(item) for item in to_list(value)) if url]

    return _transform
