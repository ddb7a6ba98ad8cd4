"""Normalize sparse CrossRef work items into PaperRecord values."""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

from models import NO_DOI, PaperRecord

DEFAULT_TITLE = "Untitled"
DEFAULT_AUTHORS = "Unknown authors"
DEFAULT_ABSTRACT = "No abstract available."
DEFAULT_JOURNAL = "Unknown Journal"
UNKNOWN_YEAR = "N/A"
DOI_RESOLVER_URL = "https://doi.org/"

# Block-level JATS/HTML elements separate words; inline ones (italic, sup, ...) do not.
_BLOCK_TAG_RE = re.compile(
    r"<\s*/?\s*(?:[\w-]+:)?(?:p|sec|title|label|list|list-item|li|ul|ol|div|br|caption)\b[^>]*>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]*>")


def normalize_items(items: list[Any], offset: int = 0) -> list[PaperRecord]:
    """Normalize one page of raw items, keeping their order."""
    return [normalize_item(item, index, offset) for index, item in enumerate(items)]


def normalize_item(item: Any, index: int = 0, offset: int = 0) -> PaperRecord:
    """Map one raw CrossRef item to a PaperRecord.

    Every field falls back to a fixed default, so this never raises on
    missing or malformed data. The id is derived from the item's absolute
    position in the result set plus its DOI, which keeps it unique within a
    page and identical across repeated normalization of the same item.

    Args:
        item: One element of ``message.items``.
        index: Zero-based position of the item within the page.
        offset: The page's CrossRef offset.
    """
    if not isinstance(item, dict):
        item = {}

    doi = _as_str(item.get("DOI"))
    doi_url = f"{DOI_RESOLVER_URL}{doi}" if doi else ""

    return PaperRecord(
        id=_record_id(item, doi, offset + index + 1),
        title=_first_str(item.get("title")) or DEFAULT_TITLE,
        authors=_authors(item.get("author")),
        abstract=_strip_markup(item.get("abstract")) or DEFAULT_ABSTRACT,
        year=_year(item),
        citation_count=_citation_count(item.get("is-referenced-by-count")),
        journal=_first_str(item.get("container-title")) or DEFAULT_JOURNAL,
        doi=doi or NO_DOI,
        url=_as_str(item.get("URL")) or doi_url,
        pdf_url=_pdf_url(item.get("link")) or doi_url,
        subjects=tuple(s for s in (_as_str(v) for v in _as_list(item.get("subject"))) if s),
    )


def _record_id(item: dict[str, Any], doi: str | None, position: int) -> str:
    if doi:
        return f"paper-{position}-{doi}"
    canonical = json.dumps(item, sort_keys=True, default=str)
    digest = hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:12]
    return f"paper-{position}-nodoi-{digest}"


def _year(item: dict[str, Any]) -> int | str:
    """Print date first, then online date; only the year part is used."""
    for key in ("published-print", "published-online"):
        block = item.get(key)
        if not isinstance(block, dict):
            continue
        parts = block.get("date-parts")
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], list) or not parts[0]:
            continue
        year = parts[0][0]
        if isinstance(year, bool):
            continue
        if isinstance(year, int):
            return year
        if isinstance(year, str) and year.strip().isdigit():
            return int(year.strip())
    return UNKNOWN_YEAR


def _authors(raw: Any) -> str:
    names: list[str] = []
    for author in _as_list(raw):
        if not isinstance(author, dict):
            continue
        full = " ".join(
            part for part in (_as_str(author.get("given")), _as_str(author.get("family"))) if part
        )
        name = full or _as_str(author.get("name"))
        if name:
            names.append(name)
    return ", ".join(names) if names else DEFAULT_AUTHORS


def _strip_markup(raw: Any) -> str:
    if not isinstance(raw, str):
        return ""
    text = _BLOCK_TAG_RE.sub(" ", raw)
    return " ".join(_TAG_RE.sub("", text).split())


def _citation_count(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        return 0
    return max(raw, 0)


def _pdf_url(links: Any) -> str | None:
    """Prefer a link typed as PDF; otherwise take the first usable link."""
    candidates = [link for link in _as_list(links) if isinstance(link, dict) and _as_str(link.get("URL"))]
    for link in candidates:
        content_type = (_as_str(link.get("content-type")) or "").lower()
        if "pdf" in content_type:
            return _as_str(link.get("URL"))
    if candidates:
        return _as_str(candidates[0].get("URL"))
    return None


def _first_str(raw: Any) -> str | None:
    values = _as_list(raw)
    text = _as_str(values[0]) if values else _as_str(raw)
    return " ".join(text.split()) if text else None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None
