"""
Format and filing type detection.

Lightweight sniffing only: nothing here builds a parse tree. Format checks
look at the first bytes of a document, filing type detection runs an ordered
pattern table over a text sample.
"""

import logging
import re
from typing import Optional, Union

from .models import DocumentFormat

logger = logging.getLogger(__name__)


PDF_MAGIC = b"%PDF-"
SNIFF_LENGTH = 1000  # Characters inspected by the tag-structure and markup sniffs

XBRL_MARKERS = ["<xbrl", "<xbrli:xbrl", "<ix:header", "xmlns:xbrli"]
MARKUP_MARKERS = ["<html", "<!doctype html", "<body", "<head"]

# Ordered table of filing type id -> patterns. Evaluated top to bottom,
# so a type listed earlier wins when two could match (e.g. Form4 before
# SC 13D for "beneficial ownership").
FILING_TYPE_PATTERNS: list[tuple[str, list[re.Pattern]]] = [
    ("10-K", [re.compile(p, re.I) for p in (r"Form 10-K", r"Annual Report", r"10-K")]),
    ("10-Q", [re.compile(p, re.I) for p in (r"Form 10-Q", r"Quarterly Report", r"10-Q")]),
    ("8-K", [re.compile(p, re.I) for p in (r"Form 8-K", r"Current Report", r"8-K")]),
    ("Form4", [re.compile(p, re.I) for p in (r"Form 4", r"Statement of Changes", r"beneficial ownership")]),
    ("DEFA14A", [re.compile(p, re.I) for p in (
        r"DEFA14A", r"DEFA 14A", r"Additional Proxy Materials", r"Additional Proxy Soliciting",
    )]),
    ("SC 13D", [re.compile(p, re.I) for p in (r"Schedule 13D", r"SC 13D", r"beneficial ownership report")]),
    ("144", [re.compile(p, re.I) for p in (r"Form 144", r"Notice of Proposed Sale")]),
]

TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]*)</title>", re.I)
TAG_PATTERN = re.compile(r"<[^>]+>")


def _sample_text(content: Union[str, bytes], limit: Optional[int] = None) -> str:
    """Decode (a prefix of) content to text for sniffing."""
    if limit is not None:
        content = content[:limit]
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def is_portable_document(content: Union[str, bytes]) -> bool:
    """True iff the first 5 bytes are the PDF magic signature."""
    head = content[:len(PDF_MAGIC)]
    if isinstance(head, str):
        head = head.encode("latin-1", errors="replace")
    return head == PDF_MAGIC


def is_tag_structured_data(content: Union[str, bytes]) -> bool:
    """True iff the document looks like an XBRL instance or inline XBRL."""
    sample = _sample_text(content, SNIFF_LENGTH).lower()
    if any(marker in sample for marker in XBRL_MARKERS):
        return True
    return "<html" in sample and "xmlns:ix" in sample


def is_markup(content: Union[str, bytes]) -> bool:
    """True iff the document looks like HTML."""
    sample = _sample_text(content, SNIFF_LENGTH).lower()
    return any(marker in sample for marker in MARKUP_MARKERS)


def detect_format(content: Union[str, bytes]) -> DocumentFormat:
    """
    Detect the source format of a raw document.

    XBRL is checked before HTML because inline XBRL is also HTML.
    """
    if is_portable_document(content):
        return DocumentFormat.PDF
    if is_tag_structured_data(content):
        return DocumentFormat.XBRL
    if is_markup(content):
        return DocumentFormat.HTML
    return DocumentFormat.TEXT


def extract_title(sample: Union[str, bytes]) -> str:
    """Text of the document's <title> element, or an empty string."""
    match = TITLE_PATTERN.search(_sample_text(sample))
    return match.group(1).strip() if match else ""


def _match_filing_type(text: str) -> Optional[str]:
    for filing_type_id, patterns in FILING_TYPE_PATTERNS:
        if any(pattern.search(text) for pattern in patterns):
            return filing_type_id
    return None


def detect_filing_type(sample: Union[str, bytes]) -> Optional[str]:
    """
    Detect the filing type of a document sample.

    The pattern table is matched against the body text first (the sample
    with its <title> element removed and tags stripped), then against the
    extracted title.

    Args:
        sample: Document text or bytes (HTML, plain text, or extracted PDF text)

    Returns:
        Filing type id, or None if no pattern matches
    """
    text = _sample_text(sample)
    body = TAG_PATTERN.sub(" ", TITLE_PATTERN.sub(" ", text))

    filing_type = _match_filing_type(body)
    if filing_type:
        logger.debug(f"Detected filing type from body: {filing_type}")
        return filing_type

    title = extract_title(text)
    if title:
        filing_type = _match_filing_type(title)
        if filing_type:
            logger.debug(f"Detected filing type from title: {filing_type}")
            return filing_type

    logger.debug("No filing type pattern matched")
    return None
