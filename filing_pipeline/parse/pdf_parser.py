"""
PDF structural parser for SEC filings.

Two passes over the same bytes:
1. Text pass: extracts the text stream and splits it into sections at
   heading-like lines (sequential evidence).
2. Table pass: re-reads positioned words per page and rebuilds tables
   from their row/column geometry (spatial evidence).

The geometry helpers are pure functions over TextElement lists so they
can be exercised without a PDF.
"""

import io
import json
import logging
import threading
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Any, Optional, Union

import pdfplumber

from .errors import OperationCancelled, ParseError
from .html_parser import truncate
from .models import DocumentFormat, ParserOptions, Section, SectionKind

logger = logging.getLogger(__name__)


# =============================================================================
# Reconstruction constants
# =============================================================================
# Empirically chosen row/column tolerances. They operate in grid units of
# GRID_UNIT_POINTS PDF points (a US Letter page is 38.25 units wide).

GRID_UNIT_POINTS = 16.0
ROW_PRECISION = 2                # Decimals kept when keying rows by y
ROW_GAP_TOLERANCE = 0.5          # Max y gap for a single-element row to bridge a table
COLUMN_PRECISION = 1             # Decimals kept when comparing column x positions
COLUMN_OCCURRENCE_RATIO = 0.5    # Share of rows a column x position must appear in
MIN_TABLE_ROWS = 3
MIN_ROW_ELEMENTS = 2

# Heading heuristic for the text pass
HEADING_MAX_LENGTH = 60
DEFAULT_SECTION_TITLE = "Main Content"


@dataclass(frozen=True)
class TextElement:
    """A positioned run of text on a page, in grid units."""
    x: float
    y: float
    text: str


# =============================================================================
# Text pass
# =============================================================================

def is_heading_line(line: str) -> bool:
    """Short line left unchanged by upper-casing, letterless lines included."""
    stripped = line.strip()
    if not stripped or len(stripped) >= HEADING_MAX_LENGTH:
        return False
    return stripped.upper() == stripped


def segment_text_by_headings(text: str) -> list[Section]:
    """
    Split a text stream into sections at heading lines.

    A heading only closes the current section once that section has
    content; a heading seen before any content is kept as a content line.
    Lines before the first heading go to a "Main Content" section.
    """
    sections = []
    title: Optional[str] = None
    lines: list[str] = []

    for line in text.split("\n"):
        if not line.strip():
            continue

        if is_heading_line(line) and lines:
            sections.append(Section(kind=SectionKind.SECTION, title=title, content="\n".join(lines)))
            title = line.strip()
            lines = []
        else:
            if title is None:
                title = DEFAULT_SECTION_TITLE
            lines.append(line)

    if lines:
        sections.append(Section(kind=SectionKind.SECTION, title=title, content="\n".join(lines)))

    return sections


# =============================================================================
# Table pass
# =============================================================================

def group_rows(elements: list[TextElement]) -> dict[float, list[TextElement]]:
    """Group elements into rows keyed by rounded y, each row sorted by x."""
    rows: dict[float, list[TextElement]] = defaultdict(list)
    for elem in elements:
        rows[round(elem.y, ROW_PRECISION)].append(elem)
    return {y: sorted(row, key=lambda e: e.x) for y, row in rows.items()}


def find_table_candidates(rows: dict[float, list[TextElement]]) -> list[list[list[TextElement]]]:
    """
    Find runs of consecutive multi-element rows.

    A single-element row bridges a run when the next row is within
    ROW_GAP_TOLERANCE and has at least MIN_ROW_ELEMENTS elements.
    Runs shorter than MIN_TABLE_ROWS are dropped.
    """
    ys = sorted(rows)
    candidates = []
    current: list[list[TextElement]] = []

    for i, y in enumerate(ys):
        row = rows[y]
        if len(row) >= MIN_ROW_ELEMENTS:
            current.append(row)
            continue

        if current and i + 1 < len(ys):
            next_y = ys[i + 1]
            if next_y - y <= ROW_GAP_TOLERANCE and len(rows[next_y]) >= MIN_ROW_ELEMENTS:
                current.append(row)
                continue

        if len(current) >= MIN_TABLE_ROWS:
            candidates.append(current)
        current = []

    if len(current) >= MIN_TABLE_ROWS:
        candidates.append(current)

    return candidates


def infer_columns(table_rows: list[list[TextElement]]) -> list[float]:
    """Column x positions shared by at least COLUMN_OCCURRENCE_RATIO of the rows."""
    counts: Counter = Counter()
    for row in table_rows:
        counts.update({round(elem.x, COLUMN_PRECISION) for elem in row})

    threshold = len(table_rows) * COLUMN_OCCURRENCE_RATIO
    return sorted(x for x, count in counts.items() if count >= threshold)


def assign_cells(table_rows: list[list[TextElement]], columns: list[float]) -> list[list[str]]:
    """Place each element in its nearest column, joining collisions with a space."""
    table_data = []
    for row in table_rows:
        cells = [""] * len(columns)
        for elem in row:
            index = min(range(len(columns)), key=lambda c: abs(columns[c] - elem.x))
            cells[index] = f"{cells[index]} {elem.text}" if cells[index] else elem.text
        table_data.append(cells)
    return table_data


def format_table(table_data: list[list[str]]) -> str:
    """Render table rows as padded, aligned text columns."""
    if not table_data:
        return ""
    column_count = max(len(row) for row in table_data)
    widths = [
        max((len(row[c]) for row in table_data if c < len(row)), default=0)
        for c in range(column_count)
    ]
    lines = []
    for row in table_data:
        line = "".join(cell.ljust(widths[c] + 2) for c, cell in enumerate(row))
        lines.append(line.rstrip())
    return "\n".join(lines)


def reconstruct_tables(elements: list[TextElement], page_number: int) -> list[Section]:
    """
    Rebuild tables on one page from positioned text elements.

    Args:
        elements: Text elements of the page (grid units)
        page_number: 1-based page number, used in the table title

    Returns:
        Table sections in top-to-bottom order
    """
    tables = []
    for table_rows in find_table_candidates(group_rows(elements)):
        columns = infer_columns(table_rows)
        if not columns:
            continue

        table_data = assign_cells(table_rows, columns)
        tables.append(Section(
            kind=SectionKind.TABLE,
            title=f"Table (Page {page_number})",
            content=format_table(table_data),
            table_data=table_data,
            metadata={"page": str(page_number)},
        ))
    return tables


# =============================================================================
# Parser
# =============================================================================

class PDFFilingParser:
    """Parser for PDF filings, backed by pdfplumber."""

    def __init__(self, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()

    def parse(
        self,
        content: Union[str, bytes],
        cancel_event: Optional[threading.Event] = None,
    ) -> list[Section]:
        """
        Parse a PDF into sections: title, metadata, text sections, then tables.

        Args:
            content: Raw PDF bytes
            cancel_event: Optional event; when set, parsing stops between pages

        Raises:
            ParseError: If the PDF cannot be read or holds no text
            OperationCancelled: If cancel_event is set
        """
        if isinstance(content, str):
            content = content.encode("latin-1", errors="replace")
        byte_length = len(content)

        try:
            with pdfplumber.open(io.BytesIO(content)) as pdf:
                info = pdf.metadata or {}
                page_texts = []
                for page in pdf.pages:
                    self._check_cancelled(cancel_event)
                    page_texts.append(page.extract_text() or "")

                sections = self.parse_text_stream("\n".join(page_texts), info)

                if self.options.extract_tables:
                    sections.extend(self._extract_tables(pdf, cancel_event))
        except (ParseError, OperationCancelled):
            raise
        except Exception as e:
            logger.error(f"Failed to read PDF ({byte_length} bytes): {e}")
            raise ParseError(
                f"Unable to read PDF document: {e}",
                byte_length=byte_length,
                detected_format=DocumentFormat.PDF.value,
            ) from e

        if not sections:
            raise ParseError(
                "No text content found in PDF document",
                byte_length=byte_length,
                detected_format=DocumentFormat.PDF.value,
            )

        logger.debug(f"Parsed PDF into {len(sections)} sections")
        return sections

    def parse_text_stream(self, text: str, info: Optional[dict[str, Any]] = None) -> list[Section]:
        """Text pass: title and metadata from the info dict, then heading-segmented text."""
        sections = []
        info = info or {}

        title = info.get("Title")
        if title:
            sections.append(Section(kind=SectionKind.TITLE, content=str(title)))

        if self.options.extract_pdf_metadata and info:
            string_info = {str(key): str(value) for key, value in info.items()}
            sections.append(Section(
                kind=SectionKind.SECTION,
                title="Metadata",
                content=json.dumps(string_info, indent=2),
                metadata=string_info,
            ))

        for section in segment_text_by_headings(text):
            sections.append(section.model_copy(update={
                "content": truncate(section.content, self.options.max_section_length),
            }))

        return sections

    def _extract_tables(self, pdf, cancel_event: Optional[threading.Event]) -> list[Section]:
        """Table pass. Failures on a page are logged and skipped."""
        tables = []
        for page_number, page in enumerate(pdf.pages, start=1):
            self._check_cancelled(cancel_event)
            try:
                elements = [
                    TextElement(
                        x=word["x0"] / GRID_UNIT_POINTS,
                        y=word["top"] / GRID_UNIT_POINTS,
                        text=word["text"],
                    )
                    for word in page.extract_words()
                ]
                tables.extend(reconstruct_tables(elements, page_number))
            except Exception as e:
                logger.warning(f"Table extraction failed on page {page_number}: {e}")

        if tables:
            logger.debug(f"Reconstructed {len(tables)} tables from PDF")
        return tables

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelled("PDF parsing cancelled")


def parse_pdf(content: bytes, options: Optional[ParserOptions] = None) -> list[Section]:
    """Convenience function to parse a PDF filing into sections."""
    return PDFFilingParser(options).parse(content)
