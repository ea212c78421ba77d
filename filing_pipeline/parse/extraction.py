"""
Content extraction heuristics for parsed filings.

Pure functions over section trees:
- extract_metadata: company, date, CIK and fiscal period from raw text
- extract_important_sections: canonical sections by title and filing category
- remove_boilerplate: flags (never deletes) legal/disclaimer sections
- extract_financial_metrics: first-match-wins metric values from text and tables

Pattern lists are ordered. The first pattern that matches decides the
value, so reordering them changes results on ambiguous documents.
"""

import logging
import re
from datetime import date, datetime
from typing import Optional

from .models import FilingMetadata, FinancialMetric, Section, SectionKind, flatten_sections
from .registry import FilingCategory, FilingTypeRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# Pattern Configuration
# =============================================================================

STANDARD_SECTIONS = [
    "Management's Discussion and Analysis",
    "Risk Factors",
    "Financial Statements",
    "Notes to Financial Statements",
    "Controls and Procedures",
    "Quantitative and Qualitative Disclosures",
    "Business",
    "Executive Compensation",
    "Related Party Transactions",
    "Legal Proceedings",
    "Corporate Governance",
]

ITEM_PATTERN = re.compile(r"Item\s+(\d+\.\d+|\d+)", re.IGNORECASE)

METADATA_PATTERNS: dict[str, list[re.Pattern]] = {
    "company_name": [
        re.compile(r"<title[^>]*>([^<:]+)(?:[:-]|$)", re.IGNORECASE),
        re.compile(r"Company[:\s]+([^<\n]+)", re.IGNORECASE),
    ],
    "filing_date": [
        re.compile(
            r"(?:filing date|date of report|as of)(?:\s*:\s*|\s+)([A-Z][a-z]+ \d{1,2}, \d{4})",
            re.IGNORECASE,
        ),
        re.compile(r"(?:filed|date)[:\s]+(\d{1,2}/\d{1,2}/\d{4})", re.IGNORECASE),
    ],
    "cik": [
        re.compile(r"CIK[:\s]+(\d{10})", re.IGNORECASE),
        re.compile(r"(\d{10})(?:\s*\([Cc][Ii][Kk]\))"),
        re.compile(r"CENTRAL\s+INDEX\s+KEY[:\s]+(\d{10})", re.IGNORECASE),
    ],
    "fiscal_year": [
        re.compile(r"[Ff]iscal\s+[Yy]ear(?:\s+[Ee]nd(?:ed|ing))?[:\s]+(\d{4})", re.IGNORECASE),
    ],
    "fiscal_period": [
        re.compile(r"[Ff]iscal\s+(?:[Pp]eriod|[Qq]uarter)[:\s]+(Q\d|[Aa]nnual)", re.IGNORECASE),
    ],
}

DATE_FORMATS = ["%B %d, %Y", "%m/%d/%Y"]

FINANCIAL_TABLE_KEYWORDS = ["Financial", "Statement", "Balance Sheet", "Income", "Cash Flow"]
AUDIT_KEYWORDS = ["Audit", "Accountant", "Independent"]

EVENT_ITEMS = [
    "Item 1.01",  # Entry into a Material Definitive Agreement
    "Item 1.02",  # Termination of a Material Definitive Agreement
    "Item 2.01",  # Completion of Acquisition or Disposition of Assets
    "Item 2.02",  # Results of Operations and Financial Condition
    "Item 4.01",  # Changes in Registrant's Certifying Accountant
    "Item 5.01",  # Changes in Control of Registrant
    "Item 5.02",  # Departure/Election of Directors or Officers
    "Item 7.01",  # Regulation FD Disclosure
    "Item 8.01",  # Other Events
    "Item 9.01",  # Financial Statements and Exhibits
]

BOILERPLATE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"pursuant to the requirements of the securities exchange act of 1934",
        r"forward-looking statements?",
        r"safe harbor",
        r"legal proceedings",
        r"special note",
        r"regarding forward-looking",
        r"except as otherwise",
        r"all rights reserved",
        r"statements that are not historical facts",
        r"risk factors",
        r"the following factors",
        r"cautionary statement",
    )
]
BOILERPLATE_SCAN_CHARS = 500

_VALUE = r"([$€£]?[\d,.]+\s*(?:billion|million|thousand|[bmk])?)(?:\s*(?:USD|EUR|GBP))?"
_PER_SHARE_VALUE = r"([$€£]?[\d,.]+)(?:\s*(?:USD|EUR|GBP))?"

METRIC_PATTERNS: dict[str, list[re.Pattern]] = {
    "Revenue": [
        re.compile(r"(?:Total\s+)?Revenues?(?:\s+and\s+Other\s+Income)?[:\s]+" + _VALUE, re.IGNORECASE),
        re.compile(r"Revenue(?:s|)[:\s]+" + _VALUE, re.IGNORECASE),
    ],
    "Net Income": [
        re.compile(r"Net\s+Income(?:\s+\(Loss\))?[:\s]+" + _VALUE, re.IGNORECASE),
        re.compile(r"Net\s+Earnings[:\s]+" + _VALUE, re.IGNORECASE),
    ],
    "Earnings Per Share": [
        re.compile(r"(?:Basic\s+)?Earnings\s+Per\s+Share[:\s]+" + _PER_SHARE_VALUE, re.IGNORECASE),
        re.compile(r"EPS[:\s]+" + _PER_SHARE_VALUE, re.IGNORECASE),
    ],
    "Total Assets": [
        re.compile(r"Total\s+Assets[:\s]+" + _VALUE, re.IGNORECASE),
        re.compile(r"Assets[:\s]+" + _VALUE, re.IGNORECASE),
    ],
    "Total Liabilities": [
        re.compile(r"Total\s+Liabilities[:\s]+" + _VALUE, re.IGNORECASE),
        re.compile(r"Liabilities[:\s]+" + _VALUE, re.IGNORECASE),
    ],
    "Cash and Cash Equivalents": [
        re.compile(r"Cash\s+and\s+Cash\s+Equivalents[:\s]+" + _VALUE, re.IGNORECASE),
        re.compile(r"Cash(?:\s+and\s+(?:cash\s+)?equivalents)?[:\s]+" + _VALUE, re.IGNORECASE),
    ],
}

VALUE_COLUMN_PATTERN = re.compile(r"20\d{2}|(?:q\d|quarter|period)")


# =============================================================================
# Metadata
# =============================================================================

def _first_match(patterns: list[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()
    return None


def _parse_filing_date(text: str) -> Optional[date]:
    """First filing-date pattern whose match also parses as a date."""
    for pattern in METADATA_PATTERNS["filing_date"]:
        match = pattern.search(text)
        if not match:
            continue
        raw = match.group(1)
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(raw, fmt).date()
            except ValueError:
                continue
        logger.warning(f"Could not parse filing date from {raw!r}")
    return None


def extract_metadata(text: str, filing_type: str) -> FilingMetadata:
    """
    Extract filing metadata from raw document text.

    Fields with no matching pattern are left unset; this never raises.

    Args:
        text: Raw document text (HTML source works best for company name)
        filing_type: Filing type id to record

    Returns:
        FilingMetadata without financial metrics
    """
    logger.debug(f"Extracting metadata from {filing_type} filing")
    return FilingMetadata(
        filing_type=filing_type,
        company_name=_first_match(METADATA_PATTERNS["company_name"], text),
        filing_date=_parse_filing_date(text),
        cik=_first_match(METADATA_PATTERNS["cik"], text),
        fiscal_year=_first_match(METADATA_PATTERNS["fiscal_year"], text),
        fiscal_period=_first_match(METADATA_PATTERNS["fiscal_period"], text),
    )


# =============================================================================
# Important Sections
# =============================================================================

def extract_important_sections(sections: list[Section], filing_type: str) -> dict[str, str]:
    """
    Pick out canonical sections of a filing.

    Standard cross-type sections and "Item N[.N]" sections are found for
    every filing type; further extraction depends on the filing category.

    Args:
        sections: Parsed section tree
        filing_type: Registered filing type id

    Returns:
        Map of section name to content (empty when nothing matches)
    """
    logger.debug(f"Extracting important sections from {filing_type} filing")
    flat = flatten_sections(sections)
    important: dict[str, str] = {}

    for section in flat:
        if not section.title:
            continue
        for standard in STANDARD_SECTIONS:
            if standard in section.title:
                important[standard] = section.content
                break
        if ITEM_PATTERN.search(section.title):
            important[section.title] = section.content

    category = FilingTypeRegistry.get_category(filing_type)
    if category == FilingCategory.ANNUAL_REPORT:
        _extract_financial_sections(flat, important, is_annual=True)
    elif category == FilingCategory.QUARTERLY_REPORT:
        _extract_financial_sections(flat, important, is_annual=False)
    elif category == FilingCategory.CURRENT_REPORT:
        _extract_event_sections(flat, important)
    elif category == FilingCategory.INSIDER_TRANSACTION:
        _extract_transaction_sections(flat, important)

    return important


def _extract_financial_sections(flat: list[Section], important: dict[str, str], is_annual: bool) -> None:
    """Financial statement tables by title keyword, plus the audit opinion for annual reports."""
    for section in flat:
        if section.kind != SectionKind.TABLE or not section.title:
            continue
        if any(keyword in section.title for keyword in FINANCIAL_TABLE_KEYWORDS):
            important[section.title] = section.content

    if is_annual:
        for section in flat:
            if section.title and any(keyword in section.title for keyword in AUDIT_KEYWORDS):
                important["Audit Opinion"] = section.content
                break


def _extract_event_sections(flat: list[Section], important: dict[str, str]) -> None:
    """Current reports: the first section titled with each event item number."""
    for item in EVENT_ITEMS:
        for section in flat:
            if section.title and item in section.title:
                important[item] = section.content
                break


def _extract_transaction_sections(flat: list[Section], important: dict[str, str]) -> None:
    """Insider transaction forms: tables by position, reporting owner by title or content."""
    tables = [s for s in flat if s.kind == SectionKind.TABLE]
    if len(tables) > 0:
        important["Table I - Non-Derivative Securities"] = tables[0].content
    if len(tables) > 1:
        important["Table II - Derivative Securities"] = tables[1].content

    for section in flat:
        if section.title:
            if "Reporting Owner" in section.title or "Insider" in section.title:
                important["Reporting Owner Information"] = section.content
                break
        elif section.content and "Reporting Owner" in section.content:
            important["Reporting Owner Information"] = section.content
            break


def find_section_content(sections: list[Section], name: str) -> Optional[str]:
    """
    Locate a named section anywhere in the tree.

    A section whose title contains the name wins anywhere in the tree;
    otherwise the content from the first mention of the name onwards is
    returned.
    """
    flat = flatten_sections(sections)
    for section in flat:
        if section.title and name in section.title:
            return section.content
    for section in flat:
        if section.content:
            index = section.content.find(name)
            if index != -1:
                return section.content[index:]
    return None


# =============================================================================
# Boilerplate
# =============================================================================

def is_boilerplate_text(text: str) -> bool:
    """True if the opening of text matches a boilerplate phrase."""
    head = text[:BOILERPLATE_SCAN_CHARS]
    return any(pattern.search(head) for pattern in BOILERPLATE_PATTERNS)


def remove_boilerplate(sections: list[Section]) -> list[Section]:
    """
    Flag boilerplate sections without deleting them.

    Returns new sections; generic sections (at any depth) whose first 500
    characters match a boilerplate pattern get is_boilerplate=True.
    Already-flagged sections stay flagged.
    """
    result = []
    for section in sections:
        update = {}
        if section.children:
            update["children"] = remove_boilerplate(section.children)
        if (
            section.kind == SectionKind.SECTION
            and section.content
            and not section.is_boilerplate
            and is_boilerplate_text(section.content)
        ):
            logger.debug(f"Detected boilerplate in section: {section.title or 'Untitled'}")
            update["is_boilerplate"] = True
        result.append(section.model_copy(update=update) if update else section)
    return result


# =============================================================================
# Financial Metrics
# =============================================================================

def extract_financial_metrics(sections: list[Section]) -> dict[str, FinancialMetric]:
    """
    Extract standard financial metrics in document order.

    Each section's text is tried against every metric's patterns, then
    table sections are scanned row by row. A metric found once is never
    overwritten.

    Args:
        sections: Parsed section tree

    Returns:
        Map of metric name to value and source section title
    """
    metrics: dict[str, FinancialMetric] = {}

    for section in flatten_sections(sections):
        if not section.content:
            continue

        for metric_name, patterns in METRIC_PATTERNS.items():
            if metric_name in metrics:
                continue
            value = _first_match(patterns, section.content)
            if value:
                metrics[metric_name] = FinancialMetric(
                    value=value,
                    source=section.title or "Untitled Section",
                )

        if section.kind == SectionKind.TABLE and section.table_data:
            _extract_metrics_from_table(section, metrics)

    return metrics


def _value_columns(headers: list[str]) -> list[int]:
    """Header columns labelled with a year or period, else the last column."""
    columns = [i for i, header in enumerate(headers) if VALUE_COLUMN_PATTERN.search(header.lower())]
    if not columns and len(headers) > 1:
        columns.append(len(headers) - 1)
    return columns


def _extract_metrics_from_table(table: Section, metrics: dict[str, FinancialMetric]) -> None:
    rows = table.table_data or []
    if len(rows) < 2:
        return

    value_columns = _value_columns(rows[0])
    if not value_columns:
        return
    value_column = value_columns[0]

    for row in rows[1:]:
        if len(row) <= 1:
            continue
        label = row[0].lower()
        for metric_name in METRIC_PATTERNS:
            if metric_name in metrics or metric_name.lower() not in label:
                continue
            if value_column < len(row) and row[value_column]:
                metrics[metric_name] = FinancialMetric(
                    value=row[value_column].strip(),
                    source=table.title or "Financial Table",
                )
