"""
Parser factory for SEC filings.

Builds filing-type parsers from the registry and runs the full parse path:
format detection, structural parsing, then content extraction into a
ParsedFiling.
"""

import logging
import threading
from typing import Any, Callable, Optional, Union

from .detector import detect_filing_type, detect_format, is_markup
from .errors import FormatDetectionError, ParseError, UnsupportedFilingTypeError
from .extraction import (
    extract_financial_metrics,
    extract_important_sections,
    extract_metadata,
    find_section_content,
    remove_boilerplate,
)
from .html_parser import HTMLFilingParser, truncate
from .models import (
    DocumentFormat,
    FinancialMetric,
    ParsedFiling,
    ParserOptions,
    Section,
    SectionKind,
    XBRLDocument,
    flatten_sections,
)
from .pdf_parser import PDFFilingParser
from .registry import FilingTypeRegistry
from .xbrl_parser import XBRLFilingParser

logger = logging.getLogger(__name__)


DEFAULT_PARSER_OPTIONS = ParserOptions()

Content = Union[str, bytes]
OptionsLike = Union[ParserOptions, dict[str, Any], None]
FilingParser = Callable[..., ParsedFiling]


def _overrides(options: OptionsLike) -> Optional[dict[str, Any]]:
    """Caller options as an override dict (only explicitly set fields for models)."""
    if options is None:
        return None
    if isinstance(options, ParserOptions):
        return options.model_dump(exclude_unset=True)
    return dict(options)


def resolve_options(filing_type: str, options: OptionsLike = None) -> ParserOptions:
    """Defaults, then the registry's overrides for the type, then the caller's."""
    config = FilingTypeRegistry.get_section_config(filing_type)
    registry_overrides = config.parser_options if config else None
    return DEFAULT_PARSER_OPTIONS.merged(registry_overrides, _overrides(options))


def _decode(content: Content) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


# =============================================================================
# Structural parsing
# =============================================================================

def parse_sections(
    content: Content,
    options: ParserOptions,
    document_format: Optional[DocumentFormat] = None,
    cancel_event: Optional[threading.Event] = None,
) -> list[Section]:
    """
    Run the structural parser for a document's format.

    Plain text goes through the PDF parser's text pass, which segments
    lines at headings.
    """
    document_format = document_format or detect_format(content)
    logger.debug(f"Parsing {len(content)} bytes as {document_format.value}")

    if document_format == DocumentFormat.PDF:
        return PDFFilingParser(options).parse(content, cancel_event=cancel_event)
    if document_format == DocumentFormat.XBRL and not is_markup(content):
        return XBRLFilingParser(options).parse(content)
    if document_format == DocumentFormat.TEXT:
        return PDFFilingParser(options).parse_text_stream(_decode(content))
    return HTMLFilingParser(options).parse(content)


def sections_text(sections: list[Section]) -> str:
    """All section titles and contents in document order."""
    parts = []
    for section in flatten_sections(sections):
        if section.title:
            parts.append(section.title)
        if section.content:
            parts.append(section.content)
    return "\n\n".join(parts)


def build_parsed_filing(
    sections: list[Section],
    filing_type: str,
    options: ParserOptions,
    metadata_text: str,
    source_format: DocumentFormat = DocumentFormat.HTML,
) -> ParsedFiling:
    """
    Assemble a ParsedFiling from a section tree.

    Important sections combine the registry's declared names (located
    anywhere in the tree) with the extraction heuristics; heuristics win
    on key clashes.

    Args:
        sections: Parsed section tree
        filing_type: Registered filing type id
        options: Resolved parser options
        metadata_text: Raw text searched for metadata patterns
        source_format: Format the sections were parsed from

    Returns:
        Immutable ParsedFiling
    """
    if options.remove_boilerplate:
        sections = remove_boilerplate(sections)

    important: dict[str, str] = {}
    if options.extract_important_sections:
        for name in FilingTypeRegistry.get_important_sections(filing_type):
            found = find_section_content(sections, name)
            if found:
                important[name] = found
        important.update(extract_important_sections(sections, filing_type))

        title = next((s.content for s in sections if s.kind == SectionKind.TITLE and s.content), None)
        if title:
            important.setdefault("Title", title)

    metadata = extract_metadata(metadata_text, filing_type)
    if options.extract_financial_metrics:
        metadata = metadata.model_copy(update={"financial_metrics": extract_financial_metrics(sections)})

    full_text = None
    if options.include_full_text:
        full_text = "\n\n".join(s.content for s in flatten_sections(sections) if s.content).strip()
        full_text = truncate(full_text, options.max_full_text_length)

    return ParsedFiling(
        filing_type=filing_type,
        company_name=metadata.company_name,
        cik=metadata.cik,
        filing_date=metadata.filing_date,
        important_sections=important,
        sections=sections,
        full_text=full_text,
        metadata=metadata,
        source_format=source_format,
    )


def _read_inline_facts(content: Content) -> Optional[XBRLDocument]:
    """
    Read the tagged facts of an XBRL-sniffed document.

    Returns None when no contexts or facts are tagged. Markup that only
    declares the ix namespace still parses as HTML.
    """
    try:
        return XBRLFilingParser().read(content)
    except ParseError as e:
        logger.warning(f"Skipping XBRL facts: {e}")
        return None


def _merge_xbrl_facts(filing: ParsedFiling, doc: XBRLDocument, options: ParserOptions) -> ParsedFiling:
    """Fill metadata gaps of an inline XBRL filing from its tagged facts."""
    info = doc.document_info
    metrics = dict(filing.metadata.financial_metrics)
    if options.extract_financial_metrics:
        for metric_name, facts in doc.standardized_metrics.items():
            if facts and metric_name not in metrics:
                metrics[metric_name] = FinancialMetric(value=facts[0].value, source=facts[0].concept_name)

    metadata = filing.metadata.model_copy(update={
        "company_name": info.get("EntityRegistrantName") or filing.metadata.company_name,
        "cik": info.get("EntityCentralIndexKey") or filing.metadata.cik,
        "fiscal_year": info.get("DocumentFiscalYearFocus") or filing.metadata.fiscal_year,
        "fiscal_period": info.get("DocumentFiscalPeriodFocus") or filing.metadata.fiscal_period,
        "financial_metrics": metrics,
    })
    return filing.model_copy(update={
        "metadata": metadata,
        "company_name": metadata.company_name,
        "cik": metadata.cik,
    })


def parse_filing(
    content: Content,
    filing_type: str,
    options: OptionsLike = None,
    cancel_event: Optional[threading.Event] = None,
) -> ParsedFiling:
    """
    Parse a document as a given filing type.

    Args:
        content: Raw document (HTML, iXBRL, XBRL instance, PDF or plain text)
        filing_type: Registered filing type id
        options: ParserOptions or dict of overrides
        cancel_event: Optional cancellation event (PDF parsing only)

    Returns:
        Immutable ParsedFiling

    Raises:
        UnsupportedFilingTypeError: If filing_type is not registered
        ParseError: If no section tree can be built
    """
    if not FilingTypeRegistry.is_supported(filing_type):
        raise UnsupportedFilingTypeError(filing_type)

    resolved = resolve_options(filing_type, options)
    document_format = detect_format(content)
    logger.info(f"Parsing {filing_type} filing ({document_format.value}, {len(content):,} bytes)")

    if document_format == DocumentFormat.XBRL and not is_markup(content):
        filing = XBRLFilingParser(resolved).parse_as_filing(content, filing_type)
        if resolved.include_full_text:
            full_text = truncate(sections_text(filing.sections), resolved.max_full_text_length)
            filing = filing.model_copy(update={"full_text": full_text})
        return filing

    sections = parse_sections(content, resolved, document_format, cancel_event)
    metadata_text = sections_text(sections) if document_format == DocumentFormat.PDF else _decode(content)
    filing = build_parsed_filing(sections, filing_type, resolved, metadata_text, document_format)

    if document_format == DocumentFormat.XBRL:
        doc = _read_inline_facts(content)
        if doc is not None:
            filing = _merge_xbrl_facts(filing, doc, resolved)

    logger.info(
        f"Parsed {filing_type}: {len(filing.sections)} sections, "
        f"{len(filing.important_sections)} important sections, "
        f"{len(filing.metadata.financial_metrics)} metrics"
    )
    return filing


# =============================================================================
# Factory
# =============================================================================

def create_filing_parser(filing_type: str) -> FilingParser:
    """
    Create a parser for a registered filing type.

    The returned callable takes ``(content, options=None)``. A registry
    entry with a custom parser gets the resolved options.

    Raises:
        UnsupportedFilingTypeError: If filing_type is not registered
    """
    config = FilingTypeRegistry.get_section_config(filing_type)
    if config is None:
        raise UnsupportedFilingTypeError(filing_type)

    if config.custom_parser is not None:
        custom_parser = config.custom_parser

        def parse_custom(content: Content, options: OptionsLike = None) -> ParsedFiling:
            return custom_parser(content, resolve_options(filing_type, options))

        return parse_custom

    def parse(content: Content, options: OptionsLike = None) -> ParsedFiling:
        return parse_filing(content, filing_type, options)

    return parse


def _detection_sample(content: Content, document_format: DocumentFormat) -> str:
    """Text to run filing type detection on."""
    if document_format == DocumentFormat.PDF:
        sections = PDFFilingParser(ParserOptions(extract_tables=False)).parse(content)
        return sections_text(sections)
    return _decode(content)


def detect_content_filing_type(content: Content) -> Optional[str]:
    """
    Determine the filing type of a raw document.

    XBRL documents report their type in dei:DocumentType; that wins when
    it names a registered type. Otherwise the pattern table decides.
    """
    document_format = detect_format(content)

    if document_format == DocumentFormat.XBRL:
        doc = _read_inline_facts(content)
        document_type = doc.document_info.get("DocumentType") if doc else None
        if document_type and FilingTypeRegistry.is_supported(document_type):
            return document_type

    return detect_filing_type(_detection_sample(content, document_format))


def create_auto_parser(content: Content, options: OptionsLike = None) -> ParsedFiling:
    """
    Detect a document's filing type and parse it.

    Raises:
        FormatDetectionError: If the filing type cannot be determined
    """
    filing_type = detect_content_filing_type(content)
    if not filing_type:
        logger.warning("Could not detect filing type from content")
        raise FormatDetectionError()

    logger.debug(f"Auto-detected filing type: {filing_type}")
    return create_filing_parser(filing_type)(content, options)


# =============================================================================
# Convenience parsers
# =============================================================================

def parse_10k_filing(content: Content, options: OptionsLike = None) -> ParsedFiling:
    """Parse an annual report (10-K)."""
    return create_filing_parser("10-K")(content, options)


def parse_10q_filing(content: Content, options: OptionsLike = None) -> ParsedFiling:
    """Parse a quarterly report (10-Q)."""
    return create_filing_parser("10-Q")(content, options)


def parse_8k_filing(content: Content, options: OptionsLike = None) -> ParsedFiling:
    """Parse a current report (8-K)."""
    return create_filing_parser("8-K")(content, options)


def parse_form4_filing(content: Content, options: OptionsLike = None) -> ParsedFiling:
    """Parse an insider transaction statement (Form 4)."""
    return create_filing_parser("Form4")(content, options)
