"""
Filing parsing and chunking package.

This package provides tools for detecting SEC filing formats and types,
parsing HTML, PDF and XBRL filings into section trees, extracting
metadata and financial metrics, and chunking filings for summarization.

The built-in filing types are registered on import.
"""

from .models import (
    # Enums
    SectionKind,
    DocumentFormat,
    # Document models
    Section,
    FinancialMetric,
    FilingMetadata,
    ParsedFiling,
    ParserOptions,
    flatten_sections,
    # XBRL models
    XBRLContext,
    XBRLUnit,
    XBRLFact,
    XBRLDocument,
    # Chunking models
    Chunk,
    ChunkMetadata,
    ChunkResult,
)

from .errors import (
    FilingPipelineError,
    UnsupportedFilingTypeError,
    FormatDetectionError,
    ParseError,
    ChunkingConfigError,
    OperationCancelled,
)

from .registry import (
    FilingCategory,
    FilingTypeConfig,
    FilingTypeRegistry,
)

from .filing_types import (
    BUILTIN_FILING_TYPES,
    initialize_filing_types,
)

from .detector import (
    detect_filing_type,
    detect_format,
    extract_title,
    is_markup,
    is_portable_document,
    is_tag_structured_data,
)

from .html_parser import (
    HTMLFilingParser,
    parse_html,
)

from .pdf_parser import (
    PDFFilingParser,
    TextElement,
    parse_pdf,
    reconstruct_tables,
    segment_text_by_headings,
)

from .xbrl_parser import (
    XBRLFilingParser,
    parse_xbrl,
)

from .extraction import (
    extract_financial_metrics,
    extract_important_sections,
    extract_metadata,
    find_section_content,
    remove_boilerplate,
)

from .factory import (
    DEFAULT_PARSER_OPTIONS,
    create_auto_parser,
    create_filing_parser,
    detect_content_filing_type,
    parse_filing,
    parse_10k_filing,
    parse_10q_filing,
    parse_8k_filing,
    parse_form4_filing,
)

from .chunker import (
    ChunkingConfig,
    TextChunker,
    DocumentChunker,
    chunk_filing,
    measure_memory_usage,
    reconstruct_document,
)

from .validator import validate_parsed_filing

from .processor import (
    BatchItemResult,
    DocumentProcessor,
    ProcessingResult,
    process_filing,
)

initialize_filing_types()

__all__ = [
    # Enums
    "SectionKind",
    "DocumentFormat",
    "FilingCategory",
    # Document models
    "Section",
    "FinancialMetric",
    "FilingMetadata",
    "ParsedFiling",
    "ParserOptions",
    "flatten_sections",
    # XBRL models
    "XBRLContext",
    "XBRLUnit",
    "XBRLFact",
    "XBRLDocument",
    # Chunking models
    "Chunk",
    "ChunkMetadata",
    "ChunkResult",
    # Errors
    "FilingPipelineError",
    "UnsupportedFilingTypeError",
    "FormatDetectionError",
    "ParseError",
    "ChunkingConfigError",
    "OperationCancelled",
    # Registry
    "FilingTypeConfig",
    "FilingTypeRegistry",
    "BUILTIN_FILING_TYPES",
    "initialize_filing_types",
    # Detection
    "detect_filing_type",
    "detect_format",
    "extract_title",
    "is_markup",
    "is_portable_document",
    "is_tag_structured_data",
    # Parsers
    "HTMLFilingParser",
    "parse_html",
    "PDFFilingParser",
    "TextElement",
    "parse_pdf",
    "reconstruct_tables",
    "segment_text_by_headings",
    "XBRLFilingParser",
    "parse_xbrl",
    # Extraction
    "extract_financial_metrics",
    "extract_important_sections",
    "extract_metadata",
    "find_section_content",
    "remove_boilerplate",
    # Factory
    "DEFAULT_PARSER_OPTIONS",
    "create_auto_parser",
    "create_filing_parser",
    "detect_content_filing_type",
    "parse_filing",
    "parse_10k_filing",
    "parse_10q_filing",
    "parse_8k_filing",
    "parse_form4_filing",
    # Chunking
    "ChunkingConfig",
    "TextChunker",
    "DocumentChunker",
    "chunk_filing",
    "measure_memory_usage",
    "reconstruct_document",
    # Validation
    "validate_parsed_filing",
    # Processor
    "BatchItemResult",
    "DocumentProcessor",
    "ProcessingResult",
    "process_filing",
]
