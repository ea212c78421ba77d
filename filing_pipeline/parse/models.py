"""
Pydantic models for filing parsing and chunking.

All models are frozen value objects. Parsers and extraction helpers
build new instances (``model_copy(update=...)``) instead of mutating.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class SectionKind(str, Enum):
    """Structural classification of a document section."""
    TITLE = "title"
    HEADER = "header"
    PARAGRAPH = "paragraph"
    LIST = "list"
    TABLE = "table"
    SECTION = "section"  # Generic titled section with body text


class DocumentFormat(str, Enum):
    """Source format of a raw document."""
    PDF = "pdf"
    XBRL = "xbrl"
    HTML = "html"
    TEXT = "text"


# =============================================================================
# Document Structure Models
# =============================================================================

class Section(BaseModel):
    """One structurally classified unit of a parsed document."""
    model_config = ConfigDict(frozen=True)

    kind: SectionKind
    title: Optional[str] = None
    content: str = ""

    # Structured payloads
    table_data: Optional[list[list[str]]] = None
    list_items: Optional[list[str]] = None

    # Hierarchy
    children: list["Section"] = Field(default_factory=list)
    level: int = 0                   # Heading level, 0 = not a heading

    # Flags and parser-specific details (e.g. PDF page number)
    is_boilerplate: bool = False
    metadata: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _table_data_only_on_tables(self) -> "Section":
        if self.table_data is not None and self.kind != SectionKind.TABLE:
            raise ValueError(f"table_data is only allowed on table sections, not {self.kind.value}")
        return self


Section.model_rebuild()


class FinancialMetric(BaseModel):
    """A financial metric value and where it was found."""
    model_config = ConfigDict(frozen=True)

    value: str
    source: str


class FilingMetadata(BaseModel):
    """Metadata extracted from a filing."""
    model_config = ConfigDict(frozen=True)

    filing_type: str
    company_name: Optional[str] = None
    filing_date: Optional[date] = None
    cik: Optional[str] = None
    fiscal_year: Optional[str] = None
    fiscal_period: Optional[str] = None
    financial_metrics: dict[str, FinancialMetric] = Field(default_factory=dict)


def flatten_sections(sections: list[Section]) -> list[Section]:
    """Flatten a section tree into document order (parent before children)."""
    flat = []
    for section in sections:
        flat.append(section)
        if section.children:
            flat.extend(flatten_sections(section.children))
    return flat


class ParsedFiling(BaseModel):
    """Complete structured representation of one filing."""
    model_config = ConfigDict(frozen=True)

    filing_type: str
    company_name: Optional[str] = None
    cik: Optional[str] = None
    filing_date: Optional[date] = None

    important_sections: dict[str, str] = Field(default_factory=dict)
    sections: list[Section] = Field(default_factory=list)
    full_text: Optional[str] = None
    metadata: FilingMetadata
    source_format: DocumentFormat = DocumentFormat.HTML

    @computed_field
    @property
    def tables(self) -> list[Section]:
        return [s for s in flatten_sections(self.sections) if s.kind == SectionKind.TABLE]

    @computed_field
    @property
    def lists(self) -> list[Section]:
        return [s for s in flatten_sections(self.sections) if s.kind == SectionKind.LIST]


# =============================================================================
# XBRL Models
# =============================================================================

class XBRLContext(BaseModel):
    """XBRL context: reporting entity and period."""
    context_id: str
    entity_identifier: Optional[str] = None
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    instant: Optional[str] = None

    def period_description(self) -> str:
        if self.instant:
            return f"As of {self.instant}"
        if self.period_start and self.period_end:
            return f"From {self.period_start} to {self.period_end}"
        return ""


class XBRLUnit(BaseModel):
    """XBRL unit of measure (e.g. iso4217:USD, or USD/shares)."""
    unit_id: str
    measure: str


class XBRLFact(BaseModel):
    """A single tagged fact."""
    concept_name: str                # Local name, e.g. "Revenues"
    prefix: Optional[str] = None     # Namespace prefix, e.g. "us-gaap"
    context_ref: str
    unit_ref: Optional[str] = None
    decimals: Optional[str] = None
    value: str


class XBRLDocument(BaseModel):
    """Everything read from an XBRL instance or inline XBRL document."""
    namespaces: dict[str, str] = Field(default_factory=dict)
    contexts: dict[str, XBRLContext] = Field(default_factory=dict)
    units: dict[str, XBRLUnit] = Field(default_factory=dict)
    facts: list[XBRLFact] = Field(default_factory=list)
    document_info: dict[str, str] = Field(default_factory=dict)
    standardized_metrics: dict[str, list[XBRLFact]] = Field(default_factory=dict)


# =============================================================================
# Parser Options
# =============================================================================

class ParserOptions(BaseModel):
    """
    Options shared by all structural parsers.

    Unset options take the defaults below. Registry entries and callers
    layer overrides on top with ``merged()``.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    extract_tables: bool = True
    extract_lists: bool = True
    max_section_length: int = Field(default=100_000, gt=0)
    preserve_whitespace: bool = False
    remove_boilerplate: bool = True

    # Filing-level assembly
    extract_important_sections: bool = True
    extract_financial_metrics: bool = True
    include_full_text: bool = False
    max_full_text_length: int = Field(default=500_000, gt=0)

    # PDF only
    extract_pdf_metadata: bool = True

    def merged(self, *overrides: Optional[dict[str, Any]]) -> "ParserOptions":
        """Return a copy with each override dict applied in order."""
        data = self.model_dump()
        for override in overrides:
            if override:
                data.update(override)
        return ParserOptions.model_validate(data)


# =============================================================================
# Chunking Models
# =============================================================================

class ChunkMetadata(BaseModel):
    """Position and provenance of a chunk."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    section_types: list[SectionKind] = Field(default_factory=list)
    section_titles: list[str] = Field(default_factory=list)
    is_table: bool = False
    is_list: bool = False
    char_count: int
    token_count: Optional[int] = None


class Chunk(BaseModel):
    """A bounded slice of a filing's content."""
    model_config = ConfigDict(frozen=True)

    id: int                          # 0-based, contiguous
    content: str
    metadata: ChunkMetadata


class ChunkResult(BaseModel):
    """Ordered chunks plus summary statistics."""
    model_config = ConfigDict(frozen=True)

    chunks: list[Chunk] = Field(default_factory=list)
    total_chunks: int = 0
    original_length: int = 0
    chunk_lengths: list[int] = Field(default_factory=list)
    average_chunk_size: float = 0.0
    metadata: dict[str, Any] = Field(default_factory=dict)
