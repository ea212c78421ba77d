"""
Chunking of parsed filings for downstream summarization.

Two modes:
- Semantic: walks the section tree, packing whole sections into chunks
- Size-based: splits plain text at paragraph, sentence or word boundaries
  with overlap, used when a filing has no section structure
"""

import json
import logging
import threading
from typing import Any, Optional

import tiktoken
from pydantic import BaseModel, Field

from .errors import ChunkingConfigError, OperationCancelled
from .models import (
    Chunk,
    ChunkMetadata,
    ChunkResult,
    ParsedFiling,
    Section,
    SectionKind,
)

logger = logging.getLogger(__name__)


class ChunkingConfig(BaseModel):
    """
    Configuration for chunking behavior.

    Args:
        max_chunk_size: Maximum characters per chunk
        chunk_overlap: Characters repeated at the start of the next chunk (size-based mode)
        respect_semantic_boundaries: Prefer paragraph/sentence/word breaks when splitting text
        min_chunk_size: A chunk smaller than this is never closed early
        include_tables: If False, tables become standalone chunks
        include_lists: If False, lists become standalone chunks
        separator: Joiner used when reconstructing a document from chunks
        skip_boilerplate: Leave out the text of sections flagged as boilerplate
        count_tokens: Fill token_count on chunk metadata (loads a tiktoken encoding)
        tokenizer_model: Model name used to pick the tiktoken encoding
    """

    max_chunk_size: int = Field(default=4000, gt=0)
    chunk_overlap: int = Field(default=500, ge=0)
    respect_semantic_boundaries: bool = True
    min_chunk_size: int = Field(default=100, ge=0)
    include_tables: bool = True
    include_lists: bool = True
    separator: str = "\n\n"
    skip_boilerplate: bool = False
    count_tokens: bool = False
    tokenizer_model: str = "gpt-4o-mini"


def validate_chunking_config(config: ChunkingConfig) -> None:
    """Fail fast on parameters that cannot produce chunks."""
    if config.max_chunk_size <= config.chunk_overlap:
        raise ChunkingConfigError(
            f"max_chunk_size ({config.max_chunk_size}) must be greater than "
            f"chunk_overlap ({config.chunk_overlap})"
        )


class TextChunker:
    """
    Size-based chunker for plain text.

    Break points in priority order, each searched only within the last
    half of max_chunk_size before the target offset:
    1. Paragraph breaks (double newline)
    2. Sentence ends (punctuation + space/newline)
    3. Word breaks (space)
    Otherwise the text is cut at the target offset.
    """

    PARAGRAPH_BREAK = "\n\n"
    SENTENCE_BREAKS = [". ", "! ", "? ", ".\n", "!\n", "?\n"]
    WORD_BREAK = " "

    def __init__(self, config: Optional[ChunkingConfig] = None):
        self.config = config or ChunkingConfig()
        validate_chunking_config(self.config)

    def split_points(self, text: str) -> list[tuple[int, int]]:
        """
        Compute (start, end) offsets of each chunk.

        Each chunk after the first starts chunk_overlap characters before
        the previous chunk's end.
        """
        spans = []
        max_size = self.config.max_chunk_size
        start = 0

        while start < len(text):
            target = start + max_size
            if target >= len(text):
                spans.append((start, len(text)))
                break

            end = self._find_break(text, start, target)
            spans.append((start, end))
            start = max(end - self.config.chunk_overlap, start + 1)

        return spans

    def _find_break(self, text: str, start: int, target: int) -> int:
        if not self.config.respect_semantic_boundaries:
            return target

        window_start = max(start + 1, target - self.config.max_chunk_size // 2)

        index = text.rfind(self.PARAGRAPH_BREAK, window_start, target)
        if index != -1:
            return index + len(self.PARAGRAPH_BREAK)

        best = -1
        for sentence_break in self.SENTENCE_BREAKS:
            index = text.rfind(sentence_break, window_start, target)
            if index != -1:
                best = max(best, index + len(sentence_break))
        if best != -1:
            return best

        index = text.rfind(self.WORD_BREAK, window_start, target)
        if index != -1:
            return index + 1

        return target


class DocumentChunker:
    """
    High-level chunker for parsed filings.

    Uses semantic chunking when the filing has sections, otherwise
    size-based chunking of its full text.
    """

    def __init__(
        self,
        config: Optional[ChunkingConfig] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize document chunker.

        Args:
            config: Chunking configuration (defaults if None)
            cancel_event: Optional event; when set, chunking stops with OperationCancelled

        Raises:
            ChunkingConfigError: If max_chunk_size <= chunk_overlap
        """
        self.config = config or ChunkingConfig()
        validate_chunking_config(self.config)
        self.text_chunker = TextChunker(self.config)
        self.cancel_event = cancel_event
        self._tokenizer = None

    def count_tokens(self, text: str) -> int:
        """Count tokens in text, loading the tiktoken encoding on first use."""
        if self._tokenizer is None:
            try:
                self._tokenizer = tiktoken.encoding_for_model(self.config.tokenizer_model)
            except KeyError:
                self._tokenizer = tiktoken.get_encoding("cl100k_base")
        return len(self._tokenizer.encode(text))

    def chunk(self, filing: ParsedFiling) -> ChunkResult:
        """
        Chunk a parsed filing.

        Args:
            filing: Parsed filing

        Returns:
            ChunkResult with ordered chunks and statistics
        """
        logger.debug(f"Chunking {filing.filing_type} filing")

        if filing.sections:
            result = self.chunk_sections(filing.sections)
            metadata = {
                "mode": "semantic",
                "filing_type": filing.filing_type,
                "document_title": filing.important_sections.get("Title") or filing.metadata.company_name,
            }
        else:
            text = filing.full_text or json.dumps(filing.important_sections)
            result = self.chunk_text(text)
            metadata = {"mode": "size", "filing_type": filing.filing_type}

        metadata["options"] = self.config.model_dump()
        return result.model_copy(update={"metadata": metadata})

    # =========================================================================
    # Semantic mode
    # =========================================================================

    def chunk_sections(self, sections: list[Section]) -> ChunkResult:
        """Pack sections depth-first into chunks of at most about max_chunk_size."""
        chunks: list[Chunk] = []
        parts: list[str] = []
        size = 0
        types: list[SectionKind] = []
        titles: list[str] = []
        flags = {"is_table": False, "is_list": False}
        offset = 0

        def emit(content: str, section_types, section_titles, is_table, is_list) -> None:
            nonlocal offset
            chunks.append(self._make_chunk(
                len(chunks), content, offset, section_types, section_titles, is_table, is_list,
            ))
            offset += len(content)

        def finalize() -> None:
            nonlocal parts, size, types, titles, flags
            if not parts:
                return
            emit("".join(parts), types, titles, flags["is_table"], flags["is_list"])
            parts, size, types, titles = [], 0, [], []
            flags = {"is_table": False, "is_list": False}

        def process(section: Section, depth: int) -> None:
            nonlocal size
            self._check_cancelled()

            if size >= self.config.max_chunk_size and parts:
                finalize()

            standalone = (
                (section.kind == SectionKind.TABLE and not self.config.include_tables)
                or (section.kind == SectionKind.LIST and not self.config.include_lists)
            )
            if standalone:
                if section.content:
                    emit(
                        section.content,
                        [section.kind],
                        [section.title] if section.title else [],
                        section.kind == SectionKind.TABLE,
                        section.kind == SectionKind.LIST,
                    )
                return

            text = ""
            skip_text = self.config.skip_boilerplate and section.is_boilerplate
            if not skip_text:
                if section.title:
                    text += "#" * min(depth + 1, 6) + " " + section.title + "\n\n"
                if section.content:
                    text += section.content + "\n\n"

            if text:
                if size + len(text) > self.config.max_chunk_size and size > self.config.min_chunk_size:
                    finalize()

                parts.append(text)
                size += len(text)
                types.append(section.kind)
                if section.title:
                    titles.append(section.title)
                if section.kind == SectionKind.TABLE:
                    flags["is_table"] = True
                if section.kind == SectionKind.LIST:
                    flags["is_list"] = True

            for child in section.children:
                process(child, depth + 1)

        for section in sections:
            process(section, 0)
        finalize()

        return self._result(chunks, original_length=sum(len(c.content) for c in chunks))

    # =========================================================================
    # Size-based mode
    # =========================================================================

    def chunk_text(self, text: str) -> ChunkResult:
        """Split plain text into overlapping chunks."""
        validate_chunking_config(self.config)

        chunks = []
        for start, end in self.text_chunker.split_points(text):
            self._check_cancelled()
            chunks.append(self._make_chunk(
                len(chunks), text[start:end], start, [SectionKind.PARAGRAPH], [], False, False,
            ))

        return self._result(chunks, original_length=len(text))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _make_chunk(
        self,
        chunk_id: int,
        content: str,
        start: int,
        section_types: list[SectionKind],
        section_titles: list[str],
        is_table: bool,
        is_list: bool,
    ) -> Chunk:
        return Chunk(
            id=chunk_id,
            content=content,
            metadata=ChunkMetadata(
                start=start,
                end=start + len(content),
                section_types=list(section_types),
                section_titles=list(section_titles),
                is_table=is_table,
                is_list=is_list,
                char_count=len(content),
                token_count=self.count_tokens(content) if self.config.count_tokens else None,
            ),
        )

    def _result(self, chunks: list[Chunk], original_length: int) -> ChunkResult:
        lengths = [len(c.content) for c in chunks]
        return ChunkResult(
            chunks=chunks,
            total_chunks=len(chunks),
            original_length=original_length,
            chunk_lengths=lengths,
            average_chunk_size=original_length / len(chunks) if chunks else 0.0,
        )

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelled("Chunking cancelled")


def reconstruct_document(chunks: list[Chunk], separator: str = "\n\n") -> str:
    """Rebuild document text by joining chunks in id order."""
    return separator.join(chunk.content for chunk in sorted(chunks, key=lambda c: c.id))


def measure_memory_usage(value: Any) -> float:
    """Size in megabytes of a string, or of a model/object serialized as JSON."""
    if isinstance(value, str):
        data = value
    elif isinstance(value, BaseModel):
        data = value.model_dump_json()
    else:
        data = json.dumps(value, default=str)
    return len(data.encode("utf-8")) / (1024 * 1024)


def chunk_filing(filing: ParsedFiling, config: Optional[ChunkingConfig] = None) -> ChunkResult:
    """
    Convenience function to chunk a parsed filing.

    Args:
        filing: Parsed filing
        config: Chunking configuration (defaults if None)

    Returns:
        ChunkResult with ordered chunks
    """
    return DocumentChunker(config).chunk(filing)
