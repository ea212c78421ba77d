"""
Tests for semantic and size-based chunking.

Tests cover:
1. Config validation
2. Size-based splitting (boundaries, overlap, round trip)
3. Semantic packing of section trees
4. Filing-level chunking and reconstruction
"""

import json
import threading

import pytest

from filing_pipeline.parse.chunker import (
    ChunkingConfig,
    DocumentChunker,
    TextChunker,
    chunk_filing,
    measure_memory_usage,
    reconstruct_document,
)
from filing_pipeline.parse.errors import ChunkingConfigError, OperationCancelled
from filing_pipeline.parse.models import (
    FilingMetadata,
    ParsedFiling,
    Section,
    SectionKind,
)


# ─── Test Data ───

LONG_TEXT = "\n\n".join(
    " ".join(f"Sentence {p}-{s} talks about results." for s in range(6))
    for p in range(20)
)


def _filing(sections=None, full_text=None, important_sections=None):
    return ParsedFiling(
        filing_type="10-K",
        sections=sections or [],
        full_text=full_text,
        important_sections=important_sections or {},
        metadata=FilingMetadata(filing_type="10-K", company_name="ACME Corp"),
    )


def _small_sections(count):
    """Sections rendering to 38 characters each ('# S1\\n\\n' + 30 chars + '\\n\\n')."""
    return [Section(kind=SectionKind.SECTION, title=f"S{i}", content="x" * 30) for i in range(1, count + 1)]


class TestChunkingConfig:
    """Tests for config validation."""

    @pytest.mark.parametrize("overlap", [100, 150])
    def test_overlap_not_below_max(self, overlap):
        with pytest.raises(ChunkingConfigError):
            DocumentChunker(ChunkingConfig(max_chunk_size=100, chunk_overlap=overlap))

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            TextChunker(ChunkingConfig(max_chunk_size=10, chunk_overlap=10))

    def test_defaults(self):
        config = ChunkingConfig()
        assert config.max_chunk_size == 4000
        assert config.chunk_overlap == 500
        assert config.min_chunk_size == 100


class TestSizeBasedChunking:
    """Tests for chunking plain text."""

    def test_round_trip_without_overlap(self):
        chunker = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0))
        result = chunker.chunk_text(LONG_TEXT)
        assert result.total_chunks > 1
        assert "".join(c.content for c in result.chunks) == LONG_TEXT

    def test_chunks_within_max_size(self):
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=50)).chunk_text(LONG_TEXT)
        assert all(len(c.content) <= 200 for c in result.chunks)

    def test_ids_contiguous_and_stats(self):
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=50)).chunk_text(LONG_TEXT)
        assert [c.id for c in result.chunks] == list(range(result.total_chunks))
        assert result.chunk_lengths == [len(c.content) for c in result.chunks]
        assert all(c.metadata.char_count == len(c.content) for c in result.chunks)
        assert result.original_length == len(LONG_TEXT)
        assert result.average_chunk_size == pytest.approx(len(LONG_TEXT) / result.total_chunks)

    def test_overlap(self):
        """Each chunk starts chunk_overlap characters before the previous end."""
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=50)).chunk_text(LONG_TEXT)
        for prev, nxt in zip(result.chunks, result.chunks[1:]):
            assert nxt.metadata.start == prev.metadata.end - 50
            assert nxt.content[:50] == prev.content[-50:]

    def test_paragraph_break_preferred(self):
        text = "A" * 150 + "\n\n" + "B" * 150
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0)).chunk_text(text)
        assert [c.content for c in result.chunks] == ["A" * 150 + "\n\n", "B" * 150]

    def test_sentence_break(self):
        text = "x" * 120 + ". " + "y" * 200
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0)).chunk_text(text)
        assert result.chunks[0].content == "x" * 120 + ". "

    def test_break_outside_window_ignored(self):
        """A break in the first half of the window is not used."""
        text = "x" * 50 + ". " + "y" * 300
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0)).chunk_text(text)
        assert len(result.chunks[0].content) == 200

    def test_hard_cut_without_semantic_boundaries(self):
        config = ChunkingConfig(max_chunk_size=200, chunk_overlap=0, respect_semantic_boundaries=False)
        result = DocumentChunker(config).chunk_text(LONG_TEXT)
        assert all(len(c.content) == 200 for c in result.chunks[:-1])

    def test_empty_text(self):
        result = DocumentChunker().chunk_text("")
        assert result.total_chunks == 0
        assert result.chunks == []
        assert result.average_chunk_size == 0.0

    def test_token_count_off_by_default(self):
        result = DocumentChunker().chunk_text("short text")
        assert result.chunks[0].metadata.token_count is None


class TestSemanticChunking:
    """Tests for packing sections into chunks."""

    def test_single_chunk_layout(self):
        sections = [
            Section(kind=SectionKind.SECTION, title="Intro", content="a" * 50),
            Section(
                kind=SectionKind.SECTION,
                title="Body",
                content="b" * 50,
                children=[Section(kind=SectionKind.TABLE, title="T", content="t" * 20, table_data=[["t"]])],
            ),
        ]
        result = DocumentChunker().chunk_sections(sections)
        (chunk,) = result.chunks
        assert chunk.content == (
            "# Intro\n\n" + "a" * 50 + "\n\n"
            + "# Body\n\n" + "b" * 50 + "\n\n"
            + "## T\n\n" + "t" * 20 + "\n\n"
        )
        assert chunk.metadata.section_titles == ["Intro", "Body", "T"]
        assert chunk.metadata.section_types == [SectionKind.SECTION, SectionKind.SECTION, SectionKind.TABLE]
        assert chunk.metadata.is_table
        assert not chunk.metadata.is_list

    def test_packing_respects_min_size(self):
        config = ChunkingConfig(max_chunk_size=100, chunk_overlap=0, min_chunk_size=60)
        result = DocumentChunker(config).chunk_sections(_small_sections(4))
        assert [c.metadata.section_titles for c in result.chunks] == [["S1", "S2"], ["S3", "S4"]]

    def test_small_chunk_not_closed_early(self):
        """A chunk at or below min_chunk_size takes the next section even past max."""
        config = ChunkingConfig(max_chunk_size=100, chunk_overlap=0, min_chunk_size=80)
        result = DocumentChunker(config).chunk_sections(_small_sections(4))
        assert [c.metadata.section_titles for c in result.chunks] == [["S1", "S2", "S3"], ["S4"]]

    def test_metadata_belongs_to_own_chunk(self):
        """A section that starts a new chunk is not listed on the previous one."""
        config = ChunkingConfig(max_chunk_size=100, chunk_overlap=0, min_chunk_size=60)
        result = DocumentChunker(config).chunk_sections(_small_sections(3))
        assert "S3" not in result.chunks[0].metadata.section_titles
        assert result.chunks[1].content.startswith("# S3")

    def test_offsets_cumulative(self):
        config = ChunkingConfig(max_chunk_size=100, chunk_overlap=0, min_chunk_size=60)
        result = DocumentChunker(config).chunk_sections(_small_sections(4))
        assert result.chunks[0].metadata.start == 0
        assert result.chunks[1].metadata.start == result.chunks[0].metadata.end

    def test_standalone_tables(self):
        sections = [
            Section(
                kind=SectionKind.SECTION,
                title="Body",
                content="b" * 50,
                children=[Section(kind=SectionKind.TABLE, title="T", content="t" * 20, table_data=[["t"]])],
            ),
        ]
        result = DocumentChunker(ChunkingConfig(include_tables=False)).chunk_sections(sections)
        tables = [c for c in result.chunks if c.metadata.is_table]
        others = [c for c in result.chunks if not c.metadata.is_table]
        assert [c.content for c in tables] == ["t" * 20]
        assert len(others) == 1
        assert "## T" not in others[0].content

    def test_standalone_lists(self):
        sections = [Section(kind=SectionKind.LIST, title="Items", content="• a\n• b", list_items=["a", "b"])]
        result = DocumentChunker(ChunkingConfig(include_lists=False)).chunk_sections(sections)
        (chunk,) = result.chunks
        assert chunk.content == "• a\n• b"
        assert chunk.metadata.is_list

    def test_skip_boilerplate(self):
        sections = [
            Section(kind=SectionKind.SECTION, title="Notice", content="Safe harbor.", is_boilerplate=True),
            Section(kind=SectionKind.SECTION, title="Business", content="Widgets."),
        ]
        result = DocumentChunker(ChunkingConfig(skip_boilerplate=True)).chunk_sections(sections)
        assert "Safe harbor" not in result.chunks[0].content
        assert result.chunks[0].metadata.section_titles == ["Business"]

    def test_empty_sections_skipped(self):
        sections = [Section(kind=SectionKind.HEADER), Section(kind=SectionKind.PARAGRAPH, content="Text.")]
        (chunk,) = DocumentChunker().chunk_sections(sections).chunks
        assert chunk.content == "Text.\n\n"
        assert chunk.metadata.section_types == [SectionKind.PARAGRAPH]

    def test_original_length_is_chunk_total(self):
        config = ChunkingConfig(max_chunk_size=100, chunk_overlap=0, min_chunk_size=60)
        result = DocumentChunker(config).chunk_sections(_small_sections(4))
        assert result.original_length == sum(result.chunk_lengths)


class TestFilingChunking:
    """Tests for chunking whole filings."""

    def test_semantic_mode(self):
        filing = _filing(
            sections=[Section(kind=SectionKind.SECTION, title="Intro", content="Hello.")],
            important_sections={"Title": "ACME Corp: Annual Report"},
        )
        result = chunk_filing(filing)
        assert result.metadata["mode"] == "semantic"
        assert result.metadata["filing_type"] == "10-K"
        assert result.metadata["document_title"] == "ACME Corp: Annual Report"
        assert result.metadata["options"]["max_chunk_size"] == 4000

    def test_size_mode_from_full_text(self):
        result = chunk_filing(_filing(full_text="Only text."))
        assert result.metadata["mode"] == "size"
        assert result.chunks[0].content == "Only text."

    def test_size_mode_from_important_sections(self):
        important = {"Risk Factors": "Risky."}
        result = chunk_filing(_filing(important_sections=important))
        assert result.chunks[0].content == json.dumps(important)

    def test_cancelled(self):
        event = threading.Event()
        event.set()
        with pytest.raises(OperationCancelled):
            DocumentChunker(cancel_event=event).chunk_text("some text")


class TestReconstruction:
    """Tests for reconstruction and memory measurement."""

    def test_reconstruct_orders_by_id(self):
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0)).chunk_text(LONG_TEXT)
        shuffled = list(reversed(result.chunks))
        assert reconstruct_document(shuffled, "") == LONG_TEXT

    def test_reconstruct_separator(self):
        result = DocumentChunker(ChunkingConfig(max_chunk_size=200, chunk_overlap=0)).chunk_text(LONG_TEXT)
        rebuilt = reconstruct_document(result.chunks)
        assert rebuilt == "\n\n".join(c.content for c in result.chunks)

    def test_measure_string(self):
        assert measure_memory_usage("a" * 1024 * 1024) == pytest.approx(1.0)

    def test_measure_model(self):
        assert measure_memory_usage(_filing(full_text="x")) > 0
