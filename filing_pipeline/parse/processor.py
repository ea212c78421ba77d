"""
Document Processing Pipeline.

Orchestrates filing type detection, structural parsing, content
extraction and chunking to prepare filings for summarization.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .chunker import ChunkingConfig, DocumentChunker
from .errors import FilingPipelineError, FormatDetectionError
from .factory import create_filing_parser, detect_content_filing_type, parse_filing
from .models import ChunkResult, ParsedFiling, ParserOptions
from .validator import validate_parsed_filing

logger = logging.getLogger(__name__)


class ProcessingResult(BaseModel):
    """Output of processing one document."""
    model_config = ConfigDict(frozen=True)

    filing: ParsedFiling
    chunks: ChunkResult
    issues: list[str] = Field(default_factory=list)
    elapsed_seconds: float = 0.0


class BatchItemResult(BaseModel):
    """Outcome for one document of a batch; exactly one of result/error is set."""
    model_config = ConfigDict(frozen=True)

    source: str
    result: Optional[ProcessingResult] = None
    error: Optional[str] = None


class DocumentProcessor:
    """
    Main processor for SEC filings.

    Orchestrates the full pipeline:
    1. Detect format and filing type
    2. Parse into a section tree and extract content
    3. Chunk the parsed filing
    """

    def __init__(
        self,
        parser_options: Optional[ParserOptions] = None,
        chunking_config: Optional[ChunkingConfig] = None,
        max_workers: int = 4,
    ):
        """
        Initialize processor.

        Args:
            parser_options: Caller overrides applied on top of per-type options
            chunking_config: Chunking configuration (defaults if None)
            max_workers: Thread pool size for process_batch
        """
        self.parser_options = parser_options
        self.chunking_config = chunking_config or ChunkingConfig()
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, config) -> "DocumentProcessor":
        """
        Build a processor from a PipelineConfig and set up logging.

        Only parser options set explicitly in the config override the
        per-type registry options.
        """
        from ..config import configure_logging

        configure_logging(config.logging.level)
        logger.info(f"Building processor from config (hash: {config.config_hash()})")
        return cls(
            parser_options=config.parser,
            chunking_config=config.chunking,
            max_workers=config.processing.max_workers,
        )

    def process(
        self,
        content: Union[str, bytes],
        filing_type: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessingResult:
        """
        Process a single document.

        Args:
            content: Raw document
            filing_type: Registered filing type id; detected from content if None
            cancel_event: Optional cancellation event

        Returns:
            ProcessingResult with parsed filing, chunks and validation issues

        Raises:
            FormatDetectionError: If filing_type is None and cannot be detected
            UnsupportedFilingTypeError: If filing_type is not registered
            ParseError: If no section tree can be built
        """
        start_time = datetime.now()

        if filing_type is None:
            logger.info("  Step 1: Detecting filing type...")
            filing_type = detect_content_filing_type(content)
            if not filing_type:
                raise FormatDetectionError()
            logger.info(f"    Detected {filing_type}")

        logger.info(f"  Step 2: Parsing {filing_type} filing...")
        if cancel_event is None:
            filing = create_filing_parser(filing_type)(content, self.parser_options)
        else:
            filing = parse_filing(content, filing_type, self.parser_options, cancel_event)
        logger.info(f"    Found {len(filing.sections)} top-level sections")
        logger.info(f"    Found {len(filing.important_sections)} important sections")

        logger.info("  Step 3: Chunking...")
        chunks = DocumentChunker(self.chunking_config, cancel_event=cancel_event).chunk(filing)
        logger.info(f"    Created {chunks.total_chunks} chunks")

        issues = validate_parsed_filing(filing)
        for issue in issues:
            logger.debug(f"    Validation: {issue}")

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"  Completed in {elapsed:.2f}s")

        return ProcessingResult(filing=filing, chunks=chunks, issues=issues, elapsed_seconds=elapsed)

    def process_file(self, file_path: Path, filing_type: Optional[str] = None) -> ProcessingResult:
        """Read a document from disk and process it."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Document not found: {file_path}")

        logger.info(f"Processing {file_path}")
        return self.process(file_path.read_bytes(), filing_type)

    def process_batch(
        self,
        documents: dict[str, Union[str, bytes]],
        filing_types: Optional[dict[str, str]] = None,
    ) -> list[BatchItemResult]:
        """
        Process many documents concurrently.

        A pipeline error fails only its own document; the rest of the
        batch continues.

        Args:
            documents: Map of source label to raw document
            filing_types: Optional map of source label to filing type id

        Returns:
            One BatchItemResult per document, in input order
        """
        filing_types = filing_types or {}

        def run(source: str, content: Union[str, bytes]) -> BatchItemResult:
            try:
                result = self.process(content, filing_types.get(source))
                return BatchItemResult(source=source, result=result)
            except FilingPipelineError as e:
                logger.error(f"Failed to process {source}: {e}")
                return BatchItemResult(source=source, error=str(e))

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(run, source, content) for source, content in documents.items()]
            results = [future.result() for future in futures]

        failed = sum(1 for r in results if r.error)
        logger.info(f"Processed batch of {len(results)} documents ({failed} failed)")
        return results


def process_filing(
    content: Union[str, bytes],
    filing_type: Optional[str] = None,
    parser_options: Optional[ParserOptions] = None,
    chunking_config: Optional[ChunkingConfig] = None,
) -> ProcessingResult:
    """
    Convenience function to process a filing.

    Args:
        content: Raw document
        filing_type: Registered filing type id; detected if None
        parser_options: Caller parser option overrides
        chunking_config: Chunking configuration

    Returns:
        ProcessingResult
    """
    processor = DocumentProcessor(parser_options=parser_options, chunking_config=chunking_config)
    return processor.process(content, filing_type)
