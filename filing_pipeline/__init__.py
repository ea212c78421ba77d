"""
SEC Filings Processing Pipeline.

This package provides tools for processing SEC filings:
- Detecting document format and filing type
- Parsing HTML, PDF and XBRL documents into section trees
- Extracting metadata, important sections and financial metrics
- Chunking parsed filings for downstream summarization
"""

__version__ = "0.1.0"
