"""
Tests for format and filing type detection.
"""

import pytest

from filing_pipeline.parse.detector import (
    detect_filing_type,
    detect_format,
    extract_title,
    is_markup,
    is_portable_document,
    is_tag_structured_data,
)
from filing_pipeline.parse.models import DocumentFormat


class TestFormatSniffing:
    """Tests for the byte-level format checks."""

    def test_pdf_magic(self):
        """PDF magic is recognized for bytes and text."""
        assert is_portable_document(b"%PDF-1.7\n%binary")
        assert is_portable_document("%PDF-1.4")
        assert not is_portable_document(b"<html></html>")
        assert not is_portable_document(b"%PD")

    def test_xbrl_instance(self, xbrl_instance):
        """XBRL instances are tag-structured data."""
        assert is_tag_structured_data(xbrl_instance)
        assert not is_markup(xbrl_instance)

    def test_inline_xbrl(self, inline_xbrl):
        """Inline XBRL is both tag-structured data and markup."""
        assert is_tag_structured_data(inline_xbrl)
        assert is_markup(inline_xbrl)

    def test_plain_html(self, current_report_html):
        """Ordinary HTML is markup only."""
        assert not is_tag_structured_data(current_report_html)
        assert is_markup(current_report_html)

    def test_markers_beyond_sniff_window_ignored(self):
        """Only the first 1000 characters are inspected."""
        content = " " * 1000 + "<html><body>late</body></html>"
        assert not is_markup(content)


class TestDetectFormat:
    """Tests for detect_format ordering."""

    def test_pdf(self):
        assert detect_format(b"%PDF-1.7 <html>") == DocumentFormat.PDF

    def test_xbrl_before_html(self, inline_xbrl):
        """Inline XBRL is reported as XBRL, not HTML."""
        assert detect_format(inline_xbrl) == DocumentFormat.XBRL

    def test_html(self, current_report_html):
        assert detect_format(current_report_html) == DocumentFormat.HTML
        assert detect_format(current_report_html.encode()) == DocumentFormat.HTML

    def test_text(self):
        assert detect_format("ANNUAL REPORT\nplain text filing") == DocumentFormat.TEXT


class TestDetectFilingType:
    """Tests for the ordered filing type pattern table."""

    @pytest.mark.parametrize("text,expected", [
        ("Form 10-K for the fiscal year", "10-K"),
        ("Quarterly Report for the period", "10-Q"),
        ("Form 8-K", "8-K"),
        ("Statement of Changes in Beneficial Ownership", "Form4"),
        ("DEFA14A soliciting material", "DEFA14A"),
        ("Schedule 13D", "SC 13D"),
        ("Notice of Proposed Sale of Securities", "144"),
    ])
    def test_body_patterns(self, text, expected):
        """Each type is detected from body text."""
        assert detect_filing_type(f"<html><body><p>{text}</p></body></html>") == expected

    def test_case_insensitive(self):
        assert detect_filing_type("annual report") == "10-K"

    def test_title_fallback(self):
        """The title is used when the body has no match."""
        html = "<html><head><title>ACME Corp: Current Report</title></head><body><p>Other events.</p></body></html>"
        assert detect_filing_type(html) == "8-K"

    def test_body_before_title(self):
        """A body match wins over a title match."""
        html = "<html><head><title>Current Report</title></head><body><p>Quarterly Report</p></body></html>"
        assert detect_filing_type(html) == "10-Q"

    def test_earlier_type_wins(self):
        """'beneficial ownership report' matches Form4 before SC 13D."""
        assert detect_filing_type("a beneficial ownership report") == "Form4"

    def test_no_match(self):
        assert detect_filing_type("<html><body><p>Hello world</p></body></html>") is None

    def test_deterministic(self, form4_html):
        """Detection returns the same answer on repeated calls."""
        assert detect_filing_type(form4_html) == detect_filing_type(form4_html) == "Form4"

    def test_bytes_sample(self):
        assert detect_filing_type(b"Form 10-Q") == "10-Q"


class TestExtractTitle:
    """Tests for title extraction."""

    def test_title(self, current_report_html):
        assert extract_title(current_report_html) == "ACME Corp: Current Report"

    def test_missing_title(self):
        assert extract_title("<html><body></body></html>") == ""
