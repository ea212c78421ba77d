"""
Tests for the HTML structural parser.

Tests cover:
1. Section tree shape (title, leading paragraphs, nested headings)
2. Tables and lists as child sections
3. Styled headings
4. Non-content removal and parser options
"""

import pytest

from filing_pipeline.parse.errors import ParseError
from filing_pipeline.parse.html_parser import (
    HTMLFilingParser,
    normalize_whitespace,
    parse_html,
    truncate,
)
from filing_pipeline.parse.models import ParserOptions, SectionKind, flatten_sections


class TestTextHelpers:
    """Tests for whitespace and truncation helpers."""

    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"

    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc..."
        assert truncate("abc", 3) == "abc"


class TestSectionTree:
    """Tests for the shape of the parsed tree."""

    def test_top_level_order(self, annual_report_html):
        """Title, leading paragraph, then one section per top-level heading."""
        sections = parse_html(annual_report_html)
        assert [s.kind for s in sections] == [
            SectionKind.TITLE,
            SectionKind.PARAGRAPH,
            SectionKind.SECTION,
            SectionKind.SECTION,
            SectionKind.HEADER,
        ]
        assert sections[0].content == "ACME Corp: Annual Report"
        assert sections[1].content == "Intro paragraph before headings."

    def test_heading_content_normalized(self, annual_report_html):
        sections = parse_html(annual_report_html)
        business = sections[2]
        assert business.title == "Item 1. Business"
        assert business.level == 1
        assert business.content == "We make widgets."

    def test_nested_heading(self, annual_report_html):
        """A lower-level heading nests under the open section."""
        products = parse_html(annual_report_html)[2].children[0]
        assert products.title == "Products"
        assert products.level == 2
        assert products.content == "Widgets and gadgets."

    def test_empty_heading_is_header(self, annual_report_html):
        """A heading with no content or children is a HEADER."""
        exhibits = parse_html(annual_report_html)[-1]
        assert exhibits.title == "Exhibits"
        assert exhibits.content == ""

    def test_list_child(self, annual_report_html):
        products = parse_html(annual_report_html)[2].children[0]
        (item_list,) = products.children
        assert item_list.kind == SectionKind.LIST
        assert item_list.list_items == ["Widget", "Gadget"]
        assert item_list.content == "• Widget\n• Gadget"

    def test_ordered_list(self):
        sections = parse_html("<html><body><h2>Steps</h2><ol><li>One</li><li>Two</li></ol></body></html>")
        (steps,) = sections
        assert steps.children[0].content == "1. One\n2. Two"
        assert steps.children[0].title == "Steps"

    def test_table_child_with_caption(self, annual_report_html):
        mdna = parse_html(annual_report_html)[3]
        (table,) = mdna.children
        assert table.kind == SectionKind.TABLE
        assert table.title == "Income Statement"
        assert table.table_data == [["Metric", "2023"], ["Revenue", "$1,000"]]
        assert table.content == "Metric | 2023\nRevenue | $1,000"

    def test_table_titled_by_preceding_heading(self):
        html = (
            "<html><body><h2>Balance Sheet</h2>"
            "<table><tr><td>Cash</td><td>10</td></tr></table></body></html>"
        )
        (balance,) = parse_html(html)
        assert balance.kind == SectionKind.SECTION
        assert balance.children[0].title == "Balance Sheet"

    def test_header_rows_read_once(self):
        """Rows inside thead are not duplicated."""
        html = (
            "<html><body><table><thead><tr><th>A</th><th>B</th></tr></thead>"
            "<tbody><tr><td>1</td><td>2</td></tr></tbody></table></body></html>"
        )
        (table,) = parse_html(html)
        assert table.table_data == [["A", "B"], ["1", "2"]]


class TestStyledHeadings:
    """Tests for headings recognized from styling."""

    def test_bold_paragraph_heading(self):
        html = "<html><body><p><b>Item 8.01 Other Events</b></p><p>Details.</p></body></html>"
        (section,) = parse_html(html)
        assert section.title == "Item 8.01 Other Events"
        assert section.level == 3
        assert section.content == "Details."

    def test_uppercase_heading(self):
        html = "<html><body><p>RISK FACTORS</p><p>Many risks.</p></body></html>"
        (section,) = parse_html(html)
        assert section.title == "RISK FACTORS"
        assert section.level == 2

    def test_font_size_heading_level(self):
        html = (
            "<html><body><p style=\"font-weight:bold; font-size:16pt\">Overview</p>"
            "<p>Text.</p></body></html>"
        )
        (section,) = parse_html(html)
        assert section.title == "Overview"
        assert section.level == 1

    def test_partly_bold_paragraph_is_text(self):
        html = "<html><body><p>See <b>note 3</b> for details.</p></body></html>"
        (section,) = parse_html(html)
        assert section.kind == SectionKind.PARAGRAPH
        assert section.content == "See note 3 for details."


class TestOptions:
    """Tests for parser options."""

    def test_non_content_removed(self, annual_report_html):
        flat = flatten_sections(parse_html(annual_report_html))
        text = " ".join(f"{s.title or ''} {s.content}" for s in flat)
        assert "EDGAR FILER HEADER" not in text
        assert "tracking" not in text

    def test_keep_non_content(self, annual_report_html):
        sections = parse_html(annual_report_html, ParserOptions(remove_boilerplate=False))
        titles = [s.title for s in flatten_sections(sections)]
        assert "EDGAR FILER HEADER" in titles

    def test_hidden_blocks_removed(self):
        html = "<html><body><div style=\"display: none\">secret</div><p>Visible.</p></body></html>"
        (section,) = parse_html(html)
        assert section.content == "Visible."

    def test_truncation(self, annual_report_html):
        sections = parse_html(annual_report_html, ParserOptions(max_section_length=10))
        assert sections[2].content == "We make wi..."

    def test_tables_as_text(self, annual_report_html):
        mdna = parse_html(annual_report_html, ParserOptions(extract_tables=False))[3]
        assert not mdna.children
        assert "Revenue $1,000" in mdna.content

    def test_lists_as_text(self, annual_report_html):
        products = parse_html(annual_report_html, ParserOptions(extract_lists=False))[2].children[0]
        assert not products.children
        assert products.content == "Widgets and gadgets.\n\nWidget Gadget"

    def test_preserve_whitespace(self, annual_report_html):
        sections = HTMLFilingParser(ParserOptions(preserve_whitespace=True)).parse(annual_report_html)
        assert sections[2].content == "We make   widgets."


class TestParseErrors:
    """Tests for documents with no content."""

    @pytest.mark.parametrize("content", ["", "   ", "<html><body></body></html>"])
    def test_empty_document(self, content):
        with pytest.raises(ParseError) as exc_info:
            parse_html(content)
        assert exc_info.value.detected_format == "html"
