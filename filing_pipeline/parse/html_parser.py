"""
HTML structural parser for SEC filings.

Walks the document's tag tree in order and turns it into a section tree:
- Heading tags (h1-h6) and styled headings open sections, nested by level
- Text blocks accumulate into the open section's content
- Tables and lists become Table / List child sections
- Text before the first heading becomes Paragraph sections
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .errors import ParseError
from .models import DocumentFormat, ParserOptions, Section, SectionKind

logger = logging.getLogger(__name__)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with '...'."""
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


@dataclass
class _Block:
    """One linearized unit of the document body."""
    kind: str                        # heading | text | table | list
    text: str = ""
    level: int = 0
    element: Optional[Tag] = None


@dataclass
class _OpenSection:
    """A heading section still collecting content."""
    title: str
    level: int
    texts: list[str] = field(default_factory=list)
    children: list = field(default_factory=list)  # Section | _OpenSection


class HTMLFilingParser:
    """Parser for HTML (and inline XBRL rendered as HTML) filings."""

    HEADING_TAGS = {
        "h1": 1,
        "h2": 2,
        "h3": 3,
        "h4": 4,
        "h5": 5,
        "h6": 6,
    }

    # Style patterns that indicate headings
    HEADING_STYLES = [
        r"font-weight:\s*bold",
        r"font-weight:\s*[6-9]00",
    ]
    FONT_SIZE_PATTERN = r"font-size:\s*(\d+(?:\.\d+)?)\s*pt"

    # Elements removed before parsing when remove_boilerplate is on
    NON_CONTENT_TAGS = ["script", "style", "meta", "link", "noscript", "ix:header"]
    NON_CONTENT_SELECTORS = [
        ".edgar-header", ".edgar-footer", ".filer-info",
        ".nav", ".navigation", ".menu", ".header", ".footer",
    ]
    HIDDEN_STYLE = re.compile(r"display:\s*none", re.IGNORECASE)

    # Elements whose presence below a node makes that node a container
    BLOCK_TAGS = [
        "p", "div", "section", "article", "table", "ul", "ol",
        "h1", "h2", "h3", "h4", "h5", "h6", "blockquote", "center", "pre",
    ]

    # Styled-heading candidates (leaf blocks only)
    STYLED_HEADING_TAGS = {"p", "div", "span", "font", "b", "strong", "td"}
    MAX_HEADING_CHARS = 150

    def __init__(self, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()

    def parse(self, content: Union[str, bytes]) -> list[Section]:
        """
        Parse an HTML document into an ordered section tree.

        Args:
            content: Raw HTML as text or bytes

        Returns:
            Ordered list of top-level sections

        Raises:
            ParseError: If the document has no parseable content
        """
        byte_length = len(content)
        soup = BeautifulSoup(content, "lxml")

        if self.options.remove_boilerplate:
            self._remove_non_content(soup)

        sections: list[Section] = []

        title_elem = soup.find("title")
        if title_elem:
            title_text = normalize_whitespace(title_elem.get_text())
            if title_text:
                sections.append(Section(kind=SectionKind.TITLE, content=title_text))

        body = soup.body or soup
        blocks: list[_Block] = []
        self._collect_blocks(body, blocks)
        body_sections = self._build_tree(blocks)

        if not body_sections:
            body_text = self._text(body)
            if body_text:
                body_sections = [Section(kind=SectionKind.SECTION, content=self._truncate(body_text))]

        sections.extend(body_sections)

        if not sections:
            raise ParseError(
                "No content found in HTML document",
                byte_length=byte_length,
                detected_format=DocumentFormat.HTML.value,
            )

        logger.debug(f"Parsed HTML into {len(sections)} top-level sections from {len(blocks)} blocks")
        return sections

    # =========================================================================
    # Pre-processing
    # =========================================================================

    def _remove_non_content(self, soup: BeautifulSoup) -> None:
        """Remove scripts, styles, EDGAR chrome and hidden blocks."""
        doomed = list(soup.find_all(self.NON_CONTENT_TAGS))
        doomed.extend(soup.select(", ".join(self.NON_CONTENT_SELECTORS)))
        doomed.extend(soup.find_all(style=self.HIDDEN_STYLE))

        removed = 0
        for elem in doomed:
            if elem.decomposed:
                continue
            elem.decompose()
            removed += 1
        if removed:
            logger.debug(f"Removed {removed} non-content elements")

    # =========================================================================
    # Linearization
    # =========================================================================

    def _collect_blocks(self, elem: Tag, blocks: list[_Block]) -> None:
        """Walk elem's children in document order, appending blocks."""
        for child in elem.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                text = self._clean(str(child))
                if text:
                    blocks.append(_Block("text", text))
                continue
            if not isinstance(child, Tag):
                continue

            name = child.name
            if name in self.HEADING_TAGS:
                text = normalize_whitespace(child.get_text(" "))
                if text:
                    blocks.append(_Block("heading", text, level=self.HEADING_TAGS[name]))
            elif name == "table":
                if self.options.extract_tables:
                    blocks.append(_Block("table", element=child))
                else:
                    self._append_text(child, blocks)
            elif name in ("ul", "ol"):
                if self.options.extract_lists:
                    blocks.append(_Block("list", element=child))
                else:
                    self._append_text(child, blocks)
            elif child.find(self.BLOCK_TAGS) is not None:
                self._collect_blocks(child, blocks)
            elif name == "br":
                continue
            elif self._is_styled_heading(child):
                text = normalize_whitespace(child.get_text(" "))
                blocks.append(_Block("heading", text, level=self._estimate_heading_level(child)))
            else:
                self._append_text(child, blocks)

    def _append_text(self, elem: Tag, blocks: list[_Block]) -> None:
        text = self._text(elem)
        if text:
            blocks.append(_Block("text", text))

    def _is_styled_heading(self, elem: Tag) -> bool:
        """Check if a leaf block is styled like a heading."""
        if elem.name not in self.STYLED_HEADING_TAGS:
            return False

        text = normalize_whitespace(elem.get_text(" "))
        if len(text) < 3 or len(text) > self.MAX_HEADING_CHARS:
            return False

        style = elem.get("style", "")
        is_bold = any(re.search(p, style, re.IGNORECASE) for p in self.HEADING_STYLES)
        font_match = re.search(self.FONT_SIZE_PATTERN, style)
        is_large = bool(font_match) and float(font_match.group(1)) >= 10

        # Upper-case short lines (e.g. "RISK FACTORS")
        is_uppercase = text.isupper() and len(text) > 5 and len(text) < 100

        # Text that is entirely inside <b>/<strong>
        bold_text = " ".join(
            normalize_whitespace(b.get_text(" ")) for b in elem.find_all(["b", "strong"])
        )
        is_wholly_bold = elem.name in ("b", "strong") or (bold_text and bold_text == text)

        return (is_bold and is_large) or is_uppercase or bool(is_wholly_bold)

    def _estimate_heading_level(self, elem: Tag) -> int:
        """Estimate heading level from styling."""
        style = elem.get("style", "")

        font_match = re.search(self.FONT_SIZE_PATTERN, style)
        if font_match:
            size = float(font_match.group(1))
            if size >= 16:
                return 1
            elif size >= 14:
                return 2
            elif size >= 12:
                return 3
            else:
                return 4

        # Upper-case is usually a major heading
        text = elem.get_text(strip=True)
        if text.isupper():
            return 2

        return 3

    # =========================================================================
    # Tree building
    # =========================================================================

    def _build_tree(self, blocks: list[_Block]) -> list[Section]:
        """Nest blocks under headings by heading level."""
        top: list = []
        stack: list[_OpenSection] = []
        previous: Optional[_Block] = None

        for block in blocks:
            if block.kind == "heading":
                while stack and stack[-1].level >= block.level:
                    stack.pop()
                node = _OpenSection(title=block.text, level=block.level)
                (stack[-1].children if stack else top).append(node)
                stack.append(node)

            elif block.kind == "text":
                if stack:
                    stack[-1].texts.append(block.text)
                else:
                    top.append(Section(kind=SectionKind.PARAGRAPH, content=self._truncate(block.text)))

            else:
                heading = previous.text if previous is not None and previous.kind == "heading" else None
                if block.kind == "table":
                    section = self._table_section(block.element, heading)
                else:
                    section = self._list_section(block.element, heading)
                if section is not None:
                    (stack[-1].children if stack else top).append(section)

            previous = block

        return [self._close(node) for node in top]

    def _close(self, node) -> Section:
        if isinstance(node, Section):
            return node

        children = [self._close(child) for child in node.children]
        content = self._truncate("\n\n".join(node.texts))
        kind = SectionKind.SECTION if content or children else SectionKind.HEADER
        return Section(
            kind=kind,
            title=node.title,
            content=content,
            children=children,
            level=node.level,
        )

    def _table_section(self, table: Tag, heading: Optional[str]) -> Optional[Section]:
        table_data = []
        for row in table.find_all("tr"):
            cells = [self._text(cell) for cell in row.find_all(["th", "td"])]
            if any(cells):
                table_data.append(cells)

        if not table_data:
            return None

        caption = table.find("caption")
        title = self._text(caption) if caption else heading
        content = "\n".join(" | ".join(row) for row in table_data)

        return Section(
            kind=SectionKind.TABLE,
            title=title or None,
            content=self._truncate(content),
            table_data=table_data,
        )

    def _list_section(self, list_elem: Tag, heading: Optional[str]) -> Optional[Section]:
        items = [text for text in (self._text(li) for li in list_elem.find_all("li")) if text]
        if not items:
            return None

        if list_elem.name == "ol":
            content = "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))
        else:
            content = "\n".join(f"• {item}" for item in items)

        return Section(
            kind=SectionKind.LIST,
            title=heading,
            content=self._truncate(content),
            list_items=items,
        )

    # =========================================================================
    # Text helpers
    # =========================================================================

    def _clean(self, text: str) -> str:
        if self.options.preserve_whitespace:
            return text.strip()
        return normalize_whitespace(text)

    def _text(self, elem: Tag) -> str:
        return self._clean(elem.get_text(" "))

    def _truncate(self, text: str) -> str:
        return truncate(text, self.options.max_section_length)


def parse_html(content: Union[str, bytes], options: Optional[ParserOptions] = None) -> list[Section]:
    """
    Convenience function to parse an HTML filing into sections.

    Args:
        content: Raw HTML
        options: Parser options (defaults if None)

    Returns:
        Ordered list of top-level sections
    """
    return HTMLFilingParser(options).parse(content)
