"""
XBRL parser for SEC filings.

Reads XBRL instance documents and Inline XBRL (iXBRL) documents: contexts,
units, tagged facts and dei document information. Structure is explicit in
the tags, so facts map straight to sections and metadata without
heuristic segmentation.
"""

import json
import logging
import re
from datetime import date, datetime
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from .detector import is_markup
from .errors import ParseError
from .html_parser import truncate
from .models import (
    DocumentFormat,
    FilingMetadata,
    FinancialMetric,
    ParsedFiling,
    ParserOptions,
    Section,
    SectionKind,
    XBRLContext,
    XBRLDocument,
    XBRLFact,
    XBRLUnit,
)

logger = logging.getLogger(__name__)


def _local_name(tag: Tag) -> str:
    """Tag name without namespace prefix, lowercased."""
    return tag.name.split(":")[-1].lower()


def _prefix(tag: Tag) -> Optional[str]:
    if tag.prefix:
        return tag.prefix
    if ":" in tag.name:
        return tag.name.split(":", 1)[0]
    return None


def _attr(tag: Tag, name: str) -> Optional[str]:
    """Attribute lookup that tolerates html.parser lowercasing attribute names."""
    value = tag.get(name)
    if value is None:
        value = tag.get(name.lower())
    return value


def _find_local(elem: Tag, local_name: str) -> Optional[Tag]:
    local_name = local_name.lower()
    return elem.find(lambda t: _local_name(t) == local_name)


def _find_all_local(elem: Tag, local_name: str) -> list[Tag]:
    local_name = local_name.lower()
    return elem.find_all(lambda t: _local_name(t) == local_name)


class XBRLFilingParser:
    """Parser for XBRL instance and Inline XBRL documents."""

    # Standard metric name -> concept name fragments (matched as substrings
    # of the lowercased concept name)
    STANDARD_FINANCIAL_METRICS = {
        "Revenue": [
            "Revenue",
            "RevenueFromContractWithCustomerExcludingAssessedTax",
            "Revenues",
            "SalesRevenueNet",
            "TotalRevenuesAndOtherIncome",
        ],
        "NetIncome": ["NetIncomeLoss", "ProfitLoss", "NetIncome", "NetEarningsLoss"],
        "TotalAssets": ["Assets", "AssetsCurrent", "AssetsTotal"],
        "TotalLiabilities": ["Liabilities", "LiabilitiesCurrent", "LiabilitiesTotal"],
        "EPS": ["EarningsPerShareBasic", "EarningsPerShareDiluted"],
        "OperatingIncome": ["OperatingIncomeLoss", "GrossProfit", "OperatingProfit"],
        "CashAndEquivalents": [
            "CashAndCashEquivalentsAtCarryingValue",
            "Cash",
            "CashEquivalentsAndShortTermInvestments",
        ],
    }

    # dei concepts copied into document_info
    DOCUMENT_INFO_CONCEPTS = [
        "DocumentType",
        "EntityRegistrantName",
        "EntityCentralIndexKey",
        "DocumentPeriodEndDate",
        "DocumentFiscalYearFocus",
        "DocumentFiscalPeriodFocus",
    ]

    # Inline XBRL fact tags
    INLINE_FACT_TAGS = {"nonfraction", "nonnumeric", "fraction"}

    FACTS_TABLE_HEADER = ["Concept", "Value", "Context", "Unit", "Decimals"]

    def __init__(self, options: Optional[ParserOptions] = None):
        self.options = options or ParserOptions()

    def read(self, content: Union[str, bytes]) -> XBRLDocument:
        """
        Read contexts, units and facts from an XBRL document.

        Args:
            content: Raw XBRL instance XML or iXBRL HTML

        Returns:
            XBRLDocument with standardized metrics resolved

        Raises:
            ParseError: If no XBRL structure is found
        """
        inline = is_markup(content)
        # html.parser keeps prefixed ix: tag names intact; instances go through lxml's XML builder
        soup = BeautifulSoup(content, "html.parser" if inline else "xml")

        root = soup.find(lambda t: _local_name(t) in ("xbrl", "html"))
        contexts = self._extract_contexts(soup)
        units = self._extract_units(soup)
        facts = self._extract_inline_facts(soup) if inline else self._extract_instance_facts(soup)

        if root is None or not (contexts or facts):
            raise ParseError(
                "No XBRL contexts or facts found",
                byte_length=len(content),
                detected_format=DocumentFormat.XBRL.value,
            )

        namespaces = {
            key.split(":", 1)[1]: value
            for key, value in root.attrs.items()
            if key.startswith("xmlns:")
        }

        doc = XBRLDocument(
            namespaces=namespaces,
            contexts=contexts,
            units=units,
            facts=facts,
            document_info=self._extract_document_info(facts),
            standardized_metrics=self._standardize_metrics(facts),
        )
        logger.debug(
            f"Read XBRL: {len(contexts)} contexts, {len(units)} units, {len(facts)} facts"
            f"{' (inline)' if inline else ''}"
        )
        return doc

    def parse(self, content: Union[str, bytes]) -> list[Section]:
        """Parse an XBRL document into sections."""
        return self.to_sections(self.read(content))

    # =========================================================================
    # Extraction
    # =========================================================================

    def _extract_contexts(self, soup: BeautifulSoup) -> dict[str, XBRLContext]:
        """Extract XBRL context definitions."""
        contexts = {}
        for ctx in _find_all_local(soup, "context"):
            ctx_id = ctx.get("id", "")
            if not ctx_id:
                continue

            identifier = _find_local(ctx, "identifier")
            start = _find_local(ctx, "startDate")
            end = _find_local(ctx, "endDate")
            instant = _find_local(ctx, "instant")

            contexts[ctx_id] = XBRLContext(
                context_id=ctx_id,
                entity_identifier=identifier.get_text(strip=True) if identifier else None,
                period_start=start.get_text(strip=True) if start else None,
                period_end=end.get_text(strip=True) if end else None,
                instant=instant.get_text(strip=True) if instant else None,
            )
        return contexts

    def _extract_units(self, soup: BeautifulSoup) -> dict[str, XBRLUnit]:
        """Extract units; divide units render as numerator/denominator."""
        units = {}
        for unit in _find_all_local(soup, "unit"):
            unit_id = unit.get("id", "")
            if not unit_id:
                continue
            measures = [m.get_text(strip=True) for m in _find_all_local(unit, "measure")]
            units[unit_id] = XBRLUnit(unit_id=unit_id, measure="/".join(measures))
        return units

    def _extract_instance_facts(self, soup: BeautifulSoup) -> list[XBRLFact]:
        """Facts in an instance are elements carrying a contextRef."""
        facts = []
        for elem in soup.find_all(lambda t: _attr(t, "contextRef") is not None):
            facts.append(XBRLFact(
                concept_name=elem.name.split(":")[-1],
                prefix=_prefix(elem),
                context_ref=_attr(elem, "contextRef"),
                unit_ref=_attr(elem, "unitRef"),
                decimals=_attr(elem, "decimals"),
                value=elem.get_text(strip=True),
            ))
        return facts

    def _extract_inline_facts(self, soup: BeautifulSoup) -> list[XBRLFact]:
        """Facts in iXBRL are ix:nonFraction / ix:nonNumeric tags naming their concept."""
        facts = []
        for elem in soup.find_all(lambda t: _local_name(t) in self.INLINE_FACT_TAGS):
            name = elem.get("name", "")
            context_ref = _attr(elem, "contextRef")
            if not name or context_ref is None:
                continue

            prefix, _, concept = name.rpartition(":")
            value = re.sub(r"\s+", " ", elem.get_text(" ")).strip()
            if elem.get("sign") == "-" and value:
                value = f"-{value}"

            facts.append(XBRLFact(
                concept_name=concept,
                prefix=prefix or None,
                context_ref=context_ref,
                unit_ref=_attr(elem, "unitRef"),
                decimals=_attr(elem, "decimals"),
                value=value,
            ))
        return facts

    def _extract_document_info(self, facts: list[XBRLFact]) -> dict[str, str]:
        """First value of each dei document-information concept."""
        info: dict[str, str] = {}
        for fact in facts:
            if fact.prefix == "dei" and fact.concept_name in self.DOCUMENT_INFO_CONCEPTS:
                info.setdefault(fact.concept_name, fact.value)
        return info

    def _standardize_metrics(self, facts: list[XBRLFact]) -> dict[str, list[XBRLFact]]:
        """Group facts under standard metric names by concept-name substring."""
        metrics: dict[str, list[XBRLFact]] = {name: [] for name in self.STANDARD_FINANCIAL_METRICS}
        for fact in facts:
            concept = fact.concept_name.lower()
            for metric_name, fragments in self.STANDARD_FINANCIAL_METRICS.items():
                if any(fragment.lower() in concept for fragment in fragments):
                    metrics[metric_name].append(fact)
        return metrics

    # =========================================================================
    # Output
    # =========================================================================

    def describe_facts(self, doc: XBRLDocument, facts: list[XBRLFact]) -> str:
        """Render facts as 'Concept: value <period>' lines."""
        lines = []
        for fact in facts:
            context = doc.contexts.get(fact.context_ref)
            period = context.period_description() if context else ""
            lines.append(f"{fact.concept_name}: {fact.value} {period}".rstrip())
        return "\n\n".join(lines)

    def to_sections(self, doc: XBRLDocument) -> list[Section]:
        """
        Metadata, contexts, units, one section per found metric, then the facts table.

        The facts table is left out when extract_tables is off. Section
        content is cut to max_section_length.
        """
        sections = [
            Section(
                kind=SectionKind.SECTION,
                title="Metadata",
                content=self._truncate(json.dumps(doc.document_info, indent=2)),
                metadata=dict(doc.document_info),
            )
        ]

        if doc.contexts:
            sections.append(Section(
                kind=SectionKind.SECTION,
                title="Contexts",
                content=self._truncate(json.dumps(
                    {ctx_id: ctx.model_dump(exclude_none=True) for ctx_id, ctx in doc.contexts.items()},
                    indent=2,
                )),
            ))

        if doc.units:
            sections.append(Section(
                kind=SectionKind.SECTION,
                title="Units",
                content=self._truncate(json.dumps({unit_id: unit.measure for unit_id, unit in doc.units.items()}, indent=2)),
            ))

        for metric_name, facts in doc.standardized_metrics.items():
            if facts:
                sections.append(Section(
                    kind=SectionKind.SECTION,
                    title=f"Financial Metric: {metric_name}",
                    content=self._truncate(self.describe_facts(doc, facts)),
                ))

        if not self.options.extract_tables:
            return sections

        table_data = [list(self.FACTS_TABLE_HEADER)]
        for fact in doc.facts:
            table_data.append([
                fact.concept_name,
                fact.value,
                fact.context_ref,
                fact.unit_ref or "",
                fact.decimals or "",
            ])
        sections.append(Section(
            kind=SectionKind.TABLE,
            title="XBRL Facts",
            content=self._truncate("\n".join("\t".join(row) for row in table_data)),
            table_data=table_data,
        ))

        return sections

    def _truncate(self, text: str) -> str:
        return truncate(text, self.options.max_section_length)

    def parse_as_filing(
        self,
        content: Union[str, bytes],
        filing_type: Optional[str] = None,
    ) -> ParsedFiling:
        """
        Parse an XBRL document directly into a ParsedFiling.

        Args:
            content: Raw XBRL instance XML or iXBRL HTML
            filing_type: Filing type to report; defaults to dei:DocumentType, then "XBRL"

        Returns:
            ParsedFiling with metrics as important sections and financial metrics
        """
        doc = self.read(content)
        info = doc.document_info
        filing_type = filing_type or info.get("DocumentType") or "XBRL"

        found = {name: facts for name, facts in doc.standardized_metrics.items() if facts}

        important_sections = {}
        if self.options.extract_important_sections:
            important_sections = {
                metric_name: self._truncate(self.describe_facts(doc, facts))
                for metric_name, facts in found.items()
            }

        financial_metrics = {}
        if self.options.extract_financial_metrics:
            financial_metrics = {
                metric_name: FinancialMetric(value=facts[0].value, source=facts[0].concept_name)
                for metric_name, facts in found.items()
            }

        filing_date = self._parse_date(info.get("DocumentPeriodEndDate"))
        metadata = FilingMetadata(
            filing_type=filing_type,
            company_name=info.get("EntityRegistrantName"),
            filing_date=filing_date,
            cik=info.get("EntityCentralIndexKey"),
            fiscal_year=info.get("DocumentFiscalYearFocus"),
            fiscal_period=info.get("DocumentFiscalPeriodFocus"),
            financial_metrics=financial_metrics,
        )

        return ParsedFiling(
            filing_type=filing_type,
            company_name=metadata.company_name,
            cik=metadata.cik,
            filing_date=filing_date,
            important_sections=important_sections,
            sections=self.to_sections(doc),
            metadata=metadata,
            source_format=DocumentFormat.XBRL,
        )

    @staticmethod
    def _parse_date(value: Optional[str]) -> Optional[date]:
        if not value:
            return None
        for fmt in ("%Y-%m-%d", "%B %d, %Y", "%m/%d/%Y"):
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        logger.warning(f"Could not parse XBRL period end date: {value!r}")
        return None


def parse_xbrl(
    content: Union[str, bytes],
    filing_type: Optional[str] = None,
    options: Optional[ParserOptions] = None,
) -> ParsedFiling:
    """Convenience function to parse an XBRL document into a ParsedFiling."""
    return XBRLFilingParser(options).parse_as_filing(content, filing_type)
