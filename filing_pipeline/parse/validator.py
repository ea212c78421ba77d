"""
Sanity checks for parsed filings.

Checks never raise; they return warning messages so a batch run can log
thin or suspicious parses and keep going.
"""

import logging

from .models import ParsedFiling, SectionKind, flatten_sections
from .registry import FilingTypeRegistry

logger = logging.getLogger(__name__)


# Share of generic sections flagged as boilerplate above which a parse looks suspect
MAX_BOILERPLATE_SHARE = 0.8


def validate_parsed_filing(filing: ParsedFiling) -> list[str]:
    """
    Validate a parsed filing and return a list of warnings/issues.

    Args:
        filing: ParsedFiling to check

    Returns:
        List of warning messages (empty if all good)
    """
    warnings = []
    flat = flatten_sections(filing.sections)

    if not flat:
        warnings.append("Filing has no sections")

    if not FilingTypeRegistry.is_supported(filing.filing_type):
        warnings.append(f"Filing type is not registered: {filing.filing_type}")

    expected = FilingTypeRegistry.get_important_sections(filing.filing_type)
    if expected and not filing.important_sections:
        warnings.append(
            f"No important sections found (expected any of {len(expected)} for {filing.filing_type})"
        )

    if not filing.company_name:
        warnings.append("Company name not found")

    if filing.filing_date is None:
        warnings.append("Filing date not found")

    for table in filing.tables:
        if not table.table_data:
            warnings.append(f"Table without cell data: {table.title or 'Untitled'}")

    generic = [s for s in flat if s.kind == SectionKind.SECTION]
    if generic:
        flagged = sum(1 for s in generic if s.is_boilerplate)
        if flagged / len(generic) > MAX_BOILERPLATE_SHARE:
            warnings.append(
                f"{flagged} of {len(generic)} sections flagged as boilerplate, "
                "structure may not have been recognized"
            )

    if warnings:
        logger.debug(f"Validation of {filing.filing_type} filing raised {len(warnings)} warnings")
    return warnings
