"""
Built-in SEC filing type definitions.

Each definition lists the ids it is registered under (primary id first,
then aliases). ``initialize_filing_types()`` registers them in this order.
"""

import logging

from .registry import FilingCategory, FilingTypeConfig, FilingTypeRegistry

logger = logging.getLogger(__name__)


# Options every built-in type shares
_BASE_OPTIONS = {
    "extract_tables": True,
    "preserve_whitespace": False,
}


ANNUAL_REPORT_SECTIONS = (
    "Management's Discussion and Analysis",
    "Risk Factors",
    "Financial Statements",
    "Notes to Financial Statements",
    "Controls and Procedures",
    "Quantitative and Qualitative Disclosures about Market Risk",
    "Executive Compensation",
    "Business",
)

QUARTERLY_REPORT_SECTIONS = ANNUAL_REPORT_SECTIONS[:6]


BUILTIN_FILING_TYPES: list[tuple[tuple[str, ...], FilingTypeConfig]] = [
    (
        ("10-K",),
        FilingTypeConfig(
            filing_type_id="10-K",
            important_sections=ANNUAL_REPORT_SECTIONS,
            parser_options={**_BASE_OPTIONS, "max_section_length": 100_000},
            description="Annual report providing a comprehensive overview of a company's business and financial condition",
            category=FilingCategory.ANNUAL_REPORT,
        ),
    ),
    (
        ("10-Q",),
        FilingTypeConfig(
            filing_type_id="10-Q",
            important_sections=QUARTERLY_REPORT_SECTIONS,
            parser_options={**_BASE_OPTIONS, "max_section_length": 75_000},
            description="Quarterly report providing ongoing view of a company's financial position",
            category=FilingCategory.QUARTERLY_REPORT,
        ),
    ),
    (
        ("8-K",),
        FilingTypeConfig(
            filing_type_id="8-K",
            important_sections=(
                "Item 1.01",  # Entry into a Material Definitive Agreement
                "Item 2.01",  # Completion of Acquisition or Disposition of Assets
                "Item 5.02",  # Departure/Election of Directors or Officers
                "Item 7.01",  # Regulation FD Disclosure
                "Item 8.01",  # Other Events
                "Item 9.01",  # Financial Statements and Exhibits
            ),
            parser_options={**_BASE_OPTIONS, "max_section_length": 50_000},
            description="Current report disclosing material events that shareholders should know about",
            category=FilingCategory.CURRENT_REPORT,
        ),
    ),
    (
        ("Form4", "4"),
        FilingTypeConfig(
            filing_type_id="Form4",
            important_sections=("Table I", "Table II", "Reporting Owner", "Transactions"),
            parser_options={**_BASE_OPTIONS, "max_section_length": 25_000},
            description="Statement of changes in beneficial ownership of securities by insiders",
            category=FilingCategory.INSIDER_TRANSACTION,
        ),
    ),
    (
        ("DEFA14A", "DEFA 14A"),
        FilingTypeConfig(
            filing_type_id="DEFA14A",
            important_sections=(
                "Additional Information",
                "Supplemental Information",
                "Forward-Looking Statements",
                "Voting Instructions",
                "Presentation Materials",
                "Important Information",
            ),
            parser_options={**_BASE_OPTIONS, "max_section_length": 60_000},
            description="Additional proxy soliciting materials that are provided to shareholders regarding a matter to be voted on",
            category=FilingCategory.PROXY_MATERIALS,
        ),
    ),
    (
        ("SC 13D", "SC13D"),
        FilingTypeConfig(
            filing_type_id="SC 13D",
            important_sections=(
                "Item 1. Security and Issuer",
                "Item 2. Identity and Background",
                "Item 3. Source and Amount of Funds",
                "Item 4. Purpose of Transaction",
                "Item 5. Interest in Securities",
                "Item 6. Contracts, Arrangements, Understandings",
                "Item 7. Material to be Filed as Exhibits",
            ),
            parser_options={**_BASE_OPTIONS, "max_section_length": 50_000},
            description="Filed when an entity acquires more than 5% of voting class of a company's securities",
            category=FilingCategory.OWNERSHIP_REPORT,
        ),
    ),
    (
        ("144", "Form 144"),
        FilingTypeConfig(
            filing_type_id="144",
            important_sections=(
                "Issuer Information",
                "Security Information",
                "Person for whose Account the Securities are to be Sold",
                "Broker Information",
                "Proposed Sale Information",
            ),
            parser_options={**_BASE_OPTIONS, "max_section_length": 25_000},
            description="Notice of proposed sale of restricted securities by affiliates",
            category=FilingCategory.PROPOSED_SALE,
        ),
    ),
]


_initialized = False


def initialize_filing_types() -> None:
    """
    Register every built-in filing type, in definition order.

    Safe to call more than once; only the first call registers.
    """
    global _initialized
    if _initialized:
        return

    for filing_type_ids, config in BUILTIN_FILING_TYPES:
        for filing_type_id in filing_type_ids:
            FilingTypeRegistry.register(filing_type_id, config)

    _initialized = True
    logger.debug(f"Initialized {len(FilingTypeRegistry.get_all_types())} filing type ids")
