"""
Filing Type Registry.

Process-wide map from filing type id to its configuration. Populated once
by ``initialize_filing_types()`` and read-only afterwards, so lookups need
no locking.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class FilingCategory(str, Enum):
    """Closed set of filing categories used for type-specific extraction."""
    ANNUAL_REPORT = "annual_report"
    QUARTERLY_REPORT = "quarterly_report"
    CURRENT_REPORT = "current_report"
    INSIDER_TRANSACTION = "insider_transaction"
    PROXY_MATERIALS = "proxy_materials"
    OWNERSHIP_REPORT = "ownership_report"
    PROPOSED_SALE = "proposed_sale"
    GENERIC = "generic"


class FilingTypeConfig(BaseModel):
    """
    Registry entry for one filing type.

    ``custom_parser`` replaces the generic parse path entirely when set.
    It is called as ``custom_parser(content, options)`` and must return a
    ``ParsedFiling``.
    """
    model_config = ConfigDict(frozen=True)

    filing_type_id: str
    important_sections: tuple[str, ...] = ()
    parser_options: dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    category: FilingCategory = FilingCategory.GENERIC
    custom_parser: Optional[Callable[..., Any]] = None


class FilingTypeRegistry:
    """Registry of supported filing types."""

    _configs: dict[str, FilingTypeConfig] = {}

    @classmethod
    def register(cls, filing_type_id: str, config: FilingTypeConfig) -> None:
        """Register a config under an id. Re-registering overwrites (used for aliases)."""
        if filing_type_id in cls._configs:
            logger.debug(f"Overwriting filing type registration: {filing_type_id}")
        cls._configs[filing_type_id] = config
        logger.debug(f"Registered filing type: {filing_type_id}")

    @classmethod
    def is_supported(cls, filing_type_id: str) -> bool:
        return filing_type_id in cls._configs

    @classmethod
    def get_section_config(cls, filing_type_id: str) -> Optional[FilingTypeConfig]:
        return cls._configs.get(filing_type_id)

    @classmethod
    def get_important_sections(cls, filing_type_id: str) -> tuple[str, ...]:
        """Important section names for a type, empty if unsupported."""
        config = cls._configs.get(filing_type_id)
        return config.important_sections if config else ()

    @classmethod
    def get_category(cls, filing_type_id: str) -> FilingCategory:
        config = cls._configs.get(filing_type_id)
        return config.category if config else FilingCategory.GENERIC

    @classmethod
    def get_all_types(cls) -> set[str]:
        return set(cls._configs)

    @classmethod
    def get_filing_type_descriptions(cls) -> dict[str, str]:
        """Map of every registered id to its description."""
        return {
            filing_type_id: config.description or f"{filing_type_id} SEC Filing"
            for filing_type_id, config in cls._configs.items()
        }
