"""
Domain Models Package
Export all domain entities
"""

from .entities import (
    # Enums
    CategoryGroup,

    # Entities
    FundRecord,
    FundSnapshot,
    PortfolioAggregate,
    PortfolioLine,

    # Classification
    FUND_TYPES,
    category_for_classification,
)

__all__ = [
    # Enums
    "CategoryGroup",

    # Entities
    "FundRecord",
    "FundSnapshot",
    "PortfolioAggregate",
    "PortfolioLine",

    # Classification
    "FUND_TYPES",
    "category_for_classification",
]
