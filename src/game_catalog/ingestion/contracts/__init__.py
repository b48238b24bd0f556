"""
Data contracts for IGDB API responses.

Pydantic models describing the records the importer consumes,
ensuring type safety and validation before mapping.
"""

from game_catalog.ingestion.contracts.igdb import (
    GAME_FIELDS,
    CompanyRef,
    GenreRef,
    IGDBGame,
    ImageRef,
    InvolvedCompany,
    ProductType,
)

__all__ = [
    "GAME_FIELDS",
    "CompanyRef",
    "GenreRef",
    "IGDBGame",
    "ImageRef",
    "InvolvedCompany",
    "ProductType",
]
