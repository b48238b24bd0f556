"""
Data contracts for IGDB game records.

These Pydantic models describe the expanded ``games`` payload
requested by the importer. Unknown fields are ignored so IGDB can
add attributes without breaking validation.
"""

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# IGDB game fields requested for every catalog query
GAME_FIELDS: tuple[str, ...] = (
    "name",
    "slug",
    "summary",
    "cover.image_id",
    "screenshots.image_id",
    "genres.name",
    "first_release_date",
    "total_rating",
    "category",
    "involved_companies.company.name",
    "involved_companies.developer",
    "involved_companies.publisher",
)


class ProductType(str, Enum):
    """Catalog product type derived from the IGDB category code."""

    GAME = "Game"
    DLC = "DLC"
    BUNDLE = "Bundle"

    @classmethod
    def from_category(cls, category: int | None) -> "ProductType":
        """
        Map an IGDB category code to a product type.

        IGDB categories: 0 main game, 1 DLC/add-on, 2 expansion,
        3 bundle, 4 standalone expansion. Everything else is a game.
        """
        if category in (1, 2, 4):
            return cls.DLC
        if category == 3:
            return cls.BUNDLE
        return cls.GAME


class _IGDBModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ImageRef(_IGDBModel):
    """Cover or screenshot reference."""

    image_id: str | None = None


class GenreRef(_IGDBModel):
    """Expanded genre."""

    name: str | None = None


class CompanyRef(_IGDBModel):
    """Expanded company."""

    name: str | None = None


class InvolvedCompany(_IGDBModel):
    """Company association with its role flags."""

    company: CompanyRef | None = None
    developer: bool = False
    publisher: bool = False


class IGDBGame(_IGDBModel):
    """A game record as returned by the IGDB ``games`` endpoint."""

    id: int = Field(..., ge=1, description="IGDB game ID")
    name: str = Field(..., min_length=1)
    slug: str | None = None
    summary: str | None = None
    cover: ImageRef | None = None
    screenshots: list[ImageRef] = Field(default_factory=list)
    genres: list[GenreRef] = Field(default_factory=list)
    first_release_date: int | None = Field(default=None, description="Epoch seconds")
    total_rating: float | None = Field(default=None, ge=0, le=100)
    category: int | None = None
    involved_companies: list[InvolvedCompany] = Field(default_factory=list)

    @property
    def cover_image_id(self) -> str | None:
        """Cover image id, if any."""
        if self.cover is None or not self.cover.image_id:
            return None
        return self.cover.image_id

    @property
    def screenshot_ids(self) -> list[str]:
        """Screenshot image ids in arrival order, skipping blanks."""
        return [s.image_id for s in self.screenshots if s.image_id]

    @property
    def genre_names(self) -> list[str]:
        """Genre names, skipping unnamed entries."""
        return [g.name for g in self.genres if g.name]

    @property
    def developer_name(self) -> str | None:
        """Name of the first company flagged as developer."""
        for involved in self.involved_companies:
            if involved.developer and involved.company and involved.company.name:
                return involved.company.name
        return None

    @property
    def publisher_name(self) -> str | None:
        """Name of the first company flagged as publisher."""
        for involved in self.involved_companies:
            if involved.publisher and involved.company and involved.company.name:
                return involved.company.name
        return None

    @property
    def release_date(self) -> date | None:
        """First release date as a UTC calendar date."""
        if not self.first_release_date:
            return None
        return datetime.fromtimestamp(self.first_release_date, tz=timezone.utc).date()

    @property
    def product_type(self) -> ProductType:
        return ProductType.from_category(self.category)
