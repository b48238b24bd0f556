"""
Mapping of IGDB game records to catalog entries.

IGDB has no commercial data, so price, discount, platform, region
and cashback are synthesized from fixed weighted tables. The random
source is injectable so tests can pin every draw.
"""

import random
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError
from slugify import slugify

from game_catalog.ingestion.client.errors import MappingError
from game_catalog.ingestion.client.images import ImageUrlBuilder
from game_catalog.ingestion.contracts import IGDBGame, ProductType

V = TypeVar("V")

MAX_SCREENSHOTS = 10

CASHBACK_CHANCE_PERCENT = 40
CASHBACK_MIN_PERCENT = 5
CASHBACK_MAX_PERCENT = 25


@dataclass(frozen=True)
class WeightedTable(Generic[V]):
    """
    Discrete distribution over (value, weight) pairs.

    draw() rolls an integer in [1, total_weight] and walks the
    cumulative weights; default is returned only if the walk somehow
    falls through.
    """

    entries: tuple[tuple[V, int], ...]
    default: V

    def __post_init__(self) -> None:
        if not self.entries:
            raise ValueError("WeightedTable needs at least one entry")
        for value, weight in self.entries:
            if weight <= 0:
                raise ValueError(f"Weight for {value!r} must be positive, got {weight}")

    @property
    def values(self) -> tuple[V, ...]:
        return tuple(value for value, _ in self.entries)

    @property
    def total_weight(self) -> int:
        return sum(weight for _, weight in self.entries)

    def probability(self, value: V) -> float:
        """Share of the total weight carried by value."""
        weight = sum(w for v, w in self.entries if v == value)
        return weight / self.total_weight

    def draw(self, rng: random.Random) -> V:
        roll = rng.randint(1, self.total_weight)
        cumulative = 0
        for value, weight in self.entries:
            cumulative += weight
            if roll <= cumulative:
                return value
        return self.default


# Weighted towards cheaper titles
PRICE_POINTS: WeightedTable[float] = WeightedTable(
    entries=(
        (9.99, 20),
        (14.99, 15),
        (19.99, 15),
        (24.99, 12),
        (29.99, 10),
        (34.99, 8),
        (39.99, 7),
        (44.99, 5),
        (49.99, 4),
        (59.99, 3),
        (69.99, 1),
    ),
    default=29.99,
)

# 3 in 11 draws carry a discount
DISCOUNTS: WeightedTable[int] = WeightedTable(
    entries=(
        (0, 64),
        (10, 3),
        (15, 3),
        (20, 3),
        (25, 3),
        (30, 3),
        (33, 3),
        (40, 3),
        (50, 3),
    ),
    default=0,
)

for _discount in DISCOUNTS.values:
    if not 0 <= _discount < 100:
        raise ValueError(f"Discount out of range: {_discount}")


class Platform(str, Enum):
    STEAM = "Steam"
    XBOX = "Xbox"
    PLAYSTATION = "PlayStation"
    NINTENDO = "Nintendo"
    EPIC = "Epic"
    GOG = "GOG"


class Region(str, Enum):
    GLOBAL = "GLOBAL"
    EU = "EU"
    US = "US"
    TR = "TR"


def original_price_for(price: float, discount: int) -> float:
    """
    Back-derive the list price from a sale price.

    The synthesized price is the post-discount amount, so the list
    price is price / (1 - discount/100).
    """
    if discount <= 0:
        return price
    return round(price / (1 - discount / 100), 2)


def slugify_name(name: str) -> str:
    return slugify(name or "")


@dataclass
class GameDraft:
    """Column values of a catalog entry before slug resolution."""

    igdb_id: int
    slug: str
    title: str
    image: str
    price: float
    original_price: float
    discount: int
    platform: Platform
    region: Region
    product_type: ProductType
    has_cashback: bool
    cashback_percent: int
    release_date: date | None
    developer: str | None
    publisher: str | None
    description: str | None
    popularity_score: int

    def to_columns(self) -> dict[str, Any]:
        """Column mapping with enums flattened to their stored values."""
        return {
            "igdb_id": self.igdb_id,
            "slug": self.slug,
            "title": self.title,
            "image": self.image,
            "price": self.price,
            "original_price": self.original_price,
            "discount": self.discount,
            "platform": self.platform.value,
            "region": self.region.value,
            "product_type": self.product_type.value,
            "has_cashback": self.has_cashback,
            "cashback_percent": self.cashback_percent,
            "release_date": self.release_date,
            "developer": self.developer,
            "publisher": self.publisher,
            "description": self.description,
            "popularity_score": self.popularity_score,
        }


@dataclass
class MappedRecord:
    """Everything needed to persist one IGDB game."""

    draft: GameDraft
    genre_names: list[str] = field(default_factory=list)
    screenshot_ids: list[str] = field(default_factory=list)
    screenshot_urls: list[str] = field(default_factory=list)


class RecordMapper:
    """
    Turns an IGDB game record into a catalog entry draft.

    Example:
        >>> mapper = RecordMapper(rng=random.Random(42))
        >>> mapped = mapper.map({"id": 1942, "name": "The Witcher 3"})
        >>> mapped.draft.slug
        'the-witcher-3'
    """

    def __init__(
        self,
        *,
        images: ImageUrlBuilder | None = None,
        rng: random.Random | None = None,
        price_points: WeightedTable[float] = PRICE_POINTS,
        discounts: WeightedTable[int] = DISCOUNTS,
    ) -> None:
        self._images = images or ImageUrlBuilder.from_config()
        self._rng = rng or random.Random()
        self._price_points = price_points
        self._discounts = discounts

    @staticmethod
    def external_id(record: dict[str, Any]) -> int:
        """Read only the IGDB id from a raw record."""
        raw_id = record.get("id") if isinstance(record, dict) else None
        if not isinstance(raw_id, int) or isinstance(raw_id, bool) or raw_id < 1:
            raise MappingError(f"Invalid IGDB record id: {raw_id!r}")
        return raw_id

    def parse(self, record: dict[str, Any]) -> IGDBGame:
        """Validate a raw record."""
        try:
            return IGDBGame.model_validate(record)
        except PydanticValidationError as e:
            raw_id = record.get("id") if isinstance(record, dict) else None
            raise MappingError(
                f"Invalid IGDB record: {e}",
                external_id=raw_id if isinstance(raw_id, int) else None,
                original_error=e,
            ) from e

    def map(self, record: dict[str, Any] | IGDBGame) -> MappedRecord:
        """
        Map one record.

        Raises:
            MappingError: If the record is invalid or a field cannot be derived
        """
        game = record if isinstance(record, IGDBGame) else self.parse(record)

        try:
            release_date = game.release_date
        except (OverflowError, OSError, ValueError) as e:
            raise MappingError(
                f"Invalid first_release_date: {game.first_release_date}",
                external_id=game.id,
                original_error=e,
            ) from e

        price = self.generate_price()
        discount = self.generate_discount()
        has_cashback, cashback_percent = self.generate_cashback()

        draft = GameDraft(
            igdb_id=game.id,
            slug=self.base_slug(game),
            title=game.name,
            image=self._images.cover_url(game.cover_image_id),
            price=price,
            original_price=original_price_for(price, discount),
            discount=discount,
            platform=self._rng.choice(list(Platform)),
            region=self._rng.choice(list(Region)),
            product_type=game.product_type,
            has_cashback=has_cashback,
            cashback_percent=cashback_percent,
            release_date=release_date,
            developer=game.developer_name,
            publisher=game.publisher_name,
            description=game.summary,
            popularity_score=int(game.total_rating or 0),
        )

        screenshot_ids = game.screenshot_ids[:MAX_SCREENSHOTS]
        return MappedRecord(
            draft=draft,
            genre_names=self.unique_genre_names(game.genre_names),
            screenshot_ids=screenshot_ids,
            screenshot_urls=[self._images.screenshot_url(i) for i in screenshot_ids],
        )

    def generate_price(self) -> float:
        return self._price_points.draw(self._rng)

    def generate_discount(self) -> int:
        return self._discounts.draw(self._rng)

    def generate_cashback(self) -> tuple[bool, int]:
        has_cashback = self._rng.randint(1, 100) <= CASHBACK_CHANCE_PERCENT
        if not has_cashback:
            return False, 0
        return True, self._rng.randint(CASHBACK_MIN_PERCENT, CASHBACK_MAX_PERCENT)

    @staticmethod
    def base_slug(game: IGDBGame) -> str:
        """Upstream slug if present, else the slugified title."""
        slug = slugify_name(game.slug or "") or slugify_name(game.name)
        return slug or f"game-{game.id}"

    @staticmethod
    def unique_genre_names(names: list[str]) -> list[str]:
        """Drop names that slugify to an empty or already seen slug."""
        seen: set[str] = set()
        result: list[str] = []
        for name in names:
            slug = slugify_name(name)
            if not slug or slug in seen:
                continue
            seen.add(slug)
            result.append(name.strip())
        return result
