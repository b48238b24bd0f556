"""IGDB image CDN URL construction."""

from dataclasses import dataclass

from game_catalog.config import IGDBConfig, get_settings


@dataclass(frozen=True)
class ImageUrlBuilder:
    """
    Builds ``{base_url}/t_{size}/{image_id}.jpg`` URLs.

    Available sizes include cover_small (90x128), cover_big (264x374),
    screenshot_med (569x320), screenshot_big (889x500) and
    screenshot_huge (1280x720).
    """

    base_url: str = "https://images.igdb.com/igdb/image/upload"
    cover_size: str = "cover_big"
    screenshot_size: str = "screenshot_big"

    @classmethod
    def from_config(cls, config: IGDBConfig | None = None) -> "ImageUrlBuilder":
        """Create a builder from IGDB configuration."""
        config = config or get_settings().igdb
        return cls(
            base_url=config.image_base_url,
            cover_size=config.default_cover_size,
            screenshot_size=config.default_screenshot_size,
        )

    def image_url(self, image_id: str | None, size: str) -> str:
        """Return the URL for an image id, or "" when the id is blank."""
        image_id = (image_id or "").strip()
        if not image_id:
            return ""
        return f"{self.base_url.rstrip('/')}/t_{size}/{image_id}.jpg"

    def cover_url(self, image_id: str | None) -> str:
        return self.image_url(image_id, self.cover_size)

    def screenshot_url(self, image_id: str | None) -> str:
        return self.image_url(image_id, self.screenshot_size)
