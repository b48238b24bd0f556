"""
Local game catalog.

SQLAlchemy schema and the async store the importer writes to.
"""

from game_catalog.catalog.models import Base, Game, GameScreenshot, Genre, game_genre
from game_catalog.catalog.store import CatalogStore

__all__ = [
    "Base",
    "CatalogStore",
    "Game",
    "GameScreenshot",
    "Genre",
    "game_genre",
]
