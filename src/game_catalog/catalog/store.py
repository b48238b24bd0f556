"""
Catalog store backed by SQLAlchemy (async).

Provides the dedup lookups the importer needs and the atomic
per-record write: a game, its genre links and its screenshots are
committed in one transaction or not at all.
"""

from pathlib import Path

from slugify import slugify
from sqlalchemy import func, insert, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import selectinload

from game_catalog.catalog.models import Base, Game, GameScreenshot, Genre, game_genre
from game_catalog.config import DatabaseConfig, get_settings
from game_catalog.ingestion.client.errors import PersistenceError
from game_catalog.ingestion.mapper import MappedRecord
from game_catalog.logger import get_logger

# Leaves room for a "-NNN" collision suffix within String(255)
MAX_BASE_SLUG_LENGTH = 240


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


class CatalogStore:
    """
    Persistence for imported games.

    Example:
        >>> store = CatalogStore()
        >>> await store.create_schema()
        >>> if not await store.exists_by_external_id(1942):
        ...     await store.persist(mapper.map(record))
    """

    def __init__(
        self,
        *,
        config: DatabaseConfig | None = None,
        engine: AsyncEngine | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            config: Database configuration (uses settings if None)
            engine: Pre-built engine; created from config if None
        """
        self._config = config or get_settings().database
        if engine is None:
            _ensure_sqlite_directory(self._config.url)
            engine = create_async_engine(self._config.url, echo=self._config.echo)
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)
        self._logger = get_logger(__name__, component="catalog_store")

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def session(self) -> AsyncSession:
        """Open a new session."""
        return self._session_factory()

    async def create_schema(self) -> None:
        """Create missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Release pooled connections."""
        await self._engine.dispose()

    async def exists_by_external_id(self, igdb_id: int) -> bool:
        async with self.session() as session:
            found = await session.scalar(select(Game.id).where(Game.igdb_id == igdb_id).limit(1))
        return found is not None

    async def exists_by_slug(self, slug: str) -> bool:
        async with self.session() as session:
            return await self._slug_taken(session, slug)

    async def get_by_external_id(self, igdb_id: int) -> Game | None:
        """Load a game with its genres and screenshots."""
        async with self.session() as session:
            result = await session.scalars(
                select(Game)
                .where(Game.igdb_id == igdb_id)
                .options(selectinload(Game.genres), selectinload(Game.screenshots))
            )
            return result.first()

    async def count_games(self) -> int:
        async with self.session() as session:
            return int(await session.scalar(select(func.count()).select_from(Game)) or 0)

    async def count_genres(self) -> int:
        async with self.session() as session:
            return int(await session.scalar(select(func.count()).select_from(Genre)) or 0)

    async def count_screenshots(self) -> int:
        async with self.session() as session:
            return int(await session.scalar(select(func.count()).select_from(GameScreenshot)) or 0)

    async def persist(self, mapped: MappedRecord) -> Game:
        """
        Write one game with its genres and screenshots atomically.

        Args:
            mapped: Output of RecordMapper.map()

        Returns:
            Game: The stored game (detached, with final slug)

        Raises:
            PersistenceError: If any write fails; nothing is committed
        """
        draft = mapped.draft
        try:
            async with self.session() as session:
                async with session.begin():
                    slug = await self.resolve_unique_slug(session, draft.slug)
                    genres = await self.get_or_create_genres(session, mapped.genre_names)

                    columns = draft.to_columns()
                    columns["slug"] = slug
                    game = Game(**columns)
                    session.add(game)
                    await session.flush()

                    await self._attach_genres(session, game, genres)
                    await self._add_screenshots(session, game, mapped.screenshot_urls)
        except SQLAlchemyError as e:
            self._logger.error(
                "Catalog write rolled back",
                igdb_id=draft.igdb_id,
                slug=draft.slug,
                error=str(e),
            )
            raise PersistenceError(
                f"Failed to store game {draft.igdb_id}: {e}",
                external_id=draft.igdb_id,
                original_error=e,
            ) from e

        self._logger.debug("Game stored", igdb_id=draft.igdb_id, slug=game.slug)
        return game

    async def _slug_taken(self, session: AsyncSession, slug: str) -> bool:
        found = await session.scalar(select(Game.id).where(Game.slug == slug).limit(1))
        return found is not None

    async def resolve_unique_slug(self, session: AsyncSession, base: str) -> str:
        """Append -1, -2, ... to base until no game uses it."""
        base = base[:MAX_BASE_SLUG_LENGTH].strip("-") or "game"
        candidate = base
        counter = 1
        while await self._slug_taken(session, candidate):
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate

    async def get_or_create_genre(self, session: AsyncSession, name: str) -> Genre:
        """Return the genre with name's slug, creating it on first encounter."""
        slug = slugify(name)
        genre = await session.scalar(select(Genre).where(Genre.slug == slug))
        if genre is not None:
            return genre

        genre = Genre(name=name, slug=slug)
        session.add(genre)
        await session.flush()
        self._logger.debug("Genre created", slug=slug)
        return genre

    async def get_or_create_genres(self, session: AsyncSession, names: list[str]) -> list[Genre]:
        genres: list[Genre] = []
        seen: set[int] = set()
        for name in names:
            if not slugify(name):
                continue
            genre = await self.get_or_create_genre(session, name)
            if genre.id not in seen:
                seen.add(genre.id)
                genres.append(genre)
        return genres

    async def _attach_genres(self, session: AsyncSession, game: Game, genres: list[Genre]) -> None:
        if not genres:
            return
        await session.execute(
            insert(game_genre),
            [
                {"game_id": game.id, "genre_id": genre.id, "position": position}
                for position, genre in enumerate(genres)
            ],
        )

    async def _add_screenshots(self, session: AsyncSession, game: Game, urls: list[str]) -> None:
        session.add_all(
            GameScreenshot(game_id=game.id, url=url, position=position)
            for position, url in enumerate(urls)
            if url
        )
        await session.flush()
