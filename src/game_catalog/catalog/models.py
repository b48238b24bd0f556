"""
Catalog store schema.

Games imported from IGDB, their genres and screenshots.
"""

from datetime import date, datetime
from typing import List

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


# Genre links are written explicitly so their position is preserved
game_genre = Table(
    "game_genre",
    Base.metadata,
    Column("game_id", ForeignKey("games.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False, default=0),
)


class Genre(Base):
    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)

    def __repr__(self) -> str:
        return f"<Genre(slug='{self.slug}')>"


class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    igdb_id: Mapped[int | None] = mapped_column(BigInteger, unique=True, index=True, nullable=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(255))
    image: Mapped[str] = mapped_column(String(500), default="")
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), index=True)
    original_price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    discount: Mapped[int] = mapped_column(Integer, default=0, index=True)
    platform: Mapped[str] = mapped_column(String(50), index=True)
    region: Mapped[str] = mapped_column(String(20), default="GLOBAL")
    product_type: Mapped[str] = mapped_column(String(50), default="Game", index=True)
    has_cashback: Mapped[bool] = mapped_column(Boolean, default=False)
    cashback_percent: Mapped[int] = mapped_column(Integer, default=0)
    release_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    developer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    popularity_score: Mapped[int] = mapped_column(Integer, default=0, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    genres: Mapped[List[Genre]] = relationship(
        secondary=game_genre,
        order_by=game_genre.c.position,
        viewonly=True,
    )
    screenshots: Mapped[List["GameScreenshot"]] = relationship(
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameScreenshot.position",
    )

    __table_args__ = (
        CheckConstraint("has_cashback OR cashback_percent = 0", name="ck_games_cashback"),
    )
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<Game(slug='{self.slug}', igdb_id={self.igdb_id})>"


class GameScreenshot(Base):
    __tablename__ = "game_screenshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    url: Mapped[str] = mapped_column(String(500))
    position: Mapped[int] = mapped_column(Integer, default=0)

    game: Mapped[Game] = relationship(back_populates="screenshots")
