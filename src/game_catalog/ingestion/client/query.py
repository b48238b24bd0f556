"""
Apicalypse query builder.

IGDB queries are plain text clauses, each terminated by a semicolon:

    search "zelda";fields name,slug;where cover != null & total_rating >= 60;
    sort total_rating desc;limit 50;offset 100;

IGDB is picky about formatting, so the builder always emits a compact
single-line form: no newlines, single spaces, no whitespace between
clauses, and no spaces after commas in the field list.
"""

import re
from collections.abc import Iterable
from typing import Any

from game_catalog.config import MAX_PAGE_SIZE

COMPARISON_OPERATORS = frozenset({"=", "!=", ">", ">=", "<", "<="})

_WHITESPACE = re.compile(r"\s+")


def _render_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = QueryBuilder.normalize(str(value)).replace('"', '\\"')
    return f'"{text}"'


class QueryBuilder:
    """
    Fluent builder for canonical Apicalypse query strings.

    Search and sort cannot be combined: IGDB ignores sort on search
    queries, so asking for both raises ValueError.

    Example:
        >>> (
        ...     QueryBuilder()
        ...     .fields("name", "cover.image_id")
        ...     .where_not_null("cover")
        ...     .where("total_rating", ">=", 70)
        ...     .sort("total_rating", "desc")
        ...     .limit(10)
        ...     .build()
        ... )
        'fields name,cover.image_id;where cover != null & total_rating >= 70;sort total_rating desc;limit 10;'
    """

    def __init__(self) -> None:
        self._fields: list[str] = []
        self._filters: list[str] = []
        self._search: str | None = None
        self._sort: str | None = None
        self._limit: int | None = None
        self._offset: int | None = None

    @staticmethod
    def normalize(text: str) -> str:
        """Collapse line breaks and whitespace runs to single spaces and trim."""
        return _WHITESPACE.sub(" ", text).strip()

    def fields(self, *names: str) -> "QueryBuilder":
        """Append fields to select; dot notation expands related objects."""
        for name in names:
            field = self.normalize(name).replace(" ", "")
            if field and field not in self._fields:
                self._fields.append(field)
        return self

    def where(self, field: str, operator: str, value: Any) -> "QueryBuilder":
        """Add a comparison filter, conjoined with existing filters."""
        if operator not in COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported operator: {operator!r}")
        self._filters.append(f"{self.normalize(field)} {operator} {_render_value(value)}")
        return self

    def where_null(self, field: str) -> "QueryBuilder":
        """Keep records where field is absent."""
        return self.where(field, "=", None)

    def where_not_null(self, field: str) -> "QueryBuilder":
        """Keep records where field is present."""
        return self.where(field, "!=", None)

    def where_in(self, field: str, values: Iterable[Any]) -> "QueryBuilder":
        """Keep records whose field matches one of values."""
        rendered = [_render_value(v) for v in values]
        if not rendered:
            raise ValueError(f"where_in({field!r}) needs at least one value")
        self._filters.append(f"{self.normalize(field)} = ({','.join(rendered)})")
        return self

    def search(self, term: str) -> "QueryBuilder":
        """Full-text search; cannot be combined with sort."""
        if self._sort is not None:
            raise ValueError("IGDB does not support search combined with sort")
        self._search = self.normalize(term).replace('"', '\\"')
        return self

    def sort(self, field: str, direction: str = "desc") -> "QueryBuilder":
        """Order results; cannot be combined with search."""
        if self._search is not None:
            raise ValueError("IGDB does not support search combined with sort")
        direction = direction.lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got {direction!r}")
        self._sort = f"{self.normalize(field)} {direction}"
        return self

    def limit(self, count: int) -> "QueryBuilder":
        """Page size, 1 to 500."""
        if not 1 <= count <= MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}, got {count}")
        self._limit = count
        return self

    def offset(self, count: int) -> "QueryBuilder":
        """Number of records to skip."""
        if count < 0:
            raise ValueError(f"Offset must be non-negative, got {count}")
        self._offset = count
        return self

    def build(self) -> str:
        """Render the canonical single-line query."""
        if not self._fields:
            raise ValueError("A query needs at least one field")

        clauses: list[str] = []
        if self._search is not None:
            clauses.append(f'search "{self._search}";')
        clauses.append(f"fields {','.join(self._fields)};")
        if self._filters:
            clauses.append(f"where {' & '.join(self._filters)};")
        if self._sort is not None:
            clauses.append(f"sort {self._sort};")
        if self._limit is not None:
            clauses.append(f"limit {self._limit};")
        if self._offset:
            clauses.append(f"offset {self._offset};")

        return self.normalize("".join(clauses))

    def __str__(self) -> str:
        return self.build()
