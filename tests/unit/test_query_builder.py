"""Tests for the Apicalypse query builder."""

import pytest

from game_catalog.ingestion.client import QueryBuilder


class TestQueryBuilder:
    """Tests for QueryBuilder."""

    def test_candidate_query(self) -> None:
        """Test the canonical form of a filtered, sorted, paged query."""
        query = (
            QueryBuilder()
            .fields("name", "slug", "cover.image_id")
            .where_not_null("cover")
            .where("total_rating", ">=", 60)
            .sort("total_rating", "desc")
            .limit(50)
            .offset(100)
            .build()
        )

        assert query == (
            "fields name,slug,cover.image_id;"
            "where cover != null & total_rating >= 60;"
            "sort total_rating desc;"
            "limit 50;"
            "offset 100;"
        )

    def test_zero_offset_omitted(self) -> None:
        query = QueryBuilder().fields("name").limit(5).offset(0).build()

        assert query == "fields name;limit 5;"

    def test_null_check(self) -> None:
        query = QueryBuilder().fields("name").where_null("cover").build()

        assert query == "fields name;where cover = null;"

    def test_membership_filter(self) -> None:
        query = QueryBuilder().fields("name").where_in("category", [0, 1, 2]).build()

        assert query == "fields name;where category = (0,1,2);"

    def test_membership_requires_values(self) -> None:
        with pytest.raises(ValueError):
            QueryBuilder().fields("name").where_in("category", [])

    def test_search_comes_first_and_escapes_quotes(self) -> None:
        query = QueryBuilder().fields("name").search('say "hi"').limit(3).build()

        assert query == 'search "say \\"hi\\"";fields name;limit 3;'

    def test_search_and_sort_are_exclusive(self) -> None:
        with pytest.raises(ValueError, match="search combined with sort"):
            QueryBuilder().fields("name").search("zelda").sort("total_rating")

        with pytest.raises(ValueError, match="search combined with sort"):
            QueryBuilder().fields("name").sort("total_rating").search("zelda")

    def test_whitespace_in_inputs_is_compacted(self) -> None:
        query = (
            QueryBuilder()
            .fields(" name ", "cover.\n  image_id")
            .where("total_rating", ">", 70)
            .search("  the   legend \n of  zelda ")
            .build()
        )

        assert "\n" not in query
        assert "  " not in query
        assert query == 'search "the legend of zelda";fields name,cover.image_id;where total_rating > 70;'

    def test_duplicate_fields_ignored(self) -> None:
        query = QueryBuilder().fields("name", "name").fields("name").build()

        assert query == "fields name;"

    def test_value_rendering(self) -> None:
        query = (
            QueryBuilder()
            .fields("name")
            .where("rating", "<", 55.5)
            .where("name", "=", "Portal")
            .where("involved_companies.developer", "=", True)
            .build()
        )

        assert query == (
            'fields name;where rating < 55.5 & name = "Portal" & involved_companies.developer = true;'
        )

    @pytest.mark.parametrize("limit", [0, 501, -1])
    def test_limit_bounds(self, limit: int) -> None:
        with pytest.raises(ValueError):
            QueryBuilder().limit(limit)

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(ValueError):
            QueryBuilder().offset(-1)

    def test_unsupported_operator(self) -> None:
        with pytest.raises(ValueError, match="Unsupported operator"):
            QueryBuilder().where("name", "~", "zelda")

    def test_fields_required(self) -> None:
        with pytest.raises(ValueError, match="at least one field"):
            QueryBuilder().limit(5).build()

    def test_sort_direction(self) -> None:
        assert QueryBuilder().fields("name").sort("name", "ASC").build() == "fields name;sort name asc;"

        with pytest.raises(ValueError):
            QueryBuilder().sort("name", "sideways")

    def test_normalize_raw_text(self) -> None:
        raw = """
            fields name;
            limit   5;
        """

        assert QueryBuilder.normalize(raw) == "fields name; limit 5;"

    def test_str_builds(self) -> None:
        builder = QueryBuilder().fields("name").limit(5)

        assert str(builder) == builder.build()
