"""
Tests for list query helpers (filter / sort / fields / pagination).
"""

import pytest
import pytest_asyncio

from natours.models import Tour
from natours.web.exceptions import BadRequestError
from natours.web.operations import APIOperations

pytestmark = pytest.mark.asyncio


async def run(database, query):
    async with database.session() as session:
        return await APIOperations(Tour, query).filter().sort().limit_fields().paginate().all(session)


@pytest_asyncio.fixture
async def tours(make_tour):
    return [
        await make_tour(name="The Forest Hiker", difficulty="easy", price=397, duration=5, ratings_average=4.7),
        await make_tour(name="The Sea Explorer", difficulty="medium", price=497, duration=7, ratings_average=4.8),
        await make_tour(name="The Snow Adventurer", difficulty="difficult", price=997, duration=4, ratings_average=4.5),
        await make_tour(name="The City Wanderer", difficulty="easy", price=1197, duration=9, ratings_average=4.6),
    ]


class TestFilter:
    """Equality and comparison filters."""

    async def test_equality(self, database, tours):
        result = await run(database, {"difficulty": "easy"})
        assert sorted(tour["name"] for tour in result) == ["The City Wanderer", "The Forest Hiker"]

    async def test_comparison_operators(self, database, tours):
        result = await run(database, {"price[lte]": "500", "duration[gt]": "5"})
        assert [tour["name"] for tour in result] == ["The Sea Explorer"]

    async def test_not_equal(self, database, tours):
        result = await run(database, {"difficulty[ne]": "easy"})
        assert len(result) == 2

    async def test_unknown_fields_are_ignored(self, database, tours):
        result = await run(database, {"colour": "red", "foo[gt]": "1"})
        assert len(result) == 4

    async def test_bad_value(self, database, tours):
        with pytest.raises(BadRequestError):
            await run(database, {"price[gte]": "cheap"})


class TestSortFieldsPaginate:

    async def test_sort_ascending_and_descending(self, database, tours):
        result = await run(database, {"sort": "price"})
        assert [tour["price"] for tour in result] == [397, 497, 997, 1197]

        result = await run(database, {"sort": "-ratingsAverage,price"})
        assert [tour["name"] for tour in result][:2] == ["The Sea Explorer", "The Forest Hiker"]

    async def test_limit_fields_keeps_id(self, database, tours):
        result = await run(database, {"fields": "name,price", "sort": "price"})
        assert set(result[0]) == {"id", "name", "price"}

    async def test_paginate(self, database, tours):
        page_one = await run(database, {"sort": "price", "limit": "3"})
        page_two = await run(database, {"sort": "price", "limit": "3", "page": "2"})
        assert [tour["price"] for tour in page_one] == [397, 497, 997]
        assert [tour["price"] for tour in page_two] == [1197]

    async def test_invalid_pagination_falls_back_to_defaults(self, database, tours):
        result = await run(database, {"page": "-1", "limit": "abc"})
        assert len(result) == 4

    async def test_secret_tours_are_hidden(self, database, make_tour):
        await make_tour(name="The Secret Garden", secret_tour=True)
        await make_tour(name="The Public Garden")
        result = await run(database, {})
        assert [tour["name"] for tour in result] == ["The Public Garden"]
