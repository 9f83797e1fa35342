"""
Tests for model field rules and lifecycle hooks.
"""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from natours.core.database import Database
from natours.models import Tour, User
from natours.utils.common import utcnow
from natours.utils.security import hash_token
from natours.web.exceptions import ModelValidationError


class TestTourFields:

    @pytest.mark.parametrize("name", ["Too short", "x" * 41])
    def test_name_length(self, name):
        with pytest.raises(ModelValidationError) as exc_info:
            Tour(name=name)
        assert exc_info.value.field == "name"

    def test_difficulty(self):
        with pytest.raises(ModelValidationError) as exc_info:
            Tour(difficulty="extreme")
        assert exc_info.value.message == "difficulty is either: easy, medium, difficult"

    def test_ratings_average_is_rounded(self):
        assert Tour(ratings_average=4.66).ratings_average == 4.7

    @pytest.mark.parametrize("value", [True, "100"])
    def test_price_must_be_number(self, value):
        with pytest.raises(ModelValidationError):
            Tour(price=value)

    def test_from_body_ignores_protected_and_unknown(self):
        tour = Tour.from_body({
            "name": "The Sea Explorer",
            "maxGroupSize": 15,
            "slug": "forced",
            "ratingsQuantity": 99,
            "unknown": "x",
        })
        assert tour.name == "The Sea Explorer"
        assert tour.max_group_size == 15
        assert tour.slug is None
        assert tour.ratings_quantity is None


class TestUserFields:

    def test_email_is_lowercased(self):
        assert User(email="Jonas@Natours.IO").email == "jonas@natours.io"

    def test_name_is_trimmed(self):
        assert User(name="  Jonas Schmedtmann  ").name == "Jonas Schmedtmann"

    def test_role(self):
        with pytest.raises(ModelValidationError):
            User(role="superuser")

    def test_to_dict_hides_secrets(self):
        data = User(username="jonas123", password="pass1234word", active=True).to_dict()
        assert data["username"] == "jonas123"
        assert "password" not in data
        assert "active" not in data
        assert "passwordResetToken" not in data

    def test_changed_password_after(self):
        now = utcnow()
        user = User()
        assert not user.changed_password_after(now)

        user.password_changed_at = now
        assert user.changed_password_after(now - timedelta(minutes=5))
        assert not user.changed_password_after(now + timedelta(minutes=5))

    def test_changed_password_after_compares_whole_seconds(self):
        user = User(password_changed_at=datetime(2026, 3, 1, 12, 0, 0, 900000))
        assert not user.changed_password_after(datetime(2026, 3, 1, 12, 0, 0, 100000))
        assert user.changed_password_after(datetime(2026, 3, 1, 11, 59, 59, 999999))

    def test_password_byte_limit(self):
        assert User(password="x" * 72).password == "x" * 72
        with pytest.raises(ModelValidationError) as exc_info:
            User(password="\u00e9" * 40)
        assert exc_info.value.message == "password must be at most 72 bytes long"

    def test_reset_token_stores_digest(self):
        user = User()
        token = user.create_password_reset_token(10)
        assert user.password_reset_token == hash_token(token)
        assert user.password_reset_expires > utcnow() + timedelta(minutes=9)

        user.clear_password_reset_token()
        assert user.password_reset_token is None
        assert user.password_reset_expires is None


@pytest.mark.asyncio
class TestLifecycleHooks:

    async def test_slug_follows_name(self, database: Database, make_tour):
        tour = await make_tour(name="The Forest Hiker")
        assert tour.slug == "the-forest-hiker"

        async with database.session() as session:
            stored = await session.get(Tour, tour.id)
            stored.name = "The Northern Lights"
        assert stored.slug == "the-northern-lights"

    async def test_password_is_hashed(self, make_user):
        user, _ = await make_user(password="pass1234word")
        assert user.password.startswith("$2")
        assert user.check_password("pass1234word")
        assert user.confirm_password is None

    async def test_password_confirmation_required(self, database: Database):
        with pytest.raises(ModelValidationError) as exc_info:
            async with database.session() as session:
                session.add(User(
                    username="jonas123",
                    name="Jonas Schmedtmann",
                    email="jonas@natours.io",
                    password="pass1234word",
                    confirm_password="something-else",
                ))
        assert exc_info.value.field == "confirmPassword"

    async def test_secret_tours_are_hidden(self, database: Database, make_tour):
        await make_tour(name="The Hidden Valley", secret_tour=True)
        await make_tour()

        async with database.session() as session:
            visible = (await session.execute(select(Tour))).scalars().all()
            everything = (
                await session.execute(select(Tour).execution_options(include_secret_tours=True))
            ).scalars().all()

        assert len(visible) == 1
        assert len(everything) == 2

    async def test_inactive_users_are_hidden(self, database: Database, make_user):
        await make_user(active=False)
        await make_user()

        async with database.session() as session:
            visible = (await session.execute(select(User))).scalars().all()
            everything = (
                await session.execute(select(User).execution_options(include_inactive_users=True))
            ).scalars().all()

        assert len(visible) == 1
        assert len(everything) == 2
