"""Tests for the registration guard and enrollment."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.dialects import postgresql

from core.constants import REGISTRATION_KEY_ALPHABET, REGISTRATION_KEY_LENGTH
from core.enums import RegistrationResult
from core.registration import (
    CourseNotFoundError,
    InvalidRegistrationKeyError,
    enroll,
    generate_registration_key,
    regenerate_registration_key,
    register,
    validate_key,
)
from core.types import Course


def course_with_key(key):
    return Course(course_id="C1", title="Course One", registration_key=key)


class TestValidateKey:
    def test_exact_match(self):
        assert validate_key(course_with_key("ABC123"), "ABC123") is True

    def test_trims_and_uppercases_input(self):
        assert validate_key(course_with_key("ABC123"), "  abc123 ") is True

    def test_wrong_key(self):
        assert validate_key(course_with_key("ABC123"), "ABC124") is False

    def test_missing_key_when_required(self):
        assert validate_key(course_with_key("ABC123"), None) is False
        assert validate_key(course_with_key("ABC123"), "") is False

    def test_course_without_key_is_open(self):
        assert validate_key(course_with_key(None), None) is True
        assert validate_key(course_with_key(""), "anything") is True


class TestGenerateRegistrationKey:
    def test_length_and_alphabet(self):
        for _ in range(50):
            key = generate_registration_key()
            assert len(key) == REGISTRATION_KEY_LENGTH
            assert set(key) <= set(REGISTRATION_KEY_ALPHABET)

    def test_no_ambiguous_characters(self):
        assert not set("01IO") & set(REGISTRATION_KEY_ALPHABET)

    def test_generated_key_validates(self):
        key = generate_registration_key()
        assert validate_key(course_with_key(key), key.lower()) is True


class TestRegenerateRegistrationKey:
    @pytest.mark.asyncio
    async def test_returns_new_key(self):
        mock_conn = AsyncMock()
        with patch(
            "core.registration.set_registration_key", AsyncMock(return_value=True)
        ) as mock_set:
            key = await regenerate_registration_key(mock_conn, "C1")

        assert len(key) == REGISTRATION_KEY_LENGTH
        mock_set.assert_awaited_once_with(mock_conn, "C1", key)

    @pytest.mark.asyncio
    async def test_unknown_course_returns_none(self):
        with patch(
            "core.registration.set_registration_key", AsyncMock(return_value=False)
        ):
            assert await regenerate_registration_key(AsyncMock(), "missing") is None


class TestRegister:
    @pytest.mark.asyncio
    async def test_first_registration(self):
        with patch(
            "core.registration.insert_registration_if_absent",
            AsyncMock(return_value=True),
        ):
            result = await register(AsyncMock(), "U1", "C1")

        assert result == RegistrationResult.registered

    @pytest.mark.asyncio
    async def test_second_registration_is_reported_not_duplicated(self):
        with patch(
            "core.registration.insert_registration_if_absent",
            AsyncMock(side_effect=[True, False]),
        ) as mock_insert:
            first = await register(AsyncMock(), "U1", "C1")
            second = await register(AsyncMock(), "U1", "C1")

        assert first == RegistrationResult.registered
        assert second == RegistrationResult.already_registered
        assert mock_insert.await_count == 2


class TestEnroll:
    @pytest.mark.asyncio
    async def test_valid_key_registers(self):
        row = {"course_id": "C1", "title": "Course One", "registration_key": "ABC123"}
        with (
            patch("core.registration.get_course_by_id", AsyncMock(return_value=row)),
            patch(
                "core.registration.insert_registration_if_absent",
                AsyncMock(return_value=True),
            ),
        ):
            result = await enroll(AsyncMock(), "U1", "C1", " abc123")

        assert result == RegistrationResult.registered

    @pytest.mark.asyncio
    async def test_invalid_key_rejected_before_insert(self):
        row = {"course_id": "C1", "title": "Course One", "registration_key": "ABC123"}
        mock_insert = AsyncMock(return_value=True)
        with (
            patch("core.registration.get_course_by_id", AsyncMock(return_value=row)),
            patch("core.registration.insert_registration_if_absent", mock_insert),
        ):
            with pytest.raises(InvalidRegistrationKeyError):
                await enroll(AsyncMock(), "U1", "C1", "WRONG1")

        mock_insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_course(self):
        with patch("core.registration.get_course_by_id", AsyncMock(return_value=None)):
            with pytest.raises(CourseNotFoundError):
                await enroll(AsyncMock(), "U1", "missing", None)

    @pytest.mark.asyncio
    async def test_display_name_reaches_insert(self):
        row = {"course_id": "C1", "title": "Course One", "registration_key": None}
        mock_insert = AsyncMock(return_value=True)
        mock_conn = AsyncMock()
        with (
            patch("core.registration.get_course_by_id", AsyncMock(return_value=row)),
            patch("core.registration.insert_registration_if_absent", mock_insert),
        ):
            await enroll(mock_conn, "U1", "C1", None, display_name="Somchai")

        mock_insert.assert_awaited_once_with(mock_conn, "U1", "C1", "Somchai")



class TestInsertRegistrationIfAbsent:
    @pytest.mark.asyncio
    async def test_conflict_returns_false(self):
        from core.queries.registrations import insert_registration_if_absent

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.first.return_value = None
        mock_conn.execute = AsyncMock(return_value=mock_result)

        assert await insert_registration_if_absent(mock_conn, "U1", "C1") is False

    @pytest.mark.asyncio
    async def test_insert_returns_true(self):
        from core.queries.registrations import insert_registration_if_absent

        mock_conn = AsyncMock()
        mock_result = MagicMock()
        mock_result.first.return_value = (1,)
        mock_conn.execute = AsyncMock(return_value=mock_result)

        assert await insert_registration_if_absent(mock_conn, "U1", "C1") is True

    @pytest.mark.asyncio
    async def test_stores_display_name(self):
        from core.queries.registrations import insert_registration_if_absent

        mock_conn = AsyncMock()
        mock_conn.execute = AsyncMock(return_value=MagicMock())

        await insert_registration_if_absent(mock_conn, "U1", "C1", "Somchai")

        stmt = mock_conn.execute.await_args.args[0]
        assert stmt.compile(dialect=postgresql.dialect()).params["display_name"] == "Somchai"


class TestGetRegisteredUserIds:
    @pytest.mark.asyncio
    async def test_deduplicates_and_drops_empty_ids(self):
        from core.queries.registrations import get_registered_user_ids

        rows = [MagicMock(user_id=u) for u in ["U1", "U2", "U1", None, "U3"]]
        mock_conn = AsyncMock()
        mock_conn.execute = AsyncMock(return_value=iter(rows))

        assert await get_registered_user_ids(mock_conn, "C1") == ["U1", "U2", "U3"]