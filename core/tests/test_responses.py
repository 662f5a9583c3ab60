"""Tests for response submission and answer alignment."""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from core.checkpoints import InvalidCheckpointError
from core.registration import CourseNotFoundError
from core.responses import (
    ResponseRejectedError,
    answers_by_question,
    get_checkpoint_responses,
    get_open_checkpoints,
    submit_response,
)
from core.types import FormTemplate

COURSE_ROW = {
    "course_id": "C1",
    "title": "Course One",
    "finished": True,
    "week_dates": {"0": "2026-02-17", "2": "2026-03-03", "4": "2026-03-17"},
    "week_forms": {"0": "F0", "2": "F2", "4": "F4"},
}
TODAY = date(2026, 3, 5)


class TestAnswersByQuestion:
    def test_pairs_by_position(self):
        template = FormTemplate.from_row(
            {
                "form_id": "F0",
                "title": "Week 0",
                "questions": [
                    {"text": "How useful?", "type": "rating"},
                    {"text": "Applied it?", "type": "yes_no"},
                ],
            }
        )

        assert answers_by_question(template, [5, "yes"]) == [
            {"question": "How useful?", "type": "rating", "answer": 5},
            {"question": "Applied it?", "type": "yes_no", "answer": "yes"},
        ]

    def test_missing_and_extra_answers_are_kept(self):
        template = FormTemplate.from_row(
            {"form_id": "F", "title": "", "questions": [{"text": "Q1"}, {"text": "Q2"}]}
        )

        short = answers_by_question(template, ["a"])
        assert short[1] == {"question": "Q2", "type": "text", "answer": None}

        long = answers_by_question(template, ["a", "b", "c"])
        assert long[2] == {"question": None, "type": None, "answer": "c"}


class TestGetOpenCheckpoints:
    @pytest.mark.asyncio
    async def test_lists_arrived_unsubmitted_checkpoints(self):
        with (
            patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)),
            patch(
                "core.responses.get_submitted_checkpoints", AsyncMock(return_value=["0"])
            ),
        ):
            result = await get_open_checkpoints(AsyncMock(), "C1", "U1", TODAY)

        assert result == [{"checkpoint": 2, "date": "2026-03-03", "formId": "F2"}]

    @pytest.mark.asyncio
    async def test_unknown_course(self):
        with patch("core.responses.get_course_by_id", AsyncMock(return_value=None)):
            with pytest.raises(CourseNotFoundError):
                await get_open_checkpoints(AsyncMock(), "missing", "U1", TODAY)


class TestSubmitResponse:
    @pytest.mark.asyncio
    async def test_stores_answers_for_open_checkpoint(self):
        mock_conn = AsyncMock()
        created = {"response_id": 1, "checkpoint": "2"}
        with (
            patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)),
            patch(
                "core.responses.create_response", AsyncMock(return_value=created)
            ) as mock_create,
        ):
            result = await submit_response(mock_conn, "U1", "C1", 2, "F2", [4, "yes"], TODAY)

        assert result == created
        mock_create.assert_awaited_once_with(mock_conn, "U1", "C1", "F2", "2", [4, "yes"])

    @pytest.mark.asyncio
    async def test_future_checkpoint_rejected(self):
        with patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)):
            with pytest.raises(ResponseRejectedError, match="opens on 2026-03-17"):
                await submit_response(AsyncMock(), "U1", "C1", "4", "F4", [], TODAY)

    @pytest.mark.asyncio
    async def test_wrong_form_rejected(self):
        with patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)):
            with pytest.raises(ResponseRejectedError):
                await submit_response(AsyncMock(), "U1", "C1", "2", "F4", [], TODAY)

    @pytest.mark.asyncio
    async def test_undeliverable_checkpoint_rejected(self):
        with patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)):
            with pytest.raises(ResponseRejectedError):
                await submit_response(AsyncMock(), "U1", "C1", "8", "F8", [], TODAY)

    @pytest.mark.asyncio
    async def test_malformed_checkpoint(self):
        with pytest.raises(InvalidCheckpointError):
            await submit_response(AsyncMock(), "U1", "C1", "week2", "F2", [], TODAY)


class TestGetCheckpointResponses:
    RESPONSE_ROWS = [
        {"user_id": "U1", "course_id": "C1", "form_id": "F2", "checkpoint": "2",
         "answers": [4, "yes"]},
        {"user_id": "U1", "course_id": "C1", "form_id": "F0", "checkpoint": "0",
         "answers": [5]},
        {"user_id": "U2", "course_id": "C1", "form_id": "F2", "checkpoint": "2",
         "answers": [2]},
    ]
    TEMPLATE_ROW = {
        "form_id": "F2",
        "title": "Week 2",
        "questions": [
            {"text": "How useful?", "type": "rating"},
            {"text": "Applied it?", "type": "yes_no"},
        ],
    }

    @pytest.mark.asyncio
    async def test_pairs_answers_for_one_checkpoint(self):
        mock_template = AsyncMock(return_value=self.TEMPLATE_ROW)
        with (
            patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)),
            patch(
                "core.responses.get_course_responses",
                AsyncMock(return_value=self.RESPONSE_ROWS),
            ),
            patch("core.responses.get_form_template", mock_template),
        ):
            result = await get_checkpoint_responses(AsyncMock(), "C1", 2)

        assert [r["userId"] for r in result] == ["U1", "U2"]
        assert result[0]["answers"][1] == {
            "question": "Applied it?", "type": "yes_no", "answer": "yes"
        }
        assert result[1]["answers"][1]["answer"] is None
        # one template lookup per form
        assert mock_template.await_count == 1

    @pytest.mark.asyncio
    async def test_deleted_form_keeps_answers(self):
        with (
            patch("core.responses.get_course_by_id", AsyncMock(return_value=COURSE_ROW)),
            patch(
                "core.responses.get_course_responses",
                AsyncMock(return_value=self.RESPONSE_ROWS),
            ),
            patch("core.responses.get_form_template", AsyncMock(return_value=None)),
        ):
            result = await get_checkpoint_responses(AsyncMock(), "C1", "0")

        assert result[0]["answers"] == [{"question": None, "type": None, "answer": 5}]

    @pytest.mark.asyncio
    async def test_unknown_course(self):
        with patch("core.responses.get_course_by_id", AsyncMock(return_value=None)):
            with pytest.raises(CourseNotFoundError):
                await get_checkpoint_responses(AsyncMock(), "missing", "2")

    @pytest.mark.asyncio
    async def test_malformed_checkpoint(self):
        with pytest.raises(InvalidCheckpointError):
            await get_checkpoint_responses(AsyncMock(), "C1", "3")
