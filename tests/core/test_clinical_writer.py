"""Tests for AI-drafted clinical documents (LLM mocked)."""

from unittest.mock import MagicMock

import pytest

from caseload.core.clinical_writer import (
    ClinicalWriterError,
    compute_goal_progress,
    format_goal_progress,
    generate_goal_suggestions,
    generate_iep_update,
    generate_progress_note,
    generate_session_plan,
    generate_treatment_ideas,
    progress_for_goals,
    redact_name,
    restore_name,
    sessions_in_period,
)
from caseload.db.sessions_repository import SessionRecord
from caseload.llm.client import LLMResponse


def _session(session_id, day, accuracy=None, goal_id="goal-1", **kwargs):
    performance = []
    if accuracy is not None:
        performance.append({"goalId": goal_id, "accuracy": accuracy, "cuingLevels": ["verbal"]})
    return SessionRecord(
        id=session_id,
        student_id="student-1",
        date=day,
        goals_targeted=[goal_id],
        performance_data=performance,
        **kwargs,
    )


@pytest.fixture
def sessions():
    return [
        _session("s-1", "2024-10-01", 50),
        _session("s-2", "2024-10-08", 60),
        _session("s-3", "2024-10-15", 70, notes="Emma Carter was chatty"),
        _session("s-4", "2024-10-22", 80),
        _session("s-5", "2024-10-29", 10, missed_session=True),
    ]


@pytest.fixture
def mock_llm_client():
    """Mock LLM client whose chat replies use the name placeholder."""
    client = MagicMock()
    client.simple_chat.return_value = LLMResponse(
        content="<think>plan it</think>\nStudent will practice /r/ words.",
        model="gemini-test",
        provider="gemini",
    )
    return client


def _prompt(client):
    return client.simple_chat.call_args[0][1]


class TestGoalProgress:
    """Tests for measured goal progress."""

    def test_history_and_current_accuracy(self, goal, sessions):
        progress = compute_goal_progress(goal, sessions)

        assert progress.sessions == 4
        assert [p.date for p in progress.history] == [
            "2024-10-22",
            "2024-10-15",
            "2024-10-08",
            "2024-10-01",
        ]
        assert progress.current == 70.0

    def test_goal_without_data(self, goal):
        progress = compute_goal_progress(goal, [])

        assert progress.current is None
        assert "Current Performance: no data yet" in format_goal_progress([progress])

    def test_format_lists_history(self, goal, sessions):
        text = format_goal_progress(progress_for_goals([goal], sessions))

        assert text.startswith(f"Goal 1: {goal.description}")
        assert "Current Performance: 70.0%" in text
        assert "    - 2024-10-22: 80.0% | Cuing: verbal" in text

    def test_sessions_in_period(self, sessions):
        kept = sessions_in_period(sessions, "2024-10-08", "2024-10-22")
        assert [s.id for s in kept] == ["s-2", "s-3", "s-4"]


class TestNameRedaction:
    """Student names never reach the model."""

    def test_redact_is_case_insensitive(self):
        assert redact_name("emma carter met EMMA CARTER", "Emma Carter") == (
            "Student met Student"
        )

    def test_restore_whole_words_only(self):
        assert restore_name("Student and Students", "Emma") == "Emma and Students"

    def test_session_plan_prompt_is_redacted(self, mock_llm_client, student, goal, sessions):
        result = generate_session_plan(mock_llm_client, student, [goal], sessions)

        prompt = _prompt(mock_llm_client)
        assert "Emma Carter" not in prompt
        assert "Student was chatty" in prompt
        assert result.content == "Emma Carter will practice /r/ words."
        assert result.model == "gemini-test"


class TestDocuments:
    """Input checks and prompt contents per document."""

    def test_session_plan_needs_goals(self, mock_llm_client, student):
        with pytest.raises(ClinicalWriterError, match="no goals"):
            generate_session_plan(mock_llm_client, student, [], [])

    def test_progress_note(self, mock_llm_client, student, goal, sessions):
        generate_progress_note(mock_llm_client, student, progress_for_goals([goal], sessions))
        assert "Current Performance: 70.0%" in _prompt(mock_llm_client)

    def test_progress_note_needs_goals(self, mock_llm_client, student):
        with pytest.raises(ClinicalWriterError):
            generate_progress_note(mock_llm_client, student, [])

    def test_iep_update_needs_some_input(self, mock_llm_client, student):
        with pytest.raises(ClinicalWriterError, match="old IEP note"):
            generate_iep_update(mock_llm_client, student, [], old_note="   ")

    def test_iep_update_with_old_note_only(self, mock_llm_client, student):
        generate_iep_update(
            mock_llm_client, student, [], old_note="Emma Carter receives services 2x weekly."
        )
        prompt = _prompt(mock_llm_client)

        assert "UPDATED IEP COMMUNICATION SECTION" in prompt
        assert "SUGGESTED GOAL CHANGES" not in prompt
        assert "SUMMARY STATEMENT" not in prompt
        assert "Student receives services 2x weekly." in prompt

    def test_iep_update_with_goals_and_summary(self, mock_llm_client, student, goal, sessions):
        generate_iep_update(
            mock_llm_client,
            student,
            progress_for_goals([goal], sessions),
            summary_statement="Present levels",
            recent_sessions_summary="Steady gains",
        )
        prompt = _prompt(mock_llm_client)

        assert "1. SUMMARY STATEMENT" in prompt
        assert "2. SUGGESTED GOAL CHANGES" in prompt
        assert "Recent Session Summary:\nSteady gains" in prompt

    def test_treatment_ideas_materials(self, mock_llm_client):
        result = generate_treatment_ideas(mock_llm_client, "Fluency", "8-10", ["whiteboard"])

        assert "Available Materials: whiteboard" in _prompt(mock_llm_client)
        # No student, so the placeholder is left alone
        assert result.content == "Student will practice /r/ words."

    def test_treatment_ideas_needs_goal_area(self, mock_llm_client):
        with pytest.raises(ClinicalWriterError, match="Goal area"):
            generate_treatment_ideas(mock_llm_client, "  ", "8-10")

    def test_goal_suggestions_use_concerns(self, mock_llm_client, student):
        generate_goal_suggestions(mock_llm_client, student, "Articulation")
        prompt = _prompt(mock_llm_client)

        assert "articulation" in prompt
        assert "Articulation" in prompt
