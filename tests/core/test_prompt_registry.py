"""Tests for the prompt registry."""

import pytest

from caseload.prompts.registry import clear_cache, get_prompt, list_prompts

EXPECTED_PROMPTS = [
    "clinical/goal_suggestions",
    "clinical/iep_update",
    "clinical/progress_note",
    "clinical/session_plan",
    "clinical/system",
    "clinical/treatment_ideas",
    "clinical/treatment_recommendations",
    "documents/extract_contacts",
]


class TestPromptRegistry:
    """Tests for loading and filling prompt templates."""

    def test_all_templates_are_listed(self):
        assert list_prompts() == EXPECTED_PROMPTS

    @pytest.mark.parametrize("key", EXPECTED_PROMPTS)
    def test_templates_load(self, key):
        assert get_prompt(key).strip()

    def test_variables_are_substituted(self):
        prompt = get_prompt("clinical/treatment_ideas", goal_area="Fluency", age_range="8-10")

        assert "Fluency" in prompt
        assert "{goal_area}" not in prompt

    def test_unknown_placeholders_are_kept(self):
        prompt = get_prompt("clinical/treatment_ideas", use_cache=False)
        assert "{goal_area}" in prompt

    def test_missing_prompt(self):
        clear_cache()
        with pytest.raises(FileNotFoundError, match="Prompt not found"):
            get_prompt("clinical/does_not_exist")
