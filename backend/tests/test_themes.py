from __future__ import annotations

import pytest

from opus_coach.services.program.themes import FINAL_WEEK, all_themes, is_program_week, theme_for


def test_each_program_week_has_exactly_one_theme() -> None:
    themes = all_themes()

    assert [theme.week for theme in themes] == [1, 2, 3, 4, 5]
    assert [theme.title for theme in themes] == ["Purpose", "Rhythm", "Network", "Structure", "Methods"]
    assert all(theme.focus and theme.reflection_prompts for theme in themes)


@pytest.mark.parametrize("week", [0, -1, 6, 42])
def test_theme_for_out_of_range_week_is_none(week: int) -> None:
    assert theme_for(week) is None
    assert is_program_week(week) is False


def test_theme_for_returns_registered_theme() -> None:
    theme = theme_for(2)

    assert theme is not None
    assert theme.title == "Rhythm"
    assert theme.emoji == "⚡"
    assert theme_for(FINAL_WEEK).title == "Methods"


def test_theme_to_dict_exposes_public_fields() -> None:
    payload = theme_for(1).to_dict()

    assert payload["week"] == 1
    assert payload["title"] == "Purpose"
    assert isinstance(payload["reflection_prompts"], list)
    assert "goal_guidance" not in payload
