import pytest

from hireloop.core.steps import STEP_ORDER, StepCursor, parse_step


def test_step_order_is_fixed() -> None:
    assert STEP_ORDER == (
        "profile",
        "gap_analysis",
        "answer_assistant",
        "customization",
        "strategic_versions",
        "hiring_manager",
    )


def test_cursor_clamps_at_boundaries() -> None:
    assert StepCursor("profile").previous() is None
    assert StepCursor("hiring_manager").next() is None
    assert StepCursor("profile").next() == "gap_analysis"
    assert StepCursor("hiring_manager").previous() == "strategic_versions"


def test_parse_step_accepts_dashed_names() -> None:
    assert parse_step("Gap-Analysis") == "gap_analysis"
    with pytest.raises(ValueError):
        parse_step("interview")
