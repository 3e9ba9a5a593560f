from __future__ import annotations

from dataclasses import dataclass
from typing import get_args

from hireloop.types import Step

STEP_ORDER: tuple[Step, ...] = get_args(Step)

STEP_TITLES: dict[Step, str] = {
    "profile": "Career Profile",
    "gap_analysis": "Fit Blueprint",
    "answer_assistant": "Answer Assistant",
    "customization": "Customize Your Approach",
    "strategic_versions": "Benchmark Resume",
    "hiring_manager": "Hiring Manager Review",
}


@dataclass(slots=True)
class StepCursor:
    step: Step = STEP_ORDER[0]

    @property
    def index(self) -> int:
        return STEP_ORDER.index(self.step)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == len(STEP_ORDER) - 1

    def next(self) -> Step | None:
        if self.is_last:
            return None
        return STEP_ORDER[self.index + 1]

    def previous(self) -> Step | None:
        if self.is_first:
            return None
        return STEP_ORDER[self.index - 1]


def parse_step(value: str) -> Step:
    normalized = value.strip().lower().replace("-", "_")
    if normalized not in STEP_ORDER:
        raise ValueError(f"unknown step '{value}'; expected one of {list(STEP_ORDER)}")
    return normalized  # type: ignore[return-value]
