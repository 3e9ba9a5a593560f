from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

_TEST_DB = Path(tempfile.gettempdir()) / f"hireloop-test-{os.getpid()}.db"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DB}")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATA_DIR", tempfile.gettempdir())

from hireloop.db.base import Base  # noqa: E402
from hireloop.db.session import engine  # noqa: E402
from hireloop.db import models  # noqa: E402,F401


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def blueprint_payload() -> dict:
    return {
        "overallFitScore": 62,
        "requirements": [
            {"id": "R1", "requirement": "Lead platform teams"},
            {"id": "R2", "requirement": "Own cloud budget"},
            {"id": "R3", "requirement": "Kubernetes at scale"},
            {"id": "R4", "requirement": "Grow multi-region teams"},
        ],
        "evidenceInventory": [
            {"id": "E1", "text": "Led 40 engineers", "strength": "strong", "sourceRole": "Director"},
            {"id": "E2", "text": "Cut spend 30%", "strength": "strong", "sourceRole": "Director"},
            {"id": "E3", "text": "Mentored leads", "strength": "moderate", "sourceRole": "Manager"},
            {"id": "E4", "text": "Probably ran hiring", "strength": "inference", "sourceRole": "Manager"},
        ],
        "fitMap": [
            {
                "requirementId": "R1",
                "category": "HIGHLY QUALIFIED",
                "resumeLanguage": "Led platform migration for 40 engineers",
            },
            {"requirementId": "R2", "category": "PARTIALLY QUALIFIED", "resumeLanguage": ""},
            {"requirementId": "R3", "category": "EXPERIENCE GAP", "resumeLanguage": None},
            {"requirementId": "R4", "category": "EXPERIENCE_GAP"},
        ],
        "atsAlignment": {
            "topKeywords": ["python", "kubernetes", "terraform", "leadership", "sql"],
            "covered": [{"keyword": "python", "evidenceIds": ["E1"]}, {"keyword": "sql"}],
            "missingButAddable": [
                {"keyword": "Kubernetes", "whereToAdd": "experience", "template": "..."},
                {"keyword": "terraform", "whereToAdd": "skills", "template": "..."},
            ],
        },
        "benchmarkCandidateProfile": {
            "topCompetencies": [{"name": "Platform Strategy"}, {"name": "People Leadership"}],
            "expectedProofPoints": [
                "Scaled engineering teams across regions",
                "Led platform migration end to end",
            ],
        },
        "proofCollectorFields": [
            {"fieldKey": "revenue_impact", "label": "Revenue impact", "priority": "high"},
            {"fieldKey": "team_size", "label": "Team size", "priority": "high"},
            {"fieldKey": "tools", "label": "Tools", "priority": "low"},
        ],
        "bulletBankInferredPlaceholders": [
            {
                "bullet": "Grew the team to [team_size] engineers, adding [revenue_impact] in revenue",
                "requiredFields": ["team_size", "revenue_impact"],
                "targetRequirementIds": ["R4"],
            }
        ],
        "executiveSummary": {"hireSignal": "ignored by the engine"},
    }
