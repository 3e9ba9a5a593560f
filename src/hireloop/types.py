from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Step = Literal[
    "profile",
    "gap_analysis",
    "answer_assistant",
    "customization",
    "strategic_versions",
    "hiring_manager",
]
Trend = Literal["up", "down", "stable"]
DiffLineType = Literal["added", "removed", "unchanged"]
InputStatus = Literal["accepted", "unchanged", "no_usable_input", "pending_decision"]
FactValue = Union[str, int, float, list[str]]

DEFAULT_SECTION = "experience"


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return uuid.uuid4().hex


class _BlueprintRecord(BaseModel):
    # The analysis service emits camelCase JSON with many optional keys; nulls fall back to defaults.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Requirement(_BlueprintRecord):
    id: str = ""
    requirement: str = ""

    @model_validator(mode="before")
    @classmethod
    def from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"id": data, "requirement": data}
        return data


class EvidenceItem(_BlueprintRecord):
    id: str = ""
    text: str = ""
    strength: str = "moderate"
    source_role: str = ""

    @field_validator("strength")
    @classmethod
    def normalize_strength(cls, value: str) -> str:
        return value.strip().lower()


class FitMapEntry(_BlueprintRecord):
    requirement_id: str = ""
    category: str = ""
    resume_language: str = ""

    @field_validator("category")
    @classmethod
    def normalize_category(cls, value: str) -> str:
        return "_".join(value.strip().upper().replace("-", " ").split())


class CoveredKeyword(_BlueprintRecord):
    keyword: str = ""
    evidence_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"keyword": data}
        return data


class AddableKeyword(_BlueprintRecord):
    keyword: str = ""
    where_to_add: str = ""
    template: str = ""

    @model_validator(mode="before")
    @classmethod
    def from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"keyword": data}
        return data


class ATSAlignment(_BlueprintRecord):
    top_keywords: list[str] = Field(default_factory=list)
    covered: list[CoveredKeyword] = Field(default_factory=list)
    missing_but_addable: list[AddableKeyword] = Field(default_factory=list)


class Competency(_BlueprintRecord):
    name: str = ""
    definition: str = ""
    weight: str = ""

    @model_validator(mode="before")
    @classmethod
    def from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data


class BenchmarkCandidateProfile(_BlueprintRecord):
    top_competencies: list[Competency] = Field(default_factory=list)
    expected_proof_points: list[str] = Field(default_factory=list)


class ProofCollectorField(_BlueprintRecord):
    field_key: str = ""
    label: str = ""
    priority: str = "medium"

    @field_validator("priority")
    @classmethod
    def normalize_priority(cls, value: str) -> str:
        return value.strip().lower()


class PlaceholderBullet(_BlueprintRecord):
    bullet: str = ""
    required_fields: list[str] = Field(default_factory=list)
    target_requirement_ids: list[str] = Field(default_factory=list)


class FitBlueprint(_BlueprintRecord):
    overall_fit_score: float = 0
    requirements: list[Requirement] = Field(default_factory=list)
    evidence_inventory: list[EvidenceItem] = Field(default_factory=list)
    fit_map: list[FitMapEntry] = Field(default_factory=list)
    ats_alignment: ATSAlignment = Field(default_factory=ATSAlignment)
    benchmark_candidate_profile: BenchmarkCandidateProfile | None = None
    proof_collector_fields: list[ProofCollectorField] = Field(default_factory=list)
    inferred_placeholders: list[PlaceholderBullet] = Field(
        default_factory=list,
        validation_alias="bulletBankInferredPlaceholders",
    )


class RawInput(BaseModel):
    document_text: str = ""
    spec_text: str = ""
    title: str | None = None
    organization: str | None = None

    def has_data(self) -> bool:
        return bool(self.document_text.strip() or self.spec_text.strip())


class StagedBullet(BaseModel):
    text: str
    requirement_id: str | None = None
    section_hint: str = DEFAULT_SECTION

    @field_validator("section_hint", mode="before")
    @classmethod
    def default_section(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_SECTION
        return value


class VersionHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(default_factory=utc_now)
    step_completed: Step
    document_snapshot: str
    change_description: str
    restored_from: str | None = None
    backup_snapshot: str | None = None


class DiffLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DiffLineType
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None


class DiffSummary(BaseModel):
    added: int = 0
    removed: int = 0
    unchanged: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class ScoreTrends(BaseModel):
    fit: Trend = "stable"
    benchmark: Trend = "stable"
    credibility: Trend = "stable"
    ats: Trend = "stable"


class ScoreBaselines(BaseModel):
    fit: int = 0
    benchmark: int = 0
    credibility: int = 0
    ats: int = 0


class ScoreDetails(BaseModel):
    requirements_covered: int = 0
    total_requirements: int = 0
    gaps_addressed: int = 0
    total_gaps: int = 0
    keywords_covered: int = 0
    total_keywords: int = 0
    facts_confirmed: int = 0
    facts_needed: int = 0
    competencies_matched: int = 0
    total_competencies: int = 0
    proof_points_covered: int = 0
    total_proof_points: int = 0
    strong_evidence: int = 0
    total_evidence: int = 0
    inferences: int = 0


class ScoreBreakdown(BaseModel):
    fit: int = 0
    benchmark: int = 0
    credibility: int = 0
    ats: int = 0
    overall_hireability: int = 0
    trends: ScoreTrends = Field(default_factory=ScoreTrends)
    details: ScoreDetails = Field(default_factory=ScoreDetails)
    baselines: ScoreBaselines = Field(default_factory=ScoreBaselines)


class Session(BaseModel):
    session_id: str = Field(default_factory=new_id)
    current_step: Step = "profile"
    raw_input: RawInput = Field(default_factory=RawInput)
    working_document: str = ""
    is_processing: bool = False
    processing_message: str = ""
    error: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    last_saved_at: datetime | None = None
    blueprint: FitBlueprint | None = None
    history: list[VersionHistoryEntry] = Field(default_factory=list)
    staged_bullets: list[StagedBullet] = Field(default_factory=list)
    confirmed_facts: dict[str, FactValue] = Field(default_factory=dict)

    def has_data(self) -> bool:
        return self.raw_input.has_data() or bool(self.history or self.staged_bullets or self.confirmed_facts)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Session:
        return cls.model_validate(document)
