from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence

from hireloop.types import (
    FactValue,
    FitBlueprint,
    ScoreBaselines,
    ScoreBreakdown,
    ScoreDetails,
    ScoreTrends,
    StagedBullet,
    Trend,
)

WEIGHTS: dict[str, float] = {
    "fit": 0.35,
    "benchmark": 0.25,
    "credibility": 0.25,
    "ats": 0.15,
}

FIT_BULLET_BOOST = 15
BENCHMARK_BASELINE = 50
BENCHMARK_COMPETENCY_POINTS = 40
BENCHMARK_PROOF_POINTS = 30
CREDIBILITY_BASELINE = 50
CREDIBILITY_EVIDENCE_POINTS = 40
CREDIBILITY_FACT_POINTS = 30
INFERENCE_PENALTY_PER_ITEM = 3
INFERENCE_PENALTY_CAP = 20
PROOF_POINT_LEAD_WORDS = 3
DEFAULT_TREND_THRESHOLD = 5

QUALIFIED_CATEGORIES = {"HIGHLY_QUALIFIED", "PARTIALLY_QUALIFIED"}
GAP_CATEGORY = "EXPERIENCE_GAP"


def compute_score(
    blueprint: FitBlueprint | None,
    staged_bullets: Sequence[StagedBullet],
    confirmed_facts: Mapping[str, FactValue],
    *,
    trend_threshold: int = DEFAULT_TREND_THRESHOLD,
) -> ScoreBreakdown:
    if blueprint is None:
        return ScoreBreakdown()

    texts = [bullet.text.lower() for bullet in staged_bullets]
    staged_requirement_ids = {bullet.requirement_id for bullet in staged_bullets if bullet.requirement_id}
    details = ScoreDetails()

    fit, fit_baseline = _fit_score(blueprint, staged_requirement_ids, details)
    benchmark = _benchmark_score(blueprint, texts, details)
    credibility, credibility_baseline = _credibility_score(blueprint, confirmed_facts, details)
    ats, ats_baseline = _ats_score(blueprint, texts, details)

    overall = weighted_overall(fit, benchmark, credibility, ats)

    baselines = ScoreBaselines(
        fit=fit_baseline,
        benchmark=BENCHMARK_BASELINE,
        credibility=credibility_baseline,
        ats=ats_baseline,
    )
    trends = ScoreTrends(
        fit=trend(fit, baselines.fit, trend_threshold),
        benchmark=trend(benchmark, baselines.benchmark, trend_threshold),
        credibility=trend(credibility, baselines.credibility, trend_threshold),
        ats=trend(ats, baselines.ats, trend_threshold),
    )
    return ScoreBreakdown(
        fit=fit,
        benchmark=benchmark,
        credibility=credibility,
        ats=ats,
        overall_hireability=clamp(overall),
        trends=trends,
        details=details,
        baselines=baselines,
    )


def weighted_overall(fit: float, benchmark: float, credibility: float, ats: float) -> int:
    return round_half_up(
        fit * WEIGHTS["fit"]
        + benchmark * WEIGHTS["benchmark"]
        + credibility * WEIGHTS["credibility"]
        + ats * WEIGHTS["ats"]
    )


def trend(current: float, baseline: float, threshold: int = DEFAULT_TREND_THRESHOLD) -> Trend:
    delta = current - baseline
    if delta > threshold:
        return "up"
    if delta < -threshold:
        return "down"
    return "stable"


def round_half_up(value: float) -> int:
    # Weighted sums such as 70 * 0.35 carry float noise right at the .5 boundary.
    return int(math.floor(round(value, 9) + 0.5))


def clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def _fraction(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return min(1.0, part / whole)


def _fit_score(blueprint: FitBlueprint, staged_ids: set[str], details: ScoreDetails) -> tuple[int, int]:
    base = clamp(round_half_up(blueprint.overall_fit_score))
    known_ids = {item.id for item in blueprint.requirements if item.id}
    known_ids |= {entry.requirement_id for entry in blueprint.fit_map if entry.requirement_id}

    addressed = staged_ids & known_ids
    boost = FIT_BULLET_BOOST * _fraction(len(addressed), len(known_ids))
    fit = clamp(round_half_up(base + boost))

    qualified = {
        entry.requirement_id
        for entry in blueprint.fit_map
        if entry.requirement_id and entry.category in QUALIFIED_CATEGORIES
    }
    gaps = [entry for entry in blueprint.fit_map if entry.category == GAP_CATEGORY]
    details.requirements_covered = len(qualified | addressed)
    details.total_requirements = len(known_ids)
    details.gaps_addressed = sum(1 for gap in gaps if gap.requirement_id in staged_ids)
    details.total_gaps = len(gaps)
    return fit, base


def _benchmark_score(blueprint: FitBlueprint, texts: list[str], details: ScoreDetails) -> int:
    profile = blueprint.benchmark_candidate_profile
    if profile is None:
        return BENCHMARK_BASELINE

    competencies = profile.top_competencies
    matched = sum(1 for competency in competencies if _any_token_in(competency.name.lower().split(), texts))

    suggested = [entry.resume_language.lower() for entry in blueprint.fit_map if entry.resume_language]
    proof_points = profile.expected_proof_points
    covered = 0
    for proof_point in proof_points:
        lead = " ".join(proof_point.lower().split()[:PROOF_POINT_LEAD_WORDS])
        if lead and (_contained(lead, texts) or _contained(lead, suggested)):
            covered += 1

    details.competencies_matched = matched
    details.total_competencies = len(competencies)
    details.proof_points_covered = covered
    details.total_proof_points = len(proof_points)

    score = (
        BENCHMARK_BASELINE
        + BENCHMARK_COMPETENCY_POINTS * _fraction(matched, len(competencies))
        + BENCHMARK_PROOF_POINTS * _fraction(covered, len(proof_points))
    )
    return clamp(round_half_up(score))


def _credibility_score(
    blueprint: FitBlueprint,
    confirmed_facts: Mapping[str, FactValue],
    details: ScoreDetails,
) -> tuple[int, int]:
    evidence = blueprint.evidence_inventory
    strong = sum(1 for item in evidence if item.strength == "strong")
    inferences = sum(1 for item in evidence if item.strength == "inference")

    high_priority = {
        field.field_key
        for field in blueprint.proof_collector_fields
        if field.field_key and field.priority == "high"
    }
    confirmed = sum(1 for key in high_priority if is_confirmed(confirmed_facts.get(key)))

    details.strong_evidence = strong
    details.total_evidence = len(evidence)
    details.inferences = inferences
    details.facts_confirmed = confirmed
    details.facts_needed = len(high_priority)

    without_facts = (
        CREDIBILITY_BASELINE
        + CREDIBILITY_EVIDENCE_POINTS * _fraction(strong, len(evidence))
        - min(INFERENCE_PENALTY_CAP, INFERENCE_PENALTY_PER_ITEM * inferences)
    )
    score = without_facts + CREDIBILITY_FACT_POINTS * _fraction(confirmed, len(high_priority))
    return clamp(round_half_up(score)), clamp(round_half_up(without_facts))


def _ats_score(blueprint: FitBlueprint, texts: list[str], details: ScoreDetails) -> tuple[int, int]:
    alignment = blueprint.ats_alignment
    total = len(alignment.top_keywords)
    covered = len(alignment.covered)

    addable = {item.keyword.lower() for item in alignment.missing_but_addable if item.keyword.strip()}
    added = sum(1 for keyword in addable if _contained(keyword, texts))

    details.keywords_covered = covered + added
    details.total_keywords = total

    if total == 0:
        return 0, 0
    score = clamp(round_half_up(100 * (covered + added) / total))
    baseline = clamp(round_half_up(100 * covered / total))
    return score, baseline


def is_confirmed(value: FactValue | None) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, list):
        return any(str(item).strip() for item in value)
    return True


def _contained(needle: str, haystacks: Iterable[str]) -> bool:
    return any(needle in haystack for haystack in haystacks)


def _any_token_in(tokens: list[str], texts: list[str]) -> bool:
    return any(_contained(token, texts) for token in tokens)
