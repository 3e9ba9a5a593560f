import pytest

from hireloop.core.scoring import compute_score, trend, weighted_overall
from hireloop.types import FitBlueprint, StagedBullet


@pytest.fixture
def blueprint(blueprint_payload) -> FitBlueprint:
    return FitBlueprint.model_validate(blueprint_payload)


def _bullets() -> list[StagedBullet]:
    return [
        StagedBullet(text="Deployed Kubernetes clusters with Terraform for 12 teams", requirement_id="R3"),
        StagedBullet(
            text="Scaled engineering teams across regions to 80 people",
            requirement_id="R4",
            section_hint="achievements",
        ),
    ]


def test_weighted_aggregate() -> None:
    assert weighted_overall(80, 60, 70, 50) == 68


def test_no_blueprint_scores_zero() -> None:
    score = compute_score(None, _bullets(), {"team_size": 80})
    assert score.overall_hireability == 0
    assert score.fit == score.benchmark == score.credibility == score.ats == 0
    assert score.trends.fit == "stable"


def test_scores_before_any_user_input(blueprint) -> None:
    score = compute_score(blueprint, [], {})

    assert score.fit == 62
    assert score.benchmark == 65
    assert score.credibility == 67
    assert score.ats == 40
    assert score.overall_hireability == 61
    assert score.trends.fit == "stable"
    assert score.trends.credibility == "stable"
    assert score.trends.ats == "stable"
    assert score.details.total_requirements == 4
    assert score.details.requirements_covered == 2
    assert score.details.total_gaps == 2
    assert score.details.inferences == 1


def test_scores_after_staging_bullets_and_confirming_facts(blueprint) -> None:
    score = compute_score(blueprint, _bullets(), {"team_size": "80", "revenue_impact": ""})

    assert score.fit == 70
    assert score.benchmark == 100
    assert score.credibility == 82
    assert score.ats == 80
    assert score.overall_hireability == 82
    assert score.trends.model_dump() == {
        "fit": "up",
        "benchmark": "up",
        "credibility": "up",
        "ats": "up",
    }
    details = score.details
    assert details.requirements_covered == 4
    assert details.gaps_addressed == 2
    assert details.keywords_covered == 4
    assert (details.facts_confirmed, details.facts_needed) == (1, 2)
    assert (details.competencies_matched, details.total_competencies) == (1, 2)
    assert (details.proof_points_covered, details.total_proof_points) == (2, 2)
    assert score.baselines.fit == 62
    assert score.baselines.ats == 40


def test_is_deterministic(blueprint) -> None:
    facts = {"team_size": 80}
    assert compute_score(blueprint, _bullets(), facts) == compute_score(blueprint, _bullets(), facts)


def test_fit_boost_is_capped_at_fifteen_points(blueprint) -> None:
    bullets = [StagedBullet(text=f"bullet {rid}", requirement_id=rid) for rid in ["R1", "R2", "R3", "R4", "R9"]]
    assert compute_score(blueprint, bullets, {}).fit == 77

    blueprint.overall_fit_score = 95
    assert compute_score(blueprint, bullets, {}).fit == 100


def test_inference_penalty_is_capped_and_credibility_clamped() -> None:
    blueprint = FitBlueprint.model_validate(
        {"evidenceInventory": [{"id": f"E{n}", "strength": "inference"} for n in range(30)]}
    )
    score = compute_score(blueprint, [], {})
    assert score.credibility == 30
    assert score.details.inferences == 30


def test_ats_never_decreases_when_addable_keyword_is_staged(blueprint) -> None:
    before = compute_score(blueprint, [], {}).ats
    after = compute_score(blueprint, [StagedBullet(text="Ran kubernetes upgrades")], {}).ats
    assert after >= before
    assert after == 60


def test_partial_blueprint_degrades_to_best_effort() -> None:
    blueprint = FitBlueprint.model_validate({"overallFitScore": 55, "atsAlignment": None, "fitMap": None})
    score = compute_score(blueprint, [StagedBullet(text="anything")], {})
    assert score.fit == 55
    assert score.benchmark == 50
    assert score.credibility == 50
    assert score.ats == 0


def test_all_scores_stay_within_bounds() -> None:
    blueprints = [
        FitBlueprint(),
        FitBlueprint.model_validate({"overallFitScore": 250}),
        FitBlueprint.model_validate({"overallFitScore": -40}),
        FitBlueprint.model_validate(
            {
                "overallFitScore": 100,
                "requirements": ["R1"],
                "evidenceInventory": [{"strength": "strong"}],
                "atsAlignment": {"topKeywords": ["a"], "covered": ["a", "b", "c"], "missingButAddable": ["a"]},
                "benchmarkCandidateProfile": {"topCompetencies": ["a"], "expectedProofPoints": ["a b c d"]},
                "proofCollectorFields": [{"fieldKey": "x", "priority": "high"}],
            }
        ),
    ]
    bullets = [StagedBullet(text="a b c d", requirement_id="R1")]
    for blueprint in blueprints:
        score = compute_score(blueprint, bullets, {"x": ["yes"]})
        for value in (score.fit, score.benchmark, score.credibility, score.ats, score.overall_hireability):
            assert 0 <= value <= 100


def test_trend_threshold() -> None:
    assert trend(56, 50) == "up"
    assert trend(55, 50) == "stable"
    assert trend(44, 50) == "down"
    assert trend(45, 50) == "stable"
    assert trend(52, 50, threshold=1) == "up"
