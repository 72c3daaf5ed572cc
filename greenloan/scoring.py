"""
Scoring and recommendation logic for Green Loan Evaluation.
"""

from typing import List, Mapping

from greenloan.constants import (
    CONFIDENCE_THRESHOLD_HIGH,
    CONFIDENCE_THRESHOLD_MEDIUM,
    EVIDENCE_FLOOR,
    EVIDENCE_RANGE,
    FEW_METRICS_PENALTY,
    GREEN_SCORE_WEIGHTS,
    LOAN_SIZE_BREAKPOINTS,
    NO_METRICS_PENALTY,
    PILLAR_PARTIAL_SCORE,
    PILLAR_PASS_SCORE,
    SPECIFICITY_CAP,
    SPECIFICITY_POINTS,
    STRONG_MATCH_RELIEF,
    STRONG_SIMILARITY,
    TAXONOMY_ELIGIBLE_RELIEF,
    GapStatus,
    Recommendation,
    RiskLevel,
)
from greenloan.models import (
    ExtractedMetric,
    GLPVerdict,
    GreenwashingAssessment,
    LocalAssessment,
    SemanticAnalysis,
    TaxonomyVerdict,
)


def clamp(value, low: int = 0, high: int = 100):
    return max(low, min(high, value))


def specificity_bonus(metrics: Mapping[str, ExtractedMetric]) -> int:
    """Fixed points per quantified metric key present, capped."""
    bonus = sum(points for key, points in SPECIFICITY_POINTS.items() if key in metrics)
    return min(SPECIFICITY_CAP, bonus)


def pillar_status(score: int) -> GapStatus:
    if score >= PILLAR_PASS_SCORE:
        return GapStatus.PASS
    elif score >= PILLAR_PARTIAL_SCORE:
        return GapStatus.PARTIAL
    return GapStatus.FAIL


def weighted_average(scores: Mapping[str, int], weights: Mapping[str, float]) -> float:
    return sum(scores[pillar] * weight for pillar, weight in weights.items())


def evidence_adjusted(weighted_score: float, evidence_strength: float) -> int:
    """Scale a weighted pillar score by how much hard evidence backs it."""
    raw = round(weighted_score)
    return int(clamp(round(raw * (EVIDENCE_FLOOR + EVIDENCE_RANGE * evidence_strength))))


def compute_green_score(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict) -> int:
    green = round(
        semantic.final_score * GREEN_SCORE_WEIGHTS['semantic']
        + glp.overall_score * GREEN_SCORE_WEIGHTS['glp']
        + taxonomy.overall_score * GREEN_SCORE_WEIGHTS['taxonomy']
    )
    return int(clamp(green))


def primary_similarity(semantic: SemanticAnalysis) -> float:
    return semantic.primary_category.similarity if semantic.primary_category else 0.0


def compute_risk_score(semantic: SemanticAnalysis, taxonomy: TaxonomyVerdict,
                       greenwashing: GreenwashingAssessment, amount: float) -> int:
    """
    Start from the greenwashing score and apply every adjustment before
    clamping once at the end.
    """
    risk = greenwashing.risk_score

    metric_count = len(semantic.quantified_metrics)
    if metric_count == 0:
        risk += NO_METRICS_PENALTY
    if metric_count < 2:
        risk += FEW_METRICS_PENALTY

    for breakpoint, penalty in LOAN_SIZE_BREAKPOINTS:
        if amount > breakpoint:
            risk += penalty

    if taxonomy.eligible:
        risk -= TAXONOMY_ELIGIBLE_RELIEF
    if primary_similarity(semantic) > STRONG_SIMILARITY:
        risk -= STRONG_MATCH_RELIEF

    return int(clamp(risk))


def choose_recommendation(green_score: int, risk_score: int, glp_compliant: bool,
                          greenwashing_level: RiskLevel) -> Recommendation:
    """Decision ladder, first matching rule wins."""
    if green_score >= 75 and risk_score < 30 and glp_compliant:
        return Recommendation.APPROVE
    elif green_score >= 60 and risk_score < 50:
        return Recommendation.APPROVE_WITH_CONDITIONS
    elif risk_score >= 70 or greenwashing_level == RiskLevel.HIGH:
        return Recommendation.REJECT
    return Recommendation.MANUAL_REVIEW


def project_roi(green_score: int, risk_score: int, taxonomy_eligible: bool, similarity: float) -> float:
    roi = 5.0
    if green_score > 80:
        roi += 2.0
    if taxonomy_eligible:
        roi += 1.5
    if similarity > 0.8:
        roi += 0.5
    if risk_score > 50:
        roi -= 1.5
    return round(roi, 2)


def format_category_name(category: str) -> str:
    return (category or '').replace('_', ' ').title()


def build_strengths(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict) -> List[str]:
    strengths = []

    if semantic.primary_category and semantic.primary_category.similarity > 0.6:
        strengths.append(
            f"Strong alignment with {format_category_name(semantic.primary_category.category)} "
            f"({round(semantic.primary_category.similarity * 100)}%)"
        )
    if semantic.quantified_metrics:
        strengths.append('Quantified environmental metrics provided')
    if glp.compliant:
        strengths.append('Meets LMA Green Loan Principles')
    if taxonomy.eligible:
        strengths.append(f"EU Taxonomy aligned: {taxonomy.substantial_contribution.primary_objective}")

    return strengths


def aggregate(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict,
              greenwashing: GreenwashingAssessment, amount: float = 0.0) -> LocalAssessment:
    """Combine the independent analyses into the local assessment."""
    green_score = compute_green_score(semantic, glp, taxonomy)
    risk_score = compute_risk_score(semantic, taxonomy, greenwashing, amount)

    return LocalAssessment(
        green_score=green_score,
        risk_score=risk_score,
        recommendation=choose_recommendation(green_score, risk_score, glp.compliant, greenwashing.risk_level),
        roi_projection=project_roi(green_score, risk_score, taxonomy.eligible, primary_similarity(semantic)),
        key_strengths=build_strengths(semantic, glp, taxonomy),
        key_risks=[f.flag for f in greenwashing.flags],
    )


def calculate_confidence(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict,
                         greenwashing: GreenwashingAssessment, remote: bool = False) -> int:
    """Confidence in the assessment as an integer percentage in [30, 100]."""
    confidence = 40
    similarity = primary_similarity(semantic)

    if similarity > 0.7:
        confidence += 15
    if similarity > 0.5:
        confidence += 10
    if glp.eligible_categories:
        confidence += 10
    if taxonomy.substantial_contribution.objectives:
        confidence += 10
    if semantic.quantified_metrics:
        confidence += 10
    if remote:
        confidence += 15

    confidence -= len(greenwashing.flags) * 5
    return int(clamp(confidence, 30, 100))


def get_confidence_level(confidence: float) -> str:
    """Determine confidence level string from a 0-1 confidence."""
    if confidence >= CONFIDENCE_THRESHOLD_HIGH:
        return 'high'
    elif confidence >= CONFIDENCE_THRESHOLD_MEDIUM:
        return 'medium'
    return 'low'
