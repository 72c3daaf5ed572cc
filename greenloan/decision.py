"""
Final decision logic for Green Loan Evaluation.
"""

from typing import Optional

from greenloan.constants import DNSH_VETO_SEVERITIES, Recommendation, RiskLevel
from greenloan.models import GLPVerdict, GreenwashingAssessment, LocalAssessment, TaxonomyVerdict
from greenloan.narrative import NarrativeResponse

APPROVALS = (Recommendation.APPROVE, Recommendation.APPROVE_WITH_CONDITIONS)


def hard_veto(glp: GLPVerdict, taxonomy: TaxonomyVerdict, greenwashing: GreenwashingAssessment) -> Optional[str]:
    """Reason the local recommendation must stand, or None."""
    if greenwashing.risk_level == RiskLevel.HIGH:
        return 'high greenwashing risk'
    if any(v.severity in DNSH_VETO_SEVERITIES for v in taxonomy.dnsh.violations):
        return 'significant harm violation'
    if not glp.eligible_categories:
        return 'no eligible green category'
    return None


def determine_final_assessment(local: LocalAssessment, remote: Optional[NarrativeResponse],
                               glp: GLPVerdict, taxonomy: TaxonomyVerdict,
                               greenwashing: GreenwashingAssessment) -> LocalAssessment:
    """
    Shared logic to merge the narrative service output with the local
    assessment. The local result is used as-is when the service gave
    nothing; a hard veto keeps the local recommendation.
    """
    if remote is None:
        return local

    veto = hard_veto(glp, taxonomy, greenwashing)
    if veto and remote.recommendation in APPROVALS and local.recommendation != remote.recommendation:
        recommendation = local.recommendation
        source = f"narrative_service (local override - {veto})"
    else:
        recommendation = remote.recommendation
        source = 'narrative_service'

    key_risks = list(remote.key_risks)
    key_risks.extend(r for r in local.key_risks if r not in remote.key_risks)

    return LocalAssessment(
        green_score=remote.green_score,
        risk_score=remote.risk_score,
        recommendation=recommendation,
        roi_projection=round(remote.roi_projection, 2),
        key_strengths=list(remote.key_strengths) or list(local.key_strengths),
        key_risks=key_risks,
        source=source,
        reasoning_summary=remote.reasoning_summary or None,
    )
