"""
Explainability for Green Loan Evaluation.

Feature attribution, a templated narrative, improvement suggestions and an
audit trail entry for every decision.

Attribution is an independent reading of the same inputs the aggregator
uses. With a base offset of 15 it stays within ATTRIBUTION_TOLERANCE
points of the aggregated green score for representative applications;
the gap is reported as ``divergence``.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import List, Optional

from greenloan.constants import (
    ATTRIBUTION_BASE_OFFSET,
    MODEL_VERSION,
    SUGGESTION_GAP_THRESHOLD,
    GapStatus,
    RiskLevel,
)
from greenloan.models import (
    Application,
    Attribution,
    AttributionItem,
    EvaluationResult,
    Explainability,
    GLPVerdict,
    GreenwashingAssessment,
    SemanticAnalysis,
    Suggestion,
    TaxonomyVerdict,
    format_value,
)
from greenloan.scoring import clamp, format_category_name

# (category, name, max contribution)
ATTRIBUTION_CATEGORIES = [
    ('semantic_alignment', 'Semantic Alignment', 35),
    ('quantified_impact', 'Quantified Impact', 25),
    ('regulatory_compliance', 'Regulatory Compliance', 25),
    ('risk_factors', 'Risk Factors', -15),
]
MAX_CONTRIBUTION = {category: limit for category, _, limit in ATTRIBUTION_CATEGORIES}
CATEGORY_NAMES = {category: name for category, name, _ in ATTRIBUTION_CATEGORIES}

# Metric count that saturates the quantified impact contribution
FULL_METRIC_COUNT = 4

METRIC_LABELS = [
    ('energy_capacity', 'Energy'),
    ('energy_generated', 'Generation'),
    ('carbon_reduction', 'CO2'),
    ('timeline', 'Timeline'),
    ('jobs_created', 'Jobs'),
    ('efficiency_gain', 'Efficiency'),
    ('project_area', 'Area'),
]


def _item(category: str, contribution: int, details: str, is_negative: bool = False) -> AttributionItem:
    limit = MAX_CONTRIBUTION[category]
    return AttributionItem(
        category=category,
        name=CATEGORY_NAMES[category],
        score_contribution=contribution,
        max_possible=limit,
        percentage=round(abs(contribution) / abs(limit) * 100),
        details=details,
        is_negative=is_negative,
    )


def describe_metrics(semantic: SemanticAnalysis) -> List[str]:
    metrics = semantic.quantified_metrics
    return [
        f"{label}: {format_value(metrics[key].value)} {metrics[key].unit}"
        for key, label in METRIC_LABELS if key in metrics
    ]


def generate_attribution(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict,
                         greenwashing: GreenwashingAssessment, green_score: Optional[int] = None) -> Attribution:
    """
    Break the decision down into signed integer contributions.

    ``attributed_score = clamp(total_positive - total_negative + base_offset)``
    holds by construction.
    """
    semantic_contribution = round(semantic.semantic_score / 100 * MAX_CONTRIBUTION['semantic_alignment'])
    if semantic.primary_category:
        semantic_details = (f"Best match: {format_category_name(semantic.primary_category.category)} "
                            f"({round(semantic.primary_category.similarity * 100)}% similarity)")
    else:
        semantic_details = 'No strong category match found'

    metric_count = len(semantic.quantified_metrics)
    quantified_contribution = min(
        round(metric_count / FULL_METRIC_COUNT * MAX_CONTRIBUTION['quantified_impact'])
        + round(semantic.specificity_bonus * 0.5),
        MAX_CONTRIBUTION['quantified_impact'],
    )
    metric_details = describe_metrics(semantic)
    if metric_details:
        quantified_details = f"Found: {', '.join(metric_details)}"
    else:
        quantified_details = 'No quantified environmental metrics found - consider adding specific numbers'

    compliance_average = (glp.overall_score + taxonomy.overall_score) / 2
    compliance_contribution = round(compliance_average / 100 * MAX_CONTRIBUTION['regulatory_compliance'])
    compliance_details = []
    if glp.compliant:
        compliance_details.append('LMA GLP Compliant')
    if taxonomy.eligible:
        compliance_details.append('EU Taxonomy Aligned')

    risk_penalty = round(greenwashing.risk_score / 100 * abs(MAX_CONTRIBUTION['risk_factors']))
    risk_details = '; '.join(f.flag for f in greenwashing.flags[:3])

    attributions = [
        _item('semantic_alignment', semantic_contribution, semantic_details),
        _item('quantified_impact', quantified_contribution, quantified_details),
        _item('regulatory_compliance', compliance_contribution,
              ', '.join(compliance_details) or 'Does not meet compliance thresholds'),
        _item('risk_factors', -risk_penalty, risk_details or 'No significant risk factors detected',
              is_negative=True),
    ]

    total_positive = sum(a.score_contribution for a in attributions if not a.is_negative)
    total_negative = sum(-a.score_contribution for a in attributions if a.is_negative)
    attributed = int(clamp(total_positive - total_negative + ATTRIBUTION_BASE_OFFSET))

    return Attribution(
        attributions=attributions,
        total_positive=total_positive,
        total_negative=total_negative,
        base_offset=ATTRIBUTION_BASE_OFFSET,
        attributed_score=attributed,
        divergence=abs(attributed - green_score) if green_score is not None else 0,
    )


def generate_narrative(green_score: int, semantic: SemanticAnalysis, glp: GLPVerdict,
                       taxonomy: TaxonomyVerdict, greenwashing: GreenwashingAssessment) -> str:
    """Concatenate the template sentences whose conditions hold."""
    parts = []
    glp_gaps = glp.gap_analysis.gaps
    taxonomy_gaps = taxonomy.gap_analysis.gaps

    if green_score >= 75 and glp.compliant and not glp_gaps:
        parts.append(f"APPROVED: This project scores {green_score}/100 and meets green financing requirements.")
    elif green_score >= 50:
        blocking = [g.pillar for g in glp_gaps if g.status == GapStatus.FAIL]
        if blocking:
            parts.append(f"REVIEW REQUIRED: Score {green_score}/100. Key issues: {', '.join(blocking)}.")
        elif not glp.compliant:
            parts.append(f"REVIEW REQUIRED: Score {green_score}/100. "
                         f"Primary issue: {glp.gap_analysis.primary_blocker}.")
        elif glp_gaps:
            parts.append(f"CONDITIONAL: Score {green_score}/100. Minor gaps need addressing.")
        else:
            parts.append(f"CONDITIONAL: Score {green_score}/100.")
    elif glp.gap_analysis.primary_blocker:
        parts.append(f"BELOW THRESHOLD: Score {green_score}/100. Primary issue: {glp.gap_analysis.primary_blocker}.")
    else:
        parts.append(f"BELOW THRESHOLD: Score {green_score}/100. Multiple compliance gaps identified.")

    if glp_gaps and not glp.compliant:
        parts.append('LMA Green Loan Principles issues:')
        for gap in glp_gaps[:3]:
            parts.append(f"- {gap.pillar}: {gap.issue}")
            if gap.fix:
                parts.append(f"  Fix: {gap.fix}")

    if taxonomy_gaps and not taxonomy.eligible:
        parts.append('EU Taxonomy issues:')
        for gap in taxonomy_gaps[:2]:
            parts.append(f"- {gap.pillar}: {gap.issue}")
            if gap.fix:
                parts.append(f"  Fix: {gap.fix}")

    strengths = (glp.gap_analysis.strengths + taxonomy.gap_analysis.strengths)[:2]
    if strengths:
        parts.append(f"Strengths: {', '.join(s.pillar for s in strengths)} criteria met.")

    metric_details = describe_metrics(semantic)
    if metric_details:
        parts.append(f"Metrics detected: {', '.join(metric_details)}.")
    else:
        parts.append('Missing metrics: No quantified environmental data found. Add specific numbers '
                     '(e.g., "50 MW capacity", "43,800 tonnes CO2 avoided").')

    if greenwashing.risk_level == RiskLevel.HIGH:
        flags = '; '.join(f.flag for f in greenwashing.flags[:2])
        parts.append(f"GREENWASHING RISK HIGH: {flags}. Third-party verification required.")
    elif greenwashing.risk_level == RiskLevel.MEDIUM and greenwashing.flags:
        parts.append(f"Credibility concern: {greenwashing.flags[0].flag}. Consider adding verification.")

    return '\n'.join(parts)


def generate_improvement_suggestions(attribution: Attribution, glp: GLPVerdict,
                                     taxonomy: TaxonomyVerdict) -> List[Suggestion]:
    """One suggestion per category falling short by more than the gap threshold."""
    suggestions = []

    for item in attribution.attributions:
        if item.is_negative:
            if abs(item.score_contribution) > SUGGESTION_GAP_THRESHOLD:
                suggestions.append(Suggestion(
                    priority='HIGH',
                    category='Risk Reduction',
                    suggestion=('Address greenwashing concerns: replace vague claims with specific commitments, '
                                'provide third-party verification, and remove any fossil fuel associations'),
                    potential_gain=abs(item.score_contribution),
                ))
            continue

        gap = item.max_possible - item.score_contribution
        if gap <= SUGGESTION_GAP_THRESHOLD:
            continue

        if item.category == 'semantic_alignment':
            suggestions.append(Suggestion(
                priority='HIGH' if gap > 15 else 'MEDIUM',
                category=item.name,
                suggestion=('Revise project description to clearly articulate environmental objectives and align '
                            'with recognized green project categories (renewable energy, efficiency, clean '
                            'transport, etc.)'),
                potential_gain=gap,
            ))
        elif item.category == 'quantified_impact':
            suggestions.append(Suggestion(
                priority='HIGH',
                category=item.name,
                suggestion=('Add specific, quantified environmental metrics: installed capacity (MW/kW), expected '
                            'CO2 reduction (tonnes/year), energy savings (kWh), or jobs created'),
                potential_gain=gap,
            ))
        elif item.category == 'regulatory_compliance':
            frameworks = []
            if not glp.compliant:
                frameworks.append('LMA Green Loan Principles (use of proceeds, project selection, reporting)')
            if not taxonomy.eligible:
                frameworks.append('EU Taxonomy (environmental objectives and Technical Screening Criteria)')
            if frameworks:
                text = f"Strengthen alignment with {' and '.join(frameworks)}"
            else:
                text = 'Raise compliance scores by documenting evidence for every pillar'
            suggestions.append(Suggestion(
                priority='MEDIUM',
                category=item.name,
                suggestion=text,
                potential_gain=gap,
            ))

    return sorted(suggestions, key=lambda s: -s.potential_gain)


def explain(semantic: SemanticAnalysis, glp: GLPVerdict, taxonomy: TaxonomyVerdict,
            greenwashing: GreenwashingAssessment, green_score: int) -> Explainability:
    attribution = generate_attribution(semantic, glp, taxonomy, greenwashing, green_score)
    return Explainability(
        attribution=attribution,
        narrative=generate_narrative(green_score, semantic, glp, taxonomy, greenwashing),
        improvement_suggestions=generate_improvement_suggestions(attribution, glp, taxonomy),
    )


def explain_result(result: EvaluationResult) -> Explainability:
    """Rebuild the explanation of a finished evaluation."""
    return explain(result.semantic, result.glp, result.taxonomy, result.greenwashing, result.green_score)


def hash_input(application: Application) -> str:
    payload = json.dumps(
        {'applicant_name': application.applicant_name, 'amount': application.amount, 'purpose': application.purpose},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def create_audit_entry(application: Application, result: EvaluationResult,
                       timestamp: Optional[datetime] = None) -> dict:
    """Audit trail record for persistence by the caller."""
    timestamp = timestamp or datetime.now(timezone.utc)
    attribution = result.explainability.attribution

    return {
        'timestamp': timestamp.isoformat(),
        'application_id': application.application_id,
        'applicant': application.applicant_name or 'Unknown',
        'amount': application.amount,
        'final_score': result.green_score,
        'recommendation': result.recommendation.value,
        'risk_score': result.risk_score,
        'attribution_summary': [
            {'factor': a.name, 'contribution': a.score_contribution, 'max': a.max_possible}
            for a in attribution.attributions
        ],
        'evidence': {
            'primary_category': result.semantic.primary_category.category if result.semantic.primary_category else None,
            'semantic_similarity': result.semantic.primary_category.similarity if result.semantic.primary_category else None,
            'lma_compliant': result.glp.compliant,
            'eu_eligible': result.taxonomy.eligible,
            'greenwashing_flags': len(result.greenwashing.flags),
            'quantified_metrics_count': len(result.semantic.quantified_metrics),
        },
        'analysis_source': result.analysis_source,
        'confidence_level': result.confidence_level,
        'input_hash': hash_input(application),
        'model_version': MODEL_VERSION,
    }
