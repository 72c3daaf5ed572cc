"""
LMA Green Loan Principles (2023) evaluation.

Four pillars: Use of Proceeds, Project Evaluation & Selection, Management
of Proceeds and Reporting. Every pillar starts from a base score and adds
fixed boosts for each signal found in the purpose text.
"""

import logging
from typing import Dict, List, Optional

from greenloan.constants import GLP_PASS_SCORE, GLP_PILLAR_WEIGHTS, GapStatus, RiskLevel
from greenloan.greenwashing import detect_greenwashing
from greenloan.keywords import (
    BASELINE_BOOST,
    BASELINE_PATTERN,
    GLP_ELIGIBLE_CATEGORIES,
    LOCATION_BOOST,
    LOCATION_PATTERN,
    MULTI_CATEGORY_BONUS,
    MULTI_PURPOSE_PATTERN,
    NO_CATEGORY_SCORE,
    QUANTIFICATION_CHECKS,
    REMEDIATION_EXAMPLES,
    REPORTING_CHECKS,
    REPORTING_FREQUENCY_BOOST,
    REPORTING_FREQUENCY_PATTERN,
    SEGREGATION_PATTERN,
    VERIFICATION_BOOST,
    VERIFICATION_PATTERN,
)
from greenloan.metrics import extract_metrics
from greenloan.models import (
    Application,
    ComplianceComponentScore,
    GapAnalysis,
    GapEntry,
    GLPVerdict,
    GreenwashingAssessment,
    MonitoringCapability,
    SPOSimulation,
)
from greenloan.scoring import evidence_adjusted, pillar_status, weighted_average

logger = logging.getLogger(__name__)

PILLAR_LABELS = {
    'use_of_proceeds': 'Use of Proceeds',
    'project_evaluation': 'Project Evaluation',
    'management_of_proceeds': 'Management of Proceeds',
    'reporting': 'Reporting',
}

# Quantified checks plus location and baseline
EVIDENCE_CHECK_COUNT = len(QUANTIFICATION_CHECKS) + 2


def evaluate_use_of_proceeds(text_lower: str):
    """Returns (component, matched category descriptions, required evidence)."""
    max_score = 0.0
    matched = []
    reasoning = []
    required_evidence = []

    for config in GLP_ELIGIBLE_CATEGORIES.values():
        if any(keyword in text_lower for keyword in config['keywords']):
            max_score = max(max_score, config['weight'] * 100)
            matched.append(config['description'])
            reasoning.append(f"Matches GLP category: {config['description']}")
            required_evidence.extend(e for e in config['required_evidence'] if e not in required_evidence)

    if not matched:
        reasoning.append('No clear alignment with GLP eligible green project categories')
        max_score = NO_CATEGORY_SCORE

    if len(matched) >= 2:
        max_score = min(100, max_score + MULTI_CATEGORY_BONUS)
        reasoning.append('Multi-objective green project identified')

    component = ComplianceComponentScore(
        score=round(max_score),
        reasoning='; '.join(reasoning),
        evidence=matched,
    )
    return component, matched, required_evidence


def evaluate_project_selection(text_lower: str, location: Optional[str] = None) -> ComplianceComponentScore:
    score = 40
    reasoning = []
    found = []
    missing = []
    metrics = extract_metrics(text_lower)

    for name, check, boost in QUANTIFICATION_CHECKS:
        if isinstance(check, str):
            hit = check in metrics
        else:
            hit = check.search(text_lower) is not None
        if hit:
            score += boost
            found.append(name)
            reasoning.append(f"{name} quantified")
        else:
            missing.append(name)

    if location or LOCATION_PATTERN.search(text_lower):
        score += LOCATION_BOOST
        found.append('Project location')
    else:
        missing.append('Project location')

    if BASELINE_PATTERN.search(text_lower):
        score += BASELINE_BOOST
        found.append('Baseline reference')
        reasoning.append('Baseline for measurement established')
    else:
        missing.append('Baseline reference')

    if not found:
        reasoning.append('No quantified environmental objectives found - critical gap for GLP compliance')

    return ComplianceComponentScore(
        score=min(100, score),
        reasoning='; '.join(reasoning) or 'Basic project evaluation criteria assessed',
        evidence=found,
        missing=missing,
    )


def evaluate_management_of_proceeds(text_lower: str, amount: float) -> ComplianceComponentScore:
    score = 55
    reasoning = []

    if 0 < amount <= 5_000_000:
        score += 20
        reasoning.append('Loan size appropriate for straightforward tracking')
    elif 5_000_000 < amount <= 20_000_000:
        score += 15
        reasoning.append('Medium-sized facility - standard tracking applicable')
    elif amount > 20_000_000:
        score += 10
        reasoning.append('Large facility - may require dedicated tracking account')

    if not MULTI_PURPOSE_PATTERN.search(text_lower):
        score += 15
        reasoning.append('Single-purpose allocation simplifies proceeds tracking')
    else:
        reasoning.append('Multi-purpose use indicated - ring-fencing recommended')

    evidence = []
    if SEGREGATION_PATTERN.search(text_lower):
        score += 10
        evidence.append('Proceeds segregation')
        reasoning.append('Proceeds segregation explicitly mentioned')

    return ComplianceComponentScore(
        score=min(100, score),
        reasoning='; '.join(reasoning),
        evidence=evidence,
        missing=[] if evidence else ['Proceeds segregation'],
    )


def evaluate_reporting(text_lower: str) -> ComplianceComponentScore:
    score = 35
    reasoning = []
    reportable = []
    missing = []

    for metric, pattern, boost in REPORTING_CHECKS:
        if pattern.search(text_lower):
            score += boost
            reportable.append(metric)
        else:
            missing.append(metric)

    if VERIFICATION_PATTERN.search(text_lower):
        score += VERIFICATION_BOOST
        reasoning.append('External verification referenced')

    if REPORTING_FREQUENCY_PATTERN.search(text_lower):
        score += REPORTING_FREQUENCY_BOOST
        reasoning.append('Reporting frequency indicated')

    if reportable:
        reasoning.append(f"Reportable metrics: {', '.join(reportable)}")
    else:
        reasoning.append('Limited quantifiable metrics for impact reporting')

    return ComplianceComponentScore(
        score=min(100, score),
        reasoning='; '.join(reasoning),
        evidence=reportable,
        missing=missing,
    )


def simulate_spo(matched_categories: List[str], evidence_strength: float,
                 reporting: ComplianceComponentScore, greenwashing: GreenwashingAssessment) -> SPOSimulation:
    """Simulated Second Party Opinion from the pillar results."""
    score = 0
    assessment = []

    if matched_categories:
        score += 30
        assessment.append('Use of Proceeds aligns with GLP eligible categories')

    if evidence_strength > 0.5:
        score += 25
        assessment.append('Environmental objectives adequately quantified')
    elif evidence_strength > 0.25:
        score += 15
        assessment.append('Partial quantification of objectives - improvement recommended')

    if len(reporting.evidence) >= 2:
        score += 20
        assessment.append('Multiple impact metrics identified for reporting')

    if greenwashing.risk_level == RiskLevel.HIGH:
        score -= 30
        assessment.append('Significant concerns about claim authenticity')
    elif greenwashing.risk_level == RiskLevel.MEDIUM:
        score -= 10
        assessment.append('Minor concerns require clarification')
    else:
        score += 15
        assessment.append('Claims appear credible')

    if score >= 70:
        opinion = 'POSITIVE'
    elif score >= 50:
        opinion = 'POSITIVE_WITH_RESERVATIONS'
    else:
        opinion = 'NEGATIVE'

    return SPOSimulation(simulated_score=max(0, min(100, score)), opinion=opinion, assessment=assessment)


def assess_monitoring(project_evaluation: ComplianceComponentScore,
                      reporting: ComplianceComponentScore) -> MonitoringCapability:
    has_quantified = len(project_evaluation.evidence) >= 2
    has_reportable = len(reporting.evidence) >= 2

    if has_quantified and has_reportable:
        capability, recommendation = 'HIGH', 'Project has adequate metrics for ongoing impact monitoring'
    elif has_quantified or has_reportable:
        capability, recommendation = 'MEDIUM', 'Establish additional KPIs for comprehensive monitoring'
    else:
        capability, recommendation = 'LOW', 'Define quantifiable environmental KPIs before loan disbursement'

    return MonitoringCapability(
        capability=capability,
        recommendation=recommendation,
        suggested_kpis=project_evaluation.missing[:3],
    )


def _pillar_entry(pillar: str, component: ComplianceComponentScore, matched: List[str]) -> GapEntry:
    status = pillar_status(component.score)
    label = PILLAR_LABELS[pillar]

    if status == GapStatus.PASS:
        if pillar == 'use_of_proceeds':
            detail = f"Project aligns with {len(matched)} GLP eligible categories: {', '.join(matched)}."
        elif pillar == 'project_evaluation':
            detail = (f"Environmental objectives are quantified with {len(component.evidence)} metrics: "
                      f"{', '.join(component.evidence)}.")
        elif pillar == 'reporting':
            detail = (f"{len(component.evidence)} impact metrics identified for reporting: "
                      f"{', '.join(component.evidence)}.")
        else:
            detail = component.reasoning
        return GapEntry(pillar=label, status=status, score=component.score, detail=detail)

    if pillar == 'use_of_proceeds':
        if matched:
            issue = 'Weak alignment with LMA Green Loan Principles eligible categories.'
            detail = f"Matched categories ({', '.join(matched)}) but score is only {component.score}/100."
            fix = 'Strengthen the connection to eligible green project categories by adding specific project scope details.'
        else:
            issue = 'No clear alignment with any LMA GLP eligible green project category.'
            detail = ('The project description does not match recognized categories like Renewable Energy, '
                      'Energy Efficiency, Clean Transport, Green Buildings, etc.')
            fix = ('Clearly specify how proceeds will fund one of the 10 LMA GLP eligible categories '
                   '(e.g., renewable energy installation, building retrofit, clean transport).')
    elif pillar == 'project_evaluation':
        missing = component.missing[:3] or ['specific metrics']
        issue = 'Environmental objectives are not adequately quantified.'
        detail = f"Only {len(component.evidence)} metrics found. Missing: {', '.join(missing)}."
        fix = f"Add specific quantified metrics such as: {'; '.join(REMEDIATION_EXAMPLES.get(m, m) for m in missing)}."
    elif pillar == 'management_of_proceeds':
        issue = 'Proceeds tracking and management approach unclear.'
        detail = 'No indication of how green loan proceeds will be ring-fenced or tracked.'
        fix = ('Add commitment to segregated account or dedicated tracking for green proceeds. '
               'State that funds will be ring-fenced for the specified green purpose.')
    else:
        issue = 'Insufficient impact reporting capability.'
        detail = f"Only {len(component.evidence)} reportable metrics identified."
        fix = ('Include commitment to annual impact reporting with specific KPIs (e.g., MWh generated, '
               'tonnes CO2 avoided, jobs created). Consider third-party verification.')

    return GapEntry(pillar=label, status=status, score=component.score, detail=detail, issue=issue, fix=fix)


def build_gap_analysis(components: Dict[str, ComplianceComponentScore], matched: List[str],
                       greenwashing: GreenwashingAssessment, compliant: bool) -> GapAnalysis:
    """Partition the pillars into strengths and gaps and name the primary blocker."""
    entries = [_pillar_entry(pillar, component, matched) for pillar, component in components.items()]
    strengths = [e for e in entries if e.status == GapStatus.PASS]
    gaps = [e for e in entries if e.status != GapStatus.PASS]

    primary_blocker = None
    if not compliant:
        failed = [g for g in gaps if g.status == GapStatus.FAIL]
        partial = [g for g in gaps if g.status == GapStatus.PARTIAL]
        if not matched:
            primary_blocker = 'No eligible green category - proceeds must fund a recognised GLP project category'
        elif greenwashing.risk_level == RiskLevel.HIGH:
            primary_blocker = 'High greenwashing risk - replace vague claims with specific, verifiable metrics'
        elif failed:
            primary_blocker = f"{failed[0].pillar} - {failed[0].issue}"
        elif partial:
            primary_blocker = f"{partial[0].pillar} - {partial[0].issue}"
        else:
            primary_blocker = 'Insufficient quantified evidence - overall score below threshold after evidence weighting'

    if compliant:
        summary = f"Project meets LMA GLP requirements with {len(strengths)} pillars satisfied."
        pathway = None
    elif gaps:
        summary = (f"Project has {len(gaps)} gap(s) preventing LMA GLP compliance: "
                   f"{', '.join(g.pillar for g in gaps)}.")
        pathway = ' '.join(g.fix for g in gaps)
    else:
        summary = f"Project does not meet LMA GLP requirements: {primary_blocker}."
        pathway = ('Remove vague environmental claims and support every claim with specific, '
                   'verifiable metrics and third-party verification.')

    return GapAnalysis(
        compliant=compliant,
        strengths=strengths,
        gaps=gaps,
        summary=summary,
        primary_blocker=primary_blocker,
        alignment_pathway=pathway,
    )


def evaluate_glp(application: Application, greenwashing: Optional[GreenwashingAssessment] = None) -> GLPVerdict:
    """
    Evaluate an application against the LMA Green Loan Principles.

    Compliant when the evidence-weighted score reaches the pass mark and
    the greenwashing level is not HIGH.
    """
    text_lower = application.purpose.lower()
    if greenwashing is None:
        greenwashing = detect_greenwashing(application.purpose)

    use_of_proceeds, matched, required_evidence = evaluate_use_of_proceeds(text_lower)
    project_evaluation = evaluate_project_selection(text_lower, application.location)
    management = evaluate_management_of_proceeds(text_lower, application.amount)
    reporting = evaluate_reporting(text_lower)

    components = {
        'use_of_proceeds': use_of_proceeds,
        'project_evaluation': project_evaluation,
        'management_of_proceeds': management,
        'reporting': reporting,
    }

    weighted = weighted_average({k: c.score for k, c in components.items()}, GLP_PILLAR_WEIGHTS)
    evidence_strength = len(project_evaluation.evidence) / EVIDENCE_CHECK_COUNT
    overall = evidence_adjusted(weighted, evidence_strength)
    compliant = overall >= GLP_PASS_SCORE and greenwashing.risk_level != RiskLevel.HIGH

    logger.debug("GLP score %d (weighted %.1f, evidence %.2f), compliant=%s",
                 overall, weighted, evidence_strength, compliant)

    return GLPVerdict(
        overall_score=overall,
        weighted_score=round(weighted, 2),
        evidence_strength=round(evidence_strength, 4),
        compliant=compliant,
        components=components,
        gap_analysis=build_gap_analysis(components, matched, greenwashing, compliant),
        eligible_categories=matched,
        required_evidence=required_evidence,
        spo_simulation=simulate_spo(matched, evidence_strength, reporting, greenwashing),
        monitoring=assess_monitoring(project_evaluation, reporting),
    )
