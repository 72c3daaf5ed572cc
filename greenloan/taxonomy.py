"""
EU Taxonomy Regulation (2020/852) evaluation.

Five pillars: activity classification against the Technical Screening
Criteria, substantial contribution to an environmental objective, Do No
Significant Harm, quantitative threshold screening and minimum safeguards.
"""

import logging
from typing import Dict, List, Optional

from greenloan.catalogue import TAXONOMY_ACTIVITIES
from greenloan.constants import (
    DNSH_SEVERITY_PENALTY,
    DNSH_VETO_SEVERITIES,
    TAXONOMY_PASS_SCORE,
    TAXONOMY_PILLAR_WEIGHTS,
    GapStatus,
)
from greenloan.keywords import (
    ACTIVITY_TYPES,
    CONTRIBUTION_FLOOR,
    DEFAULT_ACTIVITY_TYPE,
    DNSH_EXCLUSIONS,
    SAFEGUARD_CONCERNS,
    TAXONOMY_OBJECTIVES,
    TSC_CONTRIBUTION_SCORE,
)
from greenloan.metrics import extract_threshold_metric, meets_threshold
from greenloan.models import (
    ActivityDefinition,
    ActivityType,
    Application,
    Article8Disclosure,
    ComplianceComponentScore,
    ContributingObjective,
    DNSHCheck,
    DNSHViolation,
    GapAnalysis,
    GapEntry,
    MinimumSafeguards,
    SubstantialContribution,
    TaxonomyVerdict,
    TechnicalCriteria,
    ThresholdCheck,
    ThresholdValidation,
    format_value,
)
from greenloan.scoring import evidence_adjusted, pillar_status, weighted_average

logger = logging.getLogger(__name__)

KEYWORD_MATCH_POINTS = 20
ACTIVITY_BASE_SCORE = 40
THRESHOLD_BASE_SCORE = 50
NO_ACTIVITY_THRESHOLD_SCORE = 30
THRESHOLD_PASS_POINTS = 15
THRESHOLD_FAIL_POINTS = 10
SAFEGUARD_CONCERN_PENALTY = 50

PILLAR_LABELS = {
    'activity_classification': 'Activity Classification',
    'substantial_contribution': 'Substantial Contribution',
    'do_no_significant_harm': 'Do No Significant Harm (DNSH)',
    'technical_screening': 'Technical Screening Criteria',
    'minimum_safeguards': 'Minimum Safeguards',
}


def match_activity(text_lower: str):
    """
    Best matching screening activity and its match score.

    +20 per keyword present; the first activity reaching the highest score
    wins. Returns (None, 0) when nothing scores at least 20.
    """
    best, best_score = None, 0
    for activity in TAXONOMY_ACTIVITIES:
        score = sum(KEYWORD_MATCH_POINTS for keyword in activity.keywords if keyword in text_lower)
        if score > best_score:
            best, best_score = activity, score
    if best_score < KEYWORD_MATCH_POINTS:
        return None, 0
    return best, best_score


def validate_thresholds(text: str, activity: Optional[ActivityDefinition]) -> ThresholdValidation:
    if activity is None:
        return ThresholdValidation(
            score=NO_ACTIVITY_THRESHOLD_SCORE,
            confidence=0.3,
            note='No matching TSC activity identified',
        )

    validated = []
    missing = []
    score = THRESHOLD_BASE_SCORE

    for rule in activity.thresholds:
        extracted = extract_threshold_metric(text, rule.metric)
        if extracted is None:
            missing.append(ThresholdCheck(metric=rule.metric, required=rule.required, description=rule.description))
            continue

        passed = meets_threshold(extracted.value, rule)
        score += THRESHOLD_PASS_POINTS if passed else -THRESHOLD_FAIL_POINTS
        validated.append(ThresholdCheck(
            metric=rule.metric,
            required=rule.required,
            description=rule.description,
            found=f"{format_value(extracted.value)} {rule.unit}",
            status=GapStatus.PASS if passed else GapStatus.FAIL,
        ))

    confidence = len(validated) / (len(validated) + len(missing)) if validated else 0.3
    if missing:
        note = f"Missing verification for: {', '.join(m.metric for m in missing)}"
    else:
        note = 'All applicable thresholds verified'

    return ThresholdValidation(
        score=max(0, min(100, score)),
        confidence=round(confidence, 4),
        validated=validated,
        missing=missing,
        note=note,
    )


def check_substantial_contribution(text_lower: str, activity: Optional[ActivityDefinition]) -> SubstantialContribution:
    max_score = 0.0
    objectives = []
    primary = None

    if activity is not None:
        objective = next((o for o in TAXONOMY_OBJECTIVES.values() if o['code'] == activity.objective_code), None)
        if objective is not None:
            max_score = TSC_CONTRIBUTION_SCORE
            primary = objective['name']
            objectives.append(ContributingObjective(
                objective=objective['name'], code=objective['code'], score=TSC_CONTRIBUTION_SCORE, via_tsc=True,
            ))

    for objective in TAXONOMY_OBJECTIVES.values():
        if any(o.code == objective['code'] for o in objectives):
            continue
        if not any(keyword in text_lower for keyword in objective['keywords']):
            continue
        score = objective['weight'] * 100
        objectives.append(ContributingObjective(
            objective=objective['name'], code=objective['code'], score=round(score),
        ))
        if score > max_score:
            max_score = score
            primary = objective['name']

    objectives.sort(key=lambda o: -o.score)

    if objectives:
        reasoning = f"Contributes to: {', '.join(f'{o.objective} ({o.code})' for o in objectives)}"
    else:
        reasoning = 'No substantial contribution to EU Taxonomy objectives identified'

    return SubstantialContribution(
        contributes=max_score >= CONTRIBUTION_FLOOR,
        score=round(max_score),
        primary_objective=primary,
        objectives=objectives,
        reasoning=reasoning,
    )


def check_dnsh(text_lower: str) -> DNSHCheck:
    """Unmitigated exclusion matches become violations."""
    violations = []
    mitigated = []

    for pattern, harm, severity, mitigator in DNSH_EXCLUSIONS:
        if not pattern.search(text_lower):
            continue
        if mitigator is not None and mitigator.search(text_lower):
            mitigated.append(harm)
            continue
        violations.append(DNSHViolation(harm=harm, severity=severity))

    if violations:
        note = f"DNSH violations detected: {'; '.join(v.harm for v in violations)}"
    else:
        note = 'No significant harm to other environmental objectives detected'

    return DNSHCheck(
        passes=not violations,
        violations=violations,
        mitigated=mitigated,
        critical_violations=any(v.severity == 'critical' for v in violations),
        note=note,
    )


def assess_minimum_safeguards(text_lower: str) -> MinimumSafeguards:
    concerns = [concern for pattern, concern in SAFEGUARD_CONCERNS if pattern.search(text_lower)]
    if concerns:
        note = f"Concerns: {', '.join(concerns)}"
    else:
        note = ('No minimum safeguards concerns identified - verify OECD Guidelines & '
                'UN Guiding Principles adherence')
    return MinimumSafeguards(compliant=not concerns, concerns=concerns, note=note)


def determine_activity_type(text_lower: str) -> ActivityType:
    for pattern, activity_type, description in ACTIVITY_TYPES:
        if pattern.search(text_lower):
            return ActivityType(type=activity_type, description=description)
    return ActivityType(type=DEFAULT_ACTIVITY_TYPE[0], description=DEFAULT_ACTIVITY_TYPE[1])


def article_8_disclosure(eligible: bool, contribution: SubstantialContribution,
                         activity: Optional[ActivityDefinition], dnsh: DNSHCheck,
                         safeguards: MinimumSafeguards) -> Article8Disclosure:
    return Article8Disclosure(
        taxonomy_aligned_percentage=100 if eligible else 0,
        eligible_but_not_aligned_percentage=100 if not eligible and contribution.contributes else 0,
        not_eligible_percentage=0 if contribution.contributes else 100,
        environmental_objective=contribution.primary_objective or 'N/A',
        activity_nace_code=activity.nace if activity else 'Not classified',
        substantial_contribution_criteria=activity.activity if activity else 'Not applicable',
        dnsh_compliant=dnsh.passes,
        minimum_safeguards_compliant=safeguards.compliant,
    )


def taxonomy_summary(eligible: bool, contribution: SubstantialContribution, dnsh: DNSHCheck,
                     validation: ThresholdValidation) -> str:
    if eligible:
        note = ' Technical criteria verified.' if validation.validated else ''
        return (f"EU Taxonomy ALIGNED - Substantially contributes to {contribution.primary_objective} "
                f"without significant harm to other objectives.{note}")
    elif not dnsh.passes:
        return f"EU Taxonomy NOT ALIGNED - DNSH violations: {'; '.join(v.harm for v in dnsh.violations[:2])}"
    elif not contribution.contributes:
        return 'EU Taxonomy NOT ALIGNED - No substantial contribution to environmental objectives identified'
    elif validation.missing:
        return (f"EU Taxonomy POTENTIALLY ALIGNED - Missing TSC verification: "
                f"{', '.join(m.metric for m in validation.missing)}")
    return 'EU Taxonomy alignment undetermined - manual review required'


def _pillar_entry(pillar: str, score: int, activity: Optional[ActivityDefinition],
                  contribution: SubstantialContribution, dnsh: DNSHCheck,
                  validation: ThresholdValidation, safeguards: MinimumSafeguards) -> GapEntry:
    status = pillar_status(score)
    label = PILLAR_LABELS[pillar]
    issue = fix = None

    if pillar == 'activity_classification':
        if activity is not None:
            detail = f"Matched activity {activity.activity} (NACE {activity.nace})."
            issue = 'Activity only weakly matched to its technical screening criteria.'
        else:
            detail = ('The activity type was not clearly identified as one of the defined taxonomy activities '
                      '(e.g., solar PV, wind power, building renovation).')
            issue = 'Could not match activity to a specific EU Taxonomy technical screening criteria.'
        fix = ('Specify the exact activity type (e.g., "electricity generation from solar photovoltaic", '
               '"renovation of existing building with 30% energy reduction").')
    elif pillar == 'substantial_contribution':
        if contribution.contributes:
            detail = f"Contributes to {contribution.primary_objective} with {contribution.score}% alignment."
            issue = 'Contribution to environmental objectives is only moderate.'
        else:
            detail = ('The activity must substantially contribute to at least one objective: Climate Mitigation, '
                      'Climate Adaptation, Water, Circular Economy, Pollution Prevention, or Biodiversity.')
            issue = 'No substantial contribution to any of the 6 EU Taxonomy environmental objectives.'
        fix = ('Clearly describe how the project contributes to climate change mitigation (e.g., renewable '
               'energy, emissions reduction) or another environmental objective with measurable impact.')
    elif pillar == 'do_no_significant_harm':
        if dnsh.violations:
            detail = '; '.join(f"{v.harm} ({v.severity} severity)" for v in dnsh.violations)
        else:
            detail = 'No significant harm to other environmental objectives detected.'
        issue = 'Activity may cause significant harm to other environmental objectives.'
        fix = ('Remove or mitigate activities that harm other environmental objectives. '
               'For fossil fuels, demonstrate a clear phase-out plan.')
    elif pillar == 'technical_screening':
        failed = validation.failed
        if failed:
            detail = '; '.join(f"{f.metric}: found {f.found}, required {f.required}" for f in failed)
            issue = 'One or more technical thresholds not met.'
            fix = f"Ensure project meets these thresholds: {', '.join(f'{f.metric} {f.required}' for f in failed)}."
        elif validation.missing:
            detail = '; '.join(f"{m.metric}: {m.description} ({m.required})" for m in validation.missing)
            issue = 'Some technical thresholds could not be verified from provided information.'
            fix = (f"Add the following metrics to enable verification: "
                   f"{', '.join(m.description for m in validation.missing)}.")
        elif activity is not None:
            detail = f"All {len(validation.passed)} thresholds verified for activity: {activity.activity}."
            issue = 'Verified thresholds alone do not establish full technical screening alignment.'
            fix = ('Provide the remaining screening evidence, such as a lifecycle assessment or '
                   'third-party verification of the stated metrics.')
        else:
            detail = validation.note
            issue = 'No technical screening criteria could be applied.'
            fix = 'Identify the taxonomy activity and state its screening metrics.'
    else:
        if safeguards.concerns:
            detail = '; '.join(safeguards.concerns)
        else:
            detail = 'No human rights or governance concerns identified.'
        issue = 'Minimum safeguards concerns identified.'
        fix = ('Ensure compliance with OECD Guidelines, UN Guiding Principles on Business and Human Rights, '
               'and ILO conventions.')

    if status == GapStatus.PASS:
        return GapEntry(pillar=label, status=status, score=score, detail=detail)
    return GapEntry(pillar=label, status=status, score=score, detail=detail, issue=issue, fix=fix)


def build_gap_analysis(scores: Dict[str, int], eligible: bool, activity: Optional[ActivityDefinition],
                       contribution: SubstantialContribution, dnsh: DNSHCheck,
                       validation: ThresholdValidation, safeguards: MinimumSafeguards) -> GapAnalysis:
    entries = [
        _pillar_entry(pillar, score, activity, contribution, dnsh, validation, safeguards)
        for pillar, score in scores.items()
    ]
    strengths = [e for e in entries if e.status == GapStatus.PASS]
    gaps = [e for e in entries if e.status != GapStatus.PASS]

    primary_blocker = None
    if not eligible:
        if not contribution.contributes:
            primary_blocker = 'No substantial contribution - project must clearly contribute to an environmental objective'
        elif not dnsh.passes:
            primary_blocker = 'DNSH violation - project harms other environmental objectives'
        elif validation.failed:
            primary_blocker = 'Technical threshold not met - specific criteria exceeded acceptable limits'
        elif validation.missing:
            primary_blocker = 'Threshold verification incomplete - add missing metrics to confirm alignment'
        elif not safeguards.compliant:
            primary_blocker = 'Minimum safeguards concern - governance or human rights issue identified'
        else:
            primary_blocker = 'Alignment score below threshold - strengthen activity evidence'

    if eligible:
        summary = f"EU Taxonomy aligned with {len(strengths)} criteria satisfied."
        pathway = None
    else:
        if gaps:
            summary = (f"Not EU Taxonomy aligned due to {len(gaps)} gap(s): "
                       f"{', '.join(g.pillar for g in gaps)}.")
        else:
            summary = f"Not EU Taxonomy aligned: {primary_blocker}."
        pathway = ' '.join(g.fix for g in gaps if g.fix) or None

    return GapAnalysis(
        compliant=eligible,
        strengths=strengths,
        gaps=gaps,
        summary=summary,
        primary_blocker=primary_blocker,
        alignment_pathway=pathway,
    )


def _component(score: int, reasoning: str, evidence: List[str] = None, missing: List[str] = None):
    return ComplianceComponentScore(
        score=max(0, min(100, score)),
        reasoning=reasoning,
        evidence=evidence or [],
        missing=missing or [],
    )


def evaluate_taxonomy(application: Application) -> TaxonomyVerdict:
    """
    Evaluate an application against the EU Taxonomy.

    Eligible when the evidence-weighted score reaches the pass mark, the
    activity substantially contributes, no critical or high severity DNSH
    violation remains and minimum safeguards hold.
    """
    text = application.purpose
    text_lower = text.lower()

    activity, match_score = match_activity(text_lower)
    contribution = check_substantial_contribution(text_lower, activity)
    dnsh = check_dnsh(text_lower)
    validation = validate_thresholds(text, activity)
    safeguards = assess_minimum_safeguards(text_lower)
    activity_type = determine_activity_type(text_lower)

    dnsh_penalty = sum(DNSH_SEVERITY_PENALTY.get(v.severity, 0) for v in dnsh.violations)

    components = {
        'activity_classification': _component(
            min(100, ACTIVITY_BASE_SCORE + match_score) if activity else 0,
            f"Matched {activity.activity}" if activity else 'No matching TSC activity identified',
            evidence=[activity.key] if activity else [],
        ),
        'substantial_contribution': _component(
            contribution.score,
            contribution.reasoning,
            evidence=[o.code for o in contribution.objectives],
        ),
        'do_no_significant_harm': _component(
            100 - dnsh_penalty,
            dnsh.note,
            missing=[v.harm for v in dnsh.violations],
        ),
        'technical_screening': _component(
            validation.score,
            validation.note,
            evidence=[t.metric for t in validation.passed],
            missing=[t.metric for t in validation.missing] + [t.metric for t in validation.failed],
        ),
        'minimum_safeguards': _component(
            100 - SAFEGUARD_CONCERN_PENALTY * len(safeguards.concerns),
            safeguards.note,
            missing=safeguards.concerns,
        ),
    }

    signals = [
        activity is not None,
        contribution.contributes,
        activity_type.type != DEFAULT_ACTIVITY_TYPE[0],
    ] + [t.status == GapStatus.PASS for t in validation.validated]
    possible = 3 + (len(activity.thresholds) if activity else 0)
    evidence_strength = sum(signals) / possible

    weighted = weighted_average({k: c.score for k, c in components.items()}, TAXONOMY_PILLAR_WEIGHTS)
    overall = evidence_adjusted(weighted, evidence_strength)

    vetoed = any(v.severity in DNSH_VETO_SEVERITIES for v in dnsh.violations)
    eligible = (overall >= TAXONOMY_PASS_SCORE and contribution.contributes
                and not vetoed and safeguards.compliant)

    logger.debug("Taxonomy score %d (activity=%s, contributes=%s, vetoed=%s), eligible=%s",
                 overall, activity.key if activity else None, contribution.contributes, vetoed, eligible)

    return TaxonomyVerdict(
        overall_score=overall,
        weighted_score=round(weighted, 2),
        evidence_strength=round(evidence_strength, 4),
        compliant=eligible,
        components=components,
        gap_analysis=build_gap_analysis(
            {k: c.score for k, c in components.items()},
            eligible, activity, contribution, dnsh, validation, safeguards,
        ),
        substantial_contribution=contribution,
        dnsh=dnsh,
        technical_criteria=TechnicalCriteria(
            matched_activity=activity.activity if activity else None,
            nace_code=activity.nace if activity else None,
            match_score=match_score,
            thresholds=list(activity.thresholds) if activity else [],
            validation=validation,
        ),
        minimum_safeguards=safeguards,
        activity_type=activity_type,
        article_8_disclosure=article_8_disclosure(eligible, contribution, activity, dnsh, safeguards),
        summary=taxonomy_summary(eligible, contribution, dnsh, validation),
    )
