"""
Greenwashing risk detection for Green Loan Evaluation.

Stateless: the detector only reads the indicator tables, so it can run
alongside the compliance evaluators.
"""

import re

from greenloan.constants import (
    NO_DIGITS_PENALTY,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_MEDIUM,
    SEVERITY_POINTS,
    VAGUE_RATIO_PENALTY,
    RiskLevel,
)
from greenloan.keywords import GREENWASHING_INDICATORS, SPECIFIC_TERM_PATTERN, VAGUE_TERM_PATTERN
from greenloan.models import GreenwashingAssessment, GreenwashingFlag

NO_QUANTIFIED_CLAIMS = 'No quantified environmental claims'
VAGUE_RATIO = 'High ratio of vague terms to specific metrics'

RECOMMENDATIONS = {
    RiskLevel.HIGH: ('Manual review strongly recommended - multiple greenwashing indicators detected. '
                     'Request supporting documentation.'),
    RiskLevel.MEDIUM: 'Verify environmental claims with supporting documentation before approval.',
    RiskLevel.LOW: 'Low greenwashing risk - proceed with standard due diligence.',
}


def get_risk_level(risk_score: int) -> RiskLevel:
    if risk_score >= RISK_LEVEL_HIGH:
        return RiskLevel.HIGH
    elif risk_score >= RISK_LEVEL_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def detect_greenwashing(text: str) -> GreenwashingAssessment:
    """
    Score a purpose text for greenwashing indicators.

    Each indicator is evaluated on its own: it counts when its pattern
    matches and its mitigator (if any) does not.
    """
    text_lower = (text or '').lower()
    flags = []
    risk_score = 0

    for pattern, flag, severity, mitigator in GREENWASHING_INDICATORS:
        if not pattern.search(text_lower):
            continue
        if mitigator is not None and mitigator.search(text_lower):
            continue
        flags.append(GreenwashingFlag(flag=flag, severity=severity))
        risk_score += SEVERITY_POINTS[severity]

    if not re.search(r'\d', text_lower):
        flags.append(GreenwashingFlag(flag=NO_QUANTIFIED_CLAIMS, severity='medium'))
        risk_score += NO_DIGITS_PENALTY

    vague_terms = len(VAGUE_TERM_PATTERN.findall(text_lower))
    specific_terms = len(SPECIFIC_TERM_PATTERN.findall(text_lower))
    if vague_terms > 3 and specific_terms < 2:
        flags.append(GreenwashingFlag(flag=VAGUE_RATIO, severity='medium'))
        risk_score += VAGUE_RATIO_PENALTY

    risk_score = min(100, risk_score)
    risk_level = get_risk_level(risk_score)

    return GreenwashingAssessment(
        risk_score=risk_score,
        risk_level=risk_level,
        flags=flags,
        recommendation=RECOMMENDATIONS[risk_level],
    )
