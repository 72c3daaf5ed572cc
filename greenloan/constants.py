"""
Constants for Green Loan Evaluation.
"""

from enum import Enum


class Recommendation(str, Enum):
    APPROVE = 'APPROVE'
    APPROVE_WITH_CONDITIONS = 'APPROVE_WITH_CONDITIONS'
    MANUAL_REVIEW = 'MANUAL_REVIEW'
    REJECT = 'REJECT'


class RiskLevel(str, Enum):
    LOW = 'LOW'
    MEDIUM = 'MEDIUM'
    HIGH = 'HIGH'


class GapStatus(str, Enum):
    PASS = 'PASS'
    PARTIAL = 'PARTIAL'
    FAIL = 'FAIL'


MODEL_VERSION = '2.0.0-semantic'

# Greenwashing
SEVERITY_POINTS = {'high': 30, 'medium': 15, 'low': 5}
NO_DIGITS_PENALTY = 20
VAGUE_RATIO_PENALTY = 15
RISK_LEVEL_HIGH = 50
RISK_LEVEL_MEDIUM = 25

# Similarity
SECONDARY_CATEGORY_BOOST = 0.2
SIMILARITY_ELIGIBILITY_FLOOR = 0.3
STRONG_SIMILARITY = 0.7

# Specificity bonus per extracted metric key
SPECIFICITY_POINTS = {
    'energy_capacity': 10,
    'carbon_reduction': 15,
    'timeline': 5,
    'jobs_created': 5,
    'efficiency_gain': 5,
}
SPECIFICITY_CAP = 30

# Compliance gates
PILLAR_PASS_SCORE = 70
PILLAR_PARTIAL_SCORE = 50
GLP_PASS_SCORE = 70
TAXONOMY_PASS_SCORE = 60
EVIDENCE_FLOOR = 0.7
EVIDENCE_RANGE = 0.3

GLP_PILLAR_WEIGHTS = {
    'use_of_proceeds': 0.30,
    'project_evaluation': 0.30,
    'management_of_proceeds': 0.20,
    'reporting': 0.20,
}

TAXONOMY_PILLAR_WEIGHTS = {
    'activity_classification': 0.15,
    'substantial_contribution': 0.30,
    'do_no_significant_harm': 0.20,
    'technical_screening': 0.20,
    'minimum_safeguards': 0.15,
}

DNSH_SEVERITY_PENALTY = {'critical': 100, 'high': 60, 'medium': 25}
DNSH_VETO_SEVERITIES = ('critical', 'high')

# Aggregation
GREEN_SCORE_WEIGHTS = {'semantic': 0.50, 'glp': 0.25, 'taxonomy': 0.25}
NO_METRICS_PENALTY = 15
FEW_METRICS_PENALTY = 5
LOAN_SIZE_BREAKPOINTS = ((5_000_000, 10), (10_000_000, 10))
TAXONOMY_ELIGIBLE_RELIEF = 15
STRONG_MATCH_RELIEF = 10

# Attribution
ATTRIBUTION_BASE_OFFSET = 15
ATTRIBUTION_TOLERANCE = 20
SUGGESTION_GAP_THRESHOLD = 5

CONFIDENCE_THRESHOLD_HIGH = 0.80
CONFIDENCE_THRESHOLD_MEDIUM = 0.50
