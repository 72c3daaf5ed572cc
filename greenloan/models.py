"""
Data model for Green Loan Evaluation.

Every record is built once per evaluation and frozen afterwards.
"""

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from greenloan.constants import GapStatus, Recommendation, RiskLevel


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())


class Application(FrozenModel):
    """Loan application as submitted by the caller."""

    purpose: str = ''
    amount: float = 0.0
    applicant_name: Optional[str] = None
    location: Optional[str] = None
    application_id: Optional[str] = None

    @field_validator('purpose', mode='before')
    @classmethod
    def _normalize_purpose(cls, value):
        return value if isinstance(value, str) else ''

    @field_validator('amount', mode='before')
    @classmethod
    def _normalize_amount(cls, value):
        if isinstance(value, bool):
            return 0.0
        try:
            amount = float(value)
        except (TypeError, ValueError):
            return 0.0
        # NaN fails the comparison and falls through to zero
        return amount if amount > 0 else 0.0


class ExtractedMetric(FrozenModel):
    value: float
    unit: str


class ThresholdRule(FrozenModel):
    metric: str
    operator: str
    value: Union[bool, float, str]
    unit: str
    description: str

    @property
    def required(self) -> str:
        return f"{self.operator} {format_value(self.value)} {self.unit}"


class CategoryReference(FrozenModel):
    category: str
    name: str
    description: str
    weight: float = Field(ge=0.0, le=1.0)
    tsc_threshold: str
    nace_code: Optional[str] = None


class ActivityDefinition(FrozenModel):
    """A taxonomy activity with its technical screening criteria."""

    key: str
    activity: str
    nace: str
    keywords: Tuple[str, ...]
    thresholds: Tuple[ThresholdRule, ...]
    objective_code: str


class SimilarityResult(FrozenModel):
    category: str
    name: str
    similarity: float
    weighted_score: float
    tsc_threshold: Optional[str] = None


class SemanticAnalysis(FrozenModel):
    semantic_score: int
    specificity_bonus: int
    final_score: int
    primary_category: Optional[SimilarityResult] = None
    secondary_category: Optional[SimilarityResult] = None
    similarities: List[SimilarityResult] = []
    eligible_categories: List[str] = []
    quantified_metrics: Dict[str, ExtractedMetric] = {}
    analysis_method: str = 'local_semantic'


class ComplianceComponentScore(FrozenModel):
    score: int = Field(ge=0, le=100)
    reasoning: str
    evidence: List[str] = []
    missing: List[str] = []


class GapEntry(FrozenModel):
    pillar: str
    status: GapStatus
    score: int
    detail: str
    issue: Optional[str] = None
    fix: Optional[str] = None


class GapAnalysis(FrozenModel):
    compliant: bool
    strengths: List[GapEntry] = []
    gaps: List[GapEntry] = []
    summary: str
    primary_blocker: Optional[str] = None
    alignment_pathway: Optional[str] = None

    @property
    def gap_count(self) -> int:
        return len(self.gaps)

    @property
    def strength_count(self) -> int:
        return len(self.strengths)


class ComplianceVerdict(FrozenModel):
    framework: str
    overall_score: int = Field(ge=0, le=100)
    weighted_score: float
    evidence_strength: float
    compliant: bool
    components: Dict[str, ComplianceComponentScore]
    gap_analysis: GapAnalysis


class SPOSimulation(FrozenModel):
    simulated_score: int
    opinion: str
    assessment: List[str]
    disclaimer: str = 'This is a simulated SPO assessment. Actual SPO requires independent third-party review.'


class MonitoringCapability(FrozenModel):
    capability: str
    recommendation: str
    suggested_kpis: List[str] = []


class GLPVerdict(ComplianceVerdict):
    framework: str = 'LMA Green Loan Principles'
    eligible_categories: List[str] = []
    required_evidence: List[str] = []
    spo_simulation: SPOSimulation
    monitoring: MonitoringCapability


class ContributingObjective(FrozenModel):
    objective: str
    code: str
    score: int
    via_tsc: bool = False


class SubstantialContribution(FrozenModel):
    contributes: bool
    score: int
    primary_objective: Optional[str] = None
    objectives: List[ContributingObjective] = []
    reasoning: str


class DNSHViolation(FrozenModel):
    harm: str
    severity: str


class DNSHCheck(FrozenModel):
    passes: bool
    violations: List[DNSHViolation] = []
    mitigated: List[str] = []
    critical_violations: bool = False
    note: str


class ThresholdCheck(FrozenModel):
    metric: str
    required: str
    description: str
    found: Optional[str] = None
    status: Optional[GapStatus] = None


class ThresholdValidation(FrozenModel):
    score: int
    confidence: float
    validated: List[ThresholdCheck] = []
    missing: List[ThresholdCheck] = []
    note: str

    @property
    def failed(self) -> List[ThresholdCheck]:
        return [t for t in self.validated if t.status == GapStatus.FAIL]

    @property
    def passed(self) -> List[ThresholdCheck]:
        return [t for t in self.validated if t.status == GapStatus.PASS]


class TechnicalCriteria(FrozenModel):
    matched_activity: Optional[str] = None
    nace_code: Optional[str] = None
    match_score: int = 0
    thresholds: List[ThresholdRule] = []
    validation: ThresholdValidation


class MinimumSafeguards(FrozenModel):
    compliant: bool
    concerns: List[str] = []
    note: str


class ActivityType(FrozenModel):
    type: str
    description: str


class Article8Disclosure(FrozenModel):
    taxonomy_aligned_percentage: int
    eligible_but_not_aligned_percentage: int
    not_eligible_percentage: int
    environmental_objective: str
    activity_nace_code: str
    substantial_contribution_criteria: str
    dnsh_compliant: bool
    minimum_safeguards_compliant: bool


class TaxonomyVerdict(ComplianceVerdict):
    framework: str = 'EU Taxonomy'
    substantial_contribution: SubstantialContribution
    dnsh: DNSHCheck
    technical_criteria: TechnicalCriteria
    minimum_safeguards: MinimumSafeguards
    activity_type: ActivityType
    article_8_disclosure: Article8Disclosure
    summary: str

    @property
    def eligible(self) -> bool:
        return self.compliant


class GreenwashingFlag(FrozenModel):
    flag: str
    severity: str


class GreenwashingAssessment(FrozenModel):
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    flags: List[GreenwashingFlag] = []
    recommendation: str


class AttributionItem(FrozenModel):
    category: str
    name: str
    score_contribution: int
    max_possible: int
    percentage: int
    details: str
    is_negative: bool = False


class Attribution(FrozenModel):
    attributions: List[AttributionItem]
    total_positive: int
    total_negative: int
    base_offset: int
    attributed_score: int = Field(ge=0, le=100)
    divergence: int = 0


class Suggestion(FrozenModel):
    priority: str
    category: str
    suggestion: str
    potential_gain: int


class Explainability(FrozenModel):
    attribution: Attribution
    narrative: str
    improvement_suggestions: List[Suggestion] = []


class LocalAssessment(FrozenModel):
    """Core fields produced by the aggregator before explanation."""

    green_score: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    recommendation: Recommendation
    roi_projection: float
    key_strengths: List[str] = []
    key_risks: List[str] = []
    source: str = 'semantic_local'
    reasoning_summary: Optional[str] = None


class EvaluationResult(FrozenModel):
    green_score: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    recommendation: Recommendation
    roi_projection: float
    semantic: SemanticAnalysis
    glp: GLPVerdict
    taxonomy: TaxonomyVerdict
    greenwashing: GreenwashingAssessment
    key_strengths: List[str] = []
    key_risks: List[str] = []
    analysis_source: str
    confidence: int
    confidence_level: str
    explainability: Explainability
    reasoning: str
    model_version: str


class DocumentAnalysis(FrozenModel):
    """Evidence read from already-extracted supporting document text."""

    document_length: int
    semantic_score: int
    primary_category: Optional[SimilarityResult] = None
    evidence_found: List[str] = []
    metrics: Dict[str, ExtractedMetric] = {}
    excerpt: str = ''


def format_value(value) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
