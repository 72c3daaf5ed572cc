"""
Green Loan Evaluation Package

Scores loan purposes against the LMA Green Loan Principles and the EU
Taxonomy, detects greenwashing and explains every decision.
"""

from greenloan.constants import MODEL_VERSION, GapStatus, Recommendation, RiskLevel
from greenloan.config import Settings
from greenloan.models import Application, DocumentAnalysis, EvaluationResult
from greenloan.metrics import extract_metrics, extract_threshold_metric
from greenloan.vectorizer import (
    EmbeddingBatch,
    EmbeddingCache,
    EmbeddingServiceError,
    LocalVectorizer,
    RemoteEmbeddingProvider,
    vectorize,
)
from greenloan.similarity import CategoryMatcher, cosine_similarity, semantic_score
from greenloan.glp import evaluate_glp
from greenloan.taxonomy import evaluate_taxonomy
from greenloan.greenwashing import detect_greenwashing
from greenloan.scoring import aggregate, calculate_confidence, choose_recommendation, get_confidence_level
from greenloan.decision import determine_final_assessment
from greenloan.explainability import (
    create_audit_entry,
    explain,
    explain_result,
    generate_attribution,
    generate_improvement_suggestions,
    generate_narrative,
)
from greenloan.narrative import NarrativeClient, NarrativeResponse, NarrativeServiceError
from greenloan.pipeline import Evaluator, analyze_document, evaluate
