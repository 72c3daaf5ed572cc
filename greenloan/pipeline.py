"""
Evaluation pipeline for Green Loan Evaluation.

Runs the semantic, Green Loan Principles, EU Taxonomy and greenwashing
analyses, aggregates them, optionally consults the narrative service and
explains the outcome.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Union

from greenloan.config import Settings
from greenloan.constants import MODEL_VERSION
from greenloan.decision import determine_final_assessment
from greenloan.explainability import explain
from greenloan.glp import evaluate_glp
from greenloan.greenwashing import detect_greenwashing
from greenloan.keywords import DOCUMENT_EVIDENCE_KEYWORDS
from greenloan.metrics import extract_metrics
from greenloan.models import Application, DocumentAnalysis, EvaluationResult
from greenloan.narrative import NarrativeClient
from greenloan.scoring import aggregate, calculate_confidence, get_confidence_level
from greenloan.similarity import CategoryMatcher
from greenloan.taxonomy import evaluate_taxonomy
from greenloan.vectorizer import EmbeddingProvider, LocalVectorizer, RemoteEmbeddingProvider

logger = logging.getLogger(__name__)

DOCUMENT_ANALYSIS_CHARS = 5000
DOCUMENT_METRIC_CHARS = 10000
EXCERPT_CHARS = 200


def build_provider(settings: Settings) -> EmbeddingProvider:
    local = LocalVectorizer(settings.cache_size)
    if settings.remote_embeddings and settings.api_key:
        return RemoteEmbeddingProvider(
            settings.api_key,
            settings.embedding_url,
            settings.embedding_model,
            timeout=settings.embedding_timeout,
            cache_size=settings.cache_size,
            fallback=local,
        )
    return local


class Evaluator:
    """Holds the embedding provider, category matcher and narrative client."""

    def __init__(self, settings: Optional[Settings] = None, provider: Optional[EmbeddingProvider] = None,
                 narrative_client: Optional[NarrativeClient] = None, parallel: bool = False,
                 max_workers: int = 4):
        self.settings = settings or Settings()
        self.provider = provider or build_provider(self.settings)
        self.matcher = CategoryMatcher(self.provider)
        if narrative_client is None:
            narrative_client = NarrativeClient.from_settings(self.settings)
        self.narrative_client = narrative_client
        self.parallel = parallel
        self.max_workers = max_workers

    @classmethod
    def from_env(cls, **kwargs) -> 'Evaluator':
        return cls(settings=Settings.from_env(), **kwargs)

    def _analyze(self, application: Application):
        if not self.parallel:
            greenwashing = detect_greenwashing(application.purpose)
            return (
                self.matcher.analyze(application.purpose),
                evaluate_glp(application, greenwashing),
                evaluate_taxonomy(application),
                greenwashing,
            )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            semantic = executor.submit(self.matcher.analyze, application.purpose)
            glp = executor.submit(evaluate_glp, application)
            taxonomy = executor.submit(evaluate_taxonomy, application)
            greenwashing = executor.submit(detect_greenwashing, application.purpose)
            return semantic.result(), glp.result(), taxonomy.result(), greenwashing.result()

    def evaluate(self, application: Union[Application, dict]) -> EvaluationResult:
        """Evaluate one loan application."""
        if not isinstance(application, Application):
            application = Application.model_validate(application)

        semantic, glp, taxonomy, greenwashing = self._analyze(application)
        local = aggregate(semantic, glp, taxonomy, greenwashing, application.amount)

        remote = None
        if self.narrative_client is not None:
            remote = self.narrative_client.assess(application, semantic, glp, taxonomy, greenwashing)
        final = determine_final_assessment(local, remote, glp, taxonomy, greenwashing)

        confidence = calculate_confidence(semantic, glp, taxonomy, greenwashing, remote=remote is not None)
        explainability = explain(semantic, glp, taxonomy, greenwashing, final.green_score)

        reasoning = explainability.narrative
        if final.reasoning_summary:
            reasoning = f"{final.reasoning_summary}\n{reasoning}"

        logger.info("Evaluated application %s: green=%d risk=%d -> %s (%s)",
                    application.application_id or '-', final.green_score, final.risk_score,
                    final.recommendation.value, final.source)

        return EvaluationResult(
            green_score=final.green_score,
            risk_score=final.risk_score,
            recommendation=final.recommendation,
            roi_projection=final.roi_projection,
            semantic=semantic,
            glp=glp,
            taxonomy=taxonomy,
            greenwashing=greenwashing,
            key_strengths=final.key_strengths,
            key_risks=final.key_risks,
            analysis_source=final.source,
            confidence=confidence,
            confidence_level=get_confidence_level(confidence / 100),
            explainability=explainability,
            reasoning=reasoning,
            model_version=MODEL_VERSION,
        )

    def analyze_document(self, text: str) -> DocumentAnalysis:
        """
        Analyze already-extracted supporting document text.

        The opening of a document (usually the executive summary) drives the
        semantic score; evidence keywords are searched in the whole text.
        """
        clean = re.sub(r'\s+', ' ', text or '').strip()
        context = clean[:DOCUMENT_ANALYSIS_CHARS]
        semantic = self.matcher.analyze(context)
        clean_lower = clean.lower()

        return DocumentAnalysis(
            document_length=len(clean),
            semantic_score=semantic.final_score,
            primary_category=semantic.primary_category,
            evidence_found=[kw for kw in DOCUMENT_EVIDENCE_KEYWORDS if kw in clean_lower],
            metrics=extract_metrics(clean[:DOCUMENT_METRIC_CHARS]),
            excerpt=context[:EXCERPT_CHARS] + ('...' if len(context) > EXCERPT_CHARS else ''),
        )


_default_evaluator = None


def _get_default() -> Evaluator:
    global _default_evaluator
    if _default_evaluator is None:
        _default_evaluator = Evaluator.from_env()
    return _default_evaluator


def evaluate(application: Union[Application, dict]) -> EvaluationResult:
    """Evaluate with an Evaluator configured from the environment."""
    return _get_default().evaluate(application)


def analyze_document(text: str) -> DocumentAnalysis:
    return _get_default().analyze_document(text)
