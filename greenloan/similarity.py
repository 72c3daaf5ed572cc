"""
Category similarity matching for Green Loan Evaluation.

Written against the EmbeddingProvider capability only, so the lexical
vectorizer and a remote embedding service are interchangeable.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from greenloan.catalogue import GREEN_CATEGORY_REFERENCES
from greenloan.constants import SECONDARY_CATEGORY_BOOST, SIMILARITY_ELIGIBILITY_FLOOR
from greenloan.metrics import extract_metrics
from greenloan.models import CategoryReference, SemanticAnalysis, SimilarityResult
from greenloan.scoring import specificity_bonus
from greenloan.vectorizer import EmbeddingBatch, EmbeddingProvider, EmbeddingServiceError, LocalVectorizer

logger = logging.getLogger(__name__)


def cosine_similarity(a, b) -> float:
    """
    Cosine similarity that tolerates vectors of different length.

    The shorter vector is zero-padded. Returns 0.0 when either vector has
    zero magnitude.
    """
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.size != b.size:
        size = max(a.size, b.size)
        a = np.pad(a, (0, size - a.size))
        b = np.pad(b, (0, size - b.size))

    magnitude = float(np.linalg.norm(a) * np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return float(np.dot(a, b) / magnitude)


def semantic_score(results: Sequence[SimilarityResult]) -> int:
    """Primary weighted score plus a minor boost from the secondary match."""
    top = results[0].weighted_score if len(results) > 0 else 0.0
    second = results[1].weighted_score if len(results) > 1 else 0.0
    return int(round(max(0.0, min(100.0, top + second * SECONDARY_CATEGORY_BOOST))))


class CategoryMatcher:
    """Ranks the green category catalogue against a purpose text."""

    def __init__(self, provider: Optional[EmbeddingProvider] = None,
                 references: Sequence[CategoryReference] = GREEN_CATEGORY_REFERENCES):
        self.provider = provider or LocalVectorizer()
        self.references = tuple(references)
        self._descriptions = [ref.description for ref in self.references]

    def reference_vectors(self) -> EmbeddingBatch:
        """Catalogue vectors, re-requested per call so the source is current."""
        return self.provider.embed_batch(self._descriptions)

    def rank(self, vector, reference_vectors: Sequence) -> List[SimilarityResult]:
        results = []
        for ref, ref_vector in zip(self.references, reference_vectors):
            similarity = cosine_similarity(vector, ref_vector)
            results.append(SimilarityResult(
                category=ref.category,
                name=ref.name,
                similarity=round(similarity, 4),
                weighted_score=round(similarity * ref.weight * 100, 2),
                tsc_threshold=ref.tsc_threshold,
            ))
        # sorted() is stable, so catalogue order breaks ties
        return sorted(results, key=lambda r: -r.weighted_score)

    def match(self, vector, method: Optional[str] = None) -> List[SimilarityResult]:
        """
        Rank the catalogue against an already computed query vector.

        `method` names the source of the query vector (the provider's own
        by default). Raises EmbeddingServiceError when the catalogue vectors
        come from a different source.
        """
        method = method or self.provider.method
        references = self.reference_vectors()
        if references.method != method:
            raise EmbeddingServiceError(
                f"Reference vectors came from {references.method}, query vector from {method}")
        return self.rank(vector, references.vectors)

    def analyze(self, text: str) -> SemanticAnalysis:
        text = text or ''
        # One batch, so query and references share a vector source
        vectors, method = self.provider.embed_batch([text] + self._descriptions)
        results = self.rank(vectors[0], vectors[1:])

        metrics = extract_metrics(text)
        score = semantic_score(results)
        bonus = specificity_bonus(metrics)

        logger.debug("Semantic match %s (%.3f) via %s",
                     results[0].category if results else None,
                     results[0].similarity if results else 0.0, method)

        return SemanticAnalysis(
            semantic_score=score,
            specificity_bonus=bonus,
            final_score=min(100, score + bonus),
            primary_category=results[0] if len(results) > 0 else None,
            secondary_category=results[1] if len(results) > 1 else None,
            similarities=results,
            eligible_categories=[r.category for r in results if r.similarity >= SIMILARITY_ELIGIBILITY_FLOOR],
            quantified_metrics=metrics,
            analysis_method=method,
        )
