"""End-to-end tests for the evaluation pipeline."""
import json

import pytest
import requests

from greenloan import pipeline
from greenloan.config import Settings
from greenloan.constants import MODEL_VERSION, Recommendation, RiskLevel
from greenloan.models import Application
from greenloan.narrative import NarrativeClient
from greenloan.pipeline import Evaluator, build_provider
from greenloan.vectorizer import LocalVectorizer, RemoteEmbeddingProvider


class TestEvaluate:
    def test_solar_is_approved(self, evaluator, solar_application):
        result = evaluator.evaluate(solar_application)
        assert result.green_score == 89
        assert result.risk_score == 0
        assert result.recommendation == Recommendation.APPROVE
        assert result.roi_projection == 9.0
        assert result.glp.compliant is True
        assert result.taxonomy.eligible is True
        assert result.greenwashing.risk_level == RiskLevel.LOW
        assert result.analysis_source == 'semantic_local'
        assert result.semantic.analysis_method == 'local_semantic'
        assert result.confidence == 95
        assert result.confidence_level == 'high'
        assert result.model_version == MODEL_VERSION
        assert result.reasoning.startswith('APPROVED')

    def test_vague_is_flagged(self, evaluator, vague_application, solar_application):
        vague = evaluator.evaluate(vague_application)
        solar = evaluator.evaluate(solar_application)
        assert vague.greenwashing.risk_level == RiskLevel.HIGH
        assert vague.green_score < solar.green_score
        assert vague.recommendation == Recommendation.REJECT
        assert vague.glp.compliant is False

    def test_generic_scores_low(self, evaluator, generic_application):
        result = evaluator.evaluate(generic_application)
        assert result.semantic.final_score == 0
        assert result.green_score == 14
        assert result.recommendation == Recommendation.MANUAL_REVIEW
        assert result.glp.eligible_categories == []
        assert result.semantic.eligible_categories == []
        assert result.glp.compliant is False
        assert result.taxonomy.eligible is False

    def test_coal_is_not_eligible(self, evaluator, coal_application):
        result = evaluator.evaluate(coal_application)
        assert result.taxonomy.eligible is False
        assert result.taxonomy.dnsh.critical_violations is True
        assert result.recommendation != Recommendation.APPROVE

    def test_idempotent(self, evaluator, solar_application):
        first = evaluator.evaluate(solar_application).model_dump_json()
        second = Evaluator(Settings()).evaluate(solar_application).model_dump_json()
        assert first == second

    def test_parallel_matches_sequential(self, solar_application, vague_application):
        sequential = Evaluator(Settings())
        parallel = Evaluator(Settings(), parallel=True, max_workers=4)
        for application in (solar_application, vague_application):
            assert sequential.evaluate(application) == parallel.evaluate(application)

    def test_dict_input_is_normalized(self, evaluator, solar_text):
        result = evaluator.evaluate({'purpose': solar_text, 'amount': 'not a number'})
        reference = evaluator.evaluate(Application(purpose=solar_text, amount=0))
        assert result == reference

    @pytest.mark.parametrize('purpose', ['', None, 12345])
    def test_degenerate_purpose(self, evaluator, purpose):
        result = evaluator.evaluate({'purpose': purpose, 'amount': -10})
        assert 0 <= result.green_score <= 100
        assert result.semantic.final_score == 0

    def test_score_bounds(self, evaluator, solar_application, vague_application, coal_application):
        for application in (solar_application, vague_application, coal_application):
            result = evaluator.evaluate(application)
            assert 0 <= result.green_score <= 100
            assert 0 <= result.risk_score <= 100
            assert 30 <= result.confidence <= 100
            assert 0 <= result.explainability.attribution.attributed_score <= 100
            for verdict in (result.glp, result.taxonomy):
                assert all(0 <= c.score <= 100 for c in verdict.components.values())


class TestNarrativeIntegration:
    def test_remote_assessment_used(self, monkeypatch, solar_application):
        content = json.dumps({
            'green_score': 80,
            'risk_score': 20,
            'recommendation': 'APPROVE_WITH_CONDITIONS',
            'roi_projection': 7.5,
            'key_strengths': ['Solar'],
            'key_risks': ['Grid connection'],
            'reasoning_summary': 'Solid project.',
        })
        monkeypatch.setattr(requests, 'post', lambda *a, **kw: _Response(
            {'choices': [{'message': {'content': content}}]}))

        client = NarrativeClient('key', 'https://chat.test/v1/chat/completions')
        result = Evaluator(Settings(), narrative_client=client).evaluate(solar_application)

        assert result.green_score == 80
        assert result.recommendation == Recommendation.APPROVE_WITH_CONDITIONS
        assert result.analysis_source == 'narrative_service'
        assert result.confidence == 100
        assert result.reasoning.startswith('Solid project.')

    def test_service_failure_keeps_local(self, monkeypatch, evaluator, solar_application):
        def fake_post(*args, **kwargs):
            raise requests.ConnectionError('down')

        monkeypatch.setattr(requests, 'post', fake_post)
        client = NarrativeClient('key', 'https://chat.test/v1/chat/completions')
        result = Evaluator(Settings(), narrative_client=client).evaluate(solar_application)
        assert result == evaluator.evaluate(solar_application)


class _Response:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class TestProviderSelection:
    def test_local_by_default(self):
        assert isinstance(build_provider(Settings()), LocalVectorizer)

    def test_remote_needs_key_and_flag(self):
        assert isinstance(build_provider(Settings(remote_embeddings=True)), LocalVectorizer)
        assert isinstance(build_provider(Settings(api_key='k', remote_embeddings=True)), RemoteEmbeddingProvider)

    def test_remote_failure_falls_back(self, monkeypatch, solar_application, evaluator):
        def fake_post(*args, **kwargs):
            raise requests.Timeout('timed out')

        monkeypatch.setattr(requests, 'post', fake_post)
        settings = Settings(api_key='k', remote_embeddings=True)
        remote = Evaluator(settings, narrative_client=None)
        # the narrative client built from the key also fails and falls back
        result = remote.evaluate(solar_application)
        assert result.semantic.analysis_method == 'local_semantic'
        assert result.green_score == evaluator.evaluate(solar_application).green_score


class TestAnalyzeDocument:
    def test_document(self, evaluator, solar_text):
        document = solar_text + ' ISO 14001 certificate attached. Annual impact report published.'
        analysis = evaluator.analyze_document(document)
        assert analysis.primary_category.category == 'renewable_energy'
        assert 'certificate' in analysis.evidence_found
        assert 'iso 14001' in analysis.evidence_found
        assert 'impact report' in analysis.evidence_found
        assert analysis.metrics['energy_capacity'].value == 50
        assert analysis.excerpt.endswith('...')
        assert len(analysis.excerpt) == 203

    def test_short_document(self, evaluator):
        analysis = evaluator.analyze_document('Short   note.\n')
        assert analysis.document_length == len('Short note.')
        assert analysis.excerpt == 'Short note.'
        assert analysis.evidence_found == []

    def test_module_level_functions(self, monkeypatch, solar_application):
        monkeypatch.setattr(pipeline, '_default_evaluator', None)
        result = pipeline.evaluate(solar_application)
        assert result.recommendation == Recommendation.APPROVE
        assert pipeline.analyze_document('50 MW wind farm').metrics['energy_capacity'].value == 50
