"""Tests for attribution, narrative, suggestions and the audit trail."""
from datetime import datetime, timezone

import pytest

from greenloan.constants import ATTRIBUTION_TOLERANCE, MODEL_VERSION, RiskLevel
from greenloan.explainability import (
    create_audit_entry,
    explain_result,
    generate_attribution,
    generate_improvement_suggestions,
    generate_narrative,
    hash_input,
)
from greenloan.glp import evaluate_glp
from greenloan.greenwashing import detect_greenwashing
from greenloan.models import Application, GreenwashingAssessment
from greenloan.scoring import clamp
from greenloan.similarity import CategoryMatcher
from greenloan.taxonomy import evaluate_taxonomy


def _parts(application):
    return (
        CategoryMatcher().analyze(application.purpose),
        evaluate_glp(application),
        evaluate_taxonomy(application),
        detect_greenwashing(application.purpose),
    )


class TestAttribution:
    def test_solar_breakdown(self, solar_application):
        attribution = generate_attribution(*_parts(solar_application), green_score=89)
        contributions = {a.category: a.score_contribution for a in attribution.attributions}
        assert contributions == {
            'semantic_alignment': 35,
            'quantified_impact': 25,
            'regulatory_compliance': 19,
            'risk_factors': 0,
        }
        assert attribution.attributed_score == 94
        assert attribution.divergence == 5

    @pytest.mark.parametrize('fixture', ['solar_application', 'vague_application', 'generic_application',
                                         'coal_application'])
    def test_sum_holds(self, fixture, request):
        attribution = generate_attribution(*_parts(request.getfixturevalue(fixture)))
        assert (sum(a.score_contribution for a in attribution.attributions)
                == attribution.total_positive - attribution.total_negative)
        expected = clamp(attribution.total_positive - attribution.total_negative + attribution.base_offset)
        assert attribution.attributed_score == expected
        for item in attribution.attributions:
            assert abs(item.score_contribution) <= abs(item.max_possible)

    def test_risk_is_negative(self, vague_application):
        attribution = generate_attribution(*_parts(vague_application))
        risk = next(a for a in attribution.attributions if a.category == 'risk_factors')
        assert risk.is_negative is True
        assert risk.score_contribution == -9
        assert attribution.total_negative == 9

    def test_divergence_within_tolerance(self, evaluator, solar_application, generic_application):
        for application in (solar_application, generic_application):
            result = evaluator.evaluate(application)
            assert result.explainability.attribution.divergence <= ATTRIBUTION_TOLERANCE


class TestNarrative:
    def test_approved(self, solar_application):
        narrative = generate_narrative(89, *_parts(solar_application))
        lines = narrative.split('\n')
        assert lines[0].startswith('APPROVED: This project scores 89/100')
        assert 'Metrics detected: Energy: 50 MW, CO2: 43800 tonnes CO2, Timeline: 24 months.' in lines

    def test_below_threshold_names_blocker(self, generic_application):
        narrative = generate_narrative(14, *_parts(generic_application))
        assert narrative.startswith('BELOW THRESHOLD: Score 14/100. Primary issue: No eligible green category')
        assert 'LMA Green Loan Principles issues:' in narrative
        assert 'Missing metrics' in narrative

    def test_greenwashing_veto_is_not_approved(self, solar_application):
        semantic, _, taxonomy, _ = _parts(solar_application)
        greenwashing = GreenwashingAssessment(risk_score=50, risk_level=RiskLevel.HIGH,
                                              recommendation='Request specific metrics.')
        glp = evaluate_glp(solar_application, greenwashing)
        assert glp.compliant is False
        assert glp.gap_analysis.gaps == []

        headline = generate_narrative(89, semantic, glp, taxonomy, greenwashing).split('\n')[0]
        assert not headline.startswith('APPROVED')
        assert headline == ('REVIEW REQUIRED: Score 89/100. Primary issue: High greenwashing risk - '
                            'replace vague claims with specific, verifiable metrics.')

    def test_conditional_without_gaps(self, solar_application):
        headline = generate_narrative(60, *_parts(solar_application)).split('\n')[0]
        assert headline == 'CONDITIONAL: Score 60/100.'

    def test_greenwashing_warning(self, vague_application):
        narrative = generate_narrative(43, *_parts(vague_application))
        assert 'GREENWASHING RISK HIGH' in narrative


class TestSuggestions:
    def test_sorted_by_gain(self, generic_application):
        semantic, glp, taxonomy, greenwashing = _parts(generic_application)
        attribution = generate_attribution(semantic, glp, taxonomy, greenwashing)
        suggestions = generate_improvement_suggestions(attribution, glp, taxonomy)
        gains = [s.potential_gain for s in suggestions]
        assert gains == sorted(gains, reverse=True)
        assert [s.category for s in suggestions] == ['Semantic Alignment', 'Quantified Impact',
                                                     'Regulatory Compliance']
        assert 'LMA Green Loan Principles' in suggestions[2].suggestion
        assert 'EU Taxonomy' in suggestions[2].suggestion

    def test_risk_suggestion(self, vague_application):
        semantic, glp, taxonomy, greenwashing = _parts(vague_application)
        attribution = generate_attribution(semantic, glp, taxonomy, greenwashing)
        suggestions = generate_improvement_suggestions(attribution, glp, taxonomy)
        assert any(s.category == 'Risk Reduction' and s.potential_gain == 9 for s in suggestions)

    def test_solar_has_little_to_improve(self, solar_application):
        semantic, glp, taxonomy, greenwashing = _parts(solar_application)
        attribution = generate_attribution(semantic, glp, taxonomy, greenwashing)
        suggestions = generate_improvement_suggestions(attribution, glp, taxonomy)
        assert [s.potential_gain for s in suggestions] == [6]


class TestAuditEntry:
    def test_entry(self, evaluator, solar_application):
        result = evaluator.evaluate(solar_application)
        timestamp = datetime(2024, 3, 1, tzinfo=timezone.utc)
        entry = create_audit_entry(solar_application, result, timestamp=timestamp)

        assert entry['timestamp'] == '2024-03-01T00:00:00+00:00'
        assert entry['applicant'] == 'Sunfield Energy Ltd'
        assert entry['final_score'] == result.green_score
        assert entry['recommendation'] == 'APPROVE'
        assert entry['model_version'] == MODEL_VERSION
        assert entry['evidence']['primary_category'] == 'renewable_energy'
        assert entry['evidence']['quantified_metrics_count'] == 3
        assert len(entry['attribution_summary']) == 4
        assert entry['input_hash'] == hash_input(solar_application)

    def test_hash_ignores_location(self, solar_text):
        a = Application(purpose=solar_text, amount=1, applicant_name='x', location='Arizona')
        b = Application(purpose=solar_text, amount=1, applicant_name='x')
        c = Application(purpose=solar_text, amount=2, applicant_name='x')
        assert hash_input(a) == hash_input(b)
        assert hash_input(a) != hash_input(c)
        assert len(hash_input(a)) == 64

    def test_explain_result_rebuilds(self, evaluator, solar_application):
        result = evaluator.evaluate(solar_application)
        assert explain_result(result) == result.explainability
