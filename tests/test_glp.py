"""Tests for the LMA Green Loan Principles evaluator."""
from greenloan.constants import GapStatus, RiskLevel
from greenloan.glp import (
    EVIDENCE_CHECK_COUNT,
    evaluate_glp,
    evaluate_management_of_proceeds,
    evaluate_project_selection,
    evaluate_reporting,
    evaluate_use_of_proceeds,
)
from greenloan.greenwashing import detect_greenwashing
from greenloan.models import Application


class TestUseOfProceeds:
    def test_multi_category_bonus(self, solar_text):
        component, matched, required = evaluate_use_of_proceeds(solar_text.lower())
        assert matched == ['Renewable Energy', 'Green Buildings']
        assert component.score == 100
        assert 'capacity_mw' in required
        assert 'certification_target' in required

    def test_no_category(self, generic_text):
        component, matched, required = evaluate_use_of_proceeds(generic_text.lower())
        assert matched == []
        assert component.score == 20
        assert required == []

    def test_single_category_uses_weight(self):
        component, matched, _ = evaluate_use_of_proceeds('reforestation of degraded land')
        assert matched == ['Terrestrial and Aquatic Biodiversity Conservation']
        assert component.score == 85


class TestProjectSelection:
    def test_solar_signals(self, solar_text):
        component = evaluate_project_selection(solar_text.lower())
        assert component.evidence == [
            'Energy capacity/output', 'GHG reduction', 'Project timeline', 'Certification reference',
        ]
        assert 'Project location' in component.missing
        assert component.score == 100

    def test_location_argument_counts(self, generic_text):
        without = evaluate_project_selection(generic_text.lower())
        with_location = evaluate_project_selection(generic_text.lower(), location='Rotterdam')
        assert with_location.score == without.score + 5
        assert 'Project location' in with_location.evidence

    def test_nothing_found(self, generic_text):
        component = evaluate_project_selection(generic_text.lower())
        assert component.score == 40
        assert component.evidence == []
        assert 'critical gap' in component.reasoning


class TestManagementOfProceeds:
    def test_amount_tiers(self):
        text = 'solar farm'
        assert evaluate_management_of_proceeds(text, 0).score == 70
        assert evaluate_management_of_proceeds(text, 5_000_000).score == 90
        assert evaluate_management_of_proceeds(text, 10_000_000).score == 85
        assert evaluate_management_of_proceeds(text, 50_000_000).score == 80

    def test_multi_purpose_and_segregation(self):
        component = evaluate_management_of_proceeds('solar and storage in a ring-fenced account', 1_000_000)
        assert component.score == 85
        assert component.evidence == ['Proceeds segregation']
        assert component.missing == []


class TestReporting:
    def test_solar_reporting(self, solar_text):
        component = evaluate_reporting(solar_text.lower())
        assert component.evidence == ['GHG emissions avoided/reduced', 'Energy generated/saved']
        assert component.score == 90

    def test_base_score(self, generic_text):
        assert evaluate_reporting(generic_text.lower()).score == 35


class TestEvaluateGLP:
    def test_solar_is_compliant(self, solar_application):
        verdict = evaluate_glp(solar_application)
        assert verdict.overall_score == 80
        assert verdict.compliant is True
        assert verdict.weighted_score == 96
        assert verdict.evidence_strength == round(4 / EVIDENCE_CHECK_COUNT, 4)
        assert verdict.gap_analysis.gaps == []
        assert verdict.gap_analysis.strength_count == 4
        assert verdict.gap_analysis.primary_blocker is None
        assert verdict.spo_simulation.opinion == 'POSITIVE'
        assert verdict.monitoring.capability == 'HIGH'

    def test_generic_is_not_compliant(self, generic_application):
        verdict = evaluate_glp(generic_application)
        assert verdict.overall_score == 28
        assert verdict.compliant is False
        assert verdict.eligible_categories == []
        assert verdict.gap_analysis.primary_blocker.startswith('No eligible green category')
        assert verdict.monitoring.capability == 'LOW'

    def test_high_greenwashing_blocks(self, vague_application):
        verdict = evaluate_glp(vague_application)
        assert verdict.compliant is False
        assert verdict.gap_analysis.primary_blocker.startswith('High greenwashing risk')
        assert verdict.spo_simulation.opinion == 'NEGATIVE'

    def test_pillars_partition(self, vague_application):
        verdict = evaluate_glp(vague_application)
        gap_analysis = verdict.gap_analysis
        assert gap_analysis.gap_count + gap_analysis.strength_count == 4
        for gap in gap_analysis.gaps:
            assert gap.status in (GapStatus.PARTIAL, GapStatus.FAIL)
            assert gap.issue and gap.fix

    def test_precomputed_greenwashing_is_used(self, solar_application):
        assessment = detect_greenwashing('fossil coal offset carbon neutral')
        assert assessment.risk_level == RiskLevel.HIGH
        verdict = evaluate_glp(solar_application, assessment)
        assert verdict.compliant is False

    def test_empty_purpose(self):
        verdict = evaluate_glp(Application(purpose=''))
        assert verdict.compliant is False
        assert 0 <= verdict.overall_score <= 100
