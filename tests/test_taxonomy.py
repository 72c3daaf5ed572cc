"""Tests for the EU Taxonomy evaluator."""
from greenloan.catalogue import TAXONOMY_ACTIVITIES
from greenloan.constants import GapStatus
from greenloan.models import Application
from greenloan.taxonomy import (
    assess_minimum_safeguards,
    check_dnsh,
    check_substantial_contribution,
    determine_activity_type,
    evaluate_taxonomy,
    match_activity,
    validate_thresholds,
)

SOLAR_PV = next(a for a in TAXONOMY_ACTIVITIES if a.key == 'solar_pv')


class TestMatchActivity:
    def test_solar(self, solar_text):
        activity, score = match_activity(solar_text.lower())
        assert activity.key == 'solar_pv'
        assert score == 40

    def test_wind(self):
        activity, score = match_activity('wind farm with offshore wind turbines')
        assert activity.key == 'wind'
        assert score == 80

    def test_no_match(self, generic_text):
        assert match_activity(generic_text.lower()) == (None, 0)


class TestValidateThresholds:
    def test_missing_metric(self, solar_text):
        validation = validate_thresholds(solar_text, SOLAR_PV)
        assert validation.score == 50
        assert [m.metric for m in validation.missing] == ['lifecycle_emissions']
        assert validation.confidence == 0.3

    def test_passing_metric(self, solar_text):
        validation = validate_thresholds(solar_text + ' Lifecycle emissions of 35 gCO2e/kWh.', SOLAR_PV)
        assert validation.score == 65
        assert validation.passed[0].found == '35 g CO2e/kWh'
        assert validation.confidence == 1.0
        assert validation.note == 'All applicable thresholds verified'

    def test_failing_metric(self, solar_text):
        validation = validate_thresholds(solar_text + ' Lifecycle emissions of 150 gCO2e/kWh.', SOLAR_PV)
        assert validation.score == 40
        assert validation.failed[0].status == GapStatus.FAIL
        assert validation.failed[0].required == '< 100 g CO2e/kWh'

    def test_no_activity(self):
        validation = validate_thresholds('anything', None)
        assert validation.score == 30
        assert validation.validated == []


class TestSubstantialContribution:
    def test_tsc_activity_contributes(self, solar_text):
        contribution = check_substantial_contribution(solar_text.lower(), SOLAR_PV)
        assert contribution.contributes is True
        assert contribution.score == 80
        assert contribution.objectives[0].via_tsc is True
        assert contribution.primary_objective == 'Climate Change Mitigation'

    def test_keyword_objectives(self, coal_text):
        contribution = check_substantial_contribution(coal_text.lower(), None)
        assert contribution.contributes is True
        assert contribution.score == 100
        assert [o.code for o in contribution.objectives] == ['CCM', 'CE']

    def test_nothing(self, generic_text):
        contribution = check_substantial_contribution(generic_text.lower(), None)
        assert contribution.contributes is False
        assert contribution.objectives == []


class TestDNSH:
    def test_coal_is_critical(self, coal_text):
        dnsh = check_dnsh(coal_text.lower())
        assert dnsh.passes is False
        assert dnsh.critical_violations is True
        assert dnsh.violations[0].severity == 'critical'

    def test_coal_phase_out_is_mitigated(self):
        dnsh = check_dnsh('phase-out of coal power replaced by 200 mw solar')
        assert dnsh.passes is True
        assert dnsh.mitigated == ['Significant harm to climate mitigation - fossil fuel']

    def test_clean_text(self, solar_text):
        dnsh = check_dnsh(solar_text.lower())
        assert dnsh.passes is True
        assert dnsh.violations == []


class TestSafeguardsAndType:
    def test_safeguard_concern(self):
        safeguards = assess_minimum_safeguards('supplier audits found forced labour')
        assert safeguards.compliant is False
        assert safeguards.concerns == ['Human rights concern']

    def test_activity_types(self, solar_text, coal_text, generic_text):
        assert determine_activity_type(solar_text.lower()).type == 'TAXONOMY_ALIGNED'
        assert determine_activity_type(coal_text.lower()).type == 'TRANSITIONAL'
        assert determine_activity_type('manufacturing of turbine components').type == 'ENABLING'
        assert determine_activity_type(generic_text.lower()).type == 'ELIGIBLE'


class TestEvaluateTaxonomy:
    def test_solar_is_eligible(self, solar_application):
        verdict = evaluate_taxonomy(solar_application)
        assert verdict.overall_score == 75
        assert verdict.eligible is True
        assert verdict.evidence_strength == 0.75
        assert verdict.technical_criteria.matched_activity.startswith('4.1')
        assert verdict.article_8_disclosure.taxonomy_aligned_percentage == 100
        assert verdict.summary.startswith('EU Taxonomy ALIGNED')

    def test_verified_threshold_raises_score(self, solar_application, solar_text):
        baseline = evaluate_taxonomy(solar_application)
        verdict = evaluate_taxonomy(Application(purpose=solar_text + ' Lifecycle emissions of 35 gCO2e/kWh.'))
        assert verdict.overall_score > baseline.overall_score
        assert verdict.evidence_strength == 1.0
        assert verdict.technical_criteria.validation.missing == []

    def test_every_gap_has_remediation(self, solar_text, coal_application, generic_application):
        verified = Application(purpose=solar_text + ' Lifecycle emissions of 20 gCO2e/kWh.')
        screening = next(g for g in evaluate_taxonomy(verified).gap_analysis.gaps
                         if g.pillar == 'Technical Screening Criteria')
        assert screening.status == GapStatus.PARTIAL
        assert screening.issue
        assert 'lifecycle assessment' in screening.fix

        for application in (verified, coal_application, generic_application):
            for gap in evaluate_taxonomy(application).gap_analysis.gaps:
                assert gap.issue
                assert gap.fix

    def test_critical_harm_vetoes(self, coal_application):
        verdict = evaluate_taxonomy(coal_application)
        assert verdict.substantial_contribution.contributes is True
        assert verdict.dnsh.critical_violations is True
        assert verdict.eligible is False
        assert verdict.components['do_no_significant_harm'].score == 0
        assert verdict.gap_analysis.primary_blocker.startswith('DNSH violation')
        assert verdict.article_8_disclosure.eligible_but_not_aligned_percentage == 100
        assert verdict.article_8_disclosure.dnsh_compliant is False

    def test_high_harm_vetoes_despite_score(self, landfill_text):
        verdict = evaluate_taxonomy(Application(purpose=landfill_text))
        assert verdict.overall_score >= 60
        assert verdict.dnsh.violations[0].severity == 'high'
        assert verdict.eligible is False

    def test_medium_harm_only_lowers_score(self, solar_text):
        verdict = evaluate_taxonomy(Application(purpose=solar_text + ' Packaging uses single-use plastic.'))
        assert verdict.dnsh.violations[0].severity == 'medium'
        assert verdict.components['do_no_significant_harm'].score == 75
        assert verdict.eligible is True

    def test_generic_not_eligible(self, generic_application):
        verdict = evaluate_taxonomy(generic_application)
        assert verdict.overall_score == 29
        assert verdict.eligible is False
        assert verdict.article_8_disclosure.not_eligible_percentage == 100
        assert verdict.gap_analysis.primary_blocker.startswith('No substantial contribution')

    def test_pillars_partition(self, coal_application):
        gap_analysis = evaluate_taxonomy(coal_application).gap_analysis
        assert gap_analysis.gap_count + gap_analysis.strength_count == 5
