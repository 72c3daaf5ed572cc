"""Tests for greenwashing detection."""
from greenloan.constants import RiskLevel
from greenloan.greenwashing import (
    NO_QUANTIFIED_CLAIMS,
    RECOMMENDATIONS,
    VAGUE_RATIO,
    detect_greenwashing,
    get_risk_level,
)


def _flags(assessment):
    return [f.flag for f in assessment.flags]


class TestRiskLevel:
    def test_boundaries(self):
        assert get_risk_level(0) == RiskLevel.LOW
        assert get_risk_level(24) == RiskLevel.LOW
        assert get_risk_level(25) == RiskLevel.MEDIUM
        assert get_risk_level(49) == RiskLevel.MEDIUM
        assert get_risk_level(50) == RiskLevel.HIGH


class TestDetectGreenwashing:
    def test_quantified_purpose_is_low_risk(self, solar_text):
        result = detect_greenwashing(solar_text)
        assert result.risk_score == 0
        assert result.risk_level == RiskLevel.LOW
        assert result.flags == []
        assert result.recommendation == RECOMMENDATIONS[RiskLevel.LOW]

    def test_vague_purpose_is_high_risk(self, vague_text):
        result = detect_greenwashing(vague_text)
        assert result.risk_score == 60
        assert result.risk_level == RiskLevel.HIGH
        flags = _flags(result)
        assert 'Vague carbon claims without methodology' in flags
        assert 'Reliance on offsets vs direct emission reduction' in flags
        assert 'Generic environmental buzzwords without specifics' in flags
        assert 'Future commitments vs current action' in flags
        assert NO_QUANTIFIED_CLAIMS in flags

    def test_fossil_fuel_is_high_severity(self, coal_text):
        result = detect_greenwashing(coal_text)
        fossil = [f for f in result.flags if f.flag == 'Fossil fuel involvement detected']
        assert len(fossil) == 1
        assert fossil[0].severity == 'high'
        assert result.risk_score == 30

    def test_mitigator_suppresses_only_its_indicator(self):
        text = "Fleet will be carbon neutral, verified by an accredited body, with 40 electric buses."
        flags = _flags(detect_greenwashing(text))
        assert 'Vague carbon claims without methodology' not in flags
        assert 'Future commitments vs current action' in flags

    def test_fossil_replacement_is_mitigated(self):
        result = detect_greenwashing("Replacement of diesel buses with 40 electric buses.")
        assert 'Fossil fuel involvement detected' not in _flags(result)

    def test_third_party_claim_not_flagged(self):
        verified = detect_greenwashing("Savings of 20% backed by a third-party claim review.")
        unverified = detect_greenwashing("Savings of 20% are claimed by management.")
        assert 'Unverified claims without third-party validation' not in _flags(verified)
        assert 'Unverified claims without third-party validation' in _flags(unverified)

    def test_vague_ratio(self):
        result = detect_greenwashing("Green clean sustainable eco-friendly natural products.")
        assert VAGUE_RATIO in _flags(result)
        assert result.risk_score == 40
        assert result.risk_level == RiskLevel.MEDIUM

    def test_score_capped_at_100(self):
        text = "coal oil gas carbon neutral offset some partial plan to green claim"
        result = detect_greenwashing(text)
        assert result.risk_score == 100
        assert result.risk_level == RiskLevel.HIGH

    def test_empty_text(self):
        result = detect_greenwashing('')
        assert _flags(result) == [NO_QUANTIFIED_CLAIMS]
        assert result.risk_score == 20
