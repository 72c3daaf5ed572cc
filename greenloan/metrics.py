"""
Quantified metric extraction for Green Loan Evaluation.

Each metric key has exactly one pattern, applied to a lower-cased copy of
the text. The first match wins. Units are reported as written; no
conversion is attempted between equivalent units (kg vs tonnes).
"""

import re
from typing import Dict, Optional

from greenloan.models import ExtractedMetric, ThresholdRule

NUMBER = r'(\d+(?:,\d{3})*(?:\.\d+)?)'

# key -> (pattern, unit). A callable unit maps the unit group to a label.
IMPACT_PATTERNS = {
    'energy_capacity': (re.compile(NUMBER + r'\s*(gw|mw|kw)\b'),
                        lambda u: u.upper()),
    'energy_generated': (re.compile(NUMBER + r'\s*(gwh|mwh|kwh)\b'),
                         lambda u: u[:-1].upper() + 'h'),
    'carbon_reduction': (re.compile(NUMBER + r'\s*(tonne|ton|kg|mt)s?\s*(?:of\s+)?(?:co2|carbon)'),
                         lambda u: 'kg CO2' if u == 'kg' else 'tonnes CO2'),
    'timeline': (re.compile(r'(\d+)[\s-]*(month|year|day)s?\b'),
                 lambda u: u + 's'),
    'jobs_created': (re.compile(NUMBER + r'\s*(?:new\s+|permanent\s+|local\s+|green\s+)?(jobs?)\b'),
                     lambda u: 'jobs'),
    'efficiency_gain': (re.compile(r'(\d+(?:\.\d+)?)\s*(%)\s*(?:energy\s+)?(?:reduction|savings?|improvement|efficiency|gain)'),
                        lambda u: '%'),
    'project_area': (re.compile(NUMBER + r'\s*(hectares?|ha\b|acres?|km2|m2)'),
                     lambda u: _AREA_UNITS.get(u, u)),
}

_AREA_UNITS = {
    'hectare': 'hectares', 'hectares': 'hectares', 'ha': 'hectares',
    'acre': 'acres', 'acres': 'acres',
    'km2': 'km2', 'm2': 'm2',
}

# Taxonomy screening metrics. Flag metrics (compliance statements) carry no
# number and report 1.0 when the statement is present.
THRESHOLD_PATTERNS = {
    'lifecycle_emissions': re.compile(r'(\d+(?:\.\d+)?)\s*g?\s*co2e?\s*/\s*kwh'),
    'tailpipe_emissions': re.compile(
        r'(\d+(?:\.\d+)?)\s*g?\s*co2\s*/\s*km|zero[\s-]*(?:direct\s*)?(?:tailpipe\s*)?emission'),
    'co2_emissions': re.compile(r'(\d+(?:\.\d+)?)\s*g?\s*co2\s*/\s*km'),
    'energy_reduction': re.compile(r'(\d+(?:\.\d+)?)\s*%\s*(?:primary\s+)?(?:energy\s*)?reduction'),
    'primary_energy_demand': re.compile(r'(\d+(?:\.\d+)?)\s*%?\s*(?:below\s*)?nzeb'),
    'conversion_rate': re.compile(r'(\d+(?:\.\d+)?)\s*%\s*(?:conversion|recovery)'),
    'power_density': re.compile(r'(\d+(?:\.\d+)?)\s*w\s*/\s*m'),
    'biogas_recovery': re.compile(r'(\d+(?:\.\d+)?)\s*%\s*(?:of\s+)?biogas'),
    'energy_intensity': re.compile(r'(\d+(?:\.\d+)?)\s*kwh\s*/\s*m3'),
    'leakage_level': re.compile(r'(\d+(?:\.\d+)?)\s*ili\b|\bili\s*(?:of\s*)?(\d+(?:\.\d+)?)'),
    'airtightness': re.compile(r'(\d+(?:\.\d+)?)\s*(?:ach\s*)?(?:@\s*)?n50|n50\s*(?:of\s*)?(\d+(?:\.\d+)?)'),
}

FLAG_PATTERNS = {
    'meets_top_15': re.compile(r'top\s*15\s*%'),
    'thermal_bridging': re.compile(r'thermal[\s-]*bridg'),
    'energy_efficiency': re.compile(r'energy[\s-]*efficien'),
}

THRESHOLD_UNITS = {
    'lifecycle_emissions': 'g CO2e/kWh',
    'tailpipe_emissions': 'g CO2/km',
    'co2_emissions': 'g CO2/km',
    'energy_reduction': '%',
    'primary_energy_demand': '% below NZEB',
    'conversion_rate': '%',
    'power_density': 'W/m2',
    'biogas_recovery': '%',
    'energy_intensity': 'kWh/m3',
    'leakage_level': 'ILI',
    'airtightness': 'n50',
    'meets_top_15': 'boolean',
    'thermal_bridging': 'EN ISO 13789',
    'energy_efficiency': 'reference',
}


def _to_number(raw: str) -> float:
    return float(raw.replace(',', ''))


def extract_metrics(text: str) -> Dict[str, ExtractedMetric]:
    """
    Extract the quantified impact metrics from free text.

    Returns a dict keyed by metric name; keys that did not match are absent.
    """
    text_lower = (text or '').lower()
    metrics = {}

    for key, (pattern, unit_label) in IMPACT_PATTERNS.items():
        match = pattern.search(text_lower)
        if match:
            metrics[key] = ExtractedMetric(value=_to_number(match.group(1)), unit=unit_label(match.group(2)))

    return metrics


def extract_threshold_metric(text: str, key: str) -> Optional[ExtractedMetric]:
    """Extract one taxonomy screening metric, or None when it is not stated."""
    text_lower = (text or '').lower()
    unit = THRESHOLD_UNITS.get(key, '')

    if key in FLAG_PATTERNS:
        if FLAG_PATTERNS[key].search(text_lower):
            return ExtractedMetric(value=1.0, unit=unit)
        return None

    pattern = THRESHOLD_PATTERNS.get(key)
    if pattern is None:
        return None

    match = pattern.search(text_lower)
    if not match:
        return None

    # "zero emission" phrases state the value without a digit
    if 'zero' in match.group(0):
        return ExtractedMetric(value=0.0, unit=unit)

    raw = next(group for group in match.groups() if group is not None)
    return ExtractedMetric(value=_to_number(raw), unit=unit)


def meets_threshold(value: float, rule: ThresholdRule) -> bool:
    """Compare an extracted value with a screening rule."""
    if rule.operator == 'compliant':
        return True
    if isinstance(rule.value, bool):
        return bool(value) == rule.value

    required = float(rule.value)
    if rule.operator == '<':
        return value < required
    if rule.operator == '<=':
        return value <= required
    if rule.operator == '>':
        return value > required
    if rule.operator == '>=':
        return value >= required
    if rule.operator == '=':
        return value == required
    raise ValueError(f"Unknown threshold operator: {rule.operator}")
