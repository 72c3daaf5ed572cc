"""
Canonical lexical tables for Green Loan Evaluation.

Based on the LMA Green Loan Principles (2023) and the EU Taxonomy Regulation
(2020/852) with its Climate Delegated Act.

All matching is done against a lower-cased copy of the purpose text. Plain
string terms are substring matches (so 'recycl' covers recycling, recycled,
recyclable); compiled patterns are used where a substring would be ambiguous.

IMPORTANT: Keep every table declarative. Evaluators iterate these tables and
must not special-case individual entries.
"""

import re

# ============================================================================
# FEATURE VECTOR THEMES
# ============================================================================
# (theme, terms, scale). Score = min(hits / 3, 1) * scale.
CONTEXT_THEMES = [
    ('solar', ('solar', 'photovoltaic', 'pv ', 'sunlight', 'panel'), 1.0),
    ('wind', ('wind', 'turbine', 'windmill', 'offshore', 'onshore'), 1.0),
    ('hydro', ('hydroelectric', 'hydropower', 'dam ', 'water power', 'run-of-river'), 1.0),
    ('geothermal', ('geothermal', 'ground source', 'heat pump'), 1.0),
    ('efficiency', ('efficiency', 'retrofit', 'insulation', 'hvac', 'led lighting', 'smart'), 1.0),
    ('building', ('building', 'construction', 'leed', 'breeam', 'nzeb', 'passive house'), 1.0),
    ('transport', ('electric vehicle', 'ev charging', 'charging', 'fleet', 'zero emission', 'electric bus'), 1.0),
    ('carbon', ('carbon', 'co2', 'emission', 'greenhouse', 'ghg', 'sequester'), 1.0),
    ('waste', ('waste', 'recycl', 'circular', 'landfill', 'compost'), 1.0),
    ('water', ('water', 'wastewater', 'treatment', 'desalination'), 1.0),
    ('biodiversity', ('forest', 'reforest', 'habitat', 'ecosystem', 'biodiversity', 'wildlife'), 1.0),
    ('agriculture', ('organic', 'regenerative', 'agroforestry', 'soil carbon', 'farm', 'crop'), 1.0),
    ('concrete_actions', ('install', 'deploy', 'construct', 'implement', 'upgrade', 'replace'), 1.0),
]

# Binary specificity signals: 1 when the pattern is present.
SPECIFICITY_SIGNALS = [
    ('has_energy_metrics', re.compile(r'\d+\s*(?:mw|kw|gw|kwh|mwh|gwh)\b')),
    ('has_carbon_numbers', re.compile(r'\d[\d,.]*\s*(?:tonne|ton|kg)s?\b.*?co2')),
    ('has_timeline', re.compile(r'\d+[\s-]*(?:month|year|day)s?\b')),
    ('has_certification', re.compile(r'leed|breeam|iso\s*14001|green bond|certif|third[\s-]party')),
]

# Red flags: fossil mentions pull the vector away, buzzwords and future tense
# are kept but heavily down-weighted.
RED_FLAG_THEMES = [
    ('fossil_mentions', ('coal', ' oil', 'natural gas', 'fossil', 'diesel', 'petrol'), -1.0),
    ('vague_claims', ('eco-friendly', 'green', 'sustainable', 'clean'), 0.1),
    ('future_only', ('will', 'plan to', 'intend', 'future', 'proposed'), 0.5),
]

# ============================================================================
# LMA GREEN LOAN PRINCIPLES - ELIGIBLE GREEN PROJECT CATEGORIES
# ============================================================================
GLP_ELIGIBLE_CATEGORIES = {
    'renewable_energy': {
        'keywords': ('solar', 'wind', 'hydro', 'geothermal', 'biomass', 'biogas', 'tidal', 'wave', 'renewable'),
        'weight': 1.0,
        'description': 'Renewable Energy',
        'required_evidence': ('capacity_mw', 'annual_generation_mwh', 'co2_avoided_tonnes'),
    },
    'energy_efficiency': {
        'keywords': ('efficiency', 'retrofit', 'insulation', 'led lighting', 'smart grid', 'heat pump', 'hvac',
                     'building management'),
        'weight': 0.95,
        'description': 'Energy Efficiency',
        'required_evidence': ('baseline_consumption', 'projected_savings_percent', 'payback_years'),
    },
    'pollution_prevention': {
        'keywords': ('emission', 'pollution', 'filter', 'scrubber', 'clean', 'carbon capture', 'ccs', 'air quality'),
        'weight': 0.9,
        'description': 'Pollution Prevention and Control',
        'required_evidence': ('emissions_baseline', 'emissions_target', 'reduction_percent'),
    },
    'sustainable_water': {
        'keywords': ('water treatment', 'wastewater', 'desalination', 'irrigation', 'water conservation',
                     'water recycling'),
        'weight': 0.9,
        'description': 'Environmentally Sustainable Water Management',
        'required_evidence': ('water_volume_m3', 'treatment_capacity', 'reuse_percentage'),
    },
    'clean_transport': {
        'keywords': ('electric vehicle', 'ev charging', 'charging', 'rail', 'public transport', 'bicycle', 'hydrogen',
                     'fleet electrification', 'electric bus'),
        'weight': 0.95,
        'description': 'Clean Transportation',
        'required_evidence': ('vehicles_count', 'emissions_avoided', 'passengers_served'),
    },
    'green_building': {
        'keywords': ('leed', 'breeam', 'green building', 'net zero', 'passive house', 'sustainable construction',
                     'nzeb'),
        'weight': 0.9,
        'description': 'Green Buildings',
        'required_evidence': ('certification_target', 'energy_intensity_kwh_m2', 'floor_area_m2'),
    },
    'biodiversity': {
        'keywords': ('forest', 'reforestation', 'conservation', 'habitat', 'ecosystem', 'wildlife', 'afforestation'),
        'weight': 0.85,
        'description': 'Terrestrial and Aquatic Biodiversity Conservation',
        'required_evidence': ('area_hectares', 'species_protected', 'carbon_sequestered'),
    },
    'circular_economy': {
        'keywords': ('recycl', 'reuse', 'waste', 'circular', 'upcycl', 'compost', 'material recovery'),
        'weight': 0.85,
        'description': 'Circular Economy Products and Processes',
        'required_evidence': ('waste_diverted_tonnes', 'recycling_rate_percent', 'energy_recovered_mwh'),
    },
    'sustainable_agriculture': {
        'keywords': ('organic', 'sustainable agriculture', 'agroforestry', 'permaculture', 'regenerative',
                     'precision farming'),
        'weight': 0.8,
        'description': 'Sustainable Agriculture',
        'required_evidence': ('land_area_hectares', 'yield_improvement', 'input_reduction'),
    },
    'climate_adaptation': {
        'keywords': ('flood', 'drought', 'resilience', 'adaptation', 'climate risk', 'sea level', 'storm protection'),
        'weight': 0.85,
        'description': 'Climate Change Adaptation',
        'required_evidence': ('population_protected', 'assets_protected_value', 'risk_reduction_percent'),
    },
}

NO_CATEGORY_SCORE = 20
MULTI_CATEGORY_BONUS = 10

# Project evaluation checklist: (signal, pattern or metric key, boost).
# A string second element is a Metric Extractor key.
QUANTIFICATION_CHECKS = [
    ('Energy capacity/output', re.compile(r'(\d+(?:\.\d+)?)\s*(?:mw|kw|gw|mwh|kwh|gwh)\b'), 20),
    ('GHG reduction', re.compile(r'(\d+(?:,\d{3})*(?:\.\d+)?)\s*(?:tonne|ton|kg|mt)s?\s*(?:of\s+)?(?:co2|carbon|ghg)'), 25),
    ('Efficiency gains', re.compile(r'(\d+(?:\.\d+)?)\s*%\s*(?:energy\s+)?(?:reduction|savings|improvement|efficiency)'), 15),
    ('Project timeline', 'timeline', 10),
    ('Certification reference', re.compile(r'leed|breeam|iso\s*14001|green\s*bond\s*principles'), 15),
    ('Project area', 'project_area', 10),
    ('Job creation', 'jobs_created', 5),
]

LOCATION_PATTERN = re.compile(r'\blocated\b|\blocation\b|\bsite\b|\bregion\b|\bcountry\b')
LOCATION_BOOST = 5
BASELINE_PATTERN = re.compile(r'baseline|current|existing|before|benchmark')
BASELINE_BOOST = 10

MULTI_PURPOSE_PATTERN = re.compile(r'\band\b|\bmultiple\b|\bvarious\b|\bgeneral\b')
SEGREGATION_PATTERN = re.compile(r'segregat|ring[\s-]?fence|dedicated|separate\s*account')

# Reporting checklist: (reportable metric, pattern, boost)
REPORTING_CHECKS = [
    ('GHG emissions avoided/reduced', re.compile(r'co2|carbon|emission|ghg'), 20),
    ('Energy generated/saved', re.compile(r'energy|electricity|power|kwh|mwh'), 15),
    ('Water conserved/treated', re.compile(r'water|wastewater|m3'), 10),
    ('Waste diverted/recycled', re.compile(r'waste|recycl|divert'), 10),
    ('Social impact (jobs/community)', re.compile(r'\bjob|employ|communit'), 10),
    ('Biodiversity/land area', re.compile(r'biodiversity|species|habitat|hectare'), 10),
]

VERIFICATION_PATTERN = re.compile(r'certif|audit|third[\s-]?party|external\s*review|verif|second[\s-]party opinion')
VERIFICATION_BOOST = 15
REPORTING_FREQUENCY_PATTERN = re.compile(r'annual|quarterly|monthly|report')
REPORTING_FREQUENCY_BOOST = 5

# Static per-signal remediation table used by gap analysis
REMEDIATION_EXAMPLES = {
    'Energy capacity/output': 'e.g., "50 MW capacity" or "120,000 MWh/year"',
    'GHG reduction': 'e.g., "43,800 tonnes CO2 avoided annually"',
    'Efficiency gains': 'e.g., "30% energy reduction"',
    'Project timeline': 'e.g., "24-month implementation"',
    'Certification reference': 'e.g., "targeting LEED Platinum"',
    'Project area': 'e.g., "1,200 hectares restored"',
    'Job creation': 'e.g., "85 permanent jobs"',
    'Project location': 'e.g., "located in the Andalusia region"',
    'Baseline reference': 'e.g., "against a 2023 baseline of 12 GWh"',
}

# ============================================================================
# GREENWASHING INDICATORS
# ============================================================================
# (pattern, flag, severity, false-positive mitigator or None)
GREENWASHING_INDICATORS = [
    (re.compile(r'carbon\s*neutral|net\s*zero'),
     'Vague carbon claims without methodology', 'medium',
     re.compile(r'verified|certified|science[\s-]based')),
    (re.compile(r'eco[\s-]?friendly|\bgreen\b|sustainable'),
     'Generic environmental buzzwords without specifics', 'low',
     re.compile(r'certification|standard|measurement')),
    (re.compile(r'offset|carbon\s*credit'),
     'Reliance on offsets vs direct emission reduction', 'medium',
     re.compile(r'additionality|verified|gold\s*standard')),
    (re.compile(r'\b(?:coal|oil|gas|fossil|diesel|petroleum)\b'),
     'Fossil fuel involvement detected', 'high',
     re.compile(r'phase[\s-]?out|replacement|transition\s*(?:away\s*)?from')),
    (re.compile(r'will\s+be|plan\s+to|intend|commit|future'),
     'Future commitments vs current action', 'low',
     re.compile(r'timeline|milestone|binding')),
    (re.compile(r'\bpartial|\bsome\b|\bportion\b|\bpartly\b'),
     'Partial green allocation unclear', 'medium',
     re.compile(r'\d+\s*%|ring[\s-]?fenced')),
    (re.compile(r'(?<!third-party )(?<!third party )(?<!independent )(?<!external )\bclaim'),
     'Unverified claims without third-party validation', 'low',
     None),
]

VAGUE_TERM_PATTERN = re.compile(r'eco[\s-]?friendly|\bsustainable\b|\bgreen\b|\beco\b|\bclean\b|\bnatural\b')
SPECIFIC_TERM_PATTERN = re.compile(r'\d+\s*(?:mw|kw|tonne|ton|%|m2|hectare)')

# ============================================================================
# EU TAXONOMY - ENVIRONMENTAL OBJECTIVES
# ============================================================================
TAXONOMY_OBJECTIVES = {
    'climate_mitigation': {
        'name': 'Climate Change Mitigation',
        'code': 'CCM',
        'keywords': ('solar', 'wind', 'hydro', 'renewable', 'electric vehicle', 'efficiency', 'carbon capture',
                     'hydrogen', 'geothermal', 'battery', 'storage'),
        'weight': 1.0,
    },
    'climate_adaptation': {
        'name': 'Climate Change Adaptation',
        'code': 'CCA',
        'keywords': ('flood', 'drought', 'resilience', 'adaptation', 'storm', 'sea level', 'heatwave', 'cooling'),
        'weight': 0.9,
    },
    'water': {
        'name': 'Sustainable Water & Marine Resources',
        'code': 'WTR',
        'keywords': ('water treatment', 'wastewater', 'desalination', 'marine', 'ocean', 'aquatic', 'watershed'),
        'weight': 0.85,
    },
    'circular_economy': {
        'name': 'Circular Economy',
        'code': 'CE',
        'keywords': ('recycl', 'reuse', 'repair', 'refurbish', 'waste', 'material recovery', 'upcycl', 'compost'),
        'weight': 0.85,
    },
    'pollution': {
        'name': 'Pollution Prevention & Control',
        'code': 'PPC',
        'keywords': ('emission', 'pollution', 'filter', 'clean air', 'remediation', 'decontamination', 'scrubber'),
        'weight': 0.85,
    },
    'biodiversity': {
        'name': 'Biodiversity & Ecosystems',
        'code': 'BIO',
        'keywords': ('forest', 'reforestation', 'conservation', 'habitat', 'ecosystem', 'biodiversity', 'wildlife',
                     'restoration'),
        'weight': 0.8,
    },
}

TSC_CONTRIBUTION_SCORE = 80
CONTRIBUTION_FLOOR = 50

# ============================================================================
# DO NO SIGNIFICANT HARM EXCLUSIONS
# ============================================================================
# (pattern, harm, severity, mitigator or None)
DNSH_EXCLUSIONS = [
    (re.compile(r'coal(?!ition)'),
     'Significant harm to climate mitigation - fossil fuel', 'critical',
     re.compile(r'phase[\s-]?out|decommission|closure of|replac\w*\s+(?:\w+\s+)?coal|transition\s+(?:away\s+)?from')),
    (re.compile(r'oil\s*(?:extraction|drilling|exploration|field)'),
     'Fossil fuel extraction harms climate objectives', 'critical',
     None),
    (re.compile(r'fracking|hydraulic\s*fracturing'),
     'Unconventional fossil fuel extraction', 'critical',
     None),
    (re.compile(r'natural\s*gas.*(?:exploration|extraction|production)'),
     'Fossil fuel exploration incompatible', 'critical',
     None),
    (re.compile(r'nuclear\s*waste'),
     'Potential harm to pollution prevention', 'high',
     re.compile(r'geological\s+disposal|licensed\s+repository')),
    (re.compile(r'deforestation|clear[\s-]*cut|logging.*primary'),
     'Harm to biodiversity and ecosystems', 'critical',
     re.compile(r'zero[\s-]deforestation|deforestation[\s-]free|prevent\w*\s+deforestation|halt\w*\s+deforestation')),
    (re.compile(r'landfill\s*(?:expansion|new)'),
     'Counter to circular economy objectives', 'high',
     None),
    (re.compile(r'palm\s*oil.*(?:plantation|deforest)'),
     'Associated with biodiversity loss', 'high',
     re.compile(r'rspo|certified\s+sustainable\s+palm')),
    (re.compile(r'peat\s*(?:extraction|land)'),
     'Carbon stock destruction', 'high',
     re.compile(r'peat\w*\s+(?:restoration|rewetting)|rewet')),
    (re.compile(r'single[\s-]*use\s*plastic'),
     'Counter to circular economy', 'medium',
     re.compile(r'eliminat\w*\s+single[\s-]*use|replac\w*\s+single[\s-]*use|reduc\w*\s+single[\s-]*use')),
]

# (pattern, concern)
SAFEGUARD_CONCERNS = [
    (re.compile(r'forced\s*labou?r|child\s*labou?r'), 'Human rights concern'),
    (re.compile(r'bribery|corruption'), 'Anti-corruption concern'),
]

# (pattern, type, description), evaluated in order
ACTIVITY_TYPES = [
    (re.compile(r'direct.*reduc|generat.*renewable|install.*solar|wind\s*farm|solar\s*farm'),
     'TAXONOMY_ALIGNED', 'Directly contributes to environmental objectives'),
    (re.compile(r'manufactur.*component|supply.*equipment|produc.*battery'),
     'ENABLING', 'Enables other activities to substantially contribute'),
    (re.compile(r'transition|improv.*efficiency|reduc.*emission|upgrad'),
     'TRANSITIONAL', 'Transitional activity where low-carbon alternatives do not yet exist'),
]
DEFAULT_ACTIVITY_TYPE = ('ELIGIBLE', 'Activity type requires manual classification')

# ============================================================================
# DOCUMENT EVIDENCE
# ============================================================================
DOCUMENT_EVIDENCE_KEYWORDS = (
    'certificate', 'iso 14001', 'leed', 'breeam', 'impact report', 'audit', 'emissions report',
)
