"""
Reference catalogues for Green Loan Evaluation.

GREEN_CATEGORY_REFERENCES are the "ideal" project descriptions each
application is compared against. They deliberately carry quantities,
timelines and certification language so that their vectors include the
same specificity signals a well-documented application produces.

TAXONOMY_ACTIVITIES holds the EU Taxonomy Technical Screening Criteria
(Climate Delegated Act, Annex I) used by the threshold validator.
"""

from greenloan.models import ActivityDefinition, CategoryReference, ThresholdRule

GREEN_CATEGORY_REFERENCES = (
    CategoryReference(
        category='renewable_energy',
        name='Renewable Energy',
        description=(
            'Installation and operation of a 100 MW solar photovoltaic power generation facility producing '
            'electricity from sunlight through rooftop and ground-mounted panel arrays, avoiding 60,000 tonnes '
            'CO2 emissions per year, commissioned within 18 months and certified by an independent verifier'
        ),
        weight=1.0,
        tsc_threshold='Lifecycle emissions < 100g CO2e/kWh',
        nace_code='D35.11',
    ),
    CategoryReference(
        category='wind_energy',
        name='Wind Energy',
        description=(
            'Construction and operation of a 60 MW onshore wind turbine park generating electricity from wind, '
            'avoiding 90,000 tonnes CO2 emissions a year, delivered over 20 months with ISO 14001 certified '
            'operations'
        ),
        weight=1.0,
        tsc_threshold='Lifecycle emissions < 100g CO2e/kWh',
        nace_code='D35.11',
    ),
    CategoryReference(
        category='energy_efficiency',
        name='Energy Efficiency',
        description=(
            'Building retrofit with insulation, LED lighting, smart HVAC controls and energy management, an '
            'upgrade of building systems delivering a 35% energy efficiency improvement, saving 2,400 MWh and '
            '900 tonnes CO2 each year within 12 months'
        ),
        weight=0.95,
        tsc_threshold='Top 15% energy performance or 30%+ reduction',
        nace_code='F43.29',
    ),
    CategoryReference(
        category='clean_transport',
        name='Clean Transport',
        description=(
            'Electric vehicle fleet acquisition of 200 electric bus units and 50 EV charging stations replacing '
            'combustion engine buses, deploying zero emission transport that avoids 15,000 tonnes CO2 annually '
            'over 24 months'
        ),
        weight=0.95,
        tsc_threshold='Zero direct tailpipe emissions or < 50g CO2/km',
        nace_code='H49.31',
    ),
    CategoryReference(
        category='green_building',
        name='Green Building',
        description=(
            'Construction of a net-zero energy building certified LEED Platinum or BREEAM Outstanding, with '
            'passive house design, rooftop solar panels and heat pump heating, cutting 1,200 tonnes CO2 per year '
            'over a 30 month build'
        ),
        weight=0.9,
        tsc_threshold='NZEB standard or top 15% of national building stock',
        nace_code='F41.20',
    ),
    CategoryReference(
        category='water_management',
        name='Water Management',
        description=(
            'Wastewater treatment plant upgrade with advanced filtration and water recycling, treating 40,000 m3 '
            'per day to cut freshwater abstraction by 30% and energy use by 2,000 MWh, completed within 24 months'
        ),
        weight=0.85,
        tsc_threshold='Energy efficiency improvement or water reuse > 50%',
        nace_code='E37.00',
    ),
    CategoryReference(
        category='circular_economy',
        name='Circular Economy',
        description=(
            'Materials recovery and recycling facility processing 50,000 tonnes of post-consumer waste a year '
            'into secondary raw materials, diverting waste from landfill and avoiding 20,000 tonnes CO2 over a '
            '36 month programme'
        ),
        weight=0.85,
        tsc_threshold='Waste diversion > 50% or material recovery demonstrated',
        nace_code='E38.32',
    ),
    CategoryReference(
        category='sustainable_agriculture',
        name='Sustainable Agriculture',
        description=(
            'Regenerative agriculture programme converting 2,000 hectares of farm land to organic crop rotation '
            'and agroforestry, increasing soil carbon and sequestering 8,000 tonnes CO2 per year over 5 years'
        ),
        weight=0.8,
        tsc_threshold='Organic certification or measurable soil carbon increase',
        nace_code='A01.11',
    ),
    CategoryReference(
        category='biodiversity',
        name='Biodiversity',
        description=(
            'Ecosystem restoration and reforestation project planting 500,000 native trees across 1,500 hectares '
            'of degraded forest land to restore wildlife habitat and sequester 120,000 tonnes CO2 over 10 years'
        ),
        weight=0.8,
        tsc_threshold='Net positive impact on biodiversity demonstrated',
        nace_code='A02.10',
    ),
)

_LIFECYCLE_EMISSIONS = ThresholdRule(
    metric='lifecycle_emissions', operator='<', value=100, unit='g CO2e/kWh',
    description='Lifecycle GHG emissions',
)

TAXONOMY_ACTIVITIES = (
    ActivityDefinition(
        key='solar_pv',
        activity='4.1 Electricity generation using solar photovoltaic technology',
        nace='D35.11',
        keywords=('solar', 'photovoltaic', 'pv ', 'solar panel', 'solar farm'),
        thresholds=(_LIFECYCLE_EMISSIONS,),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='wind',
        activity='4.3 Electricity generation from wind power',
        nace='D35.11',
        keywords=('wind', 'wind turbine', 'wind farm', 'offshore wind', 'onshore wind'),
        thresholds=(_LIFECYCLE_EMISSIONS,),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='hydro',
        activity='4.5 Electricity generation from hydropower',
        nace='D35.11',
        keywords=('hydroelectric', 'hydropower', 'dam ', 'run-of-river'),
        thresholds=(
            _LIFECYCLE_EMISSIONS,
            ThresholdRule(metric='power_density', operator='>', value=5, unit='W/m2',
                          description='Power density of reservoir'),
        ),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='ev_transport',
        activity='6.5 Transport by motorbikes, passenger cars and light commercial vehicles',
        nace='H49.32, H49.39',
        keywords=('electric vehicle', 'ev charging', 'zero emission', 'battery electric', 'hydrogen vehicle',
                  'electric bus'),
        thresholds=(
            ThresholdRule(metric='tailpipe_emissions', operator='=', value=0, unit='g CO2/km',
                          description='Zero direct tailpipe emissions'),
            ThresholdRule(metric='co2_emissions', operator='<', value=50, unit='g CO2/km',
                          description='For vehicles with combustion engine'),
        ),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='new_buildings',
        activity='7.1 Construction of new buildings',
        nace='F41.1, F41.2',
        keywords=('construction of', 'new building', 'nzeb', 'passive house', 'net zero building'),
        thresholds=(
            ThresholdRule(metric='primary_energy_demand', operator='>=', value=10, unit='% below NZEB',
                          description='At least 10% below NZEB threshold'),
            ThresholdRule(metric='airtightness', operator='<', value=0.6, unit='n50',
                          description='Airtightness test result'),
            ThresholdRule(metric='thermal_bridging', operator='compliant', value='compliant', unit='EN ISO 13789',
                          description='Thermal bridge compliance'),
        ),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='building_renovation',
        activity='7.2 Renovation of existing buildings',
        nace='F41, F43',
        keywords=('renovation', 'retrofit', 'building upgrade', 'energy efficiency', 'insulation'),
        thresholds=(
            ThresholdRule(metric='energy_reduction', operator='>=', value=30, unit='%',
                          description='Primary energy demand reduction'),
            ThresholdRule(metric='meets_top_15', operator='=', value=True, unit='boolean',
                          description='Top 15% of national building stock'),
        ),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='geothermal',
        activity='4.25 Production of heat/cool from geothermal energy',
        nace='D35.30',
        keywords=('geothermal', 'ground source', 'heat pump', 'district heating'),
        thresholds=(_LIFECYCLE_EMISSIONS,),
        objective_code='CCM',
    ),
    ActivityDefinition(
        key='water_systems',
        activity='5.1 Water collection, treatment and supply systems',
        nace='E36.00, F42.21',
        keywords=('water treatment', 'water supply', 'desalination', 'water infrastructure'),
        thresholds=(
            ThresholdRule(metric='energy_intensity', operator='<', value=0.5, unit='kWh/m3',
                          description='Net energy consumption'),
            ThresholdRule(metric='leakage_level', operator='<', value=1.5, unit='ILI',
                          description='Infrastructure Leakage Index'),
        ),
        objective_code='WTR',
    ),
    ActivityDefinition(
        key='wastewater',
        activity='5.3 Waste water collection and treatment',
        nace='E37.00, F42.21',
        keywords=('wastewater', 'sewage', 'water recycling', 'effluent treatment'),
        thresholds=(
            ThresholdRule(metric='energy_efficiency', operator='compliant', value='best practice', unit='reference',
                          description='Energy efficiency requirements'),
            ThresholdRule(metric='biogas_recovery', operator='>=', value=90, unit='%',
                          description='Biogas capture if applicable'),
        ),
        objective_code='WTR',
    ),
    ActivityDefinition(
        key='material_recovery',
        activity='5.9 Material recovery from non-hazardous waste',
        nace='E38.32',
        keywords=('recycling', 'material recovery', 'waste processing', 'secondary materials'),
        thresholds=(
            ThresholdRule(metric='conversion_rate', operator='>=', value=50, unit='%',
                          description='Weight % of input converted to secondary materials'),
        ),
        objective_code='CE',
    ),
)


def get_reference(category: str):
    """Look up a category reference by id. Returns None if unknown."""
    for reference in GREEN_CATEGORY_REFERENCES:
        if reference.category == category:
            return reference
    return None
