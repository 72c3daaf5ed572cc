"""Shared test fixtures."""
import sys
import os
import pytest

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from greenloan.config import Settings
from greenloan.models import Application
from greenloan.pipeline import Evaluator


SOLAR_TEXT = (
    "Installation of 50 MW solar photovoltaic power plant in Arizona over 24 months, "
    "avoiding 43,800 tonnes CO2 per year. Operations centre rated LEED Gold. "
    "Third-party verified annual impact reporting."
)


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    """Keep every test local and deterministic."""
    monkeypatch.delenv('GREENLOAN_API_KEY', raising=False)
    monkeypatch.delenv('DEEPSEEK_API_KEY', raising=False)
    monkeypatch.delenv('GREENLOAN_REMOTE_EMBEDDINGS', raising=False)


@pytest.fixture
def solar_text():
    """Well quantified renewable energy purpose."""
    return SOLAR_TEXT


@pytest.fixture
def vague_text():
    """Buzzword-heavy purpose with no numbers."""
    return (
        "We plan to implement sustainable green eco-friendly solutions across our operations. "
        "We are committed to carbon neutrality and will offset emissions through future initiatives."
    )


@pytest.fixture
def generic_text():
    """Purpose with no environmental content."""
    return "Business expansion and general capital expenditure for warehouse operations."


@pytest.fixture
def coal_text():
    """Fossil refurbishment that mentions efficiency."""
    return ("Refurbishment of coal-fired power station turbines to improve efficiency "
            "and extend plant life by 15 years.")


@pytest.fixture
def landfill_text():
    """Solar purpose with a high severity harm attached."""
    return SOLAR_TEXT + " Includes landfill expansion at the site."


@pytest.fixture
def solar_application(solar_text):
    return Application(purpose=solar_text, amount=5_000_000, applicant_name='Sunfield Energy Ltd')


@pytest.fixture
def vague_application(vague_text):
    return Application(purpose=vague_text, amount=2_000_000, applicant_name='Generic Corp')


@pytest.fixture
def generic_application(generic_text):
    return Application(purpose=generic_text, amount=1_000_000)


@pytest.fixture
def coal_application(coal_text):
    return Application(purpose=coal_text, amount=25_000_000, applicant_name='Legacy Power plc')


@pytest.fixture
def evaluator():
    return Evaluator(Settings())
