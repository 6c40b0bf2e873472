from pathlib import Path

import pytest

from hotel_search.config import Settings
from hotel_search.engine import HotelSearchEngine
from hotel_search.models import DateRange
from hotel_search.services.reference_index import ReferenceIndex

# Pytest only picks up fixtures from conftest.py files. Fixtures defined in other
# modules (like tests/seeds.py) are invisible unless we register them here.
pytest_plugins = ["tests.seeds"]

# Fixed reference dataset shared by the whole suite (read-only)
DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(scope="session")
def data_settings() -> Settings:
    return Settings(data_dir=DATA_DIR)


@pytest.fixture(scope="session")
def reference_index(data_settings: Settings) -> ReferenceIndex:
    """Index over tests/data, loaded once per session."""
    sources = data_settings.reference_sources()
    return ReferenceIndex.load(
        sources.cities, sources.hotels, sources.advertisers, sources.hotel_advertisers
    )


@pytest.fixture
def engine(data_settings: Settings) -> HotelSearchEngine:
    engine = HotelSearchEngine(data_settings)
    engine.initialize()
    return engine


@pytest.fixture
def date_range() -> DateRange:
    return DateRange(start=20180214, end=20180216)
