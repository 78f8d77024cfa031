import pytest
from doubles import StubFacts, StubNews, StubWeather

from geopulse.config import Settings
from geopulse.services import Aggregator


@pytest.fixture
def settings() -> Settings:
    return Settings(FETCH_JOIN_TIMEOUT=0.5)


@pytest.fixture
def make_aggregator(settings):
    def factory(facts=None, weather=None, news=None) -> Aggregator:
        return Aggregator(
            facts=facts or StubFacts(),
            weather=weather or StubWeather(),
            news=news or StubNews(),
            settings=settings,
        )

    return factory
