from .aggregator import Aggregator, AggregatorState
from .country import CountryService
from .facts import FactsFetcher
from .news import NewsFetcher
from .risk import RiskModel
from .weather import WeatherFetcher

__all__ = [
    "Aggregator",
    "AggregatorState",
    "CountryService",
    "FactsFetcher",
    "NewsFetcher",
    "RiskModel",
    "WeatherFetcher",
]
