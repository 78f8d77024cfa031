from .country import CountryRecord, ErrorDetail, LookupResult
from .news import NewsArticle
from .weather import WeatherCondition, WeatherSnapshot

__all__ = [
    "CountryRecord",
    "ErrorDetail",
    "LookupResult",
    "NewsArticle",
    "WeatherCondition",
    "WeatherSnapshot",
]
