"""
Weatherstack API client for current, historical and marine conditions.
Provides a pass-through HTTP layer plus Ok/Err wrappers over typed snapshots.
"""

__all__ = [
    'WeatherClient', 'AsyncWeatherClient', 'WeatherSettings',
    'WeatherError', 'TransportError', 'ProviderError',
    'LocationInfo', 'CurrentConditions', 'WeatherSnapshot',
    'HistoricalQuery', 'HistoricalSnapshot', 'MarineQuery', 'MarineSnapshot',
    'Ok', 'Err', 'FetchResult',
]

from .client import AsyncWeatherClient, WeatherClient
from .config import WeatherSettings
from .errors import ProviderError, TransportError, WeatherError
from .models import (
    CurrentConditions,
    Err,
    FetchResult,
    HistoricalQuery,
    HistoricalSnapshot,
    LocationInfo,
    MarineQuery,
    MarineSnapshot,
    Ok,
    WeatherSnapshot,
)
