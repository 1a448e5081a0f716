from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from .errors import ProviderError, TransportError

T = TypeVar('T')


def _first(values: Any) -> str:
    if isinstance(values, list) and values:
        return str(values[0])
    return ''


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    return float(value)


@dataclass
class LocationInfo:
    name: str
    country: str
    localtime: str = ''  # provider format: "2024-01-01 14:30"
    region: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    timezone_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocationInfo':
        return cls(
            name=str(data.get('name') or ''),
            country=str(data.get('country') or ''),
            localtime=str(data.get('localtime') or ''),
            region=data.get('region'),
            lat=_float_or_none(data.get('lat')),
            lon=_float_or_none(data.get('lon')),
            timezone_id=data.get('timezone_id'),
        )

    @property
    def local_clock(self) -> str:
        """Time-of-day part of localtime ("14:30"), empty when the provider omitted it."""
        parts = self.localtime.split(' ')
        return parts[1] if len(parts) > 1 else ''


@dataclass
class CurrentConditions:
    temperature: int
    feelslike: Optional[int] = None
    humidity: Optional[int] = None
    wind_speed: Optional[float] = None
    wind_dir: str = ''
    description: str = ''
    icon: str = ''
    observation_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CurrentConditions':
        if data.get('temperature') is None:
            raise ValueError("current conditions without temperature")
        feelslike = data.get('feelslike')
        humidity = data.get('humidity')
        return cls(
            temperature=int(data['temperature']),
            feelslike=int(feelslike) if feelslike is not None else None,
            humidity=int(humidity) if humidity is not None else None,
            wind_speed=_float_or_none(data.get('wind_speed')),
            wind_dir=str(data.get('wind_dir') or ''),
            description=_first(data.get('weather_descriptions')),
            icon=_first(data.get('weather_icons')),
            observation_time=data.get('observation_time'),
        )


def _require_object(body: Any, operation: str) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise TransportError(f"Malformed {operation} response: expected a JSON object", operation)
    return body


@dataclass
class WeatherSnapshot:
    """Either a fully populated location + current pair, or a provider error. Never both."""
    location: Optional[LocationInfo] = None
    current: Optional[CurrentConditions] = None
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_body(cls, body: Any) -> 'WeatherSnapshot':
        body = _require_object(body, 'current')
        error = ProviderError.from_body(body)
        if error is not None:
            return cls(error=error)
        location = body.get('location')
        current = body.get('current')
        if not isinstance(location, dict) or not isinstance(current, dict):
            raise TransportError("Malformed current response: missing location or current block", 'current')
        try:
            return cls(location=LocationInfo.from_dict(location), current=CurrentConditions.from_dict(current))
        except (TypeError, ValueError) as e:
            raise TransportError(f"Malformed current response: {e}", 'current', e) from e


@dataclass
class HistoricalQuery:
    city: str
    date: str  # ISO yyyy-MM-dd, validated by the provider
    hourly: bool = True

    def params(self) -> Dict[str, Any]:
        return {
            'query': self.city,
            'historical_date': self.date,
            'hourly': 1 if self.hourly else 0,
        }


@dataclass
class HistoricalSnapshot:
    location: Optional[LocationInfo] = None
    current: Optional[CurrentConditions] = None
    days: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_body(cls, body: Any) -> 'HistoricalSnapshot':
        body = _require_object(body, 'historical')
        error = ProviderError.from_body(body)
        if error is not None:
            return cls(error=error)
        location = body.get('location')
        days = body.get('historical')
        if not isinstance(location, dict) or not isinstance(days, dict):
            raise TransportError("Malformed historical response: missing location or historical block", 'historical')
        bad_days = sorted(str(date) for date, day in days.items() if not isinstance(day, dict))
        if bad_days:
            raise TransportError(f"Malformed historical response: non-object day entries {bad_days}", 'historical')
        current = body.get('current')
        try:
            return cls(
                location=LocationInfo.from_dict(location),
                current=CurrentConditions.from_dict(current) if isinstance(current, dict) else None,
                days=days,
            )
        except (TypeError, ValueError) as e:
            raise TransportError(f"Malformed historical response: {e}", 'historical', e) from e


@dataclass
class MarineQuery:
    latitude: float
    longitude: float

    def serialize(self) -> str:
        return f"{self.latitude},{self.longitude}"

    @classmethod
    def parse(cls, coords: str) -> 'MarineQuery':
        parts = [p.strip() for p in coords.split(',')]
        if len(parts) != 2:
            raise ValueError(f"Expected 'lat,lon', got {coords!r}")
        try:
            return cls(latitude=float(parts[0]), longitude=float(parts[1]))
        except ValueError as e:
            raise ValueError(f"Expected numeric 'lat,lon', got {coords!r}") from e


@dataclass
class MarineSnapshot:
    coords: str
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ProviderError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_body(cls, coords: str, body: Any) -> 'MarineSnapshot':
        # Marine payloads vary by plan; anything without an error is kept as-is
        body = _require_object(body, 'marine')
        error = ProviderError.from_body(body)
        if error is not None:
            return cls(coords=coords, error=error)
        data = {k: v for k, v in body.items() if k not in ('success', 'error')}
        return cls(coords=coords, data=data)


@dataclass
class Ok(Generic[T]):
    value: T
    ok: bool = field(default=True, init=False)

    def unwrap(self) -> T:
        return self.value


@dataclass
class Err:
    error: Union[TransportError, ProviderError]
    ok: bool = field(default=False, init=False)

    @property
    def message(self) -> str:
        return str(self.error)

    def unwrap(self):
        raise self.error


FetchResult = Union[Ok[T], Err]
