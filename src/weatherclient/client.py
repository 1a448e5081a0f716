from __future__ import annotations
from typing import Any, Callable, Dict, Optional, Union
import logging
import re
import httpx

from .config import WeatherSettings
from .errors import ProviderError, TransportError
from .models import (
    Err,
    FetchResult,
    HistoricalQuery,
    HistoricalSnapshot,
    MarineQuery,
    MarineSnapshot,
    Ok,
    WeatherSnapshot,
)


_ACCESS_KEY_PARAM = re.compile(r"(access_key=)[^&\s\"']+")


class _AccessKeyFilter(logging.Filter):
    """Masks the access_key query value in records of the HTTP libraries, which log full request URLs."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _ACCESS_KEY_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


_key_filter = _AccessKeyFilter()
for _name in ('httpx', 'httpcore', 'httpcore.connection', 'httpcore.http11', 'httpcore.http2', 'httpcore.proxy'):
    logging.getLogger(_name).addFilter(_key_filter)


class _WeatherClientBase:
    """Request building and response decoding shared by the sync and async clients."""

    def __init__(self, settings: WeatherSettings):
        self.settings = settings
        self._log = logging.getLogger(__name__)

    # ---------------- Internal Helpers -----------------
    def _url(self, path: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}{path}"

    def _params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        full = {'access_key': self.settings.access_key}
        full.update(params)
        if self.settings.units and self.settings.units != 'm':
            full['units'] = self.settings.units
        return full

    def _redact(self, text: str) -> str:
        key = self.settings.access_key
        return text.replace(key, '***') if key else text

    def _fail(self, operation: str, message: str, cause: Optional[BaseException] = None) -> TransportError:
        message = self._redact(message)
        self._log.error(f"Error fetching {operation} weather: {message}")
        return TransportError(message, operation, cause)

    def _decode(self, operation: str, path: str, resp) -> Dict[str, Any]:
        if not 200 <= resp.status_code < 300:
            raise self._fail(operation, f"HTTP {resp.status_code} from {path}: {resp.text[:200]}")
        content_bytes = getattr(resp, "content", None)
        if content_bytes is not None and not content_bytes:
            raise self._fail(operation, f"Empty response body from {path}")
        try:
            body = resp.json()
        except ValueError as e:  # JSON decode error
            raise self._fail(operation, f"Non-JSON response from {path}: {resp.text[:200]}", e) from e
        if not isinstance(body, dict):
            raise self._fail(operation, f"Unexpected response shape from {path}: {type(body).__name__}")
        return body

    def _result(self, operation: str, build: Callable[[], Any]) -> FetchResult:
        try:
            snapshot = build()
        except TransportError as e:
            self._log.error(f"Error parsing {operation} weather: {e}")
            return Err(e)
        if snapshot.error is not None:
            self._log.info(f"Provider rejected {operation} query: {snapshot.error!r}")
            return Err(snapshot.error)
        return Ok(snapshot)

    @staticmethod
    def _coords(coords: Union[str, MarineQuery]) -> str:
        return coords.serialize() if isinstance(coords, MarineQuery) else coords


class WeatherClient(_WeatherClientBase):
    """
    Client for the Weatherstack API.

    The get_* methods are pass-throughs: they return the decoded JSON body unmodified,
    including any provider-reported ``error`` block, and raise TransportError only when
    the HTTP exchange itself fails. The fetch_* methods wrap them into Ok/Err results.
    """

    def __init__(self, settings: WeatherSettings, http_client: Optional[httpx.Client] = None):
        super().__init__(settings)
        self._client = http_client or httpx.Client(timeout=settings.timeout)

    def _get(self, operation: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self._client.get(self._url(path), params=self._params(params))
        except httpx.HTTPError as e:
            raise self._fail(operation, f"Request to {path} failed: {e!r}", e) from e
        return self._decode(operation, path, resp)

    def get_current(self, city: str) -> Dict[str, Any]:
        """Current conditions for a free-text location query."""
        return self._get('current', '/current', {'query': city})

    def get_historical(self, city: str, date: str) -> Dict[str, Any]:
        """Historical conditions, hourly, for a city on an ISO date (yyyy-MM-dd)."""
        return self._get('historical', '/historical', HistoricalQuery(city, date).params())

    def get_marine(self, coords: Union[str, MarineQuery]) -> Dict[str, Any]:
        """
        Marine conditions for a "lat,lon" query.

        Usually requires a paid plan; on lower plans the provider answers with an error
        body, which is returned like any other.
        """
        return self._get('marine', '/marine', {'query': self._coords(coords)})

    # ---------------- Tagged results -----------------
    def fetch_current(self, city: str) -> FetchResult[WeatherSnapshot]:
        try:
            body = self.get_current(city)
        except TransportError as e:
            return Err(e)
        return self._result('current', lambda: WeatherSnapshot.from_body(body))

    def fetch_historical(self, query: HistoricalQuery) -> FetchResult[HistoricalSnapshot]:
        try:
            body = self._get('historical', '/historical', query.params())
        except TransportError as e:
            return Err(e)
        return self._result('historical', lambda: HistoricalSnapshot.from_body(body))

    def fetch_marine(self, query: Union[str, MarineQuery]) -> FetchResult[MarineSnapshot]:
        coords = self._coords(query)
        try:
            body = self.get_marine(coords)
        except TransportError as e:
            return Err(e)
        return self._result('marine', lambda: MarineSnapshot.from_body(coords, body))

    def close(self):
        self._client.close()

    def __enter__(self) -> 'WeatherClient':
        return self

    def __exit__(self, *exc_info):
        self.close()


class AsyncWeatherClient(_WeatherClientBase):
    """Coroutine flavour of WeatherClient over httpx.AsyncClient; same contract."""

    def __init__(self, settings: WeatherSettings, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(settings)
        self._client = http_client or httpx.AsyncClient(timeout=settings.timeout)

    async def _get(self, operation: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await self._client.get(self._url(path), params=self._params(params))
        except httpx.HTTPError as e:
            raise self._fail(operation, f"Request to {path} failed: {e!r}", e) from e
        return self._decode(operation, path, resp)

    async def get_current(self, city: str) -> Dict[str, Any]:
        return await self._get('current', '/current', {'query': city})

    async def get_historical(self, city: str, date: str) -> Dict[str, Any]:
        return await self._get('historical', '/historical', HistoricalQuery(city, date).params())

    async def get_marine(self, coords: Union[str, MarineQuery]) -> Dict[str, Any]:
        return await self._get('marine', '/marine', {'query': self._coords(coords)})

    async def fetch_current(self, city: str) -> FetchResult[WeatherSnapshot]:
        try:
            body = await self.get_current(city)
        except TransportError as e:
            return Err(e)
        return self._result('current', lambda: WeatherSnapshot.from_body(body))

    async def fetch_historical(self, query: HistoricalQuery) -> FetchResult[HistoricalSnapshot]:
        try:
            body = await self._get('historical', '/historical', query.params())
        except TransportError as e:
            return Err(e)
        return self._result('historical', lambda: HistoricalSnapshot.from_body(body))

    async def fetch_marine(self, query: Union[str, MarineQuery]) -> FetchResult[MarineSnapshot]:
        coords = self._coords(query)
        try:
            body = await self.get_marine(coords)
        except TransportError as e:
            return Err(e)
        return self._result('marine', lambda: MarineSnapshot.from_body(coords, body))

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> 'AsyncWeatherClient':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


__all__ = ['WeatherClient', 'AsyncWeatherClient', 'TransportError', 'ProviderError']
