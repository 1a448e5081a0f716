import asyncio
import datetime as dt

import httpx
import pytest

from weatherclient.client import AsyncWeatherClient
from weatherclient.config import WeatherSettings
from weatherclient.errors import ProviderError, TransportError
from weatherclient.models import Err, HistoricalQuery, MarineQuery, Ok, WeatherSnapshot
from weatherdash.controller import DashboardController, Failed, Idle, Loaded, Loading, StalePolicy, Tab


def snapshot(name, temperature=20):
    return WeatherSnapshot.from_body({
        "location": {"name": name, "country": "Somewhere"},
        "current": {"temperature": temperature, "humidity": 50},
    })


class FakeClient:
    """Records calls; answers from a queue of results (or awaitables gated by events)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def _next(self):
        result = self.results.pop(0)
        if isinstance(result, tuple):
            gate, result = result
            await gate.wait()
        return result

    async def fetch_current(self, city):
        self.calls.append(('current', city))
        return await self._next()

    async def fetch_historical(self, query):
        self.calls.append(('historical', query))
        return await self._next()

    async def fetch_marine(self, query):
        self.calls.append(('marine', query))
        return await self._next()


def test_initial_state():
    ctl = DashboardController(FakeClient(), today=dt.date(2024, 5, 1))
    assert ctl.query == 'New York'
    assert ctl.tab is Tab.CURRENT
    assert ctl.history_date == '2024-05-01'
    assert all(isinstance(v, Idle) for v in ctl.views.values())


def test_submit_success():
    snap = snapshot('Paris')
    client = FakeClient(Ok(snap))
    ctl = DashboardController(client)
    state = asyncio.run(ctl.submit('Paris'))
    assert state == Loaded(snap)
    assert ctl.state == Loaded(snap)
    assert ctl.query == 'Paris'
    assert client.calls == [('current', 'Paris')]


def test_submit_sets_loading_while_in_flight():
    snap = snapshot('Paris')
    ctl = DashboardController(FakeClient())

    async def scenario():
        gate = asyncio.Event()
        ctl.client.results.append((gate, Ok(snap)))
        task = asyncio.ensure_future(ctl.submit())
        await asyncio.sleep(0)
        seen = ctl.state
        gate.set()
        await task
        return seen

    seen = asyncio.run(scenario())
    assert isinstance(seen, Loading)
    assert ctl.state == Loaded(snap)


def test_provider_error_message_is_info_exactly():
    err = ProviderError(code=615, type='request_failed', info='City not found')
    ctl = DashboardController(FakeClient(Err(err)))
    state = asyncio.run(ctl.submit('Atlantis'))
    assert isinstance(state, Failed)
    assert state.message == 'City not found'
    assert state.error is err
    assert state.previous is None


def test_transport_error_message():
    err = TransportError('Request to /current failed: refused', 'current')
    ctl = DashboardController(FakeClient(Err(err)))
    state = asyncio.run(ctl.submit())
    assert state.message == 'Request to /current failed: refused'


def test_keep_policy_retains_previous_snapshot_on_failure():
    good = snapshot('Paris')
    err = ProviderError(615, 'request_failed', 'City not found')
    ctl = DashboardController(FakeClient(Ok(good), Err(err)), policy=StalePolicy.KEEP)

    async def scenario():
        await ctl.submit('Paris')
        return await ctl.submit('Atlantis')

    state = asyncio.run(scenario())
    assert state.message == 'City not found'
    assert state.previous is good


def test_clear_policy_drops_previous_snapshot():
    err = ProviderError(615, 'request_failed', 'City not found')
    ctl = DashboardController(FakeClient(Ok(snapshot('Paris')), Err(err)), policy='clear')

    async def scenario():
        await ctl.submit('Paris')
        return await ctl.submit('Atlantis')

    state = asyncio.run(scenario())
    assert state.previous is None


def test_late_stale_response_does_not_overwrite_newer():
    slow, fast = snapshot('Slow'), snapshot('Fast')
    client = FakeClient()
    ctl = DashboardController(client)

    async def scenario():
        slow_gate = asyncio.Event()
        client.results.extend([(slow_gate, Ok(slow)), Ok(fast)])
        first = asyncio.ensure_future(ctl.submit('Slow'))
        await asyncio.sleep(0)
        second = await ctl.submit('Fast')
        slow_gate.set()
        return await first, second

    first, second = asyncio.run(scenario())
    assert first is None
    assert second == Loaded(fast)
    assert ctl.state == Loaded(fast)


def test_local_state_changes_never_call_client():
    client = FakeClient()
    ctl = DashboardController(client)
    ctl.select_tab('history')
    ctl.set_history_date('2023-12-25')
    ctl.select_tab(Tab.MARINE)
    ctl.set_marine_coords('40.7,-74.0')
    ctl.select_tab(Tab.CURRENT)
    assert client.calls == []
    assert ctl.history_date == '2023-12-25'
    assert ctl.marine_coords == '40.7,-74.0'
    assert all(isinstance(v, Idle) for v in ctl.views.values())


def test_local_state_changes_make_no_http_requests():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={})

    client = AsyncWeatherClient(WeatherSettings(access_key='k'),
                                http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    ctl = DashboardController(client)
    ctl.select_tab(Tab.HISTORY)
    ctl.set_history_date('2024-01-01')
    ctl.select_tab(Tab.MARINE)
    assert requests == []


def test_load_history_uses_query_and_date():
    client = FakeClient(Ok('history-snapshot'))
    ctl = DashboardController(client, query='Paris')
    ctl.set_history_date('2024-09-11')
    ctl.select_tab(Tab.HISTORY)
    state = asyncio.run(ctl.load_history())
    assert client.calls == [('historical', HistoricalQuery('Paris', '2024-09-11'))]
    assert state == Loaded('history-snapshot')
    assert ctl.state is state
    assert isinstance(ctl.views[Tab.CURRENT], Idle)


def test_load_marine_rejects_bad_coords_locally():
    client = FakeClient()
    ctl = DashboardController(client)
    ctl.set_marine_coords('somewhere at sea')
    state = asyncio.run(ctl.load_marine())
    assert isinstance(state, Failed)
    assert client.calls == []


def test_load_marine():
    client = FakeClient(Ok('marine-snapshot'))
    ctl = DashboardController(client)
    ctl.set_marine_coords('1.5,2.5')
    state = asyncio.run(ctl.load_marine())
    assert client.calls == [('marine', MarineQuery(1.5, 2.5))]
    assert state == Loaded('marine-snapshot')


def test_refresh_reuses_query():
    client = FakeClient(Ok(snapshot('Rome')), Ok(snapshot('Rome')))
    ctl = DashboardController(client, query='Rome')
    asyncio.run(ctl.refresh())
    asyncio.run(ctl.refresh())
    assert client.calls == [('current', 'Rome'), ('current', 'Rome')]


def test_local_marine_rejection_supersedes_fetch_in_flight():
    client = FakeClient()
    ctl = DashboardController(client)

    async def scenario():
        gate = asyncio.Event()
        client.results.append((gate, Ok('stale-marine')))
        ctl.set_marine_coords('1,2')
        first = asyncio.ensure_future(ctl.load_marine())
        await asyncio.sleep(0)
        ctl.set_marine_coords('bad')
        rejected = await ctl.load_marine()
        gate.set()
        return await first, rejected

    first, rejected = asyncio.run(scenario())
    assert first is None
    assert isinstance(rejected, Failed)
    assert ctl.views[Tab.MARINE] is rejected


class RaisingClient:
    def __init__(self, exc):
        self.exc = exc

    async def fetch_current(self, city):
        raise self.exc


def test_unexpected_fetch_exception_moves_tab_to_failed():
    ctl = DashboardController(RaisingClient(httpx.InvalidURL('bad url')))
    with pytest.raises(httpx.InvalidURL):
        asyncio.run(ctl.submit())
    assert isinstance(ctl.state, Failed)
    assert ctl.state.message == 'bad url'


def test_cancelled_fetch_does_not_stay_loading():
    ctl = DashboardController(FakeClient())

    async def scenario():
        gate = asyncio.Event()
        ctl.client.results.append((gate, Ok(snapshot('Never'))))
        task = asyncio.ensure_future(ctl.submit())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert isinstance(ctl.state, Failed)
    assert ctl.state.message == 'CancelledError'
