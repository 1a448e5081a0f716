from __future__ import annotations

import datetime as dt
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from weatherclient.client import AsyncWeatherClient
from weatherclient.models import Err, FetchResult, HistoricalQuery, MarineQuery


class Tab(str, Enum):
    CURRENT = 'current'
    HISTORY = 'history'
    MARINE = 'marine'


class StalePolicy(str, Enum):
    """What a tab shows from its last good snapshot while a new fetch is pending or has failed."""
    KEEP = 'keep'
    CLEAR = 'clear'


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    previous: Optional[Any] = None


@dataclass(frozen=True)
class Loaded:
    snapshot: Any


@dataclass(frozen=True)
class Failed:
    message: str
    error: Optional[Exception] = None
    previous: Optional[Any] = None


ViewState = Union[Idle, Loading, Loaded, Failed]


class DashboardController:
    """
    Holds the dashboard's query, active tab and one ViewState per tab.

    Only submit/refresh/load_history/load_marine touch the network. Every fetch takes a
    fresh token; a completion that is no longer the newest for its tab is dropped, so a
    slow earlier response can never overwrite a later one.
    """

    def __init__(self, client: AsyncWeatherClient, query: str = 'New York',
                 policy: StalePolicy = StalePolicy.KEEP, today: Optional[dt.date] = None):
        self.client = client
        self.query = query
        self.policy = StalePolicy(policy)
        self.tab = Tab.CURRENT
        self.history_date = (today or dt.date.today()).isoformat()
        self.marine_coords = ''
        self.views: Dict[Tab, ViewState] = {tab: Idle() for tab in Tab}
        self._tokens = itertools.count(1)
        self._latest: Dict[Tab, int] = {tab: 0 for tab in Tab}
        self._log = logging.getLogger(__name__)

    @property
    def state(self) -> ViewState:
        """View state of the active tab."""
        return self.views[self.tab]

    # ---------------- Local state -----------------
    def select_tab(self, tab: Union[Tab, str]):
        self.tab = Tab(tab)

    def set_history_date(self, date: str):
        self.history_date = date

    def set_marine_coords(self, coords: str):
        self.marine_coords = coords

    # ---------------- Fetches -----------------
    async def submit(self, query: Optional[str] = None) -> Optional[ViewState]:
        """Fetch current conditions for the query (or the stored one).

        Returns the new state of the current tab, or None when a newer submit superseded this one.
        """
        if query is not None:
            self.query = query
        city = self.query
        return await self._run(Tab.CURRENT, lambda: self.client.fetch_current(city))

    async def refresh(self) -> Optional[ViewState]:
        return await self.submit()

    async def load_history(self) -> Optional[ViewState]:
        query = HistoricalQuery(city=self.query, date=self.history_date)
        return await self._run(Tab.HISTORY, lambda: self.client.fetch_historical(query))

    async def load_marine(self) -> Optional[ViewState]:
        try:
            query = MarineQuery.parse(self.marine_coords)
        except ValueError as e:
            # Rejected locally; nothing is sent, but any marine fetch in flight is now superseded
            self._latest[Tab.MARINE] = next(self._tokens)
            self.views[Tab.MARINE] = Failed(str(e), e, self._previous(Tab.MARINE))
            return self.views[Tab.MARINE]
        return await self._run(Tab.MARINE, lambda: self.client.fetch_marine(query))

    def _previous(self, tab: Tab) -> Optional[Any]:
        if self.policy is StalePolicy.CLEAR:
            return None
        view = self.views[tab]
        if isinstance(view, Loaded):
            return view.snapshot
        if isinstance(view, (Loading, Failed)):
            return view.previous
        return None

    async def _run(self, tab: Tab, fetch: Callable[[], Awaitable[FetchResult]]) -> Optional[ViewState]:
        token = next(self._tokens)
        self._latest[tab] = token
        previous = self._previous(tab)
        self.views[tab] = Loading(previous)
        try:
            result = await fetch()
        except BaseException as e:
            # Never leave the tab stuck in Loading
            if token == self._latest[tab]:
                self.views[tab] = Failed(str(e) or type(e).__name__, e, previous)
            raise
        if token != self._latest[tab]:
            self._log.debug(f"Dropping superseded {tab.value} response (token {token}, latest {self._latest[tab]})")
            return None
        if isinstance(result, Err):
            self._log.warning(f"{tab.value} fetch failed: {result.message}")
            self.views[tab] = Failed(result.message, result.error, previous)
        else:
            self.views[tab] = Loaded(result.value)
        return self.views[tab]
