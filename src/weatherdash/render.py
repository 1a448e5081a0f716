from __future__ import annotations
from typing import List, Optional

from weatherclient.history import daily_summary
from weatherclient.models import HistoricalSnapshot, MarineSnapshot, WeatherSnapshot

from .controller import DashboardController, Failed, Loaded, Loading, Tab, ViewState

MARINE_PLAN_NOTICE = "Requires Standard Plan or higher"


def _fmt(value) -> str:
    return '' if value is None else f"{value:g}" if isinstance(value, float) else str(value)


def render_current(snapshot: WeatherSnapshot) -> List[str]:
    """Text card for a loaded current-conditions snapshot."""
    loc, cur = snapshot.location, snapshot.current
    lines = [
        f"{loc.name}, {loc.country}",
        f"{cur.temperature}°",
        cur.description,
    ]
    if cur.icon:
        lines.append(cur.icon)
    wind = f"Wind: {_fmt(cur.wind_speed)} km/h"
    if cur.wind_dir:
        wind += f" {cur.wind_dir}"
    lines.append(wind)
    lines.append(f"Humidity: {_fmt(cur.humidity)}%")
    lines.append(f"Feels Like: {_fmt(cur.feelslike)}°")
    if loc.local_clock:
        lines.append(f"Local Time: {loc.local_clock}")
    return lines


def render_history(snapshot: HistoricalSnapshot) -> List[str]:
    lines = [f"{snapshot.location.name}, {snapshot.location.country}"]
    summary = daily_summary(snapshot)
    for _, row in summary.iterrows():
        parts = [row['date'].strftime('%Y-%m-%d')]
        for col, label in (('mintemp', 'min'), ('maxtemp', 'max'), ('avgtemp', 'avg')):
            if col in summary.columns:
                parts.append(f"{label} {_fmt(row[col])}°")
        lines.append('  '.join(parts))
    return lines


def render_marine(snapshot: MarineSnapshot) -> List[str]:
    lines = [f"Coordinates: {snapshot.coords}"]
    lines.extend(f"{key}: available" for key in sorted(snapshot.data))
    return lines


def _render_snapshot(tab: Tab, snapshot) -> List[str]:
    if tab is Tab.CURRENT:
        return render_current(snapshot)
    if tab is Tab.HISTORY:
        return render_history(snapshot)
    return render_marine(snapshot)


def _render_state(tab: Tab, state: ViewState) -> Optional[List[str]]:
    if isinstance(state, Loading):
        return ["Loading..."]
    if isinstance(state, Failed):
        lines = [f"Error: {state.message}"]
        if state.previous is not None:
            lines.extend(_render_snapshot(tab, state.previous))
        return lines
    if isinstance(state, Loaded):
        return _render_snapshot(tab, state.snapshot)
    return None


def render(controller: DashboardController) -> str:
    """Render the controller's active tab as plain text."""
    tab = controller.tab
    body = _render_state(tab, controller.state)
    if tab is Tab.HISTORY:
        lines = ["Historical Data", f"Date: {controller.history_date}"]
        lines.extend(body or [f"Placeholder for: {controller.history_date}"])
    elif tab is Tab.MARINE:
        lines = ["Marine Weather"]
        lines.extend(body or [MARINE_PLAN_NOTICE])
    else:
        lines = body or [f"Search: {controller.query}"]
    return '\n'.join(lines)
