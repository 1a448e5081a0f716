from __future__ import annotations
import pandas as pd
from typing import Any, Dict, Union

from .models import HistoricalSnapshot

DAY_COLUMNS = ['mintemp', 'maxtemp', 'avgtemp', 'totalsnow', 'sunhour', 'uv_index']


def _days(source: Union[HistoricalSnapshot, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    if isinstance(source, HistoricalSnapshot):
        return source.days
    days = source.get('historical') if isinstance(source, dict) else None
    if not isinstance(days, dict):
        return {}
    return {date: day for date, day in days.items() if isinstance(day, dict)}


def _minutes(value: Any) -> int:
    """Provider hourly 'time' is HHMM without padding: '0', '300', '1500'."""
    hhmm = int(value or 0)
    return (hhmm // 100) * 60 + hhmm % 100


def hourly_frame(source: Union[HistoricalSnapshot, Dict[str, Any]]) -> pd.DataFrame:
    """Flatten historical.<date>.hourly records into one frame ordered by timestamp.

    Accepts either a parsed HistoricalSnapshot or the raw /historical body.
    Adds a naive 'timestamp' column (provider local time) and a 'date' column.
    """
    rows = []
    for date_str, day in _days(source).items():
        for rec in day.get('hourly') or []:
            row = dict(rec)
            row['date'] = day.get('date', date_str)
            rows.append(row)
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    times = df['time'] if 'time' in df.columns else pd.Series(['0'] * len(df))
    df['timestamp'] = pd.to_datetime(df['date']) + pd.to_timedelta(times.map(_minutes), unit='min')
    df = df.sort_values('timestamp').reset_index(drop=True)
    # weather_descriptions arrives as a one-element list
    if 'weather_descriptions' in df.columns:
        df['description'] = df['weather_descriptions'].map(
            lambda v: v[0] if isinstance(v, list) and v else ''
        )
    return df


def daily_summary(source: Union[HistoricalSnapshot, Dict[str, Any]]) -> pd.DataFrame:
    """One row per historical day with the provider's daily aggregates that are present."""
    rows = []
    for date_str, day in _days(source).items():
        row = {'date': day.get('date', date_str)}
        for col in DAY_COLUMNS:
            if col in day:
                row[col] = day[col]
        rows.append(row)
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    df['date'] = pd.to_datetime(df['date'])
    return df.sort_values('date').reset_index(drop=True)
