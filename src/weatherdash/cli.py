"""Terminal weather dashboard.

Usage (example):
    weather-dashboard --city "New York"
    weather-dashboard --tab history --date 2024-09-11 --city Paris
    weather-dashboard --tab marine --coords 40.7,-74.0
    weather-dashboard --raw --city Berlin

Reads WEATHERSTACK_ACCESS_KEY (or KEY_VAULT_NAME) from the environment or a local .env file.
"""
from __future__ import annotations
import argparse
import asyncio
import json
import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

from weatherclient.client import AsyncWeatherClient, WeatherClient
from weatherclient.config import WeatherSettings
from weatherclient.errors import TransportError

from .controller import DashboardController, Failed, StalePolicy, Tab
from .render import render

logger = logging.getLogger("weatherdash.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='weather-dashboard')
    parser.add_argument('--city', default='New York', help='Location query (default: New York)')
    parser.add_argument('--tab', choices=[t.value for t in Tab], default=Tab.CURRENT.value, help='View to show')
    parser.add_argument('--date', help='Historical date (YYYY-MM-DD), history tab only')
    parser.add_argument('--coords', help='Marine coordinates as lat,lon, marine tab only')
    parser.add_argument('--policy', choices=[p.value for p in StalePolicy], default=StalePolicy.KEEP.value,
                        help='Keep or clear previous data when a fetch fails')
    parser.add_argument('--raw', action='store_true', help='Print the provider JSON for the tab instead of rendering')
    parser.add_argument('--key-vault', help='Key Vault name holding the access key (overrides KEY_VAULT_NAME env)')
    return parser


def _raw(settings: WeatherSettings, args) -> dict:
    with WeatherClient(settings) as client:
        if args.tab == Tab.HISTORY.value:
            return client.get_historical(args.city, args.date)
        if args.tab == Tab.MARINE.value:
            return client.get_marine(args.coords)
        return client.get_current(args.city)


async def run_dashboard(controller: DashboardController, args) -> str:
    """Initial load for the requested tab, then the rendered view."""
    controller.select_tab(args.tab)
    if args.date:
        controller.set_history_date(args.date)
    if args.coords:
        controller.set_marine_coords(args.coords)
    if controller.tab is Tab.HISTORY:
        await controller.load_history()
    elif controller.tab is Tab.MARINE:
        await controller.load_marine()
    else:
        await controller.submit(args.city)
    return render(controller)


async def _dashboard(settings: WeatherSettings, args) -> int:
    async with AsyncWeatherClient(settings) as client:
        controller = DashboardController(client, query=args.city, policy=StalePolicy(args.policy))
        print(await run_dashboard(controller, args))
        return 1 if isinstance(controller.state, Failed) else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))

    if os.path.exists('.env'):
        load_dotenv('.env')
    if args.tab == Tab.HISTORY.value and args.raw and not args.date:
        logger.error('--raw with --tab history needs --date')
        return 2
    if args.tab == Tab.MARINE.value and args.raw and not args.coords:
        logger.error('--raw with --tab marine needs --coords')
        return 2

    try:
        settings = WeatherSettings.from_env(key_vault_name=args.key_vault)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.raw:
        try:
            body = _raw(settings, args)
        except TransportError as e:
            logger.error(f"Request failed: {e}")
            return 1
        print(json.dumps(body, indent=2))
        return 1 if 'error' in body else 0

    return asyncio.run(_dashboard(settings, args))


if __name__ == "__main__":
    raise SystemExit(main())
