"""Dashboard layer over ``weatherclient``: view-state controller, text rendering and CLI."""

from .controller import (  # noqa: F401
    DashboardController, Failed, Idle, Loaded, Loading, StalePolicy, Tab, ViewState,
)
from .render import render  # noqa: F401

__all__ = [
    'DashboardController', 'Tab', 'StalePolicy', 'ViewState',
    'Idle', 'Loading', 'Loaded', 'Failed', 'render',
]
