"""
Browser-facing building blocks: pacing, waiting, scoped lookups, list
surfaces and navigation.
"""

from src.browser.jitter import JitterPolicy
from src.browser.waiting import wait_until
from src.browser.scope import Scope, DocumentScope, ShadowScope
from src.browser.surfaces import (
    ScrollState,
    ListSurface,
    RowFeed,
    PlaywrightListSurface,
    PlaywrightRowFeed,
    parse_total,
)
from src.browser.navigation import PlaywrightNavigator, PageNotifier

__all__ = [
    "JitterPolicy",
    "wait_until",
    "Scope",
    "DocumentScope",
    "ShadowScope",
    "ScrollState",
    "ListSurface",
    "RowFeed",
    "PlaywrightListSurface",
    "PlaywrightRowFeed",
    "parse_total",
    "PlaywrightNavigator",
    "PageNotifier",
]
