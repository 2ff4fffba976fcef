"""
Site profiles and page classification (no playwright dependency).
"""

from src.sites.profiles import (
    PageRule,
    HarvestSettings,
    ListSelectors,
    FieldSpec,
    SiteProfile,
    SITE_PROFILES,
    HELLOWORK,
    LINKEDIN,
    get_profile,
)
from src.sites.classifier import PageKind, classify

__all__ = [
    "PageRule",
    "HarvestSettings",
    "ListSelectors",
    "FieldSpec",
    "SiteProfile",
    "SITE_PROFILES",
    "HELLOWORK",
    "LINKEDIN",
    "get_profile",
    "PageKind",
    "classify",
]
