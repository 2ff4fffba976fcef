"""
Page classification: which kind of page is the browser on?
"""

from enum import Enum

from src.sites.profiles import SiteProfile


class PageKind(str, Enum):
    LIST_PAGE = "list_page"
    ITEM_PAGE = "item_page"
    UNSUPPORTED = "unsupported"


def classify(url: str, profile: SiteProfile) -> PageKind:
    """
    Map a URL to the kind of page it is for one site.

    Item rules win over list rules: some sites nest item URLs under the
    list path (LinkedIn's /manage/all/profile/...).

    Args:
        url: Current page URL
        profile: Site whose rules apply

    Returns:
        PageKind for the URL

    Example:
        >>> classify("https://app-recruteur.hellowork.com/applicant/detail/12", HELLOWORK)
        <PageKind.ITEM_PAGE: 'item_page'>
    """
    if not url:
        return PageKind.UNSUPPORTED
    if any(rule.matches(url) for rule in profile.item_rules):
        return PageKind.ITEM_PAGE
    if any(rule.matches(url) for rule in profile.list_rules):
        return PageKind.LIST_PAGE
    return PageKind.UNSUPPORTED
