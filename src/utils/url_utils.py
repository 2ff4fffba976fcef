"""
URL utility functions for candidate-walker.

Identifiers are URLs reduced to a stable key: two raw references that
normalize identically are the same item.
"""

from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse, urlunparse, parse_qsl, urlencode


def normalize_identifier(
    raw: str,
    base_url: Optional[str] = None,
    volatile_params: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """
    Reduce a raw item reference to its stable identifier.

    Relative references are resolved against base_url. The fragment is
    always dropped. When volatile_params is None the whole query string is
    volatile and removed; otherwise only the named parameters are removed
    and the remaining ones are kept in their original order.

    Args:
        raw: Raw href as read from the page
        base_url: Page URL used to resolve relative hrefs
        volatile_params: Query parameter names to strip (None = strip all)

    Returns:
        Normalized absolute URL, or None if raw is empty or not http(s)

    Examples:
        >>> normalize_identifier("https://app.example.com/applicant/detail/42?pos=3")
        'https://app.example.com/applicant/detail/42'

        >>> normalize_identifier("/applicant/detail/42#top", "https://app.example.com/campaign/detail/7")
        'https://app.example.com/applicant/detail/42'

        >>> normalize_identifier("https://x.com/p/1?trk=abc&id=9", volatile_params={"trk"})
        'https://x.com/p/1?id=9'
    """
    if not raw or not raw.strip():
        return None

    absolute = urljoin(base_url, raw.strip()) if base_url else raw.strip()
    u = urlparse(absolute)
    if u.scheme.lower() not in ("http", "https") or not u.netloc:
        return None

    if volatile_params is None:
        query = ""
    else:
        drop = {p.lower() for p in volatile_params}
        query = urlencode([
            (k, v) for (k, v) in parse_qsl(u.query, keep_blank_values=True)
            if k.lower() not in drop
        ])

    return urlunparse((
        u.scheme.lower(),
        u.netloc.lower(),
        u.path,
        u.params,
        query,
        ""
    ))


def without_query(url: str) -> str:
    """
    Drop the query string and fragment of a URL, without other normalization.

    Examples:
        >>> without_query("https://x.com/campaign/detail/7?searchGuid=ab#f")
        'https://x.com/campaign/detail/7'
    """
    return url.split("#", 1)[0].split("?", 1)[0]


def same_page(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two page URLs while ignoring query parameters.

    Used to recognise the list page a traversal returns to, whose search
    parameters may have been rewritten by the site in the meantime.
    """
    if not a or not b:
        return False
    return without_query(a).rstrip("/") == without_query(b).rstrip("/")


def domain_of(url: str) -> str:
    """
    Extract lowercase domain from URL.

    Examples:
        >>> domain_of("https://App-Recruteur.hellowork.com/applicant/detail/1")
        'app-recruteur.hellowork.com'
    """
    return urlparse(url).netloc.lower()


def validate_url(url: str) -> bool:
    """
    Check if a URL is an absolute http(s) URL.

    Examples:
        >>> validate_url("https://example.com/jobs/123")
        True

        >>> validate_url("/jobs/123")
        False
    """
    if not url or not isinstance(url, str):
        return False

    url = url.strip()
    if not url.startswith(("http://", "https://")):
        return False

    result = urlparse(url)
    return bool(result.scheme and result.netloc)
