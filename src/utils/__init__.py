"""
Shared utility functions for candidate-walker.

- URL normalization into stable item identifiers
- Phone number normalization
"""

from src.utils.url_utils import (
    normalize_identifier,
    without_query,
    same_page,
    domain_of,
    validate_url,
)
from src.utils.text_utils import normalize_french_phone, split_full_name

__all__ = [
    "normalize_identifier",
    "without_query",
    "same_page",
    "domain_of",
    "validate_url",
    "normalize_french_phone",
    "split_full_name",
]
