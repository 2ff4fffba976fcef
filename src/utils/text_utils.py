"""
Text normalization helpers for scraped candidate fields.
"""

import re
from typing import Optional, Tuple


_PHONE_SEPARATORS_RE = re.compile(r"[\s\-().]")
_INTL_FR_MOBILE_RE = re.compile(r"^(?:\+33|0033)([167]\d{8})$")
_NATIONAL_FR_RE = re.compile(r"^0[167]\d{8}$")


def normalize_french_phone(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a French phone number to the 10-digit national format.

    Only landline (01) and mobile (06/07) numbers are accepted; anything
    else is dropped rather than stored half-parsed.

    Args:
        raw: Phone number as displayed on the page

    Returns:
        Number like '0612345678', or None if absent or not recognised

    Examples:
        >>> normalize_french_phone("+33 6 12 34 56 78")
        '0612345678'

        >>> normalize_french_phone("06.12.34.56.78")
        '0612345678'

        >>> normalize_french_phone("+44 20 7946 0958") is None
        True
    """
    if not raw:
        return None

    cleaned = _PHONE_SEPARATORS_RE.sub("", raw)
    m = _INTL_FR_MOBILE_RE.match(cleaned)
    if m:
        return "0" + m.group(1)
    if _NATIONAL_FR_RE.match(cleaned):
        return cleaned
    return None


def split_full_name(full_name: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a display name into (first_name, last_name).

    The first whitespace-separated token is the first name; everything else
    is the last name.

    Examples:
        >>> split_full_name("Marie Claire Dupont")
        ('Marie', 'Claire Dupont')

        >>> split_full_name("Cher") is None
        True
    """
    if not full_name:
        return None
    parts = full_name.strip().split()
    if len(parts) < 2:
        return None
    return parts[0], " ".join(parts[1:])


def name_from_title(title: Optional[str], pattern: str) -> Optional[Tuple[str, str]]:
    """
    Parse a candidate name out of a page or button title.

    The pattern must expose the full name as its first group.

    Examples:
        >>> name_from_title("Add Note about Jean Martin", r"^(?:Ajouter une note sur|Add Note about) (.+)$")
        ('Jean', 'Martin')

        >>> name_from_title("Jean Martin - Développeur - HelloWork", r"^(.+?)\\s+-\\s")
        ('Jean', 'Martin')
    """
    if not title:
        return None
    m = re.search(pattern, title.strip())
    if not m:
        return None
    return split_full_name(m.group(1))
