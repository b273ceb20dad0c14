"""Allow-list check for manager-only views.

Identity itself comes from the hosting layer (Streamlit user info or the
``X-User-Email`` header set by the identity proxy); this module only decides
whether a known email may proceed.
"""

from __future__ import annotations

from collections.abc import Iterable


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    text = email.strip().lower()
    return text or None


def is_allowed(email: str | None, allowed: Iterable[str]) -> bool:
    normalized = normalize_email(email)
    if normalized is None:
        return False
    return normalized in {e for e in (normalize_email(a) for a in allowed) if e}
