"""
Settings for the standings core.

Values are read from Django settings with a ``SCOREBOOK_`` prefix. When no
settings module is configured the defaults below apply, so the core can be
used outside of a Django project.
"""

from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

DEFAULTS = {
    # Winner score counted as a perfect-score win (a 12-0 in dominoes)
    "PERFECT_SCORE": 12,
    "DEFAULT_DRAW_POINTS": 1,
}


def get_setting(name: str) -> Any:
    """Return ``SCOREBOOK_<name>`` from settings, or its default."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown scorebook setting: {name}")
    try:
        return getattr(settings, f"SCOREBOOK_{name}", DEFAULTS[name])
    except ImproperlyConfigured:
        return DEFAULTS[name]
