"""
Heuristic conversion of scraped text into floats.

Prices and counters on web pages come with currency signs, thousands
separators in either convention and magnitude suffixes ("1.5k", "2m"). The
rules below are intentionally lossy: without a comma a dot is always decimal,
so "1.234" means 1.234, never 1234.
"""

from __future__ import annotations

import math
import re

_NOT_NUMERIC_OR_SUFFIX = re.compile(r"[^0-9.kmb]")
_NOT_NUMERIC = re.compile(r"[^0-9.]")

MAGNITUDE_SUFFIXES = {
    "k": 1e3,
    "m": 1e6,
    "b": 1e9,
}


def normalize(raw: str) -> float:
    """Convert noisy numeric text to a float, or NaN when nothing parses.

    >>> normalize("1.234,56")
    1234.56
    >>> normalize("1.5k$")
    1500.0
    """
    value = raw.lower()

    # A comma means comma-decimal notation: dots are thousands separators.
    if "," in value:
        value = value.replace(".", "")
    value = value.replace(",", ".")

    value = _NOT_NUMERIC_OR_SUFFIX.sub("", value)
    multiplier = MAGNITUDE_SUFFIXES.get(value[-1:], 1.0)
    value = _NOT_NUMERIC.sub("", value)

    try:
        number = float(value)
    except ValueError:
        return math.nan
    return number * multiplier
