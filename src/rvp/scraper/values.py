"""
Typed values produced by extraction.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Literal, Union

from rvp.exceptions import NotANumberError
from rvp.schema.models import Selector, SelectorType

from .numbers import normalize

NanPolicy = Literal["fail", "propagate"]
Value = Union[str, float]


@dataclass(frozen=True)
class ParsedValue:
    """One named value extracted from a page."""

    name: str
    value: Value

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if isinstance(value, float) and math.isnan(value):
            value = None
        return {"name": self.name, "value": value}


def type_value(raw: str, selector: Selector, nan_policy: NanPolicy = "fail") -> Value:
    """Apply the selector's declared type to matched text.

    With ``nan_policy="fail"`` text that does not normalize to a number raises
    :class:`NotANumberError`; with ``"propagate"`` NaN is returned as is.
    """
    if selector.parsed_type is SelectorType.STRING:
        return raw

    number = normalize(raw)
    if math.isnan(number) and nan_policy == "fail":
        raise NotANumberError(selector.name, raw)
    return number
