"""
Currency field type.

Stores amounts as integer cents and exposes them as float units. Parsing goes
through the decimal string so ``19.99`` becomes ``1999`` exactly.
"""

from __future__ import annotations

import re
from typing import Any, Dict

from ..base import FieldType

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


class CurrencyFieldType(FieldType):
    type = "currency"

    def transform(self, value: Any) -> int:
        """Convert units (float or string) to integer cents.

        Cents beyond two digits are truncated, not rounded.
        """
        if value is None or value == "":
            return 0

        text = _NON_NUMERIC.sub("", str(value))
        negative = text.startswith("-")
        text = text.lstrip("-")

        whole, _, fraction = text.partition(".")
        units = int(whole) if whole else 0
        cents = int(fraction[:2].ljust(2, "0")) if fraction else 0

        total = units * 100 + cents
        return -total if negative else total

    def cast(self, value: Any) -> float:
        if value is None:
            return 0.0
        return float(value) / 100

    @property
    def python_type(self) -> str:
        return "int"

    def validation_rules(self) -> Dict[str, Any]:
        return {"numeric": True}
