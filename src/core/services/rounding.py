"""Redondeo "half-up" (el de `Math.round`/`toFixed` en la UI web).

`round()` de Python usa banker's rounding (`round(2.5) == 2`), lo que
produciría porcentajes distintos a los que ve el usuario en la web.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_half_up_int(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
