"""Holding valuation math.

The SQL layer aggregates activities per (account, asset) into three sums:

- net quantity: BUY quantity minus the quantity of every other activity
- cost basis: quantity x unit price over BUY activities only
- bought quantity: BUY quantity alone

Everything derived from those sums lives here so it is computed one way for
the holdings, summary, goals and recalculation endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class Valuation:
    """Derived figures for one position."""

    quantity: float
    cost_basis: float
    avg_price: float | None
    market_value: float
    unrealized_gain: float
    unrealized_gain_percent: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "quantity": self.quantity,
            "cost_basis": self.cost_basis,
            "avg_price": self.avg_price,
            "market_value": self.market_value,
            "unrealized_gain": self.unrealized_gain,
            "unrealized_gain_percent": self.unrealized_gain_percent,
        }


def percent_of(part: float, whole: float) -> float:
    """``part`` as a percentage of ``whole``, 0 when ``whole`` is 0."""
    if not whole:
        return 0.0
    return part / whole * 100


def gain_percent(gain: float, cost_basis: float) -> float:
    return percent_of(gain, cost_basis)


def value_position(
    quantity: float | None,
    cost_basis: float | None,
    bought_quantity: float | None,
    close_price: float | None,
) -> Valuation:
    """
    Value one position from its aggregated sums and the latest close.

    A symbol without any quote is valued at 0.

    >>> v = value_position(7, 1000, 10, 120)
    >>> (v.market_value, v.unrealized_gain)
    (840.0, -160.0)
    """
    quantity = float(quantity or 0)
    cost_basis = float(cost_basis or 0)
    bought = float(bought_quantity or 0)

    market_value = quantity * float(close_price or 0)
    gain = market_value - cost_basis
    return Valuation(
        quantity=quantity,
        cost_basis=cost_basis,
        avg_price=cost_basis / bought if bought else None,
        market_value=market_value,
        unrealized_gain=gain,
        unrealized_gain_percent=gain_percent(gain, cost_basis),
    )


def totals(positions: Iterable[Mapping[str, Any]]) -> dict[str, float]:
    """Sum cost_basis and market_value over position mappings."""
    total_cost = 0.0
    total_value = 0.0
    for p in positions:
        total_cost += p["cost_basis"]
        total_value += p["market_value"]
    total_gain = total_value - total_cost
    return {
        "total_cost": total_cost,
        "total_value": total_value,
        "total_gain": total_gain,
        "total_gain_percent": gain_percent(total_gain, total_cost),
    }


def fx_rate(rates: Mapping[tuple[str, str], float], source: str, target: str) -> float:
    """
    Conversion factor from ``source`` to ``target`` currency.

    Uses the stored pair directly, or the inverse of the opposite pair.
    Unknown pairs convert at 1.
    """
    if source == target:
        return 1.0
    direct = rates.get((source, target))
    if direct:
        return float(direct)
    inverse = rates.get((target, source))
    if inverse:
        return 1.0 / float(inverse)
    return 1.0
