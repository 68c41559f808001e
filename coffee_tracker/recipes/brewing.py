"""
Brew calculations used by the recipe input transform.

Both helpers return None instead of raising when an input is missing or
non-positive; the required-field validator reports those cases.
"""
from __future__ import annotations

from typing import Optional


def _positive(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def calculate_coffee_water_ratio(coffee_beans, water) -> Optional[float]:
    """Grams of water per gram of coffee, 2 dp (15.0 means 1:15)."""
    coffee = _positive(coffee_beans)
    water_g = _positive(water)
    if coffee is None or water_g is None:
        return None
    return round(water_g / coffee, 2)


def calculate_extraction_yield(coffee_beans, brewed_coffee_weight, tds) -> Optional[float]:
    """
    Extraction yield in percent, 2 dp: TDS% × beverage weight / dose.

    15 g dose, 250 g beverage at 1.35 TDS → 22.5.
    """
    coffee = _positive(coffee_beans)
    brewed = _positive(brewed_coffee_weight)
    tds_pct = _positive(tds)
    if coffee is None or brewed is None or tds_pct is None:
        return None
    return round(tds_pct * brewed / coffee, 2)
