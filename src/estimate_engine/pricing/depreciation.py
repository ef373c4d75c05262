"""
Depreciation calculation.

Straight-line depreciation over a category/type-specific useful life,
adjusted for condition and capped by the schedule and carrier maximums.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from ..core.models import Condition
from ..utils.money import round_measure, round_money, to_decimal


class DepreciationSchedule(BaseModel):
    """Useful-life schedule for one (category, item type) pair."""

    category_code: str
    item_type: str
    useful_life_years: float = Field(ge=0)
    max_depreciation_pct: float = Field(default=80.0, ge=0, le=100)
    condition_adjustment_good: float = 0.85
    condition_adjustment_poor: float = 1.15
    is_depreciable: bool = True


def _schedule(category: str, item_type: str, life: float, max_pct: float = 80.0) -> DepreciationSchedule:
    return DepreciationSchedule(
        category_code=category,
        item_type=item_type,
        useful_life_years=life,
        max_depreciation_pct=max_pct,
    )


DEFAULT_SCHEDULES: list[DepreciationSchedule] = [
    # Interior finishes
    _schedule("06", "drywall", 50),
    _schedule("06", "plaster", 75),
    # Flooring
    _schedule("07", "carpet", 10),
    _schedule("07", "carpet_pad", 10),
    _schedule("07", "hardwood_flooring", 50),
    _schedule("07", "laminate_flooring", 20),
    _schedule("07", "lvp_flooring", 25),
    _schedule("07", "ceramic_tile", 50),
    _schedule("07", "vinyl_sheet", 15),
    # Windows, doors and millwork
    _schedule("08", "vinyl_window", 25),
    _schedule("08", "interior_door", 50),
    _schedule("08", "cabinets_wood", 30),
    # Plumbing
    _schedule("09", "plumbing_fixtures", 25),
    # Electrical
    _schedule("10", "electrical_panel", 40),
    # HVAC and water heaters
    _schedule("11", "hvac_furnace", 20),
    _schedule("11", "water_heater_tank", 12),
    # Roofing
    _schedule("12", "asphalt_3tab_shingle", 20),
    _schedule("12", "asphalt_laminated_shingle", 30),
    _schedule("12", "metal_roofing", 50),
    _schedule("12", "gutters_aluminum", 25),
    # Siding
    _schedule("13", "vinyl_siding", 40),
    # Painting
    _schedule("14", "interior_paint", 7),
    _schedule("14", "exterior_paint", 10),
    # Appliances
    _schedule("99", "appliance_refrigerator", 15),
]


class DepreciationResult(BaseModel):
    """Depreciation outcome for one line item."""

    depreciation_pct: float = 0.0
    depreciation_amount: Decimal = Decimal("0")
    acv: Decimal = Decimal("0")
    useful_life_years: float = 0.0
    is_depreciable: bool = False
    is_recoverable: bool = True


class DepreciationCalculator:
    """
    Looks up useful-life schedules and computes depreciation.

    Schedules are injected; the built-in table is used when none are given.
    """

    def __init__(
        self,
        schedules: list[DepreciationSchedule] | None = None,
        max_depreciation_pct: float | None = None,
    ) -> None:
        self._schedules: dict[tuple[str, str], DepreciationSchedule] = {}
        self._by_category: dict[str, list[DepreciationSchedule]] = {}
        self.max_depreciation_pct = max_depreciation_pct

        for schedule in schedules if schedules is not None else DEFAULT_SCHEDULES:
            self._schedules[(schedule.category_code, schedule.item_type)] = schedule
            self._by_category.setdefault(schedule.category_code, []).append(schedule)

    def find_schedule(
        self, category_code: str | None, item_type: str | None
    ) -> DepreciationSchedule | None:
        """Exact (category, type) match, else the longest-lived schedule in the category."""
        if not category_code:
            return None
        if item_type:
            schedule = self._schedules.get((category_code, item_type))
            if schedule is not None:
                return schedule
        candidates = self._by_category.get(category_code)
        if not candidates:
            return None
        return max(candidates, key=lambda s: s.useful_life_years)

    def calculate(
        self,
        *,
        category_code: str | None,
        depreciation_type: str | None,
        age_years: float | None,
        condition: Condition | str = Condition.AVERAGE,
        rcv: Decimal | float,
        is_recoverable: bool = True,
        carrier_max_pct: float | None = None,
    ) -> DepreciationResult:
        rcv_value = to_decimal(rcv)
        schedule = self.find_schedule(category_code, depreciation_type)

        if schedule is None or not schedule.is_depreciable or schedule.useful_life_years <= 0:
            return DepreciationResult(
                acv=round_money(rcv_value),
                is_recoverable=is_recoverable,
            )

        base_pct = ((age_years or 0.0) / schedule.useful_life_years) * 100

        condition = Condition(condition)
        if condition == Condition.GOOD:
            factor = schedule.condition_adjustment_good
        elif condition == Condition.POOR:
            factor = schedule.condition_adjustment_poor
        else:
            factor = 1.0

        cap = schedule.max_depreciation_pct
        for limit in (carrier_max_pct, self.max_depreciation_pct):
            if limit is not None:
                cap = min(cap, limit)

        pct = min(base_pct * factor, cap)
        pct = round_measure(max(0.0, min(pct, 100.0)))

        amount = round_money(rcv_value * to_decimal(pct) / Decimal("100"))
        return DepreciationResult(
            depreciation_pct=pct,
            depreciation_amount=amount,
            acv=round_money(rcv_value) - amount,
            useful_life_years=schedule.useful_life_years,
            is_depreciable=True,
            is_recoverable=is_recoverable,
        )


def calculate_depreciation(
    category_code: str | None,
    depreciation_type: str | None,
    age_years: float | None,
    condition: Condition | str,
    rcv: Decimal | float,
) -> DepreciationResult:
    """Depreciate one item against the built-in schedule table."""
    return DepreciationCalculator().calculate(
        category_code=category_code,
        depreciation_type=depreciation_type,
        age_years=age_years,
        condition=condition,
        rcv=rcv,
    )
