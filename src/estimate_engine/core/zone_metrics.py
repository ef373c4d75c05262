"""
Zone geometry metrics.

Derives floor, wall, ceiling, perimeter and roof measurements from a
zone's dimensions (or sketch polygon), its openings and its subrooms.
These metrics drive catalog quantity formulas and quantity plausibility
checks.
"""

import math
import re
from typing import Literal

from pydantic import BaseModel

from ..config import get_settings
from ..utils.money import round_measure
from .models import MissingWall, Subroom, Zone, ZoneType

DEFAULT_HEIGHT_FT = 8.0

_PITCH_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*[/:]\s*(\d+(?:\.\d+)?)")

# Formula metric name -> ZoneMetrics attribute
METRIC_FIELDS: dict[str, str] = {
    "FLOOR_SF": "floor_sf",
    "CEILING_SF": "ceiling_sf",
    "WALL_SF": "wall_sf",
    "WALL_SF_NET": "wall_sf",
    "WALL_SF_GROSS": "wall_sf_gross",
    "WALLS_CEILING_SF": "walls_ceiling_sf",
    "PERIMETER_LF": "perimeter_lf",
    "HEIGHT_FT": "height_ft",
    "LONG_WALL_SF": "long_wall_sf",
    "SHORT_WALL_SF": "short_wall_sf",
    "ROOF_SF": "roof_sf",
    "ROOF_SQ": "roof_squares",
}


class ZoneMetrics(BaseModel):
    """Computed measurements for one zone."""

    floor_sf: float = 0.0
    ceiling_sf: float = 0.0
    wall_sf: float = 0.0  # net of openings
    wall_sf_gross: float = 0.0
    walls_ceiling_sf: float = 0.0
    perimeter_lf: float = 0.0
    long_wall_sf: float = 0.0
    short_wall_sf: float = 0.0
    height_ft: float = DEFAULT_HEIGHT_FT
    default_height_used: bool = True
    opening_sf: float = 0.0
    opening_count: int = 0
    subroom_net_sf: float = 0.0
    roof_sf: float | None = None
    roof_squares: float | None = None
    pitch_multiplier: float | None = None
    computed_from: Literal["dimensions", "polygon", "unknown"] = "unknown"

    def metric_value(self, name: str) -> float | None:
        """Look up a metric by its formula name (e.g. FLOOR_SF)."""
        field_name = METRIC_FIELDS.get(name.upper())
        if field_name is None:
            return None
        return getattr(self, field_name)


def pitch_to_multiplier(pitch: str | None) -> float:
    """Convert a roof pitch ("6/12", "6:12", "flat") to an area multiplier."""
    if not pitch:
        return 1.0

    normalized = re.sub(r"\s+", "", pitch.lower())
    if normalized == "flat":
        return 1.0

    match = _PITCH_PATTERN.search(normalized)
    if match:
        rise = float(match.group(1))
        run = float(match.group(2))
        if run > 0:
            return math.sqrt(1 + (rise / run) ** 2)

    return 1.0


def polygon_area(points: list[tuple[float, float]]) -> float:
    """Shoelace area of a closed polygon, in square feet."""
    area = 0.0
    n = len(points)
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        area += x1 * y2 - x2 * y1
    return abs(area) / 2


def polygon_perimeter(points: list[tuple[float, float]]) -> float:
    n = len(points)
    return sum(
        math.dist(points[i], points[(i + 1) % n]) for i in range(n)
    )


class ZoneMetricsCalculator:
    """
    Pure geometry calculator.

    Never raises for well-formed zones: a zone with no usable geometry
    yields zeroed metrics with computed_from="unknown".
    """

    def __init__(self, default_height_ft: float | None = None) -> None:
        if default_height_ft is None:
            default_height_ft = get_settings().default_height_ft
        self.default_height_ft = default_height_ft

    def opening_height(self, wall: MissingWall, zone_height: float) -> float:
        """Height of wall surface an opening actually removes."""
        if wall.goes_to_floor and wall.goes_to_ceiling:
            return zone_height
        return min(wall.height_ft, zone_height)

    def opening_area(self, walls: list[MissingWall], zone_height: float) -> tuple[float, int]:
        """Total opening area and opening count."""
        area = 0.0
        count = 0
        for wall in walls:
            area += wall.width_ft * self.opening_height(wall, zone_height) * wall.quantity
            count += wall.quantity
        return area, count

    @staticmethod
    def subroom_adjustment(subrooms: list[Subroom]) -> float:
        """Net footprint change: additions add, cut-outs subtract."""
        net = 0.0
        for subroom in subrooms:
            if subroom.is_addition:
                net += subroom.footprint_sf
            else:
                net -= subroom.footprint_sf
        return net

    def compute(self, zone: Zone) -> ZoneMetrics:
        """Compute all metrics for a zone."""
        if zone.length_ft and zone.width_ft:
            return self._from_dimensions(zone)
        if zone.sketch_polygon:
            return self._from_polygon(zone)
        return self.empty_metrics()

    def empty_metrics(self, computed_from: str = "unknown") -> ZoneMetrics:
        return ZoneMetrics(
            height_ft=self.default_height_ft,
            default_height_used=True,
            computed_from=computed_from,
        )

    def _height(self, zone: Zone) -> tuple[float, bool]:
        if zone.height_ft:
            return zone.height_ft, False
        return self.default_height_ft, True

    def _from_dimensions(self, zone: Zone) -> ZoneMetrics:
        length = zone.length_ft or 0.0
        width = zone.width_ft or 0.0
        height, default_used = self._height(zone)

        long_wall_sf = max(length, width) * height
        short_wall_sf = min(length, width) * height
        perimeter = 2 * (length + width)

        return self._assemble(
            zone,
            base_floor_sf=length * width,
            perimeter=perimeter,
            height=height,
            default_used=default_used,
            long_wall_sf=long_wall_sf,
            short_wall_sf=short_wall_sf,
            computed_from="dimensions",
        )

    def _from_polygon(self, zone: Zone) -> ZoneMetrics:
        points = zone.sketch_polygon or []
        if len(points) < 3:
            return self.empty_metrics("polygon")

        height, default_used = self._height(zone)
        return self._assemble(
            zone,
            base_floor_sf=polygon_area(points),
            perimeter=polygon_perimeter(points),
            height=height,
            default_used=default_used,
            long_wall_sf=0.0,
            short_wall_sf=0.0,
            computed_from="polygon",
        )

    def _assemble(
        self,
        zone: Zone,
        *,
        base_floor_sf: float,
        perimeter: float,
        height: float,
        default_used: bool,
        long_wall_sf: float,
        short_wall_sf: float,
        computed_from: str,
    ) -> ZoneMetrics:
        opening_sf, opening_count = self.opening_area(zone.missing_walls, height)
        subroom_net = self.subroom_adjustment(zone.subrooms)

        floor_sf = max(0.0, base_floor_sf + subroom_net)
        ceiling_sf = floor_sf
        wall_gross = perimeter * height
        wall_net = max(0.0, wall_gross - opening_sf)

        roof_sf = None
        roof_squares = None
        multiplier = None
        if zone.zone_type == ZoneType.ROOF:
            multiplier = zone.pitch_multiplier or pitch_to_multiplier(zone.pitch)
            roof_sf = round_measure(floor_sf * multiplier)
            roof_squares = round_measure(floor_sf * multiplier / 100)

        return ZoneMetrics(
            floor_sf=round_measure(floor_sf),
            ceiling_sf=round_measure(ceiling_sf),
            wall_sf=round_measure(wall_net),
            wall_sf_gross=round_measure(wall_gross),
            walls_ceiling_sf=round_measure(wall_net + ceiling_sf),
            perimeter_lf=round_measure(perimeter),
            long_wall_sf=round_measure(long_wall_sf),
            short_wall_sf=round_measure(short_wall_sf),
            height_ft=height,
            default_height_used=default_used,
            opening_sf=round_measure(opening_sf),
            opening_count=opening_count,
            subroom_net_sf=round_measure(subroom_net),
            roof_sf=roof_sf,
            roof_squares=roof_squares,
            pitch_multiplier=multiplier,
            computed_from=computed_from,
        )


def compute_zone_metrics(zone: Zone) -> ZoneMetrics:
    """Compute metrics with the configured default heights."""
    return ZoneMetricsCalculator().compute(zone)


def format_metrics_explanation(metrics: ZoneMetrics) -> str:
    """Human-readable summary of zone metrics."""
    lines = [
        f"Floor: {metrics.floor_sf} SF",
        f"Ceiling: {metrics.ceiling_sf} SF",
        f"Walls: {metrics.wall_sf_gross} SF gross, {metrics.wall_sf} SF net",
        f"Perimeter: {metrics.perimeter_lf} LF",
    ]

    height_note = " (default)" if metrics.default_height_used else ""
    lines.append(f"Height: {metrics.height_ft} ft{height_note}")

    if metrics.opening_count > 0:
        lines.append(
            f"Openings: {metrics.opening_count} ({metrics.opening_sf} SF deducted)"
        )
    if metrics.subroom_net_sf:
        sign = "+" if metrics.subroom_net_sf > 0 else ""
        lines.append(f"Subroom adjustment: {sign}{metrics.subroom_net_sf} SF")
    if metrics.roof_sf is not None:
        lines.append(
            f"Roof: {metrics.roof_sf} SF ({metrics.roof_squares} SQ, "
            f"pitch x{metrics.pitch_multiplier:.3f})"
        )

    return "\n".join(lines)
