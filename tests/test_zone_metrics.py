"""
Tests for zone geometry metrics.
"""

import math

import pytest

from estimate_engine.core.models import MissingWall, Subroom, Zone, ZoneType
from estimate_engine.core.zone_metrics import (
    ZoneMetricsCalculator,
    compute_zone_metrics,
    format_metrics_explanation,
    pitch_to_multiplier,
    polygon_area,
    polygon_perimeter,
)


@pytest.fixture
def calculator() -> ZoneMetricsCalculator:
    return ZoneMetricsCalculator(default_height_ft=8.0)


class TestRectangularRooms:
    """Metrics from length, width and height."""

    def test_basic_room(self, calculator: ZoneMetricsCalculator, living_room: Zone) -> None:
        """A 12x10x8 room has 120 SF floor, 44 LF perimeter and 352 SF walls."""
        metrics = calculator.compute(living_room)

        assert metrics.floor_sf == 120
        assert metrics.ceiling_sf == 120
        assert metrics.perimeter_lf == 44
        assert metrics.wall_sf == 352
        assert metrics.wall_sf_gross == 352
        assert metrics.walls_ceiling_sf == 472
        assert metrics.long_wall_sf == 96
        assert metrics.short_wall_sf == 80
        assert metrics.default_height_used is False
        assert metrics.computed_from == "dimensions"
        assert metrics.roof_sf is None

    def test_default_height(self, calculator: ZoneMetricsCalculator) -> None:
        """Missing height falls back to 8 ft and is flagged."""
        zone = Zone(id="z", length_ft=12, width_ft=10)
        metrics = calculator.compute(zone)

        assert metrics.height_ft == 8.0
        assert metrics.default_height_used is True
        assert metrics.wall_sf == 352

    def test_no_geometry(self, calculator: ZoneMetricsCalculator) -> None:
        """A zone with no usable geometry yields zeroed metrics."""
        metrics = calculator.compute(Zone(id="z"))

        assert metrics.floor_sf == 0
        assert metrics.wall_sf == 0
        assert metrics.computed_from == "unknown"

    def test_module_function(self, living_room: Zone) -> None:
        assert compute_zone_metrics(living_room).floor_sf == 120


class TestMissingWalls:
    """Openings reduce net wall area."""

    def test_door_and_window(self, calculator: ZoneMetricsCalculator) -> None:
        """A floor-height door and a window are both deducted."""
        zone = Zone(
            id="z",
            length_ft=12,
            width_ft=10,
            height_ft=8,
            missing_walls=[
                MissingWall(width_ft=3, height_ft=7, goes_to_floor=True),
                MissingWall(width_ft=4, height_ft=3, goes_to_floor=False),
            ],
        )
        metrics = calculator.compute(zone)

        assert metrics.opening_sf == 33
        assert metrics.opening_count == 2
        assert metrics.wall_sf_gross == 352
        assert metrics.wall_sf == 319

    def test_window_deducts_full_area(self, calculator: ZoneMetricsCalculator) -> None:
        """An opening off the floor removes its whole width times height."""
        zone = Zone(
            id="z", length_ft=12, width_ft=10, height_ft=8,
            missing_walls=[MissingWall(width_ft=3, height_ft=6, goes_to_floor=False)],
        )
        metrics = calculator.compute(zone)

        assert metrics.opening_sf == 18
        assert metrics.wall_sf == 334

    def test_opening_capped_at_zone_height(self, calculator: ZoneMetricsCalculator) -> None:
        wall = MissingWall(width_ft=4, height_ft=10, goes_to_floor=False)
        assert calculator.opening_height(wall, 8.0) == 8.0

    def test_full_height_opening(self, calculator: ZoneMetricsCalculator) -> None:
        """Floor-to-ceiling openings span the full zone height."""
        wall = MissingWall(width_ft=6, height_ft=7, goes_to_floor=True, goes_to_ceiling=True)
        assert calculator.opening_height(wall, 9.0) == 9.0

    def test_quantity_multiplies_area(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="z", length_ft=10, width_ft=10, height_ft=8,
            missing_walls=[MissingWall(width_ft=3, height_ft=7, goes_to_floor=False, quantity=3)],
        )
        metrics = calculator.compute(zone)

        assert metrics.opening_count == 3
        assert metrics.opening_sf == 63
        assert metrics.wall_sf == 257

    @pytest.mark.parametrize(
        "widths",
        [[50], [30, 30, 30], [100, 2], [1, 1, 1, 1, 1, 1, 1, 1, 1, 1]],
    )
    def test_wall_area_never_negative(
        self, calculator: ZoneMetricsCalculator, widths: list[float]
    ) -> None:
        """Net wall area is gross minus openings, clamped at zero."""
        zone = Zone(
            id="z", length_ft=10, width_ft=10, height_ft=8,
            missing_walls=[
                MissingWall(width_ft=w, height_ft=8, goes_to_floor=True, goes_to_ceiling=True)
                for w in widths
            ],
        )
        metrics = calculator.compute(zone)

        assert metrics.wall_sf >= 0
        assert metrics.wall_sf == max(0.0, metrics.wall_sf_gross - metrics.opening_sf)


class TestSubrooms:
    """Subroom footprints adjust the parent floor."""

    def test_addition_adds_footprint(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="z", length_ft=12, width_ft=10, height_ft=8,
            subrooms=[Subroom(name="Closet", length_ft=3, width_ft=2, is_addition=True)],
        )
        metrics = calculator.compute(zone)

        assert metrics.floor_sf == 126
        assert metrics.ceiling_sf == 126
        assert metrics.subroom_net_sf == 6

    def test_cutout_subtracts_footprint(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="z", length_ft=12, width_ft=10, height_ft=8,
            subrooms=[Subroom(name="Chase", length_ft=2, width_ft=2, is_addition=False)],
        )
        assert calculator.compute(zone).floor_sf == 116


class TestPolygonZones:
    """Sketch polygons stand in for missing length and width."""

    def test_shoelace_area_and_perimeter(self) -> None:
        points = [(0.0, 0.0), (12.0, 0.0), (12.0, 10.0), (0.0, 10.0)]
        assert polygon_area(points) == 120
        assert polygon_perimeter(points) == 44

    def test_l_shaped_room(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="z",
            height_ft=8,
            sketch_polygon=[(0, 0), (10, 0), (10, 6), (6, 6), (6, 10), (0, 10)],
        )
        metrics = calculator.compute(zone)

        assert metrics.floor_sf == 84
        assert metrics.perimeter_lf == 40
        assert metrics.wall_sf == 320
        assert metrics.computed_from == "polygon"

    def test_degenerate_polygon(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(id="z", sketch_polygon=[(0, 0), (1, 1)])
        metrics = calculator.compute(zone)

        assert metrics.floor_sf == 0
        assert metrics.computed_from == "polygon"


class TestRoofZones:
    """Roof area is floor area times the pitch multiplier."""

    def test_pitched_roof(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(id="roof", zone_type=ZoneType.ROOF, length_ft=20, width_ft=10, pitch="6/12")
        metrics = calculator.compute(zone)

        assert metrics.pitch_multiplier == pytest.approx(math.sqrt(1.25))
        assert metrics.roof_sf == pytest.approx(223.61)
        assert metrics.roof_squares == pytest.approx(2.24)

    def test_explicit_multiplier_wins(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="roof", zone_type=ZoneType.ROOF, length_ft=20, width_ft=10,
            pitch="6/12", pitch_multiplier=1.5,
        )
        assert calculator.compute(zone).roof_sf == 300

    @pytest.mark.parametrize(
        ("pitch", "expected"),
        [
            (None, 1.0),
            ("flat", 1.0),
            ("12/12", 1.414),
            ("6:12", 1.118),
            ("7.5/12", (1 + (7.5 / 12) ** 2) ** 0.5),
            ("steep", 1.0),
        ],
    )
    def test_pitch_to_multiplier(self, pitch: str | None, expected: float) -> None:
        assert pitch_to_multiplier(pitch) == pytest.approx(expected, abs=1e-3)

    @pytest.mark.parametrize("rise", [1, 5, 7, 9, 11])
    def test_pitch_separators_agree(self, rise: int) -> None:
        """Every pitch resolves through the same slope formula."""
        expected = math.sqrt(1 + (rise / 12) ** 2)

        assert pitch_to_multiplier(f"{rise}/12") == pytest.approx(expected, rel=1e-9)
        assert pitch_to_multiplier(f"{rise}:12") == pitch_to_multiplier(f"{rise}/12")


class TestMetricLookup:
    """Formula names resolve to metric values."""

    def test_metric_value(self, calculator: ZoneMetricsCalculator, living_room: Zone) -> None:
        metrics = calculator.compute(living_room)

        assert metrics.metric_value("FLOOR_SF") == 120
        assert metrics.metric_value("wall_sf") == 352
        assert metrics.metric_value("WALL_SF_NET") == 352
        assert metrics.metric_value("HEIGHT_FT") == 8
        assert metrics.metric_value("ROOF_SF") is None
        assert metrics.metric_value("BOGUS") is None

    def test_format_explanation(self, calculator: ZoneMetricsCalculator) -> None:
        zone = Zone(
            id="z", length_ft=12, width_ft=10,
            missing_walls=[MissingWall(width_ft=3, height_ft=7)],
        )
        text = format_metrics_explanation(calculator.compute(zone))

        assert "Floor: 120.0 SF" in text
        assert "Perimeter: 44.0 LF" in text
        assert "(default)" in text
        assert "Openings: 1 (21.0 SF deducted)" in text
