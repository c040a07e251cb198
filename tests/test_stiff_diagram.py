"""
Tests for the Stiff diagram geometry engine.
"""
import dataclasses

import pytest
from pydantic import ValidationError

from hydrodiagrams.core_config import STIFF_CONFIG
from hydrodiagrams.exceptions import (
    DegenerateTotalError,
    InconsistentGroupError,
    InvalidConcentrationError,
    UnknownIonError,
)
from hydrodiagrams.schemas import StiffDiagramInput
from hydrodiagrams.stiff_diagram import (
    build_ion_groups,
    build_stiff_diagram,
    compute_stiff_polygon,
)
from hydrodiagrams.unit_conversions import to_equivalents

pytestmark = pytest.mark.stiff

# 10 mEq/L of chloride
TEN_MEQ_CL = 354.5


class TestIonGroups:
    """Group construction and validation."""

    def test_group_equivalents_are_summed(self, saline_well_water, stiff_ion_groups):
        groups = build_ion_groups(stiff_ion_groups, saline_well_water)
        na_k = groups[0]
        assert na_k.symbols == ('Na', 'K')
        assert na_k.meq_l == pytest.approx(
            to_equivalents('Na', 475) + to_equivalents('K', 1)
        )
        assert na_k.label == "Na + K"
        assert na_k.is_cation

    def test_order_is_preserved(self, saline_well_water, stiff_ion_groups):
        groups = build_ion_groups(stiff_ion_groups, saline_well_water)
        assert [g.label for g in groups] == ["Na + K", "Ca", "Mg", "Cl", "HCO3 + CO3", "SO4"]

    def test_mixed_group_rejected(self, saline_well_water):
        with pytest.raises(InconsistentGroupError) as exc_info:
            build_ion_groups([['Na', 'Cl']], saline_well_water)
        assert exc_info.value.symbols == ['Na', 'Cl']
        assert "mixes cations and anions" in str(exc_info.value)

    def test_empty_group_rejected(self, saline_well_water):
        with pytest.raises(InconsistentGroupError) as exc_info:
            build_ion_groups([['Ca'], []], saline_well_water)
        assert "group is empty" in str(exc_info.value)

    def test_unknown_symbol_rejected(self, saline_well_water):
        with pytest.raises(UnknownIonError) as exc_info:
            build_ion_groups([['Ca'], ['NO3']], saline_well_water)
        assert exc_info.value.symbol == 'NO3'

    def test_groups_checked_before_concentrations(self):
        with pytest.raises(InconsistentGroupError):
            build_ion_groups([['Ca', 'SO4']], {'Ca': -1})

    def test_missing_concentration_rejected(self):
        with pytest.raises(InvalidConcentrationError) as exc_info:
            build_ion_groups([['Na', 'K'], ['Cl']], {'Na': 10, 'Cl': 5})
        assert exc_info.value.symbol == 'K'


class TestStiffPolygon:
    """Vertex placement."""

    def test_vertex_count(self, saline_well_water, stiff_ion_groups):
        polygon = compute_stiff_polygon(stiff_ion_groups, saline_well_water)
        assert len(polygon.vertices) == len(polygon.cation_groups) + len(polygon.anion_groups) == 6

    def test_vertex_order(self, saline_well_water, stiff_ion_groups):
        polygon = compute_stiff_polygon(stiff_ion_groups, saline_well_water)
        assert polygon.vertices == (
            list(polygon.cation_points) + list(reversed(polygon.anion_points))
        )
        # Cation side runs down on the left, anion side back up on the right
        ys = [y for _, y in polygon.vertices]
        assert ys[:3] == sorted(ys[:3])
        assert ys[3:] == sorted(ys[3:], reverse=True)
        assert all(x <= STIFF_CONFIG.vert_axis_x for x, _ in polygon.cation_points)
        assert all(x >= STIFF_CONFIG.vert_axis_x for x, _ in polygon.anion_points)

    def test_largest_group_reaches_axis_end(self, saline_well_water, stiff_ion_groups):
        polygon = compute_stiff_polygon(stiff_ion_groups, saline_well_water)
        # Cl is the largest group of this analysis
        assert polygon.max_meq_l == pytest.approx(to_equivalents('Cl', 740))
        assert polygon.anion_points[0][0] == pytest.approx(300 + 175)

    def test_horizontal_scale(self):
        record = {'Na': 22.98976928 * 5, 'Cl': TEN_MEQ_CL}
        polygon = compute_stiff_polygon([['Na'], ['Cl']], record)
        assert polygon.cation_points[0][0] == pytest.approx(300 - 175 / 2)

    def test_row_positions(self, saline_well_water, stiff_ion_groups):
        polygon = compute_stiff_polygon(stiff_ion_groups, saline_well_water)
        top = 120 + 0.2 * 330
        inner = 330 * (1 - 0.2 - 0.225)
        expected = [top, top + inner / 2, top + inner]
        assert [y for _, y in polygon.cation_points] == pytest.approx(expected)
        assert [y for _, y in polygon.anion_points] == pytest.approx(expected)

    def test_uneven_sides_share_row_mapping(self, saline_well_water):
        polygon = compute_stiff_polygon([['Na', 'K'], ['Ca'], ['Mg'], ['Cl']], saline_well_water)
        assert polygon.row_count == 3
        assert polygon.anion_points[0][1] == pytest.approx(polygon.cation_points[0][1])
        assert len(polygon.vertices) == 4

    def test_single_row_is_centred(self, saline_well_water):
        polygon = compute_stiff_polygon([['Na'], ['Cl']], saline_well_water)
        expected_y = STIFF_CONFIG.padded_top_y + STIFF_CONFIG.inner_height / 2
        assert polygon.cation_points[0][1] == pytest.approx(expected_y)
        assert polygon.anion_points[0][1] == pytest.approx(expected_y)

    def test_empty_anion_side_allowed(self, saline_well_water):
        polygon = compute_stiff_polygon([['Na', 'K'], ['Ca']], saline_well_water)
        assert polygon.anion_points == ()
        assert len(polygon.vertices) == 2

    def test_all_zero_rejected(self, stiff_ion_groups):
        record = {s: 0 for s in ['Ca', 'Mg', 'Na', 'K', 'Cl', 'SO4', 'CO3', 'HCO3']}
        with pytest.raises(DegenerateTotalError) as exc_info:
            compute_stiff_polygon(stiff_ion_groups, record)
        assert exc_info.value.side == "cation and anion"

    def test_zero_group_sits_on_axis(self, hard_groundwater, stiff_ion_groups):
        polygon = compute_stiff_polygon(stiff_ion_groups, dict(hard_groundwater, SO4=0))
        assert polygon.anion_points[2][0] == pytest.approx(STIFF_CONFIG.vert_axis_x)

    def test_custom_width(self, saline_well_water, stiff_ion_groups):
        config = dataclasses.replace(STIFF_CONFIG, WIDTH=500.0)
        polygon = compute_stiff_polygon(stiff_ion_groups, saline_well_water, config)
        assert polygon.anion_points[0][0] == pytest.approx(250 + 175)


class TestBuildStiffDiagram:
    """Full diagram builds."""

    @pytest.fixture
    def diagram(self, saline_well_water, stiff_ion_groups):
        return build_stiff_diagram({
            "container_id": "stiff-test",
            "ion_groups": stiff_ion_groups,
            "concentrations": saline_well_water,
        })

    def test_diagram_metadata(self, diagram):
        assert diagram.diagram_type == "stiff"
        assert diagram.container_id == "stiff-test"
        assert (diagram.width, diagram.height) == (600, 500)

    def test_polygon_is_closed(self, diagram):
        polygon, = diagram.by_kind("polygon")
        segments = polygon.segments()
        assert len(segments) == len(polygon.points) == 6
        assert segments[-1] == (polygon.points[-1], polygon.points[0])

    def test_defaults(self, saline_well_water, stiff_ion_groups):
        input_data = StiffDiagramInput(concentrations=saline_well_water)
        assert input_data.container_id == "stiff"
        assert input_data.ion_groups == stiff_ion_groups
        diagram = build_stiff_diagram(input_data)
        assert len(diagram.by_kind("polygon")[0].points) == 6

    def test_ticks(self, diagram):
        ticks = diagram.by_role("axis-tick")
        assert len(ticks) == 21
        assert ticks[0].points[0][0] == pytest.approx(300 - 175)
        assert ticks[-1].points[0][0] == pytest.approx(300 + 175)
        major = [t for t in ticks if t.points[0][1] == pytest.approx(120 + 15)]
        assert len(major) == 5

    def test_tick_labels(self):
        diagram = build_stiff_diagram({"ion_groups": [['Cl']], "concentrations": {'Cl': TEN_MEQ_CL}})
        labels = [t.text for t in diagram.by_role("axis-tick-label")]
        assert labels == ["10.0", "5.0", "0.0", "5.0", "10.0"]
        assert {t.y for t in diagram.by_role("axis-tick-label")} == {120 - 25}

    def test_axis_labels(self, diagram):
        title, = diagram.by_role("axis-label")
        assert title.text == "Milliequivalents per litre (mEq/L)"
        assert title.y == 120 - 60
        valence = diagram.by_role("valence-label")
        assert [(t.text, t.x, t.y) for t in valence] == [
            ("Cations", 300 - 87.5, 120 + 330 - 20),
            ("Anions", 300 + 87.5, 120 + 330 - 20),
        ]

    def test_point_labels(self, diagram):
        labels = diagram.by_role("point-label")
        assert [t.text for t in labels] == ["Na + K", "Ca", "Mg", "Cl", "HCO3 + CO3", "SO4"]
        assert {t.anchor for t in labels[:3]} == {"end"}
        assert {t.anchor for t in labels[3:]} == {"start"}
        polygon = diagram.by_kind("polygon")[0]
        first_x, first_y = polygon.points[0]
        assert labels[0].x == pytest.approx(first_x - 15)
        assert labels[0].y == pytest.approx(first_y + 5)

    def test_axes(self, diagram):
        horizontal, vertical = diagram.by_role("axis")
        assert horizontal.points == [(125, 120), (475, 120)]
        assert vertical.points == [(300, 120), (300, 450)]

    def test_polygon_drawn_after_axes(self, diagram):
        kinds = [p.kind for p in diagram.primitives]
        roles = [p.role for p in diagram.primitives]
        assert kinds.index("polygon") > max(i for i, r in enumerate(roles) if r == "axis")

    def test_string_concentration_rejected(self, saline_well_water):
        saline_well_water['Na'] = "475"
        with pytest.raises(ValidationError):
            build_stiff_diagram({"concentrations": saline_well_water})

    def test_invalid_record_raises(self, stiff_ion_groups):
        with pytest.raises(InvalidConcentrationError):
            build_stiff_diagram({"ion_groups": stiff_ion_groups, "concentrations": {'Na': 10}})
