"""
Stiff Diagram Geometry Engine

Plots one water analysis as a closed polygon: cation groups to the left of
a central vertical axis, anion groups to the right, each at a distance
proportional to its equivalent concentration. The largest group sets the
shared horizontal scale.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union
import logging

from .core_config import STIFF_CONFIG, StiffLayoutConfig
from .exceptions import DegenerateTotalError, InconsistentGroupError
from .ions import Ion, get_ion
from .schemas import (
    Diagram,
    PathPrimitive,
    PolygonPrimitive,
    StiffDiagramInput,
    TextPrimitive,
)
from .unit_conversions import to_equivalents, validate_record

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class StiffIonGroup:
    """Ions plotted together at one axis position."""
    ions: Tuple[Ion, ...]
    meq_l: float

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(ion.symbol for ion in self.ions)

    @property
    def label(self) -> str:
        return " + ".join(self.symbols)

    @property
    def is_cation(self) -> bool:
        return self.ions[0].is_cation


@dataclass(frozen=True)
class StiffPolygon:
    """Stiff polygon geometry for one analysis."""
    cation_groups: Tuple[StiffIonGroup, ...]
    anion_groups: Tuple[StiffIonGroup, ...]
    max_meq_l: float
    cation_points: Tuple[Point, ...]
    anion_points: Tuple[Point, ...]

    @property
    def vertices(self) -> List[Point]:
        """Down the cation side, then back up the anion side."""
        return list(self.cation_points) + list(reversed(self.anion_points))

    @property
    def row_count(self) -> int:
        return max(len(self.cation_groups), len(self.anion_groups))


def _resolve_group(symbols: Sequence[str]) -> Tuple[Ion, ...]:
    symbols = list(symbols)
    if not symbols:
        raise InconsistentGroupError(symbols, "group is empty")
    ions = tuple(get_ion(symbol) for symbol in symbols)
    if len({ion.is_cation for ion in ions}) > 1:
        raise InconsistentGroupError(symbols, "group mixes cations and anions")
    return ions


def build_ion_groups(
    ion_groups: Sequence[Sequence[str]],
    record: Mapping[str, float]
) -> List[StiffIonGroup]:
    """
    Resolve symbol groups and total their equivalents.

    Groups are checked for unknown symbols and mixed valence signs before
    any concentration is read.

    Args:
        ion_groups: Ion symbol groups, e.g. [['Na', 'K'], ['Ca'], ['Cl']]
        record: Ion symbol -> mg/L; must cover every grouped symbol

    Returns:
        One StiffIonGroup per input group, in input order

    Raises:
        UnknownIonError: If a symbol is not a known ion
        InconsistentGroupError: If a group is empty or mixes cations and anions
        InvalidConcentrationError: If a concentration is missing or negative
    """
    resolved = [_resolve_group(symbols) for symbols in ion_groups]
    required = [ion.symbol for ions in resolved for ion in ions]
    concentrations = validate_record(record, required=required)

    return [
        StiffIonGroup(
            ions=ions,
            meq_l=sum(to_equivalents(ion, concentrations[ion.symbol]) for ion in ions),
        )
        for ions in resolved
    ]


def compute_stiff_polygon(
    ion_groups: Sequence[Sequence[str]],
    record: Mapping[str, float],
    config: StiffLayoutConfig = STIFF_CONFIG
) -> StiffPolygon:
    """
    Compute the polygon vertices of a Stiff diagram.

    Args:
        ion_groups: Ion symbol groups; split into cations and anions by valence sign
        record: Ion symbol -> mg/L
        config: Canvas layout

    Returns:
        StiffPolygon with absolute canvas coordinates

    Raises:
        DegenerateTotalError: If every group equivalent is zero
    """
    groups = build_ion_groups(ion_groups, record)
    cation_groups = tuple(g for g in groups if g.is_cation)
    anion_groups = tuple(g for g in groups if not g.is_cation)

    max_meq_l = max((g.meq_l for g in groups), default=0.0)
    if max_meq_l == 0:
        raise DegenerateTotalError(
            "cation and anion",
            max_meq_l,
            hint="Nothing to plot: every ion group has zero concentration"
        )

    row_count = max(len(cation_groups), len(anion_groups))
    if row_count > 1:
        row_spacing = config.inner_height / (row_count - 1)
        first_row_y = config.padded_top_y
    else:
        # A single row has no spacing; centre it in the padded span
        row_spacing = 0.0
        first_row_y = config.padded_top_y + config.inner_height / 2

    def place(group_list, horz_mult):
        return tuple(
            (
                config.vert_axis_x + horz_mult * config.HORZ_AXIS_WIDTH * (group.meq_l / max_meq_l),
                first_row_y + i * row_spacing,
            )
            for i, group in enumerate(group_list)
        )

    polygon = StiffPolygon(
        cation_groups=cation_groups,
        anion_groups=anion_groups,
        max_meq_l=max_meq_l,
        cation_points=place(cation_groups, -1),
        anion_points=place(anion_groups, 1),
    )
    logger.debug(
        f"Stiff polygon: max={max_meq_l:.3f} mEq/L, "
        + ", ".join(f"{g.label}={g.meq_l:.3f}" for g in groups)
    )
    return polygon


def _horizontal_axis(polygon: StiffPolygon, config: StiffLayoutConfig) -> list:
    axis_x = config.vert_axis_x
    axis_y = config.HORZ_AXIS_Y
    minor = config.HORZ_AXIS_MINOR_TICKS
    major_every = minor // config.HORZ_AXIS_MAJOR_TICKS

    primitives: list = [PathPrimitive(
        role="axis",
        points=[(axis_x - config.HORZ_AXIS_WIDTH, axis_y), (axis_x + config.HORZ_AXIS_WIDTH, axis_y)],
    )]
    for i in range(-minor, minor + 1):
        tick_is_major = i % major_every == 0
        tick_meq_l = (abs(i) / minor) * polygon.max_meq_l
        tick_x = axis_x + (i / minor) * config.HORZ_AXIS_WIDTH
        if tick_is_major:
            y_from = axis_y + config.HORZ_AXIS_MAJOR_TICK_LENGTH
            y_to = axis_y - config.HORZ_AXIS_MAJOR_TICK_LENGTH
        else:
            y_from = axis_y
            y_to = axis_y - config.HORZ_AXIS_MINOR_TICK_LENGTH
        primitives.append(PathPrimitive(role="axis-tick", points=[(tick_x, y_from), (tick_x, y_to)]))
        if tick_is_major:
            primitives.append(TextPrimitive(
                role="axis-tick-label",
                x=tick_x,
                y=axis_y - config.HORZ_AXIS_TICK_LABEL_OFFSET_Y,
                text=f"{tick_meq_l:.1f}",
            ))

    primitives.append(TextPrimitive(
        role="axis-label",
        x=axis_x,
        y=axis_y - config.HORZ_AXIS_LABEL_OFFSET_Y,
        text=config.HORZ_AXIS_LABEL,
    ))
    return primitives


def _valence_labels(config: StiffLayoutConfig) -> list:
    y = config.HORZ_AXIS_Y + config.VERT_AXIS_HEIGHT - config.VALENCE_LABEL_MARGIN_BOTTOM
    return [
        TextPrimitive(
            role="valence-label",
            x=config.vert_axis_x + horz_mult * config.HORZ_AXIS_WIDTH / 2,
            y=y,
            text=text,
        )
        for text, horz_mult in (("Cations", -1), ("Anions", 1))
    ]


def _point_labels(groups, points, horz_mult: int, config: StiffLayoutConfig) -> list:
    return [
        TextPrimitive(
            role="point-label",
            x=x + horz_mult * config.POINT_LABEL_OFFSET_X,
            y=y + config.POINT_LABEL_OFFSET_Y,
            text=group.label,
            anchor="end" if horz_mult < 0 else "start",
        )
        for group, (x, y) in zip(groups, points)
    ]


def build_stiff_diagram(input_data: Union[StiffDiagramInput, Dict[str, Any]]) -> Diagram:
    """
    Build a Stiff diagram for one concentration record.

    Args:
        input_data: StiffDiagramInput or an equivalent dictionary

    Returns:
        Diagram with axes, ticks, labels and the closed polygon

    Raises:
        UnknownIonError, InconsistentGroupError, InvalidConcentrationError,
        DegenerateTotalError
    """
    if not isinstance(input_data, StiffDiagramInput):
        input_data = StiffDiagramInput.model_validate(input_data)
    config = input_data.config

    polygon = compute_stiff_polygon(input_data.ion_groups, input_data.concentrations, config)
    logger.info(
        f"Building Stiff diagram '{input_data.container_id}': "
        f"{len(polygon.cation_groups)} cation groups, {len(polygon.anion_groups)} anion groups, "
        f"scale {polygon.max_meq_l:.2f} mEq/L"
    )

    primitives: list = _horizontal_axis(polygon, config)
    primitives.extend(_valence_labels(config))
    primitives.append(PathPrimitive(
        role="axis",
        points=[
            (config.vert_axis_x, config.HORZ_AXIS_Y),
            (config.vert_axis_x, config.HORZ_AXIS_Y + config.VERT_AXIS_HEIGHT),
        ],
    ))
    primitives.append(PolygonPrimitive(points=polygon.vertices))
    primitives.extend(_point_labels(polygon.cation_groups, polygon.cation_points, -1, config))
    primitives.extend(_point_labels(polygon.anion_groups, polygon.anion_points, 1, config))

    return Diagram(
        diagram_type="stiff",
        container_id=input_data.container_id,
        width=config.WIDTH,
        height=config.HEIGHT,
        primitives=primitives,
    )
