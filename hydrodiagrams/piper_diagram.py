"""
Piper Diagram Geometry Engine

Maps major-ion analyses onto the Piper trilinear diagram: one point in the
cation triangle, one in the anion triangle and one in the central diamond
per concentration record.

Only two of the three ternary proportions on each side are independent
(they sum to 1), so each triangle point is placed from two of them: the
vertical offset from one proportion and the horizontal offset from another,
corrected for the slope of the triangle sides. The diamond point is found by
projecting both triangle points onto the diamond's virtual base and
intersecting the two 60 degree lines through them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple, Union
import logging

import numpy as np

from .core_config import PIPER_CONFIG, PiperLayoutConfig, SIN_60, TAN_30, TAN_60
from .exceptions import ChargeBalanceError, DegenerateTotalError
from .geometry import svg_rotate, to_point_list, translate
from .ions import ANION_SYMBOLS, CATION_SYMBOLS, ION_SYMBOLS
from .schemas import (
    Diagram,
    MarkerPrimitive,
    PathPrimitive,
    PiperDiagramInput,
    RectPrimitive,
    TextPrimitive,
)
from .unit_conversions import calculate_charge_balance, record_to_equivalents, sum_equivalents

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class PiperProportions:
    """Equivalent fractions of one sample; each side sums to 1."""
    ca: float
    mg: float
    na_k: float
    cl: float
    so4: float
    co3_hco3: float
    cation_total_meq_l: float
    anion_total_meq_l: float
    equivalents_meq_l: Dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def cation_sum(self) -> float:
        return self.ca + self.mg + self.na_k

    @property
    def anion_sum(self) -> float:
        return self.cl + self.so4 + self.co3_hco3

    @property
    def charge_balance_percent(self) -> float:
        return calculate_charge_balance(self.cation_total_meq_l, self.anion_total_meq_l)


@dataclass(frozen=True)
class PiperPoint:
    """Canvas coordinates of one sample in the three Piper fields."""
    proportions: PiperProportions
    cation: Point
    anion: Point
    diamond: Point
    cation_offset: Point   # (dx, dy) from the bottom-left corner of the cation triangle
    anion_offset: Point    # (dx, dy) from the bottom-left corner of the anion triangle
    diamond_offset: Point  # (dx, dy) up from the bottom corner's level in the diamond frame


def group_hue(index: int, config: PiperLayoutConfig = PIPER_CONFIG) -> int:
    """Hue for the i-th group; deterministic so repeated builds match."""
    return (config.HUE_STEP_DEGREES * index) % 360


def group_color(index: int, config: PiperLayoutConfig = PIPER_CONFIG) -> str:
    """CSS hsl() color for the i-th group."""
    return (
        f"hsl({group_hue(index, config)}, "
        f"{config.COLOR_SATURATION_PERCENT}%, {config.COLOR_LIGHTNESS_PERCENT}%)"
    )


def compute_proportions(record: Mapping[str, float]) -> PiperProportions:
    """
    Normalize a concentration record into cation and anion proportions.

    Args:
        record: Ion symbol -> mg/L for all eight major ions

    Returns:
        PiperProportions

    Raises:
        UnknownIonError: If the record holds an unknown ion symbol
        InvalidConcentrationError: If an ion is missing or a concentration is negative
        DegenerateTotalError: If the cation or anion total is zero
    """
    meq_l = record_to_equivalents(record, symbols=ION_SYMBOLS)

    cation_total = sum_equivalents(meq_l, CATION_SYMBOLS)
    anion_total = sum_equivalents(meq_l, ANION_SYMBOLS)
    if cation_total == 0:
        raise DegenerateTotalError("cation", cation_total)
    if anion_total == 0:
        raise DegenerateTotalError("anion", anion_total)

    return PiperProportions(
        ca=meq_l['Ca'] / cation_total,
        mg=meq_l['Mg'] / cation_total,
        na_k=(meq_l['Na'] + meq_l['K']) / cation_total,
        cl=meq_l['Cl'] / anion_total,
        so4=meq_l['SO4'] / anion_total,
        co3_hco3=(meq_l['CO3'] + meq_l['HCO3']) / anion_total,
        cation_total_meq_l=cation_total,
        anion_total_meq_l=anion_total,
        equivalents_meq_l=meq_l,
    )


def compute_piper_point(
    record: Mapping[str, float],
    config: PiperLayoutConfig = PIPER_CONFIG
) -> PiperPoint:
    """
    Place one concentration record in the cation triangle, anion triangle
    and diamond field.

    Args:
        record: Ion symbol -> mg/L for all eight major ions
        config: Canvas layout

    Returns:
        PiperPoint with absolute canvas coordinates
    """
    p = compute_proportions(record)
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    top_y = config.TRIANGLE_TRANSLATE_Y

    # Cation triangle: Mg sets the height, Ca the distance from the right corner
    cation_offset_y = SIN_60 * p.mg * width
    cation_base_offset_x = (1 - p.ca) * width
    cation_offset_x = cation_base_offset_x - (cation_offset_y / TAN_60)

    # Anion triangle: SO4 sets the height, CO3 + HCO3 the distance from the right corner
    anion_offset_y = SIN_60 * p.so4 * width
    anion_base_offset_x = (1 - p.co3_hco3) * width
    anion_offset_x = anion_base_offset_x - (anion_offset_y / TAN_60)

    # Diamond: project both points onto the diamond's base line and intersect
    a = cation_base_offset_x - ((cation_offset_y / TAN_60) * 2)
    b = anion_base_offset_x
    diamond_offset_x = (a + b) / 2
    diamond_offset_y = TAN_60 * ((diamond_offset_x + (width / 2)) - a)

    point = PiperPoint(
        proportions=p,
        cation=(
            config.cation_translate_x + cation_offset_x,
            top_y + base_y - cation_offset_y,
        ),
        anion=(
            config.anion_translate_x + anion_offset_x,
            top_y + base_y - anion_offset_y,
        ),
        diamond=(
            config.diamond_translate_x + diamond_offset_x,
            config.diamond_translate_y + base_y + config.triangle_height - diamond_offset_y,
        ),
        cation_offset=(cation_offset_x, cation_offset_y),
        anion_offset=(anion_offset_x, anion_offset_y),
        diamond_offset=(diamond_offset_x, diamond_offset_y),
    )
    logger.debug(
        f"Piper point: Ca={p.ca:.3f} Mg={p.mg:.3f} Na+K={p.na_k:.3f} | "
        f"Cl={p.cl:.3f} SO4={p.so4:.3f} CO3+HCO3={p.co3_hco3:.3f} -> "
        f"cation={point.cation}, anion={point.anion}, diamond={point.diamond}"
    )
    return point


# =============================================================================
# Static frame
# =============================================================================

def _triangle_grid_right(config: PiperLayoutConfig) -> np.ndarray:
    """
    Grid lines drawn from the base up to the right side of a triangle.

    Every other grid family (the other two triangle directions and both
    halves of the diamond) is this one rotated and/or flipped.

    Returns:
        Array of shape (NUM_GRID_INTERVALS + 1, 2, 2): one segment per line
    """
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    interval = width / config.NUM_GRID_INTERVALS
    segments = []
    for i in range(config.NUM_GRID_INTERVALS + 1):
        x1 = i * interval
        y1 = base_y
        x2 = x1 + ((width - x1) / 2)
        y2 = y1 - TAN_60 * (x2 - x1)
        segments.append(((x1, y1), (x2, y2)))
    return np.array(segments, dtype=float)


def _grid_family(config: PiperLayoutConfig, rotation: float, flip_y: bool = False) -> np.ndarray:
    """One grid family, rotated about the triangle centroid and optionally flipped about its base."""
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    points = _triangle_grid_right(config).reshape(-1, 2)
    if rotation != 0:
        centroid_y = base_y - (TAN_30 * (width / 2))
        points = svg_rotate(points, rotation, width / 2, centroid_y)
    if flip_y:
        points = svg_rotate(points, 180, width / 2, base_y)
    return points.reshape(-1, 2, 2)


def _grid_paths(families: List[np.ndarray], dx: float, dy: float, field_name: str) -> List[PathPrimitive]:
    paths = []
    for family in families:
        for segment in family:
            paths.append(PathPrimitive(
                role="grid",
                points=to_point_list(translate(segment, dx, dy)),
                field=field_name,
            ))
    return paths


def _axis_label_positions(config: PiperLayoutConfig) -> Dict[str, float]:
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    margin = config.AXIS_LABEL_MARGIN
    left_x = ((np.cos(np.pi / 3) * width) / 2) - (np.cos(np.pi / 6) * margin)
    top_y = base_y - ((SIN_60 * width) / 2) - (np.sin(np.pi / 6) * margin)
    return {
        "left_x": float(left_x),
        "right_x": float(width - left_x),
        "top_y": float(top_y),
        "bottom_y": float((2 * base_y) - top_y),
    }


def _axis_label(x: float, y: float, rotation: float, text: str, dx: float, dy: float) -> TextPrimitive:
    return TextPrimitive(role="axis-label", x=x + dx, y=y + dy, rotation=rotation, text=text)


def _diamond_frame(config: PiperLayoutConfig) -> list:
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    height = config.triangle_height
    dx, dy = config.diamond_translate_x, config.diamond_translate_y
    labels = _axis_label_positions(config)

    primitives: list = _grid_paths(
        [
            _grid_family(config, 0),
            _grid_family(config, 120),
            _grid_family(config, 0, flip_y=True),
            _grid_family(config, 120, flip_y=True),
        ],
        dx, dy, "diamond",
    )
    outline = [
        (0, base_y),
        (width / 2, base_y - height),
        (width, base_y),
        (width / 2, base_y + height),
    ]
    primitives.append(PathPrimitive(
        role="outline",
        points=to_point_list(translate(outline, dx, dy)),
        closed=True,
        field="diamond",
    ))
    primitives.extend([
        _axis_label(labels["left_x"], labels["top_y"], -60, "SO4 + Cl →", dx, dy),
        _axis_label(labels["right_x"], labels["top_y"], 60, "← Ca + Mg", dx, dy),
        _axis_label(labels["left_x"], labels["bottom_y"], 60, "Na + K →", dx, dy),
        _axis_label(labels["right_x"], labels["bottom_y"], -60, "← CO3 + HCO3", dx, dy),
    ])
    return primitives


def _triangle_frame(
    config: PiperLayoutConfig,
    field_name: str,
    dx: float,
    left_label: str,
    right_label: str,
    base_label: str
) -> list:
    width = config.TRIANGLE_WIDTH
    base_y = config.triangle_base_y
    dy = config.TRIANGLE_TRANSLATE_Y
    labels = _axis_label_positions(config)

    primitives: list = _grid_paths(
        [_grid_family(config, 0), _grid_family(config, 120), _grid_family(config, 240)],
        dx, dy, field_name,
    )
    outline = [(0, base_y), (width / 2, base_y - config.triangle_height), (width, base_y)]
    primitives.append(PathPrimitive(
        role="outline",
        points=to_point_list(translate(outline, dx, dy)),
        closed=True,
        field=field_name,
    ))
    primitives.extend([
        _axis_label(labels["left_x"], labels["top_y"], -60, left_label, dx, dy),
        _axis_label(labels["right_x"], labels["top_y"], 60, right_label, dx, dy),
        _axis_label(width / 2, base_y + config.AXIS_LABEL_MARGIN, 0, base_label, dx, dy),
    ])
    return primitives


def _legend(group_names: List[str], config: PiperLayoutConfig) -> list:
    legend_x = config.legend_x
    legend_y = config.LEGEND_Y
    row_height = config.LEGEND_ROW_HEIGHT
    primitives: list = [RectPrimitive(
        x=legend_x,
        y=legend_y,
        width=config.legend_width,
        height=row_height * len(group_names) + config.LEGEND_PADDING,
    )]
    for i, name in enumerate(group_names):
        primitives.append(MarkerPrimitive(
            role="legend-marker",
            x=legend_x + config.LEGEND_MARKER_OFFSET_X,
            y=legend_y + row_height * (i + 0.5) + config.LEGEND_MARKER_OFFSET_Y,
            radius=config.POINT_RADIUS,
            color=group_color(i, config),
            group=name,
        ))
        primitives.append(TextPrimitive(
            role="legend-label",
            x=legend_x + config.LEGEND_LABEL_OFFSET_X,
            y=legend_y + row_height * (i + 1),
            text=name,
            anchor="start",
        ))
    return primitives


# =============================================================================
# Main entry point
# =============================================================================

def _check_charge_balance(point: PiperPoint, sample: str, input_data: PiperDiagramInput) -> None:
    p = point.proportions
    tolerance = input_data.config.CHARGE_BALANCE_WARNING_PERCENT
    imbalance = p.charge_balance_percent
    if imbalance <= tolerance:
        return
    if input_data.strict_charge_balance:
        raise ChargeBalanceError(p.cation_total_meq_l, p.anion_total_meq_l, tolerance, sample=sample)
    logger.warning(
        f"Charge imbalance of {imbalance:.1f}% for sample {sample} "
        f"(cations={p.cation_total_meq_l:.2f} mEq/L, anions={p.anion_total_meq_l:.2f} mEq/L). "
        f"Verify water analysis data."
    )


def build_piper_diagram(input_data: Union[PiperDiagramInput, Dict[str, Any]]) -> Diagram:
    """
    Build a Piper diagram from grouped or flat concentration records.

    Every record is validated and placed before any primitive is produced,
    so a bad record anywhere fails the whole build.

    Args:
        input_data: PiperDiagramInput or an equivalent dictionary

    Returns:
        Diagram with frame, data points (three per record) and optional legend

    Raises:
        UnknownIonError, InvalidConcentrationError, DegenerateTotalError,
        ChargeBalanceError (strict mode only)
    """
    if not isinstance(input_data, PiperDiagramInput):
        input_data = PiperDiagramInput.model_validate(input_data)
    config = input_data.config
    groups = input_data.sample_groups()

    placed: List[List[PiperPoint]] = []
    for group in groups:
        points = []
        for i, record in enumerate(group.values):
            point = compute_piper_point(record, config)
            _check_charge_balance(point, f"{group.name}[{i}]", input_data)
            points.append(point)
        placed.append(points)

    logger.info(
        f"Building Piper diagram '{input_data.container_id}': "
        f"{sum(len(points) for points in placed)} samples in {len(groups)} groups"
    )

    primitives: list = _diamond_frame(config)
    primitives.extend(_triangle_frame(
        config, "cation", config.cation_translate_x, "Mg →", "Na + K →", "← Ca"
    ))
    primitives.extend(_triangle_frame(
        config, "anion", config.anion_translate_x, "← CO3 + HCO3", "← SO4", "Cl →"
    ))

    for i, (group, points) in enumerate(zip(groups, placed)):
        color = group_color(i, config)
        for point in points:
            for field_name in ("cation", "anion", "diamond"):
                x, y = getattr(point, field_name)
                primitives.append(MarkerPrimitive(
                    x=x,
                    y=y,
                    radius=config.POINT_RADIUS,
                    color=color,
                    group=group.name,
                    field=field_name,
                ))

    if input_data.legend_enabled:
        primitives.extend(_legend([group.name for group in groups], config))

    return Diagram(
        diagram_type="piper",
        container_id=input_data.container_id,
        width=config.WIDTH,
        height=config.HEIGHT,
        primitives=primitives,
    )
