"""
Core Configuration Module for the Piper and Stiff diagram engines

Centralizes every layout constant so the geometry engines and renderers
share one source of truth. All lengths are in design-canvas pixels with the
origin at the top-left corner and y growing downward.
"""

from dataclasses import dataclass
import math
import logging

logger = logging.getLogger(__name__)

SIN_60 = math.sin(math.pi / 3)
TAN_60 = math.tan(math.pi / 3)
TAN_30 = math.tan(math.pi / 6)


@dataclass(frozen=True)
class PiperLayoutConfig:
    """
    Layout of the Piper diagram canvas.

    Two equilateral triangles sit side by side with a gap between them; the
    diamond field sits centred above and between them so that its lower
    sides line up with the inner sides of the triangles.
    Using frozen=True ensures these values cannot be modified at runtime;
    use dataclasses.replace() for a custom layout.
    """

    # Canvas
    WIDTH: float = 800.0
    HEIGHT: float = 700.0

    # Triangles
    TRIANGLE_WIDTH: float = 300.0        # side length of every triangle
    TRIANGLE_TRANSLATE_Y: float = 350.0  # top of the triangle frames
    TRIANGLE_CENTRE_MARGIN: float = 50.0 # half the gap between the two triangles
    NUM_GRID_INTERVALS: int = 10         # grid subdivisions per edge
    AXIS_LABEL_MARGIN: float = 20.0

    # Data points
    POINT_RADIUS: float = 5.0

    # Legend
    LEGEND_ROW_HEIGHT: float = 15.0
    LEGEND_X_FRACTION: float = 0.73
    LEGEND_Y: float = 30.0
    LEGEND_MARKER_OFFSET_X: float = 14.0
    LEGEND_MARKER_OFFSET_Y: float = 4.0
    LEGEND_LABEL_OFFSET_X: float = 25.0
    LEGEND_PADDING: float = 7.0

    # Group colors: hue rotates by this many degrees per group
    HUE_STEP_DEGREES: int = 54
    COLOR_SATURATION_PERCENT: int = 100
    COLOR_LIGHTNESS_PERCENT: int = 45

    # Charge balance check on every plotted sample
    CHARGE_BALANCE_WARNING_PERCENT: float = 5.0

    @property
    def triangle_base_y(self) -> float:
        """Base line of a triangle in its own frame (equal to the side length)."""
        return self.TRIANGLE_WIDTH

    @property
    def triangle_height(self) -> float:
        return TAN_60 * (self.TRIANGLE_WIDTH / 2)

    @property
    def cation_translate_x(self) -> float:
        return (self.WIDTH / 2) - self.TRIANGLE_CENTRE_MARGIN - self.TRIANGLE_WIDTH

    @property
    def anion_translate_x(self) -> float:
        return (self.WIDTH / 2) + self.TRIANGLE_CENTRE_MARGIN

    @property
    def diamond_translate_x(self) -> float:
        return (self.WIDTH / 2) - (self.TRIANGLE_WIDTH / 2)

    @property
    def diamond_translate_y(self) -> float:
        """
        Vertical offset of the diamond frame.

        Picture a small equilateral spacer triangle whose corners touch the
        bottom point of the diamond and the nearby corners of both triangles.
        """
        return (
            (self.TRIANGLE_TRANSLATE_Y + self.triangle_base_y)   # base of the triangles
            - (TAN_60 * self.TRIANGLE_CENTRE_MARGIN)             # up the spacer triangle
            - self.triangle_height                               # up the lower half of the diamond
            - self.triangle_base_y                               # up the frame above the diamond's mid line
        )

    @property
    def legend_x(self) -> float:
        return self.WIDTH * self.LEGEND_X_FRACTION

    @property
    def legend_width(self) -> float:
        return self.WIDTH - self.legend_x - self.LEGEND_Y


@dataclass(frozen=True)
class StiffLayoutConfig:
    """
    Layout of the Stiff diagram canvas.

    A horizontal mEq/L axis runs across the top; the vertical axis drops from
    its centre. Cation groups plot to the left, anion groups to the right.
    """

    # Canvas
    WIDTH: float = 600.0
    HEIGHT: float = 500.0

    # Horizontal (mEq/L) axis
    HORZ_AXIS_WIDTH: float = 175.0  # one side; the full axis is twice this
    HORZ_AXIS_Y: float = 120.0
    HORZ_AXIS_LABEL_OFFSET_Y: float = 60.0
    HORZ_AXIS_MAJOR_TICKS: int = 2
    HORZ_AXIS_MINOR_TICKS: int = 10
    HORZ_AXIS_MAJOR_TICK_LENGTH: float = 15.0
    HORZ_AXIS_MINOR_TICK_LENGTH: float = 10.0
    HORZ_AXIS_TICK_LABEL_OFFSET_Y: float = 25.0
    HORZ_AXIS_LABEL: str = "Milliequivalents per litre (mEq/L)"

    # Vertical axis
    VERT_AXIS_HEIGHT: float = 330.0
    VERT_AXIS_PADDING_TOP: float = 0.2
    VERT_AXIS_PADDING_BOTTOM: float = 0.225

    # Labels
    POINT_LABEL_OFFSET_X: float = 15.0
    POINT_LABEL_OFFSET_Y: float = 5.0
    VALENCE_LABEL_MARGIN_BOTTOM: float = 20.0

    @property
    def vert_axis_x(self) -> float:
        return self.WIDTH / 2

    @property
    def padded_top_y(self) -> float:
        """y of the first row."""
        return self.HORZ_AXIS_Y + (self.VERT_AXIS_PADDING_TOP * self.VERT_AXIS_HEIGHT)

    @property
    def inner_height(self) -> float:
        """Vertical span between the first and the last row."""
        return self.VERT_AXIS_HEIGHT * (1 - self.VERT_AXIS_PADDING_TOP - self.VERT_AXIS_PADDING_BOTTOM)


# Create singleton instances
PIPER_CONFIG = PiperLayoutConfig()
STIFF_CONFIG = StiffLayoutConfig()
