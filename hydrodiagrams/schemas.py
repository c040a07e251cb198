"""
Input and output schemas for the diagram engines

Inputs describe what to plot (concentration records in mg/L and how they
are grouped). Outputs are ordered lists of drawing primitives carrying
absolute coordinates in the design canvas; a renderer turns them into a
displayable artifact.
"""

from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, Field, InstanceOf, StrictFloat, StrictInt, model_validator

from .core_config import PIPER_CONFIG, STIFF_CONFIG, PiperLayoutConfig, StiffLayoutConfig

Point = Tuple[float, float]

# Concentration record: ion symbol -> mg/L; strings and booleans are rejected, not coerced
ConcentrationRecord = Dict[str, Union[StrictInt, StrictFloat]]

# Default Stiff layout: one row per pair of groups, cations and anions interleaved
DEFAULT_STIFF_ION_GROUPS: Tuple[Tuple[str, ...], ...] = (
    ("Na", "K"),
    ("Ca",),
    ("Mg",),
    ("Cl",),
    ("HCO3", "CO3"),
    ("SO4",),
)


# =============================================================================
# Drawing Primitives
# =============================================================================

class PathPrimitive(BaseModel):
    """Open or closed polyline: outlines, grid lines, axes and ticks."""
    kind: Literal["path"] = "path"
    role: Literal["outline", "grid", "axis", "axis-tick"]
    points: List[Point]
    closed: bool = False
    field: Optional[str] = Field(None, description="Diagram field the path belongs to (cation, anion, diamond)")


class TextPrimitive(BaseModel):
    """Text label; rotation is in degrees, clockwise on screen, about (x, y)."""
    kind: Literal["text"] = "text"
    role: Literal["axis-label", "axis-tick-label", "point-label", "valence-label", "legend-label"]
    x: float
    y: float
    text: str
    rotation: float = 0.0
    anchor: Literal["start", "middle", "end"] = "middle"


class MarkerPrimitive(BaseModel):
    """Filled circular point marker."""
    kind: Literal["marker"] = "marker"
    role: Literal["data-point", "legend-marker"] = "data-point"
    x: float
    y: float
    radius: float
    color: str
    group: Optional[str] = None
    field: Optional[Literal["cation", "anion", "diamond"]] = None


class PolygonPrimitive(BaseModel):
    """Closed polygon; the last vertex connects back to the first."""
    kind: Literal["polygon"] = "polygon"
    role: Literal["polygon"] = "polygon"
    points: List[Point]

    def segments(self) -> List[Tuple[Point, Point]]:
        """Edges of the polygon, including the closing edge."""
        n = len(self.points)
        return [(self.points[i], self.points[(i + 1) % n]) for i in range(n)]


class RectPrimitive(BaseModel):
    """Axis-aligned rectangle (legend border)."""
    kind: Literal["rect"] = "rect"
    role: Literal["legend-border"] = "legend-border"
    x: float
    y: float
    width: float
    height: float


Primitive = Annotated[
    Union[PathPrimitive, TextPrimitive, MarkerPrimitive, PolygonPrimitive, RectPrimitive],
    Field(discriminator="kind")
]


class Diagram(BaseModel):
    """A complete diagram: canvas size plus ordered drawing primitives."""
    diagram_type: Literal["piper", "stiff"]
    container_id: str = Field(..., description="Identifier of the page element the renderer attaches to")
    width: float
    height: float
    primitives: List[Primitive] = Field(default_factory=list)

    def by_kind(self, kind: str) -> List[Primitive]:
        return [p for p in self.primitives if p.kind == kind]

    def by_role(self, role: str) -> List[Primitive]:
        return [p for p in self.primitives if p.role == role]


# =============================================================================
# Piper Input
# =============================================================================

class SampleGroup(BaseModel):
    """
    Named set of concentration records sharing one color and legend entry.

    Example:
        {
            "name": "Well 123456",
            "values": [
                {"Ca": 61, "Mg": 43, "Na": 475, "K": 1, "Cl": 740, "SO4": 10, "CO3": 0.6, "HCO3": 386},
                {"Ca": 14, "Mg": 6.9, "Na": 25, "K": 4, "Cl": 26, "SO4": 4.6, "CO3": 0.4, "HCO3": 106}
            ]
        }
    """
    name: str = Field(..., description="Legend label for the group")
    values: List[ConcentrationRecord] = Field(
        default_factory=list,
        description="Concentration records with Ca, Mg, Na, K, Cl, SO4, CO3, HCO3 in mg/L"
    )


class PiperDiagramInput(BaseModel):
    """
    Input for the Piper diagram engine.

    Supply either ``groups`` (grouped records with a legend) or ``samples``
    (a flat list of records plotted in one color, no legend unless
    ``show_legend`` is set).
    """
    container_id: str = Field("piper", description="Target container identifier, passed through to the renderer")
    groups: Optional[List[SampleGroup]] = None
    samples: Optional[List[ConcentrationRecord]] = None
    samples_name: str = Field("Samples", description="Legend label used for a flat sample list")
    show_legend: Optional[bool] = Field(None, description="Defaults to True for groups, False for samples")
    strict_charge_balance: bool = Field(
        False,
        description="If True, raise ChargeBalanceError on imbalance instead of logging a warning"
    )
    config: InstanceOf[PiperLayoutConfig] = PIPER_CONFIG

    @model_validator(mode="after")
    def check_calling_convention(self):
        if (self.groups is None) == (self.samples is None):
            raise ValueError("Provide exactly one of 'groups' or 'samples'")
        return self

    def sample_groups(self) -> List[SampleGroup]:
        """Normalize both calling conventions into a list of groups."""
        if self.groups is not None:
            return list(self.groups)
        return [SampleGroup(name=self.samples_name, values=list(self.samples))]

    @property
    def legend_enabled(self) -> bool:
        if self.show_legend is not None:
            return self.show_legend
        return self.groups is not None


# =============================================================================
# Stiff Input
# =============================================================================

class StiffDiagramInput(BaseModel):
    """
    Input for the Stiff diagram engine.

    Example:
        {
            "ion_groups": [["Na", "K"], ["Ca"], ["Mg"], ["Cl"], ["HCO3", "CO3"], ["SO4"]],
            "concentrations": {"Ca": 61, "Mg": 43, "Na": 475, "K": 1,
                               "Cl": 740, "SO4": 10, "CO3": 0.6, "HCO3": 386}
        }

    Groups are split into cations and anions by valence sign, keeping their order.
    """
    container_id: str = Field("stiff", description="Target container identifier, passed through to the renderer")
    ion_groups: List[List[str]] = Field(
        default_factory=lambda: [list(group) for group in DEFAULT_STIFF_ION_GROUPS],
        description="Ion symbol groups; each group is one plotted position"
    )
    concentrations: ConcentrationRecord = Field(..., description="Ion symbol -> concentration in mg/L")
    config: InstanceOf[StiffLayoutConfig] = STIFF_CONFIG
