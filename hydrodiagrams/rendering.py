"""
Diagram Rendering

Turns the drawing primitives produced by the geometry engines into a
displayable artifact: inline SVG markup (matplotlib) or an embeddable HTML
fragment whose element id is the diagram's container id (Plotly).
Separated from the geometry engines to avoid heavy imports unless needed.
Nothing is written to disk; both renderers return strings.
"""

import colorsys
import io
import logging
import re
from typing import Any, Dict, List

from .schemas import Diagram

logger = logging.getLogger(__name__)

_HSL_PATTERN = re.compile(r"hsl\(\s*([\d.]+)\s*,\s*([\d.]+)%\s*,\s*([\d.]+)%\s*\)")

# Stroke styles per path role: (color, line width in px)
PATH_STYLES: Dict[str, tuple] = {
    "outline": ("#000000", 1.5),
    "grid": ("#b0b0b0", 0.5),
    "axis": ("#000000", 1.5),
    "axis-tick": ("#000000", 1.0),
}
POLYGON_FILL = "#0079c1"
POLYGON_ALPHA = 0.6
FONT_SIZE_PX: Dict[str, float] = {
    "axis-label": 13.0,
    "axis-tick-label": 11.0,
    "point-label": 13.0,
    "valence-label": 14.0,
    "legend-label": 11.0,
}
DPI = 100


def hsl_to_hex(color: str) -> str:
    """
    Convert a CSS ``hsl(h, s%, l%)`` color to ``#rrggbb``.

    Any other color string is returned unchanged.
    """
    match = _HSL_PATTERN.fullmatch(color.strip())
    if not match:
        return color
    hue, saturation, lightness = (float(v) for v in match.groups())
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness / 100.0, saturation / 100.0)
    return "#{:02x}{:02x}{:02x}".format(round(r * 255), round(g * 255), round(b * 255))


def _svg_path(points: List[tuple], closed: bool) -> str:
    head, *tail = points
    path = f"M {head[0]},{head[1]}"
    for x, y in tail:
        path += f" L {x},{y}"
    if closed:
        path += " Z"
    return path


def _draw_primitives(ax, diagram: Diagram) -> None:
    from matplotlib.patches import Circle, Polygon, Rectangle

    px_to_pt = 72.0 / DPI

    ax.set_xlim(0, diagram.width)
    ax.set_ylim(diagram.height, 0)  # y grows downward on the design canvas
    ax.set_aspect('equal')
    ax.axis('off')

    for primitive in diagram.primitives:
        if primitive.kind == "path":
            color, width = PATH_STYLES[primitive.role]
            xs = [p[0] for p in primitive.points]
            ys = [p[1] for p in primitive.points]
            if primitive.closed:
                xs.append(xs[0])
                ys.append(ys[0])
            ax.plot(xs, ys, color=color, linewidth=width * px_to_pt, solid_capstyle='butt')
        elif primitive.kind == "polygon":
            ax.add_patch(Polygon(
                primitive.points, closed=True,
                facecolor=POLYGON_FILL, edgecolor='black', alpha=POLYGON_ALPHA, linewidth=1
            ))
        elif primitive.kind == "marker":
            ax.add_patch(Circle(
                (primitive.x, primitive.y), primitive.radius,
                facecolor=hsl_to_hex(primitive.color), edgecolor='none'
            ))
        elif primitive.kind == "rect":
            ax.add_patch(Rectangle(
                (primitive.x, primitive.y), primitive.width, primitive.height,
                facecolor='none', edgecolor='black', linewidth=1
            ))
        elif primitive.kind == "text":
            ha = {"start": "left", "middle": "center", "end": "right"}[primitive.anchor]
            ax.text(
                primitive.x, primitive.y, primitive.text,
                rotation=-primitive.rotation,  # matplotlib turns counter-clockwise
                rotation_mode='anchor',
                ha=ha, va='baseline',
                fontsize=FONT_SIZE_PX[primitive.role] * px_to_pt,
            )


def render_svg(diagram: Diagram) -> str:
    """Render a diagram to SVG markup using matplotlib."""
    # Lazy import matplotlib only when SVG is requested
    import matplotlib
    matplotlib.use('Agg')  # Non-interactive backend
    import matplotlib.pyplot as plt

    fig = plt.figure(figsize=(diagram.width / DPI, diagram.height / DPI), dpi=DPI)
    try:
        _draw_primitives(fig.add_axes([0, 0, 1, 1]), diagram)
        buffer = io.StringIO()
        fig.savefig(buffer, format='svg')
    finally:
        plt.close(fig)

    logger.info(f"Rendered {diagram.diagram_type} diagram '{diagram.container_id}' to SVG")
    return buffer.getvalue()


def build_plotly_figure(diagram: Diagram):
    """Build a Plotly figure reproducing the diagram on a fixed canvas."""
    try:
        import plotly.graph_objects as go
    except ImportError:
        raise ImportError("Plotly not installed. Install with: pip install plotly")

    fig = go.Figure()
    markers: Dict[tuple, Dict[str, Any]] = {}

    for primitive in diagram.primitives:
        if primitive.kind == "path":
            color, width = PATH_STYLES[primitive.role]
            fig.add_shape(
                type="path",
                path=_svg_path(primitive.points, primitive.closed),
                line=dict(color=color, width=width),
                layer="below",
            )
        elif primitive.kind == "polygon":
            fig.add_shape(
                type="path",
                path=_svg_path(primitive.points, True),
                line=dict(color="black", width=1),
                fillcolor=POLYGON_FILL,
                opacity=POLYGON_ALPHA,
            )
        elif primitive.kind == "rect":
            fig.add_shape(
                type="rect",
                x0=primitive.x, y0=primitive.y,
                x1=primitive.x + primitive.width, y1=primitive.y + primitive.height,
                line=dict(color="black", width=1),
            )
        elif primitive.kind == "marker":
            # One trace per group; group hues repeat from the 21st group on
            trace = markers.setdefault(
                (hsl_to_hex(primitive.color), primitive.group),
                {"x": [], "y": [], "size": primitive.radius * 2, "name": primitive.group or ""}
            )
            trace["x"].append(primitive.x)
            trace["y"].append(primitive.y)
        elif primitive.kind == "text":
            fig.add_annotation(
                x=primitive.x, y=primitive.y, text=primitive.text,
                showarrow=False,
                textangle=primitive.rotation,  # Plotly turns clockwise like SVG
                xanchor={"start": "left", "middle": "center", "end": "right"}[primitive.anchor],
                yanchor="bottom",
                font=dict(size=FONT_SIZE_PX[primitive.role]),
            )

    for (color, _), trace in markers.items():
        fig.add_trace(go.Scatter(
            x=trace["x"], y=trace["y"], mode="markers", name=trace["name"],
            marker=dict(color=color, size=trace["size"]),
            showlegend=False,
        ))

    fig.update_xaxes(range=[0, diagram.width], visible=False)
    fig.update_yaxes(range=[diagram.height, 0], visible=False, scaleanchor="x", scaleratio=1)
    fig.update_layout(
        width=diagram.width,
        height=diagram.height,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor="white",
        paper_bgcolor="white",
    )
    return fig


def render_html(diagram: Diagram) -> str:
    """
    Render a diagram to an HTML fragment for embedding in a page.

    The returned ``<div>`` carries the diagram's container id; Plotly's
    JavaScript is loaded from the CDN.
    """
    fig = build_plotly_figure(diagram)
    html = fig.to_html(full_html=False, include_plotlyjs='cdn', div_id=diagram.container_id)
    logger.info(f"Rendered {diagram.diagram_type} diagram '{diagram.container_id}' to HTML")
    return html
