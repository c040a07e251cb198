"""
Planar transforms for the design canvas.

Rotations follow the SVG ``rotate(angle cx cy)`` convention: the canvas y
axis points down, so a positive angle turns clockwise on screen.
"""

from typing import List, Tuple

import numpy as np


def svg_rotate(points, angle_deg: float, cx: float, cy: float) -> np.ndarray:
    """Rotate an (N, 2) array of points by angle_deg about (cx, cy)."""
    theta = np.radians(angle_deg)
    c, s = np.cos(theta), np.sin(theta)
    matrix = np.array([[c, -s], [s, c]])
    centre = np.array([cx, cy])
    return (np.asarray(points, dtype=float) - centre) @ matrix.T + centre


def translate(points, dx: float, dy: float) -> np.ndarray:
    return np.asarray(points, dtype=float) + np.array([dx, dy])


def to_point_list(points) -> List[Tuple[float, float]]:
    """Plain (x, y) float tuples for the schema models."""
    return [(float(x), float(y)) for x, y in np.asarray(points, dtype=float)]
