"""
Hydrochemistry Diagrams

Piper and Stiff diagram geometry for major-ion water analyses, plus
renderers that turn the computed drawing primitives into SVG or HTML.
"""

# Modules are imported directly (e.g. hydrodiagrams.piper_diagram) so the
# renderers' plotting libraries load only when requested

__version__ = "0.1.0"

__all__ = []
