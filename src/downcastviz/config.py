# downcastviz/config.py
"""
Presentation configuration.

DEFAULT_STYLES is the per-variable table consumed by the plotting layer
(colour limits, axis/colourbar label, palette, contour levels). PlotTheme
replaces global rcParams tweaks: it is applied with `matplotlib.rc_context`
around each figure, so nothing leaks between plots.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import copy

import matplotlib as mpl

__all__ = ["DEFAULT_STYLES", "PlotTheme", "merge_styles"]


DEFAULT_STYLES: Dict[str, Dict[str, Any]] = {
    "temperature": {"label": "Temperature (°C)", "cmap": "RdYlBu_r", "vmin": 0.0, "vmax": 30.0, "levels": 25},
    "salinity": {"label": "Salinity (PSU)", "cmap": "viridis", "vmin": 0.0, "vmax": 35.0, "levels": 25},
    "dissolved_oxygen": {"label": "Dissolved oxygen (mg/L)", "cmap": "YlGnBu", "vmin": 0.0, "vmax": 14.0, "levels": 28},
    "turbidity": {"label": "Turbidity (NTU)", "cmap": "copper_r", "vmin": 0.0, "vmax": None, "levels": 20},
    "ph": {"label": "pH", "cmap": "PuOr", "vmin": 6.0, "vmax": 9.0, "levels": 24},
    "chlorophyll": {"label": "Chlorophyll (µg/L)", "cmap": "Greens", "vmin": 0.0, "vmax": None, "levels": 20},
}


def merge_styles(
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    base: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Dict[str, Any]]:
    """Per-variable merge: keys in `overrides[var]` win over `base[var]`."""
    out = copy.deepcopy(DEFAULT_STYLES if base is None else base)
    for var, style in (overrides or {}).items():
        out.setdefault(var, {}).update(style or {})
    return out


@dataclass(frozen=True)
class PlotTheme:
    font_family: str = "sans-serif"
    font_size: float = 10.0
    figsize: tuple = (9, 4.5)
    dpi: int = 150
    fmt: str = "png"
    invert_depth: bool = True
    marker_color: str = "black"
    marker_size: float = 6.0
    extra_rc: Dict[str, Any] = field(default_factory=dict)

    def rc(self) -> Dict[str, Any]:
        params = {
            "font.family": self.font_family,
            "font.size": self.font_size,
            "axes.titlesize": self.font_size + 1,
            "axes.labelsize": self.font_size,
            "savefig.dpi": self.dpi,
        }
        params.update(self.extra_rc)
        return params

    def context(self):
        """Context manager applying this theme to the figures created inside it."""
        return mpl.rc_context(self.rc())
