from __future__ import annotations
"""
Small shared helpers: colour limits, style lookup, output folders and labels.
"""

from pathlib import Path
import inspect
from typing import Iterable, Tuple, Optional, Dict, Any
import os
import numpy as np

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_PLOTS_PACKAGE = "downcastviz.plots."
_SUBDIR_ENV = "DOWNCASTVIZ_PLOT_SUBDIR"


def robust_clims(a: Iterable[float], q: Tuple[float, float] = (5, 95)) -> tuple[float, float]:
    """
    Percentile colour limits of the finite values. (0, 1) when there are none;
    a constant field gets a non-empty range above its value.
    """
    arr = np.asarray(a, dtype=float).ravel()
    finite = arr[np.isfinite(arr)]
    if not finite.size:
        return 0.0, 1.0
    lo, hi = (float(v) for v in np.percentile(finite, q))
    if hi == lo:
        hi = lo + (abs(lo) or 1.0)
    return lo, hi


def file_prefix(base_dir: str) -> str:
    """'/data/surveys/river_2023/' -> 'river_2023'."""
    return os.path.basename(os.path.normpath(base_dir))


def _caller_plot_module_stem(default: str | None = None) -> str | None:
    """File stem of the nearest caller living in downcastviz.plots ('section', 'overlays')."""
    for frame_info in inspect.stack():
        mod = inspect.getmodule(frame_info.frame)
        if mod is None or not getattr(mod, "__file__", None):
            continue
        if mod.__name__.startswith(_PLOTS_PACKAGE):
            return Path(mod.__file__).stem
    return default


def out_dir(base_dir: str, figures_root: str) -> str:
    """
    Create and return the figure folder for a survey.

        FIG_DIR/<basename(BASE_DIR)>/[<subfolder>/]

    The subfolder is the calling plot module ('section', 'overlays'). Setting
    DOWNCASTVIZ_PLOT_SUBDIR replaces it; an empty value means no subfolder.
    """
    folder = os.path.join(figures_root, file_prefix(base_dir))
    env = os.environ.get(_SUBDIR_ENV)
    sub = env.strip() if env is not None else _caller_plot_module_stem()
    if sub:
        folder = os.path.join(folder, sub)
    os.makedirs(folder, exist_ok=True)
    return folder


def style_get(var: str, styles: Optional[Dict[str, Dict[str, Any]]], key: str, default=None):
    """styles[var][key], or `default` when any level is missing or the value is None."""
    value = ((styles or {}).get(var) or {}).get(key)
    return default if value is None else value


def build_time_window_label(
    months: Optional[Iterable[int]],
    years: Optional[Iterable[int]],
    start_date: Optional[str],
    end_date: Optional[str],
) -> str:
    """Filename token for a calendar window: 'Jun-Aug__2023', 'Jun-Sep', '2023-05-01 to ...', 'AllTime'."""
    parts: list[str] = []
    if months:
        m = sorted({int(x) for x in months})
        contiguous = len(m) > 1 and m[-1] - m[0] == len(m) - 1
        if contiguous:
            parts.append(f"{_MONTHS[m[0] - 1]}-{_MONTHS[m[-1] - 1]}")
        else:
            parts.append("-".join(_MONTHS[i - 1] for i in m))
    if years:
        y = sorted({int(x) for x in years})
        parts.append(str(y[0]) if len(y) == 1 else f"{y[0]}-{y[-1]}")
    if start_date or end_date:
        parts.append(f"{start_date or '...'} to {end_date or '...'}")
    return "__".join(parts) or "AllTime"


def safe_name(label: Any) -> str:
    """Filesystem-friendly token for titles/labels (dates, site names)."""
    s = str(label).strip()
    return "".join(ch if (ch.isalnum() or ch in "-_.") else "-" for ch in s) or "unnamed"


__all__ = [
    "robust_clims",
    "file_prefix",
    "out_dir",
    "style_get",
    "build_time_window_label",
    "safe_name",
]
