# downcastviz/plots/overlays.py
# Raw-observation overlays (markers / per-site lines ordered by depth) and a
# simple value-vs-depth profile plot built from the same primitives.

from __future__ import annotations
from typing import Dict, Any, Optional, List, Mapping, Iterable, Union
import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from ..config import PlotTheme, merge_styles
from ..io import filter_time
from ..transect import Observation, order_sites
from ..utils import out_dir, file_prefix, style_get, build_time_window_label

__all__ = ["overlay_primitives", "draw_overlays", "plot_profiles"]


def _vprint(verbose: bool, *args, **kwargs):
    if verbose:
        print(*args, **kwargs)


def overlay_primitives(
    observations: Union[pd.DataFrame, Iterable[Observation]],
) -> Dict[str, Dict[str, np.ndarray]]:
    """
    Group observations into drawable primitives keyed by `group`.

    Each entry holds arrays ``x``, ``y``, ``value`` sorted by depth (``y``).
    Observations with a missing value are kept: they are still drawn as raw
    markers. Groups appear in transect order (smallest x first).
    """
    df = observations if isinstance(observations, pd.DataFrame) else Observation.to_frame(observations)
    missing = [c for c in ("x", "y") if c not in df.columns]
    if missing:
        raise KeyError(f"Observations lack columns {missing}")
    df = df.copy()
    if "group" not in df.columns:
        df["group"] = None
    if "value" not in df.columns:
        df["value"] = np.nan
    df["group"] = df["group"].where(df["group"].notna(), "all").astype(str)
    df = df[np.isfinite(pd.to_numeric(df["x"], errors="coerce")) & np.isfinite(pd.to_numeric(df["y"], errors="coerce"))]

    first_x = df.groupby("group", sort=False)["x"].min().sort_values(kind="mergesort")
    out: Dict[str, Dict[str, np.ndarray]] = {}
    for g in first_x.index:
        sub = df[df["group"] == g].sort_values("y", kind="mergesort")
        out[g] = {
            "x": sub["x"].to_numpy(dtype=float),
            "y": sub["y"].to_numpy(dtype=float),
            "value": pd.to_numeric(sub["value"], errors="coerce").to_numpy(dtype=float),
        }
    return out


def draw_overlays(
    ax,
    primitives: Mapping[str, Mapping[str, np.ndarray]],
    kind: str = "points",
    *,
    color: Optional[str] = "black",
    size: float = 6.0,
    annotate: bool = False,
    **kwargs,
) -> List[Any]:
    """
    Draw primitives on `ax`.

    kind="points" -> scatter of every sample position (missing values hollow)
    kind="lines"  -> one line per group joining its samples in depth order
    Returns the created artists.
    """
    if kind not in ("points", "lines"):
        raise ValueError("kind must be 'points' or 'lines'.")
    artists: List[Any] = []
    for g, p in primitives.items():
        x, y, v = p["x"], p["y"], p.get("value", np.full(len(p["x"]), np.nan))
        if kind == "points":
            ok = np.isfinite(v)
            if ok.any():
                artists.append(ax.scatter(x[ok], y[ok], s=size, c=color, zorder=3, **kwargs))
            if (~ok).any():
                artists.append(
                    ax.scatter(x[~ok], y[~ok], s=size, facecolors="none", edgecolors=color, zorder=3, **kwargs)
                )
        else:
            (line,) = ax.plot(x, y, color=color, label=g, **kwargs)
            artists.append(line)
        if annotate and len(x):
            artists.append(ax.annotate(g, (x[0], y[0]), textcoords="offset points", xytext=(0, 4),
                                       ha="center", fontsize="small"))
    return artists


def plot_profiles(
    frame: pd.DataFrame,
    variable: str,
    *,
    site_distances: Optional[Mapping[str, float]] = None,
    site_col: str = "site",
    depth_col: str = "depth",
    months: Optional[List[int]] = None,
    years: Optional[List[int]] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    base_dir: str,
    figures_root: str,
    styles: Optional[Dict[str, Dict[str, Any]]] = None,
    theme: Optional[PlotTheme] = None,
    verbose: bool = True,
) -> Optional[str]:
    """
    Value-vs-depth line per site (depth increasing downward). Sites follow
    transect order when `site_distances` is given. Returns the saved path,
    or None when nothing was plotted.
    """
    theme = theme or PlotTheme()
    styles = merge_styles(styles)
    if variable not in frame.columns:
        raise KeyError(f"Variable '{variable}' not found; have {list(frame.columns)}")

    df = filter_time(frame, months=months, years=years, start_date=start_date, end_date=end_date)
    if df.empty:
        _vprint(verbose, f"[profiles] no rows for '{variable}' in the time window; skip.")
        return None

    # lines are drawn in (value, depth) space, keyed by site
    obs = pd.DataFrame(
        {
            "x": pd.to_numeric(df[variable], errors="coerce"),
            "y": pd.to_numeric(df[depth_col], errors="coerce"),
            "value": pd.to_numeric(df[variable], errors="coerce"),
            "group": df[site_col].astype(str),
        }
    ).dropna(subset=["x", "y"])
    prims = overlay_primitives(obs)
    if site_distances is not None:
        order = [s for s in order_sites(site_distances) if s in prims]
        prims = {s: prims[s] for s in order + [s for s in prims if s not in order]}
    if not prims:
        _vprint(verbose, f"[profiles] '{variable}' has no finite values; skip.")
        return None

    label = build_time_window_label(months, years, start_date, end_date)
    outdir = out_dir(base_dir, figures_root)
    prefix = file_prefix(base_dir)
    cmap = plt.get_cmap(style_get(variable, styles, "cmap", "viridis"))

    with theme.context():
        fig, ax = plt.subplots(figsize=theme.figsize)
        n = len(prims)
        for i, (site, p) in enumerate(prims.items()):
            color = cmap(i / max(n - 1, 1))
            draw_overlays(ax, {site: p}, kind="lines", color=color, marker="o", markersize=3)
        ax.set_xlabel(style_get(variable, styles, "label", variable))
        ax.set_ylabel("Depth (m)")
        if theme.invert_depth:
            ax.invert_yaxis()
        ax.set_title(f"{variable} profiles ({label})")
        ax.legend(title=site_col, fontsize="small", frameon=False)
        fname = f"{prefix}__Profiles__{variable}__{label}.{theme.fmt}"
        path = os.path.join(outdir, fname)
        fig.savefig(path, dpi=theme.dpi, bbox_inches="tight")
        plt.close(fig)
    _vprint(verbose, f"[profiles] saved {fname}")
    return path
