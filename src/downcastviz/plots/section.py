# downcastviz/plots/section.py
from __future__ import annotations
from typing import List, Optional, Dict, Any, Mapping, Tuple
import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from ..config import PlotTheme, merge_styles
from ..errors import InvalidDomain, InsufficientSupport
from ..interpolate import BandwidthPolicy, estimate_section, to_grid
from ..io import filter_time
from ..transect import assign_distance, to_observations
from ..utils import (
    out_dir,
    file_prefix,
    robust_clims,
    style_get,
    build_time_window_label,
    safe_name,
)
from .overlays import overlay_primitives, draw_overlays

__all__ = ["plot_section", "transect_sections"]


# ---------------------------------------------------------------------
# small helpers
# ---------------------------------------------------------------------
def _vprint(verbose: bool, *args, **kwargs):
    if verbose:
        print(*args, **kwargs)


def _colour_limits(
    variable: str,
    values: np.ndarray,
    styles: Optional[Dict[str, Dict[str, Any]]],
    vmin: Optional[float],
    vmax: Optional[float],
) -> Tuple[float, float]:
    """Explicit vmin/vmax > styles[var] > robust percentiles of the plotted values."""
    vvmin = vmin if vmin is not None else style_get(variable, styles, "vmin", None)
    vvmax = vmax if vmax is not None else style_get(variable, styles, "vmax", None)
    if vvmin is None or vvmax is None:
        lo, hi = robust_clims(values)
        vvmin = lo if vvmin is None else vvmin
        vvmax = hi if vvmax is None else vvmax
    if vvmax <= vvmin:
        vvmax = vvmin + 1.0
    return float(vvmin), float(vvmax)


def _label_sites(ax, site_distances: Mapping[str, float]) -> None:
    """Secondary top axis with the site names at their transect distances."""
    top = ax.secondary_xaxis("top")
    names = list(site_distances.keys())
    top.set_xticks([float(site_distances[n]) for n in names])
    top.set_xticklabels(names, fontsize="small")
    top.set_xlabel("Site")


# ---------------------------------------------------------------------
# Plotting
# ---------------------------------------------------------------------
def plot_section(
    table: pd.DataFrame,
    variable: str,
    *,
    observations: Optional[pd.DataFrame] = None,
    site_distances: Optional[Mapping[str, float]] = None,
    mode: str = "contourf",
    styles: Optional[Dict[str, Dict[str, Any]]] = None,
    theme: Optional[PlotTheme] = None,
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
    norm=None,
    title: Optional[str] = None,
    ax=None,
):
    """
    Draw one estimate table as a filled depth/distance section.

    Parameters
    ----------
    table : pandas.DataFrame
        Long (x, y, estimate) table from `interpolate.interpolate`. NaN cells
        stay blank.
    variable : str
        Key into the style table (colormap, label, limits, contour levels).
    observations : pandas.DataFrame, optional
        Tidy (x, y, value, group) rows drawn as raw sample markers.
    site_distances : mapping, optional
        Site name -> distance, labelled along the top axis.
    mode : {"contourf", "pcolormesh"}
        Filled contours or a plain raster.
    styles : dict, optional
        Per-variable overrides merged into `config.DEFAULT_STYLES`.
    theme : PlotTheme, optional
        Marker styling and depth-axis orientation; figure-level settings are
        applied by the caller through `theme.context()`.
    vmin, vmax, norm :
        Colour scaling. `norm` wins, then vmin/vmax, then the style table,
        then robust percentiles.

    Returns
    -------
    (fig, ax)
    """
    if mode not in ("contourf", "pcolormesh"):
        raise ValueError("mode must be 'contourf' or 'pcolormesh'.")
    theme = theme or PlotTheme()
    styles = merge_styles(styles)

    grid = to_grid(table, name=variable)
    x = grid["x"].values
    y = grid["y"].values
    Z = np.ma.masked_invalid(grid.values)

    cmap = style_get(variable, styles, "cmap", "viridis")
    if ax is None:
        fig, ax = plt.subplots(figsize=theme.figsize)
    else:
        fig = ax.figure

    if norm is None:
        lo, hi = _colour_limits(variable, grid.values, styles, vmin, vmax)
    if mode == "contourf" and x.size > 1 and y.size > 1:
        n_levels = int(style_get(variable, styles, "levels", 20))
        levels = n_levels if norm is not None else np.linspace(lo, hi, n_levels + 1)
        art = ax.contourf(x, y, Z, levels=levels, cmap=cmap, norm=norm, extend="both")
    else:
        art = ax.pcolormesh(
            x,
            y,
            Z,
            shading="nearest",
            cmap=cmap,
            norm=norm,
            vmin=None if norm is not None else lo,
            vmax=None if norm is not None else hi,
        )

    if observations is not None and len(observations):
        draw_overlays(ax, overlay_primitives(observations), kind="points",
                      color=theme.marker_color, size=theme.marker_size)
    if site_distances:
        _label_sites(ax, site_distances)

    ax.set_xlabel("Distance along transect (m)")
    ax.set_ylabel("Depth (m)")
    ax.set_xlim(float(x.min()), float(x.max()))
    if theme.invert_depth:
        ax.set_ylim(float(y.max()), float(y.min()))  # surface at the top
    else:
        ax.set_ylim(float(y.min()), float(y.max()))
    if title:
        ax.set_title(title)
    cb = fig.colorbar(art, ax=ax)
    cb.set_label(style_get(variable, styles, "label", variable))
    return fig, ax


def transect_sections(
    frame: pd.DataFrame,
    variables: List[str],
    site_distances: Mapping[str, float],
    *,
    resolution: Tuple[float, float] = (50.0, 0.1),
    by: Optional[str] = "date",
    months: Optional[List[int]] = None,
    years: Optional[List[int]] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    base_dir: str,
    figures_root: str,
    policy: Optional[BandwidthPolicy] = None,
    clip_to_hull: bool = False,
    mode: str = "contourf",
    styles: Optional[Dict[str, Dict[str, Any]]] = None,
    theme: Optional[PlotTheme] = None,
    site_col: str = "site",
    depth_col: str = "depth",
    verbose: bool = True,
) -> List[str]:
    """
    Grid and render one section per (survey × variable).

    Workflow
    --------
    1. Apply the calendar filter with ``filter_time``.
    2. Attach along-transect distances with ``assign_distance`` (unknown sites dropped).
    3. Split into surveys by the ``by`` column (one section per distinct value;
       ``by=None`` pools everything).
    4. For each variable: tidy to observations, ``estimate_section`` at
       ``resolution`` (x in m, y in m), draw with ``plot_section``, save.

    Surveys/variables that cannot be gridded (``InvalidDomain``,
    ``InsufficientSupport``) are skipped and reported when verbose.

    Returns
    -------
    list of str
        Paths of the saved figures.
    """
    theme = theme or PlotTheme()
    styles = merge_styles(styles)
    outdir = out_dir(base_dir, figures_root)
    prefix = file_prefix(base_dir)
    window = build_time_window_label(months, years, start_date, end_date)

    df = filter_time(frame, months=months, years=years, start_date=start_date, end_date=end_date)
    df = assign_distance(df, site_distances, site_col=site_col, verbose=verbose)
    if df.empty:
        _vprint(verbose, "[section] no rows left after time/site filtering.")
        return []

    if by is None:
        surveys = [(window, df)]
    else:
        if by not in df.columns:
            raise KeyError(f"Column '{by}' not found; have {list(df.columns)}")
        keys = df[by]
        if pd.api.types.is_datetime64_any_dtype(keys):
            keys = keys.dt.strftime("%Y-%m-%d")
        surveys = [(str(k), sub) for k, sub in df.groupby(keys, sort=True)]

    saved: List[str] = []
    for survey, sub in surveys:
        for var in variables:
            _vprint(verbose, f"[section:{survey}] {var}")
            if var not in sub.columns:
                _vprint(verbose, f"[section:{survey}] '{var}' not in table; skip.")
                continue
            obs = to_observations(sub, var, x="distance", y=depth_col, group=site_col)
            try:
                table = estimate_section(
                    obs,
                    resolution,
                    policy=policy,
                    anchor_at_zero=True,
                    clip_to_hull=clip_to_hull,
                    verbose=verbose,
                )
            except (InvalidDomain, InsufficientSupport) as e:
                _vprint(verbose, f"[section:{survey}] skip '{var}': {e}")
                continue

            with theme.context():
                fig, ax = plot_section(
                    table,
                    var,
                    observations=obs,
                    site_distances=site_distances,
                    mode=mode,
                    styles=styles,
                    theme=theme,
                    title=f"{var} ({survey})",
                )
                fname = f"{prefix}__Section__{safe_name(var)}__{safe_name(survey)}.{theme.fmt}"
                path = os.path.join(outdir, fname)
                fig.savefig(path, dpi=theme.dpi, bbox_inches="tight")
                plt.close(fig)
            saved.append(path)
            _vprint(verbose, f"[section:{survey}] saved {fname}")
    return saved
