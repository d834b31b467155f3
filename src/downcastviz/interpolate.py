# downcastviz/interpolate.py
"""
Scattered (x, y, value) -> regular grid via 2-D local regression (loess).

For every grid node the observations are scaled per axis by a bandwidth,
weighted by a kernel of their scaled distance to the node, and a weighted
least-squares model centred on the node is fitted; its intercept is the
estimate. Nodes with no observation inside the support radius stay NaN.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union, List
import numpy as np
import pandas as pd
import xarray as xr
from shapely.geometry import MultiPoint, Point
from shapely.prepared import prep as prep_geom

from .errors import InvalidDomain, InsufficientSupport
from .grid import build_axis
from .transect import Observation

__all__ = [
    "BandwidthPolicy",
    "interpolate",
    "estimate_section",
    "to_grid",
    "axis_bandwidth",
]

ObservationsLike = Union[pd.DataFrame, Iterable[Observation]]

_KERNELS = ("tricube", "gaussian", "epanechnikov")


def _vprint(verbose: bool, *args, **kwargs):
    if verbose:
        print(*args, **kwargs)


@dataclass(frozen=True)
class BandwidthPolicy:
    """
    How "nearby" is defined.

    x_bandwidth, y_bandwidth : explicit per-axis bandwidths (data units). When None,
        the bandwidth is ``span * max(median gap between distinct observed positions,
        median breakpoint spacing)`` for that axis.
    span : multiplier for the data-adaptive bandwidth.
    max_support : support radius in scaled (bandwidth) units; nodes with no
        observation closer than this get no estimate.
    kernel : "tricube" (default), "gaussian" or "epanechnikov"; all truncated at
        `max_support`.
    degree : 0 (weighted mean), 1 (local plane) or 2 (local quadratic).
    """

    x_bandwidth: Optional[float] = None
    y_bandwidth: Optional[float] = None
    span: float = 1.0
    max_support: float = 1.5
    kernel: str = "tricube"
    degree: int = 1

    def __post_init__(self):
        if self.kernel not in _KERNELS:
            raise ValueError(f"kernel must be one of {_KERNELS}, got {self.kernel!r}")
        if self.degree not in (0, 1, 2):
            raise ValueError(f"degree must be 0, 1 or 2, got {self.degree!r}")
        if not np.isfinite(self.span) or self.span <= 0:
            raise ValueError("span must be > 0")
        if not np.isfinite(self.max_support) or self.max_support <= 0:
            raise ValueError("max_support must be > 0")
        for name in ("x_bandwidth", "y_bandwidth"):
            v = getattr(self, name)
            if v is not None and (not np.isfinite(v) or v <= 0):
                raise ValueError(f"{name} must be > 0 when given")


# ---------------------------------------------------------------------
# Input normalisation
# ---------------------------------------------------------------------
def _as_arrays(
    observations: ObservationsLike,
    x: str,
    y: str,
    value: str,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    if isinstance(observations, pd.DataFrame):
        df = observations
    else:
        df = Observation.to_frame(observations)
        x, y, value = "x", "y", "value"
    missing = [c for c in (x, y, value) if c not in df.columns]
    if missing:
        raise KeyError(f"Observations lack columns {missing}; have {list(df.columns)}")
    xs = pd.to_numeric(df[x], errors="coerce").to_numpy(dtype=float)
    ys = pd.to_numeric(df[y], errors="coerce").to_numpy(dtype=float)
    vs = pd.to_numeric(df[value], errors="coerce").to_numpy(dtype=float)
    m = np.isfinite(xs) & np.isfinite(ys) & np.isfinite(vs)
    return xs[m], ys[m], vs[m]


def _check_breaks(breaks: Iterable[float], name: str) -> np.ndarray:
    b = np.asarray(list(breaks) if not isinstance(breaks, np.ndarray) else breaks, dtype=float).ravel()
    if b.size == 0:
        raise InvalidDomain(f"{name} is empty.")
    if not np.all(np.isfinite(b)):
        raise InvalidDomain(f"{name} contains non-finite values.")
    if b.size > 1 and np.any(np.diff(b) <= 0):
        raise InvalidDomain(f"{name} must be strictly increasing.")
    return b


def _position_gaps(positions: np.ndarray, groups: Optional[np.ndarray] = None) -> np.ndarray:
    if groups is None:
        return np.diff(np.unique(positions))
    gaps = [np.diff(np.unique(positions[groups == g])) for g in np.unique(groups)]
    return np.concatenate(gaps) if gaps else np.empty(0)


def axis_bandwidth(
    positions: np.ndarray,
    breaks: np.ndarray,
    span: float = 1.0,
    groups: Optional[np.ndarray] = None,
) -> float:
    """
    Data-adaptive bandwidth for one axis (see `BandwidthPolicy`).

    With `groups` (e.g. the x position of each depth sample) the gaps are taken
    within each group, so interleaved casts do not shrink the depth bandwidth.
    """
    positions = np.asarray(positions, dtype=float)
    keep = np.isfinite(positions)
    if groups is not None:
        groups = np.asarray(groups)[keep]
    d = _position_gaps(positions[keep], groups)
    gap = float(np.median(d)) if d.size else 0.0
    step = float(np.median(np.diff(breaks))) if breaks.size > 1 else 0.0
    h = span * max(gap, step)
    if not np.isfinite(h) or h <= 0:
        # single distinct position and a single breakpoint: fall back to unit scale
        h = 1.0
    return h


# ---------------------------------------------------------------------
# Kernel + local fit
# ---------------------------------------------------------------------
# smallest/largest singular value below this: treat the design as degenerate
_MIN_SV_RATIO = 1e-6
# fits may leave the local value range by at most this fraction of it
_OVERSHOOT = 0.25


def _kernel_weights(d: np.ndarray, radius: float, kernel: str) -> np.ndarray:
    u = d / radius
    inside = u < 1.0
    w = np.zeros_like(d)
    if kernel == "tricube":
        w[inside] = (1.0 - u[inside] ** 3) ** 3
    elif kernel == "epanechnikov":
        w[inside] = 1.0 - u[inside] ** 2
    else:  # gaussian, sigma = one bandwidth
        w[inside] = np.exp(-0.5 * d[inside] ** 2)
    return w


def _design_ladder(dx: np.ndarray, dy: np.ndarray, degree: int) -> List[Tuple[np.ndarray, Tuple[np.ndarray, ...]]]:
    """
    Candidate (design matrix, offsets it extrapolates along) pairs, richest
    first, ending in the weighted mean.
    """
    one = np.ones_like(dx)
    ladder: List[Tuple[np.ndarray, Tuple[np.ndarray, ...]]] = []
    if degree >= 2:
        ladder.append((np.column_stack([one, dx, dy, dx * dx, dx * dy, dy * dy]), (dx, dy)))
    if degree >= 1:
        ladder.append((np.column_stack([one, dx, dy]), (dx, dy)))
        # one axis collapsed: linear in whichever axis still varies
        ladder.append((np.column_stack([one, dx]), (dx,)))
        ladder.append((np.column_stack([one, dy]), (dy,)))
    return ladder


def _weighted_mean(v: np.ndarray, w: np.ndarray) -> float:
    return float(np.sum(w * v) / np.sum(w))


def _local_fit(dx: np.ndarray, dy: np.ndarray, v: np.ndarray, w: np.ndarray, degree: int) -> float:
    """
    Intercept of the richest usable local model, else the weighted mean.

    A model with p parameters is used only when it has more than p weighted
    neighbours, is well conditioned, has neighbours on both sides of the node
    along each offset it uses, and stays near the neighbours' value range.
    """
    n = np.count_nonzero(w)
    lo, hi = float(v.min()), float(v.max())
    pad = _OVERSHOOT * (hi - lo)
    sw = np.sqrt(w)
    vw = v * sw
    for X, offsets in _design_ladder(dx, dy, degree):
        p = X.shape[1]
        if n < p + 1:
            continue
        # node outside the neighbours' span: the fit would extrapolate
        if any(o.min() > 0 or o.max() < 0 for o in offsets):
            continue
        coef, _, rank, sv = np.linalg.lstsq(X * sw[:, None], vw, rcond=None)
        if rank < p or sv[-1] <= sv[0] * _MIN_SV_RATIO:
            continue
        est = float(coef[0])
        if np.isfinite(est) and lo - pad <= est <= hi + pad:
            return est
    return _weighted_mean(v, w)


def _hull_mask(xs, ys, hx, hy, gx, gy) -> np.ndarray:
    """True for nodes inside (or on) the convex hull of the scaled observations."""
    hull = MultiPoint([Point(a / hx, b / hy) for a, b in zip(xs, ys)]).convex_hull
    P = prep_geom(hull)
    f = np.frompyfunc(lambda a, b: P.covers(Point(a / hx, b / hy)), 2, 1)
    return f(gx, gy).astype(bool)


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------
def interpolate(
    observations: ObservationsLike,
    x_breaks: Iterable[float],
    y_breaks: Iterable[float],
    policy: Optional[BandwidthPolicy] = None,
    *,
    x: str = "x",
    y: str = "y",
    value: str = "value",
    clip_to_hull: bool = False,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Estimate `value` at every (x_break, y_break) node by 2-D local regression.

    Parameters
    ----------
    observations : DataFrame or iterable of Observation
        Scattered samples. Rows with a missing value or non-finite coordinate
        are ignored. Column names are taken from `x`, `y`, `value` for frames.
    x_breaks, y_breaks : array-like
        Strictly increasing grid axes (see `grid.build_axis`).
    policy : BandwidthPolicy, optional
        Bandwidth, kernel, support radius and local model degree.
    clip_to_hull : bool, default False
        Also leave nodes outside the convex hull of the observations empty.
    verbose : bool, default False
        Print bandwidths and coverage.

    Returns
    -------
    pandas.DataFrame
        Columns ``x``, ``y``, ``estimate``; one row per node, x-major then
        y-minor. Nodes without support hold NaN.

    Raises
    ------
    InsufficientSupport
        No usable observation, or fewer than 2 distinct x or y positions.
    InvalidDomain
        Empty, non-finite or non-increasing breakpoints.
    """
    policy = policy or BandwidthPolicy()
    xb = _check_breaks(x_breaks, "x_breaks")
    yb = _check_breaks(y_breaks, "y_breaks")

    xs, ys, vs = _as_arrays(observations, x, y, value)
    if vs.size == 0:
        raise InsufficientSupport("No observations with a value to interpolate.")
    nx_obs = np.unique(xs).size
    ny_obs = np.unique(ys).size
    if nx_obs < 2:
        raise InsufficientSupport(f"Need at least 2 distinct x positions, got {nx_obs}.")
    if ny_obs < 2:
        raise InsufficientSupport(f"Need at least 2 distinct y positions, got {ny_obs}.")

    hx = policy.x_bandwidth or axis_bandwidth(xs, xb, policy.span)
    hy = policy.y_bandwidth or axis_bandwidth(ys, yb, policy.span, groups=xs)
    _vprint(verbose, f"[interpolate] {vs.size} obs, grid {xb.size}x{yb.size}, bandwidth x={hx:g} y={hy:g}")

    sx = xs / hx
    sy = ys / hy
    radius = float(policy.max_support)

    gx, gy = np.meshgrid(xb, yb, indexing="ij")  # x-major
    gx = gx.ravel()
    gy = gy.ravel()
    est = np.full(gx.size, np.nan, dtype=float)

    for i in range(gx.size):
        dx = sx - gx[i] / hx
        dy = sy - gy[i] / hy
        d = np.hypot(dx, dy)
        w = _kernel_weights(d, radius, policy.kernel)
        sel = w > 0
        if not sel.any():
            continue
        est[i] = _local_fit(dx[sel], dy[sel], vs[sel], w[sel], policy.degree)

    if clip_to_hull:
        inside = _hull_mask(xs, ys, hx, hy, gx, gy)
        est[~inside] = np.nan

    _vprint(verbose, f"[interpolate] {int(np.isfinite(est).sum())}/{est.size} nodes estimated")
    return pd.DataFrame({"x": gx, "y": gy, "estimate": est})


def estimate_section(
    observations: ObservationsLike,
    resolution: Tuple[float, float],
    *,
    policy: Optional[BandwidthPolicy] = None,
    anchor_at_zero: bool = True,
    grow_to_zero: bool = False,
    clip_to_hull: bool = False,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Build both axes from the observations and interpolate.

    The x axis spans the observed distances; the y axis (depth) is anchored at
    the surface unless `anchor_at_zero=False`. `grow_to_zero` applies to y only.
    """
    if isinstance(observations, pd.DataFrame):
        df = observations
    else:
        df = Observation.to_frame(observations)
    usable = df[pd.to_numeric(df["value"], errors="coerce").notna()]
    xb = build_axis(usable["x"], resolution[0])
    yb = build_axis(usable["y"], resolution[1], grow_to_zero=grow_to_zero, anchor_at_zero=anchor_at_zero)
    return interpolate(df, xb, yb, policy, clip_to_hull=clip_to_hull, verbose=verbose)


def to_grid(table: pd.DataFrame, name: str = "estimate") -> xr.DataArray:
    """Pivot a long (x, y, estimate) table into a DataArray on dims ("y", "x")."""
    missing = [c for c in ("x", "y", "estimate") if c not in table.columns]
    if missing:
        raise KeyError(f"Estimate table lacks columns {missing}")
    wide = table.pivot(index="y", columns="x", values="estimate").sort_index().sort_index(axis=1)
    return xr.DataArray(
        wide.to_numpy(dtype=float),
        dims=("y", "x"),
        coords={"y": wide.index.to_numpy(dtype=float), "x": wide.columns.to_numpy(dtype=float)},
        name=name,
    )
