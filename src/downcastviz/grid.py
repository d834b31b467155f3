# downcastviz/grid.py
"""
Grid builder.

Turns an observed coordinate range into evenly spaced breakpoints and combines
two such axes (along-transect distance, depth) into a regular 2-D grid.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Optional, Dict, Any
import numpy as np
import xarray as xr

from .errors import InvalidDomain

__all__ = ["AxisSpec", "build_axis", "build_grid"]

# fraction of one resolution step under which a step is considered to land on `hi`
_LANDING_TOL = 1e-9


def _finite_values(observed_values: Iterable[float]) -> np.ndarray:
    if not isinstance(observed_values, np.ndarray):
        observed_values = list(observed_values)
    try:
        arr = np.asarray(observed_values, dtype=float).ravel()
    except (TypeError, ValueError) as e:
        raise InvalidDomain(f"Observed values must be real numbers: {e}") from e
    return arr[np.isfinite(arr)]


def _check_resolution(resolution: float) -> float:
    try:
        r = float(resolution)
    except (TypeError, ValueError) as e:
        raise InvalidDomain(f"resolution must be a real number, got {resolution!r}") from e
    if not np.isfinite(r) or r <= 0:
        raise InvalidDomain(f"resolution must be > 0, got {resolution!r}")
    return r


def _emit_breaks(lo: float, hi: float, resolution: float) -> np.ndarray:
    """lo, lo+r, lo+2r, ... strictly below hi, then hi exactly."""
    if hi <= lo:
        return np.asarray([lo], dtype=float)
    n = int(np.floor((hi - lo) / resolution))
    steps = lo + resolution * np.arange(n + 1, dtype=float)
    # a step within tolerance of hi is replaced by hi, never duplicated
    keep = steps < hi - _LANDING_TOL * resolution
    keep[0] = True
    steps = steps[keep]
    return np.append(steps, hi)


@dataclass(frozen=True)
class AxisSpec:
    """
    Observed coordinate range plus the policy used to expand it into breakpoints.

    min, max : observed range (before zero policies)
    resolution : spacing between consecutive breakpoints (> 0)
    grow_to_zero : range must straddle zero even if all values share one sign
    anchor_at_zero : range starts at min(observed, 0), e.g. depth from the surface
    """

    min: float
    max: float
    resolution: float
    grow_to_zero: bool = False
    anchor_at_zero: bool = False

    @classmethod
    def from_values(
        cls,
        observed_values: Iterable[float],
        resolution: float,
        *,
        grow_to_zero: bool = False,
        anchor_at_zero: bool = False,
    ) -> "AxisSpec":
        vals = _finite_values(observed_values)
        if vals.size == 0:
            raise InvalidDomain("Cannot build an axis: no finite observed values.")
        return cls(
            min=float(vals.min()),
            max=float(vals.max()),
            resolution=_check_resolution(resolution),
            grow_to_zero=bool(grow_to_zero),
            anchor_at_zero=bool(anchor_at_zero),
        )

    def bounds(self) -> Tuple[float, float]:
        """(lo, hi) after applying the zero policies."""
        lo, hi = float(self.min), float(self.max)
        if self.anchor_at_zero:
            lo = min(lo, 0.0)
        if self.grow_to_zero:
            lo = min(lo, 0.0)
            hi = max(hi, 0.0)
        return lo, hi

    def breaks(self) -> np.ndarray:
        if not (np.isfinite(self.min) and np.isfinite(self.max)) or self.min > self.max:
            raise InvalidDomain(f"Invalid axis range [{self.min}, {self.max}].")
        lo, hi = self.bounds()
        return _emit_breaks(lo, hi, _check_resolution(self.resolution))


def build_axis(
    observed_values: Iterable[float],
    resolution: float,
    grow_to_zero: bool = False,
    anchor_at_zero: bool = False,
) -> np.ndarray:
    """
    Evenly spaced breakpoints covering the observed values.

    Missing (NaN) values are ignored. The last breakpoint equals the upper bound
    exactly, so the final interval may be shorter than `resolution`.

    Raises
    ------
    InvalidDomain
        No finite observed value, or `resolution` is not a positive real.
    """
    axis = AxisSpec.from_values(
        observed_values,
        resolution,
        grow_to_zero=grow_to_zero,
        anchor_at_zero=anchor_at_zero,
    )
    return axis.breaks()


def build_grid(
    x_values: Sequence[float],
    y_values: Sequence[float],
    resolution: Tuple[float, float],
    *,
    x_policy: Optional[Dict[str, Any]] = None,
    y_policy: Optional[Dict[str, Any]] = None,
) -> xr.Dataset:
    """
    Regular 2-D grid as the Cartesian product of two independent axes.

    x_policy / y_policy are keyword dicts for `build_axis`
    (``grow_to_zero``, ``anchor_at_zero``). By default the y axis (depth) is
    anchored at the surface and the x axis (distance) is not.

    Returns a Dataset with 1-D coords ``x`` and ``y`` and node coordinates
    ``X``/``Y`` on dims ("y", "x").
    """
    rx, ry = resolution
    xp = {"grow_to_zero": False, "anchor_at_zero": False}
    yp = {"grow_to_zero": False, "anchor_at_zero": True}
    xp.update(x_policy or {})
    yp.update(y_policy or {})

    xb = build_axis(x_values, rx, **xp)
    yb = build_axis(y_values, ry, **yp)
    X, Y = np.meshgrid(xb, yb, indexing="xy")  # (ny, nx)
    return xr.Dataset(
        {
            "X": (("y", "x"), X),
            "Y": (("y", "x"), Y),
        },
        coords={"x": ("x", xb), "y": ("y", yb)},
        attrs={"x_resolution": float(rx), "y_resolution": float(ry)},
    )
