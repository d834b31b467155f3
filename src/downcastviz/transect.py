from __future__ import annotations
"""
Transect helpers.

Observation records, the site -> along-transect distance lookup, and the
small amount of tidying needed to turn a profile table into (x, y, value, group)
points for gridding.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import numpy as np
import pandas as pd
from pyproj import Geod

__all__ = [
    "Observation",
    "OBSERVATION_COLUMNS",
    "observations_from_records",
    "order_sites",
    "site_distances_from_coords",
    "assign_distance",
    "add_survey_fields",
    "to_observations",
]

OBSERVATION_COLUMNS = ["x", "y", "value", "group"]

_SEASONS = {
    12: "DJF", 1: "DJF", 2: "DJF",
    3: "MAM", 4: "MAM", 5: "MAM",
    6: "JJA", 7: "JJA", 8: "JJA",
    9: "SON", 10: "SON", 11: "SON",
}


def _vprint(verbose: bool, *args, **kwargs):
    if verbose:
        print(*args, **kwargs)


@dataclass(frozen=True)
class Observation:
    """One downcast reading placed on the transect. `value` is NaN when missing."""

    x: float
    y: float
    value: float = float("nan")
    group: Optional[str] = None

    @property
    def missing(self) -> bool:
        return self.value is None or not np.isfinite(self.value)

    @staticmethod
    def to_frame(observations: Iterable["Observation"]) -> pd.DataFrame:
        rows = [asdict(o) for o in observations]
        df = pd.DataFrame(rows, columns=OBSERVATION_COLUMNS)
        df["value"] = pd.to_numeric(df["value"], errors="coerce")
        return df


def observations_from_records(frame: pd.DataFrame) -> List[Observation]:
    """Inverse of `Observation.to_frame` for a tidy (x, y, value, group) frame."""
    missing = [c for c in ("x", "y", "value") if c not in frame.columns]
    if missing:
        raise KeyError(f"Observation table lacks columns: {missing}")
    groups = frame["group"] if "group" in frame.columns else [None] * len(frame)
    return [
        Observation(float(x), float(y), float(v), None if g is None or pd.isna(g) else str(g))
        for x, y, v, g in zip(frame["x"], frame["y"], frame["value"], groups)
    ]


# ---------------------------------------------------------------------
# Site lookup
# ---------------------------------------------------------------------
def order_sites(site_distances: Mapping[str, float]) -> List[str]:
    """Site names ordered along the transect (ties keep insertion order)."""
    return [s for s, _ in sorted(site_distances.items(), key=lambda kv: float(kv[1]))]


def site_distances_from_coords(
    stations: Sequence[Tuple[str, float, float]],
    *,
    origin: float = 0.0,
) -> Dict[str, float]:
    """
    Cumulative along-transect distance (m) for stations given as (name, lat, lon),
    listed in transect order. Segment lengths are WGS84 geodesics.
    """
    if not stations:
        return {}
    names = [s[0] for s in stations]
    if len(set(names)) != len(names):
        raise ValueError("Station names must be unique.")
    lats = np.asarray([float(s[1]) for s in stations])
    lons = np.asarray([float(s[2]) for s in stations])

    out = {names[0]: float(origin)}
    if len(stations) == 1:
        return out
    geod = Geod(ellps="WGS84")
    _, _, seg = geod.inv(lons[:-1], lats[:-1], lons[1:], lats[1:])
    cum = float(origin) + np.concatenate([[0.0], np.cumsum(np.abs(seg))])
    for name, d in zip(names[1:], cum[1:]):
        out[name] = float(d)
    return out


def assign_distance(
    frame: pd.DataFrame,
    site_distances: Mapping[str, float],
    *,
    site_col: str = "site",
    out_col: str = "distance",
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Attach the along-transect distance of each row's site.
    Rows whose site is not in the lookup are dropped.
    """
    if site_col not in frame.columns:
        raise KeyError(f"Column '{site_col}' not found; have {list(frame.columns)}")
    lookup = {str(k): float(v) for k, v in site_distances.items()}
    out = frame.copy()
    out[out_col] = out[site_col].astype(str).map(lookup)
    unknown = out[out_col].isna()
    if unknown.any():
        dropped = sorted(out.loc[unknown, site_col].astype(str).unique())
        _vprint(verbose, f"[transect] dropping {int(unknown.sum())} rows from unknown sites: {dropped}")
        out = out.loc[~unknown]
    return out.reset_index(drop=True)


def add_survey_fields(
    frame: pd.DataFrame,
    *,
    date_col: str = "date",
    site_col: str = "site",
    site_distances: Optional[Mapping[str, float]] = None,
) -> pd.DataFrame:
    """
    Add `year`, `month`, `season` and (when a lookup is given) make `site`
    an ordered categorical following the transect.
    """
    out = frame.copy()
    if date_col in out.columns:
        t = pd.to_datetime(out[date_col], errors="coerce")
        out["year"] = t.dt.year.astype("Int64")
        out["month"] = t.dt.month.astype("Int64")
        out["season"] = t.dt.month.map(_SEASONS)
    if site_distances is not None and site_col in out.columns:
        cats = order_sites(site_distances)
        out[site_col] = pd.Categorical(out[site_col].astype(str), categories=cats, ordered=True)
    return out


def to_observations(
    frame: pd.DataFrame,
    variable: str,
    *,
    x: str = "distance",
    y: str = "depth",
    group: Optional[str] = "site",
    dropna: bool = False,
) -> pd.DataFrame:
    """
    Tidy a profile table into observation rows (x, y, value, group).

    Missing values are kept unless `dropna=True`; the interpolator ignores them
    and the overlay helper still draws them as raw markers.
    """
    needed = [x, y, variable]
    missing = [c for c in needed if c not in frame.columns]
    if missing:
        raise KeyError(f"Cannot build observations for '{variable}': missing columns {missing}")

    obs = pd.DataFrame(
        {
            "x": pd.to_numeric(frame[x], errors="coerce").to_numpy(dtype=float),
            "y": pd.to_numeric(frame[y], errors="coerce").to_numpy(dtype=float),
            "value": pd.to_numeric(frame[variable], errors="coerce").to_numpy(dtype=float),
            "group": frame[group].astype(str).to_numpy() if group and group in frame.columns else None,
        }
    )
    obs = obs[np.isfinite(obs["x"]) & np.isfinite(obs["y"])]
    if dropna:
        obs = obs[np.isfinite(obs["value"])]
    return obs.sort_values(["x", "y"], kind="mergesort").reset_index(drop=True)
