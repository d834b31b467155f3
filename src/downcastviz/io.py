"""I/O helpers.

Implement:
 - discover_paths(base_dir, file_pattern) -> list[str]
 - load_profiles(paths, columns=None) -> pd.DataFrame
 - filter_time(frame, months=None, years=None, start_date=None, end_date=None)
 - apply_quality_flags / censored_values   # measurement clean-up before gridding
 - export_section(table_or_grid, path)     # netCDF via xarray
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Optional, Dict, Any, Union, Sequence
import warnings
import re
import numpy as np
import pandas as pd
import xarray as xr

from .interpolate import to_grid

PathLike = Union[str, Path]

MEASUREMENTS = (
    "temperature",
    "salinity",
    "dissolved_oxygen",
    "turbidity",
    "ph",
    "chlorophyll",
)

# raw header (lower-cased, stripped) -> canonical column
COLUMN_ALIASES: Dict[str, str] = {
    "site": "site",
    "site_id": "site",
    "station": "site",
    "sitename": "site",
    "date": "date",
    "sample_date": "date",
    "datetime": "date",
    "depth": "depth",
    "depth_m": "depth",
    "depth (m)": "depth",
    "temp": "temperature",
    "temperature": "temperature",
    "temp_c": "temperature",
    "temperature (c)": "temperature",
    "temperature (°c)": "temperature",
    "sal": "salinity",
    "salinity": "salinity",
    "salinity (psu)": "salinity",
    "do": "dissolved_oxygen",
    "do_mgl": "dissolved_oxygen",
    "do (mg/l)": "dissolved_oxygen",
    "dissolved_oxygen": "dissolved_oxygen",
    "dissolved oxygen": "dissolved_oxygen",
    "turb": "turbidity",
    "turbidity": "turbidity",
    "turbidity (ntu)": "turbidity",
    "turbidity_censored": "turbidity_censored",
    "ph": "ph",
    "chl": "chlorophyll",
    "chla": "chlorophyll",
    "chlorophyll": "chlorophyll",
    "chlorophyll (ug/l)": "chlorophyll",
    "chlorophyll (µg/l)": "chlorophyll",
    "chl_flag": "chlorophyll_flag",
    "chlorophyll_flag": "chlorophyll_flag",
}

_CENSORED = re.compile(r"^\s*<\s*([-+0-9.eE]+)\s*$")


# --------------------------
# Path discovery
# --------------------------
def discover_paths(base_dir: str, file_pattern: str) -> List[str]:
    files = sorted(str(p) for p in Path(base_dir).glob(file_pattern))
    if not files:
        warnings.warn(f"No files matched {file_pattern!r} in {base_dir!r}")
    return files


# --------------------------
# CSV loader
# --------------------------
def _canonical_name(raw: str, overrides: Dict[str, str]) -> str:
    if raw in overrides:
        return overrides[raw]
    key = " ".join(str(raw).strip().lower().split())
    return overrides.get(key, COLUMN_ALIASES.get(key, key))


def _parse_censored(series: pd.Series) -> tuple[pd.Series, pd.Series]:
    """
    Split left-censored readings such as "<0.5" into (value, censored flag).
    Plain numbers pass through with flag False; unparseable text becomes NaN.
    """
    text = series.astype(str).str.strip()
    m = text.str.extract(_CENSORED, expand=False)
    flag = m.notna()
    raw = text.where(~flag, m)
    values = pd.to_numeric(raw, errors="coerce")
    return values.astype(float), flag.astype(bool)


def _as_bool(series: pd.Series) -> pd.Series:
    truthy = {"true", "t", "yes", "y", "1", "<"}
    return series.astype(str).str.strip().str.lower().isin(truthy)


def load_profiles(
    paths: Union[PathLike, Sequence[PathLike]],
    *,
    columns: Optional[Dict[str, str]] = None,
    date_format: Optional[str] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Read one or more downcast CSV files into a single tidy frame.

    - headers are mapped to canonical names via `COLUMN_ALIASES` (plus `columns` overrides)
    - `date` parsed to datetime64, `depth` and measurements coerced to float
    - turbidity strings like "<0.5" become 0.5 with `turbidity_censored=True`
    - rows without a site or depth are dropped
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]
    paths = [str(p) for p in paths]
    if not paths:
        raise ValueError("No input paths given.")

    overrides = {k: v for k, v in (columns or {}).items()}
    overrides.update({" ".join(k.strip().lower().split()): v for k, v in (columns or {}).items()})

    frames = []
    for p in paths:
        if verbose:
            print(f"[io] reading {p}")
        df = pd.read_csv(p, dtype=str, skipinitialspace=True)
        df = df.rename(columns={c: _canonical_name(c, overrides) for c in df.columns})
        df = df.loc[:, ~df.columns.duplicated()]
        frames.append(df)
    df = pd.concat(frames, ignore_index=True, sort=False)

    for required in ("site", "depth"):
        if required not in df.columns:
            raise KeyError(f"Required column '{required}' not found; have {list(df.columns)}")

    df["site"] = df["site"].str.strip()
    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"], format=date_format, errors="coerce")
    df["depth"] = pd.to_numeric(df["depth"], errors="coerce")

    if "turbidity" in df.columns:
        values, flag = _parse_censored(df["turbidity"])
        df["turbidity"] = values
        if "turbidity_censored" in df.columns:
            df["turbidity_censored"] = _as_bool(df["turbidity_censored"]) | flag
        else:
            df["turbidity_censored"] = flag

    for name in MEASUREMENTS:
        if name in df.columns and name != "turbidity":
            df[name] = pd.to_numeric(df[name], errors="coerce")

    keep = df["site"].notna() & (df["site"] != "") & df["depth"].notna()
    dropped = int((~keep).sum())
    if dropped and verbose:
        print(f"[io] dropped {dropped} rows without site/depth")
    df = df.loc[keep].reset_index(drop=True)
    df["site"] = df["site"].astype(str)
    return df


# --------------------------
# Measurement clean-up
# --------------------------
def apply_quality_flags(
    frame: pd.DataFrame,
    variable: str = "chlorophyll",
    *,
    flag_column: Optional[str] = None,
    bad_flags: Iterable[Any] = ("B", "X", "Q", "bad", "fail"),
) -> pd.DataFrame:
    """
    Blank `variable` where its flag column holds one of `bad_flags`.
    Surveys without the variable or its flag column come back unchanged.
    """
    flag_column = flag_column or f"{variable}_flag"
    out = frame.copy()
    if variable not in out.columns or flag_column not in out.columns:
        return out
    bad = {str(b).strip().lower() for b in bad_flags}
    flags = out[flag_column].astype(str).str.strip().str.lower()
    mask = flags.isin(bad)
    out.loc[mask, variable] = np.nan
    return out


def censored_values(
    frame: pd.DataFrame,
    variable: str = "turbidity",
    *,
    censored_column: Optional[str] = None,
    policy: str = "limit",
) -> pd.DataFrame:
    """
    Resolve left-censored readings before gridding.

    policy="limit" keeps the detection limit, "half" uses half of it,
    "drop" blanks the reading (it can still be drawn as a raw marker).
    """
    if policy not in ("limit", "half", "drop"):
        raise ValueError("policy must be 'limit', 'half' or 'drop'.")
    censored_column = censored_column or f"{variable}_censored"
    out = frame.copy()
    if censored_column not in out.columns or policy == "limit":
        return out
    mask = out[censored_column].fillna(False).astype(bool)
    if policy == "half":
        out.loc[mask, variable] = out.loc[mask, variable] / 2.0
    else:
        out.loc[mask, variable] = np.nan
    return out


# --------------------------
# Time filtering
# --------------------------
def filter_time(
    frame: pd.DataFrame,
    months: Optional[Iterable[int]] = None,
    years: Optional[Iterable[int]] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    date_col: str = "date",
) -> pd.DataFrame:
    """Return the rows of `frame` matching any combination of calendar filters."""
    if date_col not in frame.columns:
        # nothing to filter
        return frame

    t = pd.to_datetime(frame[date_col], errors="coerce")
    mask = np.ones(len(frame), dtype=bool)

    if months is not None:
        months = np.asarray(list(months), dtype=int)
        mask &= np.isin(t.dt.month.to_numpy(), months)

    if years is not None:
        years = np.asarray(list(years), dtype=int)
        mask &= np.isin(t.dt.year.to_numpy(), years)

    if start_date is not None:
        mask &= (t >= pd.to_datetime(start_date)).to_numpy()

    if end_date is not None:
        mask &= (t <= pd.to_datetime(end_date)).to_numpy()

    return frame.loc[mask]


# --------------------------
# Export
# --------------------------
def export_section(
    section: Union[pd.DataFrame, xr.DataArray],
    path: PathLike,
    *,
    name: str = "estimate",
    attrs: Optional[Dict[str, Any]] = None,
    engine: Optional[str] = "netcdf4",
) -> Path:
    """
    Write an estimate grid to netCDF. Accepts the long (x, y, estimate) table or a
    DataArray from `interpolate.to_grid`. Missing estimates are stored as NaN.
    """
    da = to_grid(section, name=name) if isinstance(section, pd.DataFrame) else section.rename(name)
    ds = da.to_dataset()
    ds["x"].attrs.update({"long_name": "along-transect distance", "units": "m"})
    ds["y"].attrs.update({"long_name": "depth", "units": "m", "positive": "down"})
    ds.attrs.update(attrs or {})
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    ds.to_netcdf(out, engine=engine)
    return out
