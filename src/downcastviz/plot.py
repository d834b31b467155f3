# downcastviz/plot.py

"""
Console helpers for the runner scripts in examples/.

Rules, headers and key/value lines for progress output, a short listing of
the input files, a quiet wrapper around the figure builders, and summaries
of the loaded profile table and of the figures written.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Optional
import os
import glob
import textwrap
import inspect
import contextlib
import pandas as pd

from .io import discover_paths, MEASUREMENTS


# ---------------------------
# Console output
# ---------------------------
def hr(char: str = "=", width: int = 78) -> str:
    return char * width


def info(title: str) -> None:
    """Blank line, heavy rule, title, light rule."""
    print(f"\n{hr('=')}\n{title}\n{hr('-')}")


def bullet(msg: str, indent: int = 2) -> None:
    for line in textwrap.dedent(str(msg)).rstrip().splitlines():
        print(" " * indent + line)


def kv(label: str, value: Any) -> None:
    print(f"  - {label:<18} {value}")


# ---------------------------
# Input files
# ---------------------------
def list_files(base_dir: str, pattern: str) -> List[str]:
    return discover_paths(base_dir, pattern)


def summarize_files(files: List[str], show: int = 3) -> None:
    """Count plus the first and last few matched CSVs."""
    if not files:
        bullet("No profile files matched; check BASE_DIR and FILE_PATTERN.")
        return
    kv("Matched files", len(files))
    if len(files) <= 2 * show:
        shown = [files]
    else:
        shown = [files[:show], files[-show:]]
    for i, chunk in enumerate(shown):
        if i:
            bullet("…")
        for p in chunk:
            bullet(f"• {p}")


# ---------------------------
# Figure builders
# ---------------------------
def plot_call(fn, *, verbose: bool = False, **kwargs):
    """
    Run a figure builder such as `transect_sections` with its chatter on or off.

    `verbose` is forwarded when `fn` accepts it. With verbose=False anything
    the call prints to stdout/stderr is discarded.
    """
    if "verbose" in inspect.signature(fn).parameters:
        kwargs["verbose"] = verbose

    if verbose:
        return fn(**kwargs)

    with open(os.devnull, "w") as sink, contextlib.redirect_stdout(sink), contextlib.redirect_stderr(sink):
        return fn(**kwargs)


# ---------------------------
# Table + output summaries
# ---------------------------
def print_profile_summary(
    frame: pd.DataFrame,
    site_distances: Optional[Mapping[str, float]] = None,
) -> None:
    """Print core info: rows, sites, depth range, survey dates, measured variables."""
    kv("Rows", len(frame))
    if "site" in frame.columns:
        sites = sorted(frame["site"].astype(str).unique())
        kv("Sites", sites)
        if site_distances is not None:
            unknown = [s for s in sites if s not in site_distances]
            if unknown:
                bullet(f"[warn] sites without a transect distance: {unknown}")
    if "depth" in frame.columns and len(frame):
        kv("Depth range (m)", f"{frame['depth'].min():g} – {frame['depth'].max():g}")
    if "date" in frame.columns:
        try:
            t = pd.to_datetime(frame["date"]).dropna()
            kv("Surveys", t.dt.normalize().nunique())
            if len(t):
                kv("Date start", str(t.min().date()))
                kv("Date end", str(t.max().date()))
        except Exception as e:
            kv("Date coverage", f"unavailable ({e})")
    present = [v for v in MEASUREMENTS if v in frame.columns]
    kv("Variables", present)
    for v in present:
        kv(f"  {v} missing", int(frame[v].isna().sum()))


def sample_output_listing(fig_folder: str, prefix: str, kinds: Iterable[str] = ("Section",)) -> None:
    """List a few generated figure paths to show success."""
    files: List[str] = []
    for kind in kinds:
        files += sorted(glob.glob(os.path.join(fig_folder, f"{prefix}__{kind}__*")))
    kv("Figures created", len(files))
    for p in files[:5]:
        bullet(f"• {p}")
    if len(files) > 5:
        bullet("…")


__all__ = [
    "hr",
    "info",
    "bullet",
    "kv",
    "list_files",
    "summarize_files",
    "plot_call",
    "print_profile_summary",
    "sample_output_listing",
]
