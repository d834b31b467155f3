#!/usr/bin/env python3
# examples/plot_sections.py

from __future__ import annotations
import os
import sys
import warnings
import matplotlib
matplotlib.use("Agg", force=True)  # headless backend for batch runs

from downcastviz.io import load_profiles, apply_quality_flags, censored_values, export_section
from downcastviz.plot import (
    hr, info, kv, bullet,
    list_files, summarize_files, print_profile_summary, plot_call, sample_output_listing,
)
from downcastviz.utils import out_dir, file_prefix
from downcastviz.config import PlotTheme
from downcastviz.interpolate import BandwidthPolicy, estimate_section
from downcastviz.transect import site_distances_from_coords, assign_distance, to_observations
from downcastviz.plots.section import transect_sections
from downcastviz.plots.overlays import plot_profiles

# ---------------------------------------------------------------------
# Project paths (EDIT THESE)
# ---------------------------------------------------------------------
BASE_DIR     = "/data/surveys/river_2023"
FILE_PATTERN = "profiles_*.csv"
FIG_DIR      = "/data/surveys/figures/"

# ---------------------------------------------------------------------
# Stations along the transect, upstream first (name, lat, lon)
# ---------------------------------------------------------------------
STATIONS = [
    ("S1", 51.7520, -1.2577),
    ("S2", 51.7460, -1.2490),
    ("S3", 51.7380, -1.2370),
    ("S4", 51.7310, -1.2270),
    ("S5", 51.7300, -1.2250),
]

# Alternatively give distances directly (m):
# SITE_DISTANCES = {"S1": 0.0, "S2": 885.0, "S3": 2043.0, "S4": 3089.0, "S5": 3248.0}

VARIABLES = ["temperature", "salinity", "dissolved_oxygen", "turbidity", "ph", "chlorophyll"]

# Grid resolution (distance m, depth m)
RESOLUTION = (50.0, 0.1)

# Example time window
MONTHS = [6, 7, 8]   # Jun-Aug
YEARS  = [2023]

# Per-variable overrides of the built-in styles
PLOT_STYLES = {
    "temperature": {"vmin": 10.0, "vmax": 25.0},
    "turbidity":   {"cmap": "YlOrBr"},
}


def main():
    if not os.environ.get("PYTHONWARNINGS"):
        warnings.filterwarnings("default")

    print(hr("=")); print("Transect section examples"); print(hr("="))

    # Discover & load
    info(" Discovering files")
    files = list_files(BASE_DIR, FILE_PATTERN)
    summarize_files(files)
    if not files:
        print("No files found; abort.")
        sys.exit(2)

    info(" Loading profiles")
    df = load_profiles(files, verbose=True)
    df = apply_quality_flags(df, "chlorophyll")
    df = censored_values(df, "turbidity", policy="half")

    site_distances = site_distances_from_coords(STATIONS)
    print_profile_summary(df, site_distances)

    out_folder = out_dir(BASE_DIR, FIG_DIR)
    prefix = file_prefix(BASE_DIR)
    info(" Output")
    kv("Figure folder", out_folder)
    kv("Filename prefix", prefix)

    # ------------------------------------------------------------------
    # 1) One section per survey date, summer window
    # ------------------------------------------------------------------
    info(" Sections per survey (Jun-Aug 2023)")
    saved = plot_call(
        transect_sections,
        frame=df,
        variables=VARIABLES,
        site_distances=site_distances,
        resolution=RESOLUTION,
        months=MONTHS,
        years=YEARS,
        base_dir=BASE_DIR,
        figures_root=FIG_DIR,
        styles=PLOT_STYLES,
        verbose=False,
    )
    bullet(f"{len(saved)} section(s) written")

    # ------------------------------------------------------------------
    # 2) Pooled section with a wider smoother, clipped to the sampled hull
    # ------------------------------------------------------------------
    info(" Pooled section, clipped to sampled area")
    plot_call(
        transect_sections,
        frame=df,
        variables=["temperature"],
        site_distances=site_distances,
        by=None,
        resolution=RESOLUTION,
        policy=BandwidthPolicy(span=1.5),
        clip_to_hull=True,
        mode="pcolormesh",
        base_dir=BASE_DIR,
        figures_root=FIG_DIR,
        theme=PlotTheme(fmt="pdf", figsize=(11.0, 4.0)),
        verbose=False,
    )

    # ------------------------------------------------------------------
    # 3) Raw profiles for context
    # ------------------------------------------------------------------
    info(" Raw profiles")
    for var in ("temperature", "dissolved_oxygen"):
        plot_call(
            plot_profiles,
            frame=df,
            variable=var,
            site_distances=site_distances,
            months=MONTHS,
            base_dir=BASE_DIR,
            figures_root=FIG_DIR,
            styles=PLOT_STYLES,
        )

    # ------------------------------------------------------------------
    # 4) Keep the gridded temperature section as netCDF
    # ------------------------------------------------------------------
    info(" Exporting gridded temperature")
    obs = to_observations(assign_distance(df, site_distances), "temperature")
    table = estimate_section(obs, RESOLUTION)
    nc_path = export_section(
        table,
        os.path.join(out_folder, f"{prefix}__Section__temperature.nc"),
        name="temperature",
        attrs={"source": BASE_DIR},
    )
    kv("netCDF", nc_path)

    sample_output_listing(out_folder, prefix, kinds=("Section", "Profiles"))
    print(hr("=")); print("Done"); print(hr("="))


if __name__ == "__main__":
    main()
