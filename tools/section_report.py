#!/usr/bin/env python3
"""
Save a report (grid extent, variables, units, missing-cell fraction) for section
netCDF files written by downcastviz.io.export_section.
"""

from pathlib import Path
import numpy as np
from netCDF4 import Dataset

# =========================
# Edit these two lines
NC_FILE = "/data/surveys/figures/river_2023/river_2023__Section__temperature.nc"
OUT_TXT = None  # or set e.g. "/path/to/report.txt"
# =========================


def _axis_line(ds: Dataset, name: str) -> str:
    if name not in ds.variables:
        return f"#   {name}: (missing)\n"
    v = ds.variables[name][:]
    units = getattr(ds.variables[name], "units", "") or "(none)"
    if v.size == 0:
        return f"#   {name}: empty\n"
    step = float(np.median(np.diff(v))) if v.size > 1 else float("nan")
    return f"#   {name}: {v.size} breaks, {float(v[0]):g} .. {float(v[-1]):g} {units} (median step {step:g})\n"


def write_section_report(ncfile: str | Path, out_txt: str | Path | None = None) -> Path:
    nc_path = Path(ncfile)
    out_path = Path(out_txt) if out_txt else nc_path.with_suffix(nc_path.suffix + ".report.txt")

    with Dataset(nc_path, mode="r") as ds, out_path.open("w", encoding="utf-8") as f:
        f.write("# Section report\n")
        f.write(f"# File: {nc_path}\n")
        for key in ds.ncattrs():
            f.write(f"# {key}: {ds.getncattr(key)}\n")
        f.write("# Grid:\n")
        f.write(_axis_line(ds, "x"))
        f.write(_axis_line(ds, "y"))
        f.write("#\n# Fields:\n")

        for vname, var in ds.variables.items():
            if vname in ("x", "y"):
                continue
            data = np.ma.filled(var[:].astype(float), np.nan)
            n = data.size
            missing = int(np.isnan(data).sum())
            finite = data[np.isfinite(data)]
            rng = f"{finite.min():g} .. {finite.max():g}" if finite.size else "(no estimates)"
            units = " ".join(str(getattr(var, "units", "") or "").split())
            f.write(
                f"{vname}\n"
                f"  dims      : {tuple(var.dimensions)}\n"
                f"  units     : {units if units else '(none)'}\n"
                f"  range     : {rng}\n"
                f"  missing   : {missing}/{n} cells ({100.0 * missing / max(n, 1):.1f}%)\n"
            )
        f.write("\n# End of report\n")

    print(f"Wrote section report to: {out_path}")
    return out_path


if __name__ == "__main__":
    write_section_report(NC_FILE, OUT_TXT)
