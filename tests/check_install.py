#!/usr/bin/env python
"""
check_install.py - User-facing installation check for downcastviz.

Checks:
  - Python >= 3.11
  - downcastviz imports and reports a version
  - Runtime dependencies declared by the installed distribution are importable
  - A tiny transect can be gridded and smoothed (smoke test)

Run with:  python tests/check_install.py [--verbose]
"""

from __future__ import annotations
import sys
import re
import importlib
import traceback
from dataclasses import dataclass
from typing import List, Optional, Tuple
from importlib import metadata as importlib_metadata

MIN_PYTHON = (3, 11)
DIST_CANDIDATES = ["downcast-viz", "downcast_viz"]
MODULE = "downcastviz"

# distribution name -> import name, where they differ
IMPORT_NAMES = {"shapely": "shapely", "netcdf4": "netCDF4"}


@dataclass
class CheckResult:
    name: str
    ok: bool
    detail: str = ""
    warn: bool = False


def _print(msg: str, *, verbose: bool = True):
    if verbose:
        print(msg)


_REQ_NAME = re.compile(r"^\s*([A-Za-z0-9_.\-]+)")
_EXTRA_MARKER = re.compile(r";\s*extra\s*==", re.IGNORECASE)


def runtime_requirements(requires_dist: Optional[List[str]]) -> List[str]:
    """Requirement names without any '; extra == ...' entries."""
    out: List[str] = []
    for raw in requires_dist or []:
        s = (raw or "").strip()
        if not s or _EXTRA_MARKER.search(s):
            continue
        m = _REQ_NAME.match(s)
        if m:
            out.append(m.group(1))
    return out


def find_distribution() -> Tuple[Optional[importlib_metadata.Distribution], str]:
    for name in DIST_CANDIDATES:
        try:
            return importlib_metadata.distribution(name), name
        except importlib_metadata.PackageNotFoundError:
            continue
    return None, ""


def check_dependency(dep: str) -> CheckResult:
    import_name = IMPORT_NAMES.get(dep.lower(), dep)
    try:
        ver = importlib_metadata.version(dep)
    except importlib_metadata.PackageNotFoundError:
        return CheckResult(dep, ok=False, detail="not installed")
    try:
        importlib.import_module(import_name)
    except Exception as e:
        return CheckResult(dep, ok=True, warn=True, detail=f"{ver} installed, import failed ({e.__class__.__name__})")
    return CheckResult(dep, ok=True, detail=ver)


def smoke_test(mod) -> CheckResult:
    import numpy as np
    import pandas as pd

    d = np.repeat([0.0, 400.0, 900.0], 4)
    z = np.tile([0.0, 1.0, 2.0, 3.0], 3)
    obs = pd.DataFrame({"x": d, "y": z, "value": 10.0 + 0.01 * d - z})
    table = mod.estimate_section(obs, (100.0, 0.5))
    ok = bool(np.isfinite(table["estimate"]).any())
    return CheckResult("Smoke test (estimate_section)", ok=ok, detail=f"{len(table)} grid nodes")


def summarize(results: List[CheckResult]) -> None:
    print("\n=== downcastviz Installation Summary ===")
    width = max(len(r.name) for r in results) + 2
    for r in results:
        status = "OK" if r.ok and not r.warn else ("WARN" if r.ok else "FAIL")
        print(f"{status:>4}  {r.name:<{width}} {r.detail}")
    print("========================================")
    if any(not r.ok for r in results):
        print("One or more checks failed. Please review the FAIL items above.")
    elif any(r.warn for r in results):
        print("Environment looks usable, with warnings.")
    else:
        print("All good! downcastviz and its dependencies look ready to run.")


def main(argv: Optional[List[str]] = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="downcastviz installation check")
    parser.add_argument("--verbose", action="store_true", help="Show detailed output")
    verbose = parser.parse_args(argv).verbose

    results: List[CheckResult] = []
    py_ok = sys.version_info >= (*MIN_PYTHON, 0)
    results.append(CheckResult(f"Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+", ok=py_ok,
                               detail=f"Detected Python {sys.version.split()[0]}"))

    try:
        mod = importlib.import_module(MODULE)
    except Exception as e:
        results.append(CheckResult(f"Import {MODULE}", ok=False, detail=f"{e.__class__.__name__}: {e}"))
        summarize(results)
        return 1
    results.append(CheckResult(f"Import {MODULE}", ok=True, detail=f"version {getattr(mod, '__version__', 'unknown')}"))

    dist, dist_name = find_distribution()
    if dist is None:
        results.append(CheckResult("Distribution located", ok=True, warn=True,
                                   detail="not installed as a distribution (running from source?)"))
    else:
        results.append(CheckResult("Distribution located", ok=True, detail=f"{dist_name} {dist.version}"))
        for dep in runtime_requirements(dist.requires):
            r = check_dependency(dep)
            _print(f"[{'OK' if r.ok else 'FAIL'}] {dep}: {r.detail}", verbose=verbose)
            results.append(r)

    try:
        results.append(smoke_test(mod))
    except Exception as e:
        results.append(CheckResult("Smoke test (estimate_section)", ok=False, detail=f"{e.__class__.__name__}: {e}"))

    summarize(results)
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception:
        print("Unexpected error:\n" + traceback.format_exc())
        sys.exit(1)
