try:
    from ._version import version as __version__  # written by setuptools-scm at build time
except Exception:
    from importlib.metadata import version, PackageNotFoundError

    try:
        __version__ = version("downcast-viz")
    except PackageNotFoundError:
        __version__ = "0+unknown"

from .errors import InvalidDomain, InsufficientSupport
from .grid import AxisSpec, build_axis, build_grid
from .interpolate import BandwidthPolicy, interpolate, estimate_section, to_grid
from .transect import Observation

__all__ = [
    "__version__",
    "InvalidDomain",
    "InsufficientSupport",
    "AxisSpec",
    "build_axis",
    "build_grid",
    "BandwidthPolicy",
    "interpolate",
    "estimate_section",
    "to_grid",
    "Observation",
]
