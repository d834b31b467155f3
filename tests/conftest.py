import matplotlib

matplotlib.use("Agg", force=True)

import numpy as np
import pandas as pd
import pytest

SITE_DISTANCES = {"S1": 0.0, "S2": 885.0, "S3": 2043.0, "S4": 3089.0, "S5": 3248.0}
DEPTHS = [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]


def linear_temperature(distance, depth):
    return 20.0 + 0.001 * np.asarray(distance) - 0.5 * np.asarray(depth)


@pytest.fixture
def site_distances():
    return dict(SITE_DISTANCES)


@pytest.fixture
def linear_observations():
    """Five sites x six depths, temperature linear in distance and depth."""
    rows = []
    for site, dist in SITE_DISTANCES.items():
        for z in DEPTHS:
            rows.append({"x": dist, "y": z, "value": float(linear_temperature(dist, z)), "group": site})
    return pd.DataFrame(rows)


@pytest.fixture
def profile_table():
    """Two surveys of the same transect in the canonical loader layout."""
    rows = []
    for date, offset in (("2023-06-14", 0.0), ("2023-08-02", 2.0)):
        for site, dist in SITE_DISTANCES.items():
            for z in DEPTHS:
                rows.append(
                    {
                        "site": site,
                        "date": pd.Timestamp(date),
                        "depth": z,
                        "temperature": float(linear_temperature(dist, z)) + offset,
                        "salinity": 0.2 + 0.0005 * dist + 0.1 * z,
                        "dissolved_oxygen": np.nan,
                    }
                )
    return pd.DataFrame(rows)
