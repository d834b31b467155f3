import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from downcastviz.config import DEFAULT_STYLES, PlotTheme, merge_styles
from downcastviz.interpolate import estimate_section
from downcastviz.plot import plot_call, print_profile_summary
from downcastviz.plots.overlays import draw_overlays, overlay_primitives, plot_profiles
from downcastviz.plots.section import plot_section, transect_sections
from downcastviz.utils import build_time_window_label, out_dir, robust_clims, style_get


@pytest.fixture(autouse=True)
def flat_output(monkeypatch):
    monkeypatch.setenv("DOWNCASTVIZ_PLOT_SUBDIR", "")
    yield
    plt.close("all")


def test_overlay_primitives_grouped_and_depth_ordered():
    obs = pd.DataFrame(
        {
            "x": [500.0, 0.0, 0.0, 500.0, 0.0],
            "y": [2.0, 3.0, 0.0, 1.0, 1.0],
            "value": [1.0, np.nan, 3.0, 4.0, 5.0],
            "group": ["B", "A", "A", "B", "A"],
        }
    )
    prims = overlay_primitives(obs)

    assert list(prims) == ["A", "B"]
    np.testing.assert_array_equal(prims["A"]["y"], [0.0, 1.0, 3.0])
    np.testing.assert_array_equal(prims["B"]["y"], [1.0, 2.0])
    # missing values are kept for raw markers
    assert np.isnan(prims["A"]["value"][-1])


def test_draw_overlays_points_and_lines(linear_observations):
    prims = overlay_primitives(linear_observations)
    fig, ax = plt.subplots()

    points = draw_overlays(ax, prims, kind="points")
    lines = draw_overlays(ax, prims, kind="lines")

    assert len(points) == 5
    assert len(lines) == 5
    with pytest.raises(ValueError):
        draw_overlays(ax, prims, kind="bars")


def test_plot_section_draws_filled_section(linear_observations, site_distances):
    table = estimate_section(linear_observations, (100.0, 0.5))
    fig, ax = plot_section(
        table,
        "temperature",
        observations=linear_observations,
        site_distances=site_distances,
        title="temperature",
    )

    assert ax.get_ylim() == (5.0, 0.0)  # surface on top
    assert ax.get_xlabel() == "Distance along transect (m)"
    assert ax.get_title() == "temperature"


def test_plot_section_pcolormesh_with_missing_cells(linear_observations):
    table = estimate_section(linear_observations, (100.0, 0.5))
    table.loc[table["x"] > 3000.0, "estimate"] = np.nan

    fig, ax = plot_section(table, "turbidity", mode="pcolormesh", theme=PlotTheme(invert_depth=False))

    assert ax.get_ylim() == (0.0, 5.0)
    with pytest.raises(ValueError):
        plot_section(table, "turbidity", mode="surface")


def test_transect_sections_one_figure_per_survey_and_variable(profile_table, site_distances, tmp_path):
    saved = transect_sections(
        profile_table,
        ["temperature", "salinity", "dissolved_oxygen", "ph"],
        site_distances,
        resolution=(100.0, 0.5),
        base_dir="/data/river_2023",
        figures_root=str(tmp_path),
        verbose=False,
    )

    # dissolved_oxygen is all missing and ph is absent: both skipped
    assert len(saved) == 4
    assert all(os.path.exists(p) for p in saved)
    names = sorted(os.path.basename(p) for p in saved)
    assert names[0] == "river_2023__Section__salinity__2023-06-14.png"


def test_transect_sections_skips_insufficient_support(profile_table, site_distances, tmp_path, capsys):
    one_site = profile_table[profile_table["site"] == "S1"]

    saved = transect_sections(
        one_site,
        ["temperature"],
        site_distances,
        by=None,
        base_dir="/data/river_2023",
        figures_root=str(tmp_path),
        verbose=True,
    )

    assert saved == []
    assert "skip 'temperature'" in capsys.readouterr().out


def test_transect_sections_time_window(profile_table, site_distances, tmp_path):
    theme = PlotTheme(fmt="svg", dpi=72)
    saved = transect_sections(
        profile_table,
        ["temperature"],
        site_distances,
        months=[8],
        resolution=(200.0, 1.0),
        base_dir="/data/river_2023",
        figures_root=str(tmp_path),
        theme=theme,
        verbose=False,
    )

    assert [os.path.basename(p) for p in saved] == ["river_2023__Section__temperature__2023-08-02.svg"]


def test_plot_profiles_saves_figure(profile_table, site_distances, tmp_path):
    path = plot_profiles(
        profile_table,
        "temperature",
        site_distances=site_distances,
        months=[6],
        base_dir="/data/river_2023",
        figures_root=str(tmp_path),
        verbose=False,
    )

    assert path is not None and os.path.exists(path)
    assert os.path.basename(path) == "river_2023__Profiles__temperature__Jun.png"


def test_plot_profiles_nothing_to_draw(profile_table, tmp_path):
    assert plot_profiles(
        profile_table, "dissolved_oxygen", base_dir="/data/x", figures_root=str(tmp_path), verbose=False
    ) is None


# --- configuration and helpers ---


def test_merge_styles_overrides_single_keys():
    styles = merge_styles({"temperature": {"vmax": 35.0}, "conductivity": {"cmap": "magma"}})

    assert styles["temperature"]["vmax"] == 35.0
    assert styles["temperature"]["cmap"] == DEFAULT_STYLES["temperature"]["cmap"]
    assert styles["conductivity"] == {"cmap": "magma"}
    assert DEFAULT_STYLES["temperature"]["vmax"] == 30.0


def test_style_get_defaults():
    assert style_get("turbidity", DEFAULT_STYLES, "vmax", 12.0) == 12.0
    assert style_get("unknown", DEFAULT_STYLES, "cmap", "viridis") == "viridis"
    assert style_get("ph", None, "cmap", "viridis") == "viridis"


def test_theme_rc_context_is_scoped():
    before = plt.rcParams["font.size"]
    with PlotTheme(font_size=17.0).context():
        assert plt.rcParams["font.size"] == 17.0
    assert plt.rcParams["font.size"] == before


def test_robust_clims_handles_nan_and_constant():
    assert robust_clims([np.nan, np.nan]) == (0.0, 1.0)
    assert robust_clims([2.0, 2.0]) == (2.0, 4.0)


def test_time_window_label():
    assert build_time_window_label([6, 7, 8], [2023], None, None) == "Jun-Aug__2023"
    assert build_time_window_label(None, None, None, None) == "AllTime"


def test_out_dir_env_subfolder(tmp_path, monkeypatch):
    monkeypatch.setenv("DOWNCASTVIZ_PLOT_SUBDIR", "sections")

    d = out_dir("/data/river_2023/", str(tmp_path))

    assert d == os.path.join(str(tmp_path), "river_2023", "sections")
    assert os.path.isdir(d)


def test_plot_call_silences_output(capsys):
    def noisy(value, verbose=True):
        print("working")
        return value * 2

    assert plot_call(noisy, value=3) == 6
    assert capsys.readouterr().out == ""
    assert plot_call(noisy, value=3, verbose=True) == 6
    assert "working" in capsys.readouterr().out


def test_print_profile_summary(profile_table, site_distances, capsys):
    print_profile_summary(profile_table.assign(site=profile_table["site"].replace("S5", "S6")), site_distances)

    out = capsys.readouterr().out
    assert "Surveys" in out
    assert "S6" in out
    assert "temperature" in out
