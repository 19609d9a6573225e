import numpy as np
import pandas as pd
import pytest

from fishfit import psd_add, psd_calc

PERCH = {"stock": 130, "quality": 200, "preferred": 250, "memorable": 300, "trophy": 380}
BLUEGILL = {"stock": 80, "quality": 150, "preferred": 200, "memorable": 250, "trophy": 300}
LENGTHS = [100.0, 150.0, 160.0, 210.0, 220.0, 230.0, 260.0, 310.0, 400.0, np.nan]


def test_traditional_and_incremental_values() -> None:
    res = psd_calc(LENGTHS, PERCH, what="none")
    assert list(res.index) == [
        "PSD-Q", "PSD-P", "PSD-M", "PSD-T", "PSD S-Q", "PSD Q-P", "PSD P-M", "PSD M-T",
    ]
    np.testing.assert_allclose(
        res["Estimate"], [75.0, 37.5, 25.0, 12.5, 25.0, 37.5, 12.5, 12.5]
    )


def test_what_and_intermediate_columns() -> None:
    res = psd_calc(LENGTHS, PERCH, what="traditional", show_intermediate=True, digits=1)
    assert list(res.columns) == ["num", "stock", "Estimate"]
    assert res.loc["PSD-Q", "num"] == 6
    assert res.loc["PSD-Q", "stock"] == 8
    assert list(res.index) == ["PSD-Q", "PSD-P", "PSD-M", "PSD-T"]

    res = psd_calc(LENGTHS, PERCH, what="incremental", digits=1)
    assert list(res.index) == ["PSD S-Q", "PSD Q-P", "PSD P-M", "PSD M-T"]
    assert res.loc["PSD Q-P", "Estimate"] == 37.5


def test_zero_estimates_dropped() -> None:
    df = pd.DataFrame({"tl": [140.0, 150.0, 210.0, 220.0]})
    res = psd_calc("tl", PERCH, data=df)
    assert list(res.index) == ["PSD-Q", "PSD S-Q", "PSD Q-P"]
    res = psd_calc("tl", PERCH, data=df, drop0_est=False)
    assert len(res) == 8


def test_non_gabelhouse_names_are_kept() -> None:
    breaks = {"stock": 130, "quality": 200, "slot": 230}
    res = psd_calc(LENGTHS, breaks, what="none")
    assert "PSD-slot" in res.index
    assert "PSD Q-slot" in res.index


def test_psd_calc_failures_and_warning() -> None:
    with pytest.raises(ValueError, match="no stock-length fish"):
        psd_calc([50.0, 60.0], PERCH)
    with pytest.raises(ValueError, match="does not contain any"):
        psd_calc([], PERCH)
    with pytest.raises(ValueError, match="named 'stock'"):
        psd_calc(LENGTHS, {"quality": 200, "preferred": 250})
    with pytest.raises(ValueError, match="at least two"):
        psd_calc(LENGTHS, {"stock": 130})
    with pytest.raises(ValueError, match="map category names"):
        psd_calc(LENGTHS, [130, 200])
    with pytest.warns(UserWarning, match="larger than 'stock'"):
        psd_calc([140.0, 150.0], PERCH)


def test_psd_add_by_species() -> None:
    df = pd.DataFrame(
        {
            "tl": [70.0, 160.0, 120.0, 260.0, 100.0, np.nan],
            "species": ["Bluegill", "Bluegill", "Yellow Perch", "Yellow Perch", "Carp", "Bluegill"],
        },
        index=[10, 11, 12, 13, 14, 15],
    )
    breaks = {"Bluegill": BLUEGILL, "Yellow Perch": PERCH}
    with pytest.warns(UserWarning, match="Carp"):
        res = psd_add("tl", "species", breaks, data=df)
    assert res.index.equals(df.index)
    assert res.dtype == "category"
    assert list(res.cat.categories) == ["substock", "stock", "quality", "preferred", "memorable", "trophy"]
    assert res.iloc[:4].tolist() == ["substock", "quality", "substock", "preferred"]
    assert pd.isna(res.iloc[4])
    assert pd.isna(res.iloc[5])

    with pytest.warns(UserWarning, match="Carp"):
        res = psd_add("tl", "species", breaks, data=df, use_names=False)
    assert res.iloc[:4].tolist() == [0.0, 150.0, 0.0, 250.0]


def test_psd_add_missing_species() -> None:
    with pytest.warns(UserWarning, match="NA"):
        res = psd_add([100.0, 90.0], ["Bluegill", None], {"Bluegill": BLUEGILL}, as_categorical=False)
    assert res.iloc[0] == "stock"
    assert pd.isna(res.iloc[1])
