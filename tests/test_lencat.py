import numpy as np
import pandas as pd
import pytest

from fishfit import add_lencat, lencat


def test_width_categories_start_at_rounded_minimum() -> None:
    out = lencat([12.0, 14.9, 15.0, 27.3], w=5)
    np.testing.assert_array_equal(out, [10.0, 10.0, 15.0, 25.0])


def test_startcat_larger_than_minimum_fails() -> None:
    with pytest.raises(ValueError, match="startcat"):
        lencat([12.0, 30.0], w=5, startcat=15)


def test_boundary_value_opens_its_category() -> None:
    # 0.1 * 3 is 0.30000000000000004 in binary floating point
    out = lencat([0.1 * 3, 0.7, 0.65], w=0.1)
    np.testing.assert_allclose(out, [0.3, 0.7, 0.6])


def test_explicit_breaks_and_terminal_category_warning() -> None:
    with pytest.warns(UserWarning, match="all-inclusive"):
        out = lencat([5.0, 10.0, 19.99, 25.0], breaks=[0, 10, 20])
    np.testing.assert_array_equal(out, [0.0, 10.0, 10.0, 20.0])


def test_breaks_must_cover_minimum() -> None:
    with pytest.raises(ValueError, match="does not cover"):
        lencat([5.0, 12.0], breaks=[10, 20])


def test_breaks_must_be_ascending() -> None:
    with pytest.raises(ValueError, match="ascending"):
        lencat([5.0], breaks=[0, 20, 10])


def test_exactly_one_of_w_or_breaks() -> None:
    with pytest.raises(ValueError, match="exactly one"):
        lencat([5.0], w=1, breaks=[0, 10])
    with pytest.raises(ValueError, match="exactly one"):
        lencat([5.0])


def test_right_inclusive_intervals() -> None:
    out = lencat([0.0, 10.0, 10.5, 20.0], breaks=[0, 10, 20], right=True)
    np.testing.assert_array_equal(out, [0.0, 0.0, 10.0, 10.0])


def test_named_breaks() -> None:
    breaks = {"quality": 200, "stock": 130, "preferred": 250}
    out = lencat([130.0, 199.0, 240.0], breaks=breaks, use_names=True)
    assert out.tolist() == ["stock", "stock", "quality"]

    with pytest.raises(ValueError, match="named breaks"):
        lencat([130.0], breaks=[100, 200], use_names=True)


def test_missing_lengths_propagate() -> None:
    out = lencat([1.2, np.nan, 3.4], w=1)
    assert out[0] == 1.0
    assert np.isnan(out[1])
    assert out[2] == 3.0


def test_categorical_output_and_unused_levels() -> None:
    cat = lencat([1.0, 1.5, 4.2], w=1, as_categorical=True)
    assert isinstance(cat, pd.Categorical)
    assert cat.ordered
    assert list(cat.categories) == [1.0, 2.0, 3.0, 4.0]

    cat = lencat([1.0, 1.5, 4.2], w=1, as_categorical=True, drop_unused=True)
    assert list(cat.categories) == [1.0, 4.0]


def test_add_lencat_returns_copy() -> None:
    df = pd.DataFrame({"tl": [101.0, 117.0, 123.0]})
    out = add_lencat(df, "tl", w=10)
    assert "LCat" not in df.columns
    assert out["LCat"].tolist() == [100.0, 110.0, 120.0]

    out = add_lencat(df, "tl", vname="cat5", w=5, startcat=95)
    assert out["cat5"].tolist() == [100.0, 115.0, 120.0]

    with pytest.raises(ValueError, match="not in"):
        add_lencat(df, "length", w=10)
