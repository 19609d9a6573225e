import numpy as np
import pandas as pd
import pytest

from fishfit import chapman_robson

AGE = np.array([2.0, 3.0, 4.0, 5.0, 6.0])
CATCH = np.array([100.0, 60.0, 35.0, 20.0, 12.0])


def test_survival_by_hand() -> None:
    cr = chapman_robson(AGE, CATCH, zmethod="original")
    n, T = 227.0, 238.0
    S = T / (n + T - 1)
    S_se = np.sqrt(S * (S - (T - 1) / (n + T - 2)))
    assert (cr.n, cr.T) == (n, T)
    assert cr.coef()["S"] == pytest.approx(100 * S)
    assert cr.summary().loc["S", "Std. Error"] == pytest.approx(100 * S_se)
    assert cr.coef()["Z"] == pytest.approx(-np.log(S))
    assert cr.summary().loc["Z", "Std. Error"] == pytest.approx(S_se / S)


def test_bias_corrected_z() -> None:
    n, T = 227.0, 238.0
    S = T / (n + T - 1)
    Z = -np.log(S) - ((n - 1) * (n - 2)) / (n * (T + 1) * (n + T - 1))
    se = (1 - np.exp(-Z)) / np.sqrt(n * np.exp(-Z))

    cr = chapman_robson(AGE, CATCH, zmethod="Hoenigetal")
    assert cr.coef()["Z"] == pytest.approx(Z)
    assert cr.summary().loc["Z", "Std. Error"] == pytest.approx(se)

    cr = chapman_robson(AGE, CATCH)
    expected = CATCH[0] * S ** (AGE - AGE[0])
    vif = np.sum((CATCH - expected) ** 2 / expected) / (CATCH.size - 1)
    assert cr.zmethod == "Smithetal"
    assert cr.coef()["Z"] == pytest.approx(Z)
    assert cr.summary().loc["Z", "Std. Error"] == pytest.approx(se * np.sqrt(vif))


def test_ages2use_and_dataframe() -> None:
    df = pd.DataFrame({"age": [1.0, *AGE], "ct": [40.0, *CATCH]})
    cr = chapman_robson("age", "ct", data=df, ages2use=[2, 3, 4, 5, 6], zmethod="original")
    np.testing.assert_array_equal(cr.age_recoded, [0, 1, 2, 3, 4])
    assert cr.coef()["S"] == pytest.approx(chapman_robson(AGE, CATCH).coef()["S"])


def test_confint_uses_normal_quantiles() -> None:
    cr = chapman_robson(AGE, CATCH)
    ci = cr.confint(level=0.9, incl_est=True)
    half = 1.6448536269514722 * cr.summary()["Std. Error"]
    np.testing.assert_allclose(ci["90% UCI"] - ci["Est"], half)
    np.testing.assert_allclose(ci["Est"] - ci["90% LCI"], half)


def test_bad_inputs() -> None:
    with pytest.raises(ValueError, match="same length"):
        chapman_robson([1.0, 2.0], [10.0])
    with pytest.raises(ValueError, match="Fewer than 2"):
        chapman_robson([1.0], [10.0])
    with pytest.raises(ValueError, match="after applying"):
        chapman_robson(AGE, CATCH, ages2use=[6])
    with pytest.raises(ValueError, match="not in the data"):
        chapman_robson(AGE, CATCH, ages2use=[5, 6, 7])
    with pytest.raises(ValueError, match="zmethod"):
        chapman_robson(AGE, CATCH, zmethod="Robson")
