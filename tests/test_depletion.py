import numpy as np
import pandas as pd
import pytest

from fishfit import depletion


def _leslie_data():
    # Effort 10 per event, q = 0.01, No = 1000: CPE = q * (No - K) exactly.
    catch = np.array([100.0, 90.0, 81.0, 72.9, 65.61])
    effort = np.full(5, 10.0)
    return catch, effort


def test_leslie_exact() -> None:
    catch, effort = _leslie_data()
    d = depletion(catch, effort)
    assert d.method == "Leslie"
    np.testing.assert_allclose(d.removed, [0.0, 100.0, 190.0, 271.0, 343.9])
    assert d.coef()["No"] == pytest.approx(1000.0)
    assert d.coef()["q"] == pytest.approx(0.01)
    assert d.rsquared() == pytest.approx(1.0)
    assert list(d.summary().columns) == ["Estimate", "Std. Err."]
    assert list(d.summary().index) == ["No", "q"]


def test_delury_exact() -> None:
    effort = np.ones(6)
    catch = 100.0 * np.exp(-0.1 * np.arange(6))
    d = depletion(catch, effort, method="Delury")
    assert d.method == "DeLury"
    assert d.coef()["q"] == pytest.approx(0.1)
    assert d.coef()["No"] == pytest.approx(1000.0)


def test_ricker_modification() -> None:
    catch, effort = _leslie_data()
    d = depletion(catch, effort, ricker_mod=True)
    np.testing.assert_allclose(d.removed, np.cumsum(catch) - catch / 2.0)
    d = depletion(catch, effort, method="DeLury", ricker_mod=True)
    np.testing.assert_allclose(d.removed, np.cumsum(effort) - effort / 2.0)


def test_confint_and_dataframe_input() -> None:
    df = pd.DataFrame(
        {"catch": [100, 92, 79, 75, 64, 60, 50], "effort": [10.0] * 7}
    )
    d = depletion("catch", "effort", data=df)
    ci = d.confint(incl_est=True)
    assert list(ci.columns) == ["Est", "95% LCI", "95% UCI"]
    assert np.all(ci["95% LCI"] < ci["Est"])
    assert np.all(ci["Est"] < ci["95% UCI"])
    narrow = d.confint(level=0.8)
    assert list(narrow.columns) == ["80% LCI", "80% UCI"]
    assert narrow.loc["No", "80% LCI"] > ci.loc["No", "95% LCI"]
    assert 0.0 < d.rsquared() <= 1.0
    with pytest.raises(ValueError, match="between 0 and 1"):
        d.confint(level=95)


def test_suspect_slopes_warn() -> None:
    with pytest.warns(UserWarning, match="negative slope"):
        depletion([10.0, 20.0, 30.0, 40.0], [1.0, 1.0, 1.0, 1.0])
    with pytest.warns(UserWarning, match="significantly"):
        depletion([50.0, 52.0, 45.0, 49.0, 47.0], np.ones(5))


def test_bad_inputs() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        depletion([10.0, -1.0, 5.0], [1.0, 1.0, 1.0])
    with pytest.raises(ValueError, match="positive"):
        depletion([10.0, 8.0, 5.0], [1.0, 0.0, 1.0])
    with pytest.raises(ValueError, match="same length"):
        depletion([10.0, 8.0, 5.0], [1.0, 1.0])
    with pytest.raises(ValueError, match="at least 3"):
        depletion([10.0, 8.0], [1.0, 1.0])
    with pytest.raises(ValueError, match="zero catches"):
        depletion([10.0, 0.0, 5.0], [1.0, 1.0, 1.0], method="DeLury")
    with pytest.raises(ValueError, match="method"):
        depletion([10.0, 8.0, 5.0], [1.0, 1.0, 1.0], method="Petersen")
    with pytest.raises(TypeError, match="effort"):
        depletion([10.0, 8.0, 5.0])
