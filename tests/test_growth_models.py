import numpy as np
import pytest

from fishfit.growth import (
    Parameterization,
    growth_function,
    vb_gq,
    vb_mooij,
    vb_ogle,
    vb_original,
    vb_pauly,
    vb_somers,
    vb_somers2,
    vb_typical,
    vb_weisberg,
)

T = np.linspace(0.5, 12.0, 24)
LINF, K, T0 = 500.0, 0.3, -0.5


def test_equivalent_parameterizations_agree() -> None:
    ref = vb_typical(T, LINF, K, T0)
    L0 = vb_typical(0.0, LINF, K, T0)
    np.testing.assert_allclose(vb_original(T, LINF, K, L0), ref)
    np.testing.assert_allclose(vb_gq(T, LINF * K, K, T0), ref)
    np.testing.assert_allclose(vb_mooij(T, LINF, L0, LINF * K), ref)
    np.testing.assert_allclose(vb_weisberg(T, LINF, np.log(2.0) / K + T0, T0), ref)
    tr = 3.0
    np.testing.assert_allclose(vb_ogle(T, LINF, K, tr, vb_typical(tr, LINF, K, T0)), ref)


def test_reference_age_forms_pass_through_endpoints() -> None:
    t1, t3 = 2.0, 10.0
    L1, L3 = vb_typical(np.array([t1, t3]), LINF, K, T0)
    schnute = growth_function("Schnute", t1=t1, t3=t3)
    np.testing.assert_allclose(schnute(T, L1, L3, K), vb_typical(T, LINF, K, T0))

    L2 = vb_typical(0.5 * (t1 + t3), LINF, K, T0)
    francis = growth_function("Francis", t1=t1, t3=t3)
    np.testing.assert_allclose(francis(T, L1, L2, L3), vb_typical(T, LINF, K, T0))


def test_reference_ages_required_and_ordered() -> None:
    with pytest.raises(ValueError, match="t1= and t3="):
        growth_function("Schnute")
    with pytest.raises(ValueError, match="larger than t1"):
        growth_function("Francis", t1=5, t3=2)


def test_seasonal_forms() -> None:
    # Without oscillation Somers reduces to the typical curve.
    np.testing.assert_allclose(vb_somers(T, LINF, K, T0, 0.0, 0.3), vb_typical(T, LINF, K, T0))
    np.testing.assert_allclose(
        vb_somers2(T, LINF, K, T0, 0.7, 0.8), vb_somers(T, LINF, K, T0, 0.7, 0.3)
    )


def test_pauly_stalls_during_no_growth_period() -> None:
    ts, NGT = 0.2, 0.3
    # Growth stops for the last NGT of each growth year that starts at ts.
    stalled = vb_pauly(np.array([1.9, 2.0, 2.15]), LINF, 0.4, T0, ts, NGT)
    assert stalled[0] == pytest.approx(stalled[1])
    assert stalled[1] == pytest.approx(stalled[2])
    growing = vb_pauly(np.array([2.3, 2.6]), LINF, 0.4, T0, ts, NGT)
    assert growing[1] > growing[0]


def test_parse_is_case_insensitive() -> None:
    assert Parameterization.parse("typical") is Parameterization.TYPICAL
    assert Parameterization.parse("BEVERTONHOLT") is Parameterization.TYPICAL
    assert Parameterization.parse(Parameterization.PAULY) is Parameterization.PAULY
    with pytest.raises(ValueError, match="Choose one of"):
        Parameterization.parse("Gompertz")
