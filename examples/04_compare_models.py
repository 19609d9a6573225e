"""
Example: compare nested growth models.

Fixing t0 at zero gives a simpler model nested in the typical one; the extra
sum-of-squares and likelihood-ratio tests ask whether t0 is needed.
"""

import numpy as np

from fishfit import extra_ss, lrt, von_bertalanffy
from fishfit.growth import vb_typical


def main() -> None:
    rng = np.random.default_rng(7)
    age = np.repeat(np.arange(1, 9), 12).astype(float)
    tl = vb_typical(age, 380.0, 0.4, -0.8) + rng.normal(0.0, 12.0, age.size)

    full = von_bertalanffy().fit(age, tl)
    no_t0 = von_bertalanffy(name="t0 = 0").fix(t0=0.0).fit(age, tl)

    ess = extra_ss(no_t0, com=full)
    print(ess.attrs["heading"])
    print(ess.round(4))

    lr = lrt(no_t0, com=full, sim_names=["t0 fixed at 0"], com_name="Typical")
    print(lr.attrs["heading"])
    print(lr.round(4))


if __name__ == "__main__":
    main()
