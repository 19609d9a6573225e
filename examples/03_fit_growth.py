"""
Example: fit a von Bertalanffy curve, seeded automatically.

The GQ fit reports Linf as a derived parameter; its uncertainty uses the
correlation between omega and K.
"""

import numpy as np
import matplotlib.pyplot as plt

from fishfit import von_bertalanffy
from fishfit.growth import vb_typical


def main() -> None:
    rng = np.random.default_rng(0)
    age = np.repeat(np.arange(1, 11), 20).astype(float)
    tl = vb_typical(age, 500.0, 0.3, -0.5) + rng.normal(0.0, 10.0, age.size)

    model = von_bertalanffy("Typical").bound(K=(0, None))
    run = model.fit(age, tl)
    res = run.results
    print(run.summary())
    print("Linf:", res["Linf"].u)

    gq = von_bertalanffy("GQ").fit(age, tl)
    print(gq.summary())
    print("derived Linf:", gq.results["Linf"].u)

    schnute = von_bertalanffy("Schnute", t1=1, t3=10).fit(age, tl)
    print(schnute.results.summary())

    fig, ax = run.plot(line_kwargs={"label": "Typical fit"})
    xg = np.linspace(1.0, 10.0, 200)
    ax.plot(xg, vb_typical(xg, 500.0, 0.3, -0.5), "k:", lw=1, label="true")
    ax.set_xlabel("Age")
    ax.set_ylabel("Total length")
    ax.legend()
    plt.show()


if __name__ == "__main__":
    main()
