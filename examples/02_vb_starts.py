"""
Example: starting values for several growth parameterizations.
"""

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from fishfit import vb_starts
from fishfit.growth import vb_typical


def main() -> None:
    rng = np.random.default_rng(3)
    age = np.repeat(np.arange(1, 12), 15).astype(float)
    tl = vb_typical(age, 600.0, 0.25, -0.6) + rng.normal(0.0, 20.0, age.size)
    df = pd.DataFrame({"age": age, "tl": tl})

    for param in ["Typical", "Original", "GQ", "Mooij", "Weisberg"]:
        print(param, {k: round(v, 3) for k, v in vb_starts("age", "tl", data=df, param=param).items()})

    print("oldAge:", vb_starts(age, tl, meth_linf="oldAge", num4linf=3))
    print("Ogle  :", vb_starts(age, tl, param="Ogle", val_ogle={"tr": 4}))
    print("Somers:", vb_starts(age, tl, param="Somers", fixed={"C": 0.5}))

    fig, axes = plt.subplots(1, 2, figsize=(9, 4))
    vb_starts(age, tl, plot=True, ax=axes[0])
    vb_starts(age, tl, param="Schnute", ages2use=(2, 10), plot=True, ax=axes[1])
    fig.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
