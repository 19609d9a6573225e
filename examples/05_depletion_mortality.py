"""
Example: depletion estimates of abundance and catch-curve survival.
"""

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from fishfit import chapman_robson, depletion


def main() -> None:
    removal = pd.DataFrame(
        {
            "catch": [346, 184, 119, 110, 46, 29, 25, 15],
            "effort": [7, 7, 7, 7, 7, 7, 7, 7],
        }
    )
    leslie = depletion("catch", "effort", data=removal)
    print(leslie.summary().round(3))
    print(leslie.confint(incl_est=True).round(3))
    print("r^2:", round(leslie.rsquared(), 3))

    delury = depletion("catch", "effort", data=removal, method="DeLury", ricker_mod=True)
    print(delury.summary().round(3))

    catches = pd.DataFrame(
        {"age": np.arange(0, 9), "ct": [50, 220, 260, 140, 75, 44, 22, 11, 6]}
    )
    # Ages before the peak are not fully recruited to the gear.
    cr = chapman_robson("age", "ct", data=catches, ages2use=range(2, 9))
    print(cr.summary().round(3))
    print(cr.confint(incl_est=True).round(3))

    fig, axes = plt.subplots(1, 2, figsize=(9, 4))
    leslie.plot(ax=axes[0])
    delury.plot(ax=axes[1])
    fig.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
