"""
Example: proportional size distribution indices and Gabelhouse categories.
"""

import numpy as np
import pandas as pd

from fishfit import psd_add, psd_calc

GABELHOUSE_MM = {
    "Bluegill": {"stock": 80, "quality": 150, "preferred": 200, "memorable": 250, "trophy": 300},
    "Largemouth Bass": {"stock": 200, "quality": 300, "preferred": 380, "memorable": 510, "trophy": 630},
}


def main() -> None:
    rng = np.random.default_rng(11)
    fish = pd.DataFrame(
        {
            "species": ["Bluegill"] * 120 + ["Largemouth Bass"] * 60 + ["Bowfin"] * 5,
            "tl": np.concatenate(
                [
                    rng.normal(150.0, 40.0, 120),
                    rng.normal(330.0, 90.0, 60),
                    rng.normal(500.0, 50.0, 5),
                ]
            ).round(),
        }
    )

    fish["gcat"] = psd_add("tl", "species", GABELHOUSE_MM, data=fish)
    print(pd.crosstab(fish["species"], fish["gcat"]))

    bass = fish[fish["species"] == "Largemouth Bass"]
    print(psd_calc("tl", GABELHOUSE_MM["Largemouth Bass"], data=bass, show_intermediate=True))

    slot = {"stock": 200, "quality": 300, "slot": 350, "preferred": 380}
    print(psd_calc("tl", slot, data=bass, what="incremental", digits=1))


if __name__ == "__main__":
    main()
