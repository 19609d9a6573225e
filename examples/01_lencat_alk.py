"""
Example: length categories and age assignment from an age-length key.

An aged subsample builds the key; every fish in the length sample then gets
an individual age with the semi-random method.
"""

import numpy as np
import pandas as pd

from fishfit import add_lencat, assign_ages, lencat, make_key
from fishfit.growth import vb_typical


def main() -> None:
    rng = np.random.default_rng(0)
    age = rng.integers(1, 8, size=300).astype(float)
    tl = np.round(vb_typical(age, 450.0, 0.35, -0.4) + rng.normal(0.0, 15.0, age.size), 1)
    fish = pd.DataFrame({"tl": tl, "age": age})

    # Age roughly a quarter of the fish; the rest are only measured.
    aged = fish.sample(frac=0.25, random_state=1)
    unaged = fish.drop(aged.index)[["tl"]]

    print(lencat(fish["tl"].head(8), w=10))
    print(lencat([120.0, 210.0, 260.0], breaks={"stock": 100, "quality": 200, "preferred": 250}, use_names=True))

    key = make_key(aged, "tl", "age", w=25)
    print(key.round(2))

    startcat = float(key.index.min())
    lo = unaged["tl"] >= startcat
    out = assign_ages(key, unaged[lo], "tl", method="SR", seed=42)
    out = add_lencat(out, "tl", w=25)
    print(out.head())
    print(out.groupby("age")["tl"].agg(["count", "mean"]).round(1))


if __name__ == "__main__":
    main()
