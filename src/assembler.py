# src/assembler.py
import os
import numpy as np
import pandas as pd

from helpers import KIN_TYPES


def kin_matrices_to_frame(kins, age) -> pd.DataFrame:
    """
    Reshape the per-kin (2A x A) arrays into one long table.

    One row per (x, x_kin, alive), sorted by ego age x, then alive
    ('yes' before 'no'), then kin age x_kin. Ages are the literal labels
    from `age`, not grid positions.

    Rows are grouped per ego age with living kin first. Tables produced by
    a key-value spread over (x, x_kin, alive) come out in lexical order
    instead, with 'no' before 'yes'; compare such tables after
    ``df.sort_values(["x", "x_kin", "alive"])`` rather than row by row.

    Columns: x, x_kin, alive, d, gd, m, gm, ggm, os, ys, nos, nys, oa, ya, coa, cya.
    """
    age = np.asarray(age, int)
    k = age.size
    missing = [c for c in KIN_TYPES if c not in kins]
    if missing:
        raise KeyError(f"Missing kin types: {missing}")

    # row r of a kin array <-> (alive, x_kin); column j <-> x
    x = np.repeat(age, 2 * k)
    x_kin = np.tile(np.concatenate([age, age]), k)
    alive = np.tile(np.array(["yes"] * k + ["no"] * k, dtype=object), k)

    df = pd.DataFrame({"x": x, "x_kin": x_kin, "alive": alive})
    for code in KIN_TYPES:
        mat = np.asarray(kins[code], float)
        if mat.shape != (2 * k, k):
            raise ValueError(f"Kin array '{code}' has shape {mat.shape}, expected {(2 * k, k)}.")
        # column-major flatten walks kin rows within each ego age
        df[code] = mat.flatten(order="F")
    return df


def save_kins(df: pd.DataFrame, results_dir: str, label: str) -> str:
    """
    Save a kin table to <results_dir>/kins/<label>.csv and return the path.
    """
    out_path = os.path.join(results_dir, "kins")
    os.makedirs(out_path, exist_ok=True)
    path = os.path.join(out_path, f"{label}.csv")
    df.to_csv(path, index=False)
    return path
