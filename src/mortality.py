# src/mortality.py
import numpy as np
import pandas as pd
import warnings


# ---------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------
def parse_age_labels(age_labels):
    """
    Extract lower bounds of age intervals from strings like '0-4', '90+', etc.
    Returns a pandas Series of integers representing starting age of each interval.
    """
    return pd.Series(age_labels).astype(str).str.extract(r'(\d+)')[0].astype(int)


# ---------------------------------------------------------------------
# Survival ratios from a life table
# ---------------------------------------------------------------------
def survival_from_lifetable(lt: pd.DataFrame) -> np.ndarray:
    """
    Survival ratios P for the kinship operators from person-years lived.

      P[i]   = L[i+1] / L[i]        closed intervals
      P[A-1] = T[A-1] / T[A-2]      open interval (stay within it)

    Requires 'Lx' and 'Tx' columns, ordered by age. Zero denominators give 0.
    """
    for col in ("Lx", "Tx"):
        if col not in lt.columns:
            raise ValueError(f"Life table must include a '{col}' column.")
    Lx = lt["Lx"].to_numpy(dtype=float)
    Tx = lt["Tx"].to_numpy(dtype=float)
    k = Lx.size
    if k == 0:
        return np.array([], dtype=float)

    P = np.zeros(k, dtype=float)
    if k > 1:
        P[:-1] = np.divide(Lx[1:], Lx[:-1], out=np.zeros(k - 1), where=Lx[:-1] > 0)
        P[-1] = Tx[-1] / Tx[-2] if Tx[-2] > 0 else 0.0

    if np.any(P > 1.0):
        warnings.warn("Survival ratios above 1 found (Lx increasing with age); clipping to 1.")
    return np.clip(P, 0.0, 1.0)
