# src/kinship.py
"""
Expected kin counts for ego in a stable population.

Matrix version of the Goodman-Keyfitz-Pullum kinship equations (Caswell 2019).
Each kin type is a (2A x A) array: column j is the age distribution of that kin
when ego is in age class j; rows 0..A-1 hold living kin by age, rows A..2A-1
deceased kin by age at death.

Kin types are computed in four phases, each a pure function of the operators,
the stable maternal age distribution pi and the kin arrays of earlier phases:

    phase 1 : d, gd, m, ys, nys
    phase 2 : gm (from m), os (from d), nos (from gd)
    phase 3 : ggm (from gm), oa (from os), ya (from ys, gm)
    phase 4 : coa (from nos, oa), cya (from nys, ya)
"""
from __future__ import annotations

from collections import OrderedDict

import numpy as np

from helpers import KIN_TYPES, DEFAULT_BIRTH_FEMALE
from operators import validate_inputs, build_operators
from stable import stable_distribution
from assembler import kin_matrices_to_frame


# ---------------------------------------------------------------------
# Recursion primitives
# ---------------------------------------------------------------------
def _project(U: np.ndarray, seed: np.ndarray, F: np.ndarray | None = None,
             forcing: np.ndarray | None = None) -> np.ndarray:
    """
    Fill ego-age columns 1..A-1 from the seed column:

        k[:, j+1] = U @ k[:, j] + F @ forcing[:, j]

    `forcing` is the (2A x A) array of the generational parent; without it the
    kin type only survives and ages.
    """
    n_ages = U.shape[0] // 2
    out = np.zeros((2 * n_ages, n_ages))
    out[:, 0] = seed
    for j in range(n_ages - 1):
        nxt = U @ out[:, j]
        if forcing is not None:
            nxt = nxt + F @ forcing[:, j]
        out[:, j + 1] = nxt
    return out


def _seed_from(parent: np.ndarray, pi: np.ndarray) -> np.ndarray:
    """
    Column-0 seed averaged over the mother's age at ego's birth: the living part
    of `parent` weighted by pi. The deceased half is zero.
    """
    n_ages = pi.size
    seed = np.zeros(2 * n_ages)
    seed[:n_ages] = parent[:n_ages, :] @ pi
    return seed


def _ego_indicator(n_ages: int) -> np.ndarray:
    """Ego's own live age class as a (2A x A) indicator."""
    e = np.zeros((2 * n_ages, n_ages))
    e[:n_ages, :n_ages] = np.eye(n_ages)
    return e


# ---------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------
def _phase_one(U, F, pi):
    """Descendants of ego, mother, and younger sisters with their daughters."""
    n_ages = pi.size
    zero = np.zeros(2 * n_ages)

    d = _project(U, zero, F, _ego_indicator(n_ages))
    gd = _project(U, zero, F, d)
    m = _project(U, np.concatenate([pi, np.zeros(n_ages)]))
    ys = _project(U, zero, F, m)
    nys = _project(U, zero, F, ys)
    return d, gd, m, ys, nys


def _phase_two(U, F, pi, m, d, gd):
    """Grandmother, older sisters and their daughters."""
    gm = _project(U, _seed_from(m, pi))
    os_ = _project(U, _seed_from(d, pi))
    nos = _project(U, _seed_from(gd, pi), F, os_)
    return gm, os_, nos


def _phase_three(U, F, pi, gm, os_, ys):
    """Great-grandmother and aunts."""
    ggm = _project(U, _seed_from(gm, pi))
    oa = _project(U, _seed_from(os_, pi))
    ya = _project(U, _seed_from(ys, pi), F, gm)
    return ggm, oa, ya


def _phase_four(U, F, pi, nos, nys, oa, ya):
    """Cousins through older and younger aunts."""
    coa = _project(U, _seed_from(nos, pi), F, oa)
    cya = _project(U, _seed_from(nys, pi), F, ya)
    return coa, cya


def compute_kin_matrices(U: np.ndarray, F: np.ndarray, pi) -> "OrderedDict[str, np.ndarray]":
    """
    Run the four recursion phases and return the 13 kin arrays keyed by code,
    in the order d, gd, m, gm, ggm, os, ys, nos, nys, oa, ya, coa, cya.
    """
    U = np.asarray(U, float)
    F = np.asarray(F, float)
    pi = np.asarray(pi, float)
    if U.shape != F.shape or U.shape != (2 * pi.size, 2 * pi.size):
        raise ValueError(
            f"Operators of shape {U.shape} and {F.shape} do not match pi of length {pi.size}."
        )

    d, gd, m, ys, nys = _phase_one(U, F, pi)
    gm, os_, nos = _phase_two(U, F, pi, m, d, gd)
    ggm, oa, ya = _phase_three(U, F, pi, gm, os_, ys)
    coa, cya = _phase_four(U, F, pi, nos, nys, oa, ya)

    computed = {
        "d": d, "gd": gd, "m": m, "gm": gm, "ggm": ggm,
        "os": os_, "ys": ys, "nos": nos, "nys": nys,
        "oa": oa, "ya": ya, "coa": coa, "cya": cya,
    }
    return OrderedDict((code, computed[code]) for code in KIN_TYPES)


# ---------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------
def kins_stable(
    P,
    asfr,
    age=None,
    birth_female: float = DEFAULT_BIRTH_FEMALE,
    pi_stable: bool = False,
    *,
    cumulative_deaths: bool = False,
):
    """
    Expected number of living and deceased kin of ego, by ego's age and kin's age.

    Parameters
    ----------
    P : survival probabilities by age; the last one applies within the open interval.
    asfr : age-specific fertility rates (both sexes of offspring).
    age : integer age labels, strictly increasing (default 0..A-1).
    birth_female : fraction of births that are female.
    pi_stable : if True, also return the stable maternal age distribution.
    cumulative_deaths : if True, deceased kin accumulate across ego's ages instead
        of counting only deaths since ego's previous age.

    Returns
    -------
    pd.DataFrame with columns x, x_kin, alive and one column per kin code,
    or (DataFrame, pi) when `pi_stable`.
    """
    P, asfr, age = validate_inputs(P, asfr, age, birth_female)
    U, F = build_operators(P, asfr, birth_female, cumulative_deaths=cumulative_deaths)
    _, _, pi = stable_distribution(U, F)

    kins = compute_kin_matrices(U, F, pi)
    out = kin_matrices_to_frame(kins, age)

    if pi_stable:
        return out, pi
    return out
