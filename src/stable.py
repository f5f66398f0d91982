# src/stable.py
import numpy as np

from helpers import DegenerateEigensystem, DimensionMismatch, _as_vector


# ---------------------------------------------------------------------
# Dominant eigenpair
# ---------------------------------------------------------------------
def _dominant_eigenpair(A: np.ndarray, *, tol: float = 1e-9):
    """
    Return (lambda, vector) for the Perron root of a non-negative matrix.

    Eigenvalues whose modulus ties the spectral radius (imprimitive, periodic
    matrices) are resolved in favour of the one with the largest real part,
    which for a non-negative matrix is the real positive root.
    """
    vals, vecs = np.linalg.eig(A)
    mods = np.abs(vals)
    rho = float(mods.max())
    if not np.isfinite(rho) or rho <= 0.0:
        raise DegenerateEigensystem(
            "Projection operator has spectral radius 0; the population cannot renew itself."
        )

    candidates = np.flatnonzero(mods >= rho * (1.0 - 1e-8))
    idx = candidates[np.argmax(vals[candidates].real)]
    lam = vals[idx]

    if abs(lam.imag) > tol * rho:
        raise DegenerateEigensystem(f"Dominant eigenvalue {lam} is not real.")
    if lam.real <= 0.0:
        raise DegenerateEigensystem(f"Dominant eigenvalue {lam.real} is not positive.")

    vec = vecs[:, idx]
    if np.max(np.abs(vec.imag)) > tol * max(np.max(np.abs(vec.real)), 1.0):
        raise DegenerateEigensystem("Dominant eigenvector has a non-negligible imaginary part.")
    return float(lam.real), np.asarray(vec.real, dtype=float)


def _normalize_positive(vec: np.ndarray, name: str, *, tol: float = 1e-10) -> np.ndarray:
    """
    Sign-normalize an eigenvector and scale it to sum to one.
    Components must share one sign up to round-off.
    """
    total = float(vec.sum())
    if total < 0.0:
        vec = -vec
        total = -total
    scale = float(np.max(np.abs(vec))) if vec.size else 0.0
    if total <= 0.0 or scale == 0.0:
        raise DegenerateEigensystem(f"`{name}` has zero total weight.")
    if np.any(vec < -tol * scale):
        raise DegenerateEigensystem(f"`{name}` has components of mixed sign.")
    vec = np.clip(vec, 0.0, None)
    return vec / vec.sum()


# ---------------------------------------------------------------------
# Stable population
# ---------------------------------------------------------------------
def stable_distribution(U: np.ndarray, F: np.ndarray):
    """
    Stable growth rate, age structure and maternal age distribution.

    Works on the live (top-left A x A) blocks of U and F:
        A_sub = U_sub + F_sub
        lambda, w = dominant eigenpair of A_sub, w scaled to sum 1
        pi[i]     = w[i] * A_sub[0, i], scaled to sum 1

    Returns
    -------
    (lam, w, pi) : float, np.ndarray, np.ndarray

    Raises
    ------
    DegenerateEigensystem if no real positive dominant eigenvalue with a
    one-signed eigenvector exists, or if no births arise from w.
    """
    U = np.asarray(U, float)
    F = np.asarray(F, float)
    k = U.shape[0] // 2
    A_sub = U[:k, :k] + F[:k, :k]

    lam, w_raw = _dominant_eigenpair(A_sub)
    w = _normalize_positive(w_raw, "w")

    births = w * A_sub[0, :]
    if float(births.sum()) <= 0.0:
        raise DegenerateEigensystem(
            "No births arise from the stable age structure; `asfr` is zero wherever `w` is positive."
        )
    pi = births / births.sum()
    return lam, w, pi


def intrinsic_growth_rate(lam: float) -> float:
    """Intrinsic rate of natural increase r = log(lambda)."""
    if lam <= 0:
        raise DegenerateEigensystem(f"Growth rate must be positive, got {lam!r}.")
    return float(np.log(lam))


def mean_age_at_childbearing(pi, age) -> float:
    """Mean age of mothers at the birth of a daughter in the stable population."""
    pi = _as_vector(pi, "pi")
    age = _as_vector(age, "age")
    if pi.size != age.size:
        raise DimensionMismatch("`pi` and `age` must have the same length.")
    return float(np.sum(pi * age))
