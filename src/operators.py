# src/operators.py
import numpy as np

from helpers import (
    DEFAULT_BIRTH_FEMALE,
    DimensionMismatch,
    InvalidAgeGrid,
    InvalidRateValue,
    _as_vector,
    _default_ages,
)


def validate_inputs(P, asfr, age=None, birth_female: float = DEFAULT_BIRTH_FEMALE):
    """
    Check the rate vectors against the age grid and return clean arrays.

    Returns
    -------
    (P, asfr, age) as float, float and int arrays of equal length A.

    Raises
    ------
    DimensionMismatch : lengths disagree, or the grid is empty.
    InvalidRateValue  : P outside [0,1], asfr < 0, non-finite values,
                        or birth_female outside (0,1).
    InvalidAgeGrid    : ages not whole numbers or not strictly increasing.
    """
    P = _as_vector(P, "P")
    asfr = _as_vector(asfr, "asfr")
    k = P.size
    if k == 0:
        raise DimensionMismatch("`P` must contain at least one age class.")
    if asfr.size != k:
        raise DimensionMismatch(f"`asfr` has length {asfr.size} but `P` has length {k}.")

    if age is None:
        age = _default_ages(k)
    age_arr = np.asarray(age)
    if age_arr.ndim != 1 or age_arr.size != k:
        raise DimensionMismatch(f"`age` has {age_arr.size} entries but `P` has length {k}.")
    try:
        age_num = age_arr.astype(float)
    except (TypeError, ValueError):
        raise InvalidAgeGrid("`age` must contain numeric labels.") from None
    if not np.all(np.isfinite(age_num)) or not np.all(age_num == np.floor(age_num)):
        raise InvalidAgeGrid(f"`age` must hold whole-number labels, got {age_num.tolist()}.")
    age_arr = age_num.astype(int)
    if k > 1 and not np.all(np.diff(age_arr) > 0):
        raise InvalidAgeGrid("`age` must be strictly increasing.")

    if not np.all(np.isfinite(P)):
        raise InvalidRateValue("`P` contains non-finite values.")
    if not np.all(np.isfinite(asfr)):
        raise InvalidRateValue("`asfr` contains non-finite values.")
    bad = np.flatnonzero((P < 0.0) | (P > 1.0))
    if bad.size:
        raise InvalidRateValue(
            f"Survival probabilities must lie in [0, 1]; offending ages: {age_arr[bad].tolist()}."
        )
    bad = np.flatnonzero(asfr < 0.0)
    if bad.size:
        raise InvalidRateValue(
            f"Fertility rates must be non-negative; offending ages: {age_arr[bad].tolist()}."
        )
    bf = float(birth_female)
    if not np.isfinite(bf) or bf <= 0.0 or bf >= 1.0:
        raise InvalidRateValue(f"`birth_female` must lie in (0, 1), got {birth_female!r}.")

    return P, asfr, age_arr


def build_operators(P, asfr, birth_female: float = DEFAULT_BIRTH_FEMALE, *, cumulative_deaths: bool = False):
    """
    Construct the (2A x 2A) transition operator U and fertility operator F.

    Layout of U (live ages 0..A-1, then deceased ages A..2A-1):
      - U[i+1, i] = P[i]           survival and ageing of live classes
      - U[A-1, A-1] = P[A-1]       open interval stays in place
      - U[A+i, i] = 1 - P[i]       death moves mass to the deceased class
      - deceased block             zeros (deaths of the last interval only),
                                   or the identity when `cumulative_deaths`.

    F has a single non-zero row: F[0, i] = asfr[i] * P[i] * birth_female, i.e. the
    newborn is credited to a mother who survives the interval from age i.
    """
    P, asfr, _ = validate_inputs(P, asfr, None, birth_female)
    k = P.size

    Ut = np.zeros((k, k))
    for i in range(1, k):
        Ut[i, i - 1] = P[i - 1]
    Ut[-1, -1] = P[-1]

    Mt = np.diag(1.0 - P)
    Dt = np.eye(k) if cumulative_deaths else np.zeros((k, k))

    U = np.block([
        [Ut, np.zeros((k, k))],
        [Mt, Dt],
    ])

    F = np.zeros((2 * k, 2 * k))
    F[0, :k] = asfr * P * float(birth_female)

    return U, F


def column_sums(U: np.ndarray, live_only: bool = False) -> np.ndarray:
    """
    Column sums of the transition operator; each live column sums to 1.
    With `live_only` only the first A columns are returned.
    """
    sums = np.asarray(U, float).sum(axis=0)
    if live_only:
        return sums[: U.shape[1] // 2]
    return sums
