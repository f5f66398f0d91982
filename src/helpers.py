"""
General-purpose helpers shared across the kinship pipeline.

This module centralizes reusable utilities that are agnostic to the kinship
recursion itself:
- Error taxonomy raised at the input boundary and by the stable solver.
- Kin-type codes in their canonical output order.
- Vector coercions for rate inputs.
- Age-label formatting for the open-ended last interval.

IMPORTANT: This module does not import project-specific modules to avoid circular
dependencies.
"""
from __future__ import annotations

import numpy as np

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class KinshipError(ValueError):
    """Base class for every precondition failure in the kinship pipeline."""


class DimensionMismatch(KinshipError):
    """Input vectors disagree in length with the age grid."""


class InvalidRateValue(KinshipError):
    """Survival, fertility or sex-ratio values outside their valid range."""


class InvalidAgeGrid(KinshipError):
    """Age labels are not integers or not strictly increasing."""


class DegenerateEigensystem(KinshipError):
    """The projection operator has no usable dominant real eigenpair."""


# ---------------------------------------------------------------------------
# Kin-type scaffolding
# ---------------------------------------------------------------------------

KIN_TYPES = ["d", "gd", "m", "gm", "ggm", "os", "ys", "nos", "nys", "oa", "ya", "coa", "cya"]

DEFAULT_BIRTH_FEMALE = 1 / 2.04


# ---------------------------------------------------------------------------
# Coercions
# ---------------------------------------------------------------------------

def _as_vector(values, name: str) -> np.ndarray:
    """
    Coerce a sequence of numbers to a 1-D float array.

    Parameters
    ----------
    values : array-like
        Sequence, Series or ndarray.
    name : str
        Argument name used in error messages.

    Returns
    -------
    np.ndarray
        Float copy of `values`.
    """
    if values is None:
        raise DimensionMismatch(f"`{name}` is required.")
    arr = np.array(values, dtype=float)
    if arr.ndim != 1:
        raise DimensionMismatch(f"`{name}` must be one-dimensional, got shape {arr.shape}.")
    return arr


def _default_ages(n: int) -> np.ndarray:
    """Age grid 0..n-1 used when the caller supplies none."""
    return np.arange(n, dtype=int)


def _format_age_labels(ages) -> list[str]:
    """
    Printable labels for an age grid, marking the last one as open.

    >>> _format_age_labels([0, 1, 2])
    ['0', '1', '2+']
    """
    labels = [str(int(a)) for a in ages]
    if labels:
        labels[-1] = f"{labels[-1]}+"
    return labels
