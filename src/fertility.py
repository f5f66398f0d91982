import logging
import pandas as pd
import numpy as np


def validate_asfr(asfr: pd.Series, ages, *, warnings_only: bool = True) -> list:
    """
    Validate ASFR for biological plausibility.

    Parameters
    ----------
    asfr : pd.Series of age-specific fertility rates (indexed by age).
    ages : List-like of integer ages aligned with `asfr`.
    warnings_only : If True, return warnings list; if False, raise ValueError on violations.

    Returns
    -------
    List of warning strings for implausible values.

    Checks
    ------
    1. Reproductive age range (10-55 years)
    2. Maximum biologically possible ASFR (~0.40)
    3. TFR range (0.3 - 10.0)
    """
    warnings_list = []
    rates = np.asarray(asfr, dtype=float)
    ages = np.asarray(ages, dtype=int)

    # Check 1: Age range (reproductive ages 10-55)
    for age, rate in zip(ages, rates):
        if (age < 10 or age > 55) and rate > 0.001:
            warnings_list.append(
                f"Age {age}: Fertility rate {rate:.4f} outside "
                f"reproductive ages (10-55). Biologically implausible."
            )

    # Check 2: Maximum rate (biological maximum ~0.40)
    max_asfr = float(rates.max()) if rates.size else 0.0
    if max_asfr > 0.40:
        warnings_list.append(
            f"Maximum ASFR {max_asfr:.4f} exceeds biological maximum (~0.40)."
        )

    # Check 3: TFR range (single-year ages)
    tfr = float(rates.sum())
    if tfr > 10.0:
        warnings_list.append(
            f"TFR {tfr:.2f} exceeds historical maximum (~9-10). "
            f"Check for data errors or improper scaling."
        )
    if 0 < tfr < 0.30:
        warnings_list.append(
            f"TFR {tfr:.2f} below minimum observed in modern populations. "
            f"Extreme low fertility - verify data quality."
        )

    if not warnings_only and warnings_list:
        raise ValueError("ASFR validation failed:\n  " + "\n  ".join(warnings_list))

    if warnings_list:
        for w in warnings_list:
            logging.warning(f"[ASFR Validation] {w}")
    return warnings_list


def compute_asfr(ages, population, births, *, min_exposure: float = 1e-9) -> pd.Series:
    """
    ASFR = births / population aligned on the integer age grid `ages`.

    Notes
    -----
      - population and births are Series indexed by age (or arrays aligned with `ages`).
      - Ages missing from either input, or with exposure <= min_exposure, get ASFR 0.
      - Negative births are clipped to zero.
    """
    ages = pd.Index(np.asarray(ages, dtype=int))
    pop = pd.Series(population, dtype="float64")
    bth = pd.Series(births, dtype="float64")
    if not isinstance(population, pd.Series):
        pop.index = ages
    if not isinstance(births, pd.Series):
        bth.index = ages
    pop.index = pop.index.astype(int)
    bth.index = bth.index.astype(int)

    pop = pop.reindex(ages)
    bth = bth.reindex(ages).clip(lower=0.0)
    pop = pop.where(pop > float(min_exposure), np.nan)

    with np.errstate(divide='ignore', invalid='ignore'):
        asfr = bth / pop
    asfr = asfr.replace([np.inf, -np.inf], np.nan).fillna(0.0)
    asfr.name = "asfr"
    return asfr
