# src/data_loaders.py
import os
import yaml
import pandas as pd
import numpy as np

from helpers import DEFAULT_BIRTH_FEMALE
from mortality import parse_age_labels, survival_from_lifetable
from fertility import compute_asfr


def return_default_config():
    """
    Returns the default configuration dictionary
    """
    return {
        "paths": {
            "data_dir": "./data",
            "results_dir": "./results",
        },
        "diagnostics": {
            "validate_asfr": True,
            "print_summary": True,
        },
        "kinship": {
            "birth_female": DEFAULT_BIRTH_FEMALE,
            "pi_stable": True,
            "cumulative_deaths": False,
        },
        "runs": [],
        "filenames": {"kins": "all_kins.csv", "stable": "all_stable.csv"},
    }

def _resolve(ROOT_DIR, p):
    """
    Resolve path p relative to ROOT_DIR if not absolute.
    """
    return os.path.abspath(os.path.join(ROOT_DIR, p))

def _deep_merge(dst, src):
    """
    Recursively merge src into dst
    """
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _deep_merge(dst[k], v)
        else:
            dst[k] = v

def _load_config(ROOT_DIR: str, path: str):
    """
    Load YAML config if present; otherwise use defaults for both config and paths.
    Returns (cfg, PATHS)
    """
    cfg = return_default_config()
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as fh:
            user = yaml.safe_load(fh) or {}
        _deep_merge(cfg, user)
    else:
        print(f"[config] No config file at {path}; using built-in defaults.")

    PATHS = {
        "data_dir": _resolve(ROOT_DIR, cfg["paths"]["data_dir"]),
        "results_dir": _resolve(ROOT_DIR, cfg["paths"]["results_dir"]),
    }
    return cfg, PATHS

# ----------------------------- rate readers ------------------------------

def _read_csv(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    df = pd.read_csv(path)
    df.columns = [str(c).strip() for c in df.columns]
    if "age" not in df.columns:
        raise KeyError(f"Column 'age' not found in {path}")
    df["age"] = parse_age_labels(df["age"]).to_numpy()
    return df.sort_values("age").reset_index(drop=True)

def _asfr_from_frame(df: pd.DataFrame, ages, path: str) -> np.ndarray:
    """
    ASFR aligned to `ages`: from an 'asfr' column, or births/population counts.
    Ages absent from the frame get zero fertility.
    """
    if "asfr" in df.columns:
        s = pd.Series(df["asfr"].to_numpy(dtype=float), index=df["age"].to_numpy())
        return s.reindex(ages).fillna(0.0).to_numpy()
    if {"births", "population"} <= set(df.columns):
        births = pd.Series(df["births"].to_numpy(dtype=float), index=df["age"].to_numpy())
        pop = pd.Series(df["population"].to_numpy(dtype=float), index=df["age"].to_numpy())
        return compute_asfr(ages, pop, births).to_numpy()
    raise KeyError(f"Neither 'asfr' nor 'births'+'population' columns found in {path}")

def load_rates(path: str):
    """
    Read a rate CSV with columns age, P (or px) and asfr (or births + population).
    Age labels like '90+' are accepted; the last age is the open interval.
    Returns (age, P, asfr) arrays.
    """
    df = _read_csv(path)
    p_col = "P" if "P" in df.columns else ("px" if "px" in df.columns else None)
    if p_col is None:
        raise KeyError(f"Column 'P' (or 'px') not found in {path}")
    ages = df["age"].to_numpy(dtype=int)
    P = df[p_col].to_numpy(dtype=float)
    asfr = _asfr_from_frame(df, ages, path)
    return ages, P, asfr

def load_lifetable_rates(lifetable_path: str, asfr_path: str):
    """
    Survival ratios from a life table CSV (age, Lx, Tx) and fertility from a
    second CSV aligned on the life-table ages. Returns (age, P, asfr).
    """
    lt = _read_csv(lifetable_path)
    ages = lt["age"].to_numpy(dtype=int)
    P = survival_from_lifetable(lt)
    fert = _read_csv(asfr_path)
    asfr = _asfr_from_frame(fert, ages, asfr_path)
    return ages, P, asfr

def load_run_inputs(run: dict, data_dir: str):
    """
    Resolve one configured run to (age, P, asfr). A run names either
    'rates_csv', or both 'lifetable_csv' and 'asfr_csv', relative to data_dir.
    """
    if "rates_csv" in run:
        return load_rates(_resolve(data_dir, run["rates_csv"]))
    if "lifetable_csv" in run and "asfr_csv" in run:
        return load_lifetable_rates(
            _resolve(data_dir, run["lifetable_csv"]),
            _resolve(data_dir, run["asfr_csv"]),
        )
    raise KeyError(f"Run {run.get('label', run)!r} needs 'rates_csv' or 'lifetable_csv' + 'asfr_csv'.")
