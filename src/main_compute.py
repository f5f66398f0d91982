# ------------------------------------------------------------------------------
# Stable-population kinship pipeline.
# - Reads every scenario listed under `runs` in config.yaml:
#     * {label, rates_csv}                     age, P/px, asfr
#     * {label, lifetable_csv, asfr_csv}       age, Lx, Tx  +  age, asfr
# - Computes expected kin counts by ego age, kin age and alive/deceased.
# - Concatenates outputs into ONE file per type in results_dir:
#     * kins/all_kins.csv   long kin table, one block per scenario label
#     * all_stable.csv      stable w and pi per label (when kinship.pi_stable)
# - Single global TQDM progress bar over scenarios.
# ------------------------------------------------------------------------------


from __future__ import annotations
from typing import Optional, Dict, List
import os
import sys
import pandas as pd
from tqdm import tqdm

from helpers import _format_age_labels
from operators import validate_inputs, build_operators
from stable import stable_distribution, intrinsic_growth_rate, mean_age_at_childbearing
from kinship import compute_kin_matrices
from assembler import kin_matrices_to_frame, save_kins
from fertility import validate_asfr
from data_loaders import _load_config, load_run_inputs

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
CONFIG_PATH = os.path.join(ROOT_DIR, "config.yaml")


def run_scenario(age, P, asfr, kin_cfg: Dict, *, label: str = "base", validate: bool = True):
    """
    Kin table and stable-population summary for one set of rates.

    Returns
    -------
    kins_df   : long kin table with a leading 'label' column
    stable_df : per-age w and pi with lambda, r and mean age at childbearing
    """
    birth_female = float(kin_cfg.get("birth_female", 1 / 2.04))
    cumulative = bool(kin_cfg.get("cumulative_deaths", False))

    P, asfr, age = validate_inputs(P, asfr, age, birth_female)
    if validate:
        validate_asfr(pd.Series(asfr, index=age), age)

    U, F = build_operators(P, asfr, birth_female, cumulative_deaths=cumulative)
    lam, w, pi = stable_distribution(U, F)
    kins = compute_kin_matrices(U, F, pi)

    kins_df = kin_matrices_to_frame(kins, age)
    kins_df.insert(0, "label", label)

    stable_df = pd.DataFrame({
        "label": label,
        "age": age,
        "age_label": _format_age_labels(age),
        "w": w,
        "pi": pi,
    })
    stable_df["lambda"] = lam
    stable_df["r"] = intrinsic_growth_rate(lam)
    stable_df["mean_age_childbearing"] = mean_age_at_childbearing(pi, age)
    return kins_df, stable_df


def main(config_path: Optional[str] = None, root_dir: str = ROOT_DIR) -> Dict[str, str]:
    """
    Run every configured scenario and write the concatenated outputs.
    Returns the written file paths keyed by output type.
    """
    cfg, paths = _load_config(root_dir, config_path or CONFIG_PATH)
    runs: List[dict] = list(cfg.get("runs") or [])
    if not runs:
        raise ValueError("[kinship] No runs configured; add entries under `runs` in config.yaml.")

    kin_cfg = cfg.get("kinship", {})
    validate = bool(cfg.get("diagnostics", {}).get("validate_asfr", True))
    print_summary = bool(cfg.get("diagnostics", {}).get("print_summary", True))
    os.makedirs(paths["results_dir"], exist_ok=True)

    kin_records, stable_records = [], []
    for i, run in enumerate(tqdm(runs, desc="Kinship scenarios", unit="run")):
        label = str(run.get("label", f"run_{i}"))
        age, P, asfr = load_run_inputs(run, paths["data_dir"])
        kins_df, stable_df = run_scenario(age, P, asfr, kin_cfg, label=label, validate=validate)
        kin_records.append(kins_df)
        stable_records.append(stable_df)
        if print_summary:
            lam = float(stable_df["lambda"].iloc[0])
            mac = float(stable_df["mean_age_childbearing"].iloc[0])
            tqdm.write(f"[kinship] {label}: lambda={lam:.5f}  mean age at childbearing={mac:.2f}")

    names = cfg.get("filenames", {})
    kins_name = os.path.splitext(names.get("kins", "all_kins.csv"))[0]
    stable_name = names.get("stable", "all_stable.csv")

    written = {"kins": save_kins(pd.concat(kin_records, ignore_index=True), paths["results_dir"], kins_name)}
    if bool(kin_cfg.get("pi_stable", True)):
        stable_path = os.path.join(paths["results_dir"], stable_name)
        pd.concat(stable_records, ignore_index=True).to_csv(stable_path, index=False)
        written["stable"] = stable_path
    print(f"[kinship] Wrote {', '.join(written.values())}")
    return written


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
