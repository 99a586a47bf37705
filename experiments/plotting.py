import os

import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def _ensure_dir(path: str):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

def read_log(csv_path: str) -> pd.DataFrame:
    """Read one run CSV written by experiments/run_opt.py and coerce columns."""
    df = pd.read_csv(csv_path)
    # ensure numeric (they were formatted as strings for pretty printing)
    for c in ["gbest_f", "f_best", "f_mean", "f_std"]:
        df[c] = pd.to_numeric(df[c], errors="coerce")
    return df

def plot_convergence(csv_path: str, outpath: str = None, ykey: str = "gbest_f", title: str = None):
    """
    Semilogy convergence curve for a single run.
    ykey in {"gbest_f", "f_best"} – gbest_f is global best so far (preferred).
    Defaults to <csv dir>/convergence.png.
    """
    df = read_log(csv_path)
    fig = plt.figure()
    ax = plt.gca()
    vals = df[ykey]
    if (vals <= 0).any():
        ax.plot(df["gen"], vals)
    else:
        ax.semilogy(df["gen"], vals)
    ax.set_xlabel("Generation")
    ax.set_ylabel("Best objective value")
    ax.grid(True, which="both", linestyle=":")
    ax.set_title(title or "PSO convergence")

    if outpath is None:
        outpath = os.path.join(os.path.dirname(csv_path), "convergence.png")

    _ensure_dir(outpath)
    fig.savefig(outpath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return outpath
