# experiments/run_opt.py
import argparse
import csv
import os
import time

import numpy as np

from benchmarks.dixonprice import dixonprice
from benchmarks.griewank import griewank
from optimizer.pso import PSO
from optimizer.romu import ENGINES
from utils.recorder import RunConfig, create_run_dir, save_run_metadata
from experiments.plotting import plot_convergence

FUNCTIONS = {
    "dixonprice": dixonprice,
    "griewank": griewank,
}

LOG_FIELDS = ["gen", "evals", "gbest_f", "f_best", "f_mean", "f_std"]


def format_time(seconds: float) -> str:
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    if h > 0:
        return f"{h}h {m:02d}m {s:02d}s"
    return f"{m}m {s:02d}s"


def optimize(f, opt: PSO, n_generations: int, report_every: int = 250, log_path: str = "run.csv"):
    """
    Run `n_generations` ask/tell rounds of `opt` on `f`, writing one CSV row
    per generation and printing "<gen> <best>" every `report_every` generations.
    Ctrl-C stops early; the log written so far is kept.
    """
    os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
    buf = []

    with open(log_path, "w", newline="") as fh:
        writer = csv.DictWriter(fh, fieldnames=LOG_FIELDS)
        writer.writeheader()

        try:
            for gen in range(n_generations):
                buf.clear()
                for x in opt.ask():
                    buf.append(f(x))

                best_obj = opt.tell(buf)

                st = opt.state()
                writer.writerow({
                    "gen": st["iter"],
                    "evals": st["evals_total"],
                    "gbest_f": f"{st['gbest_f']:.12e}",
                    "f_best": f"{st['f_best']:.12e}",
                    "f_mean": f"{st['f_mean']:.12e}",
                    "f_std": f"{st['f_std']:.12e}",
                })

                if report_every and (gen + 1) % report_every == 0:
                    print(f"{gen} {best_obj:.4f}")

        except KeyboardInterrupt:
            print("\n!!! Interrupted by user. Stopping optimization early and saving current results... !!!")

    return opt.best()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run PSO on a benchmark function.")
    parser.add_argument("--function", type=str, default="dixonprice", choices=sorted(FUNCTIONS))
    parser.add_argument("--D", type=int, default=30, help="Dimension")
    parser.add_argument("--pop", type=int, default=50, help="Number of particles")
    parser.add_argument("--generations", type=int, default=2000)
    parser.add_argument("--lo", type=float, default=-10.0, help="Lower sampling bound (all dims)")
    parser.add_argument("--hi", type=float, default=10.0, help="Upper sampling bound (all dims)")
    parser.add_argument("--c1", type=float, default=0.1, help="Cognitive factor")
    parser.add_argument("--c2", type=float, default=0.1, help="Social factor")
    parser.add_argument("--decay", type=float, default=0.99, help="Velocity decay factor")
    parser.add_argument("--init_speed", type=float, default=0.01)
    parser.add_argument("--engine", type=str, default="romu_duo_jr",
                        choices=sorted(name for name, cls in ENGINES.items() if cls.WORD_BITS == 64))
    parser.add_argument("--seed", type=int, default=None, help="Integer seed (default: OS entropy)")
    parser.add_argument("--report_every", type=int, default=100)
    parser.add_argument("--out", type=str, default=None, help="Run directory (default data/results/<function>/run_*)")
    parser.add_argument("--no-plot", dest="plot", action="store_false", help="Skip the convergence plot")
    return parser


def run(argv=None):
    """Parse `argv`, run the optimizer and record the run; returns opt.best()."""
    args = build_parser().parse_args(argv)
    start_time = time.time()

    bounds = [(args.lo, args.hi)] * args.D
    options = dict(
        n_particles=args.pop,
        cognitive_factor=args.c1,
        social_factor=args.c2,
        velocity_decay_factor=args.decay,
        init_speed=args.init_speed,
        engine=args.engine,
    )
    opt = PSO(bounds=bounds, seed=args.seed, options=options)

    if args.out:
        run_dir = args.out
        os.makedirs(run_dir, exist_ok=True)
    else:
        run_dir = str(create_run_dir(args.function))
    log_path = os.path.join(run_dir, "convergence.csv")

    best = optimize(FUNCTIONS[args.function], opt, args.generations,
                    report_every=args.report_every, log_path=log_path)
    elapsed = time.time() - start_time

    print("Best f:", best["f"])
    print("Elapsed:", format_time(elapsed))

    config = RunConfig(
        problem=args.function,
        engine=args.engine,
        n_particles=args.pop,
        n_generations=opt.state()["iter"],
        dim=args.D,
        seed=args.seed,
        cognitive_factor=args.c1,
        social_factor=args.c2,
        velocity_decay_factor=args.decay,
        init_speed=args.init_speed,
    )
    save_run_metadata(run_dir, config, extra={
        "f_best": best["f"] if np.isfinite(best["f"]) else None,
        "x_best": best["x"].tolist(),
        "elapsed_s": elapsed,
    })

    if args.plot and opt.state()["iter"] > 0:
        conv_png = plot_convergence(log_path, title=f"PSO on {args.function} (D={args.D}, pop={args.pop})")
        print("Saved convergence plot:", conv_png)

    return best


def main(argv=None):
    run(argv)


if __name__ == "__main__":
    main()
