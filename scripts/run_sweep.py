import argparse
import csv
import multiprocessing as mp
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path

import numpy as np
import yaml

# Limit threads per worker
os.environ["OMP_NUM_THREADS"] = "1"
os.environ["OPENBLAS_NUM_THREADS"] = "1"
os.environ["MKL_NUM_THREADS"] = "1"
mp.freeze_support()

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from securebox.algebra import DegeneratePivotError  # noqa: E402
from securebox.box import SecureBox  # noqa: E402
from securebox.driver import apply_plan, make_strategy, plan_box  # noqa: E402
from securebox.evaluation.metrics import (  # noqa: E402
    opened,
    run_status,
    toggle_density,
    toggles_used,
)

FIELDNAMES = [
    "n",
    "m",
    "method",
    "seed",
    "box_id",
    "initial_locked",
    "status",
    "opened",
    "toggles",
    "toggle_density",
    "time_ms",
]


def parse_sizes(cfg_sizes):
    """Parse [n, m] pairs (or a bare n for square boxes) from YAML."""
    parsed = []
    for item in cfg_sizes:
        if isinstance(item, int):
            parsed.append((item, item))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            parsed.append((int(item[0]), int(item[1])))
        else:
            raise ValueError(f"Invalid size spec: {item}")
    for n, m in parsed:
        if n < 1 or m < 1:
            raise ValueError(f"Invalid size spec: {n}x{m}")
    return parsed


def _task_seed(base_seed: int, *coords: int) -> int:
    """Generate deterministic seed for each task."""
    ss = np.random.SeedSequence([int(base_seed)] + [int(c) for c in coords])

    return int(
        ss.generate_state(1, dtype=np.uint64)[0] & np.uint64((1 << 63) - 1)
    )


def make_jobs(sizes, methods, n_boxes, batch_size):
    """Create job batches for parallel processing."""
    ranges = [
        (i, min(i + batch_size, n_boxes)) for i in range(0, n_boxes, batch_size)
    ]
    for n, m in sizes:
        for method in methods:
            for lo, hi in ranges:
                yield {"n": n, "m": m, "method": method, "idx_lo": lo, "idx_hi": hi}


def _run_batch(job):
    """Open one batch of seeded boxes with one method."""
    n, m = job["n"], job["m"]
    method = job["method"]
    base_seed = job["base_seed"]
    rows = []

    for box_id in range(job["idx_lo"], job["idx_hi"]):
        # same boxes for every method so results are comparable
        box_seed = _task_seed(base_seed, n, m, box_id)
        box = SecureBox(n, m, seed=box_seed, max_shuffle=job["max_shuffle"])
        initial_locked = box.snapshot().count_locked()

        start_time = time.perf_counter()
        try:
            plan = plan_box(box, make_strategy(method))
        except DegeneratePivotError:
            status = "degenerate"
            plan = None
            locked = box.is_locked()
        else:
            if plan is not None:
                apply_plan(box, plan)
            locked = box.is_locked()
            status = run_status(plan, locked)
        time_ms = (time.perf_counter() - start_time) * 1000

        rows.append(
            {
                "n": n,
                "m": m,
                "method": method,
                "seed": box_seed,
                "box_id": box_id,
                "initial_locked": initial_locked,
                "status": status,
                "opened": opened(locked),
                "toggles": toggles_used(plan),
                "toggle_density": toggle_density(plan, n, m),
                "time_ms": time_ms,
            }
        )
    return rows


def run_pool(jobs, writer, workers, max_inflight=None, total_jobs=None):
    """Run jobs in parallel and write results as they complete."""
    ctx = mp.get_context("spawn")
    if max_inflight is None:
        max_inflight = workers * 3

    inflight = set()
    done = 0
    total_rows = 0
    start_time = time.time()

    with ProcessPoolExecutor(max_workers=workers, mp_context=ctx) as ex:
        jobs_iter = iter(jobs)
        for j in jobs_iter:
            inflight.add(ex.submit(_run_batch, j))
            if len(inflight) >= max_inflight:
                break

        while inflight:
            for fut in as_completed(inflight):
                inflight.remove(fut)
                try:
                    rows = fut.result()
                except Exception:
                    import traceback

                    print("\n[ERROR] Worker failed:")
                    traceback.print_exc()
                    raise
                writer.writerows(rows)
                done += 1
                total_rows += len(rows)

                elapsed = time.time() - start_time
                if total_jobs:
                    eta_seconds = (elapsed / done) * (total_jobs - done)
                    print(
                        f"\r[progress] {done}/{total_jobs} batches "
                        f"({done / total_jobs:>6.1%}) | "
                        f"{total_rows:>7,} boxes | "
                        f"elapsed: {int(elapsed // 60)}m {int(elapsed % 60)}s | "
                        f"ETA: {int(eta_seconds // 60)}m {int(eta_seconds % 60)}s",
                        end="",
                        flush=True,
                    )
                    if done == total_jobs:
                        print()

                # Submit next job to keep inflight bounded
                j = next(jobs_iter, None)
                if j is not None:
                    inflight.add(ex.submit(_run_batch, j))
                break  # re-enter as_completed with updated set


def main(argv=None):
    n_cpus = os.cpu_count() or 1
    default_workers = max(n_cpus - 1, 1)

    ap = argparse.ArgumentParser()
    ap.add_argument(
        "--config",
        default=str(ROOT / "experiments" / "configs" / "sweep.yaml"),
    )
    ap.add_argument("--out", default=None, help="Output CSV path")
    ap.add_argument(
        "--workers", type=int, default=default_workers, help="Number of workers"
    )
    ap.add_argument("--batch-size", type=int, default=50, help="Boxes per batch")
    args = ap.parse_args(argv)

    with open(args.config, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f)["experiment"]

    sizes = parse_sizes(cfg["sizes"])
    methods = [str(s).lower() for s in cfg.get("methods", ["elimination"])]
    for method in methods:
        make_strategy(method)  # fail fast on unknown names
    n_boxes = int(cfg["n_boxes"])
    base_seed = int(cfg.get("seed", 0))
    max_shuffle = int(cfg.get("max_shuffle", 1000))
    out_dir = Path(cfg.get("output_dir", "results/runs"))
    out_dir.mkdir(parents=True, exist_ok=True)
    out_csv = args.out or str(out_dir / "sweep.csv")

    num_ranges = (n_boxes + args.batch_size - 1) // args.batch_size
    total_jobs = num_ranges * len(sizes) * len(methods)

    def job_stream():
        for j in make_jobs(sizes, methods, n_boxes, args.batch_size):
            j.update({"base_seed": base_seed, "max_shuffle": max_shuffle})
            yield j

    print(
        f"\nStarting {total_jobs:,} batches ({n_boxes:,} boxes x "
        f"{len(sizes)} sizes x {len(methods)} methods) with {args.workers} workers...\n"
    )

    start_time = time.time()
    with open(out_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        run_pool(
            job_stream(),
            writer,
            workers=args.workers,
            max_inflight=args.workers * 3,
            total_jobs=total_jobs,
        )

    elapsed = time.time() - start_time
    print(f"\nDone in {int(elapsed/60)}m {int(elapsed%60)}s")
    print(f"Output: {out_csv}\n")


if __name__ == "__main__":
    main()
