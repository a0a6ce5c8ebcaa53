import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from securebox.algebra import DegeneratePivotError  # noqa: E402
from securebox.driver import METHODS, open_box  # noqa: E402


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Shuffle an N x M secure box and try to open it."
    )
    ap.add_argument("n", type=int, help="Number of rows")
    ap.add_argument("m", type=int, help="Number of columns")
    ap.add_argument(
        "--seed", type=int, default=None, help="Seed for the box shuffle"
    )
    ap.add_argument(
        "--method",
        choices=METHODS,
        default="elimination",
        help="Solver used to plan the toggles",
    )
    args = ap.parse_args(argv)
    if args.n < 1 or args.m < 1:
        ap.error("box dimensions must be positive")

    try:
        locked = open_box(args.n, args.m, seed=args.seed, method=args.method)
    except DegeneratePivotError as e:
        print(
            f"[ERROR] {args.n}x{args.m} effect matrix is singular ({e}); "
            "retry with --method rref",
            file=sys.stderr,
        )
        return 2

    if locked:
        print("BOX: LOCKED!")
    else:
        print("BOX: OPENED!")
    return int(locked)


if __name__ == "__main__":
    sys.exit(main())
