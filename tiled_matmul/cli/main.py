import argparse
import sys
from pathlib import Path
from typing import List, Optional

from tiled_matmul.bench import MatrixMulConfig, MatrixMulRunner, format_diff
from tiled_matmul.data import RunReport
from tiled_matmul.device import DeviceCallError, DeviceUnavailableError
from tiled_matmul.logging import configure_logging, get_logger

logger = get_logger("CLI")


def _normalize_legacy_args(argv: List[str]) -> List[str]:
    """Map the SDK-style ``device=N`` and ``quiet`` tokens onto the argparse flags."""
    normalized = []
    for arg in argv:
        stripped = arg.lstrip("-")
        if stripped.startswith("device="):
            normalized.extend(["--device", stripped.split("=", 1)[1]])
        elif stripped == "quiet":
            normalized.append("--quiet")
        else:
            normalized.append(arg)
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiled-matmul",
        description="Tiled shared-memory matrix multiply, timed and verified against a CPU "
        "reference.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "iterations", nargs="?", type=int, default=30, help="Number of timed launches."
    )
    parser.add_argument(
        "size",
        nargs="?",
        type=int,
        default=None,
        help="Side length of square A, B and C. Must be a multiple of the block size.",
    )
    parser.add_argument(
        "--device", type=int, default=None, help="Device index (default: best estimated)."
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Suppress device selection logging."
    )
    parser.add_argument("--block-size", type=int, choices=[16, 32], default=None)
    parser.add_argument("--size-multiple", type=int, default=None)
    parser.add_argument("--seed", type=int, default=2006)
    parser.add_argument("--tolerance", type=float, default=1e-6)
    parser.add_argument("--max-listed", type=int, default=100)
    parser.add_argument("--warmup-runs", type=int, default=1)
    parser.add_argument("--output", type=Path, help="Write the run report as JSON.")
    parser.add_argument("--log-level", default="INFO")
    return parser


def print_report(report: RunReport) -> None:
    dims = report.dimensions
    perf = report.performance
    print(
        f"MatrixA({dims.height_a}x{dims.width_a}), MatrixB({dims.width_a}x{dims.width_b})"
    )
    print(
        f"Performance= {perf.gflops:.2f} GFlop/s, Time= {perf.msec_per_iteration:.3f} msec, "
        f"Size= {perf.flop_count:.0f} Ops, Workgroup = {perf.workgroup_size}"
    )
    correctness = report.correctness
    if not report.passed:
        print(
            format_diff(
                correctness.mismatches, correctness.mismatch_count, correctness.tolerance
            )
        )
    print(f"Result = {'PASS' if report.passed else 'FAIL'}")


def save_report(report: RunReport, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    """Run one multiply from command-line arguments.

    Returns
    -------
    int
        0 when the run completed (verification passed or failed), 1 on a fatal error.
    """
    argv = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(_normalize_legacy_args(argv))

    try:
        configure_logging(args.log_level)
        config = MatrixMulConfig(
            iterations=args.iterations,
            warmup_runs=args.warmup_runs,
            seed=args.seed,
            tolerance=args.tolerance,
            max_listed=args.max_listed,
            block_size=args.block_size,
            size=args.size,
            size_multiple=args.size_multiple,
            device=args.device,
            quiet=args.quiet,
            log_level=args.log_level.upper(),
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    print("[Matrix Multiply] - Starting...")
    try:
        report = MatrixMulRunner(config).run()
    except DeviceUnavailableError as e:
        logger.error(f"cudaDeviceInit error: {e}")
        return 1
    except DeviceCallError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        logger.error(f"Invalid problem: {e}")
        return 1

    print_report(report)
    if args.output:
        save_report(report, args.output)
        print(f"Report saved to {args.output}")
    return 0


def cli():
    sys.exit(main())
