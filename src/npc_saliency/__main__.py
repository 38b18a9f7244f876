"""Command-line entry point for running the synthetic attention scene."""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path

from loguru import logger

from .config import AttentionConfig, ProximityMode, VisibilityMode, WeightMode
from .simulation import run_synthetic_simulation


RULE = "=" * 70


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60.0)
    if not minutes:
        return f"{secs:.2f}s"
    return f"{int(minutes)}m {secs:.1f}s"


def print_header(title: str) -> None:
    print(f"\n{RULE}\n  {title}\n{RULE}")


def print_summary(artifacts, elapsed: float, verbose: bool) -> None:
    print_header("Attention Summary")

    config = artifacts.config
    print(f"\nRuntime: {format_duration(elapsed)}")
    print(f"Frames simulated:   {len(artifacts.results)}")
    print(f"Weight mode:        {config.weight_mode.value}")
    print(f"Visibility mode:    {config.visibility_mode.value}")
    print(f"Proximity mode:     {config.proximity_mode.value}")

    mean_weights = artifacts.weight_history.mean(axis=0)
    print("\n--- Mean Weights ---")
    print(
        "  M: {:.4f}  A: {:.4f}  P: {:.4f}  C: {:.4f}  L: {:.4f}".format(*mean_weights)
    )

    print("\n--- Gaze Share ---")
    print(artifacts.table)

    if verbose:
        print("\n--- Outputs ---")
        print(f"  Object log:  {artifacts.object_log}")
        print(f"  Weight log:  {artifacts.weight_log}")
        for plot in artifacts.plots:
            print(f"  Plot:        {plot}")


def configure_logging(quiet: bool, verbose: bool) -> None:
    logger.remove()
    level = "ERROR" if quiet else "DEBUG" if verbose else "WARNING"
    logger.add(sys.stderr, level=level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the NPC bottom-up attention pipeline on a synthetic scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Adaptive weights, frustum gating
  %(prog)s --weight-mode fixed              # Fixed slider weights
  %(prog)s --visibility-mode raycast -v     # Raycast occlusion, verbose output
  %(prog)s --output-dir runs/ --frames 600  # Longer run, custom output directory
        """,
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("artifacts"),
        help="Directory where telemetry logs and plots will be written (default: artifacts).",
    )
    parser.add_argument("--frames", type=int, default=300, help="Number of frames to simulate (default: 300).")
    parser.add_argument(
        "--delta-time",
        type=float,
        default=1.0 / 30.0,
        help="Frame duration in seconds (default: 1/30).",
    )
    parser.add_argument(
        "--weight-mode",
        choices=[mode.value for mode in WeightMode],
        default=WeightMode.ADAPTIVE.value,
    )
    parser.add_argument(
        "--visibility-mode",
        choices=[mode.value for mode in VisibilityMode],
        default=VisibilityMode.FRUSTUM.value,
    )
    parser.add_argument(
        "--proximity-mode",
        choices=[mode.value for mode in ProximityMode],
        default=ProximityMode.SIZE_OVER_DISTANCE.value,
    )
    parser.add_argument("--no-angular", action="store_true", help="Disable the angular-velocity cue.")
    parser.add_argument("--no-plots", action="store_true", help="Skip rendering the PNG figures.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress all output except errors.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.output_dir.exists() and not args.output_dir.is_dir():
        print(
            f"Error: Output path exists but is not a directory: {args.output_dir}\n"
            f"Please specify a different path or remove the existing file.",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.quiet:
        os.environ["NPC_SALIENCY_VERBOSITY"] = "0"
    elif args.verbose:
        os.environ["NPC_SALIENCY_VERBOSITY"] = "2"
    else:
        os.environ["NPC_SALIENCY_VERBOSITY"] = "1"
    configure_logging(args.quiet, args.verbose)

    if not args.quiet:
        print_header("NPC Saliency Synthetic Scene")
        print(f"\nOutput directory: {args.output_dir.resolve()}")

    start_time = time.time()
    try:
        config = AttentionConfig(
            weight_mode=args.weight_mode,
            visibility_mode=args.visibility_mode,
            proximity_mode=args.proximity_mode,
            use_angular_velocity=not args.no_angular,
        )
        artifacts = run_synthetic_simulation(
            output_dir=args.output_dir,
            config=config,
            frames=args.frames,
            delta_time=args.delta_time,
            make_plots=not args.no_plots,
        )
    except ValueError as e:
        elapsed = time.time() - start_time
        print(f"\nError after {format_duration(elapsed)}:\nInvalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        elapsed = time.time() - start_time
        print(f"\nError after {format_duration(elapsed)}:\nCould not write outputs: {e}", file=sys.stderr)
        sys.exit(1)

    elapsed = time.time() - start_time
    if args.quiet:
        print(artifacts.table)
        return

    print_summary(artifacts, elapsed, args.verbose)
    print_header("Run Complete")
    print(f"Results written to: {args.output_dir.resolve()}\n")


if __name__ == "__main__":
    main()
