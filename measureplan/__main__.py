"""CLI entry point for measureplan.

Usage:
    measureplan [options] COMMAND ...
    python -m measureplan [options] COMMAND ...

Options:
    --workspace PATH    Workspace YAML file (default: ./workspace.yaml)
    --config PATH       Path to measureplan.yaml config file
    --verbose / -v      Verbose output (default: on)
    --quiet / -q        Suppress progress output

Commands:
    report              Calculate everything and write output files
    calculate           Calculate one metric for one cycle
    measurements        Show the values collected for a metric in a cycle
    validate            Check a formula
    status              Status of a plan's metrics for a cycle
    estimate            Summarize function-point estimates
    record              Record a measurement and save the workspace
"""

from __future__ import annotations

import argparse
import json
import os
import sys


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="measureplan",
        description="Calculate measurement-plan metrics and function-point estimates",
    )
    parser.add_argument(
        "--workspace",
        type=str,
        default="workspace.yaml",
        help="Workspace YAML file with plans, cycles, data and estimates",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to measureplan.yaml configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=True,
        help="Verbose output (default)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress output",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("report", help="Calculate everything and write output files")
    p.add_argument("--plan", type=str, default=None, help="Only this plan (id or name)")
    p.add_argument("--cycle", type=str, default=None, help="Only this cycle (id or name)")
    p.add_argument(
        "--format",
        type=str,
        default=None,
        help="Comma-separated output formats (json,csv,markdown)",
    )
    p.add_argument("--output", type=str, default=None, help="Output directory for results")

    p = sub.add_parser("calculate", help="Calculate one metric for one cycle")
    p.add_argument("plan_id")
    p.add_argument("metric_id")
    p.add_argument("cycle_id")

    p = sub.add_parser("measurements", help="Values collected for a metric in a cycle")
    p.add_argument("plan_id")
    p.add_argument("cycle_id")
    p.add_argument("metric_id")

    p = sub.add_parser("validate", help="Check a formula")
    p.add_argument("formula")

    p = sub.add_parser("status", help="Status of a plan's metrics for a cycle")
    p.add_argument("plan_id")
    p.add_argument("cycle_id", nargs="?", default=None,
                   help="Cycle to calculate; omit for raw status over all data")

    p = sub.add_parser("estimate", help="Summarize function-point estimates")
    p.add_argument("estimate_id", nargs="?", default=None, help="Default: all estimates")

    p = sub.add_parser("record", help="Record a measurement and save the workspace")
    p.add_argument("plan_id")
    p.add_argument("objective_id")
    p.add_argument("question_id")
    p.add_argument("metric_id")
    p.add_argument("cycle_id")
    p.add_argument("definition_id")
    p.add_argument("value", type=float)
    p.add_argument("date", help="ISO-8601 date or datetime")
    p.add_argument("--notes", type=str, default=None)

    return parser


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _run(args, verbose: bool) -> int:
    from .calculation import MetricCalculationService
    from .config import load_config
    from .errors import NotFoundError
    from .store import load_workspace, parse_datetime, save_workspace

    workspace = os.path.abspath(args.workspace)
    config = load_config(config_path=args.config, root=os.path.dirname(workspace))

    if args.command == "validate":
        service = MetricCalculationService(store=None, config=config)
        _print_json(service.validate_formula(args.formula).to_dict())
        return 0

    store = load_workspace(workspace)
    service = MetricCalculationService(store, config)

    if args.command == "report":
        from .collector import collect, write_output

        if args.format:
            config.output.formats = [f.strip() for f in args.format.split(",")]
        if args.output:
            config.output.directory = args.output

        if verbose:
            print("=" * 60)
            print("  Measurement Plan Calculator v1.0")
            print("=" * 60)
            print(f"  Workspace: {workspace}")
            print(f"  Formats: {', '.join(config.output.formats)}")
            print("=" * 60)
            print()

        result = collect(
            store,
            config,
            plan_filter=args.plan,
            cycle_filter=args.cycle,
            verbose=verbose,
        )
        written = write_output(result, config, verbose=verbose)

        if verbose:
            print(f"\n{'=' * 60}")
            print(f"  Done! Wrote {len(written)} files.")
            print(f"  Time: {result.duration_seconds:.1f}s")
            print(f"{'=' * 60}")
        return 0

    if args.command == "calculate":
        result = service.calculate_metric_for_cycle(args.plan_id, args.metric_id, args.cycle_id)
        _print_json(result.to_dict())
        return 0

    if args.command == "measurements":
        view = service.get_measurements_with_acronyms(args.plan_id, args.cycle_id, args.metric_id)
        _print_json(view.to_dict())
        return 0

    if args.command == "status":
        from .aggregation.status_aggregator import cycle_status, plan_status

        plan = store.find_plan(args.plan_id)
        if plan is None:
            raise NotFoundError("Measurement plan not found")
        if args.cycle_id is None:
            _print_json(plan_status(plan, store).to_dict())
            return 0
        cycle = store.find_cycle(args.cycle_id)
        if cycle is None or cycle.plan_id != plan.id:
            raise NotFoundError("Cycle not found")
        _print_json(cycle_status(service, plan, cycle).to_dict())
        return 0

    if args.command == "estimate":
        from .fpa.estimate import summarize_estimate

        if args.estimate_id:
            estimate = store.find_estimate(args.estimate_id)
            if estimate is None:
                raise NotFoundError("Estimate not found")
            estimates = [estimate]
        else:
            estimates = list(store.estimates.values())
        _print_json([summarize_estimate(e, config.estimation).to_dict() for e in estimates])
        return 0

    if args.command == "record":
        from .tracking import record_measurement

        data = record_measurement(
            store,
            plan_id=args.plan_id,
            objective_id=args.objective_id,
            question_id=args.question_id,
            metric_id=args.metric_id,
            cycle_id=args.cycle_id,
            definition_id=args.definition_id,
            value=args.value,
            date=parse_datetime(args.date),
            notes=args.notes,
        )
        save_workspace(store, workspace)
        if verbose:
            print(f"[measureplan] Recorded {data.id} in {workspace}", file=sys.stderr)
        _print_json(data.to_dict())
        return 0

    return 1


def main(argv=None):
    from .errors import MeasurePlanError

    args = _build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        return _run(args, verbose)
    except MeasurePlanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
