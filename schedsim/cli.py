from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .algorithms import ALGORITHMS, resolve_algorithm, run_algorithm
from .gantt import build_rich_gantt
from .logging_config import setup_logging
from .metrics import summarize
from .models import CONTEXT_SWITCH, IDLE, Process, SimulationOptions, SimulationResult
from .validation import validate
from .workload_io import load_workload, records_to_processes

logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = 2

ALGORITHM_NAMES = [a.value.lower() for a in ALGORITHMS]


class WorkloadError(Exception):
    """The workload file could not be turned into a valid process set."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="Deterministic CPU scheduling simulator (" + ", ".join(ALGORITHM_NAMES) + ").",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every scheduling step.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHM_NAMES)}).",
    )
    run_parser.add_argument("--workload", "-w", required=True, help="Path to JSON or CSV workload file.")
    _add_option_arguments(run_parser)
    run_parser.add_argument(
        "--log",
        action="store_true",
        help="Record and print the decision log.",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON instead of tables.",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument("--workload", "-w", required=True, help="Path to JSON or CSV workload file.")
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=ALGORITHM_NAMES,
        help="Algorithms to compare (default: all).",
    )
    _add_option_arguments(compare_parser)

    validate_parser = subparsers.add_parser("validate", help="Check a workload file without running it.")
    validate_parser.add_argument("--workload", "-w", required=True, help="Path to JSON or CSV workload file.")

    return parser


def _add_option_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=2,
        help="Time quantum for RR / MQ / MLFQ (default: 2).",
    )
    parser.add_argument("--cores", "-c", type=int, default=1, help="Number of logical cores (default: 1).")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for lottery scheduling (default: 42).")
    parser.add_argument(
        "--boost",
        type=int,
        default=None,
        help="MLFQ priority-boost interval (default: no boost).",
    )
    parser.add_argument(
        "--overhead",
        type=int,
        default=0,
        help="Context-switch cost in time units (default: 0).",
    )


def _options_from_args(args: argparse.Namespace, enable_logging: bool = False) -> SimulationOptions:
    return SimulationOptions(
        quantum=args.quantum,
        core_count=args.cores,
        random_seed=args.seed,
        enable_logging=enable_logging,
        mlfq_boost_interval=args.boost,
        context_switch_overhead=args.overhead,
    )


def _load_processes(path: Path) -> List[Process]:
    try:
        records = load_workload(path)
    except (OSError, ValueError) as exc:
        raise WorkloadError(str(exc)) from exc

    outcome = validate(records)
    if not outcome.valid:
        raise WorkloadError(outcome.error)
    return records_to_processes(records)


def _print_result(result: SimulationResult, core_count: int, processes: List[Process], console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    console.print()

    panel, time_marks = build_rich_gantt(result.events, core_count)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()

    headers = ["PID", "Arrive", "Burst", "Complete", "Wait", "Turnaround", "Response", "Priority"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    m = result.metrics
    for p in processes:
        proc_table.add_row(
            p.pid,
            str(p.arrival_time),
            str(p.burst_time),
            f"{m.completion[p.pid]:g}",
            f"{m.waiting[p.pid]:g}",
            f"{m.turnaround[p.pid]:g}",
            f"{m.response[p.pid]:g}",
            "" if p.priority is None else str(p.priority),
        )

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")
    sys_table.add_row("Avg waiting", f"{m.avg_waiting:.2f}")
    sys_table.add_row("Avg turnaround", f"{m.avg_turnaround:.2f}")
    sys_table.add_row("Avg response", f"{m.avg_response:.2f}")
    sys_table.add_row("P95 turnaround", f"{m.p95_turnaround:g}")
    sys_table.add_row("Std dev waiting", f"{m.std_dev_waiting:.2f}")
    sys_table.add_row("Std dev turnaround", f"{m.std_dev_turnaround:.2f}")
    sys_table.add_row("Makespan", f"{m.makespan:g}")
    sys_table.add_row("Throughput (proc/time)", f"{m.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{m.cpu_utilization*100:.1f}%")
    sys_table.add_row("Context switches", str(m.context_switches))
    sys_table.add_row("Switch time", f"{m.switch_time:g}")
    sys_table.add_row("Energy (J)", f"{m.energy.total:.1f}")
    console.print(sys_table)

    if result.decision_log is not None:
        console.print()
        log_table = Table(title="Decision log", box=box.SIMPLE_HEAVY)
        log_table.add_column("Time", justify="right")
        log_table.add_column("Core", justify="right")
        log_table.add_column("Decision")
        log_table.add_column("Reason")
        log_table.add_column("Waiting")
        for entry in result.decision_log:
            log_table.add_row(
                f"{entry.time:g}",
                str(entry.core_id),
                entry.message,
                entry.reason,
                ", ".join(entry.queue_state),
            )
        console.print(log_table)


def _core_label(pid: str) -> str:
    if pid == IDLE:
        return "\\[idle]"
    if pid == CONTEXT_SWITCH:
        return "[dim]switch[/dim]"
    return f"[green]{pid}[/green]"


def _animate_result(result: SimulationResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the schedule's snapshots.
    """
    if not result.snapshots:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = result.snapshots[-1].time
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for snap in result.snapshots:
        cores = " | ".join(_core_label(pid) for pid in snap.running)
        ready = ", ".join(snap.ready_queue) or "-"
        console.print(f"t={snap.time:2d}: {cores}  [dim]ready: {ready}[/dim]")
        time.sleep(delay)


def _run_compare(processes: List[Process], algorithms: List[str], options: SimulationOptions, console: Console) -> None:
    results = [run_algorithm(alg, processes, options) for alg in algorithms]

    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util.", justify="right")
    summary_table.add_column("Switches", justify="right")
    summary_table.add_column("Energy (J)", justify="right")

    for row in summarize(results):
        summary_table.add_row(
            row["algorithm"],
            f"{row['avg_waiting']:.2f}",
            f"{row['avg_turnaround']:.2f}",
            f"{row['avg_response']:.2f}",
            f"{row['cpu_utilization']*100:.1f}%",
            str(row["context_switches"]),
            f"{row['energy']:.1f}",
        )

    console.print(summary_table)


def main(argv: list[str] | None = None, console: Optional[Console] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = console or Console()
    setup_logging(args.verbose)

    try:
        processes = _load_processes(Path(args.workload))
    except WorkloadError as exc:
        console.print(f"[red]Invalid workload:[/red] {exc}")
        return EXIT_INVALID_INPUT

    if args.command == "validate":
        console.print(f"[green]OK[/green]: {len(processes)} process(es)")
        return 0

    try:
        options = _options_from_args(args, enable_logging=getattr(args, "log", False))
        if args.command == "run":
            algorithms = [resolve_algorithm(args.algorithm)]
        else:
            algorithms = [resolve_algorithm(name) for name in args.algorithms]
    except ValueError as exc:
        parser.error(str(exc))

    if args.command == "run":
        result = run_algorithm(algorithms[0], processes, options)
        logger.info("%s finished at t=%s", result.algorithm, result.metrics.makespan)
        if args.json:
            console.print_json(json.dumps(result.to_dict()))
            return 0
        if args.step:
            try:
                _animate_result(result, delay=args.step_delay, console=console)
            except KeyboardInterrupt:
                console.print("[yellow]Animation skipped.[/yellow]")
        _print_result(result, options.core_count, processes, console)
        return 0

    if args.command == "compare":
        _run_compare(processes, algorithms, options, console)
        return 0

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
