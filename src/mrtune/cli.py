"""mrtune CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mrtune import __version__
from mrtune._constants import DEFAULT_OUTPUT_DIR, DEFAULT_TASK_MEMORY
from mrtune.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    Configuration,
    dump_configuration,
    load_configuration,
    save_configuration,
)
from mrtune.journal import CommandName, EventType, Journal
from mrtune.models import (
    ClusterModel,
    JobProfile,
    TaskPhase,
    cluster_from_configuration,
    load_cluster,
    load_job_profile,
    save_cluster,
    save_job_profile,
    synthesize_cluster,
)
from mrtune.optimizer import DEFAULT_OPTIMIZER, OptimizationError, OptimizerType, create_optimizer
from mrtune.scheduler import SchedulerError, create_scheduler
from mrtune.whatif import (
    DatasetModel,
    FixedInputDatasetModel,
    ProfileDatasetModel,
    ProjectionError,
    ScalingProfileOracle,
    WhatIfEngine,
    WhatIfQuestion,
    execution_summary,
    execution_timeline,
    format_duration,
    load_input_specs,
    mapper_rows,
    reducer_rows,
    save_input_specs,
)

logger = logging.getLogger(__name__)

# Global journal instance (lazy-initialized)
_journal: Journal | None = None

app = typer.Typer(
    name="mrtune",
    help="Predict and optimize map/reduce job running time without running the job",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: profile a run -> whatif -> optimize -> apply the configuration[/dim]",
)

console = Console()
# Status output of commands whose stdout is a document
err_console = Console(stderr=True)


# =============================================================================
# Helper Functions
# =============================================================================


def get_journal() -> Journal:
    """Get or create the global journal instance."""
    global _journal
    if _journal is None:
        _journal = Journal()
    return _journal


def journal_open(job_name: str, inputs: list[Path | None]) -> Journal:
    """Open the journal session of the job a command works on."""
    j = get_journal()
    j.open_session(job_name=job_name, inputs=inputs)
    return j


def print_success(message: str, out: Console | None = None) -> None:
    """Print a success message."""
    (out or console).print(f"[green]OK[/green] {message}")


def print_error(message: str, out: Console | None = None) -> None:
    """Print an error message."""
    (out or console).print(f"[red]ERROR[/red] {message}")


def print_warning(message: str, out: Console | None = None) -> None:
    """Print a warning message."""
    (out or console).print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str, out: Console | None = None) -> None:
    """Print an info message."""
    (out or console).print(f"[blue]...[/blue] {message}")


_journal_warned = False


def _journal_safe(fn, *args, **kwargs) -> None:
    """Call a journal function, logging failures instead of silently dropping them."""
    global _journal_warned
    try:
        fn(*args, **kwargs)
    except Exception:
        if not _journal_warned:
            logger.debug("Journal write failed (further warnings suppressed)", exc_info=True)
            _journal_warned = True


def _exit_on_document_error(e: ConfigError) -> NoReturn:
    """Report a document error and exit 1."""
    if isinstance(e, ConfigFileNotFoundError):
        print_error(str(e))
    elif isinstance(e, ConfigValidationError):
        print_error(str(e).splitlines()[0])
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [red]*[/red] {loc}: {err['msg']}")
    else:
        print_error(f"Document error: {e}")
    raise typer.Exit(1)


@dataclass
class JobInputs:
    """Everything a what-if or optimize command works from."""

    profile: JobProfile
    conf: Configuration
    job_name: str
    dataset: DatasetModel
    cluster: ClusterModel


def _load_inputs(
    profile_path: Path | None,
    conf_path: Path | None,
    input_path: Path | None,
    cluster_path: Path | None,
) -> JobInputs:
    """Load and cross-check the job documents.

    Either ``--conf`` or both ``--input`` and ``--cluster`` must be given.
    Without ``--input`` the profiled run's inputs are reused; without
    ``--cluster`` the cluster is synthesized from the configuration.
    """
    if profile_path is None:
        print_error("The --profile option is required")
        raise typer.Exit(1)
    if (input_path is None) != (cluster_path is None):
        print_error("The --input and --cluster options must be given together")
        raise typer.Exit(1)
    if conf_path is None and input_path is None:
        print_error("The --conf option is required unless --input and --cluster are given")
        raise typer.Exit(1)

    try:
        profile = load_job_profile(profile_path)
        conf, name = load_configuration(conf_path) if conf_path else (Configuration(), "")
        if input_path is not None:
            dataset: DatasetModel = FixedInputDatasetModel(load_input_specs(input_path))
        else:
            dataset = ProfileDatasetModel(profile)
        if cluster_path is not None:
            cluster = load_cluster(cluster_path)
        else:
            cluster = cluster_from_configuration(conf)
    except ConfigError as e:
        _exit_on_document_error(e)
    except ValueError as e:
        print_error(f"Cannot build the cluster: {e}")
        raise typer.Exit(1)  # noqa: B904

    return JobInputs(
        profile=profile,
        conf=conf,
        job_name=name or profile.job_name or profile.job_id,
        dataset=dataset,
        cluster=cluster,
    )


def _cluster_table(cluster: ClusterModel) -> Table:
    table = Table(
        title=f"Cluster: {cluster.name}",
        caption=(
            f"{cluster.total_map_slots} map / {cluster.total_reduce_slots} reduce slots, "
            f"up to {cluster.max_task_memory >> 20} MB per task"
        ),
    )
    table.add_column("Rack", style="cyan")
    table.add_column("Host")
    table.add_column("Task Tracker")
    table.add_column("Map Slots", justify="right")
    table.add_column("Reduce Slots", justify="right")
    table.add_column("Task Memory (MB)", justify="right")
    for rack in cluster.racks:
        for host in rack.hosts:
            for tracker in host.trackers:
                table.add_row(
                    rack.name,
                    host.name,
                    f"{tracker.name}:{tracker.port}",
                    str(tracker.num_map_slots),
                    str(tracker.num_reduce_slots),
                    str(tracker.max_task_memory >> 20),
                )
    return table


def _profile_table(profile: JobProfile) -> Table:
    phases = [
        phase
        for phase in TaskPhase
        if any(phase in p.timings for p in [*profile.map_profiles, *profile.reduce_profiles])
    ]
    table = Table(title=f"Profile: {profile.job_id}")
    table.add_column("Task", style="cyan")
    table.add_column("Tasks", justify="right")
    for phase in phases:
        table.add_column(phase.value.title(), justify="right")
    table.add_column("Total (ms)", justify="right", style="bold")

    for kind in [*profile.map_profiles, *profile.reduce_profiles]:
        table.add_row(
            kind.task_id,
            str(kind.num_tasks),
            *(f"{kind.timing(phase):.0f}" for phase in phases),
            f"{kind.total_time:.0f}",
        )
    return table


def _rows_table(title: str, rows: list[dict[str, str | float]]) -> Table:
    table = Table(title=title)
    if not rows:
        return table
    for column in rows[0]:
        table.add_column(column, justify="right" if "ms" in column else "left")
    for row in rows:
        table.add_row(*(f"{v:.0f}" if isinstance(v, float) else str(v) for v in row.values()))
    return table


# =============================================================================
# CLI Commands
# =============================================================================


@app.callback()
def main_options(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging",
        ),
    ] = False,
) -> None:
    """Predict and optimize map/reduce job running time."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"mrtune version {__version__}")


@app.command()
def optimize(
    profile_path: Annotated[
        Path | None,
        typer.Option(
            "--profile",
            "-p",
            help="Job profile YAML of a previous run",
        ),
    ] = None,
    conf_path: Annotated[
        Path | None,
        typer.Option(
            "--conf",
            "-c",
            help="Job configuration YAML",
        ),
    ] = None,
    input_path: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            help="Input specs YAML (requires --cluster)",
        ),
    ] = None,
    cluster_path: Annotated[
        Path | None,
        typer.Option(
            "--cluster",
            "-k",
            help="Cluster YAML (requires --input)",
        ),
    ] = None,
    mode: Annotated[
        OptimizerType,
        typer.Option(
            "--mode",
            "-m",
            help="Search strategy",
        ),
    ] = DEFAULT_OPTIMIZER,
    scheduler_name: Annotated[
        str,
        typer.Option(
            "--scheduler",
            "-s",
            help="Scheduler simulator",
        ),
    ] = "basic",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the recommended configuration here instead of stdout",
        ),
    ] = None,
    submission_time: Annotated[
        float,
        typer.Option(
            "--submission-time",
            help="Job submission time on the simulated clock (ms)",
        ),
    ] = 0.0,
    full: Annotated[
        bool,
        typer.Option(
            "--full",
            help="Output the whole job configuration, not only the tuned parameters",
        ),
    ] = False,
) -> None:
    """Recommend the configuration with the least predicted running time.

    Examples:

        mrtune optimize --profile wordcount-profile.yaml --conf wordcount.yaml

        mrtune optimize -p profile.yaml -i inputs.yaml -k cluster.yaml --mode rrs -o best.yaml
    """
    if output is not None and output.exists():
        print_error(f"Output file already exists: {output}")
        raise typer.Exit(1)

    inputs = _load_inputs(profile_path, conf_path, input_path, cluster_path)

    try:
        scheduler = create_scheduler(scheduler_name, inputs.cluster)
    except SchedulerError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    j = journal_open(inputs.job_name, [profile_path, conf_path, input_path, cluster_path])
    j.begin_command(
        CommandName.OPTIMIZE,
        {"mode": mode.value, "scheduler": scheduler_name, "full": full},
    )
    _journal_safe(
        j.record,
        EventType.INPUTS_LOADED,
        message=f"Loaded profile {inputs.profile.job_id}",
        details={
            "profile": str(profile_path),
            "conf": str(conf_path) if conf_path else None,
            "input": str(input_path) if input_path else None,
            "cluster": inputs.cluster.name,
        },
    )

    # stdout carries the configuration document unless it goes to a file
    status = console if output is not None else err_console
    status.print(Panel(f"Optimizing: [bold]{inputs.job_name}[/bold]", expand=False))
    print_info(
        f"Mode: {mode.value}, cluster: {inputs.cluster.name} "
        f"({inputs.cluster.total_map_slots} map / {inputs.cluster.total_reduce_slots} reduce slots)",
        out=status,
    )
    _journal_safe(j.record, EventType.OPTIMIZE_START, message=f"Optimizer '{mode.value}' started")

    oracle = ScalingProfileOracle(inputs.profile)
    try:
        optimizer = create_optimizer(
            mode, oracle, inputs.dataset, inputs.cluster, scheduler, inputs.conf
        )
        result = optimizer.optimize(submission_time=submission_time, full_configuration=full)
    except (OptimizationError, ValueError) as e:
        print_error(f"Optimization failed: {e}", out=status)
        _journal_safe(j.end_command, success=False, message=str(e))
        raise typer.Exit(1)  # noqa: B904

    _journal_safe(
        j.record,
        EventType.OPTIMIZE_COMPLETE,
        message=f"Best predicted time {result.duration:.0f} ms",
        success=True,
        details={
            "mode": mode.value,
            "duration_ms": result.duration,
            "evaluations": result.evaluations,
            "point": result.point.to_dict(),
        },
    )

    table = Table(title="Recommended Parameters")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="bold")
    for key, value in result.point.to_dict().items():
        table.add_row(key, value)
    status.print(table)
    print_success(
        f"Predicted running time: {format_duration(result.duration)} "
        f"({result.evaluations} evaluations)",
        out=status,
    )

    if output is None:
        typer.echo(dump_configuration(result.configuration, inputs.job_name))
    else:
        try:
            save_configuration(result.configuration, output, inputs.job_name)
        except OSError as e:
            print_error(f"Cannot write {output}: {e}")
            _journal_safe(j.end_command, success=False, message=str(e))
            raise typer.Exit(1)  # noqa: B904
        print_success(f"Configuration written to {output}")

    _journal_safe(j.end_command, success=True)


@app.command()
def whatif(
    mode: Annotated[
        WhatIfQuestion,
        typer.Option(
            "--mode",
            "-m",
            help="Question to answer",
        ),
    ] = WhatIfQuestion.JOB_TIME,
    profile_path: Annotated[
        Path | None,
        typer.Option(
            "--profile",
            "-p",
            help="Job profile YAML of a previous run",
        ),
    ] = None,
    conf_path: Annotated[
        Path | None,
        typer.Option(
            "--conf",
            "-c",
            help="Hypothetical job configuration YAML",
        ),
    ] = None,
    input_path: Annotated[
        Path | None,
        typer.Option(
            "--input",
            "-i",
            help="Input specs YAML (requires --cluster)",
        ),
    ] = None,
    cluster_path: Annotated[
        Path | None,
        typer.Option(
            "--cluster",
            "-k",
            help="Cluster YAML (requires --input)",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the projected profile, cluster, or input specs here",
        ),
    ] = None,
    submission_time: Annotated[
        float,
        typer.Option(
            "--submission-time",
            help="Job submission time on the simulated clock (ms)",
        ),
    ] = 0.0,
) -> None:
    """Answer a what-if question about a job under a hypothetical configuration.

    Modes: job_time, details, profile, timeline, mappers, reducers
    (need --profile), cluster_info (needs --conf or --cluster), and
    input_specs (needs --profile and --conf).

    Examples:

        mrtune whatif --mode job_time --profile profile.yaml --conf bigger-buffers.yaml

        mrtune whatif -m timeline -p profile.yaml -i inputs.yaml -k cluster.yaml
    """
    if output is not None and output.exists():
        print_error(f"Output file already exists: {output}")
        raise typer.Exit(1)

    if mode == WhatIfQuestion.CLUSTER_INFO:
        _whatif_cluster_info(conf_path, cluster_path, output)
        return

    inputs = _load_inputs(profile_path, conf_path, input_path, cluster_path)
    j = journal_open(inputs.job_name, [profile_path, conf_path, input_path, cluster_path])
    j.begin_command(CommandName.WHATIF, {"mode": mode.value})

    oracle = ScalingProfileOracle(inputs.profile)
    try:
        if mode == WhatIfQuestion.INPUT_SPECS:
            answer = _whatif_input_specs(inputs, output)
        elif mode == WhatIfQuestion.PROFILE:
            answer = _whatif_profile(oracle.project(inputs.conf, inputs.dataset), output)
        else:
            scheduler = create_scheduler("basic", inputs.cluster)
            engine = WhatIfEngine(oracle, inputs.dataset, scheduler)
            execution = engine.predict_execution(inputs.conf, submission_time)
            answer = _show_execution(mode, execution)
            if output is not None:
                print_warning(f"--output is ignored in {mode.value} mode")
    except (ProjectionError, SchedulerError) as e:
        print_error(f"What-if analysis failed: {e}")
        _journal_safe(j.end_command, success=False, message=str(e))
        raise typer.Exit(1)  # noqa: B904
    except OSError as e:
        print_error(f"Cannot write {output}: {e}")
        _journal_safe(j.end_command, success=False, message=str(e))
        raise typer.Exit(1)  # noqa: B904

    _journal_safe(
        j.record,
        EventType.WHATIF_ANSWERED,
        message=answer,
        success=True,
        details={"mode": mode.value},
    )
    _journal_safe(j.end_command, success=True)


def _whatif_cluster_info(
    conf_path: Path | None,
    cluster_path: Path | None,
    output: Path | None,
) -> None:
    if conf_path is None and cluster_path is None:
        print_error("The cluster_info mode needs --conf or --cluster")
        raise typer.Exit(1)
    try:
        if cluster_path is not None:
            cluster = load_cluster(cluster_path)
        else:
            conf, _ = load_configuration(conf_path)
            cluster = cluster_from_configuration(conf)
    except ConfigError as e:
        _exit_on_document_error(e)
    except ValueError as e:
        print_error(f"Cannot build the cluster: {e}")
        raise typer.Exit(1)  # noqa: B904

    console.print(_cluster_table(cluster))
    if output is not None:
        try:
            save_cluster(cluster, output)
        except OSError as e:
            print_error(f"Cannot write {output}: {e}")
            raise typer.Exit(1)  # noqa: B904
        print_success(f"Cluster written to {output}")


def _whatif_input_specs(inputs: JobInputs, output: Path | None) -> str:
    specs = inputs.dataset.map_input_specs(inputs.conf)
    table = Table(title="Map Input Specs")
    table.add_column("Input", justify="right")
    table.add_column("Splits", justify="right")
    table.add_column("Avg Split Size (bytes)", justify="right")
    table.add_column("Compressed")
    for spec in specs:
        table.add_row(
            str(spec.input_index),
            str(spec.num_splits),
            str(spec.avg_split_size),
            "yes" if spec.compressed else "no",
        )
    console.print(table)
    if output is not None:
        save_input_specs(specs, output)
        print_success(f"Input specs written to {output}")
    return f"{len(specs)} input specs"


def _whatif_profile(profile: JobProfile, output: Path | None) -> str:
    console.print(_profile_table(profile))
    if output is not None:
        save_job_profile(profile, output)
        print_success(f"Projected profile written to {output}")
    return f"Projected {profile.num_map_tasks} maps, {profile.num_reduce_tasks} reduces"


def _show_execution(mode: WhatIfQuestion, execution) -> str:
    """Render one view of a predicted execution; returns a one-line answer."""
    answer = f"Execution Time (ms): {execution.duration:.0f}"

    if mode == WhatIfQuestion.JOB_TIME:
        console.print(f"{answer} ({format_duration(execution.duration)})")

    elif mode == WhatIfQuestion.DETAILS:
        s = execution_summary(execution)
        lines = [
            f"Job ID: {s.job_id}",
            f"Duration: {format_duration(s.duration)}",
            "",
            f"Map tasks: {s.num_maps}",
            f"  Average duration (ms): {s.map_avg:.2f}",
            f"  SD of duration (ms): {s.map_sd:.2f}",
            f"  CV of duration: {s.map_cv:.2f}",
        ]
        if s.num_reduces:
            lines += [
                "",
                f"Reduce tasks: {s.num_reduces}",
                f"  Avg shuffle duration (ms): {s.shuffle_avg:.2f}",
                f"  Avg sort duration (ms): {s.sort_avg:.2f}",
                f"  Avg reduce duration (ms): {s.reduce_avg:.2f}",
                f"  Avg total duration (ms): {s.reduce_total_avg:.2f}",
                f"  SD of total duration (ms): {s.reduce_sd:.2f}",
                f"  CV of total duration: {s.reduce_cv:.2f}",
            ]
        console.print(Panel("\n".join(lines), title="Predicted Execution", expand=False))

    elif mode == WhatIfQuestion.TIMELINE:
        table = Table(title="Timeline (tasks running per second)")
        for column in ("Time", "Maps", "Shuffle", "Merge", "Reduce"):
            table.add_column(column, justify="right")
        for row in execution_timeline(execution):
            table.add_row(*(str(v) for v in (row.time, row.maps, row.shuffle, row.merge, row.reduce)))
        console.print(table)

    elif mode == WhatIfQuestion.MAPPERS:
        console.print(_rows_table("Map Tasks", mapper_rows(execution)))

    elif mode == WhatIfQuestion.REDUCERS:
        console.print(_rows_table("Reduce Tasks", reducer_rows(execution)))

    return answer


@app.command()
def cluster(
    name: Annotated[
        str,
        typer.Option(
            "--name",
            help="Cluster name",
        ),
    ] = "cluster",
    racks: Annotated[
        int,
        typer.Option(
            "--racks",
            help="Number of racks",
        ),
    ] = 1,
    hosts_per_rack: Annotated[
        int,
        typer.Option(
            "--hosts-per-rack",
            help="Hosts on each rack",
        ),
    ] = 1,
    map_slots: Annotated[
        int,
        typer.Option(
            "--map-slots",
            help="Map slots per task tracker",
        ),
    ] = 2,
    reduce_slots: Annotated[
        int,
        typer.Option(
            "--reduce-slots",
            help="Reduce slots per task tracker",
        ),
    ] = 2,
    max_task_memory: Annotated[
        int,
        typer.Option(
            "--max-task-memory",
            help="Per-task memory in bytes",
        ),
    ] = DEFAULT_TASK_MEMORY,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the cluster YAML here instead of showing it",
        ),
    ] = None,
) -> None:
    """Synthesize a uniform cluster document.

    Examples:

        mrtune cluster --racks 2 --hosts-per-rack 8 --map-slots 4 -o cluster.yaml
    """
    if output is not None and output.exists():
        print_error(f"Output file already exists: {output}")
        raise typer.Exit(1)

    try:
        synthesized = synthesize_cluster(
            name=name,
            num_racks=racks,
            hosts_per_rack=hosts_per_rack,
            map_slots=map_slots,
            reduce_slots=reduce_slots,
            max_task_memory=max_task_memory,
        )
    except ValueError as e:
        print_error(f"Cannot build the cluster: {e}")
        raise typer.Exit(1)  # noqa: B904

    console.print(_cluster_table(synthesized))
    if output is None:
        return

    j = journal_open(f"cluster-{name}", [])
    j.begin_command(CommandName.CLUSTER, {"racks": racks, "hosts_per_rack": hosts_per_rack})
    try:
        save_cluster(synthesized, output)
    except OSError as e:
        print_error(f"Cannot write {output}: {e}")
        _journal_safe(j.end_command, success=False, message=str(e))
        raise typer.Exit(1)  # noqa: B904

    _journal_safe(
        j.record,
        EventType.CLUSTER_WRITTEN,
        message=f"Cluster '{name}' written to {output}",
        success=True,
        details={"hosts": synthesized.num_hosts, "path": str(output)},
    )
    _journal_safe(j.end_command, success=True)
    print_success(f"Cluster written to {output}")


@app.command()
def journal(
    session_id: Annotated[
        str | None,
        typer.Option(
            "--session",
            "-s",
            help="Show events for a specific session",
        ),
    ] = None,
    last: Annotated[
        int,
        typer.Option(
            "--last",
            "-n",
            help="Show last N sessions",
        ),
    ] = 10,
    close: Annotated[
        str | None,
        typer.Option(
            "--close",
            help="Close the active session of this job",
        ),
    ] = None,
    purge: Annotated[
        bool,
        typer.Option(
            "--purge",
            help="Delete every session file",
        ),
    ] = False,
    journal_dir: Annotated[
        Path,
        typer.Option(
            "--dir",
            help="Journal directory",
        ),
    ] = Path(DEFAULT_OUTPUT_DIR) / "journal",
) -> None:
    """View the tuning history of your jobs.

    Examples:

        mrtune journal

        mrtune journal --session 20260129-120000-a1b2c3

        mrtune journal --close wordcount
    """
    j = Journal(journal_dir)

    if purge:
        count = j.purge()
        print_success(f"Deleted {count} session file(s) from {journal_dir}")
        return

    if close:
        active = [s for s in j.list_sessions() if s["job_name"] == close and not s["closed"]]
        if not active:
            print_warning(f"No active session for job '{close}'")
            return
        j.open_session(job_name=close)
        j.close_session()
        print_success(f"Closed session {active[0]['session_id']} of job '{close}'")
        return

    if session_id:
        events = j.load_session_events(session_id)
        if not events:
            print_warning(f"No events found for session {session_id}")
            return

        console.print(Panel(f"Session: [bold]{session_id}[/bold]", expand=False))
        table = Table()
        table.add_column("Time", style="dim", width=19)
        table.add_column("Event", style="cyan")
        table.add_column("Command", style="bold")
        table.add_column("Message")
        table.add_column("Status", justify="center")

        for event in events:
            success = event.get("success")
            status = ""
            if success is True:
                status = "[green]OK[/green]"
            elif success is False:
                status = "[red]FAIL[/red]"
            table.add_row(
                event.get("timestamp", "")[:19],
                event.get("event_type", ""),
                event.get("command", "") or "",
                event.get("message", ""),
                status,
            )

        console.print(table)
        return

    sessions = j.list_sessions()
    if not sessions:
        print_warning(f"No journal sessions found in {journal_dir}")
        return

    console.print(Panel("mrtune Journal Sessions", expand=False))
    table = Table()
    table.add_column("Session ID", style="cyan")
    table.add_column("Job")
    table.add_column("Started", style="dim")
    table.add_column("Events", justify="right")
    table.add_column("Commands")
    table.add_column("Status")

    for s in sessions[:last]:
        status = "[green]closed[/green]" if s["closed"] else "[yellow]active[/yellow]"
        table.add_row(
            s["session_id"],
            s.get("job_name", ""),
            s.get("started", "")[:19],
            str(s.get("event_count", 0)),
            ", ".join(s.get("commands", [])),
            status,
        )

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
