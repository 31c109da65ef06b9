# src/tabletfuzz/cli.py
"""CLI for tabletfuzz.

Usage:
    # Random case with defaults (50 ops, fresh seed)
    tabletfuzz run

    # Reproduce a logged run
    tabletfuzz run --seed=1234 --length=200

    # Preset plus overrides
    tabletfuzz run --preset=recovery --update-multiplier=10

    # Print a case without running it, then replay it
    tabletfuzz generate --seed=7 --output=case.txt
    tabletfuzz replay case.txt --strict

    # Regression scenarios
    tabletfuzz scenarios
    tabletfuzz scenarios --run=fuzz2
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from tabletfuzz import __version__
from tabletfuzz.contracts.enums import FuzzOp
from tabletfuzz.contracts.errors import EngineError, GeneratorInvariantError, OperationFailedError, OracleMismatchError
from tabletfuzz.core.config import FuzzSettings, list_presets, load_config
from tabletfuzz.fuzz.generator import check_sequence_legal, dump_test_case, generate_test_case, parse_test_case
from tabletfuzz.fuzz.runner import FuzzRunReport, draw_seed, run_fuzz
from tabletfuzz.fuzz.scenarios import SCENARIOS, get_scenario

app = typer.Typer(
    name="tabletfuzz",
    help="tabletfuzz: Single-row consistency fuzzing for a columnar tablet.",
    no_args_is_help=True,
)

PresetOption = Annotated[
    str | None,
    typer.Option(
        "--preset",
        "-p",
        help="Preset configuration to use. Use 'tabletfuzz presets' to list available presets.",
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to YAML configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tabletfuzz version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging (logs every op).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """tabletfuzz: Single-row consistency fuzzing for a columnar tablet."""
    from tabletfuzz.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)


def _load_settings(
    preset: str | None,
    config_file: Path | None,
    cli_overrides: dict[str, Any],
) -> FuzzSettings:
    try:
        return load_config(preset=preset, config_file=config_file, cli_overrides=cli_overrides)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    except (ValidationError, ValueError) as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e


def _run_and_report(settings: FuzzSettings, ops: Sequence[FuzzOp] | None = None) -> FuzzRunReport:
    """Run one case, turning a failure into exit code 1 with the case dumped."""
    try:
        report = run_fuzz(settings, ops)
    except (OracleMismatchError, OperationFailedError) as e:
        typer.secho(f"FAILED: {e}", fg=typer.colors.RED, err=True)
        typer.echo("Test case:", err=True)
        typer.echo(dump_test_case(e.sequence), err=True)
        raise typer.Exit(1) from e
    except EngineError as e:
        typer.secho(f"Cluster error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    seed_note = f", seed={report.seed}" if report.seed is not None else ""
    typer.secho(f"PASSED: {len(report.ops)} ops{seed_note}", fg=typer.colors.GREEN)
    typer.echo(f"  Final row: {report.final_lookup}")
    return report


@app.command()
def run(
    preset: PresetOption = None,
    config_file: ConfigOption = None,
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Generator seed (drawn and logged when omitted)."),
    ] = None,
    length: Annotated[
        int | None,
        typer.Option("--length", "-n", help="Number of ops to generate.", min=1),
    ] = None,
    update_multiplier: Annotated[
        int | None,
        typer.Option("--update-multiplier", "-m", help="Apply each UPDATE this many times.", min=1),
    ] = None,
    allow_restarts: Annotated[
        bool | None,
        typer.Option(
            "--allow-restarts/--no-allow-restarts",
            help="Include tablet server restarts in the generated case.",
        ),
    ] = None,
    maintenance_manager: Annotated[
        bool | None,
        typer.Option(
            "--maintenance-manager/--no-maintenance-manager",
            help="Let the maintenance manager flush on its own thresholds.",
        ),
    ] = None,
) -> None:
    """Generate a random case and run it against a fresh reference cluster."""
    cli_overrides: dict[str, Any] = {}
    if seed is not None:
        cli_overrides["seed"] = seed
    if length is not None:
        # Explicit length wins regardless of the slow-test switch
        cli_overrides["sequence_length"] = length
        cli_overrides["slow_sequence_length"] = length
    if update_multiplier is not None:
        cli_overrides["update_multiplier"] = update_multiplier
    if allow_restarts is not None:
        cli_overrides["allow_restarts"] = allow_restarts
    if maintenance_manager is not None:
        cli_overrides["cluster"] = {"maintenance_manager_enabled": maintenance_manager}

    settings = _load_settings(preset, config_file, cli_overrides)
    _run_and_report(settings)


@app.command()
def generate(
    length: Annotated[
        int,
        typer.Option("--length", "-n", help="Number of ops to generate.", min=1),
    ] = 50,
    seed: Annotated[
        int | None,
        typer.Option("--seed", "-s", help="Generator seed (drawn when omitted)."),
    ] = None,
    allow_restarts: Annotated[
        bool,
        typer.Option("--allow-restarts", help="Include tablet server restarts."),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the case to this file instead of stdout."),
    ] = None,
) -> None:
    """Print a generated case without running it."""
    if seed is None:
        seed = draw_seed()
    ops = generate_test_case(length, seed=seed, allow_restarts=allow_restarts)
    text = f"# seed={seed}\n{dump_test_case(ops)}\n"
    if output is not None:
        output.write_text(text)
        typer.echo(f"Wrote {len(ops)} ops to {output}")
    else:
        typer.echo(text, nl=False)


@app.command()
def replay(
    case_file: Annotated[
        Path,
        typer.Argument(help="File holding a dumped test case.", exists=True, dir_okay=False, resolve_path=True),
    ],
    preset: PresetOption = None,
    config_file: ConfigOption = None,
    update_multiplier: Annotated[
        int | None,
        typer.Option("--update-multiplier", "-m", help="Apply each UPDATE this many times.", min=1),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Reject cases the generator could not have produced."),
    ] = False,
) -> None:
    """Run a dumped test case."""
    try:
        ops = parse_test_case(case_file.read_text())
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    if not ops:
        typer.secho(f"Error: no ops in {case_file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    cli_overrides: dict[str, Any] = {}
    if update_multiplier is not None:
        cli_overrides["update_multiplier"] = update_multiplier
    settings = _load_settings(preset, config_file, cli_overrides)

    if strict:
        try:
            check_sequence_legal(ops, allow_restarts=True)
        except GeneratorInvariantError as e:
            typer.secho(f"Illegal test case: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from e

    _run_and_report(settings, ops)


@app.command()
def scenarios(
    run_name: Annotated[
        str | None,
        typer.Option("--run", "-r", help="Run the named scenario, or 'all'."),
    ] = None,
) -> None:
    """List or run the regression scenarios."""
    if run_name is None:
        typer.secho("Available scenarios:", fg=typer.colors.GREEN)
        for name, scenario in SCENARIOS.items():
            typer.echo(f"  - {name}: {scenario.description}")
        typer.echo()
        typer.echo("Use with: tabletfuzz scenarios --run=<name>")
        return

    if run_name == "all":
        selected = list(SCENARIOS.values())
    else:
        try:
            selected = [get_scenario(run_name)]
        except KeyError as e:
            typer.secho(f"Error: {e.args[0]}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from e

    for scenario in selected:
        typer.echo(f"Scenario {scenario.name}:")
        settings = FuzzSettings(update_multiplier=scenario.update_multiplier)
        _run_and_report(settings, scenario.ops)


@app.command()
def presets() -> None:
    """List available configuration presets."""
    preset_names = list_presets()

    if not preset_names:
        typer.echo("No presets found.")
        return

    typer.secho("Available presets:", fg=typer.colors.GREEN)
    for name in preset_names:
        typer.echo(f"  - {name}")

    typer.echo()
    typer.echo("Use with: tabletfuzz run --preset=<name>")


def main() -> None:
    """Entry point for tabletfuzz CLI."""
    app()


if __name__ == "__main__":
    main()
