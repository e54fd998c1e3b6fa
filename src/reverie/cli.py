"""Reverie CLI - typer application entry point."""

from __future__ import annotations

import asyncio
import atexit
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from reverie.observability import close_file_logging, configure_logging, get_logger

# Load environment variables from .env file
load_dotenv()

if TYPE_CHECKING:
    from reverie.models.journey import Journey
    from reverie.models.quality import QualityReport
    from reverie.pipeline.config import ProjectConfig
    from reverie.planning.arcs import ArcLibrary
    from reverie.rules import RuleSet

app = typer.Typer(
    name="reverie",
    help="Reverie: budgeted, quality-guarded guided relaxation scripts.",
    no_args_is_help=True,
)
console = Console()

# Journey used by `generate` when no --journey file is given
DEFAULT_JOURNEY: list[dict[str, Any]] = [
    {"arc_id": "effortlessness", "weight": 30},
    {"arc_id": "re-minding", "weight": 30},
    {"arc_id": "two-tempos", "weight": 40},
]

# Global state for logging flags (set by callback, used by commands)
_verbose: int = 0
_log_enabled: bool = False

log = get_logger(__name__)


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_to_file: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Enable file logging to ./logs/ (debug.jsonl, llm_calls.jsonl).",
        ),
    ] = False,
) -> None:
    """Reverie: budgeted, quality-guarded guided relaxation scripts."""
    global _verbose, _log_enabled
    _verbose = verbose
    _log_enabled = log_to_file

    configure_logging(verbosity=verbose)


def _configure_file_logging(project_path: Path) -> None:
    if _log_enabled:
        configure_logging(verbosity=_verbose, log_to_file=True, project_path=project_path)
        atexit.register(close_file_logging)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def _load_config(config_path: Path | None) -> ProjectConfig:
    from reverie.pipeline.config import ProjectConfigError, find_project_config, load_project_config

    try:
        if config_path is not None:
            return load_project_config(config_path)
        return find_project_config(Path.cwd())
    except ProjectConfigError as e:
        raise _fail(str(e)) from None


def _load_journey(path: Path | None) -> Journey:
    """Read a journey YAML file: a ``stages`` mapping or a bare list of stages."""
    from reverie.models.journey import Journey

    if path is None:
        return Journey.model_validate({"stages": DEFAULT_JOURNEY})
    if not path.exists():
        raise _fail(f"Journey file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = YAML(typ="safe").load(f)
    except YAMLError as e:
        raise _fail(f"Invalid journey YAML: {e}") from None

    if isinstance(data, list):
        data = {"stages": data}
    try:
        return Journey.model_validate(data or {})
    except ValidationError as e:
        raise _fail(f"Invalid journey: {e}") from None


def _load_rules(rules_path: Path | None) -> RuleSet:
    from reverie.rules import RuleSetError, load_rule_set

    try:
        return load_rule_set(rules_path)
    except RuleSetError as e:
        raise _fail(str(e)) from None


def _load_arcs(arcs_path: Path | None) -> ArcLibrary:
    from reverie.planning.arcs import ArcLibrary
    from reverie.rules import RuleSetError

    try:
        return ArcLibrary.load(arcs_path)
    except RuleSetError as e:
        raise _fail(str(e)) from None


def _print_report(report: QualityReport) -> None:
    table = Table(title=f"Quality Report: {report.score}%")
    table.add_column("Check", style="cyan")
    table.add_column("Result", style="bold")
    table.add_column("Details", style="dim")

    for check in report.checks:
        result = "[green]✓[/green] passed" if check.passed else "[red]✗[/red] failed"
        table.add_row(check.name, result, check.details)

    console.print()
    console.print(table)
    if report.polish_message:
        console.print(f"[yellow]{report.polish_message}[/yellow]")


@app.command()
def version() -> None:
    """Show version information."""
    from reverie import __version__

    console.print(f"Reverie v{__version__}")


@app.command()
def arcs(
    arcs_file: Annotated[
        Path | None,
        typer.Option("--arcs", help="Custom arc library YAML (default: packaged library)."),
    ] = None,
) -> None:
    """List the narrative arc library by category."""
    from reverie.planning.arcs import CATEGORY_TITLES

    library = _load_arcs(arcs_file)

    for category, members in library.by_category().items():
        table = Table(title=CATEGORY_TITLES.get(category, category))
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("Description", style="dim")
        for arc in members:
            table.add_row(arc.id, arc.name, arc.description)
        console.print(table)


@app.command()
def plan(
    journey_file: Annotated[Path, typer.Argument(help="Journey YAML file.")],
    words: Annotated[int, typer.Option("--words", "-w", help="Target word count.")] = 1500,
    issue: Annotated[str, typer.Option("--issue", help="Presenting issue (for metaphor selection).")] = "",
    symbolic: Annotated[
        int, typer.Option("--symbolic", min=0, max=100, help="Symbolic level 0-100.")
    ] = 30,
    arcs_file: Annotated[Path | None, typer.Option("--arcs", help="Custom arc library YAML.")] = None,
) -> None:
    """Show word budgets and cumulative targets for a journey."""
    from reverie.models.context import ClientContext
    from reverie.planning.budget import BudgetPlanner

    if words <= 0:
        raise _fail("--words must be positive")

    journey = _load_journey(journey_file)
    rules = _load_rules(None)
    planner = BudgetPlanner(_load_arcs(arcs_file), rules.metaphor_library)
    contract = planner.plan(
        journey,
        words,
        ClientContext(presenting_issue=issue, symbolic_level=symbolic),
    )

    table = Table(title=f"Journey Plan: {words} words")
    table.add_column("#", style="dim")
    table.add_column("Arc", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Budget", justify="right", style="bold")
    table.add_column("Cumulative", justify="right")
    for index, stage in enumerate(contract.stages, start=1):
        table.add_row(
            str(index),
            stage.arc_name,
            f"{stage.weight:g}%",
            str(stage.word_budget),
            str(stage.cumulative_word_target),
        )

    console.print()
    console.print(table)
    console.print(Panel("\n".join(contract.reasoning_log), title="Reasoning", expand=False))


@app.command()
def check(
    script_file: Annotated[Path, typer.Argument(help="Script text file.")],
    emergence: Annotated[
        str, typer.Option("--emergence", "-e", help="Expected emergence: regular or sleep.")
    ] = "regular",
    words: Annotated[int, typer.Option("--words", "-w", help="Target word count.")] = 1500,
    rules_file: Annotated[Path | None, typer.Option("--rules", help="Custom rule set YAML.")] = None,
) -> None:
    """Run the quality checks on a script (no repair call)."""
    from reverie.analysis import NaturalnessAnalyzer, PatternAnalyzer, TranceDepthValidator
    from reverie.pipeline.quality_guard import QualityGuard

    if emergence not in ("regular", "sleep"):
        raise _fail("--emergence must be 'regular' or 'sleep'")
    if not script_file.exists():
        raise _fail(f"Script file not found: {script_file}")

    text = script_file.read_text(encoding="utf-8")
    rules = _load_rules(rules_file)

    report = QualityGuard(None, rules).evaluate(text, emergence, words)  # type: ignore[arg-type]
    _print_report(report)

    patterns = PatternAnalyzer(rules.patterns).analyze(text)
    grammar = NaturalnessAnalyzer(rules.grammar).analyze(text)
    trance = TranceDepthValidator(rules.language_mastery).validate(text)

    console.print()
    console.print(
        f"Diversity: [bold]{patterns.diversity_score}[/bold]/100 "
        f"({patterns.total_sentences} sentences)"
    )
    for match in patterns.patterns_needing_rewrite:
        console.print(f"  [yellow]•[/yellow] \"{match.pattern}\" x{match.count} (threshold {match.threshold})")

    console.print(f"Naturalness: [bold]{grammar.score}[/bold]/100")
    for issue in grammar.issues:
        console.print(f"  [yellow]•[/yellow] {issue.type}: {issue.description}")

    status = "[green]✓[/green]" if trance.is_valid else "[red]✗[/red]"
    console.print(f"Trance depth: {status} [bold]{trance.score}[/bold]/100")
    for violation in trance.violations:
        console.print(f"  [dim]{violation.type.upper()}[/dim] {violation.issue}")

    if not report.passed:
        raise typer.Exit(1)


@app.command()
def generate(
    issue: Annotated[str, typer.Option("--issue", help="Presenting issue.")],
    outcome: Annotated[str, typer.Option("--outcome", help="Desired outcome.")],
    journey_file: Annotated[Path | None, typer.Option("--journey", help="Journey YAML file.")] = None,
    words: Annotated[int | None, typer.Option("--words", "-w", help="Target word count.")] = None,
    emergence: Annotated[
        str | None, typer.Option("--emergence", "-e", help="Emergence: regular or sleep.")
    ] = None,
    level: Annotated[
        str, typer.Option("--level", help="Client level: beginner, intermediate, advanced.")
    ] = "beginner",
    depth: Annotated[str, typer.Option("--depth", help="Trance depth: light, medium, deep.")] = "medium",
    symbolic: Annotated[
        int, typer.Option("--symbolic", min=0, max=100, help="Symbolic level 0-100.")
    ] = 30,
    single_stage: Annotated[
        bool, typer.Option("--single-stage", help="Generate in one call.")
    ] = False,
    no_retry: Annotated[
        bool, typer.Option("--no-retry", help="Skip the quality guard's repair call.")
    ] = False,
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Provider/model (e.g. openai/gpt-5-mini)."),
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write script here.")] = None,
    config_file: Annotated[
        Path | None, typer.Option("--config", "-c", help="Project config (default: ./reverie.yaml).")
    ] = None,
) -> None:
    """Generate a script with the configured provider."""
    from reverie.models.context import ClientContext
    from reverie.observability import LLMLogger
    from reverie.pipeline.runner import PipelineRequest, ScriptPipeline
    from reverie.providers import LoggingProvider, ProviderError, create_provider

    config = _load_config(config_file)
    project_path = Path.cwd()
    _configure_file_logging(project_path)

    try:
        context = ClientContext(
            presenting_issue=issue,
            desired_outcome=outcome,
            client_level=level,  # type: ignore[arg-type]
            symbolic_level=symbolic,
            trance_depth=depth,  # type: ignore[arg-type]
            emergence_type=emergence or config.emergence_type,  # type: ignore[arg-type]
        )
    except ValidationError as e:
        raise _fail(f"Invalid client context: {e}") from None

    target = words or config.target_word_count
    if target <= 0:
        raise _fail("--words must be positive")

    journey = _load_journey(journey_file)
    for violation in journey.precondition_violations():
        console.print(f"[yellow]Warning:[/yellow] {violation}")

    provider_string = config.resolve_provider(provider)
    try:
        base_provider = create_provider(provider_string)
    except ProviderError as e:
        raise _fail(str(e)) from None

    llm = LoggingProvider(base_provider, LLMLogger(project_path, enabled=_log_enabled))
    pipeline = ScriptPipeline(
        llm,
        rules=_load_rules(config.rules_path),
        arcs=_load_arcs(config.arcs_path),
        max_tokens=config.max_output_tokens,
    )
    request = PipelineRequest(
        context=context,
        journey=journey,
        target_word_count=target,
        single_stage=single_stage or config.single_stage,
        allow_retry=config.allow_retry and not no_retry,
    )

    console.print(f"[dim]Generating with {provider_string}...[/dim]")
    try:
        result = asyncio.run(pipeline.run(request))
    except ProviderError as e:
        log.error("generation_failed", error=str(e))
        raise _fail(f"Generation failed: {e}") from None

    _print_report(result.report)
    console.print(f"[dim]{result.llm_calls} generation calls[/dim]")

    if output is not None:
        output.write_text(result.script, encoding="utf-8")
        console.print(f"[green]✓[/green] Script written to {output}")
    else:
        console.print()
        console.print(result.script, markup=False)


if __name__ == "__main__":
    app()
