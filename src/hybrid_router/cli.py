"""CLI interface for hybrid-router.

Quick start:
    hybrid-router route "refactor the parser" --dry-run     # Where would this go?
    hybrid-router route "..." --tokens 20000 --explain      # Show alternatives
    hybrid-router route "..." --router api-first            # Pick a strategy
    hybrid-router spend record anthropic claude-opus-4 0.42 --tokens 12000
    hybrid-router spend show                                # This month's spend
    hybrid-router budget --config ~/.hybrid-router/config.yaml
    hybrid-router config init > config.yaml
"""

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from hybrid_router import __version__
from hybrid_router.config import DEFAULT_CONFIG_YAML, WorkbenchConfig, load_config_with_env
from hybrid_router.errors import HybridRouterError
from hybrid_router.ledger import HOME_ENV_VAR, CostLedger
from hybrid_router.routing import (
    InferenceRequest,
    RouteDecision,
    RoutingOptions,
    create_router,
    router_from_config,
)
from hybrid_router.routing.cost_aware import CostAwareRouter
from hybrid_router.routing.factory import DEFAULT_MONTHLY_BUDGET

app = typer.Typer(
    name="hybrid-router",
    help="Route LLM requests between local models and cloud APIs under a budget",
    no_args_is_help=True,
)

spend_app = typer.Typer(help="Recorded API spend")
app.add_typer(spend_app, name="spend")

config_app = typer.Typer(help="Configuration files")
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)


def _ledger(ctx: typer.Context) -> CostLedger:
    return CostLedger(data_dir=ctx.obj.get("data_dir") if ctx.obj else None)


def _load_config(path: Path | None) -> WorkbenchConfig | None:
    return load_config_with_env(path) if path else None


def _fail(message: str) -> NoReturn:
    err_console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path = typer.Option(
        None, "--data-dir", envvar=HOME_ENV_VAR,
        help="Directory holding the cost ledger"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Route LLM requests between local models and cloud APIs."""
    ctx.obj = {"data_dir": data_dir}
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


@app.command()
def route(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="The prompt or task to route"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Estimate cost without executing"),
    explain: bool = typer.Option(
        False, "--explain", help="Show alternatives that were considered"),
    router_name: str = typer.Option(
        None, "--router", "-r", help="Router: simple | cost-aware | api-first"),
    config_path: Path = typer.Option(
        None, "--config", "-c", help="Path to a YAML config file"),
    tokens: int = typer.Option(
        None, "--tokens", "-t", min=0, help="Token estimate (default: prompt length / 4)"),
    task_type: str = typer.Option(
        None, "--task-type", help="Task tag, e.g. 'quantum'"),
    complexity: float = typer.Option(
        None, "--complexity", min=0.0, max=1.0, help="Complexity score 0-1"),
    force_provider: str = typer.Option(
        None, "--force-provider", help="Force a provider"),
    force_model: str = typer.Option(
        None, "--force-model", help="Force a model"),
    budget: float = typer.Option(
        None, "--budget", help="Override the monthly budget for this call"),
    json_output: bool = typer.Option(
        False, "--json", help="Print the decision as JSON"),
) -> None:
    """Route a request and show where it would run.

    Examples:
        hybrid-router route "explain this stack trace"
        hybrid-router route "design a cache" --complexity 0.9 --explain
        hybrid-router route "..." --router simple --force-model llama-3.1-70b
    """
    try:
        config = _load_config(config_path)
        ledger = _ledger(ctx)
        if config is not None:
            router = router_from_config(config, router_name, ledger=ledger)
        else:
            router = create_router(router_name or CostAwareRouter.name, ledger=ledger)

        request = InferenceRequest(
            prompt=prompt,
            estimated_tokens=tokens if tokens is not None else math.ceil(len(prompt) / 4),
            task_type=task_type,
            complexity=complexity,
        )
        options = RoutingOptions(
            dry_run=dry_run,
            explain=explain,
            budget_override=budget,
            force_provider=force_provider,
            force_model=force_model,
        )
        decision = router.route(request, options)
    except HybridRouterError as e:
        _fail(str(e))

    if json_output:
        print(json.dumps(decision.to_dict(), indent=2))
        return

    _print_decision(decision, prompt, router.name, dry_run)
    if explain and decision.alternatives:
        _print_alternatives(decision.alternatives)


def _print_decision(decision: RouteDecision, prompt: str, router_name: str, dry_run: bool) -> None:
    target = decision.target
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Router", router_name)
    table.add_row("Type", target.type.value.upper())
    table.add_row("Provider", target.provider)
    table.add_row("Model", f"[cyan]{target.model}[/cyan]")
    if decision.estimated_cost > 0:
        table.add_row("Cost", f"[yellow]${decision.estimated_cost:.4f}[/yellow]")
    else:
        table.add_row("Cost", "[green]$0.00 (local)[/green]")
    table.add_row("Latency", f"~{decision.estimated_latency:.1f}s")
    if decision.confidence is not None:
        table.add_row("Confidence", f"{decision.confidence * 100:.0f}%")
    table.add_row("Rationale", escape(decision.rationale))

    title = "[DRY RUN] Route Decision" if dry_run else "Route Decision"
    preview = escape(prompt[:100]) + ("..." if len(prompt) > 100 else "")
    console.print(Panel(table, title=title, subtitle=preview, border_style="cyan"))

    if dry_run:
        console.print("[dim]This is a dry run. Nothing was executed.[/dim]")


def _print_alternatives(alternatives: tuple[RouteDecision, ...]) -> None:
    table = Table(title="Alternatives considered")
    table.add_column("#", justify="right")
    table.add_column("Target", style="cyan")
    table.add_column("Type")
    table.add_column("Cost", justify="right", style="green")
    table.add_column("Latency", justify="right")
    table.add_column("Rationale")

    for i, alt in enumerate(alternatives, 1):
        table.add_row(
            str(i),
            str(alt.target),
            alt.target.type.value,
            f"${alt.estimated_cost:.4f}",
            f"~{alt.estimated_latency:.1f}s",
            escape(alt.rationale),
        )
    console.print(table)


@app.command()
def budget(
    ctx: typer.Context,
    config_path: Path = typer.Option(
        None, "--config", "-c", help="Path to a YAML config file"),
    limit: float = typer.Option(
        None, "--budget", "-b", help="Monthly budget in USD (overrides config)"),
) -> None:
    """Show this month's spend against the monthly budget."""
    try:
        config = _load_config(config_path)
        monthly_budget = limit
        if monthly_budget is None and config is not None:
            settings = config.settings_for(CostAwareRouter.name)
            if settings is not None:
                monthly_budget = settings.monthly_budget
        router = CostAwareRouter(
            monthly_budget=monthly_budget if monthly_budget is not None else DEFAULT_MONTHLY_BUDGET,
            ledger=_ledger(ctx),
        )
        spent = router.get_monthly_spend()
        remaining = router.get_remaining_budget()
    except HybridRouterError as e:
        _fail(str(e))

    pct = spent / router.monthly_budget * 100
    color = "green" if pct < 50 else ("yellow" if pct < 80 else "red")
    console.print(Panel(
        f"[{color}]${spent:.2f} / ${router.monthly_budget:.2f} ({pct:.0f}%)[/{color}]\n"
        f"Remaining: ${remaining:.2f}",
        title=f"Budget - {datetime.now():%B %Y}",
        border_style=color,
    ))


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"hybrid-router v{__version__}")


# ─── Spend ledger ─────────────────────────────────────────────────


@spend_app.command("show")
def spend_show(
    ctx: typer.Context,
    year: int = typer.Option(None, "--year", "-y", help="Year (default: current)"),
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Month 1-12"),
) -> None:
    """Show the monthly spend summary.

    Examples:
        hybrid-router spend show
        hybrid-router spend show -y 2025 -m 11
    """
    try:
        summary = _ledger(ctx).get_monthly_summary(year, month)
    except HybridRouterError as e:
        _fail(str(e))

    console.print(Panel(
        f"[bold]Spend - {summary.year}-{summary.month:02d}[/bold]",
        border_style="cyan",
    ))

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Requests", f"{summary.request_count:,}")
    table.add_row("Total tokens", f"[cyan]{summary.total_tokens:,}[/cyan]")
    table.add_row("Total spend", f"${summary.total_spend:.2f}")
    table.add_row("Avg cost/req", f"${summary.average_cost:.4f}")
    console.print(table)

    for title, breakdown in (("By provider", summary.by_provider), ("By model", summary.by_model)):
        if not breakdown:
            continue
        bt = Table(title=title)
        bt.add_column("Name", style="cyan")
        bt.add_column("Spend", justify="right", style="green")
        for name, cost in breakdown.items():
            bt.add_row(name, f"${cost:.4f}")
        console.print(bt)


@spend_app.command("record")
def spend_record(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider name"),
    model: str = typer.Argument(..., help="Model name"),
    cost: float = typer.Argument(..., min=0.0, help="Cost in USD"),
    tokens: int = typer.Option(0, "--tokens", "-t", min=0, help="Tokens used"),
) -> None:
    """Record an API charge after a real call."""
    try:
        entry = _ledger(ctx).record_cost(provider, model, cost, tokens)
    except HybridRouterError as e:
        _fail(str(e))
    console.print(
        f"[green]Recorded ${entry.cost:.4f} for {provider}/{model} ({tokens:,} tokens)[/green]")


@spend_app.command("entries")
def spend_entries(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Most recent N entries"),
) -> None:
    """List recorded entries, newest last."""
    try:
        entries = _ledger(ctx).get_entries()[-limit:]
    except HybridRouterError as e:
        _fail(str(e))

    table = Table(title=f"Recent spend ({len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Provider")
    table.add_column("Model", style="cyan")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right", style="green")
    for entry in entries:
        table.add_row(
            entry.recorded_at.strftime("%Y-%m-%d %H:%M:%S"),
            entry.provider,
            entry.model,
            f"{entry.tokens:,}",
            f"${entry.cost:.4f}",
        )
    console.print(table)


@spend_app.command("export")
def spend_export(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Output file (.json or .csv)"),
) -> None:
    """Export every entry, unaggregated."""
    try:
        out = _ledger(ctx).export(path)
    except HybridRouterError as e:
        _fail(str(e))
    console.print(f"[green]Exported to {out}[/green]")


@spend_app.command("clear")
def spend_clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation"),
) -> None:
    """Delete every recorded entry."""
    if not yes and not typer.confirm("Delete all recorded spend?"):
        raise typer.Exit(1)
    try:
        _ledger(ctx).clear()
    except HybridRouterError as e:
        _fail(str(e))
    console.print("[green]Spend ledger cleared.[/green]")


# ─── Configuration ────────────────────────────────────────────────


@config_app.command("init")
def config_init(
    output: Path = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Print (or write) an example configuration."""
    if output is None:
        typer.echo(DEFAULT_CONFIG_YAML, nl=False)
        return
    if output.exists() and not force:
        _fail(f"{output} already exists (use --force to overwrite)")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(DEFAULT_CONFIG_YAML)
    console.print(f"[green]Wrote {output}[/green]")


@config_app.command("show")
def config_show(
    path: Path = typer.Argument(..., help="Config file to validate"),
) -> None:
    """Validate a config file and show the active router settings."""
    try:
        config = load_config_with_env(path)
    except HybridRouterError as e:
        _fail(str(e))

    table = Table(title=f"Router: {config.router.type}")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in config.router.router_kwargs().items():
        table.add_row(key, str(value))
    console.print(table)

    providers = config.providers
    console.print(f"Ollama: {providers.ollama.base_url}")
    for name, section in (("Anthropic", providers.anthropic), ("OpenAI", providers.openai)):
        status = "[green]key set[/green]" if section.api_key else "[yellow]no key[/yellow]"
        console.print(f"{name}: {status}")


if __name__ == "__main__":
    app()
