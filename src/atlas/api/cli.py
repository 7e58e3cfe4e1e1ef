"""Atlas Command Line Interface.

Generates knowledge graphs and queries them: concepts, dependencies,
learning paths and gap reports. Graphs persist between invocations in the
archive at ATLAS_ARCHIVE_PATH.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from atlas.core.errors import (
    ExternalServiceError,
    GraphIntegrityError,
    NotFoundError,
    ValidationError,
)
from atlas.core.logging import configure_logging
from atlas.engine import KnowledgeGraphEngine, create_engine
from atlas.graph.models import KnowledgeGraph, Scope

app = typer.Typer(
    name="atlas",
    help="Atlas - build knowledge graphs and learning paths for any subject",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
):
    """Atlas knowledge graph engine."""
    configure_logging(level=logging.DEBUG if verbose else None, quiet=quiet)


def _get_engine(offline: bool = False, extraction: bool = False) -> KnowledgeGraphEngine:
    """Get an engine restored from the archive."""
    try:
        return create_engine(offline=offline, extraction=extraction)
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)


def _category_counts(graph: KnowledgeGraph) -> str:
    counts: dict[str, int] = {}
    for node in graph.nodes:
        counts[node.category.value] = counts.get(node.category.value, 0) + 1
    return ", ".join(f"{category}: {count}" for category, count in counts.items())


def _print_graph_summary(graph: KnowledgeGraph) -> None:
    metadata = graph.metadata
    console.print(
        Panel(
            f"[bold]Concepts:[/bold] {len(graph.nodes)}\n"
            f"[bold]Relationships:[/bold] {len(graph.relationships)}\n"
            f"[bold]Average difficulty:[/bold] {metadata.average_difficulty}\n"
            f"[bold]Course length:[/bold] {metadata.estimated_course_length}h\n"
            f"[bold]Coverage:[/bold] {metadata.coverage:.0%}\n"
            f"[bold]Domain:[/bold] {metadata.domain}\n"
            f"[bold]Categories:[/bold] {_category_counts(graph)}",
            title=f"Knowledge Graph: {graph.subject}",
            border_style="blue",
        )
    )


@app.command()
def generate(
    subject: str = typer.Argument(..., help="Subject to build a graph for"),
    scope: Scope = typer.Option(Scope.COMPREHENSIVE, "--scope", "-s", help="Depth of the graph"),
    audience: str = typer.Option("general", "--audience", "-a", help="Intended learners"),
    offline: bool = typer.Option(
        False, "--offline", help="Use the built-in outline instead of the LLM"
    ),
):
    """Generate and store the knowledge graph for a subject.

    Replaces any graph already stored for the subject.

    Examples:
        atlas generate "Linear Algebra"
        atlas generate "Music Theory" -s basic --offline
    """
    engine = _get_engine(offline=offline, extraction=True)

    try:
        with console.status(f"Generating knowledge graph for {subject}..."):
            graph = engine.generate(subject, scope=scope, audience=audience)
    except ValidationError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)
    except ExternalServiceError as e:
        console.print(f"[red]Extraction failed: {e}[/red]")
        raise typer.Exit(1)
    except GraphIntegrityError as e:
        console.print(f"[red]Graph rejected: {e}[/red]")
        raise typer.Exit(1)

    _print_graph_summary(graph)
    if graph.metadata.gaps:
        console.print(f"[yellow]Known gaps:[/yellow] {', '.join(graph.metadata.gaps)}")


@app.command()
def show(
    subject: str = typer.Argument(..., help="Subject to show"),
):
    """Show a stored graph with its concepts.

    Examples:
        atlas show "Linear Algebra"
    """
    engine = _get_engine()

    try:
        graph = engine.get(subject)
    except (NotFoundError, ValidationError) as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    _print_graph_summary(graph)
    console.print()

    table = Table(show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Category", style="dim")
    table.add_column("Difficulty", justify="right")
    table.add_column("Minutes", justify="right")
    table.add_column("Prerequisites", style="dim")

    for node in graph.nodes:
        table.add_row(
            node.id,
            node.title,
            node.category.value,
            str(node.difficulty),
            str(node.estimated_time),
            ", ".join(graph.prerequisites_of(node.id)) or "-",
        )

    console.print(table)


@app.command(name="list")
def list_graphs():
    """List every stored graph.

    Examples:
        atlas list
    """
    engine = _get_engine()
    graphs = engine.get_all()

    if not graphs:
        console.print("[dim]No knowledge graphs yet. Use 'atlas generate' to build one.[/dim]")
        return

    table = Table(show_header=True)
    table.add_column("Subject", style="cyan")
    table.add_column("Concepts", justify="right")
    table.add_column("Hours", justify="right")
    table.add_column("Scope", style="dim")
    table.add_column("Generated", style="dim")

    for graph in graphs:
        table.add_row(
            graph.subject,
            str(len(graph.nodes)),
            str(graph.metadata.estimated_course_length),
            graph.metadata.scope.value,
            graph.metadata.generated_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to find in concept titles"),
):
    """Search concept titles across all stored graphs.

    Examples:
        atlas search vector
    """
    engine = _get_engine()

    try:
        matches = engine.search_concepts(query)
    except ValidationError as e:
        console.print(f"[red]Invalid input: {e}[/red]")
        raise typer.Exit(1)

    if not matches:
        console.print(f"[dim]No concepts match '{query}'.[/dim]")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Category", style="dim")
    table.add_column("Difficulty", justify="right")

    for node in matches:
        table.add_row(node.id, node.title, node.category.value, str(node.difficulty))

    console.print(table)


@app.command()
def deps(
    concept_id: str = typer.Argument(..., help="Concept ID"),
):
    """Show what a concept directly depends on.

    Examples:
        atlas deps linear_algebra_concept_4
    """
    engine = _get_engine()

    try:
        dependencies = engine.get_dependencies(concept_id)
    except (NotFoundError, ValidationError) as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    if not dependencies:
        console.print(f"[dim]{concept_id} has no dependencies.[/dim]")
        return

    console.print(f"[bold]{concept_id} depends on:[/bold]")
    for node in dependencies:
        console.print(f"  • {node.title} [dim]({node.id})[/dim]")


@app.command()
def paths(
    subject: str = typer.Argument(..., help="Subject to plan for"),
    difficulty: str = typer.Option(
        "intermediate",
        "--difficulty",
        "-d",
        help="Target difficulty: 1-10, or beginner/intermediate/advanced",
    ),
    hours: Optional[float] = typer.Option(
        None, "--hours", "-h", help="Time budget per path (default: ATLAS_DEFAULT_MAX_DURATION)"
    ),
):
    """Synthesize learning paths through a stored graph.

    Examples:
        atlas paths "Linear Algebra"
        atlas paths "Music Theory" -d beginner -h 5
    """
    engine = _get_engine()

    try:
        learning_paths = engine.get_learning_paths(subject, difficulty, hours)
    except NotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)
    except (ValidationError, GraphIntegrityError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not learning_paths:
        console.print("[dim]No concepts fit these constraints.[/dim]")
        return

    graph = engine.get(subject)
    for path in learning_paths:
        titles = [graph.node(concept_id).title for concept_id in path.concept_sequence]
        checkpoints = {checkpoint.concept_id for checkpoint in path.checkpoints}
        steps = "\n".join(
            f"{index}. {title}" + (" [green](checkpoint)[/green]" if concept_id in checkpoints else "")
            for index, (concept_id, title) in enumerate(zip(path.concept_sequence, titles), start=1)
        )
        console.print(
            Panel(
                f"[dim]{path.description}[/dim]\n\n{steps}\n\n"
                f"[bold]Time:[/bold] {path.estimated_hours}h  "
                f"[bold]Level:[/bold] {path.difficulty_level}",
                title=path.name,
                border_style="blue",
            )
        )


@app.command()
def gaps(
    subject: str = typer.Argument(..., help="Subject to analyze"),
):
    """Report gaps, structure metrics and improvement suggestions.

    Examples:
        atlas gaps "Linear Algebra"
    """
    engine = _get_engine()

    try:
        analysis = engine.analyze_gaps(subject)
    except (NotFoundError, ValidationError) as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    chains = analysis.metrics.prerequisite_chains
    balance = analysis.metrics.topical_balance

    stats = Table(show_header=False, box=None, padding=(0, 2))
    stats.add_column("Label", style="dim")
    stats.add_column("Value")
    stats.add_row("Coverage", f"{analysis.coverage:.0%}")
    stats.add_row("Concept density", f"{analysis.metrics.concept_density:.2f} per hour")
    stats.add_row("Average difficulty", str(analysis.metrics.avg_difficulty))
    stats.add_row("Longest chain", str(chains.max_chain_length))
    stats.add_row("Isolated concepts", str(chains.isolated_concepts))
    stats.add_row("Balance score", f"{balance.balance_score:.2f}")

    console.print(Panel(stats, title=f"Gap Analysis: {subject}", border_style="blue"))

    if analysis.gaps:
        console.print("[bold]Known gaps:[/bold]")
        for gap in analysis.gaps:
            console.print(f"  • {gap}")
        console.print()

    if analysis.suggestions:
        console.print("[bold]Suggestions:[/bold]")
        for suggestion in analysis.suggestions:
            console.print(f"  • {suggestion}")
    else:
        console.print("[green]No suggestions - the graph looks well balanced.[/green]")


if __name__ == "__main__":
    app()
