"""Command-line interface for edge-of-knowledge explorations."""

import asyncio
import json
from typing import Annotated

import typer

from .config.loader import DEFAULT_CONFIG_PATH, load_config, read_config_file
from .config.factory import create_paper_provider
from .orchestration import (
    ExplorationRequest,
    ProgressEvent,
    ResearchMode,
    explore_topic_stream,
)
from .semantic_scholar.models import format_authors, last_studied_year

app = typer.Typer(
    name="edge",
    help="Explore what is known, debated and unknown about a topic.",
    add_completion=False,
)


def _load_profile(profile: str | None):
    try:
        return load_config(profile)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0] if e.args else e}", err=True)
        raise typer.Exit(1)


@app.command()
def explore(
    topic: Annotated[str, typer.Argument(help="Topic or observation to explore")],
    mode: Annotated[
        str,
        typer.Option("--mode", "-m", help="Focus: science, unknown, experiment or freeform"),
    ] = "freeform",
    observation: Annotated[
        str,
        typer.Option("--observation", "-o", help="What the user observed (defaults to the topic)"),
    ] = None,
    max_iterations: Annotated[
        int,
        typer.Option("--max-iterations", "-n", help="Maximum research iterations"),
    ] = None,
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile (see 'edge profiles')"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
):
    """
    Research a topic and print a structured exploration.

    Examples:

        # Free-form exploration with the default profile
        edge explore "why do cats purr"

        # Focus on open questions, at most 4 research iterations
        edge explore "ball lightning" --mode unknown -n 4

        # Offline run with scripted backends, JSON output
        edge explore "bioluminescence" --profile test --format json
    """
    if mode not in {m.value for m in ResearchMode}:
        typer.echo(f"Error: Invalid mode '{mode}'. Must be one of: {[m.value for m in ResearchMode]}", err=True)
        raise typer.Exit(1)

    if output_format not in ("text", "json"):
        typer.echo("Error: Format must be one of: text, json", err=True)
        raise typer.Exit(1)

    asyncio.run(_explore_async(
        topic=topic,
        mode=mode,
        observation=observation,
        max_iterations=max_iterations,
        profile=profile,
        output_format=output_format,
    ))


async def _explore_async(
    topic: str,
    mode: str,
    observation: str | None,
    max_iterations: int | None,
    profile: str | None,
    output_format: str,
):
    """Async implementation of explore."""
    config = _load_profile(profile)
    request = ExplorationRequest(
        topic=topic,
        mode=mode,
        observation=observation,
        max_iterations=max_iterations,
    )

    def on_progress(event: ProgressEvent) -> None:
        if output_format == "text":
            typer.echo(f"[{event.stage.value}] {event.message}", err=True)

    result = await explore_topic_stream(request, on_progress, config)

    if result.error:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)

    content = result.content
    research = result.research

    if output_format == "json":
        typer.echo(json.dumps({
            "content": content.to_dict(),
            "research": research.to_dict(),
        }, indent=2))
        return

    typer.echo()
    typer.echo(content.headline)
    typer.echo("=" * len(content.headline))
    typer.echo(content.summary)
    typer.echo()
    typer.echo(f"Depth: {content.depth} | Research heat: {content.research_heat}")
    if content.is_frontier:
        typer.echo(f"Frontier: {content.frontier_reason}")
    typer.echo(f"Last studied: {last_studied_year(research.papers)}")

    if content.knowledge_map:
        for label, items in (
            ("Established", content.knowledge_map.established),
            ("Debated", content.knowledge_map.debated),
            ("Unknown", content.knowledge_map.unknown),
        ):
            if items:
                typer.echo(f"\n{label}:")
                for item in items:
                    typer.echo(f"  - {item}")

    if content.citations:
        typer.echo("\nCitations:")
        for i, c in enumerate(content.citations, 1):
            typer.echo(f"  {i}. {c.title} ({c.year or 'N/A'}) - {c.authors}")
            typer.echo(f"     {c.url}")

    if content.experiments:
        typer.echo("\nExperiments:")
        for e in content.experiments:
            typer.echo(f"  - {e.title} [{e.difficulty}]: {e.hypothesis}")

    if content.branches:
        typer.echo("\nKeep exploring:")
        for b in content.branches:
            typer.echo(f"  - {b.title} ({b.type}): {b.teaser}")

    typer.echo(
        f"\n{research.iteration_count} iterations, {research.paper_count} papers, "
        f"{research.web_result_count} web results in {research.total_time_ms / 1000:.1f}s"
    )


@app.command()
def papers(
    query: Annotated[str, typer.Argument(help="Search query for papers")],
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of results (1-20)"),
    ] = 10,
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile"),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
):
    """
    Search for academic papers with the configured paper provider.

    Examples:

        edge papers "photonic crystals butterflies"

        edge papers "quantum biology" -n 5 --format json
    """
    asyncio.run(_papers_async(query, limit, profile, output_format))


async def _papers_async(query: str, limit: int, profile: str | None, output_format: str):
    """Async implementation of papers."""
    config = _load_profile(profile)
    provider = create_paper_provider(config.providers)

    async with provider:
        results = await provider.search_papers(query, limit=limit)

    if output_format == "json":
        output = [
            {
                "paper_id": r.paper_id,
                "title": r.title,
                "year": r.year,
                "authors": [a.name for a in r.authors],
                "citation_count": r.citation_count,
                "abstract": r.abstract[:300] + "..." if r.abstract and len(r.abstract) > 300 else r.abstract,
                "url": r.url,
            }
            for r in results
        ]
        typer.echo(json.dumps(output, indent=2))
        return

    if not results:
        typer.echo("No papers found.")
        return

    typer.echo(f"Found {len(results)} papers:\n")
    for i, r in enumerate(results, 1):
        typer.echo(f"{i}. {r.title}")
        typer.echo(f"   Year: {r.year or 'N/A'} | Citations: {r.citation_count}")
        typer.echo(f"   Authors: {format_authors(r.authors)}")
        typer.echo(f"   ID: {r.paper_id}")
        typer.echo()


@app.command()
def profiles():
    """List available configuration profiles."""
    config_file = read_config_file(DEFAULT_CONFIG_PATH)

    typer.echo("Available profiles:\n")
    for name, profile in config_file.profiles.items():
        typer.echo(f"  {name}")
        typer.echo(f"    Reasoning: {profile.reasoning.backend} ({profile.reasoning.model or 'default model'})")
        typer.echo(f"    Papers: {profile.providers.paper_backend} | Web: {profile.providers.web_backend}")
        typer.echo(f"    Max iterations: {profile.agent.max_iterations}")
        typer.echo()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
