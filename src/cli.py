"""
Command-line interface for feedback-triage.

Provides commands to run the API, initialize the database, backfill
embeddings and run the batch matching/routing jobs.

Usage:
    feedback-triage serve                 # Run the API server
    feedback-triage init-db               # Create tables and indexes
    feedback-triage backfill-embeddings   # Embed records missing vectors
    feedback-triage suggest-owners        # Route unassigned feedback
    feedback-triage find-evidence IDEA_ID # Search evidence for an idea
    feedback-triage summarize IDEA_ID     # Summarize linked feedback
    feedback-triage insights              # Print the pipeline overview
"""

import asyncio
import json
import sys
import uuid

import click

from src.config.settings import get_settings
from src.observability.logging import bind_context, clear_context, setup_logging


def _redis_client():
    """Embedding cache client, or None when Redis is disabled."""
    settings = get_settings()
    if not settings.redis_enabled:
        return None

    import redis.asyncio as redis

    return redis.from_url(str(settings.redis_url), encoding="utf-8", decode_responses=True)


def _echo_progress(label: str):
    def report(progress: dict[str, int]) -> None:
        click.echo(f"  {label}: {progress['processed']}/{progress['total']}")

    return report


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Feedback Triage - matching and prioritization for product feedback."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.embedding.config import EmbeddingConfig
    from src.storage.database import Database
    from src.storage.repository import TriageRepository

    async def run():
        async with Database() as db:
            repo = TriageRepository(db)
            await repo.create_tables(dimension=EmbeddingConfig().dimension)
            migrated = await repo.normalize_legacy_statuses()

        click.echo("Database initialized successfully")
        if migrated:
            click.echo(f"Normalized {migrated} legacy feedback statuses")

    asyncio.run(run())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the triage API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "src.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command("backfill-embeddings")
@click.option(
    "--kind",
    type=click.Choice(["feedback", "ideas", "product-areas", "all"]),
    default="all",
    help="Which records to embed",
)
def backfill_embeddings(kind: str) -> None:
    """Embed feedback, ideas and product areas that have no vector yet."""
    from src.embedding.backfill import EmbeddingBackfill
    from src.embedding.service import EmbeddingService
    from src.providers.config import ProviderConfig
    from src.storage.database import Database
    from src.storage.repository import TriageRepository

    async def run():
        redis_client = _redis_client()
        embedder = EmbeddingService.from_config(ProviderConfig(), redis_client=redis_client)
        if not embedder.available:
            click.echo(click.style("No embedding provider configured", fg="red"))
            sys.exit(1)

        try:
            async with Database() as db:
                backfill = EmbeddingBackfill(embedder, TriageRepository(db))
                jobs = {
                    "feedback": backfill.backfill_feedback,
                    "ideas": backfill.backfill_ideas,
                    "product-areas": backfill.backfill_product_areas,
                }
                selected = list(jobs) if kind == "all" else [kind]

                for name in selected:
                    click.echo(f"\nBackfilling {name}...")
                    result = await jobs[name](on_progress=_echo_progress(name))
                    click.echo(f"Embedded {result['processed']} of {result['total']} {name}")
        finally:
            await embedder.close()
            if redis_client is not None:
                await redis_client.aclose()

    asyncio.run(run())


@main.command("suggest-owners")
@click.option("--limit", default=100, help="Maximum unassigned feedback items to route")
@click.option("--batch-size", default=None, type=int, help="Items routed concurrently per batch")
@click.option("--dry-run", is_flag=True, help="Print suggestions without saving them")
def suggest_owners(limit: int, batch_size: int | None, dry_run: bool) -> None:
    """Suggest owners for unassigned feedback via product areas."""
    from src.embedding.service import EmbeddingService
    from src.providers.config import ProviderConfig
    from src.routing.owner_router import OwnerRouter
    from src.storage.database import Database
    from src.storage.repository import TriageRepository

    async def run():
        bind_context(run_id=uuid.uuid4().hex[:12])
        redis_client = _redis_client()
        embedder = EmbeddingService.from_config(ProviderConfig(), redis_client=redis_client)
        router = OwnerRouter(embedder)

        try:
            async with Database() as db:
                repo = TriageRepository(db)
                feedback = await repo.list_unassigned_feedback(limit)
                areas = await repo.list_product_areas()

                click.echo(f"\nRouting {len(feedback)} feedback items across {len(areas)} product areas")
                click.echo("-" * 60)

                matched = 0
                saved = 0
                async for batch in router.stream_owner_suggestions(feedback, areas, batch_size):
                    for suggestion in batch:
                        if suggestion.matched:
                            matched += 1
                            click.echo(
                                f"  {suggestion.feedback_id} -> {suggestion.product_area_name} "
                                f"({suggestion.confidence:.2f})"
                            )
                            if not dry_run and await repo.save_owner_suggestion(suggestion):
                                saved += 1
                        else:
                            click.echo(f"  {suggestion.feedback_id}: {suggestion.reasoning}")

                click.echo("-" * 60)
                click.echo(f"Matched {matched} of {len(feedback)} items")
                if dry_run:
                    click.echo("Dry run: nothing saved")
                else:
                    click.echo(f"Saved {saved} suggestions")
        finally:
            await embedder.close()
            if redis_client is not None:
                await redis_client.aclose()
            clear_context()

    asyncio.run(run())


@main.command("find-evidence")
@click.argument("idea_id")
@click.option("--limit", default=None, type=int, help="Stage-1 candidate limit")
@click.option("--threshold", default=None, type=float, help="Stage-1 similarity threshold")
@click.option("--link", is_flag=True, help="Link auto-accepted matches to the idea")
def find_evidence(idea_id: str, limit: int | None, threshold: float | None, link: bool) -> None:
    """Search stored feedback for evidence supporting an idea.

    Example:
        feedback-triage find-evidence 6f1c... --threshold 0.5
    """
    from src.aggregation.thresholds import select_auto_accepted
    from src.matching.schemas import FeedbackIdeaLink
    from src.matching.service import EVIDENCE_STATUSES, MatchingService, MatchOptions
    from src.providers.config import ProviderConfig
    from src.storage.database import Database
    from src.storage.repository import TriageRepository
    from src.vectorstore.pgvector_store import PgVectorStore

    async def run():
        bind_context(idea_id=idea_id)
        redis_client = _redis_client()
        service = MatchingService.from_config(ProviderConfig(), redis_client=redis_client)

        try:
            async with Database() as db:
                repo = TriageRepository(db)
                idea = await repo.get_idea(idea_id)
                if idea is None:
                    click.echo(click.style(f"Idea not found: {idea_id}", fg="red"))
                    sys.exit(1)

                linked = {l.feedback_id for l in await repo.list_links(idea_id=idea_id)}
                pool = await repo.list_feedback(statuses=EVIDENCE_STATUSES)
                options = MatchOptions(
                    exclude_ids=linked,
                    limit=limit,
                    threshold=threshold,
                    index=PgVectorStore(db, table="feedback", repository=repo),
                )
                result = await service.find_evidence_for_idea(
                    idea.title, idea.description, pool, options,
                )

                click.echo(f"\nEvidence for: {idea.title}")
                click.echo(f"Status: {result.status} | Strategy: {result.strategy}")
                click.echo("-" * 60)

                if not result.matches:
                    click.echo("No matches found.")
                    return

                for i, match in enumerate(result.matches, 1):
                    text = match.record.description[:80] if match.record is not None else ""
                    click.echo(f"\n{i}. [{match.confidence:.2f}] {text}")
                    click.echo(f"   Reason: {match.reason}")
                    click.echo(f"   ID: {match.id}")

                if link:
                    accepted = select_auto_accepted(result.matches)
                    created = await repo.create_links([
                        FeedbackIdeaLink(feedback_id=m.id, idea_id=idea.id, confidence=m.confidence)
                        for m in accepted
                    ])
                    click.echo(f"\nLinked {created} auto-accepted matches")
        finally:
            await service.close()
            if redis_client is not None:
                await redis_client.aclose()
            clear_context()

    asyncio.run(run())


@main.command()
@click.argument("idea_id")
@click.option("--save/--no-save", default=True, help="Store the summary on the idea")
def summarize(idea_id: str, save: bool) -> None:
    """Summarize the feedback linked to an idea."""
    from src.matching.service import MatchingService
    from src.providers.config import ProviderConfig
    from src.storage.database import Database
    from src.storage.repository import TriageRepository

    async def run():
        bind_context(idea_id=idea_id)
        service = MatchingService.from_config(ProviderConfig())

        try:
            async with Database() as db:
                repo = TriageRepository(db)
                idea = await repo.get_idea(idea_id)
                if idea is None:
                    click.echo(click.style(f"Idea not found: {idea_id}", fg="red"))
                    sys.exit(1)

                linked = await repo.list_linked_feedback(idea_id)
                if not linked:
                    click.echo("No linked feedback to summarize.")
                    return

                summary = await service.summarize(linked, title=idea.title)
                if summary is None:
                    click.echo(click.style("AI unavailable: no summary generated", fg="yellow"))
                    sys.exit(1)

                click.echo(f"\n{idea.title} ({len(linked)} linked items)")
                click.echo("-" * 60)
                click.echo(summary)
                if save:
                    await repo.update_idea_summary(idea_id, summary)
        finally:
            await service.close()
            clear_context()

    asyncio.run(run())


@main.command()
@click.option("--top", default=10, help="Number of top ideas by ARR")
def insights(top: int) -> None:
    """Print triage progress, linked ARR and top ideas as JSON."""
    from src.aggregation.engine import insights as build_insights
    from src.storage.database import Database
    from src.storage.repository import TriageRepository

    async def run():
        async with Database() as db:
            repo = TriageRepository(db)
            overview = build_insights(
                await repo.list_feedback(),
                await repo.list_ideas(),
                await repo.list_links(),
                top_limit=top,
            )
        click.echo(json.dumps(overview.to_dict(), indent=2))

    asyncio.run(run())


if __name__ == "__main__":
    main()
