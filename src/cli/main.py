"""CLI principal (Typer).

Comandos:
- `feed`: lista de posts con scroll infinito simulado y búsqueda local.
- `post`: un post por slug con sus respuestas (lectura con fallback de credenciales).
- `leaderboard`: ranking de contribuidores (escaneo completo de posts, respuestas y perfiles).
- `ask`: compone y publica un post (borrador local + negociación de mutación).
- `slug`: previsualiza el slug de un título.
- `doctor`: diagnóstico del entorno.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.analytics import LoggingAnalyticsSink
from adapters.auth import SettingsAuthProvider
from adapters.community_api import CommunityApi
from adapters.draft_store import JsonDraftStore
from adapters.graphql_client import GraphQLClient
from adapters.json_exporter import export_leaderboard_json, export_posts_json
from cli import doctor
from cli.ui_components import (
    build_answers_panel,
    build_attempt_trail_panel,
    build_leaderboard_table,
    build_post_panel,
    build_posts_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.errors import (
    CommunityError,
    ExhaustedCredentialsError,
    SchemaNegotiationExhausted,
    UnauthenticatedWriteAttempt,
    ValidationError,
)
from core.domain.models import CreatedPost, Draft, Leaderboard, Post, PostThread, PostType
from core.logging_setup import configure_logging
from core.services.community_feed import CommunityFeed, collect_all, load_thread
from core.services.credential_tiers import CredentialTierResolver
from core.services.leaderboard import load_leaderboard
from core.services.mutation_negotiator import MutationNegotiator
from core.services.post_composer import SUGGESTED_TAGS, PostComposer, add_tag, post_path
from core.services.post_search import filter_posts, sort_newest_first
from core.services.slugs import SlugUniquenessResolver, slugify

app = typer.Typer(no_args_is_help=True, help="Community Q&A client: feed, posts and post creation.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at INFO level."),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level."),
) -> None:
    settings = AppSettings()
    level = "DEBUG" if debug else ("INFO" if verbose else settings.log_level)
    configure_logging(level)


def _build_composer(settings: AppSettings, api: CommunityApi) -> PostComposer:
    return PostComposer(
        negotiator=MutationNegotiator(api),
        slugs=SlugUniquenessResolver(api.slug_lookup(settings.slug_lookup_query)),
        auth=SettingsAuthProvider(settings),
        drafts=JsonDraftStore(settings.resolved_drafts_dir()),
        analytics=LoggingAnalyticsSink(),
        settings=settings,
    )


async def _run_feed(
    settings: AppSettings,
    *,
    query: str,
    tag: str,
    scrolls: int,
) -> tuple[list[Post], bool]:
    errors: list[Exception] = []
    async with GraphQLClient(settings) as gql:
        feed = CommunityFeed(query=CommunityApi(gql), settings=settings, on_error=errors.append)
        try:
            await feed.mount(tag=tag)
            if query:
                feed.on_search_input(query)
                feed.debouncer.flush()
            for _ in range(scrolls):
                if not feed.has_more:
                    break
                # Sentinel scrolled into view, then out again once the page renders.
                task = feed.trigger.on_scroll(sentinel_top=0, viewport_bottom=0)
                if task is not None:
                    await task
                feed.trigger.on_intersection(False)
                if errors:
                    raise errors[-1]
            return feed.visible, feed.has_more
        finally:
            feed.close()


async def _scan_all(settings: AppSettings, *, query: str, tag: str) -> tuple[list[Post], bool]:
    async with GraphQLClient(settings) as gql:
        result = await collect_all(
            CommunityApi(gql),
            resolver=CredentialTierResolver(),
            limit=settings.seed_page_limit,
            max_pages=settings.seed_max_pages,
        )
    posts = sort_newest_first(filter_posts(result.items, query=query, tag=tag))
    return posts, result.next_cursor is not None


@app.command()
def feed(
    query: str = typer.Option("", "--query", "-q", help="Filter loaded posts by text."),
    tag: str = typer.Option("", "--tag", "-t", help="Filter loaded posts by tag."),
    scrolls: int = typer.Option(0, "--scrolls", "-s", min=0, help="Pages to load after the first one."),
    scan_all: bool = typer.Option(False, "--all", help="Scan the whole collection (capped), newest first."),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Also write the posts to a JSON file."),
    no_banner: bool = typer.Option(False, "--no-banner", help="Skip the banner."),
) -> None:
    """List community posts."""

    settings = AppSettings()
    if not no_banner:
        print_banner(_console)
    try:
        if scan_all:
            posts, has_more = asyncio.run(_scan_all(settings, query=query, tag=tag))
        else:
            posts, has_more = asyncio.run(_run_feed(settings, query=query, tag=tag, scrolls=scrolls))
    except ExhaustedCredentialsError as exc:
        _console.print(f"[red]Couldn't load posts.[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not posts:
        _console.print("[dim]No posts yet. Be the first to ask a question: `community ask`.[/dim]")
    else:
        _console.print(build_posts_table(posts))
    if has_more:
        _console.print("[dim]More posts available (use --scrolls, or --all).[/dim]")
    if json_out:
        path = export_posts_json(posts=posts, output_path=json_out)
        _console.print(f"[green]Saved:[/green] {path}")


async def _load_thread(settings: AppSettings, slug: str) -> PostThread | None:
    async with GraphQLClient(settings) as gql:
        api = CommunityApi(gql)
        return await load_thread(
            api,
            api,
            slug,
            resolver=CredentialTierResolver(),
            answer_limit=settings.answers_limit,
        )


@app.command()
def post(slug: str = typer.Argument(..., help="Post slug.")) -> None:
    """Show one post by slug, with its answers."""

    settings = AppSettings()
    try:
        thread = asyncio.run(_load_thread(settings, slug))
    except ExhaustedCredentialsError as exc:
        _console.print(f"[red]Couldn't load post.[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if thread is None:
        _console.print(f"[yellow]Post not found:[/yellow] {slug}")
        raise typer.Exit(code=1)
    _console.print(build_post_panel(thread.post))
    _console.print(build_answers_panel(thread.answers))


async def _load_leaderboard(settings: AppSettings) -> Leaderboard:
    async with GraphQLClient(settings) as gql:
        api = CommunityApi(gql)
        return await load_leaderboard(
            posts=api,
            answers=api.answers,
            profiles=api.profiles,
            resolver=CredentialTierResolver(),
            limit=settings.seed_page_limit,
            max_pages=settings.seed_max_pages,
        )


@app.command()
def leaderboard(
    top: int = typer.Option(0, "--top", "-n", min=0, help="Show only the first N contributors (0 = all)."),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Also write the rows to a JSON file."),
) -> None:
    """Rank contributors by score, accepted answers and activity."""

    settings = AppSettings()
    board = asyncio.run(_load_leaderboard(settings))
    for name in board.missing:
        _console.print(f"[yellow]Couldn't load {name}; ranking without them.[/yellow]")

    rows = board.rows[:top] if top else board.rows
    if not rows:
        _console.print("[dim]No contributors yet. Be the first to ask a question: `community ask`.[/dim]")
    else:
        _console.print(build_leaderboard_table(rows))
    _console.print(f"[dim]Generated: {board.generated_at.isoformat(timespec='seconds')}[/dim]")
    if json_out:
        path = export_leaderboard_json(board=board, output_path=json_out)
        _console.print(f"[green]Saved:[/green] {path}")


def _prompt_draft(composer: PostComposer, base: Draft) -> Draft:
    # Every answer is saved right away so an aborted session can be restored.
    type_raw = typer.prompt("Post type (question/discussion)", default=base.type.value.lower())
    post_type = PostType.DISCUSSION if type_raw.strip().lower().startswith("d") else PostType.QUESTION
    draft = composer.save_draft(base.model_copy(update={"type": post_type}))

    title = typer.prompt("Title", default=draft.title or None)
    draft = composer.save_draft(draft.model_copy(update={"title": title}))
    _console.print(f"[dim]Your URL will be: {post_path(slugify(title) or 'your-title')}[/dim]")

    body = typer.prompt("Details (Markdown)", default=draft.content_md or None)
    draft = composer.save_draft(draft.model_copy(update={"content_md": body}))

    _console.print(f"[dim]Suggested tags: {', '.join(SUGGESTED_TAGS)}[/dim]")
    tags = typer.prompt("Tags (comma separated)", default=draft.tags, show_default=bool(draft.tags))
    return composer.save_draft(draft.model_copy(update={"tags": tags}))


async def _ask(settings: AppSettings, draft: Draft | None) -> CreatedPost:
    async with GraphQLClient(settings) as gql:
        composer = _build_composer(settings, CommunityApi(gql))
        if draft is None:
            restored = composer.restore_draft()
            if restored and not typer.confirm("Restore saved draft?", default=True):
                restored = None
            draft = _prompt_draft(composer, restored or Draft())
        else:
            draft = composer.save_draft(draft)
        return await composer.submit(draft)


@app.command()
def ask(
    title: Optional[str] = typer.Option(None, "--title", help="Post title (skips the prompts)."),
    body: Optional[str] = typer.Option(None, "--body", help="Post details in Markdown."),
    tag: list[str] = typer.Option([], "--tag", help="Tag to add (repeatable)."),
    discussion: bool = typer.Option(False, "--discussion", help="Post a discussion instead of a question."),
) -> None:
    """Compose and publish a new post."""

    settings = AppSettings()

    draft: Draft | None = None
    if title is not None or body is not None:
        tags = ""
        for item in tag:
            tags = add_tag(tags, item.strip())
        draft = Draft(
            title=title or "",
            content_md=body or "",
            tags=tags,
            type=PostType.DISCUSSION if discussion else PostType.QUESTION,
        )

    try:
        created = asyncio.run(_ask(settings, draft))
    except ValidationError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc
    except UnauthenticatedWriteAttempt as exc:
        _console.print(f"[yellow]{exc}[/yellow] Sign in at: {exc.redirect_url}")
        _console.print("[dim]Configure COMMUNITY_USER_POOL_TOKEN and COMMUNITY_USER_ID, then retry.[/dim]")
        raise typer.Exit(code=3) from exc
    except SchemaNegotiationExhausted as exc:
        _console.print(f"[red]{exc}[/red]")
        _console.print(build_attempt_trail_panel(exc.trail, hint=exc.hint))
        raise typer.Exit(code=4) from exc
    except CommunityError as exc:
        _console.print(f"[red]Something went wrong creating your post:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _console.print(f"[green]Posted![/green] {created.path} [dim](via {created.candidate.operation_id})[/dim]")


@app.command()
def slug(
    title: str = typer.Argument(..., help="Title to slugify."),
    check: bool = typer.Option(False, "--check", help="Resolve uniqueness against the backend."),
) -> None:
    """Preview the slug for a title."""

    if not check:
        _console.print(slugify(title) or "post")
        return

    settings = AppSettings()

    async def _claim() -> str:
        async with GraphQLClient(settings) as gql:
            resolver = SlugUniquenessResolver(CommunityApi(gql).slug_lookup(settings.slug_lookup_query))
            claim = await resolver.claim(title)
            return f"{claim.resolved} [dim]({claim.strategy})[/dim]"

    _console.print(asyncio.run(_claim()))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
