"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.graphql_client import GraphQLClient
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import CommunityError
from core.domain.models import CredentialTier

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_PING = "query Ping { __typename }"


async def _check_tier(settings: AppSettings, tier: CredentialTier) -> tuple[bool, str]:
    try:
        async with GraphQLClient(settings) as gql:
            data = await gql.execute(_PING, tier=tier)
        return True, f"OK ({data.get('__typename', 'Query')})"
    except CommunityError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Community Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("GraphQL URL", "OK", settings.graphql_url)
    table.add_row("API name", "OK" if settings.api_name else "OPTIONAL", settings.api_name or "(default)")
    table.add_row(
        "Public API key",
        "OK" if settings.public_api_key else "MISSING",
        "Primary read tier" if settings.public_api_key else "Reads go straight to the user tier",
    )
    table.add_row(
        "User token",
        "OK" if settings.user_pool_token else "OPTIONAL",
        "Secondary read tier + writes" if settings.user_pool_token else "Posting disabled (sign-in required)",
    )
    table.add_row(
        "Create mutation",
        "PINNED" if settings.create_mutation_key else "AUTO",
        settings.create_mutation_key or "Negotiated at submit time",
    )
    table.add_row(
        "Slug lookup",
        "OK" if settings.slug_lookup_query else "OPTIONAL",
        settings.slug_lookup_query or "Slugs get a timestamp suffix",
    )

    # Connectivity (best-effort)
    for tier in CredentialTier.read_order():
        ok, detail = asyncio.run(_check_tier(settings, tier))
        table.add_row(f"GraphQL ({tier.value})", "OK" if ok else "FAIL", detail)

    _console.print(table)


@app.command(name="setup-api")
def setup_api() -> None:
    """Interactive API setup (stores config in the user config .env)."""

    url = typer.prompt("GraphQL URL", default=AppSettings().graphql_url, show_default=True).strip()
    api_key = typer.prompt("Public API key (blank to skip)", default="", show_default=False).strip()
    token = typer.prompt("User token (blank to skip)", default="", hide_input=True, show_default=False).strip()
    user_id = typer.prompt("User id (blank to skip)", default="", show_default=False).strip()

    if not url:
        raise typer.BadParameter("GraphQL URL is required")

    values = {"COMMUNITY_GRAPHQL_URL": url}
    if api_key:
        values["COMMUNITY_PUBLIC_API_KEY"] = api_key
    if token:
        values["COMMUNITY_USER_POOL_TOKEN"] = token
    if user_id:
        values["COMMUNITY_USER_ID"] = user_id

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved API config to:[/green] {env_path}")
