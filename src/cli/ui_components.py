"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Answer, AttemptTrail, LeaderboardRow, Post


def print_banner(console: Console) -> None:
    title = Text("Community", style="bold cyan")
    subtitle = Text("Questions • Discussions • Answers", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_posts_table(posts: Iterable[Post], *, title: str = "Community posts") -> Table:
    table = Table(title=title)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Score", style="green", justify="right")
    table.add_column("Answers", style="green", justify="right")
    table.add_column("Tags", style="magenta")
    table.add_column("Slug", style="dim")
    for post in posts:
        table.add_row(
            post.type.label(),
            post.title,
            str(post.score),
            str(post.answers_count),
            " ".join(f"#{t}" for t in post.tags),
            post.slug,
        )
    return table


def build_post_panel(post: Post) -> Panel:
    body = Text()
    meta = [post.type.label(), f"Score: {post.score}", f"Answers: {post.answers_count}"]
    if post.created_at:
        meta.append(post.created_at.date().isoformat())
    body.append(" · ".join(meta) + "\n\n", style="dim")
    body.append((post.content_md or "").strip() + "\n")
    if post.tags:
        body.append("\n" + " ".join(f"#{t}" for t in post.tags), style="magenta")
    return Panel(body, title=Text(post.title, style="bold"), border_style="cyan")


def build_attempt_trail_panel(trail: AttemptTrail, *, hint: str = "") -> Panel:
    """Panel de diagnóstico cuando ninguna mutación de creación funcionó."""

    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Operation", style="cyan", no_wrap=True)
    table.add_column("Content field", style="white", no_wrap=True)
    table.add_column("Reason", style="red")
    for index, attempt in enumerate(trail.attempts, start=1):
        table.add_row(
            str(index),
            attempt.candidate.operation_id,
            attempt.candidate.payload_field_key,
            "ok" if attempt.succeeded else (attempt.message or "failed"),
        )

    renderables: list[object] = []
    if hint:
        renderables.append(Text(hint.rstrip() + "\n", style="yellow"))
    renderables.append(table)

    return Panel(Group(*renderables), title="Setup needed", border_style="yellow")


def build_answers_panel(answers: Sequence[Answer]) -> Panel:
    body = Text()
    if not answers:
        body.append("No answers yet.", style="dim")
    for index, answer in enumerate(answers):
        if index:
            body.append("\n\n")
        head = f"Score: {answer.score}"
        if answer.created_at:
            head += f" · {answer.created_at.date().isoformat()}"
        if answer.is_accepted:
            body.append("✔ Accepted · ", style="bold green")
        body.append(head + "\n", style="dim")
        body.append((answer.content_md or "").strip())
    return Panel(body, title=f"Answers ({len(answers)})", border_style="green")


def build_leaderboard_table(rows: Iterable[LeaderboardRow], *, title: str = "Community leaderboard") -> Table:
    """Ranking: score total, luego aceptadas, luego contribuciones."""

    table = Table(title=title)
    table.add_column("#", style="dim", justify="right", no_wrap=True)
    table.add_column("Contributor", style="white")
    table.add_column("Posts", justify="right")
    table.add_column("Answers", justify="right")
    table.add_column("Accepted", style="green", justify="right")
    table.add_column("Post score", justify="right")
    table.add_column("Answer score", justify="right")
    table.add_column("Total", style="bold cyan", justify="right")
    for rank, row in enumerate(rows, start=1):
        table.add_row(
            str(rank),
            f"{row.display} [dim]({row.owner[:6]}…)[/dim]",
            str(row.posts),
            str(row.answers),
            str(row.accepted),
            str(row.post_score),
            str(row.answer_score),
            str(row.total_score),
        )
    return table
