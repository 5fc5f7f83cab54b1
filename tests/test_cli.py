"""
CLI smoke tests (no network).
"""

import pytest
from rich.console import Console
from typer.testing import CliRunner

from cli.main import app
from cli.ui_components import build_answers_panel, build_attempt_trail_panel, build_leaderboard_table
from core.domain.models import Answer, AttemptTrail, OperationCandidate, Post
from core.services.leaderboard import build_rows

runner = CliRunner()


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Keep ./.env and the user config .env out of the CLI's settings.

    Both dotenv paths are fixed at import time, so the credentials are
    overridden through the environment, which takes precedence over them.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("COMMUNITY_DRAFTS_DIR", str(tmp_path / "drafts"))
    monkeypatch.setenv("COMMUNITY_USER_POOL_TOKEN", "")
    monkeypatch.setenv("COMMUNITY_USER_ID", "")
    return tmp_path


def test_slug_preview():
    result = runner.invoke(app, ["slug", "How do you handle steep driveways for guests?"])
    assert result.exit_code == 0
    assert "how-do-you-handle-steep-driveways-for-guests" in result.output


def test_ask_rejects_invalid_draft_before_network(isolated_env):
    result = runner.invoke(app, ["ask", "--title", "", "--body", "details"])
    assert result.exit_code == 2
    assert "Title is required" in result.output


def test_ask_without_sign_in_points_to_signin(isolated_env):
    (isolated_env / ".env").write_text("COMMUNITY_USER_POOL_TOKEN=from-dotenv\nCOMMUNITY_USER_ID=u-dotenv\n")
    result = runner.invoke(app, ["ask", "--title", "Hello", "--body", "details"])
    assert result.exit_code == 3
    assert "/signin?next=%2Fcommunity%2Fask" in result.output


def test_attempt_trail_panel_lists_every_attempt():
    trail = AttemptTrail()
    trail.record_failure(OperationCandidate(operation_id="createA", payload_field_key="contentMD"), "FieldUndefined")
    trail.record_failure(OperationCandidate(operation_id="createB", payload_field_key="body"), "No payload from createB")

    panel = build_attempt_trail_panel(trail, hint="Set COMMUNITY_CREATE_MUTATION_KEY")

    assert panel.title == "Setup needed"


def test_leaderboard_table_ranks_rows_in_order():
    rows = build_rows(
        [Post(id="p1", owner="alice-1", title="a", score=2)],
        [Answer(id="a1", owner="bob-22", score=7, isAccepted=True)],
    )
    console = Console(record=True, width=140)

    console.print(build_leaderboard_table(rows))
    text = console.export_text()

    assert build_leaderboard_table(rows).row_count == 2
    assert text.index("user_bob-22") < text.index("user_alice-")
    assert "Community leaderboard" in text


def test_answers_panel_marks_accepted_answer():
    answers = [
        Answer(id="a1", contentMD="Use gravel", isAccepted=True),
        Answer(id="a2", contentMD="Salt it"),
    ]
    console = Console(record=True, width=100)

    panel = build_answers_panel(answers)
    console.print(panel)
    text = console.export_text()

    assert panel.title == "Answers (2)"
    assert "Accepted" in text
    assert text.index("Use gravel") < text.index("Salt it")
