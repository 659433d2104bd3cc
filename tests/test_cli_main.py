import pytest

from bugtracker_cli.main import CLIContext, create_parser, run_command


@pytest.fixture
def ctx(cli_config, console, storage, auth_manager) -> CLIContext:
    return CLIContext(
        config=cli_config,
        console=console,
        storage=storage,
        auth=auth_manager,
        confirm=lambda prompt: True,
    )


async def run(ctx, *argv) -> int:
    return await run_command(create_parser().parse_args(list(argv)), ctx)


class TestParser:
    """Argument parsing"""

    def test_bug_subcommands(self):
        args = create_parser().parse_args(["bugs", "list", "--status", "open", "--search", "login"])

        assert args.command == "bugs"
        assert args.bugs_command == "list"
        assert args.status == "open"

    def test_unknown_status_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["bugs", "list", "--status", "wontfix"])


@pytest.mark.asyncio
async def test_register_create_cycle_delete(ctx):
    """Test a full session through the command handlers"""
    assert await run(ctx, "register", "--username", "jdev", "--email", "j@example.com",
                     "--password", "secret123", "--first-name", "John", "--last-name", "Dev") == 0

    assert await run(ctx, "bugs", "create", "--title", "Crash on save", "--description",
                     "Every time", "--priority", "high", "--step", "Open", "--step", "Save") == 0

    async with ctx.auth.api() as api:
        bug = (await api.list_bugs())[0]
    assert bug["reporter"] == "jdev"
    assert bug["stepsToReproduce"] == ["Open", "Save"]

    assert await run(ctx, "bugs", "cycle", bug["id"]) == 0
    assert await run(ctx, "bugs", "list", "--status", "in-progress") == 0
    assert "Crash on save" in ctx.console.export_text()

    assert await run(ctx, "bugs", "delete", bug["id"]) == 0
    async with ctx.auth.api() as api:
        assert await api.list_bugs() == []


@pytest.mark.asyncio
async def test_search_goes_through_header(ctx, monkeypatch):
    """Test that bugs list --search shows the header and runs its search hook"""
    from bugtracker_cli.views.header import HeaderView

    searched = []
    focus_search = HeaderView.focus_search

    def recording_focus_search(self):
        searched.append(self.on_search is not None)
        focus_search(self)

    monkeypatch.setattr(HeaderView, "focus_search", recording_focus_search)

    await run(ctx, "register", "--username", "jdev", "--email", "j@example.com",
              "--password", "secret123", "--first-name", "John", "--last-name", "Dev")
    await run(ctx, "bugs", "create", "--title", "Crash on save", "--description", "Every time")
    await run(ctx, "bugs", "create", "--title", "Slow export", "--description", "Minutes")

    assert await run(ctx, "bugs", "list", "--search", "crash") == 0

    output = ctx.console.export_text()
    assert searched == [True]
    assert "Bug Tracker" in output
    assert "1 bug found" in output
    assert "Crash on save" in output
    assert "Slow export" not in output


@pytest.mark.asyncio
async def test_api_errors_exit_nonzero(ctx):
    """Test that a 404 is reported instead of raised"""
    assert await run(ctx, "bugs", "show", "missing") == 1
    assert "Bug not found" in ctx.console.export_text()


@pytest.mark.asyncio
async def test_profile_requires_login(ctx):
    assert await run(ctx, "profile", "--first-name", "X") == 1


@pytest.mark.asyncio
async def test_projects_flow(ctx, storage):
    """Test project commands and the hand-off to the bug list"""
    assert await run(ctx, "projects", "create", "--name", "Payments", "--key", "pay") == 0
    assert await run(ctx, "projects", "create", "--name", "Bad", "--key", "TOOLONG") == 1
    assert await run(ctx, "projects", "view-bugs", "WEB", "--status", "open") == 0
    assert await run(ctx, "bugs", "list", "--from-project") == 0

    output = ctx.console.export_text()
    assert "project WEB" in output
    assert "Project key must be exactly 3 letters" in output
