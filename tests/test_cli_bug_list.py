import pytest

from bugtracker_cli.views.bug_list import (
    BugListView,
    NO_BUGS_MESSAGE,
    NO_MATCHES_MESSAGE,
    PROJECT_BUGS_KEY,
    empty_message,
    filter_bugs,
    next_status,
)

BUGS = [
    {"id": "1", "title": "Login broken", "description": "500 error", "status": "open"},
    {"id": "2", "title": "Slow page", "description": "after LOGIN it hangs", "status": "in-progress"},
    {"id": "3", "title": "Typo", "description": "footer", "status": "resolved"},
    {"id": "4", "title": "Old crash", "description": "gone", "status": "closed"},
]


class TestFiltering:
    """Client-side filter and search"""

    def test_all_returns_everything(self):
        assert filter_bugs(BUGS) == BUGS

    def test_status_filter(self):
        assert [b["id"] for b in filter_bugs(BUGS, "in-progress")] == ["2"]

    def test_search_title_or_description(self):
        assert [b["id"] for b in filter_bugs(BUGS, search="login")] == ["1", "2"]

    def test_status_and_search_combined(self):
        assert [b["id"] for b in filter_bugs(BUGS, "open", "login")] == ["1"]

    def test_empty_messages(self):
        assert empty_message() == NO_BUGS_MESSAGE
        assert empty_message("open") == NO_MATCHES_MESSAGE
        assert empty_message(search="x") == NO_MATCHES_MESSAGE


class TestStatusCycle:
    """open -> in-progress -> resolved, anything else back to open"""

    def test_cycle(self):
        assert next_status("open") == "in-progress"
        assert next_status("in-progress") == "resolved"
        assert next_status("resolved") == "open"
        assert next_status("closed") == "open"


async def _seed(api):
    first = await api.create_bug({"title": "Login broken", "description": "500 error"})
    second = await api.create_bug({"title": "Slow page", "description": "hangs"})
    return first, second


@pytest.mark.asyncio
async def test_refresh_loads_server_list(api, console):
    """Test refresh pulls the list newest-first"""
    first, second = await _seed(api)
    view = BugListView(api, console)

    await view.refresh()

    assert [b["id"] for b in view.bugs] == [second["id"], first["id"]]


@pytest.mark.asyncio
async def test_cycle_status_updates_local_state(api, console):
    """Test cycling goes through the API and replaces the bug locally"""
    first, _ = await _seed(api)
    view = BugListView(api, console)
    await view.refresh()

    updated = await view.cycle_status(first["id"])
    assert updated["status"] == "in-progress"
    assert view.find(first["id"])["status"] == "in-progress"

    await view.cycle_status(first["id"])
    assert view.find(first["id"])["status"] == "resolved"
    assert (await api.get_bug(first["id"]))["status"] == "resolved"


@pytest.mark.asyncio
async def test_delete_requires_confirmation(api, console):
    """Test that declining the prompt keeps the bug"""
    first, _ = await _seed(api)
    view = BugListView(api, console, confirm=lambda prompt: False)
    await view.refresh()

    assert await view.delete(first["id"]) is False
    assert len(view.bugs) == 2
    assert (await api.get_bug(first["id"]))["id"] == first["id"]


@pytest.mark.asyncio
async def test_delete_removes_from_local_state(api, console):
    """Test that a confirmed delete removes the bug everywhere"""
    first, second = await _seed(api)
    view = BugListView(api, console, confirm=lambda prompt: True)
    await view.refresh()

    assert await view.delete(first["id"]) is True
    assert [b["id"] for b in view.bugs] == [second["id"]]
    assert [b["id"] for b in await api.list_bugs()] == [second["id"]]


def test_load_handoff(storage, console):
    """Test the view shows a handed-over project list instead of the server's"""
    storage.set_item(PROJECT_BUGS_KEY, {"project": "WEB", "bugs": BUGS[:2]})
    view = BugListView(api=None, console=console, storage=storage)

    assert view.load_handoff() is True
    assert view.source == "WEB"
    assert view.bugs == BUGS[:2]


def test_load_handoff_without_data(storage, console):
    view = BugListView(api=None, console=console, storage=storage)

    assert view.load_handoff() is False


def test_render_empty_states(console):
    """Test the two empty-state messages"""
    view = BugListView(api=None, console=console)

    view.render()
    view.render("open")
    output = console.export_text()

    assert NO_BUGS_MESSAGE in output
    assert NO_MATCHES_MESSAGE in output


def test_render_table(console):
    view = BugListView(api=None, console=console)
    view.bugs = [dict(bug, bugNumber=f"BUG-{bug['id']}", priority="high") for bug in BUGS]

    view.render(search="login")
    output = console.export_text()

    assert "2 bugs found" in output
    assert "BUG-1" in output
    assert "BUG-3" not in output


def test_render_keeps_bracketed_text(console):
    """Test that square brackets in bug text are shown as typed"""
    bug = {
        "id": "9",
        "bugNumber": "BUG-9",
        "title": "Crash on [/api] route",
        "description": "Response body shows [bold]raw[/bold] tags",
        "status": "open",
        "priority": "high",
        "reporter": "[qa]",
        "stepsToReproduce": ["Open [/settings]"],
        "tags": ["[ui]"],
    }
    view = BugListView(api=None, console=console)
    view.bugs = [bug]

    view.render()
    view.render_detail(bug)
    view.render(search="[nothing]")
    output = console.export_text()

    assert output.count("Crash on [/api] route") == 2
    assert "[bold]raw[/bold]" in output
    assert "Open [/settings]" in output
    assert "[qa]" in output
    assert "[ui]" in output
