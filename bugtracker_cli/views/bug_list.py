"""
Bug list view: client-side filtering, status cycling, deletion.

All mutations go through the API; the server's answer is then folded into
the in-memory list so the table never needs a full re-fetch to stay current.
"""

from typing import Any, Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from bugtracker_cli.api import BugTrackerAPI
from bugtracker_cli.storage import LocalStorage

STATUS_FILTERS = ("all", "open", "in-progress", "resolved", "closed")

# Inline status button; anything not listed goes back to open
STATUS_CYCLE = {
    "open": "in-progress",
    "in-progress": "resolved",
}

# Local storage key under which the projects view hands over a bug list
PROJECT_BUGS_KEY = "projectBugs"

STATUS_STYLES = {
    "open": "red",
    "in-progress": "yellow",
    "resolved": "green",
    "closed": "dim",
}

PRIORITY_STYLES = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
}

NO_MATCHES_MESSAGE = "Try adjusting your search or filter criteria"
NO_BUGS_MESSAGE = "No bugs have been reported yet"


def next_status(status: str) -> str:
    return STATUS_CYCLE.get(status, "open")


def filter_bugs(bugs: List[Dict[str, Any]], status_filter: str = "all",
                search: str = "") -> List[Dict[str, Any]]:
    """Status equality (unless "all") and case-insensitive search on title/description"""
    term = (search or "").lower()
    matches = []
    for bug in bugs:
        if status_filter != "all" and bug.get("status") != status_filter:
            continue
        if term and term not in (bug.get("title") or "").lower() \
                and term not in (bug.get("description") or "").lower():
            continue
        matches.append(bug)
    return matches


def empty_message(status_filter: str = "all", search: str = "") -> str:
    if search or status_filter != "all":
        return NO_MATCHES_MESSAGE
    return NO_BUGS_MESSAGE


class BugListView:
    """State and rendering for the bug list"""

    def __init__(
        self,
        api: BugTrackerAPI,
        console: Optional[Console] = None,
        storage: Optional[LocalStorage] = None,
        confirm: Callable[[str], bool] = Confirm.ask,
    ):
        self.api = api
        self.console = console or Console()
        self.storage = storage
        self.confirm = confirm
        self.bugs: List[Dict[str, Any]] = []
        self.source: Optional[str] = None  # project key when showing a handed-off list

    async def refresh(self) -> List[Dict[str, Any]]:
        """Re-fetch the full list from the server"""
        self.bugs = await self.api.list_bugs()
        self.source = None
        return self.bugs

    def load_handoff(self) -> bool:
        """Show the bug list a project handed over instead of the server list"""
        if self.storage is None:
            return False
        handoff = self.storage.get_item(PROJECT_BUGS_KEY)
        if not handoff:
            return False
        self.bugs = list(handoff.get("bugs", []))
        self.source = handoff.get("project")
        return True

    def visible(self, status_filter: str = "all", search: str = "") -> List[Dict[str, Any]]:
        return filter_bugs(self.bugs, status_filter, search)

    def find(self, bug_id: str) -> Optional[Dict[str, Any]]:
        for bug in self.bugs:
            if bug.get("id") == bug_id or bug.get("bugNumber") == bug_id:
                return bug
        return None

    def _replace(self, updated: Dict[str, Any]) -> None:
        self.bugs = [updated if bug.get("id") == updated["id"] else bug for bug in self.bugs]

    async def set_status(self, bug_id: str, status: str) -> Dict[str, Any]:
        updated = await self.api.update_bug(bug_id, {"status": status})
        self._replace(updated)
        return updated

    async def cycle_status(self, bug_id: str) -> Dict[str, Any]:
        """Advance a bug one step through open -> in-progress -> resolved"""
        bug = self.find(bug_id) or await self.api.get_bug(bug_id)
        return await self.set_status(bug["id"], next_status(bug["status"]))

    async def delete(self, bug_id: str, assume_yes: bool = False) -> bool:
        """Delete after confirmation; returns False if the user backed out"""
        if not assume_yes and not self.confirm("Are you sure you want to delete this bug?"):
            return False
        result = await self.api.delete_bug(bug_id)
        deleted_id = result["deletedBug"]["id"]
        self.bugs = [bug for bug in self.bugs if bug.get("id") != deleted_id]
        return True

    def render(self, status_filter: str = "all", search: str = "") -> None:
        bugs = self.visible(status_filter, search)
        if not bugs:
            self.console.print(Panel(
                f"[bold]No bugs found[/bold]\n{escape(empty_message(status_filter, search))}",
                border_style="dim"
            ))
            return

        title = f"{len(bugs)} bug{'' if len(bugs) == 1 else 's'} found"
        if self.source:
            title += f" in project {escape(self.source)}"
        table = Table(title=title, show_lines=False)
        table.add_column("Bug #", style="cyan", no_wrap=True)
        table.add_column("Title")
        table.add_column("Status")
        table.add_column("Priority")
        table.add_column("Severity")
        table.add_column("Reporter")
        table.add_column("Assignee")

        for bug in bugs:
            status = bug.get("status", "")
            priority = bug.get("priority", "")
            table.add_row(
                escape(bug.get("bugNumber", "")),
                escape(bug.get("title", "")),
                f"[{STATUS_STYLES.get(status, 'white')}]{status}[/]",
                f"[{PRIORITY_STYLES.get(priority, 'white')}]{priority}[/]",
                bug.get("severity", ""),
                escape(bug.get("reporter", "")),
                escape(bug.get("assignee") or "-"),
            )
        self.console.print(table)

    def render_detail(self, bug: Dict[str, Any]) -> None:
        lines = [
            f"[bold]{escape(bug.get('title', ''))}[/bold]",
            "",
            escape(bug.get("description", "")),
            "",
            f"[bold]Status:[/bold] {bug.get('status')}   "
            f"[bold]Priority:[/bold] {bug.get('priority')}   "
            f"[bold]Severity:[/bold] {bug.get('severity')}   "
            f"[bold]Type:[/bold] {bug.get('type')}",
            f"[bold]Reporter:[/bold] {escape(bug.get('reporter', ''))}   "
            f"[bold]Assignee:[/bold] {escape(bug.get('assignee') or '-')}",
        ]
        steps = bug.get("stepsToReproduce") or []
        if steps:
            lines.append("")
            lines.append("[bold]Steps to reproduce:[/bold]")
            lines.extend(f"  {i}. {escape(step)}" for i, step in enumerate(steps, 1))
        for label, key in (("Expected", "expectedBehavior"), ("Actual", "actualBehavior")):
            if bug.get(key):
                lines.append(f"[bold]{label}:[/bold] {escape(bug[key])}")
        if bug.get("tags"):
            lines.append(f"[bold]Tags:[/bold] {escape(', '.join(bug['tags']))}")
        environment = bug.get("environment") or {}
        env_parts = [f"{k}={v}" for k, v in environment.items() if v]
        if env_parts:
            lines.append(f"[bold]Environment:[/bold] {escape(', '.join(env_parts))}")
        lines.append(f"[dim]Created {bug.get('createdAt', '')} - updated {bug.get('updatedAt', '')}[/dim]")

        self.console.print(Panel("\n".join(lines), title=escape(bug.get("bugNumber", "")), border_style="cyan"))
