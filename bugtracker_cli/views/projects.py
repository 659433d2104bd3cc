"""
Projects view.

Projects live only on the client: the four demo projects seed the list and
any changes are kept in local storage. Each project's bug list is synthetic,
generated to match its bug count, and can be handed over to the bug list view.
"""

import copy
import re
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bugtracker_cli.storage import LocalStorage
from bugtracker_cli.views.bug_list import PROJECT_BUGS_KEY

PROJECTS_KEY = "projects"

PROJECT_STATUSES = ("active", "in-progress", "completed", "archived")

STATUS_STYLES = {
    "active": "green",
    "in-progress": "blue",
    "completed": "dim",
    "archived": "yellow",
}

KEY_PATTERN = re.compile(r"^[A-Z]{3}$")

CURRENT_USER = "Current User"

SEED_PROJECTS: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Website Redesign",
        "key": "WEB",
        "description": "Complete redesign of the company website with modern UI/UX",
        "status": "active",
        "owner": "John Developer",
        "members": ["John Developer", "Sarah Tester", "Mike Manager"],
        "createdAt": "2024-01-15",
        "bugCount": 12,
    },
    {
        "id": "2",
        "name": "Mobile App",
        "key": "MOB",
        "description": "Native mobile application for iOS and Android",
        "status": "active",
        "owner": "Alice Admin",
        "members": ["Alice Admin", "John Developer"],
        "createdAt": "2024-02-01",
        "bugCount": 8,
    },
    {
        "id": "3",
        "name": "API Development",
        "key": "API",
        "description": "RESTful API development for the backend services",
        "status": "in-progress",
        "owner": "Mike Manager",
        "members": ["Mike Manager", "John Developer"],
        "createdAt": "2024-01-20",
        "bugCount": 5,
    },
    {
        "id": "4",
        "name": "Database Optimization",
        "key": "DB",
        "description": "Performance optimization and database restructuring",
        "status": "completed",
        "owner": "Sarah Tester",
        "members": ["Sarah Tester"],
        "createdAt": "2023-12-10",
        "bugCount": 3,
    },
]

# Rotated through when generating a project's bug list
_BUG_TITLES = (
    "Page fails to load on slow connections",
    "Button misaligned on small screens",
    "Validation message not shown",
    "Session expires too early",
    "Search returns stale results",
    "Export produces empty file",
)
_BUG_STATUSES = ("open", "in-progress", "resolved", "closed")
_BUG_PRIORITIES = ("low", "medium", "high", "critical")
_BUG_SEVERITIES = ("minor", "major", "blocker")


class ProjectValidationError(ValueError):
    """Rejected project form input"""


def normalize_key(key: str) -> str:
    """Upper-case a project key; it must be exactly three letters"""
    key = (key or "").strip().upper()
    if not KEY_PATTERN.match(key):
        raise ProjectValidationError("Project key must be exactly 3 letters")
    return key


def generate_project_bugs(project: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Deterministic demo bugs for a project, one per counted bug"""
    key = project["key"]
    members = project.get("members") or [project.get("owner", CURRENT_USER)]
    bugs = []
    for n in range(1, project.get("bugCount", 0) + 1):
        title = _BUG_TITLES[(n - 1) % len(_BUG_TITLES)]
        bugs.append({
            "id": f"{key}-{n}",
            "bugNumber": f"{key}-{n:03d}",
            "title": f"{title} ({project['name']})",
            "description": f"{title} in {project['name']}.",
            "status": _BUG_STATUSES[(n - 1) % len(_BUG_STATUSES)],
            "priority": _BUG_PRIORITIES[(n - 1) % len(_BUG_PRIORITIES)],
            "severity": _BUG_SEVERITIES[(n - 1) % len(_BUG_SEVERITIES)],
            "type": "bug",
            "reporter": project.get("owner", CURRENT_USER),
            "assignee": members[(n - 1) % len(members)],
            "stepsToReproduce": [],
            "tags": [key.lower()],
            "createdAt": project.get("createdAt"),
            "updatedAt": project.get("createdAt"),
        })
    return bugs


class ProjectsView:
    """State and rendering for the projects list"""

    def __init__(self, storage: Optional[LocalStorage] = None, console: Optional[Console] = None):
        self.storage = storage
        self.console = console or Console()
        stored = storage.get_item(PROJECTS_KEY) if storage else None
        self.projects: List[Dict[str, Any]] = stored if stored is not None else copy.deepcopy(SEED_PROJECTS)

    def _save(self) -> None:
        if self.storage:
            self.storage.set_item(PROJECTS_KEY, self.projects)

    def get(self, ref: str) -> Dict[str, Any]:
        """Look a project up by id or (case-insensitive) key"""
        for project in self.projects:
            if project["id"] == ref or project["key"] == ref.upper():
                return project
        raise ProjectValidationError(f"Project not found: {ref}")

    def _check_key_free(self, key: str, exclude_id: Optional[str] = None) -> None:
        for project in self.projects:
            if project["key"] == key and project["id"] != exclude_id:
                raise ProjectValidationError(f"Project key {key} is already in use")

    def create(self, name: str, key: str, description: str = "", status: str = "active") -> Dict[str, Any]:
        """Add a project owned by the current user at the top of the list"""
        name = (name or "").strip()
        if not name:
            raise ProjectValidationError("Project name is required")
        key = normalize_key(key)
        self._check_key_free(key)
        if status not in PROJECT_STATUSES:
            raise ProjectValidationError(f"Status must be one of: {', '.join(PROJECT_STATUSES)}")

        project = {
            "id": uuid.uuid4().hex,
            "name": name,
            "key": key,
            "description": (description or "").strip(),
            "status": status,
            "owner": CURRENT_USER,
            "members": [CURRENT_USER],
            "createdAt": date.today().isoformat(),
            "bugCount": 0,
        }
        self.projects = [project] + self.projects
        self._save()
        return project

    def edit(self, ref: str, **changes) -> Dict[str, Any]:
        """Change name, key, description or status of an existing project"""
        project = self.get(ref)
        updated = dict(project)

        if changes.get("name") is not None:
            name = changes["name"].strip()
            if not name:
                raise ProjectValidationError("Project name is required")
            updated["name"] = name
        if changes.get("key") is not None:
            updated["key"] = normalize_key(changes["key"])
            self._check_key_free(updated["key"], exclude_id=project["id"])
        if changes.get("description") is not None:
            updated["description"] = changes["description"].strip()
        if changes.get("status") is not None:
            if changes["status"] not in PROJECT_STATUSES:
                raise ProjectValidationError(f"Status must be one of: {', '.join(PROJECT_STATUSES)}")
            updated["status"] = changes["status"]

        self.projects = [updated if p["id"] == project["id"] else p for p in self.projects]
        self._save()
        return updated

    def delete(self, ref: str) -> Dict[str, Any]:
        project = self.get(ref)
        self.projects = [p for p in self.projects if p["id"] != project["id"]]
        self._save()
        return project

    def bugs_for(self, ref: str) -> List[Dict[str, Any]]:
        return generate_project_bugs(self.get(ref))

    def hand_off_bugs(self, ref: str) -> List[Dict[str, Any]]:
        """Store a project's bug list where the bug list view will pick it up"""
        project = self.get(ref)
        bugs = generate_project_bugs(project)
        if self.storage:
            self.storage.set_item(PROJECT_BUGS_KEY, {"project": project["key"], "bugs": bugs})
        return bugs

    def reset(self) -> None:
        """Back to the demo projects"""
        self.projects = copy.deepcopy(SEED_PROJECTS)
        self._save()

    def render(self) -> None:
        table = Table(title="Projects")
        table.add_column("ID", style="dim")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Name", style="bold")
        table.add_column("Status")
        table.add_column("Owner")
        table.add_column("Members", justify="right")
        table.add_column("Bugs", justify="right")
        table.add_column("Created")

        for project in self.projects:
            status = project["status"]
            table.add_row(
                project["id"],
                project["key"],
                escape(project["name"]),
                f"[{STATUS_STYLES.get(status, 'white')}]{status}[/]",
                escape(project["owner"]),
                str(len(project.get("members", []))),
                str(project.get("bugCount", 0)),
                project.get("createdAt", ""),
            )
        self.console.print(table)
