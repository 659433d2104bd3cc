#!/usr/bin/env python3
"""
Bug Tracker CLI - Main Entry Point

Usage:
    bugtracker login                       # Interactive login
    bugtracker bugs list --status open     # List open bugs
    bugtracker bugs create --title ...     # Report a bug
    bugtracker projects list               # Demo projects
    bugtracker --help                      # Show help
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from bugtracker_cli.api import APIError, BugTrackerAPI
from bugtracker_cli.auth import CLIAuthManager
from bugtracker_cli.config import CLIConfig
from bugtracker_cli.storage import LocalStorage
from bugtracker_cli.views.bug_list import BugListView, STATUS_FILTERS
from bugtracker_cli.views.header import HeaderView
from bugtracker_cli.views.projects import PROJECT_STATUSES, ProjectsView, ProjectValidationError

BUG_STATUSES = ("open", "in-progress", "resolved", "closed")
BUG_PRIORITIES = ("low", "medium", "high", "critical")
BUG_SEVERITIES = ("minor", "major", "blocker")
BUG_TYPES = ("bug", "feature", "enhancement", "task")


@dataclass
class CLIContext:
    """Everything a command handler needs"""
    config: CLIConfig
    console: Console
    storage: LocalStorage
    auth: CLIAuthManager
    confirm: Callable[[str], bool] = Confirm.ask

    def header(self, on_search: Optional[Callable[[], None]] = None) -> HeaderView:
        return HeaderView(self.auth, self.console, on_search=on_search)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="bugtracker",
        description="Bug Tracker - report and track bugs from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bugtracker register                          Create an account
  bugtracker login                             Login to your account
  bugtracker bugs list --status open           Open bugs
  bugtracker bugs list --search login          Bugs mentioning "login"
  bugtracker bugs create --title "Crash" --description "On save"
  bugtracker bugs cycle <id>                   open -> in-progress -> resolved
  bugtracker projects view-bugs WEB            Browse a project's bugs
        """
    )

    parser.add_argument("--server-url", type=str, help="Backend API URL (default: http://localhost:5000/api)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version="%(prog)s 1.0.0")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Auth commands
    login_parser = subparsers.add_parser("login", help="Login to Bug Tracker")
    login_parser.add_argument("--email", "-e")
    login_parser.add_argument("--password", "-p")

    register_parser = subparsers.add_parser("register", help="Create an account")
    register_parser.add_argument("--username")
    register_parser.add_argument("--email")
    register_parser.add_argument("--password")
    register_parser.add_argument("--first-name")
    register_parser.add_argument("--last-name")
    register_parser.add_argument("--role", choices=["reporter", "developer", "tester", "manager", "admin"])

    subparsers.add_parser("logout", help="Sign out")

    whoami_parser = subparsers.add_parser("whoami", help="Show current user info")
    whoami_parser.add_argument("--refresh", action="store_true", help="Re-fetch profile from the server")

    profile_parser = subparsers.add_parser("profile", help="Show or update your profile")
    profile_parser.add_argument("--first-name")
    profile_parser.add_argument("--last-name")
    profile_parser.add_argument("--username")
    profile_parser.add_argument("--email")
    profile_parser.add_argument("--avatar")

    password_parser = subparsers.add_parser("password", help="Change your password")
    password_parser.add_argument("--current")
    password_parser.add_argument("--new")

    # Bugs
    bugs_parser = subparsers.add_parser("bugs", help="Work with bugs")
    bugs_sub = bugs_parser.add_subparsers(dest="bugs_command", required=True)

    list_parser = bugs_sub.add_parser("list", help="List bugs")
    list_parser.add_argument("--status", choices=STATUS_FILTERS, default="all")
    list_parser.add_argument("--priority", choices=BUG_PRIORITIES, help="Server-side priority filter")
    list_parser.add_argument("--search", "-s", default="", help="Match title or description")
    list_parser.add_argument("--from-project", action="store_true",
                             help="Show the bug list last handed over by 'projects view-bugs'")

    show_parser = bugs_sub.add_parser("show", help="Show one bug")
    show_parser.add_argument("bug_id")

    create_parser_ = bugs_sub.add_parser("create", help="Report a bug")
    create_parser_.add_argument("--title", "-t")
    create_parser_.add_argument("--description", "-d")
    create_parser_.add_argument("--priority", choices=BUG_PRIORITIES)
    create_parser_.add_argument("--severity", choices=BUG_SEVERITIES)
    create_parser_.add_argument("--type", dest="bug_type", choices=BUG_TYPES)
    create_parser_.add_argument("--step", action="append", dest="steps", help="Repeat for each step")
    create_parser_.add_argument("--tag", action="append", dest="tags", help="Repeat for each tag")
    create_parser_.add_argument("--expected")
    create_parser_.add_argument("--actual")
    create_parser_.add_argument("--reporter")
    create_parser_.add_argument("--assignee")
    create_parser_.add_argument("--os")
    create_parser_.add_argument("--browser")

    update_parser = bugs_sub.add_parser("update", help="Edit a bug")
    update_parser.add_argument("bug_id")
    update_parser.add_argument("--title")
    update_parser.add_argument("--description")
    update_parser.add_argument("--status", choices=BUG_STATUSES)
    update_parser.add_argument("--priority", choices=BUG_PRIORITIES)
    update_parser.add_argument("--severity", choices=BUG_SEVERITIES)
    update_parser.add_argument("--type", dest="bug_type", choices=BUG_TYPES)
    update_parser.add_argument("--assignee")
    update_parser.add_argument("--reporter")

    cycle_parser = bugs_sub.add_parser("cycle", help="Advance status: open -> in-progress -> resolved")
    cycle_parser.add_argument("bug_id")

    delete_parser = bugs_sub.add_parser("delete", help="Delete a bug")
    delete_parser.add_argument("bug_id")
    delete_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    # Projects
    projects_parser = subparsers.add_parser("projects", help="Demo projects (stored locally)")
    projects_sub = projects_parser.add_subparsers(dest="projects_command", required=True)

    projects_sub.add_parser("list", help="List projects")

    pcreate = projects_sub.add_parser("create", help="Create a project")
    pcreate.add_argument("--name")
    pcreate.add_argument("--key", help="Exactly 3 letters")
    pcreate.add_argument("--description", default="")
    pcreate.add_argument("--status", choices=PROJECT_STATUSES, default="active")

    pedit = projects_sub.add_parser("edit", help="Edit a project")
    pedit.add_argument("project")
    pedit.add_argument("--name")
    pedit.add_argument("--key")
    pedit.add_argument("--description")
    pedit.add_argument("--status", choices=PROJECT_STATUSES)

    pdelete = projects_sub.add_parser("delete", help="Delete a project")
    pdelete.add_argument("project")
    pdelete.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")

    pview = projects_sub.add_parser("view-bugs", help="Show a project's bugs in the bug list")
    pview.add_argument("project")
    pview.add_argument("--status", choices=STATUS_FILTERS, default="all")
    pview.add_argument("--search", "-s", default="")

    projects_sub.add_parser("reset", help="Restore the demo projects")

    return parser


# ==================== Auth commands ====================

async def cmd_login(args, ctx: CLIContext) -> int:
    if args.email and args.password:
        try:
            await ctx.auth.login(args.email, args.password)
            success = True
        except APIError as e:
            ctx.console.print(f"[red]Login failed: {escape(str(e))}[/red]")
            success = False
    else:
        success = await ctx.auth.interactive_login()

    if success:
        ctx.console.print("\n[green]✓ Login successful![/green]")
        ctx.console.print(f"Welcome, [bold]{escape(ctx.auth.credentials.display_name)}[/bold]!")
    return 0 if success else 1


async def cmd_register(args, ctx: CLIContext) -> int:
    fields = (args.username, args.email, args.password, args.first_name, args.last_name)
    if all(fields):
        try:
            await ctx.auth.register(*fields, role=args.role)
            success = True
        except APIError as e:
            ctx.console.print(f"[red]Registration failed: {escape(str(e))}[/red]")
            success = False
    else:
        success = await ctx.auth.interactive_register()

    if success:
        ctx.console.print("\n[green]✓ Account created![/green]")
        ctx.console.print(f"Welcome, [bold]{escape(ctx.auth.credentials.display_name)}[/bold]!")
    return 0 if success else 1


async def cmd_logout(args, ctx: CLIContext) -> int:
    ctx.header().select("Sign out")
    return 0


def _require_login(ctx: CLIContext) -> bool:
    if ctx.auth.is_authenticated():
        return True
    ctx.console.print("\n[red]✗ Authentication required[/red]")
    ctx.console.print("Please login first: [cyan]bugtracker login[/cyan]")
    return False


async def cmd_whoami(args, ctx: CLIContext) -> int:
    if args.refresh and ctx.auth.is_authenticated():
        if await ctx.auth.refresh_user() is None:
            ctx.console.print("[yellow]Session expired. Please login again.[/yellow]")
    ctx.header().render()
    ctx.auth.show_status()
    return 0


async def cmd_profile(args, ctx: CLIContext) -> int:
    if not _require_login(ctx):
        return 1

    changes = {
        "firstName": args.first_name,
        "lastName": args.last_name,
        "username": args.username,
        "email": args.email,
        "avatar": args.avatar,
    }
    changes = {key: value for key, value in changes.items() if value}
    if changes:
        await ctx.auth.update_profile(**changes)
        ctx.console.print("[green]Profile updated successfully[/green]")

    ctx.header().select("Your Profile")
    return 0


async def cmd_password(args, ctx: CLIContext) -> int:
    if not _require_login(ctx):
        return 1

    current = args.current or Prompt.ask("Current password", password=True)
    new = args.new or Prompt.ask("New password (min 6 characters)", password=True)
    message = await ctx.auth.change_password(current, new)
    ctx.console.print(f"[green]{escape(message)}[/green]")
    return 0


# ==================== Bug commands ====================

async def cmd_bugs(args, ctx: CLIContext) -> int:
    async with ctx.auth.api() as api:
        view = BugListView(api, ctx.console, ctx.storage, confirm=ctx.confirm)
        command = args.bugs_command

        if command == "list":
            if args.from_project:
                if not view.load_handoff():
                    ctx.console.print("[yellow]No project bug list to show. "
                                      "Run 'bugtracker projects view-bugs <project>' first.[/yellow]")
                    return 1
            else:
                view.bugs = await api.list_bugs(priority=args.priority)
            if args.search:
                # Search is entered from the header bar
                header = ctx.header(on_search=lambda: view.render(args.status, args.search))
                header.render()
                header.focus_search()
            else:
                view.render(args.status, args.search)

        elif command == "show":
            view.render_detail(await api.get_bug(args.bug_id))

        elif command == "create":
            bug = {
                "title": args.title or Prompt.ask("Title"),
                "description": args.description or Prompt.ask("Description"),
            }
            optional = {
                "priority": args.priority,
                "severity": args.severity,
                "type": args.bug_type,
                "stepsToReproduce": args.steps,
                "tags": args.tags,
                "expectedBehavior": args.expected,
                "actualBehavior": args.actual,
                "reporter": args.reporter,
                "assignee": args.assignee,
            }
            bug.update({key: value for key, value in optional.items() if value})
            environment = {key: value for key, value in (("os", args.os), ("browser", args.browser)) if value}
            if environment:
                bug["environment"] = environment

            created = await api.create_bug(bug)
            ctx.console.print(f"[green]✓ Created {escape(created['bugNumber'])}[/green] [dim]({created['id']})[/dim]")

        elif command == "update":
            changes = {
                "title": args.title,
                "description": args.description,
                "status": args.status,
                "priority": args.priority,
                "severity": args.severity,
                "type": args.bug_type,
                "assignee": args.assignee,
                "reporter": args.reporter,
            }
            changes = {key: value for key, value in changes.items() if value is not None}
            if not changes:
                ctx.console.print("[yellow]Nothing to update[/yellow]")
                return 1
            updated = await api.update_bug(args.bug_id, changes)
            view.render_detail(updated)

        elif command == "cycle":
            updated = await view.cycle_status(args.bug_id)
            ctx.console.print(f"{escape(updated['bugNumber'])} is now [bold]{updated['status']}[/bold]")

        elif command == "delete":
            if await view.delete(args.bug_id, assume_yes=args.yes):
                ctx.console.print("[green]Bug deleted successfully[/green]")
            else:
                ctx.console.print("[dim]Cancelled[/dim]")

    return 0


# ==================== Project commands ====================

async def cmd_projects(args, ctx: CLIContext) -> int:
    view = ProjectsView(ctx.storage, ctx.console)
    command = args.projects_command

    if command == "list":
        view.render()

    elif command == "create":
        project = view.create(
            name=args.name or Prompt.ask("Project name"),
            key=args.key or Prompt.ask("Project key (3 letters)"),
            description=args.description,
            status=args.status,
        )
        ctx.console.print(f"[green]✓ Created project {project['key']}[/green] - {escape(project['name'])}")

    elif command == "edit":
        project = view.edit(
            args.project, name=args.name, key=args.key,
            description=args.description, status=args.status,
        )
        ctx.console.print(f"[green]✓ Updated project {project['key']}[/green]")

    elif command == "delete":
        project = view.get(args.project)
        if not args.yes and not ctx.confirm(f"Delete project {escape(project['name'])}?"):
            ctx.console.print("[dim]Cancelled[/dim]")
            return 0
        view.delete(args.project)
        ctx.console.print(f"[green]✓ Deleted project {project['key']}[/green]")

    elif command == "view-bugs":
        view.hand_off_bugs(args.project)
        bug_view = BugListView(api=None, console=ctx.console, storage=ctx.storage)
        bug_view.load_handoff()
        bug_view.render(args.status, args.search)

    elif command == "reset":
        view.reset()
        ctx.console.print("[green]✓ Demo projects restored[/green]")

    return 0


COMMANDS = {
    "login": cmd_login,
    "register": cmd_register,
    "logout": cmd_logout,
    "whoami": cmd_whoami,
    "profile": cmd_profile,
    "password": cmd_password,
    "bugs": cmd_bugs,
    "projects": cmd_projects,
}


async def run_command(args, ctx: CLIContext) -> int:
    """Dispatch parsed arguments; API and form errors become exit code 1"""
    try:
        return await COMMANDS[args.command](args, ctx)
    except APIError as e:
        ctx.console.print(f"\n[red]✗ {escape(str(e))}[/red]")
        if e.status_code == 401:
            ctx.console.print("Please login again: [cyan]bugtracker login[/cyan]")
        return 1
    except ProjectValidationError as e:
        ctx.console.print(f"\n[red]✗ {escape(str(e))}[/red]")
        return 1


def build_context(args, console: Optional[Console] = None) -> CLIContext:
    config = CLIConfig.load_default()
    if args.server_url:
        config.api_base_url = args.server_url
    if args.verbose:
        config.verbose = True

    console = console or Console()
    return CLIContext(
        config=config,
        console=console,
        storage=LocalStorage(config.storage_file),
        auth=CLIAuthManager(config, console),
    )


def main(argv: Optional[List[str]] = None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    ctx = build_context(args)

    try:
        sys.exit(asyncio.run(run_command(args, ctx)))
    except KeyboardInterrupt:
        print("\n\nGoodbye! 👋")
        sys.exit(0)
    except Exception as e:
        if ctx.config.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(f"\n❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
