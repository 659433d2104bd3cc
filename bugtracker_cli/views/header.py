"""Header: user menu, avatar initials, search hook, sign out"""

from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

MENU_ITEMS = ("Your Profile", "Sign out")


def initials(user: Optional[Dict[str, Any]]) -> str:
    """Avatar fallback: first letters of first and last name, upper-cased"""
    if not user:
        return ""
    first = (user.get("firstName") or "")[:1]
    last = (user.get("lastName") or "")[:1]
    return f"{first}{last}".upper()


class HeaderView:
    """
    Top bar of the client.

    ``on_search`` is called when the user enters search; ``on_logout`` after
    the stored session has been cleared.
    """

    def __init__(
        self,
        auth_manager,
        console: Optional[Console] = None,
        on_search: Optional[Callable[[], None]] = None,
        on_logout: Optional[Callable[[], None]] = None,
    ):
        self.auth_manager = auth_manager
        self.console = console or Console()
        self.on_search = on_search
        self.on_logout = on_logout

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        creds = self.auth_manager.credentials
        return creds.to_user() if creds else None

    def avatar(self) -> str:
        user = self.user
        if not user:
            return ""
        return user.get("avatar") or initials(user)

    def focus_search(self) -> None:
        if self.on_search:
            self.on_search()

    def select(self, item: str) -> None:
        """Handle a user menu choice"""
        if item == "Your Profile":
            self.render_profile()
        elif item == "Sign out":
            self.auth_manager.logout()
            if self.on_logout:
                self.on_logout()
        else:
            raise ValueError(f"Unknown menu item: {item}")

    def render(self) -> None:
        user = self.user
        if user:
            who = f"[bold]{escape(user['firstName'])} {escape(user['lastName'])}[/bold] [dim]{user['role']}[/dim]"
            badge = f"[reverse] {escape(initials(user))} [/reverse]"
            menu = "  ".join(f"[cyan]{item}[/cyan]" for item in MENU_ITEMS)
            body = f"{badge} {who}\n{menu}"
        else:
            body = "[dim]Not signed in[/dim]"
        self.console.print(Panel(body, title="Bug Tracker", border_style="blue"))

    def render_profile(self) -> None:
        user = self.user
        if not user:
            self.console.print("[red]Not signed in[/red]")
            return
        self.console.print(Panel(
            f"[bold]Name:[/bold] {escape(user['firstName'])} {escape(user['lastName'])}\n"
            f"[bold]Username:[/bold] {escape(user['username'])}\n"
            f"[bold]Email:[/bold] {escape(user['email'])}\n"
            f"[bold]Role:[/bold] {user['role']}\n"
            f"[bold]Avatar:[/bold] {escape(user.get('avatar') or initials(user))}",
            title="Your Profile",
            border_style="cyan"
        ))
