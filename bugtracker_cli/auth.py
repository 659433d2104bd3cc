"""
Bug Tracker CLI Authentication
==============================

  bugtracker login        Interactive login
  bugtracker register     Create an account
  bugtracker logout       Forget the stored token
  bugtracker whoami       Show current user
  bugtracker profile      Update profile fields
  bugtracker password     Change password

The token returned by the API is stored in ~/.bugtracker/credentials.json and
sent as a bearer token on every later request.
"""

import json
import os
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from bugtracker_cli.api import APIError, BugTrackerAPI
from bugtracker_cli.config import CLIConfig

ROLES = ["reporter", "developer", "tester", "manager", "admin"]

# credentials field -> key in the API's public user shape
_USER_KEYS = {
    "user_id": "id",
    "username": "username",
    "email": "email",
    "first_name": "firstName",
    "last_name": "lastName",
    "role": "role",
    "avatar": "avatar",
}


@dataclass
class UserCredentials:
    """Signed-in user plus the bearer token the API issued"""
    user_id: str
    username: str
    email: str
    first_name: str
    last_name: str
    access_token: str
    role: str = "reporter"
    avatar: Optional[str] = None
    last_login: str = ""

    @classmethod
    def from_user(cls, user: Dict[str, Any], token: str) -> "UserCredentials":
        values = {attr: user.get(key) for attr, key in _USER_KEYS.items()}
        values["user_id"] = str(values["user_id"] or "")
        for attr in ("username", "email", "first_name", "last_name"):
            values[attr] = values[attr] or ""
        values["role"] = values["role"] or "reporter"
        return cls(access_token=token, last_login=datetime.now().isoformat(), **values)

    @property
    def display_name(self) -> str:
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or self.username

    def to_user(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _USER_KEYS.items()}


class CLIAuthManager:
    """
    Owns the stored session for the CLI.

    ``api_factory`` builds a ``BugTrackerAPI`` for a token (or None); tests
    pass one wired to an in-process transport.
    """

    def __init__(
        self,
        config: CLIConfig,
        console: Optional[Console] = None,
        api_factory: Optional[Callable[[Optional[str]], BugTrackerAPI]] = None,
    ):
        self.config = config
        self.console = console or Console()
        self.credentials_file = Path(config.credentials_file)
        self._api_factory = api_factory or self._default_api_factory
        self.credentials: Optional[UserCredentials] = self._read_credentials()

    def _default_api_factory(self, token: Optional[str]) -> BugTrackerAPI:
        return BugTrackerAPI(self.config.api_base_url, token=token, timeout=self.config.timeout)

    def api(self) -> BugTrackerAPI:
        """API client carrying the stored token, if any"""
        return self._api_factory(self.credentials.access_token if self.credentials else None)

    # --- persistence ---

    def _read_credentials(self) -> Optional[UserCredentials]:
        if not self.credentials_file.is_file():
            return None
        try:
            data = json.loads(self.credentials_file.read_text())
            known = {f.name for f in fields(UserCredentials)}
            return UserCredentials(**{k: v for k, v in data.items() if k in known})
        except (json.JSONDecodeError, TypeError) as e:
            self.console.print(f"[yellow]Ignoring unreadable credentials file: {escape(str(e))}[/yellow]")
            return None

    def _write_credentials(self) -> None:
        self.credentials_file.parent.mkdir(parents=True, exist_ok=True)
        self.credentials_file.write_text(json.dumps(asdict(self.credentials), indent=2))
        if os.name == "posix":
            os.chmod(self.credentials_file, 0o600)

    def _forget_credentials(self) -> None:
        self.credentials = None
        self.credentials_file.unlink(missing_ok=True)

    def _adopt(self, user: Dict[str, Any], token: str) -> UserCredentials:
        self.credentials = UserCredentials.from_user(user, token)
        self._write_credentials()
        return self.credentials

    # --- session state ---

    def is_authenticated(self) -> bool:
        return self.credentials is not None and bool(self.credentials.access_token)

    def get_auth_headers(self) -> Dict[str, str]:
        if not self.is_authenticated():
            return {}
        return {"Authorization": f"Bearer {self.credentials.access_token}"}

    # --- API-backed operations (raise APIError) ---

    async def login(self, email: str, password: str) -> UserCredentials:
        async with self._api_factory(None) as api:
            data = await api.login(email, password)
        return self._adopt(data["user"], data["token"])

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Optional[str] = None,
    ) -> UserCredentials:
        """Create the account and keep the session the API returns"""
        async with self._api_factory(None) as api:
            data = await api.register(username, email, password, first_name, last_name, role)
        return self._adopt(data["user"], data["token"])

    async def refresh_user(self) -> Optional[UserCredentials]:
        """
        Re-fetch the profile for the stored token.

        A 401 means the token is no longer usable; the stored credentials are
        dropped and None is returned.
        """
        if not self.is_authenticated():
            return None
        token = self.credentials.access_token
        try:
            async with self.api() as api:
                data = await api.get_me()
        except APIError as e:
            if e.status_code != 401:
                raise
            self._forget_credentials()
            return None
        return self._adopt(data["user"], token)

    async def update_profile(self, **changes) -> UserCredentials:
        """``changes`` use the API's camelCase keys"""
        token = self.credentials.access_token
        async with self.api() as api:
            data = await api.update_profile(**changes)
        return self._adopt(data["user"], token)

    async def change_password(self, current_password: str, new_password: str) -> str:
        async with self.api() as api:
            data = await api.change_password(current_password, new_password)
        return data["message"]

    def logout(self):
        self._forget_credentials()
        self.console.print("[green]Signed out[/green]")

    # --- prompts ---

    async def interactive_login(self) -> bool:
        self.console.print(Panel(
            "[bold cyan]Sign in to Bug Tracker[/bold cyan]\n"
            "New here? Run [cyan]bugtracker register[/cyan] first.",
            border_style="cyan",
        ))
        email = Prompt.ask("Email")
        password = Prompt.ask("Password", password=True)
        try:
            await self.login(email, password)
        except APIError as e:
            self.console.print(f"[red]Login failed: {escape(str(e))}[/red]")
            return False
        return True

    async def interactive_register(self) -> bool:
        self.console.print(Panel("[bold cyan]Create a Bug Tracker account[/bold cyan]", border_style="cyan"))
        answers = {
            "username": Prompt.ask("Username"),
            "email": Prompt.ask("Email"),
            "first_name": Prompt.ask("First name"),
            "last_name": Prompt.ask("Last name"),
            "password": Prompt.ask("Password (min 6 characters)", password=True),
            "role": Prompt.ask("Role", choices=ROLES, default="reporter"),
        }
        try:
            await self.register(**answers)
        except APIError as e:
            self.console.print(f"[red]Registration failed: {escape(str(e))}[/red]")
            return False
        return True

    def show_status(self):
        if not self.is_authenticated():
            self.console.print(Panel(
                "[red]Not signed in[/red]\n\n"
                "[cyan]bugtracker login[/cyan] or [cyan]bugtracker register[/cyan]",
                title="Session",
                border_style="red",
            ))
            return
        creds = self.credentials
        self.console.print(Panel(
            f"[bold]{escape(creds.display_name)}[/bold] (@{escape(creds.username)})\n"
            f"{escape(creds.email)}\n"
            f"Role: {creds.role}",
            title="Session",
            border_style="green",
        ))
