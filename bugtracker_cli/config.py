"""
Bug Tracker CLI settings.

Precedence, lowest first: dataclass defaults, ``<config_dir>/config.json``,
``BUGTRACKER_*`` environment variables.
"""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

CONFIG_FILENAME = "config.json"


def _default_config_dir() -> str:
    return str(Path.home() / ".bugtracker")


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# env var -> (attribute, converter)
ENV_OVERRIDES: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "BUGTRACKER_API_URL": ("api_base_url", str),
    "BUGTRACKER_TIMEOUT": ("timeout", int),
    "BUGTRACKER_VERBOSE": ("verbose", _truthy),
}


@dataclass
class CLIConfig:
    api_base_url: str = "http://localhost:5000/api"
    timeout: int = 30
    verbose: bool = False

    config_dir: str = field(default_factory=_default_config_dir)
    credentials_file: str = "credentials.json"
    storage_file: str = "local_storage.json"

    def __post_init__(self):
        base = Path(self.config_dir)
        base.mkdir(parents=True, exist_ok=True)
        # Bare file names live inside config_dir
        self.credentials_file = str(base / self.credentials_file)
        self.storage_file = str(base / self.storage_file)

    @property
    def config_path(self) -> Path:
        return Path(self.config_dir) / CONFIG_FILENAME

    def load_from_file(self, config_path: str) -> None:
        """Apply known keys from a JSON file; unknown keys are ignored"""
        path = Path(config_path)
        if not path.is_file():
            return
        data = json.loads(path.read_text())
        known = {f.name for f in fields(self)}
        for key, value in data.items():
            if key in known:
                setattr(self, key, value)

    def save_to_file(self, config_path: Optional[str] = None) -> None:
        path = Path(config_path) if config_path else self.config_path
        path.write_text(json.dumps(self.to_dict(), indent=2))

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> None:
        environ = os.environ if environ is None else environ
        for name, (attr, convert) in ENV_OVERRIDES.items():
            raw = environ.get(name)
            if raw:
                setattr(self, attr, convert(raw))

    @classmethod
    def load_default(cls) -> "CLIConfig":
        override_dir = os.environ.get("BUGTRACKER_CONFIG_DIR")
        config = cls(config_dir=override_dir) if override_dir else cls()
        config.load_from_file(str(config.config_path))
        config.apply_env()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
