# Task board: configuration
# Override defaults via config.yaml, TASKBOARD_* environment variables or CLI args.

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, fields

CONFIG_PATH = Path(__file__).parent / "config.yaml"

ENV_OVERRIDES = {
    "TASKBOARD_DB": "db_path",
    "TASKBOARD_HOST": "host",
    "TASKBOARD_PORT": "port",
    "TASKBOARD_SEED_PASSWORD": "seed_user_password",
    "TASKBOARD_LOG_LEVEL": "log_level",
}


@dataclass
class Config:
    """Runtime configuration for the task board server."""

    # Storage
    db_path: str = "~/.local/share/taskboard/board.db"

    # HTTP
    host: str = "127.0.0.1"
    port: int = 5000
    max_body_bytes: int = 1_000_000

    # Bootstrap user, created once when the users collection is empty
    seed_user_name: str = "Team Lead"
    seed_user_email: str = "lead@example.com"
    seed_user_password: str = "changeme"
    seed_user_role: str = "member"

    log_level: str = "INFO"

    def apply_env(self, environ=None):
        """Apply TASKBOARD_* environment overrides."""
        environ = os.environ if environ is None else environ
        for env_name, attr in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if not value:
                continue
            if attr == "port":
                value = int(value)
            setattr(self, attr, value)

    def resolve_paths(self):
        """Expand ~ in the DB path and make sure its directory exists."""
        path = Path(self.db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = str(path)

    @classmethod
    def load(cls, path: str = None, environ=None) -> "Config":
        """Load config from YAML file, falling back to defaults, then apply env overrides."""
        environ = os.environ if environ is None else environ
        cfg_path = Path(path or environ.get("TASKBOARD_CONFIG") or CONFIG_PATH)
        known = {f.name for f in fields(cls)}
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                data = yaml.safe_load(f) or {}
            cfg = cls(**{k: v for k, v in data.items() if k in known})
        else:
            cfg = cls()
        cfg.apply_env(environ)
        cfg.resolve_paths()
        return cfg
