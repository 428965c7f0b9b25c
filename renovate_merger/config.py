"""
User configuration storage.

Persists a small JSON document under ``~/.config/gh-renovate/`` (or the
directory named by ``GH_RENOVATE_CONFIG_DIR``).
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

from renovate_merger.logging import get_logger

logger = get_logger("config")

CONFIG_DIR_ENV = "GH_RENOVATE_CONFIG_DIR"
CONFIG_FILE_NAME = "config.json"
MAX_RECENT_REPOS = 10


@dataclass
class UserConfig:
    """Persisted user preferences."""

    recent_repos: list[str] = field(default_factory=list)


def get_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override)
    return Path.home() / ".config" / "gh-renovate"


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def load_config() -> UserConfig:
    """Load the user config, falling back to defaults if it is missing or unreadable."""
    path = get_config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return UserConfig()
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return UserConfig()

    if not isinstance(data, dict):
        return UserConfig()

    recent = data.get("recent_repos", [])
    if not isinstance(recent, list):
        recent = []
    return UserConfig(recent_repos=[str(r) for r in recent][:MAX_RECENT_REPOS])


def save_config(config: UserConfig) -> None:
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")


def get_recent_repos() -> list[str]:
    """Recently used repositories, most recent first."""
    return load_config().recent_repos


def add_recent_repo(repo_path: str) -> None:
    """Move ``repo_path`` to the top of the recent list, keeping at most ten."""
    config = load_config()
    recent = [r for r in config.recent_repos if r != repo_path]
    recent.insert(0, repo_path)
    config.recent_repos = recent[:MAX_RECENT_REPOS]
    save_config(config)
