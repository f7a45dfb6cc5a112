"""
Path constants and resolution helpers
"""

import os
from pathlib import Path
from typing import Optional, Union

PROJECT_CONFIG_FILE = "bwc.config.json"
PROJECT_CONFIG_DIR = ".bwc"
PROJECT_CONFIG_NAMES = (PROJECT_CONFIG_FILE, f"{PROJECT_CONFIG_DIR}/config.json")

USER_CONFIG_DIR = ".bwc"
USER_CONFIG_FILE = "config.json"

DEFAULT_REGISTRY_URL = "https://buildwithclaude.com/registry.json"

DEFAULT_USER_SUBAGENTS_PATH = "~/.claude/agents/"
DEFAULT_USER_COMMANDS_PATH = "~/.claude/commands/"
DEFAULT_PROJECT_SUBAGENTS_PATH = ".claude/agents/"
DEFAULT_PROJECT_COMMANDS_PATH = ".claude/commands/"

SHARED_MANIFEST_FILE = ".mcp.json"

PathLike = Union[str, Path]


def expand_tilde(path: PathLike, home: Optional[Path] = None) -> Path:
    """Expand a leading ~ against the given home directory (defaults to the real one)"""
    text = str(path)
    if text == "~" or text.startswith("~/") or text.startswith("~" + os.sep):
        base = home if home is not None else Path.home()
        return base / text[2:] if len(text) > 1 else base
    return Path(text)


def resolve_install_path(path: PathLike, base_dir: Path, home: Optional[Path] = None) -> Path:
    """
    Resolve an install path declared in a config file

    Args:
        path: Path as written in the config
        base_dir: Directory relative paths are anchored to
        home: Home directory used for ~ expansion

    Returns:
        Absolute path
    """
    expanded = expand_tilde(path, home)
    if not expanded.is_absolute():
        expanded = base_dir / expanded
    return Path(os.path.normpath(expanded))


def expand_user_path(value: str, home: Optional[Path] = None) -> str:
    """Expand ~ and $VARS in a user-supplied path and make it absolute"""
    expanded = os.path.expandvars(str(expand_tilde(value, home)))
    return os.path.abspath(expanded)
