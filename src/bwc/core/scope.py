"""
Locating the active config

Project: bwc.config.json or .bwc/config.json in cwd or any ancestor
User:    ~/.bwc/config.json
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

from .config import ConfigScope, ConfigStore, write_json_atomic
from .errors import ConfigNotFound, FileSystemError, InvalidScope
from .paths import (
    PROJECT_CONFIG_FILE,
    PROJECT_CONFIG_NAMES,
    USER_CONFIG_DIR,
    USER_CONFIG_FILE,
)
from .schema import BwcConfig

logger = logging.getLogger(__name__)


class ScopeLocator:
    """
    Finds project and user config files

    Args:
        cwd: Directory the search starts from
        home: Home directory holding the user config
    """

    def __init__(self, cwd: Optional[Path] = None, home: Optional[Path] = None):
        self.cwd = Path(cwd or Path.cwd()).resolve()
        self.home = Path(home or Path.home())

    def find_project_config(self) -> Optional[Path]:
        """Nearest project config in cwd or its ancestors"""
        user_config = self.user_config().resolve()
        for directory in (self.cwd, *self.cwd.parents):
            for name in PROJECT_CONFIG_NAMES:
                candidate = directory / name
                # ~/.bwc/config.json has the project layout but is the user config
                if candidate.is_file() and candidate.resolve() != user_config:
                    return candidate
        return None

    def user_config(self) -> Path:
        return self.home / USER_CONFIG_DIR / USER_CONFIG_FILE

    def resolve(self, force_user: bool = False, force_project: bool = False) -> Tuple[Path, ConfigScope]:
        """
        Pick the config file to operate on

        A project config wins over the user config unless force_user is set.

        Returns:
            (path, scope)
        """
        if force_user and force_project:
            raise InvalidScope("Cannot force both user and project configuration")

        user_path = self.user_config()

        if force_user:
            if not user_path.is_file():
                raise ConfigNotFound("No user configuration found. Run 'bwc init' first.")
            return user_path, "user"

        project_path = self.find_project_config()

        if force_project:
            if project_path is None:
                raise ConfigNotFound("No project configuration found. Run 'bwc init --project' first.")
            return project_path, "project"

        if project_path is not None:
            return project_path, "project"
        if user_path.is_file():
            return user_path, "user"
        raise ConfigNotFound()


def resolve_active_config(
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
    force_user: bool = False,
    force_project: bool = False,
) -> ConfigStore:
    """Locate and load the active config"""
    locator = ScopeLocator(cwd, home)
    path, scope = locator.resolve(force_user=force_user, force_project=force_project)
    logger.debug(f"Using {scope} config: {path}")
    return ConfigStore.load(path, scope, home=locator.home)


def init_config(
    project: bool = False,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
    force: bool = False,
) -> ConfigStore:
    """
    Create a default config file and its install directories

    Args:
        project: Create bwc.config.json in cwd instead of the user config
        cwd: Project directory
        home: Home directory
        force: Overwrite an existing config
    """
    locator = ScopeLocator(cwd, home)
    path = locator.cwd / PROJECT_CONFIG_FILE if project else locator.user_config()

    if path.exists() and not force:
        raise FileSystemError(path, "configuration already exists. Use --force to overwrite")

    scope: ConfigScope = "project" if project else "user"
    store = ConfigStore(path, scope, BwcConfig.default(project=project), home=locator.home)
    write_json_atomic(path, store.config.to_json_dict())

    for directory in (store.subagents_path(), store.commands_path()):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(directory, e.strerror or str(e)) from e

    logger.info(f"Created {scope} config at {path}")
    return store
