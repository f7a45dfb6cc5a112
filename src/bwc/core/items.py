"""
Subagent and slash-command installation

Both kinds are markdown files downloaded from the registry and written
as <name>.md into the directory configured under paths.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .config import ConfigStore
from .errors import DescriptorNotFound, FileSystemError, InstallAborted

logger = logging.getLogger(__name__)

OVERWRITE = "overwrite"
SKIP = "skip"
ABORT = "abort"

# Called with (kind, name, path) when the target file already exists
ExistsHandler = Callable[[str, str, Path], str]


@dataclass
class ItemResult:
    kind: str
    name: str
    path: Path
    installed: bool


class ItemInstaller:
    """
    Installs subagents and commands for one config

    Args:
        store: Active config store
        registry: Registry client
        on_exists: Decides what to do with an existing file (default: overwrite)
    """

    def __init__(self, store: ConfigStore, registry, on_exists: Optional[ExistsHandler] = None):
        self.store = store
        self.registry = registry
        self.on_exists = on_exists

    def _write(self, kind: str, name: str, directory: Path, file_path: Optional[str]) -> ItemResult:
        target = directory / f"{name}.md"

        if target.exists() and self.on_exists is not None:
            action = self.on_exists(kind, name, target)
            if action == SKIP:
                logger.info(f"Skipped {kind}: {name}")
                return ItemResult(kind, name, target, installed=False)
            if action == ABORT:
                raise InstallAborted("Installation aborted")

        content = self.registry.fetch_file_content(file_path or f"{kind}s/{name}.md")
        try:
            directory.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileSystemError(target, e.strerror or str(e)) from e

        logger.info(f"Installed {kind} {name} to {target}")
        return ItemResult(kind, name, target, installed=True)

    def install_subagent(self, name: str) -> ItemResult:
        subagent = self.registry.find_subagent(name)
        if subagent is None:
            raise DescriptorNotFound("Subagent", name)
        result = self._write("subagent", subagent.name, self.store.subagents_path(), subagent.file)
        if result.installed:
            self.store.add_installed_subagent(subagent.name)
        return result

    def install_command(self, name: str) -> ItemResult:
        command = self.registry.find_command(name)
        if command is None:
            raise DescriptorNotFound("Command", name)
        result = self._write("command", command.name, self.store.commands_path(), command.file)
        if result.installed:
            self.store.add_installed_command(command.name)
        return result

    def _remove(self, target: Path) -> bool:
        if not target.exists():
            return False
        try:
            target.unlink()
        except OSError as e:
            raise FileSystemError(target, e.strerror or str(e)) from e
        return True

    def remove_subagent(self, name: str) -> bool:
        """Delete the file and the config entry; True if either existed"""
        deleted = self._remove(self.store.subagents_path() / f"{name}.md")
        recorded = self.store.remove_installed_subagent(name)
        return deleted or recorded

    def remove_command(self, name: str) -> bool:
        deleted = self._remove(self.store.commands_path() / f"{name}.md")
        recorded = self.store.remove_installed_command(name)
        return deleted or recorded

    def missing_files(self):
        """(kind, name, path) for every recorded item whose file is gone"""
        missing = []
        for name in self.store.installed_subagents():
            path = self.store.subagents_path() / f"{name}.md"
            if not path.exists():
                missing.append(("subagent", name, path))
        for name in self.store.installed_commands():
            path = self.store.commands_path() / f"{name}.md"
            if not path.exists():
                missing.append(("command", name, path))
        return missing
