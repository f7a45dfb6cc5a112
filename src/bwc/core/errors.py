"""
Exception types raised by the bwc core

Commands catch BwcError and print it; bulk operations catch per item.
"""

from typing import List, Optional, Sequence


class BwcError(Exception):
    """Base class for all bwc errors"""


class ConfigNotFound(BwcError, FileNotFoundError):
    """No configuration file exists for the requested scope"""

    def __init__(self, message: str = "No configuration found. Run 'bwc init' first."):
        super().__init__(message)


class InvalidScope(BwcError, ValueError):
    """Unknown scope name or conflicting scope flags"""


class DescriptorNotFound(BwcError, LookupError):
    """Named subagent, command or MCP server is not in the registry"""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' not found in registry")


class NoInstallationMethod(BwcError):
    """Descriptor has no installation method matching the request"""


class InputValidationError(BwcError):
    """One or more user inputs failed validation"""

    def __init__(self, errors: Sequence[str]):
        self.errors: List[str] = list(errors)
        super().__init__("Input validation failed:\n" + "\n".join(f"  - {e}" for e in self.errors))


class GatewayNotConfigured(BwcError):
    """Docker MCP gateway is not registered with Claude Code"""

    def __init__(self, message: str, remediation: Optional[Sequence[str]] = None):
        self.remediation: List[str] = list(remediation or [])
        super().__init__(message)


class SubprocessError(BwcError):
    """External command exited non-zero"""

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(f"Command failed: {' '.join(self.argv)}: {detail}")


class FileSystemError(BwcError, OSError):
    """Reading or writing a config file failed"""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")

    def __str__(self) -> str:
        return self.args[0]


class MalformedLegacyEntry(BwcError):
    """A stored MCP server entry could not be interpreted"""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Malformed MCP server entry '{name}': {reason}")


class RegistryError(BwcError):
    """Registry could not be fetched or parsed"""


class InstallAborted(BwcError):
    """User chose to stop an installation"""
