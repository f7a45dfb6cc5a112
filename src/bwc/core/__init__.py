"""
Core configuration layer for bwc
"""

from .config import ConfigStore
from .errors import (
    BwcError,
    ConfigNotFound,
    DescriptorNotFound,
    FileSystemError,
    GatewayNotConfigured,
    InputValidationError,
    InstallAborted,
    InvalidScope,
    MalformedLegacyEntry,
    NoInstallationMethod,
    RegistryError,
    SubprocessError,
)
from .migration import migrate_config
from .schema import (
    BwcConfig,
    InstallationMethod,
    MCPServerConfig,
    NetworkServerConfig,
    Registry,
    ServerDescriptor,
    StdioServerConfig,
    UserInput,
)
from .scope import ScopeLocator, init_config, resolve_active_config

__all__ = [
    "BwcConfig",
    "BwcError",
    "ConfigNotFound",
    "ConfigStore",
    "DescriptorNotFound",
    "FileSystemError",
    "GatewayNotConfigured",
    "InputValidationError",
    "InstallAborted",
    "InstallationMethod",
    "InvalidScope",
    "MCPServerConfig",
    "MalformedLegacyEntry",
    "NetworkServerConfig",
    "NoInstallationMethod",
    "Registry",
    "RegistryError",
    "ScopeLocator",
    "ServerDescriptor",
    "StdioServerConfig",
    "SubprocessError",
    "UserInput",
    "init_config",
    "migrate_config",
    "resolve_active_config",
]
