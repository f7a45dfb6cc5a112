"""
Data models for bwc

Config file models (bwc.config.json / ~/.bwc/config.json) and
registry descriptor models (registry.json).
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from .paths import (
    DEFAULT_PROJECT_COMMANDS_PATH,
    DEFAULT_PROJECT_SUBAGENTS_PATH,
    DEFAULT_REGISTRY_URL,
    DEFAULT_USER_COMMANDS_PATH,
    DEFAULT_USER_SUBAGENTS_PATH,
)

Scope = Literal["local", "user", "project"]
Provider = Literal["docker", "claude"]
Transport = Literal["stdio", "sse", "http"]
VerificationStatus = Literal["verified", "community", "experimental"]

SCOPES = ("local", "user", "project")
TRANSPORTS = ("stdio", "sse", "http")


def utc_now() -> str:
    """Current time as an ISO-8601 string"""
    return datetime.now(timezone.utc).isoformat()


# ============================================================================
# INSTALLED MCP SERVER RECORDS
# ============================================================================

class BaseServerConfig(BaseModel):
    """Fields shared by every installed MCP server record"""

    provider: Provider
    scope: Scope = "local"
    verificationStatus: Optional[VerificationStatus] = None
    installedAt: str = Field(default_factory=utc_now)
    registryName: Optional[str] = None


class StdioServerConfig(BaseServerConfig):
    """Server launched as a local process speaking stdio"""

    transport: Literal["stdio"] = "stdio"
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)


class NetworkServerConfig(BaseServerConfig):
    """Remote server reached over SSE or streamable HTTP"""

    transport: Literal["sse", "http"]
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)


MCPServerConfig = Annotated[
    Union[StdioServerConfig, NetworkServerConfig],
    Field(discriminator="transport"),
]

server_config_adapter: TypeAdapter = TypeAdapter(MCPServerConfig)


def parse_server_config(data: Dict[str, Any]) -> Union[StdioServerConfig, NetworkServerConfig]:
    """Validate a raw dict into the matching server config variant"""
    if isinstance(data, dict) and "transport" not in data:
        data = {**data, "transport": "stdio"}
    return server_config_adapter.validate_python(data)


# ============================================================================
# CONFIG FILE
# ============================================================================

class InstallPaths(BaseModel):
    """Where subagent and command files are written"""

    subagents: str = DEFAULT_USER_SUBAGENTS_PATH
    commands: str = DEFAULT_USER_COMMANDS_PATH


class InstalledItems(BaseModel):
    """Everything declared as installed in a config file"""

    subagents: List[str] = Field(default_factory=list)
    commands: List[str] = Field(default_factory=list)
    mcpServers: Dict[str, MCPServerConfig] = Field(default_factory=dict)

    @field_validator("subagents", "commands")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for name in v:
            if name not in seen:
                seen.append(name)
        return seen


class BwcConfig(BaseModel):
    """A bwc.config.json or ~/.bwc/config.json document"""

    version: str = "1.0"
    registry: str = DEFAULT_REGISTRY_URL
    paths: InstallPaths = Field(default_factory=InstallPaths)
    installed: InstalledItems = Field(default_factory=InstalledItems)

    model_config = {"extra": "allow"}

    def to_json_dict(self) -> Dict[str, Any]:
        """Serialize for writing to disk"""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def default(cls, project: bool = False) -> "BwcConfig":
        """Fresh config with scope-appropriate install paths"""
        if project:
            paths = InstallPaths(
                subagents=DEFAULT_PROJECT_SUBAGENTS_PATH,
                commands=DEFAULT_PROJECT_COMMANDS_PATH,
            )
        else:
            paths = InstallPaths()
        return cls(paths=paths)


# ============================================================================
# REGISTRY DESCRIPTORS
# ============================================================================

InputType = Literal["path", "string", "boolean", "number", "url", "select", "password"]
MethodType = Literal["docker", "npm", "manual", "binary", "bwc", "claude-cli"]


class UserInputValidation(BaseModel):
    """Validation rules for a single user input"""

    exists: Optional[bool] = None
    is_directory: Optional[bool] = None
    is_file: Optional[bool] = None
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    options: Optional[List[str]] = None


class UserInput(BaseModel):
    """A value the user supplies at install time"""

    name: str
    display_name: Optional[str] = None
    type: InputType = "string"
    description: str = ""
    required: bool = True
    default: Optional[Any] = None
    placeholder: Optional[str] = None
    validation: Optional[UserInputValidation] = None
    env_var: Optional[str] = None
    arg_position: Optional[int] = None
    config_path: Optional[str] = None

    model_config = {"extra": "allow"}

    @property
    def label(self) -> str:
        return self.display_name or self.name


class InstallationMethod(BaseModel):
    """One way of installing an MCP server"""

    type: MethodType
    recommended: bool = False
    command: Optional[str] = None
    config_example: Optional[str] = None
    steps: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class Verification(BaseModel):
    status: VerificationStatus = "community"
    last_tested: Optional[str] = None
    tested_with: List[str] = Field(default_factory=list)


class Sources(BaseModel):
    official: Optional[str] = None
    docker: Optional[str] = None
    npm: Optional[str] = None

    model_config = {"extra": "allow"}


class ServerDescriptor(BaseModel):
    """Registry entry for an MCP server"""

    name: str
    display_name: Optional[str] = None
    category: str = ""
    description: str = ""
    server_type: Optional[str] = None
    verification: Verification = Field(default_factory=Verification)
    sources: Sources = Field(default_factory=Sources)
    installation_methods: List[InstallationMethod] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    file: Optional[str] = None
    path: Optional[str] = None
    user_inputs: Optional[List[UserInput]] = None

    model_config = {"extra": "allow"}

    @property
    def is_experimental(self) -> bool:
        return self.verification.status == "experimental"


class Subagent(BaseModel):
    """Registry entry for a subagent"""

    name: str
    category: str = ""
    description: str = ""
    version: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    file: Optional[str] = None
    path: Optional[str] = None

    model_config = {"extra": "allow"}


class Command(BaseModel):
    """Registry entry for a slash command"""

    name: str
    category: str = ""
    description: str = ""
    version: Optional[str] = None
    prefix: str = "/"
    tags: List[str] = Field(default_factory=list)
    argumentHint: Optional[str] = None
    file: Optional[str] = None
    path: Optional[str] = None

    model_config = {"extra": "allow"}


class Registry(BaseModel):
    """The registry.json document"""

    version: Optional[str] = None
    updated: Optional[str] = None
    subagents: List[Subagent] = Field(default_factory=list)
    commands: List[Command] = Field(default_factory=list)
    mcpServers: List[ServerDescriptor] = Field(default_factory=list)

    model_config = {"extra": "allow"}
