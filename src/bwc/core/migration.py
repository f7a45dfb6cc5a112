"""
Config migration

Older releases stored installed MCP servers as a bare list of names.
migrate_config() rewrites any historical shape into the current one.
It is a pure dict transform: applying it twice gives the same result.
"""

import copy
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .errors import MalformedLegacyEntry
from .schema import SCOPES, parse_server_config, utc_now

logger = logging.getLogger(__name__)

LEGACY_PROVIDER = "docker"
LEGACY_TRANSPORT = "stdio"
LEGACY_SCOPE = "local"

_PROVIDERS = ("docker", "claude")
_VERIFICATION = ("verified", "community", "experimental")


def legacy_record(installed_at: str) -> Dict[str, Any]:
    """Record assigned to a server that only survived as a name"""
    return {
        "provider": LEGACY_PROVIDER,
        "transport": LEGACY_TRANSPORT,
        "scope": LEGACY_SCOPE,
        "installedAt": installed_at,
    }


def check_entry(name: str, entry: Any) -> Dict[str, Any]:
    """
    Return entry in its stored form, or raise MalformedLegacyEntry

    A record without a transport is a stdio server; the transport is
    written out so the record validates inside the config document.
    """
    if not isinstance(entry, dict):
        raise MalformedLegacyEntry(name, f"expected an object, got {type(entry).__name__}")
    try:
        server = parse_server_config(entry)
    except ValidationError as e:
        raise MalformedLegacyEntry(name, str(e).splitlines()[0]) from e
    return {**entry, "transport": server.transport}


def coerce_entry(entry: Any, installed_at: str) -> Dict[str, Any]:
    """
    Build a best-effort stdio record from whatever was stored

    Fields that are individually valid are kept. A bare string is taken
    to be the registry name of the server.
    """
    record = legacy_record(installed_at)

    if isinstance(entry, str):
        if entry:
            record["registryName"] = entry
        return record

    if not isinstance(entry, dict):
        return record

    if entry.get("provider") in _PROVIDERS:
        record["provider"] = entry["provider"]
    if entry.get("scope") in SCOPES:
        record["scope"] = entry["scope"]
    if isinstance(entry.get("installedAt"), str):
        record["installedAt"] = entry["installedAt"]
    if entry.get("verificationStatus") in _VERIFICATION:
        record["verificationStatus"] = entry["verificationStatus"]
    if isinstance(entry.get("registryName"), str):
        record["registryName"] = entry["registryName"]
    if isinstance(entry.get("command"), str):
        record["command"] = entry["command"]

    args = entry.get("args")
    if isinstance(args, list):
        record["args"] = [str(a) for a in args]

    env = entry.get("env")
    if isinstance(env, dict):
        record["env"] = {str(k): str(v) for k, v in env.items()}

    return record


def migrate_config(data: Any, now: Optional[str] = None) -> Dict[str, Any]:
    """
    Bring a raw config document up to the current shape

    Args:
        data: Parsed JSON of a config file
        now: Timestamp given to migrated records (defaults to the current time)

    Returns:
        A new dict; the input is not modified
    """
    stamp = now or utc_now()
    result: Dict[str, Any] = copy.deepcopy(data) if isinstance(data, dict) else {}

    installed = result.get("installed")
    if not isinstance(installed, dict):
        installed = {}
        result["installed"] = installed

    for key in ("subagents", "commands"):
        if not isinstance(installed.get(key), list):
            installed[key] = []

    servers = installed.get("mcpServers")

    if servers is None:
        installed["mcpServers"] = {}

    elif isinstance(servers, list):
        migrated: Dict[str, Any] = {}
        for name in servers:
            if not isinstance(name, str) or not name:
                logger.warning(f"Dropping unnamed legacy MCP server entry: {name!r}")
                continue
            migrated[name] = legacy_record(stamp)
        if migrated:
            logger.info(f"Migrated {len(migrated)} legacy MCP server entries")
        installed["mcpServers"] = migrated

    elif isinstance(servers, dict):
        for name, entry in list(servers.items()):
            try:
                servers[name] = check_entry(name, entry)
            except MalformedLegacyEntry as e:
                logger.warning(f"{e}; keeping a best-effort record")
                servers[name] = coerce_entry(entry, stamp)

    else:
        logger.warning(f"Ignoring mcpServers of unexpected type {type(servers).__name__}")
        installed["mcpServers"] = {}

    return result
