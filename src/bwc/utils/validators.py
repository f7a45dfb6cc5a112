"""
Validation and parsing helpers for command-line values
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from bwc.core.errors import BwcError, InvalidScope
from bwc.core.schema import SCOPES, TRANSPORTS

ENV_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
UNRESOLVED_VAR = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def validate_item_name(name: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a subagent, command or server name

    Args:
        name: Name to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not name:
        return False, "Name cannot be empty"

    if len(name) > 214:
        return False, "Name must be less than 214 characters"

    if not re.match(r"^[A-Za-z0-9][A-Za-z0-9._-]*$", name):
        return False, "Name can only contain letters, numbers, dots, dashes, and underscores"

    return True, None


def validate_scope(scope: str) -> str:
    """Return scope unchanged or raise InvalidScope"""
    if scope not in SCOPES:
        raise InvalidScope(f"Invalid scope: {scope}. Must be one of: {', '.join(SCOPES)}")
    return scope


def validate_transport(transport: str, url: Optional[str] = None) -> str:
    """Check a transport name and that network transports have a URL"""
    if transport not in TRANSPORTS:
        raise BwcError(f"Invalid transport: {transport}. Must be stdio, sse, or http")
    if transport in ("sse", "http"):
        if not url:
            raise BwcError(f"URL is required for {transport} transport")
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            raise BwcError(f"Invalid URL: {url}")
    return transport


def parse_env_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """
    Parse KEY=VALUE strings

    The value may itself contain '='; only the first one separates.
    """
    env: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not ENV_NAME.match(key):
            raise BwcError(f"Invalid environment variable '{pair}'. Use KEY=VALUE")
        env[key] = value
    return env


def parse_headers(headers: Iterable[str]) -> Dict[str, str]:
    """Parse "Name: value" header strings"""
    parsed: Dict[str, str] = {}
    for header in headers:
        key, sep, value = header.partition(":")
        if not sep or not key.strip():
            raise BwcError(f"Invalid header '{header}'. Use \"Name: value\"")
        parsed[key.strip()] = value.strip()
    return parsed


def parse_input_pairs(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse name=value strings given with --input"""
    values: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise BwcError(f"Invalid input '{pair}'. Use name=value")
        values[name.strip()] = value
    return values


def find_unresolved_env(env: Dict[str, str]) -> List[str]:
    """Env entries still holding a bare ${VAR} placeholder"""
    return [key for key, value in env.items() if isinstance(value, str) and UNRESOLVED_VAR.match(value)]
