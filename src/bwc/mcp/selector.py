"""
Choosing an installation method for an MCP server descriptor
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from bwc.core.errors import NoInstallationMethod
from bwc.core.schema import InstallationMethod, ServerDescriptor

logger = logging.getLogger(__name__)

# Method type -> provider that carries it out
METHOD_PROVIDERS: Dict[str, str] = {
    "docker": "docker",
    "manual": "manual",
    "claude-cli": "claude",
    "npm": "claude",
    "binary": "claude",
}

# Provider hint -> method type it selects
HINT_METHODS: Dict[str, str] = {
    "docker": "docker",
    "claude": "claude-cli",
    "claude-cli": "claude-cli",
    "npm": "npm",
    "binary": "binary",
    "manual": "manual",
}


@dataclass
class InstallHints:
    """Explicit install-time flags that override the default ranking"""

    provider: Optional[str] = None
    transport: Optional[str] = None
    url: Optional[str] = None
    headers: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.provider or self.transport or self.url)


def _first(methods: List[InstallationMethod], **criteria) -> Optional[InstallationMethod]:
    for method in methods:
        if all(getattr(method, key) == value for key, value in criteria.items()):
            return method
    return None


def rank_methods(descriptor: ServerDescriptor) -> Optional[InstallationMethod]:
    """Default choice when no hints are given"""
    methods = descriptor.installation_methods
    if not methods:
        return None

    method = _first(methods, type="claude-cli", recommended=True)
    if method:
        return method

    if descriptor.user_inputs:
        concrete = [m for m in methods if m.type != "bwc"]
        return _first(concrete, recommended=True) or (concrete[0] if concrete else None)

    return _first(methods, recommended=True) or methods[0]


def select_method(descriptor: ServerDescriptor, hints: Optional[InstallHints] = None) -> InstallationMethod:
    """
    Pick the installation method for a descriptor

    Args:
        descriptor: Registry entry
        hints: Explicit provider/transport flags

    Returns:
        The chosen method

    Raises:
        NoInstallationMethod: nothing matches
    """
    if hints and not hints.empty:
        if hints.provider:
            wanted = HINT_METHODS.get(hints.provider)
            if wanted is None:
                raise NoInstallationMethod(f"Unknown provider '{hints.provider}'")
        else:
            wanted = "claude-cli"
        method = _first(descriptor.installation_methods, type=wanted)
        if method is None:
            raise NoInstallationMethod(
                f"{descriptor.name} has no '{wanted}' installation method"
            )
        logger.debug(f"Hint selected {wanted} method for {descriptor.name}")
        return method

    method = rank_methods(descriptor)
    if method is None:
        raise NoInstallationMethod(f"No installation methods available for {descriptor.name}")
    logger.debug(f"Selected {method.type} method for {descriptor.name}")
    return method


def resolve_bwc_method(descriptor: ServerDescriptor) -> InstallationMethod:
    """Concrete method behind a 'bwc' meta-method"""
    concrete = [m for m in descriptor.installation_methods if m.type != "bwc"]
    method = _first(concrete, recommended=True)
    if method is None and descriptor.sources.docker:
        method = _first(concrete, type="docker")
    if method is None and descriptor.sources.npm:
        method = _first(concrete, type="npm")
    if method is None:
        method = _first(concrete, type="manual")
    if method is None:
        raise NoInstallationMethod(f"No suitable installation method found for {descriptor.name}")
    return method


def provider_for(method: InstallationMethod) -> str:
    """Provider ("docker", "claude" or "manual") that carries out a method"""
    try:
        return METHOD_PROVIDERS[method.type]
    except KeyError:
        raise NoInstallationMethod(f"Method '{method.type}' has no provider") from None
