"""
User input pipeline

Collects the values an MCP server declares in user_inputs, validates
them all at once and writes them into the server's config template.
Template edits are expressed as three instructions: SetField, AppendArg
and SetEnv.
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from bwc.core.errors import InputValidationError
from bwc.core.paths import expand_user_path
from bwc.core.schema import ServerDescriptor, UserInput

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")
TRUE_WORDS = ("true", "yes", "y", "1", "on")
FALSE_WORDS = ("false", "no", "n", "0", "off")

Prompter = Callable[[UserInput], Any]


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SetField:
    """Set a dotted path in the template"""

    path: str
    value: Any


@dataclass(frozen=True)
class AppendArg:
    """Place a value in the server's args (at position, or at the end)"""

    position: Optional[int]
    value: Any


@dataclass(frozen=True)
class SetEnv:
    """Set an environment variable in the server's env map"""

    key: str
    value: Any


Instruction = Union[SetField, AppendArg, SetEnv]


# ============================================================================
# TEMPLATE HELPERS
# ============================================================================

def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_nested(target: Dict[str, Any], path: str, value: Any) -> None:
    """Set target[a][b][c] for path "a.b.c", creating objects on the way"""
    keys = path.split(".")
    current = target
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value


def server_section(template: Dict[str, Any], server_name: Optional[str]) -> Dict[str, Any]:
    """
    The part of a template that describes one server

    Templates come either wrapped ({"mcpServers": {name: spec}}) or bare.
    """
    servers = template.get("mcpServers")
    if isinstance(servers, dict):
        if server_name in servers and isinstance(servers[server_name], dict):
            return servers[server_name]
        if server_name is None and len(servers) == 1:
            return next(iter(servers.values()))
        servers[server_name] = {}
        return servers[server_name]
    return template


def apply_instruction(template: Dict[str, Any], instruction: Instruction, server_name: Optional[str]) -> None:
    if isinstance(instruction, SetField):
        set_nested(template, instruction.path, instruction.value)
        return

    section = server_section(template, server_name)

    if isinstance(instruction, SetEnv):
        env = section.get("env")
        if not isinstance(env, dict):
            env = section["env"] = {}
        env[instruction.key] = _as_text(instruction.value)

    elif isinstance(instruction, AppendArg):
        args = section.get("args")
        if not isinstance(args, list):
            args = section["args"] = []
        value = _as_text(instruction.value)
        if instruction.position is None:
            args.append(value)
        else:
            while len(args) <= instruction.position:
                args.append("")
            args[instruction.position] = value


def replace_placeholders(obj: Any, values: Dict[str, Any]) -> Any:
    """Replace {{name}} in every string; unknown names are left alone"""
    if isinstance(obj, str):
        return PLACEHOLDER.sub(
            lambda m: _as_text(values[m.group(1)]) if values.get(m.group(1)) is not None else m.group(0),
            obj,
        )
    if isinstance(obj, list):
        return [replace_placeholders(item, values) for item in obj]
    if isinstance(obj, dict):
        return {key: replace_placeholders(item, values) for key, item in obj.items()}
    return obj


# ============================================================================
# PIPELINE
# ============================================================================

class UserInputPipeline:
    """
    Collect, validate and apply user inputs

    Args:
        prompter: Called for each input without a provided value.
            When None, declared defaults are used.
        home: Home directory for ~ expansion of path inputs
    """

    def __init__(self, prompter: Optional[Prompter] = None, home: Optional[Path] = None):
        self.prompter = prompter
        self.home = home

    def coerce(self, value: Any, spec: UserInput) -> Any:
        """Convert raw text to the declared input type where possible"""
        if not isinstance(value, str):
            return value
        if value == "":
            return None
        if spec.type == "number":
            try:
                return int(value)
            except ValueError:
                try:
                    return float(value)
                except ValueError:
                    return value
        if spec.type == "boolean":
            lowered = value.strip().lower()
            if lowered in TRUE_WORDS:
                return True
            if lowered in FALSE_WORDS:
                return False
            return value
        if spec.type == "path":
            return expand_user_path(value, self.home)
        return value

    def collect(self, descriptor: ServerDescriptor, provided: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Gather a value for every declared input"""
        provided = provided or {}
        values: Dict[str, Any] = {}

        for spec in descriptor.user_inputs or []:
            if spec.name in provided:
                value = provided[spec.name]
            elif self.prompter is not None:
                value = self.prompter(spec)
            else:
                value = spec.default

            value = self.coerce(value, spec)
            if value is not None:
                values[spec.name] = value

        unknown = set(provided) - {s.name for s in descriptor.user_inputs or []}
        if unknown:
            logger.warning(f"Ignoring unknown inputs for {descriptor.name}: {', '.join(sorted(unknown))}")
        return values

    def effective_values(self, values: Dict[str, Any], descriptor: ServerDescriptor) -> Dict[str, Any]:
        """Provided values layered over declared defaults"""
        merged: Dict[str, Any] = {}
        for spec in descriptor.user_inputs or []:
            value = values.get(spec.name)
            if value is None or value == "":
                value = spec.default
            if value is not None:
                merged[spec.name] = value
        return merged

    def validate(self, values: Dict[str, Any], descriptor: ServerDescriptor) -> ValidationResult:
        """Check every input and report all problems, not just the first"""
        errors: List[str] = []
        merged = self.effective_values(values, descriptor)

        for spec in descriptor.user_inputs or []:
            value = merged.get(spec.name)
            if value is None:
                if spec.required:
                    errors.append(f"{spec.label} is required")
                continue
            errors.extend(self._check(value, spec))

        return ValidationResult(valid=not errors, errors=errors)

    def _check(self, value: Any, spec: UserInput) -> List[str]:
        label = spec.label
        rules = spec.validation
        errors: List[str] = []

        if spec.type == "path":
            path = Path(expand_user_path(str(value), self.home))
            if rules and (rules.exists or rules.is_directory or rules.is_file):
                if not path.exists():
                    errors.append(f"{label}: Path does not exist - {path}")
                elif rules.is_directory and not path.is_dir():
                    errors.append(f"{label}: Path must be a directory - {path}")
                elif rules.is_file and not path.is_file():
                    errors.append(f"{label}: Path must be a file - {path}")

        elif spec.type in ("string", "password"):
            text = str(value)
            if rules and rules.pattern and not re.search(rules.pattern, text):
                errors.append(f"{label}: Does not match required pattern")
            if rules and rules.min_length is not None and len(text) < rules.min_length:
                errors.append(f"{label}: Minimum length is {rules.min_length}")
            if rules and rules.max_length is not None and len(text) > rules.max_length:
                errors.append(f"{label}: Maximum length is {rules.max_length}")

        elif spec.type == "number":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(f"{label}: Must be a number")
            else:
                if rules and rules.min is not None and value < rules.min:
                    errors.append(f"{label}: Must be at least {rules.min:g}")
                if rules and rules.max is not None and value > rules.max:
                    errors.append(f"{label}: Must be at most {rules.max:g}")

        elif spec.type == "select":
            if rules and rules.options and value not in rules.options:
                errors.append(f"{label}: Must be one of {', '.join(rules.options)}")

        elif spec.type == "url":
            parsed = urlparse(str(value))
            if not parsed.scheme or not parsed.netloc:
                errors.append(f"{label}: Must be a valid URL")

        elif spec.type == "boolean":
            if not isinstance(value, bool):
                errors.append(f"{label}: Must be true or false")

        return errors

    def instructions(self, values: Dict[str, Any], descriptor: ServerDescriptor) -> List[Instruction]:
        """Translate values into template edits"""
        result: List[Instruction] = []
        merged = self.effective_values(values, descriptor)
        for spec in descriptor.user_inputs or []:
            if spec.name not in merged:
                continue
            value = merged[spec.name]
            if spec.env_var:
                result.append(SetEnv(spec.env_var, value))
            if spec.arg_position is not None:
                result.append(AppendArg(spec.arg_position, value))
            if spec.config_path:
                result.append(SetField(spec.config_path, value))
        return result

    def apply_to_template(
        self,
        template: Dict[str, Any],
        values: Dict[str, Any],
        descriptor: ServerDescriptor,
    ) -> Dict[str, Any]:
        """
        Render a config template with the given values

        The template is deep-copied; the input is not modified.

        Raises:
            InputValidationError: one or more values are invalid
        """
        result = self.validate(values, descriptor)
        if not result.valid:
            raise InputValidationError(result.errors)

        rendered = copy.deepcopy(template)
        for instruction in self.instructions(values, descriptor):
            apply_instruction(rendered, instruction, descriptor.name)
        return replace_placeholders(rendered, self.effective_values(values, descriptor))

    def summary(self, values: Dict[str, Any], descriptor: ServerDescriptor) -> List[Tuple[str, str]]:
        """(label, display value) pairs with passwords masked"""
        rows = []
        merged = self.effective_values(values, descriptor)
        for spec in descriptor.user_inputs or []:
            if spec.name not in merged:
                continue
            value = merged[spec.name]
            display = "*" * 8 if spec.type == "password" else _as_text(value)
            rows.append((spec.label, display))
        return rows
