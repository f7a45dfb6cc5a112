"""
Interactive prompt utilities using questionary
"""

from pathlib import Path
from typing import Any, List, Optional

import questionary
from questionary import Choice, Style

from bwc.core.items import ABORT, OVERWRITE, SKIP
from bwc.core.schema import UserInput


# Custom style for prompts
CUSTOM_STYLE = Style([
    ('qmark', 'fg:#d97757 bold'),
    ('question', 'bold'),
    ('answer', 'fg:#2196f3 bold'),
    ('pointer', 'fg:#d97757 bold'),
    ('highlighted', 'fg:#d97757 bold'),
    ('selected', 'fg:#2196f3'),
    ('separator', 'fg:#cc5454'),
    ('instruction', ''),
    ('text', ''),
    ('disabled', 'fg:#858585 italic')
])


def prompt_text(
    message: str,
    default: Optional[str] = None,
    validate: Optional[Any] = None,
) -> Optional[str]:
    """
    Prompt for text input

    Args:
        message: Prompt message
        default: Default value
        validate: Callable returning True or an error message

    Returns:
        User input, or None if the prompt was cancelled
    """
    return questionary.text(
        message,
        default=default or "",
        validate=validate,
        style=CUSTOM_STYLE,
    ).ask()


def prompt_password(message: str) -> Optional[str]:
    """Prompt for hidden input"""
    return questionary.password(message, style=CUSTOM_STYLE).ask()


def prompt_confirm(message: str, default: bool = True) -> bool:
    return bool(questionary.confirm(message, default=default, style=CUSTOM_STYLE).ask())


def prompt_select(
    message: str,
    choices: List[Any],
    default: Optional[str] = None,
) -> Optional[str]:
    """Prompt for a single selection"""
    return questionary.select(
        message,
        choices=choices,
        default=default,
        style=CUSTOM_STYLE,
    ).ask()


def prompt_checkbox(message: str, choices: List[Any]) -> List[str]:
    """
    Prompt for multiple selections

    Returns:
        Selected values (empty if cancelled)
    """
    return questionary.checkbox(message, choices=choices, style=CUSTOM_STYLE).ask() or []


def prompt_path(message: str, default: Optional[str] = None, only_directories: bool = False) -> Optional[str]:
    return questionary.path(
        message,
        default=default or "",
        only_directories=only_directories,
        style=CUSTOM_STYLE,
    ).ask()


def prompt_user_input(spec: UserInput) -> Any:
    """
    Ask for one declared MCP server input

    Maps the input type to the matching prompt. Validation is left to
    the input pipeline so every error is reported together.
    """
    message = spec.label
    if spec.description:
        message = f"{message} ({spec.description})"
    if spec.placeholder:
        message = f"{message} e.g. {spec.placeholder}"
    message += ":"

    default = None if spec.default is None else str(spec.default)

    if spec.type == "password":
        return prompt_password(message)

    if spec.type == "boolean":
        return prompt_confirm(message, default=bool(spec.default) if spec.default is not None else False)

    if spec.type == "select" and spec.validation and spec.validation.options:
        return prompt_select(message, spec.validation.options, default=default)

    if spec.type == "path":
        only_dirs = bool(spec.validation and spec.validation.is_directory)
        return prompt_path(message, default=default, only_directories=only_dirs)

    return prompt_text(message, default=default)


def prompt_file_exists(kind: str, name: str, path: Path) -> str:
    """Ask what to do when an item file is already on disk"""
    answer = prompt_select(
        f'{kind.capitalize()} "{name}" already exists at {path}. What would you like to do?',
        choices=[
            Choice("Overwrite - Replace the existing file", value=OVERWRITE),
            Choice("Skip - Keep the existing file and continue", value=SKIP),
            Choice("Abort - Stop the installation", value=ABORT),
        ],
    )
    return answer or ABORT
