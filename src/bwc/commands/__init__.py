"""
CLI commands for bwc
"""

import click

from bwc.core.context import BwcContext


def get_context(ctx: click.Context, interactive: bool = True) -> BwcContext:
    """Build the per-command context from the global flags in ctx.obj"""
    from bwc.utils.prompts import prompt_user_input

    obj = ctx.obj or {}
    return BwcContext(
        force_user=obj.get("user", False),
        force_project=obj.get("project", False),
        runner=obj.get("runner"),
        registry=obj.get("registry"),
        prompter=prompt_user_input if interactive else None,
        claude_executable=obj.get("claude_executable"),
        docker_executable=obj.get("docker_executable"),
    )
