"""
Add subagents, commands or MCP servers
"""

import json
import logging

import click
from rich.console import Console

from bwc.core.context import BwcContext
from bwc.core.errors import BwcError, GatewayNotConfigured, InputValidationError, RegistryError
from bwc.core.schema import SCOPES, TRANSPORTS
from bwc.mcp.executor import MANUAL, SKIPPED, InstallOutcome
from bwc.mcp.selector import InstallHints
from bwc.utils.prompts import prompt_checkbox, prompt_file_exists, prompt_select
from bwc.utils.validators import parse_input_pairs

from . import get_context

console = Console()
logger = logging.getLogger(__name__)

SCOPE_NOTES = {
    "project": "The server is now available to all team members via .mcp.json",
    "user": "The server is now available across all your projects",
    "local": "The server is available for this project only",
}


def print_outcome(outcome: InstallOutcome, scope: str) -> None:
    """Show the result of one MCP install"""
    if outcome.status == SKIPPED:
        console.print(f"  [dim]=[/] {outcome.name} [dim]({outcome.message})[/]")
    elif outcome.status == MANUAL:
        console.print(f"  [yellow]![/] {outcome.message}")
        for requirement in outcome.requirements:
            console.print(f"    [dim]requires[/] {requirement}")
        for i, step in enumerate(outcome.steps, 1):
            console.print(f"    {i}. {step}")
        if outcome.config:
            console.print(json.dumps(outcome.config, indent=2), markup=False, highlight=False)
    else:
        console.print(f"  [green]+[/] {outcome.name} [dim]({outcome.provider}, {scope} scope)[/]")
        console.print(f"    [dim]{SCOPE_NOTES.get(scope, '')}[/]")

    for warning in outcome.warnings:
        console.print(f"  [yellow]Warning:[/] {warning}")


def print_error(e: BwcError) -> None:
    if isinstance(e, InputValidationError):
        console.print("[red]Error:[/] Invalid inputs:")
        for error in e.errors:
            console.print(f"  [red]-[/] {error}")
    elif isinstance(e, GatewayNotConfigured):
        console.print(f"[red]Error:[/] {e}")
        for line in e.remediation:
            console.print(f"  {line}")
    else:
        console.print(f"[red]Error:[/] {e}")


@click.command()
@click.option("-a", "--agent", help="Subagent to add")
@click.option("-c", "--command", "command_name", help="Slash command to add")
@click.option("-m", "--mcp", help="MCP server to add")
@click.option("-s", "--scope", type=click.Choice(SCOPES), default="local", show_default=True, help="MCP server scope")
@click.option("-e", "--env", "env_vars", multiple=True, help="Environment variable for the MCP server (KEY=VALUE)")
@click.option("-i", "--input", "inputs", multiple=True, help="Value for a declared server input (name=value)")
@click.option("--docker-mcp", is_flag=True, help="Enable the server from the Docker MCP catalog")
@click.option("--transport", type=click.Choice(TRANSPORTS), help="Transport for a remote server")
@click.option("--url", help="URL for an sse/http server")
@click.option("--header", "headers", multiple=True, help='HTTP header for a remote server ("Name: value")')
@click.option("--setup", is_flag=True, help="Register the Docker MCP gateway with Claude Code")
@click.option("-y", "--yes", is_flag=True, help="Overwrite existing files and use input defaults without prompting")
@click.argument("server_command", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def add(ctx, agent, command_name, mcp, scope, env_vars, inputs, docker_mcp, transport, url, headers, setup, yes, server_command):
    """
    Add a subagent, slash command or MCP server

    Without an item flag, opens an interactive picker.

    Examples:

        \b
        # Subagents and commands
        bwc add --agent python-pro
        bwc add --command commit

        \b
        # MCP servers from the registry
        bwc add --mcp postgres --scope project
        bwc add --mcp github --env GITHUB_TOKEN=xxx
        bwc add --mcp filesystem --input path=~/code

        \b
        # Docker MCP Toolkit
        bwc add --setup
        bwc add --mcp redis --docker-mcp --scope project

        \b
        # Servers that are not in the registry
        bwc add --mcp api --transport sse --url https://x/sse --header "Authorization: Bearer t"
        bwc add --mcp local-tool --transport stdio -- node ./server.js
    """
    context = get_context(ctx, interactive=not yes)

    try:
        if setup:
            _setup_gateway(context, scope)
        elif agent:
            _add_items(context, "subagent", [agent], yes)
        elif command_name:
            _add_items(context, "command", [command_name], yes)
        elif mcp:
            _add_mcp(context, mcp, scope, env_vars, inputs, docker_mcp, transport, url, headers, server_command)
        else:
            _interactive(context, scope, env_vars, yes)
    except BwcError as e:
        print_error(e)
        raise click.Abort()


def _setup_gateway(context: BwcContext, scope: str) -> None:
    console.print("[cyan]Setting up Docker MCP gateway...[/]")
    context.mcp_installer().setup_gateway(scope)
    console.print(f"[green]+[/] Docker MCP gateway registered as docker-toolkit ({scope} scope)")
    console.print("[dim]Restart Claude Code to activate the gateway.[/]")


def _add_items(context: BwcContext, kind: str, names, yes: bool) -> int:
    """Install subagents or commands; returns the failure count"""
    installer = context.item_installer(on_exists=None if yes else prompt_file_exists)
    install = installer.install_subagent if kind == "subagent" else installer.install_command
    failed = 0

    for name in names:
        try:
            result = install(name)
        except BwcError as e:
            if len(names) == 1:
                raise
            console.print(f"  [red]-[/] {name}: {e}")
            failed += 1
            continue
        if result.installed:
            console.print(f"  [green]+[/] {kind} {name} [dim]-> {result.path}[/]")
        else:
            console.print(f"  [dim]=[/] {kind} {name} skipped")

    return failed


def _add_mcp(context, name, scope, env_vars, inputs, docker_mcp, transport, url, headers, server_command) -> None:
    installer = context.mcp_installer()

    if docker_mcp:
        console.print(f"[cyan]Enabling {name} from the Docker MCP catalog...[/]")
        print_outcome(installer.add_docker(name, scope), scope)
        return

    if transport or url:
        try:
            in_registry = installer.registry.find_mcp_server(name) is not None
        except RegistryError as e:
            logger.debug(f"Registry lookup skipped: {e}")
            in_registry = False

        if not in_registry:
            console.print(f"[cyan]Adding {name} ({transport or 'sse'})...[/]")
            outcome = installer.add_remote(
                name,
                scope=scope,
                transport=transport or ("sse" if url else "stdio"),
                url=url,
                headers=headers,
                env=env_vars,
                command=server_command,
            )
            print_outcome(outcome, scope)
            return

    hints = InstallHints(transport=transport, url=url, headers=list(headers))
    descriptor = installer.find_descriptor(name)
    console.print(f"\n[bold]{descriptor.display_name or descriptor.name}[/] - {descriptor.description}")
    console.print(f"[dim]Verification:[/] {descriptor.verification.status}")

    plan = installer.plan(name, scope, hints, parse_input_pairs(inputs), env_vars)
    if plan.values:
        for label, value in installer.pipeline.summary(plan.values, descriptor):
            console.print(f"  [dim]{label}:[/] {value}")

    print_outcome(installer.install(plan), scope)


def _interactive(context: BwcContext, scope: str, env_vars, yes: bool) -> None:
    kind = prompt_select("What would you like to add?", choices=["subagents", "commands", "mcp servers"])
    if not kind:
        return

    registry = context.registry
    if kind == "subagents":
        choices = [f"{s.name} - {s.description[:60]}" for s in registry.get_subagents()]
    elif kind == "commands":
        choices = [f"{c.name} - {c.description[:60]}" for c in registry.get_commands()]
    else:
        choices = [f"{m.name} - {m.description[:60]}" for m in registry.get_mcp_servers()]

    selected = [choice.split(" - ", 1)[0] for choice in prompt_checkbox(f"Select {kind}:", choices)]
    if not selected:
        console.print(f"[yellow]No {kind} selected[/]")
        return

    console.print(f"\n[cyan]Installing {len(selected)} item(s)...[/]\n")

    if kind == "mcp servers":
        result = context.mcp_installer().install_many(selected, scope=scope, env=env_vars)
        for outcome in result.outcomes:
            print_outcome(outcome, scope)
        for name, error in result.failures.items():
            console.print(f"  [red]-[/] {name}: {error}")
        success, failed = result.success_count, result.failure_count
    else:
        failed = _add_items(context, kind[:-1], selected, yes)
        success = len(selected) - failed

    console.print(f"\n[green]{success} installed[/], [red]{failed} failed[/]")
    if failed:
        raise click.exceptions.Exit(1)
