"""
Initialize a bwc configuration
"""

import click
from rich.console import Console

from bwc.core.errors import BwcError
from bwc.core.scope import init_config

console = Console()


@click.command()
@click.option("--project", "project_flag", is_flag=True, help="Create bwc.config.json in the current directory")
@click.option("-f", "--force", is_flag=True, help="Overwrite an existing configuration")
@click.pass_context
def init(ctx, project_flag, force):
    """
    Initialize bwc configuration

    Without --project, creates the user configuration at ~/.bwc/config.json.
    With --project, creates bwc.config.json in the current directory so the
    project's dependencies can be committed and shared.

    Examples:

        \b
        bwc init                    # User configuration
        bwc init --project          # Project configuration
        bwc init --project --force  # Recreate project configuration
    """
    project = project_flag or ctx.obj.get("project", False)

    try:
        store = init_config(project=project, force=force)
    except BwcError as e:
        console.print(f"[red]Error:[/] {e}")
        raise click.Abort()

    kind = "project" if project else "user"
    console.print(f"[green]+[/] Created {kind} configuration: [cyan]{store.path}[/]")
    console.print(f"  [dim]Subagents:[/] {store.subagents_path()}")
    console.print(f"  [dim]Commands:[/]  {store.commands_path()}")

    if project:
        console.print("\n[dim]Commit bwc.config.json so your team installs the same dependencies.[/]")
        console.print("[dim]Next:[/] bwc add --agent <name>  or  bwc install")
