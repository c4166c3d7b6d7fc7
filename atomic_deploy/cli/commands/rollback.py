"""Rollback command implementation"""

import sys

import click
from rich.console import Console
from rich.prompt import Confirm

from ..utils.output import ConsoleSink, format_lifecycle_result, print_failure
from ...api import Deployer
from ...api.exceptions import AtomicDeployError
from ...constants import EMOJI_WARNING

console = Console()


@click.command()
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_obj
def rollback(obj, yes):
    """Roll back to the previous release

    Points the current symlink at the second newest release and deletes
    the newest one.
    """
    try:
        deployer = Deployer(obj.config_service.load(), sink=ConsoleSink(console))

        if not yes:
            releases = deployer.list_releases()
            if len(releases) >= 2:
                console.print(f"{EMOJI_WARNING} Release [cyan]{releases[0].name}[/cyan] will be deleted "
                              f"and [cyan]{releases[1].name}[/cyan] becomes current")
                try:
                    confirmed = Confirm.ask("Continue?", default=False)
                except EOFError:
                    console.print("\n[red]Error:[/red] No answer on standard input, pass --yes to roll back "
                                  "non-interactively")
                    sys.exit(1)
                if not confirmed:
                    console.print("[yellow]Rollback cancelled[/yellow]")
                    return

        result = deployer.rollback()
        format_lifecycle_result(result)

    except AtomicDeployError as e:
        print_failure(e)
        sys.exit(1)
