"""Deploy command implementation"""

import sys
from pathlib import Path

import click
from rich.console import Console

from ..utils.output import ConsoleSink, format_lifecycle_result, print_failure
from ...api import Deployer
from ...api.exceptions import AtomicDeployError

console = Console()


@click.command()
@click.option('--source', 'source_dir', type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Deploy a local directory instead of cloning GitHub.Repo')
@click.option('--branch', help='Branch to clone (overrides GitHub.Branch)')
@click.pass_obj
def deploy(obj, source_dir, branch):
    """Deploy a new release

    Creates releases/<timestamp>, fills it from the configured repository
    (or --source), links the shared paths, fixes permissions and switches
    the current symlink to it. Old releases beyond KeepReleases are pruned.

    Examples:

        # Clone the configured repository
        atomic-deploy deploy

        # Deploy another branch
        atomic-deploy deploy --branch hotfix

        # Deploy a build directory
        atomic-deploy deploy --source ./build
    """
    try:
        deployer = Deployer(obj.config_service.load(), sink=ConsoleSink(console))
        result = deployer.deploy(directory=source_dir, branch=branch)
        format_lifecycle_result(result)

    except AtomicDeployError as e:
        print_failure(e)
        sys.exit(1)
