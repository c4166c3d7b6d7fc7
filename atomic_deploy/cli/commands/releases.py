"""Release listing command"""

import sys

import click

from ..utils.output import format_release_list, print_error
from ...api import Deployer
from ...api.exceptions import AtomicDeployError


@click.command()
@click.pass_obj
def releases(obj):
    """List releases, newest first"""
    try:
        deployer = Deployer(obj.config_service.load())
        format_release_list(deployer.list_releases(), deployer.current_target())

    except AtomicDeployError as e:
        print_error("Cannot list releases", e)
        sys.exit(1)
