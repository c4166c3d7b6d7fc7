"""Configuration management commands"""

import sys
from functools import wraps

import click
import yaml
from rich.markup import escape
from rich.syntax import Syntax

from ..utils.output import console, print_error
from ...api.exceptions import ConfigError
from ...constants import EMOJI_SUCCESS, EMOJI_WARNING
from ...models.config import STAGES, normalize_document

STAGE_CHOICE = click.Choice([stage.lower() for stage in STAGES], case_sensitive=False)


def config_command(func):
    """Pass the ConfigService and turn ConfigError into exit status 1"""
    @click.pass_obj
    @wraps(func)
    def wrapper(obj, *args, **kwargs):
        try:
            return func(obj.config_service, *args, **kwargs)
        except ConfigError as e:
            print_error("Configuration failed", e)
            sys.exit(1)
    return wrapper


def _report(changed: bool, done: str, unchanged: str) -> None:
    if changed:
        console.print(f"{EMOJI_SUCCESS} {escape(done)}")
    else:
        console.print(f"{EMOJI_WARNING} {escape(unchanged)}")


@click.group()
def config():
    """Manage atomic-deploy configuration"""
    pass


@config.command()
@click.option('--root', default='/var/www/app', show_default=True,
              help='Deployment root directory')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@config_command
def init(service, root, force):
    """Create a skeleton configuration file"""
    path = service.init(root, force=force)
    console.print(f"{EMOJI_SUCCESS} Configuration written to {escape(str(path))}")


@config.command()
@config_command
def show(service):
    """Show the configuration document"""
    # Validate before printing
    service.snapshot()
    content = yaml.safe_dump(normalize_document(service.data), default_flow_style=False,
                             sort_keys=False, indent=4)
    console.print(Syntax(content, "yaml", theme="monokai"))


@config.group()
def shared():
    """Manage paths linked from the shared directory"""
    pass


@shared.command('add')
@click.argument('path')
@config_command
def shared_add(service, path):
    """Add a shared path"""
    changed = service.push_shared(path)
    if changed:
        service.save()
    _report(changed, f"Shared path added: {path}", f"Shared path already configured: {path}")


@shared.command('remove')
@click.argument('path')
@config_command
def shared_remove(service, path):
    """Remove a shared path"""
    changed = service.pop_shared(path)
    if changed:
        service.save()
    _report(changed, f"Shared path removed: {path}", f"Shared path not configured: {path}")


@config.group()
def remove():
    """Manage paths deleted from each release after deploy"""
    pass


@remove.command('add')
@click.argument('path')
@config_command
def remove_add(service, path):
    """Add a path to delete after deploy"""
    changed = service.push_remove(path)
    if changed:
        service.save()
    _report(changed, f"Remove path added: {path}", f"Remove path already configured: {path}")


@remove.command('remove')
@click.argument('path')
@config_command
def remove_remove(service, path):
    """Stop deleting a path after deploy"""
    changed = service.pop_remove(path)
    if changed:
        service.save()
    _report(changed, f"Remove path removed: {path}", f"Remove path not configured: {path}")


@config.group()
def chown():
    """Manage ownership fix-ups (pre/post switch)"""
    pass


@chown.command('group')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('group', required=False)
@config_command
def chown_group(service, stage, group):
    """Set the owner for a stage, omit GROUP to disable it

    GROUP is passed to chown as is, e.g. www-data:www-data
    """
    service.set_chown_group(stage, group)
    service.save()
    if group:
        console.print(f"{EMOJI_SUCCESS} {stage.capitalize()} chown group set to {escape(group)}")
    else:
        console.print(f"{EMOJI_SUCCESS} {stage.capitalize()} chown disabled")


@chown.command('add')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('path')
@config_command
def chown_add(service, stage, path):
    """Add a path to chown"""
    changed = service.push_chown_path(stage, path)
    if changed:
        service.save()
    _report(changed, f"{stage.capitalize()} chown path added: {path}",
            f"{stage.capitalize()} chown path already configured: {path}")


@chown.command('remove')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('path')
@config_command
def chown_remove(service, stage, path):
    """Remove a path from chown"""
    changed = service.pop_chown_path(stage, path)
    if changed:
        service.save()
    _report(changed, f"{stage.capitalize()} chown path removed: {path}",
            f"{stage.capitalize()} chown path not configured: {path}")


@config.group()
def chmod():
    """Manage permission fix-ups (pre/post switch)"""
    pass


@chmod.command('permission')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('permission', required=False)
@config_command
def chmod_permission(service, stage, permission):
    """Set the mode for a stage, omit PERMISSION to disable it"""
    service.set_chmod_permission(stage, permission)
    service.save()
    if permission:
        console.print(f"{EMOJI_SUCCESS} {stage.capitalize()} chmod permission set to {escape(permission)}")
    else:
        console.print(f"{EMOJI_SUCCESS} {stage.capitalize()} chmod disabled")


@chmod.command('add')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('path')
@config_command
def chmod_add(service, stage, path):
    """Add a path to chmod"""
    changed = service.push_chmod_path(stage, path)
    if changed:
        service.save()
    _report(changed, f"{stage.capitalize()} chmod path added: {path}",
            f"{stage.capitalize()} chmod path already configured: {path}")


@chmod.command('remove')
@click.argument('stage', type=STAGE_CHOICE)
@click.argument('path')
@config_command
def chmod_remove(service, stage, path):
    """Remove a path from chmod"""
    changed = service.pop_chmod_path(stage, path)
    if changed:
        service.save()
    _report(changed, f"{stage.capitalize()} chmod path removed: {path}",
            f"{stage.capitalize()} chmod path not configured: {path}")


@config.command()
@click.argument('repo')
@click.option('--branch', help='Branch to clone')
@config_command
def repo(service, repo, branch):
    """Set the repository cloned on deploy

    REPO is owner/name on GitHub, or any URL git can clone.
    """
    service.set_github(repo, branch)
    service.save()
    console.print(f"{EMOJI_SUCCESS} Repository set to {escape(repo)}" + (f" ({escape(branch)})" if branch else ""))
