"""CLI commands"""

from . import deploy, rollback, releases, config

__all__ = ["deploy", "rollback", "releases", "config"]
