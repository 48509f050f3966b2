# storesync/cli/commands: Command modules for the storesync CLI.
#
# Each module in this package provides one or more CLI command groups.

from .auth import auth_app
from .resources import create_resource_app, resource_apps

__all__ = [
    # auth.py
    "auth_app",
    # resources.py
    "create_resource_app",
    "resource_apps",
]
