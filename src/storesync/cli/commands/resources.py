"""Per-resource ``pull`` and ``push`` commands.

Every resource gets the same command group, built from its
``ResourceSync`` class:

    storesync <resource> pull --output DIR [--max-items N] [--dry-run] [--mirror]
    storesync <resource> push --input DIR [--dry-run] [--mirror]

Both accept --site and --access-token, falling back to the
SHOPIFY_STORE_DOMAIN and SHOPIFY_ACCESS_TOKEN environment variables.
"""

from __future__ import annotations

from pathlib import Path

import typer

from storesync.api.client import StoreClient
from storesync.core.config import StoreSettings, resolve_credentials
from storesync.core.constants import ENV_ACCESS_TOKEN, ENV_STORE_DOMAIN
from storesync.resources import RESOURCES, PullOptions, PushOptions, ResourceSync
from storesync.sync.reporting import SyncReport

from ..helpers import load_settings, run_command
from ..output import console, create_reporter

SITE_HELP = f"Store domain, e.g. my-store.myshopify.com [env: {ENV_STORE_DOMAIN}]"
TOKEN_HELP = f"Admin API access token [env: {ENV_ACCESS_TOKEN}]"


async def _pull(
    resource_cls: type[ResourceSync],
    options: PullOptions,
    settings: StoreSettings,
    site: str | None,
    access_token: str | None,
) -> SyncReport:
    credentials = resolve_credentials(site, access_token)
    async with StoreClient(credentials, settings) as client:
        command = resource_cls(client, create_reporter(options.dry_run))
        return await command.pull(options)


async def _push(
    resource_cls: type[ResourceSync],
    options: PushOptions,
    settings: StoreSettings,
    site: str | None,
    access_token: str | None,
) -> SyncReport:
    credentials = resolve_credentials(site, access_token)
    async with StoreClient(credentials, settings) as client:
        command = resource_cls(client, create_reporter(options.dry_run))
        return await command.push(options)


def create_resource_app(resource_cls: type[ResourceSync]) -> typer.Typer:
    """Build the ``pull``/``push`` command group of one resource."""
    name = resource_cls.name
    resource_app = typer.Typer(
        name=name,
        help=f"Pull and push {name}.",
        no_args_is_help=True,
    )

    @resource_app.command()
    def pull(
        output: Path = typer.Option(
            ...,
            "--output",
            "-o",
            help=f"Sync root; {name} are written to <output>/{name}",
        ),
        max_items: int | None = typer.Option(
            None,
            "--max-items",
            min=1,
            help="Download at most N items (for testing)",
        ),
        dry_run: bool = typer.Option(
            False,
            "--dry-run",
            "-n",
            help="Show what would change without changing anything",
        ),
        mirror: bool = typer.Option(
            False,
            "--mirror",
            help="Delete local files that no longer exist remotely",
        ),
        site: str | None = typer.Option(None, "--site", envvar=ENV_STORE_DOMAIN, help=SITE_HELP),
        access_token: str | None = typer.Option(
            None, "--access-token", envvar=ENV_ACCESS_TOKEN, help=TOKEN_HELP
        ),
    ) -> None:
        """Download remote items into a local directory."""
        settings = load_settings(console)
        options = PullOptions(output=output, max_items=max_items, dry_run=dry_run, mirror=mirror)
        run_command(console, _pull(resource_cls, options, settings, site, access_token))

    @resource_app.command()
    def push(
        input_path: Path = typer.Option(
            ...,
            "--input",
            "-i",
            help=f"Sync root; {name} are read from <input>/{name}",
        ),
        dry_run: bool = typer.Option(
            False,
            "--dry-run",
            "-n",
            help="Show what would change without changing anything",
        ),
        mirror: bool = typer.Option(
            False,
            "--mirror",
            help="Delete remote items that no longer exist locally",
        ),
        site: str | None = typer.Option(None, "--site", envvar=ENV_STORE_DOMAIN, help=SITE_HELP),
        access_token: str | None = typer.Option(
            None, "--access-token", envvar=ENV_ACCESS_TOKEN, help=TOKEN_HELP
        ),
    ) -> None:
        """Upload local files to the store."""
        settings = load_settings(console)
        options = PushOptions(input=input_path, dry_run=dry_run, mirror=mirror)
        run_command(console, _push(resource_cls, options, settings, site, access_token))

    return resource_app


resource_apps: list[typer.Typer] = [create_resource_app(cls) for cls in RESOURCES.values()]

__all__ = ["create_resource_app", "resource_apps"]
