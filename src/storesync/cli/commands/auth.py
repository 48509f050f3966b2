"""``storesync auth`` commands.

Subcommands:
- ``storesync auth validate`` checks credentials against the store and
  lists the granted access scopes.
"""

from __future__ import annotations

from typing import Any

import typer
from rich.markup import escape

from storesync.api.client import StoreClient
from storesync.core.config import StoreSettings, resolve_credentials
from storesync.core.constants import ENV_ACCESS_TOKEN, ENV_STORE_DOMAIN
from storesync.execution.retry import execute

from ..helpers import is_quiet, load_settings, run_command
from ..output import console, shop_table
from .resources import SITE_HELP, TOKEN_HELP

auth_app = typer.Typer(
    name="auth",
    help="Check store credentials.",
    no_args_is_help=True,
)


async def validate_credentials(
    settings: StoreSettings,
    site: str | None,
    access_token: str | None,
) -> tuple[dict[str, Any], list[str]]:
    """Fetch the shop and its granted scopes.

    Returns:
        The ``shop`` object and the scope handles.

    Raises:
        CredentialsError: If no credentials can be resolved.
        StoreApiError: If the store rejects them.
    """
    credentials = resolve_credentials(site, access_token)
    async with StoreClient(credentials, settings) as client:
        body = await execute(
            lambda: client.get_json("shop.json"),
            settings.retry,
            description="fetch shop",
        )
        # Scopes live outside the versioned API path
        scopes_body = await execute(
            lambda: client.get_json(f"https://{credentials.site}/admin/oauth/access_scopes.json"),
            settings.retry,
            description="fetch access scopes",
        )
    shop = (body or {}).get("shop") or {}
    scopes = [scope["handle"] for scope in (scopes_body or {}).get("access_scopes") or []]
    return shop, scopes


@auth_app.command()
def validate(
    site: str | None = typer.Option(None, "--site", envvar=ENV_STORE_DOMAIN, help=SITE_HELP),
    access_token: str | None = typer.Option(
        None, "--access-token", envvar=ENV_ACCESS_TOKEN, help=TOKEN_HELP
    ),
) -> None:
    """Validate credentials and show the granted scopes."""
    settings = load_settings(console)
    shop, scopes = run_command(console, validate_credentials(settings, site, access_token))

    console.print(f"[green]Valid credentials for: {escape(str(shop.get('name', '?')))}[/green]")
    if not is_quiet():
        console.print(shop_table(shop, scopes))


__all__ = ["auth_app", "validate", "validate_credentials"]
