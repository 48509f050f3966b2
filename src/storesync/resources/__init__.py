"""Per-resource pull and push commands."""

from storesync.resources.base import (
    LocalItem,
    PullOptions,
    PushOptions,
    ResourceSync,
)
from storesync.resources.blogs import BlogsSync
from storesync.resources.collections import CollectionsSync
from storesync.resources.files import FilesSync
from storesync.resources.menus import MenusSync
from storesync.resources.metafields import MetafieldsSync
from storesync.resources.metaobjects import MetaobjectsSync
from storesync.resources.pages import PagesSync
from storesync.resources.products import ProductsSync
from storesync.resources.redirects import RedirectsSync
from storesync.resources.webhooks import WebhooksSync

# CLI subcommand name -> command class, in help order
RESOURCES: dict[str, type[ResourceSync]] = {
    cls.name: cls
    for cls in (
        PagesSync,
        FilesSync,
        MenusSync,
        MetaobjectsSync,
        ProductsSync,
        CollectionsSync,
        WebhooksSync,
        RedirectsSync,
        MetafieldsSync,
        BlogsSync,
    )
}

__all__ = [
    "RESOURCES",
    "BlogsSync",
    "CollectionsSync",
    "FilesSync",
    "LocalItem",
    "MenusSync",
    "MetafieldsSync",
    "MetaobjectsSync",
    "PagesSync",
    "ProductsSync",
    "PullOptions",
    "PushOptions",
    "RedirectsSync",
    "ResourceSync",
    "WebhooksSync",
]
