"""Products, stored as ``<handle>.json``."""

from __future__ import annotations

import json
from typing import Any, ClassVar

from storesync.resources.base import Item, LocalItem, ResourceSync

_CONTENT_FIELDS = (
    "title",
    "body_html",
    "vendor",
    "product_type",
    "tags",
    "variants",
    "options",
    "images",
)

_METADATA_FIELDS = (
    "id",
    "title",
    "handle",
    "vendor",
    "product_type",
    "created_at",
    "updated_at",
    "published_at",
    "template_suffix",
    "status",
    "published_scope",
    "tags",
)

# Sidecar fields that are sent back on push
_PUSHED_METADATA_FIELDS = ("template_suffix", "published_at", "status", "published_scope")


class ProductsSync(ResourceSync):
    name: ClassVar[str] = "products"

    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        return await self._fetch_rest("products.json", "products", max_items)

    def handle_of(self, item: Item) -> str:
        return item["handle"]

    def extract_metadata(self, item: Item) -> dict[str, Any]:
        return {key: item.get(key) for key in _METADATA_FIELDS}

    def render(self, item: Item) -> str:
        content = {key: item.get(key) for key in _CONTENT_FIELDS}
        content["body_html"] = item.get("body_html") or ""
        return json.dumps(content, indent=2, ensure_ascii=False)

    async def upload(self, local: LocalItem) -> None:
        product = local.read_json()
        product["handle"] = local.handle
        if local.metadata:
            for key in _PUSHED_METADATA_FIELDS:
                if key in local.metadata:
                    product[key] = local.metadata[key]

        product_id = local.remote_id
        if product_id is not None:
            await self.client.put_json(
                f"products/{product_id}.json", {"product": product}, resource=self.name
            )
        else:
            await self.client.post_json("products.json", {"product": product}, resource=self.name)

    async def delete_remote(self, item: Item) -> None:
        await self.client.delete(f"products/{item['id']}.json", resource=self.name)
